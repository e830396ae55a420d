"""
Source control helpers
"""

from .upstream_client import UpstreamClient

__all__ = ['UpstreamClient']
