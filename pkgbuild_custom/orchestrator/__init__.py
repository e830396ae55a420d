"""
Orchestrator modules package
"""

from .descriptor_assembler import AssemblyResult, DescriptorAssembler
from .descriptor_verifier import DescriptorVerifier
from .overrides import Override, apply_overrides, load_overrides

__all__ = [
    'AssemblyResult',
    'DescriptorAssembler',
    'DescriptorVerifier',
    'Override',
    'apply_overrides',
    'load_overrides',
]
