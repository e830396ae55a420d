"""
Common modules: configuration, logging, errors and command execution
"""

from .config_loader import ConfigLoader
from .errors import (
    ConfigError,
    EvaluationError,
    MissingInputError,
    NotFoundError,
    PkgbuildCustomError,
    StageError,
    UndefinedFunctionError,
    UpstreamError,
    VerificationError,
)
from .logging_utils import setup_logging, DebugLogger
from .shell_executor import ShellExecutor

__all__ = [
    'ConfigLoader',
    'ConfigError',
    'EvaluationError',
    'MissingInputError',
    'NotFoundError',
    'PkgbuildCustomError',
    'StageError',
    'UndefinedFunctionError',
    'UpstreamError',
    'VerificationError',
    'setup_logging',
    'DebugLogger',
    'ShellExecutor',
]
