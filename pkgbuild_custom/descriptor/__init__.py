"""
Descriptor modules: evaluating, serializing and rewriting PKGBUILDs
"""

import logging

from pkgbuild_custom.common.errors import ConfigError
from .environment import Environment, FunctionDefinition, ListValue, Scalar, UNDEFINED
from .parser import DescriptorParser
from .bash_evaluator import BashEvaluator
from .variable_serializer import quote, serialize, serialize_many
from .function_rewriter import append_statements, assemble, extract_body, patch_apply_statement

logger = logging.getLogger(__name__)


def create_evaluator(kind="auto", shell_executor=None, timeout=60):
    """Evaluator for `kind`: "bash", "parser", or "auto" (bash when installed)"""
    if kind == "auto":
        if BashEvaluator.is_available():
            kind = "bash"
        else:
            logger.warning("bash not found on PATH, falling back to the built-in PKGBUILD parser")
            kind = "parser"

    if kind == "bash":
        return BashEvaluator(shell_executor=shell_executor, timeout=timeout)
    if kind == "parser":
        return DescriptorParser()
    raise ConfigError(f"unknown evaluator '{kind}'")


__all__ = [
    'Environment',
    'FunctionDefinition',
    'ListValue',
    'Scalar',
    'UNDEFINED',
    'DescriptorParser',
    'BashEvaluator',
    'create_evaluator',
    'quote',
    'serialize',
    'serialize_many',
    'append_statements',
    'assemble',
    'extract_body',
    'patch_apply_statement',
]
