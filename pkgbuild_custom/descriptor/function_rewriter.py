"""
Function Rewriter Module - Extracts and recomposes PKGBUILD function bodies
"""

import re
from typing import Iterable, Sequence, Tuple

from pkgbuild_custom.descriptor.environment import Environment

DEFAULT_INDENT = "    "
LEADING_WHITESPACE_RE = re.compile(r'[ \t]*')


def extract_body(env: Environment, name: str) -> Tuple[str, ...]:
    """
    Statement lines between the braces of function `name`.

    Raises UndefinedFunctionError (a NotFoundError) when the descriptor does
    not define it.
    """
    return env.get_function(name).body


def assemble(name: str, body_lines: Sequence[str]) -> str:
    """Function declaration text for `name` with the given body"""
    body = "\n".join(body_lines)
    return f"{name}() {{\n{body}\n}}"


def body_indent(body_lines: Sequence[str]) -> str:
    for line in body_lines:
        if line.strip():
            return LEADING_WHITESPACE_RE.match(line).group(0)
    return DEFAULT_INDENT


def append_statements(body_lines: Sequence[str], statements: Iterable[str]) -> Tuple[str, ...]:
    """New body with `statements` after the existing lines, indented like them"""
    indent = body_indent(body_lines)
    return tuple(body_lines) + tuple(f"{indent}{statement}" for statement in statements)


def double_quote(value: str) -> str:
    return re.sub(r'([$`"\\])', r'\\\1', value)


def patch_apply_statement(patch_name: str) -> str:
    """Statement applying the staged patch from makepkg's $srcdir"""
    return f'git apply "$srcdir/{double_quote(patch_name)}"'
