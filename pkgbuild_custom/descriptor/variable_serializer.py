"""
Variable Serializer Module - Writes environment values back as shell assignments
"""

from typing import Iterable, List, Optional

from pkgbuild_custom.descriptor.environment import Environment, ListValue, Scalar


def quote(value: str) -> str:
    """
    Quote a value as one single-quoted shell word.

    Everything inside single quotes is literal, so only the quote itself
    needs care: it closes the string, adds an escaped quote and reopens.
    """
    return "'" + value.replace("'", "'\\''") + "'"


def serialize(env: Environment, name: str) -> Optional[str]:
    """
    Assignment statement that recreates `name`, or None when it is undefined.

    Scalars become name='value', lists name=('a' 'b'); an empty list is
    still written as name=() and an empty scalar as name=''.
    """
    value = env.get(name)
    if isinstance(value, Scalar):
        return f"{name}={quote(value.value)}"
    if isinstance(value, ListValue):
        return f"{name}=({' '.join(quote(item) for item in value.items)})"
    return None


def serialize_many(env: Environment, names: Iterable[str]) -> List[str]:
    """Assignments for the defined names, in the given order"""
    lines = []
    for name in names:
        line = serialize(env, name)
        if line is not None:
            lines.append(line)
    return lines
