"""
Environment Module - Evaluated PKGBUILD variables and functions
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple, Union

from pkgbuild_custom.common.errors import UndefinedFunctionError


@dataclass(frozen=True)
class Undefined:
    """Marker for a name the descriptor never assigned"""

    def __bool__(self):
        return False


UNDEFINED = Undefined()


@dataclass(frozen=True)
class Scalar:
    value: str


@dataclass(frozen=True)
class ListValue:
    items: Tuple[str, ...] = ()


Value = Union[Undefined, Scalar, ListValue]


@dataclass(frozen=True)
class FunctionDefinition:
    """A named function with its body as opaque statement lines"""

    name: str
    body: Tuple[str, ...] = ()


class Environment:
    """
    Variables and functions produced by evaluating one descriptor.

    Variables keep the order of their first assignment. Apart from the
    evaluators, only the override operations below change an environment.
    """

    def __init__(self, variables: Optional[Dict[str, Value]] = None,
                 functions: Optional[Dict[str, FunctionDefinition]] = None):
        self.variables: Dict[str, Value] = dict(variables or {})
        self.functions: Dict[str, FunctionDefinition] = dict(functions or {})

    def __repr__(self):
        return f"Environment(variables={self.variables!r}, functions={sorted(self.functions)!r})"

    def __eq__(self, other):
        if not isinstance(other, Environment):
            return NotImplemented
        return self.variables == other.variables and self.functions == other.functions

    def get(self, name: str) -> Value:
        return self.variables.get(name, UNDEFINED)

    def is_defined(self, name: str) -> bool:
        return name in self.variables

    def scalar_value(self, name: str) -> str:
        """Value as the shell would expand $name: first element of a list, empty if undefined"""
        value = self.get(name)
        if isinstance(value, Scalar):
            return value.value
        if isinstance(value, ListValue):
            return value.items[0] if value.items else ''
        return ''

    def list_value(self, name: str) -> Tuple[str, ...]:
        """Elements as the shell would expand ${name[@]}"""
        value = self.get(name)
        if isinstance(value, ListValue):
            return value.items
        if isinstance(value, Scalar):
            return (value.value,)
        return ()

    def set_scalar(self, name: str, value: str):
        """Assign a scalar; on an existing list this replaces element 0 like the shell does"""
        current = self.get(name)
        if isinstance(current, ListValue):
            self.variables[name] = ListValue((value,) + current.items[1:])
        else:
            self.variables[name] = Scalar(value)

    def append_scalar(self, name: str, value: str):
        """name+=value"""
        current = self.get(name)
        if isinstance(current, ListValue):
            first = current.items[0] if current.items else ''
            self.variables[name] = ListValue((first + value,) + current.items[1:])
        else:
            self.variables[name] = Scalar(self.scalar_value(name) + value)

    def set_list(self, name: str, items: Iterable[str]):
        self.variables[name] = ListValue(tuple(items))

    def append(self, name: str, items: Iterable[str]):
        """name+=( items ); an undefined name becomes a list, a scalar becomes element 0"""
        self.variables[name] = ListValue(self.list_value(name) + tuple(items))

    def define_function(self, function: FunctionDefinition):
        self.functions[function.name] = function

    def get_function(self, name: str) -> FunctionDefinition:
        try:
            return self.functions[name]
        except KeyError:
            raise UndefinedFunctionError(name)

    def copy(self) -> "Environment":
        return Environment(self.variables, self.functions)
