"""
Override Set - Field transformations applied to the evaluated PKGBUILD
"""

import logging
import string
from dataclasses import dataclass
from typing import Iterable, List

from pkgbuild_custom.common.errors import ConfigError
from pkgbuild_custom.descriptor.environment import Environment

logger = logging.getLogger(__name__)

ACTIONS = ("set", "template", "append")


class _ShellFormatter(string.Formatter):
    """str.format() where {name} expands like an unquoted $name"""

    def __init__(self, env: Environment):
        super().__init__()
        self.env = env

    def get_value(self, key, args, kwargs):
        if key in kwargs:
            return kwargs[key]
        if not self.env.is_defined(key):
            logger.warning(f"OVERRIDE_TEMPLATE_UNDEFINED field={key}, expanding to an empty string")
        return self.env.scalar_value(key)


@dataclass(frozen=True)
class Override:
    """
    One field transformation.

    set      - constant scalar, used as is
    template - scalar formatted against the environment, e.g. "Hyprland-custom-{pkgver}"
    append   - element added to a list field; {patch} is the patch file name
    """

    name: str
    action: str
    value: str

    def __post_init__(self):
        if self.action not in ACTIONS:
            raise ConfigError(f"unknown override action '{self.action}' for {self.name}")

    def resolve(self, env: Environment, patch_file: str) -> str:
        if self.action == "set":
            return self.value
        return _ShellFormatter(env).format(self.value, patch=patch_file)

    def apply(self, env: Environment, patch_file: str):
        value = self.resolve(env, patch_file)
        if self.action == "append":
            env.append(self.name, [value])
        else:
            env.set_scalar(self.name, value)
        logger.debug(f"OVERRIDE_APPLIED field={self.name} action={self.action} value={value!r}")


def load_overrides(entries: Iterable) -> List[Override]:
    """Overrides from (name, action, value) tuples as found in config.py"""
    overrides = []
    for entry in entries:
        if isinstance(entry, Override):
            overrides.append(entry)
            continue
        try:
            name, action, value = entry
        except (TypeError, ValueError):
            raise ConfigError(f"override entry must be (name, action, value), got {entry!r}")
        overrides.append(Override(name, action, value))
    return overrides


def apply_overrides(env: Environment, overrides: Iterable[Override], patch_file: str) -> Environment:
    """
    Apply the overrides in order, like consecutive shell assignments.

    Works on a copy: the evaluated environment and the source PKGBUILD are
    both left untouched, and the customized environment is returned.
    """
    customized = env.copy()
    for override in overrides:
        override.apply(customized, patch_file)
    return customized
