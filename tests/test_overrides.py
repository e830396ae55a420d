"""Tests for the Override Set."""

import logging

import pytest

from pkgbuild_custom import config
from pkgbuild_custom.common.errors import ConfigError
from pkgbuild_custom.descriptor.environment import ListValue, Scalar
from pkgbuild_custom.descriptor.parser import DescriptorParser
from pkgbuild_custom.orchestrator.overrides import Override, apply_overrides, load_overrides

MINIMAL_PKGBUILD = 'pkgname="orig"\npkgver="1.0"\nprovides=()\n'


def minimal_env():
    return DescriptorParser().evaluate_text(MINIMAL_PKGBUILD)


class TestOverride:
    def test_unknown_action(self):
        """Only set, template and append are valid actions."""
        with pytest.raises(ConfigError, match="unknown override action"):
            Override("pkgname", "replace", "x")

    def test_set_is_literal(self):
        """set values are not formatted."""
        env = minimal_env()
        Override("pkgdesc", "set", "{pkgver} literally").apply(env, "x.patch")
        assert env.get("pkgdesc") == Scalar("{pkgver} literally")

    def test_template_uses_environment(self):
        """template values see the evaluated fields."""
        env = minimal_env()
        Override("_archive", "template", "Hyprland-custom-{pkgver}").apply(env, "x.patch")
        assert env.get("_archive") == Scalar("Hyprland-custom-1.0")

    def test_template_undefined_field(self, caplog):
        """Undefined fields expand to an empty string with a warning."""
        env = minimal_env()
        with caplog.at_level(logging.WARNING, logger="pkgbuild_custom.orchestrator.overrides"):
            Override("_archive", "template", "x-{epoch}").apply(env, "x.patch")
        assert env.get("_archive") == Scalar("x-")
        assert "epoch" in caplog.text

    def test_append_patch_name(self):
        """{patch} is the patch file name."""
        env = minimal_env()
        Override("source", "append", "{patch}").apply(env, "x.patch")
        assert env.get("source") == ListValue(("x.patch",))


class TestLoadOverrides:
    def test_from_tuples(self):
        """config.py tuples become Override objects."""
        overrides = load_overrides(config.OVERRIDES)
        assert overrides[0] == Override("pkgname", "set", "hyprland-custom")
        assert [o.name for o in overrides] == [entry[0] for entry in config.OVERRIDES]

    def test_malformed_entry(self):
        """Entries must have exactly three parts."""
        with pytest.raises(ConfigError, match="override entry"):
            load_overrides([("pkgname", "set")])


class TestApplyOverrides:
    def test_minimal_descriptor(self):
        """The fixed set renames, appends and derives the archive name."""
        env = apply_overrides(minimal_env(), load_overrides(config.OVERRIDES), "x.patch")
        assert env.get("pkgname") == Scalar("hyprland-custom")
        assert env.get("url") == Scalar("https://github.com/hyprwm/Hyprland")
        assert "hyprland" in env.list_value("provides")
        assert "1.0" in env.scalar_value("_archive")
        assert env.get("conflicts") == ListValue(("hyprland",))
        assert env.get("source") == ListValue(("x.patch",))
        assert env.get("sha256sums") == ListValue(("SKIP",))

    def test_appends_keep_existing_elements(self, hyprland_pkgbuild):
        """Appended entries go after the upstream ones."""
        evaluated = DescriptorParser().evaluate_text(hyprland_pkgbuild)
        upstream_source = evaluated.list_value("source")
        env = apply_overrides(evaluated, load_overrides(config.OVERRIDES), "x.patch")
        assert env.list_value("source") == upstream_source + ("x.patch",)
        assert env.list_value("sha256sums")[-1] == "SKIP"
        assert len(env.list_value("sha256sums")) == 2

    def test_evaluated_environment_is_untouched(self, hyprland_pkgbuild):
        """Overrides land in a new environment."""
        evaluated = DescriptorParser().evaluate_text(hyprland_pkgbuild)
        before = evaluated.copy()
        env = apply_overrides(evaluated, load_overrides(config.OVERRIDES), "x.patch")
        assert env is not evaluated
        assert evaluated == before
        assert evaluated.get("pkgname") == Scalar("hyprland")
        assert not evaluated.is_defined("provides")
        assert env.get("pkgname") == Scalar("hyprland-custom")

    def test_order_matters(self):
        """Later overrides see earlier results."""
        env = apply_overrides(minimal_env(), [
            Override("pkgver", "set", "2.0"),
            Override("_archive", "template", "{pkgname}-{pkgver}"),
        ], "x.patch")
        assert env.get("_archive") == Scalar("orig-2.0")
