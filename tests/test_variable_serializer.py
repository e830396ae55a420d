"""Tests for serializing environment values back to shell assignments."""

import pytest

from pkgbuild_custom.descriptor.environment import Environment, ListValue, Scalar, UNDEFINED
from pkgbuild_custom.descriptor.variable_serializer import quote, serialize, serialize_many

TRICKY_STRINGS = [
    "",
    "plain",
    "with spaces",
    "it's",
    "''",
    'double "quotes"',
    "$pkgname ${pkgver} $(rm -rf /) `id`",
    "back\\slash\\",
    "new\nline",
    "tab\there",
    "glob * ? [a-z] ~",
    "semi; colon && pipe | amp & <redirect>",
    "#not a comment",
    "unicode: Überkompositor ✓",
]


class TestQuote:
    def test_single_quotes(self):
        """Values are always single-quoted."""
        assert quote("hyprland") == "'hyprland'"
        assert quote("") == "''"

    def test_embedded_quote(self):
        """A single quote is closed, escaped and reopened."""
        assert quote("it's") == "'it'\\''s'"


class TestSerialize:
    def test_scalar(self):
        """Scalars become name='value'."""
        env = Environment({"pkgname": Scalar("hyprland")})
        assert serialize(env, "pkgname") == "pkgname='hyprland'"

    def test_list(self):
        """Lists keep element order."""
        env = Environment({"arch": ListValue(("x86_64", "aarch64"))})
        assert serialize(env, "arch") == "arch=('x86_64' 'aarch64')"

    def test_empty_list(self):
        """An empty list is written, not omitted."""
        env = Environment({"license": ListValue(())})
        assert serialize(env, "license") == "license=()"

    def test_empty_scalar(self):
        """An empty string is one line with an empty quoted value."""
        env = Environment({"pkgdesc": Scalar("")})
        assert serialize(env, "pkgdesc") == "pkgdesc=''"

    def test_undefined_is_omitted(self):
        """Undefined names produce no output."""
        env = Environment()
        assert env.get("b2sums") is UNDEFINED
        assert serialize(env, "b2sums") is None

    def test_serialize_many_skips_undefined(self):
        """serialize_many keeps the requested order and drops undefined names."""
        env = Environment({
            "pkgver": Scalar("1.0"),
            "pkgname": Scalar("x"),
            "depends": ListValue(("glibc",)),
        })
        lines = serialize_many(env, ["pkgname", "pkgver", "pkgdesc", "depends", "md5sums"])
        assert lines == ["pkgname='x'", "pkgver='1.0'", "depends=('glibc')"]

    def test_does_not_modify_environment(self):
        """Serialization is a pure read."""
        env = Environment({"arch": ListValue(("any",))})
        before = env.copy()
        serialize_many(env, ["arch", "missing"])
        assert env == before


class TestRoundTrip:
    @pytest.mark.parametrize("value", TRICKY_STRINGS)
    def test_scalar_round_trip(self, evaluator, tmp_path, value):
        """Evaluating a serialized scalar reproduces it exactly."""
        env = Environment({"value": Scalar(value)})
        path = tmp_path / "PKGBUILD"
        path.write_text(serialize(env, "value") + "\n", encoding="utf-8")
        assert evaluator.evaluate(path).get("value") == Scalar(value)

    @pytest.mark.parametrize("items", [
        (),
        ("",),
        ("one",),
        ("b", "a", "c"),
        tuple(TRICKY_STRINGS),
    ])
    def test_list_round_trip(self, evaluator, tmp_path, items):
        """Evaluating a serialized list reproduces order and content."""
        env = Environment({"items": ListValue(items)})
        path = tmp_path / "PKGBUILD"
        path.write_text(serialize(env, "items") + "\n", encoding="utf-8")
        assert evaluator.evaluate(path).get("items") == ListValue(items)
