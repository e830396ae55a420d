"""Tests for the command line entry point."""

import logging

import pytest

from pkgbuild_custom.common.errors import UpstreamError
from pkgbuild_custom.main import build_parser, main
from pkgbuild_custom.scm.upstream_client import UpstreamClient


@pytest.fixture(autouse=True)
def isolated_run(monkeypatch):
    """Keep environment settings and root logging handlers per test."""
    for var in ("DEBUG_MODE", "PKGBUILD_EVALUATOR", "PKGBUILD_VERIFY"):
        monkeypatch.delenv(var, raising=False)
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestArguments:
    def test_no_arguments_required(self):
        """Every flag is optional and unset flags are None."""
        args = build_parser().parse_args([])
        assert args.debug is None
        assert args.evaluator is None
        assert args.verify_output is None
        assert args.sync_upstream is False
        assert args.config is None

    def test_flags(self):
        """Flags map to configuration keys."""
        args = build_parser().parse_args(["--debug", "--evaluator", "bash", "--no-verify"])
        assert args.debug is True
        assert args.evaluator == "bash"
        assert args.verify_output is False


class TestMain:
    def test_success_prints_one_line(self, recipe_dir, capsys):
        """A successful run exits 0 and names the output on stderr."""
        assert main(["--evaluator", "parser"], base_dir=recipe_dir) == 0
        captured = capsys.readouterr()
        lines = captured.err.splitlines()
        assert len(lines) == 1
        assert lines[0].endswith(f"INFO: Generated PKGBUILD at {recipe_dir / 'custom-pkgbuild' / 'PKGBUILD'}")
        assert captured.out == ""

    def test_default_evaluator(self, recipe_dir):
        """The automatic evaluator choice produces a verified file."""
        assert main([], base_dir=recipe_dir) == 0
        text = (recipe_dir / "custom-pkgbuild" / "PKGBUILD").read_text(encoding="utf-8")
        assert text.startswith("pkgname='hyprland-custom'\n")

    def test_missing_input(self, tmp_path, capsys):
        """Missing inputs exit with 2 and name the stage."""
        assert main(["--evaluator", "parser"], base_dir=tmp_path) == 2
        assert "stage stage failed: source directory not found" in capsys.readouterr().err

    def test_evaluation_failure(self, recipe_dir, capsys):
        """Descriptors outside the supported subset exit with 3."""
        (recipe_dir / "original-arch-pkgbuild" / "PKGBUILD").write_text("pkgver=$(date)\n")
        assert main(["--evaluator", "parser"], base_dir=recipe_dir) == 3
        assert "evaluate stage failed: line 1:" in capsys.readouterr().err

    def test_undefined_function(self, recipe_dir, capsys):
        """A missing lifecycle function exits with 4."""
        (recipe_dir / "original-arch-pkgbuild" / "PKGBUILD").write_text(
            "pkgname=x\nprepare() {\n  :\n}\nbuild() {\n  :\n}\n"
        )
        assert main(["--evaluator", "parser"], base_dir=recipe_dir) == 4
        assert "function 'package' is not defined" in capsys.readouterr().err

    def test_config_error(self, recipe_dir, monkeypatch, capsys):
        """Invalid settings exit with 5."""
        monkeypatch.setenv("PKGBUILD_EVALUATOR", "zsh")
        assert main([], base_dir=recipe_dir) == 5
        assert "config stage failed" in capsys.readouterr().err

    def test_missing_config_file(self, recipe_dir):
        """--config must name an existing file."""
        assert main(["--config", str(recipe_dir / "nope.yaml")], base_dir=recipe_dir) == 5

    def test_sync_upstream(self, recipe_dir, monkeypatch):
        """--sync-upstream refreshes the recipe before the run."""
        upstream = (recipe_dir / "original-arch-pkgbuild" / "PKGBUILD").read_text().replace(
            "pkgrel=1", "pkgrel=2"
        )
        monkeypatch.setattr(UpstreamClient, "fetch_descriptor", lambda self, *args, **kwargs: upstream)
        assert main(["--sync-upstream", "--evaluator", "parser"], base_dir=recipe_dir) == 0
        text = (recipe_dir / "custom-pkgbuild" / "PKGBUILD").read_text(encoding="utf-8")
        assert "pkgrel='2'\n" in text

    def test_sync_upstream_failure(self, recipe_dir, monkeypatch, capsys):
        """Upstream failures exit with 6 before anything is generated."""
        def fail(self, *args, **kwargs):
            raise UpstreamError("fetching https://example.invalid failed")

        monkeypatch.setattr(UpstreamClient, "fetch_descriptor", fail)
        assert main(["--sync-upstream", "--evaluator", "parser"], base_dir=recipe_dir) == 6
        assert "sync stage failed" in capsys.readouterr().err
        assert not (recipe_dir / "custom-pkgbuild").exists()
