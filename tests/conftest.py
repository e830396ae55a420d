"""Shared fixtures: a realistic hyprland recipe and evaluator selection."""

import shutil

import pytest

from pkgbuild_custom.descriptor import create_evaluator

HYPRLAND_PKGBUILD = r"""# Maintainer: Jane Packager <jane@example.org>
# Contributor: John Packager <john@example.org>

pkgname=hyprland
pkgver=0.41.2
pkgrel=1
pkgdesc='a highly customizable dynamic tiling Wayland compositor'
arch=(x86_64 aarch64)
url="https://hypr.land"
license=(BSD-3-Clause)
depends=(
  cairo
  # graphics stack
  libdrm
  'mesa>=24'
)
makedepends=(cmake git meson ninja)
_archive="${pkgname^}-$pkgver"
source=("$_archive.tar.gz::https://github.com/hyprwm/${pkgname^}/releases/download/v$pkgver/source-v$pkgver.tar.gz")
sha256sums=('b1c9a0bd2c4e8e2a9e6d1f6a3c0b2d4e5f60718293a4b5c6d7e8f90a1b2c3d4e')

prepare() {
  cd "$_archive"
  sed -i 's/-Werror//' CMakeLists.txt
}

build() {
  cmake -S "$_archive" -B build \
    -DCMAKE_BUILD_TYPE=None
  cmake --build build
}

package() {
  DESTDIR="$pkgdir" cmake --install build
  install -Dm644 "$_archive/LICENSE" -t "$pkgdir/usr/share/licenses/$pkgname"
}
"""

PATCH_NAME = "remove-ctm-negative-values-check.patch"

PATCH_TEXT = """--- a/src/render/Renderer.cpp
+++ b/src/render/Renderer.cpp
@@ -1,3 +1,2 @@
-    if (value < 0)
-        return;
+    // negative CTM values are valid
"""


def bash_available():
    return shutil.which("bash") is not None


@pytest.fixture
def hyprland_pkgbuild():
    """Upstream-style hyprland PKGBUILD text."""
    return HYPRLAND_PKGBUILD


@pytest.fixture
def recipe_dir(tmp_path, hyprland_pkgbuild):
    """Working directory with original-arch-pkgbuild/ and the patch file."""
    source = tmp_path / "original-arch-pkgbuild"
    (source / "keys" / "pgp").mkdir(parents=True)
    (source / "PKGBUILD").write_text(hyprland_pkgbuild, encoding="utf-8")
    (source / "hyprland.install").write_text("post_install() {\n  :\n}\n", encoding="utf-8")
    (source / "keys" / "pgp" / "0123456789ABCDEF.asc").write_text("-----BEGIN PGP PUBLIC KEY BLOCK-----\n")
    (tmp_path / PATCH_NAME).write_text(PATCH_TEXT, encoding="utf-8")
    return tmp_path


@pytest.fixture(params=["parser", "bash"])
def evaluator(request):
    """Each evaluator in turn; bash is skipped where it is not installed."""
    if request.param == "bash" and not bash_available():
        pytest.skip("bash is not installed")
    return create_evaluator(request.param)
