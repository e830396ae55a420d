"""
Hyprland PKGBUILD customizer

Derives the hyprland-custom PKGBUILD from the upstream Arch recipe: a few
metadata fields are overridden, a patch is added to the sources and applied
at the end of prepare().
"""

__version__ = "0.1.0"
