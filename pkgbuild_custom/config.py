"""
Configuration file for the Hyprland PKGBUILD customizer
=================================================================================
PURPOSE: Fixed inputs, outputs and field transformations of the customizer.
         Paths and overrides are constants; only runtime behaviour (debug
         output, evaluator choice, verification) can be changed through
         pkgbuild-custom.yaml, environment variables or CLI flags.

ORGANIZATION:
1. Input and output locations
2. Emitted fields and functions
3. Override set
4. Evaluation
5. Upstream synchronization
"""

# ==============================================================================
# 1. INPUT AND OUTPUT LOCATIONS
# ==============================================================================
# Relative to the working directory the customizer is started from.

ORIGINAL_FOLDER = "original-arch-pkgbuild"
OUTPUT_FOLDER = "custom-pkgbuild"
DESCRIPTOR_NAME = "PKGBUILD"
PATCH_FILE = "remove-ctm-negative-values-check.patch"

# Optional YAML file with runtime settings
CONFIG_FILE = "pkgbuild-custom.yaml"

# Log file, None disables file logging
LOG_FILE = None

# ==============================================================================
# 2. EMITTED FIELDS AND FUNCTIONS
# ==============================================================================
# Written top to bottom in this order. Undefined fields are skipped.

OUTPUT_FIELDS = [
    "pkgname",
    "pkgver",
    "pkgrel",
    "pkgdesc",
    "url",
    "arch",
    "license",
    "groups",
    "makedepends",
    "checkdepends",
    "depends",
    "optdepends",
    "provides",
    "conflicts",
    "replaces",
    "_archive",
    "source",
    "noextract",
    "validpgpkeys",
    "sha224sums",
    "sha256sums",
    "sha384sums",
    "sha512sums",
    "sha1sums",
    "md5sums",
    "cksums",
    "b2sums",
]

PREPARE_FUNCTION = "prepare"
VERBATIM_FUNCTIONS = ["build", "package"]

# ==============================================================================
# 3. OVERRIDE SET
# ==============================================================================
# (name, action, value), applied in order:
#   set      - replace with a constant scalar
#   template - str.format() against the scalars of the evaluated PKGBUILD
#   append   - add to a list field ({patch} is the patch file name)

OVERRIDES = [
    ("pkgname", "set", "hyprland-custom"),
    ("url", "set", "https://github.com/hyprwm/Hyprland"),
    ("_archive", "template", "Hyprland-custom-{pkgver}"),
    ("provides", "append", "hyprland"),
    ("conflicts", "append", "hyprland"),
    ("source", "append", "{patch}"),
    ("sha256sums", "append", "SKIP"),
]

# ==============================================================================
# 4. EVALUATION
# ==============================================================================
# "bash" sources the PKGBUILD, "parser" reads the declarative subset in
# Python, "auto" uses bash when it is installed.

EVALUATOR = "auto"
BASH_TIMEOUT = 60

# Re-evaluate the generated PKGBUILD and compare it with what was written
VERIFY_OUTPUT = True

DEBUG_MODE = False

# ==============================================================================
# 5. UPSTREAM SYNCHRONIZATION
# ==============================================================================
# Used only with --sync-upstream to refresh ORIGINAL_FOLDER/PKGBUILD.

UPSTREAM_BASE_URL = "https://gitlab.archlinux.org/archlinux/packaging/packages"
UPSTREAM_PACKAGE = "hyprland"
UPSTREAM_REF = "main"
UPSTREAM_TIMEOUT = 30
