"""
Error types for the PKGBUILD customizer

Every error names the stage it aborted and the process exit code it maps to.
"""


class PkgbuildCustomError(Exception):
    """Base class for all failures of a customization run"""

    stage = "run"
    exit_code = 1

    def __init__(self, message, stage=None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class MissingInputError(PkgbuildCustomError):
    """Source directory, source PKGBUILD or patch file is absent"""

    stage = "stage"
    exit_code = 2


class EvaluationError(PkgbuildCustomError):
    """The descriptor could not be evaluated"""

    stage = "evaluate"
    exit_code = 3

    def __init__(self, message, stage=None, line=None):
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message, stage)
        self.line = line


class NotFoundError(PkgbuildCustomError):
    """A named item does not exist in the evaluated environment"""

    stage = "rewrite"
    exit_code = 4


class UndefinedFunctionError(NotFoundError):
    """A lifecycle function (prepare, build, package) is missing"""

    def __init__(self, name, stage=None):
        super().__init__(f"function '{name}' is not defined by the descriptor", stage)
        self.name = name


class StageError(PkgbuildCustomError):
    """Filesystem failure while staging or emitting"""


class VerificationError(PkgbuildCustomError):
    """The emitted descriptor does not evaluate back to what was written"""

    stage = "verify"


class ConfigError(PkgbuildCustomError):
    """Invalid configuration file or setting"""

    stage = "config"
    exit_code = 5


class UpstreamError(PkgbuildCustomError):
    """Fetching the upstream PKGBUILD failed"""

    stage = "sync"
    exit_code = 6
