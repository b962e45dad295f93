from __future__ import annotations

import traceback
from dataclasses import dataclass
from typing import Sequence


class BuilderError(RuntimeError):
    """Base error"""


@dataclass(frozen=True, slots=True)
class StageError:
    """
    A normalized error record for stage failures.
    """

    exc_type: str
    message: str
    traceback: str


def stage_error_from_exc(exc: BaseException) -> StageError:
    return StageError(
        exc_type=type(exc).__name__,
        message=str(exc),
        traceback=traceback.format_exc(),
    )


class ValidationError(BuilderError):
    """
    Input parameters have the wrong shape. Raised before any side effect.
    """


class InternalError(BuilderError):
    """Bugs or invariant violation in our code"""


class StageFailure(BuilderError):
    """
    Terminal failure of one pipeline stage. `stage` names the stage id.
    """

    stage: str = "unknown"


class ExternalToolError(StageFailure):
    """
    An external process exited non-zero.
    """

    def __init__(
        self,
        message: str,
        *,
        argv: Sequence[str] = (),
        returncode: int | None = None,
        output: str | None = None,
    ) -> None:
        msg = message
        if returncode is not None:
            msg += f" (exit {returncode})"
        if argv:
            msg += f": {' '.join(argv)}"
        super().__init__(msg)
        self.argv = tuple(argv)
        self.returncode = returncode
        self.output = output


class DependencyInstallFailed(ExternalToolError):
    stage = "deps"


class EnvironmentSetupFailed(ExternalToolError):
    stage = "venv"


class DownloadFailed(ExternalToolError):
    stage = "source"


class ExtractFailed(ExternalToolError):
    stage = "source"


class ConfigureFailed(ExternalToolError):
    stage = "configure"


class BuildFailed(ExternalToolError):
    stage = "build"


class InstallFailed(ExternalToolError):
    stage = "install"


class PackageFailed(ExternalToolError):
    stage = "package"


class EnvironmentQueryError(StageFailure):
    """
    A value could not be read back from the freshly created virtual environment.
    """

    stage = "resolve"


class ReleaseError(BuilderError):
    """Release publishing failure"""
