from .config import Settings, load_settings
from .errors import (
    BuilderError,
    BuildFailed,
    ConfigureFailed,
    DependencyInstallFailed,
    DownloadFailed,
    EnvironmentQueryError,
    EnvironmentSetupFailed,
    ExternalToolError,
    ExtractFailed,
    InstallFailed,
    PackageFailed,
    ReleaseError,
    StageError,
    StageFailure,
    ValidationError,
)
from .fs import (
    atomic_replace,
    atomic_write_text,
    human_size,
    make_tmp_path_for,
    recreate_dir,
    remove_path,
    safe_unlink,
)
from .hashing import FileDigest, sha256_file
from .json import atomic_write_json
from .logging import ILogger, bind, clear_bindings, configure_logging, get_logger
from .paths import BuildLayout
from .process import CommandResult, SubprocessToolRunner, ToolRunner, check_tool
from .provenance import RunProvenance, new_run_id
from .time import monotonic_ms, utc_now_iso
from .versions import VersionSpec

__all__ = [
    "Settings",
    "load_settings",
    "BuilderError",
    "BuildFailed",
    "ConfigureFailed",
    "DependencyInstallFailed",
    "DownloadFailed",
    "EnvironmentQueryError",
    "EnvironmentSetupFailed",
    "ExternalToolError",
    "ExtractFailed",
    "InstallFailed",
    "PackageFailed",
    "ReleaseError",
    "StageError",
    "StageFailure",
    "ValidationError",
    "atomic_replace",
    "atomic_write_text",
    "human_size",
    "make_tmp_path_for",
    "recreate_dir",
    "remove_path",
    "safe_unlink",
    "FileDigest",
    "sha256_file",
    "atomic_write_json",
    "ILogger",
    "bind",
    "clear_bindings",
    "configure_logging",
    "get_logger",
    "BuildLayout",
    "CommandResult",
    "SubprocessToolRunner",
    "ToolRunner",
    "check_tool",
    "RunProvenance",
    "new_run_id",
    "monotonic_ms",
    "utc_now_iso",
    "VersionSpec",
]
