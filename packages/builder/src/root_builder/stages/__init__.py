from .cmake import (
    cleanup_configure,
    cleanup_install,
    stage_build,
    stage_configure,
    stage_install,
)
from .deps import stage_install_deps
from .package import stage_package
from .resolve import stage_resolve_env
from .source import cleanup_source, stage_fetch_source
from .venv import cleanup_venv, stage_setup_venv

__all__ = [
    "stage_install_deps",
    "stage_setup_venv",
    "stage_resolve_env",
    "stage_fetch_source",
    "stage_configure",
    "stage_build",
    "stage_install",
    "stage_package",
    "cleanup_venv",
    "cleanup_source",
    "cleanup_configure",
    "cleanup_install",
]
