from .options import ROOT_FEATURES, cmake_configure_argv
from .stage import (
    cleanup_configure,
    cleanup_install,
    stage_build,
    stage_configure,
    stage_install,
)

__all__ = [
    "ROOT_FEATURES",
    "cmake_configure_argv",
    "stage_configure",
    "stage_build",
    "stage_install",
    "cleanup_configure",
    "cleanup_install",
]
