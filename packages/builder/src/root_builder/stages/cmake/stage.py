from __future__ import annotations

from typing import Any

from root_builder.core import recreate_dir, remove_path
from root_builder.core.errors import (
    BuildFailed,
    ConfigureFailed,
    InstallFailed,
    InternalError,
)
from root_builder.pipeline.context import RunContext
from root_builder.pipeline.events import EventType

from .options import ROOT_FEATURES, cmake_configure_argv


def stage_configure(ctx: RunContext) -> dict[str, Any]:
    if ctx.environment is None:
        raise InternalError("stage_configure requires a resolved build environment")

    layout = ctx.layout
    source_dir = layout.source_dir(ctx.versions.target_version)
    if not source_dir.is_dir():
        raise ConfigureFailed(f"CMake configuration failed: missing source tree {source_dir}")

    build_dir = recreate_dir(layout.build_dir())
    install_dir = layout.install_dir().resolve()

    argv = cmake_configure_argv(
        source_dir=source_dir.resolve(),
        install_dir=install_dir,
        env=ctx.environment,
    )

    enabled = sorted(k for k, v in ROOT_FEATURES.items() if v)
    disabled = sorted(k for k, v in ROOT_FEATURES.items() if not v)
    ctx.emit(
        EventType.CONFIGURE_PLAN,
        stage="configure",
        build_dir=str(build_dir),
        install_dir=str(install_dir),
        enabled=enabled,
        disabled=disabled,
    )

    ctx.tool(
        argv,
        stage="configure",
        error=ConfigureFailed,
        what="Configuring CMake build",
        cwd=build_dir,
    )

    return {
        "build_dir": str(build_dir),
        "install_dir": str(install_dir),
        "features_enabled": enabled,
        "features_disabled": disabled,
    }


def cleanup_configure(ctx: RunContext) -> None:
    remove_path(ctx.layout.build_dir())


def stage_build(ctx: RunContext) -> dict[str, Any]:
    jobs = ctx.settings.effective_jobs()
    ctx.stage_logger("build").info("Building ROOT with Ninja", jobs=jobs)

    ctx.tool(
        ["ninja", f"-j{jobs}"],
        stage="build",
        error=BuildFailed,
        what="Building ROOT",
        cwd=ctx.layout.build_dir(),
        env={"VERBOSE": "1"},
    )
    return {"jobs": jobs, "_metrics": {"jobs": jobs}}


def stage_install(ctx: RunContext) -> dict[str, Any]:
    install_dir = ctx.layout.install_dir()
    if remove_path(install_dir):
        ctx.stage_logger("install").info("Removed stale install tree", path=str(install_dir))

    ctx.tool(
        ["ninja", "install"],
        stage="install",
        error=InstallFailed,
        what="Installing ROOT",
        cwd=ctx.layout.build_dir(),
    )

    if not install_dir.is_dir():
        raise InstallFailed(f"Installation failed: {install_dir} was not created")

    return {"install_dir": str(install_dir)}


def cleanup_install(ctx: RunContext) -> None:
    remove_path(ctx.layout.install_dir())
