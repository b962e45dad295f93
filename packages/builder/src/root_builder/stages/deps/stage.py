from __future__ import annotations

from typing import Any

from root_builder.core.errors import DependencyInstallFailed
from root_builder.pipeline.context import RunContext
from root_builder.pipeline.events import EventType

from .packages import APT_REPOSITORIES, apt_packages

_APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


def _privileged(ctx: RunContext, argv: list[str]) -> list[str]:
    if not ctx.settings.use_sudo:
        return argv
    return ["sudo", "--preserve-env=DEBIAN_FRONTEND", *argv]


def stage_install_deps(ctx: RunContext) -> dict[str, Any]:
    py = ctx.versions.runtime_version
    packages = list(apt_packages(py))

    ctx.emit(
        EventType.DEPS_PLAN,
        stage="deps",
        repositories=list(APT_REPOSITORIES),
        packages=packages,
        sudo=ctx.settings.use_sudo,
    )

    for repo in APT_REPOSITORIES:
        ctx.tool(
            _privileged(ctx, ["add-apt-repository", "-y", repo]),
            stage="deps",
            error=DependencyInstallFailed,
            what=f"Adding package repository {repo}",
            env=_APT_ENV,
        )

    ctx.tool(
        _privileged(ctx, ["apt-get", "update"]),
        stage="deps",
        error=DependencyInstallFailed,
        what="Updating package lists",
        env=_APT_ENV,
    )

    ctx.tool(
        _privileged(ctx, ["apt-get", "install", "-y", *packages]),
        stage="deps",
        error=DependencyInstallFailed,
        what="Installing required dependencies",
        env=_APT_ENV,
    )

    return {
        "repositories": list(APT_REPOSITORIES),
        "packages": packages,
        "_metrics": {"packages": len(packages)},
    }
