from __future__ import annotations

from typing import Any

from root_builder.core import human_size
from root_builder.core.errors import PackageFailed
from root_builder.pipeline.context import RunContext
from root_builder.pipeline.events import EventType
from root_builder.pipeline.types import Artifact

from .archive import write_archive
from .naming import ArtifactNaming


def stage_package(ctx: RunContext) -> dict[str, Any]:
    layout = ctx.layout
    install_dir = layout.install_dir()
    naming = ArtifactNaming.from_settings(ctx.settings)
    dest = layout.artifact(naming.filename(ctx.versions))
    log = ctx.stage_logger("package")

    if not install_dir.is_dir() or not any(install_dir.iterdir()):
        raise PackageFailed(f"Failed to package ROOT: {install_dir} is missing or empty")

    log.info(
        "Packaging ROOT installation",
        archive_format=naming.archive_format,
        artifact=str(dest),
    )
    try:
        files = write_archive(install_dir, dest, archive_format=naming.archive_format)
    except (OSError, ValueError) as e:
        raise PackageFailed(f"Failed to package ROOT into {dest}: {e}") from e

    ref = ctx.record_artifact(
        stage="package",
        path=dest,
        content_type=naming.content_type,
        rel_to=layout.root,
    )
    artifact = Artifact(
        path=dest, bytes=ref.bytes, sha256=ref.sha256, versions=ctx.versions
    )
    ctx.artifact = artifact

    ctx.emit(
        EventType.PACKAGE_FINISH,
        stage="package",
        artifact=str(dest),
        files=files,
        bytes=artifact.bytes,
    )
    log.info(
        "Final package size",
        artifact=str(dest),
        size=human_size(artifact.bytes),
        sha256=artifact.sha256,
    )

    return {
        "artifact": artifact.to_dict(),
        "_artifacts": [ref],
        "_metrics": {"files": files, "bytes": artifact.bytes},
    }
