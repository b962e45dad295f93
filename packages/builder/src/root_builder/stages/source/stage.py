from __future__ import annotations

import tarfile
from pathlib import Path
from typing import Any

import httpx

from root_builder.core import remove_path, safe_unlink
from root_builder.core.errors import DownloadFailed, ExtractFailed
from root_builder.core.http import (
    HttpFetchError,
    make_http_client,
    stream_get_to_file_with_retries,
)
from root_builder.pipeline.context import RunContext
from root_builder.pipeline.events import EventType


def source_url(template: str, version: str) -> str:
    return template.format(version=version)


def download_source(ctx: RunContext) -> Path:
    version = ctx.versions.target_version
    tarball = ctx.layout.source_tarball(version)
    url = source_url(ctx.settings.source_url_template, version)
    log = ctx.stage_logger("source")

    safe_unlink(tarball)
    ctx.layout.root.mkdir(parents=True, exist_ok=True)

    log.info("Downloading ROOT source", version=version, url=url)
    client: httpx.Client | None = None
    try:
        client = make_http_client(transport=ctx.http_transport)
        res = stream_get_to_file_with_retries(
            client,
            url=url,
            dest_path=tarball,
            max_attempts=ctx.settings.download_attempts,
        )
    except (HttpFetchError, httpx.HTTPError, OSError) as e:
        raise DownloadFailed(f"Failed to download ROOT source from {url}: {e}") from e
    finally:
        if client is not None:
            client.close()

    if res.bytes_written == 0:
        safe_unlink(tarball)
        raise DownloadFailed(f"Failed to download ROOT source from {url}: empty body")

    ctx.emit(
        EventType.SOURCE_DOWNLOADED,
        stage="source",
        url=res.final_url,
        path=str(tarball),
        bytes=res.bytes_written,
    )
    return tarball


def extract_source(ctx: RunContext, tarball: Path) -> Path:
    version = ctx.versions.target_version
    source_dir = ctx.layout.source_dir(version)
    log = ctx.stage_logger("source")

    if remove_path(source_dir):
        log.info("Removed stale source tree", path=str(source_dir))

    log.info("Extracting ROOT source", tarball=str(tarball))
    try:
        with tarfile.open(tarball, mode="r:*") as tar:
            tar.extractall(path=ctx.layout.root, filter="data")
    except (tarfile.TarError, OSError) as e:
        raise ExtractFailed(f"Failed to extract ROOT source {tarball}: {e}") from e

    if not source_dir.is_dir():
        raise ExtractFailed(
            f"Failed to extract ROOT source: {tarball} did not contain {source_dir.name}/"
        )

    ctx.emit(EventType.SOURCE_EXTRACTED, stage="source", path=str(source_dir))
    return source_dir


def stage_fetch_source(ctx: RunContext) -> dict[str, Any]:
    tarball = download_source(ctx)
    source_dir = extract_source(ctx, tarball)

    art = ctx.record_artifact(
        stage="source",
        path=tarball,
        content_type="application/gzip",
        rel_to=ctx.layout.root,
    )

    return {
        "tarball": str(tarball),
        "source_dir": str(source_dir),
        "_artifacts": [art],
        "_metrics": {"tarball_bytes": art.bytes},
    }


def cleanup_source(ctx: RunContext) -> None:
    version = ctx.versions.target_version
    safe_unlink(ctx.layout.source_tarball(version))
    remove_path(ctx.layout.source_dir(version))
