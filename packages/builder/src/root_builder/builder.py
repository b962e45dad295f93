from __future__ import annotations

import httpx

from root_builder.core import (
    ILogger,
    Settings,
    SubprocessToolRunner,
    ToolRunner,
    VersionSpec,
    get_logger,
    load_settings,
)
from root_builder.core.errors import InternalError
from root_builder.pipeline import Artifact, PipelineRunner, RunnerConfig, RunOutcome, Stage
from root_builder.pipeline.stage import CleanupFn, StageFn
from root_builder.stages import (
    cleanup_configure,
    cleanup_install,
    cleanup_source,
    cleanup_venv,
    stage_build,
    stage_configure,
    stage_fetch_source,
    stage_install,
    stage_install_deps,
    stage_package,
    stage_resolve_env,
    stage_setup_venv,
)

# Ordered; every stage depends on what the previous ones produced.
BUILD_STAGES: tuple[tuple[str, StageFn, CleanupFn | None], ...] = (
    ("deps", stage_install_deps, None),
    ("venv", stage_setup_venv, cleanup_venv),
    ("resolve", stage_resolve_env, None),
    ("source", stage_fetch_source, cleanup_source),
    ("configure", stage_configure, cleanup_configure),
    ("build", stage_build, None),
    ("install", stage_install, cleanup_install),
    ("package", stage_package, None),
)


def build_stages() -> list[Stage]:
    return [
        PipelineRunner.fn(stage_id=sid, fn=fn, cleanup=cleanup)
        for sid, fn, cleanup in BUILD_STAGES
    ]


def execute(
    runtime_version: str,
    target_version: str,
    *,
    settings: Settings | None = None,
    tools: ToolRunner | None = None,
    logger: ILogger | None = None,
    run_id: str | None = None,
    http_transport: httpx.BaseTransport | None = None,
) -> RunOutcome:
    """
    Validate the versions, then run every build stage in order.

    Raises ValidationError before touching the filesystem, network or any
    process. Stage failures are reported in the returned outcome.
    """
    versions = VersionSpec.parse(runtime_version, target_version)
    s = settings or load_settings()

    runner = PipelineRunner(
        stages=build_stages(),
        cfg=RunnerConfig(stop_on_failure=True, cleanup_on_failure=s.cleanup_on_failure),
        logger=logger or get_logger("root_builder"),
    )
    return runner.run(
        versions=versions,
        settings=s,
        tools=tools or SubprocessToolRunner(),
        run_id=run_id,
        http_transport=http_transport,
        meta={"jobs": s.effective_jobs(), "archive_format": s.archive_format},
    )


def run(
    runtime_version: str,
    target_version: str,
    *,
    settings: Settings | None = None,
    tools: ToolRunner | None = None,
    logger: ILogger | None = None,
    http_transport: httpx.BaseTransport | None = None,
) -> Artifact:
    """
    Build ROOT `target_version` against Python `runtime_version` and return
    the packaged artifact. The failing stage's exception propagates.
    """
    outcome = execute(
        runtime_version,
        target_version,
        settings=settings,
        tools=tools,
        logger=logger,
        http_transport=http_transport,
    )
    if outcome.failure is not None:
        raise outcome.failure
    if outcome.context.artifact is None:
        raise InternalError("Pipeline succeeded without producing an artifact")
    return outcome.context.artifact
