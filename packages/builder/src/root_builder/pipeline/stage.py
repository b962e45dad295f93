from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol

from root_builder.core import monotonic_ms, utc_now_iso
from root_builder.core.errors import StageError, stage_error_from_exc

from .context import RunContext
from .events import EventType
from .types import ArtifactRef


def format_duration_ms(ms: int) -> str:
    """Return a short human-readable duration string."""
    if ms < 1000:
        return f"{ms} ms"
    if ms < 60_000:
        return f"{ms / 1000:.2f} s"
    minutes, rem = divmod(ms // 1000, 60)
    return f"{minutes}m{rem:02d}s"


StageFn = Callable[[RunContext], dict[str, Any] | None]
CleanupFn = Callable[[RunContext], None]


@dataclass(slots=True)
class FunctionStage:
    """
    Adapter that turns a plain function (and optional cleanup hook) into a Stage.
    """

    stage_id: str
    fn: StageFn
    cleanup_fn: CleanupFn | None = None

    def run(self, ctx: RunContext) -> dict[str, Any] | None:
        return self.fn(ctx)

    def cleanup(self, ctx: RunContext) -> None:
        if self.cleanup_fn is not None:
            self.cleanup_fn(ctx)


@dataclass(slots=True)
class StageResult:
    stage: str
    status: str  # "success" | "failed"
    started_at_utc: str
    finished_at_utc: str
    duration_ms: int

    outputs: dict[str, Any] = field(default_factory=dict)
    metrics: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    artifacts: list[ArtifactRef] = field(default_factory=list)
    error: Optional[StageError] = None


class Stage(Protocol):
    stage_id: str

    def run(self, ctx: RunContext) -> dict[str, Any] | None: ...

    def cleanup(self, ctx: RunContext) -> None: ...


@dataclass(slots=True)
class StageRun:
    """A StageResult plus the exception that failed it, if any."""

    result: StageResult
    exc: BaseException | None = None


def run_stage(
    *,
    ctx: RunContext,
    stage: Stage,
    index: int | None = None,
    total: int | None = None,
) -> StageRun:
    stage_id = stage.stage_id
    log = ctx.stage_logger(stage_id)

    t0 = monotonic_ms()
    started_at = utc_now_iso()
    position = f"{index}/{total}" if index is not None and total is not None else None

    ctx.emit(EventType.STAGE_START, stage=stage_id)
    log.info("Stage starting", position=position, started_at=started_at)

    warnings: list[str] = []
    artifacts: list[ArtifactRef] = []
    metrics: dict[str, Any] = {}

    try:
        out = stage.run(ctx) or {}
        if not isinstance(out, dict):
            raise TypeError(
                f"Stage {stage_id} returned {type(out).__name__}, expected dict or None"
            )

        if "_warnings" in out:
            w = out.pop("_warnings")
            if isinstance(w, list):
                warnings.extend(str(x) for x in w)

        if "_metrics" in out:
            m = out.pop("_metrics")
            if isinstance(m, dict):
                metrics.update(m)

        if "_artifacts" in out:
            a = out.pop("_artifacts")
            if isinstance(a, list):
                artifacts.extend(a)

        for w in warnings:
            ctx.emit(EventType.STAGE_WARN, stage=stage_id, message=w)
            log.warning(w)

        if metrics:
            ctx.emit(EventType.STAGE_METRICS, stage=stage_id, metrics=metrics)

        finished_at = utc_now_iso()
        duration = monotonic_ms() - t0

        ctx.emit(EventType.STAGE_SUCCESS, stage=stage_id, duration_ms=duration)
        log_fields: dict[str, object] = {
            "status": "success",
            "position": position,
            "duration_ms": duration,
            "duration": format_duration_ms(duration),
            "warnings": len(warnings),
            "outputs": sorted(out.keys()) if out else [],
        }
        if artifacts:
            log_fields["artifacts"] = len(artifacts)

        log.info("Stage succeeded", **log_fields)

        return StageRun(
            result=StageResult(
                stage=stage_id,
                status="success",
                started_at_utc=started_at,
                finished_at_utc=finished_at,
                duration_ms=duration,
                outputs=out,
                metrics=metrics,
                warnings=warnings,
                artifacts=artifacts,
            )
        )

    except Exception as e:
        error = stage_error_from_exc(e)
        finished_at = utc_now_iso()
        duration = monotonic_ms() - t0

        ctx.emit(
            EventType.STAGE_FAILED,
            stage=stage_id,
            duration_ms=duration,
            exc_type=type(e).__name__,
            message=str(e),
        )
        log_fields = {
            "status": "failed",
            "position": position,
            "duration_ms": duration,
            "duration": format_duration_ms(duration),
            "error": str(e),
        }
        output = getattr(e, "output", None)
        if output:
            log_fields["tool_output"] = output

        log.error("Stage failed", **log_fields)
        log.debug("Stage exception", exc_info=e)

        return StageRun(
            result=StageResult(
                stage=stage_id,
                status="failed",
                started_at_utc=started_at,
                finished_at_utc=finished_at,
                duration_ms=duration,
                outputs={},
                metrics=metrics,
                warnings=warnings,
                artifacts=artifacts,
                error=error,
            ),
            exc=e,
        )
