from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

import httpx

from root_builder.core import (
    ILogger,
    configure_logging,
    get_logger,
    monotonic_ms,
    new_run_id,
)
from root_builder.core.provenance import RunProvenance
from root_builder.core.config import Settings
from root_builder.core.paths import BuildLayout
from root_builder.core.process import ToolRunner
from root_builder.core.versions import VersionSpec

from .context import RunContext
from .events import EventSink, EventType, make_event, utc_now_iso
from .report import RunReport, build_run_report
from .stage import (
    CleanupFn,
    FunctionStage,
    Stage,
    StageFn,
    StageResult,
    format_duration_ms,
    run_stage,
)


@dataclass(slots=True)
class RunnerConfig:
    stop_on_failure: bool = True
    cleanup_on_failure: bool = False


@dataclass(slots=True)
class RunOutcome:
    exit_code: int
    report_path: Path
    report: RunReport
    context: RunContext
    failure: BaseException | None = None


def default_logger() -> ILogger:
    """
    Provide a structlog BoundLogger that satisfies ILogger.
    """
    configure_logging()
    return get_logger("pipeline")


class PipelineRunner:
    def __init__(
        self,
        *,
        stages: Sequence[Stage],
        cfg: RunnerConfig | None = None,
        logger: ILogger | None = None,
    ) -> None:
        self.stages = list(stages)
        self.cfg = cfg or RunnerConfig()
        self.logger: ILogger = logger or default_logger()

        ids = [s.stage_id for s in self.stages]
        if len(ids) != len(set(ids)):
            dupes = sorted({x for x in ids if ids.count(x) > 1})
            raise ValueError(f"Duplicate stage_id(s): {dupes}")

    @staticmethod
    def fn(stage_id: str, fn: StageFn, cleanup: CleanupFn | None = None) -> Stage:
        return FunctionStage(stage_id=stage_id, fn=fn, cleanup_fn=cleanup)

    def _cleanup(self, ctx: RunContext, executed: list[Stage]) -> list[str]:
        """
        Call cleanup hooks of executed stages in reverse order.

        Hook errors are logged; they never replace the original failure.
        """
        cleaned: list[str] = []
        for st in reversed(executed):
            log = ctx.stage_logger(st.stage_id)
            try:
                st.cleanup(ctx)
            except Exception as e:
                log.warning("Cleanup failed", error=str(e))
                ctx.emit(EventType.STAGE_CLEANUP, stage=st.stage_id, ok=False, error=str(e))
                continue
            ctx.emit(EventType.STAGE_CLEANUP, stage=st.stage_id, ok=True)
            cleaned.append(st.stage_id)
        if cleaned:
            self.logger.info("Cleaned up after failure", stages=cleaned)
        return cleaned

    def run(
        self,
        *,
        versions: VersionSpec,
        settings: Settings,
        tools: ToolRunner,
        run_id: str | None = None,
        http_transport: httpx.BaseTransport | None = None,
        meta: dict[str, Any] | None = None,
    ) -> RunOutcome:
        """
        Execute the pipeline and write:
          - events.jsonl
          - run_report.json
        """
        meta = {**versions.to_dict(), **(meta or {})}
        rid = run_id or new_run_id()
        run_root = Path(settings.run_root) / rid
        run_root.mkdir(parents=True, exist_ok=True)

        events_path = run_root / "events.jsonl"
        sink = EventSink(events_path)

        layout = BuildLayout(root=Path(settings.work_dir))
        ctx = RunContext(
            run_id=rid,
            run_root=run_root,
            layout=layout,
            versions=versions,
            settings=settings,
            tools=tools,
            logger=self.logger,
            events=sink,
            http_transport=http_transport,
            meta=meta,
        )

        started_at = utc_now_iso()
        t0 = monotonic_ms()
        provenance = RunProvenance(run_id=rid, started_at_utc=started_at)

        self.logger.info(
            "Pipeline starting",
            run_id=rid,
            stages=[s.stage_id for s in self.stages],
            work_dir=str(layout.root),
            run_root=str(run_root),
        )
        ctx.events.emit(
            make_event(
                event_type=EventType.RUN_START,
                run_id=rid,
                stage=None,
                provenance=provenance.to_dict(),
                **meta,
            )
        )

        results: list[StageResult] = []
        executed: list[Stage] = []
        failure: BaseException | None = None

        total = len(self.stages)
        for idx, st in enumerate(self.stages, start=1):
            executed.append(st)
            sr = run_stage(ctx=ctx, stage=st, index=idx, total=total)
            results.append(sr.result)

            if sr.exc is not None:
                failure = failure or sr.exc
                if self.cfg.stop_on_failure:
                    self.logger.error("Stopping on first failure", stage=st.stage_id)
                    break

        cleaned: list[str] = []
        if failure is not None and self.cfg.cleanup_on_failure:
            cleaned = self._cleanup(ctx, executed)

        finished_at = utc_now_iso()
        duration = monotonic_ms() - t0

        report = build_run_report(
            run_id=rid,
            started_at_utc=started_at,
            finished_at_utc=finished_at,
            duration_ms=duration,
            stage_results=results,
            cleaned_up=cleaned,
            events_jsonl=str(events_path),
            provenance=provenance.to_dict(),
            meta=meta,
        )

        report_json = run_root / "run_report.json"
        report.write_json(report_json)

        ctx.events.emit(
            make_event(
                event_type=EventType.RUN_FINISH,
                run_id=rid,
                stage=None,
                status=report.status,
                duration_ms=duration,
                report_json=str(report_json),
            )
        )
        sink.close()

        self.logger.info(
            "Run complete",
            duration_ms=duration,
            duration=format_duration_ms(duration),
            report=str(report_json),
            events=str(events_path),
            status=report.status,
        )

        exit_code = 0 if report.status == "success" else 1
        return RunOutcome(
            exit_code=exit_code,
            report_path=report_json,
            report=report,
            context=ctx,
            failure=failure,
        )
