from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

from root_builder.core.json import atomic_write_json

from .stage import StageResult


@dataclass(slots=True)
class RunReport:
    run_id: str
    started_at_utc: str
    finished_at_utc: str
    status: str  # "success" | "failed"
    duration_ms: int

    stages: list[StageResult] = field(default_factory=list)
    failed_stage: Optional[str] = None
    cleaned_up: list[str] = field(default_factory=list)
    events_jsonl: Optional[str] = None
    provenance: dict[str, Any] = field(default_factory=dict)
    meta: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def write_json(self, path: Path) -> None:
        atomic_write_json(Path(path), self.to_dict())


def build_run_report(
    *,
    run_id: str,
    started_at_utc: str,
    finished_at_utc: str,
    duration_ms: int,
    stage_results: list[StageResult],
    cleaned_up: list[str] | None = None,
    events_jsonl: str | None,
    provenance: dict[str, Any] | None = None,
    meta: dict[str, Any] | None = None,
) -> RunReport:
    failed = next((s.stage for s in stage_results if s.status == "failed"), None)
    return RunReport(
        run_id=run_id,
        started_at_utc=started_at_utc,
        finished_at_utc=finished_at_utc,
        status="failed" if failed else "success",
        duration_ms=duration_ms,
        stages=stage_results,
        failed_stage=failed,
        cleaned_up=list(cleaned_up or []),
        events_jsonl=events_jsonl,
        provenance=provenance or {},
        meta=meta or {},
    )
