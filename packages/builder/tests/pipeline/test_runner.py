from __future__ import annotations

import json
from pathlib import Path

import pytest
from root_builder.core import BuildFailed, VersionSpec, get_logger
from root_builder.pipeline import PipelineRunner, RunnerConfig

VERSIONS = VersionSpec.parse("3.11", "6.32.04")


def _runner(stages, *, cleanup: bool = True) -> PipelineRunner:
    return PipelineRunner(
        stages=stages,
        cfg=RunnerConfig(stop_on_failure=True, cleanup_on_failure=cleanup),
        logger=get_logger("test"),
    )


def _recorder(trace: list[str], name: str, *, fail: Exception | None = None):
    def fn(ctx):
        trace.append(f"run:{name}")
        if fail is not None:
            raise fail
        return {"name": name}

    def cleanup(ctx):
        trace.append(f"cleanup:{name}")

    return PipelineRunner.fn(name, fn, cleanup)


def test_stages_run_in_order_and_report(settings, tools) -> None:
    trace: list[str] = []
    outcome = _runner([_recorder(trace, n) for n in ("a", "b", "c")]).run(
        versions=VERSIONS, settings=settings, tools=tools, run_id="r1"
    )

    assert trace == ["run:a", "run:b", "run:c"]
    assert outcome.exit_code == 0
    assert outcome.failure is None
    assert outcome.report_path == Path(settings.run_root) / "r1" / "run_report.json"

    report = json.loads(outcome.report_path.read_text())
    assert report["status"] == "success"
    assert [s["stage"] for s in report["stages"]] == ["a", "b", "c"]
    assert report["meta"]["root_version"] == "6.32.04"
    assert report["provenance"]["run_id"] == "r1"


def test_failure_stops_and_cleans_up_in_reverse(settings, tools) -> None:
    trace: list[str] = []
    boom = BuildFailed("Building ROOT failed", argv=["ninja"], returncode=1)
    stages = [
        _recorder(trace, "a"),
        _recorder(trace, "b"),
        _recorder(trace, "c", fail=boom),
        _recorder(trace, "d"),
    ]
    outcome = _runner(stages).run(versions=VERSIONS, settings=settings, tools=tools)

    assert trace == [
        "run:a",
        "run:b",
        "run:c",
        "cleanup:c",
        "cleanup:b",
        "cleanup:a",
    ]
    assert outcome.exit_code == 1
    assert outcome.failure is boom
    assert outcome.report.failed_stage == "c"
    assert outcome.report.cleaned_up == ["c", "b", "a"]
    assert outcome.report.stages[-1].error.exc_type == "BuildFailed"


def test_cleanup_disabled_leaves_state(settings, tools) -> None:
    trace: list[str] = []
    stages = [_recorder(trace, "a"), _recorder(trace, "b", fail=RuntimeError("x"))]
    outcome = _runner(stages, cleanup=False).run(
        versions=VERSIONS, settings=settings, tools=tools
    )
    assert trace == ["run:a", "run:b"]
    assert outcome.report.cleaned_up == []


def test_cleanup_error_does_not_mask_failure(settings, tools) -> None:
    trace: list[str] = []
    original = RuntimeError("original")

    def failing(ctx):
        raise original

    def bad_cleanup(ctx):
        raise OSError("cleanup broke")

    stages = [_recorder(trace, "a"), PipelineRunner.fn("b", failing, bad_cleanup)]
    outcome = _runner(stages).run(versions=VERSIONS, settings=settings, tools=tools)

    assert outcome.failure is original
    assert trace == ["run:a", "cleanup:a"]
    assert outcome.report.cleaned_up == ["a"]


def test_events_written_for_run(settings, tools) -> None:
    outcome = _runner([_recorder([], "a")]).run(
        versions=VERSIONS, settings=settings, tools=tools, run_id="ev"
    )
    events_path = outcome.report_path.parent / "events.jsonl"
    types = [json.loads(x)["type"] for x in events_path.read_text().splitlines()]
    assert types[0] == "run.env"
    assert "run.start" in types and types[-1] == "run.finish"
    assert "stage.success" in types


def test_duplicate_stage_ids_rejected() -> None:
    with pytest.raises(ValueError, match="Duplicate"):
        _runner([PipelineRunner.fn("a", lambda c: None), PipelineRunner.fn("a", lambda c: None)])
