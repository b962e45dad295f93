from __future__ import annotations

import sys
from pathlib import Path

import pytest
from root_builder.core import BuildFailed, CommandResult, SubprocessToolRunner, check_tool
from root_builder.core.process import EXIT_NOT_EXECUTABLE, EXIT_NOT_FOUND, EXIT_TIMEOUT


def test_subprocess_runner_captures_stdout(tmp_path: Path) -> None:
    res = SubprocessToolRunner().run(
        [sys.executable, "-c", "import os; print(os.getcwd())"],
        cwd=tmp_path,
        capture=True,
    )
    assert res.ok
    assert Path(res.stdout.strip()).resolve() == tmp_path.resolve()
    assert res.duration_ms >= 0


def test_subprocess_runner_overlays_env() -> None:
    res = SubprocessToolRunner().run(
        [sys.executable, "-c", "import os; print(os.environ['VERBOSE'], 'PATH' in os.environ)"],
        env={"VERBOSE": "1"},
        capture=True,
    )
    assert res.stdout.split() == ["1", "True"]


def test_subprocess_runner_reports_nonzero_exit() -> None:
    res = SubprocessToolRunner().run(
        [sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(3)"],
        capture=True,
    )
    assert res.returncode == 3
    assert res.output_tail() == "bad"


def test_missing_executable_maps_to_127() -> None:
    res = SubprocessToolRunner().run(["definitely-not-a-real-tool-xyz"])
    assert res.returncode == EXIT_NOT_FOUND
    assert "definitely-not-a-real-tool-xyz" in res.stderr


def test_timeout_maps_to_124() -> None:
    res = SubprocessToolRunner().run(
        [sys.executable, "-c", "import time; time.sleep(5)"],
        capture=True,
        timeout=0.2,
    )
    assert res.returncode == EXIT_TIMEOUT
    assert "timed out" in res.stderr


class _StubRunner:
    def __init__(self, result: CommandResult) -> None:
        self.result = result

    def run(self, argv, *, cwd=None, env=None, capture=False, timeout=None):
        return self.result


def test_check_tool_raises_stage_error_with_output_tail() -> None:
    runner = _StubRunner(
        CommandResult(argv=("ninja", "-j4"), returncode=1, stderr="error: foo.cxx")
    )
    with pytest.raises(BuildFailed) as ei:
        check_tool(runner, ["ninja", "-j4"], error=BuildFailed, what="Build failed")

    err = ei.value
    assert err.stage == "build"
    assert err.returncode == 1
    assert err.argv == ("ninja", "-j4")
    assert err.output == "error: foo.cxx"
    assert "exit 1" in str(err)


def test_check_tool_returns_result_on_success() -> None:
    runner = _StubRunner(CommandResult(argv=("true",), returncode=0, stdout="ok"))
    res = check_tool(runner, ["true"], error=BuildFailed, what="x")
    assert res.stdout == "ok"


def test_non_executable_file_maps_to_126(tmp_path: Path) -> None:
    tool = tmp_path / "apt-get"
    tool.write_text("#!/bin/sh\nexit 0\n")
    tool.chmod(0o644)

    res = SubprocessToolRunner().run([str(tool), "update"])
    assert res.returncode == EXIT_NOT_EXECUTABLE
    assert str(tool) in res.stderr


def test_non_executable_tool_raises_stage_error(tmp_path: Path) -> None:
    tool = tmp_path / "ninja"
    tool.write_text("#!/bin/sh\n")
    tool.chmod(0o644)

    with pytest.raises(BuildFailed) as ei:
        check_tool(SubprocessToolRunner(), [str(tool)], error=BuildFailed, what="Building ROOT")
    assert ei.value.returncode == EXIT_NOT_EXECUTABLE


def test_missing_working_directory_is_reported_as_such(tmp_path: Path) -> None:
    res = SubprocessToolRunner().run([sys.executable, "-c", "pass"], cwd=tmp_path / "nope")
    assert res.returncode == EXIT_NOT_FOUND
    assert res.stderr == f"working directory not found: {tmp_path / 'nope'}"
