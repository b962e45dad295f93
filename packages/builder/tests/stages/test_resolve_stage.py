from __future__ import annotations

import pytest
from conftest import PYTHON_VERSION
from root_builder.core import EnvironmentQueryError
from root_builder.core.process import CommandResult
from root_builder.stages.resolve import stage_resolve_env


def test_resolve_reads_paths_from_venv_interpreter(make_ctx, tools, layout) -> None:
    ctx = make_ctx()
    stage_resolve_env(ctx)

    env = ctx.environment
    assert env is not None
    assert env.python_executable == str(layout.venv_python())
    assert env.python_library.endswith(f"libpython{PYTHON_VERSION}.so")
    assert env.python_include_dir == f"/usr/include/python{PYTHON_VERSION}"
    assert env.numpy_include_dir.endswith("numpy/core/include")
    assert all(c.argv[0] == str(layout.venv_python()) for c in tools.calls)
    assert all(c.capture for c in tools.calls)


def test_resolve_takes_last_nonempty_line(make_ctx, tools) -> None:
    tools.query_stdout["INCLUDEPY"] = "DeprecationWarning: blah\n/opt/include/python3.11\n\n"
    ctx = make_ctx()
    stage_resolve_env(ctx)
    assert ctx.environment.python_include_dir == "/opt/include/python3.11"


def test_resolve_empty_output_fails(make_ctx, tools) -> None:
    tools.query_stdout["numpy"] = "   \n"
    with pytest.raises(EnvironmentQueryError, match="NumPy include directory"):
        stage_resolve_env(make_ctx())


def test_resolve_nonzero_exit_fails(make_ctx, tools) -> None:
    def broken(argv, **kw):
        return CommandResult(
            argv=tuple(argv), returncode=1, stderr="ModuleNotFoundError: No module named 'numpy'"
        )

    tools.run = broken
    ctx = make_ctx()
    with pytest.raises(EnvironmentQueryError) as ei:
        stage_resolve_env(ctx)
    assert ei.value.stage == "resolve"
    assert ctx.environment is None
