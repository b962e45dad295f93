from __future__ import annotations

from typing import Any

from root_builder.core.errors import EnvironmentQueryError
from root_builder.pipeline.context import RunContext
from root_builder.pipeline.events import EventType
from root_builder.pipeline.types import BuildEnvironment

from .queries import ENV_QUERIES, EnvQuery


def _query(ctx: RunContext, q: EnvQuery) -> str:
    python = str(ctx.layout.venv_python())
    res = ctx.tools.run(
        [python, "-c", q.code],
        capture=True,
        timeout=ctx.settings.stage_timeout_s,
    )
    if res.returncode != 0:
        detail = res.output_tail(500) or "no output"
        raise EnvironmentQueryError(
            f"Failed to get {q.label} (exit {res.returncode}): {detail}"
        )

    lines = [ln.strip() for ln in res.stdout.splitlines() if ln.strip()]
    if not lines:
        raise EnvironmentQueryError(f"Failed to get {q.label}: empty output")
    # last line wins; interpreters may print warnings first
    return lines[-1]


def stage_resolve_env(ctx: RunContext) -> dict[str, Any]:
    values = {q.name: _query(ctx, q) for q in ENV_QUERIES}
    env = BuildEnvironment(**values)
    ctx.environment = env

    ctx.emit(EventType.ENV_RESOLVED, stage="resolve", **env.to_dict())
    ctx.stage_logger("resolve").info("Python environment resolved", **env.to_dict())

    return env.to_dict()
