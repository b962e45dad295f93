from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence

import httpx

from root_builder.core import ILogger, sha256_file
from root_builder.core.config import Settings
from root_builder.core.errors import ExternalToolError
from root_builder.core.paths import BuildLayout
from root_builder.core.process import CommandResult, ToolRunner, check_tool
from root_builder.core.versions import VersionSpec

from .events import EventSink, EventType, make_event
from .types import Artifact, ArtifactRef, BuildEnvironment


@dataclass(slots=True)
class RunContext:
    """
    Context shared across stages for a single build run.
    """

    run_id: str
    run_root: Path
    layout: BuildLayout
    versions: VersionSpec
    settings: Settings
    tools: ToolRunner
    logger: ILogger
    events: EventSink

    http_transport: httpx.BaseTransport | None = None

    # filled in by the resolve and package stages
    environment: BuildEnvironment | None = None
    artifact: Artifact | None = None

    # optional free-form metadata
    meta: dict[str, Any] = field(default_factory=dict)

    def stage_logger(self, stage: str) -> ILogger:
        return self.logger.bind(stage=stage)

    def emit(self, event: EventType | str, *, stage: str | None = None, **kw: object) -> None:
        # Keep event chatter at debug level to leave console logs readable.
        event_value = event.value if isinstance(event, EventType) else str(event)
        self.logger.debug(event_value, event_type=event_value, stage=stage, **kw)
        self.events.emit(
            make_event(event_type=event_value, run_id=self.run_id, stage=stage, **kw)
        )

    def tool(
        self,
        argv: Sequence[str],
        *,
        stage: str,
        error: type[ExternalToolError],
        what: str,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        capture: bool = False,
    ) -> CommandResult:
        """
        Run one external tool for `stage`; any non-zero exit raises `error`.
        """
        args = [str(a) for a in argv]
        self.emit(EventType.TOOL_START, stage=stage, argv=args, cwd=str(cwd) if cwd else None)
        self.stage_logger(stage).info(what, command=" ".join(args))

        try:
            res = check_tool(
                self.tools,
                args,
                error=error,
                what=f"{what} failed",
                cwd=cwd,
                env=env,
                capture=capture,
                timeout=self.settings.stage_timeout_s,
            )
        except ExternalToolError as e:
            self.emit(EventType.TOOL_FINISH, stage=stage, argv=args, returncode=e.returncode)
            raise

        self.emit(
            EventType.TOOL_FINISH,
            stage=stage,
            argv=args,
            returncode=res.returncode,
            duration_ms=res.duration_ms,
        )
        return res

    def record_artifact(
        self,
        *,
        stage: str,
        path: Path,
        content_type: str | None = None,
        rel_to: Path | None = None,
    ) -> ArtifactRef:
        p = Path(path)
        digest = sha256_file(p)
        rel = str(p if rel_to is None else p.relative_to(rel_to))
        art = ArtifactRef(
            path=rel, bytes=digest.bytes, sha256=digest.sha256, content_type=content_type
        )
        self.emit(
            EventType.ARTIFACT_WRITTEN,
            stage=stage,
            path=art.path,
            bytes=art.bytes,
            sha256=art.sha256,
            content_type=art.content_type,
        )
        return art
