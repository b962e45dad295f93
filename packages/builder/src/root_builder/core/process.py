from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Protocol, Sequence

import structlog

from .errors import ExternalToolError
from .time import monotonic_ms

log = structlog.get_logger(__name__)

EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127
EXIT_TIMEOUT = 124

_OUTPUT_TAIL_CHARS = 4000


@dataclass(frozen=True, slots=True)
class CommandResult:
    argv: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def output_tail(self, limit: int = _OUTPUT_TAIL_CHARS) -> str | None:
        text = "\n".join(x for x in (self.stdout, self.stderr) if x).strip()
        if not text:
            return None
        return text[-limit:]


class ToolRunner(Protocol):
    """
    Runs one external process to completion.

    Implementations never raise on a non-zero exit; they report it in the
    returned CommandResult and leave the policy to `check_tool`.
    """

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        capture: bool = False,
        timeout: float | None = None,
    ) -> CommandResult: ...


class SubprocessToolRunner:
    """
    ToolRunner backed by subprocess.run.

    Uncaptured commands inherit stdout/stderr so long build output streams
    straight to the console.
    """

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        capture: bool = False,
        timeout: float | None = None,
    ) -> CommandResult:
        args = tuple(str(a) for a in argv)
        full_env = {**os.environ, **env} if env else None
        t0 = monotonic_ms()

        if cwd is not None and not Path(cwd).is_dir():
            return CommandResult(
                argv=args,
                returncode=EXIT_NOT_FOUND,
                stderr=f"working directory not found: {cwd}",
            )

        try:
            proc = subprocess.run(
                args,
                cwd=str(cwd) if cwd is not None else None,
                env=full_env,
                capture_output=capture,
                text=True,
                timeout=timeout,
                check=False,
            )
        except FileNotFoundError as e:
            return CommandResult(
                argv=args,
                returncode=EXIT_NOT_FOUND,
                stderr=f"command not found: {e.filename or args[0]}",
                duration_ms=monotonic_ms() - t0,
            )
        except OSError as e:
            # not executable, bad interpreter line, path component not a dir
            return CommandResult(
                argv=args,
                returncode=EXIT_NOT_EXECUTABLE,
                stderr=f"cannot execute {args[0]}: {e.strerror or e}",
                duration_ms=monotonic_ms() - t0,
            )
        except subprocess.TimeoutExpired as e:
            return CommandResult(
                argv=args,
                returncode=EXIT_TIMEOUT,
                stdout=_text(e.stdout),
                stderr=_text(e.stderr) + f"\ntimed out after {timeout}s",
                duration_ms=monotonic_ms() - t0,
            )

        return CommandResult(
            argv=args,
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
            duration_ms=monotonic_ms() - t0,
        )


def _text(v: str | bytes | None) -> str:
    if v is None:
        return ""
    if isinstance(v, bytes):
        return v.decode("utf-8", errors="replace")
    return v


def check_tool(
    runner: ToolRunner,
    argv: Sequence[str],
    *,
    error: type[ExternalToolError],
    what: str,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    capture: bool = False,
    timeout: float | None = None,
) -> CommandResult:
    """
    Run `argv` and raise `error` on any non-zero exit.
    """
    args = [str(a) for a in argv]
    log.debug("tool.run", argv=args, cwd=str(cwd) if cwd else None)

    res = runner.run(args, cwd=cwd, env=env, capture=capture, timeout=timeout)
    if res.returncode != 0:
        raise error(
            what,
            argv=res.argv or tuple(args),
            returncode=res.returncode,
            output=res.output_tail(),
        )
    return res
