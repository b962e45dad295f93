from __future__ import annotations

import io
import tarfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Sequence

import httpx
import pytest
from root_builder.core import CommandResult, Settings, VersionSpec, get_logger
from root_builder.core.paths import BuildLayout
from root_builder.pipeline import EventSink, RunContext

ROOT_VERSION = "6.32.04"
PYTHON_VERSION = "3.11"


@dataclass(frozen=True)
class Call:
    argv: tuple[str, ...]
    cwd: Path | None
    env: dict[str, str]
    capture: bool

    @property
    def line(self) -> str:
        return " ".join(self.argv)


@dataclass
class FakeToolRunner:
    """
    Records every command and imitates the side effects later stages rely on:
    `-m venv` creates the interpreter, `ninja install` populates the install
    tree, and `python -c` queries answer with plausible paths.
    """

    layout: BuildLayout
    fail: dict[str, int] = field(default_factory=dict)
    query_stdout: dict[str, str] = field(default_factory=dict)
    calls: list[Call] = field(default_factory=list)

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
        call = Call(argv=args, cwd=cwd, env=dict(env or {}), capture=capture)
        self.calls.append(call)

        for needle, code in self.fail.items():
            if needle in call.line:
                return CommandResult(argv=args, returncode=code, stderr=f"{needle}: boom")

        if "-m venv" in call.line:
            py = Path(args[-1]) / "bin" / "python"
            py.parent.mkdir(parents=True, exist_ok=True)
            py.write_text("#!/bin/sh\n")

        if args[:2] == ("ninja", "install"):
            install = self.layout.install_dir()
            (install / "bin").mkdir(parents=True, exist_ok=True)
            (install / "lib").mkdir(parents=True, exist_ok=True)
            (install / "bin" / "root").write_text("#!/bin/sh\necho root\n")
            (install / "lib" / "libCore.so").write_bytes(b"\x7fELF" + b"\x00" * 64)

        if len(args) >= 3 and args[1] == "-c":
            return CommandResult(argv=args, returncode=0, stdout=self._answer(args[2]))

        return CommandResult(argv=args, returncode=0)

    def _answer(self, code: str) -> str:
        for needle, out in self.query_stdout.items():
            if needle in code:
                return out
        if "sys.executable" in code:
            return f"{self.layout.venv_python()}\n"
        if "LDLIBRARY" in code:
            return f"/usr/lib/x86_64-linux-gnu/libpython{PYTHON_VERSION}.so\n"
        if "INCLUDEPY" in code:
            return f"/usr/include/python{PYTHON_VERSION}\n"
        if "numpy" in code:
            return f"{self.layout.venv_dir()}/lib/python{PYTHON_VERSION}/site-packages/numpy/core/include\n"
        return ""

    def lines(self) -> list[str]:
        return [c.line for c in self.calls]

    def ran(self, needle: str) -> bool:
        return any(needle in c.line for c in self.calls)


def make_source_tarball(version: str = ROOT_VERSION, *, top: str | None = None) -> bytes:
    top = top or f"root-{version}"
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tf:
        for name, data in (
            (f"{top}/CMakeLists.txt", b"project(ROOT)\n"),
            (f"{top}/core/base/inc/TObject.h", b"class TObject {};\n"),
        ):
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tf.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def source_transport(
    body: bytes | None = None, *, status_code: int = 200, seen: list[str] | None = None
) -> httpx.MockTransport:
    payload = make_source_tarball() if body is None else body

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(str(request.url))
        if status_code != 200:
            return httpx.Response(status_code, text="nope")
        return httpx.Response(
            200, content=payload, headers={"Content-Type": "application/x-gzip"}
        )

    return httpx.MockTransport(handler)


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        work_dir=tmp_path / "work",
        run_root=tmp_path / "runs",
        jobs=4,
        use_sudo=False,
    )


@pytest.fixture()
def layout(settings: Settings) -> BuildLayout:
    return BuildLayout(root=Path(settings.work_dir))


@pytest.fixture()
def tools(layout: BuildLayout) -> FakeToolRunner:
    return FakeToolRunner(layout=layout)


@pytest.fixture()
def logger():
    return get_logger("test")


@pytest.fixture()
def make_ctx(settings: Settings, tools: FakeToolRunner, logger, tmp_path: Path):
    def _make(
        *,
        runtime: str = PYTHON_VERSION,
        target: str = ROOT_VERSION,
        transport: httpx.BaseTransport | None = None,
        s: Settings | None = None,
    ) -> RunContext:
        st = s or settings
        run_root = tmp_path / "runs" / "test"
        return RunContext(
            run_id="test",
            run_root=run_root,
            layout=BuildLayout(root=Path(st.work_dir)),
            versions=VersionSpec.parse(runtime, target),
            settings=st,
            tools=tools,
            logger=logger,
            events=EventSink(run_root / "events.jsonl"),
            http_transport=transport,
        )

    return _make
