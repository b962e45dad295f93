from __future__ import annotations

from pathlib import Path

from root_builder.core import errors, paths, provenance, time


def test_build_layout_paths(tmp_path: Path) -> None:
    layout = paths.BuildLayout(root=tmp_path)
    assert layout.venv_python() == tmp_path / "venv" / "bin" / "python"
    assert layout.source_tarball("6.32.04") == tmp_path / "root_v6.32.04.source.tar.gz"
    assert layout.source_dir("6.32.04") == tmp_path / "root-6.32.04"
    assert layout.build_dir() == tmp_path / "build"
    assert layout.install_dir() == tmp_path / "root_build"
    assert layout.artifact("x.zip") == tmp_path / "artifacts" / "x.zip"


def test_stage_error_and_run_id() -> None:
    try:
        raise ValueError("boom")
    except Exception as exc:
        err = errors.stage_error_from_exc(exc)
    assert err.exc_type == "ValueError"
    assert "boom" in err.message
    assert "ValueError" in err.traceback

    rid1, rid2 = provenance.new_run_id(), provenance.new_run_id()
    assert rid1 != rid2 and len(rid1) == 32


def test_run_provenance_to_dict() -> None:
    p = provenance.RunProvenance(run_id="r", started_at_utc=time.utc_now_iso())
    d = p.to_dict()
    assert d["run_id"] == "r"
    assert d["started_at_utc"].endswith("Z")
    assert set(d) == {"run_id", "started_at_utc", "hostname", "pid", "python", "platform"}


def test_external_tool_error_message() -> None:
    e = errors.ConfigureFailed(
        "Configuring CMake build failed", argv=["cmake", "/src"], returncode=1
    )
    assert str(e) == "Configuring CMake build failed (exit 1): cmake /src"
    assert e.stage == "configure"
    assert isinstance(e, errors.StageFailure)
