from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from root_builder.core.versions import VersionSpec


@dataclass(frozen=True, slots=True)
class ArtifactRef:
    """
    A reference to a file produced by a stage.
    """

    path: str
    bytes: int
    sha256: str
    content_type: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Event:
    """
    Structured event emitted by the pipeline.
    """

    type: str
    ts_utc: str
    run_id: str
    stage: Optional[str] = None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class BuildEnvironment:
    """
    Python paths read back from the freshly created virtual environment.
    """

    python_executable: str
    python_library: str
    python_include_dir: str
    numpy_include_dir: str

    def to_dict(self) -> dict[str, str]:
        return {
            "python_executable": self.python_executable,
            "python_library": self.python_library,
            "python_include_dir": self.python_include_dir,
            "numpy_include_dir": self.numpy_include_dir,
        }


@dataclass(frozen=True, slots=True)
class Artifact:
    """
    The packaged install tree of one successful build.
    """

    path: Path
    bytes: int
    sha256: str
    versions: VersionSpec

    @property
    def filename(self) -> str:
        return self.path.name

    def to_dict(self) -> dict[str, object]:
        return {
            "path": str(self.path),
            "filename": self.filename,
            "bytes": self.bytes,
            "sha256": self.sha256,
            **self.versions.to_dict(),
        }
