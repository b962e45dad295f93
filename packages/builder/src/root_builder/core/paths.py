from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class BuildLayout:
    """
    Fixed working paths for one build, all relative to the work directory:

      {root}/venv/
      {root}/root_v{version}.source.tar.gz
      {root}/root-{version}/
      {root}/build/
      {root}/root_build/
      {root}/artifacts/
    """

    root: Path

    def venv_dir(self) -> Path:
        return self.root / "venv"

    def venv_python(self) -> Path:
        return self.venv_dir() / "bin" / "python"

    def source_tarball(self, version: str) -> Path:
        return self.root / f"root_v{version}.source.tar.gz"

    def source_dir(self, version: str) -> Path:
        return self.root / f"root-{version}"

    def build_dir(self) -> Path:
        return self.root / "build"

    def install_dir(self) -> Path:
        return self.root / "root_build"

    def artifacts_dir(self) -> Path:
        return self.root / "artifacts"

    def artifact(self, filename: str) -> Path:
        return self.artifacts_dir() / filename
