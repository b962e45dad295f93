from __future__ import annotations

from dataclasses import dataclass

from root_builder.core.config import Settings
from root_builder.core.versions import VersionSpec

ARCHIVE_CONTENT_TYPES: dict[str, str] = {
    "zip": "application/zip",
    "tar.gz": "application/gzip",
    "tar.xz": "application/x-xz",
}


@dataclass(frozen=True, slots=True)
class ArtifactNaming:
    """
    Release file name policy:

      {product}_v{root_version}_{platform}_{runtime_tag}{python_version}.{ext}

    e.g. root_v6.32.04_Ubuntu_Python3.11.zip. Release tooling matches on this
    exact shape.
    """

    product: str = "root"
    platform: str = "Ubuntu"
    runtime_tag: str = "Python"
    archive_format: str = "zip"

    @classmethod
    def from_settings(cls, s: Settings) -> "ArtifactNaming":
        return cls(
            product=s.product,
            platform=s.platform_tag,
            runtime_tag=s.runtime_tag,
            archive_format=s.archive_format,
        )

    @property
    def content_type(self) -> str:
        return ARCHIVE_CONTENT_TYPES[self.archive_format]

    def filename(self, versions: VersionSpec) -> str:
        if self.archive_format not in ARCHIVE_CONTENT_TYPES:
            raise ValueError(f"Unsupported archive format: {self.archive_format}")
        return (
            f"{self.product}_v{versions.target_version}_{self.platform}_"
            f"{self.runtime_tag}{versions.runtime_version}.{self.archive_format}"
        )
