from .archive import write_archive
from .naming import ArtifactNaming
from .stage import stage_package

__all__ = ["ArtifactNaming", "stage_package", "write_archive"]
