from .builder import execute, run
from .core import VersionSpec
from .pipeline import Artifact

__all__ = ["Artifact", "VersionSpec", "execute", "run"]
