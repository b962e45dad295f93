from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError

PYTHON_VERSION_PATTERN = r"^[0-9]+\.[0-9]+$"
ROOT_VERSION_PATTERN = r"^[0-9]+\.[0-9]+\.[0-9]+$"

_FIELD_MESSAGES = {
    "runtime_version": "Invalid Python version format. Expected format: X.Y",
    "target_version": "Invalid ROOT version format. Expected format: X.Y.Z",
}


class VersionSpec(BaseModel):
    """
    The two parameters of a build: the Python ABI to link against and the
    ROOT release to compile.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    runtime_version: str = Field(pattern=PYTHON_VERSION_PATTERN)
    target_version: str = Field(pattern=ROOT_VERSION_PATTERN)

    @classmethod
    def parse(cls, runtime_version: object, target_version: object) -> "VersionSpec":
        try:
            return cls(runtime_version=runtime_version, target_version=target_version)
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = str(first["loc"][0]) if first.get("loc") else ""
            msg = _FIELD_MESSAGES.get(field, str(e))
            raise ValidationError(
                f"{msg} (got {first.get('input')!r})"
            ) from e

    @property
    def python_executable(self) -> str:
        return f"python{self.runtime_version}"

    @property
    def release_tag(self) -> str:
        return f"root-v{self.target_version}-python{self.runtime_version}"

    def to_dict(self) -> dict[str, str]:
        return {
            "python_version": self.runtime_version,
            "root_version": self.target_version,
        }
