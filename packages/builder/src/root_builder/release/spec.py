from __future__ import annotations

from dataclasses import dataclass

from root_builder.core.versions import VersionSpec


@dataclass(frozen=True, slots=True)
class ReleaseSpec:
    tag: str
    name: str
    body: str
    draft: bool = False
    prerelease: bool = False

    def to_payload(self) -> dict[str, object]:
        return {
            "tag_name": self.tag,
            "name": self.name,
            "body": self.body,
            "draft": self.draft,
            "prerelease": self.prerelease,
        }


def release_spec_for(versions: VersionSpec, *, platform: str = "Ubuntu") -> ReleaseSpec:
    root, py = versions.target_version, versions.runtime_version
    body = (
        f"Automated build of ROOT v{root} for Python {py}\n"
        "\n"
        "This release contains:\n"
        f"- ROOT version: {root}\n"
        f"- Python version: {py}\n"
        f"- Built on {platform}\n"
    )
    return ReleaseSpec(
        tag=versions.release_tag,
        name=f"ROOT v{root} for Python {py}",
        body=body,
    )
