from .github import GithubReleases, PublishedRelease, publish_release
from .spec import ReleaseSpec, release_spec_for

__all__ = [
    "GithubReleases",
    "PublishedRelease",
    "ReleaseSpec",
    "publish_release",
    "release_spec_for",
]
