from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
import structlog

from root_builder.core.errors import ReleaseError
from root_builder.core.http import (
    HttpFetchError,
    make_http_client,
    request_with_retries,
)
from root_builder.core.versions import VersionSpec

from .spec import ReleaseSpec, release_spec_for

log = structlog.get_logger(__name__)

_URI_TEMPLATE_SUFFIX = re.compile(r"\{[^}]*\}$")


@dataclass(frozen=True, slots=True)
class PublishedRelease:
    release_id: int
    tag: str
    html_url: str | None
    asset_name: str
    asset_url: str | None
    replaced_release_id: int | None = None


class GithubReleases:
    """
    Minimal GitHub releases API client for one repository.
    """

    def __init__(
        self,
        client: httpx.Client,
        *,
        repository: str,
        api_url: str = "https://api.github.com",
        max_attempts: int = 3,
    ) -> None:
        if repository.count("/") != 1:
            raise ReleaseError(f"Repository must look like OWNER/NAME, got {repository!r}")
        self.client = client
        self.repository = repository
        self.api_url = api_url.rstrip("/")
        self.max_attempts = max_attempts

    def _repo_url(self, path: str) -> str:
        return f"{self.api_url}/repos/{self.repository}/{path.lstrip('/')}"

    def find_by_tag(self, tag: str) -> dict[str, Any] | None:
        resp = request_with_retries(
            self.client,
            method="GET",
            url=self._repo_url(f"releases/tags/{tag}"),
            allowed_statuses=(200, 404),
            max_attempts=self.max_attempts,
        )
        if resp.status_code == 404:
            return None
        return resp.json()

    def delete_release(self, release_id: int) -> None:
        request_with_retries(
            self.client,
            method="DELETE",
            url=self._repo_url(f"releases/{release_id}"),
            allowed_statuses=(204, 404),
            max_attempts=self.max_attempts,
        )

    def delete_tag(self, tag: str) -> bool:
        """Delete the tag ref. A tag that is already gone is not an error."""
        resp = request_with_retries(
            self.client,
            method="DELETE",
            url=self._repo_url(f"git/refs/tags/{tag}"),
            allowed_statuses=(204, 404, 422),
            max_attempts=self.max_attempts,
        )
        return resp.status_code == 204

    def create_release(self, spec: ReleaseSpec) -> dict[str, Any]:
        resp = request_with_retries(
            self.client,
            method="POST",
            url=self._repo_url("releases"),
            json=spec.to_payload(),
            allowed_statuses=(201,),
            max_attempts=self.max_attempts,
        )
        return resp.json()

    def upload_asset(
        self, release: dict[str, Any], path: Path, *, content_type: str
    ) -> dict[str, Any]:
        upload_url = release.get("upload_url")
        if not upload_url:
            raise ReleaseError(f"Release {release.get('id')} has no upload_url")

        resp = request_with_retries(
            self.client,
            method="POST",
            url=_URI_TEMPLATE_SUFFIX.sub("", str(upload_url)),
            params={"name": path.name},
            headers={"Content-Type": content_type},
            content_path=path,
            allowed_statuses=(201,),
            max_attempts=self.max_attempts,
        )
        return resp.json()


def github_headers(token: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }


def publish_release(
    *,
    versions: VersionSpec,
    artifact_path: Path,
    content_type: str,
    repository: str,
    token: str,
    api_url: str = "https://api.github.com",
    platform: str = "Ubuntu",
    transport: httpx.BaseTransport | None = None,
) -> PublishedRelease:
    """
    Replace any release tagged for `versions` with a fresh one carrying
    `artifact_path` as its only asset.
    """
    artifact_path = Path(artifact_path)
    if not artifact_path.is_file():
        raise ReleaseError(f"Artifact not found: {artifact_path}")

    spec = release_spec_for(versions, platform=platform)
    client = make_http_client(headers=github_headers(token), transport=transport)
    try:
        gh = GithubReleases(client, repository=repository, api_url=api_url)

        replaced: int | None = None
        existing = gh.find_by_tag(spec.tag)
        if existing is not None:
            replaced = int(existing["id"])
            log.info("Deleting existing release", tag=spec.tag, release_id=replaced)
            gh.delete_release(replaced)
            gh.delete_tag(spec.tag)

        created = gh.create_release(spec)
        log.info("Release created", tag=spec.tag, release_id=created.get("id"))

        asset = gh.upload_asset(created, artifact_path, content_type=content_type)
        log.info("Release asset uploaded", name=artifact_path.name, bytes=asset.get("size"))

        return PublishedRelease(
            release_id=int(created["id"]),
            tag=spec.tag,
            html_url=created.get("html_url"),
            asset_name=str(asset.get("name") or artifact_path.name),
            asset_url=asset.get("browser_download_url"),
            replaced_release_id=replaced,
        )
    except HttpFetchError as e:
        raise ReleaseError(f"Failed to publish release {spec.tag}: {e}") from e
    except (KeyError, ValueError) as e:
        raise ReleaseError(f"Unexpected GitHub API response for {spec.tag}: {e}") from e
    finally:
        client.close()
