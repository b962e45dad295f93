from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogFormat = Literal["json", "console"]
ArchiveFormat = Literal["zip", "tar.gz", "tar.xz"]

ROOT_SOURCE_URL_TEMPLATE = "https://root.cern/download/root_v{version}.source.tar.gz"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ROOT_BUILDER_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    work_dir: Path = Field(default=Path("."))
    run_root: Path = Field(default=Path("_runs"))
    log_level: str = Field(default="INFO")
    log_format: LogFormat = Field(default="console")

    # None means one worker per available CPU
    jobs: int | None = Field(default=None, ge=1)

    product: str = Field(default="root")
    platform_tag: str = Field(default="Ubuntu")
    runtime_tag: str = Field(default="Python")
    archive_format: ArchiveFormat = Field(default="zip")

    source_url_template: str = Field(default=ROOT_SOURCE_URL_TEMPLATE)
    download_attempts: int = Field(default=1, ge=1)

    use_sudo: bool = Field(default=True)
    cleanup_on_failure: bool = Field(default=True)
    stage_timeout_s: float | None = Field(default=None, gt=0)

    github_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ROOT_BUILDER_GITHUB_TOKEN", "GITHUB_TOKEN"),
    )
    github_repository: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "ROOT_BUILDER_GITHUB_REPOSITORY", "GITHUB_REPOSITORY"
        ),
    )
    github_api_url: str = Field(default="https://api.github.com")

    def effective_jobs(self) -> int:
        if self.jobs is not None:
            return int(self.jobs)
        return available_cpus()


def available_cpus() -> int:
    """CPUs this process may run on, like `nproc`."""
    if hasattr(os, "sched_getaffinity"):
        return len(os.sched_getaffinity(0)) or 1
    return os.cpu_count() or 1


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    return Settings()
