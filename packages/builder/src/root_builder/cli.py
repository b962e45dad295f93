from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, NoReturn

from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from root_builder.builder import execute
from root_builder.core import (
    BuilderError,
    Settings,
    StageFailure,
    ValidationError,
    VersionSpec,
    bind,
    clear_bindings,
    configure_logging,
    get_logger,
    human_size,
    load_settings,
    new_run_id,
)
from root_builder.core.paths import BuildLayout
from root_builder.release import publish_release
from root_builder.stages.package import ArtifactNaming

console = Console()
err_console = Console(stderr=True)


class _ArgumentParser(argparse.ArgumentParser):
    """Usage errors exit 1, like every other failure of this tool."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        err_console.print(f"[bold red]\\[ERROR][/] {escape(message)}", highlight=False)
        self.exit(1)


def _build_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(
        prog="root-builder",
        description="Build ROOT for one Python version and package it into artifacts/.",
    )
    p.add_argument("python_version", help="Python ABI to build against, X.Y (e.g. 3.11)")
    p.add_argument("root_version", help="ROOT release to build, X.Y.Z (e.g. 6.32.04)")
    p.add_argument(
        "--jobs",
        "-j",
        type=int,
        default=None,
        help="Parallel build workers (default: all available cores)",
    )
    p.add_argument("--work-dir", default=None, help="Directory for all build state")
    p.add_argument(
        "--archive-format",
        choices=("zip", "tar.gz", "tar.xz"),
        default=None,
        help="Artifact archive format (default: zip)",
    )
    p.add_argument(
        "--no-sudo",
        action="store_true",
        help="Run apt commands without sudo (e.g. inside a root container)",
    )
    p.add_argument(
        "--keep-on-failure",
        action="store_true",
        help="Leave partial build state in place when a stage fails",
    )
    return p


def _build_release_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(
        prog="root-builder-release",
        description="Publish a packaged ROOT build as a GitHub release.",
    )
    p.add_argument("python_version", help="Python version, X.Y")
    p.add_argument("root_version", help="ROOT version, X.Y.Z")
    p.add_argument(
        "--repo",
        default=None,
        help="OWNER/NAME (default: $GITHUB_REPOSITORY)",
    )
    p.add_argument(
        "--artifact",
        default=None,
        help="Archive to upload (default: the build's artifacts/ file name)",
    )
    p.add_argument("--work-dir", default=None, help="Directory holding artifacts/")
    p.add_argument(
        "--archive-format",
        choices=("zip", "tar.gz", "tar.xz"),
        default=None,
    )
    return p


def _settings_from_args(s: Settings, args: argparse.Namespace) -> Settings:
    update: dict[str, Any] = {}
    if getattr(args, "jobs", None) is not None:
        if args.jobs < 1:
            raise ValidationError("--jobs must be >= 1")
        update["jobs"] = args.jobs
    if args.work_dir:
        update["work_dir"] = Path(args.work_dir)
    if args.archive_format:
        update["archive_format"] = args.archive_format
    if getattr(args, "no_sudo", False):
        update["use_sudo"] = False
    if getattr(args, "keep_on_failure", False):
        update["cleanup_on_failure"] = False
    return s.model_copy(update=update) if update else s


def _settings_problem(e: PydanticValidationError) -> str:
    first = e.errors()[0]
    field = ".".join(str(x) for x in first.get("loc", ())) or "settings"
    return f"{field}: {first.get('msg')}"


def _fail(message: str) -> int:
    err_console.print(f"[bold red]\\[ERROR][/] {escape(message)}", highlight=False)
    return 1


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        # validate before anything else touches the host
        versions = VersionSpec.parse(args.python_version, args.root_version)
        s = _settings_from_args(load_settings(), args)
    except ValidationError as e:
        return _fail(str(e))
    except PydanticValidationError as e:
        return _fail(f"Invalid configuration: {_settings_problem(e)}")

    configure_logging(level=s.log_level, fmt=s.log_format)
    log = get_logger("root_builder")

    run_id = new_run_id()
    clear_bindings()
    bind(
        run_id=run_id,
        python_version=versions.runtime_version,
        root_version=versions.target_version,
    )

    console.print(
        Panel.fit(
            Text(
                f"Building ROOT {versions.target_version} with Python {versions.runtime_version}\n"
                f"run_id={run_id}\n"
                f"jobs={s.effective_jobs()}",
                style="bold",
            ),
            title="root-builder",
        )
    )

    outcome = execute(
        versions.runtime_version,
        versions.target_version,
        settings=s,
        logger=log,
        run_id=run_id,
    )

    tbl = Table(title="Result", show_header=True, box=None)
    tbl.add_row(
        "status", "[green]ok[/green]" if outcome.exit_code == 0 else "[red]failed[/red]"
    )
    art = outcome.context.artifact
    if art is not None:
        tbl.add_row("artifact", str(art.path))
        tbl.add_row("size", human_size(art.bytes))
        tbl.add_row("sha256", art.sha256)
    tbl.add_row("report", str(outcome.report_path))
    console.print(tbl)

    if outcome.failure is not None:
        stage = outcome.report.failed_stage or getattr(outcome.failure, "stage", "unknown")
        if isinstance(outcome.failure, StageFailure):
            return _fail(f"stage '{stage}' failed: {outcome.failure}")
        return _fail(f"stage '{stage}' failed unexpectedly: {outcome.failure!r}")

    console.print("[bold green]\\[SUCCESS][/] Build completed successfully.", highlight=False)
    return int(outcome.exit_code)


def release_main(argv: list[str] | None = None) -> int:
    args = _build_release_parser().parse_args(argv)

    try:
        versions = VersionSpec.parse(args.python_version, args.root_version)
        s = _settings_from_args(load_settings(), args)
    except ValidationError as e:
        return _fail(str(e))
    except PydanticValidationError as e:
        return _fail(f"Invalid configuration: {_settings_problem(e)}")

    configure_logging(level=s.log_level, fmt=s.log_format)

    repository = args.repo or s.github_repository
    if not repository:
        return _fail("No repository given (use --repo or set GITHUB_REPOSITORY)")
    if not s.github_token:
        return _fail("No GitHub token (set GITHUB_TOKEN)")

    naming = ArtifactNaming.from_settings(s)
    artifact = (
        Path(args.artifact)
        if args.artifact
        else BuildLayout(root=Path(s.work_dir)).artifact(naming.filename(versions))
    )

    try:
        published = publish_release(
            versions=versions,
            artifact_path=artifact,
            content_type=naming.content_type,
            repository=repository,
            token=s.github_token,
            api_url=s.github_api_url,
            platform=s.platform_tag,
        )
    except BuilderError as e:
        return _fail(str(e))

    tbl = Table(title="Release", show_header=True, box=None)
    tbl.add_row("tag", published.tag)
    tbl.add_row("asset", published.asset_name)
    if published.html_url:
        tbl.add_row("url", published.html_url)
    if published.replaced_release_id is not None:
        tbl.add_row("replaced", str(published.replaced_release_id))
    console.print(tbl)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
