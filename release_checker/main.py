"""Entry point for Release Checker."""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import httpx

from .checkers import GitHubChecker
from .config import Settings
from .constants import DEFAULT_HTTP_TIMEOUT
from .errors import ConfigurationError, ReleaseCheckerError
from .logging_config import get_logger, setup_logging
from .models import CycleReport, HostKind, OutcomeStatus, Project, project_from_dict
from .notifications import (
    CompositeNotificationSink,
    DesktopNotificationSink,
    LogNotificationSink,
    NotificationSink,
    WebhookNotificationSink,
    is_notification_supported,
)
from .service import ReleaseCheckService
from .store import JsonReleaseStore
from .utils import (
    add_project,
    delete_project,
    ensure_data_dir,
    get_project,
    get_releases_file,
    load_projects,
    set_data_dir,
)

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="release-checker",
        description="Detect new releases of tracked software projects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--verbose", "-V", action="store_true", help="Enable verbose logging")
    parser.add_argument("--log-file", type=Path, help="Log file path")
    parser.add_argument("--data-dir", type=Path, help="Data directory path")
    parser.add_argument("--max-concurrent", type=int, help="Maximum concurrent checks")
    parser.add_argument(
        "--notify",
        choices=["log", "desktop", "webhook"],
        help="Where to send new-release notifications",
    )
    parser.add_argument("--webhook-url", help="Webhook URL for --notify webhook")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    check_parser = subparsers.add_parser("check", help="Run one release check cycle")
    check_parser.add_argument("--json", action="store_true", help="Output as JSON")
    check_parser.set_defaults(func=run_check)

    add_parser = subparsers.add_parser("add", help="Add a project to track")
    add_parser.add_argument(
        "--host",
        choices=[kind.value for kind in HostKind],
        required=True,
        help="Host type",
    )
    add_parser.add_argument("--name", "-n", help="Project name")
    add_parser.add_argument("--identifier", help="Override the derived identifier")
    add_parser.add_argument("--description", help="Project description")
    add_parser.add_argument("--repo", help="GitHub repository (owner/repo)")
    add_parser.add_argument("--package", help="PyPI or npm package name")
    add_parser.add_argument("--url", help="Web page URL for version scraping")
    add_parser.add_argument("--regex", help="Regex pattern for version extraction")
    add_parser.set_defaults(func=run_add)

    list_parser = subparsers.add_parser("list", help="List tracked projects")
    list_parser.add_argument("--json", action="store_true", help="Output as JSON")
    list_parser.set_defaults(func=run_list)

    show_parser = subparsers.add_parser("show", help="Show versions seen for a project")
    show_parser.add_argument("--identifier", required=True, help="Project identifier")
    show_parser.set_defaults(func=run_show)

    delete_parser = subparsers.add_parser("delete", help="Stop tracking a project")
    delete_parser.add_argument("--identifier", required=True, help="Project identifier")
    delete_parser.set_defaults(func=run_delete)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    setup_logging(level=log_level, log_file=args.log_file)

    try:
        settings = resolve_settings(args)
    except ValueError as e:
        print(f"Error: {e}")
        return 2

    set_data_dir(settings.data_dir)
    ensure_data_dir()

    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    try:
        return args.func(args, settings)
    except ReleaseCheckerError as e:
        print(f"Error: {e}")
        return 2


def resolve_settings(args: argparse.Namespace) -> Settings:
    """Apply command line overrides on top of environment settings."""
    settings = Settings.from_env()
    overrides = {}
    if args.data_dir is not None:
        overrides["data_dir"] = args.data_dir
    if args.max_concurrent is not None:
        overrides["max_concurrent"] = args.max_concurrent
    if args.notify is not None:
        overrides["notify"] = args.notify
    if args.webhook_url is not None:
        overrides["webhook_url"] = args.webhook_url
    return replace(settings, **overrides) if overrides else settings


def build_sink(settings: Settings, client: Optional[httpx.AsyncClient] = None) -> NotificationSink:
    """Build the notification sink selected in settings."""
    log_sink = LogNotificationSink()
    if settings.notify == "desktop":
        if not is_notification_supported():
            logger.warning("Desktop notifications not supported here, logging only")
            return log_sink
        return CompositeNotificationSink([log_sink, DesktopNotificationSink()])
    if settings.notify == "webhook" and settings.webhook_url:
        return CompositeNotificationSink(
            [log_sink, WebhookNotificationSink(settings.webhook_url, client=client)]
        )
    return log_sink


async def run_cycle(settings: Settings, projects: list[Project]) -> CycleReport:
    """Run a single cycle with a shared HTTP client."""
    async with httpx.AsyncClient(timeout=DEFAULT_HTTP_TIMEOUT, follow_redirects=True) as client:
        service = ReleaseCheckService(
            store=JsonReleaseStore(get_releases_file()),
            sink=build_sink(settings, client),
            checkers={
                HostKind.GITHUB: GitHubChecker(client=client, api_token=settings.github_token),
            },
            max_concurrent=settings.max_concurrent,
            max_attempts=settings.max_attempts,
            retry_backoff=settings.retry_backoff,
            check_timeout=settings.check_timeout,
            client=client,
        )
        report = await service.run_cycle(projects)
        logger.debug("Metrics: %s", service.metrics.snapshot())
        return report


def run_check(args: argparse.Namespace, settings: Settings) -> int:
    """Run one release check cycle (non-interactive)."""
    projects = load_projects()
    if not projects:
        print("No projects configured. Add one with 'release-checker add'.")
        return 0

    if not args.json:
        print(f"Checking {len(projects)} projects for new releases...\n")

    report = asyncio.run(run_cycle(settings, projects))

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        for outcome in report.outcomes:
            if outcome.status == OutcomeStatus.REPORTED:
                versions = ", ".join(r.version for r in outcome.new_releases)
                print(f"  [NEW] {outcome.identifier}: {versions}")
            elif outcome.status == OutcomeStatus.NO_CHANGE:
                print(f"  [OK] {outcome.identifier}")
            else:
                label = "FAILED" if outcome.status == OutcomeStatus.FAILED_PERMANENT else "RETRY"
                print(f"  [{label}] {outcome.identifier}: {outcome.error}")

        print(f"\n{'=' * 50}")
        count = len(report.new_releases)
        print(f"\n{count} new release{'s' if count != 1 else ''} found.")

    return 1 if report.has_failures else 0


def run_add(args: argparse.Namespace, settings: Settings) -> int:
    """Add a new project to track."""
    data = {
        "host": args.host,
        "name": args.name,
        "identifier": args.identifier,
        "description": args.description,
        "repo": args.repo,
        "package": args.package,
        "url": args.url,
        "version_regex": args.regex,
    }
    required = {"github": "repo", "pypi": "package", "npm": "package", "web": "url"}[args.host]
    if not data[required]:
        print(f"Error: --{required} is required for {args.host} projects")
        return 2

    try:
        project = project_from_dict(data)
    except ConfigurationError as e:
        print(f"Error: {e}")
        return 2

    if not add_project(project):
        print(f"Error: '{project.identifier}' is already tracked")
        return 1

    print(f"Added '{project.name}' ({project.identifier}) to tracking.")
    return 0


def run_list(args: argparse.Namespace, settings: Settings) -> int:
    """List tracked projects."""
    projects = load_projects()

    if args.json:
        output = {
            "projects": [project.to_dict() for project in projects],
            "count": len(projects),
        }
        print(json.dumps(output, indent=2))
        return 0

    if not projects:
        print("No projects configured.")
        return 0

    store = JsonReleaseStore(get_releases_file())
    print(f"\nTracked projects ({len(projects)}):\n")
    print(f"{'Identifier':<40} {'Host':<8} {'Name':<25} {'Seen':<6}")
    print("-" * 80)
    for project in projects:
        seen = len(store.get(project.identifier))
        print(
            f"{project.identifier[:38]:<40} {project.host_kind.value:<8} "
            f"{project.name[:23]:<25} {seen:<6}"
        )
    print()
    return 0


def run_show(args: argparse.Namespace, settings: Settings) -> int:
    """Print the versions stored for a project."""
    store = JsonReleaseStore(get_releases_file())
    versions = store.get(args.identifier)
    if not versions:
        print(f"No stored releases for '{args.identifier}'")
        return 1
    for version in sorted(versions):
        print(version)
    return 0


def run_delete(args: argparse.Namespace, settings: Settings) -> int:
    """Stop tracking a project and drop its stored releases."""
    project = get_project(args.identifier)
    if project is None:
        print(f"Error: Project '{args.identifier}' not found")
        return 1

    delete_project(args.identifier)
    JsonReleaseStore(get_releases_file()).delete(args.identifier)
    print(f"Deleted '{project.name}'")
    return 0


if __name__ == "__main__":
    sys.exit(main())
