"""
Command-line interface for the Jira ticket cloner.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from .exceptions import ConfigError, IssueLookupError
from .jira_utils import JiraTracker, get_client, get_connection_settings
from .orchestrator import DEFAULT_PACING_SECONDS, CloneOrchestrator
from .targets import load_targets
from .utils import setup_logging

if TYPE_CHECKING:
    from .models import CloneReport

DEFAULT_TARGETS_FILE = "targets.json"
DEFAULT_ENV_FILE = ".env"


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Clone a Jira issue into several target projects")

    # Positional arguments
    _ = parser.add_argument("source_key", help="Key of the issue to clone (e.g. CORE-1445)")

    # Optional arguments with short forms
    _ = parser.add_argument(
        "--targets",
        "-t",
        default=DEFAULT_TARGETS_FILE,
        help=f"JSON file with the target definitions (default: {DEFAULT_TARGETS_FILE})",
    )

    _ = parser.add_argument(
        "--dry-run", "-n", action="store_true", help="Show the fields each clone would get, create nothing"
    )

    _ = parser.add_argument(
        "--pace",
        type=float,
        default=DEFAULT_PACING_SECONDS,
        help=f"Seconds to wait between two targets (default: {DEFAULT_PACING_SECONDS})",
    )

    _ = parser.add_argument(
        "--jira-pass-token", help="Path for Jira API token in pass utility (default: env JIRA_TOKEN, then jira/cli/token)"
    )

    _ = parser.add_argument(
        "--env-file",
        default=DEFAULT_ENV_FILE,
        help=f"File with JIRA_BASE, JIRA_USER and JIRA_TOKEN, skipped when absent (default: {DEFAULT_ENV_FILE})",
    )

    _ = parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    return parser.parse_args(argv)


def _print_clone_report(report: CloneReport) -> None:
    """Print one line per target, then the failures."""
    print(f"\nClone report for {report.source_key}")
    print("=" * 50)

    for result in report.results:
        project = result.target.project
        if result.status == "planned":
            print(f"  {project}: PLANNED  summary={result.fields.get('summary')!r}")
        elif result.status == "create_failed":
            print(f"  {project}: FAILED   not created")
        else:
            state = "OK" if result.success else "PARTIAL"
            print(f"  {project}: {state:<8} {result.issue_key}")

        for failure in result.failures:
            print(f"      - {failure.step}: {failure.message}")

        if result.attachments and result.attachments.uploaded:
            print(f"      attachments: {', '.join(result.attachments.uploaded)}")

        if result.attachments:
            for filename, error in result.attachments.failed:
                print(f"      attachment {filename}: {error}")

    print(f"\nOverall: {'PASSED' if report.success else 'FAILED'}")


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_arguments(argv)

    verbose: bool = getattr(args, "verbose", False)
    setup_logging(verbose=verbose)
    logger = logging.getLogger(__name__)

    # Variables already set in the environment win over the file
    if load_dotenv(dotenv_path=args.env_file):
        logger.debug(f"Loaded environment from {args.env_file}")

    try:
        targets = load_targets(args.targets)
        settings = get_connection_settings(args.jira_pass_token)
        tracker = JiraTracker(get_client(settings), settings.server)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")  # noqa: TRY400
        sys.exit(1)

    orchestrator = CloneOrchestrator(tracker, pacing_seconds=args.pace, dry_run=args.dry_run)

    try:
        report = orchestrator.run(args.source_key, targets)
    except IssueLookupError as e:
        logger.error(f"Cannot read source issue: {e}")  # noqa: TRY400
        sys.exit(1)

    _print_clone_report(report)

    if report.success:
        sys.exit(0)
    else:
        sys.exit(1)
