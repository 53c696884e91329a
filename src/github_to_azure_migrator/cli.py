"""
Command-line interface for the GitHub to Azure DevOps migration tool.
"""

from __future__ import annotations

import argparse
import logging
import sys

from . import github_utils as ghu
from .azure_utils import AzureDevOpsTarget
from .config import MigrationConfig
from .exceptions import ConfigurationError
from .orchestrator import MigrationReport, Migrator
from .users import load_user_map
from .utils import setup_logging

logger: logging.Logger = logging.getLogger(__name__)


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Migrate GitHub milestones, issues and pull requests to Azure DevOps",
        epilog=(
            "Configuration is read from the environment: GITHUB_TOKEN, GITHUB_ORG, GITHUB_REPO, "
            "GITHUB_HOST (optional), AZURE_ORG, AZURE_PROJECT (optional), AZURE_REPO, AZURE_USER, AZURE_TOKEN."
        ),
    )
    _ = parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="Increase console verbosity (-v for info, -vv for debug)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    migrate = subparsers.add_parser("migrate", help="Migrate milestones, issues and pull requests")
    _ = migrate.add_argument(
        "--usermap",
        "-u",
        help="Path to CSV file mapping GitHub user names to Azure DevOps users (handle,alias)",
    )
    _ = migrate.add_argument(
        "--link-github-issue",
        action="store_true",
        help="Add a link to the GitHub issue on each work item. The repository must be connected to Azure DevOps.",
    )

    return parser.parse_args(argv)


def _print_report(report: MigrationReport) -> None:
    stats = report.stats
    print(f"Epics created:         {stats.milestones_created} ({stats.milestones_failed} failed)")
    print(f"Work items created:    {stats.issues_created} ({stats.issues_failed} failed)")
    print(f"Comments migrated:     {stats.comments_created}")
    print(f"Pull requests created: {stats.pull_requests_created} ({stats.pull_requests_failed} failed)")
    print(f"Threads created:       {stats.threads_created}")
    if stats.errors:
        print(f"\n{len(stats.errors)} entities failed, see migration.log:")
        for error in stats.errors:
            print(f"  - {error}")


def run_migration(args: argparse.Namespace, config: MigrationConfig) -> MigrationReport:
    client = ghu.get_client(config.github_token, config.github_host)
    source = ghu.GitHubSource(ghu.get_repo(client, config.github_repo_path), client)
    target = AzureDevOpsTarget(
        config.azure_org,
        config.azure_project,
        config.azure_repo,
        config.azure_user,
        config.azure_token,
    )
    logger.info(
        f"Migrating {config.github_repo_path} -> {config.azure_org}/{config.azure_project} ({config.azure_repo})"
    )
    migrator = Migrator(
        source,
        target,
        aliases=load_user_map(args.usermap),
        link_github_issue=args.link_github_issue,
    )
    return migrator.migrate()


def main(argv: list[str] | None = None) -> None:
    """Main entry point.

    Exits with 0 once the run completed, even if single entities failed;
    those are reported and logged. Setup failures exit with 1.
    """
    args = parse_arguments(argv)
    setup_logging(verbosity=args.verbose)

    try:
        config = MigrationConfig.from_env()
        report = run_migration(args, config)
    except ConfigurationError as e:
        logger.error(str(e))  # noqa: TRY400
        sys.exit(1)
    except Exception:
        logger.exception("Migration failed")
        sys.exit(1)

    _print_report(report)
    sys.exit(0)
