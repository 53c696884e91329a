"""Migration orchestrator that runs the migrators in dependency order.

Migration Flow
--------------
The migration proceeds in three stages. Each stage pages through one kind of
GitHub entity and migrates it entity by entity:

Stage 1: Milestones -> Epics
    Builds the milestone mapping (milestone number -> epic).

Stage 2: Issues -> Bugs / User Stories
    Pull requests listed by the issues endpoint are skipped. Each issue gets
    a parent link to its milestone's epic, "#123" mentions of issues migrated
    earlier are rewritten, then comments are replayed as history.
    Builds the issue mapping (issue number -> work item).

Stage 3: Pull Requests
    "#123" mentions are rewritten with the final issue mapping; comments and
    reviews become discussion threads.

Identifier Mapping
------------------
Mappings are immutable snapshots. A migrator receives the snapshot as it is
when the entity is processed and returns what it created; the orchestrator
merges that into a new snapshot for the next entity. Consequently a mention
resolves only if the mentioned entity was migrated strictly before the
mentioning one. Forward references stay as they are; earlier entities are
never revisited.

Error Handling
--------------
A failure while migrating one entity is logged and recorded in the report;
the stage continues with the next entity. Known API failures (ENTITY_ERRORS)
are logged as errors, anything else with a traceback. An entity listed twice
by the source is migrated once. Nothing is retried: writes are not
idempotent, so a rerun requires wiping the target first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

import requests
from github import GithubException

from .exceptions import MigrationError
from .issues import IssueMigrator
from .milestones import MilestoneMigrator
from .models import IdentifierMapping, MigrationResult
from .pull_requests import PullRequestMigrator
from .users import UserCache, UserResolver

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from .protocols import SourceSystem, TargetSystem

logger: logging.Logger = logging.getLogger(__name__)

# Expected failures of a single entity; logged without traceback
ENTITY_ERRORS: tuple[type[Exception], ...] = (MigrationError, GithubException, requests.RequestException)

T = TypeVar("T")


@dataclass
class MigrationStats:
    """Statistics collected during migration."""

    milestones_created: int = 0
    milestones_failed: int = 0
    issues_created: int = 0
    issues_failed: int = 0
    issues_skipped: int = 0
    comments_created: int = 0
    pull_requests_created: int = 0
    pull_requests_failed: int = 0
    threads_created: int = 0
    errors: list[str] = field(default_factory=list)
    results: list[MigrationResult] = field(default_factory=list)


@dataclass
class MigrationReport:
    """Result of a migration run."""

    stats: MigrationStats
    milestones: IdentifierMapping
    issues: IdentifierMapping
    pull_requests: IdentifierMapping

    @property
    def success(self) -> bool:
        return not self.stats.errors


class Migrator:
    """Orchestrates migration from GitHub to Azure DevOps.

    Usage:
        source = GitHubSource(repo, client)
        target = AzureDevOpsTarget(org, project, repository, user, token)
        report = Migrator(source, target, aliases=load_user_map(path)).migrate()

    The user cache is owned by the migrator and lives as long as it does;
    pass a cache explicitly to share or inspect it.
    """

    def __init__(
        self,
        source: SourceSystem,
        target: TargetSystem,
        *,
        aliases: Mapping[str, str] | None = None,
        link_github_issue: bool = False,
        user_cache: UserCache | None = None,
    ) -> None:
        self._source = source
        self._target = target
        self.user_cache: UserCache = user_cache if user_cache is not None else UserCache()
        users = UserResolver(source, aliases, self.user_cache)

        self.milestone_migrator: MilestoneMigrator = MilestoneMigrator(target, users)
        self.issue_migrator: IssueMigrator = IssueMigrator(
            source, target, users, link_github_issue=link_github_issue
        )
        self.pull_request_migrator: PullRequestMigrator = PullRequestMigrator(source, target, users)

    def migrate(self) -> MigrationReport:
        """Run all stages in order: milestones, issues, pull requests."""
        stats = MigrationStats()

        milestones = self.migrate_milestones(stats)
        issues = self.migrate_issues(stats, milestones)
        pull_requests = self.migrate_pull_requests(stats, issues)

        logger.info(
            f"Migration finished: {stats.milestones_created} epics, {stats.issues_created} work items, "
            f"{stats.comments_created} comments, {stats.pull_requests_created} pull requests, "
            f"{stats.threads_created} threads, {len(stats.errors)} errors"
        )
        return MigrationReport(stats=stats, milestones=milestones, issues=issues, pull_requests=pull_requests)

    def migrate_milestones(self, stats: MigrationStats) -> IdentifierMapping:
        """Migrate milestones into epics.

        Returns:
            Milestone number -> created epic
        """
        mapping = IdentifierMapping()
        seen: set[int] = set()
        for milestone in _iterate(self._source.milestone_pages()):
            if _is_duplicate(seen, "milestone", milestone.number):
                continue
            try:
                epic = self.milestone_migrator.migrate(milestone)
            except Exception as e:  # noqa: BLE001
                _record_failure(stats, "milestone", milestone.number, e)
                stats.milestones_failed += 1
                continue

            stats.results.append(MigrationResult.success(milestone.number, epic))
            logger.info(f'Migrated milestone "{milestone.number}" to epic "{epic.target_id}".')
            mapping = mapping.with_entry(milestone.number, epic)
            stats.milestones_created += 1

        logger.info(f"Migrated {len(mapping)} milestones")
        return mapping

    def migrate_issues(self, stats: MigrationStats, milestones: IdentifierMapping) -> IdentifierMapping:
        """Migrate issues into work items.

        Each issue sees the issues migrated before it, never the ones after.

        Returns:
            Issue number -> created work item
        """
        mapping = IdentifierMapping()
        seen: set[int] = set()
        for issue in _iterate(self._source.issue_pages()):
            if issue.is_pull_request:
                logger.debug(f"Skipping #{issue.number}: it is a pull request")
                stats.issues_skipped += 1
                continue
            if _is_duplicate(seen, "issue", issue.number):
                stats.issues_skipped += 1
                continue

            try:
                outcome = self.issue_migrator.migrate(issue, milestones, mapping)
            except Exception as e:  # noqa: BLE001
                _record_failure(stats, "issue", issue.number, e)
                stats.issues_failed += 1
                continue

            stats.results.append(
                MigrationResult.success(
                    issue.number, outcome.work_item, type=outcome.work_item_type, comments=outcome.comments
                )
            )
            logger.info(
                f'Migrated issue "{issue.number}" to {outcome.work_item_type} "{outcome.work_item.target_id}" '
                f"with {outcome.comments} comments."
            )
            mapping = mapping.with_entry(issue.number, outcome.work_item)
            stats.issues_created += 1
            stats.comments_created += outcome.comments

        logger.info(f"Migrated {len(mapping)} issues")
        return mapping

    def migrate_pull_requests(self, stats: MigrationStats, issues: IdentifierMapping) -> IdentifierMapping:
        """Migrate pull requests with their comments and reviews.

        Returns:
            Pull request number -> created pull request
        """
        mapping = IdentifierMapping()
        seen: set[int] = set()
        for pull in _iterate(self._source.pull_request_pages()):
            if _is_duplicate(seen, "PR", pull.number):
                continue
            try:
                outcome = self.pull_request_migrator.migrate(pull, issues)
            except Exception as e:  # noqa: BLE001
                _record_failure(stats, "PR", pull.number, e)
                stats.pull_requests_failed += 1
                continue

            stats.results.append(
                MigrationResult.success(
                    pull.number, outcome.pull_request, comments=outcome.comments, reviews=outcome.reviews
                )
            )
            logger.info(
                f'Migrated PR "{pull.number}" to "{outcome.pull_request.target_id}" '
                f"with {outcome.comments} comments and {outcome.reviews} reviews."
            )
            mapping = mapping.with_entry(pull.number, outcome.pull_request)
            stats.pull_requests_created += 1
            stats.threads_created += outcome.comments + outcome.reviews

        logger.info(f"Migrated {len(mapping)} pull requests")
        return mapping


def _iterate(pages: Iterator[list[T]]) -> Iterator[T]:
    for page in pages:
        yield from page


def _is_duplicate(seen: set[int], kind: str, source_id: int) -> bool:
    """Track source ids of the current stage; paged listings can return an entity twice."""
    if source_id in seen:
        logger.debug(f"Skipping {kind} {source_id}: already listed in this run")
        return True
    seen.add(source_id)
    return False


def _record_failure(stats: MigrationStats, kind: str, source_id: int, error: Exception) -> None:
    if isinstance(error, ENTITY_ERRORS):
        logger.error(f'Failed to migrate {kind} "{source_id}" with next error: "{error}".')
    else:
        logger.exception(f'Failed to migrate {kind} "{source_id}" with unexpected error: "{error}".')
    result = MigrationResult.failure(source_id, str(error))
    stats.results.append(result)
    stats.errors.append(f"{kind} {source_id}: {error}")
