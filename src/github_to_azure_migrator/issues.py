"""Migrate GitHub issues and their comments to Azure DevOps work items."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, NamedTuple

from . import markup
from .exceptions import MigrationError
from .references import rewrite_references
from .work_item_builder import (
    ARTIFACT_LINK,
    PARENT_LINK,
    build_close_operations,
    build_history_operations,
    build_issue_operations,
    classify_issue,
    commit_artifact_uri,
    relation_operation,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .models import MappedEntity, SourceComment, SourceIssue
    from .protocols import JsonPatch, SourceSystem, TargetSystem
    from .users import UserResolver

logger: logging.Logger = logging.getLogger(__name__)


class IssueMigration(NamedTuple):
    """Result of migrating one issue."""

    work_item: MappedEntity
    """Created work item."""
    work_item_type: str
    comments: int
    """Number of comments added to the work item history."""


class IssueMigrator:
    """Creates a Bug or User Story per issue, then replays its comments.

    Args:
        source: Source system, used for comments and timeline events
        target: Target system
        users: User resolver shared by the whole run
        link_github_issue: Add an artifact link back to the GitHub issue.
            Requires the GitHub repository to be connected to Azure Boards.
    """

    def __init__(
        self,
        source: SourceSystem,
        target: TargetSystem,
        users: UserResolver,
        *,
        link_github_issue: bool = False,
    ) -> None:
        self._source = source
        self._target = target
        self._users = users
        self._link_github_issue = link_github_issue

    def migrate(
        self,
        issue: SourceIssue,
        milestones: Mapping[int, MappedEntity],
        issues: Mapping[int, MappedEntity],
    ) -> IssueMigration:
        """Migrate one issue.

        Args:
            issue: The issue to migrate
            milestones: Milestones migrated so far, for the parent link
            issues: Issues migrated before this one, for "#123" mentions

        Returns:
            IssueMigration with the created work item and the comment count
        """
        work_item_type, tags = classify_issue(issue.labels)
        author = self._users.resolve_optional(issue.author)

        description = rewrite_references(markup.to_html(issue.body), issues, "#", as_link=True)
        operations = build_issue_operations(
            issue,
            description_html=description,
            tags=tags,
            author=author,
            assignee=self._users.resolve_optional(issue.assignee),
        )
        operations.extend(self._relations(issue, milestones))

        work_item = self._target.create_work_item(work_item_type, operations)
        logger.debug(f"Created {work_item_type} {work_item.target_id} for issue #{issue.number}")

        comments = 0
        if issue.comment_count > 0:
            comments = self.migrate_comments(issue, work_item, issues)
        elif issue.state == "closed":
            self._close(issue, work_item)

        return IssueMigration(work_item=work_item, work_item_type=work_item_type, comments=comments)

    def migrate_comments(
        self,
        issue: SourceIssue,
        work_item: MappedEntity,
        issues: Mapping[int, MappedEntity],
    ) -> int:
        """Replay issue comments as work item history, in source order.

        A closed issue is closed exactly once: right before the first comment
        written after it was closed, or after the last comment if none was.

        Returns:
            Number of comments migrated
        """
        close_pending = issue.state == "closed"
        count = 0
        for page in self._source.issue_comment_pages(issue.number):
            for comment in page:
                if close_pending and _created_after_close(comment, issue):
                    self._close(issue, work_item)
                    close_pending = False

                text = rewrite_references(markup.to_html(comment.body), issues, "#", as_link=True)
                operations = build_history_operations(
                    text,
                    self._users.resolve_optional(comment.author),
                    comment.created_at,
                )
                self._target.update_work_item(work_item.target_id, operations)
                count += 1

        if close_pending:
            self._close(issue, work_item)
        return count

    def _close(self, issue: SourceIssue, work_item: MappedEntity) -> None:
        operations = build_close_operations(issue, self._users.resolve_optional(issue.author))
        self._target.update_work_item(work_item.target_id, operations)
        logger.debug(f"Closed work item {work_item.target_id} (issue #{issue.number})")

    def _relations(self, issue: SourceIssue, milestones: Mapping[int, MappedEntity]) -> JsonPatch:
        relations: JsonPatch = []

        if issue.milestone_number is not None and issue.milestone_number in milestones:
            epic = milestones[issue.milestone_number]
            relations.append(relation_operation(PARENT_LINK, epic.target_url, "Parent"))

        if self._link_github_issue:
            relations.append(relation_operation(ARTIFACT_LINK, issue.html_url, "GitHub Issue"))

        relations.extend(
            relation_operation(ARTIFACT_LINK, uri, "Fixed in Commit") for uri in self.referenced_commits(issue)
        )
        return relations

    def referenced_commits(self, issue: SourceIssue) -> list[str]:
        """Artifact URIs of commits referenced by the issue timeline that exist in the target.

        Commits that were never pushed to the target repository are skipped.
        """
        uris: list[str] = []
        for page in self._source.issue_event_pages(issue.number):
            for event in page:
                if not event.commit_id:
                    continue
                try:
                    commit_url = self._target.get_commit_url(event.commit_id)
                    if commit_url is None:
                        logger.debug(f"Commit {event.commit_id} of issue #{issue.number} not found in target")
                        continue
                    uris.append(commit_artifact_uri(commit_url))
                except (MigrationError, ValueError) as e:
                    logger.debug(f"Skipping commit {event.commit_id} of issue #{issue.number}: {e}")
        return uris


def _created_after_close(comment: SourceComment, issue: SourceIssue) -> bool:
    if issue.closed_at is None or comment.created_at is None:
        return False
    return comment.created_at > issue.closed_at
