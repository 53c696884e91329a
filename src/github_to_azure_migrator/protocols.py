"""Protocols defining the contracts for source and target systems.

The migration architecture separates concerns into three components:

1. SourceSystem: Reads data from GitHub, page by page
2. TargetSystem: Creates work items, pull requests and threads in Azure DevOps
3. Migrators + Migrator orchestrator: Decide what to create, in which order,
   and keep the source -> target identifier mappings

This separation allows:
- Testing the pipeline with in-memory fakes
- Keeping API quirks (pagination, auth, URL schemes) out of the migration logic
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .models import (
        MappedEntity,
        SourceComment,
        SourceEvent,
        SourceIssue,
        SourceMilestone,
        SourcePullRequest,
        SourceReview,
        SourceReviewComment,
        SourceUser,
    )

JsonPatch = list[dict[str, Any]]


class SourceSystem(Protocol):
    """Protocol for reading data from the source system.

    Every listing yields pages (lists) of fixed size, in the order the source
    returns them, and stops after the first empty page. The migrators process
    one page completely before the next one is requested.
    """

    def milestone_pages(self) -> Iterator[list[SourceMilestone]]:
        """Yield pages of all milestones."""
        ...

    def issue_pages(self) -> Iterator[list[SourceIssue]]:
        """Yield pages of all issues, oldest first.

        Pull requests show up here as well, flagged with ``is_pull_request``.
        """
        ...

    def issue_comment_pages(self, number: int) -> Iterator[list[SourceComment]]:
        """Yield pages of comments of an issue or pull request, in creation order."""
        ...

    def issue_event_pages(self, number: int) -> Iterator[list[SourceEvent]]:
        """Yield pages of timeline events of an issue."""
        ...

    def pull_request_pages(self) -> Iterator[list[SourcePullRequest]]:
        """Yield pages of all pull requests, oldest first."""
        ...

    def review_pages(self, number: int) -> Iterator[list[SourceReview]]:
        """Yield pages of reviews of a pull request."""
        ...

    def review_comment_pages(self, number: int, review_id: int) -> Iterator[list[SourceReviewComment]]:
        """Yield pages of line comments of a single review."""
        ...

    def get_user(self, login: str) -> SourceUser:
        """Get a user profile.

        Raises:
            Exception: Any lookup failure; callers degrade gracefully
        """
        ...


class TargetSystem(Protocol):
    """Protocol for creating data in the target system.

    Every call blocks until the target confirmed the write, because later
    steps need the identifier returned by the create calls.
    """

    def create_work_item(self, work_item_type: str, operations: JsonPatch) -> MappedEntity:
        """Create a work item from JSON patch operations.

        Raises:
            AzureDevOpsError: If the target rejects the work item
        """
        ...

    def update_work_item(self, work_item_id: int, operations: JsonPatch) -> None:
        """Apply JSON patch operations to an existing work item."""
        ...

    def create_pull_request(self, pull_request: dict[str, Any]) -> MappedEntity:
        """Create a pull request and return its id and URL."""
        ...

    def create_thread(self, pull_request_id: int, thread: dict[str, Any]) -> None:
        """Create a discussion thread on a pull request."""
        ...

    def get_commit_url(self, commit_id: str) -> str | None:
        """Return the target API URL of a commit, or None if it does not exist there."""
        ...
