"""
Pytest configuration and fixtures.

Provides in-memory implementations of the source and target protocols so the
migrators and the orchestrator can be exercised without network access.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, Any

import pytest
from github import GithubException

from github_to_azure_migrator.exceptions import AzureDevOpsError
from github_to_azure_migrator.models import MappedEntity

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from github_to_azure_migrator.models import (
        SourceComment,
        SourceEvent,
        SourceIssue,
        SourceMilestone,
        SourcePullRequest,
        SourceReview,
        SourceReviewComment,
        SourceUser,
    )
    from github_to_azure_migrator.protocols import JsonPatch


class FakeSource:
    """Source system serving fixed data in pages of ``page_size``."""

    def __init__(
        self,
        *,
        milestones: Iterable[SourceMilestone] = (),
        issues: Iterable[SourceIssue] = (),
        pulls: Iterable[SourcePullRequest] = (),
        comments: dict[int, list[SourceComment]] | None = None,
        events: dict[int, list[SourceEvent]] | None = None,
        reviews: dict[int, list[SourceReview]] | None = None,
        review_comments: dict[tuple[int, int], list[SourceReviewComment]] | None = None,
        users: dict[str, SourceUser] | None = None,
        page_size: int = 2,
    ) -> None:
        self.milestones = list(milestones)
        self.issues = list(issues)
        self.pulls = list(pulls)
        self.comments = comments or {}
        self.events = events or {}
        self.reviews = reviews or {}
        self.review_comments = review_comments or {}
        self.users = users or {}
        self.page_size = page_size
        self.user_lookups: list[str] = []

    def _pages(self, items: list[Any]) -> Iterator[list[Any]]:
        for i in range(0, len(items), self.page_size):
            yield items[i : i + self.page_size]

    def milestone_pages(self) -> Iterator[list[SourceMilestone]]:
        return self._pages(self.milestones)

    def issue_pages(self) -> Iterator[list[SourceIssue]]:
        return self._pages(self.issues)

    def issue_comment_pages(self, number: int) -> Iterator[list[SourceComment]]:
        return self._pages(self.comments.get(number, []))

    def issue_event_pages(self, number: int) -> Iterator[list[SourceEvent]]:
        return self._pages(self.events.get(number, []))

    def pull_request_pages(self) -> Iterator[list[SourcePullRequest]]:
        return self._pages(self.pulls)

    def review_pages(self, number: int) -> Iterator[list[SourceReview]]:
        return self._pages(self.reviews.get(number, []))

    def review_comment_pages(self, number: int, review_id: int) -> Iterator[list[SourceReviewComment]]:
        return self._pages(self.review_comments.get((number, review_id), []))

    def get_user(self, login: str) -> SourceUser:
        self.user_lookups.append(login)
        if login not in self.users:
            raise GithubException(404, {"message": "Not Found"}, headers={})
        return self.users[login]


class FakeTarget:
    """Target system recording every write.

    Work items and pull requests whose title is in ``failing_titles`` are
    rejected the way Azure DevOps rejects invalid payloads.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, int]] = []
        self.work_items: dict[int, dict[str, Any]] = {}
        self.pull_requests: dict[int, dict[str, Any]] = {}
        self.threads: dict[int, list[dict[str, Any]]] = defaultdict(list)
        self.commits: dict[str, str] = {}
        self.failing_titles: set[str] = set()
        self._next_id = 100

    @staticmethod
    def fields(operations: JsonPatch) -> dict[str, Any]:
        return {
            op["path"].removeprefix("/fields/"): op["value"]
            for op in operations
            if op["path"].startswith("/fields/")
        }

    @staticmethod
    def relations(operations: JsonPatch) -> list[dict[str, Any]]:
        return [op["value"] for op in operations if op["path"] == "/relations/-"]

    def _new_id(self) -> int:
        new_id = self._next_id
        self._next_id += 1
        return new_id

    def create_work_item(self, work_item_type: str, operations: JsonPatch) -> MappedEntity:
        title = self.fields(operations).get("System.Title")
        if title in self.failing_titles:
            msg = f"TF401320: Rule error for field Title on '{title}'"
            raise AzureDevOpsError(msg, status=400)
        work_item_id = self._new_id()
        self.work_items[work_item_id] = {"type": work_item_type, "operations": operations, "updates": []}
        self.calls.append(("create_work_item", work_item_id))
        return MappedEntity(work_item_id, f"https://dev.azure.com/org/project/_apis/wit/workItems/{work_item_id}")

    def update_work_item(self, work_item_id: int, operations: JsonPatch) -> None:
        self.work_items[work_item_id]["updates"].append(operations)
        self.calls.append(("update_work_item", work_item_id))

    def create_pull_request(self, pull_request: dict[str, Any]) -> MappedEntity:
        if pull_request["title"] in self.failing_titles:
            msg = f"TF401179: An active pull request for '{pull_request['title']}' already exists"
            raise AzureDevOpsError(msg, status=409)
        pull_request_id = self._new_id()
        self.pull_requests[pull_request_id] = pull_request
        self.calls.append(("create_pull_request", pull_request_id))
        return MappedEntity(
            pull_request_id,
            f"https://dev.azure.com/org/project/_apis/git/repositories/repo/pullRequests/{pull_request_id}",
        )

    def create_thread(self, pull_request_id: int, thread: dict[str, Any]) -> None:
        self.threads[pull_request_id].append(thread)
        self.calls.append(("create_thread", pull_request_id))

    def get_commit_url(self, commit_id: str) -> str | None:
        return self.commits.get(commit_id)


@pytest.fixture
def target() -> FakeTarget:
    return FakeTarget()


@pytest.fixture
def source_factory() -> type[FakeSource]:
    return FakeSource
