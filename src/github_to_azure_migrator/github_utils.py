"""GitHub access through PyGithub: client setup, paging and conversion to source models."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final, TypeVar
from urllib.parse import urlparse

from github import Auth, Github, GithubException, UnknownObjectException

from .exceptions import MigrationError
from .models import (
    SourceComment,
    SourceEvent,
    SourceIssue,
    SourceMilestone,
    SourcePullRequest,
    SourceReview,
    SourceReviewComment,
    SourceUser,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from github.Issue import Issue
    from github.IssueComment import IssueComment
    from github.IssueEvent import IssueEvent
    from github.Milestone import Milestone
    from github.NamedUser import NamedUser
    from github.PaginatedList import PaginatedList
    from github.PullRequest import PullRequest
    from github.PullRequestComment import PullRequestComment
    from github.PullRequestReview import PullRequestReview
    from github.Repository import Repository

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

PAGE_SIZE: Final[int] = 10
PUBLIC_API_HOST: Final[str] = "api.github.com"

T = TypeVar("T")
S = TypeVar("S")


def get_client(token: str | None = None, host: str | None = None) -> Github:
    """Get a GitHub client using the token.

    Args:
        token: Personal access token; anonymous access if None
        host: API URL of a GitHub Enterprise server. The public API is used
            when empty or pointing at api.github.com.
    """
    auth = Auth.Token(token) if token else None
    if host and urlparse(host).hostname != PUBLIC_API_HOST:
        return Github(auth=auth, base_url=host.rstrip("/"), per_page=PAGE_SIZE)
    return Github(auth=auth, per_page=PAGE_SIZE)


def get_repo(client: Github, repo_path: str) -> Repository:
    try:
        return client.get_repo(repo_path)
    except UnknownObjectException as e:
        msg = f"GitHub repository {repo_path} not found"
        raise MigrationError(msg) from e
    except GithubException as e:
        msg = f"Error accessing GitHub repository {repo_path}: {e}"
        raise MigrationError(msg) from e


def iter_pages(paginated: PaginatedList[T], convert: Callable[[T], S]) -> Iterator[list[S]]:
    """Fetch a listing one page at a time until GitHub returns an empty page."""
    page = 0
    while True:
        items = paginated.get_page(page)
        if not items:
            return
        yield [convert(item) for item in items]
        page += 1


def _unchanged(item: T) -> T:
    return item


def _login(user: NamedUser | None) -> str | None:
    return user.login if user is not None else None


def to_source_user(user: NamedUser) -> SourceUser:
    return SourceUser(login=user.login, name=user.name, avatar_url=user.avatar_url, html_url=user.html_url)


def to_source_issue(issue: Issue) -> SourceIssue:
    return SourceIssue(
        number=issue.number,
        title=issue.title,
        html_url=issue.html_url,
        state="closed" if issue.state == "closed" else "open",
        body=issue.body or "",
        created_at=issue.created_at,
        closed_at=issue.closed_at,
        author=_login(issue.user),
        assignee=_login(issue.assignee),
        labels=tuple(label.name for label in issue.labels),
        milestone_number=issue.milestone.number if issue.milestone is not None else None,
        comment_count=issue.comments,
        is_pull_request=issue.pull_request is not None,
    )


def to_source_comment(comment: IssueComment) -> SourceComment:
    return SourceComment(
        id=comment.id,
        body=comment.body or "",
        author=_login(comment.user),
        created_at=comment.created_at,
    )


def to_source_event(event: IssueEvent) -> SourceEvent:
    return SourceEvent(id=event.id, event=event.event, commit_id=event.commit_id)


def to_source_pull_request(pull: PullRequest) -> SourcePullRequest:
    return SourcePullRequest(
        number=pull.number,
        title=pull.title,
        html_url=pull.html_url,
        state="closed" if pull.state == "closed" else "open",
        head_ref=pull.head.ref,
        base_ref=pull.base.ref,
        body=pull.body or "",
        draft=bool(pull.draft),
        author=_login(pull.user),
        created_at=pull.created_at,
    )


def to_source_review(review: PullRequestReview) -> SourceReview:
    return SourceReview(
        id=review.id,
        body=review.body or "",
        author=_login(review.user),
        submitted_at=review.submitted_at,
    )


def to_source_review_comment(comment: PullRequestComment) -> SourceReviewComment:
    return SourceReviewComment(
        id=comment.id,
        path=comment.path,
        body=comment.body or "",
        diff_hunk=comment.diff_hunk or "",
        author=_login(comment.user),
        created_at=comment.created_at,
    )


class GitHubSource:
    """Read-only access to one GitHub repository, page by page.

    The issues and pull requests of the page being migrated are kept so that
    their comments, events and reviews can be listed without fetching them
    again. Only the current page is held.
    """

    def __init__(self, repo: Repository, client: Github) -> None:
        self._repo = repo
        self._client = client
        self._issues: dict[int, Issue] = {}
        self._pulls: dict[int, PullRequest] = {}

    def milestone_pages(self) -> Iterator[list[SourceMilestone]]:
        return iter_pages(self._repo.get_milestones(state="all"), self._to_source_milestone)

    def issue_pages(self) -> Iterator[list[SourceIssue]]:
        paginated = self._repo.get_issues(state="all", sort="created", direction="asc")
        for page in iter_pages(paginated, _unchanged):
            self._issues = {issue.number: issue for issue in page}
            yield [to_source_issue(issue) for issue in page]
        self._issues = {}

    def issue_comment_pages(self, number: int) -> Iterator[list[SourceComment]]:
        if number in self._pulls:
            return iter_pages(self._pulls[number].get_issue_comments(), to_source_comment)
        return iter_pages(self._issue(number).get_comments(), to_source_comment)

    def issue_event_pages(self, number: int) -> Iterator[list[SourceEvent]]:
        return iter_pages(self._issue(number).get_events(), to_source_event)

    def pull_request_pages(self) -> Iterator[list[SourcePullRequest]]:
        paginated = self._repo.get_pulls(state="all", sort="created", direction="asc")
        for page in iter_pages(paginated, _unchanged):
            self._pulls = {pull.number: pull for pull in page}
            yield [to_source_pull_request(pull) for pull in page]
        self._pulls = {}

    def review_pages(self, number: int) -> Iterator[list[SourceReview]]:
        return iter_pages(self._pull(number).get_reviews(), to_source_review)

    def review_comment_pages(self, number: int, review_id: int) -> Iterator[list[SourceReviewComment]]:
        return iter_pages(self._pull(number).get_single_review_comments(review_id), to_source_review_comment)

    def get_user(self, login: str) -> SourceUser:
        return to_source_user(self._client.get_user(login))

    def _to_source_milestone(self, milestone: Milestone) -> SourceMilestone:
        return SourceMilestone(
            number=milestone.number,
            title=milestone.title,
            html_url=f"{self._repo.html_url}/milestone/{milestone.number}",
            description=milestone.description or "",
            state="closed" if milestone.state == "closed" else "open",
            created_at=milestone.created_at,
            creator=_login(milestone.creator),
        )

    def _issue(self, number: int) -> Issue:
        if number not in self._issues:
            self._issues[number] = self._repo.get_issue(number)
        return self._issues[number]

    def _pull(self, number: int) -> PullRequest:
        if number not in self._pulls:
            self._pulls[number] = self._repo.get_pull(number)
        return self._pulls[number]
