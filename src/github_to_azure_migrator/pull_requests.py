"""Migrate GitHub pull requests, their comments and reviews to Azure DevOps."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, Final, NamedTuple

from . import markup
from .references import rewrite_references
from .work_item_builder import format_date

if TYPE_CHECKING:
    import datetime as dt
    from collections.abc import Mapping

    from .models import MappedEntity, SourcePullRequest, SourceReviewComment, UserDescriptor
    from .protocols import SourceSystem, TargetSystem
    from .users import UserResolver

logger: logging.Logger = logging.getLogger(__name__)

PULL_REQUEST_STATUS: Final[dict[str, str]] = {"open": "active", "closed": "completed"}

# Thread and comment enums of the pull request threads API
THREAD_STATUS_ACTIVE: Final[int] = 1
COMMENT_TYPE_TEXT: Final[int] = 1

_HUNK_HEADER: Final[re.Pattern[str]] = re.compile(r"^@@ -(\d+)")


def line_from_diff_hunk(diff_hunk: str | None) -> int:
    """Line number a review comment is anchored to, from its diff hunk.

    Only the hunk header is used: ``@@ -25,7 +25,11 @@`` anchors at line 25,
    the start of the old-file range. The position of the commented line
    inside the hunk is not taken into account.

    Returns:
        The start line, or 1 when there is no hunk or the header is unreadable.
    """
    if not diff_hunk:
        return 1
    match = _HUNK_HEADER.match(diff_hunk.split("\n", 1)[0])
    if not match:
        return 1
    return int(match.group(1))


def _thread(
    content: str,
    author: UserDescriptor | None,
    published: dt.datetime | None,
    context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    comment: dict[str, Any] = {
        "parentCommentId": 0,
        "content": content,
        "commentType": COMMENT_TYPE_TEXT,
    }
    if author:
        comment["author"] = author.identity()
    if published:
        comment["publishedDate"] = format_date(published)

    thread: dict[str, Any] = {"comments": [comment], "status": THREAD_STATUS_ACTIVE}
    if context:
        thread["threadContext"] = context
    return thread


def _file_context(comment: SourceReviewComment) -> dict[str, Any]:
    position = {"line": line_from_diff_hunk(comment.diff_hunk), "offset": 1}
    return {
        "filePath": comment.path,
        "rightFileStart": dict(position),
        "rightFileEnd": dict(position),
    }


class PullRequestMigration(NamedTuple):
    """Result of migrating one pull request."""

    pull_request: MappedEntity
    comments: int
    reviews: int
    """Threads created from reviews, i.e. review bodies plus their line comments."""


class PullRequestMigrator:
    """Creates a pull request per GitHub pull request, plus its discussion threads.

    Pull requests are not linked to the work items of the issues they
    mention; the mentions are only rewritten.
    """

    def __init__(self, source: SourceSystem, target: TargetSystem, users: UserResolver) -> None:
        self._source = source
        self._target = target
        self._users = users

    def migrate(self, pull: SourcePullRequest, issues: Mapping[int, MappedEntity]) -> PullRequestMigration:
        created = self.create_pull_request(pull, issues)
        comments = self.migrate_comments(pull, created, issues)
        reviews = self.migrate_reviews(pull, created, issues)
        return PullRequestMigration(pull_request=created, comments=comments, reviews=reviews)

    def create_pull_request(self, pull: SourcePullRequest, issues: Mapping[int, MappedEntity]) -> MappedEntity:
        """Create the pull request.

        The description field is size-limited: the first chunk of the body
        becomes the description, the rest is posted as the first thread.
        """
        body = rewrite_references(markup.to_html(pull.body), issues, "#", as_link=True)
        description, *overflow = markup.split_chunks(body)
        author = self._users.resolve_optional(pull.author)

        payload: dict[str, Any] = {
            "sourceRefName": f"refs/heads/{pull.head_ref}",
            "targetRefName": f"refs/heads/{pull.base_ref}",
            "title": rewrite_references(pull.title, issues, "GH-", as_link=False),
            "description": description,
            "status": PULL_REQUEST_STATUS[pull.state],
            "isDraft": pull.draft,
        }
        if author:
            payload["createdBy"] = author.identity()
        if pull.created_at:
            payload["creationDate"] = format_date(pull.created_at)

        created = self._target.create_pull_request(payload)
        logger.debug(f"Created pull request {created.target_id} for GitHub PR #{pull.number}")

        if overflow:
            self._target.create_thread(created.target_id, _thread("".join(overflow), author, pull.created_at))
        return created

    def migrate_comments(
        self,
        pull: SourcePullRequest,
        created: MappedEntity,
        issues: Mapping[int, MappedEntity],
    ) -> int:
        """Post each conversation comment as a general thread."""
        count = 0
        for page in self._source.issue_comment_pages(pull.number):
            for comment in page:
                content = rewrite_references(markup.to_html(comment.body), issues, "#", as_link=True)
                author = self._users.resolve_optional(comment.author)
                self._target.create_thread(created.target_id, _thread(content, author, comment.created_at))
                count += 1
        return count

    def migrate_reviews(
        self,
        pull: SourcePullRequest,
        created: MappedEntity,
        issues: Mapping[int, MappedEntity],
    ) -> int:
        """Post review bodies as general threads and line comments as file threads."""
        count = 0
        for page in self._source.review_pages(pull.number):
            for review in page:
                if review.body:
                    content = rewrite_references(markup.to_html(review.body), issues, "#", as_link=True)
                    author = self._users.resolve_optional(review.author)
                    self._target.create_thread(created.target_id, _thread(content, author, review.submitted_at))
                    count += 1

                for comment_page in self._source.review_comment_pages(pull.number, review.id):
                    for comment in comment_page:
                        content = rewrite_references(markup.to_html(comment.body), issues, "#", as_link=True)
                        thread = _thread(
                            content,
                            self._users.resolve_optional(comment.author),
                            comment.created_at,
                            _file_context(comment),
                        )
                        self._target.create_thread(created.target_id, thread)
                        count += 1
        return count
