"""Build Azure DevOps work item JSON patch documents from GitHub data."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final
from urllib.parse import urlparse

if TYPE_CHECKING:
    import datetime as dt
    from collections.abc import Iterable, Mapping

    from .models import SourceIssue, SourceMilestone, UserDescriptor
    from .protocols import JsonPatch

PARENT_LINK: Final[str] = "System.LinkTypes.Hierarchy-Reverse"
ARTIFACT_LINK: Final[str] = "ArtifactLink"

BUG_LABEL: Final[str] = "bug"
BUG_TYPE: Final[str] = "Bug"
USER_STORY_TYPE: Final[str] = "User Story"
EPIC_TYPE: Final[str] = "Epic"

TAG_SEPARATOR: Final[str] = "; "


def format_date(value: dt.datetime | None) -> str | None:
    """Format a timestamp the way the work item API expects it (ISO 8601)."""
    if value is None:
        return None
    return value.isoformat().replace("+00:00", "Z")


def field_operations(fields: Mapping[str, Any]) -> JsonPatch:
    """Turn a field mapping into "add" operations, skipping empty values."""
    return [{"op": "add", "path": f"/fields/{name}", "value": value} for name, value in fields.items() if value]


def relation_operation(rel: str, url: str, name: str) -> dict[str, Any]:
    return {
        "op": "add",
        "path": "/relations/-",
        "value": {"rel": rel, "url": url, "attributes": {"name": name}},
    }


def user_field(user: UserDescriptor | None) -> str | dict[str, str] | None:
    return user.field_value() if user else None


def classify_issue(labels: Iterable[str]) -> tuple[str, list[str]]:
    """Determine the work item type of an issue and the tags to carry over.

    Returns:
        ("Bug", tags without any "bug" label) if a label equals "bug" ignoring
        case, otherwise ("User Story", all tags).
    """
    tags = [label.strip() for label in labels if label.strip()]
    remaining = [tag for tag in tags if tag.lower() != BUG_LABEL]
    if len(remaining) != len(tags):
        return BUG_TYPE, remaining
    return USER_STORY_TYPE, tags


def milestone_footer(milestone: SourceMilestone) -> str:
    return (
        f'\n\n<p>Milestone migrated from Github: <a href="{milestone.html_url}">'
        f"{milestone.number}: {milestone.title}</a></p>"
    )


def issue_footer(issue: SourceIssue) -> str:
    return f'\n\n<div>Issue migrated from github <a href="{issue.html_url}">#{issue.number}</a></div>'


def build_epic_operations(
    milestone: SourceMilestone,
    *,
    description_html: str,
    creator: UserDescriptor | None,
) -> JsonPatch:
    return field_operations(
        {
            "System.Title": milestone.title,
            "System.CreatedDate": format_date(milestone.created_at),
            "System.CreatedBy": user_field(creator),
            "System.State": "New",
            "System.Description": description_html + milestone_footer(milestone),
        }
    )


def build_issue_operations(
    issue: SourceIssue,
    *,
    description_html: str,
    tags: list[str],
    author: UserDescriptor | None,
    assignee: UserDescriptor | None,
) -> JsonPatch:
    """Build field operations for a new issue work item.

    All date fields are backfilled from the issue creation date; Azure DevOps
    only accepts them when the create call bypasses rules.
    """
    created = format_date(issue.created_at)
    return field_operations(
        {
            "System.Title": issue.title,
            "System.CreatedDate": created,
            "System.ChangedDate": created,
            "Microsoft.VSTS.Common.StateChangeDate": created,
            "System.AuthorizedDate": created,
            "System.CreatedBy": user_field(author),
            "System.AssignedTo": user_field(assignee),
            "System.Description": description_html + issue_footer(issue),
            "System.Tags": TAG_SEPARATOR.join(tags),
        }
    )


def build_close_operations(issue: SourceIssue, author: UserDescriptor | None) -> JsonPatch:
    """Close transition for an issue work item.

    GitHub does not report who closed an issue in the listing, so the
    issue author is used.
    """
    return field_operations(
        {
            "System.State": "Closed",
            "System.ChangedDate": format_date(issue.closed_at),
            "System.ChangedBy": user_field(author),
        }
    )


def build_history_operations(
    text: str,
    author: UserDescriptor | None,
    created_at: dt.datetime | None,
) -> JsonPatch:
    return field_operations(
        {
            "System.History": text,
            "System.ChangedBy": user_field(author),
            "System.ChangedDate": format_date(created_at),
        }
    )


def commit_artifact_uri(commit_url: str) -> str:
    """Build the artifact link URI of a commit from its REST API URL.

    The API URL has the form
    ``https://dev.azure.com/{org}/{project}/_apis/git/repositories/{repo}/commits/{hash}``;
    segments 1, 5 and 7 of its path are the project, repository and commit.
    """
    parts = urlparse(commit_url).path.lstrip("/").split("/")
    if len(parts) < 8:
        msg = f"Unexpected commit URL: {commit_url}"
        raise ValueError(msg)
    return f"vstfs:///Git/Commit/{parts[1]}/{parts[5]}/{parts[7]}"
