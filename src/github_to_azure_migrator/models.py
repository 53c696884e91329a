"""Data models exchanged between the source, the target and the migrators.

Source entities are normalized, read-only snapshots of what GitHub returned.
The migrators never see PyGithub objects, which keeps them testable with
plain dataclasses.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal


@dataclass(frozen=True)
class SourceUser:
    """Profile of a GitHub user."""

    login: str
    name: str | None = None
    avatar_url: str | None = None
    html_url: str | None = None


@dataclass(frozen=True)
class SourceMilestone:
    number: int
    title: str
    html_url: str
    description: str = ""
    state: Literal["open", "closed"] = "open"
    created_at: datetime | None = None
    creator: str | None = None


@dataclass(frozen=True)
class SourceIssue:
    """An issue as listed by GitHub.

    GitHub lists pull requests through the issues endpoint as well; those
    carry a pull request back-reference and are flagged with
    ``is_pull_request``.
    """

    number: int
    title: str
    html_url: str
    state: Literal["open", "closed"]
    body: str = ""
    created_at: datetime | None = None
    closed_at: datetime | None = None
    author: str | None = None
    assignee: str | None = None
    labels: tuple[str, ...] = ()
    milestone_number: int | None = None
    comment_count: int = 0
    is_pull_request: bool = False


@dataclass(frozen=True)
class SourceComment:
    id: int
    body: str = ""
    author: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class SourceEvent:
    """An issue timeline event. Only events referencing a commit matter."""

    id: int
    event: str
    commit_id: str | None = None


@dataclass(frozen=True)
class SourcePullRequest:
    number: int
    title: str
    html_url: str
    state: Literal["open", "closed"]
    head_ref: str
    base_ref: str
    body: str = ""
    draft: bool = False
    author: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class SourceReview:
    id: int
    body: str = ""
    author: str | None = None
    submitted_at: datetime | None = None


@dataclass(frozen=True)
class SourceReviewComment:
    """A line comment belonging to a pull request review."""

    id: int
    path: str
    body: str = ""
    diff_hunk: str = ""
    author: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class UserDescriptor:
    """Identity of a user in Azure DevOps terms."""

    display_name: str
    unique_name: str
    image_url: str | None = None
    profile_url: str | None = None
    from_alias: bool = False

    def identity(self) -> dict[str, str]:
        """Identity reference as accepted by pull request and thread payloads."""
        ref = {"displayName": self.display_name, "uniqueName": self.unique_name}
        if self.image_url:
            ref["imageUrl"] = self.image_url
        if self.profile_url:
            ref["url"] = self.profile_url
        return ref

    def field_value(self) -> str | dict[str, str]:
        """Value for an identity field of a work item.

        Aliases are target display strings (e.g. "Jane Doe <jane@example.com>")
        which Azure DevOps resolves itself.
        """
        if self.from_alias:
            return self.unique_name
        return self.identity()


@dataclass(frozen=True)
class MappedEntity:
    """Identifier and URL of an entity created in the target."""

    target_id: int
    target_url: str


class IdentifierMapping(Mapping[int, MappedEntity]):
    """Immutable snapshot of source id -> created target entity.

    Snapshots are append-only: ``merged`` returns a new snapshot and refuses
    to overwrite an existing source id, since an entity is migrated at most
    once per run. Iteration follows insertion order.
    """

    _entries: dict[int, MappedEntity]

    def __init__(self, entries: Mapping[int, MappedEntity] | None = None) -> None:
        self._entries = dict(entries or {})

    def __getitem__(self, source_id: int) -> MappedEntity:
        return self._entries[source_id]

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"IdentifierMapping({self._entries!r})"

    def merged(self, entries: Mapping[int, MappedEntity]) -> IdentifierMapping:
        duplicates = self._entries.keys() & entries.keys()
        if duplicates:
            msg = f"Source ids already mapped: {sorted(duplicates)}"
            raise ValueError(msg)
        return IdentifierMapping({**self._entries, **entries})

    def with_entry(self, source_id: int, entity: MappedEntity) -> IdentifierMapping:
        return self.merged({source_id: entity})


@dataclass
class MigrationResult:
    """Outcome of migrating one source entity."""

    source_id: int
    succeeded: bool
    target: MappedEntity | None = None
    error: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, source_id: int, target: MappedEntity, **details: Any) -> MigrationResult:  # noqa: ANN401
        return cls(source_id=source_id, succeeded=True, target=target, details=details)

    @classmethod
    def failure(cls, source_id: int, error: str) -> MigrationResult:
        return cls(source_id=source_id, succeeded=False, error=error)
