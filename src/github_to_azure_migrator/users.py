"""Resolve GitHub handles to Azure DevOps identities."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from .models import UserDescriptor

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .protocols import SourceSystem

logger: logging.Logger = logging.getLogger(__name__)


def load_user_map(path: str | Path | None) -> dict[str, str]:
    """Load the GitHub handle -> Azure DevOps user alias table from a CSV file.

    The first column is the GitHub handle, the second the target display
    string (e.g. "Jane Doe <jane@example.com>"). Both are trimmed. Rows with
    fewer than two columns or an empty alias are ignored.

    Returns:
        The alias table; empty if no path was given or the file does not exist.
    """
    if not path:
        return {}

    csv_path = Path(path)
    if not csv_path.is_file():
        logger.warning(f"User map file {csv_path} not found, continuing without aliases")
        return {}

    aliases: dict[str, str] = {}
    with csv_path.open(newline="", encoding="utf-8") as f:
        for row in csv.reader(f):
            if len(row) < 2:
                continue
            handle, alias = row[0].strip(), row[1].strip()
            if handle and alias:
                aliases[handle] = alias

    logger.info(f"Loaded {len(aliases)} user aliases from {csv_path}")
    return aliases


class UserCache:
    """Per-run cache of resolved users, keyed by GitHub handle."""

    _users: dict[str, UserDescriptor]

    def __init__(self) -> None:
        self._users = {}

    def get(self, handle: str) -> UserDescriptor | None:
        return self._users.get(handle)

    def remember(self, handle: str, user: UserDescriptor) -> UserDescriptor:
        """Store ``user`` unless the handle is already cached; return the cached value."""
        return self._users.setdefault(handle, user)

    def __contains__(self, handle: object) -> bool:
        return handle in self._users

    def __len__(self) -> int:
        return len(self._users)


class UserResolver:
    """Maps GitHub handles to Azure DevOps user descriptors.

    Lookup order is the alias table, then the GitHub profile, then the bare
    handle. Resolution never fails.
    """

    def __init__(
        self,
        source: SourceSystem,
        aliases: Mapping[str, str] | None = None,
        cache: UserCache | None = None,
    ) -> None:
        self._source = source
        self._aliases = {handle.strip(): alias.strip() for handle, alias in (aliases or {}).items()}
        self._cache = cache if cache is not None else UserCache()

    def resolve(self, handle: str) -> UserDescriptor:
        alias = self._aliases.get(handle)
        if alias:
            return UserDescriptor(display_name=alias, unique_name=alias, from_alias=True)

        cached = self._cache.get(handle)
        if cached is not None:
            return cached

        return self._cache.remember(handle, self._from_profile(handle))

    def resolve_optional(self, handle: str | None) -> UserDescriptor | None:
        """Resolve a handle that may be absent (e.g. no assignee)."""
        if not handle:
            return None
        return self.resolve(handle)

    def _from_profile(self, handle: str) -> UserDescriptor:
        try:
            profile = self._source.get_user(handle)
        except Exception as e:  # noqa: BLE001
            logger.debug(f"Could not look up GitHub user {handle}: {e}")
            return UserDescriptor(display_name=handle, unique_name=handle)

        return UserDescriptor(
            display_name=profile.name or handle,
            unique_name=profile.login or handle,
            image_url=profile.avatar_url,
            profile_url=profile.html_url,
        )
