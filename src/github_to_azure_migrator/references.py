"""Rewrite GitHub issue mentions into references to migrated work items."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .models import MappedEntity


def rewrite_references(
    text: str,
    mapping: Mapping[int, MappedEntity],
    prefix: str = "#",
    *,
    as_link: bool = True,
) -> str:
    """Replace ``{prefix}{source_id}`` mentions of migrated entities.

    A mention must end at a word boundary, so with ids 1 and 12 mapped,
    "#12" is never read as "#1" followed by "2". The text is scanned once:
    replacement output is not scanned again, so a target id that happens to
    equal another source id is not substituted twice.

    Args:
        text: Text (usually HTML) to rewrite
        mapping: Source id -> migrated entity, only entities already created
        prefix: Mention prefix, "#" for issue mentions, "GH-" in PR titles
        as_link: Render as an HTML link to the work item instead of a bare "#id"

    Returns:
        The rewritten text. Mentions of unmapped ids are left untouched.
    """
    if not mapping or not text:
        return text

    targets = {str(source_id): entity for source_id, entity in mapping.items()}
    pattern = re.compile(re.escape(prefix) + r"(\d+)\b")

    def _replace(match: re.Match[str]) -> str:
        entity = targets.get(match.group(1))
        if entity is None:
            return match.group(0)
        if as_link:
            return f'<a href="{entity.target_url}">#{entity.target_id}</a>'
        return f"#{entity.target_id}"

    return pattern.sub(_replace, text)
