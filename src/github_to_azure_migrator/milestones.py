"""Migrate GitHub milestones to Azure DevOps epics."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from . import markup
from .work_item_builder import EPIC_TYPE, build_epic_operations

if TYPE_CHECKING:
    from .models import MappedEntity, SourceMilestone
    from .protocols import TargetSystem
    from .users import UserResolver

logger: logging.Logger = logging.getLogger(__name__)


class MilestoneMigrator:
    """Creates one epic per milestone."""

    def __init__(self, target: TargetSystem, users: UserResolver) -> None:
        self._target = target
        self._users = users

    def migrate(self, milestone: SourceMilestone) -> MappedEntity:
        """Create the epic for ``milestone`` and return its id and URL."""
        operations = build_epic_operations(
            milestone,
            description_html=markup.to_html(milestone.description),
            creator=self._users.resolve_optional(milestone.creator),
        )
        epic = self._target.create_work_item(EPIC_TYPE, operations)
        logger.debug(f"Created epic {epic.target_id} for milestone {milestone.number}: {milestone.title}")
        return epic
