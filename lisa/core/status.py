"""
Status derivation.

Epic and milestone status are never stored. They are recomputed from
artifacts and children on every read, with no caching.
"""

import logging
from typing import Optional

from lisa.core.models import (
    DerivedEpicStatus,
    DerivedMilestoneStatus,
    Epic,
    Milestone,
    Story,
)
from lisa.lib.constants import ACTIVE_STORY_STATUSES
from lisa.lib.validate import ValidationError

logger = logging.getLogger(__name__)

# Epic statuses that count towards an in-progress milestone.
# ready and drafting are folded in with in_progress at milestone level.
MILESTONE_ACTIVE_EPIC_STATUSES = (
    DerivedEpicStatus.IN_PROGRESS,
    DerivedEpicStatus.READY,
    DerivedEpicStatus.DRAFTING,
)


def derive_epic_status(epic: Epic, stories: Optional[list[Story]]) -> DerivedEpicStatus:
    """Derive epic status from its artifacts and stories.

    First match wins:
      1. deferred flag set            -> deferred
      2. no PRD, no arch, no stories  -> planned
      3. PRD or arch, no stories      -> drafting
      4. every story done             -> done
      5. any story started            -> in_progress
      6. otherwise                    -> ready
    """
    if epic.deferred:
        return DerivedEpicStatus.DEFERRED

    has_stories = bool(stories)

    if not epic.has_prd and not epic.has_architecture and not has_stories:
        return DerivedEpicStatus.PLANNED

    if not has_stories:
        return DerivedEpicStatus.DRAFTING

    statuses = [s.status for s in stories]

    if all(s == "done" for s in statuses):
        return DerivedEpicStatus.DONE

    if any(s in ACTIVE_STORY_STATUSES for s in statuses):
        return DerivedEpicStatus.IN_PROGRESS

    return DerivedEpicStatus.READY


def aggregate_milestone_status(epic_statuses: list[DerivedEpicStatus]) -> DerivedMilestoneStatus:
    """Fold derived epic statuses into a milestone status."""
    if epic_statuses and all(s == DerivedEpicStatus.DONE for s in epic_statuses):
        return DerivedMilestoneStatus.DONE

    if any(s in MILESTONE_ACTIVE_EPIC_STATUSES for s in epic_statuses):
        return DerivedMilestoneStatus.IN_PROGRESS

    return DerivedMilestoneStatus.PLANNED


def get_epic_status(state, epic_id: str, slug: str) -> Optional[DerivedEpicStatus]:
    """Read an epic and its stories and derive its status. None if epic.json is absent."""
    epic = state.read_epic(epic_id, slug)
    if epic is None:
        return None
    stories_file = state.read_stories(epic_id, slug)
    return derive_epic_status(epic, stories_file.stories if stories_file else None)


def derive_milestone_status(state, milestone: Milestone) -> DerivedMilestoneStatus:
    """Derive milestone status from the derived status of each listed epic.

    Absent children are excluded, not treated as blocking: an epic id with no
    directory, no epic.json, or an unreadable document is skipped.
    """
    if not milestone.epics:
        return DerivedMilestoneStatus.PLANNED

    epic_dirs = state.list_epic_dirs()
    epic_statuses = []

    for epic_id in milestone.epics:
        slug = state.resolve_epic_slug(epic_id, epic_dirs)
        if slug is None:
            logger.debug(f"Milestone {milestone.id}: epic {epic_id} has no directory, skipped")
            continue

        try:
            status = get_epic_status(state, epic_id, slug)
        except (ValidationError, ValueError) as e:
            logger.warning(f"Milestone {milestone.id}: epic {epic_id} unreadable, skipped: {e}")
            continue

        if status is None:
            logger.debug(f"Milestone {milestone.id}: epic {epic_id} has no epic.json, skipped")
            continue
        epic_statuses.append(status)

    return aggregate_milestone_status(epic_statuses)
