"""Element discovery: scoping notes attached to milestones and epics."""

import logging
from typing import Optional

from lisa.core.models import ElementDiscovery
from lisa.lib.errors import INVALID_ID, NO_DISCOVERY, NOT_FOUND, NOT_INITIALIZED, LisaError
from lisa.lib.ids import is_milestone_id

logger = logging.getLogger(__name__)

ELEMENT_TYPES = ("milestone", "epic")


def read_element_discovery(state, element_type: str, element_id: str) -> Optional[ElementDiscovery]:
    """Discovery document for a milestone or epic, or None if never started."""
    if element_type == "epic":
        slug = state.resolve_epic_slug(element_id)
        if slug is None:
            raise LisaError(f"Epic not found: {element_id}", NOT_FOUND)
        return state.read_epic_discovery(element_id, slug)

    if element_type == "milestone":
        if not is_milestone_id(element_id):
            raise LisaError(f"Invalid milestone ID: {element_id}", INVALID_ID)
        return state.read_milestone_discovery(element_id)

    raise ValueError(f"Unknown element type '{element_type}' (expected one of {', '.join(ELEMENT_TYPES)})")


def complete_element_discovery(state, element_type: str, element_id: str) -> ElementDiscovery:
    """Mark a milestone's or epic's discovery complete and persist it."""
    if not state.is_initialized():
        raise LisaError("No lisa project found.", NOT_INITIALIZED)

    discovery = read_element_discovery(state, element_type, element_id)
    if discovery is None:
        raise LisaError(f"No discovery found for {element_type} {element_id}", NO_DISCOVERY)

    discovery.status = "complete"
    if element_type == "epic":
        state.write_epic_discovery(element_id, state.resolve_epic_slug(element_id), discovery)
    else:
        state.write_milestone_discovery(element_id, discovery)

    logger.info(f"Discovery for {element_type} {element_id} marked complete")
    return discovery
