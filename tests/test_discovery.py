"""Tests for lisa.core.discovery module."""

import pytest

from lisa.core.discovery import complete_element_discovery, read_element_discovery
from lisa.core.models import ElementDiscovery
from lisa.core.state import StateManager
from lisa.lib.errors import INVALID_ID, NO_DISCOVERY, NOT_FOUND, NOT_INITIALIZED, LisaError
from lisa.store.memory import MemoryStore

TS = "2024-01-01T00:00:00.000Z"


def _discovery(element_type, element_id):
    return ElementDiscovery(
        element_type=element_type, element_id=element_id, status="in_progress",
        source="ai_proposed", created=TS, updated=TS,
    )


class TestCompleteElementDiscovery:

    def test_requires_initialized(self):
        with pytest.raises(LisaError) as exc:
            complete_element_discovery(StateManager(MemoryStore()), "milestone", "M1")
        assert exc.value.code == NOT_INITIALIZED

    def test_epic_without_discovery(self, tree, state):
        tree.epic("E1")
        with pytest.raises(LisaError) as exc:
            complete_element_discovery(state, "epic", "E1")
        assert exc.value.code == NO_DISCOVERY

    def test_unknown_epic(self, state):
        with pytest.raises(LisaError) as exc:
            complete_element_discovery(state, "epic", "E9")
        assert exc.value.code == NOT_FOUND

    def test_invalid_milestone_id(self, state):
        with pytest.raises(LisaError) as exc:
            complete_element_discovery(state, "milestone", "milestone-1")
        assert exc.value.code == INVALID_ID

    def test_milestone_without_discovery(self, state):
        with pytest.raises(LisaError) as exc:
            complete_element_discovery(state, "milestone", "M1")
        assert exc.value.code == NO_DISCOVERY

    def test_completes_milestone(self, state):
        state.write_milestone_discovery("M1", _discovery("milestone", "M1"))

        complete_element_discovery(state, "milestone", "M1")

        assert state.read_milestone_discovery("M1").status == "complete"

    def test_completes_epic(self, tree, state):
        epic = tree.epic("E1")
        state.write_epic_discovery("E1", epic.slug, _discovery("epic", "E1"))

        complete_element_discovery(state, "epic", "E1")

        assert state.read_epic_discovery("E1", epic.slug).status == "complete"


class TestReadElementDiscovery:

    def test_unknown_type(self, state):
        with pytest.raises(ValueError):
            read_element_discovery(state, "story", "E1.S1")

    def test_none_when_absent(self, state):
        assert read_element_discovery(state, "milestone", "M2") is None
