"""Shared fixtures: planning trees built in a MemoryStore or on disk."""

import pytest

from lisa.core.models import (
    ArtifactMeta,
    Epic,
    EpicArtifacts,
    Milestone,
    MilestoneIndex,
    StoriesArtifact,
    StoriesFile,
    Story,
)
from lisa.core.state import StateManager
from lisa.store.filesystem import FileSystemStore
from lisa.store.memory import MemoryStore

TS = "2024-01-01T00:00:00.000Z"


def make_epic(epic_id="E1", slug=None, milestone="M1", prd=False, architecture=False,
              deferred=False, dependencies=(), name=None) -> Epic:
    return Epic(
        id=epic_id,
        slug=slug or f"epic-{epic_id.lower()}",
        name=name or f"Epic {epic_id}",
        description=f"Description of {epic_id}",
        milestone=milestone,
        created=TS,
        updated=TS,
        artifacts=EpicArtifacts(
            prd=ArtifactMeta(status="complete" if prd else "pending"),
            architecture=ArtifactMeta(status="complete" if architecture else "pending"),
            stories=StoriesArtifact(status="pending"),
        ),
        deferred=deferred,
        dependencies=list(dependencies),
    )


def make_story(story_id, status="todo", requirements=(), dependencies=(), title=None) -> Story:
    return Story(
        id=story_id,
        title=title or f"Story {story_id}",
        description=f"Do {story_id}",
        type="feature",
        status=status,
        requirements=list(requirements),
        dependencies=list(dependencies),
    )


class TreeBuilder:
    """Writes milestones, epics, PRDs and stories through a StateManager."""

    def __init__(self, state: StateManager):
        self.state = state

    def milestone(self, milestone_id="M1", epics=(), name=None) -> Milestone:
        index = self.state.read_milestone_index() or MilestoneIndex()
        milestone = Milestone(
            id=milestone_id,
            slug=f"milestone-{milestone_id.lower()}",
            name=name or f"Milestone {milestone_id}",
            description=f"Description of {milestone_id}",
            order=len(index.milestones) + 1,
            created=TS,
            updated=TS,
            epics=list(epics),
        )
        index.milestones.append(milestone)
        self.state.write_milestone_index(index)
        return milestone

    def epic(self, epic_id="E1", prd_text=None, architecture_text=None, stories=None, **kwargs) -> Epic:
        kwargs.setdefault("prd", prd_text is not None)
        kwargs.setdefault("architecture", architecture_text is not None)
        epic = make_epic(epic_id, **kwargs)
        self.state.create_epic_dir(epic.id, epic.slug)
        self.state.write_epic(epic)
        if prd_text is not None:
            self.state.write_prd(epic.id, epic.slug, prd_text)
        if architecture_text is not None:
            self.state.write_architecture(epic.id, epic.slug, architecture_text)
        if stories is not None:
            self.state.write_stories(epic.id, epic.slug, StoriesFile(epic_id=epic.id, stories=list(stories)))
        return epic


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def state(store):
    """Initialized tree in memory."""
    manager = StateManager(store)
    manager.initialize("Test Project")
    return manager


@pytest.fixture
def tree(state):
    return TreeBuilder(state)


@pytest.fixture
def fs_state(tmp_path):
    """Initialized tree on disk under tmp_path/.lisa."""
    manager = StateManager(FileSystemStore(tmp_path))
    manager.initialize("Disk Project")
    return manager


@pytest.fixture
def fs_tree(fs_state):
    return TreeBuilder(fs_state)
