"""
Status reporting: project overview and story board.

Both views are rebuilt from the store on every call. Epic and milestone
statuses come from status derivation, never from stored fields.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from lisa.core.models import DerivedEpicStatus, DerivedMilestoneStatus, Project, Story
from lisa.core.status import derive_milestone_status, get_epic_status
from lisa.lib.constants import STORY_STATUSES
from lisa.lib.errors import NOT_FOUND, NOT_INITIALIZED, LisaError
from lisa.lib.ids import split_epic_dir

logger = logging.getLogger(__name__)


@dataclass
class MilestoneProgress:
    id: str
    name: str
    status: DerivedMilestoneStatus
    total_stories: int = 0
    completed_stories: int = 0

    @property
    def progress(self) -> float:
        return self.completed_stories / self.total_stories if self.total_stories else 0


@dataclass
class EpicSummary:
    id: str
    name: str
    status: DerivedEpicStatus


@dataclass
class Overview:
    project: Project
    milestones: list[MilestoneProgress] = field(default_factory=list)
    epics: list[EpicSummary] = field(default_factory=list)
    stuck_count: int = 0
    feedback_count: int = 0
    has_blocked_stories: bool = False

    @property
    def total_stories(self) -> int:
        return sum(m.total_stories for m in self.milestones)

    @property
    def completed_stories(self) -> int:
        return sum(m.completed_stories for m in self.milestones)


@dataclass
class BoardCard:
    story: Story
    epic_name: str


@dataclass
class Board:
    columns: dict[str, list[BoardCard]]

    @property
    def is_empty(self) -> bool:
        return not any(self.columns.values())


def overview(state) -> Overview:
    """Project summary, milestone progress, epic statuses and queue counts."""
    if not state.is_initialized():
        raise LisaError("No lisa project found.", NOT_INITIALIZED)

    project = state.read_project()
    if project is None:
        raise LisaError("Project not found.", NOT_FOUND)

    epic_dirs = state.list_epic_dirs()
    stories_by_epic: dict[str, list[Story]] = {}
    report = Overview(project=project)

    for dirname in epic_dirs:
        epic_id, slug = split_epic_dir(dirname)
        epic = state.read_epic(epic_id, slug)
        stories_file = state.read_stories(epic_id, slug)
        stories_by_epic[epic_id] = stories_file.stories if stories_file else []

        if epic:
            report.epics.append(EpicSummary(
                id=epic.id, name=epic.name, status=get_epic_status(state, epic_id, slug),
            ))

    index = state.read_milestone_index()
    for milestone in index.milestones if index else []:
        entry = MilestoneProgress(
            id=milestone.id,
            name=milestone.name,
            status=derive_milestone_status(state, milestone),
        )
        for epic_id in milestone.epics:
            stories = stories_by_epic.get(epic_id, [])
            entry.total_stories += len(stories)
            entry.completed_stories += sum(1 for s in stories if s.status == "done")
        report.milestones.append(entry)

    stuck_queue = state.read_stuck_queue()
    feedback_queue = state.read_feedback_queue()
    report.stuck_count = len(stuck_queue.get("stuck", [])) if stuck_queue else 0
    report.feedback_count = len(feedback_queue.pending) if feedback_queue else 0
    report.has_blocked_stories = any(
        s.status == "blocked" for stories in stories_by_epic.values() for s in stories
    )

    return report


def board(state, epic_filter: Optional[str] = None) -> Board:
    """Stories grouped into one column per status."""
    if not state.is_initialized():
        raise LisaError("No lisa project found.", NOT_INITIALIZED)

    columns: dict[str, list[BoardCard]] = {status: [] for status in STORY_STATUSES}

    for dirname in state.list_epic_dirs():
        epic_id, slug = split_epic_dir(dirname)
        if epic_filter and epic_id != epic_filter:
            continue

        epic = state.read_epic(epic_id, slug)
        stories_file = state.read_stories(epic_id, slug)
        if not (epic and stories_file):
            continue

        for story in stories_file.stories:
            if story.status not in columns:
                logger.warning(f"Story {story.id} has unknown status '{story.status}', not shown")
                continue
            columns[story.status].append(BoardCard(story=story, epic_name=epic.name))

    return Board(columns=columns)
