"""Story lookup and status lifecycle using the transitions library.

Usage:
    from lisa.core.stories import mark_story

    old, new = mark_story(state, "E1.S2", "blocked", reason="waiting on API keys")
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from transitions import Machine

from lisa.core.models import StoriesFile, Story
from lisa.lib.constants import STORY_STATUSES
from lisa.lib.errors import INVALID_ID, NOT_FOUND, NOT_INITIALIZED, LisaError
from lisa.lib.ids import parse_story_id

logger = logging.getLogger(__name__)


STATES = list(STORY_STATUSES)

# One trigger per destination, legal from any state
TRANSITIONS = [
    {"trigger": f"mark_{status}", "source": "*", "dest": status}
    for status in STORY_STATUSES
]


@dataclass
class LocatedStory:
    """A story together with the file and epic directory it lives in."""
    epic_id: str
    slug: str
    stories_file: StoriesFile
    story: Story


def find_story(state, story_id: str) -> LocatedStory:
    parsed = parse_story_id(story_id)
    if not parsed:
        raise LisaError(f"Invalid story ID: {story_id}", INVALID_ID)
    epic_id = parsed[0]

    slug = state.resolve_epic_slug(epic_id)
    if slug is None:
        raise LisaError(f"Epic {epic_id} not found.", NOT_FOUND)

    stories_file = state.read_stories(epic_id, slug)
    if stories_file is None:
        raise LisaError("Stories not found.", NOT_FOUND)

    story = stories_file.find(story_id)
    if story is None:
        raise LisaError(f"Story {story_id} not found.", NOT_FOUND)

    return LocatedStory(epic_id=epic_id, slug=slug, stories_file=stories_file, story=story)


class StoryFSM:
    """State machine for one story's status.

    Persists the stories file after every transition and logs it.
    Pass reason= to a trigger to record why a story is blocked.
    """

    def __init__(self, manager, located: LocatedStory,
                 on_transition: Callable[[str, str, str], None] | None = None):
        self.manager = manager
        self.located = located
        self.on_transition = on_transition

        initial = located.story.status
        if initial not in STATES:
            logger.warning(f"[FSM] {located.story.id}: Unknown status '{initial}', defaulting to 'todo'")
            initial = "todo"

        self.machine = Machine(
            model=self,
            states=STATES,
            transitions=TRANSITIONS,
            initial=initial,
            auto_transitions=False,
            send_event=True,
            after_state_change="on_state_change",
        )

    @property
    def story(self) -> Story:
        return self.located.story

    def on_state_change(self, event) -> None:
        from_state = event.transition.source
        to_state = event.transition.dest
        trigger = event.event.name
        reason = event.kwargs.get("reason")

        self.story.status = to_state
        if to_state == "blocked" and reason:
            self.story.blocked_reason = reason
        elif to_state != "blocked":
            self.story.blocked_reason = None

        self.manager.write_stories(self.located.epic_id, self.located.slug, self.located.stories_file)
        logger.info(f"[FSM] {self.story.id}: {from_state} -> {to_state} ({trigger})")

        if self.on_transition:
            self.on_transition(from_state, to_state, trigger)

    def move_to(self, status: str, reason: Optional[str] = None) -> None:
        if status not in STATES:
            raise ValueError(f"Unknown story status '{status}' (expected one of {', '.join(STATES)})")
        self.trigger(f"mark_{status}", reason=reason)


def _adjust_completed(state, old_status: str, new_status: str) -> None:
    if new_status == old_status or "done" not in (old_status, new_status):
        return

    project = state.read_project()
    if project is None:
        return

    if new_status == "done":
        project.stats.completed_stories += 1
    else:
        project.stats.completed_stories = max(0, project.stats.completed_stories - 1)
    state.write_project(project)


def mark_story(state, story_id: str, status: str, reason: Optional[str] = None) -> tuple[str, str]:
    """Move a story to any status. Returns (old_status, new_status).

    Keeps the project's completed_stories count in step with done stories.
    """
    if not state.is_initialized():
        raise LisaError("No lisa project found.", NOT_INITIALIZED)

    located = find_story(state, story_id)
    old_status = located.story.status

    fsm = StoryFSM(state, located)
    fsm.move_to(status, reason=reason)

    _adjust_completed(state, old_status, status)
    return old_status, status
