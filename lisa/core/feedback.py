"""
Feedback queue.

Feedback is raised against a story while it is being worked and waits in
.lisa/feedback_queue.json until the plan absorbs it (resolve) or it is
judged irrelevant (dismiss). A blocker also blocks its story.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from lisa.core.models import (
    FeedbackItem,
    FeedbackQueue,
    FeedbackSource,
    IncorporatedFeedback,
    Ref,
)
from lisa.core.stories import find_story, mark_story
from lisa.lib.dates import now_iso
from lisa.lib.errors import INVALID_ID, NOT_FOUND, NOT_INITIALIZED, LisaError
from lisa.lib.ids import generate_id, is_story_id

logger = logging.getLogger(__name__)

FEEDBACK_TYPES = ("blocker", "gap", "scope", "conflict", "question")

# How many incorporated entries list_feedback() shows
RECENT_INCORPORATED = 5


@dataclass
class FeedbackList:
    pending: list[FeedbackItem] = field(default_factory=list)
    stuck: list[dict] = field(default_factory=list)
    recently_incorporated: list[IncorporatedFeedback] = field(default_factory=list)


def _require_initialized(state) -> None:
    if not state.is_initialized():
        raise LisaError("No lisa project found.", NOT_INITIALIZED)


def _require_queue(state) -> FeedbackQueue:
    queue = state.read_feedback_queue()
    if queue is None:
        raise LisaError("No feedback queue found.", NOT_FOUND)
    return queue


def _find(queue: FeedbackQueue, feedback_id: str) -> FeedbackItem:
    item = queue.find(feedback_id)
    if item is None:
        raise LisaError(f"Feedback {feedback_id} not found.", NOT_FOUND)
    return item


def add_feedback(state, story_id: str, feedback_type: str, message: str) -> tuple[FeedbackItem, bool]:
    """Queue feedback against a story. Returns (item, whether the story was blocked)."""
    _require_initialized(state)
    if not is_story_id(story_id):
        raise LisaError(f"Invalid story ID: {story_id}", INVALID_ID)
    if feedback_type not in FEEDBACK_TYPES:
        raise ValueError(f"Unknown feedback type '{feedback_type}' (expected one of {', '.join(FEEDBACK_TYPES)})")

    blocker = feedback_type == "blocker"
    if blocker:
        find_story(state, story_id)

    queue = state.read_feedback_queue() or FeedbackQueue()
    item = FeedbackItem(
        id=generate_id("fb"),
        type=feedback_type,
        source=FeedbackSource(type="execution", story_id=story_id),
        summary=message,
        status="pending",
        created=now_iso(),
        affects=[Ref(type="story", id=story_id)],
    )
    queue.feedback.append(item)
    state.write_feedback_queue(queue)
    logger.info(f"Feedback {item.id} ({feedback_type}) added for {story_id}")

    if blocker:
        mark_story(state, story_id, "blocked", reason=message)

    return item, blocker


def list_feedback(state) -> FeedbackList:
    """Pending feedback, stuck items and the most recently incorporated feedback."""
    _require_initialized(state)

    queue = state.read_feedback_queue() or FeedbackQueue()
    stuck_queue = state.read_stuck_queue() or {}

    return FeedbackList(
        pending=queue.pending,
        stuck=stuck_queue.get("stuck", []),
        recently_incorporated=queue.incorporated[-RECENT_INCORPORATED:],
    )


def resolve_feedback(state, feedback_id: str, resolution: Optional[str] = None) -> FeedbackItem:
    """Move feedback out of the queue into the incorporated log.

    The story of a resolved blocker stays blocked until it is marked again.
    """
    _require_initialized(state)
    queue = _require_queue(state)
    item = _find(queue, feedback_id)

    queue.feedback.remove(item)
    queue.incorporated.append(IncorporatedFeedback(
        id=item.id,
        summary=item.summary,
        incorporated=now_iso(),
        changes_made=[resolution or "Resolved"],
    ))
    state.write_feedback_queue(queue)

    logger.info(f"Feedback {feedback_id} resolved")
    return item


def dismiss_feedback(state, feedback_id: str) -> FeedbackItem:
    """Mark feedback dismissed, keeping it in the queue."""
    _require_initialized(state)
    queue = _require_queue(state)
    item = _find(queue, feedback_id)

    item.status = "dismissed"
    state.write_feedback_queue(queue)

    logger.info(f"Feedback {feedback_id} dismissed")
    return item
