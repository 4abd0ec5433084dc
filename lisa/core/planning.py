"""
Tree building: milestones, epics, their documents and stories.

An initialized tree is empty. These operations add milestones and epics,
store the PRD and architecture an epic is planned from, and record its
stories, keeping the counters on epic.json and project.json in step.

Epic documents are always located through the <epic id>-<slug> directory
name. epic.json is written back into that same directory, so an epic whose
stored slug was edited is not duplicated into a second directory.
"""

import logging
from dataclasses import dataclass
from typing import Iterable

from lisa.core.context import EpicContext, assemble_epic_context
from lisa.core.models import (
    ArtifactMeta,
    DerivedEpicStatus,
    Epic,
    EpicArtifacts,
    Milestone,
    MilestoneIndex,
    StoriesArtifact,
    StoriesFile,
    Story,
)
from lisa.core.status import derive_epic_status
from lisa.lib.dates import now_iso
from lisa.lib.errors import (
    INVALID_ID,
    NO_MILESTONES,
    NOT_FOUND,
    NOT_INITIALIZED,
    LisaError,
)
from lisa.lib.ids import is_epic_id, is_requirement_id, slugify, split_epic_dir
from lisa.lib.reqparse import parse_requirements
from lisa.lib.validate import validate

logger = logging.getLogger(__name__)

# Order in which an epic's artifacts are produced
ARTIFACT_ORDER = ("prd", "architecture", "stories")


@dataclass
class EpicPlan:
    context: EpicContext
    status: DerivedEpicStatus
    next_step: str           # prd, architecture, stories, complete


def _require_initialized(state) -> None:
    if not state.is_initialized():
        raise LisaError("No lisa project found.", NOT_INITIALIZED)


def _locate_epic(state, epic_id: str) -> tuple[Epic, str]:
    """Epic and its directory slug."""
    _require_initialized(state)
    if not is_epic_id(epic_id):
        raise LisaError(f"Invalid epic ID: {epic_id}", INVALID_ID)

    slug = state.resolve_epic_slug(epic_id)
    if slug is None:
        raise LisaError(f"Epic {epic_id} not found.", NOT_FOUND)
    epic = state.read_epic(epic_id, slug)
    if epic is None:
        raise LisaError(f"Epic {epic_id} not found.", NOT_FOUND)
    return epic, slug


def _update_project_stats(state, **counts) -> None:
    project = state.read_project()
    if project is None:
        return
    for name, value in counts.items():
        setattr(project.stats, name, value)
    state.write_project(project)


def _count_stories(state) -> int:
    total = 0
    for dirname in state.list_epic_dirs():
        epic_id, slug = split_epic_dir(dirname)
        stories_file = state.read_stories(epic_id, slug)
        if stories_file:
            total += len(stories_file.stories)
    return total


def _coverage_map(stories: list[Story]) -> dict[str, list[str]]:
    coverage: dict[str, list[str]] = {}
    for story in stories:
        for req_id in story.requirements:
            story_ids = coverage.setdefault(req_id, [])
            if story.id not in story_ids:
                story_ids.append(story.id)
    return coverage


def _record_stories(state, epic: Epic, slug: str, stories_file: StoriesFile, complete: bool) -> None:
    stories_file.coverage = _coverage_map(stories_file.stories)
    state.write_stories(epic.id, slug, stories_file)

    epic.artifacts.stories.count = len(stories_file.stories)
    epic.stats.stories = len(stories_file.stories)
    if complete:
        epic.artifacts.stories.status = "complete"
    state.write_epic(epic, slug)

    _update_project_stats(state, stories=_count_stories(state))


# Milestones and epics

def add_milestone(state, name: str, description: str = "") -> Milestone:
    _require_initialized(state)

    index = state.read_milestone_index() or MilestoneIndex()
    number = len(index.milestones) + 1
    milestone_id = f"M{number}"
    now = now_iso()
    milestone = Milestone(
        id=milestone_id,
        slug=slugify(name) or milestone_id.lower(),
        name=name,
        description=description,
        order=number,
        created=now,
        updated=now,
    )
    index.milestones.append(milestone)
    state.write_milestone_index(index)
    _update_project_stats(state, milestones=len(index.milestones))

    logger.info(f"Added milestone {milestone_id}: {name}")
    return milestone


def add_epic(state, milestone_id: str, name: str, description: str = "") -> Epic:
    _require_initialized(state)

    index = state.read_milestone_index()
    if not index or not index.milestones:
        raise LisaError("No milestones found. Add milestones first.", NO_MILESTONES)
    milestone = index.find(milestone_id)
    if milestone is None:
        raise LisaError(f"Milestone {milestone_id} not found.", NOT_FOUND)

    epic_count = len(state.list_epic_dirs())
    epic_id = f"E{epic_count + 1}"
    now = now_iso()
    epic = Epic(
        id=epic_id,
        slug=slugify(name) or epic_id.lower(),
        name=name,
        description=description,
        milestone=milestone_id,
        created=now,
        updated=now,
        artifacts=EpicArtifacts(
            prd=ArtifactMeta(status="pending"),
            architecture=ArtifactMeta(status="pending"),
            stories=StoriesArtifact(status="pending"),
        ),
    )
    state.create_epic_dir(epic.id, epic.slug)
    state.write_epic(epic)

    milestone.epics.append(epic_id)
    milestone.updated = now
    state.write_milestone_index(index)
    _update_project_stats(state, epics=epic_count + 1)

    logger.info(f"Created epic {epic_id} ({epic.slug}) in {milestone_id}")
    return epic


def plan_epic(state, epic_id: str) -> EpicPlan:
    """Where an epic stands and which artifact to produce next."""
    _, slug = _locate_epic(state, epic_id)
    context = assemble_epic_context(state, epic_id)
    epic = context.epic

    stories_file = state.read_stories(epic_id, slug)
    status = derive_epic_status(epic, stories_file.stories if stories_file else None)

    next_step = "complete"
    for name in ARTIFACT_ORDER:
        if getattr(epic.artifacts, name).status == "pending":
            next_step = name
            break

    return EpicPlan(context=context, status=status, next_step=next_step)


# Documents

def _complete_artifact(meta: ArtifactMeta) -> None:
    meta.status = "complete"
    meta.version = (meta.version or 0) + 1
    meta.last_updated = now_iso()


def save_prd(state, epic_id: str, content: str) -> Epic:
    """Store the PRD and record how many requirements it defines."""
    epic, slug = _locate_epic(state, epic_id)
    state.write_prd(epic_id, slug, content)

    _complete_artifact(epic.artifacts.prd)
    epic.stats.requirements = len(parse_requirements(content, epic_id))
    state.write_epic(epic, slug)

    logger.info(f"PRD saved for {epic_id} (v{epic.artifacts.prd.version}, {epic.stats.requirements} requirements)")
    return epic


def save_architecture(state, epic_id: str, content: str) -> Epic:
    epic, slug = _locate_epic(state, epic_id)
    state.write_architecture(epic_id, slug, content)

    _complete_artifact(epic.artifacts.architecture)
    state.write_epic(epic, slug)

    logger.info(f"Architecture saved for {epic_id} (v{epic.artifacts.architecture.version})")
    return epic


# Stories

def _qualify_requirement(epic_id: str, req_id: str) -> str:
    """R2 -> E1.R2; already qualified ids are kept."""
    return req_id if is_requirement_id(req_id) else f"{epic_id}.{req_id}"


def add_story(state, epic_id: str, title: str, description: str = "",
              requirements: Iterable[str] = (), criteria: Iterable[str] = ()) -> Story:
    """Append one story to an epic."""
    epic, slug = _locate_epic(state, epic_id)
    stories_file = state.read_stories(epic_id, slug) or StoriesFile(epic_id=epic_id)

    story = Story(
        id=f"{epic_id}.S{len(stories_file.stories) + 1}",
        title=title,
        description=description,
        type="feature",
        status="todo",
        requirements=[_qualify_requirement(epic_id, r) for r in requirements],
        acceptance_criteria=list(criteria),
    )
    stories_file.stories.append(story)
    _record_stories(state, epic, slug, stories_file, complete=False)

    logger.info(f"Added story {story.id}: {title}")
    return story


def save_stories(state, epic_id: str, stories: list[dict]) -> StoriesFile:
    """Replace an epic's stories with the given story documents."""
    epic, slug = _locate_epic(state, epic_id)

    documents = []
    for position, data in enumerate(stories, 1):
        data = dict(data)
        if not data.get("id"):
            data["id"] = f"{epic_id}.S{position}"
        data.setdefault("status", "todo")
        data.setdefault("type", "feature")
        data.setdefault("description", "")
        documents.append(data)
    validate({"epic_id": epic_id, "stories": documents, "validation": {}}, "stories")
    parsed = [Story.from_dict(data) for data in documents]

    existing = state.read_stories(epic_id, slug)
    stories_file = StoriesFile(epic_id=epic_id, stories=parsed)
    if existing:
        stories_file.validation = existing.validation
    _record_stories(state, epic, slug, stories_file, complete=True)

    logger.info(f"Saved {len(parsed)} stories for {epic_id}")
    return stories_file


def mark_stories_complete(state, epic_id: str) -> Epic:
    epic, slug = _locate_epic(state, epic_id)
    epic.artifacts.stories.status = "complete"
    state.write_epic(epic, slug)
    return epic
