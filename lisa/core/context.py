"""
Context package assembly.

Each layer bundles an entity with everything its ancestors know, so a
consumer holding only the leaf package (an AI planning session with no
memory) needs no further lookups:

    ProjectContext  -> milestone planning
    MilestoneContext -> epic generation within a milestone
    EpicContext     -> PRD and architecture generation
    StoryContext    -> story generation (requires PRD and architecture)

A child package copies in every field of its parent package. Packages are
frozen snapshots assembled fresh on each call; nothing is cached.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Optional

from lisa.core.models import (
    Constraints,
    DiscoveryContext,
    ElementDiscovery,
    Epic,
    Milestone,
    Project,
)
from lisa.lib.config import Config
from lisa.lib.errors import (
    MISSING_ARCH,
    MISSING_PRD,
    NOT_FOUND,
    NOT_INITIALIZED,
    LisaError,
)
from lisa.lib.reqparse import Requirement, parse_requirements

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectContext:
    project: Project
    discovery: Optional[DiscoveryContext]
    constraints: Optional[Constraints]
    config: Optional[Config]


@dataclass(frozen=True)
class SiblingEpic:
    id: str
    name: str
    description: str


@dataclass(frozen=True)
class MilestoneContext:
    project: ProjectContext
    milestone: Milestone
    milestone_discovery: Optional[ElementDiscovery]
    sibling_epics: tuple[SiblingEpic, ...] = ()


@dataclass(frozen=True)
class EpicDependency:
    """Summary of an epic this one depends on. Not a full context, so no recursion."""
    id: str
    name: str
    description: str
    has_prd: bool
    has_architecture: bool


@dataclass(frozen=True)
class EpicContext:
    project: ProjectContext
    milestone: Milestone
    milestone_discovery: Optional[ElementDiscovery]
    sibling_epics: tuple[SiblingEpic, ...]
    epic: Epic
    epic_discovery: Optional[ElementDiscovery]
    dependencies: tuple[EpicDependency, ...] = ()


@dataclass(frozen=True)
class StoryContext:
    project: ProjectContext
    milestone: Milestone
    milestone_discovery: Optional[ElementDiscovery]
    sibling_epics: tuple[SiblingEpic, ...]
    epic: Epic
    epic_discovery: Optional[ElementDiscovery]
    dependencies: tuple[EpicDependency, ...]
    prd: str
    architecture: str
    requirements: tuple[Requirement, ...] = ()


def context_to_dict(context) -> dict:
    """Plain-dict form of any context package, for JSON output."""
    return asdict(context)


def _load_epic(state, epic_id: str, epic_dirs: list[str]) -> tuple[Epic, str]:
    slug = state.resolve_epic_slug(epic_id, epic_dirs)
    if slug is None:
        raise LisaError(f"Epic {epic_id} not found", NOT_FOUND)
    epic = state.read_epic(epic_id, slug)
    if epic is None:
        raise LisaError(f"Epic {epic_id} not found", NOT_FOUND)
    return epic, slug


def assemble_project_context(state) -> ProjectContext:
    """Project plus optional discovery, constraints and config."""
    project = state.read_project()
    if project is None:
        raise LisaError("Project not initialized", NOT_INITIALIZED)

    return ProjectContext(
        project=project,
        discovery=state.read_discovery_context(),
        constraints=state.read_constraints(),
        config=state.read_config(),
    )


def assemble_milestone_context(state, milestone_id: str) -> MilestoneContext:
    """Project context plus the milestone, its discovery and its sibling epics."""
    project_context = assemble_project_context(state)

    index = state.read_milestone_index()
    milestone = index.find(milestone_id) if index else None
    if milestone is None:
        raise LisaError(f"Milestone {milestone_id} not found", NOT_FOUND)

    epic_dirs = state.list_epic_dirs()
    siblings = []
    for epic_id in milestone.epics:
        slug = state.resolve_epic_slug(epic_id, epic_dirs)
        if slug is None:
            logger.debug(f"Sibling epic {epic_id} of {milestone_id} has no directory")
            continue
        epic = state.read_epic(epic_id, slug)
        if epic:
            siblings.append(SiblingEpic(id=epic.id, name=epic.name, description=epic.description))

    return MilestoneContext(
        project=project_context,
        milestone=milestone,
        milestone_discovery=state.read_milestone_discovery(milestone_id),
        sibling_epics=tuple(siblings),
    )


def assemble_epic_context(state, epic_id: str) -> EpicContext:
    """Milestone context of the epic's milestone plus the epic, its discovery
    and summaries of the epics it depends on.

    Raises NOT_FOUND if the epic is missing or its milestone reference dangles.
    """
    epic_dirs = state.list_epic_dirs()
    epic, slug = _load_epic(state, epic_id, epic_dirs)

    milestone_context = assemble_milestone_context(state, epic.milestone)

    dependencies = []
    for dep_id in epic.dependencies:
        dep_slug = state.resolve_epic_slug(dep_id, epic_dirs)
        if dep_slug is None:
            logger.debug(f"Dependency {dep_id} of {epic_id} has no directory")
            continue
        dep = state.read_epic(dep_id, dep_slug)
        if dep:
            dependencies.append(EpicDependency(
                id=dep.id,
                name=dep.name,
                description=dep.description,
                has_prd=dep.has_prd,
                has_architecture=dep.has_architecture,
            ))

    return EpicContext(
        project=milestone_context.project,
        milestone=milestone_context.milestone,
        milestone_discovery=milestone_context.milestone_discovery,
        sibling_epics=milestone_context.sibling_epics,
        epic=epic,
        epic_discovery=state.read_epic_discovery(epic_id, slug),
        dependencies=tuple(dependencies),
    )


def assemble_story_context(state, epic_id: str) -> StoryContext:
    """Epic context plus PRD, architecture and the PRD's requirements.

    Raises MISSING_PRD or MISSING_ARCH when the corresponding document is
    absent, since stories cannot be generated without both.
    """
    epic_context = assemble_epic_context(state, epic_id)
    # Documents live under the directory name, which may differ from epic.json's slug
    slug = state.resolve_epic_slug(epic_id)

    prd = state.read_prd(epic_id, slug)
    if not prd:
        raise LisaError(f"PRD not found for {epic_id}. Generate PRD first.", MISSING_PRD)

    architecture = state.read_architecture(epic_id, slug)
    if not architecture:
        raise LisaError(f"Architecture not found for {epic_id}. Generate architecture first.", MISSING_ARCH)

    return StoryContext(
        project=epic_context.project,
        milestone=epic_context.milestone,
        milestone_discovery=epic_context.milestone_discovery,
        sibling_epics=epic_context.sibling_epics,
        epic=epic_context.epic,
        epic_discovery=epic_context.epic_discovery,
        dependencies=epic_context.dependencies,
        prd=prd,
        architecture=architecture,
        requirements=tuple(parse_requirements(prd, epic_id)),
    )
