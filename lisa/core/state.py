"""
State manager.

Typed access to a planning tree over an EntityStore. Owns the key layout and
the conversion between stored documents and models. One StateManager is
built per session and passed explicitly to every composer/validator call.
"""

import logging
import time
from typing import Optional

from lisa.core.models import (
    Constraints,
    Coverage,
    DiscoveryContext,
    DiscoveryHistory,
    ElementDiscovery,
    Epic,
    FeedbackQueue,
    Links,
    MilestoneIndex,
    Project,
    ProjectStats,
    StoriesFile,
    ValidationIssues,
)
from lisa.lib.config import Config, config_from_dict, config_to_dict, default_config
from lisa.lib.dates import now_iso
from lisa.lib.errors import ALREADY_INITIALIZED, LisaError
from lisa.lib.ids import epic_dir_name, split_epic_dir
from lisa.store.base import EntityStore

logger = logging.getLogger(__name__)

PATHS = {
    "project": "project.json",
    "config": "config.yaml",
    "task_queue": "task_queue.json",
    "stuck_queue": "stuck_queue.json",
    "feedback_queue": "feedback_queue.json",
    "lock": ".lock",
    "discovery_dir": "discovery",
    "discovery_context": "discovery/context.json",
    "discovery_constraints": "discovery/constraints.json",
    "discovery_history": "discovery/history.json",
    "milestones_dir": "milestones",
    "milestone_index": "milestones/index.json",
    "epics_dir": "epics",
    "validation_dir": "validation",
    "coverage": "validation/coverage.json",
    "links": "validation/links.json",
    "issues": "validation/issues.json",
}


def epic_key(epic_id: str, slug: str, filename: str) -> str:
    return f"{PATHS['epics_dir']}/{epic_dir_name(epic_id, slug)}/{filename}"


def milestone_key(milestone_id: str, filename: str) -> str:
    return f"{PATHS['milestones_dir']}/{milestone_id}/{filename}"


class StateManager:
    """Domain-level reads and writes for one planning tree."""

    def __init__(self, store: EntityStore):
        self.store = store

    # Initialization

    def is_initialized(self) -> bool:
        return self.store.is_initialized()

    def initialize(self, project_name: Optional[str] = None) -> Project:
        """Create the directory layout and empty documents for a new tree."""
        if self.store.exists(PATHS["project"]):
            raise LisaError("Project already initialized", ALREADY_INITIALIZED)

        for key in ("discovery_dir", "milestones_dir", "epics_dir", "validation_dir"):
            self.store.ensure_directory(PATHS[key])

        now = now_iso()
        project = Project(
            id=f"proj-{int(time.time() * 1000)}",
            name=project_name or "Untitled Project",
            created=now,
            updated=now,
            status="active",
            stats=ProjectStats(),
        )
        self.write_project(project)

        self.store.write_json(PATHS["task_queue"], {"tasks": [], "completed": []}, "task_queue")
        self.store.write_json(PATHS["stuck_queue"], {"stuck": [], "resolved": []}, "stuck_queue")
        self.store.write_json(PATHS["feedback_queue"], {"feedback": [], "incorporated": []}, "feedback_queue")

        self.write_discovery_context(DiscoveryContext())
        self.write_constraints(Constraints())
        self.write_discovery_history(DiscoveryHistory())
        self.write_milestone_index(MilestoneIndex())
        self.write_config(default_config())

        logger.info(f"Initialized project {project.id} ({project.name}) at {self.store.get_root_dir()}")
        return project

    # Project

    def read_project(self) -> Optional[Project]:
        data = self.store.read_json(PATHS["project"], "project")
        return Project.from_dict(data) if data is not None else None

    def write_project(self, project: Project) -> None:
        project.updated = now_iso()
        data = project.to_dict()
        self.store.write_json(PATHS["project"], data, "project")

    # Config

    def read_config(self) -> Optional[Config]:
        data = self.store.read_yaml(PATHS["config"], "config")
        return config_from_dict(data) if data is not None else None

    def write_config(self, config: Config) -> None:
        self.store.write_yaml(PATHS["config"], config_to_dict(config), "config")

    # Discovery

    def read_discovery_context(self) -> Optional[DiscoveryContext]:
        data = self.store.read_json(PATHS["discovery_context"], "discovery_context")
        return DiscoveryContext.from_dict(data) if data is not None else None

    def write_discovery_context(self, context: DiscoveryContext) -> None:
        self.store.write_json(PATHS["discovery_context"], context.to_dict(), "discovery_context")

    def read_constraints(self) -> Optional[Constraints]:
        data = self.store.read_json(PATHS["discovery_constraints"], "constraints")
        return Constraints.from_dict(data) if data is not None else None

    def write_constraints(self, constraints: Constraints) -> None:
        self.store.write_json(PATHS["discovery_constraints"], constraints.to_dict(), "constraints")

    def read_discovery_history(self) -> Optional[DiscoveryHistory]:
        data = self.store.read_json(PATHS["discovery_history"], "discovery_history")
        return DiscoveryHistory.from_dict(data) if data is not None else None

    def write_discovery_history(self, history: DiscoveryHistory) -> None:
        self.store.write_json(PATHS["discovery_history"], history.to_dict(), "discovery_history")

    # Milestones

    def read_milestone_index(self) -> Optional[MilestoneIndex]:
        data = self.store.read_json(PATHS["milestone_index"], "milestone_index")
        return MilestoneIndex.from_dict(data) if data is not None else None

    def write_milestone_index(self, index: MilestoneIndex) -> None:
        data = index.to_dict()
        self.store.write_json(PATHS["milestone_index"], data, "milestone_index")

    def read_milestone_discovery(self, milestone_id: str) -> Optional[ElementDiscovery]:
        data = self.store.read_json(milestone_key(milestone_id, "discovery.json"), "element_discovery")
        return ElementDiscovery.from_dict(data) if data is not None else None

    def write_milestone_discovery(self, milestone_id: str, discovery: ElementDiscovery) -> None:
        self.store.ensure_directory(f"{PATHS['milestones_dir']}/{milestone_id}")
        discovery.updated = now_iso()
        self.store.write_json(milestone_key(milestone_id, "discovery.json"), discovery.to_dict(), "element_discovery")

    # Epics

    def list_epic_dirs(self) -> list[str]:
        return self.store.list_directories(PATHS["epics_dir"])

    def find_epic_dir(self, epic_id: str, epic_dirs: Optional[list[str]] = None) -> Optional[str]:
        """First epic directory named <epic_id>-<slug>, or None."""
        prefix = f"{epic_id}-"
        for dirname in epic_dirs if epic_dirs is not None else self.list_epic_dirs():
            if dirname.startswith(prefix):
                return dirname
        return None

    def resolve_epic_slug(self, epic_id: str, epic_dirs: Optional[list[str]] = None) -> Optional[str]:
        dirname = self.find_epic_dir(epic_id, epic_dirs)
        if dirname is None:
            return None
        return split_epic_dir(dirname)[1]

    def create_epic_dir(self, epic_id: str, slug: str) -> None:
        self.store.ensure_directory(f"{PATHS['epics_dir']}/{epic_dir_name(epic_id, slug)}")

    def read_epic(self, epic_id: str, slug: str) -> Optional[Epic]:
        data = self.store.read_json(epic_key(epic_id, slug, "epic.json"), "epic")
        return Epic.from_dict(data) if data is not None else None

    def write_epic(self, epic: Epic, slug: Optional[str] = None) -> None:
        """Write epic.json into <id>-<slug>, defaulting to the slug stored on the epic."""
        key = epic_key(epic.id, slug or epic.slug, "epic.json")
        epic.updated = now_iso()
        data = epic.to_dict()
        self.store.write_json(key, data, "epic")

    def read_prd(self, epic_id: str, slug: str) -> Optional[str]:
        return self.store.read_text(epic_key(epic_id, slug, "prd.md"))

    def write_prd(self, epic_id: str, slug: str, content: str) -> None:
        self.store.write_text(epic_key(epic_id, slug, "prd.md"), content)

    def read_architecture(self, epic_id: str, slug: str) -> Optional[str]:
        return self.store.read_text(epic_key(epic_id, slug, "architecture.md"))

    def write_architecture(self, epic_id: str, slug: str, content: str) -> None:
        self.store.write_text(epic_key(epic_id, slug, "architecture.md"), content)

    def read_stories(self, epic_id: str, slug: str) -> Optional[StoriesFile]:
        data = self.store.read_json(epic_key(epic_id, slug, "stories.json"), "stories")
        return StoriesFile.from_dict(data) if data is not None else None

    def write_stories(self, epic_id: str, slug: str, stories: StoriesFile) -> None:
        key = epic_key(epic_id, slug, "stories.json")
        data = stories.to_dict()
        self.store.write_json(key, data, "stories")

    def read_epic_discovery(self, epic_id: str, slug: str) -> Optional[ElementDiscovery]:
        data = self.store.read_json(epic_key(epic_id, slug, "discovery.json"), "element_discovery")
        return ElementDiscovery.from_dict(data) if data is not None else None

    def write_epic_discovery(self, epic_id: str, slug: str, discovery: ElementDiscovery) -> None:
        discovery.updated = now_iso()
        self.store.write_json(epic_key(epic_id, slug, "discovery.json"), discovery.to_dict(), "element_discovery")

    # Queues (stuck and task queues are plain documents)

    def read_stuck_queue(self) -> Optional[dict]:
        return self.store.read_json(PATHS["stuck_queue"], "stuck_queue")

    def read_feedback_queue(self) -> Optional[FeedbackQueue]:
        data = self.store.read_json(PATHS["feedback_queue"], "feedback_queue")
        return FeedbackQueue.from_dict(data) if data is not None else None

    def write_feedback_queue(self, queue: FeedbackQueue) -> None:
        self.store.write_json(PATHS["feedback_queue"], queue.to_dict(), "feedback_queue")

    def read_task_queue(self) -> Optional[dict]:
        return self.store.read_json(PATHS["task_queue"], "task_queue")

    # Validation snapshots

    def read_coverage(self) -> Optional[dict]:
        return self.store.read_json(PATHS["coverage"], "coverage")

    def write_coverage(self, coverage: Coverage) -> None:
        data = coverage.to_dict()
        self.store.write_json(PATHS["coverage"], data, "coverage")

    def read_links(self) -> Optional[dict]:
        return self.store.read_json(PATHS["links"], "links")

    def write_links(self, links: Links) -> None:
        data = links.to_dict()
        self.store.write_json(PATHS["links"], data, "links")

    def read_validation_issues(self) -> Optional[dict]:
        return self.store.read_json(PATHS["issues"], "issues")

    def write_validation_issues(self, issues: ValidationIssues) -> None:
        data = issues.to_dict()
        self.store.write_json(PATHS["issues"], data, "issues")

    # Lock

    def acquire_lock(self, holder: str, task: Optional[str] = None) -> bool:
        return self.store.acquire_lock(holder, task)

    def release_lock(self) -> None:
        self.store.release_lock()

    def read_lock(self) -> Optional[dict]:
        return self.store.read_lock()

    # Utilities

    def exists(self, key: str) -> bool:
        return self.store.exists(key)
