"""
Core engine for lisa.

Tree building, status derivation, context assembly, feedback and integrity
validation over a planning tree held in an EntityStore.
"""

from lisa.core.state import StateManager
from lisa.core.status import (
    derive_epic_status,
    derive_milestone_status,
    get_epic_status,
)
from lisa.core.context import (
    assemble_project_context,
    assemble_milestone_context,
    assemble_epic_context,
    assemble_story_context,
)
from lisa.core.integrity import (
    run_full_validation,
    validate_links,
    validate_coverage,
    validate_epic,
)
from lisa.core.planning import (
    add_milestone,
    add_epic,
    plan_epic,
    save_prd,
    save_architecture,
    add_story,
    save_stories,
)
from lisa.core.feedback import (
    add_feedback,
    list_feedback,
    resolve_feedback,
    dismiss_feedback,
)

__all__ = [
    "StateManager",
    "derive_epic_status",
    "derive_milestone_status",
    "get_epic_status",
    "assemble_project_context",
    "assemble_milestone_context",
    "assemble_epic_context",
    "assemble_story_context",
    "run_full_validation",
    "validate_links",
    "validate_coverage",
    "validate_epic",
    "add_milestone",
    "add_epic",
    "plan_epic",
    "save_prd",
    "save_architecture",
    "add_story",
    "save_stories",
    "add_feedback",
    "list_feedback",
    "resolve_feedback",
    "dismiss_feedback",
]
