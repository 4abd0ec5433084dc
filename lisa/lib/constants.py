"""Shared constants for lisa."""

import re

# Directory holding all planning state, relative to the project root
LISA_DIR = ".lisa"

# Identifier grammar
MILESTONE_ID_PATTERN = re.compile(r'^M\d+$')
EPIC_ID_PATTERN = re.compile(r'^E\d+$')
STORY_ID_PATTERN = re.compile(r'^(E\d+)\.S(\d+)$')
REQUIREMENT_ID_PATTERN = re.compile(r'^E\d+\.R\d+$')

# Advisory lock
LOCK_TIMEOUT_MINUTES = 10
LOCK_HOLDERS = ("worker", "user", "system")

STORY_STATUSES = ("todo", "assigned", "in_progress", "review", "done", "blocked", "deferred")

# Story statuses that count as "started" when deriving epic status
ACTIVE_STORY_STATUSES = ("in_progress", "review", "assigned")

DEFAULT_CHECKPOINTS = [
    "after_epic_breakdown",
    "after_prd_generation",
    "after_architecture",
    "before_export",
]
