"""
Identifier helpers.

Milestones are M<n>, epics E<n>, stories E<n>.S<m> and requirements
E<n>.R<m>. Epic directories are named <epic id>-<slug>.
"""

import random
import re
import string
import time

from lisa.lib.constants import (
    EPIC_ID_PATTERN,
    MILESTONE_ID_PATTERN,
    REQUIREMENT_ID_PATTERN,
    STORY_ID_PATTERN,
)

_BASE36 = string.digits + string.ascii_lowercase


def _to_base36(num: int) -> str:
    if num == 0:
        return "0"
    digits = []
    while num:
        num, rem = divmod(num, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_id(prefix: str) -> str:
    """Generate a unique-enough id like issue-lq3k9x2a-4f7b."""
    stamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(random.choice(_BASE36) for _ in range(4))
    return f"{prefix}-{stamp}-{suffix}"


def slugify(text: str) -> str:
    slug = re.sub(r'[^a-z0-9]+', '-', text.lower()).strip('-')
    return slug[:30]


def is_milestone_id(value: str) -> bool:
    return bool(MILESTONE_ID_PATTERN.match(value))


def is_epic_id(value: str) -> bool:
    return bool(EPIC_ID_PATTERN.match(value))


def is_story_id(value: str) -> bool:
    return bool(STORY_ID_PATTERN.match(value))


def is_requirement_id(value: str) -> bool:
    return bool(REQUIREMENT_ID_PATTERN.match(value))


def parse_story_id(value: str) -> tuple[str, int] | None:
    """Split E1.S3 into ("E1", 3). Returns None if malformed."""
    match = STORY_ID_PATTERN.match(value)
    if not match:
        return None
    return match.group(1), int(match.group(2))


def split_epic_dir(dirname: str) -> tuple[str, str]:
    """Split an epic directory name at the first hyphen: E1-user-auth -> (E1, user-auth)."""
    epic_id, _, slug = dirname.partition("-")
    return epic_id, slug


def epic_dir_name(epic_id: str, slug: str) -> str:
    return f"{epic_id}-{slug}"
