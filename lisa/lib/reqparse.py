"""
PRD requirement heading parser.

Requirements are not stored records: they exist only as level-3 headings in
an epic's prd.md. Both context assembly and integrity validation read them
through parse_requirements() so the two cannot drift.

Grammar (one heading per line, starting at column 0):

    ### R<m>: <title>
    ### E<n>.R<m>: <title>

Either form yields the id <epic id>.R<m> for the epic that owns the PRD,
whatever epic prefix the heading itself carries. The digits are kept as
written, so "### R01: ..." is E1.R01 and is a different id from E1.R1.
"""

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

HEADING_RE = re.compile(r'^###[ \t]+(?:E\d+\.)?R(\d+):[ \t]*(.*?)\s*$')
FENCE_RE = re.compile(r'^(```|~~~)')
COMMENT_OPEN = "<!--"
COMMENT_CLOSE = "-->"


@dataclass
class Requirement:
    id: str          # E1.R1
    title: str
    line_number: int


def parse_requirement_heading(line: str, epic_id: str) -> tuple[str, str] | None:
    """Parse a single line. Returns (canonical id, title) or None."""
    match = HEADING_RE.match(line)
    if not match:
        return None
    return f"{epic_id}.R{match.group(1)}", match.group(2)


def strip_comments(line: str, in_comment: bool) -> tuple[str, bool]:
    """Remove HTML comment spans from one line.

    in_comment says whether a comment opened on an earlier line is still
    open. Returns the text outside comments and whether a comment is left
    open at the end of the line. A "-->" with no open comment is plain text.
    """
    kept = []
    pos = 0
    while pos < len(line):
        if in_comment:
            end = line.find(COMMENT_CLOSE, pos)
            if end == -1:
                break
            pos = end + len(COMMENT_CLOSE)
            in_comment = False
        else:
            start = line.find(COMMENT_OPEN, pos)
            if start == -1:
                kept.append(line[pos:])
                break
            kept.append(line[pos:start])
            pos = start + len(COMMENT_OPEN)
            in_comment = True
    return "".join(kept), in_comment


def parse_requirements(prd: str | None, epic_id: str) -> list[Requirement]:
    """Extract requirements from PRD markdown in document order.

    Headings inside fenced code blocks and HTML comments are ignored; a
    comment trailing a heading is dropped from its title. A requirement
    number repeated later in the document is reported once, at its first
    occurrence.
    """
    if not prd:
        return []

    requirements = []
    seen = set()
    in_fence = False
    in_comment = False

    for lineno, line in enumerate(prd.splitlines(), 1):
        if not in_comment and FENCE_RE.match(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue

        line, in_comment = strip_comments(line, in_comment)

        parsed = parse_requirement_heading(line, epic_id)
        if not parsed:
            continue

        req_id, title = parsed
        if req_id in seen:
            logger.warning(f"Duplicate requirement heading {req_id} at line {lineno} ignored")
            continue
        seen.add(req_id)
        requirements.append(Requirement(id=req_id, title=title, line_number=lineno))

    return requirements


def requirement_ids(prd: str | None, epic_id: str) -> list[str]:
    """Canonical requirement ids from a PRD, in document order."""
    return [r.id for r in parse_requirements(prd, epic_id)]
