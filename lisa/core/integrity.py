"""
Integrity validation.

Scans the whole tree and produces three snapshots:

    links.json     every story reference, tagged valid/broken, plus orphans
    coverage.json  which PRD requirements have implementing stories
    issues.json    errors/warnings synthesized from the two passes above
                   and from schema checks

Broken links, orphans and gaps are results, never exceptions. Only store
failures and an uninitialized tree propagate.
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from lisa.core.models import (
    Coverage,
    CoverageEntry,
    CoverageGap,
    CoverageSummary,
    IssuesSummary,
    Link,
    Links,
    LinksSummary,
    Orphan,
    Ref,
    StoriesFile,
    ValidationIssue,
    ValidationIssues,
)
from lisa.core.status import get_epic_status
from lisa.lib.dates import now_iso
from lisa.lib.errors import NOT_FOUND, NOT_INITIALIZED, LisaError
from lisa.lib.ids import generate_id, split_epic_dir
from lisa.lib.reqparse import parse_requirements, requirement_ids
from lisa.lib.validate import ValidationError

logger = logging.getLogger(__name__)

ACCEPTANCE_CRITERION_RE = re.compile(r'^\s*- \[ \]', re.MULTILINE)


@dataclass
class FullValidation:
    issues: ValidationIssues
    links: Links
    coverage: Coverage

    @property
    def summary(self) -> IssuesSummary:
        return self.issues.summary


@dataclass
class EpicValidation:
    """Read-only report for a single epic. Nothing is persisted."""
    epic_id: str
    epic_name: str
    status: str
    has_epic: bool
    has_prd: bool
    has_architecture: bool
    story_count: int
    requirement_count: int = 0
    acceptance_criteria: int = 0
    story_statuses: dict[str, int] = field(default_factory=dict)
    total: int = 0
    covered: int = 0
    percent: float = 0
    uncovered: list[str] = field(default_factory=list)
    coverage_computed: bool = False

    def to_dict(self) -> dict:
        return {
            "epic_id": self.epic_id,
            "epic_name": self.epic_name,
            "status": self.status,
            "artifacts": {
                "epic": self.has_epic,
                "prd": self.has_prd,
                "architecture": self.has_architecture,
                "stories": self.story_count,
            },
            "coverage": {"total": self.total, "covered": self.covered, "percent": self.percent},
            "uncovered_requirements": self.uncovered,
        }


def _require_initialized(state) -> None:
    if not state.is_initialized():
        raise LisaError("No lisa project found.", NOT_INITIALIZED)


def _percent(covered: int, total: int) -> float:
    return covered / total * 100 if total > 0 else 0


def _issue(severity: str, issue_type: str, location: Ref, message: str,
           suggestion: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        id=generate_id("issue"),
        severity=severity,
        type=issue_type,
        location=location,
        message=message,
        suggestion=suggestion,
    )


def _read_stories(state, epic_id: str, slug: str) -> Optional[StoriesFile]:
    """Stories file of an epic, or None when absent or unreadable."""
    try:
        return state.read_stories(epic_id, slug)
    except (ValidationError, ValueError) as e:
        logger.warning(f"Stories for {epic_id} unreadable, skipped: {e}")
        return None


def build_identifier_universe(state) -> set[str]:
    """Every id a link may legally point at.

    Milestones, discovery values and constraints, and for each epic
    directory the epic id, its PRD requirement ids and its story ids.
    """
    universe = set()

    index = state.read_milestone_index()
    if index:
        universe.update(m.id for m in index.milestones)

    context = state.read_discovery_context()
    if context:
        universe.update(v.id for v in context.values)

    constraints = state.read_constraints()
    if constraints:
        universe.update(c.id for c in constraints.constraints)

    for dirname in state.list_epic_dirs():
        epic_id, slug = split_epic_dir(dirname)
        universe.add(epic_id)
        universe.update(requirement_ids(state.read_prd(epic_id, slug), epic_id))

        stories_file = _read_stories(state, epic_id, slug)
        if stories_file:
            universe.update(s.id for s in stories_file.stories)

    return universe


def validate_schemas(state) -> list[ValidationIssue]:
    """Presence and schema checks for project.json and each epic's documents."""
    issues = []
    project_ref = Ref(type="project", id="project.json")

    try:
        if state.read_project() is None:
            issues.append(_issue(
                "error", "missing_file", project_ref,
                "project.json not found",
                "Run 'lisa init' to initialize",
            ))
    except (ValidationError, ValueError) as e:
        issues.append(_issue("error", "invalid_schema", project_ref, f"Invalid project.json: {e}"))

    for dirname in state.list_epic_dirs():
        epic_id, slug = split_epic_dir(dirname)
        epic_ref = Ref(type="epic", id=epic_id)

        try:
            if state.read_epic(epic_id, slug) is None:
                issues.append(_issue("error", "missing_file", epic_ref, f"epic.json not found for {epic_id}"))
        except (ValidationError, ValueError) as e:
            issues.append(_issue("error", "invalid_schema", epic_ref, f"Invalid epic.json: {e}"))

        try:
            state.read_stories(epic_id, slug)
        except (ValidationError, ValueError) as e:
            issues.append(_issue("error", "invalid_schema", epic_ref, f"Invalid stories.json: {e}"))

    return issues


def validate_links_internal(state) -> Links:
    """Check every story's requirement and dependency references against the universe."""
    universe = build_identifier_universe(state)
    links = []
    broken = []
    orphans = []

    for dirname in state.list_epic_dirs():
        epic_id, slug = split_epic_dir(dirname)
        stories_file = _read_stories(state, epic_id, slug)
        if not stories_file:
            continue

        for story in stories_file.stories:
            source = Ref(type="story", id=story.id)
            targets = [(Ref(type="requirement", id=r), "implements") for r in story.requirements]
            targets += [(Ref(type="story", id=d), "depends_on") for d in story.dependencies]

            for target, link_type in targets:
                link = Link(source=source, target=target, type=link_type, valid=target.id in universe)
                links.append(link)
                if not link.valid:
                    broken.append(link)

            if not story.requirements:
                orphans.append(Orphan(type="story", id=story.id, reason="Story has no requirement links"))

    logger.debug(f"Links: {len(links)} total, {len(broken)} broken, {len(orphans)} orphans")

    return Links(
        links=links,
        broken=broken,
        orphans=orphans,
        summary=LinksSummary(
            total_links=len(links),
            valid=len(links) - len(broken),
            broken=len(broken),
            orphans=len(orphans),
        ),
        last_validated=now_iso(),
    )


def validate_coverage_internal(state) -> Coverage:
    """Map each parsed requirement to the stories implementing it.

    Coverage is binary: a requirement with any story is covered, otherwise
    it is a gap. The partial status is never produced.
    """
    coverage = {}
    gaps = []
    total = 0
    covered = 0

    for dirname in state.list_epic_dirs():
        epic_id, slug = split_epic_dir(dirname)
        coverage[epic_id] = {}

        requirements = parse_requirements(state.read_prd(epic_id, slug), epic_id)
        stories_file = _read_stories(state, epic_id, slug)

        implementing: dict[str, list[str]] = {}
        if stories_file:
            for story in stories_file.stories:
                for req_id in story.requirements:
                    story_ids = implementing.setdefault(req_id, [])
                    if story.id not in story_ids:
                        story_ids.append(story.id)

        for requirement in requirements:
            total += 1
            stories = implementing.get(requirement.id, [])
            if stories:
                covered += 1
                coverage[epic_id][requirement.id] = CoverageEntry(stories=stories, status="covered")
            else:
                coverage[epic_id][requirement.id] = CoverageEntry(stories=[], status="gap")
                gaps.append(CoverageGap(
                    requirement=requirement.id,
                    epic=epic_id,
                    text=requirement.title or None,
                    reason="No stories implement this requirement",
                ))

    return Coverage(
        coverage=coverage,
        summary=CoverageSummary(
            total_requirements=total,
            covered=covered,
            gaps=len(gaps),
            coverage_percent=_percent(covered, total),
        ),
        gaps=gaps,
        last_validated=now_iso(),
    )


def _summarize(issues: list[ValidationIssue]) -> IssuesSummary:
    counts = Counter(i.severity for i in issues)
    return IssuesSummary(errors=counts["error"], warnings=counts["warning"], info=counts["info"])


def run_full_validation(state) -> FullValidation:
    """Run every check and persist links, coverage and issues.

    All three snapshots are overwritten on every run, even when clean.
    """
    _require_initialized(state)

    issues = validate_schemas(state)

    links = validate_links_internal(state)
    for link in links.broken:
        issues.append(_issue(
            "error", "broken_link", link.source,
            f"Broken link to {link.target.type}:{link.target.id}",
            f"Verify {link.target.id} exists or remove reference",
        ))
    for orphan in links.orphans:
        issues.append(_issue(
            "warning", "orphan_artifact", Ref(type=orphan.type, id=orphan.id),
            orphan.reason,
            "Link to requirements or delete if obsolete",
        ))

    coverage = validate_coverage_internal(state)
    for gap in coverage.gaps:
        issues.append(_issue(
            "error", "coverage_gap", Ref(type="requirement", id=gap.requirement),
            "Requirement has no implementing stories",
            f"Generate stories for {gap.requirement}",
        ))

    report = ValidationIssues(issues=issues, summary=_summarize(issues), last_validated=now_iso())

    state.write_links(links)
    state.write_coverage(coverage)
    state.write_validation_issues(report)

    logger.info(f"Validation: {report.summary.errors} errors, {report.summary.warnings} warnings")
    return FullValidation(issues=report, links=links, coverage=coverage)


def validate_links(state) -> Links:
    """Link pass only; persists links.json."""
    _require_initialized(state)
    links = validate_links_internal(state)
    state.write_links(links)
    return links


def validate_coverage(state) -> Coverage:
    """Coverage pass only; persists coverage.json."""
    _require_initialized(state)
    coverage = validate_coverage_internal(state)
    state.write_coverage(coverage)
    return coverage


def validate_epic(state, epic_id: str) -> EpicValidation:
    """Artifact presence, derived status and requirement coverage for one epic."""
    _require_initialized(state)

    slug = state.resolve_epic_slug(epic_id)
    if slug is None:
        raise LisaError(f"Epic {epic_id} not found.", NOT_FOUND)

    try:
        epic = state.read_epic(epic_id, slug)
        status = get_epic_status(state, epic_id, slug) if epic else None
    except (ValidationError, ValueError) as e:
        logger.warning(f"epic.json for {epic_id} unreadable: {e}")
        epic, status = None, None

    prd = state.read_prd(epic_id, slug)
    architecture = state.read_architecture(epic_id, slug)
    stories_file = _read_stories(state, epic_id, slug)
    stories = stories_file.stories if stories_file else []

    report = EpicValidation(
        epic_id=epic_id,
        epic_name=epic.name if epic else epic_id,
        status=status.value if status else "unknown",
        has_epic=epic is not None,
        has_prd=bool(prd),
        has_architecture=bool(architecture),
        story_count=len(stories),
        story_statuses=dict(Counter(s.status for s in stories)),
    )

    if prd:
        report.acceptance_criteria = len(ACCEPTANCE_CRITERION_RE.findall(prd))
        req_ids = requirement_ids(prd, epic_id)
        report.requirement_count = len(req_ids)

        if stories_file:
            report.coverage_computed = True
            report.total = len(req_ids)
            for req_id in req_ids:
                if any(req_id in s.requirements for s in stories):
                    report.covered += 1
                else:
                    report.uncovered.append(req_id)
            report.percent = _percent(report.covered, report.total)

    return report
