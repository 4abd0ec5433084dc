"""
Data models for the planning tree.

Documents are read from the store as dicts, validated against their JSON
schema, then turned into these dataclasses. Epic and milestone have no
status field: their status is always derived (see status.py).
"""

from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Optional


class DerivedEpicStatus(str, Enum):
    """Epic status computed from artifacts and stories, never stored."""
    PLANNED = "planned"          # No artifacts yet
    DRAFTING = "drafting"        # PRD or architecture complete, no stories
    READY = "ready"              # Stories exist, none started
    IN_PROGRESS = "in_progress"  # Some stories assigned/in progress/in review
    DONE = "done"                # All stories done
    DEFERRED = "deferred"        # Explicitly put on hold


class DerivedMilestoneStatus(str, Enum):
    """Milestone status computed from its epics' derived statuses."""
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    DONE = "done"


def _known(cls, data: dict) -> dict:
    """Drop keys the dataclass doesn't declare (documents may carry extras)."""
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


def _drop_none(data: dict, keep: tuple = ()) -> dict:
    return {k: v for k, v in data.items() if v is not None or k in keep}


# Project

@dataclass
class ProjectStats:
    milestones: int = 0
    epics: int = 0
    stories: int = 0
    completed_stories: int = 0


@dataclass
class Project:
    id: str                  # proj-1700000000000
    name: str
    created: str
    updated: str
    status: str              # active, paused, complete
    stats: ProjectStats = field(default_factory=ProjectStats)
    description: Optional[str] = None
    current_focus: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        data = _known(cls, data)
        data["stats"] = ProjectStats(**_known(ProjectStats, data.get("stats", {})))
        return cls(**data)

    def to_dict(self) -> dict:
        return _drop_none(asdict(self))


# Discovery

@dataclass
class Value:
    id: str
    name: str
    description: str
    priority: int


@dataclass
class DiscoveryContext:
    problem: Optional[str] = None
    vision: Optional[str] = None
    values: list[Value] = field(default_factory=list)
    success_criteria: list[str] = field(default_factory=list)
    gathered: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "DiscoveryContext":
        data = _known(cls, data)
        data["values"] = [Value(**_known(Value, v)) for v in data.get("values", [])]
        return cls(**data)

    def to_dict(self) -> dict:
        return _drop_none(asdict(self))


@dataclass
class Constraint:
    id: str
    type: str                # technical, resource, frozen, business, timeline
    constraint: str
    reason: Optional[str] = None
    impact: list[str] = field(default_factory=list)


@dataclass
class Constraints:
    constraints: list[Constraint] = field(default_factory=list)
    gathered: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Constraints":
        data = _known(cls, data)
        data["constraints"] = [Constraint(**_known(Constraint, c)) for c in data.get("constraints", [])]
        return cls(**data)

    def to_dict(self) -> dict:
        result = _drop_none(asdict(self))
        result["constraints"] = [_drop_none(c) for c in result["constraints"]]
        return result


@dataclass
class DiscoveryHistory:
    entries: list[dict] = field(default_factory=list)
    started: Optional[str] = None
    completed: Optional[str] = None
    is_complete: bool = False
    depth_preference: Optional[str] = None
    last_active: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "DiscoveryHistory":
        return cls(**_known(cls, data))

    def to_dict(self) -> dict:
        return _drop_none(asdict(self))


@dataclass
class ElementDiscovery:
    """Free-form scoping notes attached to a milestone or epic."""
    element_type: str        # milestone, epic, story
    element_id: str
    status: str              # not_started, in_progress, complete, skipped
    source: str              # ai_proposed, user_added, feedback
    created: str
    updated: str
    problem: Optional[str] = None
    scope: list[str] = field(default_factory=list)
    out_of_scope: list[str] = field(default_factory=list)
    success_criteria: list[str] = field(default_factory=list)
    constraints: list[dict] = field(default_factory=list)
    history: list[dict] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "ElementDiscovery":
        return cls(**_known(cls, data))

    def to_dict(self) -> dict:
        return _drop_none(asdict(self))


# Milestones

@dataclass
class Milestone:
    id: str                  # M1, M2, ...
    slug: str
    name: str
    description: str
    order: int
    created: str
    updated: str
    epics: list[str] = field(default_factory=list)   # Epic IDs

    @classmethod
    def from_dict(cls, data: dict) -> "Milestone":
        return cls(**_known(cls, data))

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class MilestoneIndex:
    milestones: list[Milestone] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "MilestoneIndex":
        return cls(milestones=[Milestone.from_dict(m) for m in data.get("milestones", [])])

    def find(self, milestone_id: str) -> Optional[Milestone]:
        for milestone in self.milestones:
            if milestone.id == milestone_id:
                return milestone
        return None

    def to_dict(self) -> dict:
        return {"milestones": [m.to_dict() for m in self.milestones]}


# Epics

@dataclass
class ArtifactMeta:
    status: str              # pending, in_progress, complete, needs_review, needs_update
    version: int = 1
    last_updated: Optional[str] = None

    @property
    def complete(self) -> bool:
        return self.status == "complete"


@dataclass
class StoriesArtifact:
    status: str
    count: int = 0


@dataclass
class EpicArtifacts:
    prd: ArtifactMeta
    architecture: ArtifactMeta
    stories: StoriesArtifact

    @classmethod
    def from_dict(cls, data: dict) -> "EpicArtifacts":
        return cls(
            prd=ArtifactMeta(**_known(ArtifactMeta, data["prd"])),
            architecture=ArtifactMeta(**_known(ArtifactMeta, data["architecture"])),
            stories=StoriesArtifact(**_known(StoriesArtifact, data["stories"])),
        )


@dataclass
class EpicStats:
    requirements: int = 0
    stories: int = 0
    coverage: float = 0


@dataclass
class Epic:
    id: str                  # E1, E2, ...
    slug: str
    name: str
    description: str
    milestone: str           # Back-reference to M<n>
    created: str
    updated: str
    artifacts: EpicArtifacts
    deferred: bool = False
    dependencies: list[str] = field(default_factory=list)   # Other epic IDs
    stats: EpicStats = field(default_factory=EpicStats)

    @property
    def has_prd(self) -> bool:
        return self.artifacts.prd.complete

    @property
    def has_architecture(self) -> bool:
        return self.artifacts.architecture.complete

    @classmethod
    def from_dict(cls, data: dict) -> "Epic":
        data = _known(cls, data)
        data["artifacts"] = EpicArtifacts.from_dict(data["artifacts"])
        data["stats"] = EpicStats(**_known(EpicStats, data.get("stats", {})))
        return cls(**data)

    def to_dict(self) -> dict:
        result = asdict(self)
        for name in ("prd", "architecture"):
            result["artifacts"][name] = _drop_none(result["artifacts"][name])
        return result


# Stories

@dataclass
class Story:
    id: str                  # E1.S1
    title: str
    description: str
    type: str                # feature, bug, chore, spike
    status: str              # todo, assigned, in_progress, review, done, blocked, deferred
    requirements: list[str] = field(default_factory=list)          # E1.R1, ...
    acceptance_criteria: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)          # Other story IDs
    estimated_points: Optional[float] = None
    assignee: Optional[str] = None
    blocked_reason: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Story":
        return cls(**_known(cls, data))

    def to_dict(self) -> dict:
        return _drop_none(asdict(self), keep=("assignee",))


@dataclass
class StoriesValidation:
    coverage_complete: bool = False
    all_links_valid: bool = False
    last_validated: Optional[str] = None


@dataclass
class StoriesFile:
    epic_id: str
    stories: list[Story] = field(default_factory=list)
    coverage: dict[str, list[str]] = field(default_factory=dict)   # R1 -> [S1, S2]
    validation: StoriesValidation = field(default_factory=StoriesValidation)

    @classmethod
    def from_dict(cls, data: dict) -> "StoriesFile":
        return cls(
            epic_id=data["epic_id"],
            stories=[Story.from_dict(s) for s in data.get("stories", [])],
            coverage=data.get("coverage", {}),
            validation=StoriesValidation(**_known(StoriesValidation, data.get("validation", {}))),
        )

    def find(self, story_id: str) -> Optional[Story]:
        for story in self.stories:
            if story.id == story_id:
                return story
        return None

    def to_dict(self) -> dict:
        return {
            "epic_id": self.epic_id,
            "stories": [s.to_dict() for s in self.stories],
            "coverage": self.coverage,
            "validation": _drop_none(asdict(self.validation)),
        }


# Validation reports

@dataclass(frozen=True)
class Ref:
    """One end of a link, or the location of an issue."""
    type: str
    id: str


@dataclass
class Link:
    source: Ref
    target: Ref
    type: str                # implements, depends_on, respects, extends, blocks
    valid: bool

    def to_dict(self) -> dict:
        return {"from": asdict(self.source), "to": asdict(self.target), "type": self.type, "valid": self.valid}


@dataclass
class Orphan:
    type: str
    id: str
    reason: str


@dataclass
class LinksSummary:
    total_links: int
    valid: int
    broken: int
    orphans: int


@dataclass
class Links:
    links: list[Link]
    broken: list[Link]
    orphans: list[Orphan]
    summary: LinksSummary
    last_validated: Optional[str] = None

    def to_dict(self) -> dict:
        return _drop_none({
            "links": [link.to_dict() for link in self.links],
            "broken": [link.to_dict() for link in self.broken],
            "orphans": [asdict(o) for o in self.orphans],
            "summary": asdict(self.summary),
            "last_validated": self.last_validated,
        })


@dataclass
class CoverageEntry:
    stories: list[str]
    status: str              # covered, gap, partial (partial is reserved, never produced)


@dataclass
class CoverageGap:
    requirement: str
    epic: str
    text: Optional[str] = None
    reason: Optional[str] = None


@dataclass
class CoverageSummary:
    total_requirements: int
    covered: int
    gaps: int
    coverage_percent: float


@dataclass
class Coverage:
    coverage: dict[str, dict[str, CoverageEntry]]    # epic id -> requirement id -> entry
    summary: CoverageSummary
    gaps: list[CoverageGap]
    last_validated: Optional[str] = None

    def to_dict(self) -> dict:
        return _drop_none({
            "coverage": {
                epic_id: {req_id: asdict(entry) for req_id, entry in reqs.items()}
                for epic_id, reqs in self.coverage.items()
            },
            "summary": asdict(self.summary),
            "gaps": [_drop_none(asdict(g)) for g in self.gaps],
            "last_validated": self.last_validated,
        })


@dataclass
class ValidationIssue:
    id: str
    severity: str            # error, warning, info
    type: str                # missing_file, invalid_schema, broken_link, orphan_artifact, coverage_gap
    location: Ref
    message: str
    suggestion: Optional[str] = None

    def to_dict(self) -> dict:
        return _drop_none(asdict(self))


@dataclass
class IssuesSummary:
    errors: int
    warnings: int
    info: int


@dataclass
class ValidationIssues:
    issues: list[ValidationIssue]
    summary: IssuesSummary
    last_validated: Optional[str] = None

    def to_dict(self) -> dict:
        return _drop_none({
            "issues": [i.to_dict() for i in self.issues],
            "summary": asdict(self.summary),
            "last_validated": self.last_validated,
        })


# Feedback

@dataclass
class FeedbackSource:
    type: str                # execution, review, user
    story_id: Optional[str] = None
    reported_by: Optional[str] = None


@dataclass
class FeedbackItem:
    """Something found while executing a story that the plan must absorb."""
    id: str                  # fb-lq3k9x2a-4f7b
    type: str                # blocker, gap, scope, conflict, question
    source: FeedbackSource
    summary: str
    status: str              # pending, incorporated, dismissed
    created: str
    affects: list[Ref] = field(default_factory=list)
    suggested_actions: list[str] = field(default_factory=list)
    details: Optional[dict] = None

    @classmethod
    def from_dict(cls, data: dict) -> "FeedbackItem":
        data = _known(cls, data)
        data["source"] = FeedbackSource(**_known(FeedbackSource, data.get("source", {"type": "user"})))
        data["affects"] = [Ref(**_known(Ref, a)) for a in data.get("affects", [])]
        return cls(**data)

    def to_dict(self) -> dict:
        result = _drop_none(asdict(self))
        result["source"] = _drop_none(result["source"])
        return result


@dataclass
class IncorporatedFeedback:
    id: str
    summary: str
    incorporated: str
    changes_made: list[str] = field(default_factory=list)


@dataclass
class FeedbackQueue:
    feedback: list[FeedbackItem] = field(default_factory=list)
    incorporated: list[IncorporatedFeedback] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "FeedbackQueue":
        return cls(
            feedback=[FeedbackItem.from_dict(f) for f in data.get("feedback", [])],
            incorporated=[IncorporatedFeedback(**_known(IncorporatedFeedback, i))
                          for i in data.get("incorporated", [])],
        )

    @property
    def pending(self) -> list[FeedbackItem]:
        return [f for f in self.feedback if f.status == "pending"]

    def find(self, feedback_id: str) -> Optional[FeedbackItem]:
        for item in self.feedback:
            if item.id == feedback_id:
                return item
        return None

    def to_dict(self) -> dict:
        return {
            "feedback": [f.to_dict() for f in self.feedback],
            "incorporated": [asdict(i) for i in self.incorporated],
        }
