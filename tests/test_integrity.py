"""Tests for lisa.core.integrity module."""

import json
import re

import pytest

from conftest import make_story
from lisa.core.integrity import (
    build_identifier_universe,
    run_full_validation,
    validate_coverage,
    validate_coverage_internal,
    validate_epic,
    validate_links,
    validate_links_internal,
)
from lisa.core.models import Constraint, Constraints, DiscoveryContext, Value
from lisa.core.state import PATHS, StateManager
from lisa.lib.errors import NOT_FOUND, NOT_INITIALIZED, LisaError
from lisa.store.memory import MemoryStore

TWO_REQS = "### R1: Login\n\nUsers sign in.\n\n### R2: Logout\n"


class TestIdentifierUniverse:

    def test_collects_all_id_kinds(self, tree, state):
        tree.milestone("M1", epics=["E1"])
        tree.epic("E1", prd_text=TWO_REQS, stories=[make_story("E1.S1", requirements=["E1.R1"])])
        state.write_discovery_context(DiscoveryContext(
            values=[Value(id="V1", name="Speed", description="Fast", priority=1)],
        ))
        state.write_constraints(Constraints(
            constraints=[Constraint(id="C1", type="technical", constraint="Python only")],
        ))

        universe = build_identifier_universe(state)

        assert universe == {"M1", "V1", "C1", "E1", "E1.R1", "E1.R2", "E1.S1"}

    def test_prefixed_heading_normalizes_to_owning_epic(self, tree, state):
        tree.epic("E1", prd_text="### E2.R4: Borrowed heading\n")
        assert "E1.R4" in build_identifier_universe(state)


class TestLinks:

    def test_valid_requirement_link(self, tree, state):
        tree.epic("E1", prd_text=TWO_REQS, stories=[make_story("E1.S1", requirements=["E1.R1"])])

        links = validate_links_internal(state)

        assert links.summary.total_links == 1
        assert links.summary.valid == 1
        assert links.links[0].type == "implements"
        assert links.links[0].valid is True

    def test_broken_requirement_link(self, tree, state):
        tree.epic("E1", prd_text=TWO_REQS, stories=[make_story("E1.S1", requirements=["E1.R999"])])

        links = validate_links_internal(state)

        assert links.summary.broken == 1
        assert links.broken[0].target.id == "E1.R999"
        assert links.broken[0].valid is False

    def test_orphan_is_not_broken(self, tree, state):
        tree.epic("E1", prd_text=TWO_REQS, stories=[make_story("E1.S1", requirements=[])])

        links = validate_links_internal(state)

        assert [o.id for o in links.orphans] == ["E1.S1"]
        assert links.orphans[0].reason == "Story has no requirement links"
        assert links.broken == []

    def test_forward_dependency_to_later_epic_is_valid(self, tree, state):
        tree.epic("E1", prd_text=TWO_REQS, stories=[
            make_story("E1.S1", requirements=["E1.R1"], dependencies=["E2.S1"]),
        ])
        tree.epic("E2", prd_text="### R1: Pay\n", stories=[make_story("E2.S1", requirements=["E2.R1"])])

        links = validate_links_internal(state)

        depends = [link for link in links.links if link.type == "depends_on"]
        assert len(depends) == 1
        assert depends[0].valid is True
        assert links.summary.broken == 0

    def test_serialized_links_use_from_and_to(self, tree, state, store):
        tree.epic("E1", prd_text=TWO_REQS, stories=[make_story("E1.S1", requirements=["E1.R1"])])

        validate_links(state)

        data = store.read_json(PATHS["links"], "links")
        assert data["links"][0]["from"] == {"type": "story", "id": "E1.S1"}
        assert data["links"][0]["to"] == {"type": "requirement", "id": "E1.R1"}


class TestCoverage:

    def test_half_covered(self, tree, state):
        tree.epic("E1", prd_text=TWO_REQS, stories=[make_story("E1.S1", requirements=["E1.R1"])])

        coverage = validate_coverage_internal(state)

        assert coverage.summary.total_requirements == 2
        assert coverage.summary.covered == 1
        assert coverage.summary.coverage_percent == 50
        assert coverage.summary.gaps == 1
        assert coverage.gaps[0].requirement == "E1.R2"
        assert coverage.gaps[0].text == "Logout"
        assert coverage.coverage["E1"]["E1.R1"].stories == ["E1.S1"]
        assert coverage.coverage["E1"]["E1.R2"].status == "gap"

    def test_zero_requirements_is_zero_percent(self, tree, state):
        tree.epic("E1", prd_text="# PRD without requirement headings\n")

        coverage = validate_coverage_internal(state)

        assert coverage.summary.total_requirements == 0
        assert coverage.summary.coverage_percent == 0

    def test_no_partial_status(self, tree, state):
        tree.epic("E1", prd_text=TWO_REQS, stories=[
            make_story("E1.S1", requirements=["E1.R1", "E1.R2"]),
            make_story("E1.S2", requirements=["E1.R1"]),
        ])

        coverage = validate_coverage_internal(state)

        statuses = {e.status for e in coverage.coverage["E1"].values()}
        assert statuses == {"covered"}
        assert coverage.coverage["E1"]["E1.R1"].stories == ["E1.S1", "E1.S2"]

    def test_repeated_requirement_listed_once(self, tree, state):
        tree.epic("E1", prd_text=TWO_REQS, stories=[
            make_story("E1.S1", requirements=["E1.R1", "E1.R1"]),
        ])

        coverage = validate_coverage_internal(state)

        assert coverage.coverage["E1"]["E1.R1"].stories == ["E1.S1"]

    def test_epic_without_prd_has_empty_entry(self, tree, state):
        tree.epic("E1")
        coverage = validate_coverage_internal(state)
        assert coverage.coverage == {"E1": {}}

    def test_validate_coverage_persists_only_coverage(self, tree, state, store):
        tree.epic("E1", prd_text=TWO_REQS)

        validate_coverage(state)

        assert store.exists(PATHS["coverage"])
        assert not store.exists(PATHS["links"])


class TestFullValidation:

    def test_requires_initialized_tree(self):
        state = StateManager(MemoryStore())
        with pytest.raises(LisaError) as exc:
            run_full_validation(state)
        assert exc.value.code == NOT_INITIALIZED

    def test_clean_tree_still_persists_snapshots(self, state, store):
        result = run_full_validation(state)

        assert result.issues.issues == []
        for key in ("links", "coverage", "issues"):
            assert store.exists(PATHS[key])
        issues = store.read_json(PATHS["issues"], "issues")
        assert issues["summary"] == {"errors": 0, "warnings": 0, "info": 0}

    def test_broken_link_becomes_error_issue(self, tree, state):
        tree.epic("E1", prd_text=TWO_REQS, stories=[
            make_story("E1.S1", requirements=["E1.R1", "E1.R999"]),
            make_story("E1.S2", requirements=["E1.R2"]),
        ])

        result = run_full_validation(state)

        broken = [i for i in result.issues.issues if i.type == "broken_link"]
        assert len(broken) == 1
        assert broken[0].severity == "error"
        assert broken[0].location.id == "E1.S1"
        assert broken[0].message == "Broken link to requirement:E1.R999"
        assert broken[0].suggestion == "Verify E1.R999 exists or remove reference"

    def test_orphan_becomes_warning_and_gap_becomes_error(self, tree, state):
        tree.epic("E1", prd_text=TWO_REQS, stories=[
            make_story("E1.S1", requirements=["E1.R1"]),
            make_story("E1.S2"),
        ])

        result = run_full_validation(state)

        by_type = {i.type: i for i in result.issues.issues}
        assert by_type["orphan_artifact"].severity == "warning"
        assert by_type["orphan_artifact"].location.id == "E1.S2"
        assert by_type["coverage_gap"].severity == "error"
        assert by_type["coverage_gap"].suggestion == "Generate stories for E1.R2"
        assert result.summary.errors == 1
        assert result.summary.warnings == 1

    def test_missing_epic_json_reported(self, state):
        state.create_epic_dir("E5", "half-made")

        result = run_full_validation(state)

        missing = [i for i in result.issues.issues if i.type == "missing_file"]
        assert len(missing) == 1
        assert missing[0].location.id == "E5"
        assert missing[0].message == "epic.json not found for E5"

    def test_invalid_epic_json_captured_not_raised(self, state, store):
        store.write_json("epics/E3-bad/epic.json", {"id": "E3"})

        result = run_full_validation(state)

        invalid = [i for i in result.issues.issues if i.type == "invalid_schema"]
        assert len(invalid) == 1
        assert invalid[0].location.id == "E3"

    def test_issue_ids(self, tree, state):
        tree.epic("E1", prd_text=TWO_REQS)

        result = run_full_validation(state)

        ids = [i.id for i in result.issues.issues]
        assert len(ids) == 2
        assert all(re.match(r'^issue-[0-9a-z]+-[0-9a-z]{4}$', i) for i in ids)

    def test_idempotent_apart_from_timestamp(self, tree, state, store):
        tree.milestone("M1", epics=["E1"])
        tree.epic("E1", prd_text=TWO_REQS, stories=[
            make_story("E1.S1", requirements=["E1.R1", "E1.R7"], dependencies=["E1.S2"]),
            make_story("E1.S2"),
        ])

        def snapshot():
            docs = {}
            for key in ("links", "coverage"):
                data = store.read_json(PATHS[key])
                data.pop("last_validated")
                docs[key] = json.dumps(data, sort_keys=True)
            return docs

        run_full_validation(state)
        first = snapshot()
        run_full_validation(state)
        assert snapshot() == first


class TestValidateEpic:

    def test_not_found(self, state):
        with pytest.raises(LisaError) as exc:
            validate_epic(state, "E1")
        assert exc.value.code == NOT_FOUND

    def test_report(self, tree, state, store):
        prd = TWO_REQS + "\n- [ ] can log in\n- [ ] can log out\n"
        tree.epic("E1", prd_text=prd, architecture_text="# Arch", stories=[
            make_story("E1.S1", status="in_progress", requirements=["E1.R1"]),
        ])

        report = validate_epic(state, "E1")

        assert report.status == "in_progress"
        assert report.has_epic and report.has_prd and report.has_architecture
        assert report.story_count == 1
        assert report.requirement_count == 2
        assert report.acceptance_criteria == 2
        assert report.total == 2
        assert report.covered == 1
        assert report.percent == 50
        assert report.uncovered == ["E1.R2"]
        assert not store.exists(PATHS["coverage"])

    def test_no_coverage_without_stories(self, tree, state):
        tree.epic("E1", prd_text=TWO_REQS)

        report = validate_epic(state, "E1")

        assert report.coverage_computed is False
        assert report.status == "drafting"
        assert report.to_dict()["coverage"] == {"total": 0, "covered": 0, "percent": 0}

    def test_missing_epic_json(self, state):
        state.create_epic_dir("E1", "bare")

        report = validate_epic(state, "E1")

        assert report.has_epic is False
        assert report.status == "unknown"
        assert report.epic_name == "E1"
