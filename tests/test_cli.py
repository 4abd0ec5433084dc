"""Tests for lisa.cli and the command modules."""

import json

import pytest

from conftest import make_story
from lisa.cli import build_parser, main

PRD = "### R1: Login\n### R2: Logout\n"


def run(root, *argv):
    return main(["--root", str(root), *argv])


class TestParser:

    def test_validate_defaults_to_all(self):
        args = build_parser().parse_args(["validate"])
        assert args.func.__name__ == "cmd_validate_all"

    def test_lock_defaults_to_show(self):
        args = build_parser().parse_args(["lock"])
        assert args.func.__name__ == "cmd_lock_show"

    def test_story_mark_rejects_unknown_status(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["story", "mark", "E1.S1", "finished"])

    def test_context_defaults_to_project(self):
        args = build_parser().parse_args(["context"])
        assert args.kind == "project"
        assert args.id is None


class TestInit:

    def test_init_then_again(self, tmp_path, capsys):
        assert run(tmp_path, "init", "Demo") == 0
        assert "Initialized project: Demo" in capsys.readouterr().out

        assert run(tmp_path, "init", "Demo") == 1
        assert "ERROR: Project already initialized" in capsys.readouterr().out

    def test_root_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LISA_ROOT", str(tmp_path))
        assert main(["init"]) == 0
        assert (tmp_path / ".lisa" / "project.json").exists()


class TestStatusAndBoard:

    def test_status_uninitialized(self, tmp_path, capsys):
        assert run(tmp_path, "status") == 0
        assert "Run 'lisa init'" in capsys.readouterr().out

    def test_status(self, fs_tree, tmp_path, capsys):
        fs_tree.milestone("M1", epics=["E1"], name="Launch")
        fs_tree.epic("E1", name="Auth", prd_text=PRD, stories=[make_story("E1.S1", "done")])

        assert run(tmp_path, "status") == 0

        out = capsys.readouterr().out
        assert "Project: Disk Project" in out
        assert "M1 Launch" in out
        assert "1/1 (100%)  done" in out
        assert "E1: Auth" in out

    def test_board(self, fs_tree, tmp_path, capsys):
        fs_tree.epic("E1", stories=[
            make_story("E1.S1", "todo"),
            make_story("E1.S2", "blocked"),
        ])

        assert run(tmp_path, "board") == 0

        out = capsys.readouterr().out
        assert "TODO" in out
        assert "E1.S1" in out
        assert "BLOCKED (1):" in out

    def test_corrupt_project_is_data_error(self, fs_state, tmp_path, capsys):
        (tmp_path / ".lisa" / "project.json").write_text('{"name": "no id"}')

        assert run(tmp_path, "status") == 2
        assert "ERROR: [project]" in capsys.readouterr().out


class TestStoryCommands:

    def test_mark_and_show(self, fs_tree, fs_state, tmp_path, capsys):
        epic = fs_tree.epic("E1", stories=[make_story("E1.S1", requirements=["E1.R1"])])

        assert run(tmp_path, "story", "mark", "E1.S1", "blocked", "--reason", "no keys") == 0
        assert "E1.S1: todo -> blocked" in capsys.readouterr().out

        assert run(tmp_path, "story", "show", "E1.S1") == 0
        out = capsys.readouterr().out
        assert "Blocked:  no keys" in out
        assert "  - E1.R1" in out
        assert fs_state.read_stories("E1", epic.slug).find("E1.S1").status == "blocked"

    def test_invalid_story_id(self, fs_state, tmp_path, capsys):
        assert run(tmp_path, "story", "show", "nope") == 1
        assert "ERROR: Invalid story ID: nope" in capsys.readouterr().out


class TestContextCommand:

    def test_story_context_json(self, fs_tree, tmp_path, capsys):
        fs_tree.milestone("M1", epics=["E1"])
        fs_tree.epic("E1", prd_text=PRD, architecture_text="# Arch")

        assert run(tmp_path, "context", "story", "E1", "--json") == 0

        data = json.loads(capsys.readouterr().out)
        assert [r["id"] for r in data["requirements"]] == ["E1.R1", "E1.R2"]
        assert data["project"]["project"]["name"] == "Disk Project"

    def test_missing_prd(self, fs_tree, tmp_path, capsys):
        fs_tree.milestone("M1", epics=["E1"])
        fs_tree.epic("E1")

        assert run(tmp_path, "context", "story", "E1") == 1
        assert "PRD not found for E1" in capsys.readouterr().out

    def test_id_required(self, fs_state, tmp_path, capsys):
        assert run(tmp_path, "context", "epic") == 2
        assert "needs an id" in capsys.readouterr().out


class TestValidateCommand:

    def test_gap_fails(self, fs_tree, tmp_path, capsys):
        fs_tree.epic("E1", prd_text=PRD, stories=[make_story("E1.S1", requirements=["E1.R1"])])

        assert run(tmp_path, "validate") == 1

        out = capsys.readouterr().out
        assert "50.0%" in out
        assert "Suggestion: Generate stories for E1.R2" in out
        assert (tmp_path / ".lisa" / "validation" / "issues.json").exists()

    def test_clean_passes(self, fs_state, tmp_path, capsys):
        assert run(tmp_path, "validate", "all") == 0
        assert "All validations passed!" in capsys.readouterr().out

    def test_epic_report(self, fs_tree, tmp_path, capsys):
        fs_tree.epic("E1", prd_text=PRD, stories=[make_story("E1.S1", requirements=["E1.R1", "E1.R2"])])

        assert run(tmp_path, "validate", "epic", "E1") == 0
        assert "Coverage: 100.0% (2/2)" in capsys.readouterr().out

    def test_uninitialized(self, tmp_path, capsys):
        assert run(tmp_path, "validate", "links") == 1
        assert "No lisa project found." in capsys.readouterr().out


class TestLockCommand:

    def test_acquire_twice(self, fs_state, tmp_path, capsys):
        assert run(tmp_path, "lock", "acquire", "worker", "--task", "E1.S1") == 0
        assert run(tmp_path, "lock", "acquire", "user") == 1
        assert "Lock held by worker" in capsys.readouterr().out

    def test_show_and_release(self, fs_state, tmp_path, capsys):
        run(tmp_path, "lock", "acquire", "system")
        capsys.readouterr()

        assert run(tmp_path, "lock") == 0
        assert "Holder:  system" in capsys.readouterr().out

        assert run(tmp_path, "lock", "release") == 0
        capsys.readouterr()
        run(tmp_path, "lock", "show")
        assert "Unlocked" in capsys.readouterr().out


class TestDiscoveryCommand:

    def test_complete_without_discovery(self, fs_state, tmp_path, capsys):
        assert run(tmp_path, "discovery", "complete", "milestone", "M1") == 1
        assert "No discovery found for milestone M1" in capsys.readouterr().out


class TestPlanCommands:

    def test_build_tree_end_to_end(self, fs_state, tmp_path, capsys):
        prd_file = tmp_path / "prd.md"
        prd_file.write_text(PRD)
        arch_file = tmp_path / "arch.md"
        arch_file.write_text("# Arch")
        stories_file = tmp_path / "stories.json"
        stories_file.write_text(json.dumps({"stories": [{"title": "Login", "requirements": ["E1.R1"]}]}))

        assert run(tmp_path, "milestone", "add", "Launch") == 0
        assert run(tmp_path, "epic", "add", "M1", "User Auth") == 0
        assert "Created epic E1: User Auth" in capsys.readouterr().out

        assert run(tmp_path, "epic", "plan", "E1") == 0
        assert "NEXT: Generate PRD" in capsys.readouterr().out

        assert run(tmp_path, "epic", "prd", "E1", str(prd_file)) == 0
        assert "2 requirements" in capsys.readouterr().out
        assert run(tmp_path, "epic", "arch", "E1", str(arch_file)) == 0
        assert run(tmp_path, "epic", "stories", "E1", str(stories_file)) == 0
        assert run(tmp_path, "story", "add", "E1", "Logout", "--req", "R2") == 0
        assert "Implements: E1.R2" in capsys.readouterr().out

        assert run(tmp_path, "validate") == 0
        assert "All validations passed!" in capsys.readouterr().out

    def test_epic_without_milestones(self, fs_state, tmp_path, capsys):
        assert run(tmp_path, "epic", "add", "M1", "Auth") == 1
        assert "ERROR: No milestones found" in capsys.readouterr().out


class TestFeedbackCommand:

    def test_add_list_resolve(self, fs_tree, fs_state, tmp_path, capsys):
        fs_tree.epic("E1", stories=[make_story("E1.S1", "in_progress")])

        assert run(tmp_path, "feedback", "add", "E1.S1", "blocker", "No API keys") == 0
        out = capsys.readouterr().out
        assert "E1.S1 marked as blocked" in out
        feedback_id = fs_state.read_feedback_queue().feedback[0].id

        assert run(tmp_path, "feedback") == 0
        out = capsys.readouterr().out
        assert "Pending Feedback (1):" in out
        assert f"{feedback_id} [blocker]" in out

        assert run(tmp_path, "feedback", "resolve", feedback_id, "--resolution", "Keys issued") == 0
        assert "lisa story mark E1.S1 todo" in capsys.readouterr().out

        run(tmp_path, "feedback", "list")
        out = capsys.readouterr().out
        assert "No pending feedback" in out
        assert "Changes: Keys issued" in out

    def test_dismiss_unknown(self, fs_state, tmp_path, capsys):
        assert run(tmp_path, "feedback", "dismiss", "fb-nope") == 1
        assert "ERROR: Feedback fb-nope not found." in capsys.readouterr().out

    def test_type_choices(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["feedback", "add", "E1.S1", "praise", "x"])
