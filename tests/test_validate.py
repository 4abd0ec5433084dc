"""Tests for lisa.lib.validate module."""

import pytest

from lisa.lib.validate import ValidationError, schema_validator, validate
from lisa.store.memory import MemoryStore


class TestValidate:

    def test_valid_lock(self):
        validate({"holder": "worker", "started": "a", "timeout": "b"}, "lock")

    def test_error_carries_schema_and_path(self):
        with pytest.raises(ValidationError) as exc:
            validate({"holder": "robot", "started": "a", "timeout": "b"}, "lock")
        assert exc.value.schema_name == "lock"
        assert exc.value.path == "holder"
        assert "[lock]" in str(exc.value)

    def test_root_level_error(self):
        with pytest.raises(ValidationError) as exc:
            validate({"holder": "worker"}, "lock")
        assert exc.value.path == "(root)"

    def test_key_named_in_message(self):
        with pytest.raises(ValidationError) as exc:
            validate({"holder": "worker"}, "lock", key=".lock")
        assert exc.value.key == ".lock"
        assert str(exc.value).endswith("in .lock")

    def test_unknown_schema(self):
        with pytest.raises(ValidationError, match="Schema file not found"):
            validate({}, "no_such_schema")

    def test_validator_compiled_once(self):
        assert schema_validator("project") is schema_validator("project")

    def test_partial_status_allowed_in_coverage(self):
        validate({
            "coverage": {"E1": {"E1.R1": {"stories": [], "status": "partial"}}},
            "summary": {"total_requirements": 1, "covered": 0, "gaps": 0, "coverage_percent": 0},
        }, "coverage")


class TestStoreWrites:
    """Stores check a named schema before anything is written."""

    def test_invalid_document_not_written(self):
        store = MemoryStore()
        with pytest.raises(ValidationError, match="in project.json"):
            store.write_json("project.json", {"name": "x"}, "project")
        assert not store.exists("project.json")

    def test_unnamed_schema_writes_as_is(self):
        store = MemoryStore()
        store.write_json("project.json", {"name": "x"})
        assert store.read_json("project.json") == {"name": "x"}
