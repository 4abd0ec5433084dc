"""
Filesystem entity store.

State lives in a .lisa directory under the project root:

    .lisa/
    ├── project.json, config.yaml, .lock
    ├── task_queue.json, stuck_queue.json, feedback_queue.json
    ├── discovery/{context,constraints,history}.json
    ├── milestones/index.json, milestones/<M-id>/discovery.json
    ├── epics/<E-id>-<slug>/{epic.json, prd.md, architecture.md, stories.json, discovery.json}
    └── validation/{coverage,links,issues}.json
"""

from __future__ import annotations

import fcntl
import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import yaml

from lisa.lib.constants import LISA_DIR
from lisa.lib.validate import validate
from lisa.store.base import (
    LOCK_KEY,
    EntityStore,
    _check_holder,
    lock_expired,
    new_lock_record,
)

logger = logging.getLogger(__name__)


class FileSystemStore(EntityStore):
    """Entity store backed by a local .lisa directory."""

    def __init__(self, root: str | Path | None = None, clock: Optional[Callable[[], datetime]] = None):
        super().__init__(clock)
        self.root_dir = Path(root) if root else Path.cwd()
        self.lisa_dir = self.root_dir / LISA_DIR

    def _path(self, key: str) -> Path:
        return self.lisa_dir / key

    def is_initialized(self) -> bool:
        return self.lisa_dir.is_dir()

    def get_root_dir(self) -> str:
        return str(self.root_dir)

    # Documents

    def _read_raw(self, key: str) -> str | None:
        try:
            return self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _write_raw(self, key: str, content: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    def read_json(self, key: str, schema: str | None = None):
        content = self._read_raw(key)
        if content is None:
            return None
        data = json.loads(content)
        if schema:
            validate(data, schema, key)
        return data

    def write_json(self, key: str, data, schema: str | None = None) -> None:
        if schema:
            validate(data, schema, key)
        self._write_raw(key, json.dumps(data, indent=2))

    def read_yaml(self, key: str, schema: str | None = None):
        content = self._read_raw(key)
        if content is None:
            return None
        data = yaml.safe_load(content)
        if schema:
            validate(data, schema, key)
        return data

    def write_yaml(self, key: str, data, schema: str | None = None) -> None:
        if schema:
            validate(data, schema, key)
        self._write_raw(key, yaml.safe_dump(data, sort_keys=False))

    def read_text(self, key: str) -> str | None:
        return self._read_raw(key)

    def write_text(self, key: str, content: str) -> None:
        self._write_raw(key, content)

    # Utility

    def exists(self, key: str) -> bool:
        return self._path(key).exists()

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass

    def list(self, prefix: str) -> list[str]:
        path = self._path(prefix)
        if not path.is_dir():
            return []
        return sorted(p.name for p in path.iterdir())

    def list_directories(self, prefix: str) -> list[str]:
        path = self._path(prefix)
        if not path.is_dir():
            return []
        return sorted(p.name for p in path.iterdir() if p.is_dir())

    def ensure_directory(self, key: str) -> None:
        self._path(key).mkdir(parents=True, exist_ok=True)

    # Advisory lock

    def acquire_lock(self, holder: str, task: str | None = None) -> bool:
        """Take the tree lock, holding flock on .lock while checking it.

        The flock only serializes the read-check-write of acquisition between
        processes. The lock itself is the JSON record and its timeout.
        """
        _check_holder(holder)
        lock_file = self._path(LOCK_KEY)
        lock_file.parent.mkdir(parents=True, exist_ok=True)

        with open(lock_file, "a+", encoding="utf-8") as fd:
            fcntl.flock(fd, fcntl.LOCK_EX)
            try:
                fd.seek(0)
                content = fd.read().strip()
                if content:
                    existing = json.loads(content)
                    validate(existing, "lock", LOCK_KEY)
                    if not lock_expired(existing, self.clock()):
                        logger.debug(f"Lock held by {existing['holder']} until {existing['timeout']}")
                        return False

                lock = new_lock_record(holder, task, self.clock())
                fd.seek(0)
                fd.truncate()
                fd.write(json.dumps(lock, indent=2))
                fd.flush()
                os.fsync(fd.fileno())
                return True
            finally:
                fcntl.flock(fd, fcntl.LOCK_UN)

    def read_lock(self) -> dict | None:
        content = self._read_raw(LOCK_KEY)
        if content is None or not content.strip():
            # Empty file: another process is mid-acquire
            return None
        data = json.loads(content)
        validate(data, "lock", LOCK_KEY)
        return data


def create_filesystem_store(root: str | Path | None = None) -> FileSystemStore:
    """Factory function for cleaner imports."""
    return FileSystemStore(root)
