"""
In-memory entity store.

Keeps every document in a dict keyed exactly like the filesystem layout.
Directories are implied by key prefixes; ensure_directory() records empty
ones so list_directories() sees them before anything is written inside.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Callable, Optional

import yaml

from lisa.lib.validate import validate
from lisa.store.base import EntityStore


def _norm(key: str) -> str:
    return key.strip("/")


class MemoryStore(EntityStore):
    """Dict-backed store. Documents are stored serialized so reads never alias writes."""

    def __init__(self, root: str = "memory://", clock: Optional[Callable[[], datetime]] = None):
        super().__init__(clock)
        self.root = root
        self.documents: dict[str, str] = {}
        self.directories: set[str] = set()

    def is_initialized(self) -> bool:
        return bool(self.documents or self.directories)

    def get_root_dir(self) -> str:
        return self.root

    def read_json(self, key: str, schema: str | None = None):
        content = self.documents.get(_norm(key))
        if content is None:
            return None
        data = json.loads(content)
        if schema:
            validate(data, schema, key)
        return data

    def write_json(self, key: str, data, schema: str | None = None) -> None:
        if schema:
            validate(data, schema, key)
        self.documents[_norm(key)] = json.dumps(data, indent=2)

    def read_yaml(self, key: str, schema: str | None = None):
        content = self.documents.get(_norm(key))
        if content is None:
            return None
        data = yaml.safe_load(content)
        if schema:
            validate(data, schema, key)
        return data

    def write_yaml(self, key: str, data, schema: str | None = None) -> None:
        if schema:
            validate(data, schema, key)
        self.documents[_norm(key)] = yaml.safe_dump(data, sort_keys=False)

    def read_text(self, key: str) -> str | None:
        return self.documents.get(_norm(key))

    def write_text(self, key: str, content: str) -> None:
        self.documents[_norm(key)] = content

    def exists(self, key: str) -> bool:
        key = _norm(key)
        if key in self.documents or key in self.directories:
            return True
        prefix = key + "/"
        return any(k.startswith(prefix) for k in self.documents)

    def delete(self, key: str) -> None:
        self.documents.pop(_norm(key), None)

    def _children(self, prefix: str) -> tuple[set[str], set[str]]:
        """Return (file names, directory names) directly under prefix."""
        prefix = _norm(prefix)
        base = prefix + "/" if prefix else ""
        files, dirs = set(), set()

        for key in self.documents:
            if not key.startswith(base):
                continue
            head, sep, _ = key[len(base):].partition("/")
            (dirs if sep else files).add(head)

        for key in self.directories:
            if key.startswith(base) and key != prefix:
                dirs.add(key[len(base):].split("/", 1)[0])

        return files, dirs

    def list(self, prefix: str) -> list[str]:
        files, dirs = self._children(prefix)
        return sorted(files | dirs)

    def list_directories(self, prefix: str) -> list[str]:
        _, dirs = self._children(prefix)
        return sorted(dirs)

    def ensure_directory(self, key: str) -> None:
        parts = _norm(key).split("/")
        for i in range(1, len(parts) + 1):
            self.directories.add("/".join(parts[:i]))
