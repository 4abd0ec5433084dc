"""
Entity store contract.

The engine only talks to persistence through this interface. Keys are
path-like strings ("project.json", "epics/E1-auth/prd.md"); each backend
interprets them for its own storage while preserving key semantics.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, Optional

from lisa.lib.constants import LOCK_HOLDERS, LOCK_TIMEOUT_MINUTES
from lisa.lib.dates import format_iso, parse_iso, utcnow

LOCK_KEY = ".lock"
LOCK_TIMEOUT = timedelta(minutes=LOCK_TIMEOUT_MINUTES)


class EntityStore(ABC):
    """Key/value document store for a planning tree.

    Reads return None for absent keys and never raise for absence.
    Malformed documents and schema violations raise.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or utcnow

    # Lifecycle

    @abstractmethod
    def is_initialized(self) -> bool:
        ...

    @abstractmethod
    def get_root_dir(self) -> str:
        ...

    # Documents

    @abstractmethod
    def read_json(self, key: str, schema: str | None = None):
        ...

    @abstractmethod
    def write_json(self, key: str, data, schema: str | None = None) -> None:
        """Write data, validating it against schema first when one is named."""
        ...

    @abstractmethod
    def read_yaml(self, key: str, schema: str | None = None):
        ...

    @abstractmethod
    def write_yaml(self, key: str, data, schema: str | None = None) -> None:
        ...

    @abstractmethod
    def read_text(self, key: str) -> str | None:
        ...

    @abstractmethod
    def write_text(self, key: str, content: str) -> None:
        ...

    # Utility

    @abstractmethod
    def exists(self, key: str) -> bool:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def list(self, prefix: str) -> list[str]:
        """Names (not full keys) directly under prefix."""

    @abstractmethod
    def list_directories(self, prefix: str) -> list[str]:
        """Sorted directory names directly under prefix."""

    @abstractmethod
    def ensure_directory(self, key: str) -> None:
        ...

    # Advisory lock

    def acquire_lock(self, holder: str, task: str | None = None) -> bool:
        """Take the tree lock unless an unexpired one is held.

        Returns False if another lock's timeout is still in the future.
        Expired locks are overwritten, there is no explicit stealing.
        """
        _check_holder(holder)
        existing = self.read_lock()
        if existing and not lock_expired(existing, self.clock()):
            return False
        self.write_json(LOCK_KEY, new_lock_record(holder, task, self.clock()), "lock")
        return True

    def release_lock(self) -> None:
        self.delete(LOCK_KEY)

    def read_lock(self) -> dict | None:
        return self.read_json(LOCK_KEY, "lock")


def _check_holder(holder: str) -> None:
    if holder not in LOCK_HOLDERS:
        raise ValueError(f"Invalid lock holder '{holder}', expected one of {', '.join(LOCK_HOLDERS)}")


def new_lock_record(holder: str, task: str | None, now: datetime) -> dict:
    lock = {"holder": holder}
    if task:
        lock["task"] = task
    lock["started"] = format_iso(now)
    lock["timeout"] = format_iso(now + LOCK_TIMEOUT)
    return lock


def lock_expired(lock: dict, now: datetime) -> bool:
    """A lock is live while its timeout is strictly later than now."""
    return not parse_iso(lock["timeout"]) > now
