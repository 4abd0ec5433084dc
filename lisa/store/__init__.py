"""
Entity store backends for lisa.

The engine depends only on the EntityStore contract; FileSystemStore is the
default backend and MemoryStore keeps the same key semantics in memory.
"""

from lisa.store.base import EntityStore, LOCK_KEY, LOCK_TIMEOUT
from lisa.store.filesystem import FileSystemStore, create_filesystem_store
from lisa.store.memory import MemoryStore

__all__ = [
    "EntityStore",
    "LOCK_KEY",
    "LOCK_TIMEOUT",
    "FileSystemStore",
    "create_filesystem_store",
    "MemoryStore",
]
