"""
Persistence of annotations.

Two interchangeable backends (local durable store, remote service) and the
debounced synchronizer keeping the store and the active backend in step.
"""

from .backends import (
    STORAGE_KEY,
    AnnotationBackend,
    JsonFileKeyValueStore,
    KeyValueStore,
    LocalBackend,
    MemoryKeyValueStore,
    parse_records,
)
from .remote import RemoteBackend
from .sync import PersistenceSync

__all__ = [
    "STORAGE_KEY",
    "AnnotationBackend",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "LocalBackend",
    "MemoryKeyValueStore",
    "RemoteBackend",
    "PersistenceSync",
    "parse_records",
]
