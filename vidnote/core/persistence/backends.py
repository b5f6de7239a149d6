"""
Persistence backends and the local durable store.

Both backends honor the same capability contract:

- ``await load_all(video_id)`` returns the video's records and never raises;
  any failure reads as an empty list.
- ``await save_all(records, video_id)`` returns True on success and never
  raises.

Records are the camelCase wire dictionaries produced by
:meth:`Annotation.to_dict`.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..annotation.state import DEFAULT_VIDEO_ID, Annotation

logger = logging.getLogger(__name__)

STORAGE_KEY = "video-annotations"


def parse_records(records: Any) -> Tuple[Annotation, ...]:
    """
    Turn stored records into annotations.

    A payload that is not a list reads as empty. Records that cannot be
    parsed, or repeat an id already seen, are skipped with a warning.
    """
    if not isinstance(records, list):
        if records is not None:
            logger.warning(f"Ignoring malformed annotation payload of type {type(records).__name__}")
        return ()

    annotations: List[Annotation] = []
    seen = set()
    for record in records:
        try:
            annotation = Annotation.from_dict(record)
        except (TypeError, ValueError) as e:
            logger.warning(f"Skipping invalid annotation record: {e}")
            continue
        if annotation.id in seen:
            logger.warning(f"Skipping duplicate annotation id {annotation.id!r}")
            continue
        seen.add(annotation.id)
        annotations.append(annotation)
    return tuple(annotations)


def record_video_id(record: Dict[str, Any]) -> str:
    return record.get("videoId") or DEFAULT_VIDEO_ID


class KeyValueStore(ABC):
    """Synchronous string key/value store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass


class MemoryKeyValueStore(KeyValueStore):
    """Volatile store, mostly useful for tests and previews."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileKeyValueStore(KeyValueStore):
    """
    Durable store keeping every key in one JSON object on disk.

    The file is read on every ``get`` so that several processes see each
    other's writes, and replaced atomically on every ``set``.

    Args:
        path: JSON file, created on first write
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read {self.path}: {e}. Starting empty.")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"{self.path} does not contain a JSON object. Starting empty.")
            return {}
        return data

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


class AnnotationBackend(ABC):
    """Capability contract shared by every persistence backend."""

    name = "backend"

    @abstractmethod
    async def load_all(self, video_id: str) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def save_all(self, records: Iterable[Dict[str, Any]], video_id: str) -> bool:
        pass


class LocalBackend(AnnotationBackend):
    """
    Backend writing through a :class:`KeyValueStore`.

    All videos share one JSON list under ``key``; saving a video replaces
    only that video's records.
    """

    name = "local"

    def __init__(self, store: KeyValueStore, key: str = STORAGE_KEY):
        self.store = store
        self.key = key

    def read_all(self) -> List[Dict[str, Any]]:
        raw = self.store.get(self.key)
        if raw is None:
            return []
        data = json.loads(raw)
        if not isinstance(data, list):
            logger.warning(f"Local store key '{self.key}' does not hold a list")
            return []
        return [record for record in data if isinstance(record, dict)]

    async def load_all(self, video_id: str) -> List[Dict[str, Any]]:
        try:
            records = self.read_all()
        except Exception:
            logger.exception("Failed to load annotations from the local store")
            return []
        return [record for record in records if record_video_id(record) == video_id]

    async def save_all(self, records: Iterable[Dict[str, Any]], video_id: str) -> bool:
        try:
            try:
                others = [r for r in self.read_all() if record_video_id(r) != video_id]
            except ValueError:
                logger.warning("Local store content is corrupted, overwriting it")
                others = []
            stamped = [{**record, "videoId": video_id} for record in records]
            self.store.set(self.key, json.dumps(others + stamped))
        except Exception:
            logger.exception("Failed to save annotations to the local store")
            return False
        logger.info(f"Annotations saved to local store: {len(stamped)}")
        return True
