"""
File-backed record storage for the annotation service.

All records live in one JSON list. Reads never fail: a missing, unreadable
or malformed file reads as an empty list. Every operation holds a lock so
concurrent requests served from the thread pool cannot interleave their
read-modify-write cycles.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..core.annotation.state import DEFAULT_VIDEO_ID
from ..utils.misc import IdAllocator, utc_now_iso

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


def same_id(left: Any, right: Any) -> bool:
    """Loose id comparison: ``"17"`` from a URL matches the number ``17``."""
    if left == right:
        return True
    try:
        return float(left) == float(right)
    except (TypeError, ValueError):
        return str(left) == str(right)


class AnnotationRepository:
    """
    Annotation records persisted in a JSON file.

    Args:
        path: JSON file holding the record list
        clock: Function returning ISO timestamps
    """

    def __init__(self, path: Path, clock=utc_now_iso):
        self.path = Path(path)
        self.clock = clock
        self.ids = IdAllocator()
        self._lock = threading.Lock()

    def initialize(self):
        """Create the data file with an empty list if it does not exist."""
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._write([])
            logger.info(f"Created annotation data file {self.path}")

    def _read(self) -> List[Record]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Error reading annotations: {e}")
            return []
        return data if isinstance(data, list) else []

    def _write(self, records: List[Record]):
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2)

    def list(self, video_id: Optional[str] = None) -> List[Record]:
        with self._lock:
            records = self._read()
        if video_id is None:
            return records
        return [r for r in records if isinstance(r, dict) and r.get("videoId") == video_id]

    def create(self, fields: Record) -> Record:
        with self._lock:
            records = self._read()
            self.ids.reserve(r.get("id") for r in records if isinstance(r, dict))
            now = self.clock()
            record = {**fields, "id": self.ids.next_id(), "createdAt": now, "updatedAt": now}
            records.append(record)
            self._write(records)
        return record

    def replace(self, annotations: List[Record], video_id: Optional[str] = None) -> List[Record]:
        """
        Bulk save.

        With ``video_id`` only that video's records are replaced; without it
        the whole record set is.
        """
        now = self.clock()
        stamped = [
            {
                **annotation,
                "videoId": video_id or DEFAULT_VIDEO_ID,
                "createdAt": annotation.get("createdAt") or now,
                "updatedAt": now,
            }
            for annotation in annotations
        ]
        with self._lock:
            if video_id:
                others = [
                    r for r in self._read()
                    if not (isinstance(r, dict) and r.get("videoId") == video_id)
                ]
                self._write(others + stamped)
            else:
                self._write(stamped)
        return stamped

    def update(self, annotation_id: Any, fields: Record) -> Optional[Record]:
        with self._lock:
            records = self._read()
            for index, record in enumerate(records):
                if isinstance(record, dict) and same_id(record.get("id"), annotation_id):
                    records[index] = {
                        **record,
                        **fields,
                        "id": record.get("id"),
                        "createdAt": record.get("createdAt"),
                        "updatedAt": self.clock(),
                    }
                    self._write(records)
                    return records[index]
        return None

    def delete(self, annotation_id: Any) -> Optional[Record]:
        with self._lock:
            records = self._read()
            for index, record in enumerate(records):
                if isinstance(record, dict) and same_id(record.get("id"), annotation_id):
                    deleted = records.pop(index)
                    self._write(records)
                    return deleted
        return None

    def clear(self):
        with self._lock:
            self._write([])
