import importlib.util
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional


def load_module(path: Path, module_name: Optional[str] = None):
    """Import a python file as a module and register it in ``sys.modules``."""
    path = Path(path)
    module_name = module_name or path.stem
    spec = importlib.util.spec_from_file_location(module_name, str(path))
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load module from {path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


class IdAllocator:
    """
    Hands out numeric annotation ids.

    Ids are derived from the wall clock in milliseconds, always strictly
    increasing, and never equal to an id the allocator was told about
    through :meth:`reserve`. This keeps ids unique across sessions even
    after records were loaded from storage.
    """

    def __init__(self, clock=time.time):
        self._clock = clock
        self._last = 0

    def reserve(self, ids: Iterable) -> None:
        """Make sure future ids are greater than every numeric id in ``ids``."""
        for value in ids:
            try:
                number = int(float(value))
            except (TypeError, ValueError):
                continue
            self._last = max(self._last, number)

    def next_id(self) -> int:
        candidate = int(self._clock() * 1000)
        self._last = max(self._last + 1, candidate)
        return self._last
