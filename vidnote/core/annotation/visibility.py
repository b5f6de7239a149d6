"""
Time-windowed visibility of annotations.

``visible_annotations`` is the pure filter; :class:`VisibilityMonitor`
samples the video surface at a fixed interval and recomputes the visible
set from the store's current state on every tick.
"""

import asyncio
import logging
from typing import Callable, Iterable, List, Optional

from .events import AnnotationEvent, EventType
from .state import Annotation

logger = logging.getLogger(__name__)


def visible_annotations(annotations: Iterable[Annotation], t: float) -> List[Annotation]:
    """
    Annotations active at playback time ``t``.

    The visibility window is closed: both ``start`` and ``end`` count.
    Input order is preserved.
    """
    return [annotation for annotation in annotations if annotation.start <= t <= annotation.end]


class VisibilityMonitor:
    """
    Polls the playback time and publishes the visible annotations.

    Args:
        video: Video surface exposing ``current_time``
        store: Annotation store to read the current state from
        interval: Seconds between two samples
        on_visible: Optional callback receiving ``(t, visible)`` on each tick
    """

    def __init__(
        self,
        video,
        store,
        interval: float = 0.1,
        on_visible: Optional[Callable[[float, List[Annotation]], None]] = None,
    ):
        self.video = video
        self.store = store
        self.interval = interval
        self.on_visible = on_visible
        self.current_time = 0.0
        self.visible: List[Annotation] = []
        self._task: Optional[asyncio.Task] = None

    def sample(self) -> List[Annotation]:
        """Take one sample of the playback time and recompute visibility."""
        self.current_time = float(self.video.current_time)
        visible = visible_annotations(self.store.state.annotations, self.current_time)
        changed = visible != self.visible
        self.visible = visible
        if self.on_visible is not None:
            try:
                self.on_visible(self.current_time, visible)
            except Exception:
                # Keep polling; a broken renderer must not stop visibility updates
                logger.exception("Error in visibility callback")
        if changed:
            self.store.events.emit(
                AnnotationEvent(
                    EventType.VISIBLE_CHANGED,
                    {"time": self.current_time, "visible": visible},
                )
            )
        return visible

    async def run(self):
        """Sample forever, once per interval."""
        while True:
            self.sample()
            await asyncio.sleep(self.interval)

    def start(self) -> asyncio.Task:
        """Start polling on the running event loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run())
            logger.debug(f"Visibility polling started every {self.interval}s")
        return self._task

    async def stop(self):
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
