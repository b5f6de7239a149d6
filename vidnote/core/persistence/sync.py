"""
Debounced synchronization between the store and a persistence backend.

:class:`PersistenceSync` loads the video's annotations from the active
backend when activated, then persists the annotation list once it stopped
changing for ``debounce`` seconds. Everything runs on the asyncio event
loop; the only suspension points are the debounce delay and the backend
calls.
"""

import asyncio
import logging
from typing import Optional

from ..annotation.actions import LoadAnnotations
from ..annotation.events import AnnotationEvent, EventType
from ..annotation.state import DEFAULT_VIDEO_ID
from ..annotation.store import AnnotationStore
from .backends import AnnotationBackend, parse_records

logger = logging.getLogger(__name__)


class PersistenceSync:
    """
    Keeps one video's annotations in sync with the local or remote backend.

    Args:
        store: Store to load into and persist from
        local: Local durable backend, also the fallback of remote saves
        remote: Optional remote backend
        video_id: Video whose annotations are synchronized
        debounce: Quiet period in seconds before a change is persisted
        use_remote: Start with the remote backend active
    """

    def __init__(
        self,
        store: AnnotationStore,
        local: AnnotationBackend,
        remote: Optional[AnnotationBackend] = None,
        video_id: str = DEFAULT_VIDEO_ID,
        debounce: float = 1.0,
        use_remote: bool = False,
    ):
        if use_remote and remote is None:
            raise ValueError("use_remote requires a remote backend")
        self.store = store
        self.local = local
        self.remote = remote
        self.video_id = video_id
        self.debounce = debounce
        self.use_remote = use_remote

        self.loaded = False
        self._generation = 0
        self._timer: Optional[asyncio.TimerHandle] = None
        self._flush_task: Optional[asyncio.Task] = None

        self._unsubscribe = store.subscribe(self._on_state_changed)

    @property
    def active(self) -> AnnotationBackend:
        return self.remote if self.use_remote else self.local

    @property
    def pending(self) -> bool:
        """True while a debounced save is waiting for its timer."""
        return self._timer is not None

    async def activate(self) -> bool:
        """
        Load the video's annotations from the active backend.

        Any pending save is discarded first. If another activation starts
        while this one waits for the backend, this one's result is ignored.

        Returns:
            True if the loaded annotations replaced the store's state
        """
        self._cancel_timer()
        self.loaded = False
        self._generation += 1
        generation = self._generation
        backend = self.active

        records = await backend.load_all(self.video_id)
        if generation != self._generation:
            logger.info(f"Ignoring stale load from the {backend.name} backend")
            return False

        annotations = parse_records(records)
        self.store.dispatch(LoadAnnotations(annotations))
        self.loaded = True
        logger.info(
            f"Loaded {len(annotations)} annotations from the {backend.name} backend"
        )
        self._emit(EventType.ANNOTATIONS_LOADED, backend=backend.name, count=len(annotations))
        return True

    async def toggle_backend(self) -> bool:
        """
        Switch between local and remote storage and reload from the new one.

        Unsaved edits are not carried over: the new backend's content
        replaces the store's state.
        """
        if self.remote is None:
            raise ValueError("No remote backend configured")
        self.use_remote = not self.use_remote
        logger.info(f"Switched to the {self.active.name} backend")
        self._emit(EventType.BACKEND_CHANGED, backend=self.active.name)
        return await self.activate()

    def schedule_flush(self):
        """(Re)arm the debounce timer; the previous pending save is dropped."""
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce, self._on_timer)

    async def flush(self) -> bool:
        """
        Persist the current annotations to the active backend.

        A failed remote save falls back to the local backend once; there
        is no retry.
        """
        records = self.store.state.records()
        if not self.use_remote:
            saved = await self.local.save_all(records, self.video_id)
            self._emit(EventType.ANNOTATIONS_SAVED, backend=self.local.name, success=saved)
            return saved

        if await self.remote.save_all(records, self.video_id):
            self._emit(EventType.ANNOTATIONS_SAVED, backend=self.remote.name, success=True)
            return True

        logger.warning("Failed to save to API, falling back to local storage")
        saved = await self.local.save_all(records, self.video_id)
        self._emit(EventType.SAVE_FALLBACK, backend=self.local.name, success=saved)
        return saved

    async def close(self, flush: bool = True):
        """Stop listening to the store, saving a pending change first if asked."""
        was_pending = self.pending
        self._cancel_timer()
        self._unsubscribe()
        if flush and was_pending:
            await self.flush()
        if self._flush_task is not None and not self._flush_task.done():
            await self._flush_task

    def _on_state_changed(self, event: AnnotationEvent):
        if not self.loaded:
            return
        if event.data["previous"].annotations is event.data["state"].annotations:
            return
        try:
            self.schedule_flush()
        except RuntimeError:
            logger.warning("No running event loop, change will not be saved")

    def _on_timer(self):
        self._timer = None
        self._flush_task = asyncio.get_running_loop().create_task(self.flush())

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _emit(self, event_type: EventType, **data):
        self.store.events.emit(AnnotationEvent(event_type, data))
