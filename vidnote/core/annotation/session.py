"""
Annotation session management.

Wires the pieces of the engine together for one video: the store, the
interaction controller, the visibility monitor and, optionally, the
persistence synchronizer. UI-agnostic - a renderer subscribes to the
session's events and reads :meth:`AnnotationSession.get_visualization_data`.
"""

import logging
from pathlib import Path
from typing import Any, Dict

from easydict import EasyDict as edict

from .actions import Redo, SetAnnotationDuration, SetColor, SetTool, Undo
from .events import EventEmitter
from .interaction import GestureState, InteractionController
from .state import ApplicationState, Tool
from .store import AnnotationStore, Outcome
from .visibility import VisibilityMonitor, visible_annotations

logger = logging.getLogger(__name__)


class AnnotationSession:
    """
    Manages the state and logic of an annotation session.

    This class handles:
    - Store creation from the configured tool defaults
    - Gesture handling through the interaction controller
    - Visibility polling of the video surface
    - Loading and debounced saving when a sync is attached

    Args:
        video: Video surface shared by the controller and the monitor
        cfg: Configuration tree, see :mod:`vidnote.utils.config`
        sync_factory: Optional callable ``(store, cfg) -> PersistenceSync``
    """

    def __init__(self, video, cfg: edict, sync_factory=None):
        self.video = video
        self.cfg = cfg
        self.events = EventEmitter()

        tools = cfg.tools
        self.store = AnnotationStore(
            ApplicationState(
                tool=Tool(tools.tool),
                color=tools.color,
                annotation_duration=float(tools.annotation_duration),
            ),
            events=self.events,
        )
        self.controller = InteractionController(
            self.store,
            video,
            video_id=cfg.video_id,
            line_tolerance=tools.line_hit_tolerance,
            char_width=tools.text_char_width,
            line_height=tools.text_line_height,
        )
        self.monitor = VisibilityMonitor(
            video, self.store, interval=cfg.playback.poll_interval
        )
        self.sync = sync_factory(self.store, cfg) if sync_factory else None

    @classmethod
    def with_storage(cls, video, cfg: edict, remote_client=None) -> "AnnotationSession":
        """
        Session persisting to the configured local file and remote service.

        Args:
            video: Video surface
            cfg: Configuration tree
            remote_client: Optional ``httpx.AsyncClient`` for the remote
                backend; built from ``cfg.api`` when omitted
        """
        from ..persistence import (
            JsonFileKeyValueStore,
            LocalBackend,
            PersistenceSync,
            RemoteBackend,
        )

        def build_sync(store, cfg):
            storage = cfg.storage
            local = LocalBackend(JsonFileKeyValueStore(Path(storage.path)), key=storage.key)
            remote = RemoteBackend(
                base_url=cfg.api.base_url,
                client=remote_client,
                timeout=cfg.api.timeout,
            )
            return PersistenceSync(
                store,
                local,
                remote,
                video_id=cfg.video_id,
                debounce=storage.debounce,
                use_remote=storage.backend == "remote",
            )

        return cls(video, cfg, sync_factory=build_sync)

    @property
    def state(self) -> ApplicationState:
        return self.store.state

    async def start(self):
        """Load persisted annotations and start polling the playback time."""
        if self.sync is not None:
            await self.sync.activate()
        self.monitor.start()
        logger.info(f"Annotation session started for video '{self.cfg.video_id}'")

    async def stop(self):
        """Stop polling and save any pending change."""
        await self.monitor.stop()
        if self.sync is not None:
            await self.sync.close(flush=True)
            close = getattr(self.sync.remote, "aclose", None)
            if close is not None:
                await close()

    def set_tool(self, tool) -> Outcome:
        return self.store.dispatch(SetTool(tool))

    def set_color(self, color: str) -> Outcome:
        return self.store.dispatch(SetColor(color))

    def set_annotation_duration(self, seconds: float) -> Outcome:
        return self.store.dispatch(SetAnnotationDuration(seconds))

    def undo(self) -> bool:
        """
        Undo the last edit.

        Returns:
            True if undo was successful, False if no history
        """
        return self.store.dispatch(Undo()) is Outcome.APPLIED

    def redo(self) -> bool:
        return self.store.dispatch(Redo()) is Outcome.APPLIED

    def get_visualization_data(self) -> Dict[str, Any]:
        """
        Get data needed for rendering the overlay.

        Returns:
            Dictionary with visualization data
        """
        state = self.store.state
        controller = self.controller
        current_time = float(self.video.current_time)
        return {
            "current_time": current_time,
            "visible": visible_annotations(state.annotations, current_time),
            "selected_id": state.selected_id,
            "tool": state.tool,
            "color": state.color,
            "gesture": controller.gesture,
            "preview": controller.preview,
            "text_entry": (
                {"position": controller.text_position, "text": controller.pending_text}
                if controller.gesture is GestureState.TEXT_EDITING
                else None
            ),
            "can_undo": state.can_undo,
            "can_redo": state.can_redo,
        }
