"""
Input adapter for annotation session.

Bridges browser-style raw events (as forwarded by a web front end over a
socket, or recorded for replay) with the session's interaction controller.
"""

import logging
from typing import Any, Callable, Dict, Optional, Tuple

from ..core.annotation import (
    AnnotationEvent,
    AnnotationSession,
    EventType,
    KeyEvent,
    PointerEvent,
)

logger = logging.getLogger(__name__)

REDRAW_EVENTS = (
    EventType.STATE_CHANGED,
    EventType.PREVIEW_UPDATED,
    EventType.VISIBLE_CHANGED,
    EventType.TEXT_ENTRY_OPENED,
    EventType.TEXT_ENTRY_CLOSED,
)


class InputAdapter:
    """
    Adapter connecting raw input events to an AnnotationSession.

    Provides a compatibility layer that:
    - Converts client coordinates to video coordinates using the video's
      bounding box
    - Routes ``mousedown``/``mousemove``/``mouseup``/``keydown``/``input``/
      ``blur`` events to the controller
    - Calls ``update_callback`` whenever the overlay needs a redraw

    Event dictionaries use the DOM names: ``type``, ``clientX``,
    ``clientY``, ``key``, ``ctrlKey``, ``shiftKey``, ``value``, plus an
    optional ``targetId`` naming the annotation element under the pointer.
    """

    def __init__(
        self,
        session: AnnotationSession,
        bounds: Tuple[float, float] = (0.0, 0.0),
        update_callback: Optional[Callable[[AnnotationEvent], None]] = None,
    ):
        """
        Initialize adapter.

        Args:
            session: Core annotation session
            bounds: Left and top of the video's bounding box in client space
            update_callback: Callback asking the front end to redraw
        """
        self.session = session
        self.bounds = bounds
        self.update_callback = update_callback

        # Subscribe to session events
        self._setup_event_handlers()

    def _setup_event_handlers(self):
        """Setup event handlers for session events."""
        for event_type in REDRAW_EVENTS:
            self.session.events.on(event_type, self._on_redraw_needed)

    def _on_redraw_needed(self, event: AnnotationEvent):
        if self.update_callback:
            self.update_callback(event)

    def set_bounds(self, left: float, top: float):
        """Video element moved or was resized."""
        self.bounds = (left, top)

    def to_pointer(self, event: Dict[str, Any]) -> PointerEvent:
        left, top = self.bounds
        return PointerEvent(
            x=float(event["clientX"]) - left,
            y=float(event["clientY"]) - top,
            target_id=event.get("targetId"),
        )

    def handle(self, event: Dict[str, Any]) -> bool:
        """
        Route one raw event.

        Returns:
            True if the event was consumed
        """
        controller = self.session.controller
        kind = event.get("type")

        if kind == "mousedown":
            controller.pointer_down(self.to_pointer(event))
            return True
        if kind == "mousemove":
            controller.pointer_move(self.to_pointer(event))
            return True
        if kind == "mouseup":
            controller.pointer_up(self.to_pointer(event) if "clientX" in event else None)
            return True
        if kind == "keydown":
            return controller.key_down(
                KeyEvent(
                    key=event.get("key", ""),
                    ctrl=bool(event.get("ctrlKey") or event.get("metaKey")),
                    shift=bool(event.get("shiftKey")),
                )
            )
        if kind == "input":
            controller.text_input(event.get("value", ""))
            return True
        if kind == "blur":
            controller.blur()
            return True

        logger.debug(f"Ignoring unsupported event type: {kind!r}")
        return False
