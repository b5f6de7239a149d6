"""
Event system for annotation workflow.

Provides a decoupled way for the annotation core to notify renderers,
persistence and other collaborators about state changes without
depending on a specific UI framework.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of events that can occur during annotation."""

    # Store events
    STATE_CHANGED = "state_changed"
    ANNOTATION_ADDED = "annotation_added"
    ANNOTATION_UPDATED = "annotation_updated"
    ANNOTATION_DELETED = "annotation_deleted"
    SELECTION_CHANGED = "selection_changed"
    HISTORY_CHANGED = "history_changed"

    # Gesture events
    GESTURE_STARTED = "gesture_started"
    GESTURE_ENDED = "gesture_ended"
    PREVIEW_UPDATED = "preview_updated"
    TEXT_ENTRY_OPENED = "text_entry_opened"
    TEXT_ENTRY_CLOSED = "text_entry_closed"

    # Playback events
    VISIBLE_CHANGED = "visible_changed"

    # Persistence events
    ANNOTATIONS_LOADED = "annotations_loaded"
    ANNOTATIONS_SAVED = "annotations_saved"
    SAVE_FALLBACK = "save_fallback"
    BACKEND_CHANGED = "backend_changed"


@dataclass
class AnnotationEvent:
    """Event that occurs during annotation."""

    event_type: EventType
    data: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if self.data is None:
            self.data = {}


class EventEmitter:
    """
    Simple event emitter for pub/sub pattern.

    Allows components to subscribe to events without tight coupling.
    Listeners run synchronously, in subscription order.
    """

    def __init__(self):
        self._listeners: Dict[EventType, List[Callable]] = {}

    def on(self, event_type: EventType, callback: Callable[[AnnotationEvent], None]):
        """Subscribe to an event type."""
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        self._listeners[event_type].append(callback)

    def off(self, event_type: EventType, callback: Callable[[AnnotationEvent], None]):
        """Unsubscribe from an event type."""
        if event_type in self._listeners:
            self._listeners[event_type].remove(callback)

    def emit(self, event: AnnotationEvent):
        """Emit an event to all subscribers."""
        for callback in list(self._listeners.get(event.event_type, ())):
            try:
                callback(event)
            except Exception:
                # Log but don't crash on listener errors
                logger.exception(f"Error in {event.event_type.value} listener")

    def clear(self):
        """Clear all event listeners."""
        self._listeners.clear()
