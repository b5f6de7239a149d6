"""
Core annotation module - UI-agnostic annotation logic.

This module provides the state machine, gesture handling and visibility
computation for video annotations, usable with any front end (desktop,
web, headless).
"""

from .actions import (
    AddAnnotation,
    DeleteAnnotation,
    LoadAnnotations,
    Redo,
    SetAnnotationDuration,
    SetColor,
    SetSelected,
    SetTool,
    Undo,
    UpdateAnnotation,
)
from .events import AnnotationEvent, EventEmitter, EventType
from .interaction import GestureState, InteractionController, KeyEvent, PointerEvent
from .session import AnnotationSession
from .state import (
    Annotation,
    ApplicationState,
    CircleAnnotation,
    LineAnnotation,
    RectangleAnnotation,
    TextAnnotation,
    Tool,
)
from .store import AnnotationStore, Outcome, reduce, transition
from .visibility import VisibilityMonitor, visible_annotations

__all__ = [
    "AddAnnotation",
    "DeleteAnnotation",
    "LoadAnnotations",
    "Redo",
    "SetAnnotationDuration",
    "SetColor",
    "SetSelected",
    "SetTool",
    "Undo",
    "UpdateAnnotation",
    "AnnotationEvent",
    "EventEmitter",
    "EventType",
    "GestureState",
    "InteractionController",
    "KeyEvent",
    "PointerEvent",
    "AnnotationSession",
    "Annotation",
    "ApplicationState",
    "CircleAnnotation",
    "LineAnnotation",
    "RectangleAnnotation",
    "TextAnnotation",
    "Tool",
    "AnnotationStore",
    "Outcome",
    "reduce",
    "transition",
    "VisibilityMonitor",
    "visible_annotations",
]
