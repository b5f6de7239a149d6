"""
Pointer and keyboard gesture handling.

:class:`InteractionController` is a small state machine
(idle, drawing, dragging, text editing) turning raw input into store
actions. It owns only per-gesture data: the shape being drawn, the drag
offset and the pending text. Everything else lives in the store.

Pointer coordinates are relative to the video's bounding box.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional, Tuple

from .actions import AddAnnotation, DeleteAnnotation, Redo, SetSelected, Undo, UpdateAnnotation
from .events import AnnotationEvent, EventType
from .state import (
    DEFAULT_VIDEO_ID,
    Annotation,
    AnnotationId,
    CircleAnnotation,
    LineAnnotation,
    RectangleAnnotation,
    TextAnnotation,
    Tool,
)
from .store import AnnotationStore
from .visibility import visible_annotations
from ...utils.misc import IdAllocator, utc_now_iso

logger = logging.getLogger(__name__)


class GestureState(Enum):
    IDLE = "idle"
    DRAWING = "drawing"
    DRAGGING = "dragging"
    TEXT_EDITING = "text_editing"


@dataclass(frozen=True)
class PointerEvent:
    """
    Pointer position in video coordinates.

    ``target_id`` is the annotation the renderer reports under the pointer,
    if it knows; otherwise the controller hit-tests the visible annotations.
    """

    x: float
    y: float
    target_id: Optional[AnnotationId] = None


@dataclass(frozen=True)
class KeyEvent:
    key: str
    ctrl: bool = False
    shift: bool = False


_SHAPES = {
    Tool.RECTANGLE: RectangleAnnotation,
    Tool.CIRCLE: CircleAnnotation,
    Tool.LINE: LineAnnotation,
}

DELETE_KEYS = ("Delete", "Backspace")


class InteractionController:
    """
    Translates input events into store actions.

    Args:
        store: Store receiving the actions
        video: Video surface (current time, play state)
        video_id: Video the new annotations belong to
        ids: Id allocator for new annotations
        clock: Function returning the ISO timestamp stamped on records
        line_tolerance: Max pointer distance (px) to hit a line
        char_width: Approximate glyph width (px) used to hit text
        line_height: Approximate text height (px) used to hit text
    """

    def __init__(
        self,
        store: AnnotationStore,
        video,
        video_id: str = DEFAULT_VIDEO_ID,
        ids: Optional[IdAllocator] = None,
        clock: Callable[[], str] = utc_now_iso,
        line_tolerance: float = 5.0,
        char_width: float = 9.0,
        line_height: float = 20.0,
    ):
        self.store = store
        self.video = video
        self.video_id = video_id
        self.ids = ids or IdAllocator()
        self.clock = clock
        self.hit_options = {
            "line_tolerance": line_tolerance,
            "char_width": char_width,
            "line_height": line_height,
        }

        self.gesture = GestureState.IDLE

        # Drawing
        self.preview: Optional[Annotation] = None

        # Dragging
        self.drag_id: Optional[AnnotationId] = None
        self.drag_offset: Tuple[float, float] = (0.0, 0.0)

        # Text editing
        self.text_position: Tuple[float, float] = (0.0, 0.0)
        self.pending_text = ""

    # Pointer -----------------------------------------------------------

    def pointer_down(self, event: PointerEvent) -> GestureState:
        if self.gesture is GestureState.TEXT_EDITING:
            # Clicking elsewhere moves the focus out of the text entry
            self.commit_text()
        elif self.gesture is not GestureState.IDLE:
            logger.debug(f"Ignoring pointer down while {self.gesture.value}")
            return self.gesture

        tool = self.store.state.tool
        if tool.draws_shape:
            self._start_drawing(tool, event)
        elif tool is Tool.TEXT:
            self._open_text_entry(event)
        else:
            self._select_at(event)
        return self.gesture

    def pointer_move(self, event: PointerEvent) -> None:
        if self.gesture is GestureState.DRAWING:
            self.preview = replace(self.preview, **self._shape_geometry(event))
            self._emit(EventType.PREVIEW_UPDATED, preview=self.preview)
        elif self.gesture is GestureState.DRAGGING:
            self._drag_to(event)

    def pointer_up(self, event: Optional[PointerEvent] = None) -> None:
        if self.gesture is GestureState.DRAWING:
            if event is not None:
                self.preview = replace(self.preview, **self._shape_geometry(event))
            timestamp = self.clock()
            annotation = replace(self.preview, created_at=timestamp, updated_at=timestamp)
            self.preview = None
            self._end_gesture()
            self.store.dispatch(AddAnnotation(annotation))
            logger.debug(f"Added {annotation.tool.value} annotation {annotation.id}")
        elif self.gesture is GestureState.DRAGGING:
            self.drag_id = None
            self._end_gesture()

    # Keyboard ----------------------------------------------------------

    def key_down(self, event: KeyEvent) -> bool:
        """
        Handle a key press.

        Returns:
            True if the key was consumed
        """
        key = event.key
        if self.gesture is GestureState.TEXT_EDITING:
            if key == "Enter":
                self.commit_text()
                return True
            if key == "Escape":
                self.cancel_text()
                return True
            if key in DELETE_KEYS:
                # Editing the text, not deleting annotations
                return True

        if event.ctrl and key.lower() == "z" and not event.shift:
            self.store.dispatch(Undo())
            return True
        if event.ctrl and (key.lower() == "y" or (key.lower() == "z" and event.shift)):
            self.store.dispatch(Redo())
            return True

        if key in DELETE_KEYS:
            state = self.store.state
            if state.selected_id is not None and state.tool is Tool.SELECT:
                if self.drag_id == state.selected_id:
                    self.drag_id = None
                    self._end_gesture()
                self.store.dispatch(DeleteAnnotation(state.selected_id))
                return True
        return False

    # Text entry --------------------------------------------------------

    def text_input(self, text: str) -> None:
        """Replace the content of the open text entry."""
        if self.gesture is GestureState.TEXT_EDITING:
            self.pending_text = text

    def commit_text(self) -> Optional[TextAnnotation]:
        """Enter or focus loss: add the pending text unless it is blank."""
        if self.gesture is not GestureState.TEXT_EDITING:
            return None
        text = self.pending_text
        annotation = None
        if text.strip():
            start = float(self.video.current_time)
            timestamp = self.clock()
            x, y = self.text_position
            annotation = TextAnnotation(
                id=self._next_id(),
                color=self.store.state.color,
                start=start,
                end=start + self.store.state.annotation_duration,
                video_id=self.video_id,
                created_at=timestamp,
                updated_at=timestamp,
                x=x,
                y=y,
                text=text,
            )
        self._close_text_entry(committed=annotation is not None)
        if annotation is not None:
            self.store.dispatch(AddAnnotation(annotation))
        return annotation

    def cancel_text(self) -> None:
        if self.gesture is GestureState.TEXT_EDITING:
            self._close_text_entry(committed=False)

    blur = commit_text

    # Hit testing -------------------------------------------------------

    def hit_test(self, x: float, y: float) -> Optional[Annotation]:
        """Topmost visible annotation under ``(x, y)``."""
        for annotation in reversed(self._visible()):
            if annotation.contains(x, y, **self.hit_options):
                return annotation
        return None

    # Internals ---------------------------------------------------------

    def _visible(self):
        return visible_annotations(self.store.state.annotations, float(self.video.current_time))

    def _pause_playback(self):
        if not self.video.paused:
            self.video.pause()

    def _next_id(self) -> AnnotationId:
        self.ids.reserve(annotation.id for annotation in self.store.state.annotations)
        return self.ids.next_id()

    def _start_drawing(self, tool: Tool, event: PointerEvent):
        self._pause_playback()
        state = self.store.state
        start = float(self.video.current_time)
        geometry = {
            "start_x": event.x,
            "start_y": event.y,
            "end_x": event.x,
            "end_y": event.y,
        }
        self.preview = _SHAPES[tool](
            id=self._next_id(),
            color=state.color,
            start=start,
            end=start + state.annotation_duration,
            video_id=self.video_id,
            **geometry,
        )
        self.gesture = GestureState.DRAWING
        self._emit(EventType.GESTURE_STARTED, gesture=self.gesture, preview=self.preview)

    def _shape_geometry(self, event: PointerEvent):
        preview = self.preview
        geometry = {"end_x": event.x, "end_y": event.y}
        if isinstance(preview, LineAnnotation):
            return geometry
        geometry.update(
            width=abs(event.x - preview.start_x),
            height=abs(event.y - preview.start_y),
            scale_x=-1.0 if event.x < preview.start_x else 1.0,
            scale_y=-1.0 if event.y < preview.start_y else 1.0,
        )
        return geometry

    def _open_text_entry(self, event: PointerEvent):
        self._pause_playback()
        self.text_position = (event.x, event.y)
        self.pending_text = ""
        self.gesture = GestureState.TEXT_EDITING
        self._emit(EventType.TEXT_ENTRY_OPENED, position=self.text_position)

    def _close_text_entry(self, committed: bool):
        self.pending_text = ""
        self.gesture = GestureState.IDLE
        self._emit(EventType.TEXT_ENTRY_CLOSED, committed=committed)

    def _select_at(self, event: PointerEvent):
        target = None
        if event.target_id is not None:
            target = next(
                (a for a in self._visible() if a.id == event.target_id), None
            )
        if target is None:
            target = self.hit_test(event.x, event.y)

        if target is None:
            self.store.dispatch(SetSelected(None))
            return

        origin_x, origin_y = target.origin
        self.drag_offset = (event.x - origin_x, event.y - origin_y)
        self.drag_id = target.id
        self.gesture = GestureState.DRAGGING
        self.store.dispatch(SetSelected(target.id))
        self._emit(EventType.GESTURE_STARTED, gesture=self.gesture, id=target.id)

    def _drag_to(self, event: PointerEvent):
        annotation = self.store.state.find(self.drag_id)
        if annotation is None:
            # Removed under the pointer (undo, delete)
            self.drag_id = None
            self._end_gesture()
            return
        offset_x, offset_y = self.drag_offset
        changes = annotation.move_to(event.x - offset_x, event.y - offset_y)
        # TODO: coalesce the moves of one drag into a single undo entry once
        # the product decides whether undo should revert a whole drag.
        self.store.dispatch(UpdateAnnotation(annotation.id, changes, self.clock()))

    def _end_gesture(self):
        ended = self.gesture
        self.gesture = GestureState.IDLE
        self._emit(EventType.GESTURE_ENDED, gesture=ended)

    def _emit(self, event_type: EventType, **data):
        self.store.events.emit(AnnotationEvent(event_type, data))
