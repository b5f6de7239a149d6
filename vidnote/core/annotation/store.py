"""
Annotation store.

``transition`` is the pure reducer: it maps a state and an action to the
next state plus an :class:`Outcome`. :class:`AnnotationStore` holds the
current state, applies actions in the order they are dispatched and
notifies listeners through an :class:`EventEmitter`.
"""

import logging
from dataclasses import replace
from enum import Enum
from typing import Callable, Optional, Tuple

from .actions import (
    Action,
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
from .state import ApplicationState, Tool

logger = logging.getLogger(__name__)


class Outcome(Enum):
    """Result of applying one action."""

    APPLIED = "applied"
    UNCHANGED = "unchanged"
    NOT_FOUND = "not_found"


def _record_edit(state: ApplicationState, annotations, **changes) -> ApplicationState:
    """New state after an undoable edit of the annotation list."""
    return replace(
        state,
        annotations=tuple(annotations),
        undo_stack=state.undo_stack + (state.annotations,),
        redo_stack=(),
        **changes,
    )


def transition(
    state: ApplicationState, action: Action
) -> Tuple[ApplicationState, Outcome]:
    """
    Apply one action.

    Args:
        state: Current state (never mutated)
        action: Action to apply

    Returns:
        Tuple of (next state, outcome). The state is returned unchanged for
        ``UNCHANGED`` and ``NOT_FOUND`` outcomes, except for ``SetSelected``
        on a missing id, which clears the selection.

    Raises:
        ValueError: for invalid actions (duplicate id, unknown field,
            negative duration, unknown tool)
    """
    if isinstance(action, AddAnnotation):
        annotation = action.annotation
        if state.index_of(annotation.id) >= 0:
            raise ValueError(f"Annotation id {annotation.id!r} already exists")
        return (
            _record_edit(
                state, state.annotations + (annotation,), selected_id=annotation.id
            ),
            Outcome.APPLIED,
        )

    if isinstance(action, LoadAnnotations):
        return (
            replace(
                state,
                annotations=action.annotations,
                selected_id=None,
                undo_stack=(),
                redo_stack=(),
            ),
            Outcome.APPLIED,
        )

    if isinstance(action, UpdateAnnotation):
        index = state.index_of(action.id)
        if index < 0:
            return state, Outcome.NOT_FOUND
        changes = dict(action.changes)
        if "id" in changes:
            raise ValueError("Annotation ids cannot be changed")
        if action.timestamp is not None:
            changes["updated_at"] = action.timestamp
        updated = state.annotations[index].with_changes(**changes)
        annotations = list(state.annotations)
        annotations[index] = updated
        return _record_edit(state, annotations), Outcome.APPLIED

    if isinstance(action, DeleteAnnotation):
        index = state.index_of(action.id)
        if index < 0:
            return state, Outcome.NOT_FOUND
        annotations = state.annotations[:index] + state.annotations[index + 1:]
        selected_id = None if state.selected_id == action.id else state.selected_id
        return (
            _record_edit(state, annotations, selected_id=selected_id),
            Outcome.APPLIED,
        )

    if isinstance(action, SetSelected):
        if action.id is not None and state.index_of(action.id) < 0:
            return replace(state, selected_id=None), Outcome.NOT_FOUND
        return replace(state, selected_id=action.id), Outcome.APPLIED

    if isinstance(action, SetTool):
        return replace(state, tool=Tool(action.tool)), Outcome.APPLIED

    if isinstance(action, SetColor):
        return replace(state, color=action.color), Outcome.APPLIED

    if isinstance(action, SetAnnotationDuration):
        seconds = float(action.seconds)
        if seconds < 0:
            raise ValueError(f"Annotation duration cannot be negative: {seconds}")
        return replace(state, annotation_duration=seconds), Outcome.APPLIED

    if isinstance(action, Undo):
        if not state.undo_stack:
            return state, Outcome.UNCHANGED
        return (
            replace(
                state,
                annotations=state.undo_stack[-1],
                undo_stack=state.undo_stack[:-1],
                redo_stack=state.redo_stack + (state.annotations,),
                selected_id=None,
            ),
            Outcome.APPLIED,
        )

    if isinstance(action, Redo):
        if not state.redo_stack:
            return state, Outcome.UNCHANGED
        return (
            replace(
                state,
                annotations=state.redo_stack[-1],
                redo_stack=state.redo_stack[:-1],
                undo_stack=state.undo_stack + (state.annotations,),
                selected_id=None,
            ),
            Outcome.APPLIED,
        )

    raise ValueError(f"Unknown action: {action!r}")


def reduce(state: ApplicationState, action: Action) -> ApplicationState:
    """Pure transition function ``(state, action) -> state``."""
    return transition(state, action)[0]


_ACTION_EVENTS = {
    AddAnnotation: EventType.ANNOTATION_ADDED,
    UpdateAnnotation: EventType.ANNOTATION_UPDATED,
    DeleteAnnotation: EventType.ANNOTATION_DELETED,
    SetSelected: EventType.SELECTION_CHANGED,
    Undo: EventType.HISTORY_CHANGED,
    Redo: EventType.HISTORY_CHANGED,
}


class AnnotationStore:
    """
    Owns the application state and applies dispatched actions in order.

    Every state change emits ``STATE_CHANGED`` with the action, the previous
    state and the new state, preceded by a more specific event when there
    is one.
    """

    def __init__(
        self,
        state: Optional[ApplicationState] = None,
        events: Optional[EventEmitter] = None,
    ):
        self._state = state or ApplicationState()
        self.events = events or EventEmitter()

    @property
    def state(self) -> ApplicationState:
        return self._state

    @property
    def can_undo(self) -> bool:
        return self._state.can_undo

    @property
    def can_redo(self) -> bool:
        return self._state.can_redo

    def dispatch(self, action: Action) -> Outcome:
        """
        Apply an action and notify listeners.

        Returns:
            The outcome reported by the reducer
        """
        previous = self._state
        state, outcome = transition(previous, action)
        if outcome is not Outcome.APPLIED:
            logger.debug(f"{type(action).__name__}: {outcome.value}")
        if state is previous:
            return outcome

        self._state = state
        data = {"action": action, "previous": previous, "state": state}
        specific = _ACTION_EVENTS.get(type(action))
        if specific is not None:
            self.events.emit(AnnotationEvent(specific, dict(data)))
        self.events.emit(AnnotationEvent(EventType.STATE_CHANGED, data))
        return outcome

    def subscribe(self, callback: Callable[[AnnotationEvent], None]):
        """Listen to every state change. Returns a function that unsubscribes."""
        self.events.on(EventType.STATE_CHANGED, callback)

        def unsubscribe():
            self.events.off(EventType.STATE_CHANGED, callback)

        return unsubscribe
