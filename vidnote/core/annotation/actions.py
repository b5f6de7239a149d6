"""
Actions understood by the annotation reducer.

Actions are plain immutable values. Everything non-deterministic (ids,
timestamps) is carried inside the action by whoever builds it, so the
same action sequence always produces the same state.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple, Union

from .state import Annotation, AnnotationId, Tool


@dataclass(frozen=True)
class AddAnnotation:
    annotation: Annotation


@dataclass(frozen=True)
class LoadAnnotations:
    """Replace the whole annotation list; clears undo/redo history."""

    annotations: Tuple[Annotation, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "annotations", tuple(self.annotations))


@dataclass(frozen=True)
class UpdateAnnotation:
    """Merge ``changes`` (python field names) into one annotation."""

    id: AnnotationId
    changes: Mapping[str, Any] = field(default_factory=dict)
    timestamp: Optional[str] = None


@dataclass(frozen=True)
class DeleteAnnotation:
    id: AnnotationId


@dataclass(frozen=True)
class SetSelected:
    id: Optional[AnnotationId] = None


@dataclass(frozen=True)
class SetTool:
    tool: Union[Tool, str]


@dataclass(frozen=True)
class SetColor:
    color: str


@dataclass(frozen=True)
class SetAnnotationDuration:
    seconds: float


@dataclass(frozen=True)
class Undo:
    pass


@dataclass(frozen=True)
class Redo:
    pass


Action = Union[
    AddAnnotation,
    LoadAnnotations,
    UpdateAnnotation,
    DeleteAnnotation,
    SetSelected,
    SetTool,
    SetColor,
    SetAnnotationDuration,
    Undo,
    Redo,
]
