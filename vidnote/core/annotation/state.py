"""
State management for annotation sessions.

Contains the annotation records (one dataclass per tool) and the
application state the reducer works on. Every record is immutable, so a
snapshot of the annotation list is just a tuple sharing the same records.
"""

import dataclasses
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Tuple, Type, Union

AnnotationId = Union[int, float, str]

DEFAULT_VIDEO_ID = "default"
DEFAULT_COLOR = "#ffffff"
DEFAULT_DURATION = 2.0


class Tool(str, Enum):
    """Active creation/selection mode."""

    SELECT = "select"
    CIRCLE = "circle"
    RECTANGLE = "rectangle"
    LINE = "line"
    TEXT = "text"

    @property
    def draws_shape(self) -> bool:
        return self in (Tool.RECTANGLE, Tool.CIRCLE, Tool.LINE)


# Header fields shared by every record: python name -> wire key
HEADER_FIELDS = {
    "id": "id",
    "color": "color",
    "start": "start",
    "end": "end",
    "video_id": "videoId",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

_REGISTRY: Dict[Tool, Type["Annotation"]] = {}


def register(cls):
    _REGISTRY[cls.tool] = cls
    return cls


@dataclass(frozen=True)
class Annotation:
    """
    Common header of every annotation.

    Subclasses add the geometry of their tool. Use :meth:`from_dict` to
    build the right variant from a wire record.
    """

    id: AnnotationId
    color: str = DEFAULT_COLOR
    start: float = 0.0
    end: float = 0.0
    video_id: str = DEFAULT_VIDEO_ID
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    # Wire keys this engine does not interpret, written back unchanged
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    tool: ClassVar[Tool]
    # Geometry fields of the variant: python name -> wire key
    geometry_fields: ClassVar[Dict[str, str]] = {}

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(
                f"Annotation {self.id!r} ends before it starts "
                f"({self.start} > {self.end})"
            )

    @property
    def origin(self) -> Tuple[float, float]:
        """Top-left anchor used when dragging."""
        raise NotImplementedError

    def move_to(self, x: float, y: float) -> Dict[str, float]:
        """Field changes placing :attr:`origin` at ``(x, y)``."""
        raise NotImplementedError

    def contains(self, x: float, y: float, **tolerances) -> bool:
        """Hit-test a point in video coordinates."""
        raise NotImplementedError

    def is_visible_at(self, t: float) -> bool:
        return self.start <= t <= self.end

    def with_changes(self, **changes) -> "Annotation":
        """
        Copy of this record with some fields replaced.

        Raises:
            ValueError: if a field does not belong to this variant or the
                result breaks ``start <= end``
        """
        names = {f.name for f in dataclasses.fields(self)}
        unknown = sorted(set(changes) - names)
        if unknown:
            raise ValueError(
                f"{type(self).__name__} has no field(s): {', '.join(unknown)}"
            )
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase wire record."""
        data: Dict[str, Any] = {**self.extra, "tool": self.tool.value}
        for name, key in HEADER_FIELDS.items():
            value = getattr(self, name)
            if value is not None:
                data[key] = value
        for name, key in self.geometry_fields.items():
            data[key] = getattr(self, name)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Annotation":
        """
        Create the matching variant from a wire record.

        Unknown keys are kept in :attr:`extra`. Raises ValueError for an
        unknown tool, an id that is not a number or string, and missing or
        non-numeric geometry. A ``null`` geometry value counts as missing.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Annotation record must be a dict, got {type(data)}")
        try:
            tool = Tool(data.get("tool"))
            variant = _REGISTRY[tool]
        except (ValueError, KeyError):
            raise ValueError(f"Unknown annotation tool: {data.get('tool')!r}") from None
        annotation_id = data.get("id")
        if isinstance(annotation_id, bool) or not isinstance(annotation_id, (int, float, str)):
            raise ValueError(f"Invalid annotation id: {annotation_id!r}")

        kwargs: Dict[str, Any] = {}
        for name, key in HEADER_FIELDS.items():
            if data.get(key) is not None:
                kwargs[name] = data[key]
        for name in ("start", "end"):
            kwargs[name] = _coerce(kwargs.get(name, 0.0), float, name)

        defaults = {f.name: f.default for f in dataclasses.fields(variant)}
        for name, key in variant.geometry_fields.items():
            if data.get(key) is not None:
                kind = str if isinstance(defaults[name], str) else float
                kwargs[name] = _coerce(data[key], kind, key)
            elif name in variant.derived_geometry():
                source = variant.derived_geometry()[name]
                kwargs[name] = kwargs[source]
            elif name not in variant.optional_geometry():
                raise ValueError(f"{tool.value} annotation is missing '{key}'")

        known = {"tool", *HEADER_FIELDS.values(), *variant.geometry_fields.values()}
        kwargs["extra"] = {k: v for k, v in data.items() if k not in known}
        return variant(**kwargs)

    @classmethod
    def optional_geometry(cls):
        """Geometry fields a record may omit (they have a derived default)."""
        return ()

    @classmethod
    def derived_geometry(cls) -> Dict[str, str]:
        """Geometry fields defaulting to another field when omitted."""
        return {}


def _coerce(value: Any, kind: type, key: str) -> Any:
    """Convert a wire value to ``float`` or ``str``, raising ValueError."""
    if isinstance(value, (bool, dict, list)):
        raise ValueError(f"'{key}' has an invalid value: {value!r}")
    if kind is str:
        return str(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"'{key}' must be a number, got {value!r}") from None
    if not math.isfinite(number):
        raise ValueError(f"'{key}' must be finite, got {value!r}")
    return number


@dataclass(frozen=True)
class BoxAnnotation(Annotation):
    """Rectangle-like shape; mirroring is carried by ``scale_x``/``scale_y``."""

    start_x: float = 0.0
    start_y: float = 0.0
    end_x: float = 0.0
    end_y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0

    geometry_fields: ClassVar[Dict[str, str]] = {
        "start_x": "startX",
        "start_y": "startY",
        "end_x": "endX",
        "end_y": "endY",
        "width": "width",
        "height": "height",
        "scale_x": "scaleX",
        "scale_y": "scaleY",
    }

    @classmethod
    def optional_geometry(cls):
        return ("width", "height", "scale_x", "scale_y")

    @classmethod
    def derived_geometry(cls):
        # A click without a drag stores no end point
        return {"end_x": "start_x", "end_y": "start_y"}

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        return (
            min(self.start_x, self.end_x),
            min(self.start_y, self.end_y),
            max(self.start_x, self.end_x),
            max(self.start_y, self.end_y),
        )

    @property
    def origin(self) -> Tuple[float, float]:
        left, top, _, _ = self.bounds
        return left, top

    def move_to(self, x: float, y: float) -> Dict[str, float]:
        left, top = self.origin
        dx, dy = x - left, y - top
        return {
            "start_x": self.start_x + dx,
            "start_y": self.start_y + dy,
            "end_x": self.end_x + dx,
            "end_y": self.end_y + dy,
        }

    def contains(self, x: float, y: float, **tolerances) -> bool:
        left, top, right, bottom = self.bounds
        return left <= x <= right and top <= y <= bottom


@register
@dataclass(frozen=True)
class RectangleAnnotation(BoxAnnotation):
    tool: ClassVar[Tool] = Tool.RECTANGLE


@register
@dataclass(frozen=True)
class CircleAnnotation(BoxAnnotation):
    tool: ClassVar[Tool] = Tool.CIRCLE

    def contains(self, x: float, y: float, **tolerances) -> bool:
        left, top, right, bottom = self.bounds
        rx, ry = (right - left) / 2, (bottom - top) / 2
        if rx == 0 or ry == 0:
            return super().contains(x, y)
        cx, cy = left + rx, top + ry
        return ((x - cx) / rx) ** 2 + ((y - cy) / ry) ** 2 <= 1.0


@register
@dataclass(frozen=True)
class LineAnnotation(Annotation):
    start_x: float = 0.0
    start_y: float = 0.0
    end_x: float = 0.0
    end_y: float = 0.0

    tool: ClassVar[Tool] = Tool.LINE
    geometry_fields: ClassVar[Dict[str, str]] = {
        "start_x": "startX",
        "start_y": "startY",
        "end_x": "endX",
        "end_y": "endY",
    }

    @classmethod
    def derived_geometry(cls):
        return {"end_x": "start_x", "end_y": "start_y"}

    @property
    def origin(self) -> Tuple[float, float]:
        return min(self.start_x, self.end_x), min(self.start_y, self.end_y)

    def move_to(self, x: float, y: float) -> Dict[str, float]:
        left, top = self.origin
        dx, dy = x - left, y - top
        return {
            "start_x": self.start_x + dx,
            "start_y": self.start_y + dy,
            "end_x": self.end_x + dx,
            "end_y": self.end_y + dy,
        }

    def contains(self, x: float, y: float, line_tolerance: float = 5.0, **_) -> bool:
        x1, y1, x2, y2 = self.start_x, self.start_y, self.end_x, self.end_y
        length_sq = (x2 - x1) ** 2 + (y2 - y1) ** 2
        if length_sq == 0:
            return math.hypot(x - x1, y - y1) <= line_tolerance

        # Projection of the point on the segment, clamped to its ends
        t = max(0.0, min(1.0, ((x - x1) * (x2 - x1) + (y - y1) * (y2 - y1)) / length_sq))
        nearest_x = x1 + t * (x2 - x1)
        nearest_y = y1 + t * (y2 - y1)
        return math.hypot(x - nearest_x, y - nearest_y) <= line_tolerance


@register
@dataclass(frozen=True)
class TextAnnotation(Annotation):
    x: float = 0.0
    y: float = 0.0
    text: str = ""

    tool: ClassVar[Tool] = Tool.TEXT
    geometry_fields: ClassVar[Dict[str, str]] = {"x": "x", "y": "y", "text": "text"}

    @property
    def origin(self) -> Tuple[float, float]:
        return self.x, self.y

    def move_to(self, x: float, y: float) -> Dict[str, float]:
        return {"x": x, "y": y}

    def contains(
        self,
        x: float,
        y: float,
        char_width: float = 9.0,
        line_height: float = 20.0,
        **_,
    ) -> bool:
        width = max(len(self.text), 1) * char_width
        return self.x <= x <= self.x + width and self.y <= y <= self.y + line_height


Snapshot = Tuple[Annotation, ...]


@dataclass(frozen=True)
class ApplicationState:
    """
    Complete state of the annotation editor for one video.

    ``undo_stack`` and ``redo_stack`` hold prior annotation lists, most
    recent last.
    """

    annotations: Snapshot = ()
    selected_id: Optional[AnnotationId] = None
    tool: Tool = Tool.SELECT
    color: str = DEFAULT_COLOR
    annotation_duration: float = DEFAULT_DURATION
    undo_stack: Tuple[Snapshot, ...] = field(default_factory=tuple)
    redo_stack: Tuple[Snapshot, ...] = field(default_factory=tuple)

    def index_of(self, annotation_id: AnnotationId) -> int:
        for index, annotation in enumerate(self.annotations):
            if annotation.id == annotation_id:
                return index
        return -1

    def find(self, annotation_id: AnnotationId) -> Optional[Annotation]:
        index = self.index_of(annotation_id)
        return self.annotations[index] if index >= 0 else None

    @property
    def selected(self) -> Optional[Annotation]:
        if self.selected_id is None:
            return None
        return self.find(self.selected_id)

    @property
    def can_undo(self) -> bool:
        return len(self.undo_stack) > 0

    @property
    def can_redo(self) -> bool:
        return len(self.redo_stack) > 0

    def records(self):
        """Annotation list as wire records."""
        return [annotation.to_dict() for annotation in self.annotations]
