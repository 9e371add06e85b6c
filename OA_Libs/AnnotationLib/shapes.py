"""
Shape data models for the annotation authoring engine.

A shape is a user-authored region tagged to exactly one segmentation class.
Two variants exist and together form a closed union:

- Stroke: freehand brush path made of move/line/quadratic-curve commands
- Polygon: closed ring of vertices built click by click

Both variants store the owning class id directly (set once at creation) and the
class color used for rendering. Coordinates are canvas (scene) pixels and are
never affected by the view transform.

Classes:
    Point: Immutable 2D point
    PathCommand: One drawing command of a stroke
    Stroke: Freehand brush shape
    Polygon: Closed polygon shape

Functions:
    shape_from_dict: Rebuild a shape from its snapshot dictionary
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from OA_Libs.constants import (
    DEFAULT_BRUSH_SIZE,
    FIELD_CLASS_ID,
    FIELD_COLOR,
    FIELD_IMAGE_INDEX,
    FIELD_INTERACTIVE,
    FIELD_KIND,
    FIELD_PATH,
    FIELD_POINTS,
    FIELD_SHAPE_ID,
    FIELD_WIDTH,
    PATH_LINE,
    PATH_MOVE,
    PATH_QUADRATIC,
    POLYGON_FILL_ALPHA,
    POLYGON_GUIDE_WIDTH,
    SHAPE_KIND_POLYGON,
    SHAPE_KIND_STROKE,
)

# Number of coordinates each path operator carries
_PATH_ARITY = {
    PATH_MOVE: 2,
    PATH_LINE: 2,
    PATH_QUADRATIC: 4,
}


def new_shape_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Point:
    """2D point in canvas pixel coordinates."""
    x: float
    y: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class PathCommand:
    """A single stroke drawing command with absolute coordinates.

    ``M x y`` and ``L x y`` carry one point; ``Q cx cy x y`` carries the curve
    control point followed by the terminal point.
    """
    op: str
    coords: Tuple[float, ...]

    def __post_init__(self):
        if self.op not in _PATH_ARITY:
            raise ValueError(f"Unsupported path command: {self.op}")
        if len(self.coords) != _PATH_ARITY[self.op]:
            raise ValueError(
                f"Path command '{self.op}' expects {_PATH_ARITY[self.op]} coordinates, "
                f"got {len(self.coords)}"
            )

    @property
    def end_point(self) -> Point:
        return Point(self.coords[-2], self.coords[-1])

    def to_list(self) -> List[Any]:
        return [self.op, *self.coords]

    @classmethod
    def from_list(cls, data: Iterable[Any]) -> "PathCommand":
        values = list(data)
        if not values:
            raise ValueError("Empty path command")
        return cls(op=str(values[0]), coords=tuple(float(v) for v in values[1:]))


@dataclass(frozen=True)
class Stroke:
    """Freehand brush stroke.

    Attributes:
        class_id: Id of the class active when the stroke was drawn
        color: Hex color of the owning class at creation time
        commands: Ordered drawing commands
        width: Stroke width in canvas pixels (already zoom compensated)
        image_index: Position of the image the stroke was drawn on (None if no image)
        interactive: Whether the shape can be selected/hit-tested by the host canvas
        shape_id: Unique identifier
    """
    class_id: Optional[int]
    color: str
    commands: Tuple[PathCommand, ...]
    width: float = float(DEFAULT_BRUSH_SIZE)
    image_index: Optional[int] = None
    interactive: bool = False
    shape_id: str = field(default_factory=new_shape_id)

    kind = SHAPE_KIND_STROKE

    def to_dict(self) -> Dict[str, Any]:
        return {
            FIELD_KIND: self.kind,
            FIELD_SHAPE_ID: self.shape_id,
            FIELD_CLASS_ID: self.class_id,
            FIELD_IMAGE_INDEX: self.image_index,
            FIELD_COLOR: self.color,
            FIELD_WIDTH: self.width,
            FIELD_INTERACTIVE: self.interactive,
            FIELD_PATH: [command.to_list() for command in self.commands],
        }


@dataclass(frozen=True)
class Polygon:
    """Closed polygon; the closing edge from the last vertex back to the first is implicit."""
    class_id: Optional[int]
    color: str
    points: Tuple[Point, ...]
    width: float = POLYGON_GUIDE_WIDTH
    image_index: Optional[int] = None
    interactive: bool = False
    shape_id: str = field(default_factory=new_shape_id)

    kind = SHAPE_KIND_POLYGON

    @property
    def fill(self) -> str:
        return f"{self.color}{POLYGON_FILL_ALPHA}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            FIELD_KIND: self.kind,
            FIELD_SHAPE_ID: self.shape_id,
            FIELD_CLASS_ID: self.class_id,
            FIELD_IMAGE_INDEX: self.image_index,
            FIELD_COLOR: self.color,
            FIELD_WIDTH: self.width,
            FIELD_INTERACTIVE: self.interactive,
            FIELD_POINTS: [{"x": point.x, "y": point.y} for point in self.points],
        }


Shape = Union[Stroke, Polygon]


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def shape_from_dict(data: Dict[str, Any]) -> Shape:
    """
    Rebuild a shape from the dictionary produced by ``to_dict``.

    Raises:
        ValueError: If the shape kind is unknown or the geometry is malformed
    """
    kind = data.get(FIELD_KIND)
    common: Dict[str, Any] = {
        "class_id": _optional_int(data.get(FIELD_CLASS_ID)),
        "color": str(data.get(FIELD_COLOR) or ""),
        "image_index": _optional_int(data.get(FIELD_IMAGE_INDEX)),
        "interactive": bool(data.get(FIELD_INTERACTIVE, False)),
        "shape_id": str(data.get(FIELD_SHAPE_ID) or new_shape_id()),
    }

    if kind == SHAPE_KIND_STROKE:
        commands = tuple(PathCommand.from_list(item) for item in data.get(FIELD_PATH) or [])
        return Stroke(
            commands=commands,
            width=float(data.get(FIELD_WIDTH, DEFAULT_BRUSH_SIZE)),
            **common,
        )
    if kind == SHAPE_KIND_POLYGON:
        points = tuple(
            Point(float(item["x"]), float(item["y"]))
            for item in data.get(FIELD_POINTS) or []
        )
        return Polygon(
            points=points,
            width=float(data.get(FIELD_WIDTH, POLYGON_GUIDE_WIDTH)),
            **common,
        )

    raise ValueError(f"Unknown shape kind: {kind!r}")
