"""
Live scene graph for the annotation canvas.

The scene holds everything the canvas displays: the background image reference,
the committed shapes in draw order, the temporary overlay shown while a polygon
is being built, and the view transform (zoom and pan).

Only background and shapes are part of a snapshot. The overlay and the view are
transient: restoring a snapshot discards the overlay and leaves the camera
where it is.

Classes:
    ViewTransform: Camera mapping between screen and canvas coordinates
    OverlayMarker: Temporary vertex dot
    OverlayEdge: Temporary guide segment
    Scene: Shapes, background, overlay and view
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from OA_Libs.AnnotationLib.geometry import contains_point
from OA_Libs.AnnotationLib.shapes import Point, Shape, shape_from_dict
from OA_Libs.constants import (
    FIELD_BACKGROUND,
    FIELD_SHAPES,
    POLYGON_GUIDE_WIDTH,
    POLYGON_MARKER_RADIUS,
    ZOOM_DEFAULT,
)

logger = logging.getLogger(__name__)


class ViewTransform:
    """Maps screen (widget) pixels to canvas pixels.

    ``screen = canvas * scale + offset``. Shapes are always stored in canvas
    pixels, so zooming and panning never touch authored geometry.
    """

    def __init__(self, viewport_width: float = 0.0, viewport_height: float = 0.0) -> None:
        self.viewport_width = float(viewport_width)
        self.viewport_height = float(viewport_height)
        self.scale = ZOOM_DEFAULT / 100.0
        self.offset_x = 0.0
        self.offset_y = 0.0

    @property
    def zoom_percent(self) -> float:
        return self.scale * 100.0

    def set_viewport(self, width: float, height: float) -> None:
        self.viewport_width = float(width)
        self.viewport_height = float(height)

    def center(self) -> Point:
        return Point(self.viewport_width / 2.0, self.viewport_height / 2.0)

    def to_scene(self, screen: Point) -> Point:
        return Point(
            (screen.x - self.offset_x) / self.scale,
            (screen.y - self.offset_y) / self.scale,
        )

    def to_screen(self, scene: Point) -> Point:
        return Point(
            scene.x * self.scale + self.offset_x,
            scene.y * self.scale + self.offset_y,
        )

    def pan_by(self, dx: float, dy: float) -> None:
        self.offset_x += dx
        self.offset_y += dy

    def zoom_to(self, percent: float, anchor: Optional[Point] = None) -> None:
        """Rescale so the canvas point under ``anchor`` (default: viewport center) stays put."""
        anchor = anchor if anchor is not None else self.center()
        fixed = self.to_scene(anchor)
        self.scale = float(percent) / 100.0
        self.offset_x = anchor.x - fixed.x * self.scale
        self.offset_y = anchor.y - fixed.y * self.scale

    def reset(self) -> None:
        self.scale = ZOOM_DEFAULT / 100.0
        self.offset_x = 0.0
        self.offset_y = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"scale": self.scale, "offset_x": self.offset_x, "offset_y": self.offset_y}


@dataclass(frozen=True)
class OverlayMarker:
    center: Point
    color: str
    radius: float = POLYGON_MARKER_RADIUS


@dataclass(frozen=True)
class OverlayEdge:
    start: Point
    end: Point
    color: str
    width: float = POLYGON_GUIDE_WIDTH


OverlayItem = Union[OverlayMarker, OverlayEdge]
SceneListener = Callable[["Scene"], None]


class Scene:
    """Mutable scene contents. Exactly one tool mutates it at a time."""

    def __init__(self) -> None:
        self.view = ViewTransform()
        self._background: Optional[Dict[str, Any]] = None
        self._shapes: List[Shape] = []
        self._overlay: List[OverlayItem] = []
        self._listeners: List[SceneListener] = []

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------
    def add_listener(self, listener: SceneListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SceneListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ------------------------------------------------------------------
    # Contents
    # ------------------------------------------------------------------
    @property
    def background(self) -> Optional[Dict[str, Any]]:
        return dict(self._background) if self._background is not None else None

    def set_background(self, background: Optional[Dict[str, Any]]) -> None:
        self._background = dict(background) if background is not None else None
        self.notify()

    @property
    def shapes(self) -> List[Shape]:
        return list(self._shapes)

    @property
    def overlay(self) -> List[OverlayItem]:
        return list(self._overlay)

    def add_shape(self, shape: Shape) -> None:
        self._shapes.append(shape)
        self.notify()

    def remove_shapes(self, shapes: Iterable[Shape]) -> int:
        doomed = {shape.shape_id for shape in shapes}
        before = len(self._shapes)
        self._shapes = [shape for shape in self._shapes if shape.shape_id not in doomed]
        removed = before - len(self._shapes)
        if removed:
            self.notify()
        return removed

    def clear_shapes(self) -> None:
        self._shapes = []
        self.notify()

    def shapes_at(self, point: Point) -> List[Shape]:
        """Shapes whose geometry contains the canvas ``point`` (background excluded)."""
        return [shape for shape in self._shapes if contains_point(shape, point)]

    def add_overlay(self, item: OverlayItem) -> None:
        self._overlay.append(item)
        self.notify()

    def clear_overlay(self) -> None:
        if self._overlay:
            self._overlay = []
            self.notify()

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------
    def snapshot(self) -> Dict[str, Any]:
        """Serialize background and shapes into a JSON-compatible dictionary."""
        return {
            FIELD_BACKGROUND: self.background,
            FIELD_SHAPES: [shape.to_dict() for shape in self._shapes],
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        """Replace the whole scene with ``snapshot``. Not a diff."""
        shapes: List[Shape] = []
        for item in snapshot.get(FIELD_SHAPES) or []:
            if not isinstance(item, dict):
                continue
            try:
                shapes.append(shape_from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable shape in snapshot: {e}")

        background = snapshot.get(FIELD_BACKGROUND)
        self._background = dict(background) if isinstance(background, dict) else None
        self._shapes = shapes
        self._overlay = []
        self.notify()
