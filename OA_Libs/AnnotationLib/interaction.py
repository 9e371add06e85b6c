"""
Interaction state machine for the annotation canvas.

Interprets one stream of pointer and keyboard events against the session's
current mode:

- select: events pass through to the host canvas
- pan: dragging moves the camera, never the shapes
- brush: a drag captures a freehand stroke, committed on release
- eraser: a press deletes every shape under the pointer
- polygon: presses collect vertices until a press lands near the first one

Holding the pan key turns presses and drags into panning whatever the mode.
Pointer coordinates are screen pixels; shapes are authored in canvas pixels
through the session's view transform.
"""

import logging
from typing import List, Optional

from OA_Libs.AnnotationLib.annotation_models import ActionResult, AnnotationMode, PolygonState
from OA_Libs.AnnotationLib.geometry import distance
from OA_Libs.AnnotationLib.scene import OverlayEdge, OverlayMarker
from OA_Libs.AnnotationLib.session import AnnotationSession
from OA_Libs.AnnotationLib.shapes import PathCommand, Point, Polygon, Stroke
from OA_Libs.constants import (
    PAN_KEY,
    PATH_LINE,
    PATH_MOVE,
    PATH_QUADRATIC,
    POLYGON_CLOSING_TOLERANCE,
    POLYGON_MIN_POINTS,
)

logger = logging.getLogger(__name__)


def _midpoint(a: Point, b: Point) -> Point:
    return Point((a.x + b.x) / 2.0, (a.y + b.y) / 2.0)


def build_stroke_commands(points: List[Point]) -> List[PathCommand]:
    """
    Smooth captured pointer samples into path commands.

    The first sample becomes a move, each following sample becomes a quadratic
    curve whose control point is the sample and whose end is the midpoint to
    the next sample, and the last sample closes the path with a line.
    """
    if not points:
        return []
    if len(points) == 1:
        points = [points[0], points[0]]

    p1, p2 = points[0], points[1]
    commands = [PathCommand(PATH_MOVE, p1.as_tuple())]
    for index in range(1, len(points)):
        if p1 != p2:
            mid = _midpoint(p1, p2)
            commands.append(PathCommand(PATH_QUADRATIC, (p1.x, p1.y, mid.x, mid.y)))
        p1 = points[index]
        if index + 1 < len(points):
            p2 = points[index + 1]
    commands.append(PathCommand(PATH_LINE, p1.as_tuple()))
    return commands


class InteractionStateMachine:
    """
    Converts pointer/keyboard events into scene mutations.

    State is the session's AnnotationMode combined with the polygon sub-state
    (idle, or collecting points with an anchor at the first point). Switching
    modes cancels any half-built polygon or stroke, so only one tool is ever
    armed.
    """

    def __init__(
        self,
        session: AnnotationSession,
        closing_tolerance: float = POLYGON_CLOSING_TOLERANCE,
        pan_key: str = PAN_KEY,
    ) -> None:
        self.session = session
        self.closing_tolerance = float(closing_tolerance)
        self.pan_key = pan_key.lower()

        self._polygon_points: List[Point] = []
        self._anchor: Optional[Point] = None
        self._stroke_points: Optional[List[Point]] = None
        self._pan_origin: Optional[Point] = None

        session.on_mode_change(self._handle_mode_change)
        session.on_scene_reset(self.cancel)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def polygon_state(self) -> PolygonState:
        return PolygonState.COLLECTING if self._polygon_points else PolygonState.IDLE

    @property
    def pending_points(self) -> List[Point]:
        return list(self._polygon_points)

    @property
    def anchor(self) -> Optional[Point]:
        return self._anchor

    @property
    def is_panning(self) -> bool:
        return self._pan_origin is not None

    @property
    def is_stroking(self) -> bool:
        return self._stroke_points is not None

    @property
    def stroke_points(self) -> List[Point]:
        return list(self._stroke_points or [])

    def _pan_active(self) -> bool:
        return self.session.pan_key_held or self.session.mode == AnnotationMode.PAN

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------
    def key_down(self, key: str) -> ActionResult:
        if str(key).lower() != self.pan_key:
            return ActionResult.passthrough()

        self.session.pan_key_held = True
        return ActionResult.success()

    def key_up(self, key: str) -> ActionResult:
        if str(key).lower() != self.pan_key:
            return ActionResult.passthrough()

        self.session.pan_key_held = False
        self._pan_origin = None
        return ActionResult.success()

    # ------------------------------------------------------------------
    # Pointer
    # ------------------------------------------------------------------
    def pointer_down(self, x: float, y: float) -> ActionResult:
        screen = Point(float(x), float(y))

        if self._pan_active():
            self._pan_origin = screen
            return ActionResult.success()

        mode = self.session.mode
        point = self.session.scene.view.to_scene(screen)

        if mode == AnnotationMode.SELECT:
            return ActionResult.passthrough()
        if mode == AnnotationMode.BRUSH:
            return self._begin_stroke(point)
        if mode == AnnotationMode.ERASER:
            return self._erase_at(point)
        if mode == AnnotationMode.POLYGON:
            return self._polygon_click(point)

        return ActionResult.passthrough()

    def pointer_move(self, x: float, y: float, button_pressed: bool = True) -> ActionResult:
        screen = Point(float(x), float(y))

        if self._pan_origin is not None:
            if not button_pressed:
                self._pan_origin = None
                return ActionResult.passthrough()

            dx = screen.x - self._pan_origin.x
            dy = screen.y - self._pan_origin.y
            self.session.scene.view.pan_by(dx, dy)
            self._pan_origin = screen
            self.session.scene.notify()
            return ActionResult.success()

        if self._stroke_points is not None and button_pressed:
            point = self.session.scene.view.to_scene(screen)
            if point != self._stroke_points[-1]:
                self._stroke_points.append(point)
            return ActionResult.success()

        return ActionResult.passthrough()

    def pointer_up(self, x: float, y: float) -> ActionResult:
        if self._pan_origin is not None:
            self._pan_origin = None
            return ActionResult.success()

        if self._stroke_points is not None:
            point = self.session.scene.view.to_scene(Point(float(x), float(y)))
            if point != self._stroke_points[-1]:
                self._stroke_points.append(point)
            return self._finish_stroke()

        return ActionResult.passthrough()

    def double_click(self, x: float, y: float) -> ActionResult:
        """Close the pending polygon without returning to the first vertex."""
        if self.session.mode != AnnotationMode.POLYGON or self._pan_active():
            return ActionResult.passthrough()
        if len(self._polygon_points) < POLYGON_MIN_POINTS:
            return ActionResult.passthrough()
        return self._close_polygon()

    def cancel(self) -> None:
        """Drop any in-progress polygon, stroke or pan."""
        if self._polygon_points:
            logger.debug(f"Discarding polygon with {len(self._polygon_points)} point(s)")
        self._polygon_points = []
        self._anchor = None
        self._stroke_points = None
        self._pan_origin = None
        self.session.scene.clear_overlay()

    def _handle_mode_change(self, previous: AnnotationMode, current: AnnotationMode) -> None:
        self.cancel()

    # ------------------------------------------------------------------
    # Brush
    # ------------------------------------------------------------------
    def _begin_stroke(self, point: Point) -> ActionResult:
        if self.session.active_class is None:
            return self.session.warn("Please select a class before drawing")

        self._stroke_points = [point]
        return ActionResult.success()

    def _finish_stroke(self) -> ActionResult:
        points = self._stroke_points or []
        self._stroke_points = None

        active = self.session.active_class
        if active is None:
            return self.session.warn("Please select a class before drawing")

        stroke = Stroke(
            class_id=active.id,
            color=active.color,
            commands=tuple(build_stroke_commands(points)),
            width=self.session.effective_brush_width,
            image_index=self.session.current_image_index,
            interactive=False,
        )
        self.session.scene.add_shape(stroke)
        self.session.record_edit("brush stroke")
        return ActionResult.success(value=stroke)

    # ------------------------------------------------------------------
    # Eraser
    # ------------------------------------------------------------------
    def _erase_at(self, point: Point) -> ActionResult:
        scene = self.session.scene
        hits = scene.shapes_at(point)
        removed = scene.remove_shapes(hits)
        self.session.record_edit("erase")
        return ActionResult.success(f"Removed {removed} shape(s)", value=removed)

    # ------------------------------------------------------------------
    # Polygon
    # ------------------------------------------------------------------
    def _polygon_click(self, point: Point) -> ActionResult:
        active = self.session.active_class
        if active is None:
            return self.session.warn("Please select a class before drawing")

        if (
            self._anchor is not None
            and len(self._polygon_points) >= POLYGON_MIN_POINTS
            and distance(point, self._anchor) < self.closing_tolerance
        ):
            return self._close_polygon()

        scene = self.session.scene
        self._polygon_points.append(point)
        scene.add_overlay(OverlayMarker(center=point, color=active.color))

        if self._anchor is None:
            self._anchor = point
        else:
            previous = self._polygon_points[-2]
            scene.add_overlay(OverlayEdge(start=previous, end=point, color=active.color))

        return ActionResult.success(value=len(self._polygon_points))

    def _close_polygon(self) -> ActionResult:
        active = self.session.active_class
        if active is None:
            return self.session.warn("Please select a class before drawing")

        polygon = Polygon(
            class_id=active.id,
            color=active.color,
            points=tuple(self._polygon_points),
            image_index=self.session.current_image_index,
            interactive=False,
        )

        self._polygon_points = []
        self._anchor = None

        scene = self.session.scene
        scene.clear_overlay()
        scene.add_shape(polygon)
        self.session.record_edit("polygon")
        return ActionResult.success(value=polygon)
