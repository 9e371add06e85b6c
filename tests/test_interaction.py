"""
Tests for the interaction state machine.

Tests cover:
- Polygon vertex collection and closure
- Brush stroke capture and smoothing
- Eraser deletion
- Panning with the pan key and in pan mode
- Mode guard and mode switching
- Zoom independence of authored geometry
- Dropping in-progress input when the scene is replaced
"""

import pytest

from OA_Libs.AnnotationLib.annotation_models import AnnotationMode, PolygonState
from OA_Libs.AnnotationLib.geometry import extract_points
from OA_Libs.AnnotationLib.interaction import InteractionStateMachine, build_stroke_commands
from OA_Libs.AnnotationLib.scene import OverlayEdge, OverlayMarker
from OA_Libs.AnnotationLib.session import AnnotationSession
from OA_Libs.AnnotationLib.shapes import PathCommand, Point, Polygon, Stroke


def _click_all(machine, points):
    for x, y in points:
        machine.pointer_down(x, y)
        machine.pointer_up(x, y)


class TestPolygonTool:
    """Tests for polygon authoring."""

    def test_close_near_first_point(self, session, machine):
        session.set_mode(AnnotationMode.POLYGON)
        _click_all(machine, [(0, 0), (100, 0), (100, 100)])
        history_before = len(session.history)

        result = machine.pointer_down(3, 3)

        assert result.ok
        shapes = session.scene.shapes
        assert len(shapes) == 1
        polygon = shapes[0]
        assert isinstance(polygon, Polygon)
        assert polygon.points == (Point(0, 0), Point(100, 0), Point(100, 100))
        assert polygon.class_id == session.active_class.id
        assert polygon.color == "#00ff00"
        assert not polygon.interactive
        assert machine.polygon_state == PolygonState.IDLE
        assert session.scene.overlay == []
        assert len(session.history) == history_before + 1

    def test_far_click_adds_vertex(self, session, machine):
        session.set_mode(AnnotationMode.POLYGON)
        _click_all(machine, [(0, 0), (100, 0), (100, 100), (50, 50)])

        assert session.scene.shapes == []
        assert len(machine.pending_points) == 4
        assert machine.polygon_state == PolygonState.COLLECTING
        assert machine.anchor == Point(0, 0)

    def test_no_close_with_two_points(self, session, machine):
        """A click near the anchor is a new vertex until there are three points."""
        session.set_mode(AnnotationMode.POLYGON)
        _click_all(machine, [(0, 0), (100, 0), (2, 2)])

        assert session.scene.shapes == []
        assert len(machine.pending_points) == 3

    def test_tolerance_is_strict(self, session, machine):
        session.set_mode(AnnotationMode.POLYGON)
        _click_all(machine, [(0, 0), (100, 0), (100, 100), (10, 0)])

        assert session.scene.shapes == []
        assert len(machine.pending_points) == 4

    def test_overlay_markers_and_edges(self, session, machine):
        session.set_mode(AnnotationMode.POLYGON)
        _click_all(machine, [(0, 0), (100, 0), (100, 100)])

        overlay = session.scene.overlay
        markers = [item for item in overlay if isinstance(item, OverlayMarker)]
        edges = [item for item in overlay if isinstance(item, OverlayEdge)]
        assert len(markers) == 3
        assert len(edges) == 2
        assert edges[0].start == Point(0, 0)
        assert edges[0].end == Point(100, 0)

    def test_double_click_closes(self, session, machine):
        session.set_mode(AnnotationMode.POLYGON)
        _click_all(machine, [(0, 0), (100, 0), (100, 100)])

        result = machine.double_click(100, 100)

        assert result.handled
        assert len(session.scene.shapes) == 1

    def test_double_click_needs_three_points(self, session, machine):
        session.set_mode(AnnotationMode.POLYGON)
        _click_all(machine, [(0, 0), (100, 0)])

        result = machine.double_click(100, 0)

        assert not result.handled
        assert session.scene.shapes == []

    def test_mode_switch_discards_pending_polygon(self, session, machine):
        session.set_mode(AnnotationMode.POLYGON)
        _click_all(machine, [(0, 0), (100, 0)])

        session.set_mode(AnnotationMode.SELECT)

        assert machine.pending_points == []
        assert machine.anchor is None
        assert session.scene.overlay == []
        assert session.scene.shapes == []


class TestBrushTool:
    """Tests for freehand strokes."""

    def test_stroke_committed_on_release(self, session, machine):
        session.set_mode(AnnotationMode.BRUSH)
        history_before = len(session.history)

        machine.pointer_down(10, 10)
        machine.pointer_move(20, 20)
        machine.pointer_move(30, 30)
        assert session.scene.shapes == []
        assert len(machine.stroke_points) == 3
        result = machine.pointer_up(40, 40)

        assert result.ok
        stroke = session.scene.shapes[0]
        assert isinstance(stroke, Stroke)
        assert stroke.class_id == session.active_class.id
        assert stroke.width == pytest.approx(10.0)
        assert stroke.image_index is None
        assert not stroke.interactive
        assert stroke.commands[0] == PathCommand("M", (10.0, 10.0))
        assert stroke.commands[-1] == PathCommand("L", (40.0, 40.0))
        assert extract_points(stroke) == [[10.0, 10.0, 15.0, 15.0, 25.0, 25.0, 35.0, 35.0, 40.0, 40.0]]
        assert len(session.history) == history_before + 1

    def test_move_without_press_does_nothing(self, session, machine):
        session.set_mode(AnnotationMode.BRUSH)

        result = machine.pointer_move(5, 5, button_pressed=False)

        assert not result.handled
        assert session.scene.shapes == []

    def test_stroke_rejected_without_active_class(self, session, machine):
        session.set_mode(AnnotationMode.BRUSH)
        session.delete_class(session.active_class.id)
        warnings = []
        session.on_warning(warnings.append)

        result = machine.pointer_down(10, 10)

        assert not result.ok
        assert warnings == ["Please select a class before drawing"]
        assert not machine.is_stroking
        assert session.scene.shapes == []

    def test_brush_size_preset(self, session, machine):
        session.set_brush_size(50)
        session.set_mode(AnnotationMode.BRUSH)

        machine.pointer_down(0, 0)
        machine.pointer_up(10, 0)

        assert session.scene.shapes[0].width == pytest.approx(50.0)

    def test_build_single_point(self):
        commands = build_stroke_commands([Point(3, 4)])
        assert commands == [PathCommand("M", (3, 4)), PathCommand("L", (3, 4))]

    def test_build_empty(self):
        assert build_stroke_commands([]) == []


class TestEraserTool:
    """Tests for the eraser."""

    def _add_square(self, session, offset=0.0):
        square = Polygon(
            class_id=1,
            color="#ff0000",
            points=(
                Point(offset, offset),
                Point(offset + 20, offset),
                Point(offset + 20, offset + 20),
                Point(offset, offset + 20),
            ),
        )
        session.scene.add_shape(square)
        return square

    def test_erase_hit(self, session, machine):
        target = self._add_square(session)
        survivor = self._add_square(session, offset=100.0)
        session.set_mode(AnnotationMode.ERASER)
        history_before = len(session.history)

        result = machine.pointer_down(10, 10)

        assert result.value == 1
        assert session.scene.shapes == [survivor]
        assert target not in session.scene.shapes
        assert len(session.history) == history_before + 1

    def test_erase_overlapping(self, session, machine):
        self._add_square(session)
        self._add_square(session, offset=5.0)
        session.set_mode(AnnotationMode.ERASER)

        result = machine.pointer_down(10, 10)

        assert result.value == 2
        assert session.scene.shapes == []

    def test_erase_miss(self, session, machine):
        self._add_square(session)
        session.set_mode(AnnotationMode.ERASER)
        history_before = len(session.history)

        result = machine.pointer_down(500, 500)

        assert result.value == 0
        assert len(session.scene.shapes) == 1
        assert len(session.history) == history_before + 1

    def test_eraser_needs_no_class(self):
        session = AnnotationSession()
        machine = InteractionStateMachine(session)

        assert session.set_mode(AnnotationMode.ERASER).ok
        assert machine.pointer_down(0, 0).ok


class TestPanning:
    """Tests for camera panning."""

    def test_pan_key_overrides_brush(self, session, machine):
        session.set_mode(AnnotationMode.BRUSH)

        assert machine.key_down("Space").ok
        machine.pointer_down(0, 0)
        machine.pointer_move(30, 40)
        machine.pointer_up(30, 40)
        machine.key_up("space")

        assert session.scene.shapes == []
        assert session.scene.view.offset_x == pytest.approx(30)
        assert session.scene.view.offset_y == pytest.approx(40)
        assert not session.pan_key_held

    def test_pan_mode(self, session, machine):
        session.set_mode(AnnotationMode.PAN)

        machine.pointer_down(10, 10)
        assert machine.is_panning
        machine.pointer_move(15, 20)
        machine.pointer_up(15, 20)

        assert not machine.is_panning
        assert session.scene.view.offset_x == pytest.approx(5)
        assert session.scene.view.offset_y == pytest.approx(10)

    def test_pan_never_moves_shapes(self, session, machine):
        session.set_mode(AnnotationMode.POLYGON)
        _click_all(machine, [(0, 0), (100, 0), (100, 100), (1, 1)])
        before = session.scene.snapshot()

        session.set_mode(AnnotationMode.PAN)
        machine.pointer_down(0, 0)
        machine.pointer_move(50, 50)
        machine.pointer_up(50, 50)

        assert session.scene.snapshot() == before

    def test_other_keys_pass_through(self, machine):
        assert not machine.key_down("a").handled
        assert not machine.key_up("a").handled


class TestSceneReplacement:
    """Tests that in-progress input is dropped when the scene is replaced."""

    def _commit_far_polygon(self, session, machine):
        _click_all(machine, [(200, 200), (300, 200), (300, 300), (201, 201)])
        assert len(session.scene.shapes) == 1

    def test_undo_mid_polygon(self, session, machine):
        session.set_mode(AnnotationMode.POLYGON)
        self._commit_far_polygon(session, machine)
        _click_all(machine, [(0, 0), (100, 0), (100, 100)])

        assert session.undo()

        assert machine.polygon_state == PolygonState.IDLE
        assert machine.pending_points == []
        assert machine.anchor is None
        assert session.scene.overlay == []

        _click_all(machine, [(2, 2)])

        assert session.scene.shapes == []
        assert machine.pending_points == [Point(2, 2)]

    def test_redo_mid_stroke(self, session, machine):
        session.set_mode(AnnotationMode.POLYGON)
        self._commit_far_polygon(session, machine)
        assert session.undo()
        session.set_mode(AnnotationMode.BRUSH)
        machine.pointer_down(10, 10)
        machine.pointer_move(20, 20)

        assert session.redo()

        assert not machine.is_stroking
        assert not machine.pointer_up(30, 30).handled
        assert len(session.scene.shapes) == 1
        assert isinstance(session.scene.shapes[0], Polygon)

    def test_clear_mid_polygon(self, session, machine):
        session.set_mode(AnnotationMode.POLYGON)
        _click_all(machine, [(0, 0), (100, 0), (100, 100)])

        session.clear_canvas()
        _click_all(machine, [(2, 2)])

        assert session.scene.shapes == []
        assert machine.pending_points == [Point(2, 2)]

    def test_image_load_mid_polygon(self, session, machine, png_path):
        session.set_mode(AnnotationMode.POLYGON)
        _click_all(machine, [(0, 0), (100, 0), (100, 100)])

        assert session.load_image(png_path).ok
        _click_all(machine, [(2, 2)])

        assert session.scene.shapes == []
        assert machine.pending_points == [Point(2, 2)]
        assert machine.anchor == Point(2, 2)

    def test_background_decode_mid_polygon(self, session, machine, png_path):
        session.set_mode(AnnotationMode.POLYGON)
        task = session.begin_image_load(png_path)
        _click_all(machine, [(0, 0), (100, 0), (100, 100)])

        assert task.wait(timeout=10)
        assert [r.ok for r in session.poll_image_loads()] == [True]

        assert machine.polygon_state == PolygonState.IDLE
        _click_all(machine, [(2, 2)])
        assert session.scene.shapes == []
        assert session.all_shapes() == []


class TestModesAndZoom:
    """Tests for the mode guard and zoom behavior."""

    def test_drawing_mode_requires_class(self):
        session = AnnotationSession()
        warnings = []
        session.on_warning(warnings.append)

        result = session.set_mode(AnnotationMode.BRUSH)

        assert not result.ok
        assert session.mode == AnnotationMode.SELECT
        assert warnings == ["Please select a class before drawing"]

    def test_mode_accepts_strings(self, session):
        assert session.set_mode("polygon").ok
        assert session.mode == AnnotationMode.POLYGON

    def test_unknown_mode(self, session):
        assert not session.set_mode("lasso").ok
        assert session.mode == AnnotationMode.SELECT

    def test_select_mode_passes_through(self, session, machine):
        result = machine.pointer_down(10, 10)

        assert not result.handled
        assert session.scene.shapes == []

    def test_polygon_points_are_canvas_pixels_when_zoomed(self, session, machine):
        session.set_zoom(200)
        session.set_mode(AnnotationMode.POLYGON)

        _click_all(machine, [(0, 0), (200, 0), (200, 200), (4, 4)])

        polygon = session.scene.shapes[0]
        assert polygon.points == (Point(0, 0), Point(100, 0), Point(100, 100))

    def test_brush_width_compensates_zoom(self, session, machine):
        session.set_zoom(200)
        session.set_mode(AnnotationMode.BRUSH)

        machine.pointer_down(0, 0)
        machine.pointer_up(20, 0)

        assert session.scene.shapes[0].width == pytest.approx(5.0)

    def test_zoom_leaves_geometry_untouched(self, session, machine):
        session.set_mode(AnnotationMode.POLYGON)
        _click_all(machine, [(0, 0), (100, 0), (100, 100), (1, 1)])
        before = session.scene.snapshot()

        session.set_zoom(150)
        session.zoom_out()

        assert session.scene.snapshot() == before
        assert session.zoom == 140

    def test_undo_redo_after_polygon(self, session, machine):
        session.set_mode(AnnotationMode.POLYGON)
        _click_all(machine, [(0, 0), (100, 0), (100, 100), (1, 1)])

        assert session.undo()
        assert session.scene.shapes == []
        assert session.redo()
        assert len(session.scene.shapes) == 1
