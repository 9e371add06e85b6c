"""
Tests for shape models and their snapshot dictionaries.
"""

import unittest

from OA_Libs.AnnotationLib.shapes import (
    PathCommand,
    Point,
    Polygon,
    Stroke,
    shape_from_dict,
)


class TestPathCommand(unittest.TestCase):
    """Test path command validation."""

    def test_valid_commands(self):
        self.assertEqual(PathCommand("M", (1.0, 2.0)).end_point, Point(1.0, 2.0))
        self.assertEqual(PathCommand("Q", (1.0, 2.0, 3.0, 4.0)).end_point, Point(3.0, 4.0))

    def test_unknown_operator(self):
        with self.assertRaises(ValueError):
            PathCommand("C", (1.0, 2.0, 3.0, 4.0, 5.0, 6.0))

    def test_wrong_arity(self):
        with self.assertRaises(ValueError):
            PathCommand("Q", (1.0, 2.0))

    def test_from_list(self):
        command = PathCommand.from_list(["L", 3, 4])
        self.assertEqual(command, PathCommand("L", (3.0, 4.0)))
        self.assertEqual(command.to_list(), ["L", 3.0, 4.0])

    def test_from_empty_list(self):
        with self.assertRaises(ValueError):
            PathCommand.from_list([])


class TestShapeDictionaries(unittest.TestCase):
    """Test to_dict / shape_from_dict."""

    def test_polygon_keeps_class_and_image(self):
        polygon = Polygon(
            class_id=2,
            color="#00ff00",
            points=(Point(0, 0), Point(5, 0), Point(5, 5)),
            image_index=1,
        )

        restored = shape_from_dict(polygon.to_dict())

        self.assertEqual(restored, polygon)
        self.assertEqual(restored.class_id, 2)
        self.assertEqual(restored.image_index, 1)

    def test_stroke_dict_layout(self):
        stroke = Stroke(
            class_id=1,
            color="#ff0000",
            commands=(PathCommand("M", (0.0, 0.0)), PathCommand("L", (4.0, 4.0))),
            width=5.0,
        )

        data = stroke.to_dict()

        self.assertEqual(data["type"], "path")
        self.assertEqual(data["class_id"], 1)
        self.assertEqual(data["path"], [["M", 0.0, 0.0], ["L", 4.0, 4.0]])
        self.assertFalse(data["interactive"])

    def test_legacy_shape_without_class_id(self):
        data = {"type": "polygon", "color": "#FF0000", "points": [{"x": 1, "y": 2}]}

        restored = shape_from_dict(data)

        self.assertIsNone(restored.class_id)
        self.assertEqual(restored.points, (Point(1.0, 2.0),))

    def test_unknown_kind(self):
        with self.assertRaises(ValueError):
            shape_from_dict({"type": "circle"})

    def test_polygon_fill_is_translucent_class_color(self):
        polygon = Polygon(class_id=1, color="#ff0000", points=())
        self.assertEqual(polygon.fill, "#ff000040")

    def test_shape_ids_are_unique(self):
        first = Polygon(class_id=1, color="#ff0000", points=())
        second = Polygon(class_id=1, color="#ff0000", points=())
        self.assertNotEqual(first.shape_id, second.shape_id)
