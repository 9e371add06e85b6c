"""
Geometry extraction and metrics for annotation shapes.

Converts authored shapes into flat coordinate runs (``[[x0, y0, x1, y1, ...]]``)
independent of how the shape was drawn, and computes the metrics the COCO
export needs: axis-aligned bounding box and shoelace polygon area.

The shoelace area is applied to freehand strokes as well as polygons. A stroke
is not a closed ring, so its "area" is the area of the ring obtained by joining
its last point back to its first. That is an accepted approximation and is kept
as is.

Functions:
    extract_points: Flatten a shape into coordinate runs
    bounding_box: Axis-aligned (x, y, width, height) of flattened points
    polygon_area: Shoelace area of flattened points
    contains_point: Hit test used by the eraser
"""

import math
from typing import Any, List, Sequence, Tuple

import numpy as np

from OA_Libs.AnnotationLib.shapes import Point, Polygon, Shape, Stroke
from OA_Libs.constants import ERASER_MIN_HIT_RADIUS, PATH_LINE, PATH_MOVE, PATH_QUADRATIC

BoundingBox = Tuple[float, float, float, float]


def extract_points(shape: Shape) -> List[List[float]]:
    """
    Flatten a shape into a list of coordinate runs.

    For a stroke, move/line commands contribute their point and quadratic
    curves contribute only their terminal point (control points are dropped).
    For a polygon, vertices are flattened in order.

    Args:
        shape: Stroke or Polygon

    Returns:
        ``[[x0, y0, x1, y1, ...]]`` or ``[]`` when the shape has no geometry

    Raises:
        TypeError: If ``shape`` is not one of the known shape variants
    """
    if isinstance(shape, Stroke):
        run: List[float] = []
        for command in shape.commands:
            if command.op in (PATH_MOVE, PATH_LINE):
                run.extend(command.coords[:2])
            elif command.op == PATH_QUADRATIC:
                run.extend(command.coords[2:4])
        return [run] if run else []

    if isinstance(shape, Polygon):
        run = [coord for point in shape.points for coord in (point.x, point.y)]
        return [run] if run else []

    raise TypeError(f"Cannot extract points from {type(shape).__name__}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, np.number)) and not isinstance(value, bool)


def _is_pair(item: Any) -> bool:
    return isinstance(item, tuple) and len(item) == 2 and all(_is_number(value) for value in item)


def _rings(points: Sequence[Any]) -> List[np.ndarray]:
    """Normalize supported point layouts into a list of (N, 2) arrays.

    Accepted layouts: a list of flat runs (export segmentation), a single flat
    run of numbers, or a sequence of ``Point`` objects or ``(x, y)`` tuples
    (one ring). Lists are always read as flat runs, so ``[[x, y], [x, y]]`` is
    two one-point runs rather than one ring.
    """
    if points is None or len(points) == 0:
        return []

    first = points[0]
    if isinstance(first, Point):
        return [np.array([p.as_tuple() for p in points], dtype=float)]
    if _is_number(first):
        runs = [points]
    elif all(_is_pair(item) for item in points):
        return [np.array(points, dtype=float).reshape(-1, 2)]
    else:
        runs = points

    rings = []
    for run in runs:
        values = np.asarray(run, dtype=float).ravel()
        usable = len(values) - (len(values) % 2)
        if usable:
            rings.append(values[:usable].reshape(-1, 2))
    return rings


def bounding_box(points: Sequence[Any]) -> BoundingBox:
    """
    Compute the axis-aligned bounding box of flattened points.

    Returns:
        ``(x, y, width, height)``; ``(0, 0, 0, 0)`` for empty input
    """
    rings = _rings(points)
    if not rings:
        return (0, 0, 0, 0)

    coords = np.vstack(rings)
    min_x, min_y = coords.min(axis=0)
    max_x, max_y = coords.max(axis=0)
    return (float(min_x), float(min_y), float(max_x - min_x), float(max_y - min_y))


def polygon_area(points: Sequence[Any]) -> float:
    """
    Shoelace area over the implicitly closed ring(s).

    ``abs(sum(x_i * y_{i+1} - x_{i+1} * y_i)) / 2`` with the last point wrapping
    back to the first. Multiple runs contribute the sum of their areas.

    Returns:
        The area, ``0`` for empty input
    """
    total = 0.0
    for ring in _rings(points):
        x = ring[:, 0]
        y = ring[:, 1]
        cross = np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y)
        total += abs(float(cross)) / 2.0
    return total


def distance(a: Point, b: Point) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def distance_to_polyline(point: Point, ring: np.ndarray) -> float:
    """Shortest distance from ``point`` to the open polyline through ``ring``."""
    if len(ring) == 0:
        return math.inf

    p = np.array(point.as_tuple(), dtype=float)
    if len(ring) == 1:
        return float(np.linalg.norm(ring[0] - p))

    starts = ring[:-1]
    segments = ring[1:] - starts
    lengths_sq = np.einsum("ij,ij->i", segments, segments)
    projections = np.einsum("ij,ij->i", p - starts, segments)
    t = np.divide(projections, lengths_sq, out=np.zeros_like(projections), where=lengths_sq > 0)
    t = np.clip(t, 0.0, 1.0)
    closest = starts + segments * t[:, None]
    return float(np.min(np.linalg.norm(closest - p, axis=1)))


def point_in_polygon(point: Point, ring: np.ndarray) -> bool:
    """Even-odd ray casting test."""
    if len(ring) < 3:
        return False

    x, y = point.x, point.y
    xs = ring[:, 0]
    ys = ring[:, 1]
    xs_next = np.roll(xs, -1)
    ys_next = np.roll(ys, -1)

    straddles = (ys > y) != (ys_next > y)
    with np.errstate(divide="ignore", invalid="ignore"):
        crossing_x = xs + (y - ys) * (xs_next - xs) / (ys_next - ys)
    crossings = np.count_nonzero(straddles & (x < crossing_x))
    return bool(crossings % 2)


def contains_point(shape: Shape, point: Point) -> bool:
    """
    Check whether a shape's geometry contains ``point``.

    Polygons contain their interior and their outline (within half the outline
    width). Strokes contain every point within half the stroke width of the
    stroke's polyline.
    """
    runs = extract_points(shape)
    if not runs:
        return False

    ring = _rings(runs)[0]
    radius = max(float(shape.width) / 2.0, ERASER_MIN_HIT_RADIUS)

    if isinstance(shape, Polygon):
        if point_in_polygon(point, ring):
            return True
        closed = np.vstack([ring, ring[:1]])
        return distance_to_polyline(point, closed) <= radius

    return distance_to_polyline(point, ring) <= radius
