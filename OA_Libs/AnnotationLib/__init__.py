"""
AnnotationLib - Annotation authoring engine

This module provides the shape models, geometry helpers, class registry,
history log, scene graph and image ingestion used by the annotation
session (``session``) and its interaction state machine (``interaction``).
"""

from OA_Libs.AnnotationLib.annotation_models import ActionResult, AnnotationMode, PolygonState
from OA_Libs.AnnotationLib.class_registry import ClassRegistry, ClassValidationError, SegmentationClass
from OA_Libs.AnnotationLib.geometry import bounding_box, contains_point, extract_points, polygon_area
from OA_Libs.AnnotationLib.history_log import HistoryLog
from OA_Libs.AnnotationLib.image_loader import (
    ImageDecodeTask,
    ImageDecoder,
    ImageDescriptor,
    ImageLoadError,
    decode_data_url,
    decode_image_bytes,
    load_image_file,
)
from OA_Libs.AnnotationLib.scene import Scene, ViewTransform
from OA_Libs.AnnotationLib.shapes import PathCommand, Point, Polygon, Shape, Stroke, shape_from_dict

__all__ = [
    "ActionResult",
    "AnnotationMode",
    "PolygonState",
    "ClassRegistry",
    "ClassValidationError",
    "SegmentationClass",
    "bounding_box",
    "contains_point",
    "extract_points",
    "polygon_area",
    "HistoryLog",
    "ImageDecodeTask",
    "ImageDecoder",
    "ImageDescriptor",
    "ImageLoadError",
    "decode_data_url",
    "decode_image_bytes",
    "load_image_file",
    "Scene",
    "ViewTransform",
    "PathCommand",
    "Point",
    "Polygon",
    "Shape",
    "Stroke",
    "shape_from_dict",
]
