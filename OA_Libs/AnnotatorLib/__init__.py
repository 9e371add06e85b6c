"""
Desktop host for the annotation engine (PyQt5).
"""

from .annotator_window import AnnotatorMainWindow
from .canvas_widget import AnnotationCanvas

__all__ = [
    "AnnotatorMainWindow",
    "AnnotationCanvas",
]
