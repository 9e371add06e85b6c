"""
Constants and configuration values for Open Annotate.

This module centralizes all constant values, magic numbers, and
configuration settings used throughout the application.
"""

# Annotation modes
MODE_SELECT = "select"
MODE_PAN = "pan"
MODE_BRUSH = "brush"
MODE_POLYGON = "polygon"
MODE_ERASER = "eraser"

# Polygon authoring
POLYGON_CLOSING_TOLERANCE = 10.0
POLYGON_MIN_POINTS = 3
POLYGON_MARKER_RADIUS = 4.0
POLYGON_GUIDE_WIDTH = 2.0
POLYGON_FILL_ALPHA = "40"

# Eraser hit testing
ERASER_MIN_HIT_RADIUS = 1.0

# Brush presets (name -> width in canvas pixels at 100% zoom)
BRUSH_SIZE_SMALL = 5
BRUSH_SIZE_MEDIUM = 10
BRUSH_SIZE_LARGE = 50
BRUSH_SIZE_PRESETS = {
    "Small": BRUSH_SIZE_SMALL,
    "Medium": BRUSH_SIZE_MEDIUM,
    "Large": BRUSH_SIZE_LARGE,
}
DEFAULT_BRUSH_SIZE = BRUSH_SIZE_MEDIUM

# Zoom (percent)
ZOOM_MIN = 50
ZOOM_MAX = 200
ZOOM_STEP = 10
ZOOM_DEFAULT = 100
ZOOM_PRESETS = (50, 100, 150, 200)

# Keyboard
PAN_KEY = "space"

# Class defaults
DEFAULT_CLASS_COLOR = "#ff0000"
FALLBACK_DRAW_COLOR = "#000000"

# UI constants
DEFAULT_WINDOW_WIDTH = 1400
DEFAULT_WINDOW_HEIGHT = 850
CANVAS_BACKGROUND_COLOR = "#f0f0f0"
STATUS_MESSAGE_TIMEOUT_MS = 2500
DECODE_POLL_INTERVAL_MS = 50

# Shape kinds (snapshot field values)
SHAPE_KIND_STROKE = "path"
SHAPE_KIND_POLYGON = "polygon"

# Path command operators
PATH_MOVE = "M"
PATH_LINE = "L"
PATH_QUADRATIC = "Q"

# Snapshot field names
FIELD_BACKGROUND = "background"
FIELD_SHAPES = "shapes"
FIELD_KIND = "type"
FIELD_SHAPE_ID = "id"
FIELD_CLASS_ID = "class_id"
FIELD_IMAGE_INDEX = "image_index"
FIELD_COLOR = "color"
FIELD_WIDTH = "width"
FIELD_INTERACTIVE = "interactive"
FIELD_PATH = "path"
FIELD_POINTS = "points"

# COCO export
COCO_SUPERCATEGORY = "object"
COCO_FILE_NAME_PLACEHOLDER = "{fileName}"
EXPORT_FILE_NAME = "annotations.json"
EXPORT_JSON_INDENT = 2

# Supported image formats
SUPPORTED_STANDARD_IMAGES = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tiff", ".webp"}
IMAGE_MIME_PREFIX = "image/"
IMAGE_FILE_FILTER = "Images (*.png *.jpg *.jpeg *.bmp *.gif *.tiff *.webp)"
