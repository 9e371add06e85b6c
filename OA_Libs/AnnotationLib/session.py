"""
Annotation session context.

The session is the explicit context object behind the canvas: it owns the class
registry, the history log, the live scene, the loaded images and the tool
settings (mode, zoom, brush size, pan key). All reads and writes of that state
go through its methods, which makes the interaction state machine testable
without a rendering surface.

Session operations never raise. Rejections are returned as ``ActionResult``
objects and broadcast to the warning/error listeners so a host UI can show
them.

Classes:
    AnnotationSession: Context object for one annotation workspace
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Union

from OA_Libs.AnnotationLib.annotation_models import ActionResult, AnnotationMode
from OA_Libs.AnnotationLib.class_registry import ClassRegistry, ClassValidationError, SegmentationClass
from OA_Libs.AnnotationLib.history_log import HistoryLog
from OA_Libs.AnnotationLib.image_loader import (
    ImageDecodeTask,
    ImageDecoder,
    ImageDescriptor,
    ImageLoadError,
    decode_image_bytes,
    load_image_file,
)
from OA_Libs.AnnotationLib.scene import Scene
from OA_Libs.AnnotationLib.shapes import Shape
from OA_Libs.ExportLib.coco_export import export_to_coco, validate_export_preconditions, write_annotations_json
from OA_Libs.ExportLib.metadata import DatasetMetadata
from OA_Libs.constants import (
    DEFAULT_BRUSH_SIZE,
    EXPORT_FILE_NAME,
    FIELD_BACKGROUND,
    FIELD_SHAPES,
    FALLBACK_DRAW_COLOR,
    ZOOM_DEFAULT,
    ZOOM_MAX,
    ZOOM_MIN,
    ZOOM_STEP,
)

logger = logging.getLogger(__name__)

MessageListener = Callable[[str], None]
ModeListener = Callable[[AnnotationMode, AnnotationMode], None]
ResetListener = Callable[[], None]


class AnnotationSession:
    """
    Context object shared by the interaction state machine and the host UI.

    Attributes:
        registry: Segmentation classes and the active class
        history: Undo/redo snapshot log
        scene: Live shapes, overlay and view transform
        images: Loaded images in upload order; the last one is the background
        metadata: Static dataset metadata used for exports
    """

    def __init__(
        self,
        metadata: Optional[DatasetMetadata] = None,
        history_limit: Optional[int] = None,
        decoder: Optional[ImageDecoder] = None,
    ) -> None:
        self.registry = ClassRegistry()
        self.history = HistoryLog(limit=history_limit)
        self.scene = Scene()
        self.images: List[ImageDescriptor] = []
        self.metadata = metadata or DatasetMetadata()

        self._mode = AnnotationMode.SELECT
        self._zoom = ZOOM_DEFAULT
        self._brush_size = DEFAULT_BRUSH_SIZE
        self.pan_key_held = False

        self._archived_shapes: List[Shape] = []
        self._decoder = decoder
        self._pending_loads: List[ImageDecodeTask] = []

        self._warning_listeners: List[MessageListener] = []
        self._error_listeners: List[MessageListener] = []
        self._info_listeners: List[MessageListener] = []
        self._mode_listeners: List[ModeListener] = []
        self._reset_listeners: List[ResetListener] = []

        # Blank canvas is the lower bound of the history
        self.record_edit("blank canvas")

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def on_warning(self, listener: MessageListener) -> None:
        self._warning_listeners.append(listener)

    def on_error(self, listener: MessageListener) -> None:
        self._error_listeners.append(listener)

    def on_info(self, listener: MessageListener) -> None:
        self._info_listeners.append(listener)

    def on_mode_change(self, listener: ModeListener) -> None:
        self._mode_listeners.append(listener)

    def on_scene_reset(self, listener: ResetListener) -> None:
        """Call ``listener`` whenever the scene is replaced by undo, redo, clear or a new image."""
        self._reset_listeners.append(listener)

    def warn(self, message: str) -> ActionResult:
        logger.warning(message)
        for listener in list(self._warning_listeners):
            listener(message)
        return ActionResult.rejected(message)

    def fail(self, message: str) -> ActionResult:
        logger.error(message)
        for listener in list(self._error_listeners):
            listener(message)
        return ActionResult.rejected(message)

    def inform(self, message: str) -> None:
        logger.info(message)
        for listener in list(self._info_listeners):
            listener(message)

    def _notify_scene_reset(self) -> None:
        for listener in list(self._reset_listeners):
            listener()

    # ------------------------------------------------------------------
    # Mode and tool settings
    # ------------------------------------------------------------------
    @property
    def mode(self) -> AnnotationMode:
        return self._mode

    def set_mode(self, mode: Union[AnnotationMode, str]) -> ActionResult:
        """
        Switch the active mode.

        Brush and polygon modes require an active class; without one the switch
        is rejected with a warning and the mode is unchanged.
        """
        try:
            new_mode = AnnotationMode(mode)
        except ValueError:
            return self.warn(f"Unknown annotation mode: {mode}")

        if new_mode.requires_class and self.registry.active_class is None:
            return self.warn("Please select a class before drawing")

        previous = self._mode
        if new_mode == previous:
            return ActionResult.success(value=new_mode)

        self._mode = new_mode
        logger.debug(f"Mode changed: {previous.value} -> {new_mode.value}")
        for listener in list(self._mode_listeners):
            listener(previous, new_mode)
        return ActionResult.success(value=new_mode)

    @property
    def brush_size(self) -> int:
        return self._brush_size

    def set_brush_size(self, size: int) -> ActionResult:
        try:
            value = int(size)
        except (TypeError, ValueError):
            return self.warn(f"Invalid brush size: {size}")
        if value <= 0:
            return self.warn(f"Invalid brush size: {size}")

        self._brush_size = value
        return ActionResult.success(value=value)

    @property
    def effective_brush_width(self) -> float:
        """Brush width in canvas pixels so strokes look the same at every zoom."""
        return self._brush_size / (self._zoom / 100.0)

    @property
    def zoom(self) -> int:
        return self._zoom

    def set_zoom(self, percent: int) -> ActionResult:
        """Rescale the view around its center. Stored geometry is untouched."""
        try:
            value = int(percent)
        except (TypeError, ValueError):
            return self.warn(f"Invalid zoom: {percent}")

        value = max(ZOOM_MIN, min(ZOOM_MAX, value))
        self._zoom = value
        self.scene.view.zoom_to(value)
        self.scene.notify()
        return ActionResult.success(value=value)

    def zoom_in(self) -> ActionResult:
        return self.set_zoom(self._zoom + ZOOM_STEP)

    def zoom_out(self) -> ActionResult:
        return self.set_zoom(self._zoom - ZOOM_STEP)

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------
    @property
    def active_class(self) -> Optional[SegmentationClass]:
        return self.registry.active_class

    @property
    def draw_color(self) -> str:
        active = self.registry.active_class
        return active.color if active is not None else FALLBACK_DRAW_COLOR

    def add_class(self, name: str, color: str) -> ActionResult:
        try:
            new_class = self.registry.add_class(name, color)
        except ClassValidationError as e:
            return self.fail(str(e))
        return ActionResult.success(f"Added class {new_class.name}", value=new_class)

    def delete_class(self, class_id: int) -> ActionResult:
        if not self.registry.delete_class(class_id):
            return ActionResult.rejected(f"Unknown class id: {class_id}")
        return ActionResult.success(value=class_id)

    def select_class(self, class_id: int) -> ActionResult:
        if not self.registry.select_class(class_id):
            return ActionResult.rejected(f"Unknown class id: {class_id}")
        return ActionResult.success(value=self.registry.active_class)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------
    def record_edit(self, description: str = "edit") -> None:
        """Push the current scene onto the history log."""
        self.history.push(self.scene.snapshot())
        logger.info(f"Recorded {description} (history {self.history.cursor + 1}/{len(self.history)})")

    def undo(self) -> bool:
        snapshot = self.history.undo()
        if snapshot is None:
            return False
        self.scene.restore(snapshot)
        self._notify_scene_reset()
        return True

    def redo(self) -> bool:
        snapshot = self.history.redo()
        if snapshot is None:
            return False
        self.scene.restore(snapshot)
        self._notify_scene_reset()
        return True

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def clear_canvas(self) -> ActionResult:
        """Remove every shape, keep the background image, record the edit."""
        self.scene.clear_overlay()
        self.scene.clear_shapes()
        self._notify_scene_reset()
        self.record_edit("clear")
        return ActionResult.success("Canvas cleared")

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------
    @property
    def current_image_index(self) -> Optional[int]:
        return len(self.images) - 1 if self.images else None

    @property
    def current_image(self) -> Optional[ImageDescriptor]:
        return self.images[-1] if self.images else None

    @property
    def pending_loads(self) -> List[ImageDecodeTask]:
        return list(self._pending_loads)

    def add_image(self, image: ImageDescriptor) -> ActionResult:
        """
        Append a decoded image and make it the canvas background.

        Shapes drawn on the previous image are kept for export but leave the
        live scene, and the history log starts over.
        """
        self._archived_shapes.extend(self.scene.shapes)
        self.images.append(image)

        self.scene.clear_overlay()
        self.scene.restore({FIELD_BACKGROUND: image.to_reference(len(self.images) - 1), FIELD_SHAPES: []})
        self._notify_scene_reset()

        self.history.reset()
        self.record_edit("image load")
        self.inform(f"Loaded {image.name} ({image.width}x{image.height})")
        return ActionResult.success(value=image)

    def load_image(self, file_path: Union[str, Path]) -> ActionResult:
        """Decode an image file synchronously and add it."""
        try:
            image = load_image_file(file_path)
        except ImageLoadError as e:
            return self.fail(str(e))
        return self.add_image(image)

    def load_image_bytes(self, data: bytes, name: str, mime_type: Optional[str] = None) -> ActionResult:
        try:
            image = decode_image_bytes(data, name, mime_type)
        except ImageLoadError as e:
            return self.fail(str(e))
        return self.add_image(image)

    def begin_image_load(self, file_path: Union[str, Path]) -> ImageDecodeTask:
        """
        Start decoding an image in the background.

        The image is added when ``poll_image_loads`` sees the finished task,
        so the scene is only ever mutated from the caller's thread.
        """
        if self._decoder is None:
            self._decoder = ImageDecoder()
        task = self._decoder.submit_file(file_path)
        self._pending_loads.append(task)
        return task

    def poll_image_loads(self) -> List[ActionResult]:
        """Resolve every finished background decode, in submission order."""
        results: List[ActionResult] = []
        while self._pending_loads and self._pending_loads[0].done:
            task = self._pending_loads.pop(0)
            results.append(self._complete_image_load(task))
        return results

    def _complete_image_load(self, task: ImageDecodeTask) -> ActionResult:
        image, error = task.outcome()
        if image is None:
            return self.fail(error or f"Error reading {task.name}")
        return self.add_image(image)

    def shutdown(self) -> None:
        if self._decoder is not None:
            self._decoder.shutdown(wait=False)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    def all_shapes(self) -> List[Shape]:
        """Shapes of every image: earlier images first, then the live scene."""
        return self._archived_shapes + self.scene.shapes

    def export(self) -> ActionResult:
        """Build the COCO document, or reject when there is nothing to export."""
        errors = validate_export_preconditions(self.images, self.registry)
        if errors:
            return self.fail(errors[0])

        document = export_to_coco(self.all_shapes(), self.registry, self.images, self.metadata)
        return ActionResult.success(value=document)

    def export_to_file(self, output_path: Union[str, Path] = EXPORT_FILE_NAME) -> ActionResult:
        result = self.export()
        if not result.ok:
            return result

        try:
            path = write_annotations_json(result.value, output_path)
        except OSError as e:
            return self.fail(f"Could not write {output_path}: {e}")

        self.inform(f"Exported {len(result.value['annotations'])} annotation(s) to {path}")
        return ActionResult.success(value=path)
