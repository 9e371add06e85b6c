from typing import Dict, Optional

from PyQt5.QtCore import QPointF, Qt
from PyQt5.QtGui import QBrush, QColor, QPainter, QPainterPath, QPen, QPixmap, QPolygonF
from PyQt5.QtWidgets import QWidget

from OA_Libs.AnnotationLib.annotation_models import AnnotationMode
from OA_Libs.AnnotationLib.interaction import InteractionStateMachine
from OA_Libs.AnnotationLib.scene import OverlayEdge, OverlayMarker, Scene
from OA_Libs.AnnotationLib.session import AnnotationSession
from OA_Libs.AnnotationLib.shapes import Polygon, Shape, Stroke
from OA_Libs.constants import (
    CANVAS_BACKGROUND_COLOR,
    PAN_KEY,
    PATH_LINE,
    PATH_MOVE,
    PATH_QUADRATIC,
    POLYGON_FILL_ALPHA,
)


class AnnotationCanvas(QWidget):
    """Paints the session scene and forwards input to the state machine."""

    def __init__(
        self,
        session: AnnotationSession,
        machine: InteractionStateMachine,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.session = session
        self.machine = machine
        self._pixmaps: Dict[int, QPixmap] = {}

        self.setFocusPolicy(Qt.StrongFocus)
        self.setMinimumSize(640, 480)
        self.session.scene.add_listener(self._on_scene_changed)

    def _on_scene_changed(self, scene: Scene) -> None:
        self.update()

    def _background_pixmap(self) -> Optional[QPixmap]:
        background = self.session.scene.background
        if not background:
            return None

        image_index = int(background.get("image_index", -1))
        if image_index in self._pixmaps:
            return self._pixmaps[image_index]
        if not (0 <= image_index < len(self.session.images)):
            return None

        pixmap = QPixmap()
        if not pixmap.loadFromData(self.session.images[image_index].src):
            return None
        self._pixmaps[image_index] = pixmap
        return pixmap

    # ------------------------------------------------------------------
    # Painting
    # ------------------------------------------------------------------
    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        painter.fillRect(self.rect(), QColor(CANVAS_BACKGROUND_COLOR))

        view = self.session.scene.view
        painter.translate(view.offset_x, view.offset_y)
        painter.scale(view.scale, view.scale)

        pixmap = self._background_pixmap()
        if pixmap is not None:
            painter.drawPixmap(0, 0, pixmap)

        for shape in self.session.scene.shapes:
            self._draw_shape(painter, shape)

        if self.machine.is_stroking:
            self._draw_live_stroke(painter)

        for item in self.session.scene.overlay:
            if isinstance(item, OverlayMarker):
                painter.setPen(Qt.NoPen)
                painter.setBrush(QBrush(QColor(item.color)))
                painter.drawEllipse(QPointF(item.center.x, item.center.y), item.radius, item.radius)
            elif isinstance(item, OverlayEdge):
                painter.setPen(QPen(QColor(item.color), item.width))
                painter.drawLine(
                    QPointF(item.start.x, item.start.y),
                    QPointF(item.end.x, item.end.y),
                )

        painter.end()

    def _draw_shape(self, painter: QPainter, shape: Shape) -> None:
        color = QColor(shape.color)
        pen = QPen(color, shape.width, Qt.SolidLine, Qt.RoundCap, Qt.RoundJoin)

        if isinstance(shape, Stroke):
            path = QPainterPath()
            for command in shape.commands:
                if command.op == PATH_MOVE:
                    path.moveTo(*command.coords)
                elif command.op == PATH_LINE:
                    path.lineTo(*command.coords)
                elif command.op == PATH_QUADRATIC:
                    path.quadTo(*command.coords)
            painter.setPen(pen)
            painter.setBrush(Qt.NoBrush)
            painter.drawPath(path)
        elif isinstance(shape, Polygon):
            fill = QColor(shape.color)
            fill.setAlpha(int(POLYGON_FILL_ALPHA, 16))
            painter.setPen(pen)
            painter.setBrush(QBrush(fill))
            painter.drawPolygon(QPolygonF([QPointF(p.x, p.y) for p in shape.points]))

    def _draw_live_stroke(self, painter: QPainter) -> None:
        points = self.machine.stroke_points
        if not points:
            return

        path = QPainterPath(QPointF(points[0].x, points[0].y))
        for point in points[1:]:
            path.lineTo(point.x, point.y)
        pen = QPen(QColor(self.session.draw_color), self.session.effective_brush_width, Qt.SolidLine, Qt.RoundCap, Qt.RoundJoin)
        painter.setPen(pen)
        painter.setBrush(Qt.NoBrush)
        painter.drawPath(path)

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------
    def resizeEvent(self, event) -> None:
        self.session.scene.view.set_viewport(self.width(), self.height())
        super().resizeEvent(event)

    def mousePressEvent(self, event) -> None:
        if event.button() != Qt.LeftButton:
            return super().mousePressEvent(event)
        self.setFocus()
        self.machine.pointer_down(event.x(), event.y())
        self._update_cursor()

    def mouseMoveEvent(self, event) -> None:
        pressed = bool(event.buttons() & Qt.LeftButton)
        self.machine.pointer_move(event.x(), event.y(), pressed)
        if self.machine.is_stroking:
            self.update()

    def mouseReleaseEvent(self, event) -> None:
        if event.button() != Qt.LeftButton:
            return super().mouseReleaseEvent(event)
        self.machine.pointer_up(event.x(), event.y())
        self._update_cursor()

    def mouseDoubleClickEvent(self, event) -> None:
        if event.button() != Qt.LeftButton:
            return super().mouseDoubleClickEvent(event)
        result = self.machine.double_click(event.x(), event.y())
        if not result.handled:
            # Treat an unhandled double click as a regular press
            self.machine.pointer_down(event.x(), event.y())

    def keyPressEvent(self, event) -> None:
        if event.key() == Qt.Key_Space and not event.isAutoRepeat():
            self.machine.key_down(PAN_KEY)
            self._update_cursor()
            return
        super().keyPressEvent(event)

    def keyReleaseEvent(self, event) -> None:
        if event.key() == Qt.Key_Space and not event.isAutoRepeat():
            self.machine.key_up(PAN_KEY)
            self._update_cursor()
            return
        super().keyReleaseEvent(event)

    def _update_cursor(self) -> None:
        if self.machine.is_panning:
            self.setCursor(Qt.ClosedHandCursor)
        elif self.session.pan_key_held or self.session.mode == AnnotationMode.PAN:
            self.setCursor(Qt.OpenHandCursor)
        elif self.session.mode == AnnotationMode.ERASER:
            self.setCursor(Qt.CrossCursor)
        else:
            self.setCursor(Qt.ArrowCursor)

    def refresh(self) -> None:
        self._update_cursor()
        self.update()
