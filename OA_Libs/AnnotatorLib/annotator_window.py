from pathlib import Path
from typing import Dict, Optional

from PyQt5.QtCore import Qt, QTimer
from PyQt5.QtGui import QColor, QKeySequence, QPixmap, QIcon
from PyQt5.QtWidgets import (
    QButtonGroup,
    QColorDialog,
    QComboBox,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QShortcut,
    QVBoxLayout,
    QWidget,
)

from OA_Libs.AnnotationLib.annotation_models import AnnotationMode
from OA_Libs.AnnotationLib.interaction import InteractionStateMachine
from OA_Libs.AnnotationLib.session import AnnotationSession
from OA_Libs.AnnotatorLib.canvas_widget import AnnotationCanvas
from OA_Libs.ExportLib.metadata import DatasetMetadata
from OA_Libs.constants import (
    BRUSH_SIZE_PRESETS,
    DECODE_POLL_INTERVAL_MS,
    DEFAULT_BRUSH_SIZE,
    DEFAULT_CLASS_COLOR,
    DEFAULT_WINDOW_HEIGHT,
    DEFAULT_WINDOW_WIDTH,
    EXPORT_FILE_NAME,
    IMAGE_FILE_FILTER,
    STATUS_MESSAGE_TIMEOUT_MS,
    ZOOM_DEFAULT,
    ZOOM_PRESETS,
)


def _color_icon(color: str) -> QIcon:
    pixmap = QPixmap(14, 14)
    pixmap.fill(QColor(color))
    return QIcon(pixmap)


class AnnotatorMainWindow(QMainWindow):
    MODE_LABELS = {
        AnnotationMode.SELECT: "Select",
        AnnotationMode.PAN: "Pan",
        AnnotationMode.BRUSH: "Brush",
        AnnotationMode.POLYGON: "Polygon",
        AnnotationMode.ERASER: "Eraser",
    }

    def __init__(self, metadata: Optional[DatasetMetadata] = None) -> None:
        super().__init__()
        self.setWindowTitle("Open Annotate")
        self.resize(DEFAULT_WINDOW_WIDTH, DEFAULT_WINDOW_HEIGHT)

        self.session = AnnotationSession(metadata=metadata)
        self.machine = InteractionStateMachine(self.session)
        self.canvas = AnnotationCanvas(self.session, self.machine, self)
        self.pending_color = DEFAULT_CLASS_COLOR

        self.poll_timer = QTimer(self)
        self.poll_timer.setInterval(DECODE_POLL_INTERVAL_MS)

        self._build_ui()
        self._connect_signals()
        self._setup_shortcuts()
        self._update_undo_redo_actions()

    def _build_ui(self) -> None:
        central = QWidget(self)
        self.setCentralWidget(central)

        root = QHBoxLayout(central)
        controls = QVBoxLayout()
        canvas_col = QVBoxLayout()
        toolbar = QHBoxLayout()

        self.btn_load_image = QPushButton("Load Image")
        self.btn_export = QPushButton("Export COCO")
        self.btn_undo = QPushButton("Undo")
        self.btn_redo = QPushButton("Redo")
        self.btn_clear = QPushButton("Clear")

        self.mode_buttons: Dict[AnnotationMode, QPushButton] = {}
        self.mode_group = QButtonGroup(self)
        self.mode_group.setExclusive(True)
        for mode, label in self.MODE_LABELS.items():
            button = QPushButton(label)
            button.setCheckable(True)
            self.mode_group.addButton(button)
            self.mode_buttons[mode] = button
        self.mode_buttons[AnnotationMode.SELECT].setChecked(True)

        self.btn_zoom_out = QPushButton("-")
        self.btn_zoom_in = QPushButton("+")
        self.combo_zoom = QComboBox()
        for percent in ZOOM_PRESETS:
            self.combo_zoom.addItem(f"{percent}%", percent)
        self.combo_zoom.setCurrentIndex(self.combo_zoom.findData(ZOOM_DEFAULT))
        self.label_zoom = QLabel(f"{ZOOM_DEFAULT}%")

        self.combo_brush = QComboBox()
        for name, size in BRUSH_SIZE_PRESETS.items():
            self.combo_brush.addItem(f"{name} ({size}px)", size)
        self.combo_brush.setCurrentIndex(self.combo_brush.findData(DEFAULT_BRUSH_SIZE))

        toolbar.addWidget(self.btn_load_image)
        toolbar.addWidget(self.btn_export)
        toolbar.addWidget(self.btn_undo)
        toolbar.addWidget(self.btn_redo)
        for button in self.mode_buttons.values():
            toolbar.addWidget(button)
        toolbar.addWidget(self.btn_clear)
        toolbar.addStretch(1)
        toolbar.addWidget(QLabel("Brush"))
        toolbar.addWidget(self.combo_brush)
        toolbar.addWidget(self.btn_zoom_out)
        toolbar.addWidget(self.combo_zoom)
        toolbar.addWidget(self.btn_zoom_in)
        toolbar.addWidget(self.label_zoom)

        self.classes_list = QListWidget()
        self.input_class_name = QLineEdit()
        self.input_class_name.setPlaceholderText("Class name")
        self.btn_class_color = QPushButton("Color")
        self.btn_add_class = QPushButton("Add Class")
        self.btn_delete_class = QPushButton("Delete Class")
        self.label_active_class = QLabel("Active: none")
        self._update_color_button()

        color_row = QHBoxLayout()
        color_row.addWidget(self.input_class_name)
        color_row.addWidget(self.btn_class_color)

        controls.addWidget(QLabel("Classes"))
        controls.addWidget(self.classes_list)
        controls.addLayout(color_row)
        controls.addWidget(self.btn_add_class)
        controls.addWidget(self.btn_delete_class)
        controls.addWidget(self.label_active_class)
        controls.addStretch(1)

        canvas_col.addLayout(toolbar)
        canvas_col.addWidget(self.canvas, stretch=1)

        root.addLayout(controls, stretch=1)
        root.addLayout(canvas_col, stretch=4)

    def _connect_signals(self) -> None:
        self.btn_load_image.clicked.connect(self.load_image)
        self.btn_export.clicked.connect(self.export_annotations)
        self.btn_undo.clicked.connect(self.undo_edit)
        self.btn_redo.clicked.connect(self.redo_edit)
        self.btn_clear.clicked.connect(self.clear_canvas)

        for mode, button in self.mode_buttons.items():
            button.clicked.connect(lambda _checked=False, m=mode: self.set_mode(m))

        self.btn_zoom_in.clicked.connect(lambda: self._apply_zoom(self.session.zoom_in()))
        self.btn_zoom_out.clicked.connect(lambda: self._apply_zoom(self.session.zoom_out()))
        self.combo_zoom.activated.connect(self.on_zoom_preset)
        self.combo_brush.activated.connect(self.on_brush_preset)

        self.btn_class_color.clicked.connect(self.pick_class_color)
        self.btn_add_class.clicked.connect(self.add_class)
        self.input_class_name.returnPressed.connect(self.add_class)
        self.btn_delete_class.clicked.connect(self.delete_selected_class)
        self.classes_list.currentItemChanged.connect(self.on_class_selected)

        self.session.on_warning(self.show_warning)
        self.session.on_error(self.show_error)
        self.session.on_info(self.show_info)
        self.session.on_mode_change(self.on_mode_changed)
        self.session.scene.add_listener(lambda _scene: self._update_undo_redo_actions())

        self.poll_timer.timeout.connect(self.poll_image_loads)

    def _setup_shortcuts(self) -> None:
        self.shortcut_undo = QShortcut(QKeySequence("Ctrl+Z"), self)
        self.shortcut_undo.activated.connect(self.undo_edit)

        self.shortcut_redo = QShortcut(QKeySequence("Ctrl+Y"), self)
        self.shortcut_redo.activated.connect(self.redo_edit)

        self.shortcut_redo_alt = QShortcut(QKeySequence("Ctrl+Shift+Z"), self)
        self.shortcut_redo_alt.activated.connect(self.redo_edit)

        self.shortcut_cancel = QShortcut(QKeySequence(Qt.Key_Escape), self)
        self.shortcut_cancel.activated.connect(self.machine.cancel)

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------
    def show_warning(self, message: str) -> None:
        self.statusBar().showMessage(message, STATUS_MESSAGE_TIMEOUT_MS)

    def show_error(self, message: str) -> None:
        QMessageBox.warning(self, "Open Annotate", message)

    def show_info(self, message: str) -> None:
        self.statusBar().showMessage(message, STATUS_MESSAGE_TIMEOUT_MS)

    # ------------------------------------------------------------------
    # Images and export
    # ------------------------------------------------------------------
    def load_image(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(self, "Select Image", "", IMAGE_FILE_FILTER)
        if not file_path:
            return

        self.machine.cancel()
        self.session.begin_image_load(file_path)
        self.statusBar().showMessage(f"Loading {Path(file_path).name}...")
        self.poll_timer.start()

    def poll_image_loads(self) -> None:
        self.session.poll_image_loads()
        if not self.session.pending_loads:
            self.poll_timer.stop()
        self._update_undo_redo_actions()

    def export_annotations(self) -> None:
        # Fail fast before asking for a destination
        result = self.session.export()
        if not result.ok:
            return

        save_path, _ = QFileDialog.getSaveFileName(
            self,
            "Export Annotations",
            EXPORT_FILE_NAME,
            "JSON (*.json)",
        )
        if not save_path:
            return
        self.session.export_to_file(save_path)

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------
    def set_mode(self, mode: AnnotationMode) -> None:
        result = self.session.set_mode(mode)
        if not result.ok:
            self.mode_buttons[self.session.mode].setChecked(True)
        self.canvas.refresh()

    def on_mode_changed(self, previous: AnnotationMode, current: AnnotationMode) -> None:
        self.mode_buttons[current].setChecked(True)
        self.canvas.refresh()

    def undo_edit(self) -> None:
        if not self.session.undo():
            self.statusBar().showMessage("Nothing to undo.", 1500)
        self._update_undo_redo_actions()

    def redo_edit(self) -> None:
        if not self.session.redo():
            self.statusBar().showMessage("Nothing to redo.", 1500)
        self._update_undo_redo_actions()

    def clear_canvas(self) -> None:
        self.machine.cancel()
        result = self.session.clear_canvas()
        self.statusBar().showMessage(result.message, STATUS_MESSAGE_TIMEOUT_MS)
        self._update_undo_redo_actions()

    def _update_undo_redo_actions(self) -> None:
        self.btn_undo.setEnabled(self.session.can_undo)
        self.btn_redo.setEnabled(self.session.can_redo)

    def _apply_zoom(self, result) -> None:
        if not result.ok:
            return
        self.label_zoom.setText(f"{result.value}%")
        preset_index = self.combo_zoom.findData(result.value)
        if preset_index >= 0:
            self.combo_zoom.setCurrentIndex(preset_index)

    def on_zoom_preset(self, index: int) -> None:
        self._apply_zoom(self.session.set_zoom(self.combo_zoom.itemData(index)))

    def on_brush_preset(self, index: int) -> None:
        self.session.set_brush_size(self.combo_brush.itemData(index))

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------
    def _update_color_button(self) -> None:
        self.btn_class_color.setStyleSheet(f"background-color: {self.pending_color};")

    def pick_class_color(self) -> None:
        chosen = QColorDialog.getColor(QColor(self.pending_color), self, "Select Class Color")
        if not chosen.isValid():
            return
        self.pending_color = chosen.name()
        self._update_color_button()

    def add_class(self) -> None:
        result = self.session.add_class(self.input_class_name.text(), self.pending_color)
        if not result.ok:
            return

        self.input_class_name.clear()
        self.refresh_class_list()
        self.statusBar().showMessage(result.message, STATUS_MESSAGE_TIMEOUT_MS)

    def delete_selected_class(self) -> None:
        item = self.classes_list.currentItem()
        if item is None:
            self.statusBar().showMessage("Select a class to delete.", STATUS_MESSAGE_TIMEOUT_MS)
            return

        self.session.delete_class(item.data(Qt.UserRole))
        if self.session.active_class is None and self.session.mode.requires_class:
            self.set_mode(AnnotationMode.SELECT)
        self.refresh_class_list()

    def on_class_selected(self, current: Optional[QListWidgetItem], _previous=None) -> None:
        if current is None:
            return
        self.session.select_class(current.data(Qt.UserRole))
        self._update_active_label()

    def refresh_class_list(self) -> None:
        self.classes_list.blockSignals(True)
        self.classes_list.clear()
        active = self.session.active_class
        for cls in self.session.registry.classes:
            item = QListWidgetItem(_color_icon(cls.color), cls.name)
            item.setData(Qt.UserRole, cls.id)
            self.classes_list.addItem(item)
            if active is not None and cls.id == active.id:
                self.classes_list.setCurrentItem(item)
        self.classes_list.blockSignals(False)
        self._update_active_label()

    def _update_active_label(self) -> None:
        active = self.session.active_class
        self.label_active_class.setText(f"Active: {active.name}" if active else "Active: none")

    def closeEvent(self, event) -> None:
        self.poll_timer.stop()
        self.session.shutdown()
        super().closeEvent(event)
