import os
from typing import Optional

from PySide6.QtCore import Qt, QTimer, Signal
from PySide6.QtGui import QPainter, QPaintEvent, QResizeEvent
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QPushButton, QLabel, QFrame, QSizePolicy, QStatusBar, QFileDialog
)

from graphite.canvas.canvas import CanvasModel, RenderEngine

READY_MESSAGE = "Tracking active"


# --- ВИДЖЕТ ХОЛСТА ---
class CanvasWidget(QWidget):
    resized = Signal(int, int)

    def __init__(self, model: CanvasModel, engine: RenderEngine, parent=None):
        super().__init__(parent)
        self._model = model
        self._engine = engine
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        self._engine.render_to_painter(painter, self.rect())

    def resizeEvent(self, event: QResizeEvent):
        super().resizeEvent(event)
        size = event.size()
        if size.width() > 0 and size.height() > 0:
            self.resized.emit(size.width(), size.height())


# --- КОМПОНЕНТЫ UI ---
class ToolButton(QPushButton):
    def __init__(self, text: str, tooltip: str = "", parent=None, checkable=False):
        super().__init__(text, parent)
        self.setToolTip(tooltip or text)
        self.setFixedHeight(44)
        self.setCheckable(checkable)
        self._init_style()

    def setChecked(self, checked: bool):
        super().setChecked(checked)
        self._init_style()

    def _init_style(self):
        if self.isCheckable() and self.isChecked():
            bg, bg_hover, border = "#2ECC71", "#4CD988", "#27AE60"
            color = "white"
        else:
            bg, bg_hover, border = "#FFFFFF", "#F5F6FA", "#E0E0E0"
            color = "#333333"

        self.setStyleSheet(f"""
            QPushButton {{
                background-color: {bg}; color: {color}; border: 2px solid {border};
                border-radius: 12px; font-size: 14px; font-weight: bold; padding: 0 16px;
            }}
            QPushButton:hover {{ background-color: {bg_hover}; }}
            QPushButton:disabled {{ background-color: #ECF0F1; color: #95A5A6; }}
        """)


class GestureHintWidget(QLabel):
    def __init__(self):
        super().__init__("Ожидание руки...")
        self.setAlignment(Qt.AlignCenter)
        self.setFixedHeight(40)
        self.setFixedWidth(220)
        self.update_hint(None)

    def update_hint(self, gesture: Optional[str]):
        if gesture:
            self.setText(f"✋ {gesture}")
            self.setStyleSheet("background: #27AE60; color: white; padding: 10px 20px; border-radius: 10px; font-weight: bold;")
        else:
            self.setText("👀 Жест не распознан")
            self.setStyleSheet("background: #2C3E50; color: #ECF0F1; padding: 10px 20px; border-radius: 10px;")


# --- MAIN WINDOW ---
class MainWindow(QMainWindow):
    start_requested = Signal()
    live_audio_toggled = Signal(bool)
    style_requested = Signal()
    clear_requested = Signal()

    def __init__(self, model: CanvasModel, engine: RenderEngine):
        super().__init__()
        self._model = model
        self._engine = engine
        self._init_ui()

    def _init_ui(self):
        self.setWindowTitle("Graphite Canvas")
        self.setStyleSheet("QMainWindow { background-color: #E9EEF3; }")

        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QVBoxLayout(central)
        main_layout.setContentsMargins(16, 16, 16, 16)
        main_layout.setSpacing(12)

        self._create_top_bar(main_layout)

        self.canvas_widget = CanvasWidget(self._model, self._engine)
        main_layout.addWidget(self.canvas_widget, stretch=1)

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)

        self._ready_message = None
        self._status_timer = QTimer(self)
        self._status_timer.setSingleShot(True)
        self._status_timer.timeout.connect(self._restore_status)

    def _create_top_bar(self, layout):
        frame = QFrame()
        frame.setFixedHeight(72)
        frame.setStyleSheet("QFrame { background: #2C3E50; border-radius: 16px; }")
        l = QHBoxLayout(frame)
        l.setContentsMargins(24, 12, 24, 12)
        l.setSpacing(12)

        self.btn_start = ToolButton("Start Tracking", "Камера, микрофон и модели")
        self.btn_start.clicked.connect(self.start_requested.emit)
        l.addWidget(self.btn_start)

        self.btn_live_audio = ToolButton("Enable Live Audio", "Жесты управляют звуком", checkable=True)
        self.btn_live_audio.clicked.connect(self._on_live_audio)
        l.addWidget(self.btn_live_audio)

        btn_style = ToolButton("Change Style", "Случайный стиль кисти")
        btn_style.clicked.connect(self.style_requested.emit)
        l.addWidget(btn_style)

        btn_clear = ToolButton("Clear", "Очистить холст")
        btn_clear.clicked.connect(self.clear_requested.emit)
        l.addWidget(btn_clear)

        btn_save = ToolButton("Save", "Сохранить PNG")
        btn_save.clicked.connect(self._on_save)
        l.addWidget(btn_save)

        l.addStretch()

        self.gesture_hint = GestureHintWidget()
        l.addWidget(self.gesture_hint)

        layout.addWidget(frame)

    def _on_live_audio(self):
        enabled = self.btn_live_audio.isChecked()
        self.btn_live_audio.setText("Disable Live Audio" if enabled else "Enable Live Audio")
        self.btn_live_audio._init_style()
        self.live_audio_toggled.emit(enabled)

    def mark_tracking_started(self):
        self.btn_start.setEnabled(False)
        self.btn_start.setText("Tracking Started")

    def show_status(self, text: str, timeout_ms: int = 0):
        self._status_timer.stop()
        self.status_bar.showMessage(text, timeout_ms)

    def flash(self, text: str, timeout_ms: int):
        """Временное сообщение; по истечении возвращается постоянная строка состояния."""
        self.status_bar.showMessage(text)
        self._status_timer.start(timeout_ms)

    def show_ready(self):
        self._ready_message = READY_MESSAGE
        self.show_status(READY_MESSAGE)

    def _restore_status(self):
        if self._ready_message:
            self.status_bar.showMessage(self._ready_message)
        else:
            self.status_bar.clearMessage()

    def _on_save(self):
        save_dir = os.path.join(os.getcwd(), "saved_drawings")
        os.makedirs(save_dir, exist_ok=True)

        path, _ = QFileDialog.getSaveFileName(
            self, "Сохранить изображение",
            os.path.join(save_dir, "graphite-drawing.png"),
            "PNG Image (*.png)"
        )
        if not path:
            return

        if self._engine.save_to_file(path):
            self.flash(f"Сохранено в: {path}", 5000)
        else:
            self.flash("Ошибка при сохранении!", 5000)

    def update_gesture_hint(self, gesture: Optional[str]):
        self.gesture_hint.update_hint(gesture)
