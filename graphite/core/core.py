import logging
import time

import cv2
import numpy as np
from PySide6.QtCore import QTimer
from PySide6.QtGui import QImage
from PySide6.QtWidgets import QApplication

from graphite.audio import devices
from graphite.audio.capture import AudioCapture
from graphite.audio.dispatcher import AudioSession, GestureDispatcher
from graphite.audio.effects import EffectChain, Player
from graphite.canvas.canvas import CanvasModel, RenderEngine
from graphite.core.config import AppConfig, setup_logging
from graphite.core.session import DrawingSession
from graphite.ui.ui import MainWindow
from graphite.vision.camera_service import CameraService

logger = logging.getLogger(__name__)


def _now_ms() -> float:
    return time.monotonic() * 1000


class AppCore:
    def __init__(self, sys_argv, config: AppConfig = None):
        self.config = config or AppConfig()
        setup_logging(self.config.log_level)

        self.app = QApplication(sys_argv)
        self.app.setStyle("Fusion")

        self.rng = np.random.default_rng(self.config.seed)
        width, height = self.config.canvas_size

        # Звук: поток открывается только по кнопке Start
        self.capture = AudioCapture(None, self.config.sample_rate, self.config.max_recordings)
        self.player = Player(EffectChain(), devices.play, self.config.effect_probability)
        self.audio = AudioSession(self.capture, self.player, self.rng,
                                  playback_probability=self.config.playback_probability)
        self.dispatcher = GestureDispatcher(
            self.audio, self.rng,
            recording_probability=self.config.recording_probability,
            playback_probability=self.config.playback_probability,
            side_record_probability=self.config.side_record_probability,
        )

        self.session = DrawingSession(width, height, self.dispatcher, self.rng)
        self.camera = None

        self.model = CanvasModel(width=width, height=height)
        self.model.set_camera_opacity(self.config.camera_opacity)
        self.engine = RenderEngine(self.model)

        self.window = MainWindow(self.model, self.engine)
        self.window.start_requested.connect(self.start_tracking)
        self.window.live_audio_toggled.connect(self.set_live_audio)
        self.window.style_requested.connect(self.change_style)
        self.window.clear_requested.connect(self.clear_canvas)
        self.window.canvas_widget.resized.connect(self.resize_canvas)

        self.window.resize(min(1600, width + 32), min(1000, height + 140))
        self.window.show()
        self.window.show_status("Нажмите Start Tracking")

        self.timer = QTimer()
        self.timer.timeout.connect(self._game_loop)

        # Уровень звука опрашивается отдельно от частоты кадров
        self.audio_timer = QTimer()
        self.audio_timer.timeout.connect(self._poll_audio)

    def run(self):
        return self.app.exec()

    def start_tracking(self):
        self.window.mark_tracking_started()
        self.window.show_status("Requesting camera access...")
        try:
            self.camera = CameraService(
                camera_index=self.config.camera_index,
                resolution=self.config.resolution,
                min_detection_confidence=self.config.min_detection_confidence,
                min_tracking_confidence=self.config.min_tracking_confidence,
                audio_level=lambda: self.audio.level,
            )
        except Exception as e:
            logger.error("Error initializing tracking: %s", e)
            self.window.show_status(f"Error initializing tracking: {e}")
            return

        mic_ok = True
        try:
            stream = devices.open_input_stream(self.capture.callback, self.config.sample_rate,
                                               self.config.block_size)
            self.capture.attach(stream)
            self.audio_timer.start(self.config.audio_poll_interval_ms)
        except Exception as e:
            # Без микрофона рисуем дальше, звук просто молчит
            logger.error("Microphone access failed: %s", e)
            mic_ok = False

        self.timer.start(self.config.frame_interval_ms)
        self.window.show_ready()
        if not mic_ok:
            self.window.flash("Microphone access denied", 3000)

    def set_live_audio(self, enabled: bool):
        self.session.set_live_audio(enabled)
        if enabled:
            self.window.flash("Live audio enabled - try hand gestures!", 2000)
        else:
            self.window.flash("Live audio disabled", 1000)

    def change_style(self):
        style = self.session.change_style()
        logger.debug("Style changed: %s", style)
        self.window.flash("Style changed", 1000)

    def clear_canvas(self):
        self.session.clear()
        self.model.clear()
        self.window.canvas_widget.update()

    def resize_canvas(self, width: int, height: int):
        self.session.width, self.session.height = width, height
        self.model.resize(width, height, self.session.engine, self.rng)
        self.window.canvas_widget.update()

    def _poll_audio(self):
        try:
            was_recording = self.audio.is_recording
            self.audio.poll(_now_ms())
            if was_recording and not self.audio.is_recording:
                self.window.show_ready()
        except Exception:
            logger.exception("Audio polling failed")

    def _game_loop(self):
        if self.camera is None:
            return

        try:
            data = self.camera.get_frame_data()
        except Exception:
            logger.exception("Camera read failed")
            return

        if data.raw_frame is not None:
            rgb_frame = cv2.cvtColor(data.raw_frame, cv2.COLOR_BGR2RGB)
            h, w, ch = rgb_frame.shape
            qt_image = QImage(rgb_frame.data, w, h, ch * w, QImage.Format_RGB888)
            self.model.set_camera_frame(qt_image.copy())

        was_recording = self.audio.is_recording
        self.session.step(data, _now_ms(), self.model.surface)
        if self.audio.is_recording and not was_recording:
            self.window.show_status("Recording audio...")

        cursor = self.session.cursor.as_tuple() if self.session.cursor_visible else None
        self.model.update_cursor(cursor, self.session.params)
        self.window.update_gesture_hint(self.session.last_gesture)
        self.window.canvas_widget.update()
