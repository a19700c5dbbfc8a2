import logging
from typing import Optional

import numpy as np

from graphite.audio.dispatcher import GestureDispatcher
from graphite.canvas.mapper import DrawingParameters, map_parameters
from graphite.canvas.model import StrokeEngine
from graphite.canvas.style import StyleConfig, charcoal, randomize
from graphite.vision.frame_data import TrackingFrame
from graphite.vision.gesture_detector import GestureDetector
from graphite.vision.smoother import CursorState, InertiaSmoother

logger = logging.getLogger(__name__)


class DrawingSession:
    """
    Всё изменяемое состояние сеанса рисования в одном месте:
    курсор, параметры кисти, штрихи, таблица жестов.

    step() выполняет один кадр: трекинг -> жесты -> параметры -> отрисовка.
    """

    def __init__(self, width: int, height: int, dispatcher: Optional[GestureDispatcher] = None,
                 rng=None, style: Optional[StyleConfig] = None):
        self.width = width
        self.height = height
        self.rng = rng if rng is not None else np.random.default_rng()
        self.style = style or charcoal()

        self.smoother = InertiaSmoother()
        self.detector = GestureDetector()
        self.engine = StrokeEngine()
        self.params = DrawingParameters()

        self.dispatcher = dispatcher
        self.live_audio = False
        self.last_gesture: Optional[str] = None

    @property
    def cursor(self) -> CursorState:
        return self.smoother.state

    @property
    def cursor_visible(self) -> bool:
        return self.engine.is_drawing

    @property
    def strokes(self):
        return self.engine.strokes

    def step(self, frame: TrackingFrame, now_ms: float, surface) -> bool:
        # Ошибка в одном кадре не должна останавливать цикл
        try:
            self._update_tracking(frame, now_ms)
            self._update_parameters(frame)
            if self.engine.is_drawing:
                self.engine.advance(self.cursor.position, self.params, surface, self.rng)
        except Exception:
            logger.exception("Frame processing failed")
            return False
        return True

    def _update_tracking(self, frame: TrackingFrame, now_ms: float):
        tip = frame.index_tip
        if tip is None:
            if self.engine.is_drawing:
                stroke = self.engine.finish(self.params, self.style.texture_amount)
                if stroke is not None:
                    logger.debug("Stroke finished: %d points", len(stroke.points))
            self.smoother.release()
            self.last_gesture = None
            return

        raw = InertiaSmoother.to_canvas(tip, self.width, self.height)
        self.smoother.update(raw, self.style.inertia, self.style.jitter, self.rng)

        if not self.engine.is_drawing:
            self.engine.begin(self.cursor.position)

        if self.live_audio and self.dispatcher is not None:
            self.last_gesture = self.detector.detect(frame.hand_landmarks, self.cursor.velocity)
            self.dispatcher.dispatch(self.last_gesture, now_ms)

    def _update_parameters(self, frame: TrackingFrame):
        if not self.engine.is_drawing:
            return
        self.params = map_parameters(
            self.cursor.velocity, frame.audio_level, frame.face_landmarks,
            self.style, self.params, self.rng,
        )

    def change_style(self) -> StyleConfig:
        self.style = randomize(self.rng)
        return self.style

    def set_live_audio(self, enabled: bool):
        self.live_audio = enabled
        if self.dispatcher is None:
            return
        self.dispatcher.audio.enabled = enabled
        # Новая "секретная" раскладка при каждом включении
        if enabled:
            self.dispatcher.regenerate()

    def clear(self):
        self.engine.clear()
