from typing import Callable, Optional, Tuple

from .frame_data import TrackingFrame
from .metrics import MetricsCollector

import cv2
import mediapipe as mp


class CameraService:
    def __init__(self, camera_index: int = 0, resolution: tuple = (640, 480),
                 min_detection_confidence: float = 0.5, min_tracking_confidence: float = 0.5,
                 audio_level: Optional[Callable[[], float]] = None):
        self.cap = cv2.VideoCapture(camera_index)
        if not self.cap.isOpened():
            raise RuntimeError(f"Не удалось открыть камеру {camera_index}")

        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, resolution[0])
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, resolution[1])

        # MediaPipe: одна рука и одно лицо
        self.hands = mp.solutions.hands.Hands(
            static_image_mode=False,
            max_num_hands=1,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )
        self.face_mesh = mp.solutions.face_mesh.FaceMesh(
            static_image_mode=False,
            max_num_faces=1,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )

        self.metrics = MetricsCollector()
        # Последнее значение уровня звука; читается, а не ожидается
        self._audio_level = audio_level or (lambda: 0.0)

    def get_frame_data(self) -> TrackingFrame:
        """
        Главный метод — возвращает данные текущего кадра.
        Если кадра нет, возвращается TrackingFrame без руки.
        """
        frame_data = TrackingFrame(audio_level=self._audio_level())
        frame_data.latency_ms = self.metrics.latency_ms()

        ret, frame = self.cap.read()
        if not ret:
            return frame_data

        # Зеркалирование делает сглаживатель, поэтому модели получают исходный кадр
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        hand_results = self.hands.process(rgb_frame)
        face_results = self.face_mesh.process(rgb_frame)

        frame_data.raw_frame = cv2.flip(frame, 1)

        if hand_results.multi_hand_landmarks:
            frame_data.hand_landmarks = self._points(hand_results.multi_hand_landmarks[0])
        if face_results.multi_face_landmarks:
            frame_data.face_landmarks = self._points(face_results.multi_face_landmarks[0])

        frame_data.fps = self.metrics.update()
        return frame_data

    @staticmethod
    def _points(landmarks) -> Tuple[Tuple[float, float, float], ...]:
        return tuple((lm.x, lm.y, lm.z) for lm in landmarks.landmark)

    def release(self):
        if self.cap.isOpened():
            self.cap.release()
        self.hands.close()
        self.face_mesh.close()

    def __del__(self):
        if hasattr(self, "cap") and self.cap.isOpened():
            self.cap.release()
