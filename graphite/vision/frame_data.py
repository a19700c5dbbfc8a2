from dataclasses import dataclass
from typing import Optional, Sequence, Tuple
import numpy as np

Landmark = Tuple[float, float, float]

# Индексы точек MediaPipe Hands
WRIST = 0
THUMB_TIP = 4
INDEX_TIP = 8
MIDDLE_TIP = 12

# Индексы точек MediaPipe Face Mesh (центры глаз)
LEFT_EYE = 133
RIGHT_EYE = 362


@dataclass
class TrackingFrame:
    # Точки руки (x, y, z) в нормализованных координатах камеры
    hand_landmarks: Optional[Sequence[Landmark]] = None
    # Точки лица, если лицо найдено
    face_landmarks: Optional[Sequence[Landmark]] = None
    # Громкость микрофона [0, 1] на момент кадра
    audio_level: float = 0.0

    # Входной кадр (BGR, numpy array) — только для отображения
    raw_frame: Optional[np.ndarray] = None

    # Метрики качества
    fps: float = 0.0
    latency_ms: float = 0.0

    @property
    def has_hand(self) -> bool:
        return bool(self.hand_landmarks)

    @property
    def index_tip(self) -> Optional[Landmark]:
        if not self.has_hand or len(self.hand_landmarks) <= INDEX_TIP:
            return None
        return self.hand_landmarks[INDEX_TIP]
