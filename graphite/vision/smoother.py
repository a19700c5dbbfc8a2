from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from .frame_data import Landmark


@dataclass
class CursorState:
    position: np.ndarray = field(default_factory=lambda: np.zeros(2))
    previous_position: np.ndarray = field(default_factory=lambda: np.zeros(2))
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(2))
    # Последний "сырой" отсчёт в пикселях холста. None — рука потеряна.
    raw_position: Optional[np.ndarray] = None

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))

    def as_tuple(self) -> Tuple[float, float]:
        return float(self.position[0]), float(self.position[1])


class InertiaSmoother:
    def __init__(self, state: Optional[CursorState] = None):
        """
        Экспоненциальное сглаживание курсора:
            position = position * inertia + raw * (1 - inertia)
        Скорость считается по сырым отсчётам, поэтому отражает
        реальное движение руки, а не задемпфированный курсор.
        """
        self.state = state or CursorState()

    @staticmethod
    def to_canvas(tip: Landmark, width: float, height: float) -> np.ndarray:
        """Нормализованная точка камеры -> пиксели холста (с зеркалированием по X)."""
        return np.array([(1.0 - tip[0]) * width, tip[1] * height], dtype=float)

    def update(self, raw: np.ndarray, inertia: float, jitter: float, rng) -> CursorState:
        s = self.state
        raw = np.asarray(raw, dtype=float)

        s.previous_position = s.position.copy()

        # Первый кадр после потери руки: без инерции, чтобы штрих не начинался с рывка
        if s.raw_position is None:
            s.position = raw.copy()
            s.velocity = np.zeros(2)
        else:
            s.velocity = raw - s.raw_position
            s.position = s.position * inertia + raw * (1.0 - inertia)

        if jitter > 0:
            s.position = s.position + np.array([
                (rng.random() - 0.5) * jitter * 10,
                (rng.random() - 0.5) * jitter * 10,
            ])

        s.raw_position = raw
        return s

    def release(self):
        """Рука пропала — следующий update() будет захватом."""
        self.state.raw_position = None
        self.state.velocity = np.zeros(2)
