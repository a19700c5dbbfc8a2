from dataclasses import dataclass, replace
from typing import Optional, Sequence

import numpy as np

from graphite.canvas.style import StyleConfig
from graphite.vision.frame_data import Landmark, LEFT_EYE, RIGHT_EYE

# Скорость (пикс/кадр), при которой штрих считается максимально быстрым
FULL_SPEED = 30.0


@dataclass(frozen=True)
class DrawingParameters:
    pressure: float = 0.5
    stroke_width: float = 0.5
    opacity: float = 0.6
    smudge_factor: float = 0.0


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _face_tilt(face: Optional[Sequence[Landmark]]) -> Optional[float]:
    if not face or len(face) <= max(LEFT_EYE, RIGHT_EYE):
        return None
    return abs(face[LEFT_EYE][1] - face[RIGHT_EYE][1])


def map_parameters(velocity, audio_level: float, face_landmarks: Optional[Sequence[Landmark]],
                   style: StyleConfig, previous: DrawingParameters, rng) -> DrawingParameters:
    """
    Сигналы трекинга -> параметры кисти на текущий кадр.

    Если наклон лица запрошен, но лица в кадре нет, прозрачность
    остаётся от предыдущего кадра.
    """
    speed = float(np.hypot(velocity[0], velocity[1]))
    normalized_speed = min(1.0, speed / FULL_SPEED)

    if style.pressure_from_audio:
        pressure = audio_level * style.audio_sensitivity
    else:
        pressure = 1.0 - normalized_speed
    pressure = _clamp(pressure, 0.1, 1.0)

    if style.width_from_hand_speed:
        width = style.base_width * (1.0 - normalized_speed * style.hand_speed_sensitivity)
    else:
        width = style.base_width * pressure
    width = _clamp(width, 0.2, 5.0)

    if style.opacity_from_face_tilt:
        tilt = _face_tilt(face_landmarks)
        if tilt is None:
            opacity = previous.opacity
        else:
            opacity = style.base_opacity * (1.0 + tilt * style.face_tilt_sensitivity)
    else:
        opacity = style.base_opacity
    opacity = _clamp(opacity, 0.1, 0.9)

    if style.smudge_from_stillness and normalized_speed < style.smudge_threshold:
        smudge = 1.0 - normalized_speed / style.smudge_threshold
    else:
        smudge = 0.0

    params = DrawingParameters(pressure, width, opacity, smudge)

    # "Стирание": разыгрывается заново на каждом кадре
    if style.occasional_erase and rng.random() > style.erase_threshold:
        params = replace(params, opacity=params.opacity * 0.1,
                         stroke_width=params.stroke_width * 2,
                         smudge_factor=0.8)
    return params
