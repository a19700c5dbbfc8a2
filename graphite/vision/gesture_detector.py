from typing import Optional, Sequence

import numpy as np

from .frame_data import Landmark, WRIST, THUMB_TIP, INDEX_TIP, MIDDLE_TIP

PINCH = "pinch"
TWO_FINGERS = "twoFingers"
FIST = "fist"
OPEN_PALM = "openPalm"
INDEX_POINTING = "indexPointing"
SWIPE_LEFT = "swipeLeft"
SWIPE_RIGHT = "swipeRight"
SWIPE_UP = "swipeUp"
SWIPE_DOWN = "swipeDown"


class GestureDetector:
    def __init__(self, pinch_distance: float = 0.1, fist_distance: float = 0.2,
                 open_palm_distance: float = 0.4, pointing_rise: float = 0.2,
                 swipe_speed: float = 15.0):
        self.pinch_distance = pinch_distance
        self.fist_distance = fist_distance
        self.open_palm_distance = open_palm_distance
        self.pointing_rise = pointing_rise
        self.swipe_speed = swipe_speed

    def detect(self, landmarks: Sequence[Landmark], velocity) -> Optional[str]:
        """
        Классификация позы руки. Порядок проверок фиксирован,
        первое совпадение выигрывает (щипок, даже если он попадает
        и под кулак, остаётся щипком).
        """
        if not landmarks:
            return None

        wrist = landmarks[WRIST]
        thumb = landmarks[THUMB_TIP]
        index = landmarks[INDEX_TIP]
        middle = landmarks[MIDDLE_TIP]

        index_thumb = self._dist(index, thumb)
        index_middle = self._dist(index, middle)
        index_wrist = self._dist(index, wrist)

        if index_thumb < self.pinch_distance:
            return PINCH
        if index_middle < self.pinch_distance and index_thumb > self.fist_distance:
            return TWO_FINGERS
        if index_wrist < self.fist_distance:
            return FIST
        if index_wrist > self.open_palm_distance:
            return OPEN_PALM
        if index[1] < wrist[1] - self.pointing_rise:
            return INDEX_POINTING

        # Свайпы — по скорости кончика указательного (пиксели/кадр)
        vx, vy = float(velocity[0]), float(velocity[1])
        if np.hypot(vx, vy) > self.swipe_speed:
            if abs(vx) > abs(vy):
                return SWIPE_RIGHT if vx > 0 else SWIPE_LEFT
            return SWIPE_DOWN if vy > 0 else SWIPE_UP

        return None

    def _dist(self, p1: Landmark, p2: Landmark) -> float:
        return float(np.linalg.norm(np.subtract(p1[:3], p2[:3])))
