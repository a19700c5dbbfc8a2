import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from graphite.canvas.mapper import DrawingParameters

Point = Tuple[float, float]


@dataclass(frozen=True)
class Stroke:
    """Завершённый штрих. После создания не меняется."""
    points: Tuple[Point, ...]
    width: float
    opacity: float
    smudge: float
    texture: float


class StrokeEngine:
    """
    Машина состояний штриха: Idle (буфера нет) <-> Drawing (буфер не пуст).

    Рисует через "поверхность" с API в духе 2D-канваса:
    clear(), set_pen(width, alpha), move_to(p), line_to(p),
    quad_to(control, p), stroke(), set_alpha(a), dot(center, radius, alpha).
    """

    def __init__(self, min_draw_distance: float = 2.0, smudge_jitter_threshold: float = 0.3,
                 texture_threshold: float = 0.5):
        self.min_draw_distance = min_draw_distance
        self.smudge_jitter_threshold = smudge_jitter_threshold
        self.texture_threshold = texture_threshold

        self.strokes: List[Stroke] = []
        self.points: Optional[List[Point]] = None

    @property
    def is_drawing(self) -> bool:
        return self.points is not None

    @property
    def last_point(self) -> Optional[Point]:
        return self.points[-1] if self.points else None

    def begin(self, pos: Point):
        self.points = [(float(pos[0]), float(pos[1]))]

    def advance(self, pos: Point, params: DrawingParameters, surface, rng) -> bool:
        """
        Добавляет точку, если курсор ушёл дальше порога, и дорисовывает сегмент.
        Возвращает True, если что-то было нарисовано.
        """
        if not self.is_drawing:
            return False

        pos = (float(pos[0]), float(pos[1]))
        last = self.points[-1]
        if math.hypot(pos[0] - last[0], pos[1] - last[1]) <= self.min_draw_distance:
            return False

        self.points.append(pos)
        self._draw_segment(params, surface, rng)
        return True

    def finish(self, params: DrawingParameters, texture: float) -> Optional[Stroke]:
        stroke = None
        if self.points is not None and len(self.points) > 1:
            stroke = Stroke(
                points=tuple(self.points),
                width=params.stroke_width,
                opacity=params.opacity,
                smudge=params.smudge_factor,
                texture=texture,
            )
            self.strokes.append(stroke)
        self.points = None
        return stroke

    def clear(self):
        self.strokes.clear()
        self.points = None

    def _draw_segment(self, params: DrawingParameters, surface, rng):
        surface.set_pen(params.stroke_width, params.opacity)

        if len(self.points) < 3:
            surface.move_to(self.points[-2])
            surface.line_to(self.points[-1])
            surface.stroke()
            return

        p1, p2, p3 = self.points[-3:]
        control = p2
        smudged = params.smudge_factor > self.smudge_jitter_threshold
        if smudged:
            control = (
                p2[0] + (rng.random() - 0.5) * 10 * params.smudge_factor,
                p2[1] + (rng.random() - 0.5) * 10 * params.smudge_factor,
            )

        surface.move_to(p1)
        surface.quad_to(control, p3)
        surface.stroke()

        if smudged and rng.random() > 0.7:
            self._smudge_marks(p2, p3, params, surface, rng)

    def _smudge_marks(self, p1: Point, p2: Point, params: DrawingParameters, surface, rng):
        """Россыпь полупрозрачных точек вокруг середины сегмента — "размазанный" уголь."""
        count = int(rng.random() * 8) + 5
        mid_x = (p1[0] + p2[0]) / 2
        mid_y = (p1[1] + p2[1]) / 2
        spread = params.stroke_width * 6 * params.smudge_factor

        surface.set_alpha(params.opacity * 0.4)
        for _ in range(count):
            x = mid_x + (rng.random() - 0.5) * spread
            y = mid_y + (rng.random() - 0.5) * spread
            radius = rng.random() * params.stroke_width
            surface.dot((x, y), radius, params.opacity * 0.3)

    def redraw(self, surface, rng):
        """
        Полная перерисовка (например, после ресайза).
        Текстура генерируется заново при каждом вызове и не хранится в штрихе.
        """
        surface.clear()
        for stroke in self.strokes:
            if len(stroke.points) < 2:
                continue

            surface.set_pen(stroke.width, stroke.opacity)
            surface.move_to(stroke.points[0])
            for p0, p1 in zip(stroke.points, stroke.points[1:]):
                if stroke.smudge > self.smudge_jitter_threshold:
                    mid = ((p0[0] + p1[0]) / 2, (p0[1] + p1[1]) / 2)
                    surface.quad_to(p0, mid)
                else:
                    surface.line_to(p1)
            surface.stroke()

            if stroke.texture > self.texture_threshold:
                self._texture(stroke, surface, rng)

    def _texture(self, stroke: Stroke, surface, rng):
        spread = stroke.width * 2 * stroke.texture
        for x, y in stroke.points:
            count = int(rng.random() * 3) + 1
            for _ in range(count):
                jx = (rng.random() - 0.5) * spread
                jy = (rng.random() - 0.5) * spread
                radius = rng.random() * stroke.width * 0.7
                alpha = rng.random() * 0.3 * stroke.opacity
                surface.set_alpha(alpha)
                surface.dot((x + jx, y + jy), radius, alpha)
