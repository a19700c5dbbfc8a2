from typing import Optional, Tuple

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QColor, QImage, QPainter, QPainterPath, QPen, QBrush

from graphite.canvas.mapper import DrawingParameters
from graphite.canvas.model import StrokeEngine

# Цвет угля: rgba(10, 10, 10, a)
CHARCOAL = (10, 10, 10)


def _charcoal(alpha: float) -> QColor:
    color = QColor(*CHARCOAL)
    color.setAlphaF(max(0.0, min(1.0, alpha)))
    return color


class PainterSurface:
    """Растровая поверхность на QImage с API в духе 2D-канваса."""

    def __init__(self, image: QImage):
        self.image = image
        self._path = QPainterPath()
        self._width = 1.0
        self._alpha = 1.0

    def clear(self):
        self.image.fill(Qt.transparent)
        self._path = QPainterPath()

    def set_pen(self, width: float, alpha: float):
        self._width = width
        self._alpha = alpha

    def set_alpha(self, alpha: float):
        self._alpha = alpha

    def move_to(self, p):
        self._path.moveTo(QPointF(p[0], p[1]))

    def line_to(self, p):
        self._path.lineTo(QPointF(p[0], p[1]))

    def quad_to(self, control, p):
        self._path.quadTo(QPointF(control[0], control[1]), QPointF(p[0], p[1]))

    def stroke(self):
        painter = QPainter(self.image)
        self._configure_painter(painter)
        painter.setOpacity(self._alpha)
        pen = QPen(_charcoal(self._alpha))
        pen.setWidthF(self._width)
        pen.setCapStyle(Qt.RoundCap)
        pen.setJoinStyle(Qt.RoundJoin)
        painter.setPen(pen)
        painter.setBrush(Qt.NoBrush)
        painter.drawPath(self._path)
        painter.end()
        self._path = QPainterPath()

    def dot(self, center, radius: float, alpha: float):
        painter = QPainter(self.image)
        self._configure_painter(painter)
        painter.setOpacity(self._alpha)
        painter.setPen(Qt.NoPen)
        painter.setBrush(QBrush(_charcoal(alpha)))
        painter.drawEllipse(QPointF(center[0], center[1]), radius, radius)
        painter.end()

    def _configure_painter(self, painter: QPainter):
        painter.setRenderHint(QPainter.Antialiasing)
        painter.setRenderHint(QPainter.SmoothPixmapTransform)


class CanvasModel:
    def __init__(self, width: int = 1280, height: int = 960):
        self.width = width
        self.height = height

        self.camera_frame: Optional[QImage] = None
        self.camera_opacity = 0.25

        self.cursor_pos: QPointF = QPointF(-1, -1)
        self.cursor_active: bool = False
        self.cursor_params = DrawingParameters()

        self._image = QImage(width, height, QImage.Format.Format_ARGB32)
        self._image.fill(Qt.transparent)
        self.surface = PainterSurface(self._image)

    def set_camera_frame(self, image: QImage):
        self.camera_frame = image

    def set_camera_opacity(self, opacity: float):
        self.camera_opacity = max(0.0, min(1.0, opacity))

    def update_cursor(self, pos: Optional[Tuple[float, float]], params: DrawingParameters):
        self.cursor_active = pos is not None
        if pos is not None:
            self.cursor_pos = QPointF(pos[0], pos[1])
        self.cursor_params = params

    def resize(self, width: int, height: int, engine: StrokeEngine, rng):
        """Новый размер холста: буфер пересоздаётся, штрихи перерисовываются."""
        self.width = width
        self.height = height
        self._image = QImage(width, height, QImage.Format.Format_ARGB32)
        self.surface = PainterSurface(self._image)
        engine.redraw(self.surface, rng)

    def clear(self):
        self.surface.clear()

    @property
    def image(self) -> QImage:
        return self._image


class RenderEngine:
    def __init__(self, model: CanvasModel):
        self.model = model

    def render_to_painter(self, painter: QPainter, target_rect: QRectF):
        painter.save()
        painter.fillRect(target_rect, Qt.white)

        # Холст вписывается в виджет с сохранением пропорций
        scale = min(target_rect.width() / self.model.width, target_rect.height() / self.model.height)
        painter.scale(scale, scale)

        if self.model.camera_frame is not None and self.model.camera_opacity > 0.01:
            painter.save()
            painter.setOpacity(self.model.camera_opacity)
            painter.drawImage(QRectF(0, 0, self.model.width, self.model.height), self.model.camera_frame)
            painter.restore()

        painter.drawImage(0, 0, self.model.image)

        if self.model.cursor_active:
            self._draw_cursor(painter)

        painter.restore()

    def _draw_cursor(self, painter: QPainter):
        params = self.model.cursor_params
        # Размер курсора = 2 * толщина штриха, прозрачность = прозрачность штриха
        radius = max(params.stroke_width, 3.0)
        painter.setOpacity(params.opacity)
        painter.setPen(QPen(Qt.black, 1))
        painter.setBrush(QBrush(_charcoal(0.5)))
        painter.drawEllipse(self.model.cursor_pos, radius, radius)
        painter.setOpacity(1.0)

    def save_to_file(self, filename: str) -> bool:
        """Экспорт в PNG поверх белого фона."""
        result = QImage(self.model.width, self.model.height, QImage.Format_ARGB32)
        result.fill(Qt.white)

        painter = QPainter(result)
        painter.drawImage(0, 0, self.model.image)
        painter.end()

        return result.save(filename)
