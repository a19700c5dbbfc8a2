import time
from collections import deque


class MetricsCollector:
    def __init__(self, window: int = 30, clock=time.perf_counter):
        # ~1 сек истории при 30 FPS
        self.frame_times = deque(maxlen=window)
        self._clock = clock
        self._last_tick = None

    def update(self) -> float:
        """Вызывается каждый кадр. Возвращает текущий FPS."""
        self.frame_times.append(self._clock())

        if len(self.frame_times) < 2:
            return 0.0

        elapsed = self.frame_times[-1] - self.frame_times[0]
        if elapsed <= 0:
            return 0.0
        return (len(self.frame_times) - 1) / elapsed

    def latency_ms(self) -> float:
        """Время с прошлого вызова latency_ms(), в миллисекундах."""
        now = self._clock()
        last, self._last_tick = self._last_tick, now
        if last is None:
            return 0.0
        return (now - last) * 1000
