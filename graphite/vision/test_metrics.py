import unittest

from graphite.vision.metrics import MetricsCollector


class FakeClock:
    def __init__(self, step):
        self.now = 0.0
        self.step = step

    def __call__(self):
        value = self.now
        self.now += self.step
        return value


class TestMetricsCollector(unittest.TestCase):
    def test_fps_from_frame_times(self):
        metrics = MetricsCollector(window=30, clock=FakeClock(0.04))
        self.assertEqual(metrics.update(), 0.0)
        for _ in range(9):
            fps = metrics.update()
        self.assertAlmostEqual(fps, 25.0)

    def test_window_is_bounded(self):
        metrics = MetricsCollector(window=5, clock=FakeClock(0.1))
        for _ in range(20):
            metrics.update()
        self.assertEqual(len(metrics.frame_times), 5)

    def test_latency_between_calls(self):
        metrics = MetricsCollector(clock=FakeClock(0.02))
        self.assertEqual(metrics.latency_ms(), 0.0)
        self.assertAlmostEqual(metrics.latency_ms(), 20.0)


if __name__ == '__main__':
    unittest.main()
