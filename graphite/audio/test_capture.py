import threading
import unittest

import numpy as np

from graphite.audio.capture import AudioCapture, spectrum_level


class FakeStream:
    def __init__(self, active=True, fail=False):
        self.active = active
        self.fail = fail

    def start(self):
        if self.fail:
            raise RuntimeError("device unavailable")
        self.active = True


def block(value, frames=1024):
    return np.full((frames, 1), value, dtype=np.float32)


def sine(freq=1000.0, sr=44100, frames=1024, amplitude=0.5):
    t = np.arange(frames) / sr
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32).reshape(-1, 1)


class TestSpectrumLevel(unittest.TestCase):
    def test_silence_is_zero(self):
        self.assertEqual(spectrum_level(np.zeros(1024)), 0.0)
        self.assertEqual(spectrum_level(None), 0.0)

    def test_loud_signal_is_bounded(self):
        level = spectrum_level(sine()[:, 0])
        self.assertGreater(level, 0.0)
        self.assertLessEqual(level, 1.0)

    def test_short_block_is_padded(self):
        self.assertGreater(spectrum_level(sine(frames=100)[:, 0]), 0.0)


class TestAudioCapture(unittest.TestCase):
    def setUp(self):
        self.capture = AudioCapture(FakeStream(), sample_rate=8000, max_recordings=3)

    def test_poll_updates_level(self):
        self.capture.callback(sine(), 1024, None, None)
        self.capture.poll(0)
        self.assertGreater(self.capture.level, 0.0)

    def test_recording_lifecycle(self):
        self.assertTrue(self.capture.start_recording(0, 2000))
        self.assertTrue(self.capture.is_recording)

        self.capture.callback(block(0.1), 1024, None, None)
        self.capture.callback(block(0.2), 1024, None, None)
        self.assertIsNone(self.capture.poll(1999))
        self.assertTrue(self.capture.is_recording)

        recording = self.capture.poll(2000)
        self.assertFalse(self.capture.is_recording)
        self.assertEqual(len(recording.samples), 2048)
        self.assertEqual(recording.sample_rate, 8000)
        self.assertIs(self.capture.last_recording, recording)

    def test_second_start_is_ignored(self):
        self.assertTrue(self.capture.start_recording(0, 2000))
        self.assertFalse(self.capture.start_recording(10, 2000))

    def test_start_failure_resets_flag(self):
        capture = AudioCapture(FakeStream(active=False, fail=True))
        with self.assertLogs("graphite.audio.capture", level="ERROR"):
            self.assertFalse(capture.start_recording(0, 2000))
        self.assertFalse(capture.is_recording)

    def test_no_stream_no_recording(self):
        capture = AudioCapture(None)
        self.assertFalse(capture.start_recording(0, 2000))

    def test_stop_without_audio_keeps_nothing(self):
        self.capture.start_recording(0, 2000)
        self.assertIsNone(self.capture.stop_recording())
        self.assertEqual(self.capture.recordings, [])

    def test_oldest_recordings_are_evicted(self):
        for i in range(5):
            self.capture.start_recording(0, 1000)
            self.capture.callback(block(i / 10), 16, None, None)
            self.capture.stop_recording()

        self.assertEqual(len(self.capture.recordings), 3)
        self.assertAlmostEqual(float(self.capture.last_recording.samples[0]), 0.4, places=6)
        self.assertAlmostEqual(float(self.capture.recordings[0].samples[0]), 0.2, places=6)

    def test_delete_last(self):
        self.capture.start_recording(0, 1000)
        self.capture.callback(block(0.1, 16), 16, None, None)
        self.capture.stop_recording()
        self.assertIsNotNone(self.capture.delete_last())
        self.assertIsNone(self.capture.delete_last())

    def test_callback_waits_for_stop_to_finish(self):
        self.capture.start_recording(0, 1000)
        self.capture._lock.acquire()
        worker = threading.Thread(target=self.capture.callback, args=(block(0.3, 16), 16, None, None))
        worker.start()
        worker.join(0.1)
        # Пока поток Qt держит буфер, блок не может проскочить мимо
        self.assertTrue(worker.is_alive())
        self.capture._lock.release()
        worker.join(1.0)

        recording = self.capture.stop_recording()
        self.assertEqual(len(recording.samples), 16)

    def test_concurrent_blocks_land_in_one_recording_each(self):
        capture = AudioCapture(FakeStream(), sample_rate=8000, max_recordings=1000)
        count = 2000

        def feed():
            for i in range(count):
                capture.callback(np.full((1, 1), i, dtype=np.float32), 1, None, None)

        worker = threading.Thread(target=feed)
        worker.start()
        while worker.is_alive():
            capture.start_recording(0, 1000)
            capture.stop_recording()
        worker.join()

        seen = np.concatenate([r.samples for r in capture.recordings] or [np.zeros(0)])
        self.assertEqual(len(seen), len(np.unique(seen)))
        for r in capture.recordings:
            self.assertTrue(np.all(np.diff(r.samples) > 0))


if __name__ == '__main__':
    unittest.main()
