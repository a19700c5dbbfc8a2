import logging
import threading
from typing import List, Optional

import numpy as np

from .effects import Recording

logger = logging.getLogger(__name__)

# Как у браузерного анализатора: окно 256 отсчётов, шкала -100..-30 дБ
FFT_SIZE = 256
MIN_DB = -100.0
MAX_DB = -30.0


def spectrum_level(block: np.ndarray) -> float:
    """Средняя амплитуда спектра блока, нормированная в [0, 1]."""
    if block is None or len(block) == 0:
        return 0.0
    x = np.asarray(block, dtype=np.float64)[-FFT_SIZE:]
    if len(x) < FFT_SIZE:
        x = np.pad(x, (FFT_SIZE - len(x), 0))
    spectrum = np.abs(np.fft.rfft(x * np.hanning(FFT_SIZE)))[:FFT_SIZE // 2] / FFT_SIZE
    db = 20 * np.log10(np.maximum(spectrum, 1e-12))
    scaled = np.clip((db - MIN_DB) / (MAX_DB - MIN_DB), 0.0, 1.0)
    return float(scaled.mean())


class AudioCapture:
    def __init__(self, stream, sample_rate: int = 44100, max_recordings: int = 10):
        """
        stream: входной поток (sounddevice.InputStream или совместимый),
                в который передан self.callback.
        """
        self._stream = stream
        self.sample_rate = sample_rate
        self.max_recordings = max_recordings

        self.level = 0.0
        self.recordings: List[Recording] = []

        self.is_recording = False
        self._chunks: List[np.ndarray] = []
        self._deadline_ms: Optional[float] = None
        self._latest: Optional[np.ndarray] = None
        # callback работает в потоке PortAudio, остальное — в потоке Qt
        self._lock = threading.Lock()

    def attach(self, stream):
        self._stream = stream

    def callback(self, indata, frames, time_info, status):
        # Вызывается потоком PortAudio
        if status:
            logger.debug("Input stream status: %s", status)
        block = np.array(indata[:, 0], dtype=np.float32)
        with self._lock:
            self._latest = block
            if self.is_recording:
                self._chunks.append(block)

    def poll(self, now_ms: float) -> Optional[Recording]:
        """Опрос по таймеру: обновляет уровень и завершает запись по дедлайну."""
        with self._lock:
            latest = self._latest
        self.level = spectrum_level(latest)
        if self.is_recording and self._deadline_ms is not None and now_ms >= self._deadline_ms:
            return self.stop_recording()
        return None

    def start_recording(self, now_ms: float, duration_ms: float) -> bool:
        if self.is_recording or self._stream is None:
            return False
        try:
            if not self._stream.active:
                self._stream.start()
            with self._lock:
                self._chunks = []
                self._deadline_ms = now_ms + duration_ms
                self.is_recording = True
        except Exception as e:
            logger.error("Recording error: %s", e)
            self.is_recording = False
            self._deadline_ms = None
            return False
        logger.info("Recording audio for %.1fs", duration_ms / 1000)
        return True

    def stop_recording(self) -> Optional[Recording]:
        if not self.is_recording:
            return None
        with self._lock:
            self.is_recording = False
            self._deadline_ms = None
            chunks, self._chunks = self._chunks, []

        if not chunks:
            return None
        recording = Recording(np.concatenate(chunks), self.sample_rate)
        self.recordings.append(recording)
        # Храним только последние max_recordings
        while len(self.recordings) > self.max_recordings:
            self.recordings.pop(0)
        return recording

    def delete_last(self) -> Optional[Recording]:
        if not self.recordings:
            return None
        return self.recordings.pop()

    @property
    def last_recording(self) -> Optional[Recording]:
        return self.recordings[-1] if self.recordings else None
