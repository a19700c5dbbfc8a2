"""Единственное место, где sounddevice обращается к PortAudio."""

import numpy as np
import sounddevice as sd


def open_input_stream(callback, sample_rate: int = 44100, block_size: int = 1024) -> sd.InputStream:
    stream = sd.InputStream(callback=callback, channels=1, samplerate=sample_rate, blocksize=block_size)
    stream.start()
    return stream


def play(samples: np.ndarray, sample_rate: int, loop: bool = False):
    # sd.play не блокирует; новый вызов прерывает предыдущее воспроизведение
    sd.play(np.asarray(samples, dtype=np.float32), samplerate=sample_rate, loop=loop)
