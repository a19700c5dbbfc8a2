"""
Звуковые эффекты и общий плеер.

Каждый эффект — преобразование моно-буфера float32:
принимает ``(samples, sample_rate)`` и возвращает новый буфер.
Эффекты вызываются из цикла кадров, поэтому рекурсии считаются
блоками (numpy / scipy.signal), а не по одному отсчёту в Python.
"""

import logging
from dataclasses import dataclass, field
import time
from typing import Callable, Dict, Optional

import numpy as np
from scipy import signal

logger = logging.getLogger(__name__)

# Размер блока, на котором автофильтр держит частоту среза постоянной
FILTER_BLOCK = 256


@dataclass
class Recording:
    samples: np.ndarray
    sample_rate: int
    timestamp: float = field(default_factory=time.time)

    @property
    def duration(self) -> float:
        return len(self.samples) / float(self.sample_rate)


def _delay_line(x: np.ndarray, delay: int, feedback: float, repeats: int) -> np.ndarray:
    out = np.concatenate([x, np.zeros(delay * repeats, dtype=np.float32)])
    gain = 1.0
    for i in range(1, repeats + 1):
        gain *= feedback
        out[i * delay:i * delay + len(x)] += gain * x
    return out


def _comb(x: np.ndarray, delay: int, feedback: float, length: int) -> np.ndarray:
    # y[n] = x[n] + feedback * y[n - delay]; блок длиной delay зависит только от предыдущего
    y = np.zeros(length, dtype=np.float32)
    y[:len(x)] = x
    for start in range(delay, length, delay):
        end = min(start + delay, length)
        y[start:end] += feedback * y[start - delay:end - delay]
    return y


def reverb(x, sr, decay_s=3.0):
    # Несколько гребенчатых фильтров с разными задержками
    delays_ms = (29.7, 37.1, 41.1, 43.7)
    length = len(x) + int(decay_s * sr)
    out = np.zeros(length, dtype=np.float32)
    out[:len(x)] = x
    for ms in delays_ms:
        out += _comb(x, int(sr * ms / 1000), 0.84, length) / len(delays_ms)
    return out


def delay(x, sr, time_s=0.25, feedback=0.5):
    return _delay_line(x, int(sr * time_s), feedback, 4)


def distortion(x, sr, amount=0.8):
    k = 1 + amount * 20
    return np.tanh(k * x) / np.tanh(k)


def pitch_shift(x, sr, semitones=5):
    # Простой ресемплинг: меняет и высоту, и длительность
    ratio = 2 ** (semitones / 12.0)
    idx = np.arange(0, len(x), ratio)
    return np.interp(idx, np.arange(len(x)), x).astype(np.float32)


def chorus(x, sr, rate=4.0, depth_ms=2.5, mix=0.5):
    n = np.arange(len(x))
    lag = (depth_ms / 1000 * sr) * (1 + np.sin(2 * np.pi * rate * n / sr)) / 2
    wet = np.interp(n - lag, n, x, left=0.0)
    return (1 - mix) * x + mix * wet


def tremolo(x, sr, rate=9.0, depth=0.75):
    n = np.arange(len(x))
    lfo = 1 - depth * (1 + np.sin(2 * np.pi * rate * n / sr)) / 2
    return x * lfo


def auto_filter(x, sr, rate=2.0, low=200.0, high=4000.0):
    # Однополюсный ФНЧ, частоту среза двигает LFO раз в FILTER_BLOCK отсчётов
    out = np.empty_like(x)
    y_prev = 0.0
    for start in range(0, len(x), FILTER_BLOCK):
        block = x[start:start + FILTER_BLOCK]
        cutoff = low + (high - low) * (1 + np.sin(2 * np.pi * rate * start / sr)) / 2
        a = np.exp(-2 * np.pi * cutoff / sr)
        # zi = a * y[n-1] для коэффициента текущего блока
        y, _ = signal.lfilter([1 - a], [1, -a], block, zi=[a * y_prev])
        out[start:start + len(block)] = y
        y_prev = y[-1]
    return out


def bit_crusher(x, sr, bits=4):
    levels = 2 ** (bits - 1)
    return np.round(x * levels) / levels


class EffectChain:
    """Фиксированный набор именованных эффектов."""

    def __init__(self):
        self.units: Dict[str, Callable] = {
            "reverb": reverb,
            "delay": delay,
            "distortion": distortion,
            "pitchShift": pitch_shift,
            "chorus": chorus,
            "tremolo": tremolo,
            "autoFilter": auto_filter,
            "bitCrusher": bit_crusher,
        }

    @property
    def names(self):
        return list(self.units)

    def apply(self, name: str, samples: np.ndarray, sample_rate: int) -> np.ndarray:
        out = self.units[name](np.asarray(samples, dtype=np.float32), sample_rate)
        return np.clip(out, -1.0, 1.0).astype(np.float32)


class Player:
    """
    Один общий плеер. Запись проигрывается либо "сухой", либо через один
    случайно выбранный эффект.
    """

    def __init__(self, chain: EffectChain, play: Callable, effect_probability: float = 0.25,
                 volume_db: float = -10.0):
        self.chain = chain
        self._play = play
        self.effect_probability = effect_probability
        self.gain = 10 ** (volume_db / 20)
        self.loop = False
        self.ready = True
        self.route: Optional[str] = None

    def connect(self, name: Optional[str]):
        self.route = name

    def clear_effects(self):
        self.route = None

    def play(self, recording: Recording, rng) -> bool:
        if not self.ready:
            return False

        effect = self.chain.names[int(rng.random() * len(self.chain.names))]
        self.connect(effect if rng.random() < self.effect_probability else None)

        try:
            samples = recording.samples
            if self.route is not None:
                samples = self.chain.apply(self.route, samples, recording.sample_rate)
            self._play(samples * self.gain, recording.sample_rate, loop=self.loop)
        except Exception as e:
            logger.error("Playback error: %s", e)
            return False

        logger.info("Playing %.1fs recording (effect: %s, loop: %s)",
                    recording.duration, self.route or "none", self.loop)
        return True
