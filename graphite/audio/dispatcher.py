"""
Жест -> звуковое действие.

Таблица жестов — случайная перестановка действий, она генерируется заново
при каждом включении live audio. У каждого сопоставления своя пауза
(cooldown), а большинство действий дополнительно разыгрываются с
вероятностью, так что срабатывание "без эффекта" всё равно тратит паузу.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .capture import AudioCapture
from .effects import Player, Recording

logger = logging.getLogger(__name__)

GESTURES = [
    "indexPointing", "fist", "openPalm", "pinch", "twoFingers",
    "fingerSnap", "circleMotion", "swipeLeft", "swipeRight", "swipeUp",
]

START_RECORDING = "startRecording"
STOP_RECORDING = "stopRecording"
PLAY_LAST = "playLastRecording"
CLEAR_EFFECTS = "clearEffects"
LOOP_TOGGLE = "loopToggle"
DELETE_LAST = "deleteLastRecording"

# Эффект выбирается случайно в момент воспроизведения, сами действия ничего не делают
EFFECT_ACTIONS = [
    "applyReverb", "applyDelay", "applyDistortion", "applyPitchShift",
    "applyChorus", "applyTremolo", "applyAutoFilter", "applyBitCrusher",
]

ACTIONS = [START_RECORDING, STOP_RECORDING, PLAY_LAST] + EFFECT_ACTIONS + [
    CLEAR_EFFECTS, LOOP_TOGGLE, DELETE_LAST,
]


@dataclass
class GestureMapping:
    gesture: str
    action: str
    threshold: float
    cooldown_ms: float
    last_triggered: Optional[float] = None

    def ready(self, now_ms: float) -> bool:
        return self.last_triggered is None or now_ms - self.last_triggered >= self.cooldown_ms

    def mark(self, now_ms: float):
        if self.last_triggered is None or now_ms > self.last_triggered:
            self.last_triggered = now_ms


def generate_mappings(rng) -> List[GestureMapping]:
    shuffled = [ACTIONS[i] for i in rng.permutation(len(ACTIONS))]
    return [
        GestureMapping(
            gesture=gesture,
            action=shuffled[i % len(shuffled)],
            threshold=0.6 + rng.random() * 0.3,
            cooldown_ms=1000 + rng.random() * 2000,
        )
        for i, gesture in enumerate(GESTURES)
    ]


class AudioSession:
    """Цель для действий жестов: запись, воспроизведение, маршрутизация эффектов."""

    def __init__(self, capture: AudioCapture, player: Player, rng,
                 playback_probability: float = 0.2,
                 min_recording_ms: float = 2000, max_recording_ms: float = 7000):
        self.capture = capture
        self.player = player
        self.rng = rng
        self.playback_probability = playback_probability
        self.min_recording_ms = min_recording_ms
        self.max_recording_ms = max_recording_ms
        self.enabled = False

    @property
    def is_recording(self) -> bool:
        return self.capture.is_recording

    @property
    def level(self) -> float:
        return self.capture.level

    def poll(self, now_ms: float):
        recording = self.capture.poll(now_ms)
        if recording is not None:
            self._on_finished(recording)

    def start_recording(self, now_ms: float) -> bool:
        if not self.enabled or self.capture.is_recording:
            return False
        span = self.max_recording_ms - self.min_recording_ms
        duration = self.min_recording_ms + int(self.rng.random() * span)
        return self.capture.start_recording(now_ms, duration)

    def stop_recording(self) -> Optional[Recording]:
        recording = self.capture.stop_recording()
        if recording is not None:
            self._on_finished(recording)
        return recording

    def _on_finished(self, recording: Recording):
        logger.info("Recorded %.1fs (%d kept)", recording.duration, len(self.capture.recordings))
        # Иногда сразу проигрываем только что записанное
        if self.rng.random() < self.playback_probability:
            self.play_last()

    def play_last(self) -> bool:
        recording = self.capture.last_recording
        if not self.enabled or recording is None or not self.player.ready:
            return False
        return self.player.play(recording, self.rng)

    def clear_effects(self):
        self.player.clear_effects()

    def toggle_loop(self):
        self.player.loop = not self.player.loop

    def delete_last(self):
        self.capture.delete_last()


class GestureDispatcher:
    def __init__(self, audio: AudioSession, rng,
                 recording_probability: float = 0.15,
                 playback_probability: float = 0.2,
                 side_record_probability: float = 0.05):
        self.audio = audio
        self.rng = rng
        self.recording_probability = recording_probability
        self.playback_probability = playback_probability
        self.side_record_probability = side_record_probability

        # O(1) поиск по имени жеста
        self.mappings: Dict[str, GestureMapping] = {}

    def load(self, mappings: List[GestureMapping]):
        self.mappings = {m.gesture: m for m in mappings}

    def regenerate(self):
        self.load(generate_mappings(self.rng))
        logger.debug("Audio mappings generated (secret): %s",
                     {m.gesture: m.action for m in self.mappings.values()})

    def dispatch(self, gesture: Optional[str], now_ms: float) -> bool:
        """
        True, если сопоставление сработало (пауза израсходована),
        независимо от того, было ли действие слышно.
        """
        if not gesture:
            return False
        mapping = self.mappings.get(gesture)
        if mapping is None or not mapping.ready(now_ms):
            return False

        try:
            self._execute(mapping.action, now_ms)
        except Exception as e:
            logger.warning("Error executing %s for %s: %s", mapping.action, gesture, e)

        mapping.mark(now_ms)

        if not self.audio.is_recording and self.rng.random() < self.side_record_probability:
            self.audio.start_recording(now_ms)
        return True

    def _execute(self, action: str, now_ms: float):
        if action == START_RECORDING:
            if not self.audio.is_recording and self.rng.random() < self.recording_probability:
                self.audio.start_recording(now_ms)
        elif action == STOP_RECORDING:
            if self.audio.is_recording:
                self.audio.stop_recording()
        elif action == PLAY_LAST:
            if self.rng.random() < self.playback_probability:
                self.audio.play_last()
        elif action in EFFECT_ACTIONS:
            pass
        elif action == CLEAR_EFFECTS:
            self.audio.clear_effects()
        elif action == LOOP_TOGGLE:
            self.audio.toggle_loop()
        elif action == DELETE_LAST:
            self.audio.delete_last()
        else:
            logger.debug("Unknown action: %s", action)
