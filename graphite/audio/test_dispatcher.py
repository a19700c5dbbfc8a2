import unittest
from unittest.mock import MagicMock, create_autospec

import numpy as np

from graphite.audio import dispatcher as dsp
from graphite.audio.capture import AudioCapture
from graphite.audio.dispatcher import AudioSession, GestureDispatcher, GestureMapping
from graphite.audio.effects import Player


class ScriptedRng:
    def __init__(self, values=(), default=0.5):
        self.values = list(values)
        self.default = default

    def random(self):
        return self.values.pop(0) if self.values else self.default


class FakeStream:
    active = True

    def start(self):
        pass


def mapping(action, gesture="pinch", cooldown_ms=1000):
    return GestureMapping(gesture=gesture, action=action, threshold=0.7, cooldown_ms=cooldown_ms)


class TestGenerateMappings(unittest.TestCase):
    def test_random_permutation_of_actions(self):
        mappings = dsp.generate_mappings(np.random.default_rng(0))

        self.assertEqual([m.gesture for m in mappings], dsp.GESTURES)
        actions = [m.action for m in mappings]
        self.assertEqual(len(set(actions)), len(actions))
        self.assertTrue(set(actions) <= set(dsp.ACTIONS))
        for m in mappings:
            self.assertTrue(0.6 <= m.threshold <= 0.9)
            self.assertTrue(1000 <= m.cooldown_ms <= 3000)
            self.assertIsNone(m.last_triggered)

    def test_swipe_down_is_unmapped(self):
        self.assertNotIn("swipeDown", dsp.GESTURES)


class TestGestureDispatcher(unittest.TestCase):
    def setUp(self):
        self.audio = create_autospec(AudioSession, instance=True)
        self.audio.is_recording = True
        self.rng = ScriptedRng()
        self.dispatcher = GestureDispatcher(self.audio, self.rng)

    def test_cooldown_boundary_is_inclusive(self):
        self.dispatcher.load([mapping(dsp.LOOP_TOGGLE)])

        self.assertTrue(self.dispatcher.dispatch("pinch", 0))
        self.assertFalse(self.dispatcher.dispatch("pinch", 999))
        self.assertTrue(self.dispatcher.dispatch("pinch", 1000))
        self.assertEqual(self.audio.toggle_loop.call_count, 2)
        self.assertEqual(self.dispatcher.mappings["pinch"].last_triggered, 1000)

    def test_rejected_dispatch_does_not_reset_cooldown(self):
        self.dispatcher.load([mapping(dsp.LOOP_TOGGLE)])
        self.dispatcher.dispatch("pinch", 0)
        self.dispatcher.dispatch("pinch", 500)
        self.assertEqual(self.dispatcher.mappings["pinch"].last_triggered, 0)

    def test_gated_action_still_consumes_cooldown(self):
        self.audio.is_recording = False
        self.dispatcher.load([mapping(dsp.START_RECORDING)])

        # 0.5 > 0.15: запись не стартует, побочный бросок 0.5 > 0.05 тоже
        self.assertTrue(self.dispatcher.dispatch("pinch", 0))
        self.audio.start_recording.assert_not_called()
        self.assertEqual(self.dispatcher.mappings["pinch"].last_triggered, 0)

    def test_start_recording_when_roll_passes(self):
        self.audio.is_recording = False
        self.dispatcher.rng = ScriptedRng([0.1, 0.99])
        self.dispatcher.load([mapping(dsp.START_RECORDING)])

        self.dispatcher.dispatch("pinch", 0)
        self.audio.start_recording.assert_called_once_with(0)

    def test_stop_recording_only_when_recording(self):
        self.dispatcher.load([mapping(dsp.STOP_RECORDING)])
        self.dispatcher.dispatch("pinch", 0)
        self.audio.stop_recording.assert_called_once()

    def test_play_last_is_probability_gated(self):
        self.dispatcher.load([mapping(dsp.PLAY_LAST)])
        self.dispatcher.dispatch("pinch", 0)
        self.audio.play_last.assert_not_called()

        self.dispatcher.rng = ScriptedRng([0.1])
        self.dispatcher.dispatch("pinch", 5000)
        self.audio.play_last.assert_called_once()

    def test_effect_actions_are_accepted_noops(self):
        self.dispatcher.load([mapping(a, gesture=a) for a in dsp.EFFECT_ACTIONS])
        for action in dsp.EFFECT_ACTIONS:
            self.assertTrue(self.dispatcher.dispatch(action, 0))
        self.audio.start_recording.assert_not_called()
        self.audio.play_last.assert_not_called()
        self.audio.clear_effects.assert_not_called()

    def test_clear_and_delete(self):
        self.dispatcher.load([mapping(dsp.CLEAR_EFFECTS, "fist"), mapping(dsp.DELETE_LAST, "pinch")])
        self.dispatcher.dispatch("fist", 0)
        self.dispatcher.dispatch("pinch", 0)
        self.audio.clear_effects.assert_called_once()
        self.audio.delete_last.assert_called_once()

    def test_side_roll_starts_recording(self):
        self.audio.is_recording = False
        self.dispatcher.rng = ScriptedRng([0.01])
        self.dispatcher.load([mapping("applyReverb")])

        self.dispatcher.dispatch("pinch", 42)
        self.audio.start_recording.assert_called_once_with(42)

    def test_unmapped_and_empty_gestures(self):
        self.dispatcher.load([mapping(dsp.LOOP_TOGGLE)])
        self.assertFalse(self.dispatcher.dispatch("swipeDown", 0))
        self.assertFalse(self.dispatcher.dispatch(None, 0))
        self.audio.toggle_loop.assert_not_called()

    def test_unknown_action_is_noop(self):
        self.dispatcher.load([mapping("danceParty")])
        self.assertTrue(self.dispatcher.dispatch("pinch", 0))

    def test_action_error_is_logged_and_cooldown_consumed(self):
        self.audio.clear_effects.side_effect = RuntimeError("player gone")
        self.dispatcher.load([mapping(dsp.CLEAR_EFFECTS)])
        with self.assertLogs("graphite.audio.dispatcher", level="WARNING"):
            self.assertTrue(self.dispatcher.dispatch("pinch", 0))
        self.assertEqual(self.dispatcher.mappings["pinch"].last_triggered, 0)

    def test_last_triggered_never_decreases(self):
        m = mapping(dsp.LOOP_TOGGLE)
        m.mark(1000)
        m.mark(500)
        self.assertEqual(m.last_triggered, 1000)

    def test_regenerate_replaces_table(self):
        self.dispatcher.rng = np.random.default_rng(1)
        self.dispatcher.regenerate()
        self.assertEqual(sorted(self.dispatcher.mappings), sorted(dsp.GESTURES))


class TestAudioSession(unittest.TestCase):
    def setUp(self):
        self.capture = AudioCapture(FakeStream(), sample_rate=8000)
        self.player = MagicMock(spec=Player)
        self.player.ready = True
        self.rng = ScriptedRng(default=0.5)
        self.audio = AudioSession(self.capture, self.player, self.rng)

    def test_disabled_session_is_silent(self):
        self.assertFalse(self.audio.start_recording(0))
        self.assertFalse(self.audio.play_last())

    def test_recording_length_is_randomized(self):
        self.audio.enabled = True
        self.assertTrue(self.audio.start_recording(0))
        self.capture.callback(np.ones((64, 1), dtype=np.float32), 64, None, None)

        # 2000 + 0.5 * 5000 = 4500 мс
        self.audio.poll(4499)
        self.assertTrue(self.audio.is_recording)
        self.audio.poll(4500)
        self.assertFalse(self.audio.is_recording)
        self.assertEqual(len(self.capture.recordings), 1)

    def test_finished_recording_sometimes_plays(self):
        self.audio.enabled = True
        self.rng.values = [0.5, 0.1]
        self.audio.start_recording(0)
        self.capture.callback(np.ones((64, 1), dtype=np.float32), 64, None, None)
        self.audio.stop_recording()
        self.player.play.assert_called_once_with(self.capture.last_recording, self.rng)

    def test_play_last_requires_ready_player(self):
        self.audio.enabled = True
        self.audio.start_recording(0)
        self.capture.callback(np.ones((64, 1), dtype=np.float32), 64, None, None)
        self.capture.stop_recording()

        self.player.ready = False
        self.assertFalse(self.audio.play_last())
        self.player.play.assert_not_called()

    def test_toggle_loop(self):
        self.player.loop = False
        self.audio.toggle_loop()
        self.assertTrue(self.player.loop)


if __name__ == '__main__':
    unittest.main()
