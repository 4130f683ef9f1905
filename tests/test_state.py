import tempfile
import unittest
from pathlib import Path

from fretsight.calibration import CalibrationStep
from fretsight.core.config import DEFAULT_CONFIGS
from fretsight.core.events import StateEventType
from fretsight.core.state import AppState, Settings
from fretsight.core.storage import CalibrationStore, KeyValueStore
from fretsight.fretboard import DISPLAY_FRETS, find_positions
from fretsight.music_theory import frequency_to_note_info
from fretsight.note_types import ConfidenceLevel, FretPosition, FretRange
from fretsight.scales import ScaleType


class StateTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "store.json"
        self.state = AppState(store=self.make_store())

    def tearDown(self):
        self.tmp.cleanup()

    def make_store(self):
        return CalibrationStore(KeyValueStore(str(self.path)))


class TestAudioState(StateTestCase):
    def test_note_sets_positions(self):
        self.state.update_audio(current_note=frequency_to_note_info(110.0), clarity=0.95)

        self.assertEqual(self.state.audio.current_note.midi_note, 45)
        self.assertEqual(self.state.audio.possible_positions, find_positions(45))
        self.assertEqual(self.state.audio.clarity, 0.95)

    def test_clearing_note_clears_positions(self):
        self.state.update_audio(current_note=frequency_to_note_info(110.0))
        self.state.update_audio(current_note=None)
        self.assertEqual(self.state.audio.possible_positions, [])

    def test_other_fields_untouched(self):
        self.state.update_audio(is_listening=True)
        self.state.update_audio(input_level=0.4)
        self.assertTrue(self.state.audio.is_listening)

    def test_emits_event(self):
        received = []
        self.state.events.on(StateEventType.AUDIO_CHANGED, received.append)
        self.state.update_audio(input_level=0.3)
        self.assertEqual(received[0].input_level, 0.3)

    def test_device_selection_persisted(self):
        self.state.set_audio_device("3")
        self.state.set_camera_device("1")
        reloaded = AppState(store=self.make_store())
        self.assertEqual(reloaded.audio.device_id, "3")
        self.assertEqual(reloaded.vision.device_id, "1")


class TestDerivedState(StateTestCase):
    def test_resolved_position(self):
        self.state.update_audio(current_note=frequency_to_note_info(110.0))
        self.state.update_vision(hand_detected=True, estimated_fret=5)

        result = self.state.get_resolved_position()

        self.assertEqual(result.confidence, ConfidenceLevel.HIGH)
        self.assertEqual(result.position, FretPosition(6, 5))

    def test_resolved_position_without_note(self):
        self.state.update_vision(hand_detected=True, estimated_fret=5)
        self.assertEqual(self.state.get_resolved_position().confidence, ConfidenceLevel.NONE)

    def test_fret_range_follows_settings(self):
        self.state.update_vision(estimated_fret=5)
        self.assertEqual(self.state.get_fret_range(), FretRange(4, 8))
        self.state.update_settings(is_left_handed=True)
        self.assertEqual(self.state.get_fret_range(), FretRange(2, 6))

    def test_scale_positions(self):
        self.state.update_settings(practice_root_note="E", practice_scale_type="major")
        positions = self.state.get_scale_positions()
        self.assertTrue(positions)
        self.assertTrue(all(p.fret <= DISPLAY_FRETS for p in positions))
        self.assertEqual(self.state.settings.practice_scale_type, ScaleType.MAJOR)


class TestCalibrationState(StateTestCase):
    def run_wizard(self, fret12_x):
        self.state.start_calibration()
        self.state.capture_picking_zone(0.9)
        self.state.capture_fret1(0.2)
        return self.state.capture_fret12(fret12_x)

    def test_accepted_calibration_is_saved(self):
        self.assertTrue(self.run_wizard(0.8))
        self.assertEqual(self.state.calibration_step, CalibrationStep.COMPLETE)
        self.state.finish_calibration()

        reloaded = AppState(store=self.make_store())
        self.assertTrue(reloaded.is_calibrated())
        self.assertEqual(reloaded.calibration, self.state.calibration)

    def test_rejected_calibration_keeps_previous(self):
        self.assertFalse(self.run_wizard(0.25))
        self.assertIsNone(self.state.calibration)
        self.assertEqual(self.state.calibration_step, CalibrationStep.FRET1)
        self.assertIsNone(AppState(store=self.make_store()).calibration)

    def test_rejection_does_not_replace_existing(self):
        self.run_wizard(0.8)
        previous = self.state.calibration
        self.assertFalse(self.run_wizard(0.22))
        self.assertEqual(self.state.calibration, previous)

    def test_toggle_left_handed_rewrites_calibration(self):
        self.run_wizard(0.8)
        self.state.toggle_left_handed()

        self.assertTrue(self.state.settings.is_left_handed)
        self.assertTrue(self.state.calibration.is_left_handed)
        self.assertTrue(AppState(store=self.make_store()).calibration.is_left_handed)

    def test_cancel_keeps_saved_calibration(self):
        self.run_wizard(0.8)
        self.state.finish_calibration()
        saved = self.state.calibration

        self.state.start_calibration()
        self.state.capture_picking_zone(0.9)
        self.state.cancel_calibration()

        self.assertEqual(self.state.calibration_step, CalibrationStep.NONE)
        self.assertEqual(self.state.calibration, saved)
        self.assertEqual(AppState(store=self.make_store()).calibration, saved)

    def test_reset(self):
        self.run_wizard(0.8)
        self.state.reset_calibration()
        self.assertFalse(self.state.is_calibrated())
        self.assertEqual(self.state.calibration_step, CalibrationStep.NONE)
        self.assertIsNone(AppState(store=self.make_store()).calibration)


class TestSettings(unittest.TestCase):
    def test_from_config(self):
        settings = Settings.from_config(dict(DEFAULT_CONFIGS["settings"], unknown=1))
        self.assertEqual(settings, Settings())
        self.assertEqual(settings.practice_scale_type, ScaleType.PENTATONIC_MINOR)

    def test_unknown_scale_type_falls_back(self):
        config = dict(DEFAULT_CONFIGS["settings"], practice_scale_type="lydian", fret_tolerance=3)
        settings = Settings.from_config(config)
        self.assertEqual(settings.practice_scale_type, ScaleType.PENTATONIC_MINOR)
        self.assertEqual(settings.fret_tolerance, 3)

    def test_tuner_flag(self):
        with tempfile.TemporaryDirectory() as tmp:
            state = AppState(store=CalibrationStore(KeyValueStore(str(Path(tmp) / "s.json"))))
            state.open_tuner()
            self.assertTrue(state.tuner_open)
            state.close_tuner()
            self.assertFalse(state.tuner_open)


if __name__ == "__main__":
    unittest.main()
