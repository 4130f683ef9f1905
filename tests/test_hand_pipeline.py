import tempfile
import unittest
from pathlib import Path

from fretsight.core.state import AppState
from fretsight.core.storage import CalibrationStore, KeyValueStore
from fretsight.mock_sensors import MockCaptureDevice, MockHandLandmarker, make_hand
from fretsight.note_types import Calibration
from fretsight.vision.hand_pipeline import HandTrackingPipeline

MANUAL = 3600


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class HandPipelineTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        store = CalibrationStore(KeyValueStore(str(Path(self.tmp.name) / "store.json")))
        self.state = AppState(store=store)
        self.camera = MockCaptureDevice(video=True)
        self.landmarker = MockHandLandmarker()
        self.clock = FakeClock()
        self.pipeline = HandTrackingPipeline(
            self.state,
            self.camera,
            self.landmarker,
            tick_interval=MANUAL,
            clock=self.clock,
        )

    def tearDown(self):
        self.pipeline.stop()
        self.tmp.cleanup()

    def calibrate(self):
        self.state.set_calibration(
            Calibration(fret1_x=0.2, fret12_x=0.8, picking_boundary_x=0.9)
        )


class TestProcessHands(HandPipelineTestCase):
    def test_loading_cleared(self):
        self.assertFalse(self.state.vision.is_loading)

    def test_uncalibrated_reports_fret_zero(self):
        self.pipeline.process_hands([make_hand(0.4)])

        self.assertTrue(self.state.vision.hand_detected)
        self.assertEqual(self.state.vision.estimated_fret, 0)
        self.assertEqual(self.state.vision.smoothed_x, 0.4)
        self.assertEqual(len(self.state.vision.landmarks), 21)

    def test_collapsed_saved_calibration_treated_as_uncalibrated(self):
        path = Path(self.tmp.name) / "collapsed.json"
        path.write_text(
            '{"calibration": {"fret1_x": 0.3, "fret12_x": 0.3, "picking_boundary_x": 0.9}}'
        )
        state = AppState(store=CalibrationStore(KeyValueStore(str(path))))
        pipeline = HandTrackingPipeline(
            state, self.camera, self.landmarker, tick_interval=MANUAL, clock=self.clock
        )

        pipeline.process_hands([make_hand(0.4)])

        self.assertFalse(state.is_calibrated())
        self.assertTrue(state.vision.hand_detected)
        self.assertEqual(state.vision.estimated_fret, 0)

    def test_calibrated_estimate(self):
        self.calibrate()
        self.pipeline.process_hands([make_hand(0.8)])
        self.assertEqual(self.state.vision.estimated_fret, 12)

    def test_lost_hand_holds_last_estimate(self):
        self.calibrate()
        self.pipeline.process_hands([make_hand(0.8)])
        self.pipeline.process_hands([])

        self.assertFalse(self.state.vision.hand_detected)
        self.assertIsNone(self.state.vision.landmarks)
        self.assertEqual(self.state.vision.estimated_fret, 12)
        self.assertEqual(self.state.vision.smoothed_x, 0.8)

    def test_picking_hand_ignored(self):
        self.calibrate()
        self.pipeline.process_hands([make_hand(0.95)])
        self.assertFalse(self.state.vision.hand_detected)

        self.pipeline.process_hands([make_hand(0.95), make_hand(0.8)])
        self.assertTrue(self.state.vision.hand_detected)
        self.assertEqual(self.state.vision.smoothed_x, 0.8)

    def test_picking_hand_used_while_calibrating(self):
        self.calibrate()
        self.state.start_calibration()
        self.pipeline.process_hands([make_hand(0.95)])
        self.assertTrue(self.state.vision.hand_detected)

    def test_smoothing_and_reset(self):
        self.pipeline.process_hands([make_hand(0.2)])
        self.pipeline.process_hands([make_hand(0.8)])
        self.assertAlmostEqual(self.state.vision.smoothed_x, 0.5)

        self.pipeline.reset_smoother()
        self.pipeline.process_hands([make_hand(0.8)])
        self.assertEqual(self.state.vision.smoothed_x, 0.8)


class TestHandPipelineLifecycle(HandPipelineTestCase):
    def test_detection_rate_limited(self):
        self.landmarker.frames = [[make_hand(0.4)], [make_hand(0.6)]]
        self.assertTrue(self.pipeline.start("0"))
        self.assertTrue(self.state.vision.is_tracking)

        self.pipeline.tick()
        self.pipeline.tick()
        self.assertEqual(self.landmarker.timestamps, [100000])

        self.clock.now += 0.1
        self.pipeline.tick()
        self.assertEqual(len(self.landmarker.timestamps), 2)
        self.assertGreater(self.landmarker.timestamps[1], self.landmarker.timestamps[0])

    def test_detector_error_keeps_previous_values(self):
        self.calibrate()
        self.landmarker.frames = [[make_hand(0.8)], RuntimeError("model failed")]
        self.pipeline.start()

        self.pipeline.tick()
        self.clock.now += 0.1
        self.pipeline.tick()

        self.assertTrue(self.state.vision.hand_detected)
        self.assertEqual(self.state.vision.estimated_fret, 12)

    def test_open_failure(self):
        camera = MockCaptureDevice(video=True, fail_open=True)
        pipeline = HandTrackingPipeline(self.state, camera, self.landmarker, tick_interval=MANUAL)

        self.assertFalse(pipeline.start("1"))

        self.assertIn("Failed to start camera", pipeline.error_message)
        self.assertFalse(self.state.vision.is_tracking)
        self.assertIsNone(self.state.vision.device_id)

    def test_camera_lost(self):
        self.pipeline.start("0")
        self.camera.handle.fail = True

        self.pipeline.tick()

        self.assertFalse(self.pipeline.is_tracking())
        self.assertFalse(self.state.vision.is_tracking)
        self.assertEqual(self.camera.closed, 1)

    def test_device_selection_persisted(self):
        self.pipeline.start("1")
        self.assertEqual(self.state.vision.device_id, "1")

    def test_close_releases_model(self):
        self.pipeline.start()
        self.pipeline.close()
        self.assertTrue(self.landmarker.closed)
        self.assertEqual(self.camera.closed, 1)
        self.assertFalse(self.state.vision.is_tracking)


if __name__ == "__main__":
    unittest.main()
