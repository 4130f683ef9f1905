"""Video pipeline: track the fretting hand and publish its estimated fret."""

from __future__ import annotations
import time
from typing import Any, Callable, Optional, Sequence

from ..calibration import estimate_fret
from ..hand_tracking import (
    Hand,
    PositionSmoother,
    get_index_mcp_x,
    select_fretting_hand,
)
from ..logger import get_logger
from ..core.events import StateEventType
from ..core.interfaces import DeviceError, ICaptureDevice, IHandLandmarker
from ..core.scheduler import MinIntervalGate, ScheduledTask
from ..core.state import AppState

logger = get_logger(__name__)

# Hand detection runs at most once per this many seconds (about 20 per second)
MIN_DETECTION_INTERVAL = 0.05

TICK_INTERVAL = 1 / 60


class HandTrackingPipeline:
    """Drives hand landmark detection from a camera.

    Only this pipeline writes the vision fields of the shared state. When a
    frame yields no usable hand, ``hand_detected`` drops to False while the
    smoothed position and estimated fret keep their last values.
    """

    def __init__(
        self,
        state: AppState,
        camera: ICaptureDevice,
        landmarker: IHandLandmarker,
        min_interval: float = MIN_DETECTION_INTERVAL,
        smoothing_window: int = 5,
        position_getter: Callable[[Hand], float] = get_index_mcp_x,
        tick_interval: float = TICK_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the pipeline.

        Args:
            state: Shared application state
            camera: Source of video streams
            landmarker: Hand landmark model, already loaded
            min_interval: Minimum seconds between two detections
            smoothing_window: Samples averaged by the position smoother
            position_getter: Landmark used as the hand position
            tick_interval: Seconds between ticks
            clock: Monotonic clock in seconds, also used for frame timestamps
        """
        self.state = state
        self.camera = camera
        self.landmarker = landmarker
        self.position_getter = position_getter
        self.error_message: Optional[str] = None

        self._clock = clock
        self._gate = MinIntervalGate(min_interval, clock)
        self._smoother = PositionSmoother(smoothing_window)
        self._task = ScheduledTask(self.tick, tick_interval, name="hand-pipeline")
        self._handle: Any = None

        self.state.update_vision(is_loading=False)

    def start(self, device_id: Optional[str] = None) -> bool:
        """Open a camera and start tracking.

        Returns:
            True if tracking started, False if the camera could not be opened
        """
        self._teardown()
        self.error_message = None
        try:
            self._handle = self.camera.open(device_id)
        except DeviceError as e:
            logger.error(f"Failed to open camera {device_id}: {e}")
            self._fail(f"Failed to start camera: {e}")
            return False

        if device_id:
            self.state.set_camera_device(device_id)
        self.state.update_vision(is_tracking=True)
        self._gate.reset()
        self._task.start()
        logger.info(f"Tracking hands on camera {device_id or 'default'}")
        return True

    def stop(self) -> None:
        """Stop tracking and release the camera."""
        self._teardown()
        self.state.update_vision(is_tracking=False, hand_detected=False, landmarks=None)
        logger.info("Stopped hand tracking")

    def close(self) -> None:
        """Stop tracking and release the landmark model."""
        self.stop()
        self.landmarker.close()

    def is_tracking(self) -> bool:
        return self._handle is not None

    def reset_smoother(self) -> None:
        self._smoother.reset()

    def tick(self) -> None:
        """Run one detection if the minimum interval has passed."""
        handle = self._handle
        if handle is None or not self._gate.ready():
            return

        try:
            frame = handle.read()
        except DeviceError as e:
            logger.error(f"Camera lost: {e}")
            self._fail(f"Camera error: {e}")
            return
        if frame is None:
            return

        timestamp_ms = int(self._clock() * 1000)
        try:
            hands = self.landmarker.detect(frame, timestamp_ms)
        except Exception as e:
            # Skipped frame, previous values stay in place
            logger.error(f"Hand detection failed: {e}")
            return

        self.process_hands(hands)

    def process_hands(self, hands: Sequence[Hand]) -> None:
        """Select the fretting hand, smooth it and publish the fret estimate."""
        calibration = self.state.calibration
        chosen = select_fretting_hand(
            hands,
            calibration,
            self.state.wizard.is_active,
            self.position_getter,
        )

        if chosen is None:
            self.state.update_vision(hand_detected=False, landmarks=None)
            return

        landmarks, hand_x = chosen
        smoothed_x = self._smoother.add(hand_x)
        fret = estimate_fret(smoothed_x, calibration) if calibration else 0
        logger.debug(f"Hand at x={hand_x:.3f} (smoothed {smoothed_x:.3f}) -> fret {fret}")

        self.state.update_vision(
            hand_detected=True,
            landmarks=landmarks,
            smoothed_x=smoothed_x,
            estimated_fret=fret,
        )

    def _fail(self, message: str) -> None:
        self._teardown()
        self.error_message = message
        self.state.update_vision(is_tracking=False, hand_detected=False, landmarks=None)
        self.state.events.emit(StateEventType.ERROR, "vision", message)

    def _teardown(self) -> None:
        self._task.stop()
        if self._handle is not None:
            try:
                self.camera.close(self._handle)
            except DeviceError as e:
                logger.warning(f"Error releasing camera: {e}")
        self._handle = None
