"""Audio pipeline: capture buffers, detect pitch and publish the current note."""

from __future__ import annotations
from enum import Enum
from typing import Any, Optional

import numpy as np

from ..logger import get_logger
from ..music_theory import frequency_to_note_info, is_guitar_range
from ..note_types import NoteInfo
from ..core.events import StateEventType
from ..core.interfaces import DeviceError, ICaptureDevice, IPitchDetector
from ..core.scheduler import ScheduledTask
from ..core.state import AppState

logger = get_logger(__name__)

# Below this RMS a buffer counts as silence
MIN_VOLUME = 0.01

# Pitch estimates below this clarity are discarded
CLARITY_THRESHOLD = 0.9

# RMS is scaled by this for the 0-1 input level meter
INPUT_LEVEL_GAIN = 5

# One tick per display frame
TICK_INTERVAL = 1 / 60


class PipelineStatus(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    LISTENING = "listening"
    ERROR = "error"


def calculate_rms(samples: np.ndarray) -> float:
    if len(samples) == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(samples, dtype=np.float64))))


class PitchPipeline:
    """Drives pitch detection from an audio capture device.

    Only this pipeline writes the audio fields of the shared state. A failure to
    open a device is reported through ``status``/``error_message`` and
    ``start_listening`` returns False; nothing is retried.
    """

    def __init__(
        self,
        state: AppState,
        capture_device: ICaptureDevice,
        pitch_detector: IPitchDetector,
        tone_device: Optional[ICaptureDevice] = None,
        clarity_threshold: float = CLARITY_THRESHOLD,
        min_volume: float = MIN_VOLUME,
        tick_interval: float = TICK_INTERVAL,
    ) -> None:
        """Initialize the pipeline.

        Args:
            state: Shared application state
            capture_device: Source of live audio streams
            pitch_detector: Pitch detection algorithm
            tone_device: Source used by start_test_tone, or None to disable it
            clarity_threshold: Minimum clarity to accept a pitch (0-1)
            min_volume: Minimum RMS for a buffer to be analysed
            tick_interval: Seconds between processing ticks
        """
        self.state = state
        self.capture_device = capture_device
        self.pitch_detector = pitch_detector
        self.tone_device = tone_device
        self.clarity_threshold = clarity_threshold
        self.min_volume = min_volume

        self.status = PipelineStatus.IDLE
        self.error_message: Optional[str] = None

        self._task = ScheduledTask(self.tick, tick_interval, name="pitch-pipeline")
        self._device: Optional[ICaptureDevice] = None
        self._handle: Any = None
        self._relaxed_range = False

    def start_listening(self, device_id: Optional[str] = None) -> bool:
        """Open an input device and start detecting notes.

        Any stream that is already running is torn down first.

        Returns:
            True if listening started, False if the device could not be opened
        """
        if not self._open(self.capture_device, device_id, relaxed_range=False):
            return False
        if device_id:
            self.state.set_audio_device(device_id)
        return True

    def start_test_tone(self, frequency: float = 440.0) -> bool:
        """Feed a generated sine tone through the detector.

        The guitar range check is skipped so any audible test frequency shows up.
        """
        if self.tone_device is None:
            self._fail("No test tone source configured")
            return False
        return self._open(self.tone_device, str(frequency), relaxed_range=True)

    def stop_listening(self) -> None:
        """Stop processing, release the stream and reset the audio state."""
        self._teardown()
        self.status = PipelineStatus.IDLE
        self.error_message = None
        self.state.update_audio(
            is_listening=False, current_note=None, input_level=0.0, clarity=0.0
        )
        logger.info("Stopped listening")

    def is_listening(self) -> bool:
        return self.status == PipelineStatus.LISTENING

    def tick(self) -> None:
        """Read the latest buffer and process it. Runs on the pipeline thread."""
        handle = self._handle
        if handle is None:
            return
        try:
            samples = handle.read()
        except DeviceError as e:
            logger.error(f"Audio device lost: {e}")
            self._fail(f"Audio device error: {e}")
            return
        self.process_buffer(samples, handle.sample_rate)

    def process_buffer(self, samples: np.ndarray, sample_rate: int) -> Optional[NoteInfo]:
        """Turn one buffer into a note (or no note) and publish it.

        Args:
            samples: Mono time-domain samples
            sample_rate: Sample rate in Hz

        Returns:
            The detected note, or None
        """
        rms = calculate_rms(samples)
        input_level = min(rms * INPUT_LEVEL_GAIN, 1.0)

        if rms <= self.min_volume:
            self.state.update_audio(current_note=None, input_level=input_level, clarity=0.0)
            return None

        frequency, clarity = self.pitch_detector.find_pitch(samples, sample_rate)

        note = None
        if (
            clarity >= self.clarity_threshold
            and frequency > 0
            and (self._relaxed_range or is_guitar_range(frequency))
        ):
            note = frequency_to_note_info(frequency)
            logger.debug(
                f"Detected {note.note_name}{note.octave} ({frequency:.2f} Hz, clarity {clarity:.2f})"
            )

        self.state.update_audio(current_note=note, input_level=input_level, clarity=clarity)
        return note

    def _open(self, device: ICaptureDevice, device_id: Optional[str], relaxed_range: bool) -> bool:
        self._teardown()
        self.status = PipelineStatus.CONNECTING
        self.error_message = None

        try:
            self._handle = device.open(device_id)
        except DeviceError as e:
            logger.error(f"Failed to open audio device {device_id}: {e}")
            self._fail(f"Failed to start audio: {e}")
            return False

        self._device = device
        self._relaxed_range = relaxed_range
        self.status = PipelineStatus.LISTENING
        self.state.update_audio(is_listening=True)
        self._task.start()
        logger.info(f"Listening on audio device {device_id or 'default'}")
        return True

    def _fail(self, message: str) -> None:
        self._teardown()
        self.status = PipelineStatus.ERROR
        self.error_message = message
        self.state.update_audio(
            is_listening=False, current_note=None, input_level=0.0, clarity=0.0
        )
        self.state.events.emit(StateEventType.ERROR, "audio", message)

    def _teardown(self) -> None:
        self._task.stop()
        if self._handle is not None and self._device is not None:
            try:
                self._device.close(self._handle)
            except DeviceError as e:
                logger.warning(f"Error releasing audio device: {e}")
        self._handle = None
        self._device = None
        self._relaxed_range = False
