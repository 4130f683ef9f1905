"""Scripted stand-ins for the capture devices and detectors.

Used by the tests and by ``fretsight monitor --dry-run`` to exercise the
pipelines without a sound card, camera or model.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .core.interfaces import (
    DeviceError,
    IAudioStream,
    ICaptureDevice,
    IHandLandmarker,
    IPitchDetector,
    IVideoStream,
)
from .hand_tracking import NUM_LANDMARKS
from .note_types import DeviceInfo, Landmark


def make_hand(x: float, y: float = 0.5) -> List[Landmark]:
    """Build a 21-point hand whose landmarks all sit at (x, y)."""
    return [Landmark(x=x, y=y) for _ in range(NUM_LANDMARKS)]


def make_signal(amplitude: float, size: int = 4096) -> np.ndarray:
    """A constant-frequency buffer with the given peak amplitude."""
    t = np.arange(size) / 44100
    return (amplitude * np.sin(2 * np.pi * 440.0 * t)).astype(np.float32)


class MockPitchDetector(IPitchDetector):
    """Returns scripted (frequency, clarity) pairs, repeating the last one."""

    def __init__(self, results: Iterable[Tuple[float, float]] = ((0.0, 0.0),)):
        self.results = list(results)
        self.calls = 0

    def find_pitch(self, samples: np.ndarray, sample_rate: int) -> Tuple[float, float]:
        index = min(self.calls, len(self.results) - 1)
        self.calls += 1
        return self.results[index]


class MockHandLandmarker(IHandLandmarker):
    """Returns scripted hand lists; an Exception in the script is raised."""

    def __init__(self, frames: Iterable = ()):
        self.frames = list(frames)
        self.timestamps: List[int] = []
        self.closed = False

    def detect(self, frame: np.ndarray, timestamp_ms: int) -> List[Sequence[Landmark]]:
        self.timestamps.append(timestamp_ms)
        if not self.frames:
            return []
        result = self.frames.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def close(self) -> None:
        self.closed = True


class MockAudioStream(IAudioStream):
    def __init__(self, buffers: List[np.ndarray], sample_rate: int = 44100):
        self.buffers = buffers
        self._sample_rate = sample_rate
        self.fail = False

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    def read(self) -> np.ndarray:
        if self.fail:
            raise DeviceError("Device unplugged")
        if len(self.buffers) > 1:
            return self.buffers.pop(0)
        return self.buffers[0]


class MockVideoStream(IVideoStream):
    def __init__(self):
        self.fail = False

    def read(self) -> Optional[np.ndarray]:
        if self.fail:
            raise DeviceError("Camera unplugged")
        return np.zeros((4, 4, 3), dtype=np.uint8)


class MockCaptureDevice(ICaptureDevice):
    """Capture device that hands out mock streams and records open/close calls.

    Args:
        devices: Device list to report
        fail_open: If True, every open() raises DeviceError
        video: If True, open() returns video streams instead of audio streams
    """

    def __init__(
        self,
        devices: Optional[List[DeviceInfo]] = None,
        fail_open: bool = False,
        video: bool = False,
        buffers: Optional[List[np.ndarray]] = None,
    ):
        self.devices = devices if devices is not None else [DeviceInfo("0", "Mock device")]
        self.fail_open = fail_open
        self.video = video
        self.buffers = buffers if buffers is not None else [make_signal(0.5)]
        self.opened: List[Optional[str]] = []
        self.closed = 0
        self.handle = None

    def list_devices(self) -> List[DeviceInfo]:
        return list(self.devices)

    def open(self, device_id: Optional[str]):
        if self.fail_open:
            raise DeviceError(f"Permission denied for device {device_id}")
        self.opened.append(device_id)
        self.handle = MockVideoStream() if self.video else MockAudioStream(list(self.buffers))
        return self.handle

    def close(self, handle) -> None:
        self.closed += 1
