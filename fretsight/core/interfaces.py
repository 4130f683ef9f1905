"""Defines the collaborator interfaces the fretsight core depends on.

The core never touches a microphone, camera or model directly. Pipelines are
handed implementations of these interfaces and only consume the samples and
frames they produce.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

from ..note_types import DeviceInfo, Landmark


class DeviceError(Exception):
    """A capture device could not be opened, read or released."""


class IPitchDetector(ABC):
    """Interface for monophonic pitch detection algorithms."""

    @abstractmethod
    def find_pitch(self, samples: np.ndarray, sample_rate: int) -> Tuple[float, float]:
        """Detect the pitch of a time-domain buffer.

        Returns:
            (frequency in Hz, clarity in 0-1)
        """
        pass


class IHandLandmarker(ABC):
    """Interface for hand landmark models."""

    @abstractmethod
    def detect(self, frame: np.ndarray, timestamp_ms: int) -> List[Sequence[Landmark]]:
        """Detect hands in an RGB frame, one landmark list per hand."""
        pass

    def close(self) -> None:
        """Release model resources."""
        pass


class IAudioStream(ABC):
    """An open audio capture stream."""

    @property
    @abstractmethod
    def sample_rate(self) -> int:
        """The sample rate of the stream."""
        pass

    @abstractmethod
    def read(self) -> np.ndarray:
        """Return the most recent fixed-size buffer of mono float32 samples."""
        pass


class IVideoStream(ABC):
    """An open video capture stream."""

    @abstractmethod
    def read(self) -> Optional[np.ndarray]:
        """Return the latest RGB frame, or None if no frame is available."""
        pass


class ICaptureDevice(ABC):
    """Capability interface for a family of capture devices."""

    @abstractmethod
    def list_devices(self) -> List[DeviceInfo]:
        """Enumerate available devices."""
        pass

    @abstractmethod
    def open(self, device_id: Optional[str]) -> Any:
        """Open a device and return its stream handle.

        Raises:
            DeviceError: If the device is unavailable or access is denied
        """
        pass

    @abstractmethod
    def close(self, handle: Any) -> None:
        """Release a stream handle returned by open()."""
        pass
