"""Core components for the fretsight application."""

# Import interfaces for easier access
from .interfaces import (
    DeviceError,
    IPitchDetector,
    IHandLandmarker,
    IAudioStream,
    IVideoStream,
    ICaptureDevice,
)

__all__ = [
    "DeviceError",
    "IPitchDetector",
    "IHandLandmarker",
    "IAudioStream",
    "IVideoStream",
    "ICaptureDevice",
]
