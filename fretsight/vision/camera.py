"""Camera capture backed by OpenCV."""

from __future__ import annotations
from typing import List, Optional, Sequence

import cv2
import numpy as np

from ..logger import get_logger
from ..note_types import DeviceInfo
from ..core.interfaces import DeviceError, ICaptureDevice, IVideoStream

logger = get_logger(__name__)

DEFAULT_FRAME_SIZE = (640, 480)

# Camera indices checked by list_devices
CAMERA_PROBE_ORDER: Sequence[int] = range(5)


class OpenCVVideoStream(IVideoStream):
    """An open cv2.VideoCapture returning RGB frames."""

    def __init__(self, capture: cv2.VideoCapture) -> None:
        self._capture = capture

    def read(self) -> Optional[np.ndarray]:
        if not self._capture.isOpened():
            raise DeviceError("Camera is no longer available")
        ok, frame = self._capture.read()
        if not ok or frame is None:
            return None
        # OpenCV delivers BGR, the landmarker expects RGB
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def release(self) -> None:
        self._capture.release()


class OpenCVCamera(ICaptureDevice):
    """Webcam capture. Device ids are camera indices or a video file path."""

    def __init__(self, frame_size=DEFAULT_FRAME_SIZE) -> None:
        self._frame_size = frame_size

    def _open_capture(self, source) -> Optional[cv2.VideoCapture]:
        cap = cv2.VideoCapture(source)
        if cap is not None and cap.isOpened():
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._frame_size[0])
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._frame_size[1])
            return cap
        if cap is not None:
            cap.release()
        return None

    def list_devices(self) -> List[DeviceInfo]:
        devices = []
        for index in CAMERA_PROBE_ORDER:
            cap = self._open_capture(index)
            if cap is not None:
                cap.release()
                devices.append(DeviceInfo(device_id=str(index), name=f"Camera {index}"))
        return devices

    def open(self, device_id: Optional[str]) -> OpenCVVideoStream:
        """Open a camera by index (None for the first camera) or a video file.

        Raises:
            DeviceError: If the camera is missing or access is denied
        """
        if device_id in (None, ""):
            source = 0
        elif device_id.isdigit():
            source = int(device_id)
        else:
            source = device_id

        cap = self._open_capture(source)
        if cap is None:
            raise DeviceError(f"Failed to open camera {source}")
        logger.info(f"Camera opened: {source}")
        return OpenCVVideoStream(cap)

    def close(self, handle: OpenCVVideoStream) -> None:
        handle.release()
        logger.info("Camera released")
