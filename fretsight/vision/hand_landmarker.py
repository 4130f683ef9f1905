"""Hand landmark detection using the MediaPipe Tasks HandLandmarker."""

from __future__ import annotations
from typing import List, Sequence

import mediapipe as mp
import numpy as np
from mediapipe.tasks import python as mp_tasks
from mediapipe.tasks.python import vision as mp_vision

from ..logger import get_logger
from ..note_types import Landmark
from ..core.interfaces import IHandLandmarker

logger = get_logger(__name__)


class MediaPipeHandLandmarker(IHandLandmarker):
    """Track hands across video frames with MediaPipe.

    The model runs in VIDEO mode, so timestamps passed to ``detect`` must
    increase monotonically.
    """

    def __init__(
        self,
        model_path: str = "hand_landmarker.task",
        num_hands: int = 2,
        min_detection_confidence: float = 0.5,
        min_presence_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
    ) -> None:
        """
        Args:
            model_path: Path to the hand_landmarker.task model bundle
            num_hands: Maximum number of hands to detect
            min_detection_confidence: Minimum confidence for hand detection
            min_presence_confidence: Minimum confidence that a hand is present
            min_tracking_confidence: Minimum confidence for hand tracking
        """
        options = mp_vision.HandLandmarkerOptions(
            base_options=mp_tasks.BaseOptions(model_asset_path=model_path),
            running_mode=mp_vision.RunningMode.VIDEO,
            num_hands=num_hands,
            min_hand_detection_confidence=min_detection_confidence,
            min_hand_presence_confidence=min_presence_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )
        self._landmarker = mp_vision.HandLandmarker.create_from_options(options)
        logger.info(f"Hand landmarker loaded from {model_path}")

    def detect(self, frame: np.ndarray, timestamp_ms: int) -> List[Sequence[Landmark]]:
        """
        Detect hands in frame

        Args:
            frame: RGB image frame
            timestamp_ms: Frame timestamp in milliseconds

        Returns:
            One list of 21 landmarks per detected hand
        """
        image = mp.Image(image_format=mp.ImageFormat.SRGB, data=np.ascontiguousarray(frame))
        result = self._landmarker.detect_for_video(image, timestamp_ms)

        return [
            [Landmark(x=point.x, y=point.y, z=point.z) for point in hand]
            for hand in result.hand_landmarks
        ]

    def close(self) -> None:
        self._landmarker.close()
