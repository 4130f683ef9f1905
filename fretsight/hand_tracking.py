"""Hand landmark helpers and jitter smoothing for the tracked x-coordinate."""

from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Sequence, Tuple

from .calibration import is_in_detection_zone
from .logger import get_logger
from .note_types import Calibration, Landmark

logger = get_logger(__name__)

Hand = Sequence[Landmark]

# MediaPipe hand landmark indices
WRIST_INDEX = 0
THUMB_TIP = 4
INDEX_MCP = 5  # Index finger base (knuckle)
INDEX_TIP = 8
MIDDLE_TIP = 12
RING_TIP = 16
PINKY_TIP = 20
NUM_LANDMARKS = 21

HAND_CONNECTIONS: List[Tuple[int, int]] = [
    # Thumb
    (0, 1), (1, 2), (2, 3), (3, 4),
    # Index finger
    (0, 5), (5, 6), (6, 7), (7, 8),
    # Middle finger
    (5, 9), (9, 10), (10, 11), (11, 12),
    # Ring finger
    (9, 13), (13, 14), (14, 15), (15, 16),
    # Pinky
    (13, 17), (17, 18), (18, 19), (19, 20),
    # Palm
    (0, 17),
]

# Returned by the x getters when a hand has too few landmarks
CENTER_X = 0.5


class PositionSmoother:
    """Moving average over the last ``max_history`` samples.

    A plain moving average adds no tuning knobs beyond the window size. A longer
    window hides more jitter but makes the estimate trail a moving hand by
    roughly half the window; the default of 5 samples at ~20 detections per
    second is about 125ms of lag.
    """

    def __init__(self, max_history: int = 5) -> None:
        if max_history < 1:
            raise ValueError(f"max_history must be at least 1, got {max_history}")
        self._history: Deque[float] = deque(maxlen=max_history)

    def add(self, value: float) -> float:
        """Add a sample and return the mean of the current window."""
        self._history.append(value)
        return sum(self._history) / len(self._history)

    def reset(self) -> None:
        self._history.clear()

    @property
    def is_empty(self) -> bool:
        return len(self._history) == 0

    @property
    def max_history(self) -> int:
        return self._history.maxlen


def get_wrist_x(landmarks: Hand) -> float:
    if len(landmarks) <= WRIST_INDEX:
        return CENTER_X
    return landmarks[WRIST_INDEX].x


def get_index_mcp_x(landmarks: Hand) -> float:
    if len(landmarks) <= INDEX_MCP:
        return CENTER_X
    return landmarks[INDEX_MCP].x


def get_index_tip_x(landmarks: Hand) -> float:
    if len(landmarks) <= INDEX_TIP:
        return CENTER_X
    return landmarks[INDEX_TIP].x


def get_fingertips_average_x(landmarks: Hand) -> float:
    if len(landmarks) < NUM_LANDMARKS:
        return CENTER_X
    tips = [THUMB_TIP, INDEX_TIP, MIDDLE_TIP, RING_TIP, PINKY_TIP]
    return sum(landmarks[tip].x for tip in tips) / len(tips)


POSITION_GETTERS: Dict[str, Callable[[Hand], float]] = {
    "wrist": get_wrist_x,
    "index_mcp": get_index_mcp_x,
    "index_tip": get_index_tip_x,
    "fingertips_average": get_fingertips_average_x,
}

DEFAULT_POSITION_GETTER = "index_mcp"


def get_position_getter(name: str = DEFAULT_POSITION_GETTER) -> Callable[[Hand], float]:
    """Look up which landmark is used as the hand position signal.

    Raises:
        ValueError: If the name is not a known getter
    """
    if name not in POSITION_GETTERS:
        raise ValueError(
            f"Unknown hand position landmark: {name}. "
            f"Choose from {sorted(POSITION_GETTERS)}"
        )
    return POSITION_GETTERS[name]


def select_fretting_hand(
    hands: Sequence[Hand],
    calibration: Optional[Calibration],
    calibrating: bool,
    position_getter: Callable[[Hand], float] = get_index_mcp_x,
) -> Optional[Tuple[Hand, float]]:
    """Pick the hand to track out of everything the landmarker returned.

    While uncalibrated, or while the calibration wizard is running, the first
    hand wins so the picking hand can be captured too. Otherwise the first hand
    outside the picking zone wins.

    Args:
        hands: Landmark lists, one per detected hand
        calibration: Current calibration, or None
        calibrating: True while the calibration wizard is active
        position_getter: Maps a hand to its tracked x-coordinate

    Returns:
        (landmarks, x) of the chosen hand, or None if no hand qualifies
    """
    for landmarks in hands:
        hand_x = position_getter(landmarks)
        if calibration is None or calibrating:
            return landmarks, hand_x
        if is_in_detection_zone(hand_x, calibration):
            return landmarks, hand_x
        logger.debug(f"Ignoring hand at x={hand_x:.3f}: inside picking zone")
    return None
