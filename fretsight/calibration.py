"""Calibration model: maps a normalized hand x-coordinate to a fret number.

Three reference points are captured by the wizard: the boundary of the picking
hand zone, the fretting hand at fret 1 and the fretting hand at fret 12. Fret
numbers are interpolated linearly between the two fret samples and extrapolated
beyond them. Real fret spacing shrinks logarithmically towards the bridge, so the
estimate drifts the further the hand is from the calibrated segment; this model
keeps the linear mapping as-is.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Optional, Tuple

from .fretboard import FRET_COUNT
from .logger import get_logger
from .music_theory import round_half_up
from .note_types import Calibration

logger = get_logger(__name__)

# Minimum |fret12_x - fret1_x|, as a fraction of the frame width
MIN_CALIBRATION_SEPARATION = 0.1

# Keeps a hand sitting on the boundary from flipping zones every frame
PICKING_ZONE_MARGIN = 0.02

# Slack around the neck when the picking boundary lies inside the neck span
NECK_ZONE_MARGIN = 0.05


def estimate_fret(hand_x: float, calibration: Calibration) -> int:
    """Estimate the fret under the fretting hand.

    Args:
        hand_x: Normalized (0-1) x-coordinate of the tracked landmark
        calibration: A valid calibration

    Returns:
        Fret number clamped to 0-24
    """
    ratio = (hand_x - calibration.fret1_x) / (
        calibration.fret12_x - calibration.fret1_x
    )

    if calibration.is_left_handed:
        ratio = 1 - ratio

    # Fret 1 -> ratio 0, fret 12 -> ratio 1; halves round up
    fret = round_half_up(ratio * 11) + 1

    return max(0, min(FRET_COUNT, fret))


def is_calibration_valid(calibration: Calibration) -> bool:
    """Check the two fret samples are far enough apart to tell frets apart."""
    separation = abs(calibration.fret12_x - calibration.fret1_x)
    return separation > MIN_CALIBRATION_SEPARATION


def get_detection_zone(calibration: Calibration) -> Tuple[float, float]:
    """Get the (min_x, max_x) region where the fretting hand is tracked.

    The picking boundary decides which side of the frame belongs to the
    strumming hand. If it falls inside the neck span the calibration is
    degenerate and the neck span itself, with a small margin, is used.
    """
    neck_min_x = min(calibration.fret1_x, calibration.fret12_x)
    neck_max_x = max(calibration.fret1_x, calibration.fret12_x)
    boundary = calibration.picking_boundary_x

    if boundary > neck_max_x:
        # Picking zone on the right
        return 0.0, boundary - PICKING_ZONE_MARGIN
    elif boundary < neck_min_x:
        # Picking zone on the left
        return boundary + PICKING_ZONE_MARGIN, 1.0

    return neck_min_x - NECK_ZONE_MARGIN, neck_max_x + NECK_ZONE_MARGIN


def is_in_detection_zone(hand_x: float, calibration: Calibration) -> bool:
    """Check a hand is outside the picking zone and can be the fretting hand."""
    neck_min_x = min(calibration.fret1_x, calibration.fret12_x)
    neck_max_x = max(calibration.fret1_x, calibration.fret12_x)
    boundary = calibration.picking_boundary_x

    if boundary > neck_max_x:
        return hand_x <= boundary - PICKING_ZONE_MARGIN
    elif boundary < neck_min_x:
        return hand_x >= boundary + PICKING_ZONE_MARGIN

    return neck_min_x - NECK_ZONE_MARGIN <= hand_x <= neck_max_x + NECK_ZONE_MARGIN


def get_calibration_direction(calibration: Calibration) -> str:
    """Describe which way the frets run across the frame."""
    left_to_right = calibration.fret1_x < calibration.fret12_x
    if calibration.is_left_handed:
        return (
            "Right -> Left (left-handed)"
            if left_to_right
            else "Left -> Right (left-handed)"
        )
    return (
        "Left -> Right (right-handed)"
        if left_to_right
        else "Right -> Left (right-handed)"
    )


class CalibrationStep(str, Enum):
    NONE = "none"
    PICKING_ZONE = "pickingZone"
    FRET1 = "fret1"
    FRET12 = "fret12"
    COMPLETE = "complete"


class CalibrationWizard:
    """Three-step capture flow that produces a Calibration.

    The wizard only collects samples and validates them. Persisting the result
    is up to the owner of the wizard.
    """

    def __init__(self) -> None:
        self.step = CalibrationStep.NONE
        self.picking_boundary_x: Optional[float] = None
        self.fret1_x: Optional[float] = None
        self.fret12_x: Optional[float] = None

    @property
    def is_active(self) -> bool:
        return self.step != CalibrationStep.NONE

    def start(self) -> None:
        self.step = CalibrationStep.PICKING_ZONE
        self.picking_boundary_x = None
        self.fret1_x = None
        self.fret12_x = None
        logger.info("Calibration started")

    def capture_picking_zone(self, x_position: float) -> None:
        self.picking_boundary_x = x_position
        self.step = CalibrationStep.FRET1
        logger.info(f"Captured picking zone boundary at x={x_position:.3f}")

    def capture_fret1(self, x_position: float) -> None:
        self.fret1_x = x_position
        self.step = CalibrationStep.FRET12
        logger.info(f"Captured fret 1 at x={x_position:.3f}")

    def capture_fret12(
        self, x_position: float, is_left_handed: bool
    ) -> Optional[Calibration]:
        """Capture the fret 12 sample and build the calibration.

        Args:
            x_position: Current hand x-coordinate
            is_left_handed: Handedness setting to store with the calibration

        Returns:
            The new calibration, or None if the samples were rejected. On
            rejection the wizard goes back to the fret 1 step and keeps the
            picking boundary.
        """
        if self.fret1_x is None or self.picking_boundary_x is None:
            logger.warning("Fret 12 captured before fret 1 and picking zone; ignoring")
            return None

        calibration = Calibration(
            fret1_x=self.fret1_x,
            fret12_x=x_position,
            picking_boundary_x=self.picking_boundary_x,
            is_left_handed=is_left_handed,
            timestamp=time.time(),
        )

        if not is_calibration_valid(calibration):
            logger.warning(
                f"Calibration rejected: fret 1 at {self.fret1_x:.3f} and fret 12 at "
                f"{x_position:.3f} are within {MIN_CALIBRATION_SEPARATION} of each other"
            )
            self.step = CalibrationStep.FRET1
            self.fret1_x = None
            self.fret12_x = None
            return None

        self.fret12_x = x_position
        self.step = CalibrationStep.COMPLETE
        logger.info(f"Calibration complete: {get_calibration_direction(calibration)}")
        return calibration

    def finish(self) -> None:
        self.step = CalibrationStep.NONE

    def reset(self) -> None:
        self.step = CalibrationStep.NONE
        self.picking_boundary_x = None
        self.fret1_x = None
        self.fret12_x = None
