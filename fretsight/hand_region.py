"""Reachable fret window around the estimated fret, for display.

The index finger anchors the low end of the hand and barely stretches back,
while the pinky can reach further towards the bridge, so the window is
asymmetric. This window is independent of the resolver's symmetric tolerance
window; the two can disagree about borderline frets.
"""

from .fretboard import FRET_COUNT
from .note_types import FretRange


def get_fret_range(
    estimated_fret: int, tolerance: int, is_left_handed: bool = False
) -> FretRange:
    """Compute the fret window the hand can cover.

    Args:
        estimated_fret: Fret estimated from the hand position
        tolerance: Configured symmetric tolerance (1-4)
        is_left_handed: Swaps which side gets the index and pinky reach

    Returns:
        Inclusive FretRange clamped to 0-24
    """
    index_tolerance = max(1, int(tolerance * 0.5))
    pinky_tolerance = tolerance + 1

    if is_left_handed:
        low_tolerance, high_tolerance = pinky_tolerance, index_tolerance
    else:
        low_tolerance, high_tolerance = index_tolerance, pinky_tolerance

    return FretRange(
        min=max(0, estimated_fret - low_tolerance),
        max=min(FRET_COUNT, estimated_fret + high_tolerance),
    )
