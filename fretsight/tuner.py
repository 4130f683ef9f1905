"""Open-string tuner built on the music theory conversions."""

import math
from dataclasses import dataclass
from typing import List, Optional

from .music_theory import midi_to_frequency, round_half_up
from .note_types import TuningStatus, TuningTarget

# Standard tuning (EADGBE), low to high
STANDARD_TUNING: List[TuningTarget] = [
    TuningTarget(string=6, note="E", octave=2, midi=40, frequency=midi_to_frequency(40), label="E2"),
    TuningTarget(string=5, note="A", octave=2, midi=45, frequency=midi_to_frequency(45), label="A2"),
    TuningTarget(string=4, note="D", octave=3, midi=50, frequency=midi_to_frequency(50), label="D3"),
    TuningTarget(string=3, note="G", octave=3, midi=55, frequency=midi_to_frequency(55), label="G3"),
    TuningTarget(string=2, note="B", octave=3, midi=59, frequency=midi_to_frequency(59), label="B3"),
    TuningTarget(string=1, note="E", octave=4, midi=64, frequency=midi_to_frequency(64), label="E4"),
]

# Thresholds in cents
IN_TUNE_CENTS = 5
CLOSE_CENTS = 15
# Beyond one semitone the pitch is not a usable reference for any string
MAX_STRING_DEVIATION_CENTS = 100


@dataclass(frozen=True)
class TunerReading:
    target: TuningTarget
    cents: float
    status: TuningStatus


def calculate_cents(frequency: float, target_frequency: float) -> float:
    """Cents between a frequency and a target; positive is sharp, negative flat."""
    return 1200 * math.log2(frequency / target_frequency)


def find_closest_string(frequency: float) -> Optional[TuningTarget]:
    """Find the open string nearest to a detected pitch.

    Returns:
        The closest TuningTarget, or None for a non-positive frequency or one
        more than a semitone away from every open string
    """
    if frequency <= 0:
        return None

    closest = min(
        STANDARD_TUNING,
        key=lambda target: abs(calculate_cents(frequency, target.frequency)),
    )

    if abs(calculate_cents(frequency, closest.frequency)) > MAX_STRING_DEVIATION_CENTS:
        return None

    return closest


def get_tuning_status(cents: float) -> TuningStatus:
    abs_cents = abs(cents)

    if abs_cents <= IN_TUNE_CENTS:
        return TuningStatus.IN_TUNE
    elif abs_cents <= CLOSE_CENTS:
        return TuningStatus.CLOSE
    elif cents < 0:
        return TuningStatus.FLAT
    else:
        return TuningStatus.SHARP


def read_tuning(frequency: float) -> Optional[TunerReading]:
    """Combine closest-string lookup, cents and status into one reading."""
    target = find_closest_string(frequency)
    if target is None:
        return None
    cents = calculate_cents(frequency, target.frequency)
    return TunerReading(target=target, cents=cents, status=get_tuning_status(cents))


def format_cents(cents: float) -> str:
    """Format cents for display: '0', '+n' or '-n'."""
    rounded = round_half_up(cents)
    if rounded == 0:
        return "0"
    return f"+{rounded}" if rounded > 0 else f"{rounded}"
