"""Utility functions for working with musical notes and frequencies."""

import math
from typing import Dict, List

from .logger import get_logger
from .note_types import NoteInfo

# Get logger for this module
logger = get_logger(__name__)

# Chromatic scale starting at C, sharp spelling
NOTE_NAMES: List[str] = [
    "C",
    "C#",
    "D",
    "D#",
    "E",
    "F",
    "F#",
    "G",
    "G#",
    "A",
    "A#",
    "B",
]

SHARP_TO_FLAT: Dict[str, str] = {
    "C#": "Db",
    "D#": "Eb",
    "F#": "Gb",
    "G#": "Ab",
    "A#": "Bb",
}

FLAT_TO_SHARP: Dict[str, str] = {v: k for k, v in SHARP_TO_FLAT.items()}

A4_FREQUENCY = 440.0
A4_MIDI = 69

# Low E (E2) is ~82Hz, high E at the 24th fret (E6) is ~1319Hz
GUITAR_MIN_FREQUENCY = 75.0
GUITAR_MAX_FREQUENCY = 1400.0


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def frequency_to_midi(frequency: float) -> int:
    """Convert a frequency in Hz to the nearest MIDI note number.

    The caller must pass a positive frequency; A4 = 440Hz = MIDI 69.
    """
    return round_half_up(12 * math.log2(frequency / A4_FREQUENCY) + A4_MIDI)


def midi_to_frequency(midi_note: int) -> float:
    """Convert a MIDI note number to its equal-tempered frequency in Hz."""
    return A4_FREQUENCY * 2.0 ** ((midi_note - A4_MIDI) / 12.0)


def midi_to_note_name(midi_note: int) -> str:
    return NOTE_NAMES[midi_note % 12]


def midi_to_octave(midi_note: int) -> int:
    """Get the Scientific Pitch Notation octave (middle C = C4 = MIDI 60)."""
    return midi_note // 12 - 1


def frequency_to_note_info(frequency: float) -> NoteInfo:
    """Get complete note info for a detected frequency.

    Args:
        frequency: Detected frequency in Hz, must be positive

    Returns:
        NoteInfo with the nearest MIDI note; ``frequency`` keeps the raw value
    """
    midi_note = frequency_to_midi(frequency)
    return NoteInfo(
        midi_note=midi_note,
        note_name=midi_to_note_name(midi_note),
        octave=midi_to_octave(midi_note),
        frequency=frequency,
    )


def format_note(note_name: str, octave: int) -> str:
    """Format a note for display, e.g. ``format_note('C#', 3) == 'C#3'``."""
    return f"{note_name}{octave}"


def is_guitar_range(frequency: float) -> bool:
    """Check if a frequency is within the playable range of a 24-fret guitar."""
    return GUITAR_MIN_FREQUENCY <= frequency <= GUITAR_MAX_FREQUENCY


def convert_note_notation(note_name: str, to_flats: bool = False) -> str:
    """Convert a note name between sharp and flat notation.

    Args:
        note_name: The note name to convert (e.g., 'F#2' or 'Gb2')
        to_flats: If True, convert to flats (e.g., 'Gb2'), otherwise to sharps (e.g., 'F#2')

    Returns:
        str: The converted note name, or original if no conversion needed or invalid

    Examples:
        >>> convert_note_notation('F#2', to_flats=True)
        'Gb2'
        >>> convert_note_notation('Gb2', to_flats=False)
        'F#2'
    """
    if not note_name or not isinstance(note_name, str):
        return note_name or ""

    note_part = "".join(c for c in note_name if not c.isdigit() and c != "-").strip()
    octave_part = note_name[len(note_part):]

    if to_flats and note_part in SHARP_TO_FLAT:
        return f"{SHARP_TO_FLAT[note_part]}{octave_part}"
    elif not to_flats and note_part in FLAT_TO_SHARP:
        return f"{FLAT_TO_SHARP[note_part]}{octave_part}"

    return note_name
