"""Scale patterns and scale membership over the fingerboard."""

from enum import Enum
from typing import Dict, List

from .fretboard import FRET_COUNT, GUITAR_STRINGS
from .music_theory import NOTE_NAMES
from .note_types import ScalePosition


class ScaleType(str, Enum):
    PENTATONIC_MINOR = "pentatonic_minor"
    PENTATONIC_MAJOR = "pentatonic_major"
    MAJOR = "major"
    MINOR = "minor"
    BLUES = "blues"


# Semitones from the root
SCALE_PATTERNS: Dict[ScaleType, List[int]] = {
    ScaleType.PENTATONIC_MINOR: [0, 3, 5, 7, 10],  # A minor pent: A, C, D, E, G
    ScaleType.PENTATONIC_MAJOR: [0, 2, 4, 7, 9],  # A major pent: A, B, C#, E, F#
    ScaleType.MAJOR: [0, 2, 4, 5, 7, 9, 11],
    ScaleType.MINOR: [0, 2, 3, 5, 7, 8, 10],
    ScaleType.BLUES: [0, 3, 5, 6, 7, 10],  # A blues: A, C, D, D#, E, G
}

SCALE_DISPLAY_NAMES: Dict[ScaleType, str] = {
    ScaleType.PENTATONIC_MINOR: "Minor Pentatonic",
    ScaleType.PENTATONIC_MAJOR: "Major Pentatonic",
    ScaleType.MAJOR: "Major",
    ScaleType.MINOR: "Minor",
    ScaleType.BLUES: "Blues",
}


def get_note_index(note_name: str) -> int:
    """Get the chromatic index (0-11) for a sharp-spelled note name.

    Raises:
        ValueError: If the name is not one of the 12 pitch classes
    """
    return NOTE_NAMES.index(note_name)


def get_note_name(index: int) -> str:
    """Get the note name for a chromatic index, wrapping negatives and overflow."""
    return NOTE_NAMES[index % 12]


def _interval(midi_note: int, root_note: str) -> int:
    return (midi_note % 12 - get_note_index(root_note)) % 12


def is_root_note(midi_note: int, root_note: str) -> bool:
    return midi_note % 12 == get_note_index(root_note)


def is_in_scale(midi_note: int, root_note: str, scale_type: ScaleType) -> bool:
    return _interval(midi_note, root_note) in SCALE_PATTERNS[ScaleType(scale_type)]


def get_scale_midi_notes(
    root_note: str,
    scale_type: ScaleType,
    min_midi: int = 40,
    max_midi: int = 88,
) -> List[int]:
    """Get all MIDI notes of a scale within an inclusive range."""
    return [
        midi
        for midi in range(min_midi, max_midi + 1)
        if is_in_scale(midi, root_note, scale_type)
    ]


def get_scale_positions_on_fretboard(
    root_note: str,
    scale_type: ScaleType,
    max_fret: int = FRET_COUNT,
) -> List[ScalePosition]:
    """Get every fretboard position that belongs to a scale.

    Args:
        root_note: Root pitch class (e.g., 'A')
        scale_type: Which scale pattern to apply
        max_fret: Highest fret to include

    Returns:
        Positions grouped by string in tuning-table order, frets ascending
    """
    pattern = SCALE_PATTERNS[ScaleType(scale_type)]
    positions = []

    for guitar_string in GUITAR_STRINGS:
        for fret in range(max_fret + 1):
            midi_note = guitar_string.open_midi + fret
            interval = _interval(midi_note, root_note)
            if interval in pattern:
                positions.append(
                    ScalePosition(
                        string=guitar_string.string,
                        fret=fret,
                        note_name=get_note_name(midi_note),
                        is_root=interval == 0,
                        midi_note=midi_note,
                    )
                )

    return positions


def get_all_root_notes() -> List[str]:
    return list(NOTE_NAMES)


def get_all_scale_types() -> List[ScaleType]:
    return list(SCALE_PATTERNS)
