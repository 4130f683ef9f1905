"""Static fingerboard model: tuning table and note-to-position search."""

from typing import List, Optional

from .note_types import FretPosition, GuitarString

# Standard tuning (EADGBE), low string first. Consumers rely on this order.
GUITAR_STRINGS: List[GuitarString] = [
    GuitarString(string=6, open_note="E", open_midi=40, name="E2"),  # Low E
    GuitarString(string=5, open_note="A", open_midi=45, name="A2"),
    GuitarString(string=4, open_note="D", open_midi=50, name="D3"),
    GuitarString(string=3, open_note="G", open_midi=55, name="G3"),
    GuitarString(string=2, open_note="B", open_midi=59, name="B3"),
    GuitarString(string=1, open_note="E", open_midi=64, name="E4"),  # High E
]

FRET_COUNT = 24
DISPLAY_FRETS = 15

# Returned by get_midi_for_position for a string number outside 1-6
INVALID_MIDI = -1

SINGLE_DOT_FRETS = [3, 5, 7, 9, 15, 17, 19, 21]
DOUBLE_DOT_FRETS = [12, 24]


def _find_string(string_number: int) -> Optional[GuitarString]:
    for guitar_string in GUITAR_STRINGS:
        if guitar_string.string == string_number:
            return guitar_string
    return None


def find_positions(midi_note: int, max_fret: int = FRET_COUNT) -> List[FretPosition]:
    """Find all positions on the fretboard where a MIDI note can be played.

    Args:
        midi_note: MIDI note number to look up
        max_fret: Highest fret to consider

    Returns:
        At most one position per string, in tuning-table order (low E first)
    """
    positions = []
    for guitar_string in GUITAR_STRINGS:
        fret = midi_note - guitar_string.open_midi
        if 0 <= fret <= max_fret:
            positions.append(FretPosition(string=guitar_string.string, fret=fret))
    return positions


def get_midi_for_position(string: int, fret: int) -> int:
    """Get the MIDI note for a string/fret pair, or INVALID_MIDI for an unknown string."""
    guitar_string = _find_string(string)
    if guitar_string is None:
        return INVALID_MIDI
    return guitar_string.open_midi + fret


def has_fret_marker(fret: int) -> Optional[str]:
    """Return 'single' or 'double' for inlay frets, None otherwise."""
    if fret in DOUBLE_DOT_FRETS:
        return "double"
    if fret in SINGLE_DOT_FRETS:
        return "single"
    return None


def get_string_name(string_number: int) -> str:
    guitar_string = _find_string(string_number)
    return guitar_string.name if guitar_string else f"String {string_number}"
