"""Fuses pitch-derived candidate positions with the vision fret estimate.

A detected pitch can be played on up to six strings. The hand's estimated fret,
widened by a tolerance, is used to choose between them:

1. No note, or no candidates: confidence ``none``.
2. No hand: confidence ``low`` and every candidate is returned (audio-only mode).
3. Exactly one candidate inside the hand window: ``high``.
4. Several candidates inside the window: ``medium``, the one nearest the
   estimated fret wins and ties go to the lower string (first in table order).
5. No candidate inside the window: ``low`` and every candidate is returned,
   since the hand evidence looks unreliable.

The resolver keeps no state and is cheap enough to call every frame.
"""

from typing import List, Optional

from .fretboard import find_positions
from .logger import get_logger
from .note_types import (
    AudioData,
    ConfidenceLevel,
    FretPosition,
    ResolvedPosition,
    VisionData,
)

logger = get_logger(__name__)


def resolve_position(audio: AudioData, vision: VisionData) -> ResolvedPosition:
    """Resolve the most likely fret position from audio and vision evidence.

    Args:
        audio: Detected MIDI note and its candidate positions, in table order
        vision: Hand detection flag, estimated fret and +/- fret tolerance

    Returns:
        ResolvedPosition with confidence tier and a reasoning string
    """
    if audio.midi_note is None or not audio.possible_positions:
        return ResolvedPosition(
            position=None,
            confidence=ConfidenceLevel.NONE,
            all_matches=[],
            reasoning="No note detected",
        )

    candidates = list(audio.possible_positions)

    if not vision.hand_detected:
        return ResolvedPosition(
            position=None,
            confidence=ConfidenceLevel.LOW,
            all_matches=candidates,
            reasoning="Hand not detected - showing all possible positions",
        )

    estimated_fret = vision.estimated_fret
    min_fret = estimated_fret - vision.tolerance
    max_fret = estimated_fret + vision.tolerance

    matches = [pos for pos in candidates if min_fret <= pos.fret <= max_fret]

    if len(matches) == 1:
        match = matches[0]
        result = ResolvedPosition(
            position=match,
            confidence=ConfidenceLevel.HIGH,
            all_matches=matches,
            reasoning=(
                f"Matched: fret {match.fret} within hand region {min_fret}-{max_fret}"
            ),
        )
    elif matches:
        # sorted() is stable, so equal distances keep table order
        closest = sorted(matches, key=lambda pos: abs(pos.fret - estimated_fret))[0]
        result = ResolvedPosition(
            position=closest,
            confidence=ConfidenceLevel.MEDIUM,
            all_matches=matches,
            reasoning=(
                f"{len(matches)} matches in hand region {min_fret}-{max_fret}, "
                f"closest to fret {estimated_fret}"
            ),
        )
    else:
        result = ResolvedPosition(
            position=None,
            confidence=ConfidenceLevel.LOW,
            all_matches=candidates,
            reasoning=f"No positions match hand region {min_fret}-{max_fret}",
        )

    logger.debug(f"Resolved MIDI {audio.midi_note}: {result.reasoning}")
    return result


def get_positions_for_note(midi_note: Optional[int]) -> List[FretPosition]:
    """Get the candidate positions for a MIDI note, or [] when there is no note."""
    if midi_note is None:
        return []
    return find_positions(midi_note)
