"""Type definitions for the fretsight project."""

from __future__ import annotations

import time
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class NoteInfo:
    """A detected pitch snapped to the nearest equal-tempered note."""

    midi_note: int
    note_name: str  # One of the 12 sharp-spelled pitch classes
    octave: int
    frequency: float  # Raw detected frequency in Hz, not the snapped one

    def __str__(self):
        return f"{self.note_name}{self.octave}"


@dataclass(frozen=True)
class FretPosition:
    """Represents a position on the guitar fretboard."""

    string: int  # 1 = high E (thinnest) ... 6 = low E
    fret: int  # 0 for open string

    def __str__(self):
        return f"S{self.string}F{self.fret}"


@dataclass(frozen=True)
class ScalePosition(FretPosition):
    """A fretboard position that belongs to the selected practice scale."""

    note_name: str = ""
    is_root: bool = False
    midi_note: int = 0


@dataclass(frozen=True)
class GuitarString:
    """One entry of the static tuning table."""

    string: int
    open_note: str
    open_midi: int
    name: str  # e.g. 'E2'


@dataclass(frozen=True)
class TuningTarget:
    """Reference pitch for one open string in standard tuning."""

    string: int
    note: str
    octave: int
    midi: int
    frequency: float
    label: str


class ConfidenceLevel(str, Enum):
    """How sure the resolver is about the position it picked."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class TuningStatus(str, Enum):
    IN_TUNE = "in-tune"
    CLOSE = "close"
    FLAT = "flat"
    SHARP = "sharp"


@dataclass(frozen=True)
class AudioData:
    """Audio-side input to the position resolver."""

    midi_note: Optional[int]
    possible_positions: List[FretPosition] = field(default_factory=list)


@dataclass(frozen=True)
class VisionData:
    """Vision-side input to the position resolver."""

    hand_detected: bool
    estimated_fret: int
    tolerance: int  # +/- N frets


@dataclass(frozen=True)
class ResolvedPosition:
    """Result of fusing the audio and vision evidence."""

    position: Optional[FretPosition]
    confidence: ConfidenceLevel
    all_matches: List[FretPosition]
    reasoning: str


@dataclass(frozen=True)
class FretRange:
    """Inclusive range of frets the fretting hand can currently reach."""

    min: int
    max: int

    def __contains__(self, fret: int) -> bool:
        return self.min <= fret <= self.max


@dataclass
class Calibration:
    """Three-point mapping from normalized camera x to fret number."""

    fret1_x: float  # Hand x at fret 1 (normalized 0-1)
    fret12_x: float  # Hand x at fret 12 (normalized 0-1)
    picking_boundary_x: float  # Boundary of the picking hand exclusion zone
    is_left_handed: bool = False
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Calibration:
        """Build a calibration from its stored form.

        Raises:
            KeyError: If a required field is missing
            TypeError, ValueError: If a field has the wrong type
        """
        return cls(
            fret1_x=float(data["fret1_x"]),
            fret12_x=float(data["fret12_x"]),
            picking_boundary_x=float(data["picking_boundary_x"]),
            is_left_handed=bool(data.get("is_left_handed", False)),
            timestamp=float(data.get("timestamp", 0.0)),
        )


@dataclass(frozen=True)
class Landmark:
    """One hand keypoint in normalized image space."""

    x: float
    y: float
    z: float = 0.0


@dataclass(frozen=True)
class DeviceInfo:
    """A capture device as reported by a capability implementation."""

    device_id: str
    name: str
