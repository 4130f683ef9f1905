"""Application state shared by the audio pipeline, vision pipeline and consumers.

Each field group has exactly one writer: the audio pipeline calls
``update_audio``, the vision pipeline calls ``update_vision``, and the user
drives calibration and settings. Writers swap in a new immutable snapshot of
their group, so readers on other threads always see a consistent group and no
locking is needed. Resolved position and hand region are computed on read.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..calibration import CalibrationStep, CalibrationWizard
from ..fretboard import DISPLAY_FRETS, find_positions
from ..hand_region import get_fret_range
from ..logger import get_logger
from ..note_types import (
    AudioData,
    Calibration,
    FretPosition,
    FretRange,
    Landmark,
    NoteInfo,
    ResolvedPosition,
    ScalePosition,
    VisionData,
)
from ..resolver import resolve_position
from ..scales import ScaleType, get_scale_positions_on_fretboard
from .events import EventEmitter, StateEventType
from .storage import AUDIO_DEVICE_KEY, CAMERA_DEVICE_KEY, CalibrationStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class AudioState:
    is_listening: bool = False
    device_id: Optional[str] = None
    current_note: Optional[NoteInfo] = None
    possible_positions: List[FretPosition] = field(default_factory=list)
    input_level: float = 0.0
    clarity: float = 0.0


@dataclass(frozen=True)
class VisionState:
    is_tracking: bool = False
    device_id: Optional[str] = None
    hand_detected: bool = False
    landmarks: Optional[Sequence[Landmark]] = None
    estimated_fret: int = 0
    smoothed_x: Optional[float] = None
    is_loading: bool = True


@dataclass(frozen=True)
class Settings:
    is_left_handed: bool = False
    fret_tolerance: int = 2
    show_all_positions: bool = False
    show_hand_region: bool = True
    practice_enabled: bool = False
    practice_root_note: str = "A"
    practice_scale_type: ScaleType = ScaleType.PENTATONIC_MINOR
    show_note_labels: bool = True
    show_root_hints: bool = True

    @classmethod
    def from_config(cls, config: dict) -> Settings:
        """Build settings from a config section, ignoring unknown keys."""
        known = {f.name for f in dataclasses.fields(cls)}
        values = {k: v for k, v in config.items() if k in known}
        if "practice_scale_type" in values:
            try:
                values["practice_scale_type"] = ScaleType(values["practice_scale_type"])
            except ValueError:
                logger.warning(
                    f"Unknown practice scale type {values['practice_scale_type']!r}, "
                    f"using {cls.practice_scale_type.value}"
                )
                del values["practice_scale_type"]
        return cls(**values)


class AppState:
    """Explicit state holder passed to each pipeline and to consumers."""

    def __init__(
        self,
        store: Optional[CalibrationStore] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        """
        Args:
            store: Persistence for calibration and device ids
            settings: Initial settings, defaults if None
        """
        self._store = store or CalibrationStore()
        self.events = EventEmitter()

        self._audio = AudioState(device_id=self._store.load_device(AUDIO_DEVICE_KEY))
        self._vision = VisionState(device_id=self._store.load_device(CAMERA_DEVICE_KEY))
        self._settings = settings or Settings()
        self._calibration: Optional[Calibration] = self._store.load_calibration()
        self._wizard = CalibrationWizard()
        self._tuner_open = False

        if self._calibration is not None:
            logger.info("Loaded saved calibration")

    # Readers

    @property
    def audio(self) -> AudioState:
        return self._audio

    @property
    def vision(self) -> VisionState:
        return self._vision

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def calibration(self) -> Optional[Calibration]:
        return self._calibration

    @property
    def calibration_step(self) -> CalibrationStep:
        return self._wizard.step

    @property
    def wizard(self) -> CalibrationWizard:
        return self._wizard

    @property
    def tuner_open(self) -> bool:
        return self._tuner_open

    def is_calibrated(self) -> bool:
        return self._calibration is not None

    def get_resolved_position(self) -> ResolvedPosition:
        audio, vision = self._audio, self._vision
        return resolve_position(
            AudioData(
                midi_note=audio.current_note.midi_note if audio.current_note else None,
                possible_positions=audio.possible_positions,
            ),
            VisionData(
                hand_detected=vision.hand_detected,
                estimated_fret=vision.estimated_fret,
                tolerance=self._settings.fret_tolerance,
            ),
        )

    def get_fret_range(self) -> FretRange:
        return get_fret_range(
            self._vision.estimated_fret,
            self._settings.fret_tolerance,
            self._settings.is_left_handed,
        )

    def get_scale_positions(self) -> List[ScalePosition]:
        return get_scale_positions_on_fretboard(
            self._settings.practice_root_note,
            self._settings.practice_scale_type,
            DISPLAY_FRETS,
        )

    # Audio pipeline writer

    def update_audio(self, **changes) -> None:
        """Replace fields of the audio group.

        Setting ``current_note`` also recomputes ``possible_positions``.
        """
        if "current_note" in changes:
            note = changes["current_note"]
            changes["possible_positions"] = find_positions(note.midi_note) if note else []
        self._audio = dataclasses.replace(self._audio, **changes)
        self.events.emit(StateEventType.AUDIO_CHANGED, self._audio)

    def set_audio_device(self, device_id: Optional[str]) -> None:
        self._store.save_device(AUDIO_DEVICE_KEY, device_id)
        self._audio = dataclasses.replace(self._audio, device_id=device_id)
        self.events.emit(StateEventType.DEVICE_CHANGED, "audio", device_id)

    # Vision pipeline writer

    def update_vision(self, **changes) -> None:
        self._vision = dataclasses.replace(self._vision, **changes)
        self.events.emit(StateEventType.VISION_CHANGED, self._vision)

    def set_camera_device(self, device_id: Optional[str]) -> None:
        self._store.save_device(CAMERA_DEVICE_KEY, device_id)
        self._vision = dataclasses.replace(self._vision, device_id=device_id)
        self.events.emit(StateEventType.DEVICE_CHANGED, "camera", device_id)

    # Calibration

    def set_calibration(self, calibration: Optional[Calibration]) -> None:
        if calibration is not None:
            self._store.save_calibration(calibration)
        self._calibration = calibration
        self.events.emit(StateEventType.CALIBRATION_CHANGED, calibration)

    def start_calibration(self) -> None:
        self._wizard.start()
        self.events.emit(StateEventType.CALIBRATION_CHANGED, self._calibration)

    def capture_picking_zone(self, x_position: float) -> None:
        self._wizard.capture_picking_zone(x_position)
        self.events.emit(StateEventType.CALIBRATION_CHANGED, self._calibration)

    def capture_fret1(self, x_position: float) -> None:
        self._wizard.capture_fret1(x_position)
        self.events.emit(StateEventType.CALIBRATION_CHANGED, self._calibration)

    def capture_fret12(self, x_position: float) -> bool:
        """Finish the wizard's last capture step.

        Returns:
            True if the calibration was accepted and saved. On rejection nothing
            is stored and the wizard is back at the fret 1 step.
        """
        calibration = self._wizard.capture_fret12(
            x_position, self._settings.is_left_handed
        )
        if calibration is None:
            self.events.emit(StateEventType.CALIBRATION_CHANGED, self._calibration)
            return False
        self.set_calibration(calibration)
        return True

    def finish_calibration(self) -> None:
        self._wizard.finish()
        self.events.emit(StateEventType.CALIBRATION_CHANGED, self._calibration)

    def cancel_calibration(self) -> None:
        """Abandon a wizard run, keeping the current and saved calibration."""
        self._wizard.reset()
        logger.info("Calibration cancelled")
        self.events.emit(StateEventType.CALIBRATION_CHANGED, self._calibration)

    def reset_calibration(self) -> None:
        self._store.clear_calibration()
        self._wizard.reset()
        self._calibration = None
        logger.info("Calibration cleared")
        self.events.emit(StateEventType.CALIBRATION_CHANGED, None)

    # Settings

    def update_settings(self, **changes) -> None:
        if "practice_scale_type" in changes:
            changes["practice_scale_type"] = ScaleType(changes["practice_scale_type"])
        self._settings = dataclasses.replace(self._settings, **changes)
        self.events.emit(StateEventType.SETTINGS_CHANGED, self._settings)

    def toggle_left_handed(self) -> None:
        """Flip handedness, rewriting the saved calibration to match."""
        is_left_handed = not self._settings.is_left_handed
        self._settings = dataclasses.replace(self._settings, is_left_handed=is_left_handed)
        if self._calibration is not None:
            self.set_calibration(
                dataclasses.replace(self._calibration, is_left_handed=is_left_handed)
            )
        self.events.emit(StateEventType.SETTINGS_CHANGED, self._settings)

    # Tuner

    def open_tuner(self) -> None:
        self._tuner_open = True

    def close_tuner(self) -> None:
        self._tuner_open = False
