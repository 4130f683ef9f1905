"""Persistent key-value storage for calibration and device selection.

Missing or malformed data is treated as absent: loading never raises, it logs
and returns None.
"""

import json
import math
import os
from pathlib import Path
from typing import Any, Dict, Optional

from ..calibration import is_calibration_valid
from ..logger import get_logger
from ..note_types import Calibration

logger = get_logger(__name__)

CALIBRATION_KEY = "calibration"
AUDIO_DEVICE_KEY = "audio_device"
CAMERA_DEVICE_KEY = "camera_device"


def default_data_dir() -> Path:
    return Path(os.path.expanduser("~")) / ".config" / "fretsight"


class KeyValueStore:
    """Small JSON-file backed key-value store."""

    def __init__(self, path: Optional[str] = None):
        """Initialize the store.

        Args:
            path: JSON file to use, or None for ~/.config/fretsight/store.json
        """
        self.path = Path(path) if path else default_data_dir() / "store.json"

    def _read_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read {self.path}, treating as empty: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Unexpected content in {self.path}, treating as empty")
            return {}
        return data

    def _write_all(self, data: Dict[str, Any]) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as f:
                json.dump(data, f, indent=2)
            return True
        except OSError as e:
            logger.error(f"Error saving {self.path}: {e}")
            return False

    def get(self, key: str, default: Any = None) -> Any:
        return self._read_all().get(key, default)

    def set(self, key: str, value: Any) -> bool:
        data = self._read_all()
        data[key] = value
        return self._write_all(data)

    def remove(self, key: str) -> bool:
        data = self._read_all()
        if key not in data:
            return True
        del data[key]
        return self._write_all(data)


class CalibrationStore:
    """Calibration and device-id persistence on top of a KeyValueStore."""

    def __init__(self, store: Optional[KeyValueStore] = None):
        self._store = store or KeyValueStore()

    def load_calibration(self) -> Optional[Calibration]:
        """Load the saved calibration, or None if absent or unreadable."""
        raw = self._store.get(CALIBRATION_KEY)
        if raw is None:
            return None
        try:
            calibration = Calibration.from_dict(raw)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring malformed stored calibration: {e}")
            return None

        positions = (calibration.fret1_x, calibration.fret12_x, calibration.picking_boundary_x)
        if not all(math.isfinite(x) for x in positions):
            logger.warning(f"Ignoring stored calibration with non-finite positions: {positions}")
            return None
        if not is_calibration_valid(calibration):
            logger.warning(
                f"Ignoring stored calibration with fret 1 ({calibration.fret1_x:.3f}) "
                f"too close to fret 12 ({calibration.fret12_x:.3f})"
            )
            return None
        return calibration

    def save_calibration(self, calibration: Calibration) -> bool:
        saved = self._store.set(CALIBRATION_KEY, calibration.to_dict())
        if saved:
            logger.info("Calibration saved")
        return saved

    def clear_calibration(self) -> bool:
        return self._store.remove(CALIBRATION_KEY)

    def load_device(self, key: str) -> Optional[str]:
        value = self._store.get(key)
        return str(value) if value not in (None, "") else None

    def save_device(self, key: str, device_id: Optional[str]) -> bool:
        """Remember a selected device. Empty ids are not written."""
        if not device_id:
            return False
        return self._store.set(key, device_id)
