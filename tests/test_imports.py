"""
Verify the hardware-free modules import without a sound card, camera or model.
"""

import importlib
import subprocess
import sys
from pathlib import Path

import pytest

MODULES = [
    "fretsight",
    "fretsight.note_types",
    "fretsight.music_theory",
    "fretsight.fretboard",
    "fretsight.scales",
    "fretsight.calibration",
    "fretsight.hand_tracking",
    "fretsight.hand_region",
    "fretsight.resolver",
    "fretsight.tuner",
    "fretsight.mock_sensors",
    "fretsight.logging_config",
    "fretsight.core",
    "fretsight.core.state",
    "fretsight.core.storage",
    "fretsight.core.config",
    "fretsight.core.scheduler",
    "fretsight.audio.pitch_pipeline",
    "fretsight.vision.hand_pipeline",
    "fretsight.cli.main",
]

HARDWARE_LIBRARIES = ["sounddevice", "aubio", "cv2", "mediapipe"]


@pytest.mark.parametrize("module_name", MODULES)
def test_module_imports(module_name):
    assert importlib.import_module(module_name) is not None


def test_core_does_not_load_hardware_libraries():
    # Fresh interpreter, so libraries loaded by other tests do not count
    code = (
        "import sys\n"
        + "".join(f"import {name}\n" for name in MODULES)
        + f"print([m for m in {HARDWARE_LIBRARIES!r} if m in sys.modules])"
    )
    result = subprocess.run(
        [sys.executable, "-c", code],
        capture_output=True,
        text=True,
        check=True,
        cwd=Path(__file__).resolve().parent.parent,
    )
    assert result.stdout.strip() == "[]"
