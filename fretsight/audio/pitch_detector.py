"""Monophonic pitch detection backed by aubio."""

from __future__ import annotations
import numpy as np
import aubio
from typing import ClassVar, Optional, Tuple

from ..logger import get_logger
from ..core.interfaces import IPitchDetector

logger = get_logger(__name__)


class AubioPitchDetector(IPitchDetector):
    """Pitch detector returning aubio's confidence as the clarity score."""

    DEFAULT_BUFFER_SIZE: ClassVar[int] = 4096

    def __init__(
        self,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        sample_rate: int = 44100,
        method: str = "yin",
        tolerance: float = 0.8,
    ) -> None:
        """Initialize the detector.

        Args:
            buffer_size: Samples per analysis buffer; every buffer is analysed whole
            sample_rate: Initial sample rate in Hz, re-created if a stream differs
            method: aubio pitch method ('yin', 'yinfft', ...)
            tolerance: aubio pitch tolerance (0.0 to 1.0)
        """
        self._buffer_size = buffer_size
        self._method = method
        self._tolerance = tolerance
        self._sample_rate: Optional[int] = None
        self._pitch = None
        self._create(sample_rate)

    def _create(self, sample_rate: int) -> None:
        self._pitch = aubio.pitch(
            self._method, self._buffer_size, self._buffer_size, sample_rate
        )
        self._pitch.set_unit("Hz")
        self._pitch.set_tolerance(self._tolerance)
        self._sample_rate = sample_rate
        logger.info(
            f"Pitch detector initialized: method={self._method}, "
            f"buffer={self._buffer_size}, sample_rate={sample_rate}"
        )

    def find_pitch(self, samples: np.ndarray, sample_rate: int) -> Tuple[float, float]:
        """Detect the pitch of a buffer.

        Args:
            samples: Mono time-domain samples
            sample_rate: Sample rate of ``samples`` in Hz

        Returns:
            (frequency in Hz, clarity 0-1); frequency is 0 when nothing is found
        """
        if sample_rate != self._sample_rate:
            self._create(sample_rate)

        samples = np.asarray(samples, dtype=np.float32)
        if len(samples) > self._buffer_size:
            samples = samples[-self._buffer_size:]
        elif len(samples) < self._buffer_size:
            padding = np.zeros(self._buffer_size - len(samples), dtype=np.float32)
            samples = np.concatenate((padding, samples))

        frequency = float(self._pitch(samples)[0])
        clarity = float(self._pitch.get_confidence())
        return frequency, max(0.0, min(1.0, clarity))
