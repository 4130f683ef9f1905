"""Audio capture devices: live input, a diagnostic tone and WAV replay."""

from __future__ import annotations
import threading
import numpy as np
import sounddevice as sd
import soundfile as sf
from typing import ClassVar, List, Optional

from ..logger import get_logger
from ..note_types import DeviceInfo
from ..core.interfaces import DeviceError, IAudioStream, ICaptureDevice

logger = get_logger(__name__)


class RollingBuffer:
    """Fixed-size window over the most recent samples."""

    def __init__(self, size: int) -> None:
        self._data = np.zeros(size, dtype=np.float32)
        self._lock = threading.Lock()

    def write(self, samples: np.ndarray) -> None:
        samples = np.asarray(samples, dtype=np.float32)
        size = len(self._data)
        with self._lock:
            if len(samples) >= size:
                self._data[:] = samples[-size:]
            else:
                self._data = np.roll(self._data, -len(samples))
                self._data[-len(samples):] = samples

    def snapshot(self) -> np.ndarray:
        with self._lock:
            return self._data.copy()


class SoundDeviceStream(IAudioStream):
    """An open sounddevice input stream feeding a rolling buffer."""

    def __init__(
        self,
        device_id: Optional[int],
        sample_rate: int,
        buffer_size: int,
        channels: int,
    ) -> None:
        self._sample_rate = sample_rate
        self._buffer = RollingBuffer(buffer_size)
        self._stream = sd.InputStream(
            device=device_id,
            channels=channels,
            samplerate=sample_rate,
            callback=self._audio_callback,
            dtype="float32",
        )
        self._stream.start()

    def _audio_callback(
        self,
        indata: np.ndarray,
        _frames: int,
        _time_info,
        status: sd.CallbackFlags,
    ) -> None:
        """Copy incoming samples into the rolling buffer.

        Runs on the PortAudio thread, so it must stay fast and never block.
        """
        if status:
            logger.warning(f"Audio callback status: {status}")
        # Extract mono audio data (take first channel if multi-channel)
        self._buffer.write(indata[:, 0] if indata.ndim > 1 else indata)

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    def read(self) -> np.ndarray:
        if not self._stream.active:
            raise DeviceError("Audio input stream is no longer active")
        return self._buffer.snapshot()

    def close(self) -> None:
        self._stream.stop()
        self._stream.close()


class SoundDeviceCapture(ICaptureDevice):
    """Microphone and instrument-interface capture using sounddevice."""

    SAMPLE_RATE: ClassVar[int] = 44100  # Hz
    BUFFER_SIZE: ClassVar[int] = 4096  # Samples handed to the pitch detector
    CHANNELS: ClassVar[int] = 1  # Mono audio

    def __init__(
        self,
        sample_rate: Optional[int] = None,
        buffer_size: Optional[int] = None,
        channels: Optional[int] = None,
    ) -> None:
        """
        Args:
            sample_rate: Sample rate in Hz, or None for default (44100)
            buffer_size: Samples per analysis buffer, or None for default (4096)
            channels: Number of channels to open, or None for default (1)
        """
        self._sample_rate = sample_rate or self.SAMPLE_RATE
        self._buffer_size = buffer_size or self.BUFFER_SIZE
        self._channels = channels or self.CHANNELS

    def list_devices(self) -> List[DeviceInfo]:
        try:
            devices = sd.query_devices()
        except sd.PortAudioError as e:
            raise DeviceError(f"Could not query audio devices: {e}") from e
        return [
            DeviceInfo(device_id=str(index), name=device["name"])
            for index, device in enumerate(devices)
            if device["max_input_channels"] > 0
        ]

    def open(self, device_id: Optional[str]) -> SoundDeviceStream:
        """Open an input device by index; None opens the system default.

        Raises:
            DeviceError: If the device is missing, busy or refuses the settings
        """
        device = int(device_id) if device_id not in (None, "") else None
        try:
            sd.check_input_settings(
                device=device, channels=self._channels, samplerate=self._sample_rate
            )
            stream = SoundDeviceStream(
                device, self._sample_rate, self._buffer_size, self._channels
            )
        except (sd.PortAudioError, ValueError) as e:
            raise DeviceError(f"Could not open audio device {device_id}: {e}") from e
        logger.info(f"Audio input opened: device={device_id}, rate={self._sample_rate}Hz")
        return stream

    def close(self, handle: SoundDeviceStream) -> None:
        try:
            handle.close()
            logger.info("Audio input closed")
        except sd.PortAudioError as e:
            logger.error(f"Error closing audio input: {e}")


class ToneStream(IAudioStream):
    """Generates a continuous sine wave, one buffer per read."""

    def __init__(self, frequency: float, sample_rate: int, buffer_size: int, amplitude: float) -> None:
        self._frequency = frequency
        self._sample_rate = sample_rate
        self._buffer_size = buffer_size
        self._amplitude = amplitude
        self._position = 0

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    def read(self) -> np.ndarray:
        t = (np.arange(self._buffer_size) + self._position) / self._sample_rate
        self._position += self._buffer_size
        return (self._amplitude * np.sin(2 * np.pi * self._frequency * t)).astype(np.float32)


class ToneCapture(ICaptureDevice):
    """Test-tone source for checking the pitch path without an instrument.

    The device id is the tone frequency in Hz.
    """

    def __init__(self, sample_rate: int = 44100, buffer_size: int = 4096, amplitude: float = 0.5) -> None:
        self._sample_rate = sample_rate
        self._buffer_size = buffer_size
        self._amplitude = amplitude

    def list_devices(self) -> List[DeviceInfo]:
        return [DeviceInfo(device_id="440", name="Test tone (A4, 440 Hz)")]

    def open(self, device_id: Optional[str]) -> ToneStream:
        try:
            frequency = float(device_id) if device_id else 440.0
        except ValueError as e:
            raise DeviceError(f"Invalid test tone frequency: {device_id}") from e
        if frequency <= 0:
            raise DeviceError(f"Invalid test tone frequency: {device_id}")
        logger.info(f"Test tone started at {frequency:.2f} Hz")
        return ToneStream(frequency, self._sample_rate, self._buffer_size, self._amplitude)

    def close(self, handle: ToneStream) -> None:
        logger.info("Test tone stopped")


class WavFileStream(IAudioStream):
    """Replays a sound file buffer by buffer."""

    def __init__(self, file_path: str, buffer_size: int, loop: bool, gain: float) -> None:
        data, self._sample_rate = sf.read(file_path, dtype="float32", always_2d=True)
        # Mono: first channel only
        self._data = data[:, 0] * gain
        self._buffer_size = buffer_size
        self._loop = loop
        self._position = 0

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    def read(self) -> np.ndarray:
        end = self._position + self._buffer_size
        if end > len(self._data):
            if not self._loop:
                raise DeviceError("End of audio file")
            self._position, end = 0, self._buffer_size
        chunk = self._data[self._position:end]
        # Overlapping windows, advancing by a quarter buffer like a live analyser
        self._position += max(1, self._buffer_size // 4)
        return chunk


class WavFileCapture(ICaptureDevice):
    """Audio capture from a sound file, for offline runs. The device id is the path."""

    def __init__(self, buffer_size: int = 4096, loop: bool = False, gain: float = 1.0) -> None:
        self._buffer_size = buffer_size
        self._loop = loop
        self._gain = gain

    def list_devices(self) -> List[DeviceInfo]:
        return []

    def open(self, device_id: Optional[str]) -> WavFileStream:
        if not device_id:
            raise DeviceError("No audio file given")
        try:
            stream = WavFileStream(device_id, self._buffer_size, self._loop, self._gain)
        except (OSError, RuntimeError, sf.LibsndfileError) as e:
            raise DeviceError(f"Could not open audio file {device_id}: {e}") from e
        logger.info(f"Audio file opened: {device_id}")
        return stream

    def close(self, handle: WavFileStream) -> None:
        pass
