"""Factory for creating fretsight components from configuration."""

from typing import Optional, Dict, Type

from ..logger import get_logger
from ..hand_tracking import get_position_getter
from ..audio.pitch_detector import AubioPitchDetector
from ..audio.audio_input import SoundDeviceCapture, ToneCapture, WavFileCapture
from ..audio.pitch_pipeline import PitchPipeline
from ..vision.camera import OpenCVCamera
from ..vision.hand_landmarker import MediaPipeHandLandmarker
from ..vision.hand_pipeline import HandTrackingPipeline
from .config import ConfigManager
from .interfaces import ICaptureDevice, IHandLandmarker, IPitchDetector
from .state import AppState, Settings
from .storage import CalibrationStore, KeyValueStore

logger = get_logger(__name__)


class ComponentFactory:
    """Factory for creating fretsight components."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """Initialize the component factory.

        Args:
            config_manager: Configuration manager, or None to create a default one
        """
        self.config_manager = config_manager or ConfigManager()

        # Register default component implementations
        self.pitch_detector_classes: Dict[str, Type[IPitchDetector]] = {
            "default": AubioPitchDetector,
        }

        self.audio_capture_classes: Dict[str, Type[ICaptureDevice]] = {
            "default": SoundDeviceCapture,
            "tone": ToneCapture,
            "file": WavFileCapture,
        }

        self.camera_classes: Dict[str, Type[ICaptureDevice]] = {
            "default": OpenCVCamera,
        }

        self.hand_landmarker_classes: Dict[str, Type[IHandLandmarker]] = {
            "default": MediaPipeHandLandmarker,
        }

    def create_state(self) -> AppState:
        """Create the application state with persisted calibration and settings."""
        store = CalibrationStore(
            KeyValueStore(str(self.config_manager.config_dir / "store.json"))
        )
        settings = Settings.from_config(self.config_manager.get_config("settings"))
        return AppState(store=store, settings=settings)

    def create_pitch_detector(
        self, implementation: str = "default", **kwargs
    ) -> IPitchDetector:
        """Create a pitch detector.

        Args:
            implementation: Name of the implementation to use
            **kwargs: Additional parameters to pass to the constructor

        Returns:
            Pitch detector instance

        Raises:
            ValueError: If the implementation is not registered
        """
        if implementation not in self.pitch_detector_classes:
            raise ValueError(f"Unknown pitch detector implementation: {implementation}")

        audio_config = self.config_manager.get_config("audio_input")
        pitch_config = self.config_manager.get_config("pitch_detection")
        config = {
            "buffer_size": audio_config["buffer_size"],
            "sample_rate": audio_config["sample_rate"],
            "method": pitch_config["method"],
            "tolerance": pitch_config["tolerance"],
        }
        config.update(kwargs)

        cls = self.pitch_detector_classes[implementation]
        instance = cls(**config)

        logger.info(f"Created pitch detector: {implementation}")
        return instance

    def create_audio_capture(
        self, implementation: str = "default", **kwargs
    ) -> ICaptureDevice:
        """Create an audio capture device.

        Args:
            implementation: 'default' (sound card), 'tone' or 'file'
            **kwargs: Additional parameters to pass to the constructor

        Raises:
            ValueError: If the implementation is not registered
        """
        if implementation not in self.audio_capture_classes:
            raise ValueError(f"Unknown audio capture implementation: {implementation}")

        audio_config = self.config_manager.get_config("audio_input")
        if implementation == "default":
            config = dict(audio_config)
        elif implementation == "tone":
            config = {
                "sample_rate": audio_config["sample_rate"],
                "buffer_size": audio_config["buffer_size"],
            }
        else:
            config = {"buffer_size": audio_config["buffer_size"]}
        config.update(kwargs)

        cls = self.audio_capture_classes[implementation]
        instance = cls(**config)

        logger.info(f"Created audio capture: {implementation}")
        return instance

    def create_camera(self, implementation: str = "default", **kwargs) -> ICaptureDevice:
        """Create a camera capture device.

        Raises:
            ValueError: If the implementation is not registered
        """
        if implementation not in self.camera_classes:
            raise ValueError(f"Unknown camera implementation: {implementation}")

        instance = self.camera_classes[implementation](**kwargs)
        logger.info(f"Created camera: {implementation}")
        return instance

    def create_hand_landmarker(
        self, implementation: str = "default", **kwargs
    ) -> IHandLandmarker:
        """Create and load a hand landmark model.

        Raises:
            ValueError: If the implementation is not registered
        """
        if implementation not in self.hand_landmarker_classes:
            raise ValueError(f"Unknown hand landmarker implementation: {implementation}")

        tracking_config = self.config_manager.get_config("hand_tracking")
        config = {
            key: tracking_config[key]
            for key in (
                "model_path",
                "num_hands",
                "min_detection_confidence",
                "min_presence_confidence",
                "min_tracking_confidence",
            )
        }
        config.update(kwargs)

        cls = self.hand_landmarker_classes[implementation]
        instance = cls(**config)

        logger.info(f"Created hand landmarker: {implementation}")
        return instance

    def create_pitch_pipeline(self, state: AppState, **kwargs) -> PitchPipeline:
        """Create the audio pipeline, building any collaborator not provided."""
        pitch_config = self.config_manager.get_config("pitch_detection")

        if "capture_device" not in kwargs:
            kwargs["capture_device"] = self.create_audio_capture()
        if "pitch_detector" not in kwargs:
            kwargs["pitch_detector"] = self.create_pitch_detector()
        if "tone_device" not in kwargs:
            kwargs["tone_device"] = self.create_audio_capture("tone")
        kwargs.setdefault("clarity_threshold", pitch_config["clarity_threshold"])
        kwargs.setdefault("min_volume", pitch_config["min_volume"])

        instance = PitchPipeline(state, **kwargs)
        logger.info("Created pitch pipeline")
        return instance

    def create_hand_pipeline(self, state: AppState, **kwargs) -> HandTrackingPipeline:
        """Create the video pipeline, building any collaborator not provided."""
        tracking_config = self.config_manager.get_config("hand_tracking")

        if "camera" not in kwargs:
            kwargs["camera"] = self.create_camera()
        if "landmarker" not in kwargs:
            kwargs["landmarker"] = self.create_hand_landmarker()
        kwargs.setdefault("min_interval", tracking_config["min_interval_ms"] / 1000)
        kwargs.setdefault("smoothing_window", tracking_config["smoothing_window"])
        kwargs.setdefault("position_getter", get_position_getter(tracking_config["landmark"]))

        instance = HandTrackingPipeline(state, **kwargs)
        logger.info("Created hand tracking pipeline")
        return instance
