"""Event system for fretsight components."""

from typing import Any, Callable, Dict, List
from enum import Enum, auto

from ..logger import get_logger

logger = get_logger(__name__)


class StateEventType(Enum):
    """Field groups of the application state that can change."""

    AUDIO_CHANGED = auto()
    VISION_CHANGED = auto()
    CALIBRATION_CHANGED = auto()
    SETTINGS_CHANGED = auto()
    DEVICE_CHANGED = auto()
    ERROR = auto()


class EventEmitter:
    """Event emitter for fretsight components."""

    def __init__(self):
        """Initialize the event emitter."""
        self._listeners: Dict[Any, List[Callable]] = {}

    def on(self, event_type: Any, callback: Callable) -> None:
        """Register a callback for an event type.

        Args:
            event_type: Event type to listen for
            callback: Function to call when the event occurs
        """
        if event_type not in self._listeners:
            self._listeners[event_type] = []

        if callback not in self._listeners[event_type]:
            self._listeners[event_type].append(callback)
            logger.debug(f"Added listener for event {event_type}")

    def off(self, event_type: Any, callback: Callable) -> None:
        """Remove a previously registered callback, if present."""
        listeners = self._listeners.get(event_type, [])
        if callback in listeners:
            listeners.remove(callback)

    def emit(self, event_type: Any, *args, **kwargs) -> None:
        """Emit an event.

        A failing listener is logged and does not stop the remaining listeners
        or the pipeline that emitted the event.

        Args:
            event_type: Event type to emit
            *args: Positional arguments to pass to listeners
            **kwargs: Keyword arguments to pass to listeners
        """
        for callback in list(self._listeners.get(event_type, [])):
            try:
                callback(*args, **kwargs)
            except Exception as e:
                logger.error(f"Error in event listener for {event_type}: {e}")

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners = {}
        logger.debug("Cleared all event listeners")
