"""Guitar fret-position detection from pitch and hand tracking."""

__version__ = "0.1.0"
