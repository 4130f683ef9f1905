"""Camera capture and hand tracking."""
