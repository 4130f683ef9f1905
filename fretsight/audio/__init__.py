"""Audio capture and pitch detection."""
