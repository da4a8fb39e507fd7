"""Core configuration, errors and shared helpers for VisionDesk."""
