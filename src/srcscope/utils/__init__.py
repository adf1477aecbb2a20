"""Terminal and logging helpers."""
