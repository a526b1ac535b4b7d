"""Small helpers shared by services and workflows."""

from pathlib import Path


def to_wine_path(path: Path) -> str:
    """Convert a Linux path to the Z: drive form Wine understands."""
    return "Z:" + str(path).replace("/", "\\")


def format_duration(seconds: float) -> str:
    """Format a duration as '1m 05s' or '42s'."""
    seconds = int(seconds)
    minutes, secs = divmod(seconds, 60)
    if minutes:
        return f"{minutes}m {secs:02d}s"
    return f"{secs}s"
