"""Filesystem locations for local capfetch state."""

import os
from pathlib import Path

STATE_DIR = ".capfetch"


def get_capfetch_home() -> Path:
    """Base directory for local state ({CAPFETCH_HOME or ~}/.capfetch)."""
    return Path(os.environ.get("CAPFETCH_HOME", str(Path.home()))) / STATE_DIR


def ensure_directory(path: Path) -> Path:
    """Ensure directory exists, creating it and all parents if necessary.

    Args:
        path: Directory path to ensure exists

    Returns:
        The path (for chaining)

    Raises:
        OSError: If directory cannot be created
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path
