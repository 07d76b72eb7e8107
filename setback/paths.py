# setback/paths.py
from __future__ import annotations

from pathlib import Path

# Default location for session saves, exports and score logs.
SAVES_DIR = Path(__file__).resolve().parent / "saves"


def ensure_dir(directory: Path) -> Path:
    """Create `directory` if it does not exist and return it."""
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def resolve_in(directory: Path, path_like: str | Path) -> Path:
    """
    Resolve a user-specified path against `directory`.

    Absolute paths are returned unchanged. Relative paths are anchored inside
    `directory` so exports and logs land next to the session save.
    """
    path = Path(path_like)
    if path.is_absolute():
        return path
    ensure_dir(directory)
    return directory / path
