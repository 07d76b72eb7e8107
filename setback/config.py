# setback/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .paths import SAVES_DIR
from .state import DEFAULT_WINNING_SCORE


@dataclass(frozen=True)
class Settings:
    winning_score: int = DEFAULT_WINNING_SCORE
    saves_dir: Path = SAVES_DIR
    seed: Optional[int] = None
    relay_host: str = "0.0.0.0"
    relay_port: int = 3001
    log_level: str = "INFO"


def _int_env(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def load_settings(dotenv_path: Optional[str | Path] = None) -> Settings:
    """
    Read settings from the environment.

    Variables from a .env file (if present) are loaded first; variables already
    set in the environment win.
    """
    load_dotenv(dotenv_path)

    saves_dir = os.getenv("SETBACK_SAVES_DIR")
    return Settings(
        winning_score=_int_env("SETBACK_WINNING_SCORE", DEFAULT_WINNING_SCORE),
        saves_dir=Path(saves_dir) if saves_dir else SAVES_DIR,
        seed=_int_env("SETBACK_SEED", None),
        relay_host=os.getenv("SETBACK_RELAY_HOST", "0.0.0.0"),
        relay_port=_int_env("SETBACK_RELAY_PORT", 3001),
        log_level=os.getenv("SETBACK_LOG_LEVEL", "INFO"),
    )
