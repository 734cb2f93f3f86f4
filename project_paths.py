# project_paths.py
"""
Where Preamble finds its ``.env``.

``PREAMBLE_ENV_FILE`` points at an explicit file (containers mount one);
otherwise the file sits next to ``pyproject.toml`` at the checkout root.
"""
from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

_ROOT_MARKERS = ("pyproject.toml", ".env")


@lru_cache(maxsize=1)
def get_project_root(start: str | Path | None = None) -> Path:
    if env := os.getenv("PREAMBLE_ROOT"):
        return Path(env).resolve()

    here = Path(start or __file__).resolve()
    for p in (here, *here.parents):
        if (p / "preamble").is_dir() and any((p / m).exists() for m in _ROOT_MARKERS):
            return p

    # installed as a wheel: no checkout around us
    return Path.cwd().resolve()


def dotenv_path() -> Path:
    explicit = os.getenv("PREAMBLE_ENV_FILE")
    if explicit:
        return Path(explicit).expanduser().resolve()
    return get_project_root(__file__) / ".env"


def load_env(override: bool = False) -> bool:
    """Load the project .env once for the whole app. Returns True if a file was read."""
    path = dotenv_path()
    if not path.is_file():
        return False
    return load_dotenv(path, override=override)
