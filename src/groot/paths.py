"""
paths.py — In-project storage layout
=====================================
All GROOT data lives in ``.groot/`` inside the project directory:

  .groot/
  ├── curriculum.json        the active curriculum
  ├── active-session.json    marker for the currently open session
  ├── sessions/              closed session records
  │   └── YYYY-MM-DD-<slug>-phase-N.json
  └── journal/               learning journal entries
      └── YYYY-MM-DD-<slug>.md

Every helper takes an optional *base* directory (default: the current
working directory) so tests can point them at ``tmp_path``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

GROOT_DIR = ".groot"


def _base(base: Optional[Path]) -> Path:
    return Path(base) if base is not None else Path.cwd()


def get_groot_dir(base: Optional[Path] = None) -> Path:
    return _base(base) / GROOT_DIR


def get_curriculum_path(base: Optional[Path] = None) -> Path:
    return get_groot_dir(base) / "curriculum.json"


def get_sessions_dir(base: Optional[Path] = None) -> Path:
    return get_groot_dir(base) / "sessions"


def get_journal_dir(base: Optional[Path] = None) -> Path:
    return get_groot_dir(base) / "journal"


def get_active_marker_path(base: Optional[Path] = None) -> Path:
    return get_groot_dir(base) / "active-session.json"


def is_groot_initialized(base: Optional[Path] = None) -> bool:
    return get_groot_dir(base).is_dir()


def has_curriculum(base: Optional[Path] = None) -> bool:
    return get_curriculum_path(base).is_file()


def init_groot_dir(base: Optional[Path] = None) -> Path:
    """Create the .groot directory tree (idempotent) and return its path."""
    groot_dir = get_groot_dir(base)
    for d in (groot_dir, get_sessions_dir(base), get_journal_dir(base)):
        d.mkdir(parents=True, exist_ok=True)
    return groot_dir
