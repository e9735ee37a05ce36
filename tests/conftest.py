"""Pytest bootstrap making the garden planner ``src`` package importable."""

from __future__ import annotations

import os
import sys
from pathlib import Path


def _append_repo_root() -> None:
    """Put the project root ahead of site-packages on the import path."""
    root_text = str(Path(__file__).resolve().parents[1])
    if root_text not in sys.path:
        sys.path.insert(0, root_text)


_append_repo_root()

# Run Qt headless so the suite works without a display server.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
