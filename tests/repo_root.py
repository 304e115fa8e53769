from __future__ import annotations

from pathlib import Path

# Tests live at <repo>/tests/, so the repo root is one level up.
REPO_ROOT = Path(__file__).resolve().parents[1]
