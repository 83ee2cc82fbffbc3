"""Test package for quadtreex; shared datasets live in `tests.utils`."""

import sys
from pathlib import Path

# Test modules import `tests.utils` directly, so the repository root must be importable.
_ROOT = str(Path(__file__).resolve().parents[1])
if _ROOT not in sys.path:
    sys.path.insert(0, _ROOT)
