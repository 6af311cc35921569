"""Pytest configuration for the stackc test suite."""

import sys
from pathlib import Path

# Add the repo root to the path for stackc and compiler imports
sys.path.insert(0, str(Path(__file__).parent.parent))
