"""Pytest configuration - make `src.decision_value` importable from the project root."""
import sys
from pathlib import Path

ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))
