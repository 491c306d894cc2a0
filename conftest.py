"""Pytest configuration.

Puts the project root on sys.path so `services`, `utils` and `connectors`
import the same way they do under `streamlit run Home.py`.
"""

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))
