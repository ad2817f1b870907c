"""
Pytest configuration for the kitsh / kitsune_client tests.
"""
import sys
from pathlib import Path

PYTHON_SRC = Path(__file__).resolve().parents[1]
TESTS_DIR = Path(__file__).resolve().parent
for entry in (PYTHON_SRC, TESTS_DIR):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))
