"""Pytest configuration: make the provisioner package and the Azure fake importable."""

import sys
from pathlib import Path

TESTS_DIR = Path(__file__).parent

# src/ holds the provisioner package, tests/ holds azure_mock
for path in (TESTS_DIR.parent / "src", TESTS_DIR):
    sys.path.insert(0, str(path))
