"""Shared fixtures for chainit tests."""

import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from chainit.models import WriteContext


@pytest.fixture
def ctx():
    """Write context for calling middleware directly."""
    return WriteContext(field="name", record={}, root={})


@pytest.fixture
def calls():
    """Collects (label, key, value) tuples recorded by middleware."""
    return []
