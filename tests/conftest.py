"""
Shared fixtures for the table finder tests.

Run with: pytest tests/ -v
"""

import sys
from pathlib import Path

import pytest
from loguru import logger

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from builders import centred_text, ruling  # noqa: E402


@pytest.fixture
def two_cell_page():
    """Horizontal edges at y=100/150, verticals at x=50/150/250, 'A' and 'B' in the cells."""
    lines = ruling([50, 150, 250], [100, 150])
    chars = centred_text('A', (50, 100, 150, 150)) + centred_text('B', (150, 100, 250, 150))
    return chars, lines


@pytest.fixture
def warnings_logged():
    """Collect loguru warning messages emitted during a test."""
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record['message']), level='WARNING')
    yield messages
    logger.remove(handler_id)
