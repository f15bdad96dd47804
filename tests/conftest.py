"""Shared pytest configuration and fixtures for the holo-fusion test suite."""

import sys
from pathlib import Path

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


# =============================================================================
# Mock Fixtures
# =============================================================================

@pytest.fixture
def recording_consumer():
    """Create a consumer that records every delivered buffer."""
    from tests.infrastructure.mocks.sensor_mocks import RecordingConsumer
    return RecordingConsumer()
