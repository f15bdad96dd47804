"""Unit test fixtures for isolated, fast test execution.

Fixtures here build the small collaborators most fusion tests need:
shared state in either readiness state and the supported capture
configurations. Mock sensor handles and consumers come from
``tests.infrastructure.mocks.sensor_mocks``.
"""

from __future__ import annotations

import pytest

from holo_fusion.core.shared_state import FusionSharedState
from holo_fusion.fusion.capture_config import resolve_capture_configuration


# =============================================================================
# Shared State Fixtures
# =============================================================================

@pytest.fixture
def shared_state() -> FusionSharedState:
    """Shared state with the consumer not yet ready."""
    return FusionSharedState()


@pytest.fixture
def ready_state() -> FusionSharedState:
    """Shared state with the consumer already ready."""
    return FusionSharedState(consumer_ready=True)


# =============================================================================
# Capture Configuration Fixtures
# =============================================================================

@pytest.fixture
def config_640():
    """640x480 with depth and color."""
    return resolve_capture_configuration(640, 480)


@pytest.fixture
def config_320():
    """320x240, depth only."""
    return resolve_capture_configuration(320, 240)


@pytest.fixture
def config_80():
    """80x60, depth only."""
    return resolve_capture_configuration(80, 60)
