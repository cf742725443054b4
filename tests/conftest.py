"""
Root conftest.py - Global fixtures and configuration for all test layers.

Test Layers:
    - component/  : Component tests (mocked repository and HTTP transport)
    - unit/       : Unit tests (pure functions, no I/O)
"""
import os
import sys
from datetime import date

import pytest

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)


# =============================================================================
# Test Configuration
# =============================================================================

class TestConfig:
    """Centralized test configuration"""

    SERVICE_NAME = "campaign_planner_service"
    SERVICE_PORT = 8260
    REFERENCE_DATA_URL = "http://reference-data.test"

    # Fixed reference day so date-based statuses are deterministic
    TODAY = date(2025, 3, 15)


@pytest.fixture(scope="session")
def test_config() -> TestConfig:
    """Provide test configuration"""
    return TestConfig()


@pytest.fixture
def today(test_config) -> date:
    """Reference day for status derivation"""
    return test_config.TODAY


def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "component: marks tests as component tests")
