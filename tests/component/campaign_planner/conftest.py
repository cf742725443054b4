"""
Component Test Fixtures for Campaign Planner Service

Wires CampaignPlannerService to the in-memory mocks.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from core.config import PlannerConfig
from tests.contracts.campaign_planner.data_contract import CampaignPlannerTestDataFactory
from tests.component.campaign_planner.mocks import (
    MockCampaignRepository,
    MockReferenceDataClient,
)
from microservices.campaign_planner_service.campaign_planner_service import CampaignPlannerService


@pytest.fixture
def factory():
    """Provide CampaignPlannerTestDataFactory"""
    return CampaignPlannerTestDataFactory


@pytest.fixture
def planner_config():
    """Default planner configuration"""
    return PlannerConfig()


@pytest.fixture
def mock_repository():
    """Create empty mock repository"""
    return MockCampaignRepository()


@pytest.fixture
def mock_reference_client():
    return MockReferenceDataClient()


@pytest.fixture
def service(mock_repository, mock_reference_client, planner_config):
    """CampaignPlannerService over the mock repository"""
    return CampaignPlannerService(
        repository=mock_repository,
        reference_data_client=mock_reference_client,
        config=planner_config,
    )


@pytest.fixture
def fc_meta_cohort(factory):
    """Three FC/Meta campaigns in distinct regions"""
    return factory.make_cohort("FC", "Meta", count=3, notes="Spring push")


@pytest.fixture
def client(service):
    """FastAPI test client with the service dependency overridden"""
    from fastapi.testclient import TestClient
    from microservices.campaign_planner_service.main import app, get_service

    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides = {}
