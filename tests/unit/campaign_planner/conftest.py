"""
Unit Test Fixtures for Campaign Planner Service

Uses CampaignPlannerTestDataFactory from the data contract.
"""

import pytest

import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from tests.contracts.campaign_planner.data_contract import (
    CampaignStatus,
    CampaignPlannerTestDataFactory,
)


@pytest.fixture
def factory():
    """Provide CampaignPlannerTestDataFactory"""
    return CampaignPlannerTestDataFactory


@pytest.fixture
def tv_campaign(factory):
    """TV campaign at 75% GRP delivery"""
    return factory.make_tv_campaign(expected_grps=100.0, achieved_grps=75.0, brand="FC")


@pytest.fixture
def mixed_campaigns(factory):
    """Campaigns across digital and traditional channels"""
    return [
        factory.make_campaign(brand="FC", channel="Meta", budget=1000.0, leads=10),
        factory.make_campaign(brand="FC", channel="Google", budget=2000.0, leads=40),
        factory.make_tv_campaign(brand="Acme", budget=5000.0, leads=0),
        factory.make_campaign(
            brand="Acme", channel="Radio", budget=800.0, leads=4,
            spots_purchased=20.0, status=CampaignStatus.ACTIVE,
        ),
    ]
