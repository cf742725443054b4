"""
Mock Campaign Planner Dependencies for Component Testing

In-memory implementations of CampaignRepositoryProtocol and
ReferenceDataProtocol.
"""
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from microservices.campaign_planner_service.models import (
    Campaign,
    ChannelInfo,
    ChannelType,
    ManagerInfo,
)
from microservices.campaign_planner_service.protocols import (
    CampaignPersistenceError,
    CampaignRepositoryProtocol,
    ReferenceDataProtocol,
)


class MockCampaignRepository(CampaignRepositoryProtocol):
    """
    In-memory campaign store.

    Records create/fetch call counts and applied patches so tests can
    assert on what reached the store.
    """

    def __init__(self, campaigns: Optional[List[Campaign]] = None):
        self.campaigns: Dict[str, Campaign] = {}
        self.created: List[Campaign] = []
        self.updates: List[tuple] = []
        self.create_calls = 0
        self.fetch_calls = 0
        self._counter = 0
        self.seed(*(campaigns or []))

    def seed(self, *campaigns: Campaign) -> None:
        for campaign in campaigns:
            self.campaigns[campaign.id] = campaign

    async def initialize(self):
        pass

    async def close(self):
        pass

    async def health_check(self) -> bool:
        return True

    async def fetch_all(self) -> List[Campaign]:
        self.fetch_calls += 1
        return list(reversed(list(self.campaigns.values())))

    async def get(self, campaign_id: str) -> Optional[Campaign]:
        return self.campaigns.get(campaign_id)

    async def create(self, campaign: Campaign) -> Campaign:
        self.create_calls += 1
        self._counter += 1
        now = datetime.now(timezone.utc)
        saved = campaign.model_copy(update={
            "id": f"cmp_mock{self._counter:04d}",
            "created_at": now,
            "updated_at": now,
        })
        self.campaigns[saved.id] = saved
        self.created.append(saved)
        return saved

    async def update(self, campaign_id: str, patch: Dict[str, Any]) -> Optional[Campaign]:
        current = self.campaigns.get(campaign_id)
        if current is None:
            return None
        self.updates.append((campaign_id, patch))
        updated = Campaign.model_validate({
            **current.model_dump(),
            **patch,
            "updated_at": datetime.now(timezone.utc),
        })
        self.campaigns[campaign_id] = updated
        return updated

    async def delete(self, campaign_id: str) -> bool:
        return self.campaigns.pop(campaign_id, None) is not None


class FlakyCampaignRepository(MockCampaignRepository):
    """Repository whose creates and updates fail for campaigns matching a predicate"""

    def __init__(
        self,
        campaigns: Optional[List[Campaign]] = None,
        fail_when: Callable[[Campaign], bool] = lambda campaign: True,
    ):
        super().__init__(campaigns)
        self.fail_when = fail_when

    async def create(self, campaign: Campaign) -> Campaign:
        if self.fail_when(campaign):
            self.create_calls += 1
            raise CampaignPersistenceError(f"write rejected for region {campaign.region}")
        return await super().create(campaign)

    async def update(self, campaign_id: str, patch: Dict[str, Any]) -> Optional[Campaign]:
        current = self.campaigns.get(campaign_id)
        if current is not None and self.fail_when(current):
            raise CampaignPersistenceError(f"update rejected for {campaign_id}")
        return await super().update(campaign_id, patch)


class UnreadableCampaignRepository(MockCampaignRepository):
    """Repository whose snapshot reads always fail"""

    async def fetch_all(self) -> List[Campaign]:
        self.fetch_calls += 1
        raise CampaignPersistenceError("db down")


class MockReferenceDataClient(ReferenceDataProtocol):
    """Reference-data stub returning fixed channels and managers"""

    def __init__(self, channels: Optional[List[ChannelInfo]] = None):
        self.channels = channels if channels is not None else [
            ChannelInfo(name="Meta", channel_type=ChannelType.DIGITAL, visible_kpis=["leads", "cpl"]),
            ChannelInfo(name="TV", channel_type=ChannelType.TRADITIONAL),
        ]
        self.managers = [ManagerInfo(id="mgr_1", initials="AB", name="Alice Bianchi")]

    async def get_active_channels(self) -> List[ChannelInfo]:
        return list(self.channels)

    async def get_active_managers(self) -> List[ManagerInfo]:
        return list(self.managers)
