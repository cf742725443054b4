"""
Campaign Planner Service Factory

Factory for creating campaign planner service instances with proper
dependency injection.
"""

import logging
from typing import Optional

from core.config import PlannerConfig, get_settings

from .campaign_planner_service import CampaignPlannerService
from .campaign_repository import CampaignRepository
from .clients.reference_data_client import ReferenceDataClient

logger = logging.getLogger(__name__)


class CampaignPlannerServiceFactory:
    """Factory for creating campaign planner service components"""

    def __init__(self, config: Optional[PlannerConfig] = None):
        self.config = config or get_settings()
        self._repository: Optional[CampaignRepository] = None
        self._reference_data_client: Optional[ReferenceDataClient] = None
        self._service: Optional[CampaignPlannerService] = None

    async def initialize(self) -> None:
        """Initialize all components"""
        logger.info("Initializing Campaign Planner Service components...")

        self._repository = CampaignRepository(self.config.infrastructure)
        await self._repository.initialize()

        self._reference_data_client = ReferenceDataClient(self.config)

        self._service = CampaignPlannerService(
            repository=self._repository,
            reference_data_client=self._reference_data_client,
            config=self.config,
        )

        logger.info("Campaign Planner Service components initialized")

    async def close(self) -> None:
        """Close all components"""
        logger.info("Closing Campaign Planner Service components...")

        if self._repository:
            await self._repository.close()

        logger.info("Campaign Planner Service components closed")

    @property
    def repository(self) -> CampaignRepository:
        """Get campaign repository"""
        if not self._repository:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._repository

    @property
    def reference_data_client(self) -> ReferenceDataClient:
        """Get reference data client"""
        if not self._reference_data_client:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._reference_data_client

    @property
    def service(self) -> CampaignPlannerService:
        """Get campaign planner service"""
        if not self._service:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._service


__all__ = [
    "CampaignPlannerServiceFactory",
]
