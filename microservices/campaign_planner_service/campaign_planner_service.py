"""
Campaign Planner Business Logic

Wires the status, period, duplication and aggregation engines to the
campaign repository and the reference-data lookups.

Every operation works on a fresh repository snapshot; nothing is cached
between calls.
"""

import asyncio
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from pydantic.alias_generators import to_snake

from core.config import PlannerConfig

from . import aggregation_engine, period_matcher
from .duplication_engine import DuplicationEngine
from .models import (
    IMMUTABLE_FIELDS,
    Campaign,
    CampaignStatus,
    CampaignUpdate,
    ChannelInfo,
    ChannelKpisResponse,
    ChannelRollup,
    DashboardSummary,
    DateRange,
    DuplicationConfig,
    DuplicationResult,
    PeriodCatalog,
    PeriodType,
    PerformanceAlert,
    StatusRefreshResult,
)
from .protocols import (
    CampaignNotFoundError,
    CampaignRepositoryProtocol,
    CampaignValidationError,
    ReferenceDataProtocol,
)
from .status_engine import status_transition_for_refresh

logger = logging.getLogger(__name__)


class CampaignPlannerService:
    """Campaign planner business logic layer"""

    def __init__(
        self,
        repository: CampaignRepositoryProtocol,
        reference_data_client: Optional[ReferenceDataProtocol] = None,
        config: Optional[PlannerConfig] = None,
    ):
        self.repository = repository
        self.reference_data_client = reference_data_client
        self.config = config or PlannerConfig()
        self.duplication_engine = DuplicationEngine(
            repository, copy_suffix=self.config.copy_suffix
        )

    # ====================
    # Campaign Views
    # ====================

    async def list_campaigns(
        self,
        date_range: Optional[DateRange] = None,
        status: Optional[Union[CampaignStatus, str]] = None,
        channel: Optional[str] = None,
    ) -> List[Campaign]:
        """Fresh snapshot filtered by date overlap, status and channel"""
        campaigns = await self.repository.fetch_all()
        return period_matcher.filter_campaigns(
            campaigns, date_range=date_range, status=status, channel=channel
        )

    async def list_campaigns_in_period(
        self, label: str, period_type: Union[PeriodType, str]
    ) -> List[Campaign]:
        """
        Campaigns overlapping a named period.

        Unlike matches_period, an unparseable label raises PeriodLabelError
        so callers can report it.
        """
        period = period_matcher.parse_period(label, period_type)
        return await self.list_campaigns(date_range=period)

    def get_period_catalog(self, year: int) -> PeriodCatalog:
        return period_matcher.generate_period_catalog(year)

    # ====================
    # Dashboard & KPIs
    # ====================

    async def get_dashboard(
        self,
        date_range: Optional[DateRange] = None,
        status: Optional[Union[CampaignStatus, str]] = None,
        channel: Optional[str] = None,
    ) -> DashboardSummary:
        """KPIs, alerts and channel rollups of the filtered subset"""
        subset = await self.list_campaigns(date_range, status, channel)

        return DashboardSummary(
            date_range=date_range,
            campaign_count=len(subset),
            kpis=aggregation_engine.compute_kpis(
                subset,
                thresholds=self.config.thresholds,
                social_channels=self.config.social_channels,
                tv_channel=self.config.tv_channel,
            ),
            alerts=self._detect_alerts(subset),
            channels=aggregation_engine.aggregate_by_channel(
                subset, tv_channel=self.config.tv_channel
            ),
        )

    async def get_alerts(
        self,
        date_range: Optional[DateRange] = None,
        channel: Optional[str] = None,
    ) -> List[PerformanceAlert]:
        subset = await self.list_campaigns(date_range, channel=channel)
        return self._detect_alerts(subset)

    def _detect_alerts(self, campaigns: List[Campaign]) -> List[PerformanceAlert]:
        return aggregation_engine.detect_alerts(
            campaigns,
            thresholds=self.config.thresholds,
            social_channels=self.config.social_channels,
            tv_channel=self.config.tv_channel,
        )

    async def get_channel_rollup(
        self, channel: str, date_range: Optional[DateRange] = None
    ) -> ChannelRollup:
        subset = await self.list_campaigns(date_range, channel=channel)
        return aggregation_engine.compute_channel_rollup(
            subset, channel, tv_channel=self.config.tv_channel
        )

    async def get_channel_kpis(
        self, channel: str, date_range: Optional[DateRange] = None
    ) -> ChannelKpisResponse:
        """Values of the channel's visible KPIs"""
        info = await self._get_channel_info(channel)
        keys = aggregation_engine.channel_kpi_keys(info)

        subset = await self.list_campaigns(date_range, channel=channel)
        return ChannelKpisResponse(
            channel=channel,
            kpis={key: aggregation_engine.get_kpi_value(subset, channel, key) for key in keys},
        )

    async def _get_channel_info(self, channel: str) -> Optional[ChannelInfo]:
        if self.reference_data_client is None:
            return None
        channels = await self.reference_data_client.get_active_channels()
        return next((c for c in channels if c.name == channel), None)

    # ====================
    # Duplication
    # ====================

    async def duplicate_cohort(
        self,
        brand: str,
        channel: str,
        config: DuplicationConfig,
        today: Optional[date] = None,
    ) -> DuplicationResult:
        """Duplicate a brand+channel cohort from a fresh snapshot"""
        return await self.duplication_engine.duplicate_cohort(
            brand, channel, config, today=today
        )

    # ====================
    # Updates
    # ====================

    def _parse_patch(self, patch: Union[CampaignUpdate, Dict[str, Any]]) -> Dict[str, Any]:
        if isinstance(patch, CampaignUpdate):
            return patch.model_dump(exclude_unset=True)

        for key in patch:
            if to_snake(key) in IMMUTABLE_FIELDS:
                raise CampaignValidationError(f"Field '{key}' cannot be updated", field=key)
        try:
            return CampaignUpdate.model_validate(patch).model_dump(exclude_unset=True)
        except ValidationError as e:
            raise CampaignValidationError(f"Invalid campaign update: {e}")

    async def update_campaign(
        self,
        campaign_id: str,
        patch: Union[CampaignUpdate, Dict[str, Any]],
    ) -> Campaign:
        """
        Merge a partial update into a stored campaign.

        The merged record is revalidated (date order, non-negative metrics,
        status migration) before anything is written.

        Raises:
            CampaignValidationError: Immutable field or invalid merged record
            CampaignNotFoundError: Unknown campaign_id
        """
        changes = self._parse_patch(patch)

        current = await self.repository.get(campaign_id)
        if current is None:
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")

        try:
            merged = Campaign.model_validate({**current.model_dump(), **changes})
        except ValidationError as e:
            raise CampaignValidationError(f"Invalid campaign update: {e}")

        if not changes:
            return current

        validated = {field: getattr(merged, field) for field in changes}
        updated = await self.repository.update(campaign_id, validated)
        if updated is None:
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")

        logger.info(f"Updated campaign {campaign_id}: {sorted(validated)}")
        return updated

    # ====================
    # Status Refresh
    # ====================

    async def refresh_statuses(self, today: Optional[date] = None) -> StatusRefreshResult:
        """Promote SCHEDULED/ACTIVE campaigns whose dates have been reached"""
        today = today or date.today()
        campaigns = await self.repository.fetch_all()

        pending = []
        for campaign in campaigns:
            target = status_transition_for_refresh(campaign, today)
            if target is not None:
                pending.append((campaign, target))

        outcomes = await asyncio.gather(
            *(self.repository.update(c.id, {"status": target}) for c, target in pending),
            return_exceptions=True,
        )

        result = StatusRefreshResult()
        for (campaign, target), outcome in zip(pending, outcomes):
            if isinstance(outcome, Exception) or outcome is None:
                logger.error(f"Failed to refresh status of campaign {campaign.id}: {outcome}")
                result.failed += 1
            elif isinstance(outcome, BaseException):
                raise outcome
            elif target == CampaignStatus.ACTIVE:
                result.activated += 1
            else:
                result.completed += 1

        logger.info(
            f"Status refresh: {result.activated} activated, "
            f"{result.completed} completed, {result.failed} failed"
        )
        return result
