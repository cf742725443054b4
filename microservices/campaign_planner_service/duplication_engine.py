"""
Campaign Duplication Engine

Clones every campaign of a brand+channel cohort into a new date window.

Creates are issued concurrently and joined before reporting. Each create
either persists or fails on its own; there is no rollback, so a batch can
end with zero, some or all copies written. The returned DuplicationResult
records every outcome.
"""

import asyncio
import logging
from datetime import date
from typing import List, Optional, Sequence

from .models import (
    Campaign,
    DuplicationConfig,
    DuplicationFailure,
    DuplicationResult,
)
from .protocols import (
    CampaignPersistenceError,
    CampaignRepositoryProtocol,
    CampaignValidationError,
)
from .status_engine import derive_status

logger = logging.getLogger(__name__)


class DuplicationEngine:
    """Bulk cohort duplication through the campaign repository"""

    DEFAULT_COPY_SUFFIX = "(Copy)"

    def __init__(
        self,
        repository: CampaignRepositoryProtocol,
        copy_suffix: str = DEFAULT_COPY_SUFFIX,
    ):
        self.repository = repository
        self.copy_suffix = copy_suffix

    # ====================
    # Validation
    # ====================

    def _validate_window(self, config: DuplicationConfig) -> None:
        if config.start_date > config.end_date:
            raise CampaignValidationError(
                f"start_date {config.start_date} is after end_date {config.end_date}",
                field="start_date",
            )

    @staticmethod
    def select_cohort(
        campaigns: Sequence[Campaign], brand: str, channel: str
    ) -> List[Campaign]:
        """Campaigns matching both brand and channel exactly"""
        return [c for c in campaigns if c.brand == brand and c.channel == channel]

    # ====================
    # Copy Rules
    # ====================

    def copy_notes(self, source_notes: Optional[str], override: Optional[str]) -> str:
        if override:
            return override
        if source_notes:
            return f"{source_notes} {self.copy_suffix}"
        return self.copy_suffix

    def build_copy(
        self,
        source: Campaign,
        config: DuplicationConfig,
        status,
    ) -> Campaign:
        """Copy of source in the target window; identity and audit fields cleared"""
        return source.model_copy(update={
            "id": None,
            "created_at": None,
            "updated_at": None,
            "start_date": config.start_date,
            "end_date": config.end_date,
            "manager": config.manager or source.manager,
            "notes": self.copy_notes(source.notes, config.notes),
            "status": status,
        })

    # ====================
    # Execution
    # ====================

    async def duplicate_cohort(
        self,
        brand: str,
        channel: str,
        config: DuplicationConfig,
        campaigns: Optional[Sequence[Campaign]] = None,
        today: Optional[date] = None,
    ) -> DuplicationResult:
        """
        Duplicate the brand+channel cohort into config's date window.

        Args:
            brand: Cohort brand
            channel: Cohort channel
            config: Target window and overrides
            campaigns: Snapshot to select from; fetched from the repository when omitted
            today: Reference day for date-based status

        Returns:
            DuplicationResult with per-record outcomes

        Raises:
            CampaignValidationError: Bad window or empty cohort (nothing written)
            CampaignPersistenceError: Snapshot read failed or every create failed;
                result always reports created_count 0
        """
        self._validate_window(config)

        if campaigns is None:
            try:
                campaigns = await self.repository.fetch_all()
            except CampaignPersistenceError as e:
                logger.error(f"Failed to load campaigns for duplication of brand '{brand}': {e}")
                raise CampaignPersistenceError(
                    f"Failed to load {channel} campaigns for brand '{brand}': {e}",
                    result=DuplicationResult(brand=brand, channel=channel),
                ) from e

        cohort = self.select_cohort(campaigns, brand, channel)
        if not cohort:
            raise CampaignValidationError(
                f'No campaigns found for brand "{brand}" in the {channel} channel',
                field="brand",
            )

        today = today or date.today()
        status = derive_status(
            today,
            config.start_date,
            config.end_date,
            override=config.custom_status,
            force_planned=config.set_all_to_planned,
        )
        logger.info(
            f"Duplicating {len(cohort)} {channel} campaigns for brand '{brand}' "
            f"into {config.start_date}..{config.end_date} with status {getattr(status, 'value', status)}"
        )

        copies = [self.build_copy(source, config, status) for source in cohort]
        outcomes = await asyncio.gather(
            *(self.repository.create(copy) for copy in copies),
            return_exceptions=True,
        )

        result = DuplicationResult(
            brand=brand,
            channel=channel,
            attempted=len(cohort),
            status=status,
        )
        for source, outcome in zip(cohort, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"Failed to duplicate campaign {source.id}: {outcome}")
                result.errors.append(DuplicationFailure(source_id=source.id, error=str(outcome)))
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.created.append(outcome)
        result.created_count = len(result.created)

        if result.created_count == 0:
            raise CampaignPersistenceError(
                f"Failed to duplicate {result.attempted} {channel} campaigns for brand '{brand}'",
                result=result,
            )

        if result.partial:
            logger.warning(
                f"Duplicated {result.created_count}/{result.attempted} {channel} campaigns "
                f"for brand '{brand}', {len(result.errors)} failed"
            )
        else:
            logger.info(
                f"Duplicated {result.created_count} {channel} campaigns for brand '{brand}'"
            )
        return result
