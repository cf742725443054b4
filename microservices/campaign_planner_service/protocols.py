"""
Campaign Planner Service Protocols

Defines interfaces for dependency injection and testing.
Following the protocol-based architecture pattern.
"""

from typing import Any, Dict, List, Optional, Protocol

from .models import (
    Campaign,
    ChannelInfo,
    DuplicationResult,
    ManagerInfo,
)


# ====================
# Repository Protocol
# ====================


class CampaignRepositoryProtocol(Protocol):
    """Protocol for campaign data repository"""

    async def initialize(self) -> None:
        """Initialize repository connection"""
        ...

    async def close(self) -> None:
        """Close repository connection"""
        ...

    async def health_check(self) -> bool:
        """Check repository health"""
        ...

    async def fetch_all(self) -> List[Campaign]:
        """Snapshot of every campaign, newest first"""
        ...

    async def get(self, campaign_id: str) -> Optional[Campaign]:
        """Get campaign by ID"""
        ...

    async def create(self, campaign: Campaign) -> Campaign:
        """Persist a new campaign, assigning id and audit timestamps"""
        ...

    async def update(
        self, campaign_id: str, patch: Dict[str, Any]
    ) -> Optional[Campaign]:
        """Apply a field patch, refreshing updated_at"""
        ...

    async def delete(self, campaign_id: str) -> bool:
        """Delete campaign"""
        ...


# ====================
# Client Protocols
# ====================


class ReferenceDataProtocol(Protocol):
    """Protocol for read-only channel and manager lookups"""

    async def get_active_channels(self) -> List[ChannelInfo]:
        """Active channels with their KPI and grouping metadata"""
        ...

    async def get_active_managers(self) -> List[ManagerInfo]:
        """Active campaign managers"""
        ...


# ====================
# Custom Exceptions
# ====================


class CampaignPlannerError(Exception):
    """Base exception for campaign planner errors"""
    pass


class CampaignValidationError(CampaignPlannerError):
    """Raised when campaign validation fails"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class PeriodLabelError(CampaignValidationError):
    """Raised when a period label cannot be parsed"""

    def __init__(self, message: str, label: Optional[str] = None):
        super().__init__(message, field="label")
        self.label = label


class CampaignNotFoundError(CampaignPlannerError):
    """Raised when campaign is not found"""
    pass


class CampaignPersistenceError(CampaignPlannerError):
    """Raised when the repository rejects a read or write"""

    def __init__(self, message: str, result: Optional[DuplicationResult] = None):
        super().__init__(message)
        self.result = result


class DataShapeError(CampaignPlannerError):
    """Raised when a stored record is missing required fields"""

    def __init__(self, message: str, record_id: Optional[str] = None):
        super().__init__(message)
        self.record_id = record_id
