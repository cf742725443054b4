"""
Campaign Status Engine

Lifecycle status derivation and legacy-status migration.

Status precedence for any caller that lets an operator force a status:
    1. explicit override
    2. force-planned flag
    3. date-based derivation (PLANNED / ACTIVE / COMPLETED)

SCHEDULED is never produced by date-based derivation; it is only reachable
through an explicit override.
"""

import logging
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

if TYPE_CHECKING:
    from .models import Campaign

logger = logging.getLogger(__name__)


class CampaignStatus(str, Enum):
    """Canonical campaign lifecycle status"""
    PLANNED = "PLANNED"
    SCHEDULED = "SCHEDULED"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


# Deprecated labels still present on older records
LEGACY_STATUS_MAP: Dict[str, CampaignStatus] = {
    "PENDING": CampaignStatus.PLANNED,
    "LOADED": CampaignStatus.SCHEDULED,
    "OK": CampaignStatus.ACTIVE,
    "CANCELLED": CampaignStatus.COMPLETED,
}

STATUS_CONFIG: Dict[CampaignStatus, Dict[str, str]] = {
    CampaignStatus.PLANNED: {
        "label": "Planned",
        "description": "Campaign is created but not yet started",
    },
    CampaignStatus.SCHEDULED: {
        "label": "Scheduled",
        "description": "Dates and data are loaded, ready to launch",
    },
    CampaignStatus.ACTIVE: {
        "label": "Active",
        "description": "Campaign is currently running",
    },
    CampaignStatus.COMPLETED: {
        "label": "Completed",
        "description": "Campaign has ended",
    },
}


def migrate_status(raw: Any) -> Union[CampaignStatus, Any]:
    """
    Map a persisted status label onto the canonical set.

    Known deprecated labels are translated, canonical labels (any case) are
    returned as the enum, and anything else is returned unchanged.
    """
    if isinstance(raw, CampaignStatus):
        return raw
    if not isinstance(raw, str):
        return raw

    key = raw.strip().upper()
    if key in LEGACY_STATUS_MAP:
        return LEGACY_STATUS_MAP[key]
    try:
        return CampaignStatus(key)
    except ValueError:
        logger.debug(f"Unrecognized status passed through: {raw!r}")
        return raw


def _as_day(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def auto_status(
    today: Union[date, datetime],
    start: Union[date, datetime],
    end: Union[date, datetime],
) -> CampaignStatus:
    """Date-based status, compared at day granularity"""
    today, start, end = _as_day(today), _as_day(start), _as_day(end)

    if today < start:
        return CampaignStatus.PLANNED
    if today <= end:
        return CampaignStatus.ACTIVE
    return CampaignStatus.COMPLETED


def derive_status(
    today: Union[date, datetime],
    start: Union[date, datetime],
    end: Union[date, datetime],
    override: Optional[Union[CampaignStatus, str]] = None,
    force_planned: bool = False,
) -> Union[CampaignStatus, Any]:
    """Resolve a status using override > force_planned > dates"""
    if override:
        return migrate_status(override)
    if force_planned:
        return CampaignStatus.PLANNED
    return auto_status(today, start, end)


def status_transition_for_refresh(
    campaign: "Campaign",
    today: Union[date, datetime],
) -> Optional[CampaignStatus]:
    """
    Status a stored campaign should move to during a periodic refresh.

    Only SCHEDULED and ACTIVE records are promoted; PLANNED and COMPLETED
    reflect operator intent and are left alone. Returns None when the
    record is already current.
    """
    today = _as_day(today)
    status = migrate_status(campaign.status)

    if status in (CampaignStatus.SCHEDULED, CampaignStatus.ACTIVE) and campaign.end_date < today:
        return CampaignStatus.COMPLETED
    if status == CampaignStatus.SCHEDULED and campaign.start_date <= today:
        return CampaignStatus.ACTIVE
    return None


def get_status_config(status: Any) -> Dict[str, str]:
    """Display metadata for a status, PLANNED for unknown values"""
    migrated = migrate_status(status)
    if isinstance(migrated, CampaignStatus):
        return STATUS_CONFIG[migrated]
    return STATUS_CONFIG[CampaignStatus.PLANNED]


__all__ = [
    "CampaignStatus",
    "LEGACY_STATUS_MAP",
    "STATUS_CONFIG",
    "migrate_status",
    "auto_status",
    "derive_status",
    "status_transition_for_refresh",
    "get_status_config",
]
