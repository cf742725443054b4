"""
Campaign Planner Data Models

Canonical data structures for the campaign planner service. Campaign
records are immutable snapshots; every engine receives them explicitly.

Field names are snake_case in Python and camelCase on the wire
(startDate, expectedGrps, ...), matching the stored documents.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .status_engine import CampaignStatus, migrate_status


# ====================
# Timestamp Normalization
# ====================


def normalize_timestamp(value: Any) -> Optional[datetime]:
    """
    Normalize a stored timestamp to a datetime.

    Accepts datetimes, dates, ISO strings, epoch seconds, {"seconds": ...}
    mappings, and server timestamp wrappers exposing to_datetime(),
    ToDatetime() or toDate().
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, dict) and "seconds" in value:
        seconds = value["seconds"] + value.get("nanoseconds", 0) / 1e9
        return datetime.fromtimestamp(seconds, tz=timezone.utc)

    for attr in ("to_datetime", "ToDatetime", "toDate"):
        converter = getattr(value, attr, None)
        if callable(converter):
            return normalize_timestamp(converter())

    raise ValueError(f"Unsupported timestamp value: {value!r}")


def normalize_date(value: Any) -> date:
    """Normalize a stored calendar date (or timestamp) to a date"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])

    timestamp = normalize_timestamp(value)
    if timestamp is None:
        raise ValueError("Date is required")
    return timestamp.date()


# ====================
# Enums
# ====================


class PeriodType(str, Enum):
    """Descriptive period tag carried by each campaign"""
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    QUARTERLY = "quarterly"


class Severity(str, Enum):
    """Alert severity"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AlertType(str, Enum):
    """Performance alert kind"""
    GRP = "grp"
    CPL = "cpl"
    BUDGET = "budget"


class ChannelType(str, Enum):
    """Channel family"""
    DIGITAL = "digital"
    TRADITIONAL = "traditional"


class SubGroupingKey(str, Enum):
    """How a channel's campaigns are grouped for planning views"""
    BROADCASTER = "broadcaster"
    BRAND = "brand"
    REGION = "region"
    CAMPAIGN = "campaign"


class DatePreset(str, Enum):
    """Quick date-range presets offered by dashboard filters"""
    LAST_7_DAYS = "last-7-days"
    LAST_30_DAYS = "last-30-days"
    THIS_MONTH = "this-month"
    LAST_MONTH = "last-month"
    THIS_QUARTER = "this-quarter"
    LAST_QUARTER = "last-quarter"
    FULL_YEAR = "full-year"
    CUSTOM = "custom"
    SPECIFIC_MONTH = "specific-month"
    MONTH_RANGE = "month-range"


# ====================
# Base Model
# ====================


class BaseContract(BaseModel):
    """Base model for all planner contracts"""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ====================
# Campaign
# ====================


class Campaign(BaseContract):
    """Core Campaign record"""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = Field(None, description="Assigned by the repository on create")

    # Classification
    brand: str = Field(..., min_length=1)
    channel: str = Field(..., min_length=1)
    region: str = ""

    # Scheduling (inclusive)
    start_date: date
    end_date: date
    period_type: PeriodType = PeriodType.MONTHLY

    # Economics
    budget: float = Field(default=0, ge=0)
    leads: int = Field(default=0, ge=0)
    cost_per_lead: Optional[float] = Field(None, ge=0)
    roi: Optional[str] = Field(None, description="Percentage string, e.g. '320%'")

    # Unknown legacy labels are kept as plain strings
    status: Union[CampaignStatus, str] = CampaignStatus.PLANNED

    # Channel-specific metrics, absent where not meaningful
    expected_grps: Optional[float] = Field(None, ge=0)
    achieved_grps: Optional[float] = Field(None, ge=0)
    spots_purchased: Optional[float] = Field(None, ge=0)
    impressions: Optional[float] = Field(None, ge=0)
    expected_viewers: Optional[float] = Field(None, ge=0)
    expected_views: Optional[float] = Field(None, ge=0)

    # Social-specific
    extra_social_budget: Optional[float] = Field(None, ge=0)
    extra_social_notes: Optional[str] = None

    # Free text
    manager: str = ""
    notes: Optional[str] = None
    publisher: Optional[str] = Field(None, description="Broadcaster or sponsorship label")

    # Audit, set by the repository only
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def validate_dates(cls, v):
        return normalize_date(v)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def validate_timestamps(cls, v):
        return normalize_timestamp(v)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        if v is None or v == "":
            return CampaignStatus.PLANNED
        return migrate_status(v)

    @model_validator(mode="after")
    def validate_date_order(self):
        """startDate must not be after endDate"""
        if self.start_date > self.end_date:
            raise ValueError(
                f"start_date {self.start_date} is after end_date {self.end_date}"
            )
        return self

    @property
    def display_name(self) -> str:
        return f"{self.brand} - {self.channel}"


# Fields a partial update may never touch
IMMUTABLE_FIELDS = {"id", "created_at", "updated_at"}


class CampaignUpdate(BaseContract):
    """Partial campaign patch"""

    model_config = ConfigDict(extra="forbid")

    brand: Optional[str] = Field(None, min_length=1)
    channel: Optional[str] = Field(None, min_length=1)
    region: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    period_type: Optional[PeriodType] = None
    budget: Optional[float] = Field(None, ge=0)
    leads: Optional[int] = Field(None, ge=0)
    cost_per_lead: Optional[float] = Field(None, ge=0)
    roi: Optional[str] = None
    status: Optional[Union[CampaignStatus, str]] = None
    expected_grps: Optional[float] = Field(None, ge=0)
    achieved_grps: Optional[float] = Field(None, ge=0)
    spots_purchased: Optional[float] = Field(None, ge=0)
    impressions: Optional[float] = Field(None, ge=0)
    expected_viewers: Optional[float] = Field(None, ge=0)
    expected_views: Optional[float] = Field(None, ge=0)
    extra_social_budget: Optional[float] = Field(None, ge=0)
    extra_social_notes: Optional[str] = None
    manager: Optional[str] = None
    notes: Optional[str] = None
    publisher: Optional[str] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def validate_dates(cls, v):
        return None if v is None else normalize_date(v)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        return None if v is None else migrate_status(v)


# ====================
# Periods
# ====================


class DateRange(BaseContract):
    """Closed calendar interval"""
    start: date
    end: date
    preset: Optional[DatePreset] = None
    label: Optional[str] = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def validate_dates(cls, v):
        return normalize_date(v)

    @model_validator(mode="after")
    def validate_order(self):
        if self.start > self.end:
            raise ValueError(f"Range start {self.start} is after end {self.end}")
        return self


class PeriodOption(BaseContract):
    """Selectable named period"""
    value: str
    label: str
    period_type: PeriodType
    start: date
    end: date
    month: Optional[int] = Field(None, ge=1, le=12)
    quarter: Optional[int] = Field(None, ge=1, le=4)


class PeriodCatalog(BaseContract):
    """All selectable periods of one year"""
    year: int
    quarters: List[PeriodOption] = Field(default_factory=list)
    months: List[PeriodOption] = Field(default_factory=list)


# ====================
# Duplication
# ====================


class DuplicationConfig(BaseContract):
    """Target window and overrides for a cohort duplication"""
    start_date: date
    end_date: date
    manager: Optional[str] = None
    notes: Optional[str] = None
    set_all_to_planned: bool = False
    custom_status: Optional[CampaignStatus] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def validate_dates(cls, v):
        return normalize_date(v)

    @field_validator("custom_status", mode="before")
    @classmethod
    def validate_custom_status(cls, v):
        if v is None or v == "":
            return None
        return migrate_status(v)


class DuplicationFailure(BaseContract):
    """A single failed create inside a duplication batch"""
    source_id: Optional[str] = None
    error: str


class DuplicationResult(BaseContract):
    """Outcome of one duplication batch"""
    brand: str
    channel: str
    attempted: int = 0
    created_count: int = 0
    status: Optional[Union[CampaignStatus, str]] = None
    created: List[Campaign] = Field(default_factory=list)
    errors: List[DuplicationFailure] = Field(default_factory=list)

    @computed_field
    @property
    def success(self) -> bool:
        return self.attempted > 0 and self.created_count == self.attempted

    @computed_field
    @property
    def partial(self) -> bool:
        return 0 < self.created_count < self.attempted


# ====================
# Aggregation
# ====================


class ChannelRollup(BaseContract):
    """Per-channel accumulation over a campaign subset"""
    channel: str
    budget: float = 0
    leads: int = 0
    campaigns: int = 0
    cpl: float = 0

    # Channel metric sums; None when no campaign carried the metric
    expected_grps: Optional[float] = None
    achieved_grps: Optional[float] = None
    spots_purchased: Optional[float] = None
    impressions: Optional[float] = None
    expected_viewers: Optional[float] = None
    expected_views: Optional[float] = None
    metric_counts: Dict[str, int] = Field(default_factory=dict)

    avg_grp_efficiency: Optional[float] = None


class KpiSet(BaseContract):
    """Cross-channel KPIs"""
    total_budget: float = 0
    total_leads: int = 0
    avg_cpl: float = 0
    total_campaigns: int = 0
    extra_social_budget: float = 0
    grp_shortfall_campaigns: int = 0
    high_cpl_campaigns: int = 0
    avg_grp_efficiency: float = 1.0


class PerformanceAlert(BaseContract):
    """Underperformance signal for one campaign"""
    type: AlertType
    campaign_id: Optional[str] = None
    campaign_name: str
    channel: str
    severity: Severity
    message: str
    value: float
    threshold: float


class GRPPerformance(BaseContract):
    """Delivery efficiency of one TV campaign"""
    campaign_id: Optional[str] = None
    name: str
    efficiency: float
    expected_grps: float
    achieved_grps: float
    is_underperforming: bool
    performance_gap: float


class DashboardSummary(BaseContract):
    """KPIs, alerts and channel rollups for a filtered view"""
    date_range: Optional[DateRange] = None
    campaign_count: int = 0
    kpis: KpiSet = Field(default_factory=KpiSet)
    alerts: List[PerformanceAlert] = Field(default_factory=list)
    channels: Dict[str, ChannelRollup] = Field(default_factory=dict)


class StatusRefreshResult(BaseContract):
    """Counts from a periodic status refresh"""
    activated: int = 0
    completed: int = 0
    failed: int = 0


# ====================
# Reference Data
# ====================


class ChannelInfo(BaseContract):
    """Active channel metadata from the reference-data collaborator"""
    name: str
    color: Optional[str] = None
    icon: Optional[str] = None
    channel_type: Optional[ChannelType] = Field(None, alias="type")
    visible_kpis: List[str] = Field(default_factory=list)
    sub_grouping_key: Optional[SubGroupingKey] = None
    is_active: bool = True


class ManagerInfo(BaseContract):
    """Active campaign manager"""
    id: str
    initials: str
    name: Optional[str] = None
    is_active: bool = True


# ====================
# Service Models
# ====================


class DuplicateCohortRequest(DuplicationConfig):
    """Request to duplicate a brand+channel cohort"""
    brand: str = Field(..., min_length=1)
    channel: str = Field(..., min_length=1)


class CampaignListResponse(BaseContract):
    """Filtered campaign list"""
    campaigns: List[Campaign] = Field(default_factory=list)
    total: int = 0


class ChannelKpisResponse(BaseContract):
    """Visible KPI values of a channel"""
    channel: str
    kpis: Dict[str, float] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    service: str
    port: int
    version: str
    dependencies: Dict[str, str] = Field(default_factory=dict)


class ReadinessResponse(BaseModel):
    """Readiness check response"""
    ready: bool
    checks: Dict[str, bool] = Field(default_factory=dict)
    details: Dict[str, str] = Field(default_factory=dict)


class LivenessResponse(BaseModel):
    """Liveness check response"""
    alive: bool
    uptime_seconds: float


__all__ = [
    # Helpers
    "normalize_timestamp",
    "normalize_date",
    # Enums
    "CampaignStatus",
    "PeriodType",
    "Severity",
    "AlertType",
    "ChannelType",
    "SubGroupingKey",
    "DatePreset",
    # Core
    "BaseContract",
    "Campaign",
    "CampaignUpdate",
    "IMMUTABLE_FIELDS",
    # Periods
    "DateRange",
    "PeriodOption",
    "PeriodCatalog",
    # Duplication
    "DuplicationConfig",
    "DuplicationFailure",
    "DuplicationResult",
    # Aggregation
    "ChannelRollup",
    "KpiSet",
    "PerformanceAlert",
    "GRPPerformance",
    "DashboardSummary",
    "StatusRefreshResult",
    # Reference data
    "ChannelInfo",
    "ManagerInfo",
    # Service
    "DuplicateCohortRequest",
    "CampaignListResponse",
    "ChannelKpisResponse",
    "HealthResponse",
    "ReadinessResponse",
    "LivenessResponse",
]
