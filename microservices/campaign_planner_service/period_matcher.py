"""
Campaign Period Matcher

Named calendar periods (quarters and months of a year), date-range presets
and the closed-interval overlap test used to select campaigns for a view.

A campaign matches a period when the two intervals share at least one day:
    campaign.start_date <= period.end AND campaign.end_date >= period.start
"""

import calendar
import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Union

from .models import (
    Campaign,
    CampaignStatus,
    DatePreset,
    DateRange,
    PeriodCatalog,
    PeriodOption,
    PeriodType,
)
from .protocols import PeriodLabelError
from .status_engine import migrate_status

logger = logging.getLogger(__name__)


MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

QUARTER_NAMES = ["Q1", "Q2", "Q3", "Q4"]

PRESET_LABELS = {
    DatePreset.LAST_7_DAYS: "Last 7 days",
    DatePreset.LAST_30_DAYS: "Last 30 days",
    DatePreset.THIS_MONTH: "This month",
    DatePreset.LAST_MONTH: "Last month",
    DatePreset.THIS_QUARTER: "This quarter",
    DatePreset.LAST_QUARTER: "Last quarter",
    DatePreset.FULL_YEAR: "Full year",
    DatePreset.CUSTOM: "Custom range",
    DatePreset.SPECIFIC_MONTH: "Specific month",
    DatePreset.MONTH_RANGE: "Month range",
}

DEFAULT_PRESET = DatePreset.LAST_30_DAYS

_MONTH_LOOKUP = {name.lower(): index for index, name in enumerate(MONTH_NAMES, start=1)}
_QUARTER_LOOKUP = {name.lower(): index for index, name in enumerate(QUARTER_NAMES, start=1)}


# ====================
# Calendar Helpers
# ====================


def month_bounds(year: int, month: int) -> DateRange:
    """First to last day of a month"""
    last_day = calendar.monthrange(year, month)[1]
    return DateRange(start=date(year, month, 1), end=date(year, month, last_day))


def quarter_of(month: int) -> int:
    """Quarter number (1-4) of a calendar month (1-12)"""
    if not 1 <= month <= 12:
        raise ValueError(f"Month out of range: {month}")
    return (month - 1) // 3 + 1


def months_in_quarter(quarter: Union[int, str]) -> List[int]:
    """Calendar months of a quarter; unknown quarters give an empty list"""
    if isinstance(quarter, str):
        quarter = _QUARTER_LOOKUP.get(quarter.strip().lower(), 0)
    if not 1 <= quarter <= 4:
        return []
    first = (quarter - 1) * 3 + 1
    return [first, first + 1, first + 2]


def quarter_bounds(year: int, quarter: int) -> DateRange:
    """First day of the quarter's first month to last day of its third"""
    months = months_in_quarter(quarter)
    if not months:
        raise ValueError(f"Quarter out of range: {quarter}")
    return DateRange(
        start=month_bounds(year, months[0]).start,
        end=month_bounds(year, months[-1]).end,
    )


def month_range(
    start_month: Union[date, datetime],
    end_month: Union[date, datetime],
) -> DateRange:
    """First day of start_month's month to last day of end_month's month"""
    start = month_bounds(start_month.year, start_month.month).start
    end = month_bounds(end_month.year, end_month.month).end
    if start > end:
        raise PeriodLabelError(f"Month range starts after it ends: {start} > {end}")

    label = f"{MONTH_NAMES[start.month - 1]}-{MONTH_NAMES[end.month - 1]} {start.year}"
    return DateRange(start=start, end=end, preset=DatePreset.MONTH_RANGE, label=label)


# ====================
# Period Catalog
# ====================


def generate_period_catalog(year: int) -> PeriodCatalog:
    """Quarter and month options for one year"""
    quarters = []
    for quarter, name in enumerate(QUARTER_NAMES, start=1):
        bounds = quarter_bounds(year, quarter)
        label = f"{name} {year}"
        quarters.append(PeriodOption(
            value=label,
            label=label,
            period_type=PeriodType.QUARTERLY,
            start=bounds.start,
            end=bounds.end,
            quarter=quarter,
        ))

    months = []
    for month, name in enumerate(MONTH_NAMES, start=1):
        bounds = month_bounds(year, month)
        label = f"{name} {year}"
        months.append(PeriodOption(
            value=label,
            label=label,
            period_type=PeriodType.MONTHLY,
            start=bounds.start,
            end=bounds.end,
            month=month,
        ))

    return PeriodCatalog(year=year, quarters=quarters, months=months)


def parse_period(label: str, period_type: Union[PeriodType, str]) -> DateRange:
    """
    Resolve a "<Month> <Year>" or "Q<n> <Year>" label to its date range.

    Raises PeriodLabelError for unknown names, a missing or malformed year,
    or a period type other than monthly / quarterly.
    """
    if not isinstance(label, str) or not label.strip():
        raise PeriodLabelError("Period label is empty", label=label)

    try:
        period_type = PeriodType(period_type)
    except ValueError:
        raise PeriodLabelError(f"Unsupported period type: {period_type}", label=label)

    parts = label.split()
    if len(parts) != 2:
        raise PeriodLabelError(f"Expected '<name> <year>', got: {label!r}", label=label)

    name, year_text = parts
    if not year_text.isdigit() or len(year_text) != 4:
        raise PeriodLabelError(f"Invalid year in period label: {label!r}", label=label)
    year = int(year_text)

    if period_type == PeriodType.MONTHLY:
        month = _MONTH_LOOKUP.get(name.lower())
        if month is None:
            raise PeriodLabelError(f"Unknown month name: {name!r}", label=label)
        bounds = month_bounds(year, month)
    elif period_type == PeriodType.QUARTERLY:
        quarter = _QUARTER_LOOKUP.get(name.lower())
        if quarter is None:
            raise PeriodLabelError(f"Unknown quarter name: {name!r}", label=label)
        bounds = quarter_bounds(year, quarter)
    else:
        raise PeriodLabelError(f"Unsupported period type: {period_type.value}", label=label)

    return DateRange(start=bounds.start, end=bounds.end, label=f"{name} {year}")


# ====================
# Overlap
# ====================


def _as_day(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def matches_range(
    campaign: Campaign,
    start: Union[date, datetime],
    end: Union[date, datetime],
) -> bool:
    """Closed-interval overlap between a campaign and [start, end]"""
    return campaign.start_date <= _as_day(end) and campaign.end_date >= _as_day(start)


def matches_period(
    campaign: Campaign,
    label: str,
    period_type: Union[PeriodType, str],
) -> bool:
    """True when the campaign overlaps the named period; False for bad labels"""
    try:
        period = parse_period(label, period_type)
    except PeriodLabelError as e:
        logger.debug(f"Period label not matched: {e}")
        return False
    return matches_range(campaign, period.start, period.end)


# ====================
# Date Presets
# ====================


def resolve_date_preset(
    preset: Union[DatePreset, str, None] = None,
    today: Optional[date] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> DateRange:
    """
    Resolve a dashboard date preset to a concrete range.

    Rolling presets end on today. specific-month uses start's month,
    month-range spans start's month to end's month, and custom takes
    start and end as given.
    """
    try:
        preset = DatePreset(preset) if preset else DEFAULT_PRESET
    except ValueError:
        raise PeriodLabelError(f"Unknown date preset: {preset}")
    today = _as_day(today) if today else date.today()
    label = PRESET_LABELS[preset]

    if preset == DatePreset.LAST_7_DAYS:
        return DateRange(start=today - timedelta(days=7), end=today, preset=preset, label=label)

    if preset == DatePreset.LAST_30_DAYS:
        return DateRange(start=today - timedelta(days=30), end=today, preset=preset, label=label)

    if preset == DatePreset.THIS_MONTH:
        bounds = month_bounds(today.year, today.month)
        return DateRange(start=bounds.start, end=bounds.end, preset=preset, label=label)

    if preset == DatePreset.LAST_MONTH:
        previous = today.replace(day=1) - timedelta(days=1)
        bounds = month_bounds(previous.year, previous.month)
        return DateRange(start=bounds.start, end=bounds.end, preset=preset, label=label)

    if preset == DatePreset.THIS_QUARTER:
        bounds = quarter_bounds(today.year, quarter_of(today.month))
        return DateRange(start=bounds.start, end=bounds.end, preset=preset, label=label)

    if preset == DatePreset.LAST_QUARTER:
        quarter = quarter_of(today.month) - 1
        year = today.year
        if quarter == 0:
            quarter, year = 4, year - 1
        bounds = quarter_bounds(year, quarter)
        return DateRange(start=bounds.start, end=bounds.end, preset=preset, label=label)

    if preset == DatePreset.FULL_YEAR:
        return DateRange(
            start=date(today.year, 1, 1),
            end=date(today.year, 12, 31),
            preset=preset,
            label=label,
        )

    if preset == DatePreset.SPECIFIC_MONTH:
        month = start or today
        bounds = month_bounds(month.year, month.month)
        return DateRange(
            start=bounds.start,
            end=bounds.end,
            preset=preset,
            label=f"{MONTH_NAMES[month.month - 1]} {month.year}",
        )

    if preset == DatePreset.MONTH_RANGE:
        if start is None or end is None:
            raise PeriodLabelError("month-range requires start and end months")
        return month_range(start, end)

    # custom
    if start is None or end is None:
        raise PeriodLabelError("custom range requires start and end dates")
    if start > end:
        raise PeriodLabelError(f"Range start {start} is after end {end}")
    return DateRange(
        start=start,
        end=end,
        preset=preset,
        label=f"{start.isoformat()} - {end.isoformat()}",
    )


# ====================
# Combined Filter
# ====================


def filter_campaigns(
    campaigns: Iterable[Campaign],
    date_range: Optional[DateRange] = None,
    status: Optional[Union[CampaignStatus, str]] = None,
    channel: Optional[str] = None,
) -> List[Campaign]:
    """Campaigns overlapping date_range with matching status and channel"""
    wanted_status = migrate_status(status) if status else None

    selected = []
    for campaign in campaigns:
        if date_range is not None and not matches_range(campaign, date_range.start, date_range.end):
            continue
        if wanted_status is not None and migrate_status(campaign.status) != wanted_status:
            continue
        if channel and campaign.channel != channel:
            continue
        selected.append(campaign)
    return selected


def campaigns_in_period(
    campaigns: Sequence[Campaign],
    label: str,
    period_type: Union[PeriodType, str],
) -> List[Campaign]:
    """Campaigns overlapping a named period"""
    return [c for c in campaigns if matches_period(c, label, period_type)]


__all__ = [
    "MONTH_NAMES",
    "QUARTER_NAMES",
    "PRESET_LABELS",
    "DEFAULT_PRESET",
    "month_bounds",
    "quarter_of",
    "months_in_quarter",
    "quarter_bounds",
    "month_range",
    "generate_period_catalog",
    "parse_period",
    "matches_range",
    "matches_period",
    "resolve_date_preset",
    "filter_campaigns",
    "campaigns_in_period",
]
