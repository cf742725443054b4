"""
Campaign Aggregation Engine

Rolls per-campaign metrics into channel rollups and cross-channel KPIs,
and flags underperforming campaigns.

All functions are pure folds over a campaign snapshot supplied by the
caller. Thresholds default to ThresholdConfig() and can be overridden per
call with the service's configured values.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Union

from core.config import ThresholdConfig
from core.config.planner_config import DEFAULT_SOCIAL_CHANNELS

from .models import (
    AlertType,
    Campaign,
    ChannelInfo,
    ChannelRollup,
    ChannelType,
    GRPPerformance,
    KpiSet,
    PerformanceAlert,
    Severity,
    SubGroupingKey,
)
from .status_engine import migrate_status

logger = logging.getLogger(__name__)


TV_CHANNEL = "TV"
RADIO_CHANNEL = "Radio"
CINEMA_CHANNEL = "Cinema"
DOOH_CHANNEL = "DOOH"

# Metrics summed into a rollup, per channel
CHANNEL_METRICS: Dict[str, tuple] = {
    TV_CHANNEL: ("expected_grps", "achieved_grps", "spots_purchased"),
    RADIO_CHANNEL: ("spots_purchased", "impressions"),
    CINEMA_CHANNEL: ("spots_purchased", "expected_viewers"),
    DOOH_CHANNEL: ("expected_views",),
}

DIGITAL_CHANNELS = ["Meta", "META", "Google", "TikTok", "Pinterest", "LinkedIn", "YouTube"]
TRADITIONAL_CHANNELS = [TV_CHANNEL, RADIO_CHANNEL, CINEMA_CHANNEL, DOOH_CHANNEL]
DIGITAL_KPIS = {"clicks", "ctr", "cpm"}

DEFAULT_KPI_SETS: Dict[str, List[str]] = {
    "digital": ["budget", "leads", "cpl", "roi", "clicks", "ctr"],
    "traditional": ["budget", "spotsPurchased", "expectedGrps", "achievedGrps"],
    "fallback": ["budget", "leads", "cpl", "roi"],
}

# KPI keys (wire names) backed by a summed campaign metric
KPI_METRIC_FIELDS = {
    "expectedGrps": "expected_grps",
    "achievedGrps": "achieved_grps",
    "spotsPurchased": "spots_purchased",
    "impressions": "impressions",
    "expectedViewers": "expected_viewers",
    "expectedViews": "expected_views",
}

SEVERITY_RANK = {Severity.HIGH: 0, Severity.MEDIUM: 1, Severity.LOW: 2}

DEFAULT_THRESHOLDS = ThresholdConfig()


# ====================
# Helpers
# ====================


def grp_efficiency(campaign: Campaign) -> Optional[float]:
    """achieved / expected GRPs, None unless both are set and expected > 0"""
    if campaign.expected_grps is None or campaign.achieved_grps is None:
        return None
    if campaign.expected_grps <= 0:
        return None
    return campaign.achieved_grps / campaign.expected_grps


def _tv_efficiencies(campaigns: Iterable[Campaign], tv_channel: str = TV_CHANNEL) -> List[float]:
    efficiencies = []
    for campaign in campaigns:
        if campaign.channel != tv_channel:
            continue
        efficiency = grp_efficiency(campaign)
        if efficiency is not None:
            efficiencies.append(efficiency)
    return efficiencies


def _channel_metrics(channel: str, tv_channel: str = TV_CHANNEL) -> tuple:
    """Rollup metrics of a channel; the configured TV channel gets the GRP metrics"""
    if channel == tv_channel:
        return CHANNEL_METRICS[TV_CHANNEL]
    return CHANNEL_METRICS.get(channel, ())


def parse_roi(roi: Optional[str]) -> Optional[float]:
    """Numeric value of a '320%' style ROI; None when absent or N/A"""
    if roi is None:
        return None
    text = roi.strip()
    if not text or text.upper() == "N/A":
        return None
    try:
        return float(text.replace("%", ""))
    except ValueError:
        logger.debug(f"Unparseable ROI counted as 0: {roi!r}")
        return 0.0


# ====================
# Channel Rollups
# ====================


def compute_channel_rollup(
    campaigns: Sequence[Campaign],
    channel: str,
    tv_channel: str = TV_CHANNEL,
) -> ChannelRollup:
    """
    Accumulate one channel's campaigns.

    Channel metric sums only include campaigns where the metric is present
    and stay None when no campaign carries it.
    """
    subset = [c for c in campaigns if c.channel == channel]

    budget = sum(c.budget for c in subset)
    leads = sum(c.leads for c in subset)

    sums: Dict[str, Optional[float]] = {}
    counts: Dict[str, int] = {}
    for metric in _channel_metrics(channel, tv_channel):
        present = [getattr(c, metric) for c in subset if getattr(c, metric) is not None]
        counts[metric] = len(present)
        sums[metric] = sum(present) if present else None

    avg_efficiency = None
    if channel == tv_channel:
        efficiencies = _tv_efficiencies(subset, tv_channel)
        if efficiencies:
            avg_efficiency = sum(efficiencies) / len(efficiencies)

    return ChannelRollup(
        channel=channel,
        budget=budget,
        leads=leads,
        campaigns=len(subset),
        cpl=budget / leads if leads > 0 else 0,
        metric_counts=counts,
        avg_grp_efficiency=avg_efficiency,
        **sums,
    )


def aggregate_by_channel(
    campaigns: Sequence[Campaign],
    tv_channel: str = TV_CHANNEL,
) -> Dict[str, ChannelRollup]:
    """Rollup per channel, in order of first appearance"""
    channels = list(dict.fromkeys(c.channel for c in campaigns))
    return {
        channel: compute_channel_rollup(campaigns, channel, tv_channel=tv_channel)
        for channel in channels
    }


# ====================
# Cross-channel KPIs
# ====================


def compute_kpis(
    campaigns: Sequence[Campaign],
    thresholds: Optional[ThresholdConfig] = None,
    social_channels: Optional[Sequence[str]] = None,
    tv_channel: str = TV_CHANNEL,
) -> KpiSet:
    """Totals, averages and threshold counts over a campaign subset"""
    thresholds = thresholds or DEFAULT_THRESHOLDS
    if social_channels is None:
        social_channels = DEFAULT_SOCIAL_CHANNELS

    total_budget = sum(c.budget for c in campaigns)
    total_leads = sum(c.leads for c in campaigns)

    extra_social = sum(
        c.extra_social_budget
        for c in campaigns
        if c.channel in social_channels and c.extra_social_budget is not None
    )

    efficiencies = _tv_efficiencies(campaigns, tv_channel)
    shortfall = sum(1 for e in efficiencies if e < thresholds.grp_efficiency)
    high_cpl = sum(
        1 for c in campaigns
        if c.cost_per_lead is not None and c.cost_per_lead > thresholds.high_cpl
    )

    return KpiSet(
        total_budget=total_budget,
        total_leads=total_leads,
        avg_cpl=total_budget / total_leads if total_leads > 0 else 0,
        total_campaigns=len(campaigns),
        extra_social_budget=extra_social,
        grp_shortfall_campaigns=shortfall,
        high_cpl_campaigns=high_cpl,
        avg_grp_efficiency=sum(efficiencies) / len(efficiencies) if efficiencies else 1.0,
    )


# ====================
# Alerts
# ====================


def _grp_severity(gap: float, thresholds: ThresholdConfig) -> Severity:
    if gap > thresholds.grp_gap_high:
        return Severity.HIGH
    if gap > thresholds.grp_gap_medium:
        return Severity.MEDIUM
    return Severity.LOW


def _cpl_severity(cpl: float, thresholds: ThresholdConfig) -> Severity:
    if cpl > thresholds.cpl_high:
        return Severity.HIGH
    if cpl > thresholds.cpl_medium:
        return Severity.MEDIUM
    return Severity.LOW


def sort_alerts(alerts: Iterable[PerformanceAlert]) -> List[PerformanceAlert]:
    """Order high > medium > low, keeping encounter order within a severity"""
    return sorted(alerts, key=lambda alert: SEVERITY_RANK[Severity(alert.severity)])


def detect_alerts(
    campaigns: Sequence[Campaign],
    thresholds: Optional[ThresholdConfig] = None,
    social_channels: Optional[Sequence[str]] = None,
    tv_channel: str = TV_CHANNEL,
) -> List[PerformanceAlert]:
    """One alert per triggering condition, sorted by severity"""
    thresholds = thresholds or DEFAULT_THRESHOLDS
    if social_channels is None:
        social_channels = DEFAULT_SOCIAL_CHANNELS

    alerts: List[PerformanceAlert] = []
    for campaign in campaigns:
        name = campaign.display_name

        if campaign.channel == tv_channel:
            efficiency = grp_efficiency(campaign)
            if efficiency is not None and efficiency < thresholds.grp_efficiency:
                gap = (campaign.expected_grps - campaign.achieved_grps) / campaign.expected_grps * 100
                alerts.append(PerformanceAlert(
                    type=AlertType.GRP,
                    campaign_id=campaign.id,
                    campaign_name=name,
                    channel=campaign.channel,
                    severity=_grp_severity(gap, thresholds),
                    message=f"GRP performance {gap:.1f}% below target",
                    value=efficiency,
                    threshold=thresholds.grp_efficiency,
                ))

        if campaign.cost_per_lead is not None and campaign.cost_per_lead > thresholds.high_cpl:
            alerts.append(PerformanceAlert(
                type=AlertType.CPL,
                campaign_id=campaign.id,
                campaign_name=name,
                channel=campaign.channel,
                severity=_cpl_severity(campaign.cost_per_lead, thresholds),
                message=f"High CPL: {campaign.cost_per_lead:.2f}",
                value=campaign.cost_per_lead,
                threshold=thresholds.high_cpl,
            ))

        if (
            campaign.channel in social_channels
            and campaign.extra_social_budget
            and campaign.budget > 0
        ):
            ratio = campaign.extra_social_budget / campaign.budget
            if ratio > thresholds.social_budget_ratio:
                alerts.append(PerformanceAlert(
                    type=AlertType.BUDGET,
                    campaign_id=campaign.id,
                    campaign_name=name,
                    channel=campaign.channel,
                    severity=Severity.HIGH if ratio > thresholds.social_budget_high else Severity.MEDIUM,
                    message=f"Extra social budget {ratio * 100:.1f}% of main budget",
                    value=ratio,
                    threshold=thresholds.social_budget_ratio,
                ))

    logger.debug(f"Detected {len(alerts)} alerts across {len(campaigns)} campaigns")
    return sort_alerts(alerts)


# ====================
# Chart Aggregations
# ====================


def aggregate_by_region(campaigns: Iterable[Campaign]) -> Dict[str, Dict[str, float]]:
    """region -> channel -> budget"""
    regions: Dict[str, Dict[str, float]] = defaultdict(lambda: defaultdict(float))
    for campaign in campaigns:
        regions[campaign.region][campaign.channel] += campaign.budget
    return {region: dict(channels) for region, channels in regions.items()}


def aggregate_by_status(campaigns: Iterable[Campaign]) -> Dict[str, int]:
    """Campaign count per (migrated) status"""
    counts: Dict[str, int] = defaultdict(int)
    for campaign in campaigns:
        status = migrate_status(campaign.status)
        counts[getattr(status, "value", status)] += 1
    return dict(counts)


def aggregate_monthly_spend(campaigns: Iterable[Campaign]) -> Dict[str, Dict[str, float]]:
    """'YYYY-MM' of the start date -> channel -> budget, chronological"""
    months: Dict[str, Dict[str, float]] = defaultdict(lambda: defaultdict(float))
    for campaign in campaigns:
        key = campaign.start_date.strftime("%Y-%m")
        months[key][campaign.channel] += campaign.budget
    return {month: dict(months[month]) for month in sorted(months)}


def analyze_grp_performance(
    campaigns: Iterable[Campaign],
    thresholds: Optional[ThresholdConfig] = None,
    tv_channel: str = TV_CHANNEL,
) -> List[GRPPerformance]:
    """Per-TV-campaign delivery efficiency, best first"""
    thresholds = thresholds or DEFAULT_THRESHOLDS

    results = []
    for campaign in campaigns:
        if campaign.channel != tv_channel:
            continue
        efficiency = grp_efficiency(campaign)
        if efficiency is None:
            continue

        underperforming = efficiency < thresholds.grp_efficiency
        gap = 0.0
        if underperforming:
            gap = (campaign.expected_grps - campaign.achieved_grps) / campaign.expected_grps * 100

        results.append(GRPPerformance(
            campaign_id=campaign.id,
            name=campaign.brand,
            efficiency=efficiency,
            expected_grps=campaign.expected_grps,
            achieved_grps=campaign.achieved_grps,
            is_underperforming=underperforming,
            performance_gap=gap,
        ))

    return sorted(results, key=lambda r: r.efficiency, reverse=True)


def group_by_sub_grouping(
    campaigns: Iterable[Campaign],
    channel: str,
    key: Optional[Union[SubGroupingKey, str]] = None,
) -> Dict[str, List[Campaign]]:
    """Group a channel's campaigns by broadcaster, brand, region or brand+region"""
    key = SubGroupingKey(key) if key else SubGroupingKey.CAMPAIGN

    groups: Dict[str, List[Campaign]] = defaultdict(list)
    for campaign in campaigns:
        if campaign.channel != channel:
            continue

        if key == SubGroupingKey.BROADCASTER:
            group = campaign.publisher or "No Broadcaster"
        elif key == SubGroupingKey.BRAND:
            group = campaign.brand
        elif key == SubGroupingKey.REGION:
            group = campaign.region
        else:
            group = f"{campaign.brand} - {campaign.region}"

        groups[group].append(campaign)
    return dict(groups)


def top_campaigns_by_leads(campaigns: Iterable[Campaign], limit: int = 3) -> List[Campaign]:
    """Highest-lead campaigns, ties in encounter order"""
    return sorted(campaigns, key=lambda c: c.leads, reverse=True)[:limit]


# ====================
# Channel KPIs
# ====================


def classify_channel_type(name: str, info: Optional[ChannelInfo] = None) -> ChannelType:
    """Explicit channel type, then digital KPIs, then known channel names"""
    if info is not None:
        if info.channel_type is not None:
            return ChannelType(info.channel_type)
        if any(kpi in DIGITAL_KPIS for kpi in info.visible_kpis):
            return ChannelType.DIGITAL

    if name in DIGITAL_CHANNELS:
        return ChannelType.DIGITAL
    return ChannelType.TRADITIONAL


def channel_kpi_keys(info: Optional[ChannelInfo]) -> List[str]:
    """Visible KPI keys of a channel with type-based fallbacks, budget first"""
    if info is not None and info.visible_kpis:
        keys = list(info.visible_kpis)
    elif info is not None and info.channel_type == ChannelType.DIGITAL:
        keys = DEFAULT_KPI_SETS["digital"]
    elif info is not None and info.channel_type == ChannelType.TRADITIONAL:
        keys = DEFAULT_KPI_SETS["traditional"]
    else:
        keys = DEFAULT_KPI_SETS["fallback"]

    return ["budget"] + [k for k in dict.fromkeys(keys) if k != "budget"]


def get_kpi_value(campaigns: Iterable[Campaign], channel: str, kpi_key: str) -> float:
    """Value of one KPI over a channel's campaigns; 0 for unknown keys"""
    subset = [c for c in campaigns if c.channel == channel]
    if not subset:
        return 0

    if kpi_key == "budget":
        return sum(c.budget for c in subset)
    if kpi_key == "leads":
        return sum(c.leads for c in subset)
    if kpi_key == "cpl":
        budget = sum(c.budget for c in subset)
        leads = sum(c.leads for c in subset)
        return budget / leads if leads > 0 else 0
    if kpi_key == "roi":
        values = [v for v in (parse_roi(c.roi) for c in subset) if v is not None]
        return sum(values) / len(values) if values else 0

    metric = KPI_METRIC_FIELDS.get(kpi_key, kpi_key)
    if metric in KPI_METRIC_FIELDS.values():
        return sum(getattr(c, metric) or 0 for c in subset)

    # clicks / ctr / cpm are not tracked per campaign
    return 0


__all__ = [
    "TV_CHANNEL",
    "CHANNEL_METRICS",
    "DEFAULT_KPI_SETS",
    "grp_efficiency",
    "parse_roi",
    "compute_channel_rollup",
    "aggregate_by_channel",
    "compute_kpis",
    "sort_alerts",
    "detect_alerts",
    "aggregate_by_region",
    "aggregate_by_status",
    "aggregate_monthly_spend",
    "analyze_grp_performance",
    "group_by_sub_grouping",
    "top_campaigns_by_leads",
    "classify_channel_type",
    "channel_kpi_keys",
    "get_kpi_value",
]
