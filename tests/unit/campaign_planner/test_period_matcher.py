"""
Unit Tests for Campaign Period Matcher

Tests the period catalog, label parsing, closed-interval overlap, date
presets and the combined dashboard filter.
"""

import pytest
from datetime import date

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from tests.contracts.campaign_planner.data_contract import (
    CampaignStatus,
    DatePreset,
    DateRange,
    PeriodType,
)
from microservices.campaign_planner_service.period_matcher import (
    filter_campaigns,
    generate_period_catalog,
    matches_period,
    matches_range,
    month_range,
    months_in_quarter,
    parse_period,
    quarter_of,
    resolve_date_preset,
)
from microservices.campaign_planner_service.protocols import (
    CampaignValidationError,
    PeriodLabelError,
)


class TestPeriodCatalog:
    """Tests for generate_period_catalog"""

    def test_catalog_has_four_quarters_and_twelve_months(self):
        catalog = generate_period_catalog(2025)
        assert [q.label for q in catalog.quarters] == ["Q1 2025", "Q2 2025", "Q3 2025", "Q4 2025"]
        assert len(catalog.months) == 12
        assert catalog.months[0].label == "January 2025"
        assert catalog.months[11].label == "December 2025"

    def test_quarters_are_three_contiguous_months(self):
        catalog = generate_period_catalog(2025)
        q1 = catalog.quarters[0]
        assert q1.period_type == PeriodType.QUARTERLY
        assert (q1.start, q1.end) == (date(2025, 1, 1), date(2025, 3, 31))
        q4 = catalog.quarters[3]
        assert (q4.start, q4.end) == (date(2025, 10, 1), date(2025, 12, 31))

    def test_months_span_first_to_last_day(self):
        catalog = generate_period_catalog(2024)
        february = catalog.months[1]
        assert february.period_type == PeriodType.MONTHLY
        assert (february.start, february.end) == (date(2024, 2, 1), date(2024, 2, 29))
        assert february.month == 2


class TestParsePeriod:
    """Tests for parse_period"""

    def test_month_label(self):
        period = parse_period("January 2025", PeriodType.MONTHLY)
        assert (period.start, period.end) == (date(2025, 1, 1), date(2025, 1, 31))

    def test_quarter_label(self):
        period = parse_period("Q3 2025", "quarterly")
        assert (period.start, period.end) == (date(2025, 7, 1), date(2025, 9, 30))

    @pytest.mark.parametrize("label, period_type", [
        ("Smarch 2025", PeriodType.MONTHLY),
        ("Q5 2025", PeriodType.QUARTERLY),
        ("January", PeriodType.MONTHLY),
        ("January 25", PeriodType.MONTHLY),
        ("January twenty", PeriodType.MONTHLY),
        ("", PeriodType.MONTHLY),
        ("Q1 2025", PeriodType.WEEKLY),
        ("Q1 2025", "yearly"),
    ])
    def test_bad_labels_raise(self, label, period_type):
        with pytest.raises(PeriodLabelError):
            parse_period(label, period_type)

    def test_period_label_error_is_validation_error(self):
        with pytest.raises(CampaignValidationError):
            parse_period("Q9 2025", PeriodType.QUARTERLY)


class TestOverlap:
    """Tests for matches_period / matches_range"""

    def test_campaign_inside_period_matches(self, factory):
        campaign = factory.make_campaign(start_date=date(2025, 1, 10), end_date=date(2025, 1, 20))
        assert matches_period(campaign, "January 2025", PeriodType.MONTHLY)

    def test_campaign_entirely_outside_does_not_match(self, factory):
        campaign = factory.make_campaign(start_date=date(2025, 3, 1), end_date=date(2025, 3, 31))
        assert not matches_period(campaign, "January 2025", PeriodType.MONTHLY)

    def test_campaign_straddling_boundary_matches(self, factory):
        """Dec 15 - Jan 15 overlaps both December and Q1"""
        campaign = factory.make_campaign(start_date=date(2024, 12, 15), end_date=date(2025, 1, 15))
        assert matches_period(campaign, "December 2024", PeriodType.MONTHLY)
        assert matches_period(campaign, "Q1 2025", PeriodType.QUARTERLY)
        assert not matches_period(campaign, "February 2025", PeriodType.MONTHLY)

    def test_single_shared_day_matches(self, factory):
        campaign = factory.make_campaign(start_date=date(2025, 1, 31), end_date=date(2025, 2, 5))
        assert matches_range(campaign, date(2025, 1, 1), date(2025, 1, 31))

    def test_bad_label_fails_closed(self, factory):
        campaign = factory.make_campaign(start_date=date(2025, 1, 1), end_date=date(2025, 1, 31))
        assert matches_period(campaign, "Smarch 2025", PeriodType.MONTHLY) is False


class TestCalendarHelpers:
    """Tests for quarter and month helpers"""

    @pytest.mark.parametrize("month, quarter", [(1, 1), (3, 1), (4, 2), (9, 3), (10, 4), (12, 4)])
    def test_quarter_of(self, month, quarter):
        assert quarter_of(month) == quarter

    def test_months_in_quarter(self):
        assert months_in_quarter(2) == [4, 5, 6]
        assert months_in_quarter("Q4") == [10, 11, 12]
        assert months_in_quarter("Q9") == []

    def test_month_range_spans_whole_months(self):
        period = month_range(date(2025, 2, 14), date(2025, 4, 3))
        assert (period.start, period.end) == (date(2025, 2, 1), date(2025, 4, 30))
        assert period.preset == DatePreset.MONTH_RANGE


class TestDatePresets:
    """Tests for resolve_date_preset"""

    TODAY = date(2025, 5, 20)

    def test_default_is_last_30_days(self):
        period = resolve_date_preset(today=self.TODAY)
        assert period.preset == DatePreset.LAST_30_DAYS
        assert (period.start, period.end) == (date(2025, 4, 20), self.TODAY)

    def test_last_7_days(self):
        period = resolve_date_preset("last-7-days", today=self.TODAY)
        assert (period.start, period.end) == (date(2025, 5, 13), self.TODAY)

    def test_this_and_last_month(self):
        this_month = resolve_date_preset(DatePreset.THIS_MONTH, today=self.TODAY)
        assert (this_month.start, this_month.end) == (date(2025, 5, 1), date(2025, 5, 31))
        last_month = resolve_date_preset(DatePreset.LAST_MONTH, today=self.TODAY)
        assert (last_month.start, last_month.end) == (date(2025, 4, 1), date(2025, 4, 30))

    def test_this_quarter(self):
        period = resolve_date_preset(DatePreset.THIS_QUARTER, today=self.TODAY)
        assert (period.start, period.end) == (date(2025, 4, 1), date(2025, 6, 30))

    def test_last_quarter_wraps_year(self):
        period = resolve_date_preset(DatePreset.LAST_QUARTER, today=date(2025, 2, 10))
        assert (period.start, period.end) == (date(2024, 10, 1), date(2024, 12, 31))

    def test_last_month_wraps_year(self):
        period = resolve_date_preset(DatePreset.LAST_MONTH, today=date(2025, 1, 10))
        assert (period.start, period.end) == (date(2024, 12, 1), date(2024, 12, 31))

    def test_full_year(self):
        period = resolve_date_preset(DatePreset.FULL_YEAR, today=self.TODAY)
        assert (period.start, period.end) == (date(2025, 1, 1), date(2025, 12, 31))

    def test_specific_month(self):
        period = resolve_date_preset(DatePreset.SPECIFIC_MONTH, today=self.TODAY, start=date(2025, 2, 10))
        assert (period.start, period.end) == (date(2025, 2, 1), date(2025, 2, 28))
        assert period.label == "February 2025"

    def test_custom_requires_ordered_dates(self):
        period = resolve_date_preset(DatePreset.CUSTOM, start=date(2025, 1, 5), end=date(2025, 1, 9))
        assert (period.start, period.end) == (date(2025, 1, 5), date(2025, 1, 9))
        with pytest.raises(PeriodLabelError):
            resolve_date_preset(DatePreset.CUSTOM, start=date(2025, 1, 9), end=date(2025, 1, 5))
        with pytest.raises(PeriodLabelError):
            resolve_date_preset(DatePreset.CUSTOM, start=date(2025, 1, 9))

    def test_unknown_preset_raises(self):
        with pytest.raises(PeriodLabelError):
            resolve_date_preset("next-decade", today=self.TODAY)


class TestFilterCampaigns:
    """Tests for the combined dashboard filter"""

    def test_filters_by_range_status_and_channel(self, factory):
        # Given: campaigns in and out of January with mixed status and channel
        inside_meta = factory.make_campaign(
            channel="Meta", start_date=date(2025, 1, 5), end_date=date(2025, 1, 25),
            status=CampaignStatus.ACTIVE,
        )
        inside_legacy = factory.make_campaign(
            channel="Meta", start_date=date(2025, 1, 5), end_date=date(2025, 1, 25),
            status="OK",
        )
        inside_tv = factory.make_campaign(
            channel="TV", start_date=date(2025, 1, 5), end_date=date(2025, 1, 25),
            status=CampaignStatus.ACTIVE,
        )
        outside = factory.make_campaign(
            channel="Meta", start_date=date(2025, 3, 1), end_date=date(2025, 3, 31),
            status=CampaignStatus.ACTIVE,
        )
        january = DateRange(start=date(2025, 1, 1), end=date(2025, 1, 31))

        # When: filtering January, ACTIVE, Meta
        result = filter_campaigns(
            [inside_meta, inside_legacy, inside_tv, outside],
            date_range=january, status="active", channel="Meta",
        )

        # Then: only the in-window Meta campaigns remain, legacy status included
        assert result == [inside_meta, inside_legacy]

    def test_no_filters_returns_everything(self, mixed_campaigns):
        assert filter_campaigns(mixed_campaigns) == mixed_campaigns
