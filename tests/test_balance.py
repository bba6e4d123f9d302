"""
Unit tests for the balance classifier and profile parsing.

Invariant tests: PayGo-only always reports PayGo, exhausted subscription
tracks fall back to PayGo, ties favour the daily track, tooltip line order
is the same for every kind.
"""
from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

import pytest

from usage_monitor_for_yescode.balance import (
    BalanceKind,
    BalancePreference,
    ClassificationResult,
    ProfileSnapshot,
    classify,
)
from usage_monitor_for_yescode.errors import MalformedResponse

from .conftest import NOW, profile_payload

TOOLTIP_PREFIXES = ['Plan: ', 'Daily: ', 'Weekly: ', 'Reset: ', 'Expiry: ', 'PayGo: ', '', 'Click to refresh']


def assert_tooltip_order(result: ClassificationResult) -> None:
    lines = result.tooltip.split('\n')
    assert len(lines) == len(TOOLTIP_PREFIXES)
    for line, prefix in zip(lines, TOOLTIP_PREFIXES):
        assert line.startswith(prefix), (line, prefix)
    assert lines[6] == ''


# ---------------------------------------------------------------------------
# Subscription tracks
# ---------------------------------------------------------------------------


class TestSubscriptionTracks:
    def test_daily_more_critical(self, snapshot: ProfileSnapshot) -> None:
        result = classify(snapshot, NOW)

        assert result.kind is BalanceKind.DAILY
        assert result.severity == pytest.approx(40.0)
        assert result.label == 'YesCode Daily: 40%'

    def test_tooltip_shows_both_percentages(self, snapshot: ProfileSnapshot) -> None:
        lines = classify(snapshot, NOW).tooltip.split('\n')

        assert lines[0] == 'Plan: Pro'
        assert lines[1] == 'Daily: $40.00 / $100.00 (40.0%)'
        assert lines[2] == 'Weekly: $140.00 / $200.00 (70.0%)'
        assert lines[3] == 'Reset: 2025-03-10 (in 5 days)'
        assert lines[4] == 'Expiry: 2025-04-01 (in 27 days)'
        assert lines[5] == 'PayGo: $25.50'
        assert lines[7] == 'Click to refresh'

    def test_weekly_more_critical(self, make_snapshot) -> None:
        result = classify(make_snapshot(subscription_balance=90.0, current_week_spend=170.0), NOW)

        assert result.kind is BalanceKind.WEEKLY
        assert result.severity == pytest.approx(15.0)
        assert result.label == 'YesCode Weekly: 15%'

    def test_tie_favours_daily(self, make_snapshot) -> None:
        # daily 50/100 = 50%, weekly (200 - 100)/200 = 50%
        result = classify(make_snapshot(subscription_balance=50.0, current_week_spend=100.0), NOW)

        assert result.kind is BalanceKind.DAILY
        assert result.severity == 50.0

    def test_label_rounds_to_whole_percent(self, make_snapshot) -> None:
        result = classify(make_snapshot(subscription_balance=33.333), NOW)

        assert result.label == 'YesCode Daily: 33%'
        assert '(33.3%)' in result.tooltip.split('\n')[1]

    def test_snapshot_is_not_modified(self, snapshot: ProfileSnapshot) -> None:
        before = repr(snapshot)
        first = classify(snapshot, NOW)
        second = classify(snapshot, NOW)

        assert repr(snapshot) == before
        assert first == second
        assert first is not second


# ---------------------------------------------------------------------------
# PayGo fallback
# ---------------------------------------------------------------------------


class TestPayAsYouGo:
    @pytest.mark.parametrize('balance', [40.0, 0.0, -5.0, 100.0])
    def test_payg_only_mode_always_reports_paygo(self, make_snapshot, balance: float) -> None:
        snap = make_snapshot(
            balance_preference=BalancePreference.PAYG_ONLY,
            subscription_balance=balance,
            pay_as_you_go_balance=12.5,
        )
        result = classify(snap, NOW)

        assert result.kind is BalanceKind.PAY_AS_YOU_GO
        assert result.severity == 12.5
        assert '$12.50' in result.label
        lines = result.tooltip.split('\n')
        assert lines[1] == 'Daily: N/A (PayGo Only Mode)'
        assert lines[2] == 'Weekly: N/A (PayGo Only Mode)'
        assert lines[5] == 'PayGo: $12.50'

    @pytest.mark.parametrize('balance', [0.0, -0.01, -20.0])
    def test_exhausted_daily_falls_back(self, make_snapshot, balance: float) -> None:
        result = classify(make_snapshot(subscription_balance=balance), NOW)

        assert result.kind is BalanceKind.PAY_AS_YOU_GO
        assert result.severity == 25.5
        assert result.label == 'YesCode PayGo: $25.50'

    def test_exhausted_weekly_falls_back(self, make_snapshot) -> None:
        result = classify(make_snapshot(current_week_spend=200.0), NOW)

        assert result.kind is BalanceKind.PAY_AS_YOU_GO
        lines = result.tooltip.split('\n')
        assert lines[1] == 'Daily: $40.00 / $100.00'
        assert lines[2] == 'Weekly: $0.00 / $200.00'

    def test_severity_is_raw_currency(self, make_snapshot) -> None:
        result = classify(make_snapshot(subscription_balance=0.0, pay_as_you_go_balance=250.0), NOW)

        assert result.severity == 250.0

    def test_negative_paygo_balance(self, make_snapshot) -> None:
        result = classify(make_snapshot(subscription_balance=0.0, pay_as_you_go_balance=-3.0), NOW)

        assert result.label == 'YesCode PayGo: $-3.00'

    @pytest.mark.parametrize(('daily_cap', 'weekly_cap'), [(0.0, 200.0), (100.0, 0.0), (-1.0, 200.0)])
    def test_zero_caps_never_yield_non_finite_severity(self, make_snapshot, daily_cap, weekly_cap) -> None:
        snap = make_snapshot(daily_balance=daily_cap, weekly_limit=weekly_cap, current_week_spend=-10.0)
        result = classify(snap, NOW)

        assert result.kind is BalanceKind.PAY_AS_YOU_GO
        assert math.isfinite(result.severity)
        assert 'inf' not in result.tooltip and 'nan' not in result.tooltip


@pytest.mark.parametrize(
    'overrides',
    [
        {},
        {'current_week_spend': 190.0},
        {'subscription_balance': 0.0},
        {'balance_preference': BalancePreference.PAYG_ONLY},
    ],
)
def test_tooltip_line_order_for_every_kind(make_snapshot, overrides) -> None:
    assert_tooltip_order(classify(make_snapshot(**overrides), NOW))


def test_past_reset_and_expiry_read_as_ago(snapshot: ProfileSnapshot) -> None:
    later = snapshot.subscription_expiry + timedelta(days=3)
    lines = classify(snapshot, later).tooltip.split('\n')

    assert lines[3].endswith('days ago)')
    assert lines[4] == 'Expiry: 2025-04-01 (3 days ago)'


# ---------------------------------------------------------------------------
# Wire parsing
# ---------------------------------------------------------------------------


class TestFromDict:
    def test_parses_wire_shape(self) -> None:
        snap = ProfileSnapshot.from_dict(profile_payload())

        assert snap.subscription_balance == 40.0
        assert snap.pay_as_you_go_balance == 25.5
        assert snap.current_week_spend == 60.0
        assert snap.plan.name == 'Pro'
        assert snap.plan.daily_balance == 100.0
        assert snap.plan.weekly_limit == 200.0
        assert snap.balance_preference is BalancePreference.SUBSCRIPTION_FIRST
        assert snap.last_week_reset.astimezone(timezone.utc).hour == 4
        assert snap.subscription_expiry.tzinfo is not None

    def test_scenario_from_wire(self) -> None:
        result = classify(ProfileSnapshot.from_dict(profile_payload()))

        assert result.kind is BalanceKind.DAILY
        assert result.label.endswith('Daily: 40%')

    def test_payg_only_preference(self) -> None:
        snap = ProfileSnapshot.from_dict(profile_payload(balance_preference='payg_only'))
        assert snap.balance_preference is BalancePreference.PAYG_ONLY

    @pytest.mark.parametrize('value', ['subscription_first', 'auto', ''])
    def test_other_preferences_mean_subscription_first(self, value: str) -> None:
        snap = ProfileSnapshot.from_dict(profile_payload(balance_preference=value))
        assert snap.balance_preference is BalancePreference.SUBSCRIPTION_FIRST

    def test_naive_timestamp_is_local(self) -> None:
        snap = ProfileSnapshot.from_dict(profile_payload(last_week_reset='2025-03-03T12:00:00'))
        assert snap.last_week_reset.tzinfo is not None

    @pytest.mark.parametrize(
        ('value', 'expected'),
        [
            ('2025-03-03T04:00:00.1234567Z', datetime(2025, 3, 3, 4, 0, 0, 123456, tzinfo=timezone.utc)),
            ('2025-03-03T04:00:00.5+0000', datetime(2025, 3, 3, 4, 0, 0, 500000, tzinfo=timezone.utc)),
            ('2025-03-03T04:00:00.12Z', datetime(2025, 3, 3, 4, 0, 0, 120000, tzinfo=timezone.utc)),
            ('2025-03-03T09:30:00+0530', datetime(2025, 3, 3, 4, 0, tzinfo=timezone.utc)),
            ('2025-03-02T23:00:00-05:00', datetime(2025, 3, 3, 4, 0, tzinfo=timezone.utc)),
            ('2025-03-03T04:00:00z', datetime(2025, 3, 3, 4, 0, tzinfo=timezone.utc)),
        ],
    )
    def test_rfc3339_variants(self, value: str, expected: datetime) -> None:
        snap = ProfileSnapshot.from_dict(profile_payload(last_week_reset=value))
        assert snap.last_week_reset == expected

    @pytest.mark.parametrize(
        'payload',
        [
            profile_payload(subscription_balance='40'),
            profile_payload(subscription_balance=None),
            profile_payload(pay_as_you_go_balance=True),
            profile_payload(current_week_spend=float('nan')),
            profile_payload(subscription_plan={'name': 'Pro', 'daily_balance': 100}),
            profile_payload(subscription_plan=None),
            profile_payload(subscription_plan={'name': 7, 'daily_balance': 100, 'weekly_limit': 200}),
            profile_payload(last_week_reset='next tuesday'),
            profile_payload(subscription_expiry=12345),
            {k: v for k, v in profile_payload().items() if k != 'balance_preference'},
            [],
            'error',
            None,
        ],
    )
    def test_malformed(self, payload) -> None:
        with pytest.raises(MalformedResponse):
            ProfileSnapshot.from_dict(payload)
