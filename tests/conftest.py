"""
Shared test fixtures for the Usage Monitor for YesCode test suite.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Callable

import pytest

from usage_monitor_for_yescode.balance import BalancePreference, ProfileSnapshot, SubscriptionPlan

# Local-time noon keeps calendar dates stable whatever TZ the tests run in.
LAST_RESET = datetime(2025, 3, 3, 12, 0).astimezone()
NOW = LAST_RESET + timedelta(days=2)
EXPIRY = LAST_RESET + timedelta(days=29)  # 2025-04-01


def profile_payload(**overrides: Any) -> dict[str, Any]:
    """Wire-format profile body as returned by ``/api/v1/auth/profile``."""
    data: dict[str, Any] = {
        'subscription_balance': 40,
        'pay_as_you_go_balance': 25.5,
        'current_week_spend': 60,
        'subscription_plan': {'name': 'Pro', 'daily_balance': 100, 'weekly_limit': 200},
        'balance_preference': 'subscription_first',
        'last_week_reset': '2025-03-03T04:00:00Z',
        'subscription_expiry': '2025-04-01T04:00:00+00:00',
    }
    data.update(overrides)
    return data


@pytest.fixture
def snapshot() -> ProfileSnapshot:
    """Daily 40/100, weekly spend 60 of 200, PayGo $25.50."""
    return ProfileSnapshot(
        subscription_balance=40.0,
        pay_as_you_go_balance=25.5,
        current_week_spend=60.0,
        plan=SubscriptionPlan(name='Pro', daily_balance=100.0, weekly_limit=200.0),
        balance_preference=BalancePreference.SUBSCRIPTION_FIRST,
        last_week_reset=LAST_RESET,
        subscription_expiry=EXPIRY,
    )


@pytest.fixture
def make_snapshot(snapshot: ProfileSnapshot) -> Callable[..., ProfileSnapshot]:
    """Copy of the default snapshot with fields (and ``plan`` fields) replaced."""
    def _make(**overrides: Any) -> ProfileSnapshot:
        plan_fields = {k: overrides.pop(k) for k in ('name', 'daily_balance', 'weekly_limit') if k in overrides}
        plan = replace(snapshot.plan, **plan_fields)
        return replace(snapshot, plan=plan, **overrides)

    return _make
