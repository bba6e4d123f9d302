"""
Balance Classification
======================

Reduces a profile snapshot to the single most urgent of three competing
limits:

* the daily subscription allotment,
* the weekly subscription cap,
* the pay-as-you-go balance.

The subscription tracks are compared by remaining percentage; the one closer
to exhaustion is reported (ties go to daily). Once either subscription track
is used up, or the user runs in PayGo-only mode, the pay-as-you-go balance is
reported instead.
"""
from __future__ import annotations

import enum
import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .errors import MalformedResponse
from .i18n import T
from .timefmt import days_until, format_date, next_weekly_reset


class BalancePreference(enum.Enum):
    SUBSCRIPTION_FIRST = 'subscription_first'
    PAYG_ONLY = 'payg_only'

    @classmethod
    def from_wire(cls, value: str) -> BalancePreference:
        return cls.PAYG_ONLY if value == cls.PAYG_ONLY.value else cls.SUBSCRIPTION_FIRST


class BalanceKind(enum.Enum):
    DAILY = 'daily'
    WEEKLY = 'weekly'
    PAY_AS_YOU_GO = 'payGo'


def _number(data: dict[str, Any], key: str) -> float:
    value = data[key]
    # bool is an int subclass but never a valid amount
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedResponse(f'{key} is not a number: {value!r}')
    value = float(value)
    if not math.isfinite(value):
        raise MalformedResponse(f'{key} is not finite: {value!r}')
    return value


# datetime.fromisoformat() before 3.11 only takes 3 or 6 fraction digits and
# ``+HH:MM`` offsets.
_FRACTION = re.compile(r'(?<=:\d\d)\.(\d+)')
_OFFSET = re.compile(r'(?<=\d)(?:[Zz]|([+-]\d\d):?(\d\d))$')


def _normalise_iso(value: str) -> str:
    value = _FRACTION.sub(lambda m: '.' + m.group(1)[:6].ljust(6, '0'), value, count=1)
    return _OFFSET.sub(lambda m: f'{m.group(1)}:{m.group(2)}' if m.group(1) else '+00:00', value, count=1)


def _timestamp(data: dict[str, Any], key: str) -> datetime:
    value = data[key]
    if not isinstance(value, str):
        raise MalformedResponse(f'{key} is not a timestamp: {value!r}')
    try:
        ts = datetime.fromisoformat(_normalise_iso(value.strip()))
    except ValueError:
        raise MalformedResponse(f'{key} is not ISO 8601: {value!r}') from None
    if ts.tzinfo is None:
        ts = ts.astimezone()
    return ts


@dataclass(frozen=True)
class SubscriptionPlan:
    name: str
    daily_balance: float
    weekly_limit: float


@dataclass(frozen=True)
class ProfileSnapshot:
    """One fetched copy of the account's billing state."""

    subscription_balance: float
    pay_as_you_go_balance: float
    current_week_spend: float
    plan: SubscriptionPlan
    balance_preference: BalancePreference
    last_week_reset: datetime
    subscription_expiry: datetime

    @classmethod
    def from_dict(cls, data: Any) -> ProfileSnapshot:
        """Parse the JSON body of ``/api/v1/auth/profile``.

        Raises
        ------
        MalformedResponse
            If a field is missing or has the wrong type.
        """
        try:
            plan_data = data['subscription_plan']
            name = plan_data['name']
            preference = data['balance_preference']
            if not isinstance(name, str) or not isinstance(preference, str):
                raise MalformedResponse('plan name and balance_preference must be strings')

            return cls(
                subscription_balance=_number(data, 'subscription_balance'),
                pay_as_you_go_balance=_number(data, 'pay_as_you_go_balance'),
                current_week_spend=_number(data, 'current_week_spend'),
                plan=SubscriptionPlan(
                    name=name,
                    daily_balance=_number(plan_data, 'daily_balance'),
                    weekly_limit=_number(plan_data, 'weekly_limit'),
                ),
                balance_preference=BalancePreference.from_wire(preference),
                last_week_reset=_timestamp(data, 'last_week_reset'),
                subscription_expiry=_timestamp(data, 'subscription_expiry'),
            )
        except (KeyError, TypeError) as e:
            raise MalformedResponse(f'unexpected profile shape: {e!r}') from e


@dataclass(frozen=True)
class ClassificationResult:
    """Most urgent constraint of a snapshot.

    ``severity`` is the remaining percentage for ``DAILY``/``WEEKLY`` but the
    raw PayGo dollar amount for ``PAY_AS_YOU_GO``; it is not bounded to 0-100.
    """

    kind: BalanceKind
    severity: float
    label: str
    tooltip: str


def _tooltip(snapshot: ProfileSnapshot, daily: str, weekly: str, now: datetime | None) -> str:
    reset = next_weekly_reset(snapshot.last_week_reset)
    expiry = snapshot.subscription_expiry

    return '\n'.join([
        T['tip_plan'].format(name=snapshot.plan.name),
        daily,
        weekly,
        T['tip_reset'].format(date=format_date(reset), relative=days_until(reset, now)),
        T['tip_expiry'].format(date=format_date(expiry), relative=days_until(expiry, now)),
        T['tip_paygo'].format(amount=snapshot.pay_as_you_go_balance),
        '',
        T['tip_action'],
    ])


def _pay_as_you_go(snapshot: ProfileSnapshot, tooltip: str) -> ClassificationResult:
    amount = snapshot.pay_as_you_go_balance
    return ClassificationResult(
        kind=BalanceKind.PAY_AS_YOU_GO,
        severity=amount,
        label=T['label_paygo'].format(amount=amount),
        tooltip=tooltip,
    )


def classify(snapshot: ProfileSnapshot, now: datetime | None = None) -> ClassificationResult:
    """Pick the most urgent balance track of *snapshot*.

    Parameters
    ----------
    snapshot : ProfileSnapshot
        Fetched profile; not modified.
    now : datetime, optional
        Reference time for the relative reset/expiry phrases.

    Returns
    -------
    ClassificationResult
        A new result; severity is always finite.
    """
    if snapshot.balance_preference is BalancePreference.PAYG_ONLY:
        tooltip = _tooltip(snapshot, T['tip_daily_na'], T['tip_weekly_na'], now)
        return _pay_as_you_go(snapshot, tooltip)

    plan = snapshot.plan
    daily = snapshot.subscription_balance
    weekly = plan.weekly_limit - snapshot.current_week_spend

    # Non-positive caps would give infinite/NaN percentages, so such a plan
    # is treated like an exhausted subscription.
    if daily <= 0 or weekly <= 0 or plan.daily_balance <= 0 or plan.weekly_limit <= 0:
        tooltip = _tooltip(
            snapshot,
            T['tip_daily'].format(balance=daily, cap=plan.daily_balance),
            T['tip_weekly'].format(balance=weekly, cap=plan.weekly_limit),
            now,
        )
        return _pay_as_you_go(snapshot, tooltip)

    daily_pct = daily / plan.daily_balance * 100
    weekly_pct = weekly / plan.weekly_limit * 100

    tooltip = _tooltip(
        snapshot,
        T['tip_daily_pct'].format(balance=daily, cap=plan.daily_balance, pct=daily_pct),
        T['tip_weekly_pct'].format(balance=weekly, cap=plan.weekly_limit, pct=weekly_pct),
        now,
    )

    if daily_pct <= weekly_pct:
        return ClassificationResult(BalanceKind.DAILY, daily_pct, T['label_daily'].format(pct=daily_pct), tooltip)
    return ClassificationResult(BalanceKind.WEEKLY, weekly_pct, T['label_weekly'].format(pct=weekly_pct), tooltip)
