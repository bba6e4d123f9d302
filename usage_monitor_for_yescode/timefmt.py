"""Calendar dates and short relative-time phrases for reset/expiry timestamps."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from .i18n import T

WEEK = timedelta(days=7)


def format_date(ts: datetime) -> str:
    """Return *ts* as ``YYYY-MM-DD`` in the local time zone."""
    return ts.astimezone().strftime('%Y-%m-%d')


def next_weekly_reset(last_reset: datetime) -> datetime:
    """Return the timestamp of the weekly-cap reset following *last_reset*."""
    return last_reset + WEEK


def days_until(target: datetime, now: datetime | None = None) -> str:
    """Return a short phrase for the distance from *now* to *target*.

    Within a day either way the phrase uses whole hours
    ("in 3 hours", "1 hour ago", "less than 1 hour"), beyond that whole days
    ("in 2 days", "5 days ago"). Both are floored, so 30 minutes in the past
    already reads "1 hour ago" and 23h30m in the past "24 hours ago".
    Exactly 24 hours ahead reads "in 1 day", 23h59m ahead "in 23 hours".
    """
    if now is None:
        now = datetime.now(timezone.utc)

    seconds = (target - now).total_seconds()
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if abs(seconds) < 86400:
        if hours == 0:
            return T['less_than_hour']
        if hours == 1:
            return T['in_one_hour']
        if hours == -1:
            return T['one_hour_ago']
        if hours > 0:
            return T['in_hours'].format(n=hours)
        return T['hours_ago'].format(n=-hours)

    if days == 0:
        return T['today']
    if days == 1:
        return T['in_one_day']
    if days < 0:
        return T['days_ago'].format(n=-days)
    return T['in_days'].format(n=days)
