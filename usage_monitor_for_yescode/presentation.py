"""Maps classification results and fetch failures to tray indicator states."""
from __future__ import annotations

import enum
from dataclasses import dataclass

from .balance import BalanceKind, ClassificationResult
from .config import Thresholds
from .i18n import T


class AlertLevel(enum.Enum):
    NONE = 'none'
    ERROR = 'error'


@dataclass(frozen=True)
class IndicatorState:
    text: str
    tooltip: str
    alert: AlertLevel
    icon_text: str


def alert_level(kind: BalanceKind, severity: float, thresholds: Thresholds) -> AlertLevel:
    """Return the alert level for a classification.

    Percent tracks are compared against ``warn_pct``, the PayGo dollar
    amount against ``paygo_abs``.
    """
    limit = thresholds.paygo_abs if kind is BalanceKind.PAY_AS_YOU_GO else thresholds.warn_pct
    return AlertLevel.ERROR if severity < limit else AlertLevel.NONE


def icon_text(result: ClassificationResult) -> str:
    """Short glyph for the 64x64 tray icon, e.g. ``'40'`` or ``'$12'``."""
    if result.kind is BalanceKind.PAY_AS_YOU_GO:
        return f'${max(0.0, result.severity):.0f}'
    return f'{max(0.0, min(100.0, result.severity)):.0f}'


def present(result: ClassificationResult, thresholds: Thresholds) -> IndicatorState:
    return IndicatorState(
        text=result.label,
        tooltip=result.tooltip,
        alert=alert_level(result.kind, result.severity, thresholds),
        icon_text=icon_text(result),
    )


TITLE_MAX = 127  # Windows truncates longer tray tooltips

# Tooltip line indices in the order they earn a place in the tray title:
# PayGo, Reset, Daily, Weekly, Expiry, Plan.
TITLE_PRIORITY = (5, 3, 1, 2, 4, 0)


def compact_title(text: str, tooltip: str, limit: int = TITLE_MAX) -> str:
    """Return the tray title: *text* plus the tooltip lines that fit into *limit*.

    Balance tooltips are too long for a tray title, so lines are picked by
    ``TITLE_PRIORITY`` and kept in their original order. Blank lines and the
    call-to-action are dropped; short tooltips (errors, loading) fit whole.
    """
    lines = tooltip.split('\n') if tooltip else []
    order = [i for i in TITLE_PRIORITY if i < len(lines)]
    order += [i for i in range(len(lines)) if i not in order]

    chosen: set[int] = set()
    size = len(text)
    for i in order:
        line = lines[i]
        if not line or line == T['tip_action']:
            continue
        if size + 1 + len(line) <= limit:
            chosen.add(i)
            size += 1 + len(line)

    return '\n'.join([text] + [lines[i] for i in sorted(chosen)])[:limit]


def tooltip_rows(tooltip: str) -> list[tuple[str, str]]:
    """Split ``'Key: value'`` tooltip lines into rows for the detail popup."""
    rows = []
    for line in tooltip.split('\n'):
        key, sep, value = line.partition(': ')
        if sep:
            rows.append((key, value))
        elif line and line != T['tip_action']:
            rows.append(('', line))
    return rows


def loading_state() -> IndicatorState:
    return IndicatorState(T['refreshing'], T['loading'], AlertLevel.NONE, '...')


def error_state(message: str | None = None) -> IndicatorState:
    """Indicator state after a failed fetch; *message* defaults to the retry hint."""
    return IndicatorState(T['error_label'], message or T['error_fetch'], AlertLevel.ERROR, '!')


def missing_key_state() -> IndicatorState:
    return IndicatorState(T['no_key_label'], T['no_key_tooltip'], AlertLevel.ERROR, '?')
