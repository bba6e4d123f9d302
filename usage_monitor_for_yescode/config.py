"""
Configuration
=============

Module-level defaults plus an optional JSON override file::

    ~/.usage-monitor-for-yescode/config.json

    {
        "poll_interval": 60,
        "threshold_policy": "relaxed",
        "paygo_threshold_abs": 7.5
    }

``threshold_policy`` selects one of ``THRESHOLD_POLICIES``; the explicit
``warn_threshold_pct`` / ``paygo_threshold_abs`` keys override single values
of the selected policy.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

log = logging.getLogger(__name__)

# ── Defaults ───────────────────────────────────────────────────
APP_DIR = Path.home() / '.usage-monitor-for-yescode'
CONFIG_FILE = APP_DIR / 'config.json'
CREDENTIALS_FILE = APP_DIR / 'credentials.json'
LOG_FILE = APP_DIR / 'monitor.log'

DEFAULT_BASE_URL = 'https://co.yes.vg'
PROFILE_PATH = '/api/v1/auth/profile'
REQUEST_TIMEOUT = 10  # Seconds

POLL_INTERVAL = 60  # Seconds between automatic refreshes
MANUAL_COOLDOWN = 0  # Seconds a manual refresh blocks further manual refreshes

# (warn_pct, paygo_abs): DAILY/WEEKLY alert below warn_pct percent,
# PAY_AS_YOU_GO alert below paygo_abs dollars.
THRESHOLD_POLICIES: dict[str, tuple[float, float]] = {
    'standard': (20.0, 10.0),
    'relaxed': (10.0, 5.0),
}
DEFAULT_THRESHOLD_POLICY = 'standard'
# ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Thresholds:
    """Alert thresholds of the presentation layer."""

    warn_pct: float
    paygo_abs: float

    @classmethod
    def from_policy(cls, name: str) -> Thresholds:
        try:
            warn_pct, paygo_abs = THRESHOLD_POLICIES[name]
        except KeyError:
            raise ValueError(f'unknown threshold policy: {name!r}') from None
        return cls(warn_pct, paygo_abs)


@dataclass(frozen=True)
class Config:
    base_url: str = DEFAULT_BASE_URL
    poll_interval: float = POLL_INTERVAL
    manual_cooldown: float = MANUAL_COOLDOWN
    request_timeout: float = REQUEST_TIMEOUT
    thresholds: Thresholds = field(default_factory=lambda: Thresholds.from_policy(DEFAULT_THRESHOLD_POLICY))
    log_level: str = 'INFO'

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise ValueError(f'poll_interval must be positive, got {self.poll_interval!r}')
        if self.manual_cooldown < 0:
            raise ValueError(f'manual_cooldown must not be negative, got {self.manual_cooldown!r}')
        if self.request_timeout <= 0:
            raise ValueError(f'request_timeout must be positive, got {self.request_timeout!r}')
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f'unknown log_level: {self.log_level!r}')

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Build a config from a parsed JSON object; unknown keys are ignored."""
        thresholds = Thresholds.from_policy(data.get('threshold_policy', DEFAULT_THRESHOLD_POLICY))
        thresholds = Thresholds(
            warn_pct=float(data.get('warn_threshold_pct', thresholds.warn_pct)),
            paygo_abs=float(data.get('paygo_threshold_abs', thresholds.paygo_abs)),
        )

        return cls(
            base_url=str(data.get('base_url', DEFAULT_BASE_URL)),
            poll_interval=float(data.get('poll_interval', POLL_INTERVAL)),
            manual_cooldown=float(data.get('manual_cooldown', MANUAL_COOLDOWN)),
            request_timeout=float(data.get('request_timeout', REQUEST_TIMEOUT)),
            thresholds=thresholds,
            log_level=str(data.get('log_level', 'INFO')),
        )


def load_config(path: Path = CONFIG_FILE) -> Config:
    """Load the config file at *path*, falling back to defaults.

    A missing file is not an error. A file that cannot be read or holds
    invalid values is logged and ignored.
    """
    if not path.exists():
        return Config()

    try:
        data = json.loads(path.read_text(encoding='utf-8'))
        if not isinstance(data, dict):
            raise ValueError('config root must be a JSON object')
        return Config.from_dict(data)
    except (OSError, ValueError, TypeError) as e:
        log.warning('Ignoring config file %s: %s', path, e)
        return Config()


def setup_logging(level: str = 'INFO', log_file: Path = LOG_FILE) -> logging.Handler:
    """Send log records to *log_file* (the tray build has no console).

    Safe to call again with another *level*: the file handler is attached to
    the root logger once and only the level changes.
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)
    root = logging.getLogger()
    target = os.path.abspath(log_file)
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
            break
    else:
        handler = logging.FileHandler(log_file, encoding='utf-8')
        handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(message)s'))
        root.addHandler(handler)
    root.setLevel(level.upper())
    return handler


def configure(path: Path = CONFIG_FILE, log_file: Path = LOG_FILE) -> Config:
    """Start file logging, load the config file, then apply its log level.

    Logging is up before the config is read so that a rejected config file
    is recorded in the log.
    """
    setup_logging('INFO', log_file)
    config = load_config(path)
    setup_logging(config.log_level, log_file)
    return config
