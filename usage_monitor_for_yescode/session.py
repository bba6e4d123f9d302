"""Refresh session: periodic and manual triggers driving fetch → classify → present."""
from __future__ import annotations

import itertools
import logging
import threading
import time
from typing import Callable, Protocol

from .balance import ProfileSnapshot, classify
from .config import Config
from .errors import CredentialMissing, FetchError
from .i18n import T
from .presentation import AlertLevel, IndicatorState, error_state, loading_state, missing_key_state, present

log = logging.getLogger(__name__)


class Indicator(Protocol):
    """Always-visible surface the session writes its state to."""

    def set_text(self, text: str) -> None: ...

    def set_tooltip(self, tooltip: str) -> None: ...

    def set_alert(self, level: AlertLevel) -> None: ...

    def set_icon_text(self, text: str) -> None: ...


class Session:
    """Owns the indicator and the poll thread for one run of the app.

    Every refresh gets a sequence number; a result is only shown if no newer
    refresh was started in the meantime, so a slow response never overwrites
    a fresher one.
    """

    def __init__(
        self,
        indicator: Indicator,
        fetch: Callable[[], ProfileSnapshot],
        config: Config,
        on_missing_key: Callable[[], None] | None = None,
    ) -> None:
        self.indicator = indicator
        self.fetch = fetch
        self.config = config
        self.on_missing_key = on_missing_key
        self.last_snapshot: ProfileSnapshot | None = None

        self._seq = itertools.count(1)
        self._latest = 0
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._last_manual: float | None = None
        self._key_warned = False

    @property
    def running(self) -> bool:
        return self._thread is not None and not self._stop.is_set()

    def start(self) -> None:
        """Show the first balance and start automatic refreshes."""
        if self._thread is not None:
            return
        self.trigger_refresh()
        self._thread = threading.Thread(target=self._poll_loop, name='yescode-poll', daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """Cancel the pending interval and wait for the poll thread to exit."""
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _poll_loop(self) -> None:
        # Event.wait returns True as soon as stop() is called
        while not self._stop.wait(self.config.poll_interval):
            log.debug('Automatic refresh triggered')
            self.refresh(manual=False)

    def trigger_refresh(self) -> bool:
        """Run a manual refresh in the background.

        Returns
        -------
        bool
            False if the request was dropped because of ``manual_cooldown``.
        """
        now = time.monotonic()
        with self._lock:
            if self._last_manual is not None and now - self._last_manual < self.config.manual_cooldown:
                log.debug('Manual refresh ignored (cooldown)')
                return False
            self._last_manual = now

        threading.Thread(target=self.refresh, kwargs={'manual': True}, daemon=True).start()
        return True

    def refresh(self, manual: bool = False) -> None:
        """Fetch, classify and show the balance. Never raises."""
        with self._lock:
            seq = next(self._seq)
            self._latest = seq

        if manual:
            self._apply(seq, loading_state())

        snapshot = None
        try:
            snapshot = self.fetch()
            result = classify(snapshot)
            state = present(result, self.config.thresholds)
        except CredentialMissing:
            log.warning('API key not set')
            state = missing_key_state()
            self._warn_missing_key()
        except FetchError as e:
            log.warning('Error fetching balance: %s', e)
            state = error_state()
        except Exception:
            log.exception('Error updating balance')
            state = error_state(T['error_unexpected'])

        if self._apply(seq, state, snapshot) and manual and snapshot is not None:
            log.info('Balance updated successfully: %s', state.text)

    def _apply(self, seq: int, state: IndicatorState, snapshot: ProfileSnapshot | None = None) -> bool:
        with self._lock:
            if seq != self._latest:
                log.debug('Discarding stale refresh #%d (latest #%d)', seq, self._latest)
                return False
            if snapshot is not None:
                self.last_snapshot = snapshot
            self.indicator.set_text(state.text)
            self.indicator.set_tooltip(state.tooltip)
            self.indicator.set_alert(state.alert)
            self.indicator.set_icon_text(state.icon_text)
        return True

    def _warn_missing_key(self) -> None:
        # One prompt per session; the indicator keeps showing the hint.
        if self._key_warned or self.on_missing_key is None:
            return
        self._key_warned = True
        try:
            self.on_missing_key()
        except Exception:
            log.exception('Missing-key callback failed')

    def key_changed(self) -> None:
        """Re-enable the missing-key prompt and refresh with the new key."""
        self._key_warned = False
        self._last_manual = None
        self.trigger_refresh()
