"""
Usage Monitor for YesCode
=========================

Displays the most urgent YesCode balance as a system tray icon.
Left-click the icon to see the full balance popup; the tooltip shows the
label, the PayGo balance, the next weekly reset and whatever else fits.

The API key is stored in ~/.usage-monitor-for-yescode/credentials.json
("Set API Key" in the tray menu).
"""
from __future__ import annotations

import functools
import logging
import threading
import tkinter as tk
import traceback
from tkinter import simpledialog
from typing import Any

import pystray  # type: ignore[import-untyped]  # no type stubs available

from .api import CredentialStore, fetch_profile
from .config import Config, configure
from .i18n import T
from .icon import TrayIndicator, create_icon_image
from .presentation import AlertLevel, tooltip_rows
from .session import Session

log = logging.getLogger(__name__)

# ── Theme ──────────────────────────────────────────────────────
BG = '#1e1e1e'
FG = '#cccccc'
FG_DIM = '#888888'
FG_HEADING = '#ffffff'
FG_ALERT = '#e05050'
SEPARATOR = '#333333'
# ───────────────────────────────────────────────────────────────


def ask_api_key() -> str | None:
    """Show a password prompt and return the entered key (None if cancelled)."""
    root = tk.Tk()
    root.withdraw()
    root.attributes('-topmost', True)  # type: ignore[call-overload]  # tkinter overload stubs incomplete
    try:
        return simpledialog.askstring(T['key_prompt_title'], T['key_prompt'], show='*', parent=root)
    finally:
        root.destroy()


# ── Popup window ───────────────────────────────────────────────

class BalancePopup:
    """Dark-themed popup window showing the full balance tooltip."""

    WIDTH = 340
    REFRESH_MS = 1_000

    def __init__(self, app: UsageMonitorForYesCode) -> None:
        """Create and display the popup.

        Blocks the calling thread until the window is closed (runs its own mainloop).

        Parameters
        ----------
        app : UsageMonitorForYesCode
            Parent application providing the ``indicator`` state.
        """
        self.app = app
        self.root = tk.Tk()
        self.root.withdraw()
        self.win = tk.Toplevel(self.root)
        self.win.overrideredirect(True)
        self.win.attributes('-topmost', True)  # type: ignore[call-overload]  # tkinter overload stubs incomplete
        self.win.configure(bg=BG)
        self.win.minsize(self.WIDTH, 0)
        self.win.resizable(False, False)

        self._shown: tuple[str, str] | None = None
        self._main_frame: tk.Frame | None = None
        self._build_content()

        self.win.update_idletasks()
        self._position_near_tray()
        self._schedule_refresh()

        self.win.bind('<Escape>', lambda e: self._close())
        self.win.bind('<FocusOut>', lambda e: self._close())
        self.win.focus_force()

        self.root.mainloop()

    def _close(self) -> None:
        try:
            self.root.destroy()
        except tk.TclError:
            pass

    def _schedule_refresh(self) -> None:
        try:
            self.root.after(self.REFRESH_MS, self._on_refresh)
        except tk.TclError:
            pass

    def _on_refresh(self) -> None:
        # Rebuild once the refresh started by opening the popup has landed.
        try:
            indicator = self.app.indicator
            if (indicator.text, indicator.tooltip) != self._shown:
                self._build_content()
            self._schedule_refresh()
        except tk.TclError:
            pass

    def _position_near_tray(self) -> None:
        """Place the popup in the bottom-right corner, above the taskbar."""
        w = self.win.winfo_width()
        h = self.win.winfo_height()
        sx = self.win.winfo_screenwidth()
        sy = self.win.winfo_screenheight()
        self.win.geometry(f'+{sx - w - 12}+{sy - h - 60}')

    def _build_content(self) -> None:
        """Build the popup layout: title bar, headline label and one row per tooltip line."""
        indicator = self.app.indicator
        self._shown = (indicator.text, indicator.tooltip)
        if self._main_frame:
            self._main_frame.destroy()

        pad = 16
        self._main_frame = tk.Frame(self.win, bg=BG, padx=pad)
        self._main_frame.pack(fill='both', expand=True, pady=(12, 16))

        # ── Title bar ──
        title_frame = tk.Frame(self._main_frame, bg=BG)
        title_frame.pack(fill='x', pady=(0, 4))
        tk.Label(title_frame, text=T['title'], font=('Segoe UI', 13, 'bold'), fg=FG_HEADING, bg=BG).pack(side='left')
        close_btn = tk.Label(title_frame, text='×', font=('Segoe UI', 16), fg=FG_DIM, bg=BG, cursor='hand2')
        close_btn.pack(side='right')
        close_btn.bind('<Button-1>', lambda e: self._close())

        # ── Headline ──
        tk.Label(
            self._main_frame, text=indicator.text, font=('Segoe UI', 11, 'bold'),
            fg=FG_ALERT if indicator.alert is AlertLevel.ERROR else FG, bg=BG,
        ).pack(anchor='w', pady=(8, 2))
        tk.Frame(self._main_frame, bg=SEPARATOR, height=1).pack(fill='x', pady=(6, 4))

        # ── Details ──
        for label, value in tooltip_rows(indicator.tooltip):
            self._info_row(self._main_frame, label, value)

        refresh = tk.Label(
            self._main_frame, text=T['refresh'], fg=FG_DIM, bg=BG, font=('Segoe UI', 9, 'underline'), cursor='hand2',
        )
        refresh.pack(anchor='e', pady=(10, 0))
        refresh.bind('<Button-1>', lambda e: self.app.on_refresh())

    def _info_row(self, parent: tk.Frame, label: str, value: str) -> None:
        row = tk.Frame(parent, bg=BG)
        row.pack(fill='x', pady=0)
        if label:
            tk.Label(row, text=label, fg=FG_DIM, bg=BG, font=('Segoe UI', 10)).pack(side='left')
            tk.Label(row, text=value, fg=FG, bg=BG, font=('Segoe UI', 10)).pack(side='right')
        else:
            tk.Label(
                row, text=value, fg=FG, bg=BG, font=('Segoe UI', 10), wraplength=self.WIDTH - 32, justify='left',
            ).pack(side='left')


# ── Tray application ──────────────────────────────────────────


class UsageMonitorForYesCode:
    """System tray application displaying the YesCode balance."""

    def __init__(self, config: Config, store: CredentialStore | None = None) -> None:
        """Set up the tray icon with context menu and the refresh session."""
        self.config = config
        self.store = store or CredentialStore()
        self._prompt_open = False
        self._popup_open = False
        self.icon = pystray.Icon(
            'usage_monitor_yescode',
            icon=create_icon_image('...'),
            title=T['loading'],
            menu=pystray.Menu(
                pystray.MenuItem(T['show_balance'], self.on_show_popup, default=True),
                pystray.MenuItem(T['refresh'], self.on_refresh),
                pystray.MenuItem(T['set_api_key'], self.on_set_api_key),
                pystray.MenuItem(T['quit'], self.on_quit),
            ),
        )
        self.indicator = TrayIndicator(self.icon)
        self.session = Session(
            self.indicator,
            fetch=functools.partial(fetch_profile, self.store, config.base_url, config.request_timeout),
            config=config,
            on_missing_key=self._notify_missing_key,
        )

    def on_show_popup(self, icon: Any = None, item: Any = None) -> None:
        self.session.trigger_refresh()
        if self._popup_open:
            return
        threading.Thread(target=self._open_popup, daemon=True).start()

    def on_refresh(self, icon: Any = None, item: Any = None) -> None:
        self.session.trigger_refresh()

    def on_set_api_key(self, icon: Any = None, item: Any = None) -> None:
        if self._prompt_open:
            return
        threading.Thread(target=self._prompt_api_key, daemon=True).start()

    def on_quit(self, icon: Any = None, item: Any = None) -> None:
        self.session.stop()
        self.icon.stop()

    def _open_popup(self) -> None:
        self._popup_open = True
        try:
            BalancePopup(self)
        finally:
            self._popup_open = False

    def _prompt_api_key(self) -> None:
        self._prompt_open = True
        try:
            api_key = (ask_api_key() or '').strip()
            if not api_key:
                self.icon.notify(T['key_not_saved'], T['title'])
                return
            self.store.store_secret(api_key)
            log.info('API key stored')
            self.icon.notify(T['key_saved'], T['title'])
            self.session.key_changed()
        finally:
            self._prompt_open = False

    def _notify_missing_key(self) -> None:
        self.icon.notify(f"{T['warn_no_key']}\n{T['warn_set_key']}", T['title'])

    def _on_icon_ready(self, icon: Any) -> None:
        """Called by pystray in a separate thread once the tray icon is set up."""
        try:
            icon.visible = True
            self.session.start()
        except Exception:
            crash_log(traceback.format_exc())

    def run(self) -> None:
        try:
            self.icon.run(setup=self._on_icon_ready)
        finally:
            self.session.stop()


def crash_log(msg: str) -> None:
    """Record a crash (windowless builds have no console)."""
    log.critical('Usage Monitor for YesCode crashed:\n%s', msg)


def main() -> None:
    config = configure()
    log.info('Usage Monitor for YesCode starting (poll every %ss)', config.poll_interval)
    try:
        UsageMonitorForYesCode(config).run()
    except Exception:
        crash_log(traceback.format_exc())
