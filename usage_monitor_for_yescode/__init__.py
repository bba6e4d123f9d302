"""Usage Monitor for YesCode: YesCode balance in the system tray."""

__version__ = '1.0.0'
