"""
Build Script
=============

Builds a standalone EXE for Usage Monitor for YesCode using PyInstaller.

Usage:
    python build.py

Produces:
    dist/UsageMonitorForYesCode.exe  (dist/UsageMonitorForYesCode elsewhere)
"""
from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).parent
DIST = ROOT / 'dist'
NAME = 'UsageMonitorForYesCode'
ENTRY = ROOT / 'usage_monitor_for_yescode' / '__main__.py'
LOCALE = ROOT / 'usage_monitor_for_yescode' / 'locale'


def pyinstaller_args() -> list[str]:
    """Return the PyInstaller command line for a one-file windowed build."""
    return [
        sys.executable, '-m', 'PyInstaller', '--clean', '--noconfirm',
        '--onefile', '--windowed', '--name', NAME,
        '--add-data', f'{LOCALE}{os.pathsep}usage_monitor_for_yescode/locale',
        '--version-file', str(ROOT / 'version_info.py'),
        str(ENTRY),
    ]


def build() -> None:
    """Run PyInstaller to produce the standalone EXE."""
    print('Starting PyInstaller build ...')
    subprocess.check_call(pyinstaller_args(), cwd=str(ROOT))

    exe = DIST / (f'{NAME}.exe' if sys.platform == 'win32' else NAME)
    if exe.exists():
        size_mb = exe.stat().st_size / (1024 * 1024)
        print(f'\nBuild successful!  {exe}  ({size_mb:.1f} MB)')
    else:
        print('\nBuild failed - executable not found.')
        sys.exit(1)


if __name__ == '__main__':
    build()
