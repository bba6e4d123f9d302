"""Tray icon rendering and the indicator surface behind the pystray icon."""
from __future__ import annotations

import functools
import os
from typing import Any

from PIL import Image, ImageDraw, ImageFont

from .i18n import T
from .presentation import AlertLevel, compact_title

# ── Icon creation ──────────────────────────────────────────────
# Monochrome glyph on a transparent 64x64 canvas; alerts get a red badge.

FG = (255, 255, 255, 255)
FG_DIM = (255, 255, 255, 140)
ALERT_BG = (224, 80, 80, 255)
TRANSPARENT = (0, 0, 0, 0)
ICON_SIZE = 64


@functools.lru_cache(maxsize=None)
def load_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load a bold sans-serif font at given size, falling back to Pillow's default."""
    windir = os.environ.get('WINDIR', 'C:\\Windows')
    names = (
        f'{windir}\\Fonts\\arialbd.ttf', 'arialbd.ttf', 'Arial Bold.ttf',
        'DejaVuSans-Bold.ttf', f'{windir}\\Fonts\\arial.ttf', 'arial.ttf',
    )
    for name in names:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue

    return ImageFont.load_default()


def create_icon_image(text: str, alert: AlertLevel = AlertLevel.NONE) -> Image.Image:
    """Create the tray icon: *text* centered, shrunk to fit, red badge on alert."""
    S = ICON_SIZE
    img = Image.new('RGBA', (S, S), TRANSPARENT)
    draw = ImageDraw.Draw(img)

    if alert is AlertLevel.ERROR:
        draw.rounded_rectangle([0, 0, S - 1, S - 1], radius=12, fill=ALERT_BG)

    fill = FG if text not in ('...', '?') else FG_DIM
    for size in (46, 38, 30, 24):
        font = load_font(size)
        bbox = draw.textbbox((0, 0), text, font=font)
        if bbox[2] - bbox[0] <= S - 4:
            break
    tw, th = bbox[2] - bbox[0], bbox[3] - bbox[1]
    draw.text(((S - tw) / 2 - bbox[0], (S - th) / 2 - bbox[1]), text, fill=fill, font=font)

    return img


class TrayIndicator:
    """Indicator surface backed by a pystray icon.

    pystray has no separate text field, so the label becomes the first line
    of the icon title, followed by the tooltip lines that fit. The full
    tooltip stays available in ``tooltip`` for the detail popup.
    """

    def __init__(self, icon: Any) -> None:
        self.icon = icon
        self.text = T['loading']
        self.tooltip = ''
        self.alert = AlertLevel.NONE
        self._icon_text = '...'

    def set_text(self, text: str) -> None:
        self.text = text
        self._update_title()

    def set_tooltip(self, tooltip: str) -> None:
        self.tooltip = tooltip
        self._update_title()

    def set_alert(self, level: AlertLevel) -> None:
        self.alert = level
        self._update_image()

    def set_icon_text(self, text: str) -> None:
        self._icon_text = text
        self._update_image()

    def _update_title(self) -> None:
        self.icon.title = compact_title(self.text, self.tooltip)

    def _update_image(self) -> None:
        self.icon.icon = create_icon_image(self._icon_text, self.alert)
