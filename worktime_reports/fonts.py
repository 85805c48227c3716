"""Embedded CJK font for PDF exports.

The font is fetched once per process and registered with reportlab; later
exports reuse the registration. A font that cannot be loaded is logged and
the export falls back to Helvetica instead of failing.
"""

from __future__ import annotations

import io
import threading
from dataclasses import dataclass
from pathlib import Path

import httpx
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont

from worktime.logging import get_logger

logger = get_logger(__name__)

CJK_FONT_NAME = "NotoSansTC"
FALLBACK_FONT = "Helvetica"
FALLBACK_BOLD_FONT = "Helvetica-Bold"
FONT_FETCH_TIMEOUT = 30.0


@dataclass(frozen=True)
class FontPair:
    regular: str
    bold: str

    @property
    def embedded(self) -> bool:
        return self.regular == CJK_FONT_NAME


FALLBACK = FontPair(FALLBACK_FONT, FALLBACK_BOLD_FONT)

_lock = threading.Lock()
_font_bytes: bytes | None = None


def _read_font(font_path: str | None, font_url: str | None) -> bytes:
    if font_path:
        return Path(font_path).read_bytes()
    if font_url:
        response = httpx.get(font_url, timeout=FONT_FETCH_TIMEOUT, follow_redirects=True)
        response.raise_for_status()
        return response.content
    raise FileNotFoundError("No CJK font path or URL configured")


def ensure_cjk_font(font_path: str | None = None, font_url: str | None = None) -> FontPair:
    global _font_bytes
    with _lock:
        if _font_bytes is not None:
            return FontPair(CJK_FONT_NAME, CJK_FONT_NAME)
        try:
            data = _read_font(font_path, font_url)
            pdfmetrics.registerFont(TTFont(CJK_FONT_NAME, io.BytesIO(data)))
        except (OSError, httpx.HTTPError, TTFError) as exc:
            logger.warning(
                "font_load_failed",
                font_path=font_path,
                font_url=font_url,
                error=str(exc),
                fallback=FALLBACK_FONT,
            )
            return FALLBACK
        _font_bytes = data
        logger.info("font_loaded", font=CJK_FONT_NAME, size=len(data))
        return FontPair(CJK_FONT_NAME, CJK_FONT_NAME)


def reset_font_cache() -> None:
    global _font_bytes
    with _lock:
        _font_bytes = None
