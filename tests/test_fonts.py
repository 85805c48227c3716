from pathlib import Path

import httpx
import pytest
import reportlab
from structlog.testing import capture_logs

from worktime_reports import fonts
from worktime_reports.fonts import CJK_FONT_NAME, FALLBACK, ensure_cjk_font, reset_font_cache

VERA = Path(reportlab.__file__).resolve().parent / "fonts" / "Vera.ttf"


@pytest.fixture(autouse=True)
def clean_font_cache():
    reset_font_cache()
    yield
    reset_font_cache()


def test_missing_font_falls_back_to_helvetica(tmp_path):
    with capture_logs() as logs:
        pair = ensure_cjk_font(font_path=str(tmp_path / "missing.ttf"))

    assert pair == FALLBACK
    assert not pair.embedded
    assert logs[0]["event"] == "font_load_failed"
    assert logs[0]["log_level"] == "warning"


def test_corrupt_font_falls_back(tmp_path):
    broken = tmp_path / "broken.ttf"
    broken.write_bytes(b"not a font")

    assert ensure_cjk_font(font_path=str(broken)) == FALLBACK


def test_unconfigured_font_falls_back():
    assert ensure_cjk_font() == FALLBACK


def test_font_url_failure_falls_back(monkeypatch):
    def boom(*args, **kwargs):
        raise httpx.ConnectError("offline")

    monkeypatch.setattr(fonts.httpx, "get", boom)

    assert ensure_cjk_font(font_url="https://fonts.example.com/NotoSansTC.ttf") == FALLBACK


def test_font_is_registered_once(monkeypatch):
    if not VERA.exists():
        pytest.skip("reportlab bundled fonts unavailable")
    payload = VERA.read_bytes()
    calls = []

    def fake_get(url, **kwargs):
        calls.append(url)
        return httpx.Response(200, content=payload, request=httpx.Request("GET", url))

    monkeypatch.setattr(fonts.httpx, "get", fake_get)

    first = ensure_cjk_font(font_url="https://fonts.example.com/font.ttf")
    second = ensure_cjk_font(font_url="https://fonts.example.com/font.ttf")

    assert first.regular == CJK_FONT_NAME
    assert first.embedded
    assert second == first
    assert len(calls) == 1
