import asyncio
import io
from dataclasses import replace
from types import SimpleNamespace

import pytest
from PIL import Image

from capture_website import engine
from capture_website.engine import (
    PageCapture,
    injection_kwargs,
    inset_region,
    is_ad_host,
    pdf_margin,
    to_webp,
)
from capture_website.errors import CaptureError, OutputWriteError
from capture_website.options import CaptureOptions

DEVICES = {
    "iPhone 12": {
        "user_agent": "Mozilla/5.0 (iPhone)",
        "viewport": {"width": 390, "height": 664},
        "device_scale_factor": 3,
        "is_mobile": True,
        "has_touch": True,
        "default_browser_type": "webkit",
    }
}


def test_inset_region_scalar():
    box = {"x": 0, "y": 0, "width": 1280, "height": 800}
    assert inset_region(box, 10) == {"x": 10, "y": 10, "width": 1260, "height": 780}


def test_inset_region_per_side():
    box = {"x": 100, "y": 50, "width": 400, "height": 300}
    inset = {"top": 10, "right": -15, "bottom": -15, "left": 25}
    assert inset_region(box, inset) == {"x": 125, "y": 60, "width": 390, "height": 305}


def test_inset_region_too_large():
    with pytest.raises(CaptureError, match="greater than 0"):
        inset_region({"x": 0, "y": 0, "width": 100, "height": 100}, 50)


def test_pdf_margin():
    assert pdf_margin(None) is None
    assert pdf_margin("1in") == {"top": "1in", "right": "1in", "bottom": "1in", "left": "1in"}
    assert pdf_margin({"top": 72, "right": "1in", "bottom": 0.5, "left": "2cm"}) == {
        "top": "72px",
        "right": "1in",
        "bottom": "0.5px",
        "left": "2cm",
    }


def test_injection_kwargs():
    assert injection_kwargs("https://example.com/a.js", ".js") == {"url": "https://example.com/a.js"}
    assert injection_kwargs("body { color: red }", ".css") == {"content": "body { color: red }"}
    assert injection_kwargs("local-file.js", ".js")["path"].endswith("local-file.js")


def test_is_ad_host():
    assert is_ad_host("doubleclick.net")
    assert is_ad_host("stats.g.doubleclick.net")
    assert not is_ad_host("notdoubleclick.net")
    assert not is_ad_host(None)


def test_launch_kwargs_merges_launch_options():
    options = CaptureOptions(allow_cors=True, launch_options={"args": ["--mute-audio"], "channel": "chrome"})
    kwargs = PageCapture("https://example.com", options).launch_kwargs()
    assert kwargs == {
        "headless": True,
        "args": ["--disable-web-security", "--mute-audio"],
        "channel": "chrome",
    }


def test_launch_kwargs_debug_shows_browser():
    kwargs = PageCapture("x", CaptureOptions(debug=True, launch_options={"headless": True})).launch_kwargs()
    assert kwargs["headless"] is True
    assert kwargs["slow_mo"] == 100


def test_context_kwargs():
    options = CaptureOptions(
        width=1000,
        height=600,
        scale_factor=3,
        user_agent="unicorn",
        headers={"x-test": "1"},
        authentication={"username": "u", "password": "p"},
        dark_mode=True,
        is_javascript_enabled=False,
        insecure=True,
    )
    kwargs = PageCapture("https://example.com", options).context_kwargs(SimpleNamespace(devices=DEVICES))
    assert kwargs == {
        "viewport": {"width": 1000, "height": 600},
        "device_scale_factor": 3,
        "user_agent": "unicorn",
        "extra_http_headers": {"x-test": "1"},
        "http_credentials": {"username": "u", "password": "p"},
        "color_scheme": "dark",
        "java_script_enabled": False,
        "ignore_https_errors": True,
        "bypass_csp": False,
    }


def test_context_kwargs_emulates_device():
    options = CaptureOptions(emulate_device="iPhone 12")
    kwargs = PageCapture("https://example.com", options).context_kwargs(SimpleNamespace(devices=DEVICES))
    assert kwargs["viewport"] == {"width": 390, "height": 664}
    assert kwargs["is_mobile"] is True
    assert "default_browser_type" not in kwargs


def test_context_kwargs_unknown_device():
    options = CaptureOptions(emulate_device="Nokia 3310")
    with pytest.raises(CaptureError, match="not supported"):
        PageCapture("https://example.com", options).context_kwargs(SimpleNamespace(devices=DEVICES))


def test_cookies_default_to_input_url():
    options = CaptureOptions(cookies=["id=unicorn", "theme=dark; Domain=example.com"])
    cookies = PageCapture("https://example.com/page", options).cookies()
    assert cookies == [
        {"name": "id", "value": "unicorn", "url": "https://example.com/page"},
        {"name": "theme", "value": "dark", "domain": "example.com", "path": "/"},
    ]


def test_cookies_without_domain_need_url_input():
    options = replace(CaptureOptions(cookies=["id=unicorn"]), input_type="html")
    with pytest.raises(CaptureError, match="Domain"):
        PageCapture("<h1>hi</h1>", options).cookies()


def test_to_webp():
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), "red").save(buffer, format="PNG")
    data = to_webp(buffer.getvalue(), 0.8)
    assert data[:4] == b"RIFF"
    assert data[8:12] == b"WEBP"


class FakeChromium:
    async def launch(self, headless=True, args=None, slow_mo=None):
        raise AssertionError("launch should reject unknown options before starting")


class FakePlaywrightManager:
    async def __aenter__(self):
        return SimpleNamespace(chromium=FakeChromium(), devices=DEVICES)

    async def __aexit__(self, *exc_info):
        return False


def test_unknown_launch_option_becomes_capture_error(monkeypatch):
    monkeypatch.setattr(engine, "async_playwright", FakePlaywrightManager)
    options = CaptureOptions(launch_options={"executablePath": "/x"})
    with pytest.raises(CaptureError, match="executablePath"):
        asyncio.run(engine.capture_buffer("https://example.com", options))


def test_capture_file_write_failure(tmp_path, monkeypatch):
    async def capture_buffer(input_value, options):
        return b"png"

    monkeypatch.setattr(engine, "capture_buffer", capture_buffer)
    target = tmp_path / "shot.png"
    target.mkdir()
    with pytest.raises(OutputWriteError) as excinfo:
        asyncio.run(engine.capture_file("https://example.com", target, CaptureOptions()))
    assert excinfo.value.code == "ERR_OUTPUT_WRITE"


class FakePage:
    viewport_size = {"width": 1280, "height": 800}

    def __init__(self):
        self.screenshots = []

    async def evaluate(self, script):
        return {"width": 1280, "height": 3000}

    async def screenshot(self, **kwargs):
        self.screenshots.append(kwargs)
        return b"png"


def test_inset_applies_to_full_page():
    page = FakePage()
    options = CaptureOptions(full_page=True, inset={"top": 10, "right": 20, "bottom": 30, "left": 40})
    asyncio.run(PageCapture("https://example.com", options).render(page))
    assert page.screenshots == [
        {
            "type": "png",
            "omit_background": False,
            "full_page": True,
            "clip": {"x": 40, "y": 10, "width": 1220, "height": 2960},
        }
    ]


def test_inset_applies_to_viewport():
    page = FakePage()
    asyncio.run(PageCapture("https://example.com", CaptureOptions(inset=5)).render(page))
    assert page.screenshots[0]["clip"] == {"x": 5, "y": 5, "width": 1270, "height": 790}
    assert page.screenshots[0]["full_page"] is False
