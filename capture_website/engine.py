"""
Capture engine backed by Playwright (Chromium).

Exposes the two coroutines the CLI relies on, capture_buffer and
capture_file, plus list_devices. Playwright errors (navigation timeouts,
DNS failures, ...) are re-raised as CaptureError with the original message.
"""

import io
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlsplit

try:
    from playwright.async_api import Browser, BrowserContext, Page, Playwright, Route, async_playwright
    from playwright.async_api import Error as PlaywrightError
except ImportError:
    print("ERROR: playwright not installed. Run: pip install playwright && playwright install chromium", file=sys.stderr)
    raise SystemExit(1)

from PIL import Image

from .destination import is_url
from .errors import CaptureError, OutputWriteError
from .options import CaptureOptions
from .parsers import SIDES, parse_cookie

AD_HOSTS = (
    "doubleclick.net",
    "googlesyndication.com",
    "googleadservices.com",
    "google-analytics.com",
    "googletagservices.com",
    "adservice.google.com",
    "amazon-adsystem.com",
    "adnxs.com",
    "taboola.com",
    "outbrain.com",
    "criteo.com",
    "criteo.net",
    "scorecardresearch.com",
    "moatads.com",
    "pubmatic.com",
    "rubiconproject.com",
    "openx.net",
    "casalemedia.com",
    "advertising.com",
    "adsrvr.org",
)

DISABLE_ANIMATIONS_CSS = """
*, ::before, ::after {
    animation: none !important;
    transition: none !important;
    scroll-behavior: auto !important;
}
"""

LOCAL_STORAGE_SCRIPT = """
(() => {
    const entries = %s;
    try {
        for (const [key, value] of Object.entries(entries)) {
            window.localStorage.setItem(key, value);
        }
    } catch (error) {}
})();
"""

PAGE_SIZE_SCRIPT = """() => ({
    width: document.documentElement.scrollWidth,
    height: document.documentElement.scrollHeight,
})"""

PRELOAD_LAZY_SCRIPT = """async () => {
    const step = Math.max(window.innerHeight, 200);
    for (let y = 0; y < document.body.scrollHeight; y += step) {
        window.scrollTo(0, y);
        await new Promise(resolve => setTimeout(resolve, 100));
    }
    window.scrollTo(0, 0);
}"""


def debug_log(options: CaptureOptions, message: str) -> None:
    if options.debug:
        print(f"[debug] {message}", file=sys.stderr)


def is_ad_host(host: Optional[str]) -> bool:
    if not host:
        return False
    host = host.lower()
    return any(host == ad or host.endswith("." + ad) for ad in AD_HOSTS)


def input_url(input_value: str) -> str:
    if is_url(input_value):
        return input_value
    return Path(input_value).resolve().as_uri()


def injection_kwargs(value: str, extension: str) -> Dict[str, str]:
    if is_url(value):
        return {"url": value}
    if value.endswith(extension):
        return {"path": str(Path(value).resolve())}
    return {"content": value}


def pdf_margin(margin: Any) -> Optional[Dict[str, str]]:
    if margin is None:
        return None
    if not isinstance(margin, dict):
        margin = {side: margin for side in SIDES}
    return {side: f"{value}px" if isinstance(value, (int, float)) else value for side, value in margin.items()}


def inset_region(box: Dict[str, float], inset: Union[int, Dict[str, int]]) -> Dict[str, float]:
    if not isinstance(inset, dict):
        inset = {side: inset for side in SIDES}
    width = box["width"] - inset["left"] - inset["right"]
    height = box["height"] - inset["top"] - inset["bottom"]
    if width <= 0 or height <= 0:
        raise CaptureError("When using the `inset` option, the width and height of the screenshot must be greater than 0")
    return {
        "x": box["x"] + inset["left"],
        "y": box["y"] + inset["top"],
        "width": width,
        "height": height,
    }


def to_webp(png: bytes, quality: float) -> bytes:
    buffer = io.BytesIO()
    with Image.open(io.BytesIO(png)) as image:
        image.save(buffer, format="WEBP", quality=round(quality * 100), lossless=quality >= 1)
    return buffer.getvalue()


class PageCapture:
    def __init__(self, input_value: str, options: CaptureOptions):
        self.input_value = input_value
        self.options = options
        self.stage = "init"

    def launch_kwargs(self) -> Dict[str, Any]:
        options = self.options
        kwargs: Dict[str, Any] = {"headless": not options.debug}
        if options.debug:
            kwargs["slow_mo"] = 100
        args: List[str] = []
        if options.allow_cors:
            args.append("--disable-web-security")
        extra = dict(options.launch_options)
        args.extend(extra.pop("args", []))
        kwargs.update(extra)
        if args:
            kwargs["args"] = args
        return kwargs

    def context_kwargs(self, playwright: Playwright) -> Dict[str, Any]:
        options = self.options
        kwargs: Dict[str, Any] = {
            "viewport": {"width": options.width, "height": options.height},
            "device_scale_factor": options.scale_factor,
        }
        if options.emulate_device:
            if options.emulate_device not in playwright.devices:
                raise CaptureError(f"The device name `{options.emulate_device}` is not supported")
            device = dict(playwright.devices[options.emulate_device])
            device.pop("default_browser_type", None)
            kwargs.update(device)
        if options.user_agent:
            kwargs["user_agent"] = options.user_agent
        if options.headers:
            kwargs["extra_http_headers"] = options.headers
        if options.authentication:
            kwargs["http_credentials"] = options.authentication
        if options.dark_mode:
            kwargs["color_scheme"] = "dark"
        kwargs["java_script_enabled"] = options.is_javascript_enabled
        kwargs["ignore_https_errors"] = options.insecure
        kwargs["bypass_csp"] = options.allow_cors
        return kwargs

    def cookies(self) -> List[Dict[str, Any]]:
        cookies = []
        target = self.input_value if self.options.input_type == "url" and is_url(self.input_value) else None
        for raw in self.options.cookies:
            cookie = parse_cookie(raw)
            if "domain" not in cookie:
                if not target:
                    raise CaptureError(f"Cookie '{cookie['name']}' needs a Domain attribute when the input is not a URL")
                cookie.pop("path", None)
                cookie["url"] = target
            elif "path" not in cookie:
                cookie["path"] = "/"
            cookies.append(cookie)
        return cookies

    async def block_ads(self, route: Route) -> None:
        if is_ad_host(urlsplit(route.request.url).hostname):
            await route.abort()
        else:
            await route.continue_()

    async def prepare_context(self, context: BrowserContext) -> None:
        options = self.options
        cookies = self.cookies()
        if cookies:
            await context.add_cookies(cookies)
        if options.local_storage:
            await context.add_init_script(script=LOCAL_STORAGE_SCRIPT % json.dumps(options.local_storage))
        if options.block_ads:
            await context.route("**/*", self.block_ads)

    async def open(self, page: Page) -> None:
        options = self.options
        timeout_ms = options.timeout * 1000
        page.set_default_timeout(timeout_ms)
        page.set_default_navigation_timeout(timeout_ms)

        if options.log_console:
            page.on("console", lambda msg: print(f"[console] {msg.type}: {msg.text}", file=sys.stderr))

        if options.input_type == "html":
            self.stage = "set_content"
            await page.set_content(self.input_value, wait_until="load")
            return

        self.stage = "goto"
        url = input_url(self.input_value)
        debug_log(options, f"Navigating to {url}")
        response = await page.goto(url, wait_until="load", referer=options.referrer)
        if options.throw_on_http_error and response is not None and response.status >= 400:
            raise CaptureError(f"Received HTTP status code {response.status} for {url}")

    async def prepare_page(self, page: Page) -> None:
        options = self.options

        if options.wait_for_network_idle:
            self.stage = "wait_networkidle"
            await page.wait_for_load_state("networkidle")

        self.stage = "inject"
        for module in options.modules:
            await page.add_script_tag(type="module", **injection_kwargs(module, ".js"))
        for script in options.scripts:
            await page.add_script_tag(**injection_kwargs(script, ".js"))
        for style in options.styles:
            await page.add_style_tag(**injection_kwargs(style, ".css"))

        if options.hide_elements:
            await page.add_style_tag(content=f"{', '.join(options.hide_elements)} {{ visibility: hidden !important; }}")
        if options.remove_elements:
            await page.add_style_tag(content=f"{', '.join(options.remove_elements)} {{ display: none !important; }}")
        if options.disable_animations:
            await page.add_style_tag(content=DISABLE_ANIMATIONS_CSS)

        if options.preload_lazy_content:
            self.stage = "preload_lazy_content"
            await page.evaluate(PRELOAD_LAZY_SCRIPT)

        if options.wait_for_element:
            self.stage = "wait_for_element"
            await page.wait_for_selector(options.wait_for_element, state="visible")
        if options.click_element:
            self.stage = "click_element"
            await page.click(options.click_element)
        if options.scroll_to_element:
            self.stage = "scroll_to_element"
            await page.locator(options.scroll_to_element).first.scroll_into_view_if_needed()

        if options.delay:
            self.stage = "delay"
            await page.wait_for_timeout(options.delay * 1000)

    async def page_box(self, page: Page) -> Dict[str, float]:
        if self.options.full_page:
            size = await page.evaluate(PAGE_SIZE_SCRIPT)
        else:
            size = page.viewport_size or {"width": self.options.width, "height": self.options.height}
        return {"x": 0, "y": 0, "width": size["width"], "height": size["height"]}

    async def render(self, page: Page) -> bytes:
        options = self.options

        if options.type == "pdf":
            self.stage = "pdf"
            pdf = options.pdf
            kwargs: Dict[str, Any] = {"print_background": options.default_background}
            if pdf is not None:
                kwargs.update(format=pdf.format, landscape=pdf.landscape)
                margin = pdf_margin(pdf.margin)
                if margin:
                    kwargs["margin"] = margin
            return await page.pdf(**kwargs)

        self.stage = "screenshot"
        kwargs = {
            "type": "jpeg" if options.type == "jpeg" else "png",
            "omit_background": not options.default_background,
        }
        if options.type == "jpeg":
            kwargs["quality"] = round(options.quality * 100)

        if options.element:
            self.stage = "element"
            locator = page.locator(options.element).first
            await locator.wait_for(state="visible")
            if options.inset is None:
                data = await locator.screenshot(**kwargs)
            else:
                box = await locator.bounding_box()
                if box is None:
                    raise CaptureError(f"Element `{options.element}` has no bounding box")
                data = await page.screenshot(clip=inset_region(box, options.inset), **kwargs)
        elif options.clip:
            data = await page.screenshot(clip=options.clip, **kwargs)
        elif options.inset is not None:
            box = await self.page_box(page)
            data = await page.screenshot(full_page=options.full_page, clip=inset_region(box, options.inset), **kwargs)
        else:
            data = await page.screenshot(full_page=options.full_page, **kwargs)

        if options.type == "webp":
            data = to_webp(data, options.quality)
        return data

    async def run(self) -> bytes:
        async with async_playwright() as p:
            browser: Browser = await p.chromium.launch(**self.launch_kwargs())
            try:
                context = await browser.new_context(**self.context_kwargs(p))
                await self.prepare_context(context)
                page = await context.new_page()
                await self.open(page)
                await self.prepare_page(page)
                data = await self.render(page)
                await context.close()
                return data
            finally:
                await browser.close()


async def capture_buffer(input_value: str, options: CaptureOptions) -> bytes:
    capture = PageCapture(input_value, options)
    try:
        return await capture.run()
    except PlaywrightError as exc:
        debug_log(options, f"Failed at {capture.stage}")
        raise CaptureError(exc.message) from exc
    except TypeError as exc:
        # Unknown keys in --launch-options reach launch() as keyword arguments
        debug_log(options, f"Failed at {capture.stage}")
        raise CaptureError(str(exc)) from exc


async def capture_file(input_value: str, path: Union[str, Path], options: CaptureOptions) -> None:
    data = await capture_buffer(input_value, options)
    try:
        Path(path).write_bytes(data)
    except OSError as exc:
        raise OutputWriteError(str(path), exc.strerror or str(exc)) from exc


async def list_devices() -> List[str]:
    async with async_playwright() as p:
        return sorted(p.devices)
