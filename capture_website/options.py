"""
Canonical capture options and the assembler that builds them from flags.
"""

import argparse
import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Union

from .parsers import as_list
from .validate import ValidatedFlags

DEFAULT_WIDTH = 1280
DEFAULT_HEIGHT = 800
DEFAULT_TYPE = "png"
DEFAULT_QUALITY = 1.0
DEFAULT_SCALE_FACTOR = 2.0
DEFAULT_TIMEOUT = 60
DEFAULT_PDF_FORMAT = "A4"


@dataclass(frozen=True)
class PdfOptions:
    format: str = DEFAULT_PDF_FORMAT
    landscape: bool = False
    margin: Optional[Any] = None


@dataclass(frozen=True)
class CaptureOptions:
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    type: str = DEFAULT_TYPE
    quality: float = DEFAULT_QUALITY
    scale_factor: float = DEFAULT_SCALE_FACTOR
    emulate_device: Optional[str] = None
    full_page: bool = False
    # False with --no-default-background: transparent page background
    default_background: bool = True
    timeout: float = DEFAULT_TIMEOUT
    delay: float = 0
    wait_for_element: Optional[str] = None
    element: Optional[str] = None
    hide_elements: List[str] = field(default_factory=list)
    remove_elements: List[str] = field(default_factory=list)
    click_element: Optional[str] = None
    scroll_to_element: Optional[str] = None
    disable_animations: bool = False
    # False with --no-javascript; injected modules and scripts still run
    is_javascript_enabled: bool = True
    modules: List[str] = field(default_factory=list)
    scripts: List[str] = field(default_factory=list)
    styles: List[str] = field(default_factory=list)
    headers: Dict[str, str] = field(default_factory=dict)
    user_agent: Optional[str] = None
    cookies: List[str] = field(default_factory=list)
    authentication: Optional[Dict[str, str]] = None
    debug: bool = False
    dark_mode: bool = False
    launch_options: Dict[str, Any] = field(default_factory=dict)
    inset: Optional[Union[int, Dict[str, int]]] = None
    clip: Optional[Dict[str, int]] = None
    # False with --no-block-ads
    block_ads: bool = True
    local_storage: Dict[str, str] = field(default_factory=dict)
    insecure: bool = False
    throw_on_http_error: bool = False
    log_console: bool = False
    referrer: Optional[str] = None
    preload_lazy_content: bool = False
    allow_cors: bool = False
    wait_for_network_idle: bool = False
    input_type: str = "url"
    pdf: Optional[PdfOptions] = None


def pick(value: Any, default: Any) -> Any:
    return default if value is None else value


def assemble_options(flags: argparse.Namespace, validated: ValidatedFlags) -> CaptureOptions:
    """Merge raw scalar flags with the validated compound values.

    Omitted flags fall back to the CaptureOptions defaults. The pdf block is
    only attached when a PDF is requested.
    """
    pdf = None
    if flags.type == "pdf":
        pdf = PdfOptions(
            format=pick(flags.pdf_format, DEFAULT_PDF_FORMAT),
            landscape=bool(flags.pdf_landscape),
            margin=validated.pdf_margin,
        )

    return CaptureOptions(
        width=pick(flags.width, DEFAULT_WIDTH),
        height=pick(flags.height, DEFAULT_HEIGHT),
        type=flags.type,
        quality=pick(flags.quality, DEFAULT_QUALITY),
        scale_factor=pick(flags.scale_factor, DEFAULT_SCALE_FACTOR),
        emulate_device=flags.emulate_device,
        full_page=bool(flags.full_page),
        default_background=flags.default_background,
        timeout=pick(flags.timeout, DEFAULT_TIMEOUT),
        delay=pick(flags.delay, 0),
        wait_for_element=flags.wait_for_element,
        element=flags.element,
        hide_elements=as_list(flags.hide_elements),
        remove_elements=as_list(flags.remove_elements),
        click_element=flags.click_element,
        scroll_to_element=flags.scroll_to_element,
        disable_animations=bool(flags.disable_animations),
        is_javascript_enabled=flags.javascript,
        modules=as_list(flags.module),
        scripts=as_list(flags.script),
        styles=as_list(flags.style),
        headers=validated.headers,
        user_agent=flags.user_agent,
        cookies=as_list(flags.cookie),
        authentication=validated.authentication,
        debug=bool(flags.debug),
        dark_mode=bool(flags.dark_mode),
        launch_options=validated.launch_options,
        inset=validated.inset,
        clip=validated.clip,
        block_ads=flags.block_ads,
        local_storage=validated.local_storage,
        insecure=bool(flags.insecure),
        throw_on_http_error=bool(flags.throw_on_http_error),
        log_console=bool(flags.log_console),
        referrer=flags.referrer,
        preload_lazy_content=bool(flags.preload_lazy_content),
        allow_cors=bool(flags.allow_cors),
        wait_for_network_idle=bool(flags.wait_for_network_idle),
        pdf=pdf,
    )


def options_to_json(options: CaptureOptions) -> str:
    return json.dumps(asdict(options), ensure_ascii=False, sort_keys=True)
