"""
Validation of the raw flag set.

validate_flags runs every compound parser and the scalar range checks up
front, so a bad value is rejected before anything touches the file system
or the network.
"""

import argparse
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .errors import InvalidFormatError
from .parsers import (
    as_list,
    parse_authentication,
    parse_clip,
    parse_cookie,
    parse_headers,
    parse_inset,
    parse_json_object,
    parse_local_storage,
    parse_pdf_margin,
)

IMAGE_TYPES = ("png", "jpeg", "webp", "pdf")


@dataclass(frozen=True)
class ValidatedFlags:
    inset: Optional[Union[int, Dict[str, int]]] = None
    clip: Optional[Dict[str, int]] = None
    pdf_margin: Optional[Any] = None
    headers: Dict[str, str] = field(default_factory=dict)
    local_storage: Dict[str, str] = field(default_factory=dict)
    authentication: Optional[Dict[str, str]] = None
    launch_options: Dict[str, Any] = field(default_factory=dict)


def check_range(
    flag: str,
    value: Optional[float],
    minimum: float,
    maximum: Optional[float] = None,
    inclusive_minimum: bool = True,
) -> None:
    if value is None:
        return
    if not math.isfinite(value):
        raise InvalidFormatError(flag, f"expected a finite number, got {value}")
    too_small = value < minimum if inclusive_minimum else value <= minimum
    if too_small or (maximum is not None and value > maximum):
        if maximum is not None:
            expected = f"between {minimum} and {maximum}"
        elif inclusive_minimum:
            expected = f"at least {minimum}"
        else:
            expected = f"greater than {minimum}"
        raise InvalidFormatError(flag, f"expected a number {expected}, got {value}")


def validate_flags(flags: argparse.Namespace) -> ValidatedFlags:
    if flags.type not in IMAGE_TYPES:
        raise InvalidFormatError("type", f"'{flags.type}' is not one of {', '.join(IMAGE_TYPES)}")

    check_range("quality", flags.quality, 0, 1)
    check_range("width", flags.width, 0, inclusive_minimum=False)
    check_range("height", flags.height, 0, inclusive_minimum=False)
    check_range("scale-factor", flags.scale_factor, 0, inclusive_minimum=False)
    check_range("timeout", flags.timeout, 0)
    check_range("delay", flags.delay, 0)
    for raw in as_list(flags.cookie):
        parse_cookie(raw)

    return ValidatedFlags(
        inset=parse_inset(flags.inset),
        clip=parse_clip(flags.clip),
        pdf_margin=parse_pdf_margin(flags.pdf_margin),
        headers=parse_headers(flags.header),
        local_storage=parse_local_storage(flags.local_storage),
        authentication=parse_authentication(flags.authentication),
        launch_options=parse_json_object(flags.launch_options, "launch-options"),
    )
