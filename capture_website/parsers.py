"""
Parsers for compound flag values.

Each parser takes the raw string handed over by argparse and returns a
typed value, or raises InvalidFormatError naming the flag.
"""

import json
import re
from email.utils import parsedate_to_datetime
from http.cookies import CookieError, SimpleCookie
from typing import Any, Dict, Iterable, List, Optional, Union

from .errors import InvalidFormatError

SIDES = ("top", "right", "bottom", "left")
CLIP_KEYS = ("x", "y", "width", "height")

MARGIN_RE = re.compile(r"^(?P<number>-?(?:\d+\.?\d*|\.\d+))(?P<unit>px|in|cm|mm)?$")

Number = Union[int, float]
MarginValue = Union[Number, str]


def as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def split_tuple(raw: str, flag: str) -> List[str]:
    parts = [p.strip() for p in raw.split(",")]
    if any(not p for p in parts):
        raise InvalidFormatError(flag, "empty values not allowed")
    if len(parts) not in (1, 4):
        raise InvalidFormatError(flag, f"expected 1 or 4 comma-separated values, got {len(parts)}")
    return parts


def parse_int_tuple(raw: str, flag: str) -> List[int]:
    values = []
    for part in split_tuple(raw, flag):
        try:
            values.append(int(part))
        except ValueError:
            raise InvalidFormatError(flag, f"'{part}' is not an integer") from None
    return values


def parse_inset(raw: Optional[str]) -> Optional[Union[int, Dict[str, int]]]:
    if raw is None:
        return None
    values = parse_int_tuple(raw, "inset")
    if len(values) == 1:
        return values[0]
    return dict(zip(SIDES, values))


def parse_clip(raw: Optional[str]) -> Optional[Dict[str, int]]:
    if raw is None:
        return None
    values = parse_int_tuple(raw, "clip")
    if len(values) == 1:
        values = values * 4
    return dict(zip(CLIP_KEYS, values))


def parse_margin_value(part: str, flag: str) -> MarginValue:
    match = MARGIN_RE.match(part)
    if not match:
        raise InvalidFormatError(flag, f"'{part}' is not a number or a length in px, in, cm or mm")
    if match.group("unit"):
        return part
    number = match.group("number")
    if "." in number:
        return float(number)
    return int(number)


def parse_pdf_margin(raw: Optional[str]) -> Optional[Union[MarginValue, Dict[str, MarginValue]]]:
    if raw is None:
        return None
    values = [parse_margin_value(p, "pdf-margin") for p in split_tuple(raw, "pdf-margin")]
    if len(values) == 1:
        return values[0]
    return dict(zip(SIDES, values))


def parse_key_values(entries: Iterable[str], separator: str, flag: str) -> Dict[str, str]:
    result: Dict[str, str] = {}
    for entry in entries:
        if separator not in entry:
            raise InvalidFormatError(flag, f"'{entry}' is missing '{separator}'")
        key, value = entry.split(separator, 1)
        key = key.strip()
        if not key:
            raise InvalidFormatError(flag, f"'{entry}' has an empty key")
        result[key] = value.strip()
    return result


def parse_local_storage(entries: Optional[Iterable[str]]) -> Dict[str, str]:
    return parse_key_values(as_list(entries), "=", "local-storage")


def parse_headers(entries: Optional[Iterable[str]]) -> Dict[str, str]:
    return parse_key_values(as_list(entries), ":", "header")


def parse_authentication(raw: Optional[str]) -> Optional[Dict[str, str]]:
    if raw is None:
        return None
    if ":" not in raw:
        raise InvalidFormatError("authentication", "expected 'username:password'")
    username, password = raw.split(":", 1)
    return {"username": username, "password": password}


def parse_cookie(raw: str) -> Dict[str, Any]:
    """Parse a Set-Cookie style string into name, value and attributes.

    Recognised attributes are Domain, Path, Expires (unix seconds),
    HttpOnly, Secure and SameSite.
    """
    jar = SimpleCookie()
    try:
        jar.load(raw)
    except CookieError as exc:
        raise InvalidFormatError("cookie", f"'{raw}': {exc}") from exc
    if len(jar) != 1:
        raise InvalidFormatError("cookie", f"'{raw}' must contain exactly one name=value pair")

    morsel = next(iter(jar.values()))
    cookie: Dict[str, Any] = {"name": morsel.key, "value": morsel.value}
    if morsel["domain"]:
        cookie["domain"] = morsel["domain"]
    if morsel["path"]:
        cookie["path"] = morsel["path"]
    if morsel["expires"]:
        try:
            cookie["expires"] = parsedate_to_datetime(morsel["expires"]).timestamp()
        except (TypeError, ValueError):
            raise InvalidFormatError("cookie", f"'{morsel['expires']}' is not a valid date") from None
    if morsel["httponly"]:
        cookie["httpOnly"] = True
    if morsel["secure"]:
        cookie["secure"] = True
    if morsel["samesite"]:
        same_site = morsel["samesite"].capitalize()
        if same_site not in ("Strict", "Lax", "None"):
            raise InvalidFormatError("cookie", f"'{morsel['samesite']}' is not a valid SameSite value")
        cookie["sameSite"] = same_site
    return cookie


def parse_json_object(raw: Optional[str], flag: str) -> Dict[str, Any]:
    if raw is None:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidFormatError(flag, str(exc)) from exc
    if not isinstance(data, dict):
        raise InvalidFormatError(flag, "expected a JSON object")
    return data
