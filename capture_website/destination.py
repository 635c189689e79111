"""
Resolve where the captured bytes go: standard output or a file.

The working directory is passed in explicitly so resolution can be tested
against any directory.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

from .errors import InputFileNotFoundError, OutputExistsError

STDIN_FILENAME = "stdin"
MAX_FILENAME_LENGTH = 100
URL_SCHEMES_WITHOUT_HOST = {"file", "data", "about"}

RESERVED_CHARS_RE = re.compile(r"[<>:\"/\\|?*\x00-\x1f\x7f]")
RELATIVE_PATH_RE = re.compile(r"^\.+(?=[\\/]|$)")
TRAILING_PERIODS_RE = re.compile(r"\.+$")
WINDOWS_RESERVED_RE = re.compile(r"^(con|prn|aux|nul|com\d|lpt\d)$", re.IGNORECASE)


@dataclass(frozen=True)
class Destination:
    path: Optional[Path] = None

    @property
    def is_stream(self) -> bool:
        return self.path is None


STREAM = Destination()


def is_url(value: str) -> bool:
    parts = urlsplit(value)
    # Single-letter schemes are Windows drive letters, not URLs
    if len(parts.scheme) < 2:
        return False
    return bool(parts.netloc) or parts.scheme.lower() in URL_SCHEMES_WITHOUT_HOST


def sanitize_filename(value: str, replacement: str = "-") -> str:
    name = RESERVED_CHARS_RE.sub(replacement, value)
    name = RELATIVE_PATH_RE.sub(replacement, name)
    if replacement:
        name = re.sub(f"(?:{re.escape(replacement)})+", replacement, name)
        if len(name) > 1:
            name = name.strip(replacement)
    if WINDOWS_RESERVED_RE.match(name):
        name += replacement
    name = name[:MAX_FILENAME_LENGTH]
    return TRAILING_PERIODS_RE.sub("", name) or replacement


def base_name_for_input(input_value: str, input_type: str, directory: Path) -> str:
    if input_type == "html":
        return STDIN_FILENAME
    if is_url(input_value):
        parts = urlsplit(input_value)
        return sanitize_filename((parts.hostname or "") + parts.path)
    path = directory / input_value
    if not path.exists():
        raise InputFileNotFoundError(input_value)
    return Path(input_value).stem


def unique_path(directory: Path, stem: str, extension: str) -> Path:
    candidate = directory / f"{stem}.{extension}"
    counter = 1
    while candidate.exists():
        candidate = directory / f"{stem} ({counter}).{extension}"
        counter += 1
    return candidate


def resolve_destination(
    input_value: str,
    *,
    input_type: str,
    output: Optional[str],
    file_type: str,
    overwrite: bool,
    auto_output: bool,
    directory: Path,
    stdout_is_pipe: bool,
) -> Destination:
    """Pick exactly one of: explicit file, stdout stream, derived filename.

    An explicit --output always wins over --auto-output. Derived names get a
    " (n)" counter instead of replacing an existing file.
    """
    if output == "-":
        return STREAM

    if output:
        path = directory / output
        if path.exists() and not overwrite:
            raise OutputExistsError(output)
        return Destination(path)

    if stdout_is_pipe and not auto_output:
        return STREAM

    stem = base_name_for_input(input_value, input_type, directory)
    return Destination(unique_path(directory, stem, file_type))
