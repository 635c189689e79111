"""
capture-website - Capture screenshots of websites from the command line.

Reads a URL, a local file path, or HTML on stdin, captures it with a
headless Chromium and writes the PNG/JPEG/WebP image or PDF to a file or
to stdout.
"""

import argparse
import asyncio
import os
import stat
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from . import engine
from .destination import is_url, resolve_destination
from .errors import CaptureWebsiteError, InputFileNotFoundError, MissingInputError, OutputWriteError
from .options import assemble_options, options_to_json
from .validate import IMAGE_TYPES, validate_flags

EXAMPLES = """
Examples
  $ capture-website https://example.com
  $ capture-website https://example.com --output=screenshot.png
  $ capture-website index.html --output=screenshot.png
  $ capture-website file:///tmp/index.html --full-page --output=-
  $ echo "<h1>Unicorn</h1>" | capture-website --output=screenshot.png
  $ capture-website https://example.com | open -f -a Preview

Flag examples
  --emulate-device="iPhone X"
  --header="x-powered-by: capture-website"
  --cookie="id=unicorn; Expires=Wed, 21 Oct 2018 07:28:00 GMT;"
  --authentication="username:password"
  --launch-options='{"headless": false}'
  --inset=10,15,-10,15
  --clip=10,30,300,1024
  --local-storage="theme=dark"
  --pdf-margin=1in,0.5in,2cm,10mm
"""


class CliArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = CliArgumentParser(
        prog="capture-website",
        description="Capture screenshots of websites",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument("input", nargs="?", help="URL or file path (reads HTML from stdin if omitted)")

    output = parser.add_argument_group("output")
    output.add_argument("--output", help="Image file path, or '-' for stdout (names file based on URL if omitted)")
    output.add_argument("--auto-output", action="store_true", help="Name the file after the input even when stdout is piped")
    output.add_argument("--overwrite", action="store_true", help="Overwrite the destination file if it exists")
    output.add_argument("--type", default="png", help=f"Image type: {'|'.join(IMAGE_TYPES)} (default: png)")
    output.add_argument("--quality", type=float, help="Image quality 0...1, JPEG and WebP only (default: 1)")

    page = parser.add_argument_group("page")
    page.add_argument("--width", type=int, help="Page width (default: 1280)")
    page.add_argument("--height", type=int, help="Page height (default: 800)")
    page.add_argument("--scale-factor", type=float, help="Scale the webpage n times (default: 2)")
    page.add_argument("--list-devices", action="store_true", help="Output a list of supported devices to emulate")
    page.add_argument("--emulate-device", help="Capture as if it were captured on the given device")
    page.add_argument("--full-page", action="store_true", help="Capture the full scrollable page, not just the viewport")
    page.add_argument(
        "--no-default-background",
        dest="default_background",
        action="store_false",
        help="Make the default background transparent",
    )
    page.add_argument("--dark-mode", action="store_true", help="Emulate preference of dark color scheme")
    page.add_argument("--inset", help="Inset the screenshot: one number, or four for top,right,bottom,left")
    page.add_argument("--clip", help="Capture a region: one number, or four for x,y,width,height")

    timing = parser.add_argument_group("timing")
    timing.add_argument("--timeout", type=float, help="Seconds before giving up loading the page, 0 disables (default: 60)")
    timing.add_argument("--delay", type=float, help="Seconds to wait after the page loaded before capturing (default: 0)")
    timing.add_argument("--wait-for-network-idle", action="store_true", help="Wait until the network is idle")
    timing.add_argument("--preload-lazy-content", action="store_true", help="Scroll through the page to load lazy content")

    elements = parser.add_argument_group("elements")
    elements.add_argument("--wait-for-element", help="Wait for a visible DOM element matching the CSS selector")
    elements.add_argument("--element", help="Capture the DOM element matching the CSS selector")
    elements.add_argument("--hide-elements", action="append", help="Hide DOM elements matching the CSS selector (repeatable)")
    elements.add_argument("--remove-elements", action="append", help="Remove DOM elements matching the CSS selector (repeatable)")
    elements.add_argument("--click-element", help="Click the DOM element matching the CSS selector")
    elements.add_argument("--scroll-to-element", help="Scroll to the DOM element matching the CSS selector")
    elements.add_argument("--disable-animations", action="store_true", help="Disable CSS animations and transitions")

    injection = parser.add_argument_group("injection")
    injection.add_argument(
        "--no-javascript",
        dest="javascript",
        action="store_false",
        help="Disable JavaScript execution (does not affect --module/--script)",
    )
    injection.add_argument("--module", action="append", help="Inject a JavaScript module: inline code, URL or .js path (repeatable)")
    injection.add_argument("--script", action="append", help="Same as --module, but injects a classic script (repeatable)")
    injection.add_argument("--style", action="append", help="Inject CSS: inline code, URL or .css path (repeatable)")

    network = parser.add_argument_group("network")
    network.add_argument("--header", action="append", help="Set a custom HTTP header, 'name: value' (repeatable)")
    network.add_argument("--user-agent", help="Set the user agent")
    network.add_argument("--cookie", action="append", help="Set a cookie (repeatable)")
    network.add_argument("--authentication", help="Credentials for HTTP authentication, 'username:password'")
    network.add_argument("--referrer", help="Set the referrer for the page request")
    network.add_argument("--local-storage", action="append", help="Set a localStorage item, 'key=value' (repeatable)")
    network.add_argument("--no-block-ads", dest="block_ads", action="store_false", help="Do not block ads")
    network.add_argument("--insecure", action="store_true", help="Accept self-signed and invalid certificates")
    network.add_argument("--allow-cors", action="store_true", help="Allow cross-origin requests")
    network.add_argument("--throw-on-http-error", action="store_true", help="Fail when the page responds with a 4xx/5xx status")

    pdf = parser.add_argument_group("pdf")
    pdf.add_argument("--pdf-format", help="Paper format for --type=pdf (default: A4)")
    pdf.add_argument("--pdf-landscape", action="store_true", help="Landscape orientation for --type=pdf")
    pdf.add_argument("--pdf-margin", help="Margin: one value, or four for top,right,bottom,left (px, in, cm, mm)")

    browser = parser.add_argument_group("browser")
    browser.add_argument("--debug", action="store_true", help="Show the browser window to see what it's doing")
    browser.add_argument("--log-console", action="store_true", help="Print page console messages to stderr")
    browser.add_argument("--launch-options", help="Playwright launch options as JSON")

    parser.add_argument("--internal-print-flags", action="store_true", help=argparse.SUPPRESS)
    return parser


def ensure_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise OutputWriteError(str(path), exc.strerror or str(exc)) from exc


def stdout_is_pipe() -> bool:
    try:
        return stat.S_ISFIFO(os.fstat(sys.stdout.fileno()).st_mode)
    except (OSError, ValueError):
        return False


def read_stdin() -> str:
    if sys.stdin is None or sys.stdin.isatty():
        return ""
    return sys.stdin.read()


async def main_async(args: argparse.Namespace, directory: Path) -> int:
    validated = validate_flags(args)
    options = assemble_options(args, validated)

    if args.internal_print_flags:
        print(options_to_json(options))
        return 0

    if args.list_devices:
        print("\n".join(await engine.list_devices()))
        return 0

    input_value = args.input
    if not input_value:
        input_value = read_stdin()
        options = replace(options, input_type="html")
    if not input_value:
        raise MissingInputError()

    if options.input_type == "url" and not is_url(input_value) and not (directory / input_value).exists():
        raise InputFileNotFoundError(input_value)

    destination = resolve_destination(
        input_value,
        input_type=options.input_type,
        output=args.output,
        file_type=options.type,
        overwrite=args.overwrite,
        auto_output=args.auto_output,
        directory=directory,
        stdout_is_pipe=stdout_is_pipe(),
    )

    if destination.is_stream:
        data = await engine.capture_buffer(input_value, options)
        try:
            sys.stdout.buffer.write(data)
            sys.stdout.buffer.flush()
        except OSError as exc:
            raise OutputWriteError("<stdout>", exc.strerror or str(exc)) from exc
        return 0

    ensure_dir(destination.path.parent)
    await engine.capture_file(input_value, destination.path, options)
    print(f"✅ Saved {destination.path}", file=sys.stderr)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return asyncio.run(main_async(args, Path.cwd()))
    except CaptureWebsiteError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
