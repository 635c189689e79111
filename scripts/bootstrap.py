#!/usr/bin/env python3
"""Install capture-website in editable mode and download Chromium for Playwright."""

import subprocess
import sys
from pathlib import Path
from typing import List, Tuple

ROOT = Path(__file__).resolve().parent.parent


def install_steps(python: str = sys.executable) -> List[Tuple[str, List[str]]]:
    return [
        ("capture-website", [python, "-m", "pip", "install", "-e", str(ROOT)]),
        ("Chromium", [python, "-m", "playwright", "install", "chromium"]),
    ]


def main() -> int:
    for name, cmd in install_steps():
        print(f"📦 Installing {name}...")
        if subprocess.run(cmd).returncode != 0:
            print(f"❌ Installing {name} failed", file=sys.stderr)
            return 1
    print("✅ Ready: capture-website https://example.com --output=screenshot.png")
    return 0


if __name__ == "__main__":
    sys.exit(main())
