"""
Checks for the external tools pdfmaid relies on.
"""

import importlib.util
import os
import shutil
import subprocess
import sys
from typing import List, Optional

from colorama import Fore, Style

CHROME_CANDIDATES = [
    # Linux
    "/usr/bin/google-chrome",
    "/usr/bin/google-chrome-stable",
    "/usr/bin/chromium",
    "/usr/bin/chromium-browser",
    "/snap/bin/chromium",
    # macOS
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    "/Applications/Chromium.app/Contents/MacOS/Chromium",
    # Windows
    "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe",
    "C:\\Program Files (x86)\\Google\\Chrome\\Application\\chrome.exe",
]


def is_playwright_available() -> bool:
    """Return True if the Playwright package can be imported."""
    return importlib.util.find_spec("playwright") is not None


def find_chrome() -> Optional[str]:
    """Find a Chrome/Chromium executable on the system, or None."""
    candidates: List[str] = []
    env_path = os.environ.get("CHROME_PATH")
    if env_path:
        candidates.append(env_path)
    candidates.extend(CHROME_CANDIDATES)

    for chrome_path in candidates:
        if os.path.exists(chrome_path):
            return chrome_path

    for name in ("google-chrome", "chromium", "chromium-browser"):
        found = shutil.which(name)
        if found:
            return found

    return None


def check_command(cmd: List[str], description: str) -> bool:
    """Check if a command is available."""
    try:
        subprocess.run(cmd, check=True, capture_output=True)
        print(f"{Fore.GREEN}✓{Style.RESET_ALL} {description} is available")
        return True
    except (subprocess.CalledProcessError, FileNotFoundError):
        print(f"{Fore.RED}✗{Style.RESET_ALL} {description} is not available")
        return False


def check_dependencies(check_optional: bool = False) -> bool:
    """Check required (and optionally optional) dependencies.

    Pandoc is needed for Markdown input. Playwright drives the headless
    browser for pre-rendering and PDF printing. Pass ``check_optional`` to
    also report a system Chrome, which is only used when configured.
    """
    ok = True

    if not check_command(["pandoc", "--version"], "Pandoc"):
        print("  Pandoc is required. Install it from: https://pandoc.org/installing.html")
        ok = False

    if is_playwright_available():
        print(f"{Fore.GREEN}✓{Style.RESET_ALL} Playwright is available")
    else:
        print(f"{Fore.RED}✗{Style.RESET_ALL} Playwright is not available")
        print(f"  Install it with: {sys.executable} -m pip install playwright")
        ok = False

    if check_optional:
        chrome = find_chrome()
        if chrome:
            print(f"{Fore.GREEN}✓{Style.RESET_ALL} Chrome found at {chrome}")
        else:
            print(f"{Fore.YELLOW}⚠{Style.RESET_ALL} No system Chrome found, using Playwright's Chromium")

    return ok


def install_browsers() -> bool:
    """Install the Chromium build used by Playwright."""
    print("Installing Playwright Chromium...")
    try:
        subprocess.run([sys.executable, "-m", "playwright", "install", "chromium"], check=True, capture_output=True, text=True)
        print(f"{Fore.GREEN}✓{Style.RESET_ALL} Playwright Chromium installed successfully")
        return True
    except subprocess.CalledProcessError as e:
        print(f"{Fore.RED}✗{Style.RESET_ALL} Failed to install Playwright Chromium: {e.stderr}")
        return False
