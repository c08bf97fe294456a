"""
Configuration for pdfmaid.

Values are resolved with the precedence: command line > environment > defaults.
"""

import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from .dependencies import find_chrome

THEMES = ("default", "dark")
COMPACT_MIN = -5
COMPACT_MAX = 5

DEFAULTS: Dict[str, Any] = {
    "theme": "default",
    "compact_level": 0,
    "wait_time_ms": 2000,
    "landscape": False,
    "prerender": True,
    "chrome_path": None,
    "temp_dir": None,
}

ENV_VARS = {
    "theme": "PDFMAID_THEME",
    "compact_level": "PDFMAID_COMPACT",
    "wait_time_ms": "PDFMAID_WAIT",
    "prerender": "PDFMAID_PRERENDER",
    "chrome_path": "CHROME_PATH",
    "temp_dir": "PDFMAID_TEMP_DIR",
}


def parse_compact_level(value) -> int:
    """Parse a compactness level, which must be an integer between -5 and 5."""
    try:
        level = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid compact level '{value}'. Must be an integer between {COMPACT_MIN} and {COMPACT_MAX}.") from None
    if level < COMPACT_MIN or level > COMPACT_MAX:
        raise ValueError(f"Invalid compact level '{value}'. Must be an integer between {COMPACT_MIN} and {COMPACT_MAX}.")
    return level


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() not in ("0", "false", "no", "off", "")


class Config:
    """Layered configuration lookup."""

    def __init__(self, cli_config: Optional[Dict[str, Any]] = None):
        self._cli = {k: v for k, v in (cli_config or {}).items() if v is not None}

    def _get(self, key: str):
        if key in self._cli:
            return self._cli[key]
        env_name = ENV_VARS.get(key)
        if env_name and os.environ.get(env_name):
            return os.environ[env_name]
        return DEFAULTS[key]

    def get_theme(self) -> str:
        theme = str(self._get("theme")).lower()
        if theme not in THEMES:
            raise ValueError(f"Invalid theme '{theme}'. Available themes: {', '.join(THEMES)}")
        return theme

    def get_compact_level(self) -> int:
        level = int(self._get("compact_level"))
        return max(COMPACT_MIN, min(COMPACT_MAX, level))

    def get_wait_time_ms(self) -> int:
        return max(0, int(self._get("wait_time_ms")))

    def get_landscape(self) -> bool:
        return _parse_bool(self._get("landscape"))

    def get_prerender(self) -> bool:
        return _parse_bool(self._get("prerender"))

    def get_chrome_path(self) -> Optional[str]:
        """Explicit Chrome path, else a discovered one, else None (bundled Chromium)."""
        path = self._get("chrome_path")
        if path:
            return str(path)
        return find_chrome()

    def get_temp_dir(self) -> Path:
        temp_dir = self._get("temp_dir")
        return Path(temp_dir) if temp_dir else Path(tempfile.gettempdir())
