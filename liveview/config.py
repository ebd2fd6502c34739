"""Read-only JSON config.

Supplies defaults for the highlighting style, the status bar, and the watch
debounce window. All access is defensive: malformed or missing config falls
back to built-in defaults, and the viewer never writes this file.
"""

from __future__ import annotations

import json
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "liveview"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

DEFAULT_STYLE = "monokai"
DEFAULT_DEBOUNCE_MS = 50
MAX_DEBOUNCE_MS = 10_000


def load_config() -> dict[str, object]:
    """Load the JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def load_style() -> str:
    """Pygments style name, ``monokai`` when unset or blank."""
    value = load_config().get("style")
    if not isinstance(value, str) or not value.strip():
        return DEFAULT_STYLE
    return value.strip()


def load_status_bar() -> bool:
    """Whether to reserve the bottom row for the status bar.

    Only explicit booleans are honored; anything else keeps the default.
    """
    value = load_config().get("status_bar")
    return value if isinstance(value, bool) else True


def load_debounce_ms() -> int:
    """Watch debounce window in milliseconds, bounded to ``[1, 10000]``."""
    value = load_config().get("debounce_ms")
    if isinstance(value, bool) or not isinstance(value, int):
        return DEFAULT_DEBOUNCE_MS
    return max(1, min(MAX_DEBOUNCE_MS, value))
