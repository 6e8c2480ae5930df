"""Persistent JSON config helpers.

Stores polling/debounce timings, history depth, diff style, and the content
search backend. All access is defensive: malformed or missing config falls
back safely to defaults.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path

from platformdirs import user_config_dir

from .changes.search import SEARCH_BACKEND_GIT, SEARCH_BACKENDS

logger = logging.getLogger(__name__)

APP_NAME = "diffwatch"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

DEFAULT_POLL_INTERVAL_MS = 2000
DEFAULT_SEARCH_DEBOUNCE_MS = 300
DEFAULT_HISTORY_LIMIT = 50
DEFAULT_STYLE = "monokai"


@dataclass(frozen=True)
class EngineConfig:
    """Validated engine settings. Intervals are stored in milliseconds."""

    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    search_debounce_ms: int = DEFAULT_SEARCH_DEBOUNCE_MS
    history_limit: int = DEFAULT_HISTORY_LIMIT
    style: str = DEFAULT_STYLE
    search_backend: str = SEARCH_BACKEND_GIT
    skip_polling_while_searching: bool = True

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000.0

    @property
    def search_debounce_seconds(self) -> float:
        return self.search_debounce_ms / 1000.0

    def with_overrides(self, **overrides: object) -> "EngineConfig":
        """Return a copy with non-``None`` overrides applied."""
        applied = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **applied) if applied else self


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable config %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Filesystem errors are logged and otherwise ignored so a read-only config
    directory never breaks the dashboard.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        logger.warning("could not write config %s: %s", CONFIG_PATH, exc)


def _coerce_positive_int(value: object, default: int) -> int:
    """Booleans, non-integers and values below 1 fall back to ``default``."""
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return value if value >= 1 else default


def _coerce_style(value: object) -> str:
    if not isinstance(value, str):
        return DEFAULT_STYLE
    stripped = value.strip()
    return stripped if stripped else DEFAULT_STYLE


def load_engine_config() -> EngineConfig:
    data = load_config()
    backend = data.get("search_backend")
    skip = data.get("skip_polling_while_searching")
    return EngineConfig(
        poll_interval_ms=_coerce_positive_int(data.get("poll_interval_ms"), DEFAULT_POLL_INTERVAL_MS),
        search_debounce_ms=_coerce_positive_int(data.get("search_debounce_ms"), DEFAULT_SEARCH_DEBOUNCE_MS),
        history_limit=_coerce_positive_int(data.get("history_limit"), DEFAULT_HISTORY_LIMIT),
        style=_coerce_style(data.get("style")),
        search_backend=backend if backend in SEARCH_BACKENDS else SEARCH_BACKEND_GIT,
        skip_polling_while_searching=skip if isinstance(skip, bool) else True,
    )


def save_engine_config(config: EngineConfig) -> None:
    """Merge ``config`` into the persisted JSON, keeping unknown keys."""
    data = load_config()
    data.update(
        {
            "poll_interval_ms": config.poll_interval_ms,
            "search_debounce_ms": config.search_debounce_ms,
            "history_limit": config.history_limit,
            "style": config.style,
            "search_backend": config.search_backend,
            "skip_polling_while_searching": config.skip_polling_while_searching,
        }
    )
    save_config(data)


__all__ = [
    "CONFIG_PATH",
    "EngineConfig",
    "load_config",
    "load_engine_config",
    "save_config",
    "save_engine_config",
]
