"""Persistent JSON config helpers.

Stores extension-set overrides, debounce delays and explorer page size.
All access is defensive: malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from platformdirs import user_config_dir

from ..entry_tree.classify import (
    DEFAULT_ARCHIVE_EXTENSIONS,
    DEFAULT_IMAGE_EXTENSIONS,
    DEFAULT_VIDEO_EXTENSIONS,
    EntryClassifier,
    normalize_extensions,
)

APP_NAME = "imagedeck"
CONFIG_FILENAME = "config.json"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH

DEFAULT_SEARCH_DEBOUNCE_MS = 300
DEFAULT_SELECTION_DEBOUNCE_MS = 100
DEFAULT_PAGE_SIZE = 50

LOGGER = logging.getLogger("imagedeck.config")


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
        LOGGER.warning("ignoring unreadable config %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Filesystem/serialization errors are logged and otherwise ignored.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except (OSError, TypeError, ValueError) as exc:
        LOGGER.warning("could not write config %s: %s", CONFIG_PATH, exc)


def _load_extensions(key: str, default: frozenset[str]) -> frozenset[str]:
    """Read an extension list; anything but a non-empty list of strings yields ``default``."""
    value = load_config().get(key)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        return default
    normalized = normalize_extensions(value)
    return normalized if normalized else default


def load_classifier() -> EntryClassifier:
    """Build a classifier from configured extension sets."""
    return EntryClassifier(
        image_extensions=_load_extensions("image_extensions", DEFAULT_IMAGE_EXTENSIONS),
        video_extensions=_load_extensions("video_extensions", DEFAULT_VIDEO_EXTENSIONS),
        archive_extensions=_load_extensions("archive_extensions", DEFAULT_ARCHIVE_EXTENSIONS),
    )


def save_extensions(kind_key: str, extensions: list[str]) -> None:
    """Persist one extension list under ``image_extensions`` / ``video_extensions`` / ``archive_extensions``."""
    if kind_key not in {"image_extensions", "video_extensions", "archive_extensions"}:
        return
    config = load_config()
    config[kind_key] = sorted(normalize_extensions(extensions))
    save_config(config)


def _load_positive_int(key: str, default: int) -> int:
    """Booleans, non-integers and values below 1 fall back to ``default``."""
    value = load_config().get(key)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        return default
    return value


def load_search_debounce_seconds() -> float:
    return _load_positive_int("search_debounce_ms", DEFAULT_SEARCH_DEBOUNCE_MS) / 1000.0


def load_selection_debounce_seconds() -> float:
    return _load_positive_int("selection_debounce_ms", DEFAULT_SELECTION_DEBOUNCE_MS) / 1000.0


def load_page_size() -> int:
    return _load_positive_int("page_size", DEFAULT_PAGE_SIZE)


def save_page_size(page_size: int) -> None:
    if page_size < 1:
        return
    config = load_config()
    config["page_size"] = int(page_size)
    save_config(config)


__all__ = [
    "APP_NAME",
    "CONFIG_PATH",
    "DEFAULT_SEARCH_DEBOUNCE_MS",
    "DEFAULT_SELECTION_DEBOUNCE_MS",
    "DEFAULT_PAGE_SIZE",
    "load_config",
    "save_config",
    "load_classifier",
    "save_extensions",
    "load_search_debounce_seconds",
    "load_selection_debounce_seconds",
    "load_page_size",
    "save_page_size",
]
