"""
Configuration for the merchandise catalogue: data source, image folder,
paging and wishlist storage.

Every setting can be overridden through an environment variable so the
same package can serve a local ``data.csv`` during development and a
hosted file in deployment.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def _env_choice(name: str, default: str, choices: tuple) -> str:
    value = (os.environ.get(name) or default).strip().lower()
    if value not in choices:
        logger.warning("Ignoring %s=%r; expected one of %s", name, value, ", ".join(choices))
        return default
    return value


def _env_int(name: str, default: int) -> int:
    try:
        return max(1, int(os.environ.get(name, default)))
    except ValueError:
        logger.warning("Ignoring non-integer %s", name)
        return default


# Source table: a filesystem path or an http(s) URL.
DATA_SOURCE = os.environ.get("MERCH_CATALOG_DATA", "data.csv")

# Prefix joined with ``image_filename`` to build image URLs.
IMAGES_FOLDER = os.environ.get("MERCH_CATALOG_IMAGES", "images/")

PAGE_SIZE = _env_int("MERCH_CATALOG_PAGE_SIZE", 24)

# Local key/value store standing in for browser localStorage.
STORAGE_FILE = Path(os.environ.get("MERCH_CATALOG_STORAGE", "data/local_storage.json"))
WISHLIST_KEY = "wanted"

MATCH_POLICIES = ("all", "any")
DEFAULT_MATCH_POLICY = _env_choice("MERCH_CATALOG_MATCH", "all", MATCH_POLICIES)

LOOKUP_FALLBACK_MODES = ("first", "unique", "off")
LOOKUP_FALLBACK = _env_choice("MERCH_CATALOG_LOOKUP_FALLBACK", "first", LOOKUP_FALLBACK_MODES)

LOG_LEVEL = os.environ.get("MERCH_CATALOG_LOG_LEVEL", "INFO").upper()
