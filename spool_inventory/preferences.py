"""Locally persisted preferences: column layout, page size, sorting, theme, session.

Each preference is its own JSON file under the preferences directory, written
atomically. Loading never fails: a missing or unreadable file yields the
default for that preference.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from enum import Enum
from typing import Any, Optional

from .columns import ColumnConfig, columns_from_json, get_default_columns, reconcile_columns
from .table import DEFAULT_PAGE_SIZE, DEFAULT_SORTING, PAGE_SIZES, SortKey

logger = logging.getLogger(__name__)

COLUMN_CONFIG_KEY = "spoolease-column-config"
PAGE_SIZE_KEY = "spoolease-page-size"
SORTING_KEY = "spoolease-sorting"
THEME_KEY = "spoolease-theme"
SESSION_KEY = "spoolease-session"

_MISSING = object()


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


def resolve_theme(theme: Theme, system_theme: Theme = Theme.LIGHT) -> Theme:
    """Concrete light/dark theme; SYSTEM defers to ``system_theme``."""
    return system_theme if theme == Theme.SYSTEM else theme


class PreferenceStore:
    """JSON-file store keyed like browser local storage."""

    def __init__(self, directory: str) -> None:
        self._directory = directory

    def _path(self, key: str) -> str:
        return os.path.join(self._directory, f"{key}.json")

    def get(self, key: str, default: Any = None) -> Any:
        path = self._path(key)
        if not os.path.exists(path):
            return default
        try:
            with open(path) as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Ignoring unreadable preference %s: %s", path, e)
            return default

    def set(self, key: str, value: Any) -> None:
        """Write one preference atomically."""
        os.makedirs(self._directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(value, f, indent=2)
            os.replace(tmp_path, self._path(key))
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def remove(self, key: str) -> None:
        try:
            os.unlink(self._path(key))
        except FileNotFoundError:
            pass

    # ── Column layout ───────────────────────────────────────────────

    def load_column_config(self) -> list[ColumnConfig]:
        stored = self.get(COLUMN_CONFIG_KEY, _MISSING)
        if stored is _MISSING:
            return get_default_columns()
        try:
            return reconcile_columns(columns_from_json(stored))
        except ValueError as e:
            logger.warning("Invalid column config, using defaults: %s", e)
            return get_default_columns()

    def save_column_config(self, columns: list[ColumnConfig]) -> None:
        self.set(COLUMN_CONFIG_KEY, [c.to_dict() for c in columns])

    # ── Table page size and sorting ─────────────────────────────────

    def load_page_size(self) -> int:
        stored = self.get(PAGE_SIZE_KEY)
        try:
            size = int(stored)
        except (TypeError, ValueError):
            return DEFAULT_PAGE_SIZE
        return size if size in PAGE_SIZES else DEFAULT_PAGE_SIZE

    def save_page_size(self, size: int) -> None:
        self.set(PAGE_SIZE_KEY, size)

    def load_sorting(self) -> list[SortKey]:
        stored = self.get(SORTING_KEY)
        if not isinstance(stored, list):
            return list(DEFAULT_SORTING)
        sorting = []
        for item in stored:
            if not isinstance(item, dict) or not isinstance(item.get("id"), str):
                return list(DEFAULT_SORTING)
            sorting.append(SortKey(id=item["id"], desc=bool(item.get("desc", False))))
        return sorting

    def save_sorting(self, sorting: list[SortKey]) -> None:
        self.set(SORTING_KEY, [key.to_dict() for key in sorting])

    # ── Theme ───────────────────────────────────────────────────────

    def load_theme(self) -> Theme:
        try:
            return Theme(self.get(THEME_KEY))
        except ValueError:
            return Theme.SYSTEM

    def save_theme(self, theme: Theme) -> None:
        self.set(THEME_KEY, theme.value)

    # ── Session location ("sk=<passphrase>") ────────────────────────

    def load_location(self) -> Optional[str]:
        stored = self.get(SESSION_KEY)
        return stored if isinstance(stored, str) and stored else None

    def save_location(self, location: str) -> None:
        self.set(SESSION_KEY, location)

    def clear_location(self) -> None:
        self.remove(SESSION_KEY)
