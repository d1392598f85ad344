"""Persistent host settings for the tree (paging, telemetry, logging)."""

from __future__ import annotations

import logging
import os
import sys
from copy import deepcopy
from pathlib import Path
from typing import Any

from jsonschema import ValidationError

from ..errors import SettingsLoadError, SettingsValidationError
from ..events.signal import Signal
from ..utils.jsonio import read_json, write_json
from .schema import DEFAULT_SETTINGS, merge_with_defaults

LOGGER = logging.getLogger(__name__)

_APP_DIR = "cloudtree"
_FILE_NAME = "settings.json"


def default_settings_path() -> Path:
    """Per-user location of ``settings.json`` on this platform."""

    if os.name == "nt":
        root = Path(os.environ["APPDATA"]) if os.environ.get("APPDATA") else Path.home() / "AppData" / "Roaming"
    elif sys.platform == "darwin":
        root = Path.home() / "Library" / "Application Support"
    else:
        xdg = os.environ.get("XDG_CONFIG_HOME")
        root = Path(xdg) if xdg else Path.home() / ".config"
    return root / _APP_DIR / _FILE_NAME


def _lookup(data: dict[str, Any], dotted: str) -> tuple[bool, Any]:
    node: Any = data
    for part in dotted.split("."):
        if not isinstance(node, dict) or part not in node:
            return False, None
        node = node[part]
    return True, node


def _assign(data: dict[str, Any], dotted: str, value: Any) -> None:
    *sections, leaf = dotted.split(".")
    node = data
    for section in sections:
        child = node.get(section)
        if not isinstance(child, dict):
            child = node[section] = {}
        node = child
    node[leaf] = value


class SettingsManager:
    """Validated, dotted-key access to the settings file.

    Nothing touches the disk until :meth:`load` or :meth:`set` is called, so
    a manager that is never loaded simply serves the defaults.
    ``settings_changed`` emits ``(key, value)`` after each accepted update.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._data: dict[str, Any] = deepcopy(DEFAULT_SETTINGS)
        self.settings_changed = Signal()

    @property
    def path(self) -> Path:
        if self._path is None:
            self._path = default_settings_path()
        return self._path

    def load(self) -> None:
        """Read the file (if any), fill in defaults and write the result back."""

        payload: Any = None
        if self.path.exists():
            try:
                payload = read_json(self.path)
            except (OSError, ValueError) as exc:
                raise SettingsLoadError(f"Cannot read {self.path}: {exc}") from exc
            if not isinstance(payload, dict):
                raise SettingsLoadError(f"{self.path} does not contain a JSON object")
        self._data = self._validated(payload)
        LOGGER.debug("Loaded settings from %s", self.path)
        self._save()

    def get(self, key: str, default: Any | None = None) -> Any:
        found, value = _lookup(self._data, key)
        return value if found else default

    def set(self, key: str, value: Any) -> None:
        """Store *value* under the dotted *key*.

        A value the schema rejects raises :class:`SettingsValidationError`
        and leaves the current settings untouched.
        """

        if isinstance(value, Path):
            value = str(value)
        candidate = deepcopy(self._data)
        _assign(candidate, key, value)
        self._data = self._validated(candidate)
        self._save()
        self.settings_changed.emit(key, value)

    def _validated(self, payload: dict[str, Any] | None) -> dict[str, Any]:
        try:
            return merge_with_defaults(payload)
        except ValidationError as exc:
            raise SettingsValidationError(exc.message) from exc

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        write_json(self.path, self._data)


__all__ = ["SettingsManager", "default_settings_path"]
