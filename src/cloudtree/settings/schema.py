"""Schema helpers for the settings file."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

from jsonschema import Draft202012Validator

from ..config import DEFAULT_LOAD_MORE_COMMAND_ID, DEFAULT_PAGE_SIZE

SETTINGS_SCHEMA: dict[str, Any] = {
    "$id": "cloudtree/settings.schema.json",
    "type": "object",
    "required": ["schema", "tree", "telemetry", "logging"],
    "properties": {
        "schema": {"const": "cloudtree/settings@1"},
        "tree": {
            "type": "object",
            "properties": {
                "load_more_command_id": {"type": "string", "minLength": 1},
                "page_size": {"type": "integer", "minimum": 1},
            },
            "additionalProperties": True,
        },
        "telemetry": {
            "type": "object",
            "properties": {
                "enabled": {"type": "boolean"},
            },
            "additionalProperties": True,
        },
        "logging": {
            "type": "object",
            "properties": {
                "level": {
                    "type": "string",
                    "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                },
            },
            "additionalProperties": True,
        },
    },
    "additionalProperties": True,
}

DEFAULT_SETTINGS: dict[str, Any] = {
    "schema": "cloudtree/settings@1",
    "tree": {
        "load_more_command_id": DEFAULT_LOAD_MORE_COMMAND_ID,
        "page_size": DEFAULT_PAGE_SIZE,
    },
    "telemetry": {"enabled": True},
    "logging": {"level": "WARNING"},
}

_SECTIONS = ("tree", "telemetry", "logging")

_validator = Draft202012Validator(SETTINGS_SCHEMA)


def merge_with_defaults(data: dict[str, Any] | None) -> dict[str, Any]:
    """Merge *data* with :data:`DEFAULT_SETTINGS` and validate the result."""

    merged = deepcopy(DEFAULT_SETTINGS)
    if data:
        for key, value in data.items():
            if key in _SECTIONS and isinstance(value, dict):
                target = merged.setdefault(key, {})
                for sub_key, sub_value in value.items():
                    target[sub_key] = sub_value
                continue
            merged[key] = value
    _validator.validate(merged)
    return merged


__all__ = ["DEFAULT_SETTINGS", "SETTINGS_SCHEMA", "merge_with_defaults"]
