"""Custom exception hierarchy for cloudtree."""

from __future__ import annotations

from typing import Any


class CloudTreeError(Exception):
    """Base class for all custom errors raised by cloudtree."""


# --- 3-layer hierarchy ---

class DomainError(CloudTreeError):
    """Base class for errors about the state of the tree itself."""


class InfrastructureError(CloudTreeError):
    """Base class for errors raised by backing collaborators."""


class ApplicationError(CloudTreeError):
    """Base class for errors raised by interactive workflows."""


# --- Domain errors ---

class NodeNotFoundError(DomainError):
    """Raised when the node picker runs out of nodes without a match."""

    def __init__(self, message: str = "No matching resources found.") -> None:
        super().__init__(message)


class NoMoreChildrenError(DomainError):
    """Raised when loading another page of a parent that has none left."""


class UnsupportedOperationError(DomainError):
    """Raised when a tree item lacks the capability an operation needs."""


# --- Application errors ---

class UserCancelledError(ApplicationError):
    """Raised when the user dismisses an interactive flow."""

    def __init__(self, message: str = "Operation cancelled.") -> None:
        super().__init__(message)


class ArgumentError(ApplicationError):
    """Raised when a value handed to the tree is missing required fields."""

    def __init__(self, argument: Any, message: str | None = None) -> None:
        self.argument = argument
        super().__init__(message or f"Invalid argument: {argument!r}")


# --- Infrastructure errors ---

class CatalogError(InfrastructureError):
    """Raised when a catalog file cannot be read or fails validation."""


# --- Settings ---

class SettingsError(CloudTreeError):
    """Base class for settings related failures."""


class SettingsLoadError(SettingsError):
    """Raised when the settings file cannot be parsed or loaded."""


class SettingsValidationError(SettingsError):
    """Raised when settings data fails schema validation."""


__all__ = [
    "ApplicationError",
    "ArgumentError",
    "CatalogError",
    "CloudTreeError",
    "DomainError",
    "InfrastructureError",
    "NoMoreChildrenError",
    "NodeNotFoundError",
    "SettingsError",
    "SettingsLoadError",
    "SettingsValidationError",
    "UnsupportedOperationError",
    "UserCancelledError",
]
