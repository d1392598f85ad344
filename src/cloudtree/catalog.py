"""Collaborators backed by a JSON catalog file.

A catalog describes the account state and the resources under each
subscription::

    {
      "status": "LoggedIn",
      "subscriptions": [
        {
          "id": "/subscriptions/0000",
          "subscription_id": "0000",
          "display_name": "Development",
          "children": [
            {"label": "web-rg", "context_value": "resourceGroup", "children": [
              {"label": "web-app", "context_value": "webApp"}
            ]}
          ]
        }
      ]
    }

Used by the command line host and handy as a stand-in remote in tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from jsonschema import Draft202012Validator, ValidationError

from .config import DEFAULT_PAGE_SIZE, SIGN_IN_COMMAND_ID
from .errors import ArgumentError, CatalogError
from .events.signal import Signal
from .interfaces import (
    ChildPage,
    IAccountState,
    ICommandExecutor,
    IResourceProvider,
    LoginStatus,
    ResourceFilter,
)
from .tree.node import ParentNode, build_node_id
from .tree.tree_item import TreeItem
from .utils.jsonio import read_json

LOGGER = logging.getLogger(__name__)

CATALOG_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["subscriptions"],
    "properties": {
        "status": {"enum": [status.value for status in LoginStatus]},
        "subscriptions": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "subscription_id", "display_name"],
                "properties": {
                    "id": {"type": "string", "minLength": 1},
                    "subscription_id": {"type": "string"},
                    "display_name": {"type": "string"},
                    "children": {"type": "array", "items": {"$ref": "#/$defs/resource"}},
                },
            },
        },
    },
    "$defs": {
        "resource": {
            "type": "object",
            "required": ["label", "context_value"],
            "properties": {
                "label": {"type": "string", "minLength": 1},
                "context_value": {"type": "string"},
                "id": {"type": "string", "minLength": 1},
                "description": {"type": "string"},
                "icon_path": {"type": "string"},
                "children": {"type": "array", "items": {"$ref": "#/$defs/resource"}},
            },
        },
    },
}

_validator = Draft202012Validator(CATALOG_SCHEMA)


@dataclass
class Catalog:
    status: LoginStatus = LoginStatus.LOGGED_IN
    subscriptions: List[Dict[str, Any]] = field(default_factory=list)

    def filters(self) -> List[ResourceFilter]:
        return [
            ResourceFilter(
                full_id=entry["id"],
                subscription_id=entry["subscription_id"],
                display_name=entry["display_name"],
            )
            for entry in self.subscriptions
        ]


def parse_catalog(payload: Any) -> Catalog:
    try:
        _validator.validate(payload)
    except ValidationError as exc:
        raise CatalogError(f"Invalid catalog: {exc.message}") from exc
    status = LoginStatus(payload.get("status", LoginStatus.LOGGED_IN.value))
    return Catalog(status=status, subscriptions=list(payload["subscriptions"]))


def load_catalog(path: Path) -> Catalog:
    try:
        payload = read_json(path)
    except (OSError, ValueError) as exc:
        raise CatalogError(f"Cannot read catalog {path}: {exc}") from exc
    return parse_catalog(payload)


def _tree_item_from_entry(entry: Dict[str, Any]) -> TreeItem:
    return TreeItem(
        label=entry["label"],
        context_value=entry["context_value"],
        id=entry.get("id"),
        description=entry.get("description"),
        icon_path=entry.get("icon_path"),
        has_children="children" in entry,
    )


class CatalogResourceProvider(IResourceProvider):
    """Serve catalog children in pages of ``page_size``.

    The continuation is the offset of the next page.
    """

    def __init__(self, catalog: Catalog, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size < 1:
            raise ArgumentError(page_size, "page_size must be at least 1")
        self._page_size = page_size
        self._children: Dict[str, List[Dict[str, Any]]] = {}
        self.request_count = 0
        for subscription in catalog.subscriptions:
            self._index(build_node_id(subscription["id"]), subscription.get("children", []))

    async def get_children(self, parent: ParentNode) -> ChildPage:
        return self._page(parent, 0)

    async def load_more_children(self, parent: ParentNode, continuation: Any) -> ChildPage:
        return self._page(parent, int(continuation or 0))

    def _page(self, parent: ParentNode, offset: int) -> ChildPage:
        self.request_count += 1
        entries = self._children.get(parent.id, [])
        batch = entries[offset:offset + self._page_size]
        next_offset = offset + len(batch)
        continuation = next_offset if next_offset < len(entries) else None
        LOGGER.debug("Serving %d of %d children of %s from offset %d", len(batch), len(entries), parent.id, offset)
        return ChildPage(items=[_tree_item_from_entry(entry) for entry in batch], continuation=continuation)

    def _index(self, parent_id: str, entries: Sequence[Dict[str, Any]]) -> None:
        self._children[parent_id] = list(entries)
        for entry in entries:
            if "children" in entry:
                child_id = build_node_id(entry.get("id") or entry["label"], parent_id)
                self._index(child_id, entry["children"])


class CatalogAccountState(IAccountState):
    def __init__(self, status: LoginStatus, filters: Optional[Sequence[ResourceFilter]] = None) -> None:
        self._status = status
        self._filters: List[ResourceFilter] = list(filters or [])
        self._on_status_changed = Signal()
        self._on_filters_changed = Signal()

    @classmethod
    def from_catalog(cls, catalog: Catalog) -> "CatalogAccountState":
        filters = catalog.filters() if catalog.status == LoginStatus.LOGGED_IN else []
        return cls(catalog.status, filters)

    @property
    def status(self) -> LoginStatus:
        return self._status

    @property
    def filters(self) -> List[ResourceFilter]:
        return list(self._filters)

    @property
    def on_status_changed(self) -> Signal:
        return self._on_status_changed

    @property
    def on_filters_changed(self) -> Signal:
        return self._on_filters_changed

    def set_status(self, status: LoginStatus) -> None:
        if status == self._status:
            return
        self._status = status
        self._on_status_changed.emit(status)

    def set_filters(self, filters: Sequence[ResourceFilter]) -> None:
        self._filters = list(filters)
        self._on_filters_changed.emit()


class CatalogCommandExecutor(ICommandExecutor):
    """Handle the account commands against a :class:`CatalogAccountState`.

    Signing in switches the account to LoggedIn and applies the filters the
    catalog lists.  Other commands are only logged.
    """

    def __init__(self, account: CatalogAccountState, filters_on_sign_in: Sequence[ResourceFilter] = ()) -> None:
        self._account = account
        self._filters_on_sign_in = list(filters_on_sign_in)
        self.executed: List[str] = []

    async def execute_command(self, command_id: str, *args: Any) -> Any:
        self.executed.append(command_id)
        if command_id == SIGN_IN_COMMAND_ID:
            self._account.set_status(LoginStatus.LOGGED_IN)
            self._account.set_filters(self._filters_on_sign_in)
            return None
        LOGGER.info("Command %s is not available in this host", command_id)
        return None


__all__ = [
    "CATALOG_SCHEMA",
    "Catalog",
    "CatalogAccountState",
    "CatalogCommandExecutor",
    "CatalogResourceProvider",
    "load_catalog",
    "parse_catalog",
]
