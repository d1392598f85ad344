from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..config import SUBSCRIPTION_CONTEXT_VALUE, SUBSCRIPTION_ICON
from ..errors import ArgumentError
from ..interfaces import IResourceProvider, ResourceFilter
from .node import ParentNode
from .tree_item import TreeItem

if TYPE_CHECKING:  # pragma: no cover - only for type checking
    from .provider import TreeProvider


def validate_filter(resource_filter: ResourceFilter) -> None:
    if (
        resource_filter.full_id is None
        or resource_filter.display_name is None
        or resource_filter.subscription_id is None
    ):
        raise ArgumentError(resource_filter)


class SubscriptionNode(ParentNode):
    """Root-level node standing for one subscription filter."""

    def __init__(self, tree: "TreeProvider", provider: IResourceProvider, resource_filter: ResourceFilter) -> None:
        validate_filter(resource_filter)
        tree_item = TreeItem(
            label=resource_filter.display_name,
            id=resource_filter.full_id,
            context_value=SUBSCRIPTION_CONTEXT_VALUE,
            icon_path=SUBSCRIPTION_ICON,
            child_type_label="Resource",
        )
        super().__init__(None, tree_item, tree, provider)
        self.subscription_id: str = resource_filter.subscription_id
        self.session: Any = resource_filter.session

    @property
    def key(self) -> str:
        return self.tree_item.id

    def update_filter(self, resource_filter: ResourceFilter) -> None:
        """Take over session and display name from a filter with the same key.

        The cached children are left untouched.
        """

        if resource_filter.full_id != self.key:
            raise ArgumentError(resource_filter, f"Filter {resource_filter.full_id!r} does not match {self.key!r}")
        self.session = resource_filter.session
        self.tree_item.label = resource_filter.display_name
