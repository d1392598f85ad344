"""Descriptors supplied by resource providers and the records shown by hosts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Tuple

if TYPE_CHECKING:  # pragma: no cover - only for type checking
    from ..interfaces import IResourceProvider
    from .node import Node, ParentNode

ShowCreating = Callable[[str], Awaitable[None]]


@dataclass(eq=False)
class TreeItem:
    """What a resource provider knows about one entry of the catalog.

    ``id`` is the entry's path segment and falls back to ``label``.  An item
    is a parent when it declares ``has_children`` or brings its own
    ``child_provider``; parents without a provider enumerate their children
    through the provider of the node above them.

    ``create_child`` receives the parent node and an async ``show_creating``
    callback.  Calling the callback displays a placeholder until the factory
    returns the descriptor of the new child.
    """

    label: str
    context_value: str
    id: Optional[str] = None
    description: Optional[str] = None
    command_id: Optional[str] = None
    icon_path: Optional[str] = None
    has_children: bool = False
    child_provider: Optional["IResourceProvider"] = None
    refresh_label: Optional[Callable[["Node"], Awaitable[None]]] = None
    create_child: Optional[Callable[["ParentNode", ShowCreating], Awaitable["TreeItem"]]] = None
    child_type_label: Optional[str] = None
    is_ancestor_of: Optional[Callable[[str], bool]] = None
    data: Any = field(default=None, repr=False)

    @property
    def is_parent(self) -> bool:
        return self.has_children or self.child_provider is not None


@dataclass(frozen=True)
class TreeCommand:
    command_id: str
    title: str = ""
    arguments: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class TreeItemView:
    """Display record handed to the host for one node."""

    label: str
    id: str
    collapsible: bool
    context_value: str
    icon_path: Optional[str] = None
    description: Optional[str] = None
    command: Optional[TreeCommand] = None


__all__ = ["ShowCreating", "TreeCommand", "TreeItem", "TreeItemView"]
