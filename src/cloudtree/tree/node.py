"""Tree nodes and the per-parent child cache."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, List, Optional, Sequence

from ..config import (
    CREATE_NEW_LABEL_TEMPLATE,
    CREATING_CONTEXT_VALUE,
    CREATING_LABEL_TEMPLATE,
    ERROR_CONTEXT_VALUE,
    ERROR_LABEL_TEMPLATE,
    ID_SEPARATOR,
    LOAD_MORE_CONTEXT_VALUE,
    LOAD_MORE_LABEL,
    SELECT_CHILD_PLACEHOLDER_TEMPLATE,
)
from ..errors import (
    ArgumentError,
    NodeNotFoundError,
    NoMoreChildrenError,
    UnsupportedOperationError,
)
from ..errors.handler import parse_error
from ..interfaces import IResourceProvider, QuickPickItem, QuickPickOptions
from .tree_item import TreeItem

if TYPE_CHECKING:  # pragma: no cover - only for type checking
    from .provider import TreeProvider

LOGGER = logging.getLogger(__name__)

_LOAD_MORE_PICK = object()
_CREATE_PICK = object()


def build_node_id(segment: str, parent_id: Optional[str] = None) -> str:
    """Return the full id of a node whose own segment is *segment*.

    Segments are normalised to start with the separator.  Segments that
    already carry the parent's id (fully qualified ids) are kept as-is.
    """

    node_id = segment if segment.startswith(ID_SEPARATOR) else ID_SEPARATOR + segment
    if parent_id is not None and not is_ancestor_id(parent_id, node_id):
        node_id = parent_id + node_id
    return node_id


def is_ancestor_id(ancestor_id: str, node_id: str) -> bool:
    # ``/a/test`` is not an ancestor of ``/a/test1/x``.
    return node_id.startswith(ancestor_id + ID_SEPARATOR)


class Node:
    """An addressable entry of the tree."""

    def __init__(
        self,
        parent: Optional["ParentNode"],
        tree_item: TreeItem,
        tree: Optional["TreeProvider"] = None,
    ) -> None:
        self.parent = parent
        self.tree_item = tree_item
        self._tree = tree

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.id!r})"

    @property
    def id(self) -> str:
        segment = self.tree_item.id or self.tree_item.label
        return build_node_id(segment, self.parent.id if self.parent is not None else None)

    @property
    def label(self) -> str:
        return self.tree_item.label

    @property
    def context_value(self) -> str:
        return self.tree_item.context_value

    @property
    def icon_path(self) -> Optional[str]:
        return self.tree_item.icon_path

    @property
    def command_id(self) -> Optional[str]:
        return self.tree_item.command_id

    @property
    def tree(self) -> Optional["TreeProvider"]:
        node: Optional[Node] = self
        while node is not None:
            if node._tree is not None:
                return node._tree
            node = node.parent
        return None

    def include_in_node_picker(self, expected_context_values: Sequence[str]) -> bool:
        if self.context_value == LOAD_MORE_CONTEXT_VALUE:
            return False
        if self.context_value in expected_context_values:
            return True
        if self.tree_item.is_ancestor_of is not None:
            return any(self.tree_item.is_ancestor_of(value) for value in expected_context_values)
        return isinstance(self, ParentNode)

    async def refresh(self) -> None:
        tree = self.tree
        if tree is not None:
            await tree.refresh(self)


class ParentNode(Node):
    """A node that can have children.

    Children are fetched page by page and cached.  The cache only grows until
    :meth:`clear_cache` resets it to the unknown state, in which nothing is
    cached and more children are assumed to exist.
    """

    def __init__(
        self,
        parent: Optional["ParentNode"],
        tree_item: TreeItem,
        tree: Optional["TreeProvider"] = None,
        provider: Optional[IResourceProvider] = None,
    ) -> None:
        super().__init__(parent, tree_item, tree)
        resolved = provider or tree_item.child_provider or (parent.provider if parent is not None else None)
        if resolved is None:
            raise ArgumentError(tree_item, f"Tree item {tree_item.label!r} has no child provider")
        self._provider: IResourceProvider = resolved
        self.creating_nodes: List[Node] = []
        self._cached_children: List[Node] = []
        self._continuation: Any = None
        self._loaded = False
        # Bumped by every cache mutation; a fetch that started under an older
        # generation must not touch the cache.
        self._generation = 0

    @property
    def provider(self) -> IResourceProvider:
        return self._provider

    @property
    def has_more_children(self) -> bool:
        if not self._loaded:
            return True
        return self._provider.has_more_children(self, self._continuation)

    def get_cached_children(self) -> List[Node]:
        return list(self._cached_children)

    def clear_cache(self) -> None:
        LOGGER.debug("Clearing cached children of %s", self.id)
        self._cached_children = []
        self._continuation = None
        self._loaded = False
        self._generation += 1

    async def ensure_loaded(self) -> None:
        """Fetch the first page unless the cache already holds one."""
        if not self._loaded:
            await self._fetch_page()

    async def load_more_children(self) -> List[Node]:
        if not self.has_more_children:
            raise NoMoreChildrenError(f"{self.label} has no more children to load")
        return await self._fetch_page()

    def create_tree_node(self, tree_item: TreeItem) -> Node:
        if tree_item.is_parent:
            return ParentNode(self, tree_item)
        return Node(self, tree_item)

    async def pick_child_node(self, expected_context_values: Sequence[str]) -> Node:
        tree = self.tree
        if tree is None:
            raise UnsupportedOperationError(f"{self.label} is not attached to a tree")

        child_type = self.tree_item.child_type_label or "a resource"
        options = QuickPickOptions(placeholder=SELECT_CHILD_PLACEHOLDER_TEMPLATE.format(child_type))
        while True:
            await self.ensure_loaded()
            picks = self._get_quick_picks(expected_context_values)
            if not picks:
                raise NodeNotFoundError()

            choice = (await tree.ui.show_quick_pick(picks, options)).data
            if choice is _LOAD_MORE_PICK:
                await self.load_more_children()
                await tree.refresh(self, clear_cache=False)
                continue
            if choice is _CREATE_PICK:
                return await self.create_child()
            return choice

    async def create_child(self) -> Node:
        factory = self.tree_item.create_child
        if factory is None:
            raise UnsupportedOperationError(f"{self.label} cannot create children")

        tree = self.tree
        placeholder: Optional[Node] = None

        async def show_creating(label: str) -> None:
            nonlocal placeholder
            placeholder = Node(
                self,
                TreeItem(label=CREATING_LABEL_TEMPLATE.format(label), context_value=CREATING_CONTEXT_VALUE),
            )
            self.creating_nodes.append(placeholder)
            if tree is not None:
                await tree.refresh(self, clear_cache=False)

        try:
            new_item = await factory(self, show_creating)
        except Exception:
            if self._discard_creating(placeholder) and tree is not None:
                await tree.refresh(self, clear_cache=False)
            raise
        self._discard_creating(placeholder)

        node = self.create_tree_node(new_item)
        # An unloaded cache will pick the child up with its first page.
        if self._loaded:
            self._cached_children.append(node)
            self._generation += 1
        if tree is not None:
            tree.on_node_create.emit(node)
            await tree.refresh(self, clear_cache=False)
        return node

    def _discard_creating(self, placeholder: Optional[Node]) -> bool:
        if placeholder is None or placeholder not in self.creating_nodes:
            return False
        self.creating_nodes.remove(placeholder)
        return True

    def _get_quick_picks(self, expected_context_values: Sequence[str]) -> List[QuickPickItem]:
        picks: List[QuickPickItem] = []
        if self.tree_item.create_child is not None:
            child_type = self.tree_item.child_type_label or "resource"
            picks.append(QuickPickItem(label=CREATE_NEW_LABEL_TEMPLATE.format(child_type), data=_CREATE_PICK))
        for child in self.creating_nodes + self._cached_children:
            if child.include_in_node_picker(expected_context_values):
                picks.append(
                    QuickPickItem(label=child.label, description=child.tree_item.description or "", data=child)
                )
        if self.has_more_children:
            picks.append(QuickPickItem(label=LOAD_MORE_LABEL, data=_LOAD_MORE_PICK))
        return picks

    async def _fetch_page(self) -> List[Node]:
        generation = self._generation
        if self._loaded:
            page = await self._provider.load_more_children(self, self._continuation)
        else:
            page = await self._provider.get_children(self)

        if generation != self._generation:
            LOGGER.debug("Discarding stale page of %d children for %s", len(page.items), self.id)
            return []

        nodes = [self.create_tree_node(item) for item in page.items]
        self._cached_children.extend(nodes)
        self._continuation = page.continuation
        self._loaded = True
        self._generation += 1
        LOGGER.debug("Loaded %d children for %s (more=%s)", len(nodes), self.id, self.has_more_children)
        return nodes


def create_load_more_node(parent: ParentNode, command_id: str) -> Node:
    return Node(
        parent,
        TreeItem(label=LOAD_MORE_LABEL, context_value=LOAD_MORE_CONTEXT_VALUE, command_id=command_id),
    )


def create_error_node(parent: Optional[ParentNode], error: BaseException, tree: Optional["TreeProvider"] = None) -> Node:
    message = parse_error(error).message
    return Node(
        parent,
        TreeItem(label=ERROR_LABEL_TEMPLATE.format(message), context_value=ERROR_CONTEXT_VALUE),
        tree,
    )


__all__ = [
    "Node",
    "ParentNode",
    "build_node_id",
    "create_error_node",
    "create_load_more_node",
    "is_ancestor_id",
]
