"""Lazily populated, cached tree over a remote resource catalog."""

from .tree import Node, ParentNode, SubscriptionNode, TreeItem, TreeItemView, TreeProvider

__version__ = "0.1.0"

__all__ = [
    "Node",
    "ParentNode",
    "SubscriptionNode",
    "TreeItem",
    "TreeItemView",
    "TreeProvider",
    "__version__",
]
