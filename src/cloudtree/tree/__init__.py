from .node import Node, ParentNode, build_node_id, is_ancestor_id
from .provider import TreeProvider
from .subscription_node import SubscriptionNode
from .tree_item import TreeCommand, TreeItem, TreeItemView

__all__ = [
    "Node",
    "ParentNode",
    "SubscriptionNode",
    "TreeCommand",
    "TreeItem",
    "TreeItemView",
    "TreeProvider",
    "build_node_id",
    "is_ancestor_id",
]
