"""TreeProvider: what a host UI queries to render the catalog tree.

Root level
    Subscription nodes, one per active filter, followed by the custom root
    nodes given at construction.  While the account is not ready the
    subscriptions are replaced by command nodes (sign in, create account,
    edit filters).

Below the root
    Each :class:`ParentNode` serves its cached children, preceded by any
    "Creating..." placeholders and followed by a "Load More..." node while
    the provider reports further pages.

:meth:`TreeProvider.get_children` never raises: failures become a single
error node.  Everything else propagates to the caller.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Union

from ..config import (
    COMMAND_CONTEXT_VALUE,
    CREATE_ACCOUNT_COMMAND_ID,
    CREATE_ACCOUNT_LABEL,
    DEFAULT_LOAD_MORE_COMMAND_ID,
    LOADING_ICON,
    LOADING_LABEL,
    NO_SUBSCRIPTIONS_LABEL,
    SELECT_SUBSCRIPTION_PLACEHOLDER,
    SELECT_SUBSCRIPTIONS_COMMAND_ID,
    SIGN_IN_COMMAND_ID,
    SIGN_IN_LABEL,
    SUBSCRIPTION_CONTEXT_VALUE,
)
from ..errors import ArgumentError, NodeNotFoundError, UserCancelledError
from ..errors.handler import ErrorHandler
from ..events.bus import Subscription
from ..events.signal import Signal
from ..interfaces import (
    IAccountState,
    ICommandExecutor,
    IResourceProvider,
    ITelemetryReporter,
    IUserInput,
    LoginStatus,
    QuickPickItem,
    QuickPickOptions,
    ResourceFilter,
)
from ..telemetry import ActionContext, call_with_telemetry_and_error_handling
from .node import Node, ParentNode, create_error_node, create_load_more_node, is_ancestor_id
from .subscription_node import SubscriptionNode, validate_filter
from .tree_item import TreeCommand, TreeItem, TreeItemView


class TreeProvider:
    subscription_context_value: str = SUBSCRIPTION_CONTEXT_VALUE

    def __init__(
        self,
        resource_provider: IResourceProvider,
        account: IAccountState,
        ui: IUserInput,
        command_executor: ICommandExecutor,
        *,
        load_more_command_id: str = DEFAULT_LOAD_MORE_COMMAND_ID,
        telemetry_reporter: Optional[ITelemetryReporter] = None,
        error_handler: Optional[ErrorHandler] = None,
        root_tree_items: Optional[Sequence[TreeItem]] = None,
    ) -> None:
        self._logger = logging.getLogger(__name__)
        self._resource_provider = resource_provider
        self._account = account
        self._ui = ui
        self._command_executor = command_executor
        self._load_more_command_id = load_more_command_id
        self._telemetry_reporter = telemetry_reporter
        self._error_handler = error_handler

        self._on_did_change_tree_data = Signal()
        self._on_node_create = Signal()

        self._custom_root_nodes: List[Node] = [
            ParentNode(None, item, self) for item in (root_tree_items or [])
        ]
        # Keyed by the filter's fully qualified id, in filter order.
        self._subscription_nodes: Dict[str, SubscriptionNode] = {}

        self._subscriptions: List[Subscription] = [
            account.on_filters_changed.connect(self._on_filters_changed),
            account.on_status_changed.connect(self._on_status_changed),
        ]

    def dispose(self) -> None:
        for sub in self._subscriptions:
            sub.cancel()
        self._subscriptions.clear()

    # ------------------------------------------------------------------
    # Channels and collaborators
    # ------------------------------------------------------------------
    @property
    def on_did_change_tree_data(self) -> Signal:
        """Emits the changed node, or ``None`` when the whole tree changed."""
        return self._on_did_change_tree_data

    @property
    def on_node_create(self) -> Signal:
        return self._on_node_create

    @property
    def ui(self) -> IUserInput:
        return self._ui

    @property
    def subscription_nodes(self) -> List[SubscriptionNode]:
        return list(self._subscription_nodes.values())

    @property
    def custom_root_nodes(self) -> List[Node]:
        return list(self._custom_root_nodes)

    # ------------------------------------------------------------------
    # Host API
    # ------------------------------------------------------------------
    def get_tree_item(self, node: Node) -> TreeItemView:
        command = None
        if node.command_id:
            command = TreeCommand(command_id=node.command_id, title="", arguments=(node,))
        return TreeItemView(
            label=node.label,
            id=node.id,
            collapsible=isinstance(node, ParentNode),
            context_value=node.context_value,
            icon_path=node.icon_path,
            description=node.tree_item.description,
            command=command,
        )

    async def get_children(self, node: Optional[Node] = None) -> List[Node]:
        async def _get_children(context: ActionContext) -> List[Node]:
            context.suppress_error_display = True
            context.rethrow_error = True

            if node is None:
                result = await self.get_root_nodes(context)
            elif isinstance(node, ParentNode):
                context.properties["contextValue"] = node.context_value
                await node.ensure_loaded()
                has_more_children = node.has_more_children
                context.properties["hasMoreChildren"] = str(has_more_children)

                result = node.creating_nodes + node.get_cached_children()
                if has_more_children:
                    result.append(create_load_more_node(node, self._load_more_command_id))
            else:
                result = []

            context.measurements["childCount"] = len(result)
            return result

        try:
            return await call_with_telemetry_and_error_handling(
                "TreeProvider.getChildren",
                _get_children,
                reporter=self._telemetry_reporter,
                error_handler=self._error_handler,
            )
        except Exception as exc:
            self._logger.debug("Showing error node under %r: %s", node, exc)
            parent = node if isinstance(node, ParentNode) else None
            return [create_error_node(parent, exc, self)]

    async def refresh(self, node: Optional[Node] = None, clear_cache: bool = True) -> None:
        if clear_cache and node is not None:
            if node.tree_item.refresh_label is not None:
                await node.tree_item.refresh_label(node)
            if isinstance(node, ParentNode):
                node.clear_cache()

        self._on_did_change_tree_data.emit(node)

    async def load_more(self, node: Node) -> None:
        parent = node.parent

        async def _load_more(context: ActionContext) -> None:
            context.rethrow_error = True
            if not isinstance(parent, ParentNode):
                raise ArgumentError(node, f"{node!r} has no parent to load more children into")
            context.properties["contextValue"] = parent.context_value
            loaded = await parent.load_more_children()
            context.measurements["childCount"] = len(loaded)

        await call_with_telemetry_and_error_handling(
            "TreeProvider.loadMore",
            _load_more,
            reporter=self._telemetry_reporter,
            error_handler=self._error_handler,
        )
        self._on_did_change_tree_data.emit(parent)

    async def find_node(self, node_id: str) -> Optional[Node]:
        """Return the node with *node_id* if it is already materialised.

        The root level is reconciled against the account first, so dropped
        subscriptions are never returned.  Below it only cached children are
        searched; nothing is fetched.
        """

        nodes: List[Node] = await self.get_children()
        while True:
            for node in nodes:
                if node.id == node_id:
                    return node
                if isinstance(node, ParentNode) and is_ancestor_id(node.id, node_id):
                    nodes = node.get_cached_children()
                    break
            else:
                return None

    async def show_node_picker(
        self,
        expected_context_values: Union[str, Sequence[str]],
        starting_node: Optional[Node] = None,
    ) -> Node:
        if isinstance(expected_context_values, str):
            expected_context_values = [expected_context_values]
        expected = list(expected_context_values)

        async def _pick(context: ActionContext) -> Node:
            context.rethrow_error = True
            context.properties["expectedContextValues"] = ",".join(expected)

            node = starting_node or await self.prompt_for_root_node(expected)
            while node.context_value not in expected:
                if isinstance(node, ParentNode):
                    node = await node.pick_child_node(expected)
                else:
                    raise NodeNotFoundError()
            return node

        return await call_with_telemetry_and_error_handling(
            "TreeProvider.showNodePicker",
            _pick,
            reporter=self._telemetry_reporter,
            error_handler=self._error_handler,
        )

    # ------------------------------------------------------------------
    # Root level
    # ------------------------------------------------------------------
    async def prompt_for_root_node(self, expected_context_values: Sequence[str]) -> Node:
        picks: List[QuickPickItem] = []
        if self._account.status == LoginStatus.LOGGED_IN:
            for node in self._reconcile_subscriptions(self._account.filters):
                picks.append(QuickPickItem(label=node.label, description=node.subscription_id, data=node))
        else:
            picks.append(QuickPickItem(label=SIGN_IN_LABEL, data=SIGN_IN_COMMAND_ID))
            picks.append(QuickPickItem(label=CREATE_ACCOUNT_LABEL, data=CREATE_ACCOUNT_COMMAND_ID))

        for node in self._custom_root_nodes:
            if node.include_in_node_picker(expected_context_values):
                picks.append(QuickPickItem(label=node.label, data=node))

        options = QuickPickOptions(placeholder=SELECT_SUBSCRIPTION_PLACEHOLDER)
        result = (await self._ui.show_quick_pick(picks, options)).data
        if isinstance(result, str):
            await self._command_executor.execute_command(result)
            if self._account.status == LoginStatus.LOGGED_IN:
                return await self.prompt_for_root_node(expected_context_values)
            raise UserCancelledError()
        return result

    async def get_root_nodes(self, context: Optional[ActionContext] = None) -> List[Node]:
        context = context or ActionContext()
        status = self._account.status
        context.properties["isActivationEvent"] = "true"
        context.properties["contextValue"] = "root"
        context.properties["accountStatus"] = status.value

        nodes: List[Node]
        if status in (LoginStatus.INITIALIZING, LoginStatus.LOGGING_IN):
            self._subscription_nodes = {}
            nodes = [
                self._create_command_node(LOADING_LABEL, SIGN_IN_COMMAND_ID, icon_path=LOADING_ICON),
            ]
        elif status == LoginStatus.LOGGED_OUT:
            self._subscription_nodes = {}
            nodes = [
                self._create_command_node(SIGN_IN_LABEL, SIGN_IN_COMMAND_ID),
                self._create_command_node(CREATE_ACCOUNT_LABEL, CREATE_ACCOUNT_COMMAND_ID),
            ]
        elif not self._account.filters:
            self._subscription_nodes = {}
            nodes = [
                self._create_command_node(NO_SUBSCRIPTIONS_LABEL, SELECT_SUBSCRIPTIONS_COMMAND_ID),
            ]
        else:
            nodes = list(self._reconcile_subscriptions(self._account.filters))

        return nodes + self._custom_root_nodes

    def _reconcile_subscriptions(self, filters: Sequence[ResourceFilter]) -> List[SubscriptionNode]:
        """Replace the subscription registry with one node per filter.

        Nodes whose filter is still present are reused (keeping everything
        cached beneath them); the rest are dropped.
        """

        for resource_filter in filters:
            validate_filter(resource_filter)

        existing = self._subscription_nodes
        reconciled: Dict[str, SubscriptionNode] = {}
        for resource_filter in filters:
            node = existing.get(resource_filter.full_id)
            if node is None:
                node = SubscriptionNode(self, self._resource_provider, resource_filter)
            else:
                node.update_filter(resource_filter)
            reconciled.setdefault(resource_filter.full_id, node)

        self._subscription_nodes = reconciled
        self._logger.debug(
            "Reconciled %d subscriptions (%d reused)",
            len(reconciled),
            sum(1 for key in reconciled if key in existing),
        )
        return list(reconciled.values())

    def _create_command_node(self, label: str, command_id: str, icon_path: Optional[str] = None) -> Node:
        return Node(
            None,
            TreeItem(
                label=label,
                id=command_id,
                command_id=command_id,
                context_value=COMMAND_CONTEXT_VALUE,
                icon_path=icon_path,
            ),
            self,
        )

    # ------------------------------------------------------------------
    # Account events
    # ------------------------------------------------------------------
    def _on_filters_changed(self, *_args) -> None:
        self._on_did_change_tree_data.emit(None)

    def _on_status_changed(self, status: LoginStatus) -> None:
        # LoggedIn is followed by a filters change; waiting for it keeps the
        # tree in the loading state until the filters are ready.
        if status != LoginStatus.LOGGED_IN:
            self._on_did_change_tree_data.emit(None)


__all__ = ["TreeProvider"]
