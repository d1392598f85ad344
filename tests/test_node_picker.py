"""Interactive node picking, from the root prompt down to a matching node."""

from unittest.mock import Mock

import pytest

from cloudtree.catalog import CatalogAccountState
from cloudtree.config import CREATE_ACCOUNT_LABEL, SIGN_IN_LABEL, SUBSCRIPTION_CONTEXT_VALUE
from cloudtree.errors import NodeNotFoundError, UserCancelledError
from cloudtree.errors.handler import ErrorHandler
from cloudtree.interfaces import ITelemetryReporter, LoginStatus
from cloudtree.tree.node import Node
from cloudtree.tree.provider import TreeProvider
from cloudtree.tree.tree_item import TreeItem

from conftest import (
    FakeResourceProvider,
    RecordingCommandExecutor,
    ScriptedUserInput,
    folder,
    leaf,
    make_filter,
)


def _build(answers, account=None, commands=None, children=None, **kwargs):
    resource_provider = FakeResourceProvider(children or {})
    account = account or CatalogAccountState(LoginStatus.LOGGED_IN, [make_filter("a"), make_filter("b")])
    ui = ScriptedUserInput(answers)
    commands = commands or RecordingCommandExecutor(account)
    tree = TreeProvider(resource_provider, account, ui, commands, **kwargs)
    return tree, ui, resource_provider


@pytest.mark.asyncio
async def test_picks_down_to_matching_leaf():
    tree, ui, _ = _build(
        ["Subscription a", "web-rg", "site"],
        children={
            "/subscriptions/a": [folder("web-rg", context_value="resourceGroup"), leaf("log", context_value="logFile")],
            "/subscriptions/a/web-rg": [leaf("site", context_value="webApp")],
        },
    )

    node = await tree.show_node_picker(["webApp"])

    assert node.id == "/subscriptions/a/web-rg/site"
    assert ui.prompts == [
        ("Select a Subscription", ["Subscription a", "Subscription b"]),
        ("Select Resource", ["web-rg"]),
        ("Select a resource", ["site"]),
    ]


@pytest.mark.asyncio
async def test_single_context_value_and_subscription_target():
    tree, ui, provider = _build(["Subscription b"])

    node = await tree.show_node_picker(SUBSCRIPTION_CONTEXT_VALUE)

    assert node is tree.subscription_nodes[1]
    assert provider.calls == []


@pytest.mark.asyncio
async def test_load_more_pick_fetches_next_page():
    tree, ui, provider = _build(
        ["Subscription a", "Load More...", "z"],
        children={"/subscriptions/a": [leaf("x"), leaf("y"), leaf("z")]},
    )
    changes = []
    tree.on_did_change_tree_data.connect(changes.append)

    node = await tree.show_node_picker("resource")

    assert node.label == "z"
    assert [labels for _, labels in ui.prompts[1:]] == [["x", "y", "Load More..."], ["x", "y", "z"]]
    assert changes == [tree.subscription_nodes[0]]
    assert provider.calls == [
        ("get_children", "/subscriptions/a"),
        ("load_more_children", "/subscriptions/a", 2),
    ]


@pytest.mark.asyncio
async def test_no_candidates_raises_not_found():
    tree, _, _ = _build(
        ["Subscription a"],
        children={"/subscriptions/a": [leaf("log", context_value="logFile")]},
    )

    with pytest.raises(NodeNotFoundError):
        await tree.show_node_picker("database")


@pytest.mark.asyncio
async def test_non_matching_leaf_start_raises_not_found():
    tree, ui, _ = _build([])
    start = Node(None, leaf("log", context_value="logFile"), tree)

    with pytest.raises(NodeNotFoundError):
        await tree.show_node_picker("database", starting_node=start)

    assert ui.prompts == []


@pytest.mark.asyncio
async def test_matching_start_node_is_returned_without_prompting():
    tree, ui, _ = _build([])
    start = Node(None, leaf("db", context_value="database"), tree)

    assert await tree.show_node_picker("database", starting_node=start) is start
    assert ui.prompts == []


@pytest.mark.asyncio
async def test_sign_in_then_prompt_again():
    account = CatalogAccountState(LoginStatus.LOGGED_OUT)
    commands = RecordingCommandExecutor(account, sign_in_filters=[make_filter("c")])
    tree, ui, _ = _build([SIGN_IN_LABEL, "Subscription c"], account=account, commands=commands)

    node = await tree.show_node_picker(SUBSCRIPTION_CONTEXT_VALUE)

    assert node.id == "/subscriptions/c"
    assert commands.executed == ["azure-account.login"]
    assert ui.prompts[0][1] == [SIGN_IN_LABEL, CREATE_ACCOUNT_LABEL]
    assert ui.prompts[1][1] == ["Subscription c"]


@pytest.mark.asyncio
async def test_command_that_does_not_sign_in_cancels():
    account = CatalogAccountState(LoginStatus.LOGGED_OUT)
    commands = RecordingCommandExecutor(account)
    tree, _, _ = _build([CREATE_ACCOUNT_LABEL], account=account, commands=commands)

    with pytest.raises(UserCancelledError):
        await tree.show_node_picker(SUBSCRIPTION_CONTEXT_VALUE)

    assert commands.executed == ["azure-account.createAccount"]


@pytest.mark.asyncio
async def test_cancel_is_reported_but_not_displayed():
    reporter = Mock(spec=ITelemetryReporter)
    error_handler = Mock(spec=ErrorHandler)
    tree, _, _ = _build([None], telemetry_reporter=reporter, error_handler=error_handler)

    with pytest.raises(UserCancelledError):
        await tree.show_node_picker("resource")

    error_handler.handle.assert_not_called()
    name, properties, _ = reporter.send_event.call_args[0]
    assert name == "TreeProvider.showNodePicker"
    assert properties["result"] == "Canceled"
    assert properties["expectedContextValues"] == "resource"


@pytest.mark.asyncio
async def test_custom_roots_filtered_by_expected_values():
    provider = FakeResourceProvider({"/workspace": [leaf("item", context_value="workspaceItem")]})
    workspace = TreeItem(
        label="Workspace",
        id="workspace",
        context_value="workspace",
        child_provider=provider,
        is_ancestor_of=lambda value: value == "workspaceItem",
    )
    tree, ui, _ = _build(["Workspace", "item"], root_tree_items=[workspace])

    node = await tree.show_node_picker("workspaceItem")

    assert node.id == "/workspace/item"
    assert ui.prompts[0][1] == ["Subscription a", "Subscription b", "Workspace"]

    ui.answers = ["Subscription a"]
    with pytest.raises(NodeNotFoundError):
        await tree.show_node_picker("database")
    assert ui.prompts[-1][1] == ["Subscription a", "Subscription b"]


@pytest.mark.asyncio
async def test_create_new_pick_creates_child():
    provider = FakeResourceProvider({"/workspace": [leaf("old", context_value="database")]})

    async def create_database(parent, show_creating):
        await show_creating("fresh")
        return leaf("fresh", context_value="database")

    workspace = TreeItem(
        label="Workspace",
        id="workspace",
        context_value="workspace",
        child_provider=provider,
        child_type_label="Database",
        create_child=create_database,
    )
    tree, ui, _ = _build(["Workspace", "$(plus) Create new Database..."], root_tree_items=[workspace])

    node = await tree.show_node_picker("database")

    assert node.label == "fresh"
    assert ui.prompts[1] == ("Select Database", ["$(plus) Create new Database...", "old"])
    assert [child.label for child in tree.custom_root_nodes[0].get_cached_children()] == ["old", "fresh"]
