"""Shared fakes for the tree tests."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from cloudtree.catalog import CatalogAccountState
from cloudtree.errors import UserCancelledError
from cloudtree.interfaces import (
    ChildPage,
    ICommandExecutor,
    IResourceProvider,
    IUserInput,
    LoginStatus,
    QuickPickItem,
    QuickPickOptions,
    ResourceFilter,
)
from cloudtree.tree.provider import TreeProvider
from cloudtree.tree.tree_item import TreeItem


class FakeResourceProvider(IResourceProvider):
    """Children keyed by parent id, served ``page_size`` at a time."""

    def __init__(self, children: Optional[Dict[str, List[TreeItem]]] = None, page_size: int = 2) -> None:
        self.children: Dict[str, List[TreeItem]] = children or {}
        self.page_size = page_size
        self.calls: List[tuple] = []
        self.error: Optional[Exception] = None

    async def get_children(self, parent) -> ChildPage:
        self.calls.append(("get_children", parent.id))
        return self._page(parent, 0)

    async def load_more_children(self, parent, continuation: Any) -> ChildPage:
        self.calls.append(("load_more_children", parent.id, continuation))
        return self._page(parent, continuation)

    def _page(self, parent, offset: int) -> ChildPage:
        if self.error is not None:
            raise self.error
        items = self.children.get(parent.id, [])
        batch = items[offset:offset + self.page_size]
        end = offset + len(batch)
        return ChildPage(items=list(batch), continuation=end if end < len(items) else None)


class ScriptedUserInput(IUserInput):
    """Answers quick picks from a script of labels; ``None`` cancels."""

    def __init__(self, answers: Sequence[Optional[str]] = ()) -> None:
        self.answers: List[Optional[str]] = list(answers)
        self.prompts: List[tuple[str, List[str]]] = []

    async def show_quick_pick(self, items: Sequence[QuickPickItem], options: QuickPickOptions) -> QuickPickItem:
        self.prompts.append((options.placeholder, [item.label for item in items]))
        if not self.answers:
            raise AssertionError(f"Unexpected quick pick: {[item.label for item in items]}")
        answer = self.answers.pop(0)
        if answer is None:
            raise UserCancelledError()
        for item in items:
            if item.label == answer:
                return item
        raise AssertionError(f"{answer!r} not offered in {[item.label for item in items]}")


class RecordingCommandExecutor(ICommandExecutor):
    def __init__(self, account: Optional[CatalogAccountState] = None, sign_in_filters: Sequence[ResourceFilter] = ()) -> None:
        self.executed: List[str] = []
        self._account = account
        self._sign_in_filters = list(sign_in_filters)

    async def execute_command(self, command_id: str, *args: Any) -> Any:
        self.executed.append(command_id)
        if self._account is not None and command_id == "azure-account.login" and self._sign_in_filters:
            self._account.set_status(LoginStatus.LOGGED_IN)
            self._account.set_filters(self._sign_in_filters)
        return None


def make_filter(name: str) -> ResourceFilter:
    return ResourceFilter(
        full_id=f"/subscriptions/{name}",
        subscription_id=name,
        display_name=f"Subscription {name}",
    )


def leaf(label: str, context_value: str = "resource", **kwargs) -> TreeItem:
    return TreeItem(label=label, context_value=context_value, **kwargs)


def folder(label: str, context_value: str = "folder", **kwargs) -> TreeItem:
    return TreeItem(label=label, context_value=context_value, has_children=True, **kwargs)


@pytest.fixture
def resource_provider() -> FakeResourceProvider:
    return FakeResourceProvider()


@pytest.fixture
def account() -> CatalogAccountState:
    return CatalogAccountState(LoginStatus.LOGGED_IN, [make_filter("a"), make_filter("b")])


@pytest.fixture
def user_input() -> ScriptedUserInput:
    return ScriptedUserInput()


@pytest.fixture
def commands(account) -> RecordingCommandExecutor:
    return RecordingCommandExecutor(account)


@pytest.fixture
def tree(resource_provider, account, user_input, commands) -> TreeProvider:
    provider = TreeProvider(resource_provider, account, user_input, commands)
    yield provider
    provider.dispose()
