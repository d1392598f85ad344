"""Typer-based CLI that hosts the tree over a JSON catalog."""

from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

import typer
from rich.console import Console
from rich.prompt import IntPrompt
from rich.tree import Tree

from .catalog import (
    CatalogAccountState,
    CatalogCommandExecutor,
    CatalogResourceProvider,
    load_catalog,
)
from .config import LOAD_MORE_CONTEXT_VALUE
from .errors import CloudTreeError, UserCancelledError
from .errors.handler import ErrorHandler
from .events.bus import EventBus
from .events.tree_events import ActionTelemetryEvent
from .interfaces import IUserInput, QuickPickItem, QuickPickOptions
from .settings.manager import SettingsManager
from .telemetry import EventBusTelemetryReporter
from .tree.node import Node
from .tree.provider import TreeProvider
from .utils.console_logger import ensure_console_logger

LOGGER = logging.getLogger(__name__)

app = typer.Typer(help="Browse a remote resource catalog as a lazily loaded tree")
console = Console()

SettingsOption = typer.Option(None, "--settings", help="Path to a settings.json file.")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr.")


class ConsoleUserInput(IUserInput):
    """Ask for a choice by number on the console; 0 cancels."""

    def __init__(self, output: Console) -> None:
        self._console = output

    async def show_quick_pick(self, items: Sequence[QuickPickItem], options: QuickPickOptions) -> QuickPickItem:
        if options.placeholder:
            self._console.print(f"[bold]{options.placeholder}[/bold]")
        for number, item in enumerate(items, start=1):
            suffix = f" [dim]{item.description}[/dim]" if item.description else ""
            self._console.print(f"  {number}. {item.label}{suffix}")
        choice = IntPrompt.ask("Choice (0 to cancel)", console=self._console, default=0)
        if choice < 1 or choice > len(items):
            raise UserCancelledError()
        return items[choice - 1]


@dataclass
class HostContext:
    tree: TreeProvider
    provider: CatalogResourceProvider
    account: CatalogAccountState


def _handle_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except UserCancelledError as exc:
            typer.echo("Cancelled.", err=True)
            raise typer.Exit(1) from exc
        except CloudTreeError as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(1) from exc

    return wrapper


def _load_settings(settings_path: Optional[Path]) -> SettingsManager:
    # Without --settings the defaults are used and nothing is written.
    manager = SettingsManager(path=settings_path)
    if settings_path is not None:
        manager.load()
    return manager


def _build_host(catalog_path: Path, settings_path: Optional[Path], verbose: bool) -> HostContext:
    settings = _load_settings(settings_path)

    level = logging.DEBUG if verbose else getattr(logging, settings.get("logging.level"))
    ensure_console_logger(logging.getLogger("cloudtree"), "cloudtree-console", level=level)

    catalog = load_catalog(catalog_path)
    provider = CatalogResourceProvider(catalog, page_size=settings.get("tree.page_size"))
    account = CatalogAccountState.from_catalog(catalog)

    bus = EventBus()
    error_handler = ErrorHandler(logging.getLogger("cloudtree.errors"), bus)
    error_handler.register_ui_callback(
        lambda message, severity: console.print(f"[red]{severity.value}:[/red] {message}")
    )
    reporter = None
    if settings.get("telemetry.enabled"):
        reporter = EventBusTelemetryReporter(bus)
        bus.subscribe(
            ActionTelemetryEvent,
            lambda event: LOGGER.debug("telemetry %s %s %s", event.callback_id, event.properties, event.measurements),
        )

    tree = TreeProvider(
        provider,
        account,
        ConsoleUserInput(console),
        CatalogCommandExecutor(account, catalog.filters()),
        load_more_command_id=settings.get("tree.load_more_command_id"),
        telemetry_reporter=reporter,
        error_handler=error_handler,
    )
    return HostContext(tree=tree, provider=provider, account=account)


def _describe(tree: TreeProvider, node: Node) -> str:
    view = tree.get_tree_item(node)
    text = view.label
    if view.description:
        text += f" [dim]{view.description}[/dim]"
    if view.command is not None:
        text += f" [cyan]({view.command.command_id})[/cyan]"
    return text


async def _children(tree: TreeProvider, node: Optional[Node], all_pages: bool) -> List[Node]:
    children = await tree.get_children(node)
    while all_pages and children and children[-1].context_value == LOAD_MORE_CONTEXT_VALUE:
        await tree.load_more(children[-1])
        children = await tree.get_children(node)
    return children


async def _render(tree: TreeProvider, node: Optional[Node], branch: Tree, depth: int, all_pages: bool) -> None:
    for child in await _children(tree, node, all_pages):
        sub_branch = branch.add(_describe(tree, child))
        if depth > 1 and tree.get_tree_item(child).collapsible:
            await _render(tree, child, sub_branch, depth - 1, all_pages)


async def _expand(tree: TreeProvider, node: Optional[Node], depth: int) -> None:
    for child in await tree.get_children(node):
        if depth > 1 and tree.get_tree_item(child).collapsible:
            await _expand(tree, child, depth - 1)


@app.command()
@_handle_errors
def show(
    catalog: Path = typer.Argument(..., exists=True, dir_okay=False, help="Catalog JSON file."),
    depth: int = typer.Option(2, "--depth", "-d", min=1, help="Levels to expand."),
    all_pages: bool = typer.Option(False, "--all-pages", help="Follow every Load More node."),
    settings: Optional[Path] = SettingsOption,
    verbose: bool = VerboseOption,
) -> None:
    """Print the tree down to DEPTH levels."""

    host = _build_host(catalog, settings, verbose)
    root = Tree(f"[bold]{catalog.name}[/bold]")
    asyncio.run(_render(host.tree, None, root, depth, all_pages))
    console.print(root)


@app.command()
@_handle_errors
def find(
    catalog: Path = typer.Argument(..., exists=True, dir_okay=False, help="Catalog JSON file."),
    node_id: str = typer.Argument(..., help="Full id of the node to look up."),
    expand: int = typer.Option(1, "--expand", "-e", min=1, help="Levels to load before searching."),
    settings: Optional[Path] = SettingsOption,
    verbose: bool = VerboseOption,
) -> None:
    """Look up NODE_ID among the nodes loaded so far."""

    host = _build_host(catalog, settings, verbose)

    async def _find() -> Optional[Node]:
        await _expand(host.tree, None, expand)
        return await host.tree.find_node(node_id)

    node = asyncio.run(_find())
    if node is None:
        typer.echo(f"Not loaded: {node_id}", err=True)
        raise typer.Exit(1)
    view = host.tree.get_tree_item(node)
    console.print(f"{view.id}\t{view.label}\t{view.context_value}")


@app.command()
@_handle_errors
def pick(
    catalog: Path = typer.Argument(..., exists=True, dir_okay=False, help="Catalog JSON file."),
    context_values: List[str] = typer.Argument(..., help="Context values that end the pick."),
    settings: Optional[Path] = SettingsOption,
    verbose: bool = VerboseOption,
) -> None:
    """Walk down the tree until a node with one of CONTEXT_VALUES is chosen."""

    host = _build_host(catalog, settings, verbose)
    node = asyncio.run(host.tree.show_node_picker(context_values))
    view = host.tree.get_tree_item(node)
    console.print(f"{view.id}\t{view.label}\t{view.context_value}")


def main() -> None:  # pragma: no cover - console script entry
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
