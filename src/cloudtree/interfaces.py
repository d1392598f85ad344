"""Contracts for the collaborators the tree depends on but does not own."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, List, Optional, Sequence, TypeVar

if TYPE_CHECKING:  # pragma: no cover - only for type checking
    from .events.signal import Signal
    from .tree.node import ParentNode
    from .tree.tree_item import TreeItem

T = TypeVar("T")


@dataclass
class ChildPage:
    """One batch of children returned by a resource provider.

    ``continuation`` is opaque to the tree; ``None`` means the provider has
    nothing further to return.
    """

    items: List["TreeItem"] = field(default_factory=list)
    continuation: Any = None


class IResourceProvider(ABC):
    """Interface for enumerating the children of a node on demand."""

    @abstractmethod
    async def get_children(self, parent: "ParentNode") -> ChildPage:
        """Return the first page of children of *parent*."""
        pass

    @abstractmethod
    async def load_more_children(self, parent: "ParentNode", continuation: Any) -> ChildPage:
        """Return the page following *continuation*; the caller appends it."""
        pass

    def has_more_children(self, parent: "ParentNode", continuation: Any) -> bool:
        """Report whether another page exists after *continuation*."""
        return continuation is not None


class LoginStatus(str, Enum):
    INITIALIZING = "Initializing"
    LOGGING_IN = "LoggingIn"
    LOGGED_IN = "LoggedIn"
    LOGGED_OUT = "LoggedOut"


@dataclass
class ResourceFilter:
    """A subscription selected by the user.

    ``full_id`` is the fully qualified id (for example
    ``/subscriptions/00000000-0000-0000-0000-000000000000``) and becomes the
    node id; ``subscription_id`` is the bare guid used by clients.
    """

    full_id: Optional[str]
    subscription_id: Optional[str]
    display_name: Optional[str]
    session: Any = None


class IAccountState(ABC):
    """Interface for the login state machine and the active filters."""

    @property
    @abstractmethod
    def status(self) -> LoginStatus:
        pass

    @property
    @abstractmethod
    def filters(self) -> Sequence[ResourceFilter]:
        pass

    @property
    @abstractmethod
    def on_status_changed(self) -> "Signal":
        """Emits the new :class:`LoginStatus`."""
        pass

    @property
    @abstractmethod
    def on_filters_changed(self) -> "Signal":
        """Emits with no arguments."""
        pass


@dataclass
class QuickPickItem(Generic[T]):
    label: str
    description: str = ""
    data: Optional[T] = None


@dataclass
class QuickPickOptions:
    placeholder: str = ""


class IUserInput(ABC):
    """Interface for asking the user to choose among items."""

    @abstractmethod
    async def show_quick_pick(self, items: Sequence[QuickPickItem], options: QuickPickOptions) -> QuickPickItem:
        """Return the chosen item or raise ``UserCancelledError``."""
        pass


class ICommandExecutor(ABC):
    """Interface for running host commands bound to nodes."""

    @abstractmethod
    async def execute_command(self, command_id: str, *args: Any) -> Any:
        pass


class ITelemetryReporter(ABC):
    """Interface for the telemetry transport."""

    @abstractmethod
    def send_event(self, event_name: str, properties: dict[str, str], measurements: dict[str, float]) -> None:
        pass
