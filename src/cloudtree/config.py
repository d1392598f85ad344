"""Default configuration values for cloudtree."""

from __future__ import annotations

from typing import Final

# Commands owned by the account extension.  The tree binds them to the
# placeholder nodes it shows while the account is not ready.
SIGN_IN_COMMAND_ID: Final[str] = "azure-account.login"
CREATE_ACCOUNT_COMMAND_ID: Final[str] = "azure-account.createAccount"
SELECT_SUBSCRIPTIONS_COMMAND_ID: Final[str] = "azure-account.selectSubscriptions"

DEFAULT_LOAD_MORE_COMMAND_ID: Final[str] = "cloudtree.loadMore"

SIGN_IN_LABEL: Final[str] = "Sign in to Azure..."
CREATE_ACCOUNT_LABEL: Final[str] = "Create a Free Azure Account..."
LOADING_LABEL: Final[str] = "Loading..."
NO_SUBSCRIPTIONS_LABEL: Final[str] = "No subscriptions found. Edit filters..."
LOAD_MORE_LABEL: Final[str] = "Load More..."
ERROR_LABEL_TEMPLATE: Final[str] = "Error: {0}"
CREATING_LABEL_TEMPLATE: Final[str] = "Creating {0}..."
CREATE_NEW_LABEL_TEMPLATE: Final[str] = "$(plus) Create new {0}..."
SELECT_SUBSCRIPTION_PLACEHOLDER: Final[str] = "Select a Subscription"
SELECT_CHILD_PLACEHOLDER_TEMPLATE: Final[str] = "Select {0}"

COMMAND_CONTEXT_VALUE: Final[str] = "azureCommandNode"
ERROR_CONTEXT_VALUE: Final[str] = "azureextensionui.error"
LOAD_MORE_CONTEXT_VALUE: Final[str] = "azureextensionui.loadMore"
CREATING_CONTEXT_VALUE: Final[str] = "azureextensionui.creating"
SUBSCRIPTION_CONTEXT_VALUE: Final[str] = "azureextensionui.azureSubscription"

# Icons are plain references; the host decides how to resolve them.
LOADING_ICON: Final[str] = "Loading.svg"
SUBSCRIPTION_ICON: Final[str] = "AzureSubscription.svg"

# Path segments of a node id are joined with this separator.  A node is an
# ancestor of another only if the other id starts with ``ancestor + "/"``.
ID_SEPARATOR: Final[str] = "/"

DEFAULT_PAGE_SIZE: Final[int] = 50
