"""MediKeep Foundation Application -- application layer plumbing."""

from medikeep.foundation.application.context import (
    NoPrincipalContextError,
    clear_principal_context,
    get_caller_id,
    get_current_principal,
    get_optional_principal,
    set_principal_context,
)
from medikeep.foundation.application.contributions import (
    ErrorHandlerContribution,
    LifespanContribution,
    MiddlewareContribution,
)
from medikeep.foundation.application.discovery import (
    ALL_GROUPS,
    DiscoveredContribution,
    discover,
)

__all__ = [
    "ALL_GROUPS",
    "DiscoveredContribution",
    "ErrorHandlerContribution",
    "LifespanContribution",
    "MiddlewareContribution",
    "NoPrincipalContextError",
    "clear_principal_context",
    "discover",
    "get_caller_id",
    "get_current_principal",
    "get_optional_principal",
    "set_principal_context",
]
