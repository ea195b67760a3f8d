"""Custom exceptions for the market correlation dashboard.

Retrieval, policy and orchestration exceptions live here
to avoid circular imports between modules.
"""


class DashboardError(Exception):
    """Base exception for all dashboard errors."""


class PolicyRejection(DashboardError):
    """Raised when a query is refused by the pre-flight policy guard."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class RetrievalFailure(DashboardError):
    """Raised when the asset catalog or a price history cannot be fetched.

    The message is shown to the user as-is.
    """


class InvalidStateTransition(DashboardError):
    """Raised when the analysis state machine is driven along an undefined edge."""
