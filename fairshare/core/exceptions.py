"""
Domain exceptions for fairshare services.

Split validation never raises: invalid selections come back as tagged
``SplitFailure`` outcomes. These exceptions cover the settlement feeds.
"""


class FairShareError(Exception):
    """Base exception for fairshare service errors."""
    pass


class SettlementServiceError(FairShareError):
    """Raised when a read against the remote settlement service fails."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class BalanceUnavailableError(FairShareError):
    """Raised when neither balances nor settlement pairs could be obtained."""
    pass
