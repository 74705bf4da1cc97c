"""Allowance domain specific exceptions."""


class AllowanceError(Exception):
    """Base class for allowance and payout errors."""


class ValidationError(AllowanceError):
    """Raised when an adjustment or period key is rejected before any write."""


class ClaimNotFoundError(AllowanceError):
    """Raised when the requested claim does not exist."""


class ImmutableClaimError(AllowanceError):
    """Raised when attempting to modify a claim that has already been paid."""


class PayoutLockedError(AllowanceError):
    """Raised when a payout is attempted while the claim is locked."""


class StoreUnavailableError(AllowanceError):
    """Raised when the backing store cannot be reached."""


class SyncFailure(AllowanceError):
    """Raised inside a wallet sync run; recorded on the intern's sync lock."""
