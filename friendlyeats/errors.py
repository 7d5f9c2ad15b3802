from __future__ import annotations


class FriendlyEatsError(Exception):
    """Base class for errors raised by the data layer."""


class InvalidArgument(FriendlyEatsError):
    """A required argument was missing or malformed. Raised before any storage access."""


class NotFound(FriendlyEatsError):
    """A referenced document does not exist."""


class TransactionFailed(FriendlyEatsError):
    """A transaction could not commit within its retry budget."""
