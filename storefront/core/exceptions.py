"""
Storefront exception types.

Not-found is deliberately absent: storage and services return None for an
unknown order id and the HTTP layer turns that into a 404.
"""

from typing import Optional


class StorefrontError(Exception):
    """Base class for storefront errors."""


class OrderValidationError(StorefrontError, ValueError):
    """
    Client input rejected before it reaches the order store.

    The message is shown to the customer as-is.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class StorageUnavailableError(StorefrontError):
    """The order store could not complete a call. Safe to retry by hand."""


class IllegalTransitionError(StorefrontError):
    """A status change was refused by the transition rules."""

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot move order from '{current}' to '{target}'")
        self.current = current
        self.target = target
