"""
Core module initialization.
Exports configuration, logging and error utilities.
"""

from storefront.core.config import get_settings, Settings, EnvironmentMode, StorageBackend
from storefront.core.exceptions import (
    StorefrontError,
    OrderValidationError,
    StorageUnavailableError,
    IllegalTransitionError,
)

__all__ = [
    "get_settings",
    "Settings",
    "EnvironmentMode",
    "StorageBackend",
    "StorefrontError",
    "OrderValidationError",
    "StorageUnavailableError",
    "IllegalTransitionError",
]
