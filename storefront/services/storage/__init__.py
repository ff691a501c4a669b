"""
Order Storage Service Factory

Provides a single entry point for obtaining the order store. The rest of the
application only ever talks to BaseOrderStorage.

Usage:
    from storefront.services.storage import get_order_storage

    storage = get_order_storage()
    order = await storage.get_order(42)

Backend Switching:
    - ORDER_STORAGE=sql → SqlOrderStorage (SQLite file or PostgreSQL)
    - ORDER_STORAGE=memory → MemoryOrderStorage (lost on restart)

Author: Bro Bro Foods
Version: 1.0.0
"""

import logging
from functools import lru_cache

from storefront.core.config import StorageBackend, get_settings
from storefront.services.storage.base import (
    BaseOrderStorage,
    TransitionGuard,
    CUSTOMER_ACTOR,
)
from storefront.services.storage.memory import MemoryOrderStorage
from storefront.services.storage.sql import SqlOrderStorage

logger = logging.getLogger(__name__)


@lru_cache()
def get_order_storage() -> BaseOrderStorage:
    """
    Get the configured order store.

    The instance is cached so the memory backend keeps its orders for the
    lifetime of the process.

    Returns:
        BaseOrderStorage: Configured storage instance
    """
    settings = get_settings()

    if settings.order_storage == StorageBackend.MEMORY:
        logger.info("Order Storage: Using MemoryOrderStorage")
        return MemoryOrderStorage()

    from storefront.database import async_session_maker

    logger.info("Order Storage: Using SqlOrderStorage")
    return SqlOrderStorage(async_session_maker)


def reset_order_storage() -> None:
    """
    Clear the cached storage instance.

    The next call to get_order_storage() will create a new instance.
    """
    get_order_storage.cache_clear()
    logger.debug("Order storage cache cleared")


__all__ = [
    "get_order_storage",
    "reset_order_storage",
    "BaseOrderStorage",
    "TransitionGuard",
    "CUSTOMER_ACTOR",
    "MemoryOrderStorage",
    "SqlOrderStorage",
]
