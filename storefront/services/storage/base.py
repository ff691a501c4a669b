"""
Order Storage Service Abstract Base Class

Defines the interface contract of the order store. Every call is a single
indivisible operation: a status update and its timeline event are written
together or not at all. Concurrent writers to the same order are resolved by
"last call wins" - there is no version check.

Implementations:
    - MemoryOrderStorage: process-local, used for tests and demos
    - SqlOrderStorage: SQLAlchemy async (SQLite / PostgreSQL)

Not-found is a normal result: every lookup or update of an unknown id
returns None. Backend failures raise StorageUnavailableError.

Author: Bro Bro Foods
Version: 1.0.0
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Optional, Sequence

from storefront.models import OrderStatus
from storefront.schemas import (
    LastBuildStatus,
    LastBuildStatusResponse,
    OrderResponse,
    PaymentConfirmation,
    StatusChangeEvent,
)

# (current, target) -> allowed?
TransitionGuard = Callable[[OrderStatus, OrderStatus], bool]

CUSTOMER_ACTOR = "customer"


def next_event_time(previous: Sequence[datetime], now: datetime) -> datetime:
    """Timestamp for a new event, never earlier than the last one."""
    if previous and previous[-1] > now:
        return previous[-1]
    return now


class BaseOrderStorage(ABC):
    """
    Abstract base class for order stores.

    Example:
        >>> storage = get_order_storage()
        >>> order = await storage.create_order(2, "Full Plate", 80, 3)
        >>> order.total_amount
        240
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the storage backend name (e.g. "memory", "sql")."""
        pass

    @abstractmethod
    async def create_order(
        self,
        plate_type_id: int,
        plate_type_name: str,
        price: int,
        quantity: int,
    ) -> OrderResponse:
        """
        Create an order in status pending with a single seed event.

        total_amount is price * quantity and is never recomputed.
        """
        pass

    @abstractmethod
    async def get_all_orders(self) -> list[OrderResponse]:
        """Return every order. No ordering guarantee."""
        pass

    @abstractmethod
    async def get_order(self, order_id: int) -> Optional[OrderResponse]:
        pass

    @abstractmethod
    async def get_order_status_timeline(
        self,
        order_id: int,
    ) -> Optional[list[StatusChangeEvent]]:
        """Return the status events in append order, or None."""
        pass

    @abstractmethod
    async def get_payment_confirmation(
        self,
        order_id: int,
    ) -> Optional[PaymentConfirmation]:
        """Return the current confirmation; None if unknown order or unpaid."""
        pass

    @abstractmethod
    async def update_order_status(
        self,
        order_id: int,
        new_status: OrderStatus,
        changed_by: str,
        guard: Optional[TransitionGuard] = None,
    ) -> Optional[OrderResponse]:
        """
        Append a status event and set the status in one step.

        Args:
            order_id: Order to update
            new_status: Target status
            changed_by: Actor recorded on the event
            guard: Optional legality check evaluated against the stored
                status inside the same operation

        Raises:
            IllegalTransitionError: If the guard refuses the transition
        """
        pass

    @abstractmethod
    async def update_payment_confirmation(
        self,
        order_id: int,
        confirmation: PaymentConfirmation,
    ) -> Optional[OrderResponse]:
        """Replace the order's payment confirmation entirely."""
        pass

    @abstractmethod
    async def get_last_build_status(self) -> Optional[LastBuildStatusResponse]:
        pass

    @abstractmethod
    async def update_last_build_status(
        self,
        status: LastBuildStatus,
    ) -> LastBuildStatusResponse:
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify the backing store is reachable.

        Returns:
            bool: True if the store is operational
        """
        pass
