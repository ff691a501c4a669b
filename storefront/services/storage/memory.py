"""
In-Memory Order Storage

Process-local implementation of the order store. Used by the test-suite and
for quick demos (ORDER_STORAGE=memory). Nothing survives a restart.

Each method mutates the store without awaiting in between, so on a single
event loop every call is atomic. Callers always receive deep copies.

Author: Bro Bro Foods
Version: 1.0.0
"""

import itertools
import logging
from datetime import datetime, timezone
from typing import Optional

from storefront.core.exceptions import IllegalTransitionError
from storefront.models import OrderStatus
from storefront.schemas import (
    LastBuildStatus,
    LastBuildStatusResponse,
    OrderResponse,
    PaymentConfirmation,
    StatusChangeEvent,
)
from storefront.services.storage.base import (
    CUSTOMER_ACTOR,
    BaseOrderStorage,
    TransitionGuard,
    next_event_time,
)

logger = logging.getLogger(__name__)


class MemoryOrderStorage(BaseOrderStorage):
    """
    Dictionary-backed order store.

    Example:
        >>> storage = MemoryOrderStorage()
        >>> order = await storage.create_order(1, "Half Plate", 50, 2)
        >>> order.id
        1
    """

    def __init__(self):
        self._orders: dict[int, OrderResponse] = {}
        self._ids = itertools.count(1)
        self._build_status: Optional[LastBuildStatusResponse] = None

        logger.info("MemoryOrderStorage initialized")

    @property
    def provider_name(self) -> str:
        return "memory"

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    def _snapshot(self, order_id: int) -> Optional[OrderResponse]:
        order = self._orders.get(order_id)
        return order.model_copy(deep=True) if order is not None else None

    async def create_order(
        self,
        plate_type_id: int,
        plate_type_name: str,
        price: int,
        quantity: int,
    ) -> OrderResponse:
        now = self._now()
        order_id = next(self._ids)

        self._orders[order_id] = OrderResponse(
            id=order_id,
            status=OrderStatus.PENDING,
            plate_type_id=plate_type_id,
            plate_type_name=plate_type_name,
            price=price,
            quantity=quantity,
            total_amount=price * quantity,
            created_at=now,
            status_events=[
                StatusChangeEvent(
                    status=OrderStatus.PENDING,
                    changed_at=now,
                    changed_by=CUSTOMER_ACTOR,
                )
            ],
        )

        logger.debug(f"Memory: created order #{order_id}")
        return self._snapshot(order_id)

    async def get_all_orders(self) -> list[OrderResponse]:
        return [order.model_copy(deep=True) for order in self._orders.values()]

    async def get_order(self, order_id: int) -> Optional[OrderResponse]:
        return self._snapshot(order_id)

    async def get_order_status_timeline(
        self,
        order_id: int,
    ) -> Optional[list[StatusChangeEvent]]:
        order = self._snapshot(order_id)
        return order.status_events if order is not None else None

    async def get_payment_confirmation(
        self,
        order_id: int,
    ) -> Optional[PaymentConfirmation]:
        order = self._snapshot(order_id)
        return order.payment_confirmation if order is not None else None

    async def update_order_status(
        self,
        order_id: int,
        new_status: OrderStatus,
        changed_by: str,
        guard: Optional[TransitionGuard] = None,
    ) -> Optional[OrderResponse]:
        order = self._orders.get(order_id)
        if order is None:
            return None

        if guard is not None and not guard(order.status, new_status):
            raise IllegalTransitionError(order.status.value, new_status.value)

        changed_at = next_event_time(
            [event.changed_at for event in order.status_events],
            self._now(),
        )
        event = StatusChangeEvent(
            status=new_status,
            changed_at=changed_at,
            changed_by=changed_by,
        )
        self._orders[order_id] = order.model_copy(
            update={
                "status": new_status,
                "status_events": [*order.status_events, event],
            },
            deep=True,
        )
        return self._snapshot(order_id)

    async def update_payment_confirmation(
        self,
        order_id: int,
        confirmation: PaymentConfirmation,
    ) -> Optional[OrderResponse]:
        order = self._orders.get(order_id)
        if order is None:
            return None

        self._orders[order_id] = order.model_copy(
            update={
                "payment_confirmation": confirmation.model_copy(),
                "payment_method_id": confirmation.payment_method_id,
            },
            deep=True,
        )
        return self._snapshot(order_id)

    async def get_last_build_status(self) -> Optional[LastBuildStatusResponse]:
        if self._build_status is None:
            return None
        return self._build_status.model_copy(deep=True)

    async def update_last_build_status(
        self,
        status: LastBuildStatus,
    ) -> LastBuildStatusResponse:
        self._build_status = LastBuildStatusResponse(
            status=status.model_copy(),
            timestamp=self._now(),
        )
        return self._build_status.model_copy(deep=True)

    async def health_check(self) -> bool:
        return True
