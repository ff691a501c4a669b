"""
SQL Order Storage

SQLAlchemy async implementation of the order store. Works against the
SQLite file used in development and PostgreSQL in production.

Each operation opens its own session and transaction, so the status column
and the new timeline row are committed together. Driver and connection
errors surface as StorageUnavailableError.

Author: Bro Bro Foods
Version: 1.0.0
"""

import functools
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.core.exceptions import IllegalTransitionError, StorageUnavailableError
from storefront.models import BuildStatusRecord, Order, OrderStatus, StatusEvent
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

BUILD_STATUS_ROW_ID = 1


def _translate_errors(method):
    """Turn SQLAlchemy failures into StorageUnavailableError."""

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"Order store call {method.__name__} failed: {e}")
            raise StorageUnavailableError(
                "The order service is unavailable. Please try again."
            ) from e

    return wrapper


class SqlOrderStorage(BaseOrderStorage):
    """
    Database-backed order store.

    Args:
        session_maker: Factory producing AsyncSession instances

    Example:
        >>> storage = SqlOrderStorage(async_session_maker)
        >>> order = await storage.get_order(42)
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker
        logger.info("SqlOrderStorage initialized")

    @property
    def provider_name(self) -> str:
        return "sql"

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    @_translate_errors
    async def create_order(
        self,
        plate_type_id: int,
        plate_type_name: str,
        price: int,
        quantity: int,
    ) -> OrderResponse:
        now = self._now()

        async with self._session_maker() as session:
            async with session.begin():
                order = Order(
                    plate_type_id=plate_type_id,
                    plate_type_name=plate_type_name,
                    price=price,
                    quantity=quantity,
                    total_amount=price * quantity,
                    status=OrderStatus.PENDING,
                    created_at=now,
                )
                order.status_events.append(
                    StatusEvent(
                        status=OrderStatus.PENDING,
                        changed_at=now,
                        changed_by=CUSTOMER_ACTOR,
                    )
                )
                session.add(order)

            logger.debug(f"SQL: created order #{order.id}")
            return OrderResponse.model_validate(order)

    @_translate_errors
    async def get_all_orders(self) -> list[OrderResponse]:
        async with self._session_maker() as session:
            result = await session.execute(select(Order))
            return [OrderResponse.model_validate(o) for o in result.scalars().all()]

    @_translate_errors
    async def get_order(self, order_id: int) -> Optional[OrderResponse]:
        async with self._session_maker() as session:
            order = await session.get(Order, order_id)
            return OrderResponse.model_validate(order) if order else None

    async def get_order_status_timeline(
        self,
        order_id: int,
    ) -> Optional[list[StatusChangeEvent]]:
        order = await self.get_order(order_id)
        return order.status_events if order is not None else None

    async def get_payment_confirmation(
        self,
        order_id: int,
    ) -> Optional[PaymentConfirmation]:
        order = await self.get_order(order_id)
        return order.payment_confirmation if order is not None else None

    @_translate_errors
    async def update_order_status(
        self,
        order_id: int,
        new_status: OrderStatus,
        changed_by: str,
        guard: Optional[TransitionGuard] = None,
    ) -> Optional[OrderResponse]:
        async with self._session_maker() as session:
            async with session.begin():
                # Write first: takes the row lock (PostgreSQL) or the database
                # write lock (SQLite) before anything is read.
                locked = await session.execute(
                    update(Order)
                    .where(Order.id == order_id)
                    .values(status=Order.status)
                    .execution_options(synchronize_session=False)
                )
                if locked.rowcount == 0:
                    return None

                order = await session.get(Order, order_id)
                if guard is not None and not guard(order.status, new_status):
                    raise IllegalTransitionError(order.status.value, new_status.value)

                last_changed_at = await session.scalar(
                    select(func.max(StatusEvent.changed_at))
                    .where(StatusEvent.order_id == order_id)
                )
                changed_at = next_event_time(
                    [last_changed_at] if last_changed_at is not None else [],
                    self._now(),
                )
                order.status = new_status
                order.status_events.append(
                    StatusEvent(
                        status=new_status,
                        changed_at=changed_at,
                        changed_by=changed_by,
                    )
                )

            return OrderResponse.model_validate(order)

    @_translate_errors
    async def update_payment_confirmation(
        self,
        order_id: int,
        confirmation: PaymentConfirmation,
    ) -> Optional[OrderResponse]:
        async with self._session_maker() as session:
            async with session.begin():
                order = await session.get(Order, order_id, with_for_update=True)
                if order is None:
                    return None

                order.payment_utr = confirmation.utr
                order.payment_paid_via = confirmation.paid_via
                order.payment_paid_at = confirmation.paid_at
                order.payment_confirmation_method_id = confirmation.payment_method_id
                order.payment_method_id = confirmation.payment_method_id

            return OrderResponse.model_validate(order)

    @_translate_errors
    async def get_last_build_status(self) -> Optional[LastBuildStatusResponse]:
        async with self._session_maker() as session:
            record = await session.get(BuildStatusRecord, BUILD_STATUS_ROW_ID)
            if record is None:
                return None
            return LastBuildStatusResponse(
                status=LastBuildStatus.model_validate(record),
                timestamp=record.timestamp,
            )

    @_translate_errors
    async def update_last_build_status(
        self,
        status: LastBuildStatus,
    ) -> LastBuildStatusResponse:
        async with self._session_maker() as session:
            async with session.begin():
                record = await session.get(BuildStatusRecord, BUILD_STATUS_ROW_ID)
                if record is None:
                    record = BuildStatusRecord(id=BUILD_STATUS_ROW_ID)
                    session.add(record)

                for field, value in status.model_dump().items():
                    setattr(record, field, value)
                record.timestamp = self._now()

            return LastBuildStatusResponse(
                status=LastBuildStatus.model_validate(record),
                timestamp=record.timestamp,
            )

    async def health_check(self) -> bool:
        try:
            async with self._session_maker() as session:
                await session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Order store health check failed: {e}")
            return False
