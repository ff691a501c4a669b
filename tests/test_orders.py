import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from storefront.core.exceptions import IllegalTransitionError, OrderValidationError
from storefront.models import OrderStatus
from storefront.schemas import PlateType
from storefront.services.orders import (
    OrderLifecycle,
    is_transition_allowed,
    meets_minimum_order,
    menu_items,
    minimum_order_error,
    place_order,
)
from storefront.services.payments import attach_payment_confirmation
from storefront.services.storage.base import CUSTOMER_ACTOR, next_event_time


# =============================================================================
# CREATION
# =============================================================================

@pytest.mark.parametrize("price, quantity", [(50, 1), (80, 3), (0, 2), (80, 99)])
async def test_total_amount_is_price_times_quantity(lifecycle, price, quantity):
    order = await lifecycle.create(2, "Full Plate", price, quantity)

    assert order.total_amount == price * quantity
    assert order.status == OrderStatus.PENDING


async def test_total_amount_survives_updates(lifecycle, storage):
    order = await lifecycle.create(2, "Full Plate", 80, 3)

    await lifecycle.update_status(order.id, OrderStatus.ACCEPTED, "Admin")
    await attach_payment_confirmation(storage, order.id, "UTR1", "Paytm")
    await lifecycle.update_status(order.id, OrderStatus.DELIVERED, "Admin")

    reloaded = await lifecycle.get_order(order.id)
    assert reloaded.total_amount == 240
    assert reloaded.price == 80
    assert reloaded.quantity == 3


async def test_new_order_has_single_seed_event(lifecycle):
    order = await lifecycle.create(1, "Half Plate", 50, 2)

    assert len(order.status_events) == 1
    seed = order.status_events[0]
    assert seed.status == OrderStatus.PENDING
    assert seed.changed_by == CUSTOMER_ACTOR
    assert seed.changed_at == order.created_at


async def test_order_ids_are_unique(lifecycle):
    first = await lifecycle.create(1, "Half Plate", 50, 2)
    second = await lifecycle.create(1, "Half Plate", 50, 2)

    assert first.id != second.id


@pytest.mark.parametrize("price, quantity", [(50, 0), (50, -1), (-1, 2)])
async def test_create_rejects_invalid_input(lifecycle, storage, price, quantity):
    with pytest.raises(OrderValidationError):
        await lifecycle.create(1, "Half Plate", price, quantity)

    assert await storage.get_all_orders() == []


# =============================================================================
# STATUS TIMELINE
# =============================================================================

async def test_timeline_appends_in_call_order(lifecycle):
    order = await lifecycle.create(2, "Full Plate", 80, 2)
    flow = [
        OrderStatus.ACCEPTED,
        OrderStatus.PREPARING,
        OrderStatus.READY_TO_DELIVER,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
    ]

    for status in flow:
        await lifecycle.update_status(order.id, status, "Admin")

    timeline = await lifecycle.get_timeline(order.id)
    current = await lifecycle.get_order(order.id)

    assert len(timeline) == len(flow) + 1
    assert [e.status for e in timeline] == [OrderStatus.PENDING] + flow
    assert timeline[-1].status == current.status
    assert [e.changed_by for e in timeline[1:]] == ["Admin"] * len(flow)

    times = [e.changed_at for e in timeline]
    assert times == sorted(times)


async def test_concurrent_updates_keep_timeline_ordered(lifecycle):
    order = await lifecycle.create(2, "Full Plate", 80, 2)
    statuses = list(OrderStatus) * 2

    results = await asyncio.gather(*[
        lifecycle.update_status(order.id, status, "Admin") for status in statuses
    ])

    assert all(result is not None for result in results)
    timeline = await lifecycle.get_timeline(order.id)
    times = [e.changed_at for e in timeline]
    assert len(timeline) == len(statuses) + 1
    assert times == sorted(times)

    current = await lifecycle.get_order(order.id)
    assert current.status == timeline[-1].status


async def test_same_status_twice_appends_two_events(lifecycle):
    order = await lifecycle.create(2, "Full Plate", 80, 2)

    first = await lifecycle.update_status(order.id, OrderStatus.PREPARING, "Admin")
    second = await lifecycle.update_status(order.id, OrderStatus.PREPARING, "Admin")

    assert first is not None and second is not None
    timeline = await lifecycle.get_timeline(order.id)
    assert [e.status for e in timeline[-2:]] == [OrderStatus.PREPARING, OrderStatus.PREPARING]


async def test_any_transition_is_allowed(lifecycle):
    order = await lifecycle.create(2, "Full Plate", 80, 2)

    await lifecycle.update_status(order.id, OrderStatus.DELIVERED, "Admin")
    reopened = await lifecycle.update_status(order.id, OrderStatus.PENDING, "Admin")

    assert reopened.status == OrderStatus.PENDING
    assert all(is_transition_allowed(a, b) for a in OrderStatus for b in OrderStatus)


async def test_refused_transition_leaves_order_untouched(storage):
    order = await storage.create_order(2, "Full Plate", 80, 2)

    with pytest.raises(IllegalTransitionError):
        await storage.update_order_status(
            order.id,
            OrderStatus.DELIVERED,
            "Admin",
            guard=lambda current, target: False,
        )

    reloaded = await storage.get_order(order.id)
    assert reloaded.status == OrderStatus.PENDING
    assert len(reloaded.status_events) == 1


async def test_unknown_order_is_not_an_error(lifecycle, storage):
    assert await lifecycle.update_status(9999, OrderStatus.ACCEPTED, "Admin") is None
    assert await lifecycle.get_timeline(9999) is None
    assert await lifecycle.get_order(9999) is None
    assert await attach_payment_confirmation(storage, 9999, "UTR1", "Paytm") is None


async def test_returned_orders_are_snapshots(lifecycle):
    order = await lifecycle.create(2, "Full Plate", 80, 2)
    order.status_events.clear()

    reloaded = await lifecycle.get_order(order.id)
    assert len(reloaded.status_events) == 1


def test_event_time_never_goes_backwards():
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    later = now + timedelta(seconds=5)

    assert next_event_time([], now) == now
    assert next_event_time([now], later) == later
    assert next_event_time([later], now) == later


# =============================================================================
# MENU & PLACEMENT
# =============================================================================

def test_minimum_order():
    assert meets_minimum_order(1) is False
    assert meets_minimum_order(2) is True
    assert meets_minimum_order(10) is True


def test_minimum_order_error_message():
    assert minimum_order_error(1) == (
        "Please add 1 more plate to meet the minimum order requirement."
    )
    assert minimum_order_error(0) == (
        "Please add 2 more plates to meet the minimum order requirement."
    )


def test_menu():
    items = {item.plate_type: item for item in menu_items()}

    assert items[PlateType.HALF].price == 50
    assert items[PlateType.HALF].pieces == 12
    assert items[PlateType.FULL].price == 80
    assert items[PlateType.FULL].pieces == 24


async def test_place_order_uses_menu_price(lifecycle):
    order = await place_order(lifecycle, PlateType.FULL, 3)

    assert order.plate_type_id == 2
    assert order.plate_type_name == "Full Plate"
    assert order.total_amount == 240


class RecordingLifecycle(OrderLifecycle):
    def __init__(self, storage):
        super().__init__(storage)
        self.created = 0

    async def create(self, *args, **kwargs):
        self.created += 1
        return await super().create(*args, **kwargs)


async def test_place_order_below_minimum_never_creates(storage):
    lifecycle = RecordingLifecycle(storage)

    with pytest.raises(OrderValidationError) as exc_info:
        await place_order(lifecycle, PlateType.HALF, 1)

    assert exc_info.value.field == "quantity"
    assert lifecycle.created == 0
    assert await storage.get_all_orders() == []
