"""
Order Lifecycle Service

Owns the order state machine and the menu/placement rules.

States:
    pending → accepted → preparing → readyToDeliver → outForDelivery → delivered
    cancelled from any non-terminal state

Staff may set any status at any time so they can correct mistakes, so the
legality check currently allows every transition. Tightening the graph means
changing is_transition_allowed() only.

Author: Bro Bro Foods
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from typing import Optional

from storefront.core.config import get_settings
from storefront.core.exceptions import OrderValidationError
from storefront.models import OrderStatus
from storefront.schemas import MenuItem, OrderResponse, PlateType, StatusChangeEvent
from storefront.services.storage import BaseOrderStorage

logger = logging.getLogger(__name__)


# =============================================================================
# MENU
# =============================================================================

@dataclass(frozen=True)
class MenuOption:
    plate_type_id: int
    name: str
    price: int
    pieces: int


MENU: dict[PlateType, MenuOption] = {
    PlateType.HALF: MenuOption(plate_type_id=1, name="Half Plate", price=50, pieces=12),
    PlateType.FULL: MenuOption(plate_type_id=2, name="Full Plate", price=80, pieces=24),
}


def menu_items() -> list[MenuItem]:
    return [
        MenuItem(
            plate_type=plate_type,
            plate_type_id=option.plate_type_id,
            name=option.name,
            price=option.price,
            pieces=option.pieces,
        )
        for plate_type, option in MENU.items()
    ]


# =============================================================================
# ORDER RULES
# =============================================================================

def meets_minimum_order(quantity: int) -> bool:
    """Check if an order meets the minimum delivery requirement."""
    return quantity >= get_settings().min_plates_per_order


def minimum_order_message() -> str:
    return f"Minimum order for delivery: {get_settings().min_plates_per_order} plates"


def minimum_order_error(quantity: int) -> str:
    remaining = get_settings().min_plates_per_order - quantity
    return (
        f"Please add {remaining} more plate{'s' if remaining > 1 else ''} "
        f"to meet the minimum order requirement."
    )


def is_transition_allowed(current: OrderStatus, target: OrderStatus) -> bool:
    """Every status may follow every other status, including itself."""
    return True


# =============================================================================
# STATE MACHINE
# =============================================================================

class OrderLifecycle:
    """
    Drives orders through their statuses on top of an order store.

    Unknown ids come back as None from every operation.

    Example:
        >>> lifecycle = OrderLifecycle(get_order_storage())
        >>> order = await lifecycle.create(2, "Full Plate", 80, 3)
        >>> await lifecycle.update_status(order.id, OrderStatus.ACCEPTED, "Admin")
    """

    def __init__(self, storage: BaseOrderStorage):
        self.storage = storage

    async def create(
        self,
        plate_type_id: int,
        plate_type_name: str,
        price: int,
        quantity: int,
    ) -> OrderResponse:
        """
        Create an order in status pending.

        Raises:
            OrderValidationError: For a non-positive quantity or negative price
        """
        if quantity < 1:
            raise OrderValidationError("Quantity must be at least 1", field="quantity")
        if price < 0:
            raise OrderValidationError("Price cannot be negative", field="price")

        order = await self.storage.create_order(
            plate_type_id=plate_type_id,
            plate_type_name=plate_type_name,
            price=price,
            quantity=quantity,
        )
        logger.info(
            f"Order #{order.id} created: {plates_label(order)} = ₹{order.total_amount}"
        )
        return order

    async def update_status(
        self,
        order_id: int,
        new_status: OrderStatus,
        changed_by: str,
    ) -> Optional[OrderResponse]:
        """Append a status event and move the order to new_status."""
        order = await self.storage.update_order_status(
            order_id,
            new_status,
            changed_by,
            guard=is_transition_allowed,
        )
        if order is None:
            logger.info(f"Status update for unknown order #{order_id}")
            return None

        logger.info(f"Order #{order_id} → {new_status.value} (by {changed_by})")
        return order

    async def get_timeline(self, order_id: int) -> Optional[list[StatusChangeEvent]]:
        return await self.storage.get_order_status_timeline(order_id)

    async def get_order(self, order_id: int) -> Optional[OrderResponse]:
        return await self.storage.get_order(order_id)


def plates_label(order: OrderResponse) -> str:
    return f"{order.quantity} x {order.plate_type_name}"


async def place_order(
    lifecycle: OrderLifecycle,
    plate_type: PlateType,
    quantity: int,
) -> OrderResponse:
    """
    Customer order placement from the menu.

    The minimum-order rule is enforced before anything reaches the store.

    Raises:
        OrderValidationError: With the customer-facing message
    """
    option = MENU.get(plate_type)
    if option is None:
        raise OrderValidationError("Please select a plate type", field="plate_type")

    if not meets_minimum_order(quantity):
        raise OrderValidationError(minimum_order_error(quantity), field="quantity")

    return await lifecycle.create(
        plate_type_id=option.plate_type_id,
        plate_type_name=option.name,
        price=option.price,
        quantity=quantity,
    )
