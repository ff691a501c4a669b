"""
Payment Confirmation Reconciliation

Attaches a customer-reported payment (UTR + rail) to an order. This is an
attestation, not a verification: nothing here talks to a bank or gateway,
and the order status is left alone.

A new submission replaces the previous one entirely. All writes go through
record_confirmation() so keeping a history instead is a local change.

Author: Bro Bro Foods
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from storefront.core.config import get_settings
from storefront.core.exceptions import OrderValidationError
from storefront.schemas import OrderResponse, PaymentConfirmation
from storefront.services.links import (
    build_payment_confirmation_link,
    build_screenshot_request_link,
)
from storefront.services.storage import BaseOrderStorage

logger = logging.getLogger(__name__)

EMPTY_UTR_MESSAGE = "Please enter the UTR / transaction ID from your payment app."


@dataclass
class ConfirmationHandoff:
    """Result of a successful attach plus the links for the WhatsApp step."""
    order: OrderResponse
    payment_confirmation_link: str
    screenshot_request_link: str


def grand_total(order: OrderResponse) -> int:
    """Items total plus the flat delivery charge."""
    return order.total_amount + get_settings().delivery_charge


def normalize_utr(utr: Optional[str]) -> str:
    """
    Trim a submitted UTR.

    Raises:
        OrderValidationError: If nothing is left after trimming
    """
    cleaned = (utr or "").strip()
    if not cleaned:
        raise OrderValidationError(EMPTY_UTR_MESSAGE, field="utr")
    return cleaned


async def record_confirmation(
    storage: BaseOrderStorage,
    order_id: int,
    confirmation: PaymentConfirmation,
) -> Optional[OrderResponse]:
    """Write a confirmation, replacing any earlier one."""
    return await storage.update_payment_confirmation(order_id, confirmation)


async def attach_payment_confirmation(
    storage: BaseOrderStorage,
    order_id: int,
    utr: str,
    paid_via: str,
    payment_method_id: Optional[int] = None,
    paid_at: Optional[datetime] = None,
) -> Optional[OrderResponse]:
    """
    Attach a payment receipt to an order.

    Args:
        storage: Order store
        order_id: Order being paid
        utr: Transaction reference, trimmed before storing
        paid_via: Rail the customer says they used (display only)
        payment_method_id: Defaults to the configured constant
        paid_at: Defaults to now; a naive value is read as UTC

    Returns:
        The updated order, or None if the order does not exist

    Raises:
        OrderValidationError: If the UTR is empty after trimming
    """
    settings = get_settings()
    if paid_at is None:
        paid_at = datetime.now(timezone.utc)
    elif paid_at.tzinfo is None:
        # Clients without an offset are taken to be reporting UTC.
        paid_at = paid_at.replace(tzinfo=timezone.utc)

    confirmation = PaymentConfirmation(
        utr=normalize_utr(utr),
        paid_via=paid_via,
        paid_at=paid_at,
        payment_method_id=(
            payment_method_id
            if payment_method_id is not None
            else settings.default_payment_method_id
        ),
    )

    order = await record_confirmation(storage, order_id, confirmation)
    if order is None:
        logger.info(f"Payment confirmation for unknown order #{order_id}")
        return None

    logger.info(f"Order #{order_id}: payment reported via {paid_via} (UTR {confirmation.utr})")
    return order


async def confirm_payment(
    storage: BaseOrderStorage,
    order_id: int,
    utr: str,
    paid_via: str,
    paid_at: Optional[datetime] = None,
) -> Optional[ConfirmationHandoff]:
    """
    Attach the confirmation and prepare the WhatsApp hand-off that follows.

    Returns:
        ConfirmationHandoff, or None if the order does not exist
    """
    order = await attach_payment_confirmation(
        storage,
        order_id,
        utr=utr,
        paid_via=paid_via,
        paid_at=paid_at,
    )
    if order is None:
        return None

    total = grand_total(order)
    return ConfirmationHandoff(
        order=order,
        payment_confirmation_link=build_payment_confirmation_link(
            order.id,
            total,
            order.payment_confirmation.utr,
            order.payment_confirmation.paid_via,
        ),
        screenshot_request_link=build_screenshot_request_link(order.id, total),
    )
