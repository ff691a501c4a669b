"""
Checkout surface for a placed order: totals plus every hand-off link the
post-order screen offers.
"""

import logging
from typing import Optional

from storefront.core.config import get_settings
from storefront.schemas import CheckoutResponse, OrderResponse
from storefront.services.links import (
    VPA_ERROR_MESSAGE,
    PaymentRail,
    build_order_notification_link,
    build_rail_uri,
    build_screenshot_request_link,
    is_valid_vpa,
)
from storefront.services.payments import grand_total

logger = logging.getLogger(__name__)


def build_checkout(order: OrderResponse) -> CheckoutResponse:
    """
    Build the payment screen for an order.

    Payment links are only offered when the configured VPA is usable;
    otherwise the customer is pointed at the QR code.
    """
    settings = get_settings()
    total = grand_total(order)
    note = f"Order #{order.id}"

    payment_links: dict[str, str] = {}
    qr_payment_link = None
    payment_link_message = None

    if is_valid_vpa(settings.business_vpa):
        payment_links = {
            rail.value: build_rail_uri(rail, settings.business_vpa, total, note=note)
            for rail in PaymentRail
        }
        qr_payment_link = payment_links[PaymentRail.UPI.value]
    else:
        logger.warning(f"Business VPA '{settings.business_vpa}' is not usable, hiding payment links")
        payment_link_message = VPA_ERROR_MESSAGE

    return CheckoutResponse(
        order_id=order.id,
        items_total=order.total_amount,
        delivery_charge=settings.delivery_charge,
        grand_total=total,
        whatsapp_order_link=build_order_notification_link(
            order.id,
            order.plate_type_name,
            order.quantity,
            order.total_amount,
        ),
        screenshot_request_link=build_screenshot_request_link(order.id, total),
        payment_links=payment_links,
        qr_payment_link=qr_payment_link,
        payment_link_message=payment_link_message,
    )


def payment_link_for(payment_links: dict[str, str], rail: PaymentRail) -> Optional[str]:
    """Link the server issued for a rail, or None when payment links are hidden."""
    return payment_links.get(rail.value)
