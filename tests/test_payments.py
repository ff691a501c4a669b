from datetime import datetime, timedelta, timezone
from urllib.parse import unquote

import pytest

from storefront.core.exceptions import OrderValidationError
from storefront.models import OrderStatus
from storefront.services.checkout import build_checkout, payment_link_for
from storefront.services.links import VPA_ERROR_MESSAGE, PaymentRail
from storefront.services.payments import (
    EMPTY_UTR_MESSAGE,
    attach_payment_confirmation,
    confirm_payment,
    grand_total,
)


async def test_second_confirmation_replaces_first(storage):
    order = await storage.create_order(2, "Full Plate", 80, 2)
    assert await storage.get_payment_confirmation(order.id) is None

    await attach_payment_confirmation(storage, order.id, "FIRST-UTR", "Paytm")
    first = await storage.get_payment_confirmation(order.id)
    assert first.utr == "FIRST-UTR"

    await attach_payment_confirmation(storage, order.id, "SECOND-UTR", "PhonePe")
    second = await storage.get_payment_confirmation(order.id)

    assert second.utr == "SECOND-UTR"
    assert second.paid_via == "PhonePe"


async def test_confirmation_defaults(storage):
    order = await storage.create_order(1, "Half Plate", 50, 2)

    updated = await attach_payment_confirmation(storage, order.id, "  412345678901 ", "Google Pay")

    confirmation = updated.payment_confirmation
    assert confirmation.utr == "412345678901"
    assert confirmation.payment_method_id == 1
    assert confirmation.paid_at.tzinfo is not None
    assert updated.payment_method_id == 1


async def test_confirmation_keeps_given_paid_at(storage):
    order = await storage.create_order(1, "Half Plate", 50, 2)
    paid_at = datetime(2024, 5, 1, 18, 30, tzinfo=timezone.utc)

    updated = await attach_payment_confirmation(
        storage, order.id, "UTR1", "BHIM UPI", paid_at=paid_at,
    )

    assert updated.payment_confirmation.paid_at == paid_at


async def test_naive_paid_at_is_read_as_utc(storage):
    order = await storage.create_order(1, "Half Plate", 50, 2)

    updated = await attach_payment_confirmation(
        storage, order.id, "UTR1", "Paytm", paid_at=datetime(2024, 5, 1, 10, 0),
    )

    paid_at = updated.payment_confirmation.paid_at
    assert paid_at.tzinfo is not None
    assert paid_at == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
    stored = await storage.get_payment_confirmation(order.id)
    assert stored.paid_at == paid_at


async def test_paid_at_offset_is_preserved(storage):
    order = await storage.create_order(1, "Half Plate", 50, 2)
    ist = timezone(timedelta(hours=5, minutes=30))

    await attach_payment_confirmation(
        storage, order.id, "UTR1", "Paytm", paid_at=datetime(2024, 5, 1, 15, 30, tzinfo=ist),
    )

    stored = await storage.get_payment_confirmation(order.id)
    assert stored.paid_at == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


async def test_confirmation_does_not_change_status(storage):
    order = await storage.create_order(1, "Half Plate", 50, 2)

    updated = await attach_payment_confirmation(storage, order.id, "UTR1", "Paytm")

    assert updated.status == OrderStatus.PENDING
    assert len(updated.status_events) == 1


@pytest.mark.parametrize("utr", ["", "   ", None])
async def test_empty_utr_is_rejected(storage, utr):
    order = await storage.create_order(1, "Half Plate", 50, 2)

    with pytest.raises(OrderValidationError) as exc_info:
        await attach_payment_confirmation(storage, order.id, utr, "Paytm")

    assert exc_info.value.message == EMPTY_UTR_MESSAGE
    assert await storage.get_payment_confirmation(order.id) is None


async def test_confirm_payment_links(storage):
    order = await storage.create_order(2, "Full Plate", 80, 3)

    result = await confirm_payment(storage, order.id, "412345678901", "PhonePe")

    text = unquote(result.payment_confirmation_link)
    assert "Amount Paid: ₹260" in text
    assert "UTR: 412345678901" in text
    assert "Order ID: #{}".format(order.id) in unquote(result.screenshot_request_link)


async def test_confirm_payment_unknown_order(storage):
    assert await confirm_payment(storage, 9999, "UTR1", "Paytm") is None


# =============================================================================
# CHECKOUT
# =============================================================================

async def test_checkout_totals_and_links(storage):
    order = await storage.create_order(2, "Full Plate", 80, 3)

    checkout = build_checkout(order)

    assert grand_total(order) == 260
    assert checkout.items_total == 240
    assert checkout.delivery_charge == 20
    assert checkout.grand_total == 260
    assert set(checkout.payment_links) == {"paytm", "gpay", "upi"}
    assert checkout.qr_payment_link == checkout.payment_links["upi"]
    assert "am=260" in checkout.qr_payment_link
    assert checkout.payment_link_message is None


async def test_checkout_without_usable_vpa(storage, monkeypatch):
    from storefront.core.config import get_settings

    monkeypatch.setattr(get_settings(), "business_vpa", "paytmuser123@ptyes")
    order = await storage.create_order(1, "Half Plate", 50, 2)

    checkout = build_checkout(order)

    assert checkout.payment_links == {}
    assert checkout.qr_payment_link is None
    assert checkout.payment_link_message == VPA_ERROR_MESSAGE
    assert checkout.whatsapp_order_link.startswith("https://wa.me/")


async def test_payment_link_comes_from_issued_checkout(storage, monkeypatch):
    from storefront.core.config import get_settings

    order = await storage.create_order(2, "Full Plate", 80, 3)
    checkout = build_checkout(order).model_dump()

    # A client whose local configuration drifted still pays the issued link.
    monkeypatch.setattr(get_settings(), "business_vpa", "paytmuser123@ptyes")

    for rail in PaymentRail:
        assert payment_link_for(checkout["payment_links"], rail) == checkout["payment_links"][rail.value]
    assert payment_link_for({}, PaymentRail.GOOGLE_PAY) is None
