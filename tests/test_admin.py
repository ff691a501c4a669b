from datetime import datetime, timedelta, timezone

import pytest

from storefront.models import OrderStatus
from storefront.schemas import OrderResponse, PaymentConfirmation, PaymentFilter, StatusChangeEvent
from storefront.services.admin import (
    AdminGate,
    UrlFragment,
    authorized,
    filter_orders,
    has_admin_token,
    parse_admin_token,
    sort_newest_first,
    summarize_orders,
    with_admin_token,
    without_admin_token,
)

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_order(order_id: int, status: OrderStatus, paid: bool, minutes: int = 0) -> OrderResponse:
    created_at = BASE_TIME + timedelta(minutes=minutes)
    return OrderResponse(
        id=order_id,
        status=status,
        plate_type_id=2,
        plate_type_name="Full Plate",
        price=80,
        quantity=2,
        total_amount=160,
        created_at=created_at,
        status_events=[
            StatusChangeEvent(status=status, changed_at=created_at, changed_by="customer")
        ],
        payment_confirmation=(
            PaymentConfirmation(
                utr=f"UTR{order_id}",
                paid_via="Paytm",
                paid_at=created_at,
                payment_method_id=1,
            )
            if paid
            else None
        ),
    )


@pytest.fixture
def orders() -> list[OrderResponse]:
    """2 paid and 3 unpaid orders across every status."""
    paid_ids = {2, 5}
    return [
        make_order(i + 1, status, paid=(i + 1) in paid_ids, minutes=i)
        for i, status in enumerate(OrderStatus)
    ]


# =============================================================================
# FRAGMENT TOKEN
# =============================================================================

@pytest.mark.parametrize(
    "fragment, expected",
    [
        ("#caffeineAdminToken=7973", True),
        ("caffeineAdminToken=7973", True),
        ("#tab=orders&caffeineAdminToken=7973", True),
        ("#caffeineAdminToken=7973x", False),
        ("#caffeineAdminToken=", False),
        ("#caffeineadmintoken=7973", False),
        ("#somethingElse=7973", False),
        ("", False),
        (None, False),
    ],
)
def test_authorized(fragment, expected):
    assert authorized(fragment) is expected


def test_authorized_with_explicit_secret():
    assert authorized("#caffeineAdminToken=s3cret", secret="s3cret") is True
    assert authorized("#caffeineAdminToken=7973", secret="s3cret") is False


def test_token_helpers():
    fragment = with_admin_token("#tab=orders", "7973")

    assert parse_admin_token(fragment) == "7973"
    assert has_admin_token(fragment)
    assert without_admin_token(fragment) == "tab=orders"
    assert not has_admin_token(without_admin_token(fragment))


def test_gate_follows_fragment_changes():
    fragment = UrlFragment("#caffeineAdminToken=7973")
    gate = AdminGate(fragment)
    assert gate.is_authorized

    fragment.navigate(without_admin_token(fragment.value))
    assert not gate.is_authorized

    fragment.navigate(with_admin_token(fragment.value, "7973"))
    assert gate.is_authorized


def test_gate_follows_history_navigation():
    fragment = UrlFragment("")
    gate = AdminGate(fragment)
    assert not gate.is_authorized

    fragment.navigate("#caffeineAdminToken=7973")
    assert gate.is_authorized

    assert fragment.back()
    assert not gate.is_authorized

    assert fragment.forward()
    assert gate.is_authorized

    assert not fragment.forward()


def test_gate_distinguishes_wrong_token_from_missing():
    fragment = UrlFragment("#caffeineAdminToken=nope")
    gate = AdminGate(fragment)

    assert gate.has_token
    assert not gate.is_authorized


def test_closed_gate_stops_listening():
    fragment = UrlFragment("#caffeineAdminToken=7973")
    gate = AdminGate(fragment)
    gate.close()

    fragment.navigate("")
    assert gate.is_authorized


# =============================================================================
# ORDER TABLE
# =============================================================================

def test_paid_filter_ignores_status(orders):
    paid = filter_orders(orders, PaymentFilter.PAID, "all")

    assert sorted(o.id for o in paid) == [2, 5]


def test_unpaid_filter(orders):
    unpaid = filter_orders(orders, "unpaid", "all")

    assert all(o.payment_confirmation is None for o in unpaid)
    assert len(unpaid) == len(orders) - 2


def test_status_filter_ignores_payment(orders):
    delivered = filter_orders(orders, PaymentFilter.ALL, "delivered")

    assert [o.status for o in delivered] == [OrderStatus.DELIVERED]


def test_filters_compose(orders):
    assert [o.id for o in filter_orders(orders, "paid", OrderStatus.ACCEPTED)] == [2]
    assert filter_orders(orders, "paid", OrderStatus.PENDING) == []


def test_no_filter_returns_everything(orders):
    assert len(filter_orders(orders)) == len(orders)


def test_sort_newest_first(orders):
    ordered = sort_newest_first(orders)

    assert [o.id for o in ordered] == sorted((o.id for o in orders), reverse=True)


def test_summary_counts_paid_revenue_only(orders):
    summary = summarize_orders(orders)

    assert summary.total_orders == len(orders)
    assert summary.paid_orders == 2
    assert summary.pending_orders == 1
    assert summary.total_revenue == 320
