"""
Admin Gate & Order Views

Access to the management view depends only on the current URL fragment
carrying the shared secret (#caffeineAdminToken=<secret>). Nothing is
remembered between checks: drop the token and access is gone, put it back
and access returns.

Browser-like callers hold a UrlFragment and an AdminGate subscribed to it;
HTTP callers pass the fragment with each request and call authorized().

Also holds the pure filter/sort/summary helpers for the admin order table.

Author: Bro Bro Foods
Version: 1.0.0
"""

import hmac
import logging
from typing import Callable, Iterable, Optional, Union
from urllib.parse import parse_qsl, urlencode

from storefront.core.config import get_settings
from storefront.models import OrderStatus
from storefront.schemas import OrderResponse, OrderSummary, PaymentFilter

logger = logging.getLogger(__name__)

ALL_STATUSES = "all"

FragmentListener = Callable[[str], None]


# =============================================================================
# FRAGMENT PARSING
# =============================================================================

def _fragment_pairs(fragment: Optional[str]) -> list[tuple[str, str]]:
    if not fragment:
        return []
    return parse_qsl(fragment.lstrip("#"), keep_blank_values=True)


def parse_admin_token(fragment: Optional[str]) -> Optional[str]:
    """Return the admin token carried in a fragment, if any."""
    key = get_settings().admin_fragment_key
    for name, value in _fragment_pairs(fragment):
        if name == key:
            return value
    return None


def has_admin_token(fragment: Optional[str]) -> bool:
    return parse_admin_token(fragment) is not None


def authorized(fragment: Optional[str], secret: Optional[str] = None) -> bool:
    """
    Derive admin access from a URL fragment.

    The comparison is exact and case-sensitive.

    Example:
        >>> authorized("#caffeineAdminToken=7973")
        True
        >>> authorized("#caffeineAdminToken=7973x")
        False
    """
    token = parse_admin_token(fragment)
    if token is None:
        return False
    expected = secret if secret is not None else get_settings().admin_token
    return hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8"))


def with_admin_token(fragment: Optional[str], token: str) -> str:
    """Fragment with the admin token set, other parameters kept."""
    key = get_settings().admin_fragment_key
    pairs = [(k, v) for k, v in _fragment_pairs(fragment) if k != key]
    pairs.append((key, token))
    return urlencode(pairs)


def without_admin_token(fragment: Optional[str]) -> str:
    """Fragment with the admin token removed ("" if nothing is left)."""
    key = get_settings().admin_fragment_key
    return urlencode([(k, v) for k, v in _fragment_pairs(fragment) if k != key])


# =============================================================================
# REACTIVE GATE
# =============================================================================

class UrlFragment:
    """
    Observable "current fragment" with browser-style history.

    navigate() behaves like assigning location.hash (hashchange);
    back()/forward() behave like history traversal (popstate). Listeners are
    called synchronously with the new fragment after every change.
    """

    def __init__(self, initial: str = ""):
        self._history: list[str] = [initial]
        self._index = 0
        self._listeners: list[FragmentListener] = []

    @property
    def value(self) -> str:
        return self._history[self._index]

    def subscribe(self, listener: FragmentListener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def navigate(self, fragment: str) -> None:
        """Push a new fragment, dropping any forward history."""
        del self._history[self._index + 1:]
        self._history.append(fragment)
        self._index += 1
        self._notify()

    def back(self) -> bool:
        if self._index == 0:
            return False
        self._index -= 1
        self._notify()
        return True

    def forward(self) -> bool:
        if self._index >= len(self._history) - 1:
            return False
        self._index += 1
        self._notify()
        return True

    def _notify(self) -> None:
        current = self.value
        for listener in list(self._listeners):
            listener(current)


class AdminGate:
    """
    Admin authorization that follows a UrlFragment.

    Example:
        >>> fragment = UrlFragment("#caffeineAdminToken=7973")
        >>> gate = AdminGate(fragment)
        >>> gate.is_authorized
        True
        >>> fragment.navigate(without_admin_token(fragment.value))
        >>> gate.is_authorized
        False
    """

    def __init__(self, source: UrlFragment, secret: Optional[str] = None):
        self._secret = secret
        self._authorized = False
        self._has_token = False
        self._refresh(source.value)
        self._unsubscribe = source.subscribe(self._refresh)

    def _refresh(self, fragment: str) -> None:
        was_authorized = self._authorized
        self._authorized = authorized(fragment, self._secret)
        self._has_token = has_admin_token(fragment)
        if was_authorized != self._authorized:
            logger.info(f"Admin access {'granted' if self._authorized else 'revoked'}")

    @property
    def is_authorized(self) -> bool:
        return self._authorized

    @property
    def has_token(self) -> bool:
        return self._has_token

    def close(self) -> None:
        self._unsubscribe()


# =============================================================================
# ORDER TABLE VIEWS
# =============================================================================

def filter_orders(
    orders: Iterable[OrderResponse],
    payment_filter: Union[PaymentFilter, str] = PaymentFilter.ALL,
    status_filter: Union[OrderStatus, str] = ALL_STATUSES,
) -> list[OrderResponse]:
    """
    Orders matching both the payment and the status filter.

    "paid" means a payment confirmation is present, whatever the status.
    """
    payment_filter = PaymentFilter(payment_filter)
    wanted_status = None if status_filter == ALL_STATUSES else OrderStatus(status_filter)

    matched = []
    for order in orders:
        if payment_filter == PaymentFilter.PAID and not order.is_paid:
            continue
        if payment_filter == PaymentFilter.UNPAID and order.is_paid:
            continue
        if wanted_status is not None and order.status != wanted_status:
            continue
        matched.append(order)
    return matched


def sort_newest_first(orders: Iterable[OrderResponse]) -> list[OrderResponse]:
    return sorted(orders, key=lambda o: (o.created_at, o.id), reverse=True)


def summarize_orders(orders: Iterable[OrderResponse]) -> OrderSummary:
    """Headline numbers for the admin dashboard. Revenue counts paid orders only."""
    orders = list(orders)
    paid = [o for o in orders if o.is_paid]
    return OrderSummary(
        total_orders=len(orders),
        paid_orders=len(paid),
        pending_orders=sum(1 for o in orders if o.status == OrderStatus.PENDING),
        total_revenue=sum(o.total_amount for o in paid),
    )
