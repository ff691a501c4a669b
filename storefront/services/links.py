"""
Deep-Link Builder

Pure functions producing the URIs used to hand the customer off to other
apps:
    - WhatsApp messages to the business number (order, payment done,
      screenshot request)
    - UPI payment intents (generic upi://, Paytm and Google Pay schemes)

Nothing here touches the network or the order store. The VPA check only
decides whether payment links should be offered at all.

Usage:
    from storefront.services.links import build_order_notification_link

    link = build_order_notification_link(42, "Full Plate", 3, 240)

Author: Bro Bro Foods
Version: 1.0.0
"""

import re
from enum import Enum
from typing import Optional, Union
from urllib.parse import quote, urlencode

from storefront.core.config import get_settings

# Characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"

VPA_ERROR_MESSAGE = (
    "Payment link is not available right now. Please scan the QR code to pay."
)

# Values shipped as examples rather than a real payee
PLACEHOLDER_VPA_PATTERNS = [
    re.compile(r"^paytmuser123@", re.IGNORECASE),
    re.compile(r"^test@", re.IGNORECASE),
    re.compile(r"^demo@", re.IGNORECASE),
    re.compile(r"^example@", re.IGNORECASE),
    re.compile(r"^placeholder@", re.IGNORECASE),
    re.compile(r"^dummy@", re.IGNORECASE),
    re.compile(r"^sample@", re.IGNORECASE),
    re.compile(r"^user123@", re.IGNORECASE),
]


class PaymentRail(str, Enum):
    """Payment apps offered on the checkout screen, one button each."""
    PAYTM = "paytm"
    GOOGLE_PAY = "gpay"
    UPI = "upi"


# =============================================================================
# WHATSAPP
# =============================================================================

def plates(quantity: int) -> str:
    """'1 plate', '3 plates'."""
    return f"{quantity} plate{'s' if quantity > 1 else ''}"


def build_whatsapp_link(message: str, phone_number: Optional[str] = None) -> str:
    """wa.me link with a pre-filled message."""
    number = phone_number or get_settings().whatsapp_number
    return f"https://wa.me/{number}?text={quote(message, safe=_URI_COMPONENT_SAFE)}"


def build_order_notification_link(
    order_id: Union[int, str],
    plate_type_name: str,
    quantity: int,
    total_amount: int,
    phone_number: Optional[str] = None,
) -> str:
    """
    Link announcing a freshly placed order to the business.

    Args:
        order_id: Order identifier shown as "#<id>"
        plate_type_name: Menu item name
        quantity: Number of plates
        total_amount: Items total in whole rupees

    Returns:
        str: https://wa.me/<number>?text=<encoded message>
    """
    business_name = get_settings().business_name
    message = (
        f"Hello! I just placed an order on {business_name}.\n"
        f"\n"
        f"Order ID: #{order_id}\n"
        f"Item: {plate_type_name}\n"
        f"Quantity: {plates(quantity)}\n"
        f"Total Amount: ₹{total_amount}\n"
        f"\n"
        f"Please confirm my order. Thank you!"
    )
    return build_whatsapp_link(message, phone_number)


def build_payment_confirmation_link(
    order_id: Union[int, str],
    grand_total: int,
    utr: str,
    paid_via: str,
    phone_number: Optional[str] = None,
) -> str:
    """Link telling the business a payment was made, with the UTR."""
    business_name = get_settings().business_name
    message = (
        f"Hello! I have completed the payment for my order on {business_name}.\n"
        f"\n"
        f"Order ID: #{order_id}\n"
        f"Amount Paid: ₹{grand_total}\n"
        f"UTR: {utr}\n"
        f"Paid Via: {paid_via}\n"
        f"\n"
        f"Please confirm my payment. Thank you!"
    )
    return build_whatsapp_link(message, phone_number)


def build_screenshot_request_link(
    order_id: Union[int, str],
    grand_total: int,
    phone_number: Optional[str] = None,
) -> str:
    """Link opening a chat where the customer sends the payment screenshot."""
    business_name = get_settings().business_name
    message = (
        f"Hello! I have paid for my order on {business_name}.\n"
        f"\n"
        f"Order ID: #{order_id}\n"
        f"Amount: ₹{grand_total}\n"
        f"\n"
        f"I am sharing the payment screenshot here. Please confirm. Thank you!"
    )
    return build_whatsapp_link(message, phone_number)


# =============================================================================
# UPI
# =============================================================================

def _payment_params(
    vpa: str,
    amount: int,
    payee_name: Optional[str],
    note: Optional[str] = None,
) -> str:
    settings = get_settings()
    params = {
        "pa": vpa,
        "pn": payee_name or settings.business_name,
        "am": str(amount),
        "cu": settings.currency_code,
    }
    if note is not None:
        params["tn"] = note
    return urlencode(params)


def build_payment_intent_uri(
    vpa: str,
    amount: int,
    payee_name: Optional[str] = None,
    note: str = "Order Payment",
) -> str:
    """
    Generic UPI intent understood by any UPI app.

    Args:
        vpa: Payee address (name@bank), not validated here
        amount: Whole rupees
        payee_name: Defaults to the business name
        note: Transaction note shown in the payer's app

    Returns:
        str: upi://pay?pa=...&pn=...&am=...&cu=INR&tn=...
    """
    return f"upi://pay?{_payment_params(vpa, amount, payee_name, note)}"


def build_paytm_uri(vpa: str, amount: int, payee_name: Optional[str] = None) -> str:
    return f"paytmmp://pay?{_payment_params(vpa, amount, payee_name)}"


def build_google_pay_uri(vpa: str, amount: int, payee_name: Optional[str] = None) -> str:
    return f"tez://upi/pay?{_payment_params(vpa, amount, payee_name)}"


def build_rail_uri(
    rail: PaymentRail,
    vpa: str,
    amount: int,
    payee_name: Optional[str] = None,
    note: str = "Order Payment",
) -> str:
    """Payment URI for one rail. Rails never fall through to each other."""
    if rail == PaymentRail.PAYTM:
        return build_paytm_uri(vpa, amount, payee_name)
    if rail == PaymentRail.GOOGLE_PAY:
        return build_google_pay_uri(vpa, amount, payee_name)
    return build_payment_intent_uri(vpa, amount, payee_name, note)


# =============================================================================
# VPA VALIDATION
# =============================================================================

def is_valid_vpa(vpa: Optional[str]) -> bool:
    """
    Check that a VPA looks real enough to build payment links for.

    Exactly one "@" with non-empty parts on both sides, and not one of the
    known placeholder addresses.

    Example:
        >>> is_valid_vpa("brobromomos@ptyes")
        True
        >>> is_valid_vpa("paytmuser123@ptyes")
        False
    """
    if not vpa or not vpa.strip():
        return False

    parts = vpa.split("@")
    if len(parts) != 2:
        return False

    username, bank = parts
    if not username or not bank:
        return False

    return not any(pattern.match(vpa) for pattern in PLACEHOLDER_VPA_PATTERNS)
