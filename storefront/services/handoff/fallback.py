"""
Open-With-Fallback Hand-off

Runs a single open attempt and decides whether the customer must also be
shown a manual link. There is no confirmation channel back from WhatsApp or
the UPI app: a hand-off is fire-and-forget, and payment is only ever
self-reported afterwards with a UTR.

Rules:
    - opened=False → always show the fallback link and copy text
    - opened=True on https:// → assume it launched, no fallback
    - opened=True on app schemes (upi, paytmmp, tez) → still show the
      fallback, since desktop browsers return a handle and do nothing

Author: Bro Bro Foods
Version: 1.0.0
"""

import logging
from typing import Optional
from urllib.parse import urlsplit

from storefront.services.handoff.base import BaseLinkOpener, FallbackLink, HandoffResult
from storefront.services.links import PaymentRail, build_rail_uri

logger = logging.getLogger(__name__)

# Schemes whose "opened" answer is good enough to skip the fallback
TRUSTED_SCHEMES = frozenset({"http", "https"})

RAIL_LABELS = {
    PaymentRail.PAYTM: "Paytm",
    PaymentRail.GOOGLE_PAY: "Google Pay",
    PaymentRail.UPI: "UPI app",
}

BLOCKED_MESSAGE = "Could not open {label} automatically. Tap the link below or copy it."
UNCONFIRMED_MESSAGE = "If {label} did not open, tap the link below or copy it."


def hand_off(opener: BaseLinkOpener, uri: str, label: str) -> HandoffResult:
    """
    Attempt to open one URI and attach a fallback where needed.

    Args:
        opener: Link opener to use
        uri: Link to open
        label: Target name used in the fallback message

    Returns:
        HandoffResult: Never raises for a blocked attempt
    """
    opened = opener.attempt_open(uri)
    scheme = urlsplit(uri).scheme.lower()

    fallback: Optional[FallbackLink] = None
    if not opened:
        # A blocked popup is an expected outcome, not an error
        logger.info(f"{label} hand-off blocked, offering manual link")
        fallback = FallbackLink(
            href=uri,
            copy_text=uri,
            message=BLOCKED_MESSAGE.format(label=label),
        )
    elif scheme not in TRUSTED_SCHEMES:
        fallback = FallbackLink(
            href=uri,
            copy_text=uri,
            message=UNCONFIRMED_MESSAGE.format(label=label),
        )

    return HandoffResult(uri=uri, label=label, opened=opened, fallback=fallback)


def hand_off_payment(
    opener: BaseLinkOpener,
    rail: PaymentRail,
    vpa: str,
    amount: int,
    payee_name: Optional[str] = None,
    note: str = "Order Payment",
) -> HandoffResult:
    """
    Attempt the payment app the customer picked.

    Exactly one attempt is made; a blocked Paytm or Google Pay link does not
    fall through to the generic UPI link.
    """
    uri = build_rail_uri(rail, vpa, amount, payee_name, note)
    return hand_off(opener, uri, RAIL_LABELS[rail])
