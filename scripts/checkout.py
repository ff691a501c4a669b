"""
Customer Checkout Script

Walks one order through the customer flow against a running storefront:
place the order, hand off to WhatsApp, open the chosen payment app, then
report the UTR. Every hand-off prints a manual link when the automatic
open may not have worked.

Run from project root:
    python scripts/checkout.py --plate full --quantity 3 --rail gpay
    python scripts/checkout.py --plate half --quantity 2 --utr 412345678901

Author: Bro Bro Foods
Version: 1.0.0
"""

import argparse
import os
import sys
from typing import Optional

import httpx
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from storefront.core.config import get_settings
from storefront.services.checkout import payment_link_for
from storefront.services.handoff import RAIL_LABELS, HandoffResult, get_link_opener, hand_off
from storefront.services.links import PaymentRail

API_BASE_URL = get_settings().app_base_url


def print_handoff(result: HandoffResult) -> None:
    if result.opened and not result.show_fallback:
        print(f"   ✅ Opened {result.label}")
        return

    print(f"   {'⚠️' if result.blocked else 'ℹ️'}  {result.fallback.message}")
    print(f"   🔗 {result.fallback.href}")


def place(client: httpx.Client, plate: str, quantity: int) -> Optional[dict]:
    print(f"\n🥟 Placing order: {quantity} x {plate}...")
    response = client.post("/api/orders", json={"plate_type": plate, "quantity": quantity})

    if response.status_code == 400:
        print(f"   ❌ {response.json().get('detail')}")
        return None
    response.raise_for_status()

    data = response.json()
    checkout = data["checkout"]
    print(f"   ✅ Order #{data['order']['id']} placed")
    print(f"   Items: ₹{checkout['items_total']} + Delivery: ₹{checkout['delivery_charge']}")
    print(f"   Grand Total: ₹{checkout['grand_total']}")
    return data


def pay(checkout: dict, rail: PaymentRail) -> None:
    print(f"\n💳 Paying with {rail.value}...")

    uri = payment_link_for(checkout["payment_links"], rail)
    if uri is None:
        print(f"   ⚠️ {checkout['payment_link_message']}")
        return

    print_handoff(hand_off(get_link_opener(), uri, RAIL_LABELS[rail]))


def confirm(client: httpx.Client, order_id: int, utr: str, paid_via: str) -> None:
    print(f"\n🧾 Reporting payment (UTR {utr})...")
    response = client.post(
        f"/api/orders/{order_id}/payment-confirmation",
        json={"utr": utr, "paid_via": paid_via},
    )

    if response.status_code == 400:
        print(f"   ❌ {response.json().get('detail')}")
        return
    response.raise_for_status()

    data = response.json()
    print(f"   ✅ {data['message']}")
    print_handoff(hand_off(get_link_opener(), data["payment_confirmation_link"], "WhatsApp"))


def main() -> int:
    parser = argparse.ArgumentParser(description="Customer Checkout Script")
    parser.add_argument("--plate", choices=["half", "full"], default="full")
    parser.add_argument("--quantity", type=int, default=2)
    parser.add_argument(
        "--rail",
        choices=[rail.value for rail in PaymentRail],
        default=PaymentRail.UPI.value,
        help="Payment app to open",
    )
    parser.add_argument("--utr", help="Report this UTR after paying")
    parser.add_argument("--paid-via", default="Google Pay")
    parser.add_argument("--base-url", default=API_BASE_URL)
    args = parser.parse_args()

    with httpx.Client(base_url=args.base_url.rstrip("/"), timeout=30.0) as client:
        data = place(client, args.plate, args.quantity)
        if data is None:
            return 1

        checkout = data["checkout"]
        print("\n💬 Sending order on WhatsApp...")
        print_handoff(hand_off(get_link_opener(), checkout["whatsapp_order_link"], "WhatsApp"))

        pay(checkout, PaymentRail(args.rail))

        if args.utr is not None:
            confirm(client, checkout["order_id"], args.utr, args.paid_via)

    return 0


if __name__ == "__main__":
    sys.exit(main())
