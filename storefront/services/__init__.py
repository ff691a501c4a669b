"""
                        Services Module

Business logic of the storefront. Collaborators with more than one
implementation (order storage, link opener) live in their own sub-package
with a base class, a process-local/mock implementation and a real one,
selected by a cached factory.

Services:
    - storage: Order Storage Service (memory / SQL)
    - handoff: open-with-fallback link hand-off (mock / browser)
    - links: WhatsApp and UPI deep-link builders
    - orders: order state machine and placement rules
    - payments: payment confirmation reconciliation
    - checkout: post-order payment surface
    - admin: fragment-token gate and order table views
    - settings_store: client settings (ads, promo popup)
    - availability: APK download probes
"""

from storefront.services.orders import OrderLifecycle
from storefront.services.storage import get_order_storage

__all__ = ["OrderLifecycle", "get_order_storage"]
