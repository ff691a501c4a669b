"""
                Bro Bro Foods Storefront

Order backend for a two-item momo menu: customers place an order and are
handed off to WhatsApp and UPI apps to pay and confirm, staff move orders
through their lifecycle from a token-gated admin view.

Author: Bro Bro Foods
Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Bro Bro Foods"
