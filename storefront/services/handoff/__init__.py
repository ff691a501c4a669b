"""
Link Opener Factory

Returns the browser-backed or headless link opener based on
OPEN_LINKS_IN_BROWSER.

Usage:
    from storefront.services.handoff import get_link_opener, hand_off

    result = hand_off(get_link_opener(), link, "WhatsApp")
    if result.show_fallback:
        print(result.fallback.href)

Author: Bro Bro Foods
Version: 1.0.0
"""

import logging
from functools import lru_cache

from storefront.core.config import get_settings
from storefront.services.handoff.base import (
    BaseLinkOpener,
    FallbackLink,
    HandoffResult,
    OpenAttempt,
)
from storefront.services.handoff.browser import BrowserLinkOpener
from storefront.services.handoff.fallback import (
    RAIL_LABELS,
    hand_off,
    hand_off_payment,
)
from storefront.services.handoff.mock import MockLinkOpener

logger = logging.getLogger(__name__)


@lru_cache()
def get_link_opener() -> BaseLinkOpener:
    """Get the configured link opener."""
    settings = get_settings()

    if settings.open_links_in_browser:
        logger.info("Link Opener: Using BrowserLinkOpener")
        return BrowserLinkOpener()

    logger.info("Link Opener: Using MockLinkOpener (headless)")
    return MockLinkOpener()


def reset_link_opener() -> None:
    """Clear the cached opener instance."""
    get_link_opener.cache_clear()


__all__ = [
    "get_link_opener",
    "reset_link_opener",
    "hand_off",
    "hand_off_payment",
    "RAIL_LABELS",
    "BaseLinkOpener",
    "BrowserLinkOpener",
    "MockLinkOpener",
    "FallbackLink",
    "HandoffResult",
    "OpenAttempt",
]
