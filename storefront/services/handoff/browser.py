"""
Browser Link Opener

Opens hand-off links with the system browser through the standard-library
webbrowser module. On a desktop a upi:// or tez:// link may return True
while nothing handles the scheme, which is why callers still show a
fallback link for those schemes.

Author: Bro Bro Foods
Version: 1.0.0
"""

import logging
import webbrowser

from storefront.services.handoff.base import BaseLinkOpener

logger = logging.getLogger(__name__)


class BrowserLinkOpener(BaseLinkOpener):
    """Link opener backed by the user's default browser."""

    @property
    def provider_name(self) -> str:
        return "browser"

    def attempt_open(self, uri: str) -> bool:
        try:
            # new=2: new tab if possible
            return bool(webbrowser.open(uri, new=2))
        except webbrowser.Error as e:
            logger.info(f"Browser refused to open link: {e}")
            return False
