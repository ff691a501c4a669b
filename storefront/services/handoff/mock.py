"""
Mock Link Opener

Headless implementation used in tests and on servers without a display.
Never opens anything; records every attempt and reports success unless the
URI's scheme is configured as blocked.

Author: Bro Bro Foods
Version: 1.0.0
"""

import logging
from typing import Iterable, Optional
from urllib.parse import urlsplit

from storefront.services.handoff.base import BaseLinkOpener, OpenAttempt

logger = logging.getLogger(__name__)


class MockLinkOpener(BaseLinkOpener):
    """
    Recording link opener.

    Attributes:
        blocked_schemes: Schemes whose attempts report "blocked"
        block_all: Simulate a popup blocker refusing everything
        attempts: Every attempt made, in call order

    Example:
        >>> opener = MockLinkOpener(blocked_schemes=["tez"])
        >>> opener.attempt_open("tez://upi/pay?pa=a@b")
        False
    """

    def __init__(
        self,
        blocked_schemes: Optional[Iterable[str]] = None,
        block_all: bool = False,
    ):
        self.blocked_schemes = {s.lower() for s in (blocked_schemes or [])}
        self.block_all = block_all
        self.attempts: list[OpenAttempt] = []

        logger.info(
            f"MockLinkOpener initialized "
            f"(block_all={block_all}, blocked_schemes={sorted(self.blocked_schemes)})"
        )

    @property
    def provider_name(self) -> str:
        return "mock"

    def attempt_open(self, uri: str) -> bool:
        scheme = urlsplit(uri).scheme.lower()
        opened = not (self.block_all or scheme in self.blocked_schemes)
        self.attempts.append(OpenAttempt(uri=uri, opened=opened, scheme=scheme))

        logger.debug(f"Mock: open {scheme}:// link -> {'opened' if opened else 'blocked'}")
        return opened
