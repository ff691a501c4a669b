"""
Link Opener Abstract Base Class

A link opener tries to hand a URI to another app or browsing context.
The answer is best effort only: True means a handle was obtained, not that
the target app actually launched. False always means blocked.

Author: Bro Bro Foods
Version: 1.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class FallbackLink:
    """
    What the customer gets when an automatic hand-off may not have worked.

    Attributes:
        href: Link to render as a clickable element
        copy_text: Same URI, offered for copy to clipboard
        message: Plain-language hint shown next to the link
    """
    href: str
    copy_text: str
    message: str


@dataclass
class HandoffResult:
    """
    Outcome of one hand-off attempt.

    Attributes:
        uri: The URI that was attempted
        label: Human name of the target (e.g. "WhatsApp", "Paytm")
        opened: Whether the opener reported a handle
        fallback: Set whenever the customer should see a manual link
    """
    uri: str
    label: str
    opened: bool
    fallback: Optional[FallbackLink] = None

    @property
    def blocked(self) -> bool:
        return not self.opened

    @property
    def show_fallback(self) -> bool:
        return self.fallback is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "uri": self.uri,
            "label": self.label,
            "opened": self.opened,
            "fallback": (
                {
                    "href": self.fallback.href,
                    "copy_text": self.fallback.copy_text,
                    "message": self.fallback.message,
                }
                if self.fallback
                else None
            ),
        }


class BaseLinkOpener(ABC):
    """
    Abstract base class for link openers.

    Implementations must be synchronous and must not raise for a blocked
    attempt; they return False instead.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    def attempt_open(self, uri: str) -> bool:
        """
        Try to open a URI in a new browsing context.

        Args:
            uri: Deep link or web URL

        Returns:
            bool: True if a new context handle was obtained
        """
        pass


@dataclass
class OpenAttempt:
    """One recorded call to a mock opener."""
    uri: str
    opened: bool
    scheme: str = field(default="")
