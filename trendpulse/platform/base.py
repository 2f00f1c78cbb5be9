"""
Contracts for the platform collaborators the dashboard hands work off to.

Sharing, clipboard access and opening links live outside the dashboard core;
any object that follows these protocols can be plugged in.
"""

from typing import Protocol

from trendpulse.models import SharePayload


class ShareError(Exception):
    """Raised when a share attempt fails or is cancelled."""


class ShareTarget(Protocol):
    """Native share surface. Raises on failure or cancellation."""

    def share(self, payload: SharePayload) -> None:
        """Shares a news item."""


class Clipboard(Protocol):
    def copy(self, text: str) -> None:
        """Writes text to the clipboard."""


class UrlOpener(Protocol):
    def open(self, url: str) -> None:
        """Opens url in a new browser context."""
