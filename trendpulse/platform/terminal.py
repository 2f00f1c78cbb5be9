"""
Terminal implementations of the clipboard and link-opening collaborators.
"""

import base64
import logging
import sys
import webbrowser
from typing import Optional, TextIO

logger = logging.getLogger(__name__)


class TerminalClipboard:
    """Writes to the system clipboard through the OSC 52 terminal escape sequence."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout

    def copy(self, text: str) -> None:
        encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
        self.stream.write(f"\x1b]52;c;{encoded}\x07")
        self.stream.flush()


class BrowserOpener:
    """Opens links in a new tab of the default browser."""

    def open(self, url: str) -> None:
        if not webbrowser.open_new_tab(url):
            logger.warning("No browser available to open %s", url)
