"""
Interaction handlers for the dashboard.

DashboardController turns user actions into store transitions, calling the
Gemini gateway and the platform collaborators where an action needs them.
Every method blocks until its work is done; the dashboard decides which thread
runs it.
"""

import logging
import threading
from typing import Callable, List, Optional

from trendpulse.models import NewsItem, SharePayload
from trendpulse.platform.base import Clipboard, ShareTarget, UrlOpener
from trendpulse.presentation import filter_items, parse_tab, similar_query
from trendpulse.services.gemini import GeminiGateway
from trendpulse.store import ViewStateStore

logger = logging.getLogger(__name__)

FETCH_ERROR_MESSAGE = (
    "Failed to fetch latest news. Please check your connection and try again."
)


class DashboardController:
    """Orchestrates store mutations in response to user actions."""

    def __init__(
        self,
        store: ViewStateStore,
        gateway: GeminiGateway,
        clipboard: Clipboard,
        opener: UrlOpener,
        share_target: Optional[ShareTarget] = None,
        copied_reset_seconds: float = 2.0,
        similar_words: int = 5,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self.store = store
        self.gateway = gateway
        self.clipboard = clipboard
        self.opener = opener
        self.share_target = share_target
        self.copied_reset_seconds = copied_reset_seconds
        self.similar_words = similar_words
        self._timer_factory = timer_factory
        # Called after timer-driven state changes so the view can redraw.
        self.on_change = on_change

    def submit_query(self, text: str) -> bool:
        """Refreshes with the trimmed input; blank input issues no request."""
        topic = text.strip()
        if not topic:
            return False
        return self.refresh(topic)

    def refresh(self, topic: Optional[str] = None) -> bool:
        """Fetches news for topic (default: the current one).

        Returns True when this refresh's result was applied to the store.
        """
        topic_to_search = topic or self.store.topic
        if not topic_to_search.strip():
            return False

        token = self.store.begin_refresh(topic_to_search)
        try:
            result = self.gateway.fetch_news_for_topic(topic_to_search)
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Refresh for %r failed: %s", topic_to_search, e)
            self.store.fail_refresh(token, FETCH_ERROR_MESSAGE)
            return False

        return self.store.complete_refresh(
            token,
            topic_to_search,
            result["brief"],
            result["news_items"],
            result["grounding_sources"],
        )

    def select_topic(self, topic: str) -> bool:
        return self.refresh(topic)

    def find_similar(self, item_id: str) -> bool:
        """Refreshes with the current topic narrowed to the start of an item's headline."""
        item = self.store.find_item(item_id)
        query = similar_query(self.store.topic, item["title"], self.similar_words)
        logger.info("Searching for similar news: %r", query)
        return self.refresh(query)

    def translate_item(self, item_id: str) -> bool:
        """
        Cycles an item between original and translated text.

        The first request fetches and caches the translation; later requests only
        flip the display flag, even when the cached translation is empty. A failed
        fetch leaves the item untranslated.
        """
        item = self.store.find_item(item_id)
        entry = self.store.translation(item_id)
        if entry and entry["loading"]:
            return False
        if entry and (entry["translated"] or entry["fetched"]):
            return self.store.toggle_translation_view(item_id)

        generation = self.store.begin_translation(item_id)
        if generation is None:
            return False

        try:
            result = self.gateway.translate_news_item(item["title"], item["summary"])
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Translation of %s failed: %s", item_id, e)
            self.store.upsert_translation(
                item_id, generation, loading=False, translated=False
            )
            return False

        return self.store.upsert_translation(
            item_id,
            generation,
            title=result["title"],
            summary=result["summary"],
            loading=False,
            translated=True,
            fetched=True,
        )

    def translate_synthesis(self) -> bool:
        """Same three-state cycle as translate_item, for the brief."""
        synthesis = self.store.synthesis_translation()
        if synthesis["loading"]:
            return False
        if synthesis["translated"] or synthesis["fetched"]:
            return self.store.toggle_synthesis_view()

        brief = self.store.snapshot()["news"]["brief"]
        if not brief:
            return False
        generation = self.store.begin_synthesis_translation()
        if generation is None:
            return False

        try:
            text = self.gateway.translate_large_text(brief)
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Synthesis translation failed: %s", e)
            self.store.upsert_synthesis_translation(
                generation, loading=False, translated=False
            )
            return False

        return self.store.upsert_synthesis_translation(
            generation, text=text, loading=False, translated=True, fetched=True
        )

    def share_item(self, item_id: str) -> bool:
        """
        Shares an item through the share target.

        Without a share target, or when sharing fails or is cancelled, the link is
        copied to the clipboard instead. Returns True only for a completed share.
        """
        item = self.store.find_item(item_id)
        payload = SharePayload(
            title=item["title"],
            text=f"Check out this news about {self.store.topic}: {item['title']}",
            url=item["url"],
        )

        if self.share_target is not None:
            try:
                self.share_target.share(payload)
                return True
            except Exception as e:  # pylint: disable=broad-exception-caught
                logger.info("Share failed or was cancelled (%s). Copying link.", e)

        self._copy_link(item)
        return False

    def _copy_link(self, item: NewsItem) -> None:
        try:
            self.clipboard.copy(item["url"])
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Clipboard write failed: %s", e)
            return

        self.store.mark_copied(item["id"])
        timer = self._timer_factory(
            self.copied_reset_seconds, self._clear_copied, args=(item["id"],)
        )
        timer.daemon = True
        timer.start()

    def _clear_copied(self, item_id: str) -> None:
        self.store.clear_copied(item_id)
        if self.on_change is not None:
            self.on_change()

    def open_item(self, item_id: str) -> None:
        self.opener.open(self.store.find_item(item_id)["url"])

    def save_current_topic(self) -> bool:
        return self.store.add_topic(self.store.topic)

    def remove_topic(self, topic: str) -> bool:
        return self.store.remove_topic(topic)

    def set_tab(self, name: str) -> bool:
        source_type = parse_tab(name)
        if source_type is None:
            return False
        self.store.set_active_tab(source_type)
        return True

    def visible_items(self) -> List[NewsItem]:
        snapshot = self.store.snapshot()
        return filter_items(snapshot["news"]["items"], snapshot["active_tab"])

    def item_id_at(self, position: int) -> str:
        """Maps a 1-based position in the visible list to an item id."""
        items = self.visible_items()
        if not 1 <= position <= len(items):
            raise KeyError(position)
        return items[position - 1]["id"]
