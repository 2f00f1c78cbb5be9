"""
View state for the dashboard.

ViewStateStore owns every piece of mutable dashboard state and only exposes
transitions. Each transition runs under a single lock, so background refresh and
translation workers can call it directly.
"""

import copy
import logging
import threading
from typing import Dict, List, Optional, Tuple

from trendpulse.models import (
    DashboardSnapshot,
    GroundingSource,
    NewsItem,
    NewsState,
    SourceType,
    SynthesisTranslation,
    TranslationEntry,
)
from trendpulse.services.db import DEFAULT_SEED_TOPICS, StorageError, TopicStorage

logger = logging.getLogger(__name__)


def _empty_synthesis() -> SynthesisTranslation:
    return SynthesisTranslation(
        text="", loading=False, translated=False, fetched=False
    )


def _empty_entry() -> TranslationEntry:
    return TranslationEntry(
        title="", summary="", loading=False, translated=False, fetched=False
    )


class ViewStateStore:
    """State owner for one topic-query lifecycle plus the bookmarked topics."""

    def __init__(self, storage: TopicStorage, initial_topic: str = ""):
        self._lock = threading.RLock()
        self._storage = storage
        self._news = NewsState(
            topic=initial_topic,
            items=[],
            brief="",
            grounding_sources=[],
            loading=False,
            error=None,
        )
        self._translations: Dict[str, TranslationEntry] = {}
        self._synthesis = _empty_synthesis()
        self._active_tab = SourceType.ALL
        self._copied_id: Optional[str] = None
        self._generation = 0
        self._persist_lock = threading.Lock()
        self._topics_version = 0
        self._persisted_version = 0

        try:
            self._saved_topics: List[str] = storage.load()
        except StorageError as e:
            logger.warning("Could not load saved topics: %s", e)
            self._saved_topics = list(getattr(storage, "seed", DEFAULT_SEED_TOPICS))

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def topic(self) -> str:
        with self._lock:
            return self._news["topic"]

    # Refresh lifecycle

    def begin_refresh(self, topic: str) -> int:
        """Starts a refresh and returns its generation token."""
        with self._lock:
            self._generation += 1
            self._news["loading"] = True
            self._news["error"] = None
            self._translations = {}
            self._synthesis = _empty_synthesis()
            self._copied_id = None
            logger.debug("Refresh %d started for %r.", self._generation, topic)
            return self._generation

    def complete_refresh(
        self,
        token: int,
        topic: str,
        brief: str,
        items: List[NewsItem],
        grounding_sources: List[GroundingSource],
    ) -> bool:
        with self._lock:
            if token != self._generation:
                logger.debug(
                    "Dropping stale refresh %d (current %d).", token, self._generation
                )
                return False
            self._news = NewsState(
                topic=topic,
                items=list(items),
                brief=brief,
                grounding_sources=list(grounding_sources),
                loading=False,
                error=None,
            )
            return True

    def fail_refresh(self, token: int, message: str) -> bool:
        """Records a failed refresh. Previous items stay in state; the view hides them."""
        with self._lock:
            if token != self._generation:
                logger.debug("Dropping stale failure %d.", token)
                return False
            self._news["loading"] = False
            self._news["error"] = message
            return True

    # Translation caches

    def upsert_translation(
        self, item_id: str, generation: Optional[int] = None, **patch
    ) -> bool:
        """Merges patch into the cache entry for item_id."""
        with self._lock:
            if generation is not None and generation != self._generation:
                logger.debug(
                    "Dropping translation for %s from refresh %d.", item_id, generation
                )
                return False
            entry = self._translations.get(item_id) or _empty_entry()
            entry.update(patch)  # type: ignore[typeddict-item]
            self._translations[item_id] = entry
            return True

    def upsert_synthesis_translation(
        self, generation: Optional[int] = None, **patch
    ) -> bool:
        with self._lock:
            if generation is not None and generation != self._generation:
                logger.debug("Dropping brief translation from refresh %d.", generation)
                return False
            self._synthesis.update(patch)  # type: ignore[typeddict-item]
            return True

    def begin_translation(self, item_id: str) -> Optional[int]:
        """Marks item_id as loading and returns the current generation.

        Returns None when a translation is already cached or in flight.
        """
        with self._lock:
            entry = self._translations.get(item_id)
            if entry and (entry["loading"] or entry["fetched"]):
                return None
            entry = _empty_entry()
            entry["loading"] = True
            self._translations[item_id] = entry
            return self._generation

    def begin_synthesis_translation(self) -> Optional[int]:
        with self._lock:
            if self._synthesis["loading"] or self._synthesis["fetched"]:
                return None
            self._synthesis["loading"] = True
            return self._generation

    def translation(self, item_id: str) -> Optional[TranslationEntry]:
        with self._lock:
            entry = self._translations.get(item_id)
            return dict(entry) if entry else None  # type: ignore[return-value]

    def synthesis_translation(self) -> SynthesisTranslation:
        with self._lock:
            return SynthesisTranslation(**self._synthesis)

    def toggle_translation_view(self, item_id: str) -> bool:
        """Flips between translated and original text when a translation is cached."""
        with self._lock:
            entry = self._translations.get(item_id)
            if not entry or not entry["fetched"]:
                return False
            entry["translated"] = not entry["translated"]
            return True

    def toggle_synthesis_view(self) -> bool:
        with self._lock:
            if not self._synthesis["fetched"]:
                return False
            self._synthesis["translated"] = not self._synthesis["translated"]
            return True

    # Bookmarked topics

    @property
    def saved_topics(self) -> List[str]:
        with self._lock:
            return list(self._saved_topics)

    def add_topic(self, topic: str) -> bool:
        """Adds topic at the front unless it is blank or already saved (any case)."""
        current = topic.strip()
        with self._lock:
            if not current:
                return False
            lowered = current.lower()
            if any(t.lower() == lowered for t in self._saved_topics):
                return False
            self._saved_topics.insert(0, current)
            pending = self._next_persist()
        self._persist(*pending)
        return True

    def remove_topic(self, topic: str) -> bool:
        with self._lock:
            if topic not in self._saved_topics:
                return False
            self._saved_topics = [t for t in self._saved_topics if t != topic]
            pending = self._next_persist()
        self._persist(*pending)
        return True

    def _next_persist(self) -> Tuple[int, List[str]]:
        self._topics_version += 1
        return self._topics_version, list(self._saved_topics)

    def _persist(self, version: int, topics: List[str]) -> None:
        """Writes topics outside the state lock; an older list never overwrites a newer one."""
        with self._persist_lock:
            if version <= self._persisted_version:
                return
            try:
                self._storage.save(topics)
            except Exception as e:  # pylint: disable=broad-exception-caught
                logger.error("Failed to persist saved topics: %s", e)
                return
            self._persisted_version = version

    # View-only state

    def set_active_tab(self, source_type: SourceType) -> None:
        with self._lock:
            self._active_tab = source_type

    def mark_copied(self, item_id: str) -> None:
        with self._lock:
            self._copied_id = item_id

    def clear_copied(self, item_id: str) -> None:
        """Clears the copy acknowledgment unless another item has been copied since."""
        with self._lock:
            if self._copied_id == item_id:
                self._copied_id = None

    def find_item(self, item_id: str) -> NewsItem:
        with self._lock:
            for item in self._news["items"]:
                if item["id"] == item_id:
                    return item
        raise KeyError(item_id)

    def snapshot(self) -> DashboardSnapshot:
        with self._lock:
            return DashboardSnapshot(
                news=copy.deepcopy(self._news),
                translations=copy.deepcopy(self._translations),
                synthesis=SynthesisTranslation(**self._synthesis),
                saved_topics=tuple(self._saved_topics),
                active_tab=self._active_tab,
                copied_id=self._copied_id,
            )
