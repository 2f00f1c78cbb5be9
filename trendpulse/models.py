"""
Data models for the TrendPulse dashboard.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple, TypedDict


class SourceType(str, Enum):
    """Category of a news item. ALL is only used as a filter selector."""

    X = "X"
    YOUTUBE = "YouTube"
    NEWS = "News"
    ALL = "All"


class NewsItem(TypedDict):
    """Type definition for a single fetched news item."""

    id: str
    title: str
    summary: str
    source: str
    url: str
    type: SourceType


class GroundingSource(TypedDict):
    """Search citation returned alongside the brief."""

    title: str
    uri: str


class TopicNews(TypedDict):
    """Decoded result of a topic query."""

    brief: str
    news_items: List[NewsItem]
    grounding_sources: List[GroundingSource]


class TranslatedItem(TypedDict):
    title: str
    summary: str


class TranslationEntry(TypedDict):
    """Per-item translation cache entry."""

    title: str
    summary: str
    loading: bool
    translated: bool  # True while the translated text is displayed
    fetched: bool  # True once a translation has been received, even an empty one


class SynthesisTranslation(TypedDict):
    text: str
    loading: bool
    translated: bool
    fetched: bool


class NewsState(TypedDict):
    topic: str
    items: List[NewsItem]
    brief: str
    grounding_sources: List[GroundingSource]
    loading: bool
    error: Optional[str]


class SharePayload(TypedDict):
    title: str
    text: str
    url: str


class DashboardSnapshot(TypedDict):
    """Read-only copy of everything needed to render the dashboard."""

    news: NewsState
    translations: Dict[str, TranslationEntry]
    synthesis: SynthesisTranslation
    saved_topics: Tuple[str, ...]
    active_tab: SourceType
    copied_id: Optional[str]
