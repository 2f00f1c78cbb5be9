"""
Gemini Gateway Module.

This module provides the GeminiGateway class, which interfaces with the Google Gemini API
to fetch search-grounded news for a topic and to translate news content.
"""

import json
import logging
import time
from typing import Any, Dict, List, Optional

from google import genai
from google.genai import types

from trendpulse.models import (
    GroundingSource,
    NewsItem,
    SourceType,
    TopicNews,
    TranslatedItem,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-3-flash-preview"
EMPTY_BRIEF = "No summary available for this topic at the moment."

# Declared item types mapped onto the dashboard categories; anything else is News.
_SOURCE_TYPES: Dict[str, SourceType] = {
    "X": SourceType.X,
    "YouTube": SourceType.YOUTUBE,
    "News": SourceType.NEWS,
}

_ITEM_FIELDS = ("type", "title", "summary", "url", "source")

NEWS_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "brief": {"type": "STRING"},
        "newsItems": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "type": {"type": "STRING", "enum": ["X", "YouTube", "News"]},
                    "title": {"type": "STRING"},
                    "summary": {"type": "STRING"},
                    "url": {"type": "STRING"},
                    "source": {"type": "STRING"},
                },
                "required": list(_ITEM_FIELDS),
            },
        },
    },
    "required": ["brief", "newsItems"],
}

TRANSLATION_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING"},
        "summary": {"type": "STRING"},
    },
    "required": ["title", "summary"],
}


class GatewayError(Exception):
    """Raised when a Gemini request fails."""


class GatewayDecodeError(GatewayError):
    """Raised when Gemini returns output that does not match the expected schema."""


class GeminiGateway:
    """
    Stateless client for the three Gemini operations used by the dashboard.

    Every call is a single request/response round trip. Failures are logged and
    re-raised as GatewayError so callers can treat the whole operation as failed.
    """

    _NEWS_PROMPT = """
        TASK: Find and summarize the absolute latest news and updates (within the last 24 hours) about "{topic}".
        SOURCES: You MUST search X.com (Twitter), YouTube, and major tech news outlets.

        CONSTRAINTS:
        1. Only include news items where you have a REAL, VERIFIED direct URL from the search results.
        2. DO NOT make up URLs or use placeholders (e.g., do not use example.com, status/123, or fake IDs).
        3. If you do not have a direct, valid link to the specific piece of news, DO NOT include that item in the list.
        4. Ensure the headlines and summaries are factually grounded in the search results.
        5. Provide a high-level executive synthesis of the day's major trends first.

        RESPONSE FORMAT (JSON ONLY):
        {{
          "brief": "A 2-3 paragraph professional synthesis of the day's biggest developments.",
          "newsItems": [
            {{
              "type": "X" | "YouTube" | "News",
              "title": "Headline",
              "summary": "1-2 sentence description",
              "url": "DIRECT_REAL_URL_FROM_SEARCH",
              "source": "Site Name or Author"
            }}
          ]
        }}
        """

    _ITEM_TRANSLATION_PROMPT = """
        Translate the following news item into {language}. Keep the tone professional and journalistic.

        Title: {title}
        Summary: {summary}

        Provide the result in JSON format with "title" and "summary" keys.
        """

    _TEXT_TRANSLATION_PROMPT = """
        Translate the following executive news summary into {language}.
        Keep it professional, high-level, and maintain the original formatting/tone.

        Text: {text}
        """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        target_language: str = "Thai",
        timeout_ms: Optional[int] = None,
    ):
        self.model = model
        self.target_language = target_language
        self.client: Optional[genai.Client] = None
        http_options = types.HttpOptions(timeout=timeout_ms) if timeout_ms else None
        try:
            self.client = genai.Client(api_key=api_key, http_options=http_options)
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Failed to initialize Gemini client: %s", e)
            self.client = None

    def _parse_json_response(self, text: str) -> Any:
        """Safely parses JSON from LLM output, handling markdown blocks."""
        cleaned = text.strip()
        # Strip Markdown code blocks usually returned by Gemini
        if cleaned.startswith("```"):
            cleaned = cleaned.split("\n", 1)[1] if "\n" in cleaned else ""
            if cleaned.endswith("```"):
                cleaned = cleaned.rsplit("\n", 1)[0] if "\n" in cleaned else ""

        return json.loads(cleaned)

    def _generate(self, prompt: str, config: Dict[str, Any], operation: str) -> Any:
        """Runs one generate_content round trip, wrapping any failure in GatewayError."""
        if not self.client:
            logger.error("Gemini client not initialized.")
            raise GatewayError("Gemini client not initialized.")

        try:
            return self.client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Gemini API error during %s: %s", operation, e)
            raise GatewayError(f"Gemini request failed during {operation}") from e

    def _decode_json(self, response: Any, operation: str) -> Any:
        response_text = response.text if response.text else ""
        try:
            return self._parse_json_response(response_text)
        except (json.JSONDecodeError, ValueError) as e:
            logger.error("Failed to parse Gemini response during %s: %s", operation, e)
            raise GatewayDecodeError(f"Malformed JSON during {operation}") from e

    def _decode_item(self, raw: Any, index: int, stamp: int) -> NewsItem:
        if not isinstance(raw, dict):
            raise GatewayDecodeError(f"News item {index} is not an object")
        missing = [f for f in _ITEM_FIELDS if not isinstance(raw.get(f), str)]
        if missing:
            raise GatewayDecodeError(
                f"News item {index} is missing fields: {', '.join(missing)}"
            )
        return NewsItem(
            id=f"item-{index}-{stamp}",
            title=raw["title"],
            summary=raw["summary"],
            source=raw["source"],
            url=raw["url"],
            type=_SOURCE_TYPES.get(raw["type"], SourceType.NEWS),
        )

    def _grounding_sources(self, response: Any) -> List[GroundingSource]:
        """Extracts web citations from grounding metadata; absent metadata yields []."""
        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            return []
        metadata = getattr(candidates[0], "grounding_metadata", None)
        chunks = getattr(metadata, "grounding_chunks", None) or []

        sources = []
        for chunk in chunks:
            web = getattr(chunk, "web", None)
            if not web:
                continue
            sources.append(
                GroundingSource(
                    title=getattr(web, "title", None) or "Source",
                    uri=getattr(web, "uri", None) or "",
                )
            )
        return sources

    def fetch_news_for_topic(self, topic: str) -> TopicNews:
        """Asks Gemini, with Google Search grounding, for a brief and sourced news items."""
        logger.info("Fetching news for topic %r...", topic)
        response = self._generate(
            self._NEWS_PROMPT.format(topic=topic),
            {
                "tools": [{"google_search": {}}],
                "temperature": 0,  # Minimize fabricated links
                "response_mime_type": "application/json",
                "response_schema": NEWS_RESPONSE_SCHEMA,
            },
            "news fetch",
        )
        result = self._decode_json(response, "news fetch")

        if not isinstance(result, dict):
            logger.error("Gemini news response is not an object: %r", type(result))
            raise GatewayDecodeError("News response is not an object")
        if "brief" not in result or not isinstance(result.get("newsItems"), list):
            logger.error("Gemini news response missing brief or newsItems.")
            raise GatewayDecodeError("News response missing brief or newsItems")

        stamp = int(time.time() * 1000)
        try:
            news_items = [
                self._decode_item(raw, i, stamp)
                for i, raw in enumerate(result["newsItems"])
            ]
        except GatewayDecodeError as e:
            logger.error("Failed to decode news items: %s", e)
            raise

        brief = result["brief"] if isinstance(result["brief"], str) else ""
        grounding = self._grounding_sources(response)
        logger.info(
            "Received %d items and %d grounding sources for %r.",
            len(news_items),
            len(grounding),
            topic,
        )
        return TopicNews(
            brief=brief or EMPTY_BRIEF,
            news_items=news_items,
            grounding_sources=grounding,
        )

    def translate_news_item(self, title: str, summary: str) -> TranslatedItem:
        """Translates a single item's title and summary into the target language."""
        response = self._generate(
            self._ITEM_TRANSLATION_PROMPT.format(
                language=self.target_language, title=title, summary=summary
            ),
            {
                "response_mime_type": "application/json",
                "response_schema": TRANSLATION_RESPONSE_SCHEMA,
            },
            "item translation",
        )
        result = self._decode_json(response, "item translation")
        if (
            not isinstance(result, dict)
            or not isinstance(result.get("title"), str)
            or not isinstance(result.get("summary"), str)
        ):
            logger.error("Translation response missing title or summary.")
            raise GatewayDecodeError("Translation response missing title or summary")
        return TranslatedItem(title=result["title"], summary=result["summary"])

    def translate_large_text(self, text: str) -> str:
        """Translates free text such as the brief. An empty response yields ''."""
        response = self._generate(
            self._TEXT_TRANSLATION_PROMPT.format(
                language=self.target_language, text=text
            ),
            {"temperature": 0.1},
            "text translation",
        )
        return response.text or ""
