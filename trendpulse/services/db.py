"""
Storage service for bookmarked topics.

This module provides durable storage for the bookmarked-topics list: a local JSON
file by default, or a Google Firestore document when a GCP project is configured.
"""

import datetime
import json
import logging
import os
from typing import List, Optional, Protocol, Sequence

from google.cloud import firestore  # type: ignore

logger = logging.getLogger(__name__)

STORAGE_KEY = "trendpulse_topics"
DEFAULT_SEED_TOPICS = ["AI", "SpaceX", "Web3", "Nvidia", "HealthTech"]


class StorageError(Exception):
    """Raised when the persisted topic list cannot be read."""


class TopicStorage(Protocol):
    """
    Protocol for bookmarked-topic storage.

    load() returns the persisted list, or the seed list when nothing was saved yet.
    save() rewrites the whole list.
    """

    def load(self) -> List[str]:
        """Loads the persisted topics."""

    def save(self, topics: Sequence[str]) -> None:
        """Persists the full topic list."""


def _validate_topics(data: object) -> List[str]:
    if not isinstance(data, list) or not all(isinstance(t, str) for t in data):
        raise StorageError("Stored topics are not a list of strings.")
    return list(data)


class LocalTopicStorage:
    """Keeps topics in a JSON file under the trendpulse_topics key."""

    def __init__(self, path: str, seed: Optional[Sequence[str]] = None):
        self.path = os.path.expanduser(path)
        self.seed = list(DEFAULT_SEED_TOPICS if seed is None else seed)

    def load(self) -> List[str]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.info("No saved topics at %s. Using seed list.", self.path)
            return list(self.seed)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e

        if not isinstance(data, dict) or STORAGE_KEY not in data:
            raise StorageError(f"{self.path} has no {STORAGE_KEY} entry.")
        return _validate_topics(data[STORAGE_KEY])

    def save(self, topics: Sequence[str]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump({STORAGE_KEY: list(topics)}, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)
        logger.info("Saved %d topics to %s.", len(topics), self.path)


class FirestoreTopicStorage:
    """Keeps topics in a single Firestore document."""

    def __init__(self, project_id: str, seed: Optional[Sequence[str]] = None):
        self.seed = list(DEFAULT_SEED_TOPICS if seed is None else seed)
        self.db = firestore.Client(project=project_id)
        self.document = self.db.collection("trendpulse").document(STORAGE_KEY)
        logger.info("Connected to Firestore for topic storage.")

    def load(self) -> List[str]:
        try:
            snap = self.document.get()
        except Exception as e:  # pylint: disable=broad-exception-caught
            raise StorageError(f"Firestore read failed: {e}") from e

        if not snap.exists:
            logger.info("No saved topics in Firestore. Using seed list.")
            return list(self.seed)
        return _validate_topics((snap.to_dict() or {}).get("topics"))

    def save(self, topics: Sequence[str]) -> None:
        self.document.set(
            {"topics": list(topics), "updated_at": datetime.datetime.now()}
        )
        logger.info("Saved %d topics to Firestore.", len(topics))


def create_topic_storage(
    project_id: Optional[str], path: str, seed: Optional[Sequence[str]] = None
) -> TopicStorage:
    """Returns Firestore storage when a project is configured and reachable, else a local file."""
    if not project_id:
        return LocalTopicStorage(path, seed)

    try:
        return FirestoreTopicStorage(project_id, seed)
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.warning("Firestore connection failed: %s. Using %s.", e, path)
        return LocalTopicStorage(path, seed)
