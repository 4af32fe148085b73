"""Cache of generated answers, looked up by keyword overlap."""

import logging
import math
from datetime import datetime, timezone
from typing import Any

from pymongo import ASCENDING
from pymongo.collection import Collection
from pymongo.database import Database

from .models import CachedResponse, UpsertResult

logger = logging.getLogger(__name__)

RESPONSES_COLLECTION = "responses"
MAX_SEARCH_KEYWORDS = 10
MIN_MATCH_RATIO = 0.6


class ResponseCache:
    """Stores answers so repeated questions skip the classifier.

    A cached answer matches when it shares at least 60% of the (first ten)
    searched keywords.
    """

    def __init__(self, db: Database) -> None:
        self.collection: Collection = db[RESPONSES_COLLECTION]

    def ensure_indexes(self) -> None:
        self.collection.create_index([("keywords", ASCENDING)])

    def find_by_keywords(self, keywords: list[str]) -> CachedResponse | None:
        """Find a cached answer sharing enough keywords.

        Args:
            keywords: Keywords of the incoming message.

        Returns:
            The first qualifying cached response in store order, or None.
        """
        doc = self._find_document(keywords)
        return CachedResponse.from_document(doc) if doc else None

    def save(self, response: CachedResponse) -> UpsertResult:
        """Save an answer, replacing the one cached under matching keywords.

        Args:
            response: The answer to cache.

        Returns:
            UpsertResult telling whether an existing entry was updated.
        """
        now = datetime.now(timezone.utc)
        existing = self._find_document(response.keywords)

        if existing:
            self.collection.update_one(
                {"_id": existing["_id"]},
                {
                    "$set": {
                        "answer_text": response.answer_text,
                        "classification": response.classification,
                        "last_updated": now,
                    }
                },
            )
            logger.info(f"Cached response updated for keywords {response.keywords}")
            return UpsertResult(updated=True, id=str(existing["_id"]))

        result = self.collection.insert_one(
            {
                "keywords": list(response.keywords),
                "answer_text": response.answer_text,
                "classification": response.classification,
                "created_at": now,
                "last_updated": now,
            }
        )
        return UpsertResult(updated=False, id=str(result.inserted_id))

    def _find_document(self, keywords: list[str]) -> dict[str, Any] | None:
        search = list(keywords[:MAX_SEARCH_KEYWORDS])
        if not search:
            return None

        min_matches = math.ceil(len(search) * MIN_MATCH_RATIO)
        wanted = set(search)

        for doc in self.collection.find({"keywords": {"$in": search}}):
            matches = sum(1 for kw in doc.get("keywords") or [] if kw in wanted)
            if matches >= min_matches:
                return doc

        return None
