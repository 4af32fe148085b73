"""MongoDB storage for facts and entities."""

import logging
import re
from datetime import datetime, timezone
from typing import Any

from pymongo import ASCENDING, TEXT
from pymongo.collection import Collection
from pymongo.database import Database

from .models import (
    CERTAINTY_HIGH,
    GENERAL_ENTITY,
    PROPERTY_OF,
    Entity,
    Fact,
    FactKind,
    UpsertResult,
)

logger = logging.getLogger(__name__)

FACTS_COLLECTION = "facts"
ENTITIES_COLLECTION = "entities"


def _normalize(value: Any) -> str:
    return str(value).lower().strip()


def _exact_ci(value: str) -> dict[str, str]:
    """Case-insensitive exact match on a string field."""
    return {"$regex": f"^{re.escape(value)}$", "$options": "i"}


class FactStore:
    """Persistent fact storage with merge semantics.

    A fact is identified by its natural key (kind, key, entity), plus the
    concept for concept properties. Saving a fact whose key already exists
    updates the stored record instead of inserting a duplicate.

    Concurrent writers that both see "no existing record" for the same key
    can each insert one; no transaction guards against it.
    """

    def __init__(self, db: Database) -> None:
        """Initialize the store with a database handle.

        Args:
            db: The MongoDB database holding the collections.
        """
        self.db = db
        self.facts: Collection = db[FACTS_COLLECTION]
        self.entities: Collection = db[ENTITIES_COLLECTION]

    def ensure_indexes(self) -> None:
        """Create the lookup indexes. Safe to call repeatedly."""
        self.facts.create_index([("kind", ASCENDING)])
        self.facts.create_index([("key", ASCENDING)])
        self.facts.create_index([("entity", ASCENDING)])
        self.facts.create_index([("relationships.entity", ASCENDING)])
        self.facts.create_index([("value", TEXT)])

        self.entities.create_index([("name", ASCENDING)])
        self.entities.create_index([("aliases", ASCENDING)])
        self.entities.create_index([("kind", ASCENDING)])

    def upsert_fact(self, fact: Fact) -> UpsertResult:
        """Save a fact, updating the existing record with the same natural key.

        Args:
            fact: The fact to save.

        Returns:
            UpsertResult telling whether an existing record was updated.

        Raises:
            ValueError: If kind, key, entity or value is missing.
        """
        if not (fact.kind and fact.key and fact.entity and fact.value):
            raise ValueError("Fact requires kind, key, entity and value")

        doc = fact.to_document()
        doc["kind"] = _normalize(fact.kind)
        doc["key"] = _normalize(fact.key)
        doc["entity"] = _normalize(fact.entity)

        query: dict[str, Any] = {
            "kind": doc["kind"],
            "key": doc["key"],
            "entity": doc["entity"],
        }
        if doc["kind"] == FactKind.PROPERTY and fact.concept:
            query["concept"] = fact.concept

        now = datetime.now(timezone.utc)
        context = dict(doc["context"])
        context["certainty"] = CERTAINTY_HIGH
        context["timestamp"] = context.get("timestamp") or now.isoformat()
        doc["context"] = context
        doc["relationships"] = [
            {**rel, "entity": _normalize(rel["entity"])} for rel in doc["relationships"]
        ]

        existing = self.facts.find_one(query)
        if existing:
            update: dict[str, Any] = {
                "value": doc["value"],
                "context": context,
                "last_updated": now,
            }
            if doc["relationships"]:
                update["relationships"] = doc["relationships"]

            self.facts.update_one({"_id": existing["_id"]}, {"$set": update})
            logger.info(f"Fact updated: {doc['kind']}/{doc['key']} for {doc['entity']}")
            return UpsertResult(updated=True, id=str(existing["_id"]))

        doc["created_at"] = now
        doc["last_updated"] = now
        result = self.facts.insert_one(doc)
        logger.info(f"Fact inserted: {doc['kind']}/{doc['key']} for {doc['entity']}")
        return UpsertResult(updated=False, id=str(result.inserted_id))

    def find_fact(self, kind: str, key: str, entity: str) -> Fact | None:
        """Find a single fact by its natural key."""
        doc = self.facts.find_one(
            {"kind": _normalize(kind), "key": _normalize(key), "entity": _normalize(entity)}
        )
        return Fact.from_document(doc) if doc else None

    def find_relational_facts(
        self, kind: str, entity: str, value: str | None = None
    ) -> list[Fact]:
        """Find the facts of an entity, optionally restricted to one related value.

        Args:
            kind: Fact kind, usually 'relation'.
            entity: The entity the facts belong to.
            value: Optional value matched exactly (ignoring case) or against
                the entities the facts relate to.

        Returns:
            Matching facts in store order.
        """
        query: dict[str, Any] = {"kind": _normalize(kind), "entity": _normalize(entity)}
        if value:
            lowered = value.lower()
            query["$or"] = [
                {"value": _exact_ci(lowered)},
                {"relationships.entity": lowered},
            ]
        return self._find(query)

    def find_facts_by_type(self, kind: str) -> list[Fact]:
        """Find every fact of a kind."""
        return self._find({"kind": _normalize(kind)})

    def find_facts_by_partial_value(self, value: str) -> list[Fact]:
        """Find facts whose value contains the given text, ignoring case."""
        return self._find({"value": {"$regex": re.escape(value), "$options": "i"}})

    def find_concept_properties(self, concept: str) -> list[Fact]:
        """Find everything known about a concept.

        Combines entity facts about the concept, general properties tagged with
        it and facts related to it as 'property_of'. When none exist, the
        concept's definition is returned instead.
        """
        name = _normalize(concept)
        facts = self._find(
            {
                "$or": [
                    {"kind": FactKind.ENTITY, "entity": name},
                    {"kind": FactKind.PROPERTY, "entity": GENERAL_ENTITY, "concept": name},
                    {"relationships.type": PROPERTY_OF, "relationships.entity": name},
                ]
            }
        )
        if facts:
            return facts

        definition = self.find_fact(FactKind.DEFINITION, name, GENERAL_ENTITY)
        return [definition] if definition else []

    def upsert_entity(self, entity: Entity) -> UpsertResult:
        """Save an entity, merging aliases into an existing record.

        Args:
            entity: The entity to save.

        Returns:
            UpsertResult telling whether an existing record was updated.
        """
        now = datetime.now(timezone.utc)
        aliases = {_normalize(alias) for alias in entity.aliases if alias}
        existing = self.entities.find_one({"normalized_name": entity.normalized_name})

        if existing:
            merged = set(existing.get("aliases") or []) | aliases
            self.entities.update_one(
                {"_id": existing["_id"]},
                {
                    "$set": {
                        "kind": entity.kind,
                        "aliases": sorted(merged),
                        "last_updated": now,
                    }
                },
            )
            return UpsertResult(updated=True, id=str(existing["_id"]))

        result = self.entities.insert_one(
            {
                "name": entity.name,
                "normalized_name": entity.normalized_name,
                "kind": entity.kind,
                "aliases": sorted(aliases),
                "created_at": now,
                "last_updated": now,
            }
        )
        return UpsertResult(updated=False, id=str(result.inserted_id))

    def find_entity_by_name(self, name: str) -> Entity | None:
        """Find an entity by normalized name or by one of its aliases."""
        lowered = _normalize(name)
        doc = self.entities.find_one(
            {"$or": [{"normalized_name": lowered}, {"aliases": lowered}]}
        )
        return Entity.from_document(doc) if doc else None

    def _find(self, query: dict[str, Any]) -> list[Fact]:
        return [Fact.from_document(doc) for doc in self.facts.find(query)]
