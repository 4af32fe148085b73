"""Data models for the fact store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

CERTAINTY_HIGH = "ALTA"
CERTAINTY_MEDIUM = "MÉDIA"
CERTAINTY_LOW = "BAIXA"

GENERAL_ENTITY = "general"
PROPERTY_OF = "property_of"

MAX_VALUE_LENGTH = 500


class FactKind:
    """Canonical fact kinds as stored in the ``kind`` field."""

    NAME = "name"
    RELATION = "relation"
    DEFINITION = "definition"
    PROPERTY = "property"
    ENTITY = "entity"


@dataclass
class Relationship:
    """A link from a fact to another entity, used for graph-style lookups."""

    type: str
    entity: str
    description: str = ""

    def to_document(self) -> dict[str, Any]:
        return {"type": self.type, "entity": self.entity, "description": self.description}

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> Relationship:
        return cls(
            type=doc.get("type", ""),
            entity=doc.get("entity", ""),
            description=doc.get("description", ""),
        )


@dataclass
class FactContext:
    """Provenance of a fact."""

    certainty: str = CERTAINTY_HIGH
    source: str = "api"
    timestamp: str | None = None

    def to_document(self) -> dict[str, Any]:
        return {
            "certainty": self.certainty,
            "source": self.source,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any] | None) -> FactContext:
        doc = doc or {}
        return cls(
            certainty=doc.get("certainty", CERTAINTY_HIGH),
            source=doc.get("source", "api"),
            timestamp=doc.get("timestamp"),
        )


@dataclass
class Fact:
    """A stored piece of knowledge.

    Attributes:
        kind: One of the ``FactKind`` values.
        key: Predicate identifier (e.g. 'name', 'amigo', a property label).
        entity: Who or what the fact is about: the sender id for facts about
            the user, a normalized third-party name, or 'general' for
            concept-scoped facts.
        value: The fact content.
        concept: Concept name for properties stored under 'general'.
        category: Category of entity facts (e.g. 'organization').
        relationships: Links to other entities.
        context: Certainty and provenance.
        id: Database id, None for new facts.
        created_at: When the record was inserted.
        last_updated: When the record was last written.
    """

    kind: str
    key: str
    entity: str
    value: str
    concept: str | None = None
    category: str | None = None
    relationships: list[Relationship] = field(default_factory=list)
    context: FactContext = field(default_factory=FactContext)
    id: str | None = None
    created_at: datetime | None = None
    last_updated: datetime | None = None

    @property
    def natural_key(self) -> tuple[str, str, str, str | None]:
        """Tuple identifying the fact for merge purposes."""
        return (self.kind, self.key, self.entity, self.concept)

    def to_document(self) -> dict[str, Any]:
        """Convert to a store document, without id or timestamps."""
        doc: dict[str, Any] = {
            "kind": self.kind,
            "key": self.key,
            "entity": self.entity,
            "value": self.value,
            "relationships": [rel.to_document() for rel in self.relationships],
            "context": self.context.to_document(),
        }
        if self.concept is not None:
            doc["concept"] = self.concept
        if self.category is not None:
            doc["category"] = self.category
        return doc

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> Fact:
        """Create from a store document."""
        return cls(
            kind=doc["kind"],
            key=doc["key"],
            entity=doc["entity"],
            value=doc["value"],
            concept=doc.get("concept"),
            category=doc.get("category"),
            relationships=[
                Relationship.from_document(rel) for rel in doc.get("relationships") or []
            ],
            context=FactContext.from_document(doc.get("context")),
            id=str(doc["_id"]) if "_id" in doc else None,
            created_at=doc.get("created_at"),
            last_updated=doc.get("last_updated"),
        )


@dataclass
class Entity:
    """A named third party or concept that facts can refer to."""

    name: str
    kind: str
    aliases: set[str] = field(default_factory=set)
    id: str | None = None
    created_at: datetime | None = None
    last_updated: datetime | None = None

    @property
    def normalized_name(self) -> str:
        return self.name.lower().strip()

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> Entity:
        return cls(
            name=doc["name"],
            kind=doc.get("kind", ""),
            aliases=set(doc.get("aliases") or []),
            id=str(doc["_id"]) if "_id" in doc else None,
            created_at=doc.get("created_at"),
            last_updated=doc.get("last_updated"),
        )


@dataclass
class CachedResponse:
    """A previously generated answer, found again by keyword overlap."""

    keywords: list[str]
    answer_text: str
    classification: str = "global"
    id: str | None = None
    created_at: datetime | None = None
    last_updated: datetime | None = None

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> CachedResponse:
        return cls(
            keywords=list(doc.get("keywords") or []),
            answer_text=doc.get("answer_text", ""),
            classification=doc.get("classification", "global"),
            id=str(doc["_id"]) if "_id" in doc else None,
            created_at=doc.get("created_at"),
            last_updated=doc.get("last_updated"),
        )


@dataclass(frozen=True)
class UpsertResult:
    """Outcome of an update-or-insert operation."""

    updated: bool
    id: str | None = None

    @property
    def inserted(self) -> bool:
        return not self.updated
