"""Structures returned by the taxonomy classifier."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SubjectType:
    """Subject types recognized in taxonomic analyses and knowledge entries."""

    USER = "USER"
    THIRD_PARTY = "THIRD_PARTY"
    CONCEPT = "CONCEPT"

    ALL = (USER, THIRD_PARTY, CONCEPT)


class EntryKind:
    """Kinds of knowledge entries the classifier may produce."""

    IDENTITY = "identity"
    RELATION = "relation"
    DEFINITION = "definition"
    PROPERTY = "property"
    ENTITY = "entity"

    ALL = (IDENTITY, RELATION, DEFINITION, PROPERTY, ENTITY)


class ClassificationError(Enum):
    """Reasons a classification could not be obtained."""

    MALFORMED_RESPONSE = "malformed_response"
    SERVICE_ERROR = "service_error"


@dataclass
class SenderInfo:
    """Who sent the message being classified."""

    id: str | None = None
    name: str | None = None


@dataclass
class TaxonomicAnalysis:
    """The classifier's judgement of what a message is about."""

    interaction_type: str | None = None
    primary_subject: str | None = None
    knowledge_category: str | None = None
    application_context: str | None = None
    certainty_level: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> TaxonomicAnalysis:
        data = data or {}
        return cls(
            interaction_type=data.get("interaction_type"),
            primary_subject=data.get("primary_subject"),
            knowledge_category=data.get("knowledge_category"),
            application_context=data.get("application_context"),
            certainty_level=data.get("certainty_level"),
        )


@dataclass
class Knowledge:
    """Knowledge the classifier proposes to store.

    Entries are kept as the raw mappings produced by the model; the
    FactTranslator validates them before anything is persisted.
    """

    store: bool = False
    entries: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Knowledge:
        data = data or {}
        entries = data.get("entries")
        return cls(
            store=bool(data.get("store", False)),
            entries=list(entries) if isinstance(entries, list) else [],
        )


@dataclass
class TaxonomyResult:
    """A parsed classifier response."""

    keywords: list[str]
    answer_text: str
    classification: str
    analysis: TaxonomicAnalysis
    knowledge: Knowledge = field(default_factory=Knowledge)


@dataclass
class ClassificationResult:
    """Result of a classification call: either data or an error tag."""

    success: bool
    data: TaxonomyResult | None = None
    error: ClassificationError | None = None
    error_message: str | None = None

    @classmethod
    def ok(cls, data: TaxonomyResult) -> ClassificationResult:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: ClassificationError, message: str) -> ClassificationResult:
        return cls(success=False, error=error, error_message=message)
