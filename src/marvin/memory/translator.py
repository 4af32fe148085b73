"""Translation of classifier knowledge entries into canonical facts."""

import logging
import re
from datetime import datetime, timezone
from typing import Any

from ..taxonomy.models import EntryKind, Knowledge, SubjectType
from .models import (
    CERTAINTY_HIGH,
    GENERAL_ENTITY,
    MAX_VALUE_LENGTH,
    PROPERTY_OF,
    Fact,
    FactContext,
    FactKind,
    Relationship,
)

logger = logging.getLogger(__name__)

GENERIC_RELATION = "generic_relation"
DEFAULT_PROPERTY_KEY = "characteristic"
DEFAULT_ENTITY_CATEGORY = "organization"
MIN_DEFINITION_LENGTH = 5
MIN_PROPERTY_TYPE_LENGTH = 2

_NON_WORD_RE = re.compile(r"[^\w\s]")
_EDGE_NON_WORD_RE = re.compile(r"^\W+|\W+$")


def normalize_value(value: Any) -> Any:
    """Trim a string and strip non-word characters from both ends."""
    if not isinstance(value, str):
        return value
    return _EDGE_NON_WORD_RE.sub("", value.strip())


def normalize_name(value: str) -> str:
    """Normalized identifier used for entities, keys and concepts."""
    return value.lower().strip()


def truncate_value(value: str, limit: int = MAX_VALUE_LENGTH) -> str:
    """Cap a value at ``limit`` characters, marking the cut with an ellipsis."""
    if len(value) <= limit:
        return value
    return value[:limit] + "..."


def _field(part: Any, name: str) -> Any:
    return part.get(name) if isinstance(part, dict) else None


class FactTranslator:
    """Validates knowledge entries and maps them to facts.

    Entries that fail validation are discarded one by one and the reason is
    logged; a bad entry never aborts the rest of the batch.
    """

    def translate(self, knowledge: Knowledge, user_id: str) -> list[Fact]:
        """Translate classifier knowledge into facts ready to persist.

        Args:
            knowledge: The knowledge block of a TaxonomyResult.
            user_id: Stable id of the sender, used for facts about the user.

        Returns:
            Unique facts in entry order; empty if nothing may be stored.
        """
        if not knowledge.store or not knowledge.entries:
            logger.info("No knowledge to store")
            return []

        facts: list[Fact] = []
        for entry in knowledge.entries:
            reason = self.validate(entry)
            if reason:
                logger.info(f"Entry discarded ({reason}): {entry!r}")
                continue

            fact = self._to_fact(self._normalized(entry), user_id)
            if fact is not None:
                facts.append(fact)

        unique = self._deduplicate(facts)
        logger.info(
            f"{len(unique)} valid facts out of {len(knowledge.entries)} entries"
        )
        return unique

    def validate(self, entry: Any) -> str | None:
        """Check an entry against the storage rules.

        Returns:
            The reason the entry must be discarded, or None if it passes.
        """
        if not isinstance(entry, dict):
            return "not an object"

        kind = entry.get("kind")
        subject = entry.get("subject")
        predicate = entry.get("predicate")
        if not kind or not isinstance(subject, dict) or not isinstance(predicate, dict):
            return "incomplete structure"
        if kind not in EntryKind.ALL:
            return f"unknown kind {kind!r}"
        if subject.get("type") not in SubjectType.ALL:
            return f"unknown subject type {subject.get('type')!r}"

        if _field(entry.get("context"), "certainty") != CERTAINTY_HIGH:
            return "certainty is not ALTA"

        subject_value = subject.get("value")
        predicate_value = predicate.get("value")
        if not subject_value or not predicate_value:
            return "missing subject or predicate value"

        if kind == EntryKind.IDENTITY:
            if _NON_WORD_RE.search(str(predicate_value)):
                return "identity value contains symbols"

        elif kind == EntryKind.RELATION:
            obj = entry.get("object")
            if not _field(obj, "value"):
                return "relation without object"
            if obj.get("type") == subject.get("type") and obj.get("value") == subject_value:
                return "circular relation"

        elif kind == EntryKind.DEFINITION:
            if len(str(predicate_value)) < MIN_DEFINITION_LENGTH:
                return "definition too short"

        elif kind == EntryKind.PROPERTY:
            predicate_type = predicate.get("type")
            if not predicate_type or len(str(predicate_type)) < MIN_PROPERTY_TYPE_LENGTH:
                return "property without a clear predicate type"

        return None

    def _normalized(self, entry: dict[str, Any]) -> dict[str, Any]:
        """Copy of the entry with subject, predicate and object values normalized."""
        normalized = dict(entry)
        for part in ("subject", "predicate", "object"):
            value = entry.get(part)
            if isinstance(value, dict):
                value = dict(value)
                if value.get("value"):
                    value["value"] = normalize_value(value["value"])
                normalized[part] = value
        return normalized

    def _subject_entity(self, subject: dict[str, Any], user_id: str) -> str:
        if subject["type"] == SubjectType.USER:
            return user_id
        return normalize_name(str(subject["value"]))

    def _to_fact(self, entry: dict[str, Any], user_id: str) -> Fact | None:
        """Map a validated entry to a Fact, or None if it ends up incomplete."""
        kind = entry["kind"]
        subject = entry["subject"]
        predicate = entry["predicate"]
        subject_value = str(subject["value"])

        context = FactContext(
            certainty=CERTAINTY_HIGH,
            source=_field(entry.get("context"), "source") or "api",
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        fact = Fact(kind="", key="", entity="", value="", context=context)

        if kind == EntryKind.IDENTITY:
            fact.kind = FactKind.NAME
            fact.key = "name"
            fact.entity = self._subject_entity(subject, user_id)
            fact.value = predicate["value"]

        elif kind == EntryKind.RELATION:
            obj = entry["object"]
            fact.kind = FactKind.RELATION
            fact.key = predicate.get("type") or GENERIC_RELATION
            fact.entity = self._subject_entity(subject, user_id)
            fact.value = obj["value"]
            fact.relationships.append(
                Relationship(
                    type=normalize_name(fact.key),
                    entity=normalize_name(str(obj["value"])),
                    description=f"{fact.key} de {subject_value}",
                )
            )

        elif kind == EntryKind.DEFINITION:
            fact.kind = FactKind.DEFINITION
            fact.key = normalize_name(subject_value)
            fact.entity = GENERAL_ENTITY
            fact.value = predicate["value"]

        elif kind == EntryKind.PROPERTY:
            fact.kind = FactKind.PROPERTY
            fact.key = predicate.get("type") or DEFAULT_PROPERTY_KEY
            fact.value = predicate["value"]
            if subject["type"] == SubjectType.CONCEPT:
                concept = normalize_name(subject_value)
                fact.entity = GENERAL_ENTITY
                fact.concept = concept
                fact.relationships.append(
                    Relationship(
                        type=PROPERTY_OF,
                        entity=concept,
                        description=f"{fact.key} de {subject_value}",
                    )
                )
            else:
                fact.entity = self._subject_entity(subject, user_id)

        elif kind == EntryKind.ENTITY:
            fact.kind = FactKind.ENTITY
            fact.key = predicate.get("type") or DEFAULT_PROPERTY_KEY
            fact.entity = normalize_name(subject_value)
            fact.value = predicate["value"]
            fact.category = subject.get("category") or DEFAULT_ENTITY_CATEGORY

        if not (fact.kind and fact.key and fact.entity and fact.value):
            logger.info(f"Fact discarded, required fields missing: {fact!r}")
            return None

        fact.key = normalize_name(str(fact.key))
        fact.value = str(fact.value).strip()
        if not fact.value:
            logger.info(f"Fact discarded, empty value: {fact.kind}/{fact.key}")
            return None

        if len(fact.value) > MAX_VALUE_LENGTH:
            logger.info(f"Value truncated to {MAX_VALUE_LENGTH} characters")
            fact.value = truncate_value(fact.value)

        return fact

    def _deduplicate(self, facts: list[Fact]) -> list[Fact]:
        """Keep the first fact for each (kind, key, entity) in the batch."""
        seen: set[tuple[str, str, str]] = set()
        unique: list[Fact] = []
        for fact in facts:
            batch_key = (fact.kind, fact.key, fact.entity)
            if batch_key in seen:
                logger.info(f"Duplicate fact ignored: {batch_key}")
                continue
            seen.add(batch_key)
            unique.append(fact)
        return unique
