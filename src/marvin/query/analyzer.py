"""Recognition of questions about stored facts."""

import re
from dataclasses import dataclass
from enum import Enum

from ..taxonomy.models import SubjectType, TaxonomicAnalysis

QUESTION = "question"


class QueryKind(Enum):
    IDENTITY = "identity"
    RELATION = "relation"
    DEFINITION = "definition"
    PROPERTY = "property"


class QueryTarget(Enum):
    SELF = "self"
    THIRD_PARTY = "third_party"
    CONCEPT = "concept"


CATEGORY_TO_KIND = {
    "IDENTITY": QueryKind.IDENTITY,
    "RELATION": QueryKind.RELATION,
    "DEFINITION": QueryKind.DEFINITION,
    "PROPERTY": QueryKind.PROPERTY,
}

SUBJECT_TO_TARGET = {
    SubjectType.USER: QueryTarget.SELF,
    SubjectType.THIRD_PARTY: QueryTarget.THIRD_PARTY,
    SubjectType.CONCEPT: QueryTarget.CONCEPT,
}

_LETTERS = r"[^\W\d_]+"

THIRD_PARTY_RE = re.compile(rf"(?:quem é|sobre) ({_LETTERS})", re.IGNORECASE)
DEFINITION_RE = re.compile(r"(?:o que é|significa|significado de) (\w+)", re.IGNORECASE)
PROPERTY_RE = re.compile(
    rf"(?:quais|que|quem) (?:s[ãa]o )?(?:as? |os? )?({_LETTERS}) (?:da |do |de |)([\w ]+)\??",
    re.IGNORECASE,
)
PROPERTY_LOOSE_RE = re.compile(
    rf"([\w ]+?)\s+(?:tem|possui)\s+(?:quais\s+|que\s+)?({_LETTERS})",
    re.IGNORECASE,
)


@dataclass
class QueryDescriptor:
    """What is being asked and about whom.

    Attributes:
        kind: The kind of fact requested.
        target: Whose facts are requested.
        value: Third-party name or concept, lower-cased; None for self.
        property: Requested property of a concept, if one was named.
    """

    kind: QueryKind
    target: QueryTarget
    value: str | None = None
    property: str | None = None


def analyze_query(
    analysis: TaxonomicAnalysis | None, text: str
) -> QueryDescriptor | None:
    """Turn a taxonomic analysis into a query descriptor.

    Args:
        analysis: The classifier's analysis of the message.
        text: The original message text.

    Returns:
        A QueryDescriptor, or None when the message is not a question about
        stored facts or a required parameter cannot be found in the text.
    """
    if analysis is None or analysis.interaction_type != QUESTION:
        return None

    kind = CATEGORY_TO_KIND.get(analysis.knowledge_category or "")
    target = SUBJECT_TO_TARGET.get(analysis.primary_subject or "")
    if kind is None or target is None:
        return None

    query = QueryDescriptor(kind=kind, target=target)

    if target == QueryTarget.THIRD_PARTY:
        match = THIRD_PARTY_RE.search(text)
        if match:
            query.value = match.group(1).lower()

    elif target == QueryTarget.CONCEPT:
        if kind == QueryKind.DEFINITION:
            match = DEFINITION_RE.search(text)
            if match:
                query.value = match.group(1).lower()
        elif kind == QueryKind.PROPERTY:
            _extract_property(query, text)

    if target != QueryTarget.SELF and not query.value:
        return None

    return query


def _extract_property(query: QueryDescriptor, text: str) -> None:
    match = PROPERTY_RE.search(text)
    if match:
        query.property = match.group(1).lower()
        query.value = match.group(2).strip().lower()
        return

    match = PROPERTY_LOOSE_RE.search(text)
    if match:
        query.value = match.group(1).strip().lower()
        query.property = match.group(2).lower()
