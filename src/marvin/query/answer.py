"""Natural-language answers built from stored facts."""

from dataclasses import dataclass, field

from ..memory.models import Fact, FactKind
from .analyzer import QueryDescriptor, QueryKind, QueryTarget

FRIEND_KEY = "amigo"


@dataclass
class QueryResult:
    """Facts retrieved for a query: a single exact match or a list."""

    fact: Fact | None = None
    facts: list[Fact] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.fact is not None or bool(self.facts)


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


def _values(facts: list[Fact]) -> str:
    return ", ".join(f.value for f in facts)


def synthesize_answer(query: QueryDescriptor, result: QueryResult) -> str | None:
    """Format an answer to a query.

    Args:
        query: What was asked.
        result: Facts retrieved for the query.

    Returns:
        The answer text, or None if no formatting rule applies. None means
        "could not answer", not an error.
    """
    if not result.found:
        return None

    if result.fact is not None:
        answer = _single_fact_answer(query, result.fact)
        if answer is not None or not result.facts:
            return answer

    return _multi_fact_answer(query, result.facts)


def _single_fact_answer(query: QueryDescriptor, fact: Fact) -> str | None:
    if query.kind == QueryKind.IDENTITY:
        if fact.kind == FactKind.NAME:
            return f"Seu nome é {fact.value}."
        return None

    if query.kind == QueryKind.DEFINITION:
        return f"{fact.key.upper()} significa {fact.value}."

    return f"{fact.key}: {fact.value}"


def _multi_fact_answer(query: QueryDescriptor, facts: list[Fact]) -> str | None:
    if not facts:
        return None

    if query.kind == QueryKind.RELATION:
        if query.target == QueryTarget.THIRD_PARTY:
            return _third_party_relation_answer(query.value or "", facts)

        values = _values(facts)
        key = facts[0].key
        if key == FRIEND_KEY:
            if len(facts) == 1:
                return f"Seu amigo é {values}."
            return f"Seus amigos são: {values}."
        return f"{key}: {values}"

    if query.kind == QueryKind.PROPERTY:
        if query.target == QueryTarget.CONCEPT:
            return _concept_properties_answer(query, facts)
        return None

    return f"Encontrei estas informações: {_values(facts)}"


def _third_party_relation_answer(name: str, facts: list[Fact]) -> str | None:
    wanted = name.lower()

    exact = [f for f in facts if f.value.lower() == wanted]
    if exact:
        relations = ", ".join(f.key for f in exact)
        return f"{name} é seu {relations}."

    partial = [f for f in facts if wanted in f.value.lower()]
    if partial:
        return f"Encontrei: {_values(partial)}"

    return None


def _concept_properties_answer(query: QueryDescriptor, facts: list[Fact]) -> str:
    concept = _capitalize(query.value or "")

    if query.property:
        selected = [f for f in facts if query.property in f.key.lower()]
        if selected:
            return f"As {query.property} de {concept} são: {_values(selected)}"

    properties = "\n- ".join(f"{f.key}: {f.value}" for f in facts)
    return f"Informações sobre {concept}:\n- {properties}"
