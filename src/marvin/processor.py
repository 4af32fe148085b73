"""Per-message orchestration: cache, classification, query answering and learning."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum

from pymongo.errors import PyMongoError

from .keywords import extract_keywords
from .logging import JSONLLogger, get_logger
from .memory import (
    GENERAL_ENTITY,
    CachedResponse,
    Entity,
    Fact,
    FactKind,
    FactStore,
    FactTranslator,
    ResponseCache,
)
from .query import (
    QueryDescriptor,
    QueryKind,
    QueryResult,
    QueryTarget,
    analyze_query,
    synthesize_answer,
)
from .taxonomy import (
    SenderInfo,
    TaxonomyClassifier,
    TaxonomyResult,
    is_learning_command,
    strip_learning_prefix,
)

logger = logging.getLogger(__name__)

CLASSIFICATION_APOLOGY = (
    "Desculpe, não consegui processar sua pergunta. "
    "Por favor, tente novamente mais tarde."
)
FAILURE_NOTICE = "Ocorreu um erro ao processar sua mensagem. Por favor, tente novamente."
LEARNING_DONE = "Aprendizado concluído com sucesso. {count} fatos foram armazenados."

THIRD_PARTY_KIND = "third_party"
CONCEPT_KIND = "concept"


class Route(Enum):
    """How a message ended up being answered."""

    CACHE = "cache"
    QUERY = "query"
    LEARNING = "learning"
    CLASSIFIER = "classifier"
    CLASSIFICATION_ERROR = "classification_error"
    ERROR = "error"


@dataclass
class InboundMessage:
    """A text message delivered by the transport."""

    text: str
    sender_id: str
    sender_name: str | None = None
    is_group: bool = False
    chat_id: str | None = None


@dataclass
class ProcessResult:
    """Reply to send back and how it was produced."""

    reply: str
    route: Route
    facts_stored: int = 0


@dataclass
class ProcessorConfig:
    """Configuration for the message processor."""

    bot_name: str = "Marvin"


class MessageProcessor:
    """Answers one message at a time.

    Precedence for each message:

    1. **Cache**: a non-learning message whose keywords match a cached
       answer gets that answer; the classifier is not called.
    2. **Classification**: otherwise the classifier runs; if it fails the
       reply is a fixed apology and nothing is written.
    3. **Query**: a non-learning question about stored facts is answered
       from the fact store when an answer can be formatted.
    4. **Learning / fallback**: a learning command persists the translated
       facts and caches the classifier's answer; any other message gets the
       classifier's own answer and nothing is stored.
    """

    def __init__(
        self,
        classifier: TaxonomyClassifier,
        store: FactStore,
        cache: ResponseCache,
        translator: FactTranslator | None = None,
        config: ProcessorConfig | None = None,
        event_logger: JSONLLogger | None = None,
    ) -> None:
        self.classifier = classifier
        self.store = store
        self.cache = cache
        self.translator = translator or FactTranslator()
        self.config = config or ProcessorConfig()
        self.event_logger = event_logger or get_logger()

    def format_reply(self, answer: str) -> str:
        """Prefix an answer with the bot's display name."""
        return f"*{self.config.bot_name}*\n\n{answer}"

    async def process(self, message: InboundMessage) -> ProcessResult:
        """Produce the reply for a message.

        Args:
            message: The incoming message.

        Returns:
            ProcessResult with the formatted reply. Unexpected errors produce
            a generic failure notice instead of propagating.
        """
        try:
            route, answer, stored = await self._answer(message)
        except Exception:
            logger.exception("Error processing message")
            return ProcessResult(reply=FAILURE_NOTICE, route=Route.ERROR)

        return ProcessResult(
            reply=self.format_reply(answer), route=route, facts_stored=stored
        )

    async def _answer(self, message: InboundMessage) -> tuple[Route, str, int]:
        learning = is_learning_command(message.text)
        text = strip_learning_prefix(message.text)
        logger.info(f"Message received: {text[:50]!r}")

        if not learning:
            cached = await self._find_cached(extract_keywords(text))
            if cached is not None:
                logger.info("Answer found in cache")
                return Route.CACHE, cached.answer_text, 0

        sender = SenderInfo(id=message.sender_id, name=message.sender_name)
        result = await self.classifier.classify(message.text, sender)
        if not result.success or result.data is None:
            logger.warning(
                f"Classification failed ({result.error}): {result.error_message}"
            )
            return Route.CLASSIFICATION_ERROR, CLASSIFICATION_APOLOGY, 0

        data = result.data

        if not learning:
            answer = await self._answer_query(data, text, message.sender_id)
            if answer is not None:
                return Route.QUERY, answer, 0

        facts = self.translator.translate(data.knowledge, message.sender_id)

        if not learning:
            if facts:
                logger.info(f"{len(facts)} facts ignored outside a learning command")
            return Route.CLASSIFIER, data.answer_text, 0

        stored = await self._learn(data, facts)
        return Route.LEARNING, LEARNING_DONE.format(count=stored), stored

    async def _find_cached(self, keywords: list[str]) -> CachedResponse | None:
        try:
            return await asyncio.to_thread(self.cache.find_by_keywords, keywords)
        except PyMongoError as e:
            logger.error(f"Cache lookup failed: {e}")
            return None

    async def _answer_query(
        self, data: TaxonomyResult, text: str, sender_id: str
    ) -> str | None:
        """Answer a question from stored facts, or None to fall through."""
        query = analyze_query(data.analysis, text)
        if query is None:
            return None

        logger.info(f"Query identified: {query.kind.value} -> {query.target.value}")

        try:
            query = await self._resolve_third_party(query)
            result = await self._lookup(query, sender_id)
        except PyMongoError as e:
            logger.error(f"Fact lookup failed: {e}")
            return None

        if not result.found:
            return None

        return synthesize_answer(query, result)

    async def _resolve_third_party(self, query: QueryDescriptor) -> QueryDescriptor:
        """Replace a third-party alias with the entity's normalized name."""
        if query.target != QueryTarget.THIRD_PARTY or not query.value:
            return query

        entity = await asyncio.to_thread(self.store.find_entity_by_name, query.value)
        if entity is None or entity.normalized_name == query.value:
            return query
        return replace(query, value=entity.normalized_name)

    async def _lookup(self, query: QueryDescriptor, sender_id: str) -> QueryResult:
        """Run the store lookup matching the query's kind and target."""
        if query.kind == QueryKind.IDENTITY and query.target == QueryTarget.SELF:
            fact = await asyncio.to_thread(
                self.store.find_fact, FactKind.NAME, "name", sender_id
            )
            return QueryResult(fact=fact)

        if query.kind == QueryKind.RELATION:
            if query.target == QueryTarget.SELF:
                facts = await asyncio.to_thread(
                    self.store.find_relational_facts, FactKind.RELATION, sender_id
                )
                return QueryResult(facts=facts)
            if query.target == QueryTarget.THIRD_PARTY and query.value:
                facts = await asyncio.to_thread(
                    self.store.find_relational_facts,
                    FactKind.RELATION,
                    sender_id,
                    query.value,
                )
                return QueryResult(facts=facts)

        if query.target == QueryTarget.CONCEPT and query.value:
            if query.kind == QueryKind.DEFINITION:
                fact = await asyncio.to_thread(
                    self.store.find_fact, FactKind.DEFINITION, query.value, GENERAL_ENTITY
                )
                return QueryResult(fact=fact)
            if query.kind == QueryKind.PROPERTY:
                facts = await asyncio.to_thread(
                    self.store.find_concept_properties, query.value
                )
                return QueryResult(facts=facts)

        return QueryResult()

    async def _learn(self, data: TaxonomyResult, facts: list[Fact]) -> int:
        """Persist facts from a learning command and cache its answer.

        Returns:
            Number of facts actually saved.
        """
        stored = 0
        for fact in facts:
            try:
                saved = await asyncio.to_thread(self.store.upsert_fact, fact)
            except PyMongoError as e:
                logger.error(f"Failed to save fact {fact.kind}/{fact.key}: {e}")
                continue

            stored += 1
            logger.info(
                f"Fact {'updated' if saved.updated else 'saved'}: {fact.kind} - {fact.key}"
            )
            self.event_logger.log_fact_saved(fact.kind, fact.key, fact.entity, saved.updated)
            await self._register_entities(fact)

        try:
            await asyncio.to_thread(
                self.cache.save,
                CachedResponse(
                    keywords=data.keywords,
                    answer_text=data.answer_text,
                    classification=data.classification,
                ),
            )
        except PyMongoError as e:
            logger.error(f"Failed to cache response: {e}")

        return stored

    async def _register_entities(self, fact: Fact) -> None:
        """Record the third parties and concepts a fact mentions."""
        for entity in mentioned_entities(fact):
            try:
                await asyncio.to_thread(self.store.upsert_entity, entity)
            except PyMongoError as e:
                logger.error(f"Failed to save entity {entity.name!r}: {e}")


def mentioned_entities(fact: Fact) -> list[Entity]:
    """Entities referenced by a fact.

    Third parties get their first name as an alias so that questions naming
    only the first name still find them.
    """
    if fact.kind == FactKind.RELATION:
        name = fact.value
        aliases = {name.lower()}
        first_name = name.split()[0].lower() if name.split() else ""
        if first_name:
            aliases.add(first_name)
        return [Entity(name=name, kind=THIRD_PARTY_KIND, aliases=aliases)]

    if fact.kind == FactKind.PROPERTY and fact.concept:
        return [Entity(name=fact.concept, kind=CONCEPT_KIND, aliases={fact.concept})]

    if fact.kind == FactKind.DEFINITION:
        return [Entity(name=fact.key, kind=CONCEPT_KIND, aliases={fact.key})]

    if fact.kind == FactKind.ENTITY:
        return [
            Entity(name=fact.entity, kind=fact.category or CONCEPT_KIND, aliases={fact.entity})
        ]

    return []
