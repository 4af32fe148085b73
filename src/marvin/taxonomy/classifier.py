"""Taxonomy classification of messages using the Groq LLM API."""

import json
import logging
from dataclasses import dataclass
from typing import Any

from groq import APIError, AsyncGroq

from ..memory.models import CERTAINTY_HIGH
from .fallback import extract_fallback_knowledge
from .models import (
    ClassificationError,
    ClassificationResult,
    Knowledge,
    SenderInfo,
    TaxonomicAnalysis,
    TaxonomyResult,
)
from .prompt import build_system_prompt, is_learning_command, strip_learning_prefix

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("keywords", "answer_text", "classification", "taxonomic_analysis")

# Fields that must also carry a value; empty keyword lists and analyses are valid
NON_EMPTY_FIELDS = ("answer_text", "classification")


@dataclass
class ClassifierConfig:
    """Configuration for the taxonomy classifier."""

    model: str = "llama-3.3-70b-versatile"
    temperature: float = 0.2
    max_tokens: int = 1000


class TaxonomyClassifier:
    """Turns a message into a TaxonomyResult by asking the LLM."""

    def __init__(
        self,
        client: AsyncGroq,
        config: ClassifierConfig | None = None,
    ) -> None:
        """Initialize the classifier.

        Args:
            client: The Groq client for LLM calls.
            config: Model and sampling settings.
        """
        self.client = client
        self.config = config or ClassifierConfig()

    @property
    def model(self) -> str:
        return self.config.model

    async def classify(
        self, message: str, sender: SenderInfo | None = None
    ) -> ClassificationResult:
        """Classify a message.

        Args:
            message: The raw message text, including any learning prefix.
            sender: Optional information about who sent it.

        Returns:
            ClassificationResult holding either the parsed TaxonomyResult or
            the reason the classification failed.
        """
        system_prompt = build_system_prompt(message, sender)

        try:
            response = await self.client.chat.completions.create(
                model=self.config.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": message},
                ],
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
                response_format={"type": "json_object"},
            )
        except APIError as e:
            logger.warning(f"Classifier call failed: {e}")
            return ClassificationResult.fail(ClassificationError.SERVICE_ERROR, str(e))

        content = response.choices[0].message.content or ""
        result = self._parse_response(content)

        if result.success and is_learning_command(message):
            assert result.data is not None
            user_id = sender.id if sender else None
            self._enforce_learning(result.data, strip_learning_prefix(message), user_id)

        return result

    def _parse_response(self, content: str) -> ClassificationResult:
        """Parse the LLM response into a TaxonomyResult.

        Args:
            content: The raw LLM response.

        Returns:
            A successful result, or a MALFORMED_RESPONSE failure.
        """
        json_str = content.strip()
        if json_str.startswith("```"):
            # Drop the markdown fence lines
            json_str = "\n".join(
                line for line in json_str.split("\n") if not line.startswith("```")
            )

        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse classifier response: {e}")
            return ClassificationResult.fail(
                ClassificationError.MALFORMED_RESPONSE, "Response is not valid JSON"
            )

        if not isinstance(data, dict):
            return ClassificationResult.fail(
                ClassificationError.MALFORMED_RESPONSE, "Response is not a JSON object"
            )

        missing = [name for name in REQUIRED_FIELDS if name not in data]
        missing += [name for name in NON_EMPTY_FIELDS if name in data and not data[name]]
        if missing:
            logger.warning(f"Classifier response missing fields: {missing}")
            return ClassificationResult.fail(
                ClassificationError.MALFORMED_RESPONSE,
                f"Missing required fields: {', '.join(missing)}",
            )

        keywords = data["keywords"]
        if keywords is None:
            keywords = []
        elif not isinstance(keywords, list):
            keywords = [keywords]

        analysis = data["taxonomic_analysis"]
        if not isinstance(analysis, dict):
            return ClassificationResult.fail(
                ClassificationError.MALFORMED_RESPONSE,
                "taxonomic_analysis is not an object",
            )

        knowledge = data.get("knowledge")
        return ClassificationResult.ok(
            TaxonomyResult(
                keywords=[str(k) for k in keywords],
                answer_text=str(data["answer_text"]),
                classification=str(data["classification"]),
                analysis=TaxonomicAnalysis.from_dict(analysis),
                knowledge=Knowledge.from_dict(
                    knowledge if isinstance(knowledge, dict) else None
                ),
            )
        )

    def _enforce_learning(
        self, data: TaxonomyResult, content: str, user_id: str | None
    ) -> None:
        """Make a learning command's knowledge storable.

        Explicit learning commands are trusted: storage is switched on and
        every entry is marked with high certainty. When the model extracted
        nothing, the pattern-based fallback fills in a single entry.
        """
        if not data.knowledge.entries:
            logger.info(f"Learning command without entries, using fallback: {content!r}")
            data.knowledge = extract_fallback_knowledge(content, user_id)
            return

        data.knowledge.store = True
        for entry in data.knowledge.entries:
            if not isinstance(entry, dict):
                continue
            context: Any = entry.get("context")
            if not isinstance(context, dict):
                context = {}
                entry["context"] = context
            context["certainty"] = CERTAINTY_HIGH
