"""Tests for TaxonomyClassifier."""

import json
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest
from groq import APIConnectionError

from marvin.taxonomy import (
    ClassificationError,
    ClassifierConfig,
    EntryKind,
    SenderInfo,
    TaxonomyClassifier,
)


@pytest.fixture
def mock_client() -> AsyncMock:
    """Create a mock Groq client."""
    return AsyncMock()


@pytest.fixture
def classifier(mock_client: AsyncMock) -> TaxonomyClassifier:
    """Create a TaxonomyClassifier with mock client."""
    return TaxonomyClassifier(mock_client)


def make_response(content: str) -> Mock:
    """Create a mock LLM response."""
    response = Mock()
    response.choices = [Mock()]
    response.choices[0].message.content = content
    return response


def make_payload(**overrides: Any) -> dict[str, Any]:
    """A well-formed classifier response body."""
    payload: dict[str, Any] = {
        "keywords": ["python", "linguagem"],
        "answer_text": "Python é uma linguagem de programação.",
        "classification": "global",
        "taxonomic_analysis": {
            "interaction_type": "question",
            "primary_subject": "CONCEPT",
            "knowledge_category": "DEFINITION",
            "application_context": "GLOBAL",
            "certainty_level": "ALTA",
        },
        "knowledge": {"store": False, "entries": []},
    }
    payload.update(overrides)
    return payload


class TestClassifierInit:
    def test_default_model(self, mock_client: AsyncMock):
        assert TaxonomyClassifier(mock_client).model == "llama-3.3-70b-versatile"

    def test_custom_model(self, mock_client: AsyncMock):
        classifier = TaxonomyClassifier(mock_client, ClassifierConfig(model="custom"))
        assert classifier.model == "custom"


class TestClassify:
    """Tests for the classify method."""

    @pytest.mark.asyncio
    async def test_valid_response(
        self, classifier: TaxonomyClassifier, mock_client: AsyncMock
    ):
        mock_client.chat.completions.create = AsyncMock(
            return_value=make_response(json.dumps(make_payload()))
        )

        result = await classifier.classify("o que é python?")

        assert result.success
        assert result.data is not None
        assert result.data.keywords == ["python", "linguagem"]
        assert result.data.classification == "global"
        assert result.data.analysis.interaction_type == "question"
        assert result.data.analysis.primary_subject == "CONCEPT"
        assert result.data.knowledge.store is False

    @pytest.mark.asyncio
    async def test_request_uses_json_mode_and_sender(
        self, classifier: TaxonomyClassifier, mock_client: AsyncMock
    ):
        mock_client.chat.completions.create = AsyncMock(
            return_value=make_response(json.dumps(make_payload()))
        )

        await classifier.classify("olá", SenderInfo(id="42", name="Ana"))

        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["model"] == "llama-3.3-70b-versatile"
        assert kwargs["messages"][1] == {"role": "user", "content": "olá"}
        assert "42" in kwargs["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_code_fence_stripped(
        self, classifier: TaxonomyClassifier, mock_client: AsyncMock
    ):
        content = "```json\n" + json.dumps(make_payload()) + "\n```"
        mock_client.chat.completions.create = AsyncMock(
            return_value=make_response(content)
        )

        result = await classifier.classify("o que é python?")

        assert result.success

    @pytest.mark.asyncio
    async def test_invalid_json_is_malformed(
        self, classifier: TaxonomyClassifier, mock_client: AsyncMock
    ):
        mock_client.chat.completions.create = AsyncMock(
            return_value=make_response("not json")
        )

        result = await classifier.classify("olá")

        assert not result.success
        assert result.error == ClassificationError.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    async def test_json_array_is_malformed(
        self, classifier: TaxonomyClassifier, mock_client: AsyncMock
    ):
        mock_client.chat.completions.create = AsyncMock(
            return_value=make_response("[1, 2]")
        )

        result = await classifier.classify("olá")

        assert result.error == ClassificationError.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "field", ["keywords", "answer_text", "classification", "taxonomic_analysis"]
    )
    async def test_missing_field_is_malformed(
        self, classifier: TaxonomyClassifier, mock_client: AsyncMock, field: str
    ):
        payload = make_payload()
        del payload[field]
        mock_client.chat.completions.create = AsyncMock(
            return_value=make_response(json.dumps(payload))
        )

        result = await classifier.classify("olá")

        assert not result.success
        assert result.error == ClassificationError.MALFORMED_RESPONSE
        assert field in (result.error_message or "")

    @pytest.mark.asyncio
    async def test_empty_keywords_accepted(
        self, classifier: TaxonomyClassifier, mock_client: AsyncMock
    ):
        """Greetings often come back without keywords."""
        mock_client.chat.completions.create = AsyncMock(
            return_value=make_response(
                json.dumps(make_payload(keywords=[], answer_text="Olá!"))
            )
        )

        result = await classifier.classify("oi")

        assert result.success
        assert result.data is not None
        assert result.data.keywords == []
        assert result.data.answer_text == "Olá!"

    @pytest.mark.asyncio
    async def test_empty_analysis_accepted(
        self, classifier: TaxonomyClassifier, mock_client: AsyncMock
    ):
        mock_client.chat.completions.create = AsyncMock(
            return_value=make_response(json.dumps(make_payload(taxonomic_analysis={})))
        )

        result = await classifier.classify("oi")

        assert result.success
        assert result.data is not None
        assert result.data.analysis.interaction_type is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["answer_text", "classification"])
    async def test_empty_answer_or_classification_is_malformed(
        self, classifier: TaxonomyClassifier, mock_client: AsyncMock, field: str
    ):
        mock_client.chat.completions.create = AsyncMock(
            return_value=make_response(json.dumps(make_payload(**{field: ""})))
        )

        result = await classifier.classify("olá")

        assert result.error == ClassificationError.MALFORMED_RESPONSE
        assert field in (result.error_message or "")

    @pytest.mark.asyncio
    async def test_service_error(
        self, classifier: TaxonomyClassifier, mock_client: AsyncMock
    ):
        mock_client.chat.completions.create = AsyncMock(
            side_effect=APIConnectionError(request=Mock())
        )

        result = await classifier.classify("olá")

        assert not result.success
        assert result.error == ClassificationError.SERVICE_ERROR


class TestLearningCommands:
    """Learning commands make the knowledge storable."""

    @pytest.mark.asyncio
    async def test_empty_entries_use_fallback(
        self, classifier: TaxonomyClassifier, mock_client: AsyncMock
    ):
        mock_client.chat.completions.create = AsyncMock(
            return_value=make_response(json.dumps(make_payload()))
        )

        result = await classifier.classify(
            "/aprender meu nome é Ana", SenderInfo(id="user-1")
        )

        assert result.data is not None
        knowledge = result.data.knowledge
        assert knowledge.store is True
        assert len(knowledge.entries) == 1
        entry = knowledge.entries[0]
        assert entry["kind"] == EntryKind.IDENTITY
        assert entry["subject"]["value"] == "user-1"
        assert entry["predicate"]["value"] == "Ana"

    @pytest.mark.asyncio
    async def test_entries_forced_to_high_certainty(
        self, classifier: TaxonomyClassifier, mock_client: AsyncMock
    ):
        entries = [
            {
                "kind": "definition",
                "subject": {"type": "CONCEPT", "value": "API"},
                "predicate": {"type": "significado", "value": "interface"},
                "context": {"certainty": "MÉDIA"},
            },
            {
                "kind": "definition",
                "subject": {"type": "CONCEPT", "value": "SDK"},
                "predicate": {"type": "significado", "value": "kit"},
            },
        ]
        payload = make_payload(knowledge={"store": False, "entries": entries})
        mock_client.chat.completions.create = AsyncMock(
            return_value=make_response(json.dumps(payload))
        )

        result = await classifier.classify("/aprender API significa interface")

        assert result.data is not None
        assert result.data.knowledge.store is True
        certainties = [e["context"]["certainty"] for e in result.data.knowledge.entries]
        assert certainties == ["ALTA", "ALTA"]

    @pytest.mark.asyncio
    async def test_plain_message_not_forced(
        self, classifier: TaxonomyClassifier, mock_client: AsyncMock
    ):
        mock_client.chat.completions.create = AsyncMock(
            return_value=make_response(json.dumps(make_payload()))
        )

        result = await classifier.classify("meu nome é Ana")

        assert result.data is not None
        assert result.data.knowledge.store is False
        assert result.data.knowledge.entries == []
