"""Tests for the classifier system prompt."""

from marvin.taxonomy import (
    LEARNING_PREFIX,
    SenderInfo,
    build_system_prompt,
    is_learning_command,
    strip_learning_prefix,
)


class TestLearningCommand:
    def test_prefix_detected(self):
        assert is_learning_command("/aprender meu nome é Ana")

    def test_plain_message_not_learning(self):
        assert not is_learning_command("qual é meu nome")

    def test_prefix_must_be_at_start(self):
        assert not is_learning_command("por favor /aprender isso")

    def test_prefix_requires_trailing_space(self):
        assert not is_learning_command("/aprendermeu nome é Ana")

    def test_strip_prefix(self):
        assert strip_learning_prefix("/aprender  meu nome é Ana ") == "meu nome é Ana"

    def test_strip_leaves_other_text_unchanged(self):
        assert strip_learning_prefix(" qual é meu nome ") == " qual é meu nome "


class TestBuildSystemPrompt:
    def test_base_prompt_describes_json_fields(self):
        prompt = build_system_prompt("olá")
        for name in ("keywords", "answer_text", "taxonomic_analysis", "knowledge"):
            assert name in prompt

    def test_sender_name_and_id_included(self):
        prompt = build_system_prompt("olá", SenderInfo(id="42", name="Ana"))
        assert "Ana" in prompt
        assert "42" in prompt

    def test_no_sender_lines_without_sender(self):
        with_sender = build_system_prompt("olá", SenderInfo(id="42", name="Ana"))
        without = build_system_prompt("olá")
        assert len(without) < len(with_sender)

    def test_learning_directive_added_for_learning_command(self):
        message = f"{LEARNING_PREFIX}Python é uma linguagem"
        prompt = build_system_prompt(message)
        assert "comando de aprendizado" in prompt
        assert message in prompt

    def test_no_learning_directive_for_plain_message(self):
        assert "comando de aprendizado" not in build_system_prompt("olá")
