from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from document_feedback.ai.generator import AIFeedbackGenerator
from document_feedback.ai.parser import (
    AI_ID_PREFIX,
    AIFeedbackEntry,
    extract_json,
    parse_ai_feedback,
)
from document_feedback.config import FeedbackConfig
from document_feedback.feedback.exceptions import AIFeedbackParseError, ValidationError
from document_feedback.feedback.models import AutomatedAuthor, FeedbackStatus, FeedbackType

PAYLOAD = '[{"text": "Consider shortening", "selectedText": "para 2", "type": "comment"}]'


class TestExtractJson:
    def test_fenced_json_block(self):
        raw = f"Here you go:\n```json\n{PAYLOAD}\n```\nHope it helps."

        assert extract_json(raw)[0]["selectedText"] == "para 2"

    def test_untagged_fence(self):
        raw = f"```\n{PAYLOAD}\n```"

        assert extract_json(raw)[0]["type"] == "comment"

    def test_bare_array_inside_prose(self):
        raw = f"Feedback: {PAYLOAD} -- end"

        assert len(extract_json(raw)) == 1

    def test_object(self):
        raw = 'Result {"feedback": []}'

        assert extract_json(raw) == {"feedback": []}

    def test_empty_response(self):
        with pytest.raises(AIFeedbackParseError):
            extract_json("   ")

    def test_malformed_json(self):
        with pytest.raises(AIFeedbackParseError):
            extract_json("```json\n[{\"text\": }]\n```")


class TestParseAIFeedback:
    def test_builds_ai_items(self):
        (item,) = parse_ai_feedback(PAYLOAD, "v1")

        assert item.id.startswith(AI_ID_PREFIX)
        assert item.author == AutomatedAuthor()
        assert item.is_automated
        assert item.type == FeedbackType.COMMENT
        assert item.status == FeedbackStatus.ACTIVE
        assert item.document_version_id == "v1"
        assert item.selected_text == "para 2"

    def test_accepts_wrapped_list(self):
        raw = (
            '{"feedback": [{"text": "Clearer", "selectedText": "Unclear", '
            '"type": "suggestion"}]}'
        )

        (item,) = parse_ai_feedback(raw, "v1")

        assert item.type == FeedbackType.SUGGESTION

    def test_ids_are_unique(self):
        raw = f"[{PAYLOAD[1:-1]}, {PAYLOAD[1:-1]}]"

        first, second = parse_ai_feedback(raw, "v1")

        assert first.id != second.id

    @pytest.mark.parametrize(
        "raw",
        [
            '[{"text": "x", "selectedText": "y", "type": "praise"}]',
            '[{"text": "x", "type": "comment"}]',
            '[{"text": "", "selectedText": "y", "type": "comment"}]',
            '{"items": []}',
        ],
    )
    def test_schema_failures(self, raw):
        with pytest.raises(AIFeedbackParseError):
            parse_ai_feedback(raw, "v1")


class TestAIFeedbackGenerator:
    @staticmethod
    def _client(content):
        client = MagicMock()
        message = SimpleNamespace(content=content)
        client.chat.completions.create = AsyncMock(
            return_value=SimpleNamespace(choices=[SimpleNamespace(message=message)])
        )
        return client

    @pytest.mark.asyncio
    async def test_generate_parses_response(self):
        client = self._client(f"```json\n{PAYLOAD}\n```")
        generator = AIFeedbackGenerator(FeedbackConfig(ai_model="test-model"), client=client)

        items = await generator.generate("My essay mentions para 2.", "v1")

        assert [i.text for i in items] == ["Consider shortening"]
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert "para 2" in kwargs["messages"][-1]["content"]

    @pytest.mark.asyncio
    async def test_empty_document_is_rejected(self):
        client = self._client(PAYLOAD)
        generator = AIFeedbackGenerator(client=client)

        with pytest.raises(ValidationError):
            await generator.generate("  ", "v1")

        client.chat.completions.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_unparseable_answer(self):
        generator = AIFeedbackGenerator(client=self._client("I cannot help with that."))

        with pytest.raises(AIFeedbackParseError):
            await generator.generate("Some essay", "v1")


def test_entry_accepts_field_names():
    entry = AIFeedbackEntry(text="Clearer", selected_text="Unclear", type="suggestion")

    assert entry.selected_text == "Unclear"
    assert entry.type == FeedbackType.SUGGESTION
