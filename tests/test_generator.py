"""Tests for answer parsing and the response generator."""

import json

import pytest
from unittest.mock import AsyncMock

from callpipe.errors import GenerationError
from callpipe.pipeline.generator import (
    PipelineResult,
    ResponseGenerator,
    StructuredAnswer,
    UnstructuredAnswer,
    parse_answer,
    truncate,
)
from callpipe.pipeline.prompts import PROFILES, get_profile
from callpipe.providers.base import BaseLLM


class FakeLLM(BaseLLM):

    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def complete(self, messages):
        self.calls.append(messages)
        if self.error:
            raise self.error
        return self.reply

    @property
    def model(self):
        return "fake-model"


class TestTruncate:

    def test_short_text_untouched(self):
        assert truncate("hello", 120) == "hello"

    def test_exact_limit_untouched(self):
        assert truncate("x" * 120, 120) == "x" * 120

    def test_long_text_cut_with_ellipsis(self):
        assert truncate("x" * 121, 120) == "x" * 120 + "..."


class TestParseAnswer:

    def test_json_object(self):
        answer = parse_answer(json.dumps({"full_answer": "A", "summary": "B"}))
        assert answer == StructuredAnswer(full_answer="A", summary="B")

    def test_missing_keys_become_empty(self):
        answer = parse_answer(json.dumps({"full_answer": "A"}))
        assert answer == StructuredAnswer(full_answer="A", summary="")

    def test_null_values_become_empty(self):
        answer = parse_answer(json.dumps({"full_answer": None, "summary": None}))
        assert answer == StructuredAnswer(full_answer="", summary="")

    def test_values_are_trimmed(self):
        answer = parse_answer(json.dumps({"full_answer": "  A  ", "summary": "\nB\n"}))
        assert answer == StructuredAnswer(full_answer="A", summary="B")

    def test_custom_keys(self):
        answer = parse_answer(json.dumps({"answer": "A", "short": "B"}), "answer", "short")
        assert answer == StructuredAnswer(full_answer="A", summary="B")

    def test_plain_text(self):
        assert parse_answer("just text") == UnstructuredAnswer(raw="just text")

    @pytest.mark.parametrize("raw", ["[1, 2]", '"a string"', "42"])
    def test_non_object_json_is_unstructured(self, raw):
        assert isinstance(parse_answer(raw), UnstructuredAnswer)


class TestAnswerToResult:

    def test_structured(self):
        assert StructuredAnswer("A", "B").to_result() == PipelineResult("A", "B")

    def test_unstructured_short(self):
        assert UnstructuredAnswer("short").to_result() == PipelineResult("short", "short")

    def test_unstructured_long(self):
        text = "y" * 200
        result = UnstructuredAnswer(text).to_result(120)
        assert result.full_answer == text
        assert result.summary == "y" * 120 + "..."


class TestResponseGenerator:

    @pytest.fixture
    def profile(self):
        return get_profile("sehat-assist-v1")

    def test_build_messages(self, profile):
        generator = ResponseGenerator(FakeLLM(), profile)
        messages = generator.build_messages("mera sar dard kar raha hai")
        assert [m.role for m in messages] == ["system", "user"]
        assert messages[0].content == profile.system_prompt
        assert messages[1].content == "mera sar dard kar raha hai"

    @pytest.mark.asyncio
    async def test_structured_reply(self, profile):
        llm = FakeLLM(json.dumps({"full_answer": "A", "summary": "B"}))
        result = await ResponseGenerator(llm, profile).generate("question")
        assert result == PipelineResult("A", "B")
        assert len(llm.calls) == 1

    @pytest.mark.asyncio
    async def test_reply_with_surrounding_whitespace(self, profile):
        llm = FakeLLM('\n  {"full_answer": "A", "summary": "B"}  \n')
        result = await ResponseGenerator(llm, profile).generate("question")
        assert result == PipelineResult("A", "B")

    @pytest.mark.asyncio
    async def test_plain_text_reply_truncated(self, profile):
        text = "z" * 200
        result = await ResponseGenerator(FakeLLM(text), profile).generate("question")
        assert result.full_answer == text
        assert result.summary == "z" * 120 + "..."

    @pytest.mark.asyncio
    async def test_summary_budget_is_configurable(self, profile):
        result = await ResponseGenerator(FakeLLM("abcdefghij"), profile, summary_chars=4).generate("q")
        assert result.summary == "abcd..."

    @pytest.mark.asyncio
    async def test_none_reply(self, profile):
        llm = FakeLLM()
        llm.complete = AsyncMock(return_value=None)
        result = await ResponseGenerator(llm, profile).generate("q")
        assert result == PipelineResult("", "")

    @pytest.mark.asyncio
    async def test_provider_failure_propagates(self, profile):
        llm = FakeLLM(error=GenerationError("rate limited"))
        with pytest.raises(GenerationError):
            await ResponseGenerator(llm, profile).generate("q")

    @pytest.mark.asyncio
    async def test_plain_profile_keys(self):
        llm = FakeLLM(json.dumps({"answer": "A", "short": "B"}))
        result = await ResponseGenerator(llm, get_profile("plain-v1")).generate("q")
        assert result == PipelineResult("A", "B")


class TestProfiles:

    def test_builtin_profiles(self):
        assert set(PROFILES) == {"sehat-assist-v1", "plain-v1"}

    def test_unknown_profile(self):
        with pytest.raises(ValueError, match="Unknown prompt profile"):
            get_profile("nope")

    def test_sehat_prompt_asks_for_json_keys(self):
        prompt = get_profile("sehat-assist-v1").system_prompt
        assert "full_answer" in prompt
        assert "summary" in prompt
