"""Tests for the provider client and the section parser."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from blockcanvas.errors import ProviderError
from blockcanvas.llm.client import LLMClient, LLMConfig
from blockcanvas.llm.parser import PATTERN_MATCHING, SectionParser
from blockcanvas.llm.vocabulary import DEFAULT_BLOCKS, SECTION_IDS


def provider_answer() -> dict:
    return {
        "sections": [
            {
                "id": "power",
                "name": "Power Supply",
                "blocks": ["Li-ion Battery", "Charger IC"],
                "blockSpecs": {"Li-ion Battery": "3.7V 2000mAh"},
                "details": "Battery powered.",
            },
            {"id": "inputs", "name": "Inputs Block", "blocks": ["Camera"]},
            {"id": "control", "name": "Control and Processing Block", "blocks": ["ESP32"]},
            {"id": "outputs", "name": "Outputs Block", "blocks": []},
            {"id": "peripherals", "name": "Other Peripherals", "blocks": ["WiFi"]},
        ],
        "solution": "A battery powered camera doorbell.",
    }


def mock_client(**kwargs) -> MagicMock:
    client = MagicMock(spec=LLMClient)
    client.is_available.return_value = True
    client.extract_sections_async = AsyncMock(**kwargs)
    return client


class TestLLMConfig:
    """Tests for LLM configuration."""

    def test_default_config(self):
        """Test default configuration values."""
        config = LLMConfig()

        assert config.provider == "anthropic"
        assert config.max_tokens == 2048
        assert config.temperature == 0.3

    def test_provider_id(self):
        """The provider id is recorded as generatedBy."""
        assert LLMConfig(provider="openai").provider_id == "openai-api"


class TestParseJsonResponse:
    """Tests for recovering JSON from provider text."""

    def setup_method(self):
        self.client = LLMClient(LLMConfig(api_key="test-key"))

    def test_plain_json(self):
        assert self.client._parse_json_response('{"sections": []}') == {"sections": []}

    def test_fenced_json(self):
        """Code fences are stripped."""
        text = 'Here you go:\n```json\n{"solution": "x"}\n```'

        assert self.client._parse_json_response(text) == {"solution": "x"}

    def test_trailing_text_dropped(self):
        """Anything after the last closing brace is ignored."""
        text = '{"solution": "x"} Let me know if you need more.'

        assert self.client._parse_json_response(text) == {"solution": "x"}

    def test_leading_text_skipped(self):
        """Text before the first brace is skipped."""
        text = 'Sure! {"solution": "x"}'

        assert self.client._parse_json_response(text) == {"solution": "x"}

    def test_invalid_json_raises_with_snippet(self):
        """Unrecoverable text raises ProviderError carrying a snippet."""
        text = "not json at all " * 100

        with pytest.raises(ProviderError) as exc_info:
            self.client._parse_json_response(text)

        assert exc_info.value.response_snippet == text[:500]

    def test_non_object_raises(self):
        """A JSON array is not an acceptable answer."""
        with pytest.raises(ProviderError):
            self.client._parse_json_response("[1, 2, 3]")

    def test_empty_raises(self):
        with pytest.raises(ProviderError):
            self.client._parse_json_response("")


class TestExtractSections:
    """Tests for the provider call."""

    def setup_method(self):
        self.client = LLMClient(LLMConfig(api_key="test-key"))
        self.client._async_client = MagicMock()

    def test_answer_parsed(self):
        message = MagicMock()
        message.content = [MagicMock(text='```json\n{"solution": "x"}\n```')]
        self.client._async_client.messages.create = AsyncMock(return_value=message)

        assert asyncio.run(self.client.extract_sections_async("doorbell")) == {"solution": "x"}

    def test_sdk_error_wrapped(self):
        self.client._async_client.messages.create = AsyncMock(side_effect=RuntimeError("503"))

        with pytest.raises(ProviderError):
            asyncio.run(self.client.extract_sections_async("doorbell"))


class TestSectionParser:
    """Tests for provider parsing and fallback."""

    def test_llm_disabled_uses_fallback(self, doorbell_description):
        """With the provider off, pattern matching runs."""
        parser = SectionParser(use_llm=False)

        result = asyncio.run(parser.parse(doorbell_description))

        assert result.generated_by == PATTERN_MATCHING
        assert not result.used_llm

    def test_provider_answer_used(self):
        """A valid provider answer becomes the section drafts."""
        parser = SectionParser(llm_client=mock_client(return_value=provider_answer()))

        result = asyncio.run(parser.parse("camera doorbell"))

        assert result.used_llm
        assert result.generated_by == "anthropic-api"
        assert result.solution == "A battery powered camera doorbell."
        power = result.sections[0]
        assert power["blocks"] == ["Li-ion Battery", "Charger IC"]
        assert power["blockSpecs"] == {"Li-ion Battery": "3.7V 2000mAh"}

    def test_provider_answer_normalized(self):
        """Empty sections get defaults, missing fields get canned text."""
        parser = SectionParser(llm_client=mock_client(return_value=provider_answer()))

        result = asyncio.run(parser.parse("camera doorbell"))

        assert [section["id"] for section in result.sections] == list(SECTION_IDS)
        outputs = result.sections[3]
        assert outputs["blocks"] == [DEFAULT_BLOCKS["outputs"]]
        assert outputs["details"]

    def test_missing_sections_filled(self):
        """Sections the provider left out are synthesized."""
        answer = {"sections": [{"id": "control", "blocks": ["STM32"]}]}
        parser = SectionParser(llm_client=mock_client(return_value=answer))

        result = asyncio.run(parser.parse("motor controller"))

        assert [section["id"] for section in result.sections] == list(SECTION_IDS)
        assert result.sections[2]["blocks"] == ["STM32"]
        assert result.sections[0]["blocks"] == [DEFAULT_BLOCKS["power"]]

    def test_provider_error_falls_back(self, doorbell_description, caplog):
        """Invalid JSON from the provider falls back and logs a warning."""
        error = ProviderError("Invalid JSON from provider", response_snippet="garbage")
        parser = SectionParser(llm_client=mock_client(side_effect=error))

        with caplog.at_level("WARNING"):
            result = asyncio.run(parser.parse(doorbell_description))

        assert result.generated_by == PATTERN_MATCHING
        assert "garbage" in caplog.text
        assert "doorbell" in caplog.text

    def test_schema_mismatch_falls_back(self):
        """An answer that is JSON but not the schema falls back."""
        parser = SectionParser(llm_client=mock_client(return_value={"sections": "nope"}))

        result = asyncio.run(parser.parse("camera"))

        assert result.generated_by == PATTERN_MATCHING

    def test_unknown_section_ids_fall_back(self):
        """An answer with none of the fixed sections falls back."""
        answer = {"sections": [{"id": "misc", "blocks": ["Thing"]}]}
        parser = SectionParser(llm_client=mock_client(return_value=answer))

        result = asyncio.run(parser.parse("camera"))

        assert result.generated_by == PATTERN_MATCHING

    def test_timeout_falls_back(self):
        """A provider slower than the timeout falls back."""
        async def slow(description):
            await asyncio.sleep(5)

        parser = SectionParser(
            llm_config=LLMConfig(timeout=0.01),
            llm_client=mock_client(side_effect=slow),
        )

        result = asyncio.run(parser.parse("camera"))

        assert result.generated_by == PATTERN_MATCHING

    def test_unexpected_error_falls_back(self):
        """Any other provider failure falls back too."""
        parser = SectionParser(llm_client=mock_client(side_effect=RuntimeError("boom")))

        result = asyncio.run(parser.parse("camera"))

        assert result.generated_by == PATTERN_MATCHING

    def test_unavailable_provider_skipped(self):
        """A client without a key is never called."""
        client = mock_client(return_value=provider_answer())
        client.is_available.return_value = False
        parser = SectionParser(llm_client=client)

        result = asyncio.run(parser.parse("camera"))

        assert result.generated_by == PATTERN_MATCHING
        client.extract_sections_async.assert_not_called()
