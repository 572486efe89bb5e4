"""Section parser using the provider with a pattern-matching fallback."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from blockcanvas.errors import ProviderError
from blockcanvas.llm.client import SNIPPET_LENGTH, LLMClient, LLMConfig
from blockcanvas.llm.fallback import FallbackParser
from blockcanvas.llm.vocabulary import (
    DEFAULT_BLOCKS,
    DEFAULT_DETAILS,
    DEFAULT_SOLUTION,
    SECTION_IDS,
    SECTION_NAMES,
)

logger = logging.getLogger(__name__)

PATTERN_MATCHING = "pattern-matching"


class ProviderSection(BaseModel):
    """One section as returned by the provider."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str | None = None
    blocks: list[str] = Field(default_factory=list)
    block_specs: dict[str, str] = Field(default_factory=dict, alias="blockSpecs")
    details: str | None = None


class ProviderResult(BaseModel):
    """Top-level provider answer."""

    sections: list[ProviderSection]
    solution: str | None = None


@dataclass
class ParsedSections:
    """Five section drafts ready for layout."""

    # Drafts in fixed order: {id, name, blocks, blockSpecs, details}
    sections: list[dict[str, Any]]

    # Narrative of how the blocks work together
    solution: str

    # "pattern-matching" or the provider id
    generated_by: str = PATTERN_MATCHING

    # Whether the provider answer was used
    used_llm: bool = False


class SectionParser:
    """Parse product descriptions into the five diagram sections.

    Uses the provider when configured, falls back to keyword-based
    parsing otherwise or whenever the provider misbehaves.
    """

    def __init__(
        self,
        llm_config: LLMConfig | None = None,
        use_llm: bool = True,
        llm_client: LLMClient | None = None,
    ):
        """Initialize section parser.

        Args:
            llm_config: Configuration for LLM client.
            use_llm: Whether to use LLM (vs fallback only).
            llm_client: Pre-built client, mainly for tests.
        """
        self.llm_config = llm_config or LLMConfig()
        self.use_llm = use_llm

        self._llm_client = llm_client
        self._fallback_parser = FallbackParser()

    @property
    def llm_client(self) -> LLMClient:
        """Get or create LLM client."""
        if self._llm_client is None:
            self._llm_client = LLMClient(self.llm_config)
        return self._llm_client

    def is_llm_available(self) -> bool:
        """Check if LLM is available.

        Returns:
            True if LLM can be used.
        """
        if not self.use_llm:
            return False
        return self.llm_client.is_available()

    async def parse(self, description: str) -> ParsedSections:
        """Parse a description, preferring the provider.

        Provider failures, timeouts and malformed answers are logged and
        recovered by the fallback parser; they never propagate.
        """
        if self.is_llm_available():
            try:
                raw = await asyncio.wait_for(
                    self.llm_client.extract_sections_async(description),
                    timeout=self.llm_config.timeout,
                )
                return self._from_provider(raw)
            except ProviderError as e:
                self._log_fallback(description, e.message, e.response_snippet)
            except asyncio.TimeoutError:
                self._log_fallback(
                    description, f"timed out after {self.llm_config.timeout}s", None
                )
            except ValidationError as e:
                self._log_fallback(
                    description, f"malformed sections: {e.error_count()} error(s)", None
                )
            except Exception as e:
                self._log_fallback(description, f"{type(e).__name__}: {e}", None)

        return self.parse_with_fallback(description)

    def parse_with_fallback(self, description: str) -> ParsedSections:
        """Parse using fallback keyword-based parser.

        Args:
            description: Product description.

        Returns:
            ParsedSections from pattern matching.
        """
        result = self._fallback_parser.parse(description)

        return ParsedSections(
            sections=result["sections"],
            solution=result["solution"],
            generated_by=PATTERN_MATCHING,
            used_llm=False,
        )

    def _from_provider(self, raw: dict[str, Any]) -> ParsedSections:
        """Normalize a provider answer onto the fixed five sections.

        Raises:
            ValidationError: If the answer does not match the schema.
            ProviderError: If none of the fixed sections is present.
        """
        result = ProviderResult.model_validate(raw)

        by_id: dict[str, ProviderSection] = {}
        for section in result.sections:
            if section.id in SECTION_IDS and section.id not in by_id:
                by_id[section.id] = section

        if not by_id:
            raise ProviderError(
                "Provider response has none of the expected sections",
                response_snippet=str(raw)[:SNIPPET_LENGTH],
            )

        drafts = []
        for section_id in SECTION_IDS:
            section = by_id.get(section_id)
            blocks = [name.strip() for name in section.blocks if name.strip()] if section else []
            drafts.append({
                "id": section_id,
                "name": (section.name if section and section.name else SECTION_NAMES[section_id]),
                "blocks": blocks or [DEFAULT_BLOCKS[section_id]],
                "blockSpecs": dict(section.block_specs) if section else {},
                "details": (section.details if section and section.details else DEFAULT_DETAILS[section_id]),
            })

        return ParsedSections(
            sections=drafts,
            solution=result.solution or DEFAULT_SOLUTION,
            generated_by=self.llm_config.provider_id,
            used_llm=True,
        )

    def _log_fallback(self, description: str, reason: str, snippet: str | None) -> None:
        logger.warning(
            f"Provider {self.llm_config.provider} failed, falling back to pattern matching: {reason}"
            f" | description={description[:SNIPPET_LENGTH]!r}"
            + (f" | response={snippet!r}" if snippet else "")
        )
