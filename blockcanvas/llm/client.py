"""Provider API client for block diagram extraction."""

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Literal

from blockcanvas.errors import ProviderError
from blockcanvas.llm.prompts import SECTION_EXTRACTION_PROMPT, SECTION_USER_PROMPT

logger = logging.getLogger(__name__)

# Longest slice of a provider answer that goes into logs and errors
SNIPPET_LENGTH = 500


@dataclass
class LLMConfig:
    """Configuration for LLM client."""

    provider: Literal["anthropic", "openai"] = "anthropic"
    model: str = "claude-3-haiku-20240307"
    max_tokens: int = 2048
    temperature: float = 0.3
    timeout: float = 30.0
    api_key: str | None = None

    @property
    def provider_id(self) -> str:
        """Value recorded as ``generatedBy`` for provider-built diagrams."""
        return f"{self.provider}-api"


class LLMClient:
    """Client for interacting with LLM APIs.

    Supports Anthropic Claude and OpenAI GPT models.
    Only used to categorize components, never to lay them out.
    """

    def __init__(self, config: LLMConfig | None = None):
        """Initialize LLM client.

        Args:
            config: LLM configuration.
        """
        self.config = config or LLMConfig()
        self._async_client = None

    @property
    def async_client(self):
        """Lazy-load the async API client."""
        if self._async_client is None:
            self._async_client = self._create_client()
        return self._async_client

    def _api_key(self, env_var: str) -> str:
        api_key = self.config.api_key or os.getenv(env_var)
        if not api_key:
            raise ValueError(f"{env_var} not set")
        return api_key

    def _create_client(self):
        """Create the async client for the configured provider."""
        if self.config.provider == "anthropic":
            try:
                from anthropic import AsyncAnthropic
            except ImportError:
                raise ImportError("anthropic package not installed. Run: pip install anthropic")
            return AsyncAnthropic(api_key=self._api_key("ANTHROPIC_API_KEY"), timeout=self.config.timeout)

        elif self.config.provider == "openai":
            try:
                from openai import AsyncOpenAI
            except ImportError:
                raise ImportError("openai package not installed. Run: pip install openai")
            return AsyncOpenAI(api_key=self._api_key("OPENAI_API_KEY"), timeout=self.config.timeout)

        raise ValueError(f"Unknown provider: {self.config.provider}")

    async def extract_sections_async(self, description: str) -> dict[str, Any]:
        """Ask the provider for the five-section breakdown of a product.

        Args:
            description: Natural language product description.

        Returns:
            Parsed JSON object from the provider.

        Raises:
            ProviderError: If the call fails or the answer is not JSON.
        """
        try:
            response = await self._call_api_async(
                system_prompt=SECTION_EXTRACTION_PROMPT,
                user_prompt=SECTION_USER_PROMPT.format(description=description),
            )
        except (ImportError, ValueError):
            raise
        except Exception as e:
            raise ProviderError(f"{self.config.provider} request failed: {e}") from e

        return self._parse_json_response(response)

    async def _call_api_async(
        self,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        if self.config.provider == "anthropic":
            response = await self.async_client.messages.create(
                model=self.config.model,
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
                system=system_prompt,
                messages=[
                    {"role": "user", "content": user_prompt}
                ],
            )
            return response.content[0].text

        elif self.config.provider == "openai":
            response = await self.async_client.chat.completions.create(
                model=self.config.model,
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
            return response.choices[0].message.content

        raise ValueError(f"Unknown provider: {self.config.provider}")

    def _parse_json_response(self, response: str | None) -> dict[str, Any]:
        """Parse JSON from LLM response.

        Args:
            response: Raw response text.

        Returns:
            Parsed JSON object.

        Raises:
            ProviderError: If no JSON object can be recovered.
        """
        if not response:
            raise ProviderError("Empty response from provider")

        text = response.strip()

        # Strip code fences
        if "```json" in text:
            start = text.find("```json") + 7
            end = text.find("```", start)
            text = text[start:end].strip() if end > start else text[start:].strip()
        elif text.startswith("```"):
            start = 3
            end = text.find("```", start)
            text = text[start:end].strip() if end > start else text[start:].strip()

        # Drop anything trailing the last closing brace
        last_brace = text.rfind("}")
        if last_brace != -1:
            text = text[:last_brace + 1]

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            # Try to find JSON object boundaries
            start = text.find("{")
            try:
                parsed = json.loads(text[start:]) if start > 0 else None
            except json.JSONDecodeError:
                parsed = None
            if parsed is None:
                raise ProviderError(
                    "Invalid JSON from provider",
                    response_snippet=response[:SNIPPET_LENGTH],
                )

        if not isinstance(parsed, dict):
            raise ProviderError(
                "Provider response is not a JSON object",
                response_snippet=response[:SNIPPET_LENGTH],
            )
        return parsed

    def is_available(self) -> bool:
        """Check if LLM client is available.

        Returns:
            True if API key is set and client can be created.
        """
        try:
            _ = self.async_client
            return True
        except (ImportError, ValueError):
            return False
