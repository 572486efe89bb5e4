"""Provider integration and keyword fallback for section extraction."""

from blockcanvas.llm.client import LLMClient, LLMConfig
from blockcanvas.llm.parser import SectionParser, ParsedSections
from blockcanvas.llm.fallback import CategoryClassifier, ComponentExtractor, FallbackParser

__all__ = [
    "LLMClient",
    "LLMConfig",
    "SectionParser",
    "ParsedSections",
    "CategoryClassifier",
    "ComponentExtractor",
    "FallbackParser",
]
