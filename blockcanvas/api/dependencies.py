"""FastAPI dependencies for diagram generation and storage."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from blockcanvas.api.config import Settings, get_settings
from blockcanvas.db.base import get_db
from blockcanvas.db.repository import DiagramRepository
from blockcanvas.engine.generator import DiagramGenerator
from blockcanvas.llm.client import LLMConfig
from blockcanvas.llm.parser import SectionParser


def build_parser(settings: Settings) -> SectionParser:
    """Section parser for the configured provider.

    Without a key, or with USE_LLM off, only pattern matching runs.
    """
    if not (settings.use_llm and settings.has_provider_key):
        return SectionParser(use_llm=False)

    return SectionParser(
        llm_config=LLMConfig(
            provider=settings.llm_provider,
            model=settings.default_model,
            max_tokens=settings.max_tokens,
            timeout=settings.provider_timeout_seconds,
            api_key=settings.provider_api_key,
        ),
        use_llm=True,
    )


def get_generator(settings: Settings = Depends(get_settings)) -> DiagramGenerator:
    """Diagram generator wired to the configured provider."""
    return DiagramGenerator(parser=build_parser(settings))


def get_repository(db: Session = Depends(get_db)) -> DiagramRepository:
    """Repository bound to the request's session."""
    return DiagramRepository(db)


# Type aliases for cleaner dependency injection
GeneratorDep = Annotated[DiagramGenerator, Depends(get_generator)]
RepositoryDep = Annotated[DiagramRepository, Depends(get_repository)]
