"""Generation pipeline: description → sections → layout → Diagram."""

import logging
from datetime import datetime

from blockcanvas.errors import InputValidationError
from blockcanvas.llm.parser import ParsedSections, SectionParser
from blockcanvas.llm.vocabulary import DEFAULT_CONNECTIONS

from .diagram import Connection, Diagram, DiagramMetadata, Section
from .layout_engine import LayoutEngine

logger = logging.getLogger(__name__)


def default_connections() -> list[Connection]:
    """The six section-level edges every generated diagram starts with."""
    return [
        Connection(id=conn_id, source=source, target=target, label=label)
        for conn_id, source, target, label in DEFAULT_CONNECTIONS
    ]


class DiagramGenerator:
    """Builds a Diagram from a free-text product description.

    The provider is optional; without one, or when it fails, the
    keyword fallback produces the sections.
    """

    def __init__(
        self,
        parser: SectionParser | None = None,
        layout_engine: LayoutEngine | None = None,
    ):
        self.parser = parser or SectionParser(use_llm=False)
        self.layout_engine = layout_engine or LayoutEngine()

    async def generate(self, description: str) -> Diagram:
        """Generate a diagram, trying the provider first.

        Raises:
            InputValidationError: If the description is empty.
        """
        description = self._validate(description)
        parsed = await self.parser.parse(description)
        return self.build(description, parsed)

    def generate_with_pattern_matching(self, description: str) -> Diagram:
        """Generate a diagram without the provider.

        Raises:
            InputValidationError: If the description is empty.
        """
        description = self._validate(description)
        return self.build(description, self.parser.parse_with_fallback(description))

    def build(self, description: str, parsed: ParsedSections) -> Diagram:
        """Lay out parsed sections and assemble the diagram."""
        blocks = self.layout_engine.layout(parsed.sections)

        diagram = Diagram(
            description=description,
            sections=[
                Section(
                    id=draft["id"],
                    name=draft["name"],
                    blocks=list(draft["blocks"]),
                    details=draft["details"],
                )
                for draft in parsed.sections
            ],
            blocks=blocks,
            connections=default_connections(),
            annotations=[],
            metadata=DiagramMetadata(
                original_description=description,
                generated_at=datetime.utcnow().isoformat() + "Z",
                generated_by=parsed.generated_by,
                solution=parsed.solution,
            ),
        )

        logger.info(
            f"Generated diagram {diagram.id} via {parsed.generated_by}: "
            f"{len(diagram.blocks)} blocks across {len(diagram.sections)} sections"
        )
        return diagram

    @staticmethod
    def _validate(description: str | None) -> str:
        if not isinstance(description, str) or not description.strip():
            raise InputValidationError("Description is required")
        return description
