"""Pydantic v2 models for the block diagram.

The Diagram is the aggregate root: five fixed sections, positioned blocks,
connections and free-floating annotations. Field names serialize in
camelCase so the dumped form matches what the canvas client sends back.

Mutation helpers never modify a diagram in place. They return a new,
fully validated Diagram so that a failed edit leaves the original intact.
"""

import json
import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from blockcanvas.llm.vocabulary import SECTION_IDS

logger = logging.getLogger(__name__)

# Longest block name the canvas displays
MAX_BLOCK_NAME_LENGTH = 20

# Collections the update entry point replaces wholesale
UPDATABLE_COLLECTIONS = ("blocks", "connections", "annotations")


def generate_uuid() -> str:
    """Generate a UUID string."""
    return str(uuid4())


def truncate_name(name: str) -> str:
    """Clip a block name to its display length."""
    return name[:MAX_BLOCK_NAME_LENGTH]


class DiagramEntity(BaseModel):
    """Base for every diagram entity."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ============================================================================
# Entities
# ============================================================================


class Section(DiagramEntity):
    """One of the five fixed functional columns."""

    id: str
    name: str
    blocks: list[str] = Field(default_factory=list, description="Block names at generation")
    details: str = ""


class Block(DiagramEntity):
    """A placed, named, sized component belonging to one section."""

    id: str
    section_id: str
    name: str
    x: float = Field(description="Left edge in canvas pixels")
    y: float = Field(description="Top edge in canvas pixels")
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    type: Literal["block"] = "block"
    specification: str = ""

    @property
    def center_x(self) -> float:
        """Horizontal center."""
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        """Vertical center."""
        return self.y + self.height / 2


class Connection(DiagramEntity):
    """Directed labeled edge between two sections or two blocks."""

    id: str
    source: str = Field(alias="from")
    target: str = Field(alias="to")
    label: str = ""


class Annotation(DiagramEntity):
    """Free-floating text note."""

    id: str
    x: float
    y: float
    text: str = Field(min_length=1)
    block_id: str | None = None


class DiagramMetadata(DiagramEntity):
    """Provenance of a generated diagram."""

    original_description: str = ""
    generated_at: str = ""
    generated_by: str = ""
    solution: str = ""


# ============================================================================
# Aggregate root
# ============================================================================


class Diagram(DiagramEntity):
    """A complete block diagram."""

    id: str = Field(default_factory=generate_uuid)
    title: str = "Untitled Diagram"
    description: str = Field(min_length=1)
    sections: list[Section]
    blocks: list[Block] = Field(default_factory=list)
    connections: list[Connection] = Field(default_factory=list)
    annotations: list[Annotation] = Field(default_factory=list)
    metadata: DiagramMetadata = Field(default_factory=DiagramMetadata)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @model_validator(mode="after")
    def _check_invariants(self) -> "Diagram":
        section_ids = [section.id for section in self.sections]
        if section_ids != list(SECTION_IDS):
            raise ValueError(
                f"sections must be exactly {list(SECTION_IDS)} in that order, got {section_ids}"
            )

        # Ids share one space across blocks, connections and annotations
        _require_unique(
            "entity",
            [block.id for block in self.blocks]
            + [conn.id for conn in self.connections]
            + [ann.id for ann in self.annotations],
        )

        for block in self.blocks:
            if block.section_id not in section_ids:
                raise ValueError(
                    f"block {block.id!r} references unknown section {block.section_id!r}"
                )
        return self

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def block_by_id(self, block_id: str) -> Block | None:
        """Find a block by id."""
        return next((block for block in self.blocks if block.id == block_id), None)

    def section_index(self, section_id: str) -> int:
        """Column index of a section, -1 when unknown."""
        try:
            return SECTION_IDS.index(section_id)
        except ValueError:
            return -1

    def blocks_in_section(self, section_id: str) -> list[Block]:
        """Blocks of a section, in diagram order."""
        return [block for block in self.blocks if block.section_id == section_id]

    def connection_is_bound(self, connection: Connection) -> bool:
        """True when both endpoints are blocks of this diagram."""
        return (
            self.block_by_id(connection.source) is not None
            and self.block_by_id(connection.target) is not None
        )

    def bound_connections(self) -> list[tuple[Connection, Block, Block]]:
        """Block-level connections with their resolved endpoints.

        Section-level and mixed connections are skipped.
        """
        blocks = {block.id: block for block in self.blocks}
        resolved = []
        for connection in self.connections:
            source = blocks.get(connection.source)
            target = blocks.get(connection.target)
            if source is not None and target is not None:
                resolved.append((connection, source, target))
        return resolved

    # ------------------------------------------------------------------
    # Mutations (each returns a new Diagram)
    # ------------------------------------------------------------------

    def apply_update(self, update: Mapping[str, Any]) -> "Diagram":
        """Replace whole collections from a partial update payload.

        A collection is taken only when the payload value is a list; its
        elements that are not mappings are dropped. Omitted, null or
        non-list values leave the current collection untouched. A
        non-empty string ``title`` replaces the title.

        Raises:
            pydantic.ValidationError: If a kept element is not a valid entity
                or the result breaks a diagram invariant.
        """
        data = self.to_dict()
        changed = False

        for collection in UPDATABLE_COLLECTIONS:
            entries = filter_update_entries(update.get(collection))
            if entries is None:
                continue
            data[collection] = entries
            changed = True

        title = update.get("title")
        if isinstance(title, str) and title.strip():
            data["title"] = title
            changed = True

        if not changed:
            return self
        return Diagram.model_validate(data)

    def rename_block(self, block_id: str, name: str) -> "Diagram":
        """Rename one block, clipping the name to its display length."""
        return self._replace_block(block_id, name=truncate_name(name))

    def move_block(self, block_id: str, x: float, y: float) -> "Diagram":
        """Move one block. Coordinates may go negative."""
        return self._replace_block(block_id, x=x, y=y)

    def rebind_connections(self) -> "Diagram":
        """Rebase section-level connections onto blocks.

        Each section endpoint is replaced by the first block of that
        section. Connections whose sections have no blocks, and
        connections already on blocks, are kept as they are.
        """
        first_block = {}
        for block in self.blocks:
            first_block.setdefault(block.section_id, block.id)

        connections = []
        for connection in self.connections:
            if connection.source in SECTION_IDS and connection.target in SECTION_IDS:
                source = first_block.get(connection.source)
                target = first_block.get(connection.target)
                if source and target:
                    connection = connection.model_copy(update={"source": source, "target": target})
            connections.append(connection)

        return self.model_copy(update={"connections": connections})

    def _replace_block(self, block_id: str, **changes: Any) -> "Diagram":
        if self.block_by_id(block_id) is None:
            raise KeyError(f"Unknown block: {block_id}")
        blocks = [
            Block.model_validate({**block.model_dump(), **changes}) if block.id == block_id else block
            for block in self.blocks
        ]
        return self.model_copy(update={"blocks": blocks})

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Canonical JSON-compatible form, identical to what is persisted."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        """Canonical JSON text."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Diagram":
        """Build a diagram from its canonical form."""
        return cls.model_validate(dict(data))

    @classmethod
    def from_json(cls, text: str | bytes) -> "Diagram":
        """Build a diagram from canonical JSON text."""
        return cls.model_validate_json(text)


def filter_update_entries(value: Any) -> list[dict[str, Any]] | None:
    """Keep the mapping elements of an update collection.

    Returns None when the value is not a list at all, meaning the
    collection must be left unchanged.
    """
    if not isinstance(value, list):
        return None

    entries = [dict(entry) for entry in value if isinstance(entry, Mapping)]
    dropped = len(value) - len(entries)
    if dropped:
        logger.debug(f"Dropped {dropped} malformed update entr{'y' if dropped == 1 else 'ies'}")
    return entries


def _require_unique(kind: str, ids: list[str]) -> None:
    seen = set()
    for entity_id in ids:
        if entity_id in seen:
            raise ValueError(f"duplicate {kind} id {entity_id!r}")
        seen.add(entity_id)
