"""Database models for BlockCanvas."""

from datetime import datetime

from sqlalchemy import Column, DateTime, JSON, String, Text

from blockcanvas.db.base import Base
from blockcanvas.engine.diagram import Diagram, generate_uuid


class DiagramRecord(Base):
    """One persisted diagram, stored in its canonical form.

    Each collection lives in its own JSON column so that an update
    rewrites whole collections, never individual elements.
    """

    __tablename__ = "diagrams"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False, default="Untitled Diagram")
    description = Column(Text, nullable=False)

    # Diagram content
    sections = Column(JSON, nullable=False, default=list)
    blocks = Column(JSON, nullable=False, default=list)
    connections = Column(JSON, nullable=False, default=list)
    annotations = Column(JSON, nullable=False, default=list)

    # "metadata" is reserved on declarative classes
    diagram_metadata = Column("metadata", JSON, nullable=False, default=dict)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @classmethod
    def from_diagram(cls, diagram: Diagram) -> "DiagramRecord":
        record = cls(id=diagram.id, created_at=diagram.created_at)
        record.assign(diagram)
        return record

    def assign(self, diagram: Diagram) -> None:
        """Copy every mutable field of a diagram onto this row."""
        data = diagram.to_dict()
        self.title = data["title"]
        self.description = data["description"]
        self.sections = data["sections"]
        self.blocks = data["blocks"]
        self.connections = data["connections"]
        self.annotations = data["annotations"]
        self.diagram_metadata = data["metadata"]
        self.updated_at = diagram.updated_at

    def to_diagram(self) -> Diagram:
        """Rebuild and validate the Diagram this row stores."""
        return Diagram.model_validate({
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "sections": self.sections,
            "blocks": self.blocks,
            "connections": self.connections,
            "annotations": self.annotations,
            "metadata": self.diagram_metadata,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        })

    def __repr__(self) -> str:
        return f"<DiagramRecord {self.id[:8]} ({self.title})>"
