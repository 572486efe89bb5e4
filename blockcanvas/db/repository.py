"""Diagram storage on top of a SQLAlchemy session.

Writes to the same diagram are serialized by a per-diagram lock;
concurrent editors of one diagram resolve last-writer-wins at
whole-collection granularity.
"""

import logging
import threading
import weakref
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from blockcanvas.db.models import DiagramRecord
from blockcanvas.engine.diagram import Diagram
from blockcanvas.errors import DiagramNotFoundError, DiagramValidationError, PersistenceError

logger = logging.getLogger(__name__)

# Entries vanish once no writer holds the lock
_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
_locks_guard = threading.Lock()


def diagram_lock(diagram_id: str) -> threading.Lock:
    """Process-wide write lock for one diagram."""
    with _locks_guard:
        lock = _locks.get(diagram_id)
        if lock is None:
            lock = threading.Lock()
            _locks[diagram_id] = lock
        return lock


def validation_details(error: ValidationError) -> list[dict[str, Any]]:
    """JSON-safe summary of a pydantic validation error."""
    return error.errors(include_url=False, include_context=False, include_input=False)


class DiagramRepository:
    """CRUD access to persisted diagrams.

    Every method commits or rolls back its own unit of work; a failed
    write leaves nothing behind.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def create(self, diagram: Diagram) -> Diagram:
        """Persist a new diagram.

        Raises:
            PersistenceError: If the write fails.
        """
        record = DiagramRecord.from_diagram(diagram)
        self._commit(record, f"Failed to save diagram {diagram.id}", diagram.id)
        logger.info(f"Saved diagram {diagram.id} ({len(diagram.blocks)} blocks)")
        return diagram

    def get(self, diagram_id: str) -> Diagram:
        """Load a diagram.

        Raises:
            DiagramNotFoundError: If no diagram has this id.
            PersistenceError: If the store cannot be read.
        """
        return self._load(diagram_id).to_diagram()

    def list_all(self) -> list[Diagram]:
        """All diagrams, newest first."""
        try:
            records = (
                self.db.query(DiagramRecord)
                .order_by(DiagramRecord.created_at.desc())
                .all()
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to list diagrams: {e}") from e
        return [record.to_diagram() for record in records]

    def update(self, diagram_id: str, update: Mapping[str, Any]) -> Diagram:
        """Apply a partial update and persist the result.

        Only list-valued ``blocks``/``connections``/``annotations`` and a
        non-empty ``title`` are taken; everything else is ignored.

        Raises:
            DiagramNotFoundError: If no diagram has this id.
            DiagramValidationError: If the updated diagram is invalid.
            PersistenceError: If the write fails.
        """
        with diagram_lock(diagram_id):
            record = self._load(diagram_id)
            current = record.to_diagram()

            try:
                updated = current.apply_update(update)
            except ValidationError as e:
                raise DiagramValidationError(
                    "Diagram update failed validation",
                    diagram_id=diagram_id,
                    details=validation_details(e),
                ) from e

            updated = updated.model_copy(update={"updated_at": datetime.utcnow()})
            record.assign(updated)
            self._commit(record, f"Failed to update diagram {diagram_id}", diagram_id)

        logger.debug(f"Updated diagram {diagram_id}")
        return updated

    def delete(self, diagram_id: str) -> None:
        """Remove a diagram.

        Raises:
            DiagramNotFoundError: If no diagram has this id.
            PersistenceError: If the delete fails.
        """
        with diagram_lock(diagram_id):
            record = self._load(diagram_id)
            try:
                self.db.delete(record)
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                raise PersistenceError(f"Failed to delete diagram {diagram_id}: {e}", diagram_id) from e

        logger.info(f"Deleted diagram {diagram_id}")

    def canvas_sink(self, diagram_id: str, update: Mapping[str, Any]) -> None:
        """Update hook for a CanvasReconciler."""
        self.update(diagram_id, update)

    def _load(self, diagram_id: str) -> DiagramRecord:
        try:
            record = self.db.get(DiagramRecord, diagram_id)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load diagram {diagram_id}: {e}", diagram_id) from e
        if record is None:
            raise DiagramNotFoundError("Diagram not found", diagram_id)
        return record

    def _commit(self, record: DiagramRecord, message: str, diagram_id: str) -> None:
        try:
            self.db.add(record)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"{message}: {e}", diagram_id) from e
