"""Database module for BlockCanvas."""

from blockcanvas.db.base import Base, get_db, engine, SessionLocal, init_db
from blockcanvas.db.models import DiagramRecord
from blockcanvas.db.repository import DiagramRepository

__all__ = [
    "Base",
    "get_db",
    "engine",
    "SessionLocal",
    "init_db",
    "DiagramRecord",
    "DiagramRepository",
]
