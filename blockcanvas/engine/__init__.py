"""
Diagram engine: model, layout, generation, canvas reconciliation, export.
"""

from .diagram import Annotation, Block, Connection, Diagram, DiagramMetadata, Section
from .layout_engine import LayoutConfig, LayoutEngine
from .generator import DiagramGenerator, default_connections
from .scene import IdentityIndex, ObjectKind, Scene, SelectionState, VisualObject
from .reconciler import CanvasReconciler
from .exporters import ExportFormat, ExportResult, export_diagram

__all__ = [
    # Model
    "Annotation",
    "Block",
    "Connection",
    "Diagram",
    "DiagramMetadata",
    "Section",
    # Layout
    "LayoutConfig",
    "LayoutEngine",
    # Generation
    "DiagramGenerator",
    "default_connections",
    # Canvas
    "CanvasReconciler",
    "IdentityIndex",
    "ObjectKind",
    "Scene",
    "SelectionState",
    "VisualObject",
    # Export
    "ExportFormat",
    "ExportResult",
    "export_diagram",
]
