"""
scene.py — Headless model of the interactive canvas.

A Scene holds the live visual objects in paint order. Each object that
stands for a diagram entity carries a copy of that entity's data, but
identity is tracked separately by the IdentityIndex, never inferred from
geometry or text.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional


class ObjectKind(Enum):
    """Types of visual objects."""
    BLOCK = "block"
    CONNECTION = "connection"
    ANNOTATION = "annotation"
    LABEL = "label"           # Section heading, not backed by an entity


class SelectionState(Enum):
    """Per-object interaction state."""
    UNSELECTED = "unselected"
    SELECTED = "selected"
    REMOVED = "removed"


@dataclass
class VisualObject:
    """
    One rendered object on the canvas.

    Geometry is in canvas pixels. A resize changes scale_x/scale_y,
    the way a direct-manipulation canvas does, until the next
    reconciliation folds the scale back into width/height.
    """
    handle: str                                  # Scene-local identifier
    kind: ObjectKind
    left: float = 0.0
    top: float = 0.0
    width: float = 0.0
    height: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    text: str = ""
    points: Optional[tuple[float, float, float, float]] = None  # x1, y1, x2, y2 for lines
    payload: Optional[dict[str, Any]] = None     # Attached entity data
    selectable: bool = True
    state: SelectionState = SelectionState.UNSELECTED

    @property
    def scaled_width(self) -> float:
        return self.width * self.scale_x

    @property
    def scaled_height(self) -> float:
        return self.height * self.scale_y

    @property
    def center(self) -> tuple[float, float]:
        return (self.left + self.scaled_width / 2, self.top + self.scaled_height / 2)

    @property
    def is_entity(self) -> bool:
        return self.payload is not None


class Scene:
    """Live visual objects in insertion (paint) order."""

    def __init__(self):
        self._objects: dict[str, VisualObject] = {}

    def add(self, obj: VisualObject) -> None:
        if obj.handle in self._objects:
            raise ValueError(f"Handle already in scene: {obj.handle}")
        self._objects[obj.handle] = obj

    def remove(self, handle: str) -> VisualObject:
        obj = self._objects.pop(handle)
        obj.state = SelectionState.REMOVED
        return obj

    def get(self, handle: str) -> VisualObject:
        try:
            return self._objects[handle]
        except KeyError:
            raise KeyError(f"No object with handle {handle!r} in scene") from None

    def clear(self) -> None:
        for obj in self._objects.values():
            obj.state = SelectionState.REMOVED
        self._objects.clear()

    def objects(self) -> Iterator[VisualObject]:
        return iter(list(self._objects.values()))

    def selected(self) -> Optional[VisualObject]:
        return next(
            (obj for obj in self._objects.values() if obj.state is SelectionState.SELECTED),
            None,
        )

    def __contains__(self, handle: object) -> bool:
        return handle in self._objects

    def __len__(self) -> int:
        return len(self._objects)


@dataclass
class IdentityIndex:
    """Bidirectional map between entity ids and visual handles."""
    _by_entity: dict[str, str] = field(default_factory=dict)
    _by_handle: dict[str, str] = field(default_factory=dict)

    def bind(self, entity_id: str, handle: str) -> None:
        """Associate an entity with a handle.

        Raises:
            ValueError: If either side is already bound elsewhere.
        """
        if self._by_entity.get(entity_id, handle) != handle:
            raise ValueError(f"Entity {entity_id!r} is already on the canvas")
        if self._by_handle.get(handle, entity_id) != entity_id:
            raise ValueError(f"Handle {handle!r} already carries another entity")
        self._by_entity[entity_id] = handle
        self._by_handle[handle] = entity_id

    def unbind_handle(self, handle: str) -> Optional[str]:
        entity_id = self._by_handle.pop(handle, None)
        if entity_id is not None:
            self._by_entity.pop(entity_id, None)
        return entity_id

    def handle_for(self, entity_id: str) -> Optional[str]:
        return self._by_entity.get(entity_id)

    def entity_for(self, handle: str) -> Optional[str]:
        return self._by_handle.get(handle)

    def clear(self) -> None:
        self._by_entity.clear()
        self._by_handle.clear()

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._by_entity

    def __len__(self) -> int:
        return len(self._by_entity)
