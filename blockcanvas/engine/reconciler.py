"""
reconciler.py — Keeps the canvas scene and the Diagram model consistent.

Rendering derives visual objects from the model. Every committed user
action (drag, resize, property edit, insert, delete) derives the model
back from the scene: all live objects are read, classified by kind and
submitted as a whole-collection replace.

Interaction is single-threaded. Each action runs to completion
(read state → mutate → re-render → reconcile) before the next one is
accepted; a nested action raises RuntimeError.
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Mapping, Optional
from uuid import uuid4

from pydantic import ValidationError

from blockcanvas.llm.vocabulary import SECTION_IDS

from .diagram import Diagram, truncate_name
from .layout_engine import LayoutConfig
from .scene import IdentityIndex, ObjectKind, Scene, SelectionState, VisualObject

logger = logging.getLogger(__name__)

# Called with the selected element's data, or None when nothing is selected
SelectionListener = Callable[[Optional[dict[str, Any]]], None]

# Receives (diagram id, update payload) after every reconciliation
UpdateSink = Callable[[str, dict[str, Any]], None]

# Editable fields per kind; anything else in a property edit is ignored
EDITABLE_FIELDS = {
    ObjectKind.BLOCK: ("name", "sectionId", "specification", "x", "y"),
    ObjectKind.CONNECTION: ("label",),
    ObjectKind.ANNOTATION: ("text", "x", "y"),
}

NEW_BLOCK_NAME = "New Block"
NEW_BLOCK_POSITION = (100.0, 100.0)
NEW_BLOCK_SIZE = (150.0, 60.0)
NEW_ANNOTATION_POSITION = (200.0, 200.0)
ANNOTATION_SIZE = (120.0, 40.0)
SECTION_LABEL_TOP = 10.0
SECTION_LINE_Y = 50.0


def new_handle() -> str:
    return uuid4().hex


class CanvasReconciler:
    """
    Owns the live scene, the identity index and the current Diagram.

    Args:
        diagram: Diagram to render initially.
        sink: Persistence hook for reconciled updates. Fire-and-forget:
            a failing sink is logged and never breaks the canvas.
        layout_config: Geometry shared with the layout engine.
    """

    def __init__(
        self,
        diagram: Optional[Diagram] = None,
        sink: Optional[UpdateSink] = None,
        layout_config: Optional[LayoutConfig] = None,
    ):
        self.scene = Scene()
        self.index = IdentityIndex()
        self.diagram: Optional[Diagram] = None
        self.layout_config = layout_config or LayoutConfig()
        self._sink = sink
        self._listeners: list[SelectionListener] = []
        self._busy = False

        if diagram is not None:
            self.render(diagram)

    # =========================================================================
    # OBSERVERS
    # =========================================================================

    def subscribe(self, listener: SelectionListener) -> None:
        """Register a selection observer."""
        self._listeners.append(listener)

    def _notify(self, element: Optional[dict[str, Any]]) -> None:
        for listener in self._listeners:
            listener(element)

    # =========================================================================
    # RENDERING (model → scene)
    # =========================================================================

    def render(self, diagram: Diagram) -> None:
        """Rebuild the whole scene from a diagram, discarding prior UI state."""
        with self._action():
            self.scene.clear()
            self.index.clear()
            self.diagram = diagram

            section_width = self.layout_config.section_width
            for index, section in enumerate(diagram.sections):
                self.scene.add(VisualObject(
                    handle=new_handle(),
                    kind=ObjectKind.LABEL,
                    left=index * section_width + 10,
                    top=SECTION_LABEL_TOP,
                    text=section.name,
                    selectable=False,
                ))

            for block in diagram.blocks:
                self._insert(self._block_object(block.model_dump(mode="json", by_alias=True)))
            for connection in diagram.connections:
                self._insert(self._connection_object(connection.model_dump(mode="json", by_alias=True)))
            for annotation in diagram.annotations:
                self._insert(self._annotation_object(annotation.model_dump(mode="json", by_alias=True)))

            self._refresh_connection_lines()

        logger.debug(f"Rendered diagram {diagram.id}: {len(self.index)} entities on canvas")

    def _block_object(self, data: dict[str, Any]) -> VisualObject:
        return VisualObject(
            handle=new_handle(),
            kind=ObjectKind.BLOCK,
            left=data["x"],
            top=data["y"],
            width=data["width"],
            height=data["height"],
            text=data["name"],
            payload=data,
        )

    def _connection_object(self, data: dict[str, Any]) -> VisualObject:
        return VisualObject(
            handle=new_handle(),
            kind=ObjectKind.CONNECTION,
            text=data.get("label", ""),
            payload=data,
        )

    def _annotation_object(self, data: dict[str, Any]) -> VisualObject:
        width, height = ANNOTATION_SIZE
        return VisualObject(
            handle=new_handle(),
            kind=ObjectKind.ANNOTATION,
            left=data["x"],
            top=data["y"],
            width=width,
            height=height,
            text=data["text"],
            payload=data,
        )

    def _insert(self, obj: VisualObject) -> None:
        """Add to scene and index together, or to neither."""
        self.scene.add(obj)
        try:
            self.index.bind(obj.payload["id"], obj.handle)
        except ValueError:
            self.scene.remove(obj.handle)
            raise

    def _line_points(self, data: Mapping[str, Any]) -> Optional[tuple[float, float, float, float]]:
        source, target = data.get("from"), data.get("to")

        source_handle = self.index.handle_for(source)
        target_handle = self.index.handle_for(target)
        if source_handle and target_handle:
            source_obj = self.scene.get(source_handle)
            target_obj = self.scene.get(target_handle)
            if source_obj.kind is ObjectKind.BLOCK and target_obj.kind is ObjectKind.BLOCK:
                return (*source_obj.center, *target_obj.center)

        source_column = self.diagram.section_index(source)
        target_column = self.diagram.section_index(target)
        if source_column >= 0 and target_column >= 0:
            section_width = self.layout_config.section_width
            return (
                source_column * section_width + section_width / 2,
                SECTION_LINE_Y,
                target_column * section_width + section_width / 2,
                SECTION_LINE_Y,
            )

        # Mixed or dangling endpoints: kept, but not drawn
        return None

    def _refresh_connection_lines(self) -> None:
        for obj in self.scene.objects():
            if obj.kind is ObjectKind.CONNECTION:
                obj.points = self._line_points(obj.payload)

    # =========================================================================
    # RE-DERIVATION (scene → model)
    # =========================================================================

    def reconcile(self) -> Diagram:
        """Derive the model from the live scene and submit it.

        Returns:
            The updated Diagram.
        """
        if self.diagram is None:
            raise RuntimeError("Nothing rendered yet")

        update = self._derive_update()
        self.diagram = self.diagram.apply_update(update)
        self._fold_back()
        self._submit(update)
        return self.diagram

    def _derive_update(self) -> dict[str, list[dict[str, Any]]]:
        blocks, connections, annotations = [], [], []

        for obj in self.scene.objects():
            entity_id = self.index.entity_for(obj.handle)
            if entity_id is None:
                continue

            if obj.kind is ObjectKind.BLOCK:
                blocks.append({
                    **obj.payload,
                    "id": entity_id,
                    "x": obj.left,
                    "y": obj.top,
                    "width": obj.scaled_width,
                    "height": obj.scaled_height,
                })
            elif obj.kind is ObjectKind.ANNOTATION:
                annotations.append({**obj.payload, "id": entity_id, "x": obj.left, "y": obj.top})
            elif obj.kind is ObjectKind.CONNECTION:
                connections.append({**obj.payload, "id": entity_id})

        return {"blocks": blocks, "connections": connections, "annotations": annotations}

    def _fold_back(self) -> None:
        """Refresh attached payloads from the validated model and reset scales."""
        entities: dict[str, dict[str, Any]] = {}
        for collection in (self.diagram.blocks, self.diagram.connections, self.diagram.annotations):
            for entity in collection:
                entities[entity.id] = entity.model_dump(mode="json", by_alias=True)

        for obj in self.scene.objects():
            entity_id = self.index.entity_for(obj.handle)
            if entity_id is None:
                continue
            obj.payload = entities[entity_id]
            if obj.kind is ObjectKind.BLOCK:
                obj.width, obj.height = obj.scaled_width, obj.scaled_height
                obj.scale_x = obj.scale_y = 1.0

    def _submit(self, update: dict[str, Any]) -> None:
        if self._sink is None:
            return
        try:
            self._sink(self.diagram.id, update)
        except Exception:
            logger.exception(f"Failed to persist canvas update for diagram {self.diagram.id}")

    # =========================================================================
    # USER ACTIONS
    # =========================================================================

    def select(self, handle: str) -> dict[str, Any]:
        """Select an object and surface its full data to observers.

        Raises:
            KeyError: If the handle is not on the canvas.
            ValueError: If the object cannot be selected.
        """
        with self._action():
            obj = self.scene.get(handle)
            if not obj.selectable or not obj.is_entity:
                raise ValueError(f"Object {handle!r} is not selectable")

            current = self.scene.selected()
            if current is not None and current is not obj:
                current.state = SelectionState.UNSELECTED
            obj.state = SelectionState.SELECTED

            element = self._element_data(obj)
            self._notify(element)
            return element

    def select_entity(self, entity_id: str) -> dict[str, Any]:
        """Select the object that carries an entity."""
        handle = self.index.handle_for(entity_id)
        if handle is None:
            raise KeyError(f"Entity {entity_id!r} is not on the canvas")
        return self.select(handle)

    def deselect(self) -> None:
        with self._action():
            current = self.scene.selected()
            if current is not None:
                current.state = SelectionState.UNSELECTED
                self._notify(None)

    def move(self, handle: str, left: float, top: float) -> Diagram:
        """Commit a drag of a block or annotation."""
        with self._action():
            obj = self._editable(handle)
            obj.left, obj.top = left, top
            self._refresh_connection_lines()
            return self.reconcile()

    def resize(self, handle: str, width: float, height: float) -> Diagram:
        """Commit a resize of a block.

        Raises:
            ValueError: If the size is not positive or the object is not a block.
        """
        with self._action():
            obj = self._editable(handle)
            if obj.kind is not ObjectKind.BLOCK:
                raise ValueError("Only blocks can be resized")
            if width <= 0 or height <= 0:
                raise ValueError("Block size must be positive")
            obj.scale_x = width / obj.width
            obj.scale_y = height / obj.height
            self._refresh_connection_lines()
            return self.reconcile()

    def update_selected(self, changes: Mapping[str, Any]) -> Optional[Diagram]:
        """Apply a property edit to the selected object.

        Block names are clipped to their display length. Fields that the
        object's kind does not expose are ignored.

        Returns:
            The updated Diagram, or None when nothing is selected.
        """
        with self._action():
            obj = self.scene.selected()
            if obj is None:
                return None

            allowed = EDITABLE_FIELDS[obj.kind]
            edits = {key: value for key, value in changes.items() if key in allowed}
            if "sectionId" in edits and edits["sectionId"] not in SECTION_IDS:
                raise ValueError(f"Unknown section: {edits['sectionId']}")
            if "name" in edits:
                edits["name"] = truncate_name(str(edits["name"]))
            for axis in ("x", "y"):
                if axis in edits:
                    try:
                        edits[axis] = float(edits[axis])
                    except (TypeError, ValueError):
                        raise ValueError(f"{axis} must be a number, got {edits[axis]!r}") from None

            previous = (obj.payload, obj.left, obj.top, obj.text)
            obj.payload = {**obj.payload, **edits}
            obj.left = edits.get("x", obj.left)
            obj.top = edits.get("y", obj.top)
            if obj.kind is ObjectKind.BLOCK:
                obj.text = obj.payload["name"]
            elif obj.kind is ObjectKind.ANNOTATION:
                obj.text = obj.payload["text"]
            else:
                obj.text = obj.payload.get("label", "")

            try:
                diagram = self.reconcile()
            except ValidationError:
                # Rejected edit: put the object back as it was
                obj.payload, obj.left, obj.top, obj.text = previous
                raise
            finally:
                self._refresh_connection_lines()

            self._notify(self._element_data(obj))
            return diagram

    def delete_selected(self) -> Optional[Diagram]:
        """Remove the selected object from the scene and the index.

        Returns:
            The updated Diagram, or None when nothing is selected.
        """
        with self._action():
            obj = self.scene.selected()
            if obj is None:
                return None

            self.scene.remove(obj.handle)
            self.index.unbind_handle(obj.handle)
            self._refresh_connection_lines()
            self._notify(None)
            return self.reconcile()

    def add_block(
        self,
        section_id: str = "peripherals",
        name: str = NEW_BLOCK_NAME,
        x: float = NEW_BLOCK_POSITION[0],
        y: float = NEW_BLOCK_POSITION[1],
    ) -> str:
        """Insert a new block and return its id."""
        if section_id not in SECTION_IDS:
            raise ValueError(f"Unknown section: {section_id}")

        width, height = NEW_BLOCK_SIZE
        data = {
            "id": f"block_custom_{uuid4().hex}",
            "sectionId": section_id,
            "name": truncate_name(name),
            "x": x,
            "y": y,
            "width": width,
            "height": height,
            "type": "block",
            "specification": "",
        }
        with self._action():
            self._insert(self._block_object(data))
            self.reconcile()
        return data["id"]

    def add_connection(self, source_block_id: str, target_block_id: str, label: str = "") -> str:
        """Connect two blocks and return the connection id.

        Raises:
            KeyError: If either block is not on the canvas.
        """
        for block_id in (source_block_id, target_block_id):
            handle = self.index.handle_for(block_id)
            if handle is None or self.scene.get(handle).kind is not ObjectKind.BLOCK:
                raise KeyError(f"Block {block_id!r} is not on the canvas")

        data = {
            "id": f"conn_{uuid4().hex}",
            "from": source_block_id,
            "to": target_block_id,
            "label": label,
        }
        with self._action():
            self._insert(self._connection_object(data))
            self._refresh_connection_lines()
            self.reconcile()
        return data["id"]

    def add_annotation(
        self,
        text: str,
        x: float = NEW_ANNOTATION_POSITION[0],
        y: float = NEW_ANNOTATION_POSITION[1],
        block_id: Optional[str] = None,
    ) -> Optional[str]:
        """Place a note and return its id, or None for empty text."""
        if not text:
            return None

        data = {"id": f"ann_{uuid4().hex}", "x": x, "y": y, "text": text, "blockId": block_id}
        with self._action():
            self._insert(self._annotation_object(data))
            self.reconcile()
        return data["id"]

    def rebind_connections(self) -> Diagram:
        """Rebase section-level connections onto blocks and redraw."""
        if self.diagram is None:
            raise RuntimeError("Nothing rendered yet")

        rebound = self.diagram.rebind_connections()
        self.render(rebound)
        with self._action():
            return self.reconcile()

    def clear(self) -> Diagram:
        """Remove every entity from the canvas; section labels stay."""
        with self._action():
            for obj in self.scene.objects():
                if obj.is_entity:
                    self.scene.remove(obj.handle)
                    self.index.unbind_handle(obj.handle)
            self._notify(None)
            return self.reconcile()

    # =========================================================================
    # HELPERS
    # =========================================================================

    def handle_for(self, entity_id: str) -> Optional[str]:
        return self.index.handle_for(entity_id)

    def _editable(self, handle: str) -> VisualObject:
        obj = self.scene.get(handle)
        if obj.kind not in (ObjectKind.BLOCK, ObjectKind.ANNOTATION):
            raise ValueError(f"Object {handle!r} cannot be moved")
        if obj.state is SelectionState.UNSELECTED:
            current = self.scene.selected()
            if current is not None:
                current.state = SelectionState.UNSELECTED
            obj.state = SelectionState.SELECTED
        return obj

    def _element_data(self, obj: VisualObject) -> dict[str, Any]:
        element = dict(obj.payload)
        element["type"] = obj.kind.value
        if element.get("specification"):
            element["fullSpecification"] = element["specification"]
        return element

    @contextmanager
    def _action(self) -> Iterator[None]:
        if self._busy:
            raise RuntimeError("Canvas is already handling an action")
        self._busy = True
        try:
            yield
        finally:
            self._busy = False
