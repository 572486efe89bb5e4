"""Tests for the Diagram model and generation pipeline."""

import asyncio

import pytest
from pydantic import ValidationError

from blockcanvas.engine.diagram import Diagram
from blockcanvas.engine.generator import DiagramGenerator
from blockcanvas.errors import InputValidationError
from blockcanvas.llm.vocabulary import SECTION_IDS


class TestGeneration:
    """Tests for DiagramGenerator."""

    def test_generated_structure(self, diagram, doorbell_description):
        """Five sections in order, every block in a known section."""
        assert [section.id for section in diagram.sections] == list(SECTION_IDS)
        assert {block.section_id for block in diagram.blocks} <= set(SECTION_IDS)
        for section in diagram.sections:
            assert diagram.blocks_in_section(section.id)
        assert diagram.description == doorbell_description
        assert diagram.title == "Untitled Diagram"
        assert diagram.annotations == []

    def test_metadata(self, diagram, doorbell_description):
        assert diagram.metadata.generated_by == "pattern-matching"
        assert diagram.metadata.original_description == doorbell_description
        assert diagram.metadata.generated_at.endswith("Z")
        assert diagram.metadata.solution

    def test_default_connections_are_section_level(self, diagram):
        """The six default connections join sections, not blocks."""
        assert [conn.id for conn in diagram.connections] == [f"conn{i}" for i in range(1, 7)]
        assert not any(diagram.connection_is_bound(conn) for conn in diagram.connections)
        assert diagram.bound_connections() == []

    @pytest.mark.parametrize("description", ["", "   ", None])
    def test_empty_description_rejected(self, generator, description):
        with pytest.raises(InputValidationError):
            generator.generate_with_pattern_matching(description)

    def test_async_generate_offline(self, generator, doorbell_description):
        """The async entry point works without a provider."""
        result = asyncio.run(generator.generate(doorbell_description))

        assert result.metadata.generated_by == "pattern-matching"
        assert [block.name for block in result.blocks] == [
            block.name for block in generator.generate_with_pattern_matching(doorbell_description).blocks
        ]


class TestInvariants:
    """Tests for model validation."""

    def test_wrong_section_order_rejected(self, diagram):
        data = diagram.to_dict()
        data["sections"] = list(reversed(data["sections"]))

        with pytest.raises(ValidationError):
            Diagram.from_dict(data)

    def test_unknown_section_rejected(self, diagram):
        data = diagram.to_dict()
        data["blocks"][0]["sectionId"] = "custom"

        with pytest.raises(ValidationError):
            Diagram.from_dict(data)

    def test_duplicate_block_ids_rejected(self, diagram):
        data = diagram.to_dict()
        data["blocks"].append(dict(data["blocks"][0]))

        with pytest.raises(ValidationError):
            Diagram.from_dict(data)

    def test_ids_unique_across_kinds(self, diagram):
        """A note may not reuse a block id; the canvas indexes both together."""
        note = {"id": diagram.blocks[0].id, "x": 5, "y": 5, "text": "note"}

        with pytest.raises(ValidationError):
            diagram.apply_update({"annotations": [note]})

    def test_section_index(self, diagram):
        assert diagram.section_index("inputs") == SECTION_IDS.index("inputs")
        assert diagram.section_index("custom") == -1

    def test_camel_case_serialization(self, diagram):
        """Dumped keys are camelCase and connections use from/to."""
        data = diagram.to_dict()

        assert "sectionId" in data["blocks"][0]
        assert {"from", "to"} <= set(data["connections"][0])
        assert "originalDescription" in data["metadata"]
        assert "createdAt" in data

    def test_json_round_trip(self, diagram):
        assert Diagram.from_json(diagram.to_json()) == diagram


class TestApplyUpdate:
    """Tests for whole-collection replace."""

    def test_non_list_collection_ignored(self, diagram):
        """A collection that is not a list leaves the diagram untouched."""
        for value in ("oops", {"id": "x"}, 42, None):
            assert diagram.apply_update({"blocks": value}).blocks == diagram.blocks

    def test_list_replaces_collection(self, diagram):
        kept = diagram.to_dict()["blocks"][:2]

        updated = diagram.apply_update({"blocks": kept})

        assert [block.id for block in updated.blocks] == [entry["id"] for entry in kept]
        assert updated.connections == diagram.connections

    def test_malformed_entries_dropped(self, diagram):
        """Elements that are not mappings are dropped silently."""
        entry = [{"id": "ann_1", "x": 5, "y": 5, "text": "note"}]

        updated = diagram.apply_update({"annotations": entry + ["junk", 3, ["nested"]]})

        assert [ann.id for ann in updated.annotations] == ["ann_1"]

    def test_invalid_entity_fails_whole_update(self, diagram):
        """One invalid element rejects the update; the original is unchanged."""
        bad = {"id": "ann_1", "x": 5, "y": 5, "text": ""}

        with pytest.raises(ValidationError):
            diagram.apply_update({"annotations": [bad]})
        assert diagram.annotations == []

    def test_title(self, diagram):
        assert diagram.apply_update({"title": "Doorbell v2"}).title == "Doorbell v2"
        assert diagram.apply_update({"title": ""}).title == "Untitled Diagram"

    def test_unknown_keys_ignored(self, diagram):
        """Ids, descriptions and sections cannot be changed by an update."""
        updated = diagram.apply_update({"id": "other", "description": "x", "sections": []})

        assert updated is diagram

    def test_empty_list_clears(self, diagram):
        assert diagram.apply_update({"connections": []}).connections == []


class TestBlockEdits:
    """Tests for single-block helpers."""

    def test_rename_truncates(self, diagram):
        block_id = diagram.blocks[0].id

        renamed = diagram.rename_block(block_id, "A Very Long Component Name")

        assert renamed.block_by_id(block_id).name == "A Very Long Componen"
        assert diagram.block_by_id(block_id).name != renamed.block_by_id(block_id).name

    def test_move_allows_negative(self, diagram):
        block_id = diagram.blocks[0].id

        moved = diagram.move_block(block_id, -20, -5)

        assert (moved.block_by_id(block_id).x, moved.block_by_id(block_id).y) == (-20, -5)

    def test_unknown_block(self, diagram):
        with pytest.raises(KeyError):
            diagram.move_block("block_missing", 0, 0)


class TestRebindConnections:
    """Tests for rebasing section-level connections onto blocks."""

    def test_rebind(self, diagram):
        rebound = diagram.rebind_connections()

        assert all(rebound.connection_is_bound(conn) for conn in rebound.connections)
        conn1 = rebound.connections[0]
        assert conn1.source == diagram.blocks_in_section("power")[0].id
        assert conn1.target == diagram.blocks_in_section("control")[0].id
        assert conn1.label == "Power"

    def test_rebind_keeps_unresolvable(self, diagram):
        """Sections without blocks keep their section-level connections."""
        emptied = diagram.apply_update({
            "blocks": [b for b in diagram.to_dict()["blocks"] if b["sectionId"] != "outputs"],
        })

        rebound = emptied.rebind_connections()
        conn3 = next(conn for conn in rebound.connections if conn.id == "conn3")

        assert (conn3.source, conn3.target) == ("control", "outputs")
