"""
layout_engine.py — Column layout for the five diagram sections.

The LayoutEngine turns section drafts into absolutely positioned blocks:
1. Splits the canvas width into one column per section, in fixed order
2. Stacks each section's blocks vertically inside its column
3. Centers every stack on the same horizontal line, computed from the
   tallest stack across ALL sections

Renderers and exporters reuse the constants below so that an unedited
diagram exports exactly as it is laid out.

The engine NEVER resolves overlaps; free-form dragging may introduce them.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from .diagram import Block, truncate_name


# =============================================================================
# CONSTANTS
# =============================================================================

CANVAS_WIDTH = 1400
CANVAS_HEIGHT = 900
SECTION_COUNT = 5
SECTION_WIDTH = CANVAS_WIDTH / SECTION_COUNT
SECTION_PADDING = 10
BLOCK_INSET = 5
BLOCK_HEIGHT = 90
BLOCK_SPACING = 12


@dataclass(frozen=True)
class LayoutConfig:
    """Geometry constants for a layout pass."""
    canvas_width: float = CANVAS_WIDTH
    canvas_height: float = CANVAS_HEIGHT
    section_count: int = SECTION_COUNT
    section_padding: float = SECTION_PADDING
    block_inset: float = BLOCK_INSET
    block_height: float = BLOCK_HEIGHT
    block_spacing: float = BLOCK_SPACING

    @property
    def section_width(self) -> float:
        return self.canvas_width / self.section_count

    @property
    def block_width(self) -> float:
        return self.section_width - self.section_padding * 2 - self.block_inset

    @property
    def row_pitch(self) -> float:
        """Vertical distance between the tops of consecutive blocks."""
        return self.block_height + self.block_spacing


class LayoutEngine:
    """
    Deterministic column layout.

    The engine is stateless: each layout() call is a pure function of
    the ordered sections, their block counts and the config.
    """

    def __init__(self, config: LayoutConfig | None = None):
        self.config = config or LayoutConfig()

    def column_x(self, section_index: int) -> float:
        """Left edge of the blocks in a column."""
        return (
            section_index * self.config.section_width
            + self.config.section_padding
            + self.config.block_inset
        )

    def stack_top(self, max_blocks: int) -> float:
        """Top of every stack, so that all stacks share a center line."""
        return self.config.canvas_height / 2 - (max_blocks * self.config.row_pitch) / 2

    def layout(self, sections: Sequence[Mapping[str, Any]]) -> list[Block]:
        """
        Position every block of every section.

        Args:
            sections: Section drafts in column order, each with ``id``,
                a non-empty ``blocks`` name list and optional ``blockSpecs``.

        Returns:
            Blocks in section order, then stack order.
        """
        if not sections:
            return []

        max_blocks = max(len(section["blocks"]) for section in sections)
        top = self.stack_top(max_blocks)

        blocks = []
        for section_index, section in enumerate(sections):
            specs = section.get("blockSpecs") or {}
            x = self.column_x(section_index)

            for block_index, block_name in enumerate(section["blocks"]):
                blocks.append(Block(
                    id=f"block_{section['id']}_{block_index}",
                    section_id=section["id"],
                    name=truncate_name(block_name),
                    x=x,
                    y=top + block_index * self.config.row_pitch,
                    width=self.config.block_width,
                    height=self.config.block_height,
                    specification=specs.get(block_name, ""),
                ))

        return blocks
