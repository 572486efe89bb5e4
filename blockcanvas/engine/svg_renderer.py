"""
svg_renderer.py — SVG export of a Diagram.

This renderer consumes a materialized Diagram and produces an SVG string.
It NEVER computes block positions; those are stored on the blocks.
Section columns reuse the layout engine's constants so that an unedited
diagram renders exactly as it was laid out.

Only bound connections (both ends on blocks) are drawn as lines.
"""

from xml.etree import ElementTree as ET
from xml.etree.ElementTree import Element, SubElement

from .diagram import Annotation, Block, Connection, Diagram
from .layout_engine import LayoutConfig


# =============================================================================
# CONSTANTS
# =============================================================================

SVG_NS = "http://www.w3.org/2000/svg"

SECTION_FILL = "#f5f5f5"
SECTION_STROKE = "#cccccc"
SECTION_INSET = 10
SECTION_TOP = 20
SECTION_LABEL_OFFSET = 25

ANNOTATION_WIDTH = 120
ANNOTATION_HEIGHT = 40

STYLES = """
    .section-label { font: bold 14px sans-serif; text-anchor: middle; fill: #333333; }
    .block { fill: #e3f2fd; stroke: #1976d2; stroke-width: 2; }
    .block-label { font: 12px sans-serif; text-anchor: middle; fill: #0d47a1; }
    .connection { stroke: #555555; stroke-width: 2; marker-end: url(#arrowhead); }
    .connection-label { font: 11px sans-serif; text-anchor: middle; fill: #555555; }
    .annotation { fill: #fff9c4; stroke: #f9a825; stroke-width: 1; }
    .annotation-text { font: 11px sans-serif; fill: #333333; }
"""


def format_px(value: float) -> str:
    """Format pixel value for SVG (2 decimal places)."""
    return f"{value:.2f}"


# =============================================================================
# SVG RENDERER
# =============================================================================

class SVGRenderer:
    """
    Renders a Diagram to SVG.

    The renderer is stateless: each render() call builds a new tree.
    Text is escaped by ElementTree on serialization.
    """

    def __init__(self, config: LayoutConfig | None = None):
        self.config = config or LayoutConfig()

    def render(self, diagram: Diagram) -> str:
        """
        Render a diagram.

        Args:
            diagram: The diagram to draw

        Returns:
            SVG document as a string, with XML declaration
        """
        width = self.config.canvas_width
        height = self.config.canvas_height

        svg = Element('svg')
        svg.set('xmlns', SVG_NS)
        svg.set('width', format_px(width))
        svg.set('height', format_px(height))
        svg.set('viewBox', f"0 0 {format_px(width)} {format_px(height)}")

        self._add_defs(SubElement(svg, 'defs'))
        style = SubElement(svg, 'style')
        style.text = STYLES

        sections_group = SubElement(svg, 'g')
        sections_group.set('id', 'sections')
        connections_group = SubElement(svg, 'g')
        connections_group.set('id', 'connections')
        blocks_group = SubElement(svg, 'g')
        blocks_group.set('id', 'blocks')
        annotations_group = SubElement(svg, 'g')
        annotations_group.set('id', 'annotations')

        for index, section in enumerate(diagram.sections):
            self._render_section(sections_group, index, section.name)

        for connection, source, target in diagram.bound_connections():
            self._render_connection(connections_group, connection, source, target)

        for block in diagram.blocks:
            self._render_block(blocks_group, block)

        for annotation in diagram.annotations:
            self._render_annotation(annotations_group, annotation)

        ET.indent(svg, space="  ")
        svg_str = ET.tostring(svg, encoding='unicode')
        return '<?xml version="1.0" encoding="UTF-8"?>\n' + svg_str

    # =========================================================================
    # DEFS
    # =========================================================================

    def _add_defs(self, defs: Element) -> None:
        """Arrow marker for connection lines."""
        marker = SubElement(defs, 'marker')
        marker.set('id', 'arrowhead')
        marker.set('markerWidth', '10')
        marker.set('markerHeight', '7')
        marker.set('refX', '9')
        marker.set('refY', '3.5')
        marker.set('orient', 'auto')

        arrow = SubElement(marker, 'polygon')
        arrow.set('points', '0 0, 10 3.5, 0 7')
        arrow.set('fill', '#555555')

    # =========================================================================
    # ELEMENTS
    # =========================================================================

    def _render_section(self, parent: Element, index: int, name: str) -> None:
        section_width = self.config.section_width
        x = index * section_width

        rect = SubElement(parent, 'rect')
        rect.set('x', format_px(x + SECTION_INSET))
        rect.set('y', format_px(SECTION_TOP))
        rect.set('width', format_px(section_width - 2 * SECTION_INSET))
        rect.set('height', format_px(self.config.canvas_height - 2 * SECTION_TOP))
        rect.set('fill', SECTION_FILL)
        rect.set('stroke', SECTION_STROKE)
        rect.set('stroke-dasharray', '5,5')

        label = SubElement(parent, 'text')
        label.set('x', format_px(x + section_width / 2))
        label.set('y', format_px(SECTION_TOP + SECTION_LABEL_OFFSET))
        label.set('class', 'section-label')
        label.text = name

    def _render_block(self, parent: Element, block: Block) -> None:
        group = SubElement(parent, 'g')
        group.set('id', block.id)

        rect = SubElement(group, 'rect')
        rect.set('x', format_px(block.x))
        rect.set('y', format_px(block.y))
        rect.set('width', format_px(block.width))
        rect.set('height', format_px(block.height))
        rect.set('rx', '4')
        rect.set('class', 'block')

        label = SubElement(group, 'text')
        label.set('x', format_px(block.center_x))
        label.set('y', format_px(block.center_y + 5))
        label.set('class', 'block-label')
        label.text = block.name

    def _render_connection(
        self,
        parent: Element,
        connection: Connection,
        source: Block,
        target: Block,
    ) -> None:
        line = SubElement(parent, 'line')
        line.set('id', connection.id)
        line.set('x1', format_px(source.center_x))
        line.set('y1', format_px(source.center_y))
        line.set('x2', format_px(target.center_x))
        line.set('y2', format_px(target.center_y))
        line.set('class', 'connection')

        if connection.label:
            label = SubElement(parent, 'text')
            label.set('x', format_px((source.center_x + target.center_x) / 2))
            label.set('y', format_px((source.center_y + target.center_y) / 2 - 5))
            label.set('class', 'connection-label')
            label.text = connection.label

    def _render_annotation(self, parent: Element, annotation: Annotation) -> None:
        group = SubElement(parent, 'g')
        group.set('id', annotation.id)

        rect = SubElement(group, 'rect')
        rect.set('x', format_px(annotation.x))
        rect.set('y', format_px(annotation.y))
        rect.set('width', format_px(ANNOTATION_WIDTH))
        rect.set('height', format_px(ANNOTATION_HEIGHT))
        rect.set('rx', '3')
        rect.set('class', 'annotation')

        text = SubElement(group, 'text')
        text.set('x', format_px(annotation.x + 5))
        text.set('y', format_px(annotation.y + 20))
        text.set('class', 'annotation-text')
        text.text = annotation.text


def render_to_svg(diagram: Diagram) -> str:
    """Convenience function to render a diagram to an SVG string."""
    return SVGRenderer().render(diagram)
