"""Draw.io (mxGraph) XML export of a Diagram."""

from xml.etree import ElementTree as ET

from .diagram import Diagram

BLOCK_STYLE = "rounded=1;whiteSpace=wrap;html=1;fillColor=#e3f2fd;strokeColor=#1976d2;strokeWidth=2"
EDGE_STYLE = "edgeStyle=orthogonalEdgeStyle;rounded=0;orthogonalLoop=1;jettySize=auto;html=1"

# Cells "0" and "1" are the mxGraph root and default layer
FIRST_CELL_ID = 2


def _number(value: float) -> str:
    """Integral values without a trailing .0, as draw.io writes them."""
    return str(int(value)) if float(value).is_integer() else str(value)


def render_to_drawio(diagram: Diagram, page_name: str = "Page-1") -> str:
    """Build an mxfile document for a diagram.

    One vertex per block, in block order, then one edge per connection
    whose endpoints both resolve to blocks. Section-level connections
    have no cells to attach to and are left out.
    """
    mxfile = ET.Element('mxfile', {
        'host': 'blockcanvas',
        'modified': diagram.updated_at.isoformat(),
        'agent': 'BlockCanvas',
        'version': '1.0',
    })
    page = ET.SubElement(mxfile, 'diagram', {
        'name': page_name,
        'id': diagram.id,
    })
    model = ET.SubElement(page, 'mxGraphModel', {
        'dx': '0',
        'dy': '0',
        'grid': '1',
        'gridSize': '10',
        'guides': '1',
        'tooltips': '1',
        'connect': '1',
        'arrows': '1',
        'fold': '1',
        'page': '1',
        'pageScale': '1',
        'pageWidth': '1400',
        'pageHeight': '900',
    })
    root = ET.SubElement(model, 'root')

    ET.SubElement(root, 'mxCell', {'id': '0'})
    ET.SubElement(root, 'mxCell', {'id': '1', 'parent': '0'})

    cell_ids = {}
    for offset, block in enumerate(diagram.blocks):
        cell_id = str(FIRST_CELL_ID + offset)
        cell_ids[block.id] = cell_id

        cell = ET.SubElement(root, 'mxCell', {
            'id': cell_id,
            'value': block.name,
            'style': BLOCK_STYLE,
            'vertex': '1',
            'parent': '1',
        })
        ET.SubElement(cell, 'mxGeometry', {
            'x': _number(block.x),
            'y': _number(block.y),
            'width': _number(block.width),
            'height': _number(block.height),
            'as': 'geometry',
        })

    next_id = FIRST_CELL_ID + len(diagram.blocks)
    for connection, source, target in diagram.bound_connections():
        cell = ET.SubElement(root, 'mxCell', {
            'id': str(next_id),
            'value': connection.label,
            'style': EDGE_STYLE,
            'edge': '1',
            'parent': '1',
            'source': cell_ids[source.id],
            'target': cell_ids[target.id],
        })
        ET.SubElement(cell, 'mxGeometry', {'relative': '1', 'as': 'geometry'})
        next_id += 1

    ET.indent(mxfile, space="  ")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(mxfile, encoding='unicode')
