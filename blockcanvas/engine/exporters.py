"""
exporters.py — One entry point for the three download formats.

Every exporter is a pure function of a materialized Diagram. The
structured dump is the persisted form itself, so re-importing it with
``Diagram.from_json`` reproduces an equal diagram.
"""

from dataclasses import dataclass
from enum import Enum

from .diagram import Diagram
from .drawio_renderer import render_to_drawio
from .svg_renderer import render_to_svg


class ExportFormat(str, Enum):
    """Supported download formats."""
    JSON = "json"
    SVG = "svg"
    DRAWIO = "drawio"


@dataclass(frozen=True)
class ExportResult:
    """Serialized diagram ready to be streamed as an attachment."""
    content: bytes
    media_type: str
    filename: str

    @property
    def content_disposition(self) -> str:
        return f"attachment; filename={self.filename}"


# format → (media type, file extension)
_FORMATS = {
    ExportFormat.JSON: ("application/json", "json"),
    ExportFormat.SVG: ("image/svg+xml", "svg"),
    ExportFormat.DRAWIO: ("application/xml", "xml"),
}


def export_diagram(diagram: Diagram, export_format: ExportFormat | str) -> ExportResult:
    """
    Serialize a diagram.

    Args:
        diagram: Diagram to export
        export_format: One of ``json``, ``svg`` or ``drawio``

    Returns:
        ExportResult with UTF-8 content, media type and download filename

    Raises:
        ValueError: If the format is not supported
    """
    export_format = ExportFormat(export_format)

    if export_format is ExportFormat.JSON:
        text = diagram.to_json()
    elif export_format is ExportFormat.SVG:
        text = render_to_svg(diagram)
    else:
        text = render_to_drawio(diagram)

    media_type, extension = _FORMATS[export_format]
    return ExportResult(
        content=text.encode("utf-8"),
        media_type=media_type,
        filename=f"diagram_{diagram.id}.{extension}",
    )
