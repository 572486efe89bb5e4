"""Diagram routes: generation, CRUD and export."""

import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException, status
from fastapi.responses import Response
from pydantic import BaseModel

from blockcanvas.api.dependencies import GeneratorDep, RepositoryDep
from blockcanvas.engine.exporters import ExportFormat, export_diagram
from blockcanvas.errors import (
    DiagramNotFoundError,
    DiagramValidationError,
    InputValidationError,
    PersistenceError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class GenerateRequest(BaseModel):
    """Request to generate a diagram."""
    description: Any = None


class DeleteResponse(BaseModel):
    """Delete confirmation."""
    message: str


def _to_http(error: Exception) -> HTTPException:
    """Map a domain error onto an HTTP error."""
    if isinstance(error, DiagramNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)
    if isinstance(error, InputValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)
    if isinstance(error, DiagramValidationError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": error.message, "errors": error.details},
        )
    logger.error(f"Persistence failure: {error}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Diagram storage is unavailable",
    )


@router.post("/generate")
async def generate_diagram(
    generator: GeneratorDep,
    repository: RepositoryDep,
    request: GenerateRequest | None = None,
) -> dict[str, Any]:
    """Generate a diagram from a product description and store it."""
    description = request.description if request else None

    try:
        diagram = await generator.generate(description)
        repository.create(diagram)
    except (InputValidationError, PersistenceError) as e:
        raise _to_http(e)

    return diagram.to_dict()


@router.get("")
async def list_diagrams(repository: RepositoryDep) -> list[dict[str, Any]]:
    """List stored diagrams, newest first."""
    try:
        diagrams = repository.list_all()
    except PersistenceError as e:
        raise _to_http(e)
    return [diagram.to_dict() for diagram in diagrams]


@router.get("/{diagram_id}")
async def get_diagram(diagram_id: str, repository: RepositoryDep) -> dict[str, Any]:
    """Fetch one diagram."""
    try:
        return repository.get(diagram_id).to_dict()
    except (InputValidationError, PersistenceError) as e:
        raise _to_http(e)


@router.put("/{diagram_id}")
async def update_diagram(
    diagram_id: str,
    repository: RepositoryDep,
    update: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    """Replace whole collections of a diagram.

    Accepts any of ``blocks``, ``connections``, ``annotations`` (lists)
    and ``title``. Other keys, and collections that are not lists, are
    ignored.
    """
    try:
        return repository.update(diagram_id, update).to_dict()
    except (InputValidationError, PersistenceError) as e:
        raise _to_http(e)


@router.delete("/{diagram_id}", response_model=DeleteResponse)
async def delete_diagram(diagram_id: str, repository: RepositoryDep):
    """Delete a diagram."""
    try:
        repository.delete(diagram_id)
    except (InputValidationError, PersistenceError) as e:
        raise _to_http(e)
    return DeleteResponse(message="Diagram deleted successfully")


@router.get("/{diagram_id}/export/{export_format}")
async def export(
    diagram_id: str,
    export_format: ExportFormat,
    repository: RepositoryDep,
) -> Response:
    """Download a diagram as JSON, SVG or draw.io XML."""
    try:
        diagram = repository.get(diagram_id)
    except (InputValidationError, PersistenceError) as e:
        raise _to_http(e)

    result = export_diagram(diagram, export_format)
    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={"Content-Disposition": result.content_disposition},
    )
