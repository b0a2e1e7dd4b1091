"""Render endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from protograph.api.deps import get_settings
from protograph.api.schemas import EdgeSummary, EntitySummary, RenderRequest, RenderResponse
from protograph.config import Config
from protograph.errors import AmbiguousSelection, MissingImport, ProtographError
from protograph.pipeline import SchemaSession, describe_source, with_overrides
from protograph.sources import MappingSource

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["render"])


@router.post("/render", response_model=RenderResponse)
async def render_schema(
    request: RenderRequest,
    settings: Config = Depends(get_settings),
) -> RenderResponse:
    """Load the uploaded schema files and render the requested graph.

    Each request is an independent run; imports are served only from the
    request's own `files` mapping.
    """
    settings = with_overrides(
        settings,
        allow_missing_imports=request.allow_missing_imports,
        show_missing_types=request.show_missing_types,
    )
    session = SchemaSession(settings, find_source=MappingSource(request.files))
    label = describe_source(request.root)

    try:
        root = session.load(request.root)
        dot, subgraph = session.render(request.selection)
    except AmbiguousSelection as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": str(e), "candidates": e.candidates},
        ) from e
    except MissingImport as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ProtographError as e:
        logger.warning(f"Render of {label} failed: {e}")
        raise HTTPException(status_code=422, detail=str(e)) from e

    graph = subgraph.to_dict() if subgraph is not None else {"entities": [], "edges": []}
    return RenderResponse(
        root=root.identifier,
        selection=request.selection,
        dot=dot,
        entities=[EntitySummary(**entity) for entity in graph["entities"]],
        edges=[EdgeSummary(**edge) for edge in graph["edges"]],
        dependencies=session.dependencies(),
        missing_imports=session.walker.missing(),
    )
