import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from sitemedia.api.dependencies import get_directory, get_media_service
from sitemedia.api.schemas import (
    FolderNodeOut,
    FolderTreeOut,
    RenderedMediaOut,
    ResolutionFailureOut,
    ResolvedMediaOut,
    TransformationParams,
)
from sitemedia.core.errors import FolderListingError
from sitemedia.media.models import ResolutionFailure
from sitemedia.media.service import MediaService
from sitemedia.storage.folders import MediaDirectory, count_nodes

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/media", tags=["media"])


@router.get("/folders", response_model=FolderTreeOut)
def folder_tree(directory: MediaDirectory = Depends(get_directory)) -> FolderTreeOut:
    try:
        tree = directory.folder_tree()
    except FolderListingError as exc:
        logger.warning("Folder listing failed.", extra={"detail": str(exc)})
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return FolderTreeOut(
        folders=[FolderNodeOut.from_node(node) for node in tree],
        total_folders=count_nodes(tree),
    )


@router.get("/resolve/{logical_id:path}", response_model=ResolvedMediaOut)
async def resolve_media(
    logical_id: str,
    params: TransformationParams = Depends(),
    area: Optional[str] = None,
    responsive: bool = False,
    media: MediaService = Depends(get_media_service),
) -> ResolvedMediaOut:
    result = await media.resolve_media(
        logical_id, params.to_spec(), area=area, responsive=responsive
    )
    if isinstance(result, ResolutionFailure):
        failure = ResolutionFailureOut.from_failure(result, media.fallback_url)
        raise HTTPException(status_code=404, detail=failure.model_dump())
    return ResolvedMediaOut.from_media(result)


@router.get("/render/{logical_id:path}", response_model=RenderedMediaOut)
async def render_media(
    logical_id: str,
    params: TransformationParams = Depends(),
    area: Optional[str] = None,
    responsive: bool = False,
    alt: str = "",
    media: MediaService = Depends(get_media_service),
) -> RenderedMediaOut:
    session = media.session(
        logical_id=logical_id,
        spec=params.to_spec(),
        area=area,
        responsive=responsive,
        alt=alt,
    )
    try:
        await session.load()
    finally:
        session.close()
    return RenderedMediaOut.from_session(session)
