from fastapi import APIRouter, Depends, Query, Response

from catalog.database import get_store
from catalog.dependencies import PaginationParams
from catalog.routers.services import envelope_status
from catalog.services import gallery_catalog
from catalog.services.gallery_catalog import ImagePage
from catalog.store import QueryEngine

router = APIRouter(prefix="/api/v1/gallery", tags=["gallery"])

@router.get("", response_model=ImagePage)
async def list_images(
    response: Response,
    pagination: PaginationParams = Depends(),
    group: str | None = Query(None, description="Gallery group slug."),
    featured: bool = False,
    store: QueryEngine = Depends(get_store),
):
    result = await gallery_catalog.fetch_gallery_images(
        store,
        pagination.page,
        pagination.page_size,
        group_slug=group,
        featured=featured,
    )
    response.status_code = envelope_status(result, gallery_catalog.GROUP_NOT_FOUND)
    return result
