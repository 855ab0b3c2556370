from fastapi import APIRouter, Depends, Query, Response

from catalog.database import get_store
from catalog.dependencies import PaginationParams
from catalog.routers.services import envelope_status
from catalog.services import blog_catalog
from catalog.services.blog_catalog import PostDetail, PostList, PostPage
from catalog.store import QueryEngine

router = APIRouter(prefix="/api/v1/blog", tags=["blog"])

@router.get("/posts", response_model=PostPage)
async def list_posts(
    response: Response,
    pagination: PaginationParams = Depends(),
    category: str | None = Query(None, description="Category slug to filter by."),
    tag: str | None = Query(None, description="Tag slug to filter by."),
    store: QueryEngine = Depends(get_store),
):
    result = await blog_catalog.fetch_posts(
        store,
        pagination.page,
        pagination.page_size,
        category_slug=category,
        tag_slug=tag,
    )
    if result.error in (blog_catalog.CATEGORY_NOT_FOUND, blog_catalog.TAG_NOT_FOUND):
        response.status_code = 404
    else:
        response.status_code = envelope_status(result)
    return result

@router.get("/posts/{slug}", response_model=PostDetail)
async def get_post(slug: str, response: Response, store: QueryEngine = Depends(get_store)):
    result = await blog_catalog.fetch_post_by_slug(store, slug)
    response.status_code = envelope_status(result, blog_catalog.POST_NOT_FOUND)
    return result

@router.get("/posts/{slug}/related", response_model=PostList)
async def get_related_posts(
    slug: str,
    response: Response,
    limit: int = Query(3, ge=1, le=10),
    store: QueryEngine = Depends(get_store),
):
    current = await blog_catalog.fetch_post_by_slug(store, slug)
    if not current.success:
        response.status_code = envelope_status(current, blog_catalog.POST_NOT_FOUND)
        return PostList.fail(current.error, [])

    result = await blog_catalog.fetch_related_posts(store, current.data.id, limit=limit)
    response.status_code = envelope_status(result)
    return result
