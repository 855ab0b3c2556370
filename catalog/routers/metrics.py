import asyncio

from fastapi import APIRouter, Depends

from catalog.database import get_store
from catalog.models import BlogPost, GalleryImage, Service, ServiceFeature
from catalog.schemas import MetricsResponse
from catalog.store import QueryEngine

router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])

@router.get("", response_model=MetricsResponse)
async def get_metrics(store: QueryEngine = Depends(get_store)):

    total_services, total_features, total_posts, total_images = await asyncio.gather(
        store.count_where(Service),
        store.count_where(ServiceFeature),
        store.count_where(BlogPost),
        store.count_where(GalleryImage),
    )

    avg_features = total_features / total_services if total_services > 0 else 0

    return MetricsResponse(
        total_services=total_services,
        total_blog_posts=total_posts,
        total_gallery_images=total_images,
        avg_features_per_service=round(avg_features, 2),
    )
