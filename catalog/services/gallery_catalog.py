"""
Gallery catalog: available images with their active groups.
"""
import asyncio
import logging

from sqlalchemy import select

from catalog.hydration.builders import build_gallery_image
from catalog.hydration.loaders import load_image_groups
from catalog.models import GalleryGroup, GalleryImage, gallery_image_groups
from catalog.schemas import Envelope, GalleryGroupSummary, GalleryPage, PageInfo
from catalog.services.service_catalog import STORAGE_ERRORS
from catalog.store import QueryEngine

logger = logging.getLogger(__name__)

GROUP_NOT_FOUND = "Gallery group not found"

IMAGE_ORDER = (GalleryImage.display_order, GalleryImage.created_at, GalleryImage.id)

ImagePage = Envelope[GalleryPage]


def _empty_page(page: int) -> GalleryPage:
    return GalleryPage(images=[], total_images=0, **PageInfo.compute(0, page, 1))


async def fetch_gallery_images(
    store: QueryEngine,
    page: int = 1,
    page_size: int = 20,
    group_slug: str | None = None,
    featured: bool = False,
) -> ImagePage:
    """
    Return one page of available images ordered by display order.

    When *group_slug* names an active group, only that group's images are
    listed and the group itself is echoed back in the page.  An unknown or
    inactive group yields a failure envelope carrying an empty page.
    """
    try:
        criteria = [GalleryImage.is_available.is_(True)]
        if featured:
            criteria.append(GalleryImage.is_featured.is_(True))

        group = None
        if group_slug:
            found = await store.select_where(
                GalleryGroup,
                GalleryGroup.slug == group_slug,
                GalleryGroup.is_active.is_(True),
                limit=1,
            )
            if not found:
                logger.info("Gallery group %r not found", group_slug)
                return ImagePage.fail(GROUP_NOT_FOUND, _empty_page(page))
            group = found[0]
            members = select(gallery_image_groups.c.image_id).where(
                gallery_image_groups.c.group_id == group.id
            )
            criteria.append(GalleryImage.id.in_(members))

        total, images = await asyncio.gather(
            store.count_where(GalleryImage, *criteria),
            store.select_where(
                GalleryImage,
                *criteria,
                order_by=IMAGE_ORDER,
                limit=page_size,
                offset=(page - 1) * page_size,
            ),
        )
        groups = await load_image_groups(store, [image.id for image in images])
    except STORAGE_ERRORS as exc:
        logger.exception("Failed to fetch gallery images")
        return ImagePage.fail(str(exc) or "Failed to fetch gallery images", _empty_page(page))

    return ImagePage.ok(
        GalleryPage(
            images=[build_gallery_image(image, groups) for image in images],
            total_images=total,
            group=GalleryGroupSummary.model_validate(group) if group is not None else None,
            **PageInfo.compute(total, page, page_size),
        )
    )
