"""Gallery read path: available images with their active groups."""
import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.models import GalleryGroup, GalleryImage, gallery_image_groups
from catalog.services import gallery_catalog
from catalog.store import QueryEngine


def _image(name: str, order: int, **extra) -> GalleryImage:
    return GalleryImage(
        name=name,
        alt_text=f"{name} alt",
        file_name=f"{name}.jpg",
        original_url=f"/o/{name}.jpg",
        file_size=1024,
        mime_type="image/jpeg",
        display_order=order,
        **extra,
    )


async def _seed_gallery(db: AsyncSession) -> dict:
    web = GalleryGroup(name="Web", slug="web", display_order=1)
    brand = GalleryGroup(name="Brand", slug="brand", display_order=2)
    hidden = GalleryGroup(name="Hidden", slug="hidden", is_active=False)
    images = {
        "first": _image("first", 1, is_featured=True),
        "second": _image("second", 2),
        "third": _image("third", 3),
        "offline": _image("offline", 0, is_available=False),
    }
    db.add_all([web, brand, hidden, *images.values()])
    await db.flush()
    await db.execute(
        gallery_image_groups.insert(),
        [
            {"image_id": images["first"].id, "group_id": brand.id, "display_order": 2},
            {"image_id": images["first"].id, "group_id": web.id, "display_order": 1},
            {"image_id": images["first"].id, "group_id": hidden.id, "display_order": 0},
            {"image_id": images["third"].id, "group_id": web.id, "display_order": 1},
        ],
    )
    await db.commit()
    return {name: image.id for name, image in images.items()}


@pytest.mark.asyncio
async def test_fetch_gallery_images_available_in_display_order(store: QueryEngine, db_session: AsyncSession):
    await _seed_gallery(db_session)
    result = await gallery_catalog.fetch_gallery_images(store)

    assert result.success is True
    assert [i.name for i in result.data.images] == ["first", "second", "third"]
    assert result.data.total_images == 3
    assert result.data.group is None

    first = result.data.images[0]
    # Inactive groups are not listed; order follows the position in each group.
    assert [g.slug for g in first.groups] == ["web", "brand"]
    assert result.data.images[1].groups == []


@pytest.mark.asyncio
async def test_fetch_gallery_images_by_group(store: QueryEngine, db_session: AsyncSession):
    await _seed_gallery(db_session)
    result = await gallery_catalog.fetch_gallery_images(store, group_slug="web")
    assert [i.name for i in result.data.images] == ["first", "third"]
    assert result.data.group.slug == "web"


@pytest.mark.asyncio
async def test_fetch_gallery_images_featured_only(store: QueryEngine, db_session: AsyncSession):
    await _seed_gallery(db_session)
    result = await gallery_catalog.fetch_gallery_images(store, featured=True)
    assert [i.name for i in result.data.images] == ["first"]


@pytest.mark.asyncio
async def test_fetch_gallery_images_unknown_or_inactive_group(store: QueryEngine, db_session: AsyncSession):
    await _seed_gallery(db_session)
    for slug in ("missing", "hidden"):
        result = await gallery_catalog.fetch_gallery_images(store, group_slug=slug)
        assert result.success is False
        assert result.error == "Gallery group not found"
        assert result.data.images == []


@pytest.mark.asyncio
async def test_fetch_gallery_images_pagination(store: QueryEngine, db_session: AsyncSession):
    await _seed_gallery(db_session)
    result = await gallery_catalog.fetch_gallery_images(store, page=2, page_size=2)
    assert [i.name for i in result.data.images] == ["third"]
    assert result.data.total_pages == 2
    assert result.data.current_page == 2


class UnavailableStore:
    async def count_where(self, *args, **kwargs):
        raise OperationalError("SELECT count(*)", {}, Exception("connection refused"))

    async def select_where(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))


@pytest.mark.asyncio
async def test_fetch_gallery_images_storage_error_keeps_requested_page():
    result = await gallery_catalog.fetch_gallery_images(UnavailableStore(), page=2, page_size=10)
    assert result.success is False
    assert "connection refused" in result.error
    assert result.data.images == []
    assert result.data.current_page == 2
