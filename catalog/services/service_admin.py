"""
Service admin: paginated listing and the write path for the Service
aggregate.

Design notes
------------
- The listing reuses the read pipeline of ``service_catalog``: one COUNT,
  one page of parent rows, then the fixed set of batched relation queries.
- Writes never patch child relations in place.  An update deletes every
  child row of the service and inserts the payload's lists again, with
  order keys assigned ``1..n`` from list position.
- Deletes remove pricing features before pricing tiers, every other child
  relation (including links *to* the deleted services from other services)
  and finally the parent rows.
- Service functions flush but do not commit; the transaction boundary is
  owned by the ``get_db`` dependency in the router layer.
"""
import asyncio
import logging
import re
import time
from collections.abc import Sequence

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.models import (
    Service,
    ServiceBenefit,
    ServiceCategory,
    ServiceDeliverable,
    ServiceFaq,
    ServiceFeature,
    ServiceGalleryImage,
    ServicePricingFeature,
    ServicePricingTier,
    ServiceProcessStep,
    ServiceRelated,
    ServiceTechnology,
    ServiceTestimonial,
)
from catalog.schemas import AdminServicePage, Envelope, PageInfo, ServiceCreate, ServiceUpdate
from catalog.services.service_catalog import STORAGE_ERRORS, hydrate_services
from catalog.store import QueryEngine

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_SLUG_STRIP_RE = re.compile(r"[^\w\s-]")
_SLUG_SPACE_RE = re.compile(r"[\s_]+")
_SLUG_DASH_RE = re.compile(r"-+")

# Columns that are safe to sort by; guards against arbitrary attribute access.
_SORTABLE_COLUMNS: frozenset[str] = frozenset({"created_at", "title", "category", "timeline"})

# Child tables keyed directly by service_id, pricing tiers last.
_CHILD_MODELS = (
    ServiceFeature,
    ServiceBenefit,
    ServiceProcessStep,
    ServiceTechnology,
    ServiceDeliverable,
    ServiceGalleryImage,
    ServiceTestimonial,
    ServiceFaq,
    ServiceRelated,
    ServicePricingTier,
)

AdminServiceList = Envelope[AdminServicePage]


class UnknownRelatedServices(LookupError):
    """Raised when a payload links to services that do not exist."""

    def __init__(self, ids: Sequence[str]) -> None:
        self.ids = list(ids)
        super().__init__(f"Unknown related service id(s): {', '.join(self.ids)}")


def slugify(text: str) -> str:
    """Return a URL-safe, lowercase slug derived from *text*."""
    text = _SLUG_STRIP_RE.sub("", text.lower().strip())
    text = _SLUG_SPACE_RE.sub("-", text)
    return _SLUG_DASH_RE.sub("-", text).strip("-")


def _resolve_sort_column(sort_by: str):
    """
    Return the SQLAlchemy column expression for *sort_by*.

    Falls back to ``Service.created_at`` for any unrecognised column name.
    """
    if sort_by in _SORTABLE_COLUMNS:
        return getattr(Service, sort_by)
    return Service.created_at


def _empty_page(page: int) -> AdminServicePage:
    return AdminServicePage(services=[], total_services=0, **PageInfo.compute(0, page, 1))


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------

async def list_admin_services(
    store: QueryEngine,
    page: int = 1,
    page_size: int = 10,
    category: ServiceCategory | None = None,
    search: str | None = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> AdminServiceList:
    """
    Return one page of hydrated services for the admin console.

    *search* is a plain case-insensitive substring match on the title and
    both descriptions.
    """
    criteria = []
    if category is not None:
        criteria.append(Service.category == ServiceCategory(category))
    if search:
        pattern = f"%{search}%"
        criteria.append(
            or_(
                Service.title.ilike(pattern),
                Service.short_description.ilike(pattern),
                Service.full_description.ilike(pattern),
            )
        )

    sort_col = _resolve_sort_column(sort_by)
    order_expr = sort_col.asc() if sort_order == "asc" else sort_col.desc()

    try:
        total, services = await asyncio.gather(
            store.count_where(Service, *criteria),
            store.select_where(
                Service,
                *criteria,
                order_by=(order_expr, Service.slug),
                limit=page_size,
                offset=(page - 1) * page_size,
            ),
        )
        hydrated = await hydrate_services(store, services)
    except STORAGE_ERRORS as exc:
        logger.exception("Failed to fetch admin services")
        return AdminServiceList.fail(str(exc) or "Failed to fetch services", _empty_page(page))

    return AdminServiceList.ok(
        AdminServicePage(
            services=hydrated,
            total_services=total,
            **PageInfo.compute(total, page, page_size),
        )
    )


# ---------------------------------------------------------------------------
# Write path
# ---------------------------------------------------------------------------

async def _insert_relations(db: AsyncSession, service_id: str, data: ServiceCreate) -> None:
    """Insert every child relation described by *data*, order keys from position."""
    db.add_all(
        [ServiceFeature(service_id=service_id, feature=v, order=i) for i, v in enumerate(data.features, 1)]
        + [ServiceBenefit(service_id=service_id, benefit=v, order=i) for i, v in enumerate(data.benefits, 1)]
        + [
            ServiceTechnology(service_id=service_id, technology=v, order=i)
            for i, v in enumerate(data.technologies, 1)
        ]
        + [
            ServiceDeliverable(service_id=service_id, deliverable=v, order=i)
            for i, v in enumerate(data.deliverables, 1)
        ]
        + [
            ServiceGalleryImage(service_id=service_id, image_url=v, order=i)
            for i, v in enumerate(data.gallery, 1)
        ]
        + [
            ServiceProcessStep(
                service_id=service_id,
                step=step.step,
                title=step.title,
                description=step.description,
                duration=step.duration,
            )
            for step in data.process
        ]
        + [
            ServiceFaq(service_id=service_id, question=f.question, answer=f.answer, order=i)
            for i, f in enumerate(data.faq, 1)
        ]
        + [
            ServiceTestimonial(
                service_id=service_id,
                quote=t.quote,
                author=t.author,
                company=t.company,
                avatar=t.avatar,
            )
            for t in data.testimonials
        ]
        + [
            ServiceRelated(service_id=service_id, related_service_id=rid)
            for rid in dict.fromkeys(data.related_services)
            if rid != service_id
        ]
    )

    # Tier rows need their generated id before their features can point at it.
    for position, tier in enumerate(data.pricing, 1):
        tier_row = ServicePricingTier(
            service_id=service_id,
            name=tier.name,
            price=tier.price,
            description=tier.description,
            popular=tier.popular,
            order=position,
        )
        db.add(tier_row)
        await db.flush()
        db.add_all(
            [
                ServicePricingFeature(pricing_tier_id=tier_row.id, feature=feature, order=i)
                for i, feature in enumerate(tier.features, 1)
            ]
        )
    await db.flush()


async def _delete_relations(db: AsyncSession, service_ids: Sequence[str]) -> None:
    tier_ids = select(ServicePricingTier.id).where(ServicePricingTier.service_id.in_(service_ids))
    await db.execute(
        delete(ServicePricingFeature).where(ServicePricingFeature.pricing_tier_id.in_(tier_ids))
    )
    for model in _CHILD_MODELS:
        await db.execute(delete(model).where(model.service_id.in_(service_ids)))


async def _unique_slug(db: AsyncSession, data: ServiceCreate, service_id: str | None = None) -> str:
    """
    Explicit slugs are used verbatim (a clash surfaces as an integrity
    error).  Slugs derived from the title get a Unix timestamp suffix on
    collision.
    """
    if data.slug:
        return data.slug
    slug = slugify(data.title)
    q = select(Service.id).where(Service.slug == slug)
    if service_id is not None:
        q = q.where(Service.id != service_id)
    existing = await db.execute(q)
    if existing.scalar_one_or_none() is not None:
        slug = f"{slug}-{int(time.time())}"
    return slug


async def _check_related(db: AsyncSession, data: ServiceCreate, service_id: str | None = None) -> None:
    ids = [rid for rid in dict.fromkeys(data.related_services) if rid != service_id]
    if not ids:
        return
    result = await db.execute(select(Service.id).where(Service.id.in_(ids)))
    found = set(result.scalars().all())
    missing = [rid for rid in ids if rid not in found]
    if missing:
        raise UnknownRelatedServices(missing)


async def create_service(db: AsyncSession, data: ServiceCreate) -> dict:
    """Insert a service and all of its child relations; return its id and slug."""
    await _check_related(db, data)
    service = Service(
        title=data.title,
        slug=await _unique_slug(db, data),
        short_description=data.short_description,
        full_description=data.full_description,
        timeline=data.timeline,
        category=data.category,
        status=data.status,
        featured_image=data.featured_image,
    )
    db.add(service)
    await db.flush()

    await _insert_relations(db, service.id, data)
    logger.info("Created service %s (%s)", service.id, service.slug)
    return {"id": service.id, "slug": service.slug}


async def update_service(db: AsyncSession, service_id: str, data: ServiceUpdate) -> dict | None:
    """
    Overwrite the scalar fields of *service_id* and replace every child
    relation with the payload's lists.

    Returns None when the service does not exist.
    """
    service = await db.get(Service, service_id)
    if service is None:
        return None

    await _check_related(db, data, service_id)

    # Without an explicit slug the public URL only moves when the title does.
    if data.slug or data.title != service.title:
        service.slug = await _unique_slug(db, data, service_id)
    for field in (
        "title",
        "short_description",
        "full_description",
        "timeline",
        "category",
        "status",
        "featured_image",
    ):
        setattr(service, field, getattr(data, field))

    await _delete_relations(db, [service_id])
    await _insert_relations(db, service_id, data)
    logger.info("Replaced service %s", service_id)
    return {"id": service.id, "slug": service.slug}


async def delete_services(db: AsyncSession, service_ids: Sequence[str]) -> int:
    """
    Delete the given services and everything they own.

    Unknown ids are ignored.  Returns the number of services deleted.
    """
    result = await db.execute(select(Service.id).where(Service.id.in_(list(service_ids))))
    found = list(result.scalars().all())
    if not found:
        return 0

    await _delete_relations(db, found)
    await db.execute(delete(ServiceRelated).where(ServiceRelated.related_service_id.in_(found)))
    await db.execute(delete(Service).where(Service.id.in_(found)))
    await db.flush()
    logger.info("Deleted %d service(s)", len(found))
    return len(found)
