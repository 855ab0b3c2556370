"""
Relation loaders: one batched query per relation kind.

Every loader takes the full list of parent ids for the current call and
issues a single ``fk IN (...)`` query, so the number of round trips is fixed
per relation instead of growing with the number of parents.  A one-element
id list goes through exactly the same ``IN`` query; there is no separate
equality path that could order rows differently.

Ordering contract
-----------------
Rows are returned ascending by the relation's order key, with the child's
autoincrement id as tie-breaker (and as the whole key for relations that
only have insertion order).  The store is asked to sort, and the result is
sorted again in Python with a stable sort in case the engine does not
honour ``ORDER BY`` for the chosen plan.  Downstream grouping and building
never reorder.
"""
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from operator import itemgetter
from typing import Any

from catalog.hydration.grouping import group_by
from catalog.models import (
    GalleryGroup,
    Service,
    ServiceBenefit,
    ServiceDeliverable,
    ServiceFaq,
    ServiceFeature,
    ServiceGalleryImage,
    ServiceProcessStep,
    ServiceRelated,
    ServiceTechnology,
    ServiceTestimonial,
    Tag,
    blog_posts_tags,
    gallery_image_groups,
)
from catalog.store import QueryEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RelationSpec:
    """Describes one child relation: its table, foreign key and order key."""

    name: str
    model: type
    foreign_key: Any
    order_by: tuple[Any, ...]

    def key_of(self, row) -> Any:
        return getattr(row, self.foreign_key.key)

    def sort_key(self, row) -> tuple:
        return tuple(getattr(row, column.key) for column in self.order_by)


def _spec(name: str, model, order_column=None) -> RelationSpec:
    order_by = (order_column, model.id) if order_column is not None else (model.id,)
    return RelationSpec(name, model, model.service_id, order_by)


FEATURES = _spec("features", ServiceFeature, ServiceFeature.order)
BENEFITS = _spec("benefits", ServiceBenefit, ServiceBenefit.order)
PROCESS_STEPS = _spec("process", ServiceProcessStep, ServiceProcessStep.step)
TECHNOLOGIES = _spec("technologies", ServiceTechnology, ServiceTechnology.order)
DELIVERABLES = _spec("deliverables", ServiceDeliverable, ServiceDeliverable.order)
GALLERY_IMAGES = _spec("gallery", ServiceGalleryImage, ServiceGalleryImage.order)
TESTIMONIALS = _spec("testimonials", ServiceTestimonial)
FAQS = _spec("faq", ServiceFaq, ServiceFaq.order)

# Every single-table one-to-many relation of a service.  Pricing (two
# levels) and related services (join) have dedicated loaders.
SERVICE_RELATIONS: tuple[RelationSpec, ...] = (
    FEATURES,
    BENEFITS,
    PROCESS_STEPS,
    TECHNOLOGIES,
    DELIVERABLES,
    GALLERY_IMAGES,
    TESTIMONIALS,
    FAQS,
)


# ---------------------------------------------------------------------------
# Generic loader
# ---------------------------------------------------------------------------

async def load_relation(store: QueryEngine, spec: RelationSpec, parent_ids: Iterable[Any]) -> list:
    """Return every *spec* row owned by any of *parent_ids*, in relation order."""
    rows = await store.select_where_id_in(
        spec.model, spec.foreign_key, parent_ids, order_by=spec.order_by
    )
    logger.debug("loaded %d %s row(s)", len(rows), spec.name)
    return sorted(rows, key=spec.sort_key)


async def load_grouped(
    store: QueryEngine, spec: RelationSpec, parent_ids: Sequence[Any]
) -> dict[Any, list]:
    """``load_relation`` followed by grouping on the relation's foreign key."""
    rows = await load_relation(store, spec, parent_ids)
    return group_by(rows, spec.key_of, only=parent_ids)


# ---------------------------------------------------------------------------
# Join-backed loaders
# ---------------------------------------------------------------------------

RELATED_SERVICE_COLUMNS = (
    ServiceRelated.service_id.label("parent_id"),
    Service.id,
    Service.title,
    Service.slug,
    Service.short_description,
    Service.category,
    Service.featured_image,
)


async def load_related_services(store: QueryEngine, service_ids: Sequence[str]) -> dict[str, list]:
    """
    Resolve ``service_related`` rows into projections of the target service,
    grouped by the owning service id.  Insertion order of the link rows is
    kept.
    """
    ids = list(dict.fromkeys(service_ids))
    if not ids:
        return {}
    rows = await store.join_select(
        RELATED_SERVICE_COLUMNS,
        ServiceRelated,
        Service,
        ServiceRelated.related_service_id == Service.id,
        ServiceRelated.service_id.in_(ids),
        order_by=(ServiceRelated.id,),
    )
    return group_by(rows, itemgetter("parent_id"), only=ids)


async def load_post_tags(store: QueryEngine, post_ids: Sequence[str]) -> dict[str, list]:
    """Tags of each post, alphabetical by name, grouped by post id."""
    ids = list(dict.fromkeys(post_ids))
    if not ids:
        return {}
    rows = await store.join_select(
        (blog_posts_tags.c.post_id.label("parent_id"), Tag.id, Tag.name, Tag.slug),
        blog_posts_tags,
        Tag,
        blog_posts_tags.c.tag_id == Tag.id,
        blog_posts_tags.c.post_id.in_(ids),
        order_by=(Tag.name, Tag.id),
    )
    return group_by(rows, itemgetter("parent_id"), only=ids)


async def load_image_groups(store: QueryEngine, image_ids: Sequence[str]) -> dict[str, list]:
    """Active groups of each image, ordered by the image's position in the group."""
    ids = list(dict.fromkeys(image_ids))
    if not ids:
        return {}
    rows = await store.join_select(
        (
            gallery_image_groups.c.image_id.label("parent_id"),
            GalleryGroup.id,
            GalleryGroup.name,
            GalleryGroup.slug,
            GalleryGroup.description,
            gallery_image_groups.c.display_order,
        ),
        gallery_image_groups,
        GalleryGroup,
        gallery_image_groups.c.group_id == GalleryGroup.id,
        gallery_image_groups.c.image_id.in_(ids),
        GalleryGroup.is_active.is_(True),
        order_by=(gallery_image_groups.c.display_order, GalleryGroup.name),
    )
    return group_by(rows, itemgetter("parent_id"), only=ids)

