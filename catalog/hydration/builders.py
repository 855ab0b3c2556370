"""
Aggregate builders: pure functions from resident rows to response models.

A builder receives one parent row and the grouped relation maps produced by
the loaders.  It performs no I/O and never reorders; it only looks up the
parent's lists (defaulting to empty), projects each row to its payload, and
applies the per-field collapse rule:

- mandatory relations (features, benefits, process, technologies,
  deliverables, pricing, related services) are always lists;
- optional relations (gallery, testimonials, FAQ) are ``None`` when the
  parent has no rows, so "no data" is distinguishable from "empty".
"""
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from catalog.schemas import (
    FAQ,
    AuthorSummary,
    BlogPostAggregate,
    CategorySummary,
    GalleryGroupRef,
    GalleryImageAggregate,
    PricingTier,
    ProcessStep,
    RelatedService,
    ServiceAggregate,
    TagSummary,
    Testimonial,
)

Grouped = Mapping[Any, Sequence[Any]]


@dataclass
class ServiceRelations:
    """Every grouped map needed to build service aggregates, keyed by service id."""

    features: Grouped = field(default_factory=dict)
    benefits: Grouped = field(default_factory=dict)
    process: Grouped = field(default_factory=dict)
    technologies: Grouped = field(default_factory=dict)
    deliverables: Grouped = field(default_factory=dict)
    gallery: Grouped = field(default_factory=dict)
    testimonials: Grouped = field(default_factory=dict)
    faq: Grouped = field(default_factory=dict)
    pricing: Mapping[Any, list[PricingTier]] = field(default_factory=dict)
    related_services: Grouped = field(default_factory=dict)


def _or_none(items: list) -> list | None:
    return items if items else None


def build_service(service, relations: ServiceRelations) -> ServiceAggregate:
    sid = service.id
    testimonials = [
        Testimonial(quote=t.quote, author=t.author, company=t.company, avatar=t.avatar or None)
        for t in relations.testimonials.get(sid, [])
    ]
    return ServiceAggregate(
        id=sid,
        title=service.title,
        slug=service.slug,
        short_description=service.short_description,
        full_description=service.full_description,
        timeline=service.timeline,
        category=service.category,
        status=service.status,
        featured_image=service.featured_image,
        created_at=service.created_at,
        updated_at=service.updated_at,
        features=[row.feature for row in relations.features.get(sid, [])],
        benefits=[row.benefit for row in relations.benefits.get(sid, [])],
        process=[
            ProcessStep(
                step=row.step,
                title=row.title,
                description=row.description,
                duration=row.duration or None,
            )
            for row in relations.process.get(sid, [])
        ],
        pricing=list(relations.pricing.get(sid, [])),
        technologies=[row.technology for row in relations.technologies.get(sid, [])],
        deliverables=[row.deliverable for row in relations.deliverables.get(sid, [])],
        related_services=[
            RelatedService(
                id=row["id"],
                title=row["title"],
                slug=row["slug"],
                short_description=row["short_description"],
                category=row["category"],
                featured_image=row["featured_image"],
            )
            for row in relations.related_services.get(sid, [])
        ],
        gallery=_or_none([row.image_url for row in relations.gallery.get(sid, [])]),
        testimonials=_or_none(testimonials),
        faq=_or_none(
            [FAQ(question=row.question, answer=row.answer) for row in relations.faq.get(sid, [])]
        ),
    )


def build_services(services: Sequence[Any], relations: ServiceRelations) -> list[ServiceAggregate]:
    return [build_service(service, relations) for service in services]


# ---------------------------------------------------------------------------
# Blog posts
# ---------------------------------------------------------------------------

def reading_time(content: str, words_per_minute: int) -> int:
    """Estimated minutes to read *content*, never less than one."""
    return max(1, math.ceil(len(content.split()) / words_per_minute))


def build_blog_post(
    post,
    authors: Mapping[str, Any],
    categories: Mapping[str, Any],
    tags: Grouped,
    words_per_minute: int,
) -> BlogPostAggregate:
    author = authors.get(post.author_id)
    category = categories.get(post.category_id)
    return BlogPostAggregate(
        id=post.id,
        title=post.title,
        slug=post.slug,
        excerpt=post.excerpt,
        content=post.content,
        featured_image=post.featured_image,
        status=post.status,
        published_at=post.published_at,
        created_at=post.created_at,
        meta_title=post.meta_title,
        meta_description=post.meta_description,
        author=AuthorSummary.model_validate(author) if author is not None else None,
        category=CategorySummary.model_validate(category) if category is not None else None,
        tags=[
            TagSummary(id=row["id"], name=row["name"], slug=row["slug"])
            for row in tags.get(post.id, [])
        ],
        reading_time=reading_time(post.content, words_per_minute),
    )


# ---------------------------------------------------------------------------
# Gallery images
# ---------------------------------------------------------------------------

def build_gallery_image(image, groups: Grouped) -> GalleryImageAggregate:
    return GalleryImageAggregate(
        id=image.id,
        name=image.name,
        alt_text=image.alt_text,
        description=image.description,
        original_url=image.original_url,
        thumbnail_url=image.thumbnail_url,
        optimized_url=image.optimized_url,
        width=image.width,
        height=image.height,
        mime_type=image.mime_type,
        display_order=image.display_order,
        is_featured=image.is_featured,
        groups=[
            GalleryGroupRef(
                id=row["id"],
                name=row["name"],
                slug=row["slug"],
                description=row["description"],
                display_order=row["display_order"],
            )
            for row in groups.get(image.id, [])
        ],
    )
