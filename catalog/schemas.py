import math
from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field

from catalog.models import PostStatus, ServiceCategory, ServiceStatus

T = TypeVar("T")


# --- Envelope ---

class Envelope(BaseModel, Generic[T]):
    """
    Uniform ``{success, data, error?}`` wrapper returned by every retrieval
    function.  On failure ``data`` holds the empty value of its type
    (``[]`` or ``None``) so callers can unpack it unconditionally.
    """

    success: bool
    data: T
    error: str | None = None

    @classmethod
    def ok(cls, data: T) -> "Envelope[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, empty: T) -> "Envelope[T]":
        return cls(success=False, data=empty, error=error)


# --- Pagination ---

class PageInfo(BaseModel):
    total_pages: int
    current_page: int
    has_next_page: bool
    has_previous_page: bool

    @staticmethod
    def compute(total: int, page: int, page_size: int) -> dict:
        pages = math.ceil(total / page_size) if total > 0 else 0
        return {
            "total_pages": pages,
            "current_page": page,
            "has_next_page": page < pages,
            "has_previous_page": page > 1,
        }


# --- Service aggregate parts ---

class ProcessStep(BaseModel):
    step: int
    title: str = Field(max_length=255)
    description: str
    duration: str | None = Field(None, max_length=100)


class PricingTier(BaseModel):
    name: str = Field(max_length=100)
    price: str = Field(max_length=100)
    description: str
    popular: bool = False
    features: list[str] = []


class Testimonial(BaseModel):
    quote: str
    author: str = Field(max_length=255)
    company: str = Field(max_length=255)
    avatar: str | None = None


class FAQ(BaseModel):
    question: str
    answer: str


class RelatedService(BaseModel):
    """Lightweight projection of another service, resolved by join."""

    id: str
    title: str
    slug: str
    short_description: str
    category: ServiceCategory
    featured_image: str


class ServiceAggregate(BaseModel):
    id: str
    title: str
    slug: str
    short_description: str
    full_description: str
    timeline: str
    category: ServiceCategory
    status: ServiceStatus
    featured_image: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # Mandatory relations: always a list, possibly empty.
    features: list[str]
    benefits: list[str]
    process: list[ProcessStep]
    pricing: list[PricingTier]
    technologies: list[str]
    deliverables: list[str]
    related_services: list[RelatedService]

    # Optional relations: None means "no data", never an empty list.
    gallery: list[str] | None = None
    testimonials: list[Testimonial] | None = None
    faq: list[FAQ] | None = None

    @computed_field
    @property
    def testimonial(self) -> Testimonial | None:
        """Single-testimonial view kept for older consumers."""
        return self.testimonials[0] if self.testimonials else None


class AdminServicePage(PageInfo):
    services: list[ServiceAggregate]
    total_services: int


# --- Service write payloads ---

class ServiceCreate(BaseModel):
    title: str = Field(max_length=255)
    slug: str | None = Field(None, max_length=255)  # derived from title when omitted
    short_description: str
    full_description: str
    timeline: str = Field(max_length=100)
    category: ServiceCategory
    status: ServiceStatus = ServiceStatus.PUBLISHED
    featured_image: str = Field(max_length=500)

    features: list[str] = []
    benefits: list[str] = []
    technologies: list[str] = []
    deliverables: list[str] = []
    gallery: list[str] = []
    process: list[ProcessStep] = []
    pricing: list[PricingTier] = []
    testimonials: list[Testimonial] = []
    faq: list[FAQ] = []
    related_services: list[str] = []  # ids of other services


class ServiceUpdate(ServiceCreate):
    """Full replacement: every child relation is rewritten from the payload."""


class ServiceCreated(BaseModel):
    id: str
    slug: str


class BulkServiceIds(BaseModel):
    ids: list[str] = Field(min_length=1)


# --- Blog ---

class AuthorSummary(BaseModel):
    id: str
    name: str
    bio: str | None = None
    avatar_url: str | None = None
    model_config = ConfigDict(from_attributes=True)


class CategorySummary(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    model_config = ConfigDict(from_attributes=True)


class TagSummary(BaseModel):
    id: str
    name: str
    slug: str


class BlogPostAggregate(BaseModel):
    id: str
    title: str
    slug: str
    excerpt: str
    content: str
    featured_image: str | None
    status: PostStatus
    published_at: datetime | None
    created_at: datetime | None = None
    meta_title: str | None = None
    meta_description: str | None = None
    author: AuthorSummary | None
    category: CategorySummary | None
    tags: list[TagSummary]
    reading_time: int


class BlogPostPage(PageInfo):
    posts: list[BlogPostAggregate]
    total_posts: int


# --- Gallery ---

class GalleryGroupRef(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    display_order: int  # position of the image inside this group


class GalleryGroupSummary(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    model_config = ConfigDict(from_attributes=True)


class GalleryImageAggregate(BaseModel):
    id: str
    name: str
    alt_text: str
    description: str | None
    original_url: str
    thumbnail_url: str | None
    optimized_url: str | None
    width: int | None
    height: int | None
    mime_type: str
    display_order: int
    is_featured: bool
    groups: list[GalleryGroupRef]


class GalleryPage(PageInfo):
    images: list[GalleryImageAggregate]
    total_images: int
    group: GalleryGroupSummary | None = None


# --- Metrics ---

class MetricsResponse(BaseModel):
    total_services: int
    total_blog_posts: int
    total_gallery_images: int
    avg_features_per_service: float
