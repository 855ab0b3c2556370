"""
Per-parent reference hydration used as a test oracle.

Issues every relation query separately for each service, sequentially, in
one session, and builds the aggregate by hand.  Slow by construction; the
batched pipeline must produce exactly the same output.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.models import (
    Service,
    ServiceBenefit,
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
from catalog.schemas import (
    FAQ,
    PricingTier,
    ProcessStep,
    RelatedService,
    ServiceAggregate,
    Testimonial,
)


async def _rows(db: AsyncSession, model, service_id, *order_by):
    result = await db.execute(select(model).where(model.service_id == service_id).order_by(*order_by))
    return list(result.scalars().all())


async def naive_service(db: AsyncSession, service: Service) -> ServiceAggregate:
    sid = service.id
    features = await _rows(db, ServiceFeature, sid, ServiceFeature.order, ServiceFeature.id)
    benefits = await _rows(db, ServiceBenefit, sid, ServiceBenefit.order, ServiceBenefit.id)
    process = await _rows(db, ServiceProcessStep, sid, ServiceProcessStep.step, ServiceProcessStep.id)
    technologies = await _rows(db, ServiceTechnology, sid, ServiceTechnology.order, ServiceTechnology.id)
    deliverables = await _rows(db, ServiceDeliverable, sid, ServiceDeliverable.order, ServiceDeliverable.id)
    gallery = await _rows(db, ServiceGalleryImage, sid, ServiceGalleryImage.order, ServiceGalleryImage.id)
    testimonials = await _rows(db, ServiceTestimonial, sid, ServiceTestimonial.id)
    faqs = await _rows(db, ServiceFaq, sid, ServiceFaq.order, ServiceFaq.id)
    tiers = await _rows(db, ServicePricingTier, sid, ServicePricingTier.order, ServicePricingTier.id)

    pricing = []
    for tier in tiers:
        result = await db.execute(
            select(ServicePricingFeature.feature)
            .where(ServicePricingFeature.pricing_tier_id == tier.id)
            .order_by(ServicePricingFeature.order, ServicePricingFeature.id)
        )
        pricing.append(
            PricingTier(
                name=tier.name,
                price=tier.price,
                description=tier.description,
                popular=tier.popular,
                features=list(result.scalars().all()),
            )
        )

    related = []
    links = await _rows(db, ServiceRelated, sid, ServiceRelated.id)
    for link in links:
        target = await db.get(Service, link.related_service_id)
        if target is None:
            continue
        related.append(
            RelatedService(
                id=target.id,
                title=target.title,
                slug=target.slug,
                short_description=target.short_description,
                category=target.category,
                featured_image=target.featured_image,
            )
        )

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
        features=[r.feature for r in features],
        benefits=[r.benefit for r in benefits],
        process=[
            ProcessStep(step=r.step, title=r.title, description=r.description, duration=r.duration or None)
            for r in process
        ],
        pricing=pricing,
        technologies=[r.technology for r in technologies],
        deliverables=[r.deliverable for r in deliverables],
        related_services=related,
        gallery=[r.image_url for r in gallery] or None,
        testimonials=[
            Testimonial(quote=r.quote, author=r.author, company=r.company, avatar=r.avatar or None)
            for r in testimonials
        ] or None,
        faq=[FAQ(question=r.question, answer=r.answer) for r in faqs] or None,
    )


async def naive_all(db: AsyncSession, *criteria) -> list[ServiceAggregate]:
    result = await db.execute(
        select(Service).where(*criteria).order_by(Service.created_at, Service.slug)
    )
    return [await naive_service(db, service) for service in result.scalars().all()]
