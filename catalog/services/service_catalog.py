"""
Service catalog: read side of the Service aggregate.

Design notes
------------
- Every entry point follows the same pipeline: resolve the parent rows,
  collect their ids, run all relation loaders and the pricing resolver
  together under ``asyncio.gather``, then build one aggregate per parent.
  The number of SQL statements per call is therefore constant (one for the
  parents, one per relation, two for pricing) regardless of how many
  services match.
- A failure in any loader fails the whole call; a partially hydrated
  aggregate is never returned.  Storage errors are caught once, here, and
  turned into a failure ``Envelope``.
- Parents are ordered by ``created_at`` (slug as tie-breaker) before
  building; relation order is whatever the loaders return.
"""
import asyncio
import logging
from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError

from catalog.hydration.builders import ServiceRelations, build_services
from catalog.hydration.loaders import SERVICE_RELATIONS, load_grouped, load_related_services
from catalog.hydration.pricing import resolve_pricing
from catalog.models import Service, ServiceCategory
from catalog.schemas import Envelope, ServiceAggregate
from catalog.store import QueryEngine

logger = logging.getLogger(__name__)

# Driver connectivity problems surface as OSError subclasses before
# SQLAlchemy gets a chance to wrap them.
STORAGE_ERRORS = (SQLAlchemyError, OSError)

SERVICE_NOT_FOUND = "Service not found"

PARENT_ORDER = (Service.created_at, Service.slug)

ServiceList = Envelope[list[ServiceAggregate]]
ServiceDetail = Envelope[ServiceAggregate | None]
NameList = Envelope[list[str]]


# ---------------------------------------------------------------------------
# Hydration pipeline
# ---------------------------------------------------------------------------

async def load_service_relations(store: QueryEngine, service_ids: Sequence[str]) -> ServiceRelations:
    """Issue every relation query for *service_ids* concurrently."""
    *grouped, pricing, related = await asyncio.gather(
        *(load_grouped(store, spec, service_ids) for spec in SERVICE_RELATIONS),
        resolve_pricing(store, service_ids),
        load_related_services(store, service_ids),
    )
    return ServiceRelations(
        **{spec.name: rows for spec, rows in zip(SERVICE_RELATIONS, grouped)},
        pricing=pricing,
        related_services=related,
    )


async def hydrate_services(store: QueryEngine, services: Sequence[Service]) -> list[ServiceAggregate]:
    """Build aggregates for already-resolved parent rows, in the given order."""
    if not services:
        return []
    relations = await load_service_relations(store, [service.id for service in services])
    return build_services(services, relations)


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def fetch_all(store: QueryEngine) -> ServiceList:
    """Return every service, fully hydrated."""
    try:
        services = await store.select_where(Service, order_by=PARENT_ORDER)
        return ServiceList.ok(await hydrate_services(store, services))
    except STORAGE_ERRORS as exc:
        logger.exception("Failed to fetch services")
        return ServiceList.fail(str(exc) or "Failed to fetch services", [])


async def fetch_by_slug(store: QueryEngine, slug: str) -> ServiceDetail:
    """
    Return the service identified by *slug*.

    A missing slug is not an exception: the envelope comes back with
    ``success=False``, ``data=None`` and ``error="Service not found"``.
    """
    try:
        services = await store.select_where(Service, Service.slug == slug, limit=1)
        if not services:
            logger.info("Service %r not found", slug)
            return ServiceDetail.fail(SERVICE_NOT_FOUND, None)
        hydrated = await hydrate_services(store, services)
        return ServiceDetail.ok(hydrated[0])
    except STORAGE_ERRORS as exc:
        logger.exception("Failed to fetch service %r", slug)
        return ServiceDetail.fail(str(exc) or "Failed to fetch service", None)


async def fetch_by_category(store: QueryEngine, category: ServiceCategory) -> ServiceList:
    """Return every service in *category*; an empty category is a success."""
    try:
        services = await store.select_where(
            Service, Service.category == ServiceCategory(category), order_by=PARENT_ORDER
        )
        return ServiceList.ok(await hydrate_services(store, services))
    except STORAGE_ERRORS as exc:
        logger.exception("Failed to fetch services in category %s", category)
        return ServiceList.fail(str(exc) or "Failed to fetch services by category", [])


async def fetch_names(store: QueryEngine) -> NameList:
    """Titles of every service, without hydrating any relation."""
    try:
        titles = await store.select_where(Service.title, order_by=PARENT_ORDER)
        return NameList.ok(list(titles))
    except STORAGE_ERRORS as exc:
        logger.exception("Failed to fetch service names")
        return NameList.fail(str(exc) or "Failed to fetch services names", [])
