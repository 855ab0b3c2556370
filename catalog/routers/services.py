from fastapi import APIRouter, Depends, Response

from catalog.database import get_store
from catalog.models import ServiceCategory
from catalog.schemas import Envelope
from catalog.services import service_catalog
from catalog.services.service_catalog import NameList, ServiceDetail, ServiceList
from catalog.store import QueryEngine

router = APIRouter(prefix="/api/v1/services", tags=["services"])


def envelope_status(envelope: Envelope, not_found: str | None = None) -> int:
    """HTTP status for an envelope: 200, 404 for the given not-found message, else 500."""
    if envelope.success:
        return 200
    if not_found is not None and envelope.error == not_found:
        return 404
    return 500


@router.get("", response_model=ServiceList)
async def list_services(
    response: Response,
    category: ServiceCategory | None = None,
    store: QueryEngine = Depends(get_store),
):
    if category is None:
        result = await service_catalog.fetch_all(store)
    else:
        result = await service_catalog.fetch_by_category(store, category)
    response.status_code = envelope_status(result)
    return result

@router.get("/names", response_model=NameList)
async def list_service_names(response: Response, store: QueryEngine = Depends(get_store)):
    result = await service_catalog.fetch_names(store)
    response.status_code = envelope_status(result)
    return result

@router.get("/{slug}", response_model=ServiceDetail)
async def get_service(slug: str, response: Response, store: QueryEngine = Depends(get_store)):
    result = await service_catalog.fetch_by_slug(store, slug)
    response.status_code = envelope_status(result, service_catalog.SERVICE_NOT_FOUND)
    return result
