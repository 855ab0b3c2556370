from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.database import get_db, get_store
from catalog.dependencies import PaginationParams, SortParams
from catalog.models import ServiceCategory
from catalog.routers.services import envelope_status
from catalog.schemas import BulkServiceIds, ServiceCreate, ServiceCreated, ServiceUpdate
from catalog.services import service_admin
from catalog.services.service_admin import AdminServiceList, UnknownRelatedServices
from catalog.store import QueryEngine

router = APIRouter(prefix="/api/v1/admin/services", tags=["admin"])

CONFLICT_DETAIL = "Service conflicts with an existing record"

@router.get("", response_model=AdminServiceList)
async def list_services(
    response: Response,
    pagination: PaginationParams = Depends(),
    sorting: SortParams = Depends(),
    category: ServiceCategory | None = None,
    search: str | None = None,
    store: QueryEngine = Depends(get_store),
):
    result = await service_admin.list_admin_services(
        store,
        pagination.page,
        pagination.page_size,
        category=category,
        search=search,
        sort_by=sorting.sort_by,
        sort_order=sorting.sort_order,
    )
    response.status_code = envelope_status(result)
    return result

@router.post("", status_code=201, response_model=ServiceCreated)
async def create_service(data: ServiceCreate, db: AsyncSession = Depends(get_db)):
    try:
        return await service_admin.create_service(db, data)
    except UnknownRelatedServices as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except IntegrityError:
        raise HTTPException(status_code=409, detail=CONFLICT_DETAIL)

@router.put("/{service_id}", response_model=ServiceCreated)
async def update_service(service_id: str, data: ServiceUpdate, db: AsyncSession = Depends(get_db)):
    try:
        service = await service_admin.update_service(db, service_id, data)
    except UnknownRelatedServices as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except IntegrityError:
        raise HTTPException(status_code=409, detail=CONFLICT_DETAIL)
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")
    return service

@router.delete("")
async def delete_services(data: BulkServiceIds, db: AsyncSession = Depends(get_db)):
    deleted = await service_admin.delete_services(db, data.ids)
    if not deleted:
        raise HTTPException(status_code=404, detail="No matching services")
    return {"deleted": deleted}
