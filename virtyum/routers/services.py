from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from virtyum.database import get_db, get_session_factory
from virtyum.dependencies import ServiceFilters
from virtyum.errors import ValidationFailure
from virtyum.schemas import ServiceCreate, ServiceUpdate, StatsSnapshot
from virtyum.services import service_repository, stats_service
from virtyum.validation import validate_service

router = APIRouter(prefix="/api/services", tags=["services"])

# Static paths are declared before "/{service_id}" so they are not captured by it.

@router.get("/stats", response_model=StatsSnapshot)
async def get_service_stats(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
):
    return await stats_service.compute_snapshot(session_factory)

@router.get("/category/{category}")
async def list_services_by_category(category: str, db: AsyncSession = Depends(get_db)):
    return await service_repository.list_services_by_category(db, category)

@router.get("")
async def list_services(filters: ServiceFilters = Depends(), db: AsyncSession = Depends(get_db)):
    return await service_repository.list_services(db, search=filters.search, status=filters.status)

@router.post("", status_code=201)
async def create_service(data: ServiceCreate, db: AsyncSession = Depends(get_db)):
    payload = data.model_dump(exclude_none=True)
    errors = validate_service(payload)
    if errors:
        raise ValidationFailure(errors)
    service = await service_repository.create_service(db, payload)
    return {"message": "Service created successfully", "service": service}

@router.get("/{service_id}")
async def get_service(service_id: str, db: AsyncSession = Depends(get_db)):
    return await service_repository.get_service(db, service_id)

@router.put("/{service_id}")
async def update_service(service_id: str, data: ServiceUpdate, db: AsyncSession = Depends(get_db)):
    changes = data.model_dump(exclude_unset=True)
    errors = validate_service(changes, partial=True)
    if errors:
        raise ValidationFailure(errors, message="Validation error on update")
    service = await service_repository.update_service(db, service_id, changes)
    return {"message": "Service updated successfully", "service": service}

@router.delete("/{service_id}")
async def delete_service(service_id: str, db: AsyncSession = Depends(get_db)):
    deleted = await service_repository.delete_service(db, service_id)
    return {"message": "Service deleted successfully", "deletedService": deleted}
