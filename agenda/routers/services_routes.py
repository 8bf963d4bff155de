# agenda/routers/services_routes.py

import logging
from typing import List

from fastapi import APIRouter, Depends

from agenda.deps import get_current_provider, get_storage, require_owner
from agenda.errors import ServiceNotFound
from agenda.models import Provider
from agenda.schemas import MessageResponse, ServiceCreate, ServiceOut, ServiceUpdate
from agenda.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/services",
    tags=["services"],
)

REQUIRED_FIELDS = ("name", "price", "duration", "is_active")


@router.get("", response_model=List[ServiceOut])
def list_services(
    provider: Provider = Depends(get_current_provider),
    storage: Storage = Depends(get_storage),
):
    return [ServiceOut.model_validate(s) for s in storage.list_services(provider.id)]


@router.post("", response_model=ServiceOut, status_code=201)
def create_service(
    payload: ServiceCreate,
    provider: Provider = Depends(get_current_provider),
    storage: Storage = Depends(get_storage),
):
    service = storage.create_service(provider.id, **payload.model_dump())
    logger.info(f"Service {service.id} created for provider {provider.id}")
    return ServiceOut.model_validate(service)


@router.put("/{service_id}", response_model=ServiceOut)
def update_service(
    service_id: int,
    payload: ServiceUpdate,
    provider: Provider = Depends(get_current_provider),
    storage: Storage = Depends(get_storage),
):
    service = require_owner(storage.get_service(service_id), provider, ServiceNotFound)

    # booked appointments keep their own price/duration copies
    values = {k: v for k, v in payload.model_dump(exclude_unset=True).items()
              if not (k in REQUIRED_FIELDS and v is None)}
    service = storage.update_service(service, values)
    return ServiceOut.model_validate(service)


@router.delete("/{service_id}", response_model=MessageResponse)
def delete_service(
    service_id: int,
    provider: Provider = Depends(get_current_provider),
    storage: Storage = Depends(get_storage),
):
    service = require_owner(storage.get_service(service_id), provider, ServiceNotFound)

    # appointments still reference it: hide instead of deleting
    if storage.service_has_appointments(service.id):
        storage.update_service(service, {"is_active": False})
        logger.info(f"Service {service.id} has appointments, deactivated instead of deleted")
        return MessageResponse(message="Service has appointments and was deactivated")

    storage.delete_service(service)
    return MessageResponse(message="Service deleted successfully")
