# agenda/routers/availability_routes.py

from typing import List

from fastapi import APIRouter, Depends

from agenda.core import parse_hhmm
from agenda.deps import get_current_provider, get_storage, require_owner
from agenda.errors import NotFound, ValidationError
from agenda.models import Provider
from agenda.schemas import AvailabilityCreate, AvailabilityOut, AvailabilityUpdate, MessageResponse
from agenda.storage import Storage

router = APIRouter(
    prefix="/api/availability",
    tags=["availability"],
)


class AvailabilityNotFound(NotFound):
    @classmethod
    def default_detail(cls) -> str:
        return "Availability rule not found"


@router.get("", response_model=List[AvailabilityOut])
def list_availability(
    provider: Provider = Depends(get_current_provider),
    storage: Storage = Depends(get_storage),
):
    return [AvailabilityOut.model_validate(a) for a in storage.list_availability(provider.id)]


@router.post("", response_model=AvailabilityOut, status_code=201)
def create_availability(
    payload: AvailabilityCreate,
    provider: Provider = Depends(get_current_provider),
    storage: Storage = Depends(get_storage),
):
    rule = storage.create_availability(provider.id, **payload.model_dump())
    return AvailabilityOut.model_validate(rule)


@router.put("/{availability_id}", response_model=AvailabilityOut)
def update_availability(
    availability_id: int,
    payload: AvailabilityUpdate,
    provider: Provider = Depends(get_current_provider),
    storage: Storage = Depends(get_storage),
):
    rule = require_owner(storage.get_availability(availability_id), provider, AvailabilityNotFound)

    values = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    start_time = values.get("start_time", rule.start_time)
    end_time = values.get("end_time", rule.end_time)
    if parse_hhmm(start_time) >= parse_hhmm(end_time):
        raise ValidationError("startTime must be before endTime")

    rule = storage.update_availability(rule, values)
    return AvailabilityOut.model_validate(rule)


@router.delete("/{availability_id}", response_model=MessageResponse)
def delete_availability(
    availability_id: int,
    provider: Provider = Depends(get_current_provider),
    storage: Storage = Depends(get_storage),
):
    rule = require_owner(storage.get_availability(availability_id), provider, AvailabilityNotFound)
    storage.delete_availability(rule)
    return MessageResponse(message="Availability deleted successfully")
