# agenda/routers/date_blocks_routes.py

from typing import List

from fastapi import APIRouter, Depends

from agenda.deps import get_current_provider, get_storage, require_owner
from agenda.errors import NotFound, ValidationError
from agenda.models import Provider
from agenda.schemas import DateBlockCreate, DateBlockOut, DateBlockUpdate, MessageResponse
from agenda.storage import Storage

router = APIRouter(
    prefix="/api/date-blocks",
    tags=["date-blocks"],
)


class DateBlockNotFound(NotFound):
    @classmethod
    def default_detail(cls) -> str:
        return "Date block not found"


@router.get("", response_model=List[DateBlockOut])
def list_date_blocks(
    provider: Provider = Depends(get_current_provider),
    storage: Storage = Depends(get_storage),
):
    return [DateBlockOut.model_validate(b) for b in storage.list_date_blocks(provider.id)]


@router.post("", response_model=DateBlockOut, status_code=201)
def create_date_block(
    payload: DateBlockCreate,
    provider: Provider = Depends(get_current_provider),
    storage: Storage = Depends(get_storage),
):
    block = storage.create_date_block(provider.id, **payload.model_dump())
    return DateBlockOut.model_validate(block)


@router.put("/{block_id}", response_model=DateBlockOut)
def update_date_block(
    block_id: int,
    payload: DateBlockUpdate,
    provider: Provider = Depends(get_current_provider),
    storage: Storage = Depends(get_storage),
):
    block = require_owner(storage.get_date_block(block_id), provider, DateBlockNotFound)

    values = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    if values.get("end_date", block.end_date) < values.get("start_date", block.start_date):
        raise ValidationError("endDate cannot be before startDate")

    block = storage.update_date_block(block, values)
    return DateBlockOut.model_validate(block)


@router.delete("/{block_id}", response_model=MessageResponse)
def delete_date_block(
    block_id: int,
    provider: Provider = Depends(get_current_provider),
    storage: Storage = Depends(get_storage),
):
    block = require_owner(storage.get_date_block(block_id), provider, DateBlockNotFound)
    storage.delete_date_block(block)
    return MessageResponse(message="Date block deleted successfully")
