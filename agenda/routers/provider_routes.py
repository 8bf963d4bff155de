# agenda/routers/provider_routes.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError

from agenda.auth import get_current_user
from agenda.core import slugify
from agenda.deps import get_storage
from agenda.errors import Conflict, ProviderNotFound, ValidationError
from agenda.models import User
from agenda.schemas import ProviderCreate, ProviderOut, ProviderUpdate
from agenda.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/provider",
    tags=["provider"],
)

REQUIRED_FIELDS = ("business_name", "slug", "is_active")


@router.get("", response_model=Optional[ProviderOut])
def get_my_provider(
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    provider = storage.get_provider_by_user_id(user.id)
    return ProviderOut.model_validate(provider) if provider else None


@router.post("", response_model=ProviderOut, status_code=201)
def create_provider(
    payload: ProviderCreate,
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    # 1) One business profile per user
    if storage.get_provider_by_user_id(user.id) is not None:
        raise Conflict("Provider profile already exists for this user")

    # 2) Slug from the request or derived from the business name
    slug = payload.slug or slugify(payload.business_name)
    if not slug:
        raise ValidationError("Could not derive a URL slug from the business name")
    if storage.get_provider_by_slug(slug) is not None:
        raise Conflict("This booking URL is already in use")

    values = payload.model_dump(exclude={"slug"})
    try:
        provider = storage.create_provider(user_id=user.id, slug=slug, **values)
    except IntegrityError:
        storage.session.rollback()
        raise Conflict("This booking URL is already in use")

    logger.info(f"🏪 Provider {provider.id} created for user {user.id} at /{slug}")
    return ProviderOut.model_validate(provider)


@router.put("/{provider_id}", response_model=ProviderOut)
def update_provider(
    provider_id: int,
    payload: ProviderUpdate,
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    provider = storage.get_provider(provider_id)
    if provider is None or provider.user_id != user.id:
        raise ProviderNotFound()

    values = payload.model_dump(exclude_unset=True)
    for field in REQUIRED_FIELDS:
        if field in values and values[field] is None:
            values.pop(field)

    new_slug = values.get("slug")
    if new_slug and new_slug != provider.slug:
        taken = storage.get_provider_by_slug(new_slug)
        if taken is not None:
            raise Conflict("This booking URL is already in use")

    try:
        provider = storage.update_provider(provider, values)
    except IntegrityError:
        storage.session.rollback()
        raise Conflict("This booking URL is already in use")
    return ProviderOut.model_validate(provider)
