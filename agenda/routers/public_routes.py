# agenda/routers/public_routes.py
# Unauthenticated booking page endpoints

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query

from agenda.config import SLOT_MINUTES
from agenda.deps import get_booking_service, get_resolver, get_storage
from agenda.errors import ServiceNotFound, SlugNotFound
from agenda.models import Provider
from agenda.schemas import AppointmentOut, AvailableSlotsResponse, BookingRequest, ProviderPublic, ServiceOut
from agenda.services.availability import AvailabilityResolver
from agenda.services.booking import BookingService
from agenda.storage import Storage

router = APIRouter(
    prefix="/api/public/provider",
    tags=["public"],
)


def get_public_provider(slug: str, storage: Storage = Depends(get_storage)) -> Provider:
    provider = storage.get_provider_by_slug(slug)
    if provider is None or not provider.is_active:
        raise SlugNotFound()
    return provider


@router.get("/{slug}", response_model=ProviderPublic)
def public_provider(provider: Provider = Depends(get_public_provider)):
    return ProviderPublic.model_validate(provider)


@router.get("/{slug}/services", response_model=List[ServiceOut])
def public_services(
    provider: Provider = Depends(get_public_provider),
    storage: Storage = Depends(get_storage),
):
    return [ServiceOut.model_validate(s) for s in storage.list_services(provider.id, active_only=True)]


@router.get("/{slug}/availability", response_model=AvailableSlotsResponse)
def public_availability(
    date: date,
    service_id: int = Query(alias="serviceId"),
    provider: Provider = Depends(get_public_provider),
    storage: Storage = Depends(get_storage),
    resolver: AvailabilityResolver = Depends(get_resolver),
):
    service = storage.get_service(service_id)
    if service is None or service.provider_id != provider.id or not service.is_active:
        raise ServiceNotFound()

    starts = resolver.available_starts(provider.id, date, service.duration, SLOT_MINUTES)
    return AvailableSlotsResponse(
        slug=provider.slug,
        date=date,
        service_id=service.id,
        duration=service.duration,
        available_starts=starts,
    )


@router.post("/{slug}/book", response_model=AppointmentOut, status_code=201)
def book(
    slug: str,
    payload: BookingRequest,
    booking: BookingService = Depends(get_booking_service),
):
    appt = booking.book_by_slug(slug, payload)
    return AppointmentOut.model_validate(appt)
