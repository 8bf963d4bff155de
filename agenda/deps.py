# agenda/deps.py

from fastapi import Depends
from sqlmodel import Session

from agenda.auth import get_current_user
from agenda.db import get_session
from agenda.email_service import EmailService, get_email_service
from agenda.errors import NotFound, ProviderNotFound
from agenda.models import Provider, User
from agenda.services.availability import AvailabilityResolver
from agenda.services.booking import BookingService
from agenda.services.lifecycle import AppointmentLifecycle
from agenda.services.verification import VerificationService
from agenda.storage import Storage


def get_storage(session: Session = Depends(get_session)) -> Storage:
    return Storage(session)


def get_verification_service(
    storage: Storage = Depends(get_storage),
    email: EmailService = Depends(get_email_service),
) -> VerificationService:
    return VerificationService(storage, email)


def get_resolver(storage: Storage = Depends(get_storage)) -> AvailabilityResolver:
    return AvailabilityResolver(storage)


def get_booking_service(
    storage: Storage = Depends(get_storage),
    resolver: AvailabilityResolver = Depends(get_resolver),
) -> BookingService:
    return BookingService(storage, resolver)


def get_lifecycle(storage: Storage = Depends(get_storage)) -> AppointmentLifecycle:
    return AppointmentLifecycle(storage)


def get_current_provider(
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> Provider:
    provider = storage.get_provider_by_user_id(user.id)
    if provider is None:
        raise ProviderNotFound()
    return provider


def require_owner(obj, provider: Provider, error: type[NotFound] = NotFound):
    # other tenants' records are reported as missing
    if obj is None or obj.provider_id != provider.id:
        raise error()
    return obj
