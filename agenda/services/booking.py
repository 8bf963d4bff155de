# agenda/services/booking.py

"""
Booking service

Creates appointments for a provider. Price and duration are always copied
from the Service record at booking time; values sent by the client are ignored.
The availability check and the insert run in one transaction holding the
provider row lock, and the partial unique index on (provider, start) turns a
lost race into SlotUnavailable.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError

from agenda.errors import ProviderNotFound, ServiceNotFound, SlotUnavailable, SlugNotFound, ValidationError
from agenda.models import Appointment, Provider
from agenda.schemas import AppointmentStatus, BookingRequest
from agenda.services.availability import OVERLAPS_APPOINTMENT, REASON_MESSAGES, AvailabilityResolver
from agenda.services.lifecycle import LIVE_STATUSES
from agenda.storage import Storage

logger = logging.getLogger(__name__)

INITIAL_STATUSES = (AppointmentStatus.pending, AppointmentStatus.confirmed)


class BookingService:
    def __init__(self, storage: Storage, resolver: Optional[AvailabilityResolver] = None):
        self.storage = storage
        self.resolver = resolver or AvailabilityResolver(storage)

    def book_by_slug(self, slug: str, request: BookingRequest, now: Optional[datetime] = None) -> Appointment:
        provider = self.storage.get_provider_by_slug(slug)
        if provider is None or not provider.is_active:
            raise SlugNotFound()
        return self.create_appointment(provider.id, request, AppointmentStatus.pending, now=now)

    def create_appointment(
        self,
        provider_id: int,
        request: BookingRequest,
        status: str = AppointmentStatus.pending,
        now: Optional[datetime] = None,
    ) -> Appointment:
        now = now or datetime.now()

        # 1) Provider must exist and take bookings
        provider = self.storage.get_provider(provider_id)
        if provider is None:
            raise ProviderNotFound()
        self._ensure_active(provider)

        # 2) Service must belong to the provider
        service = self.storage.get_service(request.service_id)
        if service is None or service.provider_id != provider_id:
            raise ServiceNotFound()
        if not service.is_active:
            raise ValidationError("Service is not available for booking")

        # 3) Client details
        client_name = (request.client_name or "").strip()
        client_phone = (request.client_phone or "").strip()
        if not client_name or not client_phone:
            raise ValidationError("Client name and phone are required")

        try:
            initial_status = AppointmentStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown appointment status '{status}'")
        if initial_status not in INITIAL_STATUSES:
            raise ValidationError("New appointments must be pending or confirmed")

        # 4) No bookings in the past (naive local time)
        start = request.appointment_date
        if start <= now:
            raise ValidationError("Cannot book an appointment in the past")

        # 5) Check and insert under the provider lock
        appointment = Appointment(
            provider_id=provider_id,
            service_id=service.id,
            client_name=client_name,
            client_phone=client_phone,
            client_email=request.client_email,
            appointment_date=start,
            duration=service.duration,
            price=service.price,
            status=initial_status.value,
            notes=request.notes,
        )
        session = self.storage.session
        try:
            self.storage.lock_provider(provider_id)
            self.resolver.ensure_bookable(provider_id, start, service.duration)
            self.storage.create_appointment(appointment)
        except SlotUnavailable:
            session.rollback()
            raise
        except IntegrityError:
            session.rollback()
            logger.warning(f"Concurrent booking for provider {provider_id} at {start.isoformat()}")
            raise SlotUnavailable(REASON_MESSAGES[OVERLAPS_APPOINTMENT], reason=OVERLAPS_APPOINTMENT)

        logger.info(
            f"📅 Appointment {appointment.id} booked for provider {provider_id} at {start.isoformat()} "
            f"({appointment.duration} min, {appointment.price})"
        )
        return appointment

    def reschedule(self, appointment: Appointment, new_start: datetime, now: Optional[datetime] = None) -> Appointment:
        now = now or datetime.now()

        if appointment.status not in LIVE_STATUSES:
            raise ValidationError("Only pending or confirmed appointments can be rescheduled")
        if new_start <= now:
            raise ValidationError("Cannot move an appointment into the past")

        provider = self.storage.get_provider(appointment.provider_id)
        if provider is None:
            raise ProviderNotFound()

        session = self.storage.session
        try:
            self.storage.lock_provider(provider.id)
            self.resolver.ensure_bookable(
                provider.id, new_start, appointment.duration, exclude_appointment_id=appointment.id
            )
            previous = appointment.appointment_date
            appointment = self.storage.update_appointment(appointment, {"appointment_date": new_start})
        except SlotUnavailable:
            session.rollback()
            raise
        except IntegrityError:
            session.rollback()
            raise SlotUnavailable(REASON_MESSAGES[OVERLAPS_APPOINTMENT], reason=OVERLAPS_APPOINTMENT)

        logger.info(f"Appointment {appointment.id} moved from {previous.isoformat()} to {new_start.isoformat()}")
        return appointment

    @staticmethod
    def _ensure_active(provider: Provider) -> None:
        if not provider.is_active:
            raise ValidationError("Provider is not accepting bookings")
