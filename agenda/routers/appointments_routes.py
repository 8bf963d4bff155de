# agenda/routers/appointments_routes.py

import logging
from datetime import datetime, timedelta, date
from decimal import Decimal
from typing import Optional, List

from fastapi import APIRouter, Depends

from agenda.core import day_of_week
from agenda.deps import get_booking_service, get_current_provider, get_lifecycle, get_storage, require_owner
from agenda.errors import AppointmentNotFound, InvalidTransition, ValidationError
from agenda.models import Provider
from agenda.schemas import (
    AppointmentCreate,
    AppointmentOut,
    AppointmentStats,
    AppointmentStatus,
    AppointmentUpdate,
)
from agenda.services.booking import BookingService
from agenda.services.lifecycle import LIVE_STATUSES, AppointmentLifecycle, can_transition
from agenda.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/appointments",
    tags=["appointments"],
)

STATUS_FILTERS = [s.value for s in AppointmentStatus] + ["all"]
DETAIL_FIELDS = ("notes", "client_name", "client_phone", "client_email")


@router.get("", response_model=List[AppointmentOut])
def list_appointments(
    status: Optional[str] = "all",
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    provider: Provider = Depends(get_current_provider),
    storage: Storage = Depends(get_storage),
):
    if status not in STATUS_FILTERS:
        raise ValidationError(f"status must be one of: {', '.join(STATUS_FILTERS)}")

    statuses = None if status == "all" else [status]
    appts = storage.list_appointments(provider.id, statuses=statuses, start=start, end=end)
    return [AppointmentOut.model_validate(a) for a in appts]


@router.get("/stats", response_model=AppointmentStats)
def appointment_stats(
    provider: Provider = Depends(get_current_provider),
    storage: Storage = Depends(get_storage),
):
    today = date.today()
    day_start = datetime.combine(today, datetime.min.time())
    week_start = day_start - timedelta(days=day_of_week(today))  # weeks start on Sunday
    month_start = day_start.replace(day=1)

    appts = storage.list_appointments(provider.id, start=min(week_start, month_start))
    live = [a for a in appts if a.status != AppointmentStatus.cancelled.value]

    today_count = sum(1 for a in live if day_start <= a.appointment_date < day_start + timedelta(days=1))
    week_count = sum(1 for a in live if week_start <= a.appointment_date < week_start + timedelta(days=7))
    revenue = sum(
        (a.price for a in appts
         if a.status == AppointmentStatus.completed.value
         and a.appointment_date.year == today.year
         and a.appointment_date.month == today.month),
        Decimal("0"),
    )
    pending = len(storage.list_appointments(provider.id, statuses=[AppointmentStatus.pending.value]))

    return AppointmentStats(today=today_count, this_week=week_count, pending=pending, month_revenue=revenue)


@router.get("/{appointment_id}", response_model=AppointmentOut)
def get_appointment(
    appointment_id: int,
    provider: Provider = Depends(get_current_provider),
    storage: Storage = Depends(get_storage),
):
    appt = require_owner(storage.get_appointment(appointment_id), provider, AppointmentNotFound)
    return AppointmentOut.model_validate(appt)


@router.post("", response_model=AppointmentOut, status_code=201)
def create_appointment(
    payload: AppointmentCreate,
    provider: Provider = Depends(get_current_provider),
    booking: BookingService = Depends(get_booking_service),
):
    appt = booking.create_appointment(provider.id, payload, status=payload.status)
    return AppointmentOut.model_validate(appt)


@router.put("/{appointment_id}", response_model=AppointmentOut)
def update_appointment(
    appointment_id: int,
    payload: AppointmentUpdate,
    provider: Provider = Depends(get_current_provider),
    storage: Storage = Depends(get_storage),
    booking: BookingService = Depends(get_booking_service),
    lifecycle: AppointmentLifecycle = Depends(get_lifecycle),
):
    # 1) Find the appointment among the provider's own
    appt = require_owner(storage.get_appointment(appointment_id), provider, AppointmentNotFound)
    values = payload.model_dump(exclude_unset=True)

    # 2) Reject a bad status change before touching anything
    new_status = values.get("status")
    status_change = new_status is not None and new_status != appt.status
    if status_change and not can_transition(appt.status, new_status):
        raise InvalidTransition(f"Cannot change appointment status from '{appt.status}' to '{new_status}'")

    new_date = values.get("appointment_date")
    date_change = new_date is not None and new_date != appt.appointment_date
    if status_change and date_change and new_status not in LIVE_STATUSES:
        raise ValidationError(f"Cannot move an appointment that is being marked '{new_status}'")

    # 3) Reschedule (same availability rules as a new booking)
    if date_change:
        appt = booking.reschedule(appt, new_date)

    # 4) Client details and notes
    details = {k: values[k] for k in DETAIL_FIELDS if k in values}
    for field in ("client_name", "client_phone"):
        if field in details and not details[field]:
            details.pop(field)
    if details:
        appt = storage.update_appointment(appt, details)

    # 5) Status through the lifecycle state machine
    if status_change:
        appt = lifecycle.transition(appt, new_status)

    return AppointmentOut.model_validate(appt)
