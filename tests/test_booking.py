import threading
import time
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlmodel import Session

from agenda.db import build_engine, create_db_and_tables
from agenda.errors import ProviderNotFound, ServiceNotFound, SlotUnavailable, SlugNotFound, ValidationError
from agenda.schemas import BookingRequest
from agenda.services.availability import OVERLAPS_APPOINTMENT, AvailabilityResolver
from agenda.services.booking import BookingService
from agenda.storage import Storage

from helpers import at


class NoCheckResolver(AvailabilityResolver):
    """Lets every slot through so the unique index is the only guard."""

    def ensure_bookable(self, provider_id, start, duration, exclude_appointment_id=None):
        return None


def booking_request(service, start, **overrides):
    values = {
        "serviceId": service.id,
        "clientName": "Maria Souza",
        "clientPhone": "555-0199",
        "clientEmail": "maria@example.com",
        "appointmentDate": start.isoformat(),
    }
    values.update(overrides)
    return BookingRequest.model_validate(values)


@pytest.fixture
def booking(storage):
    return BookingService(storage)


@pytest.fixture
def open_monday(storage, provider, monday):
    storage.create_availability(provider.id, day_of_week=1, start_time="09:00", end_time="18:00")
    return monday


def test_price_and_duration_come_from_service(storage, booking, provider, make_service, open_monday):
    service = make_service(provider, price="80.00", duration=45)

    appt = booking.create_appointment(provider.id, booking_request(service, at(open_monday, "10:00"), price="1.00", duration=5))

    assert appt.price == Decimal("80.00")
    assert appt.duration == 45
    assert appt.status == "pending"

    # later price changes do not touch existing bookings
    storage.update_service(service, {"price": Decimal("100.00")})
    assert storage.get_appointment(appt.id).price == Decimal("80.00")


def test_service_of_another_provider(booking, provider, make_provider, make_service, open_monday):
    other = make_provider(slug="other")
    foreign_service = make_service(other)

    with pytest.raises(ServiceNotFound):
        booking.create_appointment(provider.id, booking_request(foreign_service, at(open_monday, "10:00")))


def test_unknown_provider(booking, provider, make_service, open_monday):
    service = make_service(provider)
    with pytest.raises(ProviderNotFound):
        booking.create_appointment(9999, booking_request(service, at(open_monday, "10:00")))


def test_inactive_provider(booking, make_provider, make_service, monday):
    provider = make_provider(slug="closed", is_active=False)
    service = make_service(provider)
    with pytest.raises(ValidationError):
        booking.create_appointment(provider.id, booking_request(service, at(monday, "10:00")))


def test_inactive_service(booking, provider, make_service, open_monday):
    service = make_service(provider, is_active=False)
    with pytest.raises(ValidationError):
        booking.create_appointment(provider.id, booking_request(service, at(open_monday, "10:00")))


def test_past_date_rejected(booking, provider, make_service):
    service = make_service(provider)
    with pytest.raises(ValidationError):
        booking.create_appointment(provider.id, booking_request(service, datetime.now() - timedelta(hours=1)))


def test_completed_is_not_an_initial_status(booking, provider, make_service, open_monday):
    service = make_service(provider)
    with pytest.raises(ValidationError):
        booking.create_appointment(provider.id, booking_request(service, at(open_monday, "10:00")), status="completed")


def test_overlap_then_boundary(booking, provider, make_service, open_monday):
    service = make_service(provider, duration=60)
    booking.create_appointment(provider.id, booking_request(service, at(open_monday, "10:00")), status="confirmed")

    with pytest.raises(SlotUnavailable) as exc_info:
        booking.create_appointment(provider.id, booking_request(service, at(open_monday, "10:30")))
    assert exc_info.value.reason == OVERLAPS_APPOINTMENT

    appt = booking.create_appointment(provider.id, booking_request(service, at(open_monday, "11:00")))
    assert appt.id is not None


def test_book_by_slug(booking, make_provider, make_service, monday, storage):
    provider = make_provider(slug="studio-ana")
    storage.create_availability(provider.id, day_of_week=1, start_time="09:00", end_time="18:00")
    service = make_service(provider)

    appt = booking.book_by_slug("studio-ana", booking_request(service, at(monday, "09:00")))
    assert appt.provider_id == provider.id
    assert appt.status == "pending"

    with pytest.raises(SlugNotFound):
        booking.book_by_slug("missing", booking_request(service, at(monday, "12:00")))


def test_book_by_slug_inactive_provider(booking, make_provider, make_service, monday):
    provider = make_provider(slug="closed", is_active=False)
    service = make_service(provider)
    with pytest.raises(SlugNotFound):
        booking.book_by_slug("closed", booking_request(service, at(monday, "09:00")))


def test_unique_index_catches_lost_race(storage, provider, make_service, make_appointment, open_monday):
    service = make_service(provider)
    make_appointment(provider, service, at(open_monday, "10:00"))
    booking = BookingService(storage, NoCheckResolver(storage))

    with pytest.raises(SlotUnavailable) as exc_info:
        booking.create_appointment(provider.id, booking_request(service, at(open_monday, "10:00")))

    assert exc_info.value.reason == OVERLAPS_APPOINTMENT
    assert len(storage.list_appointments(provider.id)) == 1


def test_cancelled_slot_can_be_booked_again(booking, provider, make_service, make_appointment, open_monday):
    service = make_service(provider)
    make_appointment(provider, service, at(open_monday, "10:00"), status="cancelled")

    appt = booking.create_appointment(provider.id, booking_request(service, at(open_monday, "10:00")))
    assert appt.status == "pending"


def test_reschedule(booking, provider, make_service, make_appointment, open_monday):
    service = make_service(provider, duration=60)
    appt = make_appointment(provider, service, at(open_monday, "10:00"))
    make_appointment(provider, service, at(open_monday, "12:00"))

    moved = booking.reschedule(appt, at(open_monday, "10:30"))
    assert moved.appointment_date == at(open_monday, "10:30")

    with pytest.raises(SlotUnavailable):
        booking.reschedule(moved, at(open_monday, "11:30"))


def test_reschedule_requires_live_status(booking, provider, make_service, make_appointment, open_monday):
    service = make_service(provider)
    appt = make_appointment(provider, service, at(open_monday, "10:00"), status="cancelled")

    with pytest.raises(ValidationError):
        booking.reschedule(appt, at(open_monday, "14:00"))


class SlowResolver(AvailabilityResolver):
    """Holds the checked slot open before the insert, widening the race window."""

    def ensure_bookable(self, *args, **kwargs):
        super().ensure_bookable(*args, **kwargs)
        time.sleep(0.3)


def test_concurrent_overlapping_bookings_on_sqlite_file(tmp_path, monday):
    engine = build_engine(f"sqlite:///{tmp_path / 'agenda.db'}")
    create_db_and_tables(engine)
    with Session(engine) as session:
        storage = Storage(session)
        user = storage.create_user("race@example.com", "not-a-real-hash", "Race Owner")
        provider = storage.create_provider(user_id=user.id, business_name="Race", slug="race")
        storage.create_availability(provider.id, day_of_week=1, start_time="09:00", end_time="18:00")
        service = storage.create_service(provider.id, name="Haircut", price=Decimal("80.00"), duration=60)
        provider_id, service_id = provider.id, service.id

    barrier = threading.Barrier(2)
    results = []

    def attempt(hhmm):
        request = BookingRequest.model_validate({
            "serviceId": service_id,
            "clientName": f"Client {hhmm}",
            "clientPhone": "555-0199",
            "appointmentDate": at(monday, hhmm).isoformat(),
        })
        barrier.wait(timeout=5)
        with Session(engine) as session:
            storage = Storage(session)
            booking = BookingService(storage, SlowResolver(storage))
            try:
                booking.create_appointment(provider_id, request)
                results.append("ok")
            except SlotUnavailable as e:
                results.append(e.reason)
            except Exception as e:
                results.append(repr(e))

    threads = [threading.Thread(target=attempt, args=(hhmm,)) for hhmm in ("10:00", "10:30")]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(results) == ["ok", OVERLAPS_APPOINTMENT], f"Unexpected outcomes: {results}"
    with Session(engine) as session:
        assert len(Storage(session).list_appointments(provider_id)) == 1
    engine.dispose()
