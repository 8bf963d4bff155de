# agenda/services/lifecycle.py

import logging

from agenda.errors import InvalidTransition
from agenda.models import Appointment
from agenda.schemas import AppointmentStatus
from agenda.storage import Storage

logger = logging.getLogger(__name__)

# cancelled and completed are terminal
TRANSITIONS = {
    AppointmentStatus.pending: {AppointmentStatus.confirmed, AppointmentStatus.cancelled},
    AppointmentStatus.confirmed: {AppointmentStatus.cancelled, AppointmentStatus.completed},
    AppointmentStatus.cancelled: set(),
    AppointmentStatus.completed: set(),
}

LIVE_STATUSES = (AppointmentStatus.pending.value, AppointmentStatus.confirmed.value)


def can_transition(current: str, target: str) -> bool:
    try:
        current_status = AppointmentStatus(current)
        target_status = AppointmentStatus(target)
    except ValueError:
        return False
    return target_status in TRANSITIONS[current_status]


class AppointmentLifecycle:
    def __init__(self, storage: Storage):
        self.storage = storage

    def transition(self, appointment: Appointment, target: str) -> Appointment:
        if not can_transition(appointment.status, target):
            raise InvalidTransition(f"Cannot change appointment status from '{appointment.status}' to '{target}'")

        previous = appointment.status
        target = AppointmentStatus(target).value
        appointment = self.storage.update_appointment(appointment, {"status": target})
        logger.info(f"Appointment {appointment.id}: {previous} -> {target}")
        return appointment

    def confirm(self, appointment: Appointment) -> Appointment:
        return self.transition(appointment, AppointmentStatus.confirmed.value)

    def cancel(self, appointment: Appointment) -> Appointment:
        return self.transition(appointment, AppointmentStatus.cancelled.value)

    def complete(self, appointment: Appointment) -> Appointment:
        return self.transition(appointment, AppointmentStatus.completed.value)
