# agenda/services/availability.py

"""
Availability resolution

A requested window [start, start + duration) is bookable when it:
- fits inside one enabled weekly rule for that day
- does not touch a date block (all-day blocks take whole calendar days)
- does not overlap a live (non-cancelled) appointment of the provider
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from agenda.core import day_of_week, overlaps, parse_hhmm
from agenda.errors import SlotUnavailable
from agenda.models import Availability, DateBlock
from agenda.storage import Storage

logger = logging.getLogger(__name__)

OUTSIDE_AVAILABILITY = "outside_availability"
DATE_BLOCKED = "date_blocked"
OVERLAPS_APPOINTMENT = "overlaps_appointment"

REASON_MESSAGES = {
    OUTSIDE_AVAILABILITY: "Requested time is outside the provider's working hours",
    DATE_BLOCKED: "Requested time falls on a blocked date",
    OVERLAPS_APPOINTMENT: "Requested time overlaps an existing appointment",
}

# longest appointment that can start before a window and still reach into it
MAX_LOOKBEHIND = timedelta(days=1)


@dataclass
class SlotCheck:
    available: bool
    reason: Optional[str] = None

    @property
    def message(self) -> Optional[str]:
        return REASON_MESSAGES.get(self.reason) if self.reason else None


def rule_window(rule: Availability, on_date: date) -> tuple[datetime, datetime]:
    return (
        datetime.combine(on_date, parse_hhmm(rule.start_time)),
        datetime.combine(on_date, parse_hhmm(rule.end_time)),
    )


def block_window(block: DateBlock) -> tuple[datetime, datetime]:
    if block.is_all_day:
        first_day = datetime.combine(block.start_date.date(), time.min)
        after_last_day = datetime.combine(block.end_date.date() + timedelta(days=1), time.min)
        return first_day, after_last_day
    return block.start_date, block.end_date


class AvailabilityResolver:
    def __init__(self, storage: Storage):
        self.storage = storage

    def check(
        self,
        provider_id: int,
        start: datetime,
        duration: int,
        exclude_appointment_id: Optional[int] = None,
    ) -> SlotCheck:
        end = start + timedelta(minutes=duration)

        # 1) Weekly rules for that day
        rules = self.storage.list_enabled_availability(provider_id, day_of_week(start))
        if not self._fits_rules(rules, start, end):
            return SlotCheck(False, OUTSIDE_AVAILABILITY)

        # 2) Date blocks (holidays, breaks)
        day_start = datetime.combine(start.date(), time.min)
        blocks = self.storage.date_blocks_between(provider_id, day_start - MAX_LOOKBEHIND, end)
        for b in blocks:
            block_start, block_end = block_window(b)
            if overlaps(start, end, block_start, block_end):
                return SlotCheck(False, DATE_BLOCKED)

        # 3) Existing appointments
        existing = self.storage.appointments_between(
            provider_id, start - MAX_LOOKBEHIND, end, exclude_id=exclude_appointment_id
        )
        for a in existing:
            existing_end = a.appointment_date + timedelta(minutes=a.duration)
            if overlaps(start, end, a.appointment_date, existing_end):
                return SlotCheck(False, OVERLAPS_APPOINTMENT)

        return SlotCheck(True)

    def ensure_bookable(
        self,
        provider_id: int,
        start: datetime,
        duration: int,
        exclude_appointment_id: Optional[int] = None,
    ) -> None:
        result = self.check(provider_id, start, duration, exclude_appointment_id)
        if not result.available:
            logger.info(
                f"Slot rejected for provider {provider_id} at {start.isoformat()} "
                f"({duration} min): {result.reason}"
            )
            raise SlotUnavailable(result.message, reason=result.reason)

    def available_starts(
        self,
        provider_id: int,
        on_date: date,
        duration: int,
        step_minutes: int,
        now: Optional[datetime] = None,
    ) -> List[str]:
        now = now or datetime.now()
        step = timedelta(minutes=step_minutes)
        length = timedelta(minutes=duration)

        rules = self.storage.list_enabled_availability(provider_id, day_of_week(on_date))
        starts = set()
        for rule in rules:
            rule_start, rule_end = rule_window(rule, on_date)
            current = rule_start
            while current + length <= rule_end:
                if current > now and self.check(provider_id, current, duration).available:
                    starts.add(current)
                current += step

        return [s.strftime("%H:%M") for s in sorted(starts)]

    @staticmethod
    def _fits_rules(rules: List[Availability], start: datetime, end: datetime) -> bool:
        for rule in rules:
            rule_start, rule_end = rule_window(rule, start.date())
            if rule_start <= start and end <= rule_end:
                return True
        return False
