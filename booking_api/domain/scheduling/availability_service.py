"""
Availability engine - turns working hours, blocked dates and existing
bookings into the list of time slots a customer can pick.

The pure functions here never touch the database; AvailabilityService loads
snapshots from the repositories and feeds them in. Availability is a
best-effort read, not a reservation.
"""

import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, timedelta
from typing import Optional, Protocol, Union

from sqlalchemy.orm import Session

from .repository import ScheduleRepository

logger = logging.getLogger(__name__)

# Hard cap on generated slots per day, guards against misconfigured rules
MAX_SLOTS_PER_DAY = 500


class WorkingHourRule(Protocol):
    day_of_week: int
    start_time: time
    end_time: time
    slot_duration_minutes: int
    is_active: bool


def parse_slot_time(value: Union[str, time]) -> time:
    """Normalize "HH:MM" / "HH:MM:SS" strings and time objects to minute precision"""
    if isinstance(value, str):
        value = time.fromisoformat(value.strip())
    return value.replace(second=0, microsecond=0, tzinfo=None)


def format_slot(value: time) -> str:
    return value.strftime("%H:%M")


def find_rule(rules: Sequence[WorkingHourRule], weekday: int) -> Optional[WorkingHourRule]:
    """Return the rule for a weekday (0 = Monday), or None when closed"""
    for rule in rules:
        if rule.day_of_week == weekday:
            return rule
    return None


def generate_candidate_slots(rule: WorkingHourRule) -> list[time]:
    """
    Every slot start for a rule, ignoring bookings.

    A slot is offered only if it finishes by end_time, so the count is
    floor((end - start) / duration) and no slot starts at or after end_time.
    """
    duration = rule.slot_duration_minutes or 0
    if duration <= 0:
        logger.warning(
            f"⚠️ Invalid slot duration {duration!r} for day {rule.day_of_week}, no slots generated"
        )
        return []

    # Anchor on an arbitrary date so arithmetic can't wrap past midnight
    anchor = date(2000, 1, 3)
    current = datetime.combine(anchor, parse_slot_time(rule.start_time))
    end = datetime.combine(anchor, parse_slot_time(rule.end_time))
    step = timedelta(minutes=duration)

    slots: list[time] = []
    # Only whole slots; a window of 09:00-12:10 at 30 min ends at 11:30, no 12:00 stub
    while current + step <= end and len(slots) < MAX_SLOTS_PER_DAY:
        slots.append(current.time())
        current += step

    if len(slots) >= MAX_SLOTS_PER_DAY:
        logger.warning(f"⚠️ Reached max slot generation limit for day {rule.day_of_week}")
    return slots


def compute_slots(
    target_date: date,
    rules: Sequence[WorkingHourRule],
    blocked_dates: Iterable[date],
    booked_times: Iterable[Union[str, time]],
) -> list[time]:
    """Offerable slots for a date, ascending"""
    if target_date in set(blocked_dates):
        return []

    rule = find_rule(rules, target_date.weekday())
    if rule is None or not rule.is_active:
        return []

    booked = {parse_slot_time(t) for t in booked_times}
    return [slot for slot in generate_candidate_slots(rule) if slot not in booked]


def is_date_disabled(
    target_date: date,
    rules: Sequence[WorkingHourRule],
    blocked_dates: Iterable[date],
    today: Optional[date] = None,
) -> bool:
    """A date is unselectable if it is in the past, blocked, or has no active rule"""
    today = today or date.today()
    if target_date < today:
        return True
    if target_date in set(blocked_dates):
        return True
    rule = find_rule(rules, target_date.weekday())
    return rule is None or not rule.is_active


class AvailabilityService:
    """Loads schedule snapshots and runs the availability engine over them"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ScheduleRepository()

    def get_available_slots(self, target_date: date) -> list[time]:
        rules = self.repo.get_working_hours(self.db)
        blocked = self.repo.get_blocked_date_values(self.db, target_date, target_date)
        booked = self.repo.get_booked_times(self.db, target_date)
        slots = compute_slots(target_date, rules, blocked, booked)
        logger.info(
            f"📅 {len(slots)} slots available on {target_date} ({len(booked)} already booked)"
        )
        return slots

    def get_candidate_slots(self, target_date: date) -> list[time]:
        """Slots on the working-hour grid for a date, bookings not considered"""
        rules = self.repo.get_working_hours(self.db)
        blocked = self.repo.get_blocked_date_values(self.db, target_date, target_date)
        return compute_slots(target_date, rules, blocked, [])

    def is_date_disabled(self, target_date: date, today: Optional[date] = None) -> bool:
        rules = self.repo.get_working_hours(self.db)
        blocked = self.repo.get_blocked_date_values(self.db, target_date, target_date)
        return is_date_disabled(target_date, rules, blocked, today)

    def get_disabled_dates(
        self, start: date, end: date, today: Optional[date] = None
    ) -> list[date]:
        """All unselectable dates in [start, end]"""
        rules = self.repo.get_working_hours(self.db)
        blocked = self.repo.get_blocked_date_values(self.db, start, end)
        disabled = []
        current = start
        while current <= end:
            if is_date_disabled(current, rules, blocked, today):
                disabled.append(current)
            current += timedelta(days=1)
        return disabled
