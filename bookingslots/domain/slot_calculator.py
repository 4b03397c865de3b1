"""
Core business logic for calculating bookable time slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O). The only outside
input is the current time, which comes from an injectable clock.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, List, Optional

from .exceptions import InvalidConfiguration
from .models import (
    DEFAULT_TIMEZONE,
    Appointment,
    Closed,
    GroupedSlots,
    ScheduleBlock,
    TimeRange,
    TimeSlot,
    WorkingHours,
    get_timezone,
    localize,
    resolve_shift,
    shift_by,
)

logger = logging.getLogger(__name__)

DEFAULT_SLOT_INTERVAL_MINUTES = 30
DEFAULT_LEAD_HOURS = 2

Clock = Callable[[str], datetime]


def system_clock(timezone: str) -> datetime:
    """Current wall-clock time in the given timezone."""
    return datetime.now(get_timezone(timezone))


def read_now(clock: Clock, timezone: str) -> datetime:
    """
    Read the clock once and express the result in timezone.

    A naive value is taken as wall-clock time in timezone.
    """
    now = clock(timezone)
    if now.tzinfo is None or now.utcoffset() is None:
        return localize(now, timezone)
    return now.astimezone(get_timezone(timezone))


class SlotCalculator:
    """
    Calculates the slots a professional can be booked into on a given day.

    Algorithm:
    1. Resolve the working hours into a shift (closed days yield nothing)
    2. Build the shift's local start/end on the target day
    3. Read "now" once and add the lead time
    4. Step through the shift, keeping only slots whose full service fits
    5. Mark each slot unavailable if it starts too soon, or overlaps an
       active appointment or an approved schedule block
    """

    def __init__(
        self,
        slot_interval_minutes: int = DEFAULT_SLOT_INTERVAL_MINUTES,
        timezone: str = DEFAULT_TIMEZONE,
        lead_hours: float = DEFAULT_LEAD_HOURS,
        clock: Optional[Clock] = None,
    ):
        if slot_interval_minutes <= 0:
            raise InvalidConfiguration(
                f"slot_interval_minutes must be greater than zero, got {slot_interval_minutes}"
            )
        if lead_hours < 0:
            raise InvalidConfiguration(f"lead_hours must not be negative, got {lead_hours}")

        get_timezone(timezone)

        self.slot_interval_minutes = slot_interval_minutes
        self.timezone = timezone
        self.lead_hours = lead_hours
        self.clock = clock or system_clock

    def compute_slots(
        self,
        target_date: date,
        working_hours: WorkingHours | None,
        existing_appointments: Iterable[Appointment],
        schedule_blocks: Iterable[ScheduleBlock],
        service_duration_minutes: int,
    ) -> List[TimeSlot]:
        """
        Compute every candidate slot of the day with its availability flag.

        Args:
            target_date: Day to compute; any time-of-day component is ignored
            working_hours: Rule for the target date's day of week, or None
            existing_appointments: Bookings of the professional around the day
            schedule_blocks: Breaks and leave of the professional around the day
            service_duration_minutes: Length of the service being booked

        Returns:
            Slots ordered by start time, both available and unavailable

        Raises:
            MalformedTimeError: If the working hours are not valid HH:MM strings
        """
        shift = resolve_shift(working_hours)
        if isinstance(shift, Closed):
            return []

        work_range = shift.bounds_for(target_date, self.timezone)
        if work_range is None:
            logger.debug(
                "Ignoring empty shift %s-%s on %s", shift.start_time, shift.end_time, target_date
            )
            return []

        if service_duration_minutes <= 0:
            logger.warning(
                "Service duration must be positive, got %s; no slots generated",
                service_duration_minutes,
            )
            return []

        min_bookable = self.min_bookable()
        candidates = self._generate_candidates(work_range, service_duration_minutes)

        busy_appointments = [
            appointment.time_range
            for appointment in existing_appointments
            if appointment.occupies_time
        ]
        busy_blocks = [block.time_range for block in schedule_blocks if block.is_approved]

        slots = [
            TimeSlot(
                time=candidate.start.strftime("%H:%M"),
                starts_at=candidate.start,
                ends_at=candidate.end,
                is_available=self._is_available(
                    candidate, min_bookable, busy_appointments, busy_blocks
                ),
            )
            for candidate in candidates
        ]

        logger.debug(
            "Computed %d slots (%d available) for %s",
            len(slots),
            sum(1 for slot in slots if slot.is_available),
            target_date,
        )
        return slots

    def available_only(
        self,
        target_date: date,
        working_hours: WorkingHours | None,
        existing_appointments: Iterable[Appointment],
        schedule_blocks: Iterable[ScheduleBlock],
        service_duration_minutes: int,
    ) -> List[TimeSlot]:
        """Same as compute_slots, keeping only the available slots."""
        slots = self.compute_slots(
            target_date,
            working_hours,
            existing_appointments,
            schedule_blocks,
            service_duration_minutes,
        )
        return [slot for slot in slots if slot.is_available]

    def min_bookable(self) -> datetime:
        """Earliest start a slot may have, reading the clock once."""
        now = read_now(self.clock, self.timezone)
        return shift_by(now, timedelta(hours=self.lead_hours))

    def _generate_candidates(
        self,
        work_range: TimeRange,
        service_duration_minutes: int,
    ) -> List[TimeRange]:
        """
        Step through the shift and collect every slot the service fits into.

        Example (30 min service, 30 min step):
        Shift: 09:00 - 10:15
        Result: [09:00-09:30, 09:30-10:00]
        """
        candidates: List[TimeRange] = []
        duration = timedelta(minutes=service_duration_minutes)
        step = timedelta(minutes=self.slot_interval_minutes)
        cursor = work_range.start

        while cursor < work_range.end:
            slot_end = shift_by(cursor, duration)

            # The whole service must fit before the shift ends
            if slot_end > work_range.end:
                break

            candidates.append(TimeRange(start=cursor, end=slot_end))
            cursor = shift_by(cursor, step)

        return candidates

    @staticmethod
    def _is_available(
        candidate: TimeRange,
        min_bookable: datetime,
        busy_appointments: List[TimeRange],
        busy_blocks: List[TimeRange],
    ) -> bool:
        if candidate.start < min_bookable:
            return False

        if any(candidate.overlaps(busy) for busy in busy_appointments):
            return False

        if any(candidate.overlaps(busy) for busy in busy_blocks):
            return False

        return True


def compute_slots(
    target_date: date,
    working_hours: WorkingHours | None,
    existing_appointments: Iterable[Appointment],
    schedule_blocks: Iterable[ScheduleBlock],
    service_duration_minutes: int,
    slot_interval_minutes: int = DEFAULT_SLOT_INTERVAL_MINUTES,
    timezone: str = DEFAULT_TIMEZONE,
    lead_hours: float = DEFAULT_LEAD_HOURS,
    clock: Optional[Clock] = None,
) -> List[TimeSlot]:
    """Compute the slots of one day without keeping a calculator around."""
    calculator = SlotCalculator(
        slot_interval_minutes=slot_interval_minutes,
        timezone=timezone,
        lead_hours=lead_hours,
        clock=clock,
    )
    return calculator.compute_slots(
        target_date,
        working_hours,
        existing_appointments,
        schedule_blocks,
        service_duration_minutes,
    )


def available_only(
    target_date: date,
    working_hours: WorkingHours | None,
    existing_appointments: Iterable[Appointment],
    schedule_blocks: Iterable[ScheduleBlock],
    service_duration_minutes: int,
    slot_interval_minutes: int = DEFAULT_SLOT_INTERVAL_MINUTES,
    timezone: str = DEFAULT_TIMEZONE,
    lead_hours: float = DEFAULT_LEAD_HOURS,
    clock: Optional[Clock] = None,
) -> List[TimeSlot]:
    slots = compute_slots(
        target_date,
        working_hours,
        existing_appointments,
        schedule_blocks,
        service_duration_minutes,
        slot_interval_minutes=slot_interval_minutes,
        timezone=timezone,
        lead_hours=lead_hours,
        clock=clock,
    )
    return [slot for slot in slots if slot.is_available]


def group_by_period(slots: Iterable[TimeSlot], timezone: Optional[str] = None) -> GroupedSlots:
    """
    Partition slots into morning [0,12), afternoon [12,18) and evening [18,24)
    by the local hour of their start. Input order is kept within each bucket.
    """
    grouped = GroupedSlots()

    for slot in slots:
        starts_at = slot.starts_at
        if timezone:
            starts_at = starts_at.astimezone(get_timezone(timezone))
        grouped.add(slot, starts_at.hour)

    return grouped
