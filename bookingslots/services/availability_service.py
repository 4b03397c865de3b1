"""
Application services for answering "when can this barber take this service?".

The service coordinates fetching working hours, appointments and schedule
blocks via a repository adapter and delegates the actual availability
calculation to the domain-level ``SlotCalculator``. This keeps the CLI thin
and improves testability by allowing the data source to be stubbed via a
simple protocol.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional, Protocol

from ..config import TenantSettings
from ..domain.models import (
    Appointment,
    DayAvailability,
    GroupedSlots,
    ScheduleBlock,
    TimeSlot,
    WorkingHours,
    day_of_week,
    get_timezone,
    local_datetime,
)
from ..domain.slot_calculator import Clock, SlotCalculator, group_by_period, read_now, system_clock

logger = logging.getLogger(__name__)


class BookingRepositoryProtocol(Protocol):
    """Protocol describing the data access needed by the service."""

    def get_working_hours(self, barber_id: str, day_of_week: int) -> WorkingHours | None:
        """Return the barber's rule for a day of week (0=Sunday), if any."""

    def get_appointments(self, barber_id: str, start: datetime, end: datetime) -> List[Appointment]:
        """Return the barber's appointments overlapping the window."""

    def get_schedule_blocks(self, barber_id: str, start: datetime, end: datetime) -> List[ScheduleBlock]:
        """Return the barber's schedule blocks overlapping the window."""


class AvailabilityService:
    """
    Orchestrates booking data retrieval and slot calculation.

    Results are advisory: nothing is reserved, and the write path must
    re-check availability when an appointment is created.
    """

    def __init__(
        self,
        repository: BookingRepositoryProtocol,
        settings: Optional[TenantSettings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._repository = repository
        self._settings = settings or TenantSettings()
        self._clock = clock or system_clock

    @property
    def settings(self) -> TenantSettings:
        return self._settings

    def slots_for_day(
        self,
        *,
        barber_id: str,
        service_duration_minutes: int,
        target_date: date,
        available_only: bool = False,
    ) -> List[TimeSlot]:
        """
        Compute the barber's slots on target_date.
        """
        return self._slots_for_day(
            self._calculator(self._clock),
            barber_id=barber_id,
            service_duration_minutes=service_duration_minutes,
            target_date=target_date,
            available_only=available_only,
        )

    def grouped_slots_for_day(
        self,
        *,
        barber_id: str,
        service_duration_minutes: int,
        target_date: date,
        available_only: bool = False,
    ) -> GroupedSlots:
        """Slots of the day grouped into morning, afternoon and evening."""
        slots = self.slots_for_day(
            barber_id=barber_id,
            service_duration_minutes=service_duration_minutes,
            target_date=target_date,
            available_only=available_only,
        )
        return group_by_period(slots, timezone=self._settings.timezone)

    def day_overview(
        self,
        *,
        barber_id: str,
        service_duration_minutes: int,
        start_date: Optional[date] = None,
        days: Optional[int] = None,
    ) -> List[DayAvailability]:
        """
        Report which days of the booking horizon have at least one available slot.

        Args:
            barber_id: Barber to check
            service_duration_minutes: Length of the service being booked
            start_date: First day; defaults to today in the shop's timezone
            days: Number of days; defaults to and is capped at max_booking_days

        Returns:
            One DayAvailability per day, in date order
        """
        # Every day of the overview is judged against the same "now"
        now = read_now(self._clock, self._settings.timezone)
        calculator = self._calculator(lambda _timezone: now)

        if start_date is None:
            start_date = now.date()

        horizon = self._settings.max_booking_days
        if days is None or days > horizon:
            days = horizon

        overview: List[DayAvailability] = []
        for offset in range(max(days, 0)):
            current = start_date + timedelta(days=offset)
            slots = self._slots_for_day(
                calculator,
                barber_id=barber_id,
                service_duration_minutes=service_duration_minutes,
                target_date=current,
                available_only=True,
            )
            overview.append(
                DayAvailability(date=current, has_availability=bool(slots), slots=tuple(slots))
            )

        return overview

    def is_bookable(
        self,
        *,
        barber_id: str,
        service_duration_minutes: int,
        starts_at: datetime,
    ) -> bool:
        """Check whether starts_at matches an available slot right now."""
        local_start = starts_at.astimezone(get_timezone(self._settings.timezone))
        slots = self.slots_for_day(
            barber_id=barber_id,
            service_duration_minutes=service_duration_minutes,
            target_date=local_start.date(),
            available_only=True,
        )
        return any(slot.starts_at == starts_at for slot in slots)

    def _calculator(self, clock: Clock) -> SlotCalculator:
        return SlotCalculator(
            slot_interval_minutes=self._settings.slot_interval_minutes,
            timezone=self._settings.timezone,
            lead_hours=self._settings.booking_lead_hours,
            clock=clock,
        )

    def _slots_for_day(
        self,
        calculator: SlotCalculator,
        *,
        barber_id: str,
        service_duration_minutes: int,
        target_date: date,
        available_only: bool,
    ) -> List[TimeSlot]:
        timezone = self._settings.timezone
        day_start = local_datetime(target_date, "00:00", timezone)
        day_end = local_datetime(target_date, "24:00", timezone)

        working_hours = self._repository.get_working_hours(barber_id, day_of_week(target_date))
        appointments = self._repository.get_appointments(barber_id, day_start, day_end)
        blocks = self._repository.get_schedule_blocks(barber_id, day_start, day_end)

        logger.debug(
            "Barber %s on %s: %d appointments, %d blocks",
            barber_id,
            target_date,
            len(appointments),
            len(blocks),
        )

        if available_only:
            return calculator.available_only(
                target_date, working_hours, appointments, blocks, service_duration_minutes
            )
        return calculator.compute_slots(
            target_date, working_hours, appointments, blocks, service_duration_minutes
        )
