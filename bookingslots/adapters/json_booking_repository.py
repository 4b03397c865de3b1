"""
Read-only booking data source backed by a JSON file.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..config import AppConfig
from ..domain.exceptions import BookingDataError
from ..domain.models import (
    DEFAULT_TIMEZONE,
    Appointment,
    ScheduleBlock,
    WeeklySchedule,
    WorkingHours,
    localize,
)

logger = logging.getLogger(__name__)


def parse_instant(value: str, timezone: str = DEFAULT_TIMEZONE) -> datetime:
    """
    Parse an ISO 8601 string; values without an offset are read as local time in timezone.
    """
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        return localize(dt, timezone)
    return dt


class JsonBookingRepository:
    """
    Serves working hours, appointments and schedule blocks for the availability service.

    Appointments and blocks are loaded from a JSON file shaped like:

        {
            "appointments": [
                {"id": "a1", "barberId": "carlos", "startsAt": "...", "endsAt": "...",
                 "status": "confirmed"}
            ],
            "scheduleBlocks": [
                {"id": "b1", "barberId": "carlos", "startsAt": "...", "endsAt": "...",
                 "reason": "Lunch", "status": "approved"}
            ]
        }

    Weekly working hours come from the YAML configuration.
    """

    def __init__(
        self,
        appointments: Iterable[Appointment] = (),
        schedule_blocks: Iterable[ScheduleBlock] = (),
        schedules: Optional[Mapping[str, WeeklySchedule]] = None,
    ):
        self.appointments: List[Appointment] = list(appointments)
        self.schedule_blocks: List[ScheduleBlock] = list(schedule_blocks)
        self.schedules: Dict[str, WeeklySchedule] = dict(schedules or {})

    @classmethod
    def from_config(cls, config: AppConfig, data_file: Optional[Path] = None) -> "JsonBookingRepository":
        """
        Build a repository from the app configuration.

        Args:
            config: Loaded AppConfig providing barbers and their working hours
            data_file: Bookings JSON file; defaults to config.bookings_file

        Raises:
            BookingDataError: If the bookings file is missing, not valid JSON, or
                its sections are not lists
        """
        schedules = {barber.id: barber.weekly_schedule() for barber in config.barbers}
        data_file = data_file or config.bookings_file

        if data_file is None:
            return cls(schedules=schedules)

        data = cls._load_json(Path(data_file))
        timezone = config.settings.timezone
        return cls(
            appointments=cls._parse_appointments(cls._section(data, "appointments"), timezone),
            schedule_blocks=cls._parse_blocks(cls._section(data, "scheduleBlocks"), timezone),
            schedules=schedules,
        )

    @staticmethod
    def _load_json(data_file: Path) -> Dict[str, Any]:
        if not data_file.exists():
            raise BookingDataError(f"Bookings file not found: {data_file}")

        try:
            with open(data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise BookingDataError(f"Invalid JSON in {data_file}: {exc}") from exc

        if not isinstance(data, dict):
            raise BookingDataError("Bookings file must contain an object at the root level.")

        return data

    @staticmethod
    def _section(data: Dict[str, Any], key: str) -> List[Any]:
        entries = data.get(key, [])
        if not isinstance(entries, list):
            raise BookingDataError(f"\"{key}\" must be a list, got {type(entries).__name__}.")
        return entries

    @staticmethod
    def _parse_appointments(entries: List[Any], timezone: str) -> List[Appointment]:
        appointments: List[Appointment] = []

        for entry in entries:
            if not isinstance(entry, dict):
                logger.warning("Skipping invalid appointment %r: not an object", entry)
                continue
            try:
                appointments.append(
                    Appointment(
                        starts_at=parse_instant(entry["startsAt"], timezone),
                        ends_at=parse_instant(entry["endsAt"], timezone),
                        status=entry["status"],
                        barber_id=entry.get("barberId"),
                        id=entry.get("id"),
                        service_id=entry.get("serviceId"),
                        price_cents=entry.get("priceCents", 0),
                        notes=entry.get("notes"),
                    )
                )
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping invalid appointment %s: %s", entry.get("id", entry), exc)

        return appointments

    @staticmethod
    def _parse_blocks(entries: List[Any], timezone: str) -> List[ScheduleBlock]:
        blocks: List[ScheduleBlock] = []

        for entry in entries:
            if not isinstance(entry, dict):
                logger.warning("Skipping invalid schedule block %r: not an object", entry)
                continue
            try:
                blocks.append(
                    ScheduleBlock(
                        starts_at=parse_instant(entry["startsAt"], timezone),
                        ends_at=parse_instant(entry["endsAt"], timezone),
                        status=entry["status"],
                        barber_id=entry.get("barberId"),
                        reason=entry.get("reason"),
                        id=entry.get("id"),
                    )
                )
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping invalid schedule block %s: %s", entry.get("id", entry), exc)

        return blocks

    def get_working_hours(self, barber_id: str, day_of_week: int) -> WorkingHours | None:
        schedule = self.schedules.get(barber_id)
        if schedule is None:
            return None
        return schedule.for_day(day_of_week)

    def get_appointments(self, barber_id: str, start: datetime, end: datetime) -> List[Appointment]:
        """Appointments of the barber overlapping [start, end), whatever their status."""
        return [
            appointment
            for appointment in self.appointments
            if appointment.barber_id == barber_id
            and appointment.starts_at < end
            and appointment.ends_at > start
        ]

    def get_schedule_blocks(self, barber_id: str, start: datetime, end: datetime) -> List[ScheduleBlock]:
        """Schedule blocks of the barber overlapping [start, end), whatever their status."""
        return [
            block
            for block in self.schedule_blocks
            if block.barber_id == barber_id and block.starts_at < end and block.ends_at > start
        ]
