"""
Domain models for working hours, bookings and slot calculations.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple, Union

import pytz

from .exceptions import InvalidConfiguration, MalformedTimeError

DEFAULT_TIMEZONE = "America/Sao_Paulo"

# Local hours at which the afternoon and evening buckets begin.
AFTERNOON_STARTS_AT = 12
EVENING_STARTS_AT = 18

_TIME_PATTERN = re.compile(r"^([0-9]{1,2}):([0-9]{2})$")


def parse_time_string(value: str) -> Tuple[int, int]:
    """
    Parse an "HH:MM" wall-clock string into (hour, minute).

    "24:00" is accepted and means midnight at the end of the day.

    Raises:
        MalformedTimeError: If the value is not a valid wall-clock time
    """
    match = _TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise MalformedTimeError(f"Invalid time {value!r}: expected HH:MM")

    hour, minute = int(match.group(1)), int(match.group(2))
    if (hour, minute) == (24, 0):
        return hour, minute
    if not 0 <= hour <= 23 or not 0 <= minute <= 59:
        raise MalformedTimeError(f"Invalid time {value!r}: out of range")

    return hour, minute


def get_timezone(timezone: str) -> pytz.BaseTzInfo:
    """
    Get the tzinfo for an IANA timezone name.

    Raises:
        InvalidConfiguration: If the timezone is unknown
    """
    try:
        return pytz.timezone(timezone)
    except pytz.UnknownTimeZoneError as exc:
        raise InvalidConfiguration(f"Unknown timezone: {timezone!r}") from exc


def localize(naive_dt: datetime, timezone: str) -> datetime:
    """Attach a timezone to a naive wall-clock datetime, shifting times that fall in a DST gap."""
    tz = get_timezone(timezone)
    return tz.normalize(tz.localize(naive_dt))


def shift_by(value: datetime, delta: timedelta) -> datetime:
    """Add an absolute duration to an aware datetime, keeping its wall-clock offset correct."""
    tzinfo = value.tzinfo
    result = value + delta
    if hasattr(tzinfo, "normalize"):
        result = tzinfo.normalize(result)
    return result


def local_datetime(target_date: date, value: str, timezone: str = DEFAULT_TIMEZONE) -> datetime:
    """
    Build the local instant for an "HH:MM" string on the calendar day of target_date.

    Only year, month and day of target_date are used.
    """
    hour, minute = parse_time_string(value)
    day = date(target_date.year, target_date.month, target_date.day)

    if hour == 24:
        return localize(datetime.combine(day + timedelta(days=1), time.min), timezone)

    return localize(datetime.combine(day, time(hour, minute)), timezone)


def day_of_week(value: date) -> int:
    """Return the day of week with 0=Sunday .. 6=Saturday."""
    return value.isoweekday() % 7


def _require_aware(value: datetime, name: str) -> None:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware, got naive datetime {value}")


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def overlaps(self, other: "TimeRange") -> bool:
        """
        Check if this range overlaps with another.

        Ranges that only touch at an endpoint do not overlap.
        """
        return self.start < other.end and self.end > other.start


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    NO_SHOW = "no_show"
    CANCELED = "canceled"


class BlockStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


ACTIVE_APPOINTMENT_STATUSES = frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED})


@dataclass(frozen=True)
class Appointment:
    """
    An existing booking as seen by the availability engine.

    Only scheduled and confirmed appointments occupy time.
    """
    starts_at: datetime
    ends_at: datetime
    status: AppointmentStatus
    barber_id: Optional[str] = None
    id: Optional[str] = None
    service_id: Optional[str] = None
    price_cents: int = 0
    notes: Optional[str] = None

    def __post_init__(self):
        _require_aware(self.starts_at, "starts_at")
        _require_aware(self.ends_at, "ends_at")
        object.__setattr__(self, "status", AppointmentStatus(self.status))
        if self.starts_at >= self.ends_at:
            raise ValueError(f"Appointment start {self.starts_at} must be before end {self.ends_at}")

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.starts_at, end=self.ends_at)

    @property
    def occupies_time(self) -> bool:
        return self.status in ACTIVE_APPOINTMENT_STATUSES


@dataclass(frozen=True)
class ScheduleBlock:
    """
    A one-off interval (break, leave, maintenance) during which the professional
    cannot be booked. Only approved blocks take effect.
    """
    starts_at: datetime
    ends_at: datetime
    status: BlockStatus
    barber_id: Optional[str] = None
    reason: Optional[str] = None
    id: Optional[str] = None

    def __post_init__(self):
        _require_aware(self.starts_at, "starts_at")
        _require_aware(self.ends_at, "ends_at")
        object.__setattr__(self, "status", BlockStatus(self.status))
        if self.starts_at >= self.ends_at:
            raise ValueError(f"Block start {self.starts_at} must be before end {self.ends_at}")

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.starts_at, end=self.ends_at)

    @property
    def is_approved(self) -> bool:
        return self.status is BlockStatus.APPROVED


@dataclass(frozen=True)
class Closed:
    """No bookable time on this day."""


@dataclass(frozen=True)
class Open:
    """A shift between two local "HH:MM" wall-clock times."""
    start_time: str
    end_time: str

    def bounds_for(self, target_date: date, timezone: str = DEFAULT_TIMEZONE) -> TimeRange | None:
        """
        Get the shift as a time range on a specific day.
        Returns None if the shift ends at or before it starts.
        """
        start = local_datetime(target_date, self.start_time, timezone)
        end = local_datetime(target_date, self.end_time, timezone)

        if end <= start:
            return None

        return TimeRange(start=start, end=end)


Shift = Union[Closed, Open]

CLOSED = Closed()


@dataclass(frozen=True)
class WorkingHours:
    """
    Recurring weekly availability rule for one professional on one day of week.
    """
    day_of_week: int  # 0=Sunday, 6=Saturday
    start_time: str
    end_time: str
    is_active: bool = True
    barber_id: Optional[str] = None

    def __post_init__(self):
        if self.day_of_week not in range(7):
            raise ValueError(f"day_of_week must be between 0 and 6, got {self.day_of_week}")

    def shift(self) -> Shift:
        if not self.is_active:
            return CLOSED
        return Open(start_time=self.start_time, end_time=self.end_time)


def resolve_shift(working_hours: WorkingHours | None) -> Shift:
    """Collapse an absent or inactive rule into Closed."""
    if working_hours is None:
        return CLOSED
    return working_hours.shift()


@dataclass(frozen=True)
class WeeklySchedule:
    """A professional's working-hours rules, at most one per day of week."""
    rules: Tuple[WorkingHours, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "rules", tuple(self.rules))
        seen: set[int] = set()
        for rule in self.rules:
            if rule.day_of_week in seen:
                raise ValueError(f"Duplicate working hours for day_of_week {rule.day_of_week}")
            seen.add(rule.day_of_week)

    def for_day(self, weekday: int) -> WorkingHours | None:
        for rule in self.rules:
            if rule.day_of_week == weekday:
                return rule
        return None

    def for_date(self, target_date: date) -> WorkingHours | None:
        """Get the rule that applies to the day of week of target_date."""
        return self.for_day(day_of_week(target_date))


@dataclass(frozen=True)
class TimeSlot:
    """
    A candidate booking time for one professional on one day.
    """
    time: str  # "HH:MM" in the tenant's local wall-clock
    starts_at: datetime
    ends_at: datetime
    is_available: bool

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.starts_at, end=self.ends_at)


def period_for_hour(hour: int) -> str:
    """Classify a local hour into "morning", "afternoon" or "evening"."""
    if hour < AFTERNOON_STARTS_AT:
        return "morning"
    if hour < EVENING_STARTS_AT:
        return "afternoon"
    return "evening"


@dataclass
class GroupedSlots:
    """Slots partitioned by the part of the day they start in."""
    morning: List[TimeSlot] = field(default_factory=list)
    afternoon: List[TimeSlot] = field(default_factory=list)
    evening: List[TimeSlot] = field(default_factory=list)

    def add(self, slot: TimeSlot, hour: int) -> None:
        getattr(self, period_for_hour(hour)).append(slot)

    def items(self) -> Iterator[Tuple[str, List[TimeSlot]]]:
        yield "morning", self.morning
        yield "afternoon", self.afternoon
        yield "evening", self.evening

    def __len__(self) -> int:
        return len(self.morning) + len(self.afternoon) + len(self.evening)


@dataclass(frozen=True)
class DayAvailability:
    """Whether a day has at least one available slot."""
    date: date
    has_availability: bool
    slots: Sequence[TimeSlot] = ()
