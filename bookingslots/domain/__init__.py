"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import (
    AvailabilityError,
    BookingDataError,
    InvalidArgument,
    InvalidConfiguration,
    MalformedTimeError,
)
from .models import (
    Appointment,
    AppointmentStatus,
    BlockStatus,
    Closed,
    DayAvailability,
    GroupedSlots,
    Open,
    ScheduleBlock,
    TimeRange,
    TimeSlot,
    WeeklySchedule,
    WorkingHours,
    resolve_shift,
)
from .slot_calculator import SlotCalculator, available_only, compute_slots, group_by_period

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "AvailabilityError",
    "BlockStatus",
    "BookingDataError",
    "Closed",
    "DayAvailability",
    "GroupedSlots",
    "InvalidArgument",
    "InvalidConfiguration",
    "MalformedTimeError",
    "Open",
    "ScheduleBlock",
    "SlotCalculator",
    "TimeRange",
    "TimeSlot",
    "WeeklySchedule",
    "WorkingHours",
    "available_only",
    "compute_slots",
    "group_by_period",
    "resolve_shift",
]
