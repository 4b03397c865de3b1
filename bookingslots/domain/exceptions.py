"""
Domain-specific exception hierarchy for the booking slot engine.
"""


class AvailabilityError(Exception):
    """Base class for all application-level errors."""


class InvalidConfiguration(AvailabilityError, ValueError):
    """Raised when a calculation is requested with arguments it cannot honour."""


# Callers that think of these as argument errors can use either name.
InvalidArgument = InvalidConfiguration


class MalformedTimeError(InvalidConfiguration):
    """Raised when a wall-clock string is not a valid "HH:MM" value."""


class BookingDataError(AvailabilityError):
    """Raised when booking data cannot be loaded or parsed."""
