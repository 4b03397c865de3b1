"""
Adapters layer - Booking data sources.
"""

from .json_booking_repository import JsonBookingRepository

__all__ = ["JsonBookingRepository"]
