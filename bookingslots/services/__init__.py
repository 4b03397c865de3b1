"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability_service import AvailabilityService, BookingRepositoryProtocol

__all__ = ["AvailabilityService", "BookingRepositoryProtocol"]
