"""
bookingslots - appointment slot availability for barbershop bookings.
"""

__version__ = "0.1.0"
