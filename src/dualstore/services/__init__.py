"""
Entity service contracts shared by the store-specific services and the
shadow layer.
"""

from dualstore.services.interface import BookingService, FlightPathService, HotelService
from dualstore.services.models import Booking, FlightPath
from dualstore.services.results import Result

__all__ = [
    "Booking",
    "BookingService",
    "FlightPath",
    "FlightPathService",
    "HotelService",
    "Result",
]
