"""
Entity service interfaces.

Each store provides its own implementation of these contracts (a Couchbase
one and a MongoDB one). The shadow services implement them too, so callers
cannot tell whether they talk to a single store or to the routing layer.

This module provides:
- BookingService: bookings by user, booking creation
- FlightPathService: flight search between airports
- HotelService: hotel search; ranking is left to each store's text search
"""

from abc import ABC, abstractmethod
from typing import Any

from dualstore.services.models import Booking, FlightPath
from dualstore.services.results import Result


class BookingService(ABC):
    """Reads and writes user bookings."""

    @abstractmethod
    async def find_bookings_by_user(self, username: str) -> Result[list[Booking]]:
        """
        Find all bookings made by ``username``.

        Args:
            username: The user whose bookings to list.

        Returns:
            Result whose data is the list of bookings (possibly empty).
        """
        pass

    @abstractmethod
    async def create_booking(self, username: str, booking: Booking) -> Result[Booking]:
        """
        Persist a new booking for ``username``.

        Implementations assign an id and ``bookedon`` timestamp when missing
        and return the booking as stored.

        Args:
            username: Owner of the booking.
            booking: The booking to store.

        Returns:
            Result whose data is the stored booking.
        """
        pass


class FlightPathService(ABC):
    """Searches flights."""

    @abstractmethod
    async def find_flights(
        self,
        from_airport: str,
        to_airport: str,
        leave: str,
    ) -> Result[list[FlightPath]]:
        """
        Find flights from ``from_airport`` to ``to_airport`` on ``leave``.

        Args:
            from_airport: Source airport name.
            to_airport: Destination airport name.
            leave: Departure date (MM/DD/YYYY).
        """
        pass


class HotelService(ABC):
    """
    Searches hotels.

    Both stores expose the same contract, ``search(location, description)
    -> ranked list``; how results are ranked is up to each store's native
    full-text search.
    """

    @abstractmethod
    async def find_hotels(self, location: str, description: str) -> Result[list[dict[str, Any]]]:
        """Search hotels matching a location and a description."""
        pass

    @abstractmethod
    async def find_hotels_by_description(self, description: str) -> Result[list[dict[str, Any]]]:
        """Search hotels by description or name only."""
        pass

    @abstractmethod
    async def find_all_hotels(self) -> Result[list[dict[str, Any]]]:
        """List every hotel."""
        pass


__all__ = [
    "BookingService",
    "FlightPathService",
    "HotelService",
]
