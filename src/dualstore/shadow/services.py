"""
Shadow entity services.

Each shadow service implements the same interface as the store-specific
services and forwards every call through a ShadowDispatcher. The feature
configuration is taken from ``config_provider`` once per call, so flag
changes apply to the next request without restarting anything.

Example:
    >>> bookings = ShadowBookingService(
    ...     ShadowDispatcher(couchbase_bookings, mongo_bookings),
    ...     config_provider=lambda: FeatureConfig.from_env(),
    ... )
    >>> result = await bookings.find_bookings_by_user("alice")
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from dualstore.config import FeatureConfig
from dualstore.services.interface import BookingService, FlightPathService, HotelService
from dualstore.services.models import Booking, FlightPath
from dualstore.services.results import Result
from dualstore.shadow.dispatcher import ShadowDispatcher

logger = logging.getLogger(__name__)

ConfigProvider = Callable[[], FeatureConfig]


class ShadowBookingService(BookingService):
    """Booking service that routes between the Couchbase and MongoDB implementations."""

    def __init__(
        self,
        dispatcher: ShadowDispatcher[BookingService],
        config_provider: ConfigProvider,
    ) -> None:
        self._dispatcher = dispatcher
        self._config_provider = config_provider

    async def find_bookings_by_user(self, username: str) -> Result[list[Booking]]:
        return await self._dispatcher.read(
            "findBookingsByUser",
            lambda service: service.find_bookings_by_user(username),
            config=self._config_provider(),
        )

    async def create_booking(self, username: str, booking: Booking) -> Result[Booking]:
        """
        Create the booking in the primary store and mirror it to the other.

        The mirror writes the booking as the primary stored it, so both
        stores share the generated id and timestamp.
        """
        logger.debug("Creating booking for %s", username, extra={"username": username})

        async def mirror(service: BookingService, primary: Result[Booking]) -> Result[Booking]:
            stored = primary.data if primary.data is not None else booking
            return await service.create_booking(username, stored)

        return await self._dispatcher.write(
            "createBooking",
            lambda service: service.create_booking(username, booking),
            config=self._config_provider(),
            mirror=mirror,
        )


class ShadowFlightPathService(FlightPathService):
    """Flight search routed between the two stores."""

    def __init__(
        self,
        dispatcher: ShadowDispatcher[FlightPathService],
        config_provider: ConfigProvider,
    ) -> None:
        self._dispatcher = dispatcher
        self._config_provider = config_provider

    async def find_flights(
        self,
        from_airport: str,
        to_airport: str,
        leave: str,
    ) -> Result[list[FlightPath]]:
        return await self._dispatcher.read(
            "findFlights",
            lambda service: service.find_flights(from_airport, to_airport, leave),
            config=self._config_provider(),
        )


class ShadowHotelService(HotelService):
    """
    Hotel search routed between the two stores.

    Ranking is whatever the serving store's text search returns; with
    validation enabled only the result counts are compared.
    """

    def __init__(
        self,
        dispatcher: ShadowDispatcher[HotelService],
        config_provider: ConfigProvider,
    ) -> None:
        self._dispatcher = dispatcher
        self._config_provider = config_provider

    async def find_hotels(self, location: str, description: str) -> Result[list[dict[str, Any]]]:
        return await self._dispatcher.read(
            "findHotels",
            lambda service: service.find_hotels(location, description),
            config=self._config_provider(),
        )

    async def find_hotels_by_description(self, description: str) -> Result[list[dict[str, Any]]]:
        return await self._dispatcher.read(
            "findHotelsByDescription",
            lambda service: service.find_hotels_by_description(description),
            config=self._config_provider(),
        )

    async def find_all_hotels(self) -> Result[list[dict[str, Any]]]:
        return await self._dispatcher.read(
            "findAllHotels",
            lambda service: service.find_all_hotels(),
            config=self._config_provider(),
        )


__all__ = [
    "ConfigProvider",
    "ShadowBookingService",
    "ShadowFlightPathService",
    "ShadowHotelService",
]
