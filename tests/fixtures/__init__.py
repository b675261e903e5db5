"""
Shared test fixtures for the dualstore library.

This module provides reusable test helpers:
- Fake entity services per store (FakeBookingService, FakeFlightPathService,
  FakeHotelService)
- make_booking and make_documents factories

Usage:
    from tests.fixtures import (
        FakeBookingService,
        FakeFlightPathService,
        FakeHotelService,
        make_booking,
        make_documents,
    )
"""

from tests.fixtures.documents import make_documents
from tests.fixtures.services import (
    FakeBookingService,
    FakeFlightPathService,
    FakeHotelService,
    make_booking,
)

__all__ = [
    "FakeBookingService",
    "FakeFlightPathService",
    "FakeHotelService",
    "make_booking",
    "make_documents",
]
