"""
Entity models routed through the shadow services.

Field names follow the travel-sample documents (all lower-case, no
separators), so a model dumps to the same shape in either store.
"""

from pydantic import BaseModel, ConfigDict, Field


class Booking(BaseModel):
    """
    A flight booking made by a user.

    Example:
        >>> booking = Booking(
        ...     id="booking::1234",
        ...     username="alice",
        ...     flight="AB123",
        ...     sourceairport="SFO",
        ...     destinationairport="LAX",
        ... )
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = Field(default=None, description="Document id, e.g. 'booking::<uuid>'")
    username: str | None = None
    flight: str | None = None
    price: float | None = Field(default=None, ge=0)
    date: str | None = None
    sourceairport: str | None = None
    destinationairport: str | None = None
    bookedon: str | None = Field(default=None, description="ISO-8601 booking timestamp")


class FlightPath(BaseModel):
    """A scheduled flight between two airports."""

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    flight: str | None = None
    equipment: str | None = None
    utc: str | None = None
    sourceairport: str | None = None
    destinationairport: str | None = None
    price: float | None = None
    flighttime: int | None = None


__all__ = ["Booking", "FlightPath"]
