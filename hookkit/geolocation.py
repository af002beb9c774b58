"""Geolocation types, events, errors and the latest-position tracker."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Geocoordinates:
    """A position in the world."""

    latitude: float
    longitude: float


class PowerMode(enum.Enum):
    """Desired accuracy, traded against battery use."""

    HIGH = "high"
    LOW = "low"


class Access(enum.Enum):
    """Whether the application may use the location service."""

    ALLOWED = "allowed"
    DENIED = "denied"
    UNSPECIFIED = "unspecified"


class Status(enum.Enum):
    """State of the location service or device."""

    READY = "ready"
    DISABLED = "disabled"
    NOT_AVAILABLE = "not_available"
    INITIALIZING = "initializing"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class StatusChanged:
    """The device status has changed."""

    status: Status


@dataclass(frozen=True)
class NewGeocoordinates:
    """New coordinates are available."""

    coordinates: Geocoordinates


Event = Union[StatusChanged, NewGeocoordinates]


class GeolocationError(Exception):
    """Base class of geolocation errors."""


class NotInitialized(GeolocationError):
    def __init__(self) -> None:
        super().__init__("not initialized")


class AccessDenied(GeolocationError):
    def __init__(self) -> None:
        super().__init__("access denied (access may have been revoked during use)")


class Poisoned(GeolocationError):
    def __init__(self) -> None:
        super().__init__("the internal read/write lock has been poisioned")


class DeviceError(GeolocationError):
    def __init__(self, message: str) -> None:
        super().__init__(f"a device error has occurred: {message}")
        self.message = message


class GeolocationTracker:
    """Keeps the latest coordinates, or the error that stands in their place."""

    def __init__(self) -> None:
        self._latest: Geocoordinates | GeolocationError = NotInitialized()

    def handle(self, event: Event) -> None:
        """Update the state from a geolocation event."""
        if isinstance(event, NewGeocoordinates):
            self._latest = event.coordinates
        elif isinstance(event, StatusChanged) and event.status is Status.DISABLED:
            self._latest = AccessDenied()

    @property
    def coordinates(self) -> Geocoordinates:
        """The latest coordinates; raises the current error if there are none."""
        if isinstance(self._latest, GeolocationError):
            raise self._latest
        return self._latest