"""
Collaborator contracts used by the orchestration layer, with thread-safe
in-memory implementations.

The engine functions never call these directly (they take plain arguments);
only the AssignmentAgent does. Production deployments plug their own stores
in behind the same protocols.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Protocol, Set, Tuple

from .conflicts import window_of
from .errors import NotFound
from .models import (
    Amenity, Booking, BookingStatus, BookingWindow, BLOCKING_STATUSES,
    Driver, PricingConfigSnapshot, Vehicle,
)

logger = logging.getLogger(__name__)


class VehicleStore(Protocol):
    # Returns every requested vehicle in any order; raises NotFound naming the missing ids
    def find_by_ids(self, ids: Iterable[str]) -> List[Vehicle]: ...
    def list_all(self) -> List[Vehicle]: ...


class AmenityStore(Protocol):
    def find_by_ids(self, ids: Iterable[str]) -> List[Amenity]: ...


class PricingConfigStore(Protocol):
    def find_active(self) -> Optional[PricingConfigSnapshot]: ...


class DriverStore(Protocol):
    def find_available(self) -> List[Driver]: ...
    def find_by_id(self, driver_id: str) -> Optional[Driver]: ...


class BookingStore(Protocol):
    def find_booked_driver_ids(self, start: datetime, end: datetime,
                               exclude_id: Optional[str] = None) -> Set[str]: ...
    def find_by_id(self, booking_id: str) -> Optional[Booking]: ...
    def find_by_status(self, status: BookingStatus) -> List[Booking]: ...
    def save(self, booking: Booking) -> Booking: ...


class Notifier(Protocol):
    def send(self, event: str, payload: Dict[str, Any]) -> None: ...


def _resolve(entity: str, index: Dict[str, Any], ids: Iterable[str]) -> List[Any]:
    ids = list(ids)
    missing = [i for i in ids if i not in index]
    if missing:
        raise NotFound(entity, missing)
    return [index[i] for i in ids]


class InMemoryVehicleStore:
    def __init__(self, vehicles: Iterable[Vehicle] = ()):
        self._lock = threading.Lock()
        self._items: Dict[str, Vehicle] = {v.id: v for v in vehicles}

    def add(self, vehicle: Vehicle) -> None:
        with self._lock:
            self._items[vehicle.id] = vehicle

    def find_by_ids(self, ids: Iterable[str]) -> List[Vehicle]:
        with self._lock:
            return _resolve("vehicle", self._items, ids)

    def list_all(self) -> List[Vehicle]:
        with self._lock:
            return list(self._items.values())


class InMemoryAmenityStore:
    def __init__(self, amenities: Iterable[Amenity] = ()):
        self._lock = threading.Lock()
        self._items: Dict[str, Amenity] = {a.id: a for a in amenities}

    def find_by_ids(self, ids: Iterable[str]) -> List[Amenity]:
        with self._lock:
            return _resolve("amenity", self._items, ids)


class InMemoryPricingConfigStore:
    """Keeps every config ever activated; exactly one is active."""

    def __init__(self, active: Optional[PricingConfigSnapshot] = None):
        self._lock = threading.Lock()
        self._history: List[PricingConfigSnapshot] = []
        self._active: Optional[PricingConfigSnapshot] = None
        if active is not None:
            self.activate(active)

    def activate(self, config: PricingConfigSnapshot) -> None:
        with self._lock:
            self._history.append(config)
            self._active = config
        logger.info("Activated pricing config %s", config.config_id or "<unnamed>")

    def find_active(self) -> Optional[PricingConfigSnapshot]:
        with self._lock:
            return self._active

    def history(self) -> List[PricingConfigSnapshot]:
        with self._lock:
            return list(self._history)


class InMemoryDriverStore:
    def __init__(self, drivers: Iterable[Driver] = ()):
        self._lock = threading.Lock()
        self._items: Dict[str, Driver] = {}
        for d in drivers:
            self._items[d.id] = d

    def add(self, driver: Driver) -> None:
        with self._lock:
            self._items[driver.id] = driver

    def find_by_id(self, driver_id: str) -> Optional[Driver]:
        with self._lock:
            return self._items.get(driver_id)

    def find_available(self) -> List[Driver]:
        # insertion order; consumed first-fit
        with self._lock:
            return [d for d in self._items.values() if d.status_available and d.is_onboarded]


class InMemoryBookingStore:
    def __init__(self, bookings: Iterable[Booking] = ()):
        self._lock = threading.Lock()
        self._items: Dict[str, Booking] = {}
        for b in bookings:
            self._items[b.id] = b

    def save(self, booking: Booking) -> Booking:
        with self._lock:
            self._items[booking.id] = booking
        return booking

    def find_by_id(self, booking_id: str) -> Optional[Booking]:
        with self._lock:
            return self._items.get(booking_id)

    def find_by_status(self, status: BookingStatus) -> List[Booking]:
        with self._lock:
            return [b for b in self._items.values() if b.status == status]

    def driver_windows(self, exclude_id: Optional[str] = None) -> List[Tuple[str, BookingWindow]]:
        with self._lock:
            items = list(self._items.values())
        out: List[Tuple[str, BookingWindow]] = []
        for b in items:
            if b.id == exclude_id or b.status not in BLOCKING_STATUSES:
                continue
            if not b.assigned_driver_id or b.itinerary is None:
                continue
            out.append((b.id, window_of(b.itinerary, driver_id=b.assigned_driver_id)))
        return out

    def find_booked_driver_ids(self, start: datetime, end: datetime,
                               exclude_id: Optional[str] = None) -> Set[str]:
        probe = BookingWindow(start=start, end=end)
        return {w.driver_id for _, w in self.driver_windows(exclude_id) if w.overlaps(probe)}


class WindowListBookingStore:
    """Read-only booking store over a fixed list of driver windows (used by the HTTP surface)."""

    def __init__(self, windows: Iterable[BookingWindow]):
        self._windows = tuple(windows)

    def find_booked_driver_ids(self, start: datetime, end: datetime,
                               exclude_id: Optional[str] = None) -> Set[str]:
        probe = BookingWindow(start=start, end=end)
        return {w.driver_id for w in self._windows if w.driver_id and w.overlaps(probe)}


class LoggingNotifier:
    def send(self, event: str, payload: Dict[str, Any]) -> None:
        logger.info("notify %s: %s", event, payload)

