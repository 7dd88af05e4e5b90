""" Driver conflict resolution.

A reservation occupies its driver over the inclusive span [earliest arrival, latest arrival] of all its stops, both
legs included. DriverConflictResolver.can_assign() decides whether a driver can be bound to an itinerary:

1. the driver must have completed onboarding,
2. the driver must be available (optionally, an on-trip driver is accepted for trips that start beyond a
   configurable "soon start" horizon; offline, suspended and blocked drivers never are),
3. the driver must not appear in the booked set returned by the booking store for the window.

A negative outcome is a normal decision (can_assign=False with a reason), not an exception.
The check and the later write that commits the assignment are not isolated from each other. """

from __future__ import annotations
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Iterable, Optional, Sequence, Set, Union

from .errors import InvalidInput
from .models import (
    AssignmentDecision, BookingWindow, Driver, HARD_BLOCKER_STATUSES,
    Itinerary, ItineraryStop, REASON_BOOKED, REASON_NOT_ONBOARDED, REASON_UNAVAILABLE, is_aware,
)

if TYPE_CHECKING:
    from .repositories import BookingStore


def window_of(itinerary: Union[Itinerary, Iterable[ItineraryStop]],
              driver_id: Optional[str] = None) -> BookingWindow:
    stops = itinerary.all_stops() if isinstance(itinerary, Itinerary) else itinerary
    arrivals = [s.arrival_time for s in stops]
    if not arrivals:
        raise InvalidInput("itinerary has no stops; cannot derive a booking window")
    if len({is_aware(a) for a in arrivals}) > 1:
        raise InvalidInput("stops mix timezone-aware and naive arrival times")
    return BookingWindow(driver_id=driver_id, start=min(arrivals), end=max(arrivals))


def windows_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    return start_a <= end_b and start_b <= end_a


def first_fit(drivers: Sequence[Driver], booked_ids: Set[str]) -> Optional[Driver]:
    """First driver, in the order given, that is not booked. No ranking by cost or proximity."""
    for d in drivers:
        if d.id not in booked_ids:
            return d
    return None


class DriverConflictResolver:
    def __init__(self, bookings: "BookingStore", soon_start_threshold: Optional[timedelta] = None):
        self.bookings = bookings
        self.soon_start_threshold = soon_start_threshold

    def _static_reason(self, driver: Driver) -> Optional[str]:
        """Rules that need no booking window."""
        if not driver.is_onboarded:
            return REASON_NOT_ONBOARDED
        if driver.status_available:
            return None
        if driver.status in HARD_BLOCKER_STATUSES or self.soon_start_threshold is None:
            return REASON_UNAVAILABLE
        return None    # on-trip: decided against the trip start in check_status

    def check_status(self, driver: Driver, window: BookingWindow, now: datetime) -> Optional[str]:
        reason = self._static_reason(driver)
        if reason is not None or driver.status_available:
            return reason
        if is_aware(window.start) != is_aware(now):
            raise InvalidInput("now and the itinerary must both be timezone-aware or both naive")
        # On-trip drivers can take trips that start far enough ahead
        if window.start - now > self.soon_start_threshold:
            return None
        return REASON_UNAVAILABLE

    def can_assign(self, driver: Driver, itinerary: Union[Itinerary, Iterable[ItineraryStop]],
                   now: datetime, exclude_booking_id: Optional[str] = None) -> AssignmentDecision:
        reason = self._static_reason(driver)
        if reason is not None:
            return AssignmentDecision(can_assign=False, reason=reason)

        window = window_of(itinerary)
        reason = self.check_status(driver, window, now)
        if reason is not None:
            return AssignmentDecision(can_assign=False, reason=reason)

        booked = self.bookings.find_booked_driver_ids(window.start, window.end, exclude_booking_id)
        if driver.id in booked:
            return AssignmentDecision(can_assign=False, reason=REASON_BOOKED)
        return AssignmentDecision(can_assign=True)
