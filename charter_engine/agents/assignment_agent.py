""" AssignmentAgent wires the three engine pieces into the booking workflows: it resolves vehicles, amenities, the active
pricing config and drivers through the collaborator stores, derives the booking window of an itinerary, picks a
driver first-fit, prices the booking with that driver's actual rate, and persists/notifies. It also re-prices
bookings after vehicle, passenger or driver changes and turns the price delta into a charge (or a logged refund).

Pricing and allocation errors abort the workflow step that needed them; only notifications and per-item failures of
the pending-quote sweep are caught and logged. No lock is held between the conflict check and the save. """

from __future__ import annotations
import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..allocation import VehicleAllocator, allocation_capacity, suggest_additional_vehicles
from ..config import settings
from ..conflicts import DriverConflictResolver, first_fit, window_of
from ..errors import (
    BookingNotModifiable, CapacityExceeded, CharterEngineError, DriverBooked,
    DriverUnavailable, InvalidInput, NotFound,
)
from ..models import (
    AdjustmentKind, AllocationLine, AllocationOption, Booking, BookingKind, BookingModification,
    BookingStatus, FareBreakdown, MODIFIABLE_STATUSES, PriceAdjustment, REASON_BOOKED,
    ReservationCharge, VehicleSelection, now_utc,
)
from ..pricing import FareCalculator, compare_totals
from ..repositories import (
    AmenityStore, BookingStore, DriverStore, LoggingNotifier, Notifier, PricingConfigStore, VehicleStore,
)

logger = logging.getLogger(__name__)


class AssignmentAgent:
    def __init__(
        self,
        vehicles: VehicleStore,
        amenities: AmenityStore,
        pricing_configs: PricingConfigStore,
        drivers: DriverStore,
        bookings: BookingStore,
        notifier: Optional[Notifier] = None,
        allocator: Optional[VehicleAllocator] = None,
        calculator: Optional[FareCalculator] = None,
        resolver: Optional[DriverConflictResolver] = None,
        sweep_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = now_utc,
        currency: Optional[str] = None,
    ):
        self.vehicles = vehicles
        self.amenities = amenities
        self.pricing_configs = pricing_configs
        self.drivers = drivers
        self.bookings = bookings
        self.notifier: Notifier = notifier or LoggingNotifier()
        self.allocator = allocator or VehicleAllocator()
        self.calculator = calculator or FareCalculator()
        self.resolver = resolver or DriverConflictResolver(bookings, settings.soon_start_threshold())
        self.sweep_delay = settings.SWEEP_DELAY_SECONDS if sweep_delay is None else sweep_delay
        self.sleep = sleep
        self.clock = clock
        self.currency = currency or settings.CURRENCY

    # ------------------------------------------------------------------ lookups

    def _booking(self, booking_id: str) -> Booking:
        booking = self.bookings.find_by_id(booking_id)
        if booking is None:
            raise NotFound("booking", [booking_id])
        return booking

    def _allocation(self, selections: Sequence[VehicleSelection]) -> List[AllocationLine]:
        found = self.vehicles.find_by_ids([s.vehicle_id for s in selections])
        by_id = {v.id: v for v in found}
        return [AllocationLine(vehicle=by_id[s.vehicle_id], quantity=s.quantity) for s in selections]

    def _driver_rate(self, booking: Booking) -> Optional[float]:
        if booking.actual_driver_rate is not None:
            return booking.actual_driver_rate
        if not booking.assigned_driver_id:
            return None
        driver = self.drivers.find_by_id(booking.assigned_driver_id)
        return driver.hourly_rate if driver is not None else None

    def _notify(self, event: str, payload: Dict[str, Any]) -> None:
        try:
            self.notifier.send(event, payload)
        except Exception as exc:
            # the committed assignment/price stands
            logger.error("Failed to send %s notification: %s", event, exc)

    def _require_modifiable(self, booking: Booking) -> None:
        if booking.status not in MODIFIABLE_STATUSES:
            raise BookingNotModifiable(f"Booking {booking.id} cannot be modified (status: {booking.status.value})")

    @staticmethod
    def _mark_modified(booking: Booking) -> BookingStatus:
        return BookingStatus.MODIFIED if booking.status == BookingStatus.CONFIRMED else booking.status

    # ------------------------------------------------------------------ pricing

    def recommend(self, passenger_count: int) -> List[AllocationOption]:
        fleet = [v for v in self.vehicles.list_all() if v.is_available]
        return self.allocator.get_recommendations(passenger_count, fleet)

    def price_booking(self, booking: Booking, driver_rate: Optional[float] = None,
                      selections: Optional[Sequence[VehicleSelection]] = None) -> FareBreakdown:
        if booking.itinerary is None:
            raise InvalidInput(f"Booking {booking.id} has no itinerary")
        selections = booking.selected_vehicles if selections is None else selections
        if not selections:
            raise InvalidInput(f"Booking {booking.id} has no vehicles selected")

        allocation = self._allocation(selections)
        amenities = self.amenities.find_by_ids(booking.amenity_ids) if booking.amenity_ids else []
        config = self.pricing_configs.find_active()
        return self.calculator.calculate(
            booking.itinerary, allocation, amenities, booking.route_totals, config, driver_rate,
        )

    def _supersede_pricing(self, booking: Booking, new_pricing: FareBreakdown, charge_type: str,
                           description: str, admin_id: Optional[str]) -> Tuple[PriceAdjustment, List[ReservationCharge]]:
        previous = booking.current_total()
        adjustment = compare_totals(new_pricing.total if previous is None else previous, new_pricing.total)
        charges = list(booking.charges)

        # Quotes are simply re-quoted; only accepted reservations owe or get back the difference
        if booking.kind == BookingKind.RESERVATION:
            if adjustment.kind == AdjustmentKind.CHARGE:
                charge = ReservationCharge(
                    charge_type=charge_type, description=description, amount=adjustment.amount,
                    currency=self.currency, added_by=admin_id,
                )
                charges.append(charge)
                logger.info("Created additional charge of %.2f %s on booking %s",
                            adjustment.amount, self.currency, booking.id)
            elif adjustment.kind == AdjustmentKind.REFUND:
                logger.info("Price reduced by %.2f %s on booking %s; refund to be processed separately",
                            adjustment.amount, self.currency, booking.id)
        return adjustment, charges

    # ------------------------------------------------------------------ auto-assignment

    def try_assign_driver(self, booking_id: str) -> bool:
        """Auto-assign the first eligible, unbooked driver to a submitted quote and price it with that driver's rate."""
        logger.info("Attempting to auto-assign driver to booking %s", booking_id)
        booking = self.bookings.find_by_id(booking_id)
        if booking is None:
            logger.warning("Booking not found for auto-assignment: %s", booking_id)
            return False
        if booking.status != BookingStatus.SUBMITTED:
            logger.info("Booking %s is %s, skipping auto-assignment", booking_id, booking.status.value)
            return False
        if booking.assigned_driver_id:
            logger.info("Booking %s already has a driver, skipping", booking_id)
            return False
        if booking.itinerary is None:
            logger.warning("Booking %s has no itinerary, cannot assign driver", booking_id)
            return False
        if not booking.selected_vehicles:
            logger.warning("Booking %s has no vehicles selected, cannot assign driver", booking_id)
            return False

        now = self.clock()
        window = window_of(booking.itinerary)
        candidates = [d for d in self.drivers.find_available()
                      if self.resolver.check_status(d, window, now) is None]
        if not candidates:
            logger.info("No available drivers for booking %s", booking_id)
            return False

        booked = self.bookings.find_booked_driver_ids(window.start, window.end, booking.id)
        driver = first_fit(candidates, booked)
        if driver is None:
            logger.info("All available drivers are booked for booking %s window", booking_id)
            return False

        try:
            pricing = self.price_booking(booking, driver.hourly_rate)
        except CharterEngineError as exc:
            logger.error("Cannot price booking %s for auto-assignment: %s", booking_id, exc)
            return False

        updated = booking.model_copy(update={
            "status": BookingStatus.QUOTED,
            "assigned_driver_id": driver.id,
            "actual_driver_rate": driver.hourly_rate,
            "pricing": pricing,
            "pricing_updated_at": now,
        })
        self.bookings.save(updated)

        self._notify("quote_priced", {
            "booking_id": booking_id,
            "user_id": booking.user_id,
            "driver_id": driver.id,
            "total": pricing.total,
            "currency": self.currency,
        })
        logger.info("Auto-assigned driver %s to booking %s", driver.id, booking_id)
        return True

    def process_pending_quotes(self) -> int:
        """Sequential sweep over submitted quotes without a driver. One failing item never stops the sweep."""
        pending = [b for b in self.bookings.find_by_status(BookingStatus.SUBMITTED) if not b.assigned_driver_id]
        if not pending:
            logger.info("No quotes needing driver assignment")
            return 0

        logger.info("Found %d quotes needing driver assignment", len(pending))
        assigned = 0
        for idx, booking in enumerate(pending):
            try:
                if self.try_assign_driver(booking.id):
                    assigned += 1
            except Exception:
                logger.exception("Auto-assignment failed for booking %s", booking.id)
            if idx < len(pending) - 1:
                self.sleep(self.sweep_delay)

        logger.info("Assigned drivers to %d of %d quotes", assigned, len(pending))
        return assigned

    # ------------------------------------------------------------------ admin adjustments

    def recalculate(self, booking_id: str, admin_id: Optional[str] = None) -> PriceAdjustment:
        booking = self._booking(booking_id)
        self._require_modifiable(booking)
        new_pricing = self.price_booking(booking, self._driver_rate(booking))
        adjustment, charges = self._supersede_pricing(
            booking, new_pricing, "recalculation", "Price recalculated", admin_id)

        modification = BookingModification(
            modified_by=admin_id, modification_type="recalculation",
            description="Pricing recalculated",
            previous_value=f"{adjustment.previous_total:.2f}",
            new_value=f"{adjustment.new_total:.2f}",
            metadata={"delta": adjustment.delta, "kind": adjustment.kind.value},
        )
        self.bookings.save(booking.model_copy(update={
            "pricing": new_pricing,
            "pricing_updated_at": self.clock(),
            "charges": charges,
            "modifications": [*booking.modifications, modification],
        }))
        return adjustment

    def adjust_vehicles(self, booking_id: str, selections: Sequence[VehicleSelection],
                        admin_id: Optional[str] = None) -> PriceAdjustment:
        if not selections:
            raise InvalidInput("At least one vehicle selection is required")
        booking = self._booking(booking_id)
        self._require_modifiable(booking)

        selections = list(selections)
        previous = list(booking.selected_vehicles)
        new_pricing = self.price_booking(booking, self._driver_rate(booking), selections)
        description = (f"Vehicle adjustment: additional charge for upgraded vehicles "
                       f"({len(previous)} -> {len(selections)} vehicle line(s))")
        adjustment, charges = self._supersede_pricing(booking, new_pricing, "vehicle_upgrade", description, admin_id)

        modification = BookingModification(
            modified_by=admin_id, modification_type="vehicle_adjust",
            description=f"Vehicles adjusted: {len(previous)} -> {len(selections)} vehicle line(s)",
            previous_value=",".join(f"{s.vehicle_id}:{s.quantity}" for s in previous),
            new_value=",".join(f"{s.vehicle_id}:{s.quantity}" for s in selections),
        )
        self.bookings.save(booking.model_copy(update={
            "selected_vehicles": selections,
            "status": self._mark_modified(booking),
            "pricing": new_pricing,
            "pricing_updated_at": self.clock(),
            "charges": charges,
            "modifications": [*booking.modifications, modification],
        }))

        self._notify("vehicles_adjusted", {
            "booking_id": booking_id,
            "user_id": booking.user_id,
            "vehicle_lines": len(selections),
            "additional_charge": adjustment.amount if adjustment.kind == AdjustmentKind.CHARGE else None,
        })
        logger.info("Adjusted vehicles for booking %s (%s %.2f)", booking_id, adjustment.kind.value, adjustment.amount)
        return adjustment

    def change_driver(self, booking_id: str, driver_id: str, admin_id: Optional[str] = None,
                      reason: Optional[str] = None) -> Booking:
        booking = self._booking(booking_id)
        self._require_modifiable(booking)
        if booking.assigned_driver_id == driver_id:
            raise InvalidInput("Driver is already assigned to this booking", code="DRIVER_ALREADY_ASSIGNED")
        driver = self.drivers.find_by_id(driver_id)
        if driver is None:
            raise NotFound("driver", [driver_id])
        if booking.itinerary is None:
            raise InvalidInput(f"Booking {booking_id} has no itinerary")

        now = self.clock()
        decision = self.resolver.can_assign(driver, booking.itinerary, now, exclude_booking_id=booking.id)
        if not decision.can_assign:
            if decision.reason == REASON_BOOKED:
                raise DriverBooked("Driver is already booked during this booking period")
            raise DriverUnavailable(f"Driver cannot be assigned: {decision.reason}")

        previous_driver = booking.assigned_driver_id
        modification = BookingModification(
            modified_by=admin_id, modification_type="driver_change",
            description="Driver changed" + (f": {reason}" if reason else ""),
            previous_value=previous_driver or "None", new_value=driver_id,
            metadata={"reason": reason, "driver_name": driver.name},
        )
        updated = booking.model_copy(update={
            "assigned_driver_id": driver_id,
            "actual_driver_rate": driver.hourly_rate,
            "status": self._mark_modified(booking),
            "modifications": [*booking.modifications, modification],
        })
        self.bookings.save(updated)

        self._notify("driver_changed", {
            "booking_id": booking_id,
            "user_id": booking.user_id,
            "previous_driver_id": previous_driver,
            "new_driver_id": driver_id,
            "reason": reason,
        })
        logger.info("Changed driver for booking %s: %s -> %s", booking_id, previous_driver, driver_id)
        return updated

    def add_passengers(self, booking_id: str, additional: int, admin_id: Optional[str] = None) -> Booking:
        if additional <= 0:
            raise InvalidInput(f"additional passenger count must be positive (got {additional})")
        booking = self._booking(booking_id)
        self._require_modifiable(booking)

        required = booking.passenger_count + additional
        capacity = allocation_capacity(self._allocation(booking.selected_vehicles))
        if required > capacity:
            shortfall = required - capacity
            suggestions = suggest_additional_vehicles(shortfall, self.vehicles.list_all())
            raise CapacityExceeded(shortfall, capacity, required, suggestions)

        modification = BookingModification(
            modified_by=admin_id, modification_type="passengers_add",
            description=f"Added {additional} passenger(s)",
            previous_value=str(booking.passenger_count), new_value=str(required),
        )
        updated = booking.model_copy(update={
            "passenger_count": required,
            "status": self._mark_modified(booking),
            "modifications": [*booking.modifications, modification],
        })
        self.bookings.save(updated)
        self._notify("passengers_added", {"booking_id": booking_id, "user_id": booking.user_id, "count": additional})
        return updated
