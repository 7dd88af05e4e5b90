""" FareCalculator turns an itinerary, a vehicle allocation, amenities, routed leg totals and a pricing config snapshot
into a FareBreakdown:

base fare (vehicle flat fares), distance fare (distance x fuel consumption x fuel price, which doubles as the
fuel & maintenance figure), driver charge (hours x assigned driver's rate, or the fleet average before assignment),
night charge (stops arriving between 22:00 and 05:59), staying charge (whole days for driver stays of 24h or more),
amenities, tax and total.

The calculator is pure: no I/O, inputs are only read, and identical inputs give identical breakdowns.
compare_totals() reports the delta between two totals as a charge or a refund. """

from __future__ import annotations
import math
from typing import Iterable, Optional, Sequence

from .errors import InvalidInput, NoActivePricingConfig
from .models import (
    AdjustmentKind, AllocationLine, Amenity, FareBreakdown, Itinerary, ItineraryStop,
    PriceAdjustment, PricingConfigSnapshot, RouteTotals,
)

NIGHT_HOURS = frozenset({22, 23, 0, 1, 2, 3, 4, 5})
HOURS_PER_DAY = 24
MINOR_UNIT_DIGITS = 2


def calculate_base_fare(allocation: Sequence[AllocationLine]) -> float:
    return sum(ln.vehicle.base_fare * ln.quantity for ln in allocation)


def calculate_distance_fare(total_distance: float, allocation: Sequence[AllocationLine], fuel_price: float) -> float:
    fuel_per_km = sum(ln.vehicle.fuel_consumption * ln.quantity for ln in allocation)
    return total_distance * fuel_per_km * fuel_price


def calculate_driver_charge(total_duration_hours: float, rate_per_hour: float) -> float:
    return total_duration_hours * rate_per_hour


def count_night_stops(stops: Iterable[ItineraryStop]) -> int:
    # Hour of the arrival timestamp as given (its own local time)
    return sum(1 for s in stops if s.arrival_time.hour in NIGHT_HOURS)


def calculate_night_charge(stops: Iterable[ItineraryStop], night_charge_per_night: float) -> float:
    return count_night_stops(stops) * night_charge_per_night


def staying_days(stop: ItineraryStop) -> int:
    hours = stop.staying_duration_hours
    if not stop.is_driver_staying or hours is None or hours < HOURS_PER_DAY:
        return 0
    return math.ceil(hours / HOURS_PER_DAY)


def calculate_staying_charge(stops: Iterable[ItineraryStop], staying_charge_per_day: float) -> float:
    return sum(staying_days(s) * staying_charge_per_day for s in stops)


def calculate_amenities_total(amenities: Iterable[Amenity]) -> float:
    return sum(a.price for a in amenities)


def calculate_tax(subtotal: float, tax_percentage: float) -> float:
    return subtotal * tax_percentage / 100


class FareCalculator:
    def calculate(
        self,
        itinerary: Itinerary,
        allocation: Sequence[AllocationLine],
        amenities: Sequence[Amenity],
        route_totals: Optional[RouteTotals],
        config: Optional[PricingConfigSnapshot],
        actual_driver_rate: Optional[float] = None,
    ) -> FareBreakdown:
        if config is None:
            raise NoActivePricingConfig()
        if itinerary is None:
            raise InvalidInput("itinerary is required for pricing")
        if not allocation:
            raise InvalidInput("allocation must contain at least one vehicle")
        if actual_driver_rate is not None and actual_driver_rate < 0:
            raise InvalidInput(f"driver rate must be non-negative (got {actual_driver_rate})")

        totals = route_totals or RouteTotals()
        stops = list(itinerary.all_stops())
        driver_rate = config.average_driver_per_hour_rate if actual_driver_rate is None else actual_driver_rate

        base_fare = calculate_base_fare(allocation)
        distance_fare = calculate_distance_fare(totals.total_distance, allocation, config.fuel_price)
        driver_charge = calculate_driver_charge(totals.total_duration, driver_rate)
        night_charge = calculate_night_charge(stops, config.night_charge_per_night)
        staying_charge = calculate_staying_charge(stops, config.staying_charge_per_day)
        amenities_total = calculate_amenities_total(amenities)

        subtotal = base_fare + distance_fare + driver_charge + night_charge + staying_charge + amenities_total
        tax = calculate_tax(subtotal, config.tax_percentage)

        return FareBreakdown(
            base_fare=base_fare,
            distance_fare=distance_fare,
            driver_charge=driver_charge,
            night_charge=night_charge,
            staying_charge=staying_charge,
            amenities_total=amenities_total,
            subtotal=subtotal,
            tax=tax,
            total=subtotal + tax,
            driver_rate_used=driver_rate,
            config_snapshot=config,
        )


def calculate(itinerary, allocation, amenities, route_totals, config, actual_driver_rate=None) -> FareBreakdown:
    return FareCalculator().calculate(itinerary, allocation, amenities, route_totals, config, actual_driver_rate)


def compare_totals(previous_total: float, new_total: float) -> PriceAdjustment:
    delta = new_total - previous_total
    rounded = round(delta, MINOR_UNIT_DIGITS)
    if rounded > 0:
        kind = AdjustmentKind.CHARGE
    elif rounded < 0:
        kind = AdjustmentKind.REFUND
    else:
        kind = AdjustmentKind.NONE
    return PriceAdjustment(
        previous_total=previous_total,
        new_total=new_total,
        delta=delta,
        kind=kind,
        amount=abs(rounded),
    )
