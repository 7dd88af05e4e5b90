# charter_engine/tests/test_pricing.py
from datetime import datetime

import pytest
from pydantic import ValidationError

from charter_engine.errors import InvalidInput, NoActivePricingConfig
from charter_engine.models import (
    AdjustmentKind, AllocationLine, Amenity, Itinerary, StopType, TripLeg, Vehicle,
)
from charter_engine.pricing import (
    FareCalculator, calculate, compare_totals, count_night_stops, staying_days,
)
from conftest import make_itinerary, make_stop

DAY1 = datetime(2026, 1, 1)


def at(day, hour, minute=0):
    return DAY1.replace(day=day, hour=hour, minute=minute)


@pytest.fixture
def day_trip():
    return make_itinerary(at(1, 10), at(1, 12))


# ──────────────────────────────────────────────────────────────────────────────
# Totals
# ──────────────────────────────────────────────────────────────────────────────
def test_tax_applied_on_subtotal(day_trip, pricing_config):
    vehicle = Vehicle(id="A", name="Coach", capacity=12, base_fare=1000.0)
    breakdown = calculate(day_trip, [AllocationLine(vehicle=vehicle)], [], None, pricing_config)

    assert breakdown.subtotal == pytest.approx(1000.0)
    assert breakdown.tax == pytest.approx(180.0)
    assert breakdown.total == pytest.approx(1180.0)

def test_full_breakdown(coach, route_totals, pricing_config):
    itinerary = Itinerary(outbound=[
        make_stop(0, at(1, 10), StopType.PICKUP),
        make_stop(1, at(1, 14), StopType.WAYPOINT, staying_hours=30),
        make_stop(2, at(1, 18), StopType.DROPOFF),
    ])
    amenities = [Amenity(id="wifi", price=300.0), Amenity(id="snacks", price=200.0)]
    b = calculate(itinerary, [AllocationLine(vehicle=coach, quantity=2)], amenities, route_totals, pricing_config)

    assert b.base_fare == pytest.approx(10000.0)
    assert b.distance_fare == pytest.approx(220 * 0.2 * 100)
    assert b.fuel_maintenance == b.distance_fare
    assert b.driver_charge == pytest.approx(5 * 200.0)
    assert b.night_charge == 0
    assert b.staying_charge == pytest.approx(2000.0)
    assert b.amenities_total == pytest.approx(500.0)
    assert b.subtotal == pytest.approx(17900.0)
    assert b.tax == pytest.approx(3222.0)
    assert b.total == pytest.approx(21122.0)
    assert b.driver_rate_used == 200.0

def test_actual_driver_rate_replaces_average(coach, route_totals, pricing_config, day_trip):
    alloc = [AllocationLine(vehicle=coach)]
    b = calculate(day_trip, alloc, [], route_totals, pricing_config, actual_driver_rate=300.0)
    assert b.driver_charge == pytest.approx(1500.0)
    assert b.driver_rate_used == 300.0

def test_components_non_negative_and_additive(coach, route_totals, pricing_config):
    itinerary = make_itinerary(at(1, 23), at(2, 4), at(3, 22), at(4, 9))
    b = calculate(itinerary, [AllocationLine(vehicle=coach)], [Amenity(id="x", price=50.0)],
                  route_totals, pricing_config)

    parts = [b.base_fare, b.distance_fare, b.driver_charge, b.night_charge, b.staying_charge, b.amenities_total]
    assert all(p >= 0 for p in parts)
    assert b.subtotal == pytest.approx(sum(parts))
    assert b.total == pytest.approx(b.subtotal + b.tax)
    assert b.night_charge == pytest.approx(3 * 500.0)

def test_missing_route_totals_price_as_zero_distance(coach, pricing_config, day_trip):
    b = calculate(day_trip, [AllocationLine(vehicle=coach)], [], None, pricing_config)
    assert b.distance_fare == 0
    assert b.driver_charge == 0


# ──────────────────────────────────────────────────────────────────────────────
# Night and staying charges
# ──────────────────────────────────────────────────────────────────────────────
def test_late_arrival_counts_as_night(coach, pricing_config):
    itinerary = make_itinerary(at(1, 23), at(2, 10))
    b = calculate(itinerary, [AllocationLine(vehicle=coach)], [], None, pricing_config)
    assert b.night_charge == pytest.approx(500.0)

def test_night_hours_boundaries():
    stops = [
        make_stop(0, at(1, 21, 59), StopType.PICKUP),
        make_stop(1, at(1, 22, 0), StopType.WAYPOINT),
        make_stop(2, at(2, 5, 59), StopType.WAYPOINT),
        make_stop(3, at(2, 6, 0), StopType.DROPOFF),
    ]
    assert count_night_stops(stops) == 2

@pytest.mark.parametrize("hours, days", [(None, 0), (23.9, 0), (24, 1), (25, 2), (48, 2), (49, 3)])
def test_staying_days_round_up_whole_days(hours, days):
    stop = make_stop(1, at(1, 12), StopType.WAYPOINT, staying_hours=hours)
    assert staying_days(stop) == days

def test_stay_hours_ignored_when_driver_not_staying():
    stop = make_stop(1, at(1, 12), StopType.WAYPOINT).model_copy(update={"staying_duration_hours": 72})
    assert staying_days(stop) == 0

def test_return_leg_stays_are_charged(coach, pricing_config):
    itinerary = Itinerary(
        outbound=[make_stop(0, at(1, 8), StopType.PICKUP), make_stop(1, at(1, 12), StopType.DROPOFF)],
        return_leg=[
            make_stop(0, at(3, 8), StopType.PICKUP, leg=TripLeg.RETURN),
            make_stop(1, at(3, 10), StopType.WAYPOINT, leg=TripLeg.RETURN, staying_hours=24),
            make_stop(2, at(3, 12), StopType.DROPOFF, leg=TripLeg.RETURN),
        ],
    )
    b = calculate(itinerary, [AllocationLine(vehicle=coach)], [], None, pricing_config)
    assert b.staying_charge == pytest.approx(1000.0)


# ──────────────────────────────────────────────────────────────────────────────
# Determinism and config snapshots
# ──────────────────────────────────────────────────────────────────────────────
def test_identical_inputs_give_identical_breakdowns(coach, route_totals, pricing_config, day_trip):
    alloc = [AllocationLine(vehicle=coach, quantity=2)]
    calc = FareCalculator()
    first = calc.calculate(day_trip, alloc, [], route_totals, pricing_config)
    second = calc.calculate(day_trip, alloc, [], route_totals, pricing_config)
    assert first == second
    assert len(alloc) == 1 and alloc[0].quantity == 2

def test_config_snapshot_embedded(coach, pricing_config, day_trip):
    b = calculate(day_trip, [AllocationLine(vehicle=coach)], [], None, pricing_config)
    assert b.config_snapshot == pricing_config

    newer = pricing_config.model_copy(update={"tax_percentage": 5.0, "config_id": "cfg-2"})
    calculate(day_trip, [AllocationLine(vehicle=coach)], [], None, newer)
    assert b.config_snapshot.tax_percentage == 18.0


# ──────────────────────────────────────────────────────────────────────────────
# Failures
# ──────────────────────────────────────────────────────────────────────────────
def test_no_active_config_fails(coach, day_trip):
    with pytest.raises(NoActivePricingConfig):
        calculate(day_trip, [AllocationLine(vehicle=coach)], [], None, None)

def test_empty_allocation_rejected(pricing_config, day_trip):
    with pytest.raises(InvalidInput):
        calculate(day_trip, [], [], None, pricing_config)

def test_negative_driver_rate_rejected(coach, pricing_config, day_trip):
    with pytest.raises(InvalidInput):
        calculate(day_trip, [AllocationLine(vehicle=coach)], [], None, pricing_config, actual_driver_rate=-1)

def test_itinerary_needs_pickup_and_dropoff():
    with pytest.raises(ValidationError):
        Itinerary(outbound=[make_stop(0, at(1, 10), StopType.PICKUP)])
    with pytest.raises(ValidationError):
        Itinerary(outbound=[make_stop(0, at(1, 10), StopType.WAYPOINT), make_stop(1, at(1, 12), StopType.DROPOFF)])

def test_itinerary_sorts_stops_by_order():
    itinerary = Itinerary(outbound=[
        make_stop(2, at(1, 14), StopType.DROPOFF),
        make_stop(0, at(1, 10), StopType.PICKUP),
        make_stop(1, at(1, 12), StopType.WAYPOINT),
    ])
    assert [s.order for s in itinerary.outbound] == [0, 1, 2]


# ──────────────────────────────────────────────────────────────────────────────
# Price comparison
# ──────────────────────────────────────────────────────────────────────────────
def test_increase_is_a_charge():
    adj = compare_totals(1000.0, 1500.0)
    assert adj.kind == AdjustmentKind.CHARGE
    assert adj.amount == 500.0
    assert adj.delta == 500.0

def test_decrease_is_a_refund():
    adj = compare_totals(1500.0, 1000.0)
    assert adj.kind == AdjustmentKind.REFUND
    assert adj.amount == 500.0

def test_sub_minor_unit_delta_is_no_change():
    adj = compare_totals(100.0, 100.004)
    assert adj.kind == AdjustmentKind.NONE
    assert adj.amount == 0

def test_upgrade_charge_equals_fare_difference(coach, route_totals, pricing_config, day_trip):
    before = calculate(day_trip, [AllocationLine(vehicle=coach, quantity=1)], [], route_totals, pricing_config)
    after = calculate(day_trip, [AllocationLine(vehicle=coach, quantity=2)], [], route_totals, pricing_config)

    adj = compare_totals(before.total, after.total)
    assert adj.kind == AdjustmentKind.CHARGE
    assert adj.amount == round(after.total - before.total, 2)
