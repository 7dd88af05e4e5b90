# charter_engine/tests/conftest.py
import json
from datetime import datetime
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from charter_engine.app import app
from charter_engine.agents import AssignmentAgent
from charter_engine.models import (
    Amenity, Driver, Itinerary, ItineraryStop, LegTotals, PricingConfigSnapshot,
    RouteTotals, StopType, TripLeg, Vehicle,
)
from charter_engine.repositories import (
    InMemoryAmenityStore, InMemoryBookingStore, InMemoryDriverStore,
    InMemoryPricingConfigStore, InMemoryVehicleStore,
)

# Base directories
ROOT = Path(__file__).resolve().parents[2]        # repository root
EXAMPLES_DIR = ROOT / "examples"

NOW = datetime(2025, 12, 1, 9, 0)


@pytest.fixture(scope="session")
def client():
    # server exceptions come back as HTTP 500
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture(scope="session")
def scenarios():
    """Load scenarios.json from the examples/ folder."""
    path = EXAMPLES_DIR / "scenarios.json"
    if not path.exists():
        raise FileNotFoundError(f"{path} not found.")
    with path.open(encoding="utf-8") as f:
        return json.load(f)


# ──────────────────────────────────────────────────────────────────────────────
# Builders
# ──────────────────────────────────────────────────────────────────────────────
def make_stop(order, at, stop_type, leg=TripLeg.OUTBOUND, staying_hours=None):
    return ItineraryStop(
        trip_leg=leg, order=order, location_name=f"{leg.value}-{order}",
        latitude=12.97, longitude=77.59, arrival_time=at, stop_type=stop_type,
        is_driver_staying=staying_hours is not None, staying_duration_hours=staying_hours,
    )


def make_itinerary(start, end, return_start=None, return_end=None):
    outbound = [make_stop(0, start, StopType.PICKUP), make_stop(1, end, StopType.DROPOFF)]
    ret = None
    if return_start is not None:
        ret = [
            make_stop(0, return_start, StopType.PICKUP, leg=TripLeg.RETURN),
            make_stop(1, return_end, StopType.DROPOFF, leg=TripLeg.RETURN),
        ]
    return Itinerary(outbound=outbound, return_leg=ret)


class RecordingNotifier:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def send(self, event, payload):
        if self.fail:
            raise RuntimeError("mail server down")
        self.sent.append((event, dict(payload)))


@pytest.fixture
def pricing_config():
    return PricingConfigSnapshot(
        fuel_price=100.0,
        average_driver_per_hour_rate=200.0,
        night_charge_per_night=500.0,
        staying_charge_per_day=1000.0,
        tax_percentage=18.0,
        config_id="cfg-1",
    )


@pytest.fixture
def coach():
    return Vehicle(id="A", name="Coach", capacity=12, base_fare=5000.0, fuel_consumption=0.1)


@pytest.fixture
def van():
    return Vehicle(id="B", name="Van", capacity=6, base_fare=2000.0, fuel_consumption=0.05)


@pytest.fixture
def route_totals():
    return RouteTotals(outbound=LegTotals(distance=100.0, duration=2.0),
                       return_leg=LegTotals(distance=120.0, duration=3.0))


@pytest.fixture
def world(coach, van, pricing_config):
    """In-memory stores plus an AssignmentAgent with a fixed clock and a recorded sleep."""
    stores = {
        "vehicles": InMemoryVehicleStore([coach, van]),
        "amenities": InMemoryAmenityStore([Amenity(id="wifi", name="Wi-Fi", price=300.0)]),
        "pricing_configs": InMemoryPricingConfigStore(pricing_config),
        "drivers": InMemoryDriverStore([
            Driver(id="d1", name="Asha", hourly_rate=250.0),
            Driver(id="d2", name="Ravi", hourly_rate=300.0),
        ]),
        "bookings": InMemoryBookingStore(),
    }
    notifier = RecordingNotifier()
    sleeps = []
    agent = AssignmentAgent(
        **stores, notifier=notifier, sweep_delay=0.1,
        sleep=sleeps.append, clock=lambda: NOW, currency="INR",
    )
    return {**stores, "agent": agent, "notifier": notifier, "sleeps": sleeps}
