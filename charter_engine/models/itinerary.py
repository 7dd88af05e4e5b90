""" The itinerary models describe where and when a charter goes.

ItineraryStop is one timed location on a leg. Itinerary groups the outbound leg and the optional return leg,
sorts each by stop order and checks that every leg starts with a pickup and ends with a dropoff.
RouteTotals carries the routed distance (km) and duration (hours) per leg, as produced by the routing provider. """

from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import Iterable, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TripLeg(str, Enum):
    OUTBOUND = "outbound"
    RETURN = "return"


class StopType(str, Enum):
    PICKUP = "pickup"
    DROPOFF = "dropoff"
    WAYPOINT = "waypoint"


class ItineraryStop(BaseModel):
    model_config = ConfigDict(frozen=True)

    trip_leg: TripLeg = TripLeg.OUTBOUND
    order: int = Field(..., ge=0)
    location_name: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    arrival_time: datetime
    departure_time: Optional[datetime] = None
    stop_type: StopType = StopType.WAYPOINT
    is_driver_staying: bool = False
    staying_duration_hours: Optional[float] = Field(None, ge=0.0)


def is_aware(dt: datetime) -> bool:
    return dt.tzinfo is not None and dt.tzinfo.utcoffset(dt) is not None


def check_same_clock(stamps: Iterable[datetime], what: str) -> None:
    # min/max and subtraction are undefined between aware and naive datetimes
    if len({is_aware(t) for t in stamps if t is not None}) > 1:
        raise ValueError(f"{what} mix timezone-aware and naive timestamps")


def _check_leg(name: str, stops: List[ItineraryStop]) -> None:
    if len(stops) < 2:
        raise ValueError(f"{name} leg needs at least 2 stops (got {len(stops)})")
    if stops[0].stop_type != StopType.PICKUP:
        raise ValueError(f"{name} leg must start with a pickup")
    if stops[-1].stop_type != StopType.DROPOFF:
        raise ValueError(f"{name} leg must end with a dropoff")


class Itinerary(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    outbound: List[ItineraryStop]
    return_leg: Optional[List[ItineraryStop]] = Field(None, alias="return")

    @field_validator("outbound", "return_leg", mode="after")
    @classmethod
    def _sort_by_order(cls, v):
        if v is None:
            return v
        return sorted(v, key=lambda s: s.order)

    @model_validator(mode="after")
    def _check_legs(self):
        _check_leg("outbound", self.outbound)
        if self.return_leg:
            _check_leg("return", self.return_leg)
        check_same_clock(
            (t for s in self.all_stops() for t in (s.arrival_time, s.departure_time)), "itinerary stops")
        return self

    @property
    def is_round_trip(self) -> bool:
        return bool(self.return_leg)

    def all_stops(self) -> Iterator[ItineraryStop]:
        yield from self.outbound
        if self.return_leg:
            yield from self.return_leg

    @classmethod
    def from_stops(cls, stops: Iterable[ItineraryStop]) -> "Itinerary":
        """Group a flat, repository-shaped stop list into legs."""
        stops = list(stops)
        outbound = [s for s in stops if s.trip_leg == TripLeg.OUTBOUND]
        ret = [s for s in stops if s.trip_leg == TripLeg.RETURN]
        return cls(outbound=outbound, return_leg=ret or None)


class LegTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    distance: float = Field(0.0, ge=0.0)    # km
    duration: float = Field(0.0, ge=0.0)    # hours


class RouteTotals(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    outbound: Optional[LegTotals] = None
    return_leg: Optional[LegTotals] = Field(None, alias="return")

    def _legs(self) -> List[LegTotals]:
        return [leg for leg in (self.outbound, self.return_leg) if leg is not None]

    @property
    def total_distance(self) -> float:
        return sum(leg.distance for leg in self._legs())

    @property
    def total_duration(self) -> float:
        return sum(leg.duration for leg in self._legs())
