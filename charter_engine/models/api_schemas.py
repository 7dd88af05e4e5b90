from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator

from .allocation import AllocationLine, AllocationOption
from .driver import AssignmentDecision, BookingWindow, Driver
from .itinerary import Itinerary, RouteTotals, check_same_clock
from .pricing import FareBreakdown, PricingConfigSnapshot
from .vehicle import Amenity, Vehicle


class RecommendationRequest(BaseModel):
    passenger_count: int
    fleet: List[Vehicle]

class RecommendationResponse(BaseModel):
    status: str
    options: List[AllocationOption]

class FareRequest(BaseModel):
    itinerary: Itinerary
    allocation: List[AllocationLine] = Field(..., description="Vehicles with quantities")
    amenities: List[Amenity] = []
    route_totals: Optional[RouteTotals] = None
    pricing_config: PricingConfigSnapshot
    actual_driver_rate: Optional[float] = None

class FareResponse(BaseModel):
    status: str
    breakdown: FareBreakdown

class AssignabilityRequest(BaseModel):
    driver: Driver
    itinerary: Itinerary
    now: datetime
    booked_windows: List[BookingWindow] = Field(default_factory=list, description="Existing driver windows to check against")
    soon_start_hours: Optional[float] = None

    @model_validator(mode="after")
    def _check_clocks(self):
        stamps = [self.now, *(s.arrival_time for s in self.itinerary.all_stops())]
        stamps += [t for w in self.booked_windows for t in (w.start, w.end)]
        check_same_clock(stamps, "now, itinerary and booked windows")
        return self

class AssignabilityResponse(BaseModel):
    status: str
    window: BookingWindow
    decision: AssignmentDecision
