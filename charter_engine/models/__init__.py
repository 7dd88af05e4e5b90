from .vehicle import Vehicle, Amenity
from .itinerary import (
    TripLeg, StopType, ItineraryStop, Itinerary, LegTotals, RouteTotals, check_same_clock, is_aware,
)
from .allocation import AllocationLine, AllocationOption
from .pricing import PricingConfigSnapshot, FareBreakdown, PriceAdjustment, AdjustmentKind
from .driver import (
    DriverStatus, Driver, BookingWindow, AssignmentDecision,
    HARD_BLOCKER_STATUSES, REASON_UNAVAILABLE, REASON_NOT_ONBOARDED, REASON_BOOKED,
)
from .booking import (
    Booking, BookingKind, BookingStatus, VehicleSelection,
    ReservationCharge, BookingModification,
    BLOCKING_STATUSES, MODIFIABLE_STATUSES, now_utc,
)

from .api_schemas import (
    RecommendationRequest, RecommendationResponse,
    FareRequest, FareResponse,
    AssignabilityRequest, AssignabilityResponse,
)
