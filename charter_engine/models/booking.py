""" Booking records handled by the orchestration layer.

A Booking is either a quote (before payment) or a reservation (after payment). The engine only reads the itinerary,
the vehicle selection and the amenities from it; status changes, charges and the modification history are written
by the AssignmentAgent and persisted through a BookingStore. """

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from .itinerary import Itinerary, RouteTotals
from .pricing import FareBreakdown


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class BookingKind(str, Enum):
    QUOTE = "quote"
    RESERVATION = "reservation"


class BookingStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"      # complete, waiting for a driver
    QUOTED = "quoted"            # priced with an assigned driver's actual rate
    CONFIRMED = "confirmed"      # paid, no modifications yet
    MODIFIED = "modified"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    REFUNDED = "refunded"


# A driver is occupied by bookings in these states
BLOCKING_STATUSES = frozenset({BookingStatus.QUOTED, BookingStatus.CONFIRMED, BookingStatus.MODIFIED})

MODIFIABLE_STATUSES = frozenset({
    BookingStatus.SUBMITTED, BookingStatus.QUOTED, BookingStatus.CONFIRMED, BookingStatus.MODIFIED,
})


class VehicleSelection(BaseModel):
    vehicle_id: str
    quantity: int = Field(1, ge=1)


class ReservationCharge(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    charge_type: str                      # "vehicle_upgrade", "recalculation"
    description: str
    amount: float = Field(..., ge=0.0)
    currency: str = "INR"
    added_by: Optional[str] = None
    is_paid: bool = False
    created_at: datetime = Field(default_factory=now_utc)


class BookingModification(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    modified_by: Optional[str] = None
    modification_type: str                # "vehicle_adjust", "driver_change", "passengers_add", "recalculation"
    description: str
    previous_value: Optional[str] = None
    new_value: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=now_utc)


class Booking(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    kind: BookingKind = BookingKind.QUOTE
    status: BookingStatus = BookingStatus.SUBMITTED
    user_id: Optional[str] = None
    trip_name: str = ""
    passenger_count: int = Field(1, ge=1)
    itinerary: Optional[Itinerary] = None
    route_totals: Optional[RouteTotals] = None
    selected_vehicles: List[VehicleSelection] = Field(default_factory=list)
    amenity_ids: List[str] = Field(default_factory=list)
    assigned_driver_id: Optional[str] = None
    actual_driver_rate: Optional[float] = None
    pricing: Optional[FareBreakdown] = None
    pricing_updated_at: Optional[datetime] = None
    charges: List[ReservationCharge] = Field(default_factory=list)
    modifications: List[BookingModification] = Field(default_factory=list)

    def current_total(self) -> Optional[float]:
        return self.pricing.total if self.pricing is not None else None
