# Defines the Driver model, the booking window a reservation occupies, and the assignment decision.

from datetime import datetime                          # Window bounds are timestamps
from enum import Enum
from typing import Optional                            # Optional fields
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .itinerary import check_same_clock


class DriverStatus(str, Enum):                         # Operational status of a driver
    AVAILABLE = "available"
    ON_TRIP = "ontrip"
    OFFLINE = "offline"
    SUSPENDED = "suspended"
    BLOCKED = "blocked"


HARD_BLOCKER_STATUSES = frozenset({DriverStatus.OFFLINE, DriverStatus.SUSPENDED, DriverStatus.BLOCKED})


class Driver(BaseModel):                               # Driver data model
    model_config = ConfigDict(frozen=True)

    id: str                                            # Unique driver identifier
    name: str = ""                                     # Display name
    hourly_rate: float = Field(0.0, ge=0.0)            # Driver's own per-hour rate, replaces the fleet average once assigned
    status: DriverStatus = DriverStatus.AVAILABLE      # Operational status
    is_onboarded: bool = True                          # Drivers that never finished onboarding cannot be assigned

    @model_validator(mode="before")                    # Accept {"status_available": bool} payloads
    @classmethod
    def _coerce_status_available(cls, data):
        if isinstance(data, dict) and "status_available" in data and "status" not in data:
            data = dict(data)
            flag = data.pop("status_available")
            data["status"] = DriverStatus.AVAILABLE if flag else DriverStatus.OFFLINE
        return data

    @property
    def status_available(self) -> bool:
        return self.status == DriverStatus.AVAILABLE


class BookingWindow(BaseModel):                        # Inclusive time span a driver is occupied by a booking
    model_config = ConfigDict(frozen=True)

    driver_id: Optional[str] = None
    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_order(self):
        check_same_clock((self.start, self.end), "window bounds")
        if self.end < self.start:
            raise ValueError("window end precedes start")
        return self

    def overlaps(self, other: "BookingWindow") -> bool:
        # Inclusive on both ends: back-to-back trips touching at one instant conflict.
        return self.start <= other.end and other.start <= self.end


REASON_UNAVAILABLE = "unavailable"
REASON_NOT_ONBOARDED = "not_onboarded"
REASON_BOOKED = "booked"


class AssignmentDecision(BaseModel):                   # Ephemeral outcome of an assignability check
    model_config = ConfigDict(frozen=True)

    can_assign: bool
    reason: Optional[str] = None
