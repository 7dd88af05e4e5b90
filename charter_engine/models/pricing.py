""" Pricing models.

PricingConfigSnapshot is the rate table captured when a price is computed. It is embedded verbatim into every
FareBreakdown so that later config changes never alter an already-quoted price.

FareBreakdown is the itemized, additive decomposition of a trip's price. It is created once per pricing event and
never mutated; a new breakdown supersedes the old one and PriceAdjustment records the delta between them. """

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PricingConfigSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    fuel_price: float = Field(..., ge=0.0)                      # price per fuel unit
    average_driver_per_hour_rate: float = Field(..., ge=0.0)    # fleet average, used before a driver is known
    night_charge_per_night: float = Field(0.0, ge=0.0)
    staying_charge_per_day: float = Field(0.0, ge=0.0)
    tax_percentage: float = Field(0.0, ge=0.0)
    config_id: Optional[str] = None
    captured_at: Optional[datetime] = None


class FareBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_fare: float
    distance_fare: float
    driver_charge: float
    night_charge: float
    staying_charge: float
    amenities_total: float
    subtotal: float
    tax: float
    total: float
    driver_rate_used: float
    config_snapshot: PricingConfigSnapshot

    @property
    def fuel_maintenance(self) -> float:
        # Same figure as distance_fare; it is not a separate line of the subtotal.
        return self.distance_fare


class AdjustmentKind(str, Enum):
    CHARGE = "charge"
    REFUND = "refund"
    NONE = "none"


class PriceAdjustment(BaseModel):
    model_config = ConfigDict(frozen=True)

    previous_total: float
    new_total: float
    delta: float
    kind: AdjustmentKind
    amount: float = Field(..., ge=0.0)    # |delta| in the currency's minor unit precision
