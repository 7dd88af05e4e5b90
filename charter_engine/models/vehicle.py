# Defines the Vehicle and Amenity reference models used for allocation and pricing.

from pydantic import BaseModel, ConfigDict, Field, field_validator   # Pydantic BaseModel, config and validators


class Vehicle(BaseModel):                             # Fleet vehicle type (reference data, immutable)
    model_config = ConfigDict(frozen=True)

    id: str                                           # Unique vehicle identifier
    name: str                                         # Display name; also used to collapse near-duplicate records
    capacity: int = Field(..., gt=0)                  # Passenger seats
    base_fare: float = Field(0.0, ge=0.0)             # Flat fare per vehicle unit
    fuel_consumption: float = Field(0.0, ge=0.0)      # Fuel units per km
    is_available: bool = True                         # Whether the vehicle may be offered at all

    @field_validator("id", mode="before")             # Accept numeric ids from JSON payloads
    @classmethod
    def _coerce_id(cls, v):
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @property
    def name_key(self) -> str:                        # Case-insensitive, trimmed name used for de-duplication
        return self.name.strip().casefold()


class Amenity(BaseModel):                             # Paid extra attached to a booking (wifi, snacks, ...)
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    price: float = Field(0.0, ge=0.0)
