# charter_engine/models/allocation.py
from typing import List
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from .vehicle import Vehicle


class AllocationLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    vehicle: Vehicle
    quantity: int = Field(1, ge=1)

    @property
    def capacity(self) -> int:
        return self.vehicle.capacity * self.quantity


class AllocationOption(BaseModel):
    """One candidate set of vehicles for a passenger count.

    estimated_price is a base-fare-only estimate, never the final fare.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    lines: List[AllocationLine]
    total_capacity: int
    estimated_price: float
    is_exact_match: bool = False

    @property
    def signature(self) -> str:
        return ",".join(sorted(f"{ln.vehicle.id}:{ln.quantity}" for ln in self.lines))
