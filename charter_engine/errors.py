# charter_engine/errors.py
# Typed failures raised by the engine and the orchestration layer.
# Every error carries a stable `code` and the HTTP status the app maps it to.

from __future__ import annotations
from typing import Iterable, List, Optional


class CharterEngineError(Exception):
    code: str = "ENGINE_ERROR"
    status_code: int = 500

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class InvalidInput(CharterEngineError, ValueError):
    code = "INVALID_INPUT"
    status_code = 400


class NotFound(CharterEngineError, LookupError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, missing_ids: Iterable[str]):
        self.entity = entity
        self.missing_ids: List[str] = [str(i) for i in missing_ids]
        super().__init__(f"{entity} not found: {', '.join(self.missing_ids)}",
                         code=f"{entity.upper()}_NOT_FOUND")


class NoActivePricingConfig(CharterEngineError):
    code = "NO_ACTIVE_PRICING_CONFIG"
    status_code = 409

    def __init__(self, message: str = "No active pricing config; pricing cannot proceed"):
        super().__init__(message)


class BookingNotModifiable(CharterEngineError):
    code = "BOOKING_NOT_MODIFIABLE"
    status_code = 400


class DriverUnavailable(CharterEngineError):
    code = "DRIVER_NOT_AVAILABLE"
    status_code = 400


class DriverBooked(CharterEngineError):
    code = "DRIVER_BOOKED"
    status_code = 400


class CapacityExceeded(CharterEngineError):
    """Raised by orchestration when passenger demand outgrows the allocation.

    `suggestions` lists the smallest vehicles that would cover the shortfall.
    """
    code = "CAPACITY_EXCEEDED"
    status_code = 400

    def __init__(self, shortfall: int, current_capacity: int, required: int, suggestions=None):
        self.shortfall = shortfall
        self.current_capacity = current_capacity
        self.required = required
        self.suggestions = list(suggestions or [])
        msg = (f"Passenger count exceeds vehicle capacity by {shortfall}. "
               f"Current capacity: {current_capacity}, required: {required}.")
        if self.suggestions:
            best = self.suggestions[0]
            needed = -(-shortfall // best.capacity)
            msg += f" Consider adding {needed} vehicle(s) of capacity {best.capacity} or higher."
        super().__init__(msg)

    def to_dict(self) -> dict:
        out = super().to_dict()
        out["shortfall"] = self.shortfall
        out["suggestions"] = [v.id for v in self.suggestions]
        return out
