"""
Configuration for the charter engine.

AllocationPolicy holds the tunable heuristics used when recommending vehicles.
Settings centralizes the environment-driven knobs of the service (log level,
sweep pacing, driver availability policy, currency, CORS).
"""

import logging
import os
from datetime import timedelta
from typing import List, Optional

from pydantic import BaseModel, Field


class AllocationPolicy(BaseModel):
    """Capacity heuristics for vehicle recommendations. Tunable policy, not protocol."""

    exact_match_ceiling: float = Field(2.5, gt=1.0)      # single vehicle may seat up to n * 2.5
    combination_ceiling: float = Field(1.3, ge=1.0)      # mixed fleet may seat up to n * 1.3
    waste_penalty: float = Field(2.0, ge=0.0)            # weight of oversize relative to mismatch
    max_quantity_per_vehicle: int = Field(3, ge=1)
    max_combinations: int = Field(10, ge=0)
    max_recommendations: int = Field(5, ge=1)

    model_config = {"frozen": True}


DEFAULT_POLICY = AllocationPolicy()


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    return float(raw)


class Settings:
    """Service settings loaded from environment variables."""

    LOG_LEVEL: str = os.getenv("CHARTER_LOG_LEVEL", "INFO").upper()

    # Pause between items of the pending-quote sweep
    SWEEP_DELAY_SECONDS: float = float(os.getenv("CHARTER_SWEEP_DELAY_SECONDS", "0.1"))

    # Unset: only AVAILABLE drivers can be assigned.
    # Set: ONTRIP drivers are accepted for trips starting later than now + N hours.
    SOON_START_HOURS: Optional[float] = _optional_float("CHARTER_SOON_START_HOURS")

    CURRENCY: str = os.getenv("CHARTER_CURRENCY", "INR")

    HOST: str = os.getenv("CHARTER_HOST", "127.0.0.1")
    PORT: int = int(os.getenv("CHARTER_PORT", "8000"))

    CORS_ORIGINS: List[str] = [
        o.strip() for o in os.getenv("CHARTER_CORS_ORIGINS", "*").split(",") if o.strip()
    ]

    @classmethod
    def soon_start_threshold(cls) -> Optional[timedelta]:
        if cls.SOON_START_HOURS is None:
            return None
        return timedelta(hours=cls.SOON_START_HOURS)


settings = Settings()

_LOGGING_CONFIGURED = False


def configure_logging(level: Optional[str] = None) -> None:
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    _LOGGING_CONFIGURED = True
