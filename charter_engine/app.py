from datetime import timedelta
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .allocation import VehicleAllocator
from .config import configure_logging, settings
from .conflicts import DriverConflictResolver, window_of
from .errors import CharterEngineError
from .models import (
    RecommendationRequest, RecommendationResponse,
    FareRequest, FareResponse,
    AssignabilityRequest, AssignabilityResponse,
)
from .pricing import FareCalculator
from .repositories import WindowListBookingStore

configure_logging()

app = FastAPI(title="Charter Pricing & Allocation Engine", version="1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS, allow_methods=["*"], allow_headers=["*"],
)

allocator = VehicleAllocator()
calculator = FareCalculator()


@app.exception_handler(CharterEngineError)
def engine_error_handler(request: Request, exc: CharterEngineError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"status": "error", **exc.to_dict()})

@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "healthy"}

@app.post("/recommendations", response_model=RecommendationResponse)
def endpoint_recommendations(req: RecommendationRequest) -> Dict[str, Any]:
    options = allocator.get_recommendations(req.passenger_count, req.fleet)
    return {"status": "ok", "options": options}

@app.post("/fare", response_model=FareResponse)
def endpoint_fare(req: FareRequest) -> Dict[str, Any]:
    breakdown = calculator.calculate(
        req.itinerary, req.allocation, req.amenities, req.route_totals, req.pricing_config, req.actual_driver_rate,
    )
    return {"status": "ok", "breakdown": breakdown}

@app.post("/assignability", response_model=AssignabilityResponse)
def endpoint_assignability(req: AssignabilityRequest) -> Dict[str, Any]:
    if req.soon_start_hours is not None and req.soon_start_hours < 0:
        raise HTTPException(status_code=400, detail="soon_start_hours must be non-negative")
    threshold = timedelta(hours=req.soon_start_hours) if req.soon_start_hours is not None \
        else settings.soon_start_threshold()
    resolver = DriverConflictResolver(WindowListBookingStore(req.booked_windows), threshold)
    decision = resolver.can_assign(req.driver, req.itinerary, req.now)
    return {"status": "ok", "window": window_of(req.itinerary), "decision": decision}


def main() -> None:
    import uvicorn

    uvicorn.run("charter_engine.app:app", host=settings.HOST, port=settings.PORT,
                log_level=settings.LOG_LEVEL.lower())
