from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, List, Optional

from fastapi import Body, Depends, FastAPI, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from common.config import get_settings
from common.errors import register_exception_handlers
from common.logging_middleware import add_audit_middleware
from common.rate_limit import apply_rate_limiter, limiter
from common.schemas import Availability, Booking, BookingStatus, Resource, SeedResult, UtilizationRecord

from .engine import ReservationEngine

settings = get_settings()


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    # an engine attached beforehand (tests, embedding) is left to its owner
    owned = getattr(fastapi_app.state, "engine", None) is None
    if owned:
        fastapi_app.state.engine = ReservationEngine.open(settings)
    try:
        yield
    finally:
        if owned:
            fastapi_app.state.engine.close()
            fastapi_app.state.engine = None


def create_app() -> FastAPI:
    fastapi_app = FastAPI(title="Reservation Service", version="1.0.0", lifespan=lifespan)
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    apply_rate_limiter(fastapi_app)
    add_audit_middleware(fastapi_app, "reservations")
    register_exception_handlers(fastapi_app)
    Instrumentator().instrument(fastapi_app).expose(fastapi_app)
    return fastapi_app


app = create_app()


def get_engine(request: Request) -> ReservationEngine:
    return request.app.state.engine


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok", "service": "reservations"}


@app.get("/resources", response_model=List[Resource], tags=["resources"])
@limiter.limit("60/minute")
def list_resources(
    request: Request,
    type: Optional[str] = None,
    resource_status: Optional[str] = Query(default=None, alias="status"),
    engine: ReservationEngine = Depends(get_engine),
) -> List[Resource]:
    return engine.registry.list(type=type, status=resource_status)


@app.get("/resources/{resource_id}", response_model=Resource, tags=["resources"])
@limiter.limit("60/minute")
def get_resource(request: Request, resource_id: str, engine: ReservationEngine = Depends(get_engine)) -> Resource:
    return engine.registry.get(resource_id)


@app.post("/resources", response_model=Resource, status_code=status.HTTP_201_CREATED, tags=["resources"])
@limiter.limit("20/minute")
def create_resource(
    request: Request,
    payload: Any = Body(...),
    engine: ReservationEngine = Depends(get_engine),
) -> Resource:
    return engine.registry.create(payload)


@app.put("/resources/{resource_id}", response_model=Resource, tags=["resources"])
@limiter.limit("20/minute")
def update_resource(
    request: Request,
    resource_id: str,
    payload: Any = Body(...),
    engine: ReservationEngine = Depends(get_engine),
) -> Resource:
    return engine.registry.update(resource_id, payload)


@app.delete("/resources/{resource_id}", tags=["resources"])
@limiter.limit("20/minute")
def delete_resource(
    request: Request,
    resource_id: str,
    engine: ReservationEngine = Depends(get_engine),
) -> dict[str, Any]:
    removed = engine.registry.delete(resource_id)
    return {"detail": "Resource deleted successfully", "deletedBookings": removed}


@app.get("/bookings", response_model=List[Booking], tags=["bookings"])
@limiter.limit("60/minute")
def list_bookings(
    request: Request,
    resource_id: Optional[str] = Query(default=None, alias="resourceId"),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    booking_status: Optional[BookingStatus] = Query(default=None, alias="status"),
    engine: ReservationEngine = Depends(get_engine),
) -> List[Booking]:
    return engine.scheduler.list(resource_id=resource_id, user_id=user_id, status=booking_status)


@app.get("/bookings/availability", response_model=Availability, tags=["bookings"])
@limiter.limit("60/minute")
def check_availability(
    request: Request,
    resource_id: str = Query(..., alias="resourceId"),
    start_time: datetime = Query(..., alias="startTime"),
    end_time: datetime = Query(..., alias="endTime"),
    engine: ReservationEngine = Depends(get_engine),
) -> Availability:
    return engine.scheduler.check_availability(resource_id, start_time, end_time)


@app.get("/bookings/{booking_id}", response_model=Booking, tags=["bookings"])
@limiter.limit("60/minute")
def get_booking(request: Request, booking_id: str, engine: ReservationEngine = Depends(get_engine)) -> Booking:
    return engine.scheduler.get(booking_id)


@app.post("/bookings", response_model=Booking, status_code=status.HTTP_201_CREATED, tags=["bookings"])
@limiter.limit("20/minute")
def create_booking(
    request: Request,
    payload: Any = Body(...),
    engine: ReservationEngine = Depends(get_engine),
) -> Booking:
    return engine.scheduler.create(payload)


@app.delete("/bookings/{booking_id}", response_model=Booking, tags=["bookings"])
@limiter.limit("20/minute")
def cancel_booking(request: Request, booking_id: str, engine: ReservationEngine = Depends(get_engine)) -> Booking:
    return engine.scheduler.cancel(booking_id)


@app.get("/analytics/utilization", response_model=List[UtilizationRecord], tags=["analytics"])
@limiter.limit("30/minute")
def utilization(request: Request, engine: ReservationEngine = Depends(get_engine)) -> List[UtilizationRecord]:
    return engine.analyzer.compute()


@app.post("/initialize", response_model=SeedResult, tags=["admin"])
@limiter.limit("5/minute")
def initialize(request: Request, engine: ReservationEngine = Depends(get_engine)) -> SeedResult:
    return engine.seeder.seed()
