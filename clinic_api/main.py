from __future__ import annotations

import datetime as dt
import logging
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from clinic_api.core.config import settings
from clinic_api.core.errors import ClinicError, NotFoundError, ValidationError
from clinic_api.db.session import StorageGateway, create_gateway, get_gateway
from clinic_api.logging_utils import bind_request_id, configure_logging, reset_request_id
from clinic_api.services import catalog
from clinic_api.services.appointments import AppointmentBooking
from clinic_api.services.booking import BookingDefaults, BookingOrchestrator
from clinic_api.services.patients import PatientProfile

configure_logging(settings.log_level)

logger = logging.getLogger(__name__)

REQUEST_COUNTER = Counter(
    "clinic_api_requests_total",
    "Total number of processed HTTP requests.",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "clinic_api_request_duration_seconds",
    "HTTP request latency in seconds.",
    ["method", "path"],
)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the logging context and echo it back."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        token = bind_request_id(request_id)

        try:
            response = await call_next(request)
        finally:
            reset_request_id(token)

        response.headers["X-Request-ID"] = request_id
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Emit structured access logs and feed metrics."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        start_time = time.perf_counter()
        path = request.scope.get("root_path", "") + request.scope.get("path", request.url.path)
        method = request.method

        try:
            response = await call_next(request)
        except Exception:
            elapsed = time.perf_counter() - start_time
            REQUEST_COUNTER.labels(method=method, path=path, status="500").inc()
            REQUEST_LATENCY.labels(method=method, path=path).observe(elapsed)
            logger.exception(
                "request failed",
                extra={"method": method, "path": path, "duration_ms": round(elapsed * 1000, 2)},
            )
            raise

        elapsed = time.perf_counter() - start_time
        REQUEST_COUNTER.labels(method=method, path=path, status=str(response.status_code)).inc()
        REQUEST_LATENCY.labels(method=method, path=path).observe(elapsed)

        logger.info(
            "request completed",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": round(elapsed * 1000, 2),
            },
        )
        return response


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    owned = app.state.gateway is None
    if owned:
        app.state.gateway = create_gateway(
            settings.sqlalchemy_url,
            pool_size=settings.db_pool_size,
            pool_timeout=settings.db_pool_timeout,
        )
    try:
        yield
    finally:
        if owned:
            app.state.gateway.dispose()
            app.state.gateway = None


app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)
app.state.gateway = None

app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(AccessLogMiddleware)


@app.exception_handler(ClinicError)
async def clinic_error_handler(request: Request, exc: ClinicError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request error",
            exc_info=exc,
            extra={"code": exc.code, "path": request.url.path},
        )
    return JSONResponse(status_code=exc.status_code, content=exc.as_response())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = sorted({str(error["loc"][-1]) for error in exc.errors() if error.get("loc")})
    error = ValidationError(fields)
    return JSONResponse(status_code=error.status_code, content=error.as_response())


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("storage error", exc_info=exc, extra={"path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ClinicError().as_response(),
    )


class PatientIn(BaseModel):
    names: str
    last_names: str
    phone: str
    address: str | None = None
    email: str | None = None

    def to_profile(self) -> PatientProfile:
        return PatientProfile(
            names=self.names,
            last_names=self.last_names,
            phone=self.phone,
            address=self.address,
            email=self.email,
        )


class NewPatientAppointmentIn(BaseModel):
    service_id: int
    price: Decimal
    state: str
    date: dt.date
    hour: int
    minute: int | None = None
    payment_method: str | None = None
    creation_date: dt.date | None = None

    def to_booking(self, patient_id: int | None = None) -> AppointmentBooking:
        return AppointmentBooking(
            service_id=self.service_id,
            price=self.price,
            state=self.state,
            date=self.date,
            hour=self.hour,
            minute=self.minute,
            patient_id=patient_id,
            payment_method=self.payment_method,
            creation_date=self.creation_date,
        )


class AppointmentCreate(NewPatientAppointmentIn):
    patient_id: int


class AppointmentWithPatientCreate(BaseModel):
    user: PatientIn
    appointment: NewPatientAppointmentIn


class CreatedOut(BaseModel):
    id: int


def get_orchestrator(gateway: StorageGateway = Depends(get_gateway)) -> BookingOrchestrator:
    """Build the booking orchestrator over the application's gateway."""

    return BookingOrchestrator(gateway, BookingDefaults.from_settings(settings))


@app.get("/metrics")
def metrics() -> Response:
    """Expose Prometheus metrics for scraping."""

    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/health")
def health() -> dict[str, str]:
    """Health check endpoint used by infrastructure probes."""

    return {"status": "ok"}


@app.get("/service/getAll", response_model=None)
def list_services(gateway: StorageGateway = Depends(get_gateway)) -> list[dict[str, Any]]:
    return catalog.list_services(gateway)


@app.get("/service/get/{service_id}", response_model=None)
def get_service(
    service_id: int, gateway: StorageGateway = Depends(get_gateway)
) -> dict[str, Any]:
    service = catalog.get_service(gateway, service_id)
    if service is None:
        raise NotFoundError("Service not found")
    return service


@app.get("/package/getAll", response_model=None)
def list_packages(gateway: StorageGateway = Depends(get_gateway)) -> list[dict[str, Any]]:
    return catalog.list_packages(gateway)


@app.get("/package/getAllByServiceId/{service_id}", response_model=None)
def list_packages_by_service(
    service_id: int, gateway: StorageGateway = Depends(get_gateway)
) -> list[dict[str, Any]]:
    packages = catalog.list_packages_by_service(gateway, service_id)
    if not packages:
        raise NotFoundError("Package not found")
    return packages


@app.get("/appointment/getAllWithNames", response_model=None)
def list_appointments_with_names(
    gateway: StorageGateway = Depends(get_gateway),
) -> list[dict[str, Any]]:
    return catalog.list_appointments_with_names(gateway)


@app.get("/appointment/get/{appointment_id}", response_model=None)
def get_appointment(
    appointment_id: int, gateway: StorageGateway = Depends(get_gateway)
) -> dict[str, Any]:
    appointment = catalog.get_appointment(gateway, appointment_id)
    if appointment is None:
        raise NotFoundError("Appointment not found")
    return appointment


@app.get("/user/getAllPatients", response_model=None)
def list_patients(gateway: StorageGateway = Depends(get_gateway)) -> list[dict[str, Any]]:
    return catalog.list_patients(gateway)


@app.post("/appointment/create", response_model=CreatedOut)
def create_appointment(
    payload: AppointmentCreate,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
) -> CreatedOut:
    """Book an appointment for an already registered patient."""

    appointment_id = orchestrator.book_for_existing_patient(
        payload.to_booking(payload.patient_id)
    )
    return CreatedOut(id=appointment_id)


@app.post("/appointment/createWithPatient", response_model=CreatedOut)
def create_appointment_with_patient(
    payload: AppointmentWithPatientCreate,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
) -> CreatedOut:
    """Register a new patient and book their appointment in one transaction."""

    appointment_id = orchestrator.book_with_new_patient(
        payload.user.to_profile(), payload.appointment.to_booking()
    )
    return CreatedOut(id=appointment_id)


def run() -> None:  # pragma: no cover - process entrypoint
    import uvicorn

    uvicorn.run("clinic_api.main:app", host="0.0.0.0", port=settings.port, log_config=None)
