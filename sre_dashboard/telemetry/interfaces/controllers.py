"""
Telemetry Controllers (API Routes)
==================================

FastAPI routes for the service catalog, logs and metrics.

Controllers are thin - they delegate to application services.
"""

from datetime import datetime
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from sre_dashboard.config import settings
from sre_dashboard.infrastructure.database import get_session
from sre_dashboard.shared.api.dependencies import get_clock
from sre_dashboard.shared.clock import Clock
from sre_dashboard.telemetry.application import (
    BulkDeleteResponse,
    DeleteResponse,
    LogCreateDTO,
    LogResponse,
    LogService,
    MetricCreateDTO,
    MetricResponse,
    MetricSeriesResponse,
    MetricService,
    ServiceCatalogService,
    ServiceCreateDTO,
    ServiceResponse,
    ServiceUpdateDTO,
)
from sre_dashboard.telemetry.infrastructure import (
    SQLAlchemyLogRepository,
    SQLAlchemyMetricRepository,
    SQLAlchemyServiceRepository,
)

services_router = APIRouter(prefix="/services", tags=["Services"])
logs_router = APIRouter(prefix="/logs", tags=["Logs"])
metrics_router = APIRouter(prefix="/metrics", tags=["Metrics"])


# ========== Example payloads for Swagger ==========

SERVICE_CREATE_EXAMPLE = {
    "name": "payment-service",
    "display_name": "Payment Service",
    "description": "Card authorization and capture",
    "status": "healthy",
    "uptime": 99.9,
    "latency_p50": 45,
    "latency_p99": 180,
    "error_rate": 0.2,
}

LOG_CREATE_EXAMPLE = [
    {
        "level": "ERROR",
        "message": "Upstream timeout after 5000ms",
        "service_id": "123e4567-e89b-12d3-a456-426614174000",
        "trace_id": "trace-7f3a",
        "metadata": {"endpoint": "/charge"},
    }
]


# ========== Dependencies ==========

async def get_service_catalog(
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock)
) -> ServiceCatalogService:
    """Get service catalog instance."""
    return ServiceCatalogService(SQLAlchemyServiceRepository(session), clock=clock)


async def get_log_service(
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock)
) -> LogService:
    """Get log service instance."""
    return LogService(SQLAlchemyLogRepository(session), clock=clock)


async def get_metric_service(
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock)
) -> MetricService:
    """Get metric service instance."""
    return MetricService(SQLAlchemyMetricRepository(session), clock=clock)


def _as_list(payload):
    return payload if isinstance(payload, list) else [payload]


# ========== Services ==========

@services_router.get(
    "",
    response_model=List[ServiceResponse],
    summary="List services",
    description="All registered services ordered by name."
)
async def list_services(service: ServiceCatalogService = Depends(get_service_catalog)):
    services = await service.list_services()
    return [ServiceResponse.from_domain(s) for s in services]


@services_router.get(
    "/{service_id}",
    response_model=ServiceResponse,
    summary="Get service",
    responses={404: {"description": "Service not found"}}
)
async def get_service(service_id: str, service: ServiceCatalogService = Depends(get_service_catalog)):
    return ServiceResponse.from_domain(await service.get_service(service_id))


@services_router.post(
    "",
    response_model=ServiceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register service",
    description="""
    Register a monitored service.

    `name` is a unique slug (lowercase letters, digits, hyphens). A duplicate
    name answers 409. `display_name` defaults to `name`.
    """,
    responses={409: {"description": "Service name already registered"}},
    openapi_extra={"requestBody": {"content": {"application/json": {"example": SERVICE_CREATE_EXAMPLE}}}}
)
async def create_service(
    request: ServiceCreateDTO,
    service: ServiceCatalogService = Depends(get_service_catalog)
):
    return ServiceResponse.from_domain(await service.create_service(request))


@services_router.patch(
    "/{service_id}",
    response_model=ServiceResponse,
    summary="Update service",
    description="Partial update; only the fields present in the body are written."
)
async def update_service(
    service_id: str,
    request: ServiceUpdateDTO,
    service: ServiceCatalogService = Depends(get_service_catalog)
):
    return ServiceResponse.from_domain(await service.update_service(service_id, request))


@services_router.delete(
    "/{service_id}",
    response_model=DeleteResponse,
    summary="Delete service",
    description="Alerts, incidents, SLOs, logs and metrics keep their rows with `service_id` cleared."
)
async def delete_service(service_id: str, service: ServiceCatalogService = Depends(get_service_catalog)):
    await service.delete_service(service_id)
    return DeleteResponse()


# ========== Logs ==========

@logs_router.get(
    "",
    response_model=List[LogResponse],
    summary="Query logs",
    description="Newest first. `level` is case-insensitive."
)
async def list_logs(
    service_id: Optional[str] = Query(None, description="Filter by service"),
    level: Optional[str] = Query(None, description="DEBUG, INFO, WARN or ERROR"),
    since: Optional[datetime] = Query(None, description="Only entries at or after this instant"),
    limit: int = Query(settings.list_default_limit, ge=1, le=settings.list_max_limit),
    service: LogService = Depends(get_log_service)
):
    entries = await service.list_logs(limit=limit, service_id=service_id, level=level, since=since)
    return [LogResponse.from_domain(e) for e in entries]


@logs_router.post(
    "",
    response_model=List[LogResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Ingest logs",
    description="Accepts a single entry or an array of entries.",
    openapi_extra={"requestBody": {"content": {"application/json": {"example": LOG_CREATE_EXAMPLE}}}}
)
async def ingest_logs(
    request: Union[List[LogCreateDTO], LogCreateDTO],
    service: LogService = Depends(get_log_service)
):
    entries = await service.ingest(_as_list(request))
    return [LogResponse.from_domain(e) for e in entries]


@logs_router.delete(
    "",
    response_model=BulkDeleteResponse,
    summary="Clear logs"
)
async def clear_logs(service: LogService = Depends(get_log_service)):
    return BulkDeleteResponse(deleted=await service.clear())


# ========== Metrics ==========

@metrics_router.get(
    "",
    response_model=List[MetricResponse],
    summary="Query metric samples",
    description="Newest first, capped by `limit`."
)
async def list_metrics(
    service_id: Optional[str] = Query(None, description="Filter by service"),
    metric_name: Optional[str] = Query(None, description="Filter by metric name"),
    since: Optional[datetime] = Query(None, description="Only samples at or after this instant"),
    limit: int = Query(settings.list_default_limit, ge=1, le=settings.list_max_limit),
    service: MetricService = Depends(get_metric_service)
):
    samples = await service.list_metrics(
        limit=limit, service_id=service_id, metric_name=metric_name, since=since
    )
    return [MetricResponse.from_domain(s) for s in samples]


@metrics_router.get(
    "/series",
    response_model=List[MetricSeriesResponse],
    summary="Metric time series",
    description="Samples from the trailing `hours`, grouped by metric name, oldest point first."
)
async def metric_series(
    hours: int = Query(24, ge=1, le=24 * 30),
    service_id: Optional[str] = Query(None),
    metric_name: Optional[str] = Query(None),
    service: MetricService = Depends(get_metric_service)
):
    series = await service.get_series(hours=hours, service_id=service_id, metric_name=metric_name)
    return [MetricSeriesResponse.from_domain(s) for s in series]


@metrics_router.post(
    "",
    response_model=List[MetricResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Ingest metric samples",
    description="Accepts a single sample or an array of samples. `recorded_at` defaults to now."
)
async def ingest_metrics(
    request: Union[List[MetricCreateDTO], MetricCreateDTO],
    service: MetricService = Depends(get_metric_service)
):
    samples = await service.ingest(_as_list(request))
    return [MetricResponse.from_domain(s) for s in samples]


@metrics_router.delete(
    "",
    response_model=BulkDeleteResponse,
    summary="Clear metric samples"
)
async def clear_metrics(service: MetricService = Depends(get_metric_service)):
    return BulkDeleteResponse(deleted=await service.clear())
