"""
Reliability Controllers (API Routes)
====================================

FastAPI routes for SLOs, the aggregate health report and release
validation.

Controllers are thin - they delegate to application services.
"""

from functools import lru_cache
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from sre_dashboard.config import settings
from sre_dashboard.infrastructure.database import get_session
from sre_dashboard.reliability.application import (
    ActivityGenerationResponse,
    ActivityGeneratorService,
    HealthErrorResponse,
    HealthResponse,
    HealthService,
    IHealthConfigProvider,
    ReleaseValidationService,
    SLOCreateDTO,
    SLOResponse,
    SLOService,
    SLOUpdateDTO,
    ValidationReportResponse,
    ValidationRunRequest,
)
from sre_dashboard.reliability.infrastructure import (
    HealthConfigManager,
    SQLAlchemyReliabilityReader,
    SQLAlchemySLORepository,
)
from sre_dashboard.shared.api.dependencies import get_clock
from sre_dashboard.shared.clock import Clock
from sre_dashboard.telemetry.application import DeleteResponse
from sre_dashboard.telemetry.infrastructure import (
    SQLAlchemyLogRepository,
    SQLAlchemyMetricRepository,
    SQLAlchemyServiceRepository,
)

slos_router = APIRouter(prefix="/slos", tags=["SLOs"])
health_router = APIRouter(tags=["Health"])
validation_router = APIRouter(prefix="/release-validation", tags=["Release Validation"])


# ========== Example payloads for Swagger ==========

SLO_CREATE_EXAMPLE = {
    "name": "Checkout availability",
    "service_id": "123e4567-e89b-12d3-a456-426614174000",
    "target_availability": 99.9,
    "current_availability": 99.95,
    "latency_target": 300,
    "latency_current": 180,
    "error_budget_total": 0.1,
    "error_budget_consumed": 0.04,
    "period": "30d",
}


# ========== Dependencies ==========

@lru_cache()
def _fallback_config_manager() -> HealthConfigManager:
    manager = HealthConfigManager()
    manager.load(settings.health_config_path)
    return manager


def get_health_config(request: Request) -> IHealthConfigProvider:
    """Config manager created at startup, or a static load of the same file."""
    manager = getattr(request.app.state, "health_config", None)
    if manager is None:
        return _fallback_config_manager()
    return manager


async def get_slo_service(
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock)
) -> SLOService:
    """Get SLO service instance."""
    return SLOService(SQLAlchemySLORepository(session), clock=clock)


async def get_health_service(
    session: AsyncSession = Depends(get_session),
    config: IHealthConfigProvider = Depends(get_health_config),
    clock: Clock = Depends(get_clock)
) -> HealthService:
    """Get health service instance."""
    return HealthService(SQLAlchemyReliabilityReader(session), config, clock=clock)


async def get_validation_service(
    session: AsyncSession = Depends(get_session),
    config: IHealthConfigProvider = Depends(get_health_config),
    clock: Clock = Depends(get_clock)
) -> ReleaseValidationService:
    """Get release validation service instance."""
    return ReleaseValidationService(SQLAlchemyReliabilityReader(session), config, clock=clock)


async def get_activity_generator(
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock)
) -> ActivityGeneratorService:
    """Get test activity generator instance."""
    return ActivityGeneratorService(
        SQLAlchemyServiceRepository(session),
        SQLAlchemyMetricRepository(session),
        SQLAlchemyLogRepository(session),
        clock=clock,
    )


# ========== SLOs ==========

@slos_router.get(
    "",
    response_model=List[SLOResponse],
    summary="List SLOs",
    description="SLOs ordered by creation time, newest first."
)
async def list_slos(
    service_id: Optional[str] = Query(None),
    breaching: Optional[bool] = Query(None, description="Only breaching (true) or healthy (false) SLOs"),
    service: SLOService = Depends(get_slo_service)
):
    slos = await service.list_slos(service_id=service_id, breaching=breaching)
    return [SLOResponse.from_domain(s) for s in slos]


@slos_router.post(
    "",
    response_model=SLOResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Define SLO",
    description="""
    Define a service level objective.

    `is_breaching` and `is_budget_exhausted` are computed from the submitted
    values and cannot be sent.
    """,
    openapi_extra={"requestBody": {"content": {"application/json": {"example": SLO_CREATE_EXAMPLE}}}}
)
async def create_slo(request: SLOCreateDTO, service: SLOService = Depends(get_slo_service)):
    return SLOResponse.from_domain(await service.create_slo(request))


@slos_router.patch(
    "/{slo_id}",
    response_model=SLOResponse,
    summary="Update SLO",
    description="Partial update; the derived flags are recomputed from the stored values overlaid with the update."
)
async def update_slo(
    slo_id: str,
    request: SLOUpdateDTO,
    service: SLOService = Depends(get_slo_service)
):
    return SLOResponse.from_domain(await service.update_slo(slo_id, request))


@slos_router.delete(
    "/{slo_id}",
    response_model=DeleteResponse,
    summary="Delete SLO"
)
async def delete_slo(slo_id: str, service: SLOService = Depends(get_slo_service)):
    await service.delete_slo(slo_id)
    return DeleteResponse()


# ========== Health ==========

@health_router.get(
    "/health",
    response_model=HealthResponse,
    summary="Aggregate health",
    description="""
    Weighted health score (0-100) over services, active alerts, open
    incidents and SLOs, with the counts it was computed from.
    """,
    responses={500: {"model": HealthErrorResponse, "description": "Statistics could not be read"}}
)
async def health(service: HealthService = Depends(get_health_service)):
    report = await service.evaluate()
    if report.failed:
        body = HealthErrorResponse(error=report.error, timestamp=report.timestamp)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(mode="json"),
        )
    return HealthResponse.from_domain(report)


# ========== Release Validation ==========

@validation_router.post(
    "/run",
    response_model=ValidationReportResponse,
    summary="Run release validation",
    description="""
    Run the six pre-release checks (services, critical alerts, open
    incidents, SLOs, error rates, error logs).

    The release passes when no check failed; warnings do not block.
    Read-only.
    """
)
async def run_validation(
    request: Optional[ValidationRunRequest] = Body(default=None),
    service: ReleaseValidationService = Depends(get_validation_service)
):
    environment = (request or ValidationRunRequest()).environment
    report = await service.run(environment)
    return ValidationReportResponse.from_domain(report)


@validation_router.post(
    "/test-activity",
    response_model=ActivityGenerationResponse,
    summary="Generate test activity",
    description="Seed default services (when none exist), metric samples and logs."
)
async def generate_test_activity(service: ActivityGeneratorService = Depends(get_activity_generator)):
    counts = await service.generate()
    return ActivityGenerationResponse(generated=counts)
