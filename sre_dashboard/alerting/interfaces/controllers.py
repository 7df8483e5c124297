"""
Alerting Controllers (API Routes)
=================================

FastAPI routes for alerts, incidents and the incident timeline.

Controllers are thin - they delegate to application services.
"""

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from sre_dashboard.alerting.application import (
    AlertCreateDTO,
    AlertResponse,
    AlertService,
    AlertSilenceDTO,
    AlertStatsResponse,
    AlertUpdateDTO,
    IncidentCreateDTO,
    IncidentEventCreateDTO,
    IncidentEventResponse,
    IncidentResponse,
    IncidentService,
    IncidentUpdateDTO,
    INotifier,
)
from sre_dashboard.alerting.infrastructure import (
    SQLAlchemyAlertRepository,
    SQLAlchemyIncidentEventRepository,
    SQLAlchemyIncidentRepository,
)
from sre_dashboard.config import AlertSeverity, IncidentSeverity, IncidentStatus
from sre_dashboard.infrastructure.database import get_session
from sre_dashboard.shared.api.dependencies import get_clock
from sre_dashboard.shared.clock import Clock
from sre_dashboard.telemetry.application import DeleteResponse

alerts_router = APIRouter(prefix="/alerts", tags=["Alerts"])
incidents_router = APIRouter(prefix="/incidents", tags=["Incidents"])


# ========== Example payloads for Swagger ==========

ALERT_CREATE_EXAMPLE = {
    "name": "High p99 latency",
    "severity": "CRITICAL",
    "service_id": "123e4567-e89b-12d3-a456-426614174000",
    "message": "p99 latency above 500ms for 5 minutes",
    "metric_name": "latency_p99",
    "threshold": 500,
    "current_value": 742,
}

INCIDENT_CREATE_EXAMPLE = {
    "title": "Checkout failures in eu-west-1",
    "description": "Payment authorizations timing out",
    "severity": "HIGH",
    "service_id": "123e4567-e89b-12d3-a456-426614174000",
    "triggered_by": "alert:high-p99-latency",
}


# ========== Dependencies ==========

def get_notifier(request: Request) -> Optional[INotifier]:
    """Notifier created at startup; None when the app runs without lifespan."""
    return getattr(request.app.state, "notifier", None)


async def get_alert_service(
    session: AsyncSession = Depends(get_session),
    notifier: Optional[INotifier] = Depends(get_notifier),
    clock: Clock = Depends(get_clock)
) -> AlertService:
    """Get alert service instance."""
    return AlertService(SQLAlchemyAlertRepository(session), notifier=notifier, clock=clock)


async def get_incident_service(
    session: AsyncSession = Depends(get_session),
    notifier: Optional[INotifier] = Depends(get_notifier),
    clock: Clock = Depends(get_clock)
) -> IncidentService:
    """Get incident service instance."""
    return IncidentService(
        SQLAlchemyIncidentRepository(session),
        SQLAlchemyIncidentEventRepository(session),
        notifier=notifier,
        clock=clock,
    )


# ========== Alerts ==========

@alerts_router.get(
    "",
    response_model=List[AlertResponse],
    summary="List alerts",
    description="""
    Alerts ordered by `fired_at`, newest first.

    `is_silenced` and `is_effectively_active` are evaluated against the
    current time on every read.
    """
)
async def list_alerts(
    severity: Optional[AlertSeverity] = Query(None),
    is_active: Optional[bool] = Query(None),
    service_id: Optional[str] = Query(None),
    service: AlertService = Depends(get_alert_service)
):
    alerts = await service.list_alerts(severity=severity, is_active=is_active, service_id=service_id)
    now = service.now()
    return [AlertResponse.from_domain(a, now) for a in alerts]


@alerts_router.get(
    "/stats",
    response_model=AlertStatsResponse,
    summary="Alert counters",
    description="`by_severity` counts effectively active alerts only."
)
async def alert_stats(service: AlertService = Depends(get_alert_service)):
    return await service.get_stats()


@alerts_router.post(
    "",
    response_model=AlertResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Fire alert",
    description="`title` defaults to `name`; one of them is required. CRITICAL alerts are posted to Slack.",
    openapi_extra={"requestBody": {"content": {"application/json": {"example": ALERT_CREATE_EXAMPLE}}}}
)
async def create_alert(request: AlertCreateDTO, service: AlertService = Depends(get_alert_service)):
    alert = await service.create_alert(request)
    return AlertResponse.from_domain(alert, service.now())


@alerts_router.patch(
    "/{alert_id}",
    response_model=AlertResponse,
    summary="Update alert",
    description="Descriptive fields only; use the acknowledge, silence and resolve actions for lifecycle changes."
)
async def update_alert(
    alert_id: str,
    request: AlertUpdateDTO,
    service: AlertService = Depends(get_alert_service)
):
    alert = await service.update_alert(alert_id, request)
    return AlertResponse.from_domain(alert, service.now())


@alerts_router.post(
    "/{alert_id}/acknowledge",
    response_model=AlertResponse,
    summary="Acknowledge alert",
    responses={409: {"description": "Alert already resolved"}}
)
async def acknowledge_alert(alert_id: str, service: AlertService = Depends(get_alert_service)):
    alert = await service.acknowledge(alert_id)
    return AlertResponse.from_domain(alert, service.now())


@alerts_router.post(
    "/{alert_id}/silence",
    response_model=AlertResponse,
    summary="Silence alert",
    description="Suppress the alert for `duration_minutes` (default 60). A new silence replaces the old deadline.",
    responses={409: {"description": "Alert already resolved"}}
)
async def silence_alert(
    alert_id: str,
    request: Optional[AlertSilenceDTO] = Body(default=None),
    service: AlertService = Depends(get_alert_service)
):
    duration = (request or AlertSilenceDTO()).duration_minutes
    alert = await service.silence(alert_id, duration)
    return AlertResponse.from_domain(alert, service.now())


@alerts_router.post(
    "/{alert_id}/resolve",
    response_model=AlertResponse,
    summary="Resolve alert"
)
async def resolve_alert(alert_id: str, service: AlertService = Depends(get_alert_service)):
    alert = await service.resolve(alert_id)
    return AlertResponse.from_domain(alert, service.now())


@alerts_router.delete(
    "/{alert_id}",
    response_model=DeleteResponse,
    summary="Delete alert"
)
async def delete_alert(alert_id: str, service: AlertService = Depends(get_alert_service)):
    await service.delete_alert(alert_id)
    return DeleteResponse()


# ========== Incidents ==========

@incidents_router.get(
    "",
    response_model=List[IncidentResponse],
    summary="List incidents",
    description="Incidents ordered by `started_at`, newest first."
)
async def list_incidents(
    status_filter: Optional[IncidentStatus] = Query(None, alias="status"),
    severity: Optional[IncidentSeverity] = Query(None),
    service_id: Optional[str] = Query(None),
    service: IncidentService = Depends(get_incident_service)
):
    incidents = await service.list_incidents(status=status_filter, severity=severity, service_id=service_id)
    return [IncidentResponse.from_domain(i) for i in incidents]


@incidents_router.post(
    "",
    response_model=IncidentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open incident",
    description="""
    Open an incident with status `OPEN`.

    The incident number (`INC-YYYYMMDD-NNN`) is assigned from a per-day
    sequence, and a `triggered` event is written in the same transaction.
    """,
    openapi_extra={"requestBody": {"content": {"application/json": {"example": INCIDENT_CREATE_EXAMPLE}}}}
)
async def create_incident(request: IncidentCreateDTO, service: IncidentService = Depends(get_incident_service)):
    return IncidentResponse.from_domain(await service.create_incident(request))


@incidents_router.patch(
    "/{incident_id}",
    response_model=IncidentResponse,
    summary="Update incident",
    description="Descriptive fields only; status moves through the acknowledge and resolve actions."
)
async def update_incident(
    incident_id: str,
    request: IncidentUpdateDTO,
    service: IncidentService = Depends(get_incident_service)
):
    return IncidentResponse.from_domain(await service.update_incident(incident_id, request))


@incidents_router.post(
    "/{incident_id}/acknowledge",
    response_model=IncidentResponse,
    summary="Acknowledge incident",
    description="OPEN to ONGOING. Repeating it is a no-op.",
    responses={409: {"description": "Incident already resolved"}}
)
async def acknowledge_incident(incident_id: str, service: IncidentService = Depends(get_incident_service)):
    return IncidentResponse.from_domain(await service.acknowledge(incident_id))


@incidents_router.post(
    "/{incident_id}/resolve",
    response_model=IncidentResponse,
    summary="Resolve incident",
    description="OPEN or ONGOING to RESOLVED. Repeating it is a no-op."
)
async def resolve_incident(incident_id: str, service: IncidentService = Depends(get_incident_service)):
    return IncidentResponse.from_domain(await service.resolve(incident_id))


@incidents_router.delete(
    "/{incident_id}",
    response_model=DeleteResponse,
    summary="Delete incident",
    description="Removes the incident together with its timeline."
)
async def delete_incident(incident_id: str, service: IncidentService = Depends(get_incident_service)):
    await service.delete_incident(incident_id)
    return DeleteResponse()


@incidents_router.get(
    "/{incident_id}/events",
    response_model=List[IncidentEventResponse],
    summary="Incident timeline",
    description="Events oldest first."
)
async def list_incident_events(incident_id: str, service: IncidentService = Depends(get_incident_service)):
    events = await service.list_events(incident_id)
    return [IncidentEventResponse.from_domain(e) for e in events]


@incidents_router.post(
    "/{incident_id}/events",
    response_model=IncidentEventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Append incident event",
    description="Only `comment` and `escalated` events can be added by hand."
)
async def add_incident_event(
    incident_id: str,
    request: IncidentEventCreateDTO,
    service: IncidentService = Depends(get_incident_service)
):
    return IncidentEventResponse.from_domain(await service.add_event(incident_id, request))
