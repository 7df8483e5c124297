"""
Alerting Application Services
=============================

Application services orchestrate the alert and incident lifecycles and
coordinate with repositories and the notifier.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (repositories), not concrete implementations
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from sre_dashboard.alerting.application.dto import (
    AlertCreateDTO,
    AlertStatsResponse,
    AlertUpdateDTO,
    IncidentCreateDTO,
    IncidentEventCreateDTO,
    IncidentUpdateDTO,
)
from sre_dashboard.alerting.domain import (
    Alert,
    Incident,
    IncidentEvent,
    IncidentNumberGenerator,
    IncidentStateMachine,
)
from sre_dashboard.config import AlertSeverity, IncidentStatus
from sre_dashboard.core import ResourceNotFoundException
from sre_dashboard.shared.clock import Clock, utc_now
from sre_dashboard.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class IAlertRepository(ABC):
    """Interface for alert data access."""

    @abstractmethod
    async def get_by_id(self, alert_id: str) -> Optional[Alert]:
        """Get alert by ID."""

    @abstractmethod
    async def list(self, filters: dict) -> List[Alert]:
        """List alerts with filters, most recently fired first."""

    @abstractmethod
    async def create(self, alert: Alert) -> Alert:
        """Create new alert."""

    @abstractmethod
    async def update(self, alert_id: str, changes: Dict[str, Any]) -> Optional[Alert]:
        """Apply changes; None when the alert does not exist."""

    @abstractmethod
    async def save(self, alert: Alert) -> Alert:
        """Persist the lifecycle state of an existing alert."""

    @abstractmethod
    async def delete(self, alert_id: str) -> bool:
        """Delete alert; False when nothing was deleted."""


class IIncidentRepository(ABC):
    """Interface for incident data access."""

    @abstractmethod
    async def get_by_id(self, incident_id: str) -> Optional[Incident]:
        """Get incident by ID."""

    @abstractmethod
    async def list(self, filters: dict) -> List[Incident]:
        """List incidents with filters, most recently started first."""

    @abstractmethod
    async def numbers_with_prefix(self, prefix: str) -> List[str]:
        """Incident numbers starting with ``prefix``."""

    @abstractmethod
    async def create(self, incident: Incident) -> Incident:
        """Create new incident; duplicate numbers raise ConflictException."""

    @abstractmethod
    async def update(self, incident_id: str, changes: Dict[str, Any]) -> Optional[Incident]:
        """Apply changes; None when the incident does not exist."""

    @abstractmethod
    async def save(self, incident: Incident) -> Incident:
        """Persist the lifecycle state of an existing incident."""

    @abstractmethod
    async def delete(self, incident_id: str) -> bool:
        """Delete incident and its timeline; False when nothing was deleted."""


class IIncidentEventRepository(ABC):
    """Interface for incident timeline data access."""

    @abstractmethod
    async def add(self, event: IncidentEvent) -> IncidentEvent:
        """Append an event."""

    @abstractmethod
    async def list_for_incident(self, incident_id: str) -> List[IncidentEvent]:
        """Events of one incident, oldest first."""


class INotifier(ABC):
    """Interface for best-effort outbound notifications."""

    @abstractmethod
    async def alert_fired(self, alert: Alert) -> bool:
        """Announce a newly fired alert."""

    @abstractmethod
    async def incident_changed(self, incident: Incident, action: str) -> bool:
        """Announce an incident being opened or resolved."""


# ========== Application Services ==========

class AlertService:
    """
    Alert lifecycle: fire, acknowledge, silence, resolve.

    Acknowledgement and silence are recorded as timestamps; whether an
    alert is effectively active is decided against the clock on every read.
    """

    def __init__(
        self,
        alert_repository: IAlertRepository,
        notifier: Optional[INotifier] = None,
        clock: Clock = utc_now,
    ):
        self._repo = alert_repository
        self._notifier = notifier
        self._clock = clock

    def now(self):
        return self._clock()

    async def list_alerts(
        self,
        severity: Optional[AlertSeverity] = None,
        is_active: Optional[bool] = None,
        service_id: Optional[str] = None,
    ) -> List[Alert]:
        filters: Dict[str, Any] = {}
        if severity is not None:
            filters["severity"] = severity
        if is_active is not None:
            filters["is_active"] = is_active
        if service_id:
            filters["service_id"] = service_id
        return await self._repo.list(filters)

    async def get_alert(self, alert_id: str) -> Alert:
        alert = await self._repo.get_by_id(alert_id)
        if alert is None:
            raise ResourceNotFoundException("Alert", alert_id)
        return alert

    async def create_alert(self, dto: AlertCreateDTO) -> Alert:
        now = self._clock()
        alert = Alert(
            id=None,
            title=dto.title or dto.name,
            name=dto.name,
            description=dto.description,
            message=dto.message,
            service_id=str(dto.service_id) if dto.service_id else None,
            severity=dto.severity,
            metric_name=dto.metric_name,
            threshold=dto.threshold,
            current_value=dto.current_value,
            is_active=True,
            fired_at=now,
            created_at=now,
        )
        created = await self._repo.create(alert)

        logger.info(
            "Alert fired",
            extra={"alert_id": created.id, "severity": created.severity.value, "title": created.title}
        )

        if created.is_critical and self._notifier is not None:
            await self._notifier.alert_fired(created)

        return created

    async def update_alert(self, alert_id: str, dto: AlertUpdateDTO) -> Alert:
        changes = dto.model_dump(exclude_unset=True)
        if "service_id" in changes and changes["service_id"] is not None:
            changes["service_id"] = str(changes["service_id"])

        updated = await self._repo.update(alert_id, changes)
        if updated is None:
            raise ResourceNotFoundException("Alert", alert_id)
        return updated

    async def acknowledge(self, alert_id: str) -> Alert:
        alert = await self.get_alert(alert_id)
        if alert.acknowledge(self._clock()):
            alert = await self._repo.save(alert)
            logger.info("Alert acknowledged", extra={"alert_id": alert_id})
        return alert

    async def silence(self, alert_id: str, duration_minutes: int = 60) -> Alert:
        alert = await self.get_alert(alert_id)
        alert.silence(self._clock(), duration_minutes)
        alert = await self._repo.save(alert)
        logger.info(
            "Alert silenced",
            extra={"alert_id": alert_id, "silenced_until": alert.silenced_until.isoformat()}
        )
        return alert

    async def resolve(self, alert_id: str) -> Alert:
        alert = await self.get_alert(alert_id)
        if alert.resolve(self._clock()):
            alert = await self._repo.save(alert)
            logger.info("Alert resolved", extra={"alert_id": alert_id})
        return alert

    async def delete_alert(self, alert_id: str) -> None:
        if not await self._repo.delete(alert_id):
            raise ResourceNotFoundException("Alert", alert_id)
        logger.info("Alert deleted", extra={"alert_id": alert_id})

    async def get_stats(self) -> AlertStatsResponse:
        """Counters over every stored alert, evaluated at the current time."""
        now = self._clock()
        alerts = await self._repo.list({})

        by_severity = {severity.value: 0 for severity in AlertSeverity}
        effectively_active = 0
        for alert in alerts:
            if alert.is_effectively_active(now):
                effectively_active += 1
                by_severity[alert.severity.value] += 1

        return AlertStatsResponse(
            total=len(alerts),
            active=sum(1 for a in alerts if a.is_active),
            effectively_active=effectively_active,
            acknowledged=sum(1 for a in alerts if a.is_active and a.is_acknowledged),
            silenced=sum(1 for a in alerts if a.is_active and a.is_silenced(now)),
            by_severity=by_severity,
        )


class IncidentService:
    """
    Incident lifecycle and its timeline.

    Every transition that changes state appends exactly one event; the
    incident row and the event are written through the same session.
    """

    def __init__(
        self,
        incident_repository: IIncidentRepository,
        event_repository: IIncidentEventRepository,
        notifier: Optional[INotifier] = None,
        clock: Clock = utc_now,
    ):
        self._repo = incident_repository
        self._events = event_repository
        self._notifier = notifier
        self._clock = clock

    async def list_incidents(
        self,
        status: Optional[IncidentStatus] = None,
        severity: Optional[str] = None,
        service_id: Optional[str] = None,
    ) -> List[Incident]:
        filters: Dict[str, Any] = {}
        if status is not None:
            filters["status"] = status
        if severity is not None:
            filters["severity"] = severity
        if service_id:
            filters["service_id"] = service_id
        return await self._repo.list(filters)

    async def get_incident(self, incident_id: str) -> Incident:
        incident = await self._repo.get_by_id(incident_id)
        if incident is None:
            raise ResourceNotFoundException("Incident", incident_id)
        return incident

    async def create_incident(self, dto: IncidentCreateDTO) -> Incident:
        now = self._clock()
        numbers_today = await self._repo.numbers_with_prefix(IncidentNumberGenerator.day_prefix(now))

        incident = await self._repo.create(
            Incident(
                id=None,
                incident_number=IncidentNumberGenerator.next_number(now, numbers_today),
                title=dto.title,
                description=dto.description,
                service_id=str(dto.service_id) if dto.service_id else None,
                severity=dto.severity,
                status=IncidentStatus.OPEN,
                triggered_by=dto.triggered_by,
                started_at=now,
                created_at=now,
                updated_at=now,
            )
        )
        await self._events.add(IncidentStateMachine.triggered(incident))

        logger.info(
            "Incident opened",
            extra={
                "incident_id": incident.id,
                "incident_number": incident.incident_number,
                "severity": incident.severity.value,
            }
        )

        if self._notifier is not None:
            await self._notifier.incident_changed(incident, "opened")

        return incident

    async def update_incident(self, incident_id: str, dto: IncidentUpdateDTO) -> Incident:
        changes = dto.model_dump(exclude_unset=True)
        if "service_id" in changes and changes["service_id"] is not None:
            changes["service_id"] = str(changes["service_id"])
        changes["updated_at"] = self._clock()

        updated = await self._repo.update(incident_id, changes)
        if updated is None:
            raise ResourceNotFoundException("Incident", incident_id)
        return updated

    async def acknowledge(self, incident_id: str) -> Incident:
        incident = await self.get_incident(incident_id)
        event = IncidentStateMachine.acknowledge(incident, self._clock())
        if event is None:
            return incident

        incident = await self._repo.save(incident)
        await self._events.add(event)
        logger.info(
            "Incident acknowledged",
            extra={"incident_id": incident_id, "incident_number": incident.incident_number}
        )
        return incident

    async def resolve(self, incident_id: str) -> Incident:
        incident = await self.get_incident(incident_id)
        event = IncidentStateMachine.resolve(incident, self._clock())
        if event is None:
            return incident

        incident = await self._repo.save(incident)
        await self._events.add(event)
        logger.info(
            "Incident resolved",
            extra={"incident_id": incident_id, "incident_number": incident.incident_number}
        )

        if self._notifier is not None:
            await self._notifier.incident_changed(incident, "resolved")

        return incident

    async def delete_incident(self, incident_id: str) -> None:
        if not await self._repo.delete(incident_id):
            raise ResourceNotFoundException("Incident", incident_id)
        logger.info("Incident deleted", extra={"incident_id": incident_id})

    async def list_events(self, incident_id: str) -> List[IncidentEvent]:
        await self.get_incident(incident_id)
        return await self._events.list_for_incident(incident_id)

    async def add_event(self, incident_id: str, dto: IncidentEventCreateDTO) -> IncidentEvent:
        incident = await self.get_incident(incident_id)
        event = await self._events.add(
            IncidentEvent(
                id=None,
                incident_id=incident.id,
                event_type=dto.event_type,
                message=dto.message,
                author_id=dto.author_id,
                created_at=self._clock(),
            )
        )
        logger.info(
            "Incident event appended",
            extra={"incident_id": incident.id, "event_type": event.event_type.value}
        )
        return event
