"""
Alerting Infrastructure Repositories
====================================

SQLAlchemy implementations of alerting repositories.
"""

from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sre_dashboard.alerting.application.services import (
    IAlertRepository,
    IIncidentEventRepository,
    IIncidentRepository,
)
from sre_dashboard.alerting.domain import Alert, Incident, IncidentEvent
from sre_dashboard.alerting.infrastructure.models import AlertModel, IncidentEventModel, IncidentModel
from sre_dashboard.config import AlertSeverity, IncidentEventType, IncidentSeverity, IncidentStatus
from sre_dashboard.core import ConflictException
from sre_dashboard.shared.clock import ensure_utc
from sre_dashboard.telemetry.infrastructure import parse_uuid


def _apply_changes(model: Any, changes: Dict[str, Any]) -> None:
    for key, value in changes.items():
        if key == "service_id":
            value = parse_uuid(value)
        elif isinstance(value, Enum):
            value = value.value
        setattr(model, key, value)


def _str_id(value: Optional[UUID]) -> Optional[str]:
    return str(value) if value is not None else None


class SQLAlchemyAlertRepository(IAlertRepository):
    """SQLAlchemy implementation for alerts."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, alert_id: str) -> Optional[Alert]:
        model = await self._get_model(alert_id)
        return self._to_entity(model) if model else None

    async def list(self, filters: dict) -> List[Alert]:
        """List alerts with filters."""
        stmt = select(AlertModel)

        conditions = []
        if "severity" in filters:
            conditions.append(AlertModel.severity == AlertSeverity(filters["severity"]).value)

        if "is_active" in filters:
            conditions.append(AlertModel.is_active == bool(filters["is_active"]))

        if "service_id" in filters:
            service_uuid = parse_uuid(filters["service_id"])
            if service_uuid is None:
                return []
            conditions.append(AlertModel.service_id == service_uuid)

        if conditions:
            stmt = stmt.where(and_(*conditions))

        stmt = stmt.order_by(AlertModel.fired_at.desc())
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def create(self, alert: Alert) -> Alert:
        model = AlertModel(
            id=uuid4(),
            service_id=parse_uuid(alert.service_id),
            title=alert.title,
            name=alert.name,
            description=alert.description,
            message=alert.message,
            severity=AlertSeverity(alert.severity).value,
            metric_name=alert.metric_name,
            threshold=alert.threshold,
            current_value=alert.current_value,
            is_active=alert.is_active,
            fired_at=alert.fired_at,
            acknowledged_at=alert.acknowledged_at,
            silenced_until=alert.silenced_until,
            resolved_at=alert.resolved_at,
            created_at=alert.created_at or alert.fired_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def update(self, alert_id: str, changes: Dict[str, Any]) -> Optional[Alert]:
        model = await self._get_model(alert_id)
        if model is None:
            return None
        _apply_changes(model, changes)
        await self._session.flush()
        return self._to_entity(model)

    async def save(self, alert: Alert) -> Alert:
        updated = await self.update(
            alert.id,
            {
                "is_active": alert.is_active,
                "acknowledged_at": alert.acknowledged_at,
                "silenced_until": alert.silenced_until,
                "resolved_at": alert.resolved_at,
            },
        )
        return updated or alert

    async def delete(self, alert_id: str) -> bool:
        model = await self._get_model(alert_id)
        if model is None:
            return False
        await self._session.delete(model)
        await self._session.flush()
        return True

    async def _get_model(self, alert_id: str) -> Optional[AlertModel]:
        alert_uuid = parse_uuid(alert_id)
        if alert_uuid is None:
            return None
        return await self._session.get(AlertModel, alert_uuid)

    @staticmethod
    def _to_entity(model: AlertModel) -> Alert:
        return Alert(
            id=str(model.id),
            title=model.title,
            name=model.name,
            description=model.description,
            message=model.message,
            service_id=_str_id(model.service_id),
            severity=AlertSeverity(model.severity),
            metric_name=model.metric_name,
            threshold=model.threshold,
            current_value=model.current_value,
            is_active=model.is_active,
            fired_at=ensure_utc(model.fired_at),
            acknowledged_at=ensure_utc(model.acknowledged_at),
            silenced_until=ensure_utc(model.silenced_until),
            resolved_at=ensure_utc(model.resolved_at),
            created_at=ensure_utc(model.created_at),
        )


class SQLAlchemyIncidentRepository(IIncidentRepository):
    """SQLAlchemy implementation for incidents."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, incident_id: str) -> Optional[Incident]:
        model = await self._get_model(incident_id)
        return self._to_entity(model) if model else None

    async def list(self, filters: dict) -> List[Incident]:
        """List incidents with filters."""
        stmt = select(IncidentModel)

        conditions = []
        if "status" in filters:
            status_filter = filters["status"]
            if isinstance(status_filter, list):
                conditions.append(
                    IncidentModel.status.in_([IncidentStatus(s).value for s in status_filter])
                )
            else:
                conditions.append(IncidentModel.status == IncidentStatus(status_filter).value)

        if "severity" in filters:
            severity_filter = filters["severity"]
            if isinstance(severity_filter, list):
                conditions.append(
                    IncidentModel.severity.in_([IncidentSeverity(s).value for s in severity_filter])
                )
            else:
                conditions.append(IncidentModel.severity == IncidentSeverity(severity_filter).value)

        if "service_id" in filters:
            service_uuid = parse_uuid(filters["service_id"])
            if service_uuid is None:
                return []
            conditions.append(IncidentModel.service_id == service_uuid)

        if conditions:
            stmt = stmt.where(and_(*conditions))

        stmt = stmt.order_by(IncidentModel.started_at.desc())
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def numbers_with_prefix(self, prefix: str) -> List[str]:
        stmt = select(IncidentModel.incident_number).where(
            IncidentModel.incident_number.startswith(prefix, autoescape=True)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, incident: Incident) -> Incident:
        model = IncidentModel(
            id=uuid4(),
            incident_number=incident.incident_number,
            service_id=parse_uuid(incident.service_id),
            title=incident.title,
            description=incident.description,
            severity=IncidentSeverity(incident.severity).value,
            status=IncidentStatus(incident.status).value,
            triggered_by=incident.triggered_by,
            started_at=incident.started_at,
            acknowledged_at=incident.acknowledged_at,
            resolved_at=incident.resolved_at,
            created_at=incident.created_at or incident.started_at,
            updated_at=incident.updated_at or incident.started_at,
        )
        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError as e:
            if "incident_number" in str(e.orig):
                raise ConflictException(
                    f"Incident number {incident.incident_number} already exists",
                    details={"incident_number": incident.incident_number}
                ) from e
            raise
        return self._to_entity(model)

    async def update(self, incident_id: str, changes: Dict[str, Any]) -> Optional[Incident]:
        model = await self._get_model(incident_id)
        if model is None:
            return None
        _apply_changes(model, changes)
        await self._session.flush()
        return self._to_entity(model)

    async def save(self, incident: Incident) -> Incident:
        updated = await self.update(
            incident.id,
            {
                "status": incident.status,
                "acknowledged_at": incident.acknowledged_at,
                "resolved_at": incident.resolved_at,
                "updated_at": incident.updated_at,
            },
        )
        return updated or incident

    async def delete(self, incident_id: str) -> bool:
        model = await self._get_model(incident_id)
        if model is None:
            return False
        await self._session.execute(
            delete(IncidentEventModel).where(IncidentEventModel.incident_id == model.id)
        )
        await self._session.delete(model)
        await self._session.flush()
        return True

    async def _get_model(self, incident_id: str) -> Optional[IncidentModel]:
        incident_uuid = parse_uuid(incident_id)
        if incident_uuid is None:
            return None
        return await self._session.get(IncidentModel, incident_uuid)

    @staticmethod
    def _to_entity(model: IncidentModel) -> Incident:
        return Incident(
            id=str(model.id),
            incident_number=model.incident_number,
            title=model.title,
            description=model.description,
            service_id=_str_id(model.service_id),
            severity=IncidentSeverity(model.severity),
            status=IncidentStatus(model.status),
            triggered_by=model.triggered_by,
            started_at=ensure_utc(model.started_at),
            acknowledged_at=ensure_utc(model.acknowledged_at),
            resolved_at=ensure_utc(model.resolved_at),
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at),
        )


class SQLAlchemyIncidentEventRepository(IIncidentEventRepository):
    """SQLAlchemy implementation for the incident timeline."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def add(self, event: IncidentEvent) -> IncidentEvent:
        incident_uuid = parse_uuid(event.incident_id)
        last = await self._session.execute(
            select(func.max(IncidentEventModel.sequence))
            .where(IncidentEventModel.incident_id == incident_uuid)
        )
        model = IncidentEventModel(
            id=uuid4(),
            incident_id=incident_uuid,
            sequence=(last.scalar_one() or 0) + 1,
            event_type=IncidentEventType(event.event_type).value,
            message=event.message,
            author_id=event.author_id,
            created_at=event.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def list_for_incident(self, incident_id: str) -> List[IncidentEvent]:
        incident_uuid = parse_uuid(incident_id)
        if incident_uuid is None:
            return []

        stmt = (
            select(IncidentEventModel)
            .where(IncidentEventModel.incident_id == incident_uuid)
            .order_by(IncidentEventModel.created_at.asc(), IncidentEventModel.sequence.asc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    @staticmethod
    def _to_entity(model: IncidentEventModel) -> IncidentEvent:
        return IncidentEvent(
            id=str(model.id),
            incident_id=str(model.incident_id),
            event_type=IncidentEventType(model.event_type),
            message=model.message,
            author_id=model.author_id,
            created_at=ensure_utc(model.created_at),
        )
