"""
Reliability Infrastructure Repositories
=======================================

SQLAlchemy implementations of the SLO repository and of the read-only
queries the health score and the release validation run on.
"""

from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar
from uuid import uuid4

from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sre_dashboard.alerting.infrastructure.models import AlertModel, IncidentModel
from sre_dashboard.config import (
    BLOCKING_INCIDENT_SEVERITIES,
    UNRESOLVED_INCIDENT_STATUSES,
    AlertSeverity,
    IncidentSeverity,
    IncidentStatus,
    LogLevel,
    ServiceStatus,
)
from sre_dashboard.core import RepositoryException
from sre_dashboard.infrastructure.database import ping_database
from sre_dashboard.reliability.application.services import IReliabilityReader, ISLORepository
from sre_dashboard.reliability.domain import SLO, HealthSnapshot
from sre_dashboard.reliability.infrastructure.models import SLOModel
from sre_dashboard.shared.clock import ensure_utc
from sre_dashboard.telemetry.domain import Service
from sre_dashboard.telemetry.infrastructure import LogModel, ServiceModel, SQLAlchemyServiceRepository, parse_uuid

T = TypeVar("T")


class SQLAlchemySLORepository(ISLORepository):
    """SQLAlchemy implementation for SLOs."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, slo_id: str) -> Optional[SLO]:
        model = await self._get_model(slo_id)
        return self._to_entity(model) if model else None

    async def list(self, filters: dict) -> List[SLO]:
        """List SLOs with filters, newest first."""
        stmt = select(SLOModel)

        conditions = []
        if "service_id" in filters:
            service_uuid = parse_uuid(filters["service_id"])
            if service_uuid is None:
                return []
            conditions.append(SLOModel.service_id == service_uuid)

        if "is_breaching" in filters:
            conditions.append(SLOModel.is_breaching == bool(filters["is_breaching"]))

        if conditions:
            stmt = stmt.where(and_(*conditions))

        stmt = stmt.order_by(SLOModel.created_at.desc())
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def create(self, slo: SLO) -> SLO:
        model = SLOModel(id=uuid4(), created_at=slo.created_at, **self._columns(slo))
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def save(self, slo: SLO) -> SLO:
        model = await self._get_model(slo.id)
        if model is None:
            return slo

        for key, value in self._columns(slo).items():
            setattr(model, key, value)

        await self._session.flush()
        return self._to_entity(model)

    async def delete(self, slo_id: str) -> bool:
        model = await self._get_model(slo_id)
        if model is None:
            return False
        await self._session.delete(model)
        await self._session.flush()
        return True

    async def _get_model(self, slo_id: Optional[str]) -> Optional[SLOModel]:
        slo_uuid = parse_uuid(slo_id)
        if slo_uuid is None:
            return None
        return await self._session.get(SLOModel, slo_uuid)

    @staticmethod
    def _columns(slo: SLO) -> Dict[str, Any]:
        return {
            "name": slo.name,
            "service_id": parse_uuid(slo.service_id),
            "target_availability": slo.target_availability,
            "current_availability": slo.current_availability,
            "latency_target": slo.latency_target,
            "latency_current": slo.latency_current,
            "error_budget_total": slo.error_budget_total,
            "error_budget_consumed": slo.error_budget_consumed,
            "period": slo.period,
            "is_breaching": slo.is_breaching,
            "is_budget_exhausted": slo.is_budget_exhausted,
            "updated_at": slo.updated_at,
        }

    @staticmethod
    def _to_entity(model: SLOModel) -> SLO:
        return SLO(
            id=str(model.id),
            name=model.name,
            service_id=str(model.service_id) if model.service_id else None,
            target_availability=model.target_availability,
            current_availability=model.current_availability,
            latency_target=model.latency_target,
            latency_current=model.latency_current,
            error_budget_total=model.error_budget_total,
            error_budget_consumed=model.error_budget_consumed,
            period=model.period,
            is_breaching=model.is_breaching,
            is_budget_exhausted=model.is_budget_exhausted,
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at),
        )


class SQLAlchemyReliabilityReader(IReliabilityReader):
    """
    Aggregate queries over every table.

    Database errors surface as RepositoryException so callers can tell a
    failed read apart from a bug.
    """

    def __init__(self, session: AsyncSession):
        self._session = session
        self._services = SQLAlchemyServiceRepository(session)

    async def ping(self) -> bool:
        return await ping_database(self._session)

    async def snapshot(self) -> HealthSnapshot:
        try:
            services = await self._grouped_counts(ServiceModel.status)
            alerts = await self._grouped_counts(AlertModel.severity, AlertModel.is_active.is_(True))
            alerts_total = await self._count(AlertModel.id)
            incidents = await self._grouped_counts(
                IncidentModel.severity, IncidentModel.status != IncidentStatus.RESOLVED.value
            )
            incidents_total = await self._count(IncidentModel.id)
            slos_total = await self._count(SLOModel.id)
            slos_breaching = await self._count(SLOModel.id, SLOModel.is_breaching.is_(True))
            slos_exhausted = await self._count(SLOModel.id, SLOModel.is_budget_exhausted.is_(True))
        except SQLAlchemyError as e:
            raise RepositoryException(f"Failed to read health statistics: {e}") from e

        return HealthSnapshot(
            services_total=sum(services.values()),
            services_healthy=services.get(ServiceStatus.HEALTHY.value, 0),
            services_degraded=services.get(ServiceStatus.DEGRADED.value, 0),
            services_down=services.get(ServiceStatus.DOWN.value, 0),
            alerts_total=alerts_total,
            alerts_active=sum(alerts.values()),
            alerts_critical=alerts.get(AlertSeverity.CRITICAL.value, 0),
            alerts_warning=alerts.get(AlertSeverity.WARNING.value, 0),
            incidents_total=incidents_total,
            incidents_open=sum(incidents.values()),
            incidents_critical=incidents.get(IncidentSeverity.CRITICAL.value, 0),
            slos_total=slos_total,
            slos_breaching=slos_breaching,
            slos_budget_exhausted=slos_exhausted,
        )

    async def list_services(self) -> List[Service]:
        return await self._isolated(self._services.list_all)

    async def active_critical_alert_titles(self) -> List[str]:
        stmt = (
            select(AlertModel.title)
            .where(and_(
                AlertModel.is_active.is_(True),
                AlertModel.severity == AlertSeverity.CRITICAL.value,
            ))
            .order_by(AlertModel.fired_at.desc())
        )
        return await self._titles(stmt)

    async def blocking_incident_titles(self) -> List[str]:
        stmt = (
            select(IncidentModel.title)
            .where(and_(
                IncidentModel.status.in_(UNRESOLVED_INCIDENT_STATUSES),
                IncidentModel.severity.in_(BLOCKING_INCIDENT_SEVERITIES),
            ))
            .order_by(IncidentModel.started_at.desc())
        )
        return await self._titles(stmt)

    async def list_slos(self) -> List[SLO]:
        async def query() -> List[SLO]:
            result = await self._session.execute(select(SLOModel).order_by(SLOModel.created_at.desc()))
            return [SQLAlchemySLORepository._to_entity(m) for m in result.scalars().all()]

        return await self._isolated(query)

    async def count_logs(self, level: LogLevel, since: datetime) -> int:
        return await self._isolated(lambda: self._count(
            LogModel.id, LogModel.level == LogLevel(level).value, LogModel.created_at >= since
        ))

    # ========== Helpers ==========

    async def _isolated(self, query: Callable[[], Awaitable[T]]) -> T:
        """
        Run one read inside a savepoint.

        A failed statement rolls back to the savepoint only and the session
        stays usable for the next read.
        """
        try:
            async with self._session.begin_nested():
                return await query()
        except SQLAlchemyError as e:
            raise RepositoryException(str(e)) from e

    async def _titles(self, stmt) -> List[str]:
        async def query() -> List[str]:
            result = await self._session.execute(stmt)
            return list(result.scalars().all())

        return await self._isolated(query)

    async def _count(self, column, *conditions) -> int:
        stmt = select(func.count(column))
        if conditions:
            stmt = stmt.where(and_(*conditions))
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def _grouped_counts(self, column, *conditions) -> Dict[str, int]:
        stmt = select(column, func.count()).group_by(column)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        result = await self._session.execute(stmt)
        rows: List[Tuple[str, int]] = result.all()
        return {key: count for key, count in rows}
