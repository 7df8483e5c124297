"""
Telemetry Infrastructure Repositories
=====================================

Concrete implementations of the telemetry repository interfaces using SQLAlchemy.

This layer contains the data access logic - how we store and retrieve
entities from the database.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sre_dashboard.config import LogLevel, ServiceStatus
from sre_dashboard.core import ConflictException
from sre_dashboard.shared.clock import ensure_utc
from sre_dashboard.telemetry.application.services import (
    ILogRepository,
    IMetricRepository,
    IServiceRepository,
)
from sre_dashboard.telemetry.domain import LogEntry, MetricSample, Service
from sre_dashboard.telemetry.infrastructure.models import LogModel, MetricModel, ServiceModel


def parse_uuid(value: Optional[str]) -> Optional[UUID]:
    """Parse an identifier; None for anything that is not a UUID."""
    if value is None:
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _str_id(value: Optional[UUID]) -> Optional[str]:
    return str(value) if value is not None else None


class SQLAlchemyServiceRepository(IServiceRepository):
    """
    SQLAlchemy implementation of service repository.

    Handles persistence of Service entities using async SQLAlchemy.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, service_id: str) -> Optional[Service]:
        model = await self._get_model(service_id)
        return self._to_entity(model) if model else None

    async def get_by_name(self, name: str) -> Optional[Service]:
        stmt = select(ServiceModel).where(ServiceModel.name == name)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list_all(self) -> List[Service]:
        stmt = select(ServiceModel).order_by(ServiceModel.name.asc())
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def create(self, service: Service) -> Service:
        model = ServiceModel(
            id=uuid4(),
            name=service.name,
            display_name=service.display_name,
            description=service.description,
            status=ServiceStatus(service.status).value,
            uptime=service.uptime,
            latency_p50=service.latency_p50,
            latency_p99=service.latency_p99,
            error_rate=service.error_rate,
            cpu_usage=service.cpu_usage,
            memory_usage=service.memory_usage,
            requests_per_second=service.requests_per_second,
            request_count=service.request_count,
            last_checked_at=service.last_checked_at,
            created_at=service.created_at,
            updated_at=service.updated_at,
        )
        self._session.add(model)
        await self._flush_unique_name(service.name)
        return self._to_entity(model)

    async def update(self, service_id: str, changes: Dict[str, Any]) -> Optional[Service]:
        model = await self._get_model(service_id)
        if model is None:
            return None

        for key, value in changes.items():
            if key == "status" and value is not None:
                value = ServiceStatus(value).value
            setattr(model, key, value)

        await self._flush_unique_name(model.name)
        return self._to_entity(model)

    async def delete(self, service_id: str) -> bool:
        model = await self._get_model(service_id)
        if model is None:
            return False
        await self._session.delete(model)
        await self._session.flush()
        return True

    async def _flush_unique_name(self, name: str) -> None:
        try:
            await self._session.flush()
        except IntegrityError as e:
            if "name" in str(e.orig):
                raise ConflictException(
                    f"Service name '{name}' is already registered",
                    details={"name": name}
                ) from e
            raise

    async def _get_model(self, service_id: str) -> Optional[ServiceModel]:
        service_uuid = parse_uuid(service_id)
        if service_uuid is None:
            return None
        return await self._session.get(ServiceModel, service_uuid)

    @staticmethod
    def _to_entity(model: ServiceModel) -> Service:
        return Service(
            id=str(model.id),
            name=model.name,
            display_name=model.display_name,
            description=model.description,
            status=ServiceStatus(model.status),
            uptime=model.uptime,
            latency_p50=model.latency_p50,
            latency_p99=model.latency_p99,
            error_rate=model.error_rate,
            cpu_usage=model.cpu_usage,
            memory_usage=model.memory_usage,
            requests_per_second=model.requests_per_second,
            request_count=model.request_count,
            last_checked_at=ensure_utc(model.last_checked_at),
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at),
        )


class SQLAlchemyLogRepository(ILogRepository):
    """SQLAlchemy implementation for log entries."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def add_many(self, entries: List[LogEntry]) -> List[LogEntry]:
        models = [
            LogModel(
                id=uuid4(),
                service_id=parse_uuid(entry.service_id),
                level=LogLevel(entry.level).value,
                message=entry.message,
                trace_id=entry.trace_id,
                metadata_json=dict(entry.metadata or {}),
                created_at=entry.created_at,
            )
            for entry in entries
        ]
        self._session.add_all(models)
        await self._session.flush()
        return [self._to_entity(m) for m in models]

    async def list(self, filters: dict, limit: int) -> List[LogEntry]:
        """List logs with filters, newest first."""
        stmt = select(LogModel)

        conditions = []
        if "service_id" in filters:
            service_uuid = parse_uuid(filters["service_id"])
            if service_uuid is None:
                return []
            conditions.append(LogModel.service_id == service_uuid)

        if "level" in filters:
            conditions.append(LogModel.level == LogLevel(filters["level"]).value)

        if "since" in filters:
            conditions.append(LogModel.created_at >= filters["since"])

        if conditions:
            stmt = stmt.where(and_(*conditions))

        stmt = stmt.order_by(LogModel.created_at.desc()).limit(limit)
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def delete_all(self) -> int:
        result = await self._session.execute(delete(LogModel))
        return result.rowcount or 0

    @staticmethod
    def _to_entity(model: LogModel) -> LogEntry:
        return LogEntry(
            id=str(model.id),
            level=LogLevel(model.level),
            message=model.message,
            service_id=_str_id(model.service_id),
            trace_id=model.trace_id,
            metadata=dict(model.metadata_json or {}),
            created_at=ensure_utc(model.created_at),
        )


class SQLAlchemyMetricRepository(IMetricRepository):
    """SQLAlchemy implementation for metric samples."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def add_many(self, samples: List[MetricSample]) -> List[MetricSample]:
        models = [
            MetricModel(
                id=uuid4(),
                service_id=parse_uuid(sample.service_id),
                metric_name=sample.metric_name,
                value=sample.value,
                unit=sample.unit,
                recorded_at=sample.recorded_at,
            )
            for sample in samples
        ]
        self._session.add_all(models)
        await self._session.flush()
        return [self._to_entity(m) for m in models]

    async def list(self, filters: dict, limit: Optional[int]) -> List[MetricSample]:
        """List metric samples with filters, newest first."""
        stmt = select(MetricModel)

        conditions = []
        if "service_id" in filters:
            service_uuid = parse_uuid(filters["service_id"])
            if service_uuid is None:
                return []
            conditions.append(MetricModel.service_id == service_uuid)

        if "metric_name" in filters:
            conditions.append(MetricModel.metric_name == filters["metric_name"])

        if "since" in filters:
            conditions.append(MetricModel.recorded_at >= filters["since"])

        if conditions:
            stmt = stmt.where(and_(*conditions))

        stmt = stmt.order_by(MetricModel.recorded_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def delete_all(self) -> int:
        result = await self._session.execute(delete(MetricModel))
        return result.rowcount or 0

    @staticmethod
    def _to_entity(model: MetricModel) -> MetricSample:
        return MetricSample(
            id=str(model.id),
            metric_name=model.metric_name,
            value=model.value,
            recorded_at=ensure_utc(model.recorded_at),
            service_id=_str_id(model.service_id),
            unit=model.unit,
        )
