"""
Telemetry Application Services
==============================

Application services orchestrate the service catalog and the raw telemetry
(logs, metric samples) and coordinate with repositories.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (repositories), not concrete implementations
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sre_dashboard.config import LogLevel, VALID_LOG_LEVELS
from sre_dashboard.core import ConflictException, ResourceNotFoundException, ValidationException
from sre_dashboard.shared.clock import Clock, ensure_utc, utc_now
from sre_dashboard.shared.infrastructure.logging import get_logger
from sre_dashboard.telemetry.application.dto import (
    LogCreateDTO,
    MetricCreateDTO,
    ServiceCreateDTO,
    ServiceUpdateDTO,
)
from sre_dashboard.telemetry.domain import LogEntry, MetricSample, MetricSeries, Service

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class IServiceRepository(ABC):
    """Interface for service data access."""

    @abstractmethod
    async def get_by_id(self, service_id: str) -> Optional[Service]:
        """Get service by ID."""

    @abstractmethod
    async def get_by_name(self, name: str) -> Optional[Service]:
        """Get service by unique name."""

    @abstractmethod
    async def list_all(self) -> List[Service]:
        """List all services ordered by name."""

    @abstractmethod
    async def create(self, service: Service) -> Service:
        """Create new service."""

    @abstractmethod
    async def update(self, service_id: str, changes: Dict[str, Any]) -> Optional[Service]:
        """Apply changes; None when the service does not exist."""

    @abstractmethod
    async def delete(self, service_id: str) -> bool:
        """Delete service; False when nothing was deleted."""


class ILogRepository(ABC):
    """Interface for log data access."""

    @abstractmethod
    async def add_many(self, entries: List[LogEntry]) -> List[LogEntry]:
        """Append log entries."""

    @abstractmethod
    async def list(self, filters: dict, limit: int) -> List[LogEntry]:
        """Newest first, capped at limit."""

    @abstractmethod
    async def delete_all(self) -> int:
        """Bulk clear; returns number of rows removed."""


class IMetricRepository(ABC):
    """Interface for metric sample data access."""

    @abstractmethod
    async def add_many(self, samples: List[MetricSample]) -> List[MetricSample]:
        """Append metric samples."""

    @abstractmethod
    async def list(self, filters: dict, limit: Optional[int]) -> List[MetricSample]:
        """Newest first, capped at limit when one is given."""

    @abstractmethod
    async def delete_all(self) -> int:
        """Bulk clear; returns number of rows removed."""


# ========== Application Services ==========

class ServiceCatalogService:
    """
    CRUD over monitored services.

    Service names are unique slugs; collisions are reported as conflicts
    before anything is written.
    """

    def __init__(self, service_repository: IServiceRepository, clock: Clock = utc_now):
        self._repo = service_repository
        self._clock = clock

    async def list_services(self) -> List[Service]:
        return await self._repo.list_all()

    async def get_service(self, service_id: str) -> Service:
        service = await self._repo.get_by_id(service_id)
        if service is None:
            raise ResourceNotFoundException("Service", service_id)
        return service

    async def create_service(self, dto: ServiceCreateDTO) -> Service:
        if await self._repo.get_by_name(dto.name) is not None:
            raise ConflictException(f"Service name '{dto.name}' is already registered")

        now = self._clock()
        service = Service(
            id=None,
            name=dto.name,
            display_name=dto.display_name or dto.name,
            description=dto.description,
            status=dto.status,
            uptime=dto.uptime,
            latency_p50=dto.latency_p50,
            latency_p99=dto.latency_p99,
            error_rate=dto.error_rate,
            cpu_usage=dto.cpu_usage,
            memory_usage=dto.memory_usage,
            requests_per_second=dto.requests_per_second,
            request_count=dto.request_count,
            created_at=now,
            updated_at=now,
        )
        created = await self._repo.create(service)
        logger.info("Service created", extra={"service_id": created.id, "service_name": created.name})
        return created

    async def update_service(self, service_id: str, dto: ServiceUpdateDTO) -> Service:
        current = await self.get_service(service_id)
        changes = dto.model_dump(exclude_unset=True)

        if "name" in changes:
            existing = await self._repo.get_by_name(changes["name"])
            if existing is not None and existing.id != current.id:
                raise ConflictException(f"Service name '{changes['name']}' is already registered")

        changes["updated_at"] = self._clock()
        updated = await self._repo.update(current.id, changes)
        if updated is None:
            raise ResourceNotFoundException("Service", service_id)

        logger.info(
            "Service updated",
            extra={"service_id": current.id, "fields": sorted(k for k in changes if k != "updated_at")}
        )
        return updated

    async def delete_service(self, service_id: str) -> None:
        if not await self._repo.delete(service_id):
            raise ResourceNotFoundException("Service", service_id)
        logger.info("Service deleted", extra={"service_id": service_id})


class LogService:
    """Append-only log store with filtered, capped reads."""

    def __init__(self, log_repository: ILogRepository, clock: Clock = utc_now):
        self._repo = log_repository
        self._clock = clock

    async def list_logs(
        self,
        limit: int,
        service_id: Optional[str] = None,
        level: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> List[LogEntry]:
        filters: Dict[str, Any] = {}
        if service_id:
            filters["service_id"] = service_id
        if level:
            normalized = level.upper()
            if normalized not in VALID_LOG_LEVELS:
                raise ValidationException(
                    f"level must be one of {', '.join(VALID_LOG_LEVELS)}", field="level"
                )
            filters["level"] = LogLevel(normalized)
        if since:
            filters["since"] = ensure_utc(since)
        return await self._repo.list(filters, limit=limit)

    async def ingest(self, dtos: List[LogCreateDTO]) -> List[LogEntry]:
        now = self._clock()
        entries = [
            LogEntry(
                id=None,
                level=dto.level,
                message=dto.message,
                service_id=str(dto.service_id) if dto.service_id else None,
                trace_id=dto.trace_id,
                metadata=dto.metadata,
                created_at=now,
            )
            for dto in dtos
        ]
        stored = await self._repo.add_many(entries)
        logger.info("Logs ingested", extra={"count": len(stored)})
        return stored

    async def clear(self) -> int:
        deleted = await self._repo.delete_all()
        logger.warning("Logs cleared", extra={"deleted": deleted})
        return deleted


class MetricService:
    """Append-only metric sample store plus time series reconstruction."""

    def __init__(self, metric_repository: IMetricRepository, clock: Clock = utc_now):
        self._repo = metric_repository
        self._clock = clock

    async def list_metrics(
        self,
        limit: int,
        service_id: Optional[str] = None,
        metric_name: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> List[MetricSample]:
        filters = self._filters(service_id, metric_name, since)
        return await self._repo.list(filters, limit=limit)

    async def get_series(
        self,
        hours: int = 24,
        service_id: Optional[str] = None,
        metric_name: Optional[str] = None,
    ) -> List[MetricSeries]:
        """Series over the trailing window, one per metric name, oldest point first."""
        since = self._clock() - timedelta(hours=hours)
        samples = await self._repo.list(self._filters(service_id, metric_name, since), limit=None)
        return MetricSeries.from_samples(samples)

    async def ingest(self, dtos: List[MetricCreateDTO]) -> List[MetricSample]:
        now = self._clock()
        samples = [
            MetricSample(
                id=None,
                metric_name=dto.metric_name,
                value=dto.value,
                recorded_at=ensure_utc(dto.recorded_at) or now,
                service_id=str(dto.service_id) if dto.service_id else None,
                unit=dto.unit,
            )
            for dto in dtos
        ]
        stored = await self._repo.add_many(samples)
        logger.info("Metrics ingested", extra={"count": len(stored)})
        return stored

    async def clear(self) -> int:
        deleted = await self._repo.delete_all()
        logger.warning("Metrics cleared", extra={"deleted": deleted})
        return deleted

    @staticmethod
    def _filters(
        service_id: Optional[str],
        metric_name: Optional[str],
        since: Optional[datetime],
    ) -> Dict[str, Any]:
        filters: Dict[str, Any] = {}
        if service_id:
            filters["service_id"] = service_id
        if metric_name:
            filters["metric_name"] = metric_name
        if since:
            filters["since"] = ensure_utc(since)
        return filters
