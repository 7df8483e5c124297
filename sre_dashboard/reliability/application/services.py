"""
Reliability Application Services
================================

Application services for the derived-state evaluator: SLO bookkeeping, the
aggregate health score, the release-validation report and the test-activity
generator.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (repositories), not concrete implementations
"""

import random
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sre_dashboard.config import ServiceStatus, LogLevel, OverallHealth
from sre_dashboard.core import RepositoryException, ResourceNotFoundException
from sre_dashboard.reliability.application.dto import GeneratedCounts, SLOCreateDTO, SLOUpdateDTO
from sre_dashboard.reliability.domain import (
    SLO,
    HealthCalculator,
    HealthConfig,
    HealthReport,
    HealthSnapshot,
    ValidationCheck,
    ValidationReport,
)
from sre_dashboard.shared.clock import Clock, utc_now
from sre_dashboard.shared.infrastructure.logging import get_logger, log_latency
from sre_dashboard.telemetry.application.services import (
    ILogRepository,
    IMetricRepository,
    IServiceRepository,
)
from sre_dashboard.telemetry.domain import LogEntry, MetricSample, Service

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class ISLORepository(ABC):
    """Interface for SLO data access."""

    @abstractmethod
    async def get_by_id(self, slo_id: str) -> Optional[SLO]:
        """Get SLO by ID."""

    @abstractmethod
    async def list(self, filters: dict) -> List[SLO]:
        """List SLOs with filters, newest first."""

    @abstractmethod
    async def create(self, slo: SLO) -> SLO:
        """Create new SLO."""

    @abstractmethod
    async def save(self, slo: SLO) -> SLO:
        """Persist every field of an existing SLO."""

    @abstractmethod
    async def delete(self, slo_id: str) -> bool:
        """Delete SLO; False when nothing was deleted."""


class IReliabilityReader(ABC):
    """
    Read-only queries across services, alerts, incidents, SLOs and logs.

    Implementations raise RepositoryException when the store cannot be read.
    """

    @abstractmethod
    async def ping(self) -> bool:
        """Check database connectivity."""

    @abstractmethod
    async def snapshot(self) -> HealthSnapshot:
        """Counts feeding the health score."""

    @abstractmethod
    async def list_services(self) -> List[Service]:
        """All services."""

    @abstractmethod
    async def active_critical_alert_titles(self) -> List[str]:
        """Titles of active CRITICAL alerts."""

    @abstractmethod
    async def blocking_incident_titles(self) -> List[str]:
        """Titles of unresolved HIGH/CRITICAL incidents."""

    @abstractmethod
    async def list_slos(self) -> List[SLO]:
        """All SLOs."""

    @abstractmethod
    async def count_logs(self, level: LogLevel, since) -> int:
        """Number of logs at ``level`` created at or after ``since``."""


class IHealthConfigProvider(ABC):
    """Interface for health configuration access."""

    @abstractmethod
    def get_config(self) -> HealthConfig:
        """Get current health configuration."""


# ========== Application Services ==========

class SLOService:
    """SLO bookkeeping; the derived flags are recomputed on every write."""

    def __init__(self, slo_repository: ISLORepository, clock: Clock = utc_now):
        self._repo = slo_repository
        self._clock = clock

    async def list_slos(
        self,
        service_id: Optional[str] = None,
        breaching: Optional[bool] = None,
    ) -> List[SLO]:
        filters: Dict[str, Any] = {}
        if service_id:
            filters["service_id"] = service_id
        if breaching is not None:
            filters["is_breaching"] = breaching
        return await self._repo.list(filters)

    async def get_slo(self, slo_id: str) -> SLO:
        slo = await self._repo.get_by_id(slo_id)
        if slo is None:
            raise ResourceNotFoundException("SLO", slo_id)
        return slo

    async def create_slo(self, dto: SLOCreateDTO) -> SLO:
        now = self._clock()
        data = dto.model_dump()
        data["service_id"] = str(dto.service_id) if dto.service_id else None

        slo = SLO(id=None, created_at=now, updated_at=now, **data)
        slo.refresh_flags()

        created = await self._repo.create(slo)
        logger.info(
            "SLO created",
            extra={"slo_id": created.id, "is_breaching": created.is_breaching,
                   "is_budget_exhausted": created.is_budget_exhausted}
        )
        return created

    async def update_slo(self, slo_id: str, dto: SLOUpdateDTO) -> SLO:
        current = await self.get_slo(slo_id)

        changes = dto.model_dump(exclude_unset=True)
        if "service_id" in changes and changes["service_id"] is not None:
            changes["service_id"] = str(changes["service_id"])

        merged = replace(current, updated_at=self._clock(), **changes)
        merged.refresh_flags()

        saved = await self._repo.save(merged)
        logger.info(
            "SLO updated",
            extra={"slo_id": slo_id, "fields": sorted(changes), "is_breaching": saved.is_breaching,
                   "is_budget_exhausted": saved.is_budget_exhausted}
        )
        return saved

    async def delete_slo(self, slo_id: str) -> None:
        if not await self._repo.delete(slo_id):
            raise ResourceNotFoundException("SLO", slo_id)
        logger.info("SLO deleted", extra={"slo_id": slo_id})


class HealthService:
    """Aggregate health score over the current state of the store."""

    def __init__(
        self,
        reader: IReliabilityReader,
        config_provider: IHealthConfigProvider,
        clock: Clock = utc_now,
    ):
        self._reader = reader
        self._config = config_provider
        self._clock = clock

    async def evaluate(self) -> HealthReport:
        """
        Compute the health report.

        A store that cannot be read yields an unhealthy report with score 0
        and the error message instead of raising.
        """
        database_ok = await self._reader.ping()
        try:
            snapshot = await self._reader.snapshot()
        except RepositoryException as e:
            logger.error("Health statistics unavailable", extra={"error": e.message})
            return HealthReport(
                status=OverallHealth.UNHEALTHY,
                score=0.0,
                timestamp=self._clock(),
                database_ok=database_ok,
                error=e.message,
            )

        config = self._config.get_config()
        score = HealthCalculator.calculate_score(snapshot, config.weights)
        status = HealthCalculator.classify(score, snapshot, config.thresholds)

        logger.info("Health evaluated", extra={"status": status.value, "score": round(score, 2)})
        return HealthReport(
            status=status,
            score=score,
            timestamp=self._clock(),
            database_ok=database_ok,
            snapshot=snapshot,
        )


class ReleaseValidationService:
    """
    Pre-release gate made of six independent checks.

    A check whose query fails is recorded as failed with the error text;
    the remaining checks still run. The run is read-only.
    """

    SERVICES_HEALTH = "Services Health"
    CRITICAL_ALERTS = "Critical Alerts"
    OPEN_INCIDENTS = "Open Incidents"
    SLO_HEALTH = "SLO Health"
    ERROR_RATES = "Error Rates"
    ERROR_LOGS = "Error Logs"

    def __init__(
        self,
        reader: IReliabilityReader,
        config_provider: IHealthConfigProvider,
        clock: Clock = utc_now,
    ):
        self._reader = reader
        self._config = config_provider
        self._clock = clock

    async def run(self, environment: str = "staging") -> ValidationReport:
        limits = self._config.get_config().validation
        now = self._clock()

        checks: List[ValidationCheck] = []
        plan: List[tuple] = [
            (self.SERVICES_HEALTH, "services", self._check_services),
            (self.CRITICAL_ALERTS, "alerts", self._check_critical_alerts),
            (self.OPEN_INCIDENTS, "incidents", self._check_open_incidents),
            (self.SLO_HEALTH, "SLOs", self._check_slos),
            (self.ERROR_RATES, "services", lambda: self._check_error_rates(limits.max_error_rate_percent)),
            (self.ERROR_LOGS, "logs", lambda: self._check_error_logs(
                now - timedelta(minutes=limits.error_log_window_minutes), limits.max_error_logs
            )),
        ]
        with log_latency(logger, "release_validation", environment=environment):
            for name, subject, check in plan:
                checks.append(await self._guarded(name, subject, check))

        report = ValidationReport(environment=environment, timestamp=now, checks=checks)
        logger.info(
            "Release validation complete",
            extra={"environment": environment, "passed": report.passed, **report.summary}
        )
        return report

    async def _guarded(
        self,
        name: str,
        subject: str,
        check: Callable[[], Awaitable[ValidationCheck]],
    ) -> ValidationCheck:
        try:
            return await check()
        except Exception as e:
            logger.warning("Validation check errored", extra={"check": name, "error": str(e)})
            return ValidationCheck.failed(name, f"Failed to fetch {subject}: {e}")

    async def _check_services(self) -> ValidationCheck:
        services = await self._reader.list_services()
        total = len(services)
        healthy = sum(1 for s in services if s.is_healthy)
        down = sum(1 for s in services if s.is_down)

        if total == 0:
            return ValidationCheck.warning(self.SERVICES_HEALTH, "No services configured", {"total": 0})
        if down > 0:
            return ValidationCheck.failed(
                self.SERVICES_HEALTH,
                f"{down} service(s) are down",
                {"total": total, "healthy": healthy, "down": down},
            )
        return ValidationCheck.passed(
            self.SERVICES_HEALTH,
            f"All {total} services are operational",
            {"total": total, "healthy": healthy},
        )

    async def _check_critical_alerts(self) -> ValidationCheck:
        titles = await self._reader.active_critical_alert_titles()
        if titles:
            return ValidationCheck.failed(
                self.CRITICAL_ALERTS,
                f"{len(titles)} critical alert(s) active",
                {"count": len(titles), "alerts": titles},
            )
        return ValidationCheck.passed(self.CRITICAL_ALERTS, "No critical alerts active")

    async def _check_open_incidents(self) -> ValidationCheck:
        titles = await self._reader.blocking_incident_titles()
        if titles:
            return ValidationCheck.failed(
                self.OPEN_INCIDENTS,
                f"{len(titles)} high/critical incident(s) open",
                {"count": len(titles), "incidents": titles},
            )
        return ValidationCheck.passed(self.OPEN_INCIDENTS, "No high-severity incidents open")

    async def _check_slos(self) -> ValidationCheck:
        slos = await self._reader.list_slos()
        total = len(slos)
        breaching = sum(1 for s in slos if s.is_breaching)
        exhausted = sum(1 for s in slos if s.is_budget_exhausted)

        if total == 0:
            return ValidationCheck.warning(self.SLO_HEALTH, "No SLOs configured", {"total": 0})
        if breaching > 0 or exhausted > 0:
            return ValidationCheck.failed(
                self.SLO_HEALTH,
                f"{breaching} SLO(s) breaching, {exhausted} budget(s) exhausted",
                {"total": total, "breaching": breaching, "exhausted": exhausted},
            )
        return ValidationCheck.passed(
            self.SLO_HEALTH, f"All {total} SLOs within targets", {"total": total}
        )

    async def _check_error_rates(self, limit_percent: float) -> ValidationCheck:
        services = await self._reader.list_services()
        offenders = [s for s in services if s.error_rate_exceeds(limit_percent)]
        if offenders:
            return ValidationCheck.failed(
                self.ERROR_RATES,
                f"{len(offenders)} service(s) with error rate > {limit_percent:g}%",
                {"services": [{"name": s.display_name, "rate": s.error_rate} for s in offenders]},
            )
        return ValidationCheck.passed(self.ERROR_RATES, "All services within acceptable error rates")

    async def _check_error_logs(self, since, limit: int) -> ValidationCheck:
        count = await self._reader.count_logs(LogLevel.ERROR, since)
        if count > limit:
            return ValidationCheck.warning(
                self.ERROR_LOGS, f"{count} error logs in the last hour", {"count": count}
            )
        return ValidationCheck.passed(
            self.ERROR_LOGS, f"Error log count within threshold ({count}/{limit})"
        )


class ActivityGeneratorService:
    """
    Seeds production-like activity for demos and smoke tests.

    Creates the default services when the catalog is empty, then spreads
    metric samples and logs over up to three existing services.
    """

    DEFAULT_SERVICES = [
        {"name": "api-gateway", "display_name": "API Gateway", "uptime": 99.95},
        {"name": "auth-service", "display_name": "Auth Service", "uptime": 99.99},
        {"name": "payment-service", "display_name": "Payment Service", "uptime": 99.90},
    ]
    METRIC_NAMES = ["cpu_usage", "memory_usage", "latency_p50"]
    LOG_LEVELS = [LogLevel.INFO, LogLevel.INFO, LogLevel.INFO, LogLevel.WARN, LogLevel.DEBUG]
    METRIC_COUNT = 10
    LOG_COUNT = 5
    MAX_TARGET_SERVICES = 3

    def __init__(
        self,
        service_repository: IServiceRepository,
        metric_repository: IMetricRepository,
        log_repository: ILogRepository,
        clock: Clock = utc_now,
        rng: Optional[random.Random] = None,
    ):
        self._services = service_repository
        self._metrics = metric_repository
        self._logs = log_repository
        self._clock = clock
        self._rng = rng or random.Random()

    async def generate(self) -> GeneratedCounts:
        now = self._clock()
        counts = GeneratedCounts()

        existing = await self._services.list_all()
        if not existing:
            for defaults in self.DEFAULT_SERVICES:
                await self._services.create(
                    Service(
                        id=None,
                        status=ServiceStatus.HEALTHY,
                        created_at=now,
                        updated_at=now,
                        **defaults,
                    )
                )
            counts.services = len(self.DEFAULT_SERVICES)
            existing = await self._services.list_all()

        service_ids = [s.id for s in existing[: self.MAX_TARGET_SERVICES]]

        samples = [
            MetricSample(
                id=None,
                service_id=self._rng.choice(service_ids),
                metric_name=self._rng.choice(self.METRIC_NAMES),
                value=self._rng.random() * 100,
                recorded_at=now - timedelta(minutes=i),
            )
            for i in range(self.METRIC_COUNT)
        ]
        counts.metrics = len(await self._metrics.add_many(samples))

        entries = [
            LogEntry(
                id=None,
                service_id=self._rng.choice(service_ids),
                level=self._rng.choice(self.LOG_LEVELS),
                message=f"Test activity generated at {now.isoformat()}",
                created_at=now,
            )
            for _ in range(self.LOG_COUNT)
        ]
        counts.logs = len(await self._logs.add_many(entries))

        logger.info("Test activity generated", extra=counts.model_dump())
        return counts
