from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

import pytest

from sre_dashboard.config import CheckStatus, LogLevel, ServiceStatus
from sre_dashboard.core import RepositoryException
from sre_dashboard.reliability.application import (
    IHealthConfigProvider,
    IReliabilityReader,
    ReleaseValidationService,
)
from sre_dashboard.reliability.domain import SLO, HealthConfig, HealthSnapshot
from sre_dashboard.telemetry.domain import Service

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class StaticConfig(IHealthConfigProvider):
    def __init__(self, config: Optional[HealthConfig] = None) -> None:
        self._config = config or HealthConfig()

    def get_config(self) -> HealthConfig:
        return self._config


class FakeReader(IReliabilityReader):
    def __init__(self) -> None:
        self.services: List[Service] = []
        self.critical_alerts: List[str] = []
        self.blocking_incidents: List[str] = []
        self.slos: List[SLO] = []
        self.error_logs = 0
        self.broken: set = set()
        self.log_queries: list = []

    async def ping(self) -> bool:
        return True

    async def snapshot(self) -> HealthSnapshot:
        return HealthSnapshot()

    async def list_services(self) -> List[Service]:
        if "services" in self.broken:
            raise RepositoryException("connection reset")
        return self.services

    async def active_critical_alert_titles(self) -> List[str]:
        if "alerts" in self.broken:
            raise RepositoryException("connection reset")
        return self.critical_alerts

    async def blocking_incident_titles(self) -> List[str]:
        return self.blocking_incidents

    async def list_slos(self) -> List[SLO]:
        return self.slos

    async def count_logs(self, level: LogLevel, since) -> int:
        self.log_queries.append((level, since))
        return self.error_logs


def _service(name: str, status: ServiceStatus = ServiceStatus.HEALTHY, error_rate: float = 0.0) -> Service:
    return Service(id=name, name=name, display_name=name.title(), status=status, error_rate=error_rate)


def _slo(name: str, current: float = 100.0, consumed: float = 0.0) -> SLO:
    slo = SLO(id=name, name=name, current_availability=current, error_budget_consumed=consumed)
    slo.refresh_flags()
    return slo


def _by_name(report):
    return {c.name: c for c in report.checks}


@pytest.mark.asyncio
async def test_empty_store_warns_but_passes() -> None:
    service = ReleaseValidationService(FakeReader(), StaticConfig(), clock=lambda: NOW)
    report = await service.run()

    checks = _by_name(report)
    assert [c.name for c in report.checks] == [
        "Services Health", "Critical Alerts", "Open Incidents", "SLO Health", "Error Rates", "Error Logs",
    ]
    assert checks["Services Health"].status == CheckStatus.WARNING
    assert checks["Services Health"].details == {"total": 0}
    assert checks["SLO Health"].status == CheckStatus.WARNING
    for name in ("Critical Alerts", "Open Incidents", "Error Rates", "Error Logs"):
        assert checks[name].status == CheckStatus.PASSED

    assert report.passed is True
    assert report.summary == {"total": 6, "passed": 4, "failed": 0, "warnings": 2}
    assert report.environment == "staging"
    assert report.timestamp == NOW


@pytest.mark.asyncio
async def test_down_service_fails_services_health() -> None:
    reader = FakeReader()
    reader.services = [_service("api"), _service("db", ServiceStatus.DOWN)]
    report = await ReleaseValidationService(reader, StaticConfig(), clock=lambda: NOW).run("production")

    check = _by_name(report)["Services Health"]
    assert check.status == CheckStatus.FAILED
    assert check.message == "1 service(s) are down"
    assert check.details == {"total": 2, "healthy": 1, "down": 1}
    assert report.passed is False
    assert report.environment == "production"


@pytest.mark.asyncio
async def test_blocking_findings_are_listed_by_title() -> None:
    reader = FakeReader()
    reader.services = [_service("api")]
    reader.critical_alerts = ["Disk full"]
    reader.blocking_incidents = ["Checkout down", "Login errors"]
    reader.slos = [_slo("ok"), _slo("bad", current=98.0), _slo("spent", consumed=0.5)]

    checks = _by_name(await ReleaseValidationService(reader, StaticConfig(), clock=lambda: NOW).run())

    assert checks["Critical Alerts"].details == {"count": 1, "alerts": ["Disk full"]}
    assert checks["Open Incidents"].message == "2 high/critical incident(s) open"
    assert checks["SLO Health"].status == CheckStatus.FAILED
    assert checks["SLO Health"].details == {"total": 3, "breaching": 1, "exhausted": 1}


@pytest.mark.asyncio
async def test_error_rate_uses_display_names() -> None:
    reader = FakeReader()
    reader.services = [_service("api", error_rate=7.5), _service("auth", error_rate=5.0)]

    check = _by_name(await ReleaseValidationService(reader, StaticConfig(), clock=lambda: NOW).run())["Error Rates"]

    assert check.status == CheckStatus.FAILED
    assert check.details == {"services": [{"name": "Api", "rate": 7.5}]}


@pytest.mark.asyncio
async def test_error_logs_over_limit_only_warn() -> None:
    reader = FakeReader()
    reader.services = [_service("api")]
    reader.slos = [_slo("ok")]
    reader.error_logs = 51

    report = await ReleaseValidationService(reader, StaticConfig(), clock=lambda: NOW).run()
    check = _by_name(report)["Error Logs"]

    assert check.status == CheckStatus.WARNING
    assert check.details == {"count": 51}
    assert report.passed is True
    level, since = reader.log_queries[0]
    assert level == LogLevel.ERROR
    assert (NOW - since).total_seconds() == 3600


@pytest.mark.asyncio
async def test_a_failing_query_fails_only_its_check() -> None:
    reader = FakeReader()
    reader.broken = {"alerts"}

    report = await ReleaseValidationService(reader, StaticConfig(), clock=lambda: NOW).run()
    checks = _by_name(report)

    assert checks["Critical Alerts"].status == CheckStatus.FAILED
    assert "connection reset" in checks["Critical Alerts"].message
    assert checks["Open Incidents"].status == CheckStatus.PASSED
    assert report.summary["total"] == 6
    assert report.passed is False


@pytest.mark.asyncio
async def test_limits_come_from_config() -> None:
    reader = FakeReader()
    reader.services = [_service("api", error_rate=3.0)]
    config = HealthConfig(validation={"max_error_rate_percent": 2, "max_error_logs": 0})
    reader.error_logs = 1

    checks = _by_name(await ReleaseValidationService(reader, StaticConfig(config), clock=lambda: NOW).run())

    assert checks["Error Rates"].status == CheckStatus.FAILED
    assert checks["Error Logs"].status == CheckStatus.WARNING


@pytest.mark.asyncio
async def test_summary_counts_add_up() -> None:
    reader = FakeReader()
    reader.services = [_service("api", ServiceStatus.DOWN)]
    reader.critical_alerts = ["x"]
    report = await ReleaseValidationService(reader, StaticConfig(), clock=lambda: NOW).run()

    summary = report.summary
    assert summary["total"] == summary["passed"] + summary["failed"] + summary["warnings"]
    assert report.passed == (summary["failed"] == 0)
