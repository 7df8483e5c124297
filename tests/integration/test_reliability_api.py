from __future__ import annotations

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from sre_dashboard.config import CheckStatus
from sre_dashboard.core import RepositoryException
from sre_dashboard.infrastructure.database import get_engine
from sre_dashboard.reliability.application import HealthService, ReleaseValidationService
from sre_dashboard.reliability.infrastructure import HealthConfigManager, SQLAlchemyReliabilityReader
from sre_dashboard.reliability.interfaces.controllers import get_health_service
from tests.unit.test_release_validation import FakeReader


class UnreadableStore(FakeReader):
    async def ping(self) -> bool:
        return False

    async def snapshot(self):
        raise RepositoryException("Failed to read health statistics: no such table: services")


# ========== SLOs ==========

@pytest.mark.asyncio
async def test_slo_flags_are_derived_on_create(client) -> None:
    response = await client.post(
        "/slos",
        json={"name": "checkout", "target_availability": 99.9, "current_availability": 99.5,
              "error_budget_total": 0.1, "error_budget_consumed": 0.1},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["is_breaching"] is True
    assert body["is_budget_exhausted"] is True
    assert body["error_budget_remaining"] == 0.0
    assert body["period"] == "30d"


@pytest.mark.asyncio
async def test_slo_flags_cannot_be_sent(client) -> None:
    response = await client.post("/slos", json={"name": "checkout", "is_breaching": False})
    assert response.status_code == 422

    created = (await client.post("/slos", json={"name": "checkout"})).json()
    patch = await client.patch(f"/slos/{created['id']}", json={"is_budget_exhausted": True})
    assert patch.status_code == 422


@pytest.mark.asyncio
async def test_slo_update_recomputes_from_merged_values(client) -> None:
    slo = (await client.post("/slos", json={"name": "auth", "target_availability": 99.0})).json()
    assert slo["is_breaching"] is False

    breaching = (await client.patch(f"/slos/{slo['id']}", json={"current_availability": 98.5})).json()
    assert breaching["is_breaching"] is True
    assert breaching["target_availability"] == 99.0

    relaxed = (await client.patch(f"/slos/{slo['id']}", json={"target_availability": 98.0})).json()
    assert relaxed["is_breaching"] is False
    assert relaxed["current_availability"] == 98.5

    spent = (await client.patch(f"/slos/{slo['id']}", json={"error_budget_consumed": 0.5})).json()
    assert spent["is_budget_exhausted"] is True


@pytest.mark.asyncio
async def test_slo_listing_filters_and_order(client, clock) -> None:
    service = (await client.post("/services", json={"name": "api"})).json()
    await client.post("/slos", json={"name": "older", "service_id": service["id"]})
    clock.advance(minutes=1)
    await client.post("/slos", json={"name": "newer", "current_availability": 90})

    assert [s["name"] for s in (await client.get("/slos")).json()] == ["newer", "older"]
    assert [s["name"] for s in (await client.get("/slos", params={"breaching": "true"})).json()] == ["newer"]
    assert [s["name"] for s in (await client.get("/slos", params={"breaching": "false"})).json()] == ["older"]
    assert [s["name"] for s in (await client.get("/slos", params={"service_id": service["id"]})).json()] == ["older"]


@pytest.mark.asyncio
async def test_slo_delete_and_missing(client) -> None:
    slo = (await client.post("/slos", json={"name": "gone"})).json()
    assert (await client.delete(f"/slos/{slo['id']}")).json() == {"success": True}
    assert (await client.delete(f"/slos/{slo['id']}")).status_code == 404
    assert (await client.patch(f"/slos/{slo['id']}", json={"name": "x"})).status_code == 404


# ========== Health ==========

@pytest.mark.asyncio
async def test_health_of_empty_store(client) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["score"] == 100
    assert body["components"] == {"database": True, "api": True}
    assert body["stats"]["services"] == {"total": 0, "healthy": 0, "degraded": 0, "down": 0}
    assert body["timestamp"].startswith("2024-06-01T12:00:00")


@pytest.mark.asyncio
async def test_one_of_two_services_down(client) -> None:
    await client.post("/services", json={"name": "api"})
    await client.post("/services", json={"name": "db", "status": "down"})

    body = (await client.get("/health")).json()
    assert body["score"] == 80
    assert body["status"] == "unhealthy"
    assert body["stats"]["services"] == {"total": 2, "healthy": 1, "degraded": 0, "down": 1}


@pytest.mark.asyncio
async def test_half_point_score_rounds_up(client) -> None:
    await client.post("/services", json={"name": "api"})
    await client.post("/services", json={"name": "db", "status": "degraded"})

    body = (await client.get("/health")).json()
    # 100 - 15 * (1 / 2) = 92.5
    assert body["score"] == 93
    assert body["status"] == "healthy"


@pytest.mark.asyncio
async def test_health_counts_only_active_alerts_and_open_incidents(client) -> None:
    critical = (await client.post("/alerts", json={"name": "cpu", "severity": "CRITICAL"})).json()
    await client.post("/alerts", json={"name": "disk", "severity": "WARNING"})
    await client.post(f"/alerts/{critical['id']}/resolve")

    incident = (await client.post("/incidents", json={"title": "outage", "severity": "CRITICAL"})).json()
    await client.post("/incidents", json={"title": "minor", "severity": "LOW"})
    await client.post(f"/incidents/{incident['id']}/resolve")

    await client.post("/slos", json={"name": "breaching", "current_availability": 95})

    body = (await client.get("/health")).json()
    assert body["stats"]["alerts"] == {"total": 2, "active": 1, "critical": 0, "warning": 1}
    assert body["stats"]["incidents"] == {"total": 2, "open": 1, "critical": 0}
    assert body["stats"]["slos"] == {"total": 1, "breaching": 1, "budget_exhausted": 0}
    # 100 - 3 (warning) - 5 (open incident) - 8 (breaching SLO)
    assert body["score"] == 84
    assert body["status"] == "degraded"


@pytest.mark.asyncio
async def test_health_weights_come_from_config(app, client, tmp_path) -> None:
    path = tmp_path / "health_config.yaml"
    path.write_text("weights:\n  warning_alert: 50\n")
    manager = HealthConfigManager()
    manager.load(path)
    app.state.health_config = manager

    await client.post("/alerts", json={"name": "disk", "severity": "WARNING"})

    body = (await client.get("/health")).json()
    assert body["score"] == 50
    assert body["status"] == "degraded"


@pytest.mark.asyncio
async def test_unreadable_statistics_answer_500(app, client, clock) -> None:
    app.dependency_overrides[get_health_service] = lambda: HealthService(
        UnreadableStore(), HealthConfigManager(), clock=clock
    )

    response = await client.get("/health")
    assert response.status_code == 500
    body = response.json()
    assert body["status"] == "unhealthy"
    assert body["score"] == 0
    assert "no such table" in body["error"]
    assert "timestamp" in body


# ========== Release validation ==========

@pytest.mark.asyncio
async def test_validation_of_empty_store(client) -> None:
    response = await client.post("/release-validation/run")
    assert response.status_code == 200
    body = response.json()
    assert body["passed"] is True
    assert body["environment"] == "staging"
    assert body["summary"] == {"total": 6, "passed": 4, "failed": 0, "warnings": 2}
    statuses = {c["name"]: c["status"] for c in body["checks"]}
    assert statuses["Services Health"] == "warning"
    assert statuses["SLO Health"] == "warning"


@pytest.mark.asyncio
async def test_validation_blocks_on_down_service(client) -> None:
    await client.post("/services", json={"name": "api"})
    await client.post("/services", json={"name": "db", "status": "down", "error_rate": 12.5})

    body = (await client.post("/release-validation/run", json={"environment": "production"})).json()
    checks = {c["name"]: c for c in body["checks"]}

    assert body["passed"] is False
    assert body["environment"] == "production"
    assert checks["Services Health"]["details"]["down"] == 1
    assert checks["Error Rates"]["details"] == {"services": [{"name": "db", "rate": 12.5}]}


@pytest.mark.asyncio
async def test_validation_sees_critical_alerts_and_blocking_incidents(client) -> None:
    await client.post("/alerts", json={"title": "Disk full", "severity": "CRITICAL"})
    await client.post("/incidents", json={"title": "Checkout down", "severity": "HIGH"})
    await client.post("/incidents", json={"title": "Typo on page", "severity": "LOW"})

    body = (await client.post("/release-validation/run")).json()
    checks = {c["name"]: c for c in body["checks"]}

    assert checks["Critical Alerts"]["details"] == {"count": 1, "alerts": ["Disk full"]}
    assert checks["Open Incidents"]["details"] == {"count": 1, "incidents": ["Checkout down"]}


@pytest.mark.asyncio
async def test_validation_counts_recent_error_logs(client, clock) -> None:
    await client.post("/logs", json=[{"level": "ERROR", "message": f"e{i}"} for i in range(51)])

    body = (await client.post("/release-validation/run")).json()
    error_logs = next(c for c in body["checks"] if c["name"] == "Error Logs")
    assert error_logs["status"] == "warning"
    assert error_logs["details"] == {"count": 51}

    clock.advance(minutes=61)
    body = (await client.post("/release-validation/run")).json()
    error_logs = next(c for c in body["checks"] if c["name"] == "Error Logs")
    assert error_logs["status"] == "passed"


@pytest.mark.asyncio
async def test_validation_is_read_only(client) -> None:
    await client.post("/services", json={"name": "api"})
    first = (await client.post("/release-validation/run")).json()
    second = (await client.post("/release-validation/run")).json()
    assert first["checks"] == second["checks"]
    assert len((await client.get("/services")).json()) == 1


@pytest.mark.asyncio
async def test_failed_check_leaves_later_checks_readable(client, clock) -> None:
    await client.post("/services", json={"name": "api"})

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.execute(text("DROP TABLE slos"))

    async with AsyncSession(engine) as session:
        service = ReleaseValidationService(SQLAlchemyReliabilityReader(session), HealthConfigManager(), clock=clock)
        report = await service.run()

    checks = {c.name: c for c in report.checks}
    assert checks["SLO Health"].status == CheckStatus.FAILED
    assert checks["SLO Health"].message.startswith("Failed to fetch SLOs")
    assert checks["Error Rates"].status == CheckStatus.PASSED
    assert checks["Error Logs"].status == CheckStatus.PASSED
    assert checks["Services Health"].status == CheckStatus.PASSED
    assert report.passed is False


# ========== Test activity ==========

@pytest.mark.asyncio
async def test_activity_seeds_default_services(client) -> None:
    response = await client.post("/release-validation/test-activity")
    assert response.status_code == 200
    body = response.json()
    assert body == {
        "success": True,
        "generated": {"services": 3, "metrics": 10, "logs": 5, "alerts": 0, "incidents": 0},
    }

    names = [s["name"] for s in (await client.get("/services")).json()]
    assert names == ["api-gateway", "auth-service", "payment-service"]
    assert len((await client.get("/metrics")).json()) == 10
    assert len((await client.get("/logs")).json()) == 5


@pytest.mark.asyncio
async def test_activity_reuses_existing_services(client) -> None:
    service = (await client.post("/services", json={"name": "only-one"})).json()

    body = (await client.post("/release-validation/test-activity")).json()
    assert body["generated"]["services"] == 0

    metrics = (await client.get("/metrics")).json()
    assert {m["service_id"] for m in metrics} == {service["id"]}
