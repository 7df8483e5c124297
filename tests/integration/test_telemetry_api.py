from __future__ import annotations

import pytest


@pytest.mark.asyncio
async def test_logs_accept_object_or_array(client, clock) -> None:
    single = await client.post("/logs", json={"message": "started", "metadata": {"pod": "api-1"}})
    assert single.status_code == 201
    assert len(single.json()) == 1
    assert single.json()[0]["level"] == "INFO"
    assert single.json()[0]["metadata"] == {"pod": "api-1"}

    clock.advance(minutes=1)
    batch = await client.post(
        "/logs",
        json=[{"level": "ERROR", "message": "boom"}, {"level": "WARN", "message": "slow"}],
    )
    assert batch.status_code == 201
    assert len(batch.json()) == 2

    listed = (await client.get("/logs")).json()
    assert len(listed) == 3
    assert listed[-1]["message"] == "started"


@pytest.mark.asyncio
async def test_log_filters(client, clock) -> None:
    service = (await client.post("/services", json={"name": "api"})).json()
    await client.post("/logs", json={"level": "ERROR", "message": "old", "service_id": service["id"]})
    clock.advance(hours=2)
    await client.post("/logs", json={"level": "ERROR", "message": "new", "service_id": service["id"]})
    await client.post("/logs", json={"level": "INFO", "message": "unrelated"})

    errors = (await client.get("/logs", params={"level": "error"})).json()
    assert {e["message"] for e in errors} == {"old", "new"}

    recent = (await client.get("/logs", params={"since": "2024-06-01T13:00:00Z"})).json()
    assert {e["message"] for e in recent} == {"new", "unrelated"}

    by_service = (await client.get("/logs", params={"service_id": service["id"]})).json()
    assert [e["message"] for e in by_service] == ["new", "old"]

    capped = (await client.get("/logs", params={"limit": 1})).json()
    assert len(capped) == 1


@pytest.mark.asyncio
async def test_unknown_log_level_is_rejected(client) -> None:
    response = await client.get("/logs", params={"level": "FATAL"})
    assert response.status_code == 400
    assert response.json()["field"] == "level"


@pytest.mark.asyncio
async def test_limit_is_bounded(client) -> None:
    assert (await client.get("/logs", params={"limit": 1001})).status_code == 422
    assert (await client.get("/metrics", params={"limit": 0})).status_code == 422


@pytest.mark.asyncio
async def test_clearing_logs_reports_count(client) -> None:
    await client.post("/logs", json=[{"message": "a"}, {"message": "b"}])

    response = await client.delete("/logs")
    assert response.status_code == 200
    assert response.json() == {"success": True, "deleted": 2}
    assert (await client.get("/logs")).json() == []


@pytest.mark.asyncio
async def test_metrics_listing_and_filters(client, clock) -> None:
    await client.post("/metrics", json={"metric_name": "cpu_usage", "value": 41.5, "unit": "%"})
    clock.advance(minutes=5)
    await client.post(
        "/metrics",
        json=[
            {"metric_name": "cpu_usage", "value": 55.0},
            {"metric_name": "memory_usage", "value": 70.0},
        ],
    )

    newest_first = (await client.get("/metrics")).json()
    assert len(newest_first) == 3
    assert newest_first[-1]["value"] == 41.5

    cpu = (await client.get("/metrics", params={"metric_name": "cpu_usage"})).json()
    assert [m["value"] for m in cpu] == [55.0, 41.5]


@pytest.mark.asyncio
async def test_explicit_recorded_at_is_kept(client) -> None:
    response = await client.post(
        "/metrics",
        json={"metric_name": "latency_p50", "value": 12, "recorded_at": "2024-06-01T10:30:00Z"},
    )
    assert response.json()[0]["recorded_at"].startswith("2024-06-01T10:30:00")


@pytest.mark.asyncio
async def test_metric_series_grouped_and_ascending(client, clock) -> None:
    await client.post("/metrics", json={"metric_name": "cpu_usage", "value": 10, "unit": "%"})
    clock.advance(minutes=1)
    await client.post("/metrics", json={"metric_name": "cpu_usage", "value": 20})
    await client.post("/metrics", json={"metric_name": "memory_usage", "value": 60})
    await client.post(
        "/metrics",
        json={"metric_name": "cpu_usage", "value": 99, "recorded_at": "2024-05-30T12:00:00Z"},
    )

    series = (await client.get("/metrics/series")).json()
    by_name = {s["name"]: s for s in series}

    assert set(by_name) == {"cpu_usage", "memory_usage"}
    assert [p["value"] for p in by_name["cpu_usage"]["data"]] == [10, 20]
    assert by_name["cpu_usage"]["unit"] == "%"

    wide = (await client.get("/metrics/series", params={"hours": 72, "metric_name": "cpu_usage"})).json()
    assert [p["value"] for p in wide[0]["data"]] == [99, 10, 20]


@pytest.mark.asyncio
async def test_clearing_metrics(client) -> None:
    await client.post("/metrics", json={"metric_name": "rps", "value": 1})
    assert (await client.delete("/metrics")).json()["deleted"] == 1
