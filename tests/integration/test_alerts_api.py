from __future__ import annotations

import pytest


async def _fire(client, **fields) -> dict:
    payload = {"name": "High latency", "severity": "WARNING"}
    payload.update(fields)
    response = await client.post("/alerts", json=payload)
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_fired_alert_is_active_and_titled_from_name(client) -> None:
    alert = await _fire(client)
    assert alert["title"] == "High latency"
    assert alert["is_active"] is True
    assert alert["is_effectively_active"] is True
    assert alert["fired_at"].startswith("2024-06-01T12:00:00")


@pytest.mark.asyncio
async def test_title_or_name_is_required(client) -> None:
    response = await client.post("/alerts", json={"severity": "INFO"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_acknowledge_keeps_active_but_drops_effective_count(client, clock) -> None:
    alert = await _fire(client)

    clock.advance(minutes=2)
    acked = (await client.post(f"/alerts/{alert['id']}/acknowledge")).json()
    assert acked["is_active"] is True
    assert acked["is_effectively_active"] is False
    first_ack = acked["acknowledged_at"]

    clock.advance(minutes=2)
    again = (await client.post(f"/alerts/{alert['id']}/acknowledge")).json()
    assert again["acknowledged_at"] == first_ack

    stats = (await client.get("/alerts/stats")).json()
    assert stats["active"] == 1
    assert stats["acknowledged"] == 1
    assert stats["effectively_active"] == 0


@pytest.mark.asyncio
async def test_silence_lapses_on_the_clock(client, clock) -> None:
    alert = await _fire(client, severity="CRITICAL")

    silenced = await client.post(f"/alerts/{alert['id']}/silence", json={"duration_minutes": 60})
    assert silenced.status_code == 200
    assert silenced.json()["is_silenced"] is True

    stats = (await client.get("/alerts/stats")).json()
    assert stats["effectively_active"] == 0
    assert stats["silenced"] == 1
    assert stats["by_severity"]["CRITICAL"] == 0

    clock.advance(minutes=61)
    stats = (await client.get("/alerts/stats")).json()
    assert stats["effectively_active"] == 1
    assert stats["silenced"] == 0
    assert stats["by_severity"] == {"INFO": 0, "WARNING": 0, "CRITICAL": 1}

    listed = (await client.get("/alerts")).json()
    assert listed[0]["is_silenced"] is False
    assert listed[0]["is_effectively_active"] is True


@pytest.mark.asyncio
async def test_silence_defaults_to_an_hour(client) -> None:
    alert = await _fire(client)
    silenced = (await client.post(f"/alerts/{alert['id']}/silence")).json()
    assert silenced["silenced_until"].startswith("2024-06-01T13:00:00")


@pytest.mark.asyncio
async def test_silence_duration_is_bounded(client) -> None:
    alert = await _fire(client)
    response = await client.post(f"/alerts/{alert['id']}/silence", json={"duration_minutes": 0})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_resolved_alert_cannot_be_acknowledged_or_silenced(client) -> None:
    alert = await _fire(client)
    resolved = (await client.post(f"/alerts/{alert['id']}/resolve")).json()
    assert resolved["is_active"] is False
    assert resolved["resolved_at"] is not None

    repeat = await client.post(f"/alerts/{alert['id']}/resolve")
    assert repeat.status_code == 200
    assert repeat.json()["resolved_at"] == resolved["resolved_at"]

    assert (await client.post(f"/alerts/{alert['id']}/acknowledge")).status_code == 409
    assert (await client.post(f"/alerts/{alert['id']}/silence")).status_code == 409


@pytest.mark.asyncio
async def test_update_edits_descriptive_fields_only(client) -> None:
    alert = await _fire(client)

    updated = await client.patch(f"/alerts/{alert['id']}", json={"severity": "CRITICAL", "threshold": 500})
    assert updated.status_code == 200
    assert updated.json()["severity"] == "CRITICAL"
    assert updated.json()["threshold"] == 500

    lifecycle = await client.patch(f"/alerts/{alert['id']}", json={"is_active": False})
    assert lifecycle.status_code == 422


@pytest.mark.asyncio
async def test_alert_filters(client, clock) -> None:
    service = (await client.post("/services", json={"name": "api"})).json()
    await _fire(client, name="cpu", severity="CRITICAL", service_id=service["id"])
    clock.advance(minutes=1)
    second = await _fire(client, name="disk", severity="WARNING")
    await client.post(f"/alerts/{second['id']}/resolve")

    assert [a["title"] for a in (await client.get("/alerts")).json()] == ["disk", "cpu"]
    assert [a["title"] for a in (await client.get("/alerts", params={"severity": "CRITICAL"})).json()] == ["cpu"]
    assert [a["title"] for a in (await client.get("/alerts", params={"is_active": "false"})).json()] == ["disk"]
    assert [a["title"] for a in (await client.get("/alerts", params={"service_id": service["id"]})).json()] == ["cpu"]


@pytest.mark.asyncio
async def test_deleted_alert_is_gone(client) -> None:
    alert = await _fire(client)
    assert (await client.delete(f"/alerts/{alert['id']}")).json() == {"success": True}
    assert (await client.post(f"/alerts/{alert['id']}/acknowledge")).status_code == 404
    assert (await client.delete(f"/alerts/{alert['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_deleting_service_detaches_its_alerts(client) -> None:
    service = (await client.post("/services", json={"name": "api"})).json()
    alert = await _fire(client, service_id=service["id"])

    await client.delete(f"/services/{service['id']}")

    listed = (await client.get("/alerts")).json()
    assert listed[0]["id"] == alert["id"]
    assert listed[0]["service_id"] is None


@pytest.mark.asyncio
async def test_only_critical_alerts_are_published(client, notifier) -> None:
    await _fire(client, name="noisy", severity="WARNING")
    await _fire(client, name="page me", severity="CRITICAL")

    assert notifier.alerts == ["page me"]
