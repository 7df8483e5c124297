from __future__ import annotations

import pytest


async def _open(client, **fields) -> dict:
    payload = {"title": "Checkout failures", "severity": "HIGH"}
    payload.update(fields)
    response = await client.post("/incidents", json=payload)
    assert response.status_code == 201
    return response.json()


async def _events(client, incident_id: str) -> list:
    response = await client.get(f"/incidents/{incident_id}/events")
    assert response.status_code == 200
    return response.json()


@pytest.mark.asyncio
async def test_new_incident_has_one_triggered_event(client) -> None:
    incident = await _open(client)
    assert incident["status"] == "OPEN"
    assert incident["incident_number"] == "INC-20240601-001"

    events = await _events(client, incident["id"])
    assert len(events) == 1
    assert events[0]["event_type"] == "triggered"
    assert events[0]["message"] == "Incident created: Checkout failures"


@pytest.mark.asyncio
async def test_numbers_follow_a_daily_sequence(client, clock) -> None:
    first = await _open(client)
    second = await _open(client, title="Second")
    assert second["incident_number"] == "INC-20240601-002"

    await client.delete(f"/incidents/{first['id']}")
    third = await _open(client, title="Third")
    assert third["incident_number"] == "INC-20240601-003"

    clock.advance(days=1)
    next_day = await _open(client, title="Tomorrow")
    assert next_day["incident_number"] == "INC-20240602-001"


@pytest.mark.asyncio
async def test_full_lifecycle_writes_one_event_per_transition(client, clock) -> None:
    incident = await _open(client)

    clock.advance(minutes=5)
    acked = (await client.post(f"/incidents/{incident['id']}/acknowledge")).json()
    assert acked["status"] == "ONGOING"
    assert acked["acknowledged_at"] is not None

    clock.advance(minutes=1)
    repeat = await client.post(f"/incidents/{incident['id']}/acknowledge")
    assert repeat.status_code == 200
    assert repeat.json()["acknowledged_at"] == acked["acknowledged_at"]

    clock.advance(minutes=30)
    resolved = (await client.post(f"/incidents/{incident['id']}/resolve")).json()
    assert resolved["status"] == "RESOLVED"

    clock.advance(minutes=1)
    again = await client.post(f"/incidents/{incident['id']}/resolve")
    assert again.status_code == 200
    assert again.json()["resolved_at"] == resolved["resolved_at"]

    events = await _events(client, incident["id"])
    assert [e["event_type"] for e in events] == ["triggered", "acknowledged", "resolved"]


@pytest.mark.asyncio
async def test_open_incident_resolves_directly(client) -> None:
    incident = await _open(client)
    resolved = (await client.post(f"/incidents/{incident['id']}/resolve")).json()
    assert resolved["status"] == "RESOLVED"
    assert resolved["acknowledged_at"] is None


@pytest.mark.asyncio
async def test_resolved_incident_cannot_be_reopened(client) -> None:
    incident = await _open(client)
    await client.post(f"/incidents/{incident['id']}/resolve")

    response = await client.post(f"/incidents/{incident['id']}/acknowledge")
    assert response.status_code == 409

    fetched = (await client.get("/incidents")).json()[0]
    assert fetched["status"] == "RESOLVED"


@pytest.mark.asyncio
async def test_status_is_not_writable_through_update(client) -> None:
    incident = await _open(client)

    response = await client.patch(f"/incidents/{incident['id']}", json={"status": "RESOLVED"})
    assert response.status_code == 422

    updated = await client.patch(f"/incidents/{incident['id']}", json={"severity": "CRITICAL", "title": "Worse"})
    assert updated.status_code == 200
    assert updated.json()["severity"] == "CRITICAL"
    assert updated.json()["title"] == "Worse"
    assert updated.json()["status"] == "OPEN"


@pytest.mark.asyncio
async def test_manual_events(client, clock) -> None:
    incident = await _open(client)

    clock.advance(minutes=1)
    comment = await client.post(
        f"/incidents/{incident['id']}/events",
        json={"message": "Rolling back deploy", "author_id": "oncall"},
    )
    assert comment.status_code == 201
    assert comment.json()["event_type"] == "comment"

    clock.advance(minutes=1)
    escalated = await client.post(
        f"/incidents/{incident['id']}/events",
        json={"event_type": "escalated", "message": "Paging database team"},
    )
    assert escalated.status_code == 201

    forged = await client.post(
        f"/incidents/{incident['id']}/events",
        json={"event_type": "resolved", "message": "done"},
    )
    assert forged.status_code == 422

    events = await _events(client, incident["id"])
    assert [e["event_type"] for e in events] == ["triggered", "comment", "escalated"]


@pytest.mark.asyncio
async def test_delete_removes_incident_and_events(client) -> None:
    incident = await _open(client)
    await client.post(f"/incidents/{incident['id']}/events", json={"message": "note"})

    assert (await client.delete(f"/incidents/{incident['id']}")).json() == {"success": True}
    assert (await client.get(f"/incidents/{incident['id']}/events")).status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("method", "suffix"),
    [
        ("post", "/acknowledge"),
        ("post", "/resolve"),
        ("get", "/events"),
        ("delete", ""),
    ],
)
async def test_missing_incident_is_not_found(client, method: str, suffix: str) -> None:
    url = f"/incidents/00000000-0000-0000-0000-000000000000{suffix}"
    response = await getattr(client, method)(url)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_incident_filters(client, clock) -> None:
    low = await _open(client, title="Low", severity="LOW")
    clock.advance(minutes=1)
    await _open(client, title="Critical", severity="CRITICAL")
    await client.post(f"/incidents/{low['id']}/resolve")

    assert [i["title"] for i in (await client.get("/incidents")).json()] == ["Critical", "Low"]
    assert [i["title"] for i in (await client.get("/incidents", params={"status": "RESOLVED"})).json()] == ["Low"]
    assert [i["title"] for i in (await client.get("/incidents", params={"severity": "CRITICAL"})).json()] == ["Critical"]


@pytest.mark.asyncio
async def test_open_and_resolve_are_published(client, notifier) -> None:
    incident = await _open(client)
    await client.post(f"/incidents/{incident['id']}/acknowledge")
    await client.post(f"/incidents/{incident['id']}/resolve")

    assert notifier.incidents == [
        ("INC-20240601-001", "opened"),
        ("INC-20240601-001", "resolved"),
    ]


@pytest.mark.asyncio
async def test_events_in_the_same_instant_keep_insertion_order(client) -> None:
    incident = await _open(client)
    await client.post(f"/incidents/{incident['id']}/events", json={"message": "first note"})
    await client.post(
        f"/incidents/{incident['id']}/events",
        json={"event_type": "escalated", "message": "paging"},
    )
    await client.post(f"/incidents/{incident['id']}/acknowledge")
    await client.post(f"/incidents/{incident['id']}/resolve")

    events = await _events(client, incident["id"])
    assert len({e["created_at"] for e in events}) == 1
    assert [e["event_type"] for e in events] == ["triggered", "comment", "escalated", "acknowledged", "resolved"]
