from __future__ import annotations

import json
from datetime import datetime, timezone

import httpx
import pytest

from sre_dashboard.alerting.domain import Alert, Incident
from sre_dashboard.alerting.infrastructure import SlackNotifier
from sre_dashboard.config import AlertSeverity, IncidentSeverity

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
WEBHOOK = "https://hooks.slack.example/services/T000/B000/XXXX"


def _alert() -> Alert:
    return Alert(
        id="a1",
        title="Disk full",
        fired_at=NOW,
        severity=AlertSeverity.CRITICAL,
        metric_name="disk_usage",
        threshold=90,
        current_value=97,
    )


@pytest.mark.asyncio
async def test_alert_message_is_posted_once() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(json.loads(request.content))
        return httpx.Response(200, text="ok")

    notifier = SlackNotifier(webhook_url=WEBHOOK, channel="#ops", transport=httpx.MockTransport(handler))
    try:
        assert await notifier.alert_fired(_alert()) is True
    finally:
        await notifier.close()

    assert len(calls) == 1
    payload = calls[0]
    assert payload["channel"] == "#ops"
    assert payload["text"] == "[CRITICAL] Disk full"
    assert payload["blocks"][0]["type"] == "header"


@pytest.mark.asyncio
async def test_incident_message_names_the_action() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(json.loads(request.content))
        return httpx.Response(200)

    incident = Incident(
        id="i1",
        incident_number="INC-20240601-001",
        title="Checkout down",
        started_at=NOW,
        severity=IncidentSeverity.HIGH,
    )
    notifier = SlackNotifier(webhook_url=WEBHOOK, transport=httpx.MockTransport(handler))
    try:
        assert await notifier.incident_changed(incident, "resolved") is True
    finally:
        await notifier.close()

    assert calls[0]["text"] == "Incident resolved: INC-20240601-001"


@pytest.mark.asyncio
async def test_non_200_is_reported_without_retry() -> None:
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        return httpx.Response(500)

    notifier = SlackNotifier(webhook_url=WEBHOOK, transport=httpx.MockTransport(handler))
    try:
        assert await notifier.alert_fired(_alert()) is False
    finally:
        await notifier.close()

    assert len(attempts) == 1


@pytest.mark.asyncio
async def test_transport_errors_are_swallowed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    notifier = SlackNotifier(webhook_url=WEBHOOK, transport=httpx.MockTransport(handler))
    try:
        assert await notifier.alert_fired(_alert()) is False
    finally:
        await notifier.close()


@pytest.mark.asyncio
async def test_disabled_without_webhook() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    notifier = SlackNotifier(webhook_url="", transport=httpx.MockTransport(handler))
    assert notifier.enabled is False
    assert await notifier.alert_fired(_alert()) is False
