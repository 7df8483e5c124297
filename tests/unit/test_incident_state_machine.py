from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from sre_dashboard.alerting.domain import Incident, IncidentNumberGenerator, IncidentStateMachine
from sre_dashboard.config import IncidentEventType, IncidentStatus
from sre_dashboard.core import InvalidStateTransitionException

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _incident(status: IncidentStatus = IncidentStatus.OPEN) -> Incident:
    return Incident(
        id="i1",
        incident_number="INC-20240601-001",
        title="Checkout failures",
        started_at=NOW,
        status=status,
    )


def test_triggered_event_names_the_incident() -> None:
    event = IncidentStateMachine.triggered(_incident())
    assert event.event_type == IncidentEventType.TRIGGERED
    assert event.message == "Incident created: Checkout failures"
    assert event.incident_id == "i1"


def test_acknowledge_moves_open_to_ongoing() -> None:
    incident = _incident()
    later = NOW + timedelta(minutes=3)

    event = IncidentStateMachine.acknowledge(incident, later)

    assert incident.status == IncidentStatus.ONGOING
    assert incident.acknowledged_at == later
    assert event is not None
    assert event.event_type == IncidentEventType.ACKNOWLEDGED
    assert event.message == "Incident acknowledged"


def test_acknowledge_on_ongoing_is_a_no_op() -> None:
    incident = _incident(IncidentStatus.ONGOING)
    assert IncidentStateMachine.acknowledge(incident, NOW) is None
    assert incident.status == IncidentStatus.ONGOING
    assert incident.acknowledged_at is None


def test_acknowledge_on_resolved_is_rejected() -> None:
    incident = _incident(IncidentStatus.RESOLVED)
    with pytest.raises(InvalidStateTransitionException):
        IncidentStateMachine.acknowledge(incident, NOW)
    assert incident.status == IncidentStatus.RESOLVED


@pytest.mark.parametrize("start", [IncidentStatus.OPEN, IncidentStatus.ONGOING])
def test_resolve_from_any_unresolved_state(start: IncidentStatus) -> None:
    incident = _incident(start)
    event = IncidentStateMachine.resolve(incident, NOW)

    assert incident.status == IncidentStatus.RESOLVED
    assert incident.resolved_at == NOW
    assert event is not None
    assert event.event_type == IncidentEventType.RESOLVED
    assert event.message == "Incident resolved"


def test_second_resolve_produces_no_event() -> None:
    incident = _incident()
    IncidentStateMachine.resolve(incident, NOW)
    assert IncidentStateMachine.resolve(incident, NOW + timedelta(hours=1)) is None
    assert incident.resolved_at == NOW


def test_first_number_of_the_day() -> None:
    assert IncidentNumberGenerator.next_number(NOW, []) == "INC-20240601-001"


def test_number_follows_highest_sequence() -> None:
    existing = ["INC-20240601-001", "INC-20240601-007", "INC-20240601-003"]
    assert IncidentNumberGenerator.next_number(NOW, existing) == "INC-20240601-008"


def test_sequence_is_numeric_past_999() -> None:
    existing = ["INC-20240601-999", "INC-20240601-1000"]
    assert IncidentNumberGenerator.next_number(NOW, existing) == "INC-20240601-1001"


def test_foreign_numbers_are_ignored() -> None:
    existing = ["INC-20240601-abc", "INC-20240601-002"]
    assert IncidentNumberGenerator.next_number(NOW, existing) == "INC-20240601-003"


def test_day_prefix_uses_utc_date() -> None:
    assert IncidentNumberGenerator.day_prefix(NOW) == "INC-20240601-"
