"""
Alerting Domain Entities
========================

Pure Python domain entities for alerts, incidents and the incident timeline.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns. Every mutator takes
the current time from the caller so the lifecycle can be replayed against a
simulated clock.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from sre_dashboard.config import (
    AlertSeverity,
    IncidentEventType,
    IncidentSeverity,
    IncidentStatus,
)
from sre_dashboard.core import InvalidStateTransitionException


@dataclass
class Alert:
    """
    Alert entity raised against a service or a metric threshold.

    Silencing and acknowledgement never touch ``is_active``; whether an
    alert currently demands attention is evaluated at read time.
    """

    id: Optional[str]
    title: str
    fired_at: datetime
    severity: AlertSeverity = AlertSeverity.INFO
    name: Optional[str] = None
    description: Optional[str] = None
    message: Optional[str] = None
    service_id: Optional[str] = None
    metric_name: Optional[str] = None
    threshold: Optional[float] = None
    current_value: Optional[float] = None

    # Lifecycle
    is_active: bool = True
    acknowledged_at: Optional[datetime] = None
    silenced_until: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_acknowledged(self) -> bool:
        return self.acknowledged_at is not None

    @property
    def is_critical(self) -> bool:
        return self.severity == AlertSeverity.CRITICAL

    def is_silenced(self, now: datetime) -> bool:
        """Check whether a silence window is still open at ``now``."""
        return self.silenced_until is not None and self.silenced_until > now

    def is_effectively_active(self, now: datetime) -> bool:
        """Active, not acknowledged and not silenced at ``now``."""
        return self.is_active and not self.is_acknowledged and not self.is_silenced(now)

    def acknowledge(self, now: datetime) -> bool:
        """
        Mark alert as acknowledged.

        Returns:
            True if the alert changed, False when it was already acknowledged
        """
        self._ensure_not_resolved("acknowledge")
        if self.is_acknowledged:
            return False
        self.acknowledged_at = now
        return True

    def silence(self, now: datetime, duration_minutes: int) -> None:
        """Suppress the alert until ``now + duration``, replacing any earlier window."""
        self._ensure_not_resolved("silence")
        self.silenced_until = now + timedelta(minutes=duration_minutes)

    def resolve(self, now: datetime) -> bool:
        """
        Deactivate the alert.

        Returns:
            True if the alert changed, False when it was already resolved
        """
        if not self.is_active:
            return False
        self.is_active = False
        self.resolved_at = now
        return True

    def _ensure_not_resolved(self, action: str) -> None:
        if not self.is_active:
            raise InvalidStateTransitionException("Alert", "RESOLVED", action)


@dataclass
class Incident:
    """
    Incident entity.

    Status only ever moves forward: OPEN -> ONGOING -> RESOLVED, or
    OPEN -> RESOLVED directly. See IncidentStateMachine.
    """

    id: Optional[str]
    incident_number: str
    title: str
    started_at: datetime
    severity: IncidentSeverity = IncidentSeverity.MEDIUM
    status: IncidentStatus = IncidentStatus.OPEN
    description: Optional[str] = None
    service_id: Optional[str] = None
    triggered_by: Optional[str] = None
    acknowledged_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_resolved(self) -> bool:
        return self.status == IncidentStatus.RESOLVED

    @property
    def is_critical(self) -> bool:
        return self.severity == IncidentSeverity.CRITICAL


@dataclass(frozen=True)
class IncidentEvent:
    """Immutable entry on an incident timeline."""

    id: Optional[str]
    incident_id: str
    event_type: IncidentEventType
    message: str
    author_id: Optional[str] = None
    created_at: Optional[datetime] = None


class IncidentStateMachine:
    """
    Forward-only incident lifecycle.

    Each transition returns the event to append, or None when the call is
    a repeat of a transition that already happened.
    """

    ACKNOWLEDGED_MESSAGE = "Incident acknowledged"
    RESOLVED_MESSAGE = "Incident resolved"

    @staticmethod
    def triggered(incident: Incident) -> IncidentEvent:
        return IncidentEvent(
            id=None,
            incident_id=incident.id,
            event_type=IncidentEventType.TRIGGERED,
            message=f"Incident created: {incident.title}",
            created_at=incident.started_at,
        )

    @classmethod
    def acknowledge(cls, incident: Incident, now: datetime) -> Optional[IncidentEvent]:
        if incident.status == IncidentStatus.ONGOING:
            return None
        if incident.status != IncidentStatus.OPEN:
            raise InvalidStateTransitionException("Incident", incident.status.value, "acknowledge")

        incident.status = IncidentStatus.ONGOING
        incident.acknowledged_at = now
        incident.updated_at = now
        return IncidentEvent(
            id=None,
            incident_id=incident.id,
            event_type=IncidentEventType.ACKNOWLEDGED,
            message=cls.ACKNOWLEDGED_MESSAGE,
            created_at=now,
        )

    @classmethod
    def resolve(cls, incident: Incident, now: datetime) -> Optional[IncidentEvent]:
        if incident.is_resolved:
            return None

        incident.status = IncidentStatus.RESOLVED
        incident.resolved_at = now
        incident.updated_at = now
        return IncidentEvent(
            id=None,
            incident_id=incident.id,
            event_type=IncidentEventType.RESOLVED,
            message=cls.RESOLVED_MESSAGE,
            created_at=now,
        )


class IncidentNumberGenerator:
    """Builds ``INC-YYYYMMDD-NNN`` numbers from a per-day sequence."""

    PREFIX = "INC"

    @classmethod
    def day_prefix(cls, now: datetime) -> str:
        return f"{cls.PREFIX}-{now:%Y%m%d}-"

    @classmethod
    def parse_sequence(cls, incident_number: str) -> Optional[int]:
        """Extract the trailing sequence number; None for foreign formats."""
        _, _, suffix = incident_number.rpartition("-")
        return int(suffix) if suffix.isdigit() else None

    @classmethod
    def next_number(cls, now: datetime, numbers_today: Iterable[str]) -> str:
        """
        Next incident number for the UTC day of ``now``.

        Sequences are compared numerically so 1000 follows 999.

        Args:
            now: Current time (UTC)
            numbers_today: Existing incident numbers carrying today's prefix
        """
        sequences = [cls.parse_sequence(n) for n in numbers_today]
        highest = max((s for s in sequences if s is not None), default=0)
        return f"{cls.day_prefix(now)}{highest + 1:03d}"
