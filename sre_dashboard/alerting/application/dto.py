"""
Alerting Application DTOs
=========================

Data Transfer Objects for the alert and incident endpoints.

Lifecycle fields (is_active, acknowledged_at, silenced_until, status,
resolved_at) are absent from every request model: they change only through
the dedicated transition endpoints.
"""

from datetime import datetime
from typing import Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from sre_dashboard.alerting.domain import Alert, Incident, IncidentEvent
from sre_dashboard.config import (
    AlertSeverity,
    IncidentEventType,
    IncidentSeverity,
    IncidentStatus,
    MANUAL_EVENT_TYPES,
)

MAX_SILENCE_MINUTES = 30 * 24 * 60


# ========== Alert Request DTOs ==========

class AlertCreateDTO(BaseModel):
    """DTO for firing an alert. ``title`` falls back to ``name``."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    message: Optional[str] = Field(None, max_length=500)
    service_id: Optional[UUID] = None
    severity: AlertSeverity = Field(default=AlertSeverity.INFO)
    metric_name: Optional[str] = Field(None, max_length=100)
    threshold: Optional[float] = Field(None, ge=0)
    current_value: Optional[float] = None

    @model_validator(mode="after")
    def require_title_or_name(self) -> "AlertCreateDTO":
        if not self.title and not self.name:
            raise ValueError("title or name is required")
        return self


class AlertUpdateDTO(BaseModel):
    """DTO for editing the descriptive fields of an alert."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    message: Optional[str] = Field(None, max_length=500)
    service_id: Optional[UUID] = None
    severity: Optional[AlertSeverity] = None
    metric_name: Optional[str] = Field(None, max_length=100)
    threshold: Optional[float] = Field(None, ge=0)
    current_value: Optional[float] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("title", "severity")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v


class AlertSilenceDTO(BaseModel):
    """DTO for silencing an alert."""
    duration_minutes: int = Field(default=60, ge=1, le=MAX_SILENCE_MINUTES)


# ========== Incident Request DTOs ==========

class IncidentCreateDTO(BaseModel):
    """DTO for opening an incident."""
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    service_id: Optional[UUID] = None
    severity: IncidentSeverity = Field(default=IncidentSeverity.MEDIUM)
    triggered_by: Optional[str] = Field(None, max_length=255)


class IncidentUpdateDTO(BaseModel):
    """DTO for editing an incident; status moves only through transitions."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    service_id: Optional[UUID] = None
    severity: Optional[IncidentSeverity] = None
    triggered_by: Optional[str] = Field(None, max_length=255)

    model_config = ConfigDict(extra="forbid")

    @field_validator("title", "severity")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v


class IncidentEventCreateDTO(BaseModel):
    """DTO for appending a comment or escalation to an incident timeline."""
    event_type: IncidentEventType = Field(default=IncidentEventType.COMMENT)
    message: str = Field(..., min_length=1, max_length=2000)
    author_id: Optional[str] = Field(None, max_length=255)

    @field_validator("event_type")
    @classmethod
    def manual_types_only(cls, v: IncidentEventType) -> IncidentEventType:
        if v.value not in MANUAL_EVENT_TYPES:
            raise ValueError(f"event_type must be one of {', '.join(MANUAL_EVENT_TYPES)}")
        return v


# ========== Response DTOs ==========

class AlertResponse(BaseModel):
    """Response model for an alert, with read-time suppression state."""
    id: str
    title: str
    name: Optional[str] = None
    description: Optional[str] = None
    message: Optional[str] = None
    service_id: Optional[str] = None
    severity: AlertSeverity
    metric_name: Optional[str] = None
    threshold: Optional[float] = None
    current_value: Optional[float] = None
    is_active: bool
    is_silenced: bool
    is_effectively_active: bool
    fired_at: datetime
    acknowledged_at: Optional[datetime] = None
    silenced_until: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, alert: Alert, now: datetime) -> "AlertResponse":
        return cls(
            id=alert.id,
            title=alert.title,
            name=alert.name,
            description=alert.description,
            message=alert.message,
            service_id=alert.service_id,
            severity=alert.severity,
            metric_name=alert.metric_name,
            threshold=alert.threshold,
            current_value=alert.current_value,
            is_active=alert.is_active,
            is_silenced=alert.is_silenced(now),
            is_effectively_active=alert.is_effectively_active(now),
            fired_at=alert.fired_at,
            acknowledged_at=alert.acknowledged_at,
            silenced_until=alert.silenced_until,
            resolved_at=alert.resolved_at,
            created_at=alert.created_at,
        )


class AlertStatsResponse(BaseModel):
    """Alert counters; ``by_severity`` counts effectively active alerts."""
    total: int
    active: int
    effectively_active: int
    acknowledged: int
    silenced: int
    by_severity: Dict[str, int]


class IncidentResponse(BaseModel):
    """Response model for an incident."""
    id: str
    incident_number: str
    title: str
    description: Optional[str] = None
    service_id: Optional[str] = None
    severity: IncidentSeverity
    status: IncidentStatus
    started_at: datetime
    acknowledged_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    triggered_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, incident: Incident) -> "IncidentResponse":
        return cls(
            id=incident.id,
            incident_number=incident.incident_number,
            title=incident.title,
            description=incident.description,
            service_id=incident.service_id,
            severity=incident.severity,
            status=incident.status,
            started_at=incident.started_at,
            acknowledged_at=incident.acknowledged_at,
            resolved_at=incident.resolved_at,
            triggered_by=incident.triggered_by,
            created_at=incident.created_at,
            updated_at=incident.updated_at,
        )


class IncidentEventResponse(BaseModel):
    """Response model for an incident timeline entry."""
    id: str
    incident_id: str
    event_type: IncidentEventType
    message: str
    author_id: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_domain(cls, event: IncidentEvent) -> "IncidentEventResponse":
        return cls(
            id=event.id,
            incident_id=event.incident_id,
            event_type=event.event_type,
            message=event.message,
            author_id=event.author_id,
            created_at=event.created_at,
        )
