"""
Alerting Domain Layer
=====================

Contains:
- Entities: Alert, Incident, IncidentEvent
- IncidentStateMachine: forward-only incident lifecycle
- IncidentNumberGenerator: per-day incident numbering

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from sre_dashboard.alerting.domain.entities import (
    Alert,
    Incident,
    IncidentEvent,
    IncidentStateMachine,
    IncidentNumberGenerator,
)

__all__ = [
    "Alert",
    "Incident",
    "IncidentEvent",
    "IncidentStateMachine",
    "IncidentNumberGenerator",
]
