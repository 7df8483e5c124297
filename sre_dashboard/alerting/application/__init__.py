"""
Alerting Application Layer
==========================

Contains:
- Services: AlertService and IncidentService
- DTOs: Data transfer objects for API serialization
- Repository and notifier interfaces
"""

from sre_dashboard.alerting.application.dto import (
    AlertCreateDTO,
    AlertUpdateDTO,
    AlertSilenceDTO,
    AlertResponse,
    AlertStatsResponse,
    IncidentCreateDTO,
    IncidentUpdateDTO,
    IncidentEventCreateDTO,
    IncidentResponse,
    IncidentEventResponse,
)
from sre_dashboard.alerting.application.services import (
    AlertService,
    IncidentService,
    IAlertRepository,
    IIncidentRepository,
    IIncidentEventRepository,
    INotifier,
)

__all__ = [
    # DTOs
    "AlertCreateDTO",
    "AlertUpdateDTO",
    "AlertSilenceDTO",
    "AlertResponse",
    "AlertStatsResponse",
    "IncidentCreateDTO",
    "IncidentUpdateDTO",
    "IncidentEventCreateDTO",
    "IncidentResponse",
    "IncidentEventResponse",
    # Services
    "AlertService",
    "IncidentService",
    # Interfaces
    "IAlertRepository",
    "IIncidentRepository",
    "IIncidentEventRepository",
    "INotifier",
]
