"""
Alerting Infrastructure Layer
=============================

Contains:
- Models: SQLAlchemy ORM models
- Repositories: Concrete repository implementations
- External: Slack webhook notifier
"""

from sre_dashboard.alerting.infrastructure.models import AlertModel, IncidentModel, IncidentEventModel
from sre_dashboard.alerting.infrastructure.repositories import (
    SQLAlchemyAlertRepository,
    SQLAlchemyIncidentRepository,
    SQLAlchemyIncidentEventRepository,
)
from sre_dashboard.alerting.infrastructure.external import SlackNotifier

__all__ = [
    "AlertModel",
    "IncidentModel",
    "IncidentEventModel",
    "SQLAlchemyAlertRepository",
    "SQLAlchemyIncidentRepository",
    "SQLAlchemyIncidentEventRepository",
    "SlackNotifier",
]
