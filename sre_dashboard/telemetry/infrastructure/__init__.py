"""
Telemetry Infrastructure Layer
==============================

Contains:
- Models: SQLAlchemy ORM models
- Repositories: Concrete repository implementations
"""

from sre_dashboard.telemetry.infrastructure.models import ServiceModel, LogModel, MetricModel
from sre_dashboard.telemetry.infrastructure.repositories import (
    SQLAlchemyServiceRepository,
    SQLAlchemyLogRepository,
    SQLAlchemyMetricRepository,
    parse_uuid,
)

__all__ = [
    "ServiceModel",
    "LogModel",
    "MetricModel",
    "SQLAlchemyServiceRepository",
    "SQLAlchemyLogRepository",
    "SQLAlchemyMetricRepository",
    "parse_uuid",
]
