"""
Reliability Infrastructure Layer
================================

Infrastructure implementations for the derived-state evaluator:
- Models: SQLAlchemy ORM models
- Repositories: SLO data access and aggregate read queries
- External: YAML health config with watchdog hot reload
"""

from sre_dashboard.reliability.infrastructure.models import SLOModel
from sre_dashboard.reliability.infrastructure.repositories import (
    SQLAlchemySLORepository,
    SQLAlchemyReliabilityReader,
)
from sre_dashboard.reliability.infrastructure.external import HealthConfigManager

__all__ = [
    "SLOModel",
    "SQLAlchemySLORepository",
    "SQLAlchemyReliabilityReader",
    "HealthConfigManager",
]
