"""
Reliability Domain Layer
========================

Contains:
- Entities: SLO, HealthSnapshot, HealthReport, ValidationCheck, ValidationReport
- Value Objects: HealthConfig and its sections
- Calculators: SLOCalculator, HealthCalculator

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from sre_dashboard.reliability.domain.entities import (
    SLO,
    HealthSnapshot,
    HealthReport,
    ValidationCheck,
    ValidationReport,
)
from sre_dashboard.reliability.domain.value_objects import (
    SLOCalculator,
    HealthCalculator,
    HealthConfig,
    HealthWeights,
    HealthThresholds,
    ValidationLimits,
)

__all__ = [
    # Entities
    "SLO",
    "HealthSnapshot",
    "HealthReport",
    "ValidationCheck",
    "ValidationReport",
    # Value Objects
    "SLOCalculator",
    "HealthCalculator",
    "HealthConfig",
    "HealthWeights",
    "HealthThresholds",
    "ValidationLimits",
]
