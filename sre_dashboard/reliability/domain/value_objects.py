"""
Reliability Value Objects
=========================

Immutable value objects and pure calculators for the reliability domain.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared.
"""

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, model_validator

from sre_dashboard.config import OverallHealth

if TYPE_CHECKING:
    from sre_dashboard.reliability.domain.entities import HealthSnapshot


class SLOCalculator:
    """
    Pure functions for SLO flag derivation.

    Stateless utility class - the only place the breach and budget rules
    are written down.
    """

    @staticmethod
    def is_breaching(current_availability: float, target_availability: float) -> bool:
        """Availability below target."""
        return current_availability < target_availability

    @staticmethod
    def is_budget_exhausted(error_budget_consumed: float, error_budget_total: float) -> bool:
        """Consumed budget has reached the total."""
        return error_budget_consumed >= error_budget_total


# ========== Configuration (loaded from YAML) ==========

class HealthWeights(BaseModel):
    """Points deducted from the health score per unit of each signal."""
    down_services: float = Field(default=40, ge=0, description="Scaled by the down share of services")
    degraded_services: float = Field(default=15, ge=0, description="Scaled by the degraded share of services")
    critical_alert: float = Field(default=10, ge=0)
    warning_alert: float = Field(default=3, ge=0)
    critical_incident: float = Field(default=15, ge=0)
    other_incident: float = Field(default=5, ge=0)
    breaching_slo: float = Field(default=8, ge=0)
    exhausted_budget: float = Field(default=12, ge=0)


class HealthThresholds(BaseModel):
    """Score boundaries for the overall status."""
    unhealthy_below: float = Field(default=50, ge=0, le=100)
    degraded_below: float = Field(default=80, ge=0, le=100)

    @model_validator(mode="after")
    def check_order(self) -> "HealthThresholds":
        if self.unhealthy_below > self.degraded_below:
            raise ValueError("unhealthy_below must not exceed degraded_below")
        return self


class ValidationLimits(BaseModel):
    """Limits used by the release-validation checks."""
    max_error_rate_percent: float = Field(default=5, ge=0)
    max_error_logs: int = Field(default=50, ge=0)
    error_log_window_minutes: int = Field(default=60, ge=1)


class HealthConfig(BaseModel):
    """
    Health scoring and release-validation configuration loaded from YAML.

    Every section is optional; a missing file or section means the
    defaults below.
    """
    weights: HealthWeights = Field(default_factory=HealthWeights)
    thresholds: HealthThresholds = Field(default_factory=HealthThresholds)
    validation: ValidationLimits = Field(default_factory=ValidationLimits)


class HealthCalculator:
    """Pure functions turning a HealthSnapshot into a score and a status."""

    @staticmethod
    def calculate_score(snapshot: "HealthSnapshot", weights: HealthWeights) -> float:
        """
        Aggregate health score in [0, 100].

        The service terms are scaled by the share of services in that state;
        every other signal deducts a fixed amount per occurrence.
        """
        score = 100.0

        if snapshot.services_total > 0:
            score -= weights.down_services * (snapshot.services_down / snapshot.services_total)
            score -= weights.degraded_services * (snapshot.services_degraded / snapshot.services_total)

        score -= weights.critical_alert * snapshot.alerts_critical
        score -= weights.warning_alert * snapshot.alerts_warning

        score -= weights.critical_incident * snapshot.incidents_critical
        score -= weights.other_incident * (snapshot.incidents_open - snapshot.incidents_critical)

        score -= weights.breaching_slo * snapshot.slos_breaching
        score -= weights.exhausted_budget * snapshot.slos_budget_exhausted

        return max(0.0, min(100.0, score))

    @staticmethod
    def classify(
        score: float,
        snapshot: "HealthSnapshot",
        thresholds: HealthThresholds,
    ) -> OverallHealth:
        """Unhealthy rules are checked before degraded ones."""
        if (
            score < thresholds.unhealthy_below
            or snapshot.incidents_critical > 0
            or snapshot.services_down > 0
        ):
            return OverallHealth.UNHEALTHY
        if (
            score < thresholds.degraded_below
            or snapshot.alerts_critical > 0
            or snapshot.slos_breaching > 0
        ):
            return OverallHealth.DEGRADED
        return OverallHealth.HEALTHY
