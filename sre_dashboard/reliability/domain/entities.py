"""
Reliability Domain Entities
===========================

Pure Python domain entities for SLOs and the derived reports: the
aggregate health report and the release-validation report.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sre_dashboard.config import CheckStatus, OverallHealth
from sre_dashboard.reliability.domain.value_objects import SLOCalculator


@dataclass
class SLO:
    """
    Service level objective.

    ``is_breaching`` and ``is_budget_exhausted`` are derived; call
    refresh_flags() after changing any source field.
    """

    id: Optional[str]
    name: str
    service_id: Optional[str] = None
    target_availability: float = 99.9
    current_availability: float = 100.0
    latency_target: float = 200.0
    latency_current: float = 0.0
    error_budget_total: float = 0.1
    error_budget_consumed: float = 0.0
    period: str = "30d"
    is_breaching: bool = False
    is_budget_exhausted: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def refresh_flags(self) -> None:
        """Recompute the derived flags from the current source fields."""
        self.is_breaching = SLOCalculator.is_breaching(
            self.current_availability, self.target_availability
        )
        self.is_budget_exhausted = SLOCalculator.is_budget_exhausted(
            self.error_budget_consumed, self.error_budget_total
        )

    @property
    def error_budget_remaining(self) -> float:
        return max(0.0, self.error_budget_total - self.error_budget_consumed)


@dataclass(frozen=True)
class HealthSnapshot:
    """Counts over every stored service, alert, incident and SLO."""

    services_total: int = 0
    services_healthy: int = 0
    services_degraded: int = 0
    services_down: int = 0

    alerts_total: int = 0
    alerts_active: int = 0
    alerts_critical: int = 0
    alerts_warning: int = 0

    incidents_total: int = 0
    incidents_open: int = 0
    incidents_critical: int = 0

    slos_total: int = 0
    slos_breaching: int = 0
    slos_budget_exhausted: int = 0

    def to_stats(self) -> Dict[str, Dict[str, int]]:
        return {
            "services": {
                "total": self.services_total,
                "healthy": self.services_healthy,
                "degraded": self.services_degraded,
                "down": self.services_down,
            },
            "alerts": {
                "total": self.alerts_total,
                "active": self.alerts_active,
                "critical": self.alerts_critical,
                "warning": self.alerts_warning,
            },
            "incidents": {
                "total": self.incidents_total,
                "open": self.incidents_open,
                "critical": self.incidents_critical,
            },
            "slos": {
                "total": self.slos_total,
                "breaching": self.slos_breaching,
                "budget_exhausted": self.slos_budget_exhausted,
            },
        }


@dataclass
class HealthReport:
    """Result of one health evaluation."""

    status: OverallHealth
    score: float
    timestamp: datetime
    database_ok: bool
    snapshot: Optional[HealthSnapshot] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class ValidationCheck:
    """Outcome of a single release-validation check."""

    name: str
    status: CheckStatus
    message: str
    details: Optional[Dict[str, Any]] = None

    @classmethod
    def passed(cls, name: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ValidationCheck":
        return cls(name=name, status=CheckStatus.PASSED, message=message, details=details)

    @classmethod
    def failed(cls, name: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ValidationCheck":
        return cls(name=name, status=CheckStatus.FAILED, message=message, details=details)

    @classmethod
    def warning(cls, name: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ValidationCheck":
        return cls(name=name, status=CheckStatus.WARNING, message=message, details=details)


@dataclass
class ValidationReport:
    """
    Release-validation report.

    The release passes when no check failed; warnings do not block.
    """

    environment: str
    timestamp: datetime
    checks: List[ValidationCheck] = field(default_factory=list)

    @property
    def summary(self) -> Dict[str, int]:
        return {
            "total": len(self.checks),
            "passed": sum(1 for c in self.checks if c.status == CheckStatus.PASSED),
            "failed": sum(1 for c in self.checks if c.status == CheckStatus.FAILED),
            "warnings": sum(1 for c in self.checks if c.status == CheckStatus.WARNING),
        }

    @property
    def passed(self) -> bool:
        return self.summary["failed"] == 0
