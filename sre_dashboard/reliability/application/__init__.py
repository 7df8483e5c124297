"""
Reliability Application Layer
=============================

Contains:
- Services: SLOService, HealthService, ReleaseValidationService, ActivityGeneratorService
- DTOs: Data transfer objects for API serialization
- Repository and config provider interfaces
"""

from sre_dashboard.reliability.application.dto import (
    SLOCreateDTO,
    SLOUpdateDTO,
    SLOResponse,
    HealthComponents,
    HealthResponse,
    HealthErrorResponse,
    ValidationRunRequest,
    ValidationCheckResponse,
    ValidationSummary,
    ValidationReportResponse,
    GeneratedCounts,
    ActivityGenerationResponse,
)
from sre_dashboard.reliability.application.services import (
    SLOService,
    HealthService,
    ReleaseValidationService,
    ActivityGeneratorService,
    ISLORepository,
    IReliabilityReader,
    IHealthConfigProvider,
)

__all__ = [
    # DTOs
    "SLOCreateDTO",
    "SLOUpdateDTO",
    "SLOResponse",
    "HealthComponents",
    "HealthResponse",
    "HealthErrorResponse",
    "ValidationRunRequest",
    "ValidationCheckResponse",
    "ValidationSummary",
    "ValidationReportResponse",
    "GeneratedCounts",
    "ActivityGenerationResponse",
    # Services
    "SLOService",
    "HealthService",
    "ReleaseValidationService",
    "ActivityGeneratorService",
    # Interfaces
    "ISLORepository",
    "IReliabilityReader",
    "IHealthConfigProvider",
]
