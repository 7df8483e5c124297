"""
Reliability Interfaces Layer
============================

Interface adapters (controllers) for the reliability module.

Contains:
- Controllers: FastAPI route handlers for SLOs, health and release validation
"""

from sre_dashboard.reliability.interfaces.controllers import health_router, slos_router, validation_router

__all__ = ["slos_router", "health_router", "validation_router"]
