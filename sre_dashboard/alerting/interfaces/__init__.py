"""
Alerting Interfaces Layer
=========================

Interface adapters (controllers) for the alerting module.

Contains:
- Controllers: FastAPI route handlers for alerts and incidents
"""

from sre_dashboard.alerting.interfaces.controllers import alerts_router, incidents_router

__all__ = ["alerts_router", "incidents_router"]
