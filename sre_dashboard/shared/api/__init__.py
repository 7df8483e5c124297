"""Shared HTTP middleware, exception handlers and dependencies."""

from sre_dashboard.shared.api.dependencies import get_clock
from sre_dashboard.shared.api.middleware import install_error_handling

__all__ = ["get_clock", "install_error_handling"]
