"""
Shared API Dependencies
=======================

FastAPI dependencies used by more than one bounded context.
"""

from sre_dashboard.shared.clock import Clock, utc_now


def get_clock() -> Clock:
    """
    Time source handed to application services.

    Tests override this dependency to replay a scenario against a
    simulated clock.
    """
    return utc_now
