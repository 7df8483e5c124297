"""
SRE Dashboard Backend
=====================

HTTP backend for an SRE monitoring dashboard.

Bounded contexts:
- telemetry: services, logs and metric samples
- alerting: alert and incident lifecycles with the incident audit trail
- reliability: SLOs, aggregate health score and release validation
"""

__version__ = "1.0.0"
