"""
Telemetry Module
================

Bounded Context for the monitored service catalog and raw telemetry.

Responsibilities:
- Register and edit monitored services and their gauges
- Append and query structured log entries
- Append and query metric samples, rebuilt into time series on read
"""
