"""
Shared Kernel Module
====================

Shared infrastructure used across all bounded contexts (telemetry, alerting,
reliability).

Architecture Pattern: Modular Monolith
- Each module is a bounded context
- Shared kernel contains only generic infrastructure

DO NOT add business logic from a bounded context to the shared kernel.
"""
