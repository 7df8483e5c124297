"""
Alerting Module
===============

Bounded Context for alerts, incidents and the incident audit trail.

Responsibilities:
- Fire, acknowledge, silence and resolve alerts
- Drive incidents through OPEN -> ONGOING -> RESOLVED
- Record every incident transition as a timeline event
- Publish Slack notifications for critical alerts and incident changes
"""
