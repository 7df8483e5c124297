"""
Reliability Module
==================

Bounded Context for state derived from everything else in the store.

Responsibilities:
- Keep SLO breach and error-budget flags in line with their source values
- Compute the weighted aggregate health score and status
- Run the pre-release validation checks
- Seed test activity for demos
"""
