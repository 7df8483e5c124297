"""
Infrastructure Layer
=====================

Technical infrastructure shared across modules:
- Database connection management
"""
