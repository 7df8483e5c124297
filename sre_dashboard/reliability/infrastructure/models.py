"""
Reliability Infrastructure Models
=================================

SQLAlchemy ORM models for the reliability module.

The breach and budget flags are stored so they can be filtered on, but
they are only ever written from SLO.refresh_flags().
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from sre_dashboard.infrastructure.database import Base
from sre_dashboard.shared.clock import utc_now


class SLOModel(Base):
    """
    Database model for SLO entity.

    Maps to the 'slos' table.
    """
    __tablename__ = "slos"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    service_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey("services.id", ondelete="SET NULL"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Targets and current values
    target_availability: Mapped[float] = mapped_column(Float, nullable=False, default=99.9)
    current_availability: Mapped[float] = mapped_column(Float, nullable=False, default=100.0)
    latency_target: Mapped[float] = mapped_column(Float, nullable=False, default=200.0)
    latency_current: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    error_budget_total: Mapped[float] = mapped_column(Float, nullable=False, default=0.1)
    error_budget_consumed: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    period: Mapped[str] = mapped_column(String(20), nullable=False, default="30d")

    # Derived
    is_breaching: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    is_budget_exhausted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)
