"""Overtime ORM model: OvertimeRequest."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from toff.common.constants import RequestStatus
from toff.common.models import enum_column
from toff.database import Base
from toff.users.models import User


class OvertimeRequest(Base):
    __tablename__ = "overtime_requests"
    __mapper_args__ = {"eager_defaults": True}
    __table_args__ = (
        sa.CheckConstraint("hours > 0", name="ck_overtime_hours_positive"),
        sa.CheckConstraint("month BETWEEN 1 AND 12", name="ck_overtime_month_range"),
        sa.Index("ix_overtime_requests_user_year", "user_id", "year"),
        sa.Index("ix_overtime_requests_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    hours: Mapped[Decimal] = mapped_column(sa.Numeric(6, 2), nullable=False)
    request_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    month: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    status: Mapped[RequestStatus] = mapped_column(
        enum_column(RequestStatus, "overtime_status"),
        nullable=False,
        default=RequestStatus.pending,
    )
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    reviewed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL")
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        onupdate=sa.func.now(),
    )

    # Relationships
    user: Mapped[User] = relationship(foreign_keys=[user_id], lazy="raise")
