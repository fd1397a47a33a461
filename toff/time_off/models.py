"""Time-off ORM model: TimeOffRequest."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from toff.common.constants import RequestStatus, TimeOffType
from toff.common.models import enum_column
from toff.database import Base
from toff.users.models import User


class TimeOffRequest(Base):
    __tablename__ = "time_off_requests"
    __mapper_args__ = {"eager_defaults": True}
    __table_args__ = (
        sa.CheckConstraint("start_date <= end_date", name="ck_time_off_date_order"),
        sa.Index("ix_time_off_requests_user_status", "user_id", "status"),
        sa.Index("ix_time_off_requests_dates", "start_date", "end_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    type: Mapped[TimeOffType] = mapped_column(
        enum_column(TimeOffType, "time_off_type"), nullable=False
    )
    status: Mapped[RequestStatus] = mapped_column(
        enum_column(RequestStatus, "request_status"),
        nullable=False,
        default=RequestStatus.pending,
    )
    reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    working_days: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    reviewed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL")
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    review_note: Mapped[Optional[str]] = mapped_column(sa.Text)
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
