"""Balance ORM model: TimeOffBalance (yearly allotment ledger)."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from toff.database import Base


class TimeOffBalance(Base):
    """Allotted days per category for one user and one calendar year.

    Only allotments live here; used days are derived from approved requests.
    """

    __tablename__ = "time_off_balances"
    __mapper_args__ = {"eager_defaults": True}
    __table_args__ = (
        sa.UniqueConstraint("user_id", "year", name="uq_time_off_balance_user_year"),
        sa.CheckConstraint("vacation_days >= 0", name="ck_balance_vacation_non_negative"),
        sa.CheckConstraint("sick_days >= 0", name="ck_balance_sick_non_negative"),
        sa.CheckConstraint("paid_leave >= 0", name="ck_balance_paid_leave_non_negative"),
        sa.CheckConstraint("personal_days >= 0", name="ck_balance_personal_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    vacation_days: Mapped[Decimal] = mapped_column(
        sa.Numeric(6, 2), nullable=False, default=Decimal("0")
    )
    sick_days: Mapped[Decimal] = mapped_column(
        sa.Numeric(6, 2), nullable=False, default=Decimal("0")
    )
    paid_leave: Mapped[Decimal] = mapped_column(
        sa.Numeric(6, 2), nullable=False, default=Decimal("0")
    )
    personal_days: Mapped[Decimal] = mapped_column(
        sa.Numeric(6, 2), nullable=False, default=Decimal("0")
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        onupdate=sa.func.now(),
    )
