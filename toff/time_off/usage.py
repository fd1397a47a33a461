"""Used-days aggregation over approved time-off requests.

Used days are always derived from approved requests and never stored.
A request counts toward a year only when both its start and end fall
inside that calendar year.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from toff.common.constants import RequestStatus, TimeOffType
from toff.common.dates import working_days, year_bounds
from toff.time_off.models import TimeOffRequest

UsedDays = dict[TimeOffType, int]


def empty_usage() -> UsedDays:
    return {t: 0 for t in TimeOffType}


async def used_days_by_user(
    db: AsyncSession,
    year: int,
    user_id: Optional[uuid.UUID] = None,
) -> dict[uuid.UUID, UsedDays]:
    """Return ``{user_id: {type: days}}`` for approved requests within *year*."""
    first, last = year_bounds(year)
    query = select(
        TimeOffRequest.user_id,
        TimeOffRequest.type,
        TimeOffRequest.start_date,
        TimeOffRequest.end_date,
    ).where(
        TimeOffRequest.status == RequestStatus.approved,
        TimeOffRequest.start_date >= first,
        TimeOffRequest.end_date <= last,
    )
    if user_id is not None:
        query = query.where(TimeOffRequest.user_id == user_id)

    totals: dict[uuid.UUID, UsedDays] = defaultdict(empty_usage)
    for uid, type_, start, end in (await db.execute(query)).all():
        totals[uid][TimeOffType(type_)] += working_days(start, end)
    return dict(totals)


async def used_days(db: AsyncSession, user_id: uuid.UUID, year: int) -> UsedDays:
    """Used days per type for one user and year (zeros when nothing is approved)."""
    by_user = await used_days_by_user(db, year, user_id)
    return by_user.get(user_id, empty_usage())
