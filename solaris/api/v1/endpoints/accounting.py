"""
Monthly accounting endpoints — expected vs worked hours, vacation
balance, per-day rows, CSV export and the admin adjustment editor.

Each endpoint loads the rows it needs in a handful of queries and hands
them to the pure functions in ``solaris.core.accounting``.
"""

from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, Path
from fastapi.responses import StreamingResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from solaris.api.v1.deps import (ensure_self_or_admin, get_current_active_user,
                                 get_db, get_user_or_404, require_admin)
from solaris.api.v1.endpoints.calendar import load_overrides
from solaris.api.v1.endpoints.profiles import (apply_profile_update,
                                               get_or_create_profile)
from solaris.core.accounting import (MonthlySummary, RawTotals,
                                     count_working_days, month_range_keys,
                                     monthly_summary, raw_totals,
                                     reconcile_adjustments, vacation_balance)
from solaris.core.config import settings
from solaris.models.absence import AbsenceRequest
from solaris.models.time_entry import TimeEntry
from solaris.models.user import User
from solaris.schemas.accounting import (AdjustmentRequest, AdjustmentResponse,
                                        AdjustmentSnapshot, DayRowRead,
                                        MonthlySummaryResponse,
                                        TeamMonthlyResponse, VacationSummary)
from solaris.schemas.profile import WorkProfileRead

router = APIRouter(prefix="/accounting", tags=["accounting"])
logger = logging.getLogger(__name__)


# ── Loading ─────────────────────────────────────────────────────────
async def _month_entries(
    db: AsyncSession, year: int, month: int, user_id: int | None = None
) -> list[TimeEntry]:
    start, end = month_range_keys(year, month)
    query = (
        select(TimeEntry)
        .where(TimeEntry.date_key >= start, TimeEntry.date_key <= end)
        .order_by(TimeEntry.user_id, TimeEntry.date_key, TimeEntry.id)
    )
    if user_id is not None:
        query = query.where(TimeEntry.user_id == user_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def _absences(db: AsyncSession, user_id: int | None = None) -> list[AbsenceRequest]:
    """All-time requests; vacation balance is not scoped to a month."""
    query = select(AbsenceRequest).order_by(AbsenceRequest.id)
    if user_id is not None:
        query = query.where(AbsenceRequest.created_by == user_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def _user_summary(
    db: AsyncSession, user_id: int, year: int, month: int
) -> MonthlySummary:
    profile = await get_or_create_profile(db, user_id)
    return monthly_summary(
        await _month_entries(db, year, month, user_id),
        await _absences(db, user_id),
        await load_overrides(db, year, month),
        profile,
        year,
        month,
        user_id=user_id,
        max_permit_days=settings.PAID_PERMIT_MAX_DAYS,
    )


# ── Serialisation ───────────────────────────────────────────────────
def _vacation_read(user_id: int, summary: MonthlySummary) -> VacationSummary:
    v = summary.vacation
    return VacationSummary(
        user_id=user_id,
        total=v.total,
        raw_used=v.raw_used,
        adjustment=v.adjustment,
        used=v.used,
        remaining=v.remaining,
    )


def _summary_read(user: User, summary: MonthlySummary, with_days: bool = True) -> MonthlySummaryResponse:
    worked = summary.worked
    return MonthlySummaryResponse(
        user_id=user.id,
        name=user.name,
        year=summary.year,
        month=summary.month,
        weekly_hours=summary.weekly_hours,
        working_days=summary.working_days,
        expected_hours=summary.expected_hours,
        real_hours=round(worked.real_hours, 2),
        paid_permit_hours=round(worked.paid_permit_hours, 2),
        hours_adjustment=worked.adjustment,
        raw_worked_hours=worked.raw,
        worked_hours=worked.total,
        remaining_hours=summary.remaining_hours,
        balance_hours=summary.balance_hours,
        vacation=_vacation_read(user.id, summary),
        days=[DayRowRead(**asdict(row)) for row in summary.days] if with_days else [],
    )


def _snapshot(user_id: int, summary: MonthlySummary) -> AdjustmentSnapshot:
    raw = raw_totals(summary)
    return AdjustmentSnapshot(
        user_id=user_id,
        year=summary.year,
        month=summary.month,
        raw_worked_hours=raw.worked_hours,
        raw_vacation_used=raw.vacation_used,
        hours_adjustment=summary.worked.adjustment,
        vacation_adjustment=summary.vacation.adjustment,
        displayed_worked_hours=summary.worked.total,
        displayed_vacation_used=summary.vacation.used,
    )


# ── Per-user ────────────────────────────────────────────────────────
@router.get("/monthly/{year}/{month}", response_model=MonthlySummaryResponse)
async def monthly_accounting(
    year: int = Path(ge=2000, le=2100),
    month: int = Path(ge=1, le=12),
    user_id: int | None = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MonthlySummaryResponse:
    """Expected, worked and remaining hours plus the vacation balance."""
    target_id = user_id if user_id is not None else current_user.id
    ensure_self_or_admin(target_id, current_user)
    user = await get_user_or_404(db, target_id)

    summary = await _user_summary(db, target_id, year, month)
    return _summary_read(user, summary)


@router.get("/monthly/{year}/{month}/csv")
async def monthly_accounting_csv(
    year: int = Path(ge=2000, le=2100),
    month: int = Path(ge=1, le=12),
    user_id: int | None = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> StreamingResponse:
    """Export the month's consolidated day rows as a CSV download."""
    target_id = user_id if user_id is not None else current_user.id
    ensure_self_or_admin(target_id, current_user)
    await get_user_or_404(db, target_id)

    summary = await _user_summary(db, target_id, year, month)

    def iter_csv():
        yield "date,entry,exit,hours,status,working_day\n"
        for row in summary.days:
            yield (
                f"{row.date_key},{row.entry or ''},{row.exit or ''},"
                f"{row.hours},{row.status or ''},{'yes' if row.is_working_day else 'no'}\n"
            )
        yield f"expected_hours,,,{summary.expected_hours},,\n"
        yield f"worked_hours,,,{summary.worked.total},,\n"

    filename = f"hours_{target_id}_{year:04d}-{month:02d}.csv"
    return StreamingResponse(
        iter_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/vacation", response_model=VacationSummary)
async def vacation_summary(
    user_id: int | None = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> VacationSummary:
    target_id = user_id if user_id is not None else current_user.id
    ensure_self_or_admin(target_id, current_user)
    await get_user_or_404(db, target_id)

    profile = await get_or_create_profile(db, target_id)
    balance = vacation_balance(await _absences(db, target_id), profile, target_id)
    return VacationSummary(
        user_id=target_id,
        total=balance.total,
        raw_used=balance.raw_used,
        adjustment=balance.adjustment,
        used=balance.used,
        remaining=balance.remaining,
    )


# ── Adjustments (admin) ─────────────────────────────────────────────
@router.get("/adjustments/{user_id}/{year}/{month}", response_model=AdjustmentSnapshot)
async def adjustment_snapshot(
    user_id: int,
    year: int = Path(ge=2000, le=2100),
    month: int = Path(ge=1, le=12),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> AdjustmentSnapshot:
    """Raw figures to send back with the edited totals."""
    await get_user_or_404(db, user_id)
    return _snapshot(user_id, await _user_summary(db, user_id, year, month))


@router.put("/adjustments/{user_id}", response_model=AdjustmentResponse)
async def save_adjustment(
    user_id: int,
    body: AdjustmentRequest,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
) -> AdjustmentResponse:
    """Store displayed totals as deltas against the raw figures."""
    await get_user_or_404(db, user_id)

    raw = RawTotals(worked_hours=body.raw_worked_hours, vacation_used=body.raw_vacation_used)  # type: ignore[arg-type]
    if raw.worked_hours is None or raw.vacation_used is None:
        current = raw_totals(await _user_summary(db, user_id, body.year, body.month))
        raw = RawTotals(
            worked_hours=current.worked_hours if raw.worked_hours is None else raw.worked_hours,
            vacation_used=current.vacation_used if raw.vacation_used is None else raw.vacation_used,
        )

    update = reconcile_adjustments(
        raw,
        displayed_hours=body.displayed_worked_hours,
        displayed_vacation_used=body.displayed_vacation_used,
        weekly_hours=body.weekly_hours,
        vacation_days_total=body.vacation_days_total,
    )
    profile = await apply_profile_update(db, user_id, update)
    logger.info("Admin %d saved adjustments for user %d (%04d-%02d)", admin.id, user_id, body.year, body.month)
    return AdjustmentResponse(
        user_id=user_id,
        update=update,
        profile=WorkProfileRead.model_validate(profile),
    )


# ── Team overview (admin) ───────────────────────────────────────────
@router.get("/team/{year}/{month}", response_model=TeamMonthlyResponse)
async def team_monthly_overview(
    year: int = Path(ge=2000, le=2100),
    month: int = Path(ge=1, le=12),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> TeamMonthlyResponse:
    """Month totals for every active user, without per-day rows."""
    result = await db.execute(
        select(User).where(User.is_active.is_(True)).order_by(User.name, User.id)
    )
    users = list(result.scalars().all())

    entries = await _month_entries(db, year, month)
    absences = await _absences(db)
    overrides = await load_overrides(db, year, month)

    rows: list[MonthlySummaryResponse] = []
    for user in users:
        profile = await get_or_create_profile(db, user.id)
        summary = monthly_summary(
            entries,
            absences,
            overrides,
            profile,
            year,
            month,
            user_id=user.id,
            max_permit_days=settings.PAID_PERMIT_MAX_DAYS,
        )
        rows.append(_summary_read(user, summary, with_days=False))

    return TeamMonthlyResponse(
        year=year,
        month=month,
        working_days=count_working_days(year, month, overrides),
        users=rows,
    )
