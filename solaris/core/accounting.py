"""
Monthly time & vacation accounting.

Pure functions over read-only snapshots of time entries, absence requests,
calendar overrides and a work profile. Nothing here touches the database:
endpoints fetch rows and hand them in, and every figure is recomputed from
scratch on each call, so the same snapshot always yields the same numbers.

Rows may be ORM instances or plain mappings; fields are read by name.

Clock times are bare ``HH:MM`` wall-clock strings without a date or zone.
They are handled as minutes since midnight, and a span whose exit is
earlier than its entry is taken to cross midnight.
"""

from __future__ import annotations

import calendar
import logging
import re
from collections import defaultdict
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

logger = logging.getLogger(__name__)

WORKDAYS_PER_WEEK = 5
MINUTES_PER_DAY = 24 * 60
DEFAULT_PAID_PERMIT_MAX_DAYS = 60

BREAK_STATUS = "break_paid"
BREAK_START_MARKER = "BREAK_START:"
BREAK_END_MARKER = "BREAK_END:"

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})")


# ── Field access & rounding ─────────────────────────────────────────
def _field(row: Any, name: str, default: Any = None) -> Any:
    if isinstance(row, Mapping):
        return row.get(name, default)
    return getattr(row, name, default)


def _number(row: Any, name: str) -> float:
    value = _field(row, name)
    return float(value) if value is not None else 0.0


def round1(value: float) -> float:
    """Round to one decimal place, halves away from zero."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


# ── Date keys ───────────────────────────────────────────────────────
def parse_date_key(value: Any) -> date | None:
    """Normalise a ``YYYY-MM-DD`` key (or date / ISO timestamp) to a date.

    Returns ``None`` for anything unparseable; callers skip such records.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value.strip()) < 10:
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def to_date_key(day: date) -> str:
    return day.isoformat()


def month_days(year: int, month: int) -> list[date]:
    _, days_in_month = calendar.monthrange(year, month)
    return [date(year, month, d) for d in range(1, days_in_month + 1)]


def month_range_keys(year: int, month: int) -> tuple[str, str]:
    """First and last date key of a month, for range queries."""
    days = month_days(year, month)
    return to_date_key(days[0]), to_date_key(days[-1])


# ── Working-day calendar ────────────────────────────────────────────
def holiday_keys(overrides: Iterable[Any]) -> set[str]:
    """Date keys flagged non-working; annotation-only overrides are ignored."""
    keys: set[str] = set()
    for override in overrides:
        if not _field(override, "is_non_working", False):
            continue
        day = parse_date_key(_field(override, "date_key"))
        if day is not None:
            keys.add(to_date_key(day))
    return keys


def is_working_day(day: date, holidays: set[str]) -> bool:
    return day.weekday() < WORKDAYS_PER_WEEK and to_date_key(day) not in holidays


def count_working_days(year: int, month: int, overrides: Iterable[Any] = ()) -> int:
    holidays = holiday_keys(overrides)
    return sum(1 for day in month_days(year, month) if is_working_day(day, holidays))


def daily_hours(weekly_hours: float) -> float:
    return weekly_hours / WORKDAYS_PER_WEEK


def expected_monthly_hours(
    weekly_hours: float,
    year: int,
    month: int,
    overrides: Iterable[Any] = (),
) -> float:
    """Working days in the month times the contracted daily hours."""
    if not weekly_hours or weekly_hours <= 0:
        return 0.0
    return round1(count_working_days(year, month, overrides) * daily_hours(weekly_hours))


# ── Clock arithmetic ────────────────────────────────────────────────
def to_minutes(value: Any) -> int | None:
    """``HH:MM`` (also ``HH:MM:SS`` or an ISO timestamp) → minutes since midnight."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if "T" in text:
        text = text.split("T", 1)[1]
    match = _CLOCK_RE.match(text)
    if match is None:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def elapsed_minutes(entry: str | None, exit: str | None) -> int:
    start, end = to_minutes(entry), to_minutes(exit)
    if start is None or end is None:
        return 0
    # Negative differences wrap forward into the next day.
    return (end - start) % MINUTES_PER_DAY


def calculate_hours(entry: str | None, exit: str | None) -> float:
    """Decimal hours between two clock times, e.g. 08:00 → 16:30 = 8.5."""
    return elapsed_minutes(entry, exit) / 60


# ── Daily consolidation ─────────────────────────────────────────────
@dataclass(frozen=True)
class ConsolidatedDay:
    date_key: str
    entry: str | None
    exit: str | None
    status: str | None
    note: str | None = None
    entry_ids: tuple[int, ...] = ()

    @property
    def minutes(self) -> int:
        if not self.entry or not self.exit:
            return 0
        return elapsed_minutes(self.entry, self.exit)

    @property
    def hours(self) -> float:
        return self.minutes / 60


def has_break(row: Any) -> bool:
    note = _field(row, "note") or ""
    return _field(row, "status") == BREAK_STATUS or BREAK_START_MARKER in note


def consolidate_day(entries: Sequence[Any]) -> ConsolidatedDay | None:
    """Collapse one user's rows for one day into a single entry/exit span.

    Earliest entry and latest exit win; the gap between spans (a lunch
    break) is therefore counted as worked time. Status is ``break_paid``
    when any row recorded a break, otherwise the first row's status.
    """
    rows = list(entries)
    if not rows:
        return None

    first = rows[0]
    entries_min = [m for m in (to_minutes(_field(r, "entry")) for r in rows) if m is not None]
    exits_min = [m for m in (to_minutes(_field(r, "exit")) for r in rows) if m is not None]
    status = BREAK_STATUS if any(has_break(r) for r in rows) else _field(first, "status")

    return ConsolidatedDay(
        date_key=str(_field(first, "date_key")),
        entry=format_minutes(min(entries_min)) if entries_min else None,
        exit=format_minutes(max(exits_min)) if exits_min else None,
        status=status,
        note=_field(first, "note"),
        entry_ids=tuple(i for i in (_field(r, "id") for r in rows) if i is not None),
    )


def group_entries_by_date(
    entries: Iterable[Any],
    user_id: int | None = None,
) -> dict[str, list[Any]]:
    """Bucket time entries by normalised date key, preserving input order."""
    grouped: dict[str, list[Any]] = defaultdict(list)
    for row in entries:
        if user_id is not None and _field(row, "user_id") != user_id:
            continue
        day = parse_date_key(_field(row, "date_key"))
        if day is None:
            logger.debug("Skipping time entry %s: malformed date %r", _field(row, "id"), _field(row, "date_key"))
            continue
        grouped[to_date_key(day)].append(row)
    return grouped


@dataclass(frozen=True)
class DayRow:
    date_key: str
    entry: str | None
    exit: str | None
    hours: float
    status: str | None
    is_working_day: bool


def monthly_day_rows(
    entries: Iterable[Any],
    year: int,
    month: int,
    overrides: Iterable[Any] = (),
    user_id: int | None = None,
) -> list[DayRow]:
    """One consolidated row per calendar day of the month."""
    grouped = group_entries_by_date(entries, user_id)
    holidays = holiday_keys(overrides)
    rows: list[DayRow] = []
    for day in month_days(year, month):
        key = to_date_key(day)
        consolidated = consolidate_day(grouped.get(key, []))
        rows.append(
            DayRow(
                date_key=key,
                entry=consolidated.entry if consolidated else None,
                exit=consolidated.exit if consolidated else None,
                hours=round(consolidated.hours, 2) if consolidated else 0.0,
                status=consolidated.status if consolidated else None,
                is_working_day=is_working_day(day, holidays),
            )
        )
    return rows


def real_worked_minutes(
    entries: Iterable[Any],
    year: int,
    month: int,
    user_id: int | None = None,
) -> int:
    grouped = group_entries_by_date(entries, user_id)
    total = 0
    for day in month_days(year, month):
        consolidated = consolidate_day(grouped.get(to_date_key(day), []))
        if consolidated is not None:
            total += consolidated.minutes
    return total


# ── Paid special permits ────────────────────────────────────────────
def is_paid_permit(absence: Any) -> bool:
    return (
        _field(absence, "type") == "special_permit"
        and _field(absence, "status") == "approved"
        and _field(absence, "resolution_type") == "paid"
    )


def iter_request_days(absence: Any, max_days: int = DEFAULT_PAID_PERMIT_MAX_DAYS) -> Iterator[date]:
    """Days covered by a request, start to end inclusive, at most ``max_days``.

    A malformed start or end date yields nothing. Longer ranges are cut
    off silently after ``max_days``.
    """
    start = parse_date_key(_field(absence, "date_key"))
    if start is None:
        return
    raw_end = _field(absence, "end_date")
    end = parse_date_key(raw_end) if raw_end else start
    if end is None:
        return
    day = start
    for _ in range(max_days):
        if day > end:
            return
        yield day
        day += timedelta(days=1)


def paid_permit_days(
    absences: Iterable[Any],
    year: int,
    month: int,
    overrides: Iterable[Any] = (),
    user_id: int | None = None,
    max_days: int = DEFAULT_PAID_PERMIT_MAX_DAYS,
) -> int:
    holidays = holiday_keys(overrides)
    count = 0
    for absence in absences:
        if user_id is not None and _field(absence, "created_by") != user_id:
            continue
        if not is_paid_permit(absence):
            continue
        for day in iter_request_days(absence, max_days):
            if day.year == year and day.month == month and is_working_day(day, holidays):
                count += 1
    return count


def paid_permit_hours(
    absences: Iterable[Any],
    weekly_hours: float,
    year: int,
    month: int,
    overrides: Iterable[Any] = (),
    user_id: int | None = None,
    max_days: int = DEFAULT_PAID_PERMIT_MAX_DAYS,
) -> float:
    """Virtual hours credited for approved, paid special permits."""
    if not weekly_hours or weekly_hours <= 0:
        return 0.0
    days = paid_permit_days(absences, year, month, overrides, user_id, max_days)
    return days * daily_hours(weekly_hours)


# ── Worked hours ────────────────────────────────────────────────────
@dataclass(frozen=True)
class WorkedHours:
    real_hours: float
    paid_permit_hours: float
    adjustment: float

    @property
    def raw(self) -> float:
        """Recomputed total before the admin adjustment."""
        return round1(self.real_hours + self.paid_permit_hours)

    @property
    def total(self) -> float:
        return round1(self.raw + self.adjustment)


def worked_hours(
    entries: Iterable[Any],
    absences: Iterable[Any],
    profile: Any,
    year: int,
    month: int,
    overrides: Iterable[Any] = (),
    user_id: int | None = None,
    max_permit_days: int = DEFAULT_PAID_PERMIT_MAX_DAYS,
) -> WorkedHours:
    overrides = list(overrides)
    real = real_worked_minutes(entries, year, month, user_id) / 60
    virtual = paid_permit_hours(
        absences,
        _number(profile, "weekly_hours"),
        year,
        month,
        overrides,
        user_id,
        max_permit_days,
    )
    return WorkedHours(
        real_hours=real,
        paid_permit_hours=virtual,
        adjustment=_number(profile, "hours_adjustment"),
    )


# ── Vacation ────────────────────────────────────────────────────────
def vacation_request_days(absence: Any) -> int:
    """Inclusive day count of a single request; 0 if its dates are malformed."""
    raw_start = _field(absence, "date_key")
    raw_end = _field(absence, "end_date")
    start = parse_date_key(raw_start)
    if start is None:
        return 0
    if not raw_end or raw_end == raw_start:
        return 1
    end = parse_date_key(raw_end)
    if end is None:
        return 0
    return abs((end - start).days) + 1


def vacation_days_raw(absences: Iterable[Any], user_id: int | None = None) -> int:
    """Vacation days consumed across all time; pending requests count too."""
    total = 0
    for absence in absences:
        if user_id is not None and _field(absence, "created_by") != user_id:
            continue
        if _field(absence, "type") != "vacation" or _field(absence, "status") == "rejected":
            continue
        total += vacation_request_days(absence)
    return total


@dataclass(frozen=True)
class VacationBalance:
    total: int
    raw_used: int
    adjustment: float

    @property
    def used(self) -> float:
        used = self.raw_used + self.adjustment
        return max(0.0, round1(used))

    @property
    def remaining(self) -> float:
        return max(0.0, round1(self.total - self.used))


def vacation_balance(
    absences: Iterable[Any],
    profile: Any,
    user_id: int | None = None,
) -> VacationBalance:
    return VacationBalance(
        total=int(_number(profile, "vacation_days_total")),
        raw_used=vacation_days_raw(absences, user_id),
        adjustment=_number(profile, "vacation_adjustment"),
    )


# ── Monthly summary ─────────────────────────────────────────────────
@dataclass(frozen=True)
class MonthlySummary:
    year: int
    month: int
    weekly_hours: float
    working_days: int
    expected_hours: float
    worked: WorkedHours
    vacation: VacationBalance
    days: list[DayRow] = field(default_factory=list)

    @property
    def remaining_hours(self) -> float:
        return max(0.0, round1(self.expected_hours - self.worked.total))

    @property
    def balance_hours(self) -> float:
        return round1(self.worked.total - self.expected_hours)


def monthly_summary(
    entries: Iterable[Any],
    absences: Iterable[Any],
    overrides: Iterable[Any],
    profile: Any,
    year: int,
    month: int,
    user_id: int | None = None,
    max_permit_days: int = DEFAULT_PAID_PERMIT_MAX_DAYS,
) -> MonthlySummary:
    entries = list(entries)
    absences = list(absences)
    overrides = list(overrides)
    weekly = _number(profile, "weekly_hours")
    return MonthlySummary(
        year=year,
        month=month,
        weekly_hours=weekly,
        working_days=count_working_days(year, month, overrides),
        expected_hours=expected_monthly_hours(weekly, year, month, overrides),
        worked=worked_hours(entries, absences, profile, year, month, overrides, user_id, max_permit_days),
        vacation=vacation_balance(absences, profile, user_id),
        days=monthly_day_rows(entries, year, month, overrides, user_id),
    )


# ── Adjustment reconciliation ───────────────────────────────────────
@dataclass(frozen=True)
class RawTotals:
    """Pre-adjustment figures as they stood when an admin opened the editor."""

    worked_hours: float
    vacation_used: float


def raw_totals(summary: MonthlySummary) -> RawTotals:
    return RawTotals(worked_hours=summary.worked.raw, vacation_used=summary.vacation.raw_used)


def reconcile_adjustments(
    raw: RawTotals,
    displayed_hours: float | None = None,
    displayed_vacation_used: float | None = None,
    weekly_hours: float | None = None,
    vacation_days_total: int | None = None,
) -> dict[str, float | int]:
    """Turn admin-entered displayed totals into stored adjustment deltas.

    Returns the partial work-profile update payload. Only the keys the
    admin actually supplied are present.
    """
    payload: dict[str, float | int] = {}
    if weekly_hours is not None:
        payload["weekly_hours"] = weekly_hours
    if vacation_days_total is not None:
        payload["vacation_days_total"] = vacation_days_total
    if displayed_hours is not None:
        payload["hours_adjustment"] = round1(displayed_hours - raw.worked_hours)
    if displayed_vacation_used is not None:
        payload["vacation_adjustment"] = round1(displayed_vacation_used - raw.vacation_used)
    return payload
