"""
WTD-Service: Arbeitszeitprüfung nach der Road Transport Working Time Directive.

Reine Berechnung über die Zeiteinträge eines Fahrers – keine DB, kein I/O.
Die einzige Unreinheit ist die aktuelle Uhrzeit für einen noch laufenden
Dienst von heute; sie kann über ``now`` injiziert werden.

Fehlende oder kaputte Felder zählen als Dauer 0, es wird nie geworfen.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable

STATUS_ACTIVE = "active"
STATUS_ON_BREAK = "on_break"
STATUS_COMPLETED = "completed"


@dataclass(frozen=True)
class WTDLimits:
    # Tages-/Wochengrenzen (Minuten)
    max_daily_working_minutes: int = 13 * 60
    max_weekly_working_minutes: int = 60 * 60
    max_daily_driving_minutes: int = 9 * 60
    max_weekly_driving_minutes: int = 56 * 60

    # Pausen
    break_after_6h_minutes: int = 30
    break_after_9h_minutes: int = 45
    driving_break_after_4_5h_minutes: int = 45

    # Ruhezeiten (Stunden)
    min_daily_rest_hours: float = 11
    reduced_daily_rest_hours: float = 9
    max_reduced_daily_rests_per_week: int = 3
    min_weekly_rest_hours: float = 45
    reduced_weekly_rest_hours: float = 24
    max_consecutive_working_days: int = 6

    week_start: int = 0  # 0 = Montag

    # Vorwarnung ("approaching limit")
    daily_working_warning_minutes: int = 60
    daily_driving_warning_minutes: int = 30
    weekly_working_warning_minutes: int = 120
    weekly_driving_warning_minutes: int = 120

    @classmethod
    def from_settings(cls, settings) -> "WTDLimits":
        return cls(
            max_daily_working_minutes=settings.WTD_MAX_DAILY_WORKING_MINUTES,
            max_weekly_working_minutes=settings.WTD_MAX_WEEKLY_WORKING_MINUTES,
            max_daily_driving_minutes=settings.WTD_MAX_DAILY_DRIVING_MINUTES,
            max_weekly_driving_minutes=settings.WTD_MAX_WEEKLY_DRIVING_MINUTES,
            min_daily_rest_hours=settings.WTD_MIN_DAILY_REST_HOURS,
            reduced_daily_rest_hours=settings.WTD_REDUCED_DAILY_REST_HOURS,
            max_reduced_daily_rests_per_week=settings.WTD_MAX_REDUCED_DAILY_RESTS_PER_WEEK,
            min_weekly_rest_hours=settings.WTD_MIN_WEEKLY_REST_HOURS,
            reduced_weekly_rest_hours=settings.WTD_REDUCED_WEEKLY_REST_HOURS,
            max_consecutive_working_days=settings.WTD_MAX_CONSECUTIVE_WORKING_DAYS,
            week_start=settings.WTD_WEEK_START,
        )


@dataclass
class ComplianceAnalysis:
    reference_date: date
    week_start: date
    week_end: date

    # Tag
    daily_working_minutes: float = 0
    daily_driving_minutes: float = 0
    daily_break_minutes: float = 0
    required_break_minutes: int = 0
    daily_rest_hours: float | None = None
    daily_limit_ok: bool = True
    daily_compliance: bool = True

    # Woche
    weekly_working_minutes: float = 0
    weekly_driving_minutes: float = 0
    weekly_rest_hours: float | None = None
    reduced_daily_rests: int = 0
    daily_minutes_by_date: dict[date, float] = field(default_factory=dict)
    weekly_limit_ok: bool = True
    weekly_compliance: bool = True

    # Pausen / Ruhezeit / Folgetage
    break_compliance: bool = True
    rest_compliance: bool = True
    consecutive_working_days: int = 0
    consecutive_days_compliance: bool = True

    compliance_score: int = 100
    critical_violations: list[str] = field(default_factory=list)
    daily_warnings: list[str] = field(default_factory=list)
    weekly_warnings: list[str] = field(default_factory=list)
    break_warnings: list[str] = field(default_factory=list)
    rest_warnings: list[str] = field(default_factory=list)

    @property
    def rules(self) -> dict[str, bool]:
        return {
            "daily": self.daily_compliance,
            "weekly": self.weekly_compliance,
            "breaks": self.break_compliance,
            "rest": self.rest_compliance,
            "consecutive_days": self.consecutive_days_compliance,
        }

    @property
    def overall_compliance(self) -> bool:
        return all(self.rules.values())

    @property
    def warnings(self) -> list[str]:
        return self.daily_warnings + self.weekly_warnings + self.break_warnings + self.rest_warnings

    @property
    def daily_working_hours(self) -> float:
        return self.daily_working_minutes / 60

    @property
    def weekly_working_hours(self) -> float:
        return self.weekly_working_minutes / 60


@dataclass
class _Span:
    """Ein Zeiteintrag, auf konkrete Zeitpunkte aufgelöst."""
    entry_date: date
    start: datetime | None
    end: datetime | None
    break_minutes: float
    driving_minutes: float


# ── Normalisierung ────────────────────────────────────────────────────────────

def _get(entry: Any, name: str) -> Any:
    if isinstance(entry, dict):
        return entry.get(name)
    return getattr(entry, name, None)


def _parse_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def _parse_time(value: Any) -> time | None:
    """Lokale Uhrzeit ohne Zeitzone; ein Offset (z.B. aus ``timetz``) wird verworfen."""
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, str) and value:
        try:
            value = time.fromisoformat(value)
        except ValueError:
            return None
    if isinstance(value, time):
        return value.replace(tzinfo=None)
    return None


def _parse_minutes(value: Any) -> float:
    try:
        minutes = float(value or 0)
    except (TypeError, ValueError):
        return 0
    return max(0, minutes)


def _interval(day: date, start: time, end: time) -> tuple[datetime, datetime]:
    start_dt = datetime.combine(day, start)
    end_dt = datetime.combine(day, end)
    # Nachtdienste: Ende vor Beginn → Folgetag
    if end_dt < start_dt:
        end_dt += timedelta(days=1)
    return start_dt, end_dt


def _to_span(entry: Any) -> _Span | None:
    entry_date = _parse_date(_get(entry, "entry_date"))
    if entry_date is None:
        return None

    clock_in = _parse_time(_get(entry, "clock_in_time"))
    clock_out = _parse_time(_get(entry, "clock_out_time"))
    start = end = None
    if clock_in is not None:
        if clock_out is not None:
            start, end = _interval(entry_date, clock_in, clock_out)
        else:
            start = datetime.combine(entry_date, clock_in)

    break_minutes = 0.0
    break_start = _parse_time(_get(entry, "break_start_time"))
    break_end = _parse_time(_get(entry, "break_end_time"))
    if break_start is not None and break_end is not None:
        b_start, b_end = _interval(entry_date, break_start, break_end)
        break_minutes = (b_end - b_start).total_seconds() / 60

    return _Span(
        entry_date=entry_date,
        start=start,
        end=end,
        break_minutes=break_minutes,
        driving_minutes=_parse_minutes(_get(entry, "driving_minutes")),
    )


def entry_status(entry: Any) -> str:
    """Abgeleiteter Status: active | on_break | completed."""
    if _parse_time(_get(entry, "clock_out_time")) is not None:
        return STATUS_COMPLETED
    if (
        _parse_time(_get(entry, "break_start_time")) is not None
        and _parse_time(_get(entry, "break_end_time")) is None
    ):
        return STATUS_ON_BREAK
    return STATUS_ACTIVE


def week_bounds(reference_date: date, week_start: int = 0) -> tuple[date, date]:
    start = reference_date - timedelta(days=(reference_date.weekday() - week_start) % 7)
    return start, start + timedelta(days=6)


# ── Arbeitszeit ───────────────────────────────────────────────────────────────

def _effective_end(span: _Span, reference_date: date, now: datetime) -> datetime | None:
    """Ende eines Eintrags; offene Einträge laufen nur heute bis ``now``."""
    if span.start is None:
        return None
    if span.end is not None:
        return span.end
    today = now.date()
    if reference_date == today and span.entry_date == today and now > span.start:
        return now
    return None


def _worked_minutes(span: _Span, reference_date: date, now: datetime) -> float:
    end = _effective_end(span, reference_date, now)
    if end is None:
        return 0
    gross = (end - span.start).total_seconds() / 60
    return max(0, gross - span.break_minutes)


def required_break_minutes(worked_minutes: float, driving_minutes: float, limits: WTDLimits) -> int:
    required = 0
    if worked_minutes > 9 * 60:
        required = limits.break_after_9h_minutes
    elif worked_minutes > 6 * 60:
        required = limits.break_after_6h_minutes
    if driving_minutes > 4.5 * 60:
        required = max(required, limits.driving_break_after_4_5h_minutes)
    return required


# ── Ruhezeiten ────────────────────────────────────────────────────────────────

def _resolved(spans: list[_Span], reference_date: date, now: datetime) -> list[tuple[datetime, datetime]]:
    intervals = []
    for span in spans:
        end = _effective_end(span, reference_date, now)
        if end is not None:
            intervals.append((span.start, end))
    intervals.sort()
    return intervals


def _rest_before(day: date, intervals: list[tuple[datetime, datetime]]) -> float | None:
    """Ruhezeit in Stunden zwischen dem letzten Dienstende und dem ersten Beginn an ``day``."""
    day_starts = [s for s, _ in intervals if s.date() == day]
    if not day_starts:
        return None
    first_start = min(day_starts)
    previous_ends = [e for s, e in intervals if s < first_start]
    if not previous_ends:
        return None
    rest = (first_start - max(previous_ends)).total_seconds() / 3600
    return max(0, rest)


def _longest_rest_in_week(
    week_start: date, week_end: date, intervals: list[tuple[datetime, datetime]]
) -> float:
    """
    Längste dienstfreie Zeit, die die Woche berührt. Fehlt ein Dienst vor bzw.
    nach der Woche, gilt der Wochenrand als Grenze.
    """
    window_start = datetime.combine(week_start, time.min)
    window_end = datetime.combine(week_end + timedelta(days=1), time.min)

    before = [e for s, e in intervals if e <= window_start]
    after = [s for s, e in intervals if s >= window_end]
    inside = [(s, e) for s, e in intervals if e > window_start and s < window_end]

    cursor = max(before) if before else window_start
    longest = 0.0
    for s, e in inside:
        longest = max(longest, (s - cursor).total_seconds() / 3600)
        cursor = max(cursor, e)
    boundary = min(after) if after else window_end
    longest = max(longest, (boundary - cursor).total_seconds() / 3600)
    return longest


def _consecutive_working_days(reference_date: date, worked_dates: set[date]) -> int:
    count = 0
    day = reference_date
    while day in worked_dates:
        count += 1
        day -= timedelta(days=1)
    return count


# ── Analyse ───────────────────────────────────────────────────────────────────

def analyze_wtd_compliance(
    entries: Iterable[Any],
    reference_date: date,
    limits: WTDLimits | None = None,
    now: datetime | None = None,
) -> ComplianceAnalysis:
    limits = limits or WTDLimits()
    now = now or datetime.now()
    if now.tzinfo is not None:
        now = now.replace(tzinfo=None)

    spans = [s for s in (_to_span(e) for e in entries) if s is not None]
    week_start, week_end = week_bounds(reference_date, limits.week_start)
    result = ComplianceAnalysis(reference_date=reference_date, week_start=week_start, week_end=week_end)

    # 1. Tag
    daily = [s for s in spans if s.entry_date == reference_date]
    result.daily_working_minutes = sum(_worked_minutes(s, reference_date, now) for s in daily)
    result.daily_driving_minutes = sum(s.driving_minutes for s in daily)
    result.daily_break_minutes = sum(s.break_minutes for s in daily)

    # 2. Woche
    weekly = [s for s in spans if week_start <= s.entry_date <= week_end]
    for offset in range(7):
        day = week_start + timedelta(days=offset)
        result.daily_minutes_by_date[day] = sum(
            _worked_minutes(s, reference_date, now) for s in weekly if s.entry_date == day
        )
    result.weekly_working_minutes = sum(result.daily_minutes_by_date.values())
    result.weekly_driving_minutes = sum(s.driving_minutes for s in weekly)

    # 3. Tages-/Wochengrenzen
    _check_limits(result, limits)

    # 4. Pausen
    _check_breaks(result, limits)

    # 5. Ruhezeiten + Folgetage
    intervals = _resolved(spans, reference_date, now)
    _check_rest(result, limits, intervals)

    worked_dates = {s.entry_date for s in spans if s.start is not None}
    result.consecutive_working_days = _consecutive_working_days(reference_date, worked_dates)
    if result.consecutive_working_days > limits.max_consecutive_working_days:
        result.consecutive_days_compliance = False
        result.critical_violations.append(
            f"{result.consecutive_working_days} consecutive working days exceed limit "
            f"({limits.max_consecutive_working_days})"
        )

    result.compliance_score = _compliance_score(result, limits)
    return result


def _fmt_h(minutes: float) -> str:
    return f"{minutes / 60:.1f}h"


def _check_limits(result: ComplianceAnalysis, limits: WTDLimits) -> None:
    checks = [
        ("Daily working time", result.daily_working_minutes,
         limits.max_daily_working_minutes, limits.daily_working_warning_minutes, result.daily_warnings),
        ("Daily driving time", result.daily_driving_minutes,
         limits.max_daily_driving_minutes, limits.daily_driving_warning_minutes, result.daily_warnings),
        ("Weekly working time", result.weekly_working_minutes,
         limits.max_weekly_working_minutes, limits.weekly_working_warning_minutes, result.weekly_warnings),
        ("Weekly driving time", result.weekly_driving_minutes,
         limits.max_weekly_driving_minutes, limits.weekly_driving_warning_minutes, result.weekly_warnings),
    ]
    for label, value, limit, margin, warnings in checks:
        if value > limit:
            result.critical_violations.append(f"{label} ({_fmt_h(value)}) exceeds limit ({_fmt_h(limit)})")
        elif value > limit - margin:
            warnings.append(f"{label} ({_fmt_h(value)}) approaching limit ({_fmt_h(limit)})")

    result.daily_limit_ok = result.daily_working_minutes <= limits.max_daily_working_minutes
    result.daily_compliance = (
        result.daily_limit_ok and result.daily_driving_minutes <= limits.max_daily_driving_minutes
    )
    result.weekly_limit_ok = result.weekly_working_minutes <= limits.max_weekly_working_minutes
    result.weekly_compliance = (
        result.weekly_limit_ok and result.weekly_driving_minutes <= limits.max_weekly_driving_minutes
    )


def _check_breaks(result: ComplianceAnalysis, limits: WTDLimits) -> None:
    result.required_break_minutes = required_break_minutes(
        result.daily_working_minutes, result.daily_driving_minutes, limits
    )
    if result.daily_break_minutes >= result.required_break_minutes:
        return

    result.break_compliance = False
    message = (
        f"Break time ({result.daily_break_minutes:.0f} min) is less than required "
        f"({result.required_break_minutes} min) for {_fmt_h(result.daily_working_minutes)} of work"
    )
    result.critical_violations.append(message)
    result.break_warnings.append(message)
    if result.daily_driving_minutes > 4.5 * 60:
        result.break_warnings.append(
            f"{limits.driving_break_after_4_5h_minutes} min break required after 4.5h of driving"
        )


def _check_rest(
    result: ComplianceAnalysis, limits: WTDLimits, intervals: list[tuple[datetime, datetime]]
) -> None:
    day_rest = _rest_before(result.reference_date, intervals)
    result.daily_rest_hours = day_rest
    if day_rest is not None:
        if day_rest < limits.reduced_daily_rest_hours:
            result.rest_compliance = False
            result.critical_violations.append(
                f"Daily rest ({day_rest:.1f}h) below minimum ({limits.reduced_daily_rest_hours:g}h)"
            )
        elif day_rest < limits.min_daily_rest_hours:
            result.rest_warnings.append(
                f"Reduced daily rest ({day_rest:.1f}h, regular {limits.min_daily_rest_hours:g}h)"
            )

    # Verkürzte Tagesruhe: max. n-mal pro Woche (bis einschließlich Stichtag)
    day = result.week_start
    while day <= min(result.reference_date, result.week_end):
        rest = _rest_before(day, intervals)
        if rest is not None and limits.reduced_daily_rest_hours <= rest < limits.min_daily_rest_hours:
            result.reduced_daily_rests += 1
        day += timedelta(days=1)
    if result.reduced_daily_rests > limits.max_reduced_daily_rests_per_week:
        result.rest_compliance = False
        result.critical_violations.append(
            f"Daily rest reduced {result.reduced_daily_rests} times this week "
            f"(max. {limits.max_reduced_daily_rests_per_week})"
        )

    week_rest = _longest_rest_in_week(result.week_start, result.week_end, intervals)
    result.weekly_rest_hours = week_rest
    if week_rest < limits.reduced_weekly_rest_hours:
        result.rest_compliance = False
        result.critical_violations.append(
            f"Weekly rest ({week_rest:.1f}h) below minimum ({limits.reduced_weekly_rest_hours:g}h)"
        )
    elif week_rest < limits.min_weekly_rest_hours:
        result.rest_warnings.append(
            f"Reduced weekly rest ({week_rest:.1f}h) requires compensation"
        )


def _compliance_score(result: ComplianceAnalysis, limits: WTDLimits) -> int:
    score = 100
    penalties = [
        (result.daily_working_minutes, limits.max_daily_working_minutes,
         limits.daily_working_warning_minutes, 20),
        (result.daily_driving_minutes, limits.max_daily_driving_minutes,
         limits.daily_driving_warning_minutes, 20),
        (result.weekly_working_minutes, limits.max_weekly_working_minutes,
         limits.weekly_working_warning_minutes, 15),
        (result.weekly_driving_minutes, limits.max_weekly_driving_minutes,
         limits.weekly_driving_warning_minutes, 15),
    ]
    for value, limit, margin, penalty in penalties:
        if value > limit:
            score -= penalty
        elif value > limit - margin:
            score -= 5
    if not result.break_compliance:
        score -= 10
    if not result.rest_compliance:
        score -= 10
    if not result.consecutive_days_compliance:
        score -= 10
    return max(0, score)
