"""
Tests für den WTD-Service – Tages-/Wochenarbeitszeit, Pausen, Ruhezeiten,
Folgetage und Score. Reine Funktionen, keine DB.
"""
from datetime import date, datetime, time, timedelta, timezone
from types import SimpleNamespace

import pytest

from drivetime.core.config import settings
from drivetime.services.wtd_service import (
    WTDLimits,
    analyze_wtd_compliance,
    entry_status,
    required_break_minutes,
    week_bounds,
)

MON = date(2025, 9, 1)
TUE = date(2025, 9, 2)
WED = date(2025, 9, 3)
THU = date(2025, 9, 4)
FRI = date(2025, 9, 5)
SAT = date(2025, 9, 6)
SUN = date(2025, 9, 7)

# Später als alle Testdaten → offene Einträge gelten nicht als "heute"
NOW = datetime(2025, 9, 20, 12, 0)


# ── Stub-Helfer ───────────────────────────────────────────────────────────────

def make_entry(
    entry_date: date,
    start: str | None,
    end: str | None,
    break_start: str | None = None,
    break_end: str | None = None,
    driving_minutes: int = 0,
):
    def t(value):
        if value is None:
            return None
        h, m = map(int, value.split(":"))
        return time(h, m)

    return SimpleNamespace(
        entry_date=entry_date,
        clock_in_time=t(start),
        clock_out_time=t(end),
        break_start_time=t(break_start),
        break_end_time=t(break_end),
        driving_minutes=driving_minutes,
    )


def analyze(entries, ref, limits=None, now=NOW):
    return analyze_wtd_compliance(entries, ref, limits or WTDLimits(), now=now)


# ── Tagesarbeitszeit ──────────────────────────────────────────────────────────

def test_no_entry_on_reference_date():
    """Kein Eintrag am Stichtag → 0 Minuten, Tagesgrenze eingehalten."""
    result = analyze([make_entry(TUE, "08:00", "16:00")], MON)
    assert result.daily_working_minutes == 0
    assert result.daily_limit_ok
    assert result.daily_compliance


def test_empty_entry_list_is_compliant():
    result = analyze([], MON)
    assert result.daily_working_minutes == 0
    assert result.weekly_working_minutes == 0
    assert result.overall_compliance
    assert result.compliance_score == 100


def test_monday_with_half_hour_break():
    """Mo 08:00–16:00, Pause 12:00–12:30 → 450 Minuten, Limit 600 eingehalten."""
    entries = [make_entry(MON, "08:00", "16:00", "12:00", "12:30")]
    result = analyze(entries, MON, WTDLimits(max_daily_working_minutes=600))
    assert result.daily_working_minutes == pytest.approx(450)
    assert result.daily_break_minutes == pytest.approx(30)
    assert result.daily_limit_ok
    assert result.overall_compliance
    assert result.compliance_score == 100


def test_daily_limit_boundary_inclusive():
    limits = WTDLimits(max_daily_working_minutes=600)

    exact = analyze([make_entry(MON, "08:00", "18:00")], MON, limits)
    assert exact.daily_working_minutes == pytest.approx(600)
    assert exact.daily_limit_ok

    over = analyze([make_entry(MON, "08:00", "18:01")], MON, limits)
    assert over.daily_working_minutes == pytest.approx(601)
    assert not over.daily_limit_ok
    assert not over.daily_compliance
    assert not over.overall_compliance
    assert any("Daily working time" in v for v in over.critical_violations)


def test_multiple_entries_same_day_are_summed():
    entries = [make_entry(MON, "06:00", "09:00"), make_entry(MON, "18:00", "20:00")]
    result = analyze(entries, MON)
    assert result.daily_working_minutes == pytest.approx(300)


def test_overnight_entry_ends_next_day():
    """Mo 22:00–06:00 → 8h, wird dem Montag zugerechnet."""
    result = analyze([make_entry(MON, "22:00", "06:00")], MON)
    assert result.daily_working_minutes == pytest.approx(480)


# ── Offene Einträge ───────────────────────────────────────────────────────────

def test_open_entry_on_past_date_counts_zero():
    result = analyze([make_entry(MON, "08:00", None)], MON, now=NOW)
    assert result.daily_working_minutes == 0
    assert result.weekly_working_minutes == 0


def test_open_entry_today_runs_until_now():
    now = datetime(2025, 9, 1, 10, 30)
    result = analyze([make_entry(MON, "08:00", None)], MON, now=now)
    assert result.daily_working_minutes == pytest.approx(150)


def test_open_entry_today_ignored_for_other_reference_date():
    """Stichtag Montag, heute Dienstag mit laufendem Dienst → Dienstag zählt 0."""
    now = datetime(2025, 9, 2, 10, 0)
    entries = [make_entry(MON, "08:00", "12:00"), make_entry(TUE, "08:00", None)]
    result = analyze(entries, MON, now=now)
    assert result.weekly_working_minutes == pytest.approx(240)


def test_timezone_aware_now_is_accepted():
    now = datetime(2025, 9, 1, 9, 0, tzinfo=timezone.utc)
    result = analyze([make_entry(MON, "08:00", None)], MON, now=now)
    assert result.daily_working_minutes == pytest.approx(60)


# ── Wochenarbeitszeit ─────────────────────────────────────────────────────────

def test_week_sum_monday_and_tuesday():
    """450 (Mo) + 720 (Di) = 1170 Minuten in derselben Woche."""
    entries = [
        make_entry(MON, "08:00", "16:00", "12:00", "12:30"),
        make_entry(TUE, "08:00", "20:00"),
    ]
    result = analyze(entries, MON)
    assert result.weekly_working_minutes == pytest.approx(1170)
    assert result.weekly_limit_ok


def test_weekly_total_independent_of_order():
    entries = [
        make_entry(WED, "07:00", "15:00"),
        make_entry(MON, "08:00", "16:00", "12:00", "12:30"),
        make_entry(FRI, "09:00", "13:00"),
        make_entry(TUE, "08:00", "20:00"),
    ]
    forward = analyze(entries, THU)
    backward = analyze(list(reversed(entries)), THU)
    assert forward.weekly_working_minutes == pytest.approx(backward.weekly_working_minutes)

    per_day = sum(analyze(entries, MON + timedelta(days=i)).daily_working_minutes for i in range(7))
    assert forward.weekly_working_minutes == pytest.approx(per_day)
    assert forward.weekly_working_minutes == pytest.approx(sum(forward.daily_minutes_by_date.values()))


def test_entries_outside_week_excluded():
    """Sonntag davor und Montag danach gehören nicht zur Woche Mo–So."""
    entries = [
        make_entry(MON - timedelta(days=1), "08:00", "16:00"),
        make_entry(WED, "08:00", "12:00"),
        make_entry(SUN + timedelta(days=1), "08:00", "16:00"),
    ]
    result = analyze(entries, FRI)
    assert result.weekly_working_minutes == pytest.approx(240)


def test_weekly_limit_exceeded():
    limits = WTDLimits(max_weekly_working_minutes=1000)
    entries = [make_entry(MON, "08:00", "16:00"), make_entry(TUE, "08:00", "12:00")]
    result = analyze(entries, TUE, limits)
    assert result.weekly_working_minutes == pytest.approx(720)
    assert result.weekly_limit_ok

    entries.append(make_entry(WED, "08:00", "13:00"))
    result = analyze(entries, WED, limits)
    assert result.weekly_working_minutes == pytest.approx(1020)
    assert not result.weekly_limit_ok
    assert not result.weekly_compliance
    assert not result.overall_compliance


def test_week_bounds_custom_start():
    assert week_bounds(WED) == (MON, SUN)
    assert week_bounds(WED, week_start=6) == (date(2025, 8, 31), SAT)


# ── Lenkzeit ──────────────────────────────────────────────────────────────────

def test_daily_driving_limit():
    """10h Lenkzeit bei 10,25h Arbeitszeit → Tagesgrenze Arbeitszeit ok, Lenkzeit nicht."""
    entries = [make_entry(MON, "08:00", "19:00", "12:00", "12:45", driving_minutes=600)]
    result = analyze(entries, MON)
    assert result.daily_limit_ok
    assert result.daily_driving_minutes == 600
    assert not result.daily_compliance
    assert any("Daily driving time" in v for v in result.critical_violations)


# ── Pausen ────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "worked, driving, expected",
    [(240, 0, 0), (360, 0, 0), (420, 0, 30), (570, 0, 45), (300, 280, 45)],
)
def test_required_break_minutes(worked, driving, expected):
    assert required_break_minutes(worked, driving, WTDLimits()) == expected


def test_break_missing_after_six_hours():
    result = analyze([make_entry(MON, "08:00", "15:00")], MON)
    assert result.required_break_minutes == 30
    assert not result.break_compliance
    assert not result.overall_compliance
    assert result.break_warnings


def test_twelve_hours_without_break_fails_breaks_only():
    entries = [
        make_entry(MON, "08:00", "16:00", "12:00", "12:30"),
        make_entry(TUE, "08:00", "20:00"),
    ]
    result = analyze(entries, TUE)
    assert result.daily_working_minutes == pytest.approx(720)
    assert result.daily_limit_ok
    assert not result.break_compliance
    assert result.rules["daily"] and result.rules["weekly"]
    assert not result.overall_compliance


def test_driving_break_after_four_and_half_hours():
    """5h Lenkzeit, nur 30min Pause → 45min erforderlich."""
    entries = [make_entry(MON, "08:00", "15:00", "12:00", "12:30", driving_minutes=300)]
    result = analyze(entries, MON)
    assert result.required_break_minutes == 45
    assert not result.break_compliance


# ── Ruhezeiten ────────────────────────────────────────────────────────────────

def test_daily_rest_below_minimum_violation():
    """Mo endet 23:00, Di beginnt 07:00 → 8h Ruhe < 9h."""
    entries = [make_entry(MON, "14:00", "23:00"), make_entry(TUE, "07:00", "11:00")]
    result = analyze(entries, TUE)
    assert result.daily_rest_hours == pytest.approx(8)
    assert not result.rest_compliance
    assert any("Daily rest" in v for v in result.critical_violations)


def test_daily_rest_reduced_is_warning():
    """10h Ruhe → verkürzte Tagesruhe, Warnung aber konform."""
    entries = [make_entry(MON, "14:00", "23:00"), make_entry(TUE, "09:00", "13:00")]
    result = analyze(entries, TUE)
    assert result.daily_rest_hours == pytest.approx(10)
    assert result.rest_compliance
    assert result.reduced_daily_rests == 1
    assert any("Reduced daily rest" in w for w in result.rest_warnings)


def test_first_shift_has_no_daily_rest():
    result = analyze([make_entry(MON, "08:00", "12:00")], MON)
    assert result.daily_rest_hours is None
    assert result.rest_compliance


def test_more_than_three_reduced_rests_per_week():
    """Mo–Fr 09:00–23:00 → Di–Fr je 10h Ruhe; 4× verkürzt am Freitag."""
    entries = [make_entry(d, "09:00", "23:00") for d in (MON, TUE, WED, THU, FRI)]

    thursday = analyze(entries, THU)
    assert thursday.reduced_daily_rests == 3
    assert thursday.rest_compliance

    friday = analyze(entries, FRI)
    assert friday.reduced_daily_rests == 4
    assert not friday.rest_compliance


def test_weekly_rest_too_short():
    """Jeden Tag 08:00–20:00 → längste Ruhe 12h < 24h."""
    entries = [make_entry(MON + timedelta(days=i), "08:00", "20:00") for i in range(7)]
    result = analyze(entries, SUN)
    assert result.weekly_rest_hours == pytest.approx(12)
    assert not result.rest_compliance
    assert any("Weekly rest" in v for v in result.critical_violations)


def test_weekly_rest_reduced_is_warning():
    """Mo–Sa mit Pause, danach 32h bis Wochenende → verkürzte Wochenruhe."""
    entries = [
        make_entry(MON + timedelta(days=i), "08:00", "16:00", "12:00", "12:30") for i in range(6)
    ]
    result = analyze(entries, SAT)
    assert result.weekly_rest_hours == pytest.approx(32)
    assert result.rest_compliance
    assert any("Reduced weekly rest" in w for w in result.rest_warnings)
    assert result.consecutive_working_days == 6
    assert result.overall_compliance


def test_weekly_rest_uses_shift_after_week():
    """Folgeschicht am Montag 06:00 verkürzt die Ruhe nach Samstag 16:00 auf 38h."""
    entries = [
        make_entry(MON + timedelta(days=i), "08:00", "16:00", "12:00", "12:30") for i in range(6)
    ]
    entries.append(make_entry(SUN + timedelta(days=1), "06:00", "10:00"))
    result = analyze(entries, SAT)
    assert result.weekly_rest_hours == pytest.approx(38)


# ── Folgetage ─────────────────────────────────────────────────────────────────

def test_seven_consecutive_days_violation():
    entries = [make_entry(MON + timedelta(days=i), "08:00", "12:00") for i in range(7)]
    result = analyze(entries, SUN)
    assert result.consecutive_working_days == 7
    assert not result.consecutive_days_compliance
    assert not result.overall_compliance


def test_consecutive_days_count_across_weeks():
    entries = [make_entry(MON - timedelta(days=i), "08:00", "12:00") for i in range(3)]
    result = analyze(entries, MON)
    assert result.consecutive_working_days == 3


# ── Gesamt, Score, Warnungen ──────────────────────────────────────────────────

@pytest.mark.parametrize(
    "entries, ref",
    [
        ([], MON),
        ([make_entry(MON, "08:00", "15:00")], MON),
        ([make_entry(MON, "08:00", "16:00", "12:00", "12:30")], MON),
        ([make_entry(MON + timedelta(days=i), "08:00", "20:00") for i in range(7)], SUN),
    ],
)
def test_overall_is_conjunction_of_rules(entries, ref):
    result = analyze(entries, ref)
    assert result.overall_compliance == all(result.rules.values())
    assert bool(result.critical_violations) == (not result.overall_compliance)


def test_approaching_daily_limit_warns():
    """560 Minuten bei Limit 600 → Warnung, Score 95, weiterhin konform."""
    entries = [make_entry(MON, "08:00", "18:05", "12:00", "12:45")]
    result = analyze(entries, MON, WTDLimits(max_daily_working_minutes=600))
    assert result.daily_working_minutes == pytest.approx(560)
    assert result.daily_warnings
    assert result.overall_compliance
    assert result.compliance_score == 95


def test_score_penalty_for_daily_violation():
    entries = [make_entry(MON, "08:00", "19:45", "12:00", "12:45")]
    result = analyze(entries, MON, WTDLimits(max_daily_working_minutes=600))
    assert result.daily_working_minutes == pytest.approx(660)
    assert result.compliance_score == 80


# ── Robustheit ────────────────────────────────────────────────────────────────

def test_string_and_dict_entries():
    entries = [
        {"entry_date": "2025-09-01", "clock_in_time": "08:00:00", "clock_out_time": "16:00"},
        {"entry_date": "2025-09-02", "clock_in_time": "08:00", "clock_out_time": "12:00",
         "driving_minutes": "90"},
    ]
    result = analyze(entries, TUE)
    assert result.daily_working_minutes == pytest.approx(240)
    assert result.daily_driving_minutes == 90
    assert result.weekly_working_minutes == pytest.approx(720)


def test_malformed_entries_count_zero():
    entries = [
        {"entry_date": "2025-09-01", "clock_in_time": "garbage", "clock_out_time": "16:00"},
        {"entry_date": None, "clock_in_time": "08:00", "clock_out_time": "16:00"},
        {"entry_date": "not-a-date", "clock_in_time": "08:00", "clock_out_time": "16:00"},
        {"entry_date": "2025-09-01", "clock_in_time": "08:00", "clock_out_time": "10:00",
         "break_start_time": "09:00", "driving_minutes": "abc"},
    ]
    result = analyze(entries, MON)
    assert result.daily_working_minutes == pytest.approx(120)
    assert result.daily_break_minutes == 0
    assert result.daily_driving_minutes == 0


def test_time_values_with_utc_offset():
    """Uhrzeiten mit Offset (Postgres timetz) werden als lokale Uhrzeit gelesen."""
    entries = [
        {"entry_date": "2025-09-01", "clock_in_time": "08:00:00+00", "clock_out_time": "16:00:00",
         "break_start_time": "12:00:00+01:00", "break_end_time": "12:30"},
        make_entry(TUE, "08:00", None),
    ]
    entries[1].clock_in_time = time(8, 0, tzinfo=timezone.utc)

    result = analyze(entries, MON)
    assert result.daily_working_minutes == pytest.approx(450)
    assert result.daily_break_minutes == pytest.approx(30)

    running = analyze(entries, TUE, now=datetime(2025, 9, 2, 9, 0, tzinfo=timezone.utc))
    assert running.daily_working_minutes == pytest.approx(60)
    assert running.weekly_working_minutes == pytest.approx(510)


def test_inputs_not_mutated():
    entry = make_entry(MON, "08:00", None)
    before = dict(vars(entry))
    analyze([entry], MON, now=datetime(2025, 9, 1, 12, 0))
    assert vars(entry) == before


def test_limits_from_settings_match_defaults():
    limits = WTDLimits.from_settings(settings)
    assert limits.max_daily_working_minutes == 13 * 60
    assert limits.max_weekly_working_minutes == 60 * 60
    assert limits.min_daily_rest_hours == 11
    assert limits.min_weekly_rest_hours == 45
    assert limits.max_consecutive_working_days == 6
    assert limits.week_start == 0


def test_entry_status():
    assert entry_status(make_entry(MON, "08:00", None)) == "active"
    assert entry_status(make_entry(MON, "08:00", None, "12:00")) == "on_break"
    assert entry_status(make_entry(MON, "08:00", None, "12:00", "12:30")) == "active"
    assert entry_status(make_entry(MON, "08:00", "16:00")) == "completed"
