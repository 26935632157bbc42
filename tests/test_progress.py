# tests/test_progress.py
from datetime import date, timedelta

from aplus_study.db import init_db, get_connection
from aplus_study.models import ObjectiveProgress, ReviewQuality
from aplus_study.progress import (
    get_objective_progress, get_progress, get_schedule, get_schedules,
    get_setting, get_streak, record_study_activity, save_progress,
    save_schedule, set_setting,
)
from aplus_study.sm2 import new_card_schedule, next_schedule


def test_init_db_creates_tables(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    tables = {r["name"] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    conn.close()
    for table in ("card_schedules", "objective_progress", "streak", "quiz_history",
                  "exam_results", "user_settings"):
        assert table in tables


def test_init_db_idempotent(tmp_db):
    init_db(tmp_db)
    init_db(tmp_db)


def test_settings(tmp_db):
    init_db(tmp_db)
    assert get_setting(tmp_db, "theme", "dark") == "dark"
    set_setting(tmp_db, "theme", "light")
    set_setting(tmp_db, "theme", "solarized")
    assert get_setting(tmp_db, "theme") == "solarized"


def test_schedule_round_trip(tmp_db, now):
    init_db(tmp_db)
    assert get_schedule(tmp_db, "fc-c1-001") is None
    schedule = next_schedule(new_card_schedule("fc-c1-001", now), ReviewQuality.GOOD, now)
    save_schedule(tmp_db, schedule)
    assert get_schedule(tmp_db, "fc-c1-001") == schedule


def test_save_schedule_replaces_snapshot(tmp_db, now):
    init_db(tmp_db)
    first = next_schedule(new_card_schedule("fc-c1-001", now), ReviewQuality.GOOD, now)
    second = next_schedule(first, ReviewQuality.GOOD, now)
    save_schedule(tmp_db, first)
    save_schedule(tmp_db, second)
    schedules = get_schedules(tmp_db)
    assert schedules == [second]


def test_missing_objective_progress_is_fresh(tmp_db):
    init_db(tmp_db)
    p = get_objective_progress(tmp_db, "Core 1", "2.1")
    assert p.quiz_scores == []
    assert p.mastery == "not_started"


def test_save_progress_recomputes_cached_mastery(tmp_db, now):
    init_db(tmp_db)
    save_progress(tmp_db, ObjectiveProgress("2.1", "Core 1", [90, 85], 3, now))
    conn = get_connection(tmp_db)
    row = conn.execute("SELECT mastery FROM objective_progress WHERE objective_id = '2.1'").fetchone()
    conn.close()
    assert row["mastery"] == "mastered"

    p = get_objective_progress(tmp_db, "Core 1", "2.1")
    p.quiz_scores.append(0)
    save_progress(tmp_db, p)
    conn = get_connection(tmp_db)
    row = conn.execute("SELECT mastery FROM objective_progress WHERE objective_id = '2.1'").fetchone()
    conn.close()
    assert row["mastery"] == "in_progress"
    assert get_objective_progress(tmp_db, "Core 1", "2.1").quiz_scores == [90, 85, 0]


def test_get_progress_filters_by_exam(tmp_db):
    init_db(tmp_db)
    save_progress(tmp_db, ObjectiveProgress("2.1", "Core 1", [50]))
    save_progress(tmp_db, ObjectiveProgress("2.2", "Core 2", [70]))
    assert [p.objective_id for p in get_progress(tmp_db, "Core 2")] == ["2.2"]
    assert len(get_progress(tmp_db)) == 2


def test_record_study_activity(tmp_db):
    init_db(tmp_db)
    assert get_streak(tmp_db) is None
    day = date(2026, 3, 10)
    record_study_activity(tmp_db, day)
    record_study_activity(tmp_db, day)
    streak = record_study_activity(tmp_db, day + timedelta(days=1))
    assert streak.current_streak == 2
    assert get_streak(tmp_db) == streak
