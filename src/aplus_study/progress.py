"""Persistence for card schedules, objective progress, streak and settings."""
import json
import logging
from datetime import date
from typing import Optional

from aplus_study.db import get_connection
from aplus_study.models import (
    CardSchedule, ObjectiveProgress, StreakData, calculate_mastery,
    parse_timestamp,
)
from aplus_study.scoring import update_streak

logger = logging.getLogger(__name__)


# --- Settings ---


def get_setting(db_path: str, key: str, default: str = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


# --- Card schedules ---


def _row_to_schedule(row) -> CardSchedule:
    return CardSchedule(
        card_id=row["card_id"],
        ease_factor=row["ease_factor"],
        interval=row["interval"],
        repetitions=row["repetitions"],
        next_review=parse_timestamp(row["next_review"]),
        last_review=parse_timestamp(row["last_review"]),
    )


def get_schedule(db_path: str, card_id: str) -> Optional[CardSchedule]:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM card_schedules WHERE card_id = ?", (card_id,)).fetchone()
    conn.close()
    return _row_to_schedule(row) if row else None


def get_schedules(db_path: str) -> list[CardSchedule]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT * FROM card_schedules ORDER BY next_review").fetchall()
    conn.close()
    return [_row_to_schedule(r) for r in rows]


def write_schedule(conn, schedule: CardSchedule) -> None:
    """Insert or replace the schedule snapshot for one card."""
    conn.execute(
        """INSERT OR REPLACE INTO card_schedules
        (card_id, ease_factor, interval, repetitions, next_review, last_review)
        VALUES (?, ?, ?, ?, ?, ?)""",
        (
            schedule.card_id, schedule.ease_factor, schedule.interval,
            schedule.repetitions, schedule.next_review.isoformat(),
            schedule.last_review.isoformat(),
        ),
    )


def save_schedule(db_path: str, schedule: CardSchedule) -> None:
    conn = get_connection(db_path)
    write_schedule(conn, schedule)
    conn.commit()
    conn.close()
    logger.debug("Saved schedule for %s (interval=%d)", schedule.card_id, schedule.interval)


# --- Objective progress ---


def _row_to_progress(row) -> ObjectiveProgress:
    # The stored mastery column is a cache; ObjectiveProgress derives its own.
    return ObjectiveProgress(
        objective_id=row["objective_id"],
        exam=row["exam"],
        quiz_scores=json.loads(row["quiz_scores"]),
        flashcards_reviewed=row["flashcards_reviewed"],
        last_studied=parse_timestamp(row["last_studied"]) if row["last_studied"] else None,
    )


def get_progress(db_path: str, exam: str = None) -> list[ObjectiveProgress]:
    conn = get_connection(db_path)
    if exam is None:
        rows = conn.execute("SELECT * FROM objective_progress ORDER BY exam, objective_id").fetchall()
    else:
        rows = conn.execute(
            "SELECT * FROM objective_progress WHERE exam = ? ORDER BY objective_id", (exam,)
        ).fetchall()
    conn.close()
    return [_row_to_progress(r) for r in rows]


def get_objective_progress(db_path: str, exam: str, objective_id: str) -> ObjectiveProgress:
    """Stored progress for an objective, or a fresh record if it was never studied."""
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT * FROM objective_progress WHERE exam = ? AND objective_id = ?",
        (exam, objective_id),
    ).fetchone()
    conn.close()
    if row is None:
        return ObjectiveProgress(objective_id=objective_id, exam=exam)
    return _row_to_progress(row)


def write_progress(conn, progress: ObjectiveProgress) -> None:
    """Write an objective's progress, recomputing mastery from its scores."""
    conn.execute(
        """INSERT OR REPLACE INTO objective_progress
        (exam, objective_id, mastery, quiz_scores, flashcards_reviewed, last_studied)
        VALUES (?, ?, ?, ?, ?, ?)""",
        (
            progress.exam, progress.objective_id,
            calculate_mastery(progress.quiz_scores),
            json.dumps(list(progress.quiz_scores)),
            progress.flashcards_reviewed,
            progress.last_studied.isoformat() if progress.last_studied else None,
        ),
    )


def save_progress(db_path: str, progress: ObjectiveProgress) -> None:
    conn = get_connection(db_path)
    write_progress(conn, progress)
    conn.commit()
    conn.close()


# --- Streak ---


def get_streak(db_path: str) -> Optional[StreakData]:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM streak WHERE id = 1").fetchone()
    conn.close()
    if row is None:
        return None
    return StreakData(
        current_streak=row["current_streak"],
        longest_streak=row["longest_streak"],
        last_study_date=date.fromisoformat(row["last_study_date"]),
    )


def write_streak(conn, streak: StreakData) -> None:
    conn.execute(
        """INSERT OR REPLACE INTO streak (id, current_streak, longest_streak, last_study_date)
        VALUES (1, ?, ?, ?)""",
        (streak.current_streak, streak.longest_streak, streak.last_study_date.isoformat()),
    )


def save_streak(db_path: str, streak: StreakData) -> None:
    conn = get_connection(db_path)
    write_streak(conn, streak)
    conn.commit()
    conn.close()


def record_study_activity(db_path: str, today=None) -> StreakData:
    """Advance the stored streak for a study action and return it."""
    streak = update_streak(get_streak(db_path), today)
    save_streak(db_path, streak)
    return streak
