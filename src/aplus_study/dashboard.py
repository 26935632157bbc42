"""Readiness dashboard scoring and statistics."""
from datetime import datetime
from typing import Optional

from aplus_study.content import Catalogue
from aplus_study.db import get_connection
from aplus_study.models import utcnow
from aplus_study.progress import get_progress, get_schedules, get_streak
from aplus_study.scoring import (
    domain_score, readiness_label, readiness_score,
)
from aplus_study.sm2 import due_cards


def get_domain_scores(db_path: str, catalogue: Catalogue, exam: str) -> list[dict]:
    progress = get_progress(db_path, exam)
    results = []
    for d in catalogue.exam(exam).domains:
        objective_ids = {o.id for o in d.objectives}
        score = domain_score([p for p in progress if p.objective_id in objective_ids])
        results.append({
            "domain_id": d.id,
            "name": d.name,
            "weight": d.weight,
            "score": score,
            "label": readiness_label(score),
        })
    return results


def calc_readiness(db_path: str, catalogue: Catalogue, exam: str) -> int:
    scores = {d["domain_id"]: d["score"] for d in get_domain_scores(db_path, catalogue, exam)}
    return readiness_score(scores, catalogue.domain_weights(exam))


def get_objective_breakdown(db_path: str, catalogue: Catalogue, exam: str) -> list[dict]:
    """Per-objective mean score and mastery, in catalogue order."""
    progress = {p.objective_id: p for p in get_progress(db_path, exam)}
    rows = []
    for d in catalogue.exam(exam).domains:
        for o in d.objectives:
            p = progress.get(o.id)
            scores = p.quiz_scores if p else []
            rows.append({
                "domain_id": d.id,
                "objective_id": o.id,
                "title": o.title,
                "average": round(sum(scores) / len(scores), 1) if scores else None,
                "mastery": p.mastery if p else "not_started",
            })
    return rows


def get_study_stats(db_path: str, now: Optional[datetime] = None) -> dict:
    conn = get_connection(db_path)
    quizzes = conn.execute("SELECT COUNT(*) FROM quiz_history").fetchone()[0]
    exams = conn.execute("SELECT COUNT(*) FROM exam_results").fetchone()[0]
    flashcards = conn.execute("SELECT COALESCE(SUM(flashcards_reviewed), 0) FROM objective_progress").fetchone()[0]
    avg_row = conn.execute("SELECT AVG(score) as avg FROM quiz_history").fetchone()
    avg_quiz = round(avg_row["avg"], 1) if avg_row["avg"] is not None else 0.0
    conn.close()
    streak = get_streak(db_path)
    return {
        "quizzes_taken": quizzes,
        "exams_taken": exams,
        "flashcards_reviewed": flashcards,
        "avg_quiz_score": avg_quiz,
        "cards_due": len(due_cards(get_schedules(db_path), now or utcnow())),
        "current_streak": streak.current_streak if streak else 0,
        "longest_streak": streak.longest_streak if streak else 0,
    }
