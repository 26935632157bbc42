"""Timed practice exams scored on the 100-900 scale."""
import json
import logging
import random
import uuid
from datetime import datetime
from typing import Optional

from aplus_study.content import Catalogue
from aplus_study.db import get_connection
from aplus_study.models import (
    Exam, ExamResult, parse_timestamp, question_result_from_dict, utcnow,
)
from aplus_study.progress import record_study_activity
from aplus_study.scoring import DEFAULT_PASSING_SCORE, scaled_exam_score

logger = logging.getLogger(__name__)


def build_exam(catalogue: Catalogue, exam: str, count: int = None, rng: random.Random = None) -> list:
    """Sample questions for a practice exam; defaults to the real exam's length."""
    config = catalogue.exam(exam)
    pool = catalogue.questions_for(exam=exam)
    count = count or config.total_questions
    rng = rng or random.Random()
    return rng.sample(pool, min(count, len(pool)))


def time_limit_seconds(exam: Exam) -> int:
    return exam.time_minutes * 60


def submit_exam(
    db_path: str,
    exam: Exam,
    questions: list,
    results: list,
    time_spent: int,
    now: Optional[datetime] = None,
) -> ExamResult:
    """Score, save and return a finished practice exam."""
    now = now or utcnow()
    by_id = {r.question_id: r for r in results}
    domain_scores = {}
    for question in questions:
        tally = domain_scores.setdefault(question.domain, {"correct": 0, "total": 0})
        tally["total"] += 1
        result = by_id.get(question.id)
        if result is not None and result.correct:
            tally["correct"] += 1

    score = scaled_exam_score(results)
    passing = exam.passing_score or DEFAULT_PASSING_SCORE
    outcome = ExamResult(
        id=f"exam-{uuid.uuid4().hex}",
        taken_at=now,
        exam=exam.name,
        total_questions=len(results),
        correct_answers=sum(1 for r in results if r.correct),
        score=score,
        time_spent=max(0, int(time_spent)),
        passed=score >= passing,
        question_results=list(results),
        domain_scores=domain_scores,
    )
    save_exam_result(db_path, outcome)
    record_study_activity(db_path, now.date())
    logger.debug("Recorded %s: %d (%s)", outcome.id, score, "pass" if outcome.passed else "fail")
    return outcome


def write_exam_result(conn, result: ExamResult) -> None:
    conn.execute(
        """INSERT OR REPLACE INTO exam_results
        (id, taken_at, exam, total_questions, correct_answers, score, time_spent, passed,
         question_results, domain_scores)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            result.id, result.taken_at.isoformat(), result.exam, result.total_questions,
            result.correct_answers, result.score, result.time_spent, int(result.passed),
            json.dumps([r.to_dict() for r in result.question_results]),
            json.dumps(result.domain_scores),
        ),
    )


def save_exam_result(db_path: str, result: ExamResult) -> None:
    conn = get_connection(db_path)
    write_exam_result(conn, result)
    conn.commit()
    conn.close()


def get_exam_results(db_path: str, exam: str = None) -> list[ExamResult]:
    """Saved practice exams, newest first."""
    conn = get_connection(db_path)
    if exam is None:
        rows = conn.execute("SELECT * FROM exam_results ORDER BY taken_at DESC").fetchall()
    else:
        rows = conn.execute(
            "SELECT * FROM exam_results WHERE exam = ? ORDER BY taken_at DESC", (exam,)
        ).fetchall()
    conn.close()
    return [
        ExamResult(
            id=r["id"],
            taken_at=parse_timestamp(r["taken_at"]),
            exam=r["exam"],
            total_questions=r["total_questions"],
            correct_answers=r["correct_answers"],
            score=r["score"],
            time_spent=r["time_spent"],
            passed=bool(r["passed"]),
            question_results=[question_result_from_dict(d) for d in json.loads(r["question_results"])],
            domain_scores=json.loads(r["domain_scores"]),
        )
        for r in rows
    ]
