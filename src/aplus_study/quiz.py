"""Quiz engine for practice questions."""
import json
import logging
import random
import uuid
from datetime import datetime
from typing import Optional

from aplus_study.content import Catalogue
from aplus_study.db import get_connection
from aplus_study.models import (
    QuizResult, parse_timestamp, question_result_from_dict, utcnow,
)
from aplus_study.progress import get_objective_progress, record_study_activity, save_progress
from aplus_study.scoring import quiz_percentage

logger = logging.getLogger(__name__)


def get_quiz_questions(
    catalogue: Catalogue,
    exam: str = None,
    domain: str = None,
    objective_id: str = None,
    count: int = 10,
    rng: random.Random = None,
) -> list:
    pool = catalogue.questions_for(exam=exam, domain=domain, objective_id=objective_id)
    rng = rng or random.Random()
    return rng.sample(pool, min(count, len(pool)))


def missed_question_ids(results: list) -> list[str]:
    """Ids of questions not fully correct, for a retry-missed round."""
    return [r.question_id for r in results if not r.correct]


def _objective_scores(questions: list, results: list) -> dict:
    """Group results by (exam, objective) and score each group."""
    by_id = {q.id: q for q in questions}
    groups = {}
    for result in results:
        question = by_id.get(result.question_id)
        if question is None:
            continue
        groups.setdefault((question.exam, question.objective_id), []).append(result)
    return {key: quiz_percentage(group) for key, group in groups.items()}


def record_quiz(
    db_path: str,
    exam: str,
    questions: list,
    results: list,
    domain: str = None,
    objective_id: str = None,
    now: Optional[datetime] = None,
) -> QuizResult:
    """Save a finished quiz, append objective scores and advance the streak."""
    now = now or utcnow()
    quiz = QuizResult(
        id=f"quiz-{uuid.uuid4().hex}",
        taken_at=now,
        exam=exam,
        domain=domain,
        objective_id=objective_id,
        total_questions=len(results),
        correct_answers=sum(1 for r in results if r.correct),
        score=quiz_percentage(results),
        question_results=list(results),
    )
    save_quiz_result(db_path, quiz)

    for (q_exam, q_objective), score in _objective_scores(questions, results).items():
        progress = get_objective_progress(db_path, q_exam, q_objective)
        progress.quiz_scores.append(score)
        progress.last_studied = now
        save_progress(db_path, progress)

    record_study_activity(db_path, now.date())
    logger.debug("Recorded %s: %d/%d (%d%%)", quiz.id, quiz.correct_answers, quiz.total_questions, quiz.score)
    return quiz


def write_quiz_result(conn, quiz: QuizResult) -> None:
    conn.execute(
        """INSERT OR REPLACE INTO quiz_history
        (id, taken_at, exam, domain, objective_id, total_questions, correct_answers, score, question_results)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            quiz.id, quiz.taken_at.isoformat(), quiz.exam, quiz.domain, quiz.objective_id,
            quiz.total_questions, quiz.correct_answers, quiz.score,
            json.dumps([r.to_dict() for r in quiz.question_results]),
        ),
    )


def save_quiz_result(db_path: str, quiz: QuizResult) -> None:
    conn = get_connection(db_path)
    write_quiz_result(conn, quiz)
    conn.commit()
    conn.close()


def get_quiz_history(db_path: str, exam: str = None) -> list[QuizResult]:
    """Saved quizzes, newest first."""
    conn = get_connection(db_path)
    if exam is None:
        rows = conn.execute("SELECT * FROM quiz_history ORDER BY taken_at DESC").fetchall()
    else:
        rows = conn.execute(
            "SELECT * FROM quiz_history WHERE exam = ? ORDER BY taken_at DESC", (exam,)
        ).fetchall()
    conn.close()
    return [
        QuizResult(
            id=r["id"],
            taken_at=parse_timestamp(r["taken_at"]),
            exam=r["exam"],
            domain=r["domain"],
            objective_id=r["objective_id"],
            total_questions=r["total_questions"],
            correct_answers=r["correct_answers"],
            score=r["score"],
            question_results=[question_result_from_dict(d) for d in json.loads(r["question_results"])],
        )
        for r in rows
    ]
