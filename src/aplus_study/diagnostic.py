"""Onboarding diagnostic quiz.

The diagnostic seeds objective progress with a deliberately conservative
bootstrap heuristic. It is separate from the question scorer: a correct
answer might be a guess, so it only counts as 50, and a wrong answer pulls
an objective's running mean down by 15 points when there is a mean to pull.
"""
import logging
import random
from datetime import datetime
from typing import Optional

from aplus_study.content import Catalogue
from aplus_study.models import ObjectiveProgress, utcnow
from aplus_study.progress import (
    get_objective_progress, get_setting, save_progress, set_setting,
)

logger = logging.getLogger(__name__)

DIAGNOSTIC_CORRECT_SCORE = 50
DIAGNOSTIC_WRONG_PENALTY = 15


def build_diagnostic(catalogue: Catalogue, per_domain: int = 2, rng: random.Random = None) -> list:
    """Pick up to ``per_domain`` multiple-choice questions from every domain of every exam."""
    rng = rng or random.Random()
    picked = []
    for exam in catalogue.exams:
        for domain in exam.domains:
            pool = [
                q for q in catalogue.questions_for(exam=exam.name, domain=domain.id)
                if q.question_type == "multiple-choice"
            ]
            picked.extend(rng.sample(pool, min(per_domain, len(pool))))
    return picked


def seed_progress_from_diagnostic(
    answers: list, now: Optional[datetime] = None, existing: dict = None,
) -> list[ObjectiveProgress]:
    """Turn ``(question, correct)`` answers into objective progress.

    ``existing`` maps ``(exam, objective_id)`` to progress already stored for
    that objective; diagnostic scores are appended to it rather than
    replacing it.
    """
    now = now or utcnow()
    existing = existing or {}
    progress = {}
    for question, correct in answers:
        key = (question.exam, question.objective_id)
        if key not in progress:
            prior = existing.get(key)
            progress[key] = ObjectiveProgress(
                objective_id=question.objective_id,
                exam=question.exam,
                quiz_scores=list(prior.quiz_scores) if prior else [],
                flashcards_reviewed=prior.flashcards_reviewed if prior else 0,
                last_studied=now,
            )
        scores = progress[key].quiz_scores
        if correct:
            scores.append(DIAGNOSTIC_CORRECT_SCORE)
        else:
            avg = sum(scores) / len(scores) if scores else 0
            if avg > 0:
                scores.append(max(0, avg - DIAGNOSTIC_WRONG_PENALTY))
    return list(progress.values())


def finish_onboarding(db_path: str, answers: list, now: Optional[datetime] = None) -> list[ObjectiveProgress]:
    existing = {
        (q.exam, q.objective_id): get_objective_progress(db_path, q.exam, q.objective_id)
        for q, _ in answers
    }
    seeded = seed_progress_from_diagnostic(answers, now, existing)
    for progress in seeded:
        save_progress(db_path, progress)
    set_setting(db_path, "onboarding_completed", "1")
    logger.info("Seeded progress for %d objective(s) from the diagnostic", len(seeded))
    return seeded


def skip_onboarding(db_path: str) -> None:
    set_setting(db_path, "onboarding_skipped", "1")


def needs_onboarding(db_path: str) -> bool:
    return not (get_setting(db_path, "onboarding_completed") or get_setting(db_path, "onboarding_skipped"))
