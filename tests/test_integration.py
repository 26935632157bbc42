# tests/test_integration.py
"""End-to-end tests of the core workflow."""
from datetime import timedelta

from aplus_study.dashboard import calc_readiness, get_domain_scores, get_study_stats
from aplus_study.db import init_db
from aplus_study.flashcards import get_due_flashcards, record_flashcard_rating
from aplus_study.models import ReviewQuality
from aplus_study.quiz import record_quiz
from aplus_study.scoring import grade_multiple_choice
from aplus_study.sm2 import new_card_schedule, next_schedule


def test_good_good_good_easy_sequence(now):
    schedule = new_card_schedule("fc-c1-003", now)
    intervals = []
    eases = []
    for quality in [ReviewQuality.GOOD, ReviewQuality.GOOD, ReviewQuality.GOOD, ReviewQuality.EASY]:
        schedule = next_schedule(schedule, quality, now)
        intervals.append(schedule.interval)
        eases.append(schedule.ease_factor)
    assert intervals[:2] == [1, 6]
    assert intervals[2] > 6
    assert intervals[3] > intervals[2]
    assert eases[3] > eases[2]
    assert intervals == [1, 6, 12, 26]


def test_study_week_workflow(tmp_db, catalogue, now):
    """Study on consecutive days and verify progress signals agree."""
    init_db(tmp_db)
    card = catalogue.flashcard("fc-c1-003")
    day = now
    for quality in [ReviewQuality.GOOD, ReviewQuality.GOOD, ReviewQuality.GOOD]:
        assert card.id in {c.id for c in get_due_flashcards(tmp_db, catalogue, exam="Core 1", limit=20, now=day)}
        schedule = record_flashcard_rating(tmp_db, card, quality, day)
        day = schedule.next_review

    questions = catalogue.questions_for(exam="Core 1", domain="2.0")
    mc = [q for q in questions if q.question_type == "multiple-choice"]
    results = [grade_multiple_choice(q, q.correct) for q in mc]
    record_quiz(tmp_db, "Core 1", mc, results, now=now + timedelta(days=1))

    stats = get_study_stats(tmp_db, now + timedelta(days=1))
    assert stats["flashcards_reviewed"] == 3
    assert stats["quizzes_taken"] == 1
    assert stats["current_streak"] == 1  # the six-day gap reset the streak
    assert stats["longest_streak"] == 2

    scores = {d["domain_id"]: d["score"] for d in get_domain_scores(tmp_db, catalogue, "Core 1")}
    assert scores["2.0"] == 100
    assert calc_readiness(tmp_db, catalogue, "Core 1") == 23
