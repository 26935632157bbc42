# tests/test_exam.py
import random

from aplus_study.db import init_db
from aplus_study.exam import build_exam, get_exam_results, submit_exam, time_limit_seconds
from aplus_study.progress import get_streak
from aplus_study.scoring import grade_matching, grade_multiple_choice


def _grade_all(questions, right=True):
    results = []
    for q in questions:
        if q.question_type == "matching":
            results.append(grade_matching(q, q.pairs if right else ()))
        else:
            results.append(grade_multiple_choice(q, q.correct if right else ""))
    return results


def test_build_exam_samples_exam_questions(catalogue):
    questions = build_exam(catalogue, "Core 1", rng=random.Random(7))
    assert len(questions) == 10  # pool is smaller than the 90-question exam
    assert all(q.exam == "Core 1" for q in questions)
    assert len(build_exam(catalogue, "Core 2", count=2)) == 2


def test_time_limit(catalogue):
    assert time_limit_seconds(catalogue.exam("Core 1")) == 5400


def test_perfect_exam_passes(tmp_db, catalogue, now):
    init_db(tmp_db)
    exam = catalogue.exam("Core 1")
    questions = catalogue.questions_for(exam="Core 1")
    result = submit_exam(tmp_db, exam, questions, _grade_all(questions), time_spent=1200, now=now)
    assert result.score == 900
    assert result.passed is True
    assert result.correct_answers == 10
    assert result.domain_scores["2.0"] == {"correct": 4, "total": 4}
    assert get_streak(tmp_db).current_streak == 1


def test_blank_exam_fails(tmp_db, catalogue, now):
    init_db(tmp_db)
    exam = catalogue.exam("Core 2")
    questions = catalogue.questions_for(exam="Core 2")
    result = submit_exam(tmp_db, exam, questions, _grade_all(questions, right=False), time_spent=10, now=now)
    assert result.score == 100
    assert result.passed is False
    assert result.domain_scores["1.0"] == {"correct": 0, "total": 1}


def test_passing_threshold_is_per_exam(tmp_db, catalogue, now):
    init_db(tmp_db)
    exam = catalogue.exam("Core 2")
    questions = catalogue.questions_for(exam="Core 2")
    # 3 of 4 correct: 100 + 0.75 * 800 = 700, exactly the Core 2 pass mark
    results = _grade_all(questions[:3]) + _grade_all(questions[3:], right=False)
    result = submit_exam(tmp_db, exam, questions, results, time_spent=10, now=now)
    assert result.score == 700
    assert result.passed is True


def test_exam_results_saved(tmp_db, catalogue, now):
    init_db(tmp_db)
    exam = catalogue.exam("Core 1")
    questions = catalogue.questions_for(exam="Core 1")
    result = submit_exam(tmp_db, exam, questions, _grade_all(questions), time_spent=-5, now=now)
    assert result.time_spent == 0
    assert get_exam_results(tmp_db) == [result]
    assert get_exam_results(tmp_db, exam="Core 2") == []
