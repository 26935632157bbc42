"""Tests for data model classes."""
import json
from datetime import date

import pytest

from aplus_study.models import (
    CardSchedule, ExamResult, MatchingResult, MatchPair, MultipleChoiceResult,
    ObjectiveProgress, QuizResult, ReviewQuality, StreakData, as_utc,
    parse_timestamp, question_result_from_dict,
)


def test_review_quality_values():
    assert [int(q) for q in ReviewQuality] == [0, 2, 3, 5]
    with pytest.raises(ValueError):
        ReviewQuality(4)


def test_card_schedule_is_immutable(now):
    s = CardSchedule("fc-1", 2.5, 0, 0, now, now)
    with pytest.raises(AttributeError):
        s.interval = 3


def test_card_schedule_dict_round_trip(now):
    s = CardSchedule("fc-1", 2.36, 1, 1, now, now)
    data = json.loads(json.dumps(s.to_dict()))
    assert CardSchedule.from_dict(data) == s


def test_parse_timestamp_accepts_z_and_naive():
    assert parse_timestamp("2026-03-10T15:30:00Z").utcoffset().total_seconds() == 0
    assert parse_timestamp("2026-03-10T15:30:00").tzinfo is not None


def test_objective_progress_defaults():
    p = ObjectiveProgress(objective_id="2.1", exam="Core 1")
    assert p.quiz_scores == []
    assert p.flashcards_reviewed == 0
    assert p.last_studied is None
    assert p.mastery == "not_started"


def test_objective_progress_mastery_tracks_scores():
    p = ObjectiveProgress(objective_id="2.1", exam="Core 1", quiz_scores=[60])
    assert p.mastery == "in_progress"
    p.quiz_scores.append(100)
    assert p.mastery == "mastered"


def test_objective_progress_ignores_stored_mastery():
    p = ObjectiveProgress.from_dict({
        "objective_id": "2.1", "exam": "Core 1", "mastery": "mastered",
        "quiz_scores": [10], "flashcards_reviewed": 2, "last_studied": None,
    })
    assert p.mastery == "in_progress"
    assert p.to_dict()["mastery"] == "in_progress"


def test_matching_result_derived_fields():
    r = MatchingResult("q1", frozenset({MatchPair("a", "1")}), correct_pairs=1, total_pairs=2)
    assert r.question_type == "matching"
    assert r.correct is False
    assert r.partial_score == 0.5


def test_question_result_dict_dispatch():
    mc = MultipleChoiceResult("q1", "B", True)
    matching = MatchingResult("q2", frozenset({MatchPair("a", "1"), MatchPair("b", "2")}), 2, 2)
    assert question_result_from_dict(mc.to_dict()) == mc
    assert question_result_from_dict(json.loads(json.dumps(matching.to_dict()))) == matching


def test_streak_dict_round_trip():
    s = StreakData(3, 5, date(2026, 3, 10))
    assert s.to_dict()["last_study_date"] == "2026-03-10"
    assert StreakData.from_dict(s.to_dict()) == s


def test_quiz_and_exam_results_serialize_to_json(now):
    results = [MultipleChoiceResult("q1", "B", True)]
    quiz = QuizResult("quiz-1", now, "Core 1", 1, 1, 100, results, domain="2.0")
    exam = ExamResult("exam-1", now, "Core 1", 1, 1, 900, 60, True, results, {"2.0": {"correct": 1, "total": 1}})
    assert QuizResult.from_dict(json.loads(json.dumps(quiz.to_dict()))) == quiz
    assert ExamResult.from_dict(json.loads(json.dumps(exam.to_dict()))) == exam


@pytest.mark.parametrize("scores", [["oops"], [float("nan")], [float("inf")], [True], "90"])
def test_objective_progress_rejects_bad_scores(scores):
    with pytest.raises(ValueError):
        ObjectiveProgress.from_dict({"objective_id": "2.1", "exam": "Core 1", "quiz_scores": scores})


def test_card_schedule_rejects_non_integer_interval(now):
    data = CardSchedule("fc-1", 2.5, 1, 1, now, now).to_dict()
    data["interval"] = "6"
    with pytest.raises(ValueError):
        CardSchedule.from_dict(data)


def test_card_schedule_rejects_non_string_timestamp(now):
    data = CardSchedule("fc-1", 2.5, 1, 1, now, now).to_dict()
    data["next_review"] = 12345
    with pytest.raises(TypeError):
        CardSchedule.from_dict(data)


def test_exam_result_rejects_non_boolean_passed(now):
    data = ExamResult("exam-1", now, "Core 1", 1, 1, 900, 60, True).to_dict()
    data["passed"] = "yes"
    with pytest.raises(ValueError):
        ExamResult.from_dict(data)


def test_as_utc_only_changes_naive_values(now):
    assert as_utc(now.replace(tzinfo=None)) == now
    assert as_utc(now) is now
