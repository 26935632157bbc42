"""Question scoring, streak tracking and readiness aggregation."""
import math
from datetime import date, datetime, timedelta
from typing import Optional

from aplus_study.models import (
    MatchingResult, MultipleChoiceResult, Question, StreakData,
    calculate_mastery,
)

DEFAULT_PASSING_SCORE = 675
MIN_SCALED_SCORE = 100
SCALED_SCORE_RANGE = 800

__all__ = [
    "calculate_mastery", "domain_score", "grade_matching", "grade_multiple_choice",
    "quiz_percentage", "readiness_color", "readiness_label", "readiness_score",
    "round_half_up", "scaled_exam_score", "score_question", "update_streak",
]


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (62.5 -> 63)."""
    return int(math.floor(value + 0.5))


# --- Question scoring ---


def grade_multiple_choice(question: Question, selected: Optional[str]) -> MultipleChoiceResult:
    selected = selected or ""
    return MultipleChoiceResult(
        question_id=question.id,
        selected_answer=selected,
        correct=bool(selected) and selected == question.correct,
    )


def grade_matching(question: Question, selected_pairs) -> MatchingResult:
    """Grade a set of left->right associations against the answer key."""
    key = set(question.pairs)
    chosen = frozenset(selected_pairs or ())
    return MatchingResult(
        question_id=question.id,
        selected_pairs=chosen,
        correct_pairs=sum(1 for pair in chosen if pair in key),
        total_pairs=len(key),
    )


def score_question(result) -> float:
    """Score one answered question in [0, 1]. Only matching earns partial credit."""
    if isinstance(result, MultipleChoiceResult):
        return 1.0 if result.correct else 0.0
    if isinstance(result, MatchingResult):
        return min(1.0, max(0.0, result.partial_score))
    raise TypeError(f"Unknown question result type: {type(result).__name__}")


def _mean_score(results: list) -> float:
    if not results:
        return 0.0
    return sum(score_question(r) for r in results) / len(results)


def quiz_percentage(results: list) -> int:
    """Quiz score 0-100 with partial credit for matching questions."""
    return round_half_up(_mean_score(results) * 100)


def scaled_exam_score(results: list) -> int:
    """Practice exam score on the 100-900 scale."""
    return round_half_up(MIN_SCALED_SCORE + _mean_score(results) * SCALED_SCORE_RANGE)


# --- Streak ---


def update_streak(prev: Optional[StreakData], today=None) -> StreakData:
    """Advance the study streak for a study action on ``today``.

    Repeated calls on the same day return ``prev`` unchanged. A gap of two
    or more days, or a ``today`` earlier than the last study date, starts a
    new streak without touching the longest streak.
    """
    if today is None:
        today = date.today()
    elif isinstance(today, datetime):
        today = today.date()

    if prev is None:
        return StreakData(current_streak=1, longest_streak=1, last_study_date=today)

    if prev.last_study_date == today:
        return prev

    if today - prev.last_study_date == timedelta(days=1):
        current = prev.current_streak + 1
        return StreakData(
            current_streak=current,
            longest_streak=max(prev.longest_streak, current),
            last_study_date=today,
        )

    return StreakData(
        current_streak=1,
        longest_streak=prev.longest_streak,
        last_study_date=today,
    )


# --- Aggregation ---


def domain_score(progress_list: list) -> int:
    """Mean of per-objective mean scores; objectives without scores are skipped."""
    means = [
        sum(p.quiz_scores) / len(p.quiz_scores)
        for p in progress_list
        if p.quiz_scores
    ]
    if not means:
        return 0
    return round_half_up(sum(means) / len(means))


def readiness_score(domain_scores: dict, domain_weights: dict) -> int:
    """Weight-normalized mean of domain scores; missing domains count as 0."""
    weighted_sum = 0.0
    total_weight = 0.0
    for domain, weight in domain_weights.items():
        weighted_sum += domain_scores.get(domain, 0) * weight
        total_weight += weight
    if total_weight <= 0:
        return 0
    return round_half_up(weighted_sum / total_weight)


def readiness_label(score: float) -> str:
    if score >= 80:
        return "READY"
    elif score >= 65:
        return "LIKELY"
    elif score >= 50:
        return "NEEDS WORK"
    return "NOT READY"


def readiness_color(score: float) -> str:
    if score >= 80:
        return "green"
    elif score >= 65:
        return "yellow"
    elif score >= 50:
        return "dark_orange"
    return "red"
