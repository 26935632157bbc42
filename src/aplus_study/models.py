"""Data classes for the study domain model."""
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import IntEnum
from typing import Optional, Union

MASTERY_THRESHOLD = 80


class ReviewQuality(IntEnum):
    """Flashcard recall rating, valued for the SM-2 formula."""
    AGAIN = 0
    HARD = 2
    GOOD = 3
    EASY = 5


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime; aware values are returned unchanged."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating naive values as UTC."""
    if not isinstance(value, str):
        raise TypeError(f"expected an ISO-8601 string, got {value!r}")
    return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def calculate_mastery(scores: list) -> str:
    """Classify a quiz score history as not_started, in_progress or mastered."""
    if not scores:
        return "not_started"
    avg = sum(scores) / len(scores)
    return "mastered" if avg >= MASTERY_THRESHOLD else "in_progress"


# Checks for values read back from JSON.


def _number(value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValueError(f"expected a finite number, got {value!r}")
    return value


def _integer(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"expected an integer, got {value!r}")
    return value


def _text(value) -> str:
    if not isinstance(value, str):
        raise ValueError(f"expected a string, got {value!r}")
    return value


def _flag(value) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"expected true or false, got {value!r}")
    return value


def _items(value) -> list:
    if not isinstance(value, list):
        raise ValueError(f"expected a list, got {value!r}")
    return value


# --- Progress records ---


@dataclass(frozen=True)
class CardSchedule:
    card_id: str
    ease_factor: float
    interval: int
    repetitions: int
    next_review: datetime
    last_review: datetime

    def to_dict(self) -> dict:
        return {
            "card_id": self.card_id,
            "ease_factor": self.ease_factor,
            "interval": self.interval,
            "repetitions": self.repetitions,
            "next_review": self.next_review.isoformat(),
            "last_review": self.last_review.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CardSchedule":
        return cls(
            card_id=_text(data["card_id"]),
            ease_factor=float(_number(data["ease_factor"])),
            interval=_integer(data["interval"]),
            repetitions=_integer(data["repetitions"]),
            next_review=parse_timestamp(data["next_review"]),
            last_review=parse_timestamp(data["last_review"]),
        )


@dataclass(frozen=True)
class MatchPair:
    left: str
    right: str


@dataclass(frozen=True)
class MultipleChoiceResult:
    question_id: str
    selected_answer: str
    correct: bool
    question_type: str = field(default="multiple-choice", init=False)

    def to_dict(self) -> dict:
        return {
            "question_id": self.question_id,
            "question_type": self.question_type,
            "selected_answer": self.selected_answer,
            "correct": self.correct,
        }


@dataclass(frozen=True)
class MatchingResult:
    question_id: str
    selected_pairs: frozenset
    correct_pairs: int
    total_pairs: int
    question_type: str = field(default="matching", init=False)

    @property
    def correct(self) -> bool:
        return self.correct_pairs == self.total_pairs

    @property
    def partial_score(self) -> float:
        if self.total_pairs == 0:
            return 0.0
        return self.correct_pairs / self.total_pairs

    def to_dict(self) -> dict:
        return {
            "question_id": self.question_id,
            "question_type": self.question_type,
            "selected_pairs": [
                {"left": p.left, "right": p.right}
                for p in sorted(self.selected_pairs, key=lambda p: (p.left, p.right))
            ],
            "correct_pairs": self.correct_pairs,
            "total_pairs": self.total_pairs,
            "correct": self.correct,
            "partial_score": self.partial_score,
        }


QuestionResult = Union[MultipleChoiceResult, MatchingResult]


def question_result_from_dict(data: dict) -> QuestionResult:
    if data.get("question_type") == "matching":
        return MatchingResult(
            question_id=_text(data["question_id"]),
            selected_pairs=frozenset(
                MatchPair(_text(p["left"]), _text(p["right"]))
                for p in _items(data.get("selected_pairs", []))
            ),
            correct_pairs=_integer(data["correct_pairs"]),
            total_pairs=_integer(data["total_pairs"]),
        )
    return MultipleChoiceResult(
        question_id=_text(data["question_id"]),
        selected_answer=_text(data.get("selected_answer", "")),
        correct=_flag(data["correct"]),
    )


@dataclass
class ObjectiveProgress:
    objective_id: str
    exam: str
    quiz_scores: list = field(default_factory=list)
    flashcards_reviewed: int = 0
    last_studied: Optional[datetime] = None

    @property
    def mastery(self) -> str:
        # Derived from quiz_scores on every read; never stored independently.
        return calculate_mastery(self.quiz_scores)

    def to_dict(self) -> dict:
        return {
            "objective_id": self.objective_id,
            "exam": self.exam,
            "mastery": self.mastery,
            "quiz_scores": list(self.quiz_scores),
            "flashcards_reviewed": self.flashcards_reviewed,
            "last_studied": self.last_studied.isoformat() if self.last_studied else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ObjectiveProgress":
        last = data.get("last_studied")
        return cls(
            objective_id=_text(data["objective_id"]),
            exam=_text(data["exam"]),
            quiz_scores=[_number(s) for s in _items(data.get("quiz_scores", []))],
            flashcards_reviewed=_integer(data.get("flashcards_reviewed", 0)),
            last_studied=parse_timestamp(last) if last else None,
        )


@dataclass(frozen=True)
class StreakData:
    current_streak: int
    longest_streak: int
    last_study_date: date

    def to_dict(self) -> dict:
        return {
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "last_study_date": self.last_study_date.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StreakData":
        return cls(
            current_streak=_integer(data["current_streak"]),
            longest_streak=_integer(data["longest_streak"]),
            last_study_date=date.fromisoformat(_text(data["last_study_date"])),
        )


@dataclass
class QuizResult:
    id: str
    taken_at: datetime
    exam: str
    total_questions: int
    correct_answers: int
    score: int
    question_results: list = field(default_factory=list)
    domain: Optional[str] = None
    objective_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "taken_at": self.taken_at.isoformat(),
            "exam": self.exam,
            "domain": self.domain,
            "objective_id": self.objective_id,
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "score": self.score,
            "question_results": [r.to_dict() for r in self.question_results],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QuizResult":
        return cls(
            id=_text(data["id"]),
            taken_at=parse_timestamp(data["taken_at"]),
            exam=_text(data["exam"]),
            domain=data.get("domain"),
            objective_id=data.get("objective_id"),
            total_questions=_integer(data["total_questions"]),
            correct_answers=_integer(data["correct_answers"]),
            score=_integer(data["score"]),
            question_results=[question_result_from_dict(r) for r in _items(data.get("question_results", []))],
        )


@dataclass
class ExamResult:
    id: str
    taken_at: datetime
    exam: str
    total_questions: int
    correct_answers: int
    score: int
    time_spent: int
    passed: bool
    question_results: list = field(default_factory=list)
    domain_scores: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "taken_at": self.taken_at.isoformat(),
            "exam": self.exam,
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "score": self.score,
            "time_spent": self.time_spent,
            "passed": self.passed,
            "question_results": [r.to_dict() for r in self.question_results],
            "domain_scores": {k: dict(v) for k, v in self.domain_scores.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExamResult":
        return cls(
            id=_text(data["id"]),
            taken_at=parse_timestamp(data["taken_at"]),
            exam=_text(data["exam"]),
            total_questions=_integer(data["total_questions"]),
            correct_answers=_integer(data["correct_answers"]),
            score=_integer(data["score"]),
            time_spent=_integer(data["time_spent"]),
            passed=_flag(data["passed"]),
            question_results=[question_result_from_dict(r) for r in _items(data.get("question_results", []))],
            domain_scores={
                _text(k): {_text(name): _integer(n) for name, n in v.items()}
                for k, v in data.get("domain_scores", {}).items()
            },
        )


# --- Static catalogue ---


@dataclass
class Objective:
    id: str
    title: str
    subtopics: list = field(default_factory=list)
    study_notes: str = ""


@dataclass
class Domain:
    id: str
    name: str
    weight: float
    objectives: list = field(default_factory=list)


@dataclass
class Exam:
    name: str
    code: str
    passing_score: int
    max_score: int
    total_questions: int
    time_minutes: int
    domains: list = field(default_factory=list)


@dataclass
class Flashcard:
    id: str
    exam: str
    domain: str
    objective_id: str
    question: str
    answer: str
    explanation: str = ""
    tags: list = field(default_factory=list)


@dataclass
class Question:
    id: str
    exam: str
    domain: str
    objective_id: str
    question: str
    question_type: str = "multiple-choice"
    options: dict = field(default_factory=dict)
    correct: str = ""
    pairs: list = field(default_factory=list)
    explanation: str = ""
    difficulty: str = "medium"


@dataclass
class GlossaryTerm:
    term: str
    full_name: str
    definition: str
    exam: str = ""
    domain: str = ""
    category: str = ""
