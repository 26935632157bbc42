"""Load the static exam catalogue shipped with the package."""
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from aplus_study.models import (
    Domain, Exam, Flashcard, GlossaryTerm, MatchPair, Objective, Question,
)

CONTENT_DIR = Path(__file__).parent / "content"


@dataclass
class Catalogue:
    exams: list = field(default_factory=list)
    flashcards: list = field(default_factory=list)
    questions: list = field(default_factory=list)
    glossary: list = field(default_factory=list)

    def exam(self, name: str) -> Exam:
        for exam in self.exams:
            if exam.name == name:
                return exam
        raise KeyError(f"Unknown exam: {name}")

    def exam_names(self) -> list[str]:
        return [e.name for e in self.exams]

    def domain_weights(self, exam: str) -> dict:
        return {d.id: d.weight for d in self.exam(exam).domains}

    def objective(self, exam: str, objective_id: str) -> Objective:
        for domain in self.exam(exam).domains:
            for objective in domain.objectives:
                if objective.id == objective_id:
                    return objective
        raise KeyError(f"Unknown objective: {exam} {objective_id}")

    def objective_domain(self, exam: str, objective_id: str) -> Optional[str]:
        for domain in self.exam(exam).domains:
            if any(o.id == objective_id for o in domain.objectives):
                return domain.id
        return None

    def flashcard(self, card_id: str) -> Flashcard:
        for card in self.flashcards:
            if card.id == card_id:
                return card
        raise KeyError(f"Unknown flashcard: {card_id}")

    def flashcards_for(self, exam: str = None, domain: str = None, objective_id: str = None) -> list:
        return [c for c in self.flashcards if _matches(c, exam, domain, objective_id)]

    def questions_for(self, exam: str = None, domain: str = None, objective_id: str = None) -> list:
        return [q for q in self.questions if _matches(q, exam, domain, objective_id)]

    def search_glossary(self, text: str = "", exam: str = None) -> list:
        """Case-insensitive search over term, full name and definition."""
        needle = text.lower().strip()
        terms = [t for t in self.glossary if exam is None or t.exam == exam]
        if needle:
            terms = [
                t for t in terms
                if needle in t.term.lower()
                or needle in t.full_name.lower()
                or needle in t.definition.lower()
            ]
        return sorted(terms, key=lambda t: t.term.lower())


def _matches(item, exam, domain, objective_id) -> bool:
    return (
        (exam is None or item.exam == exam)
        and (domain is None or item.domain == domain)
        and (objective_id is None or item.objective_id == objective_id)
    )


def _load_json(content_dir: Path, name: str) -> dict:
    return json.loads((content_dir / name).read_text(encoding="utf-8"))


def _parse_exam(data: dict) -> Exam:
    return Exam(
        name=data["exam"],
        code=data["examCode"],
        passing_score=data["passingScore"],
        max_score=data["maxScore"],
        total_questions=data["totalQuestions"],
        time_minutes=data["timeMinutes"],
        domains=[
            Domain(
                id=d["id"],
                name=d["name"],
                weight=d["weight"],
                objectives=[
                    Objective(
                        id=o["id"],
                        title=o["title"],
                        subtopics=o.get("subtopics", []),
                        study_notes=o.get("studyNotes", ""),
                    )
                    for o in d["objectives"]
                ],
            )
            for d in data["domains"]
        ],
    )


def _parse_question(data: dict) -> Question:
    return Question(
        id=data["id"],
        exam=data["exam"],
        domain=data["domain"],
        objective_id=data["objectiveId"],
        question=data["question"],
        question_type=data.get("questionType", "multiple-choice"),
        options=data.get("options", {}),
        correct=data.get("correct", ""),
        pairs=[MatchPair(p["left"], p["right"]) for p in data.get("pairs", [])],
        explanation=data.get("explanation", ""),
        difficulty=data.get("difficulty", "medium"),
    )


def load_catalogue(content_dir: Path = None) -> Catalogue:
    """Read objectives, flashcards, questions and glossary JSON into a Catalogue."""
    content_dir = Path(content_dir) if content_dir else CONTENT_DIR
    objectives = _load_json(content_dir, "objectives.json")
    flashcards = _load_json(content_dir, "flashcards.json")
    questions = _load_json(content_dir, "questions.json")
    glossary = _load_json(content_dir, "glossary.json")
    return Catalogue(
        exams=[_parse_exam(e) for e in objectives["exams"]],
        flashcards=[
            Flashcard(
                id=c["id"],
                exam=c["exam"],
                domain=c["domain"],
                objective_id=c["objectiveId"],
                question=c["question"],
                answer=c["answer"],
                explanation=c.get("explanation", ""),
                tags=c.get("tags", []),
            )
            for c in flashcards["flashcards"]
        ],
        questions=[_parse_question(q) for q in questions["questions"]],
        glossary=[
            GlossaryTerm(
                term=t["term"],
                full_name=t.get("fullName", ""),
                definition=t["definition"],
                exam=t.get("exam", ""),
                domain=t.get("domain", ""),
                category=t.get("category", ""),
            )
            for t in glossary["terms"]
        ],
    )
