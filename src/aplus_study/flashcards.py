"""Flashcard session logic with SM-2 scheduling."""
import logging
import random
from datetime import datetime
from typing import Optional

from aplus_study.content import Catalogue
from aplus_study.models import CardSchedule, Flashcard, ReviewQuality, utcnow
from aplus_study.progress import (
    get_objective_progress, get_schedule, get_schedules, record_study_activity,
    save_progress, save_schedule,
)
from aplus_study.sm2 import is_due, new_card_schedule, next_schedule

logger = logging.getLogger(__name__)


def get_due_flashcards(
    db_path: str,
    catalogue: Catalogue,
    exam: str = None,
    domain: str = None,
    objective_id: str = None,
    limit: int = 15,
    now: Optional[datetime] = None,
) -> list[Flashcard]:
    """Cards never reviewed, then due cards oldest first, up to ``limit``."""
    now = now or utcnow()
    schedules = {s.card_id: s for s in get_schedules(db_path)}
    cards = catalogue.flashcards_for(exam=exam, domain=domain, objective_id=objective_id)
    new = [c for c in cards if c.id not in schedules]
    due = sorted(
        (c for c in cards if c.id in schedules and is_due(schedules[c.id], now)),
        key=lambda c: schedules[c.id].next_review,
    )
    random.shuffle(new)
    return (new + due)[:limit]


def record_flashcard_rating(
    db_path: str,
    card: Flashcard,
    quality: ReviewQuality,
    now: Optional[datetime] = None,
) -> CardSchedule:
    """Reschedule a rated card, count the review and advance the streak."""
    now = now or utcnow()
    existing = get_schedule(db_path, card.id) or new_card_schedule(card.id, now)
    updated = next_schedule(existing, quality, now)
    save_schedule(db_path, updated)

    progress = get_objective_progress(db_path, card.exam, card.objective_id)
    progress.flashcards_reviewed += 1
    progress.last_studied = now
    save_progress(db_path, progress)

    record_study_activity(db_path, now.date())
    logger.debug(
        "Rated %s as %s; next review in %d day(s)",
        card.id, ReviewQuality(quality).name, updated.interval,
    )
    return updated
