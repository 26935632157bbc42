"""SM-2 spaced repetition algorithm."""
from datetime import datetime, timedelta
from typing import Optional

from aplus_study.models import CardSchedule, ReviewQuality, as_utc, utcnow
from aplus_study.scoring import round_half_up

INITIAL_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3


def sm2_update(
    quality: int,
    repetitions: int,
    ease_factor: float,
    interval: int,
) -> dict:
    """Calculate next review parameters using SM-2.

    Args:
        quality: A ReviewQuality value (0=again, 2=hard, 3=good, 5=easy)
        repetitions: Number of consecutive successful reviews
        ease_factor: Current ease factor (minimum 1.3)
        interval: Current interval in days

    Returns:
        Dict with updated interval, repetitions, ease_factor.

    Raises:
        ValueError: if quality is not a ReviewQuality value.
    """
    q = int(ReviewQuality(quality))

    # Update ease factor
    new_ef = ease_factor + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
    new_ef = max(MIN_EASE_FACTOR, new_ef)

    if q >= ReviewQuality.GOOD:
        new_repetitions = repetitions + 1
        if new_repetitions == 1:
            new_interval = 1
        elif new_repetitions == 2:
            new_interval = 6
        else:
            new_interval = round_half_up(interval * new_ef)
    else:
        # Lapse: HARD resets the same way AGAIN does
        new_repetitions = 0
        new_interval = 1

    return {
        "interval": new_interval,
        "repetitions": new_repetitions,
        "ease_factor": new_ef,
    }


def new_card_schedule(card_id: str, now: Optional[datetime] = None) -> CardSchedule:
    """Schedule for a card that has never been reviewed."""
    now = now or utcnow()
    return CardSchedule(
        card_id=card_id,
        ease_factor=INITIAL_EASE_FACTOR,
        interval=0,
        repetitions=0,
        next_review=now,
        last_review=now,
    )


def next_schedule(
    prev: CardSchedule,
    quality: ReviewQuality,
    now: Optional[datetime] = None,
) -> CardSchedule:
    """Return the schedule that follows rating ``prev`` with ``quality`` at ``now``."""
    now = now or utcnow()
    updated = sm2_update(
        quality=quality,
        repetitions=prev.repetitions,
        ease_factor=prev.ease_factor,
        interval=prev.interval,
    )
    return CardSchedule(
        card_id=prev.card_id,
        ease_factor=updated["ease_factor"],
        interval=updated["interval"],
        repetitions=updated["repetitions"],
        next_review=now + timedelta(days=updated["interval"]),
        last_review=now,
    )


def is_due(schedule: CardSchedule, now: Optional[datetime] = None) -> bool:
    """Naive ``now`` values are taken as UTC."""
    return schedule.next_review <= as_utc(now or utcnow())


def due_cards(schedules: list, now: Optional[datetime] = None) -> list:
    now = as_utc(now or utcnow())
    return [s for s in schedules if is_due(s, now)]
