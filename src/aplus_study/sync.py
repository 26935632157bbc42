"""Manual cross-device transfer of progress as a compact sync code."""
import base64
import binascii
import gzip
import json
import logging
import sqlite3
import zlib

from aplus_study.db import get_connection
from aplus_study.exam import get_exam_results, write_exam_result
from aplus_study.models import (
    CardSchedule, ExamResult, ObjectiveProgress, QuizResult, StreakData,
)
from aplus_study.progress import (
    get_progress, get_schedules, get_streak, write_progress, write_schedule,
    write_streak,
)
from aplus_study.quiz import get_quiz_history, write_quiz_result

logger = logging.getLogger(__name__)

SYNC_PREFIX = "aPS_"

# Sync key -> table it replaces on restore.
SYNC_KEYS = {
    "progress": "objective_progress",
    "quiz_history": "quiz_history",
    "flashcard_schedule": "card_schedules",
    "streak": "streak",
    "exam_results": "exam_results",
}


class SyncError(ValueError):
    """Raised when a sync code cannot be restored."""


def export_data(db_path: str) -> dict:
    """Every stored record, as JSON-safe values keyed by sync key."""
    data = {
        "progress": [p.to_dict() for p in get_progress(db_path)],
        "quiz_history": [q.to_dict() for q in get_quiz_history(db_path)],
        "flashcard_schedule": [s.to_dict() for s in get_schedules(db_path)],
        "exam_results": [e.to_dict() for e in get_exam_results(db_path)],
    }
    streak = get_streak(db_path)
    if streak is not None:
        data["streak"] = streak.to_dict()
    return data


def generate_sync_code(db_path: str) -> str:
    payload = json.dumps(export_data(db_path), allow_nan=False, separators=(",", ":"))
    compressed = gzip.compress(payload.encode("utf-8"), mtime=0)
    return SYNC_PREFIX + base64.b64encode(compressed).decode("ascii")


def _reject_constant(name: str):
    raise ValueError(f"non-finite number {name} in sync data")


def decode_sync_code(code: str) -> dict:
    trimmed = code.strip()
    if not trimmed.startswith(SYNC_PREFIX):
        raise SyncError(f'Invalid sync code. Must start with "{SYNC_PREFIX}".')
    try:
        compressed = base64.b64decode(trimmed[len(SYNC_PREFIX):], validate=True)
    except (binascii.Error, ValueError) as e:
        raise SyncError("Invalid sync code. Could not decode.") from e
    try:
        payload = gzip.decompress(compressed)
    except (OSError, EOFError, zlib.error) as e:
        raise SyncError("Failed to restore sync code. The code may be corrupted.") from e
    try:
        data = json.loads(payload.decode("utf-8"), parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError) as e:
        raise SyncError("Invalid sync code. Could not parse data.") from e
    if not isinstance(data, dict):
        raise SyncError("Invalid sync code. Unexpected data format.")
    return data


def _parse_records(key: str, value):
    if key == "streak":
        return StreakData.from_dict(value)
    if not isinstance(value, list):
        raise ValueError(f"{key} must be a list")
    parser = {
        "progress": ObjectiveProgress.from_dict,
        "quiz_history": QuizResult.from_dict,
        "flashcard_schedule": CardSchedule.from_dict,
        "exam_results": ExamResult.from_dict,
    }[key]
    return [parser(item) for item in value]


WRITERS = {
    "progress": write_progress,
    "quiz_history": write_quiz_result,
    "flashcard_schedule": write_schedule,
    "exam_results": write_exam_result,
}


def restore_sync_code(db_path: str, code: str) -> list[str]:
    """Replace stored records with those in ``code``; returns the restored keys.

    Nothing is written unless every record parses, and the deletes and inserts
    share one transaction, so a failed restore leaves the database as it was.
    """
    data = decode_sync_code(code)
    unknown = sorted(set(data) - set(SYNC_KEYS))
    if unknown:
        logger.warning("Ignoring unrecognised sync keys: %s", ", ".join(unknown))
    keys = [k for k in SYNC_KEYS if k in data]
    if not keys:
        raise SyncError("Invalid sync code. No recognizable data found.")

    try:
        parsed = {k: _parse_records(k, data[k]) for k in keys}
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise SyncError("Failed to restore sync code. The code may be corrupted.") from e

    conn = get_connection(db_path)
    try:
        with conn:
            for key in keys:
                conn.execute(f"DELETE FROM {SYNC_KEYS[key]}")
            for key in keys:
                if key == "streak":
                    write_streak(conn, parsed[key])
                    continue
                for record in parsed[key]:
                    WRITERS[key](conn, record)
    except (sqlite3.IntegrityError, TypeError, ValueError) as e:
        raise SyncError("Failed to restore sync code. The code may be corrupted.") from e
    finally:
        conn.close()
    logger.info("Restored sync data: %s", ", ".join(keys))
    return keys
