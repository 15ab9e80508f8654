"""
Concept Mastery Updates.

Maintains one ConceptMastery row per (user, chapter, concept) and applies
the running-accuracy rule on every attempt:

    mastery_level = min(1.0, correct_attempts / attempts_count)

The update is a read-modify-write against the store, so updates are
serialized per key with an in-process keyed lock. Attempts for different
keys never wait on each other.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Generator, Hashable
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger

from learner_analytics.db.store import CONCEPT_MASTERY, Store
from learner_analytics.schemas import ConceptMastery
from learner_analytics.timeutil import utcnow

MASTERY_KEY = ("user_id", "chapter_id", "concept")


@dataclass
class _LockEntry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class KeyedLock:
    """Mutex per key; entries are dropped once no thread holds or waits on them."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[Hashable, _LockEntry] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Generator[None, None, None]:
        with self._guard:
            entry = self._entries.setdefault(key, _LockEntry())
            entry.holders += 1
        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._entries[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


def apply_attempt(
    existing: ConceptMastery | None,
    *,
    user_id: str,
    chapter_id: str,
    concept: str,
    is_correct: bool,
    time_spent_seconds: int,
    difficulty: str | None = None,
    now: datetime,
) -> ConceptMastery:
    """
    Compute the mastery record after one attempt.

    Args:
        existing: Current record, or None for the first attempt on this concept
        is_correct: Whether the attempt was correct
        time_spent_seconds: Time spent; whole minutes are added to the total
        difficulty: Difficulty of the attempted question, appended to the history
        now: Timestamp recorded as last practiced

    Returns:
        New ConceptMastery (the input is not modified)
    """
    minutes = max(time_spent_seconds, 0) // 60
    if existing is None:
        return ConceptMastery(
            user_id=user_id,
            chapter_id=chapter_id,
            concept=concept,
            mastery_level=1.0 if is_correct else 0.0,
            attempts_count=1,
            correct_attempts=1 if is_correct else 0,
            last_practiced_at=now,
            time_to_master_minutes=minutes,
            difficulty_progression=[difficulty] if difficulty else [],
        )

    attempts = existing.attempts_count + 1
    correct = existing.correct_attempts + (1 if is_correct else 0)
    history = list(existing.difficulty_progression)
    if difficulty:
        history.append(difficulty)
    return existing.model_copy(
        update={
            "attempts_count": attempts,
            "correct_attempts": correct,
            "mastery_level": min(1.0, correct / attempts),
            "last_practiced_at": now,
            "time_to_master_minutes": existing.time_to_master_minutes + minutes,
            "difficulty_progression": history,
        }
    )


class MasteryUpdater:
    """Applies attempt outcomes to per-concept mastery records."""

    def __init__(self, store: Store, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock
        self._locks = KeyedLock()

    def update(
        self,
        user_id: str,
        chapter_id: str,
        concept: str,
        is_correct: bool,
        time_spent_seconds: int,
        difficulty: str | None = None,
    ) -> ConceptMastery:
        """
        Record one attempt against (user, chapter, concept).

        Exactly one upsert per call. Store errors propagate to the caller.
        """
        key = (user_id, chapter_id, concept)
        with self._locks.hold(key):
            row = self.store.get(CONCEPT_MASTERY, user_id=user_id, chapter_id=chapter_id, concept=concept)
            existing = ConceptMastery.model_validate(row) if row is not None else None
            updated = apply_attempt(
                existing,
                user_id=user_id,
                chapter_id=chapter_id,
                concept=concept,
                is_correct=is_correct,
                time_spent_seconds=time_spent_seconds,
                difficulty=difficulty,
                now=self.clock(),
            )
            stored = self.store.upsert(
                CONCEPT_MASTERY,
                updated.model_dump(exclude={"id"}),
                conflict_keys=MASTERY_KEY,
            )

        logger.debug(
            f"Mastery {user_id}/{chapter_id}/{concept}: "
            f"{updated.correct_attempts}/{updated.attempts_count} -> {updated.mastery_level:.2f}"
        )
        return ConceptMastery.model_validate(stored)
