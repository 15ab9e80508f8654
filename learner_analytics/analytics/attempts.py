"""Question attempt recording."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from loguru import logger

from learner_analytics.analytics.mastery import MasteryUpdater
from learner_analytics.db.store import QUESTION_ATTEMPTS, Store
from learner_analytics.schemas import QuestionAttempt
from learner_analytics.timeutil import utcnow


class AttemptRecorder:
    """
    Persists question attempts and feeds them to the MasteryUpdater.

    Attempts are ground truth: insert and mastery failures propagate.
    """

    def __init__(self, store: Store, mastery: MasteryUpdater, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.mastery = mastery
        self.clock = clock

    def record(self, attempt: QuestionAttempt) -> QuestionAttempt:
        """
        Insert one attempt; update concept mastery when it carries a chapter and concept.

        Returns:
            The stored attempt (with id and timestamp)
        """
        payload = attempt.model_dump(exclude={"id"})
        if payload["attempted_at"] is None:
            payload["attempted_at"] = self.clock()

        stored = QuestionAttempt.model_validate(self.store.insert(QUESTION_ATTEMPTS, payload))
        logger.debug(
            f"Recorded attempt {stored.id} user={stored.user_id} "
            f"question={stored.question_id} correct={stored.is_correct}"
        )

        if stored.concept and stored.chapter_id:
            self.mastery.update(
                stored.user_id,
                stored.chapter_id,
                stored.concept,
                stored.is_correct,
                stored.time_taken_seconds,
                difficulty=stored.difficulty,
            )
        return stored
