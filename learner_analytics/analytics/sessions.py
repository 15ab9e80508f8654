"""Study session lifecycle: opened once, closed exactly once."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from loguru import logger

from learner_analytics.db.store import STUDY_SESSIONS, Store
from learner_analytics.errors import SessionAlreadyClosedError, SessionNotFoundError
from learner_analytics.schemas import SessionSummary, StudySession
from learner_analytics.timeutil import utcnow


class SessionTracker:
    """Opens and closes study sessions."""

    def __init__(self, store: Store, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    def start(self, session: StudySession) -> StudySession:
        """Insert an open session: start time now, no end time, zero duration."""
        payload = session.model_dump(exclude={"id"})
        payload.update(started_at=self.clock(), ended_at=None, duration_minutes=0)
        stored = StudySession.model_validate(self.store.insert(STUDY_SESSIONS, payload))
        logger.info(f"Started {stored.session_type} session {stored.id} for {stored.user_id}")
        return stored

    def end(self, session_id: str, summary: SessionSummary | None = None) -> StudySession:
        """
        Close a session, deriving its duration from the start time.

        Raises:
            SessionNotFoundError: Unknown session id
            SessionAlreadyClosedError: Session already has an end time
        """
        row = self.store.get(STUDY_SESSIONS, id=session_id)
        if row is None:
            raise SessionNotFoundError(session_id)
        session = StudySession.model_validate(row)
        if session.is_closed:
            raise SessionAlreadyClosedError(session_id)

        ended_at = self.clock()
        started_at = session.started_at or ended_at
        duration = max(int((ended_at - started_at).total_seconds() // 60), 0)

        summary = summary or SessionSummary()
        changes = {
            "ended_at": ended_at,
            "duration_minutes": duration,
            "questions_attempted": summary.questions_attempted,
            "questions_correct": summary.questions_correct,
            "concepts_covered": summary.concepts_covered,
        }
        if summary.session_data is not None:
            changes["session_data"] = summary.session_data.model_dump()

        # Only an open session is closed; a concurrent close makes this a no-op
        updated = self.store.update(STUDY_SESSIONS, session_id, changes, expected={"ended_at": None})
        if updated is None:
            if self.store.get(STUDY_SESSIONS, id=session_id) is None:
                raise SessionNotFoundError(session_id)
            raise SessionAlreadyClosedError(session_id)
        logger.info(f"Closed session {session_id} after {duration} min")
        return StudySession.model_validate(updated)
