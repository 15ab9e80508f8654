"""
Collection Store.

The analytics services talk to persistence through the small ``Store``
protocol: insert / get / select / update / upsert over named collections,
with equality filters, an optional timestamp range, and optional descending
order. ``SqlStore`` implements it on top of the SQLAlchemy models.

Rows cross the boundary as plain dicts; the services validate them into
pydantic records. A lookup that finds nothing returns ``None`` (or an empty
list) rather than raising.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.orm import Session, sessionmaker

from learner_analytics.db.database import make_session_factory, session_scope
from learner_analytics.db.models import (
    AIRecommendationRow,
    Base,
    ChapterDiagnosticRow,
    ConceptMasteryRow,
    LearningPathRow,
    ProgressReportRow,
    QuestionAttemptRow,
    StudySessionRow,
)

QUESTION_ATTEMPTS = "question_attempts"
STUDY_SESSIONS = "study_sessions"
CHAPTER_DIAGNOSTICS = "chapter_diagnostics"
CONCEPT_MASTERY = "concept_mastery"
AI_RECOMMENDATIONS = "ai_recommendations"
LEARNING_PATHS = "learning_paths"
PROGRESS_REPORTS = "progress_reports"

COLLECTIONS: dict[str, type[Base]] = {
    QUESTION_ATTEMPTS: QuestionAttemptRow,
    STUDY_SESSIONS: StudySessionRow,
    CHAPTER_DIAGNOSTICS: ChapterDiagnosticRow,
    CONCEPT_MASTERY: ConceptMasteryRow,
    AI_RECOMMENDATIONS: AIRecommendationRow,
    LEARNING_PATHS: LearningPathRow,
    PROGRESS_REPORTS: ProgressReportRow,
}

Row = dict[str, Any]


@dataclass(frozen=True)
class TimeRange:
    """Inclusive timestamp range on one field."""

    field: str
    start: datetime
    end: datetime

    def contains(self, value: datetime | None) -> bool:
        return value is not None and self.start <= value <= self.end


class Store(Protocol):
    """Persistence collaborator used by the analytics services."""

    def insert(self, collection: str, record: Mapping[str, Any]) -> Row: ...

    def get(self, collection: str, **filters: Any) -> Row | None: ...

    def select(
        self,
        collection: str,
        filters: Mapping[str, Any] | None = None,
        *,
        time_range: TimeRange | None = None,
        order_by: str | None = None,
        descending: bool = True,
    ) -> list[Row]: ...

    def update(
        self,
        collection: str,
        record_id: str,
        changes: Mapping[str, Any],
        *,
        expected: Mapping[str, Any] | None = None,
    ) -> Row | None: ...

    def upsert(self, collection: str, record: Mapping[str, Any], conflict_keys: Sequence[str]) -> Row: ...


def _row_to_dict(obj: Base) -> Row:
    return {column.key: getattr(obj, column.key) for column in obj.__table__.columns}


class SqlStore:
    """SQLAlchemy-backed ``Store``; one transaction per call."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        self._session_factory = session_factory or make_session_factory()

    def _model(self, collection: str) -> type[Base]:
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    def insert(self, collection: str, record: Mapping[str, Any]) -> Row:
        model = self._model(collection)
        with session_scope(self._session_factory) as session:
            obj = model(**record)
            session.add(obj)
            session.flush()
            row = _row_to_dict(obj)
        logger.debug(f"Inserted {collection} row {row['id']}")
        return row

    def get(self, collection: str, **filters: Any) -> Row | None:
        model = self._model(collection)
        with session_scope(self._session_factory) as session:
            obj = session.execute(select(model).filter_by(**filters).limit(1)).scalar_one_or_none()
            return _row_to_dict(obj) if obj is not None else None

    def select(
        self,
        collection: str,
        filters: Mapping[str, Any] | None = None,
        *,
        time_range: TimeRange | None = None,
        order_by: str | None = None,
        descending: bool = True,
    ) -> list[Row]:
        model = self._model(collection)
        stmt = select(model).filter_by(**(filters or {}))
        if time_range is not None:
            column = getattr(model, time_range.field)
            stmt = stmt.where(column >= time_range.start, column <= time_range.end)
        if order_by is not None:
            column = getattr(model, order_by)
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        with session_scope(self._session_factory) as session:
            return [_row_to_dict(obj) for obj in session.execute(stmt).scalars()]

    def update(
        self,
        collection: str,
        record_id: str,
        changes: Mapping[str, Any],
        *,
        expected: Mapping[str, Any] | None = None,
    ) -> Row | None:
        """
        Apply ``changes`` to one row in a single UPDATE statement.

        ``expected`` adds equality conditions (None means IS NULL) checked by
        the same statement. Returns None when no row matched.
        """
        model = self._model(collection)
        stmt = update(model).where(model.id == record_id).values(**changes)
        for name, value in (expected or {}).items():
            column = getattr(model, name)
            stmt = stmt.where(column.is_(None) if value is None else column == value)
        with session_scope(self._session_factory) as session:
            result = session.execute(stmt.execution_options(synchronize_session=False))
            if result.rowcount == 0:
                return None
            obj = session.get(model, record_id)
            return _row_to_dict(obj)

    def upsert(self, collection: str, record: Mapping[str, Any], conflict_keys: Sequence[str]) -> Row:
        model = self._model(collection)
        key = {name: record[name] for name in conflict_keys}
        with session_scope(self._session_factory) as session:
            obj = session.execute(select(model).filter_by(**key).limit(1)).scalar_one_or_none()
            if obj is None:
                obj = model(**record)
                session.add(obj)
            else:
                for name, value in record.items():
                    if name != "id":
                        setattr(obj, name, value)
            session.flush()
            return _row_to_dict(obj)
