"""Domain errors for the analytics engine.

Ground-truth write failures (database errors) are never wrapped; they
propagate as raised by SQLAlchemy. These classes cover caller contract
violations and the text generation boundary.
"""

from __future__ import annotations


class AnalyticsError(Exception):
    """Base class for analytics engine errors."""


class SessionNotFoundError(AnalyticsError):
    """Raised when a study session id does not exist."""

    def __init__(self, session_id: str):
        super().__init__(f"Study session not found: {session_id}")
        self.session_id = session_id


class SessionAlreadyClosedError(AnalyticsError):
    """Raised when closing a study session that already has an end time."""

    def __init__(self, session_id: str):
        super().__init__(f"Study session already closed: {session_id}")
        self.session_id = session_id


class GenerationError(AnalyticsError):
    """Raised by a text generator when it cannot produce a reply."""
