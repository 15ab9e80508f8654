from __future__ import annotations

from uuid import uuid4

from sqlalchemy.orm import DeclarativeBase


def new_id() -> str:
    """Primary key factory shared by all tables."""
    return str(uuid4())


class Base(DeclarativeBase):
    """Declarative base for all analytics tables."""
