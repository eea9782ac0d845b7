"""
Database Table Definitions.

This module defines the SQL schema using SQLModel.
We use the 'DBModel' suffix to distinguish these persistence models
from the Pydantic runtime models (Session).
"""

from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import JSON, Column, DateTime
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

# JSONB on PostgreSQL, plain JSON elsewhere (e.g. SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionDBModel(SQLModel, table=True):
    """
    Persistence model for active skill sessions.
    One row per user: the primary key enforces at most one session per user.
    """

    __tablename__ = "skill_sessions"

    user_id: str = Field(primary_key=True)
    skill_name: str = Field(index=True)
    state: str

    # Captured fields, stored whole for flexible per-skill schemas.
    context: Dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSONType, nullable=False)
    )
    retries: int = Field(default=0)
    declined: List[str] = Field(
        default_factory=list, sa_column=Column(JSONType, nullable=False)
    )

    created_at: datetime = Field(
        default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    last_activity: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )
