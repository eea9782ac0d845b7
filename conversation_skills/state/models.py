"""
State Layer - Runtime Data Models

This module defines the runtime state that tracks one user's journey through
an active skill. A Session exists only while its skill is in a non-terminal
state and has not been idle longer than the configured TTL.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List
from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Session(BaseModel):
    """
    The live, per-user instance of an active skill.
    """
    user_id: str
    skill_name: str
    state: str
    context: Dict[str, Any] = Field(default_factory=dict)

    # Engine bookkeeping, not part of the documented context
    retries: int = 0
    declined: List[str] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=utcnow)
    last_activity: datetime = Field(default_factory=utcnow)

    def is_expired(self, now: datetime, ttl_seconds: float) -> bool:
        return (now - self.last_activity).total_seconds() > ttl_seconds
