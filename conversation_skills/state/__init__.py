"""
State Layer - Runtime Data Models

Defines the runtime Session model that tracks a user's progress through an
active skill.
"""

from conversation_skills.state.models import Session, utcnow

__all__ = [
    "Session",
    "utcnow",
]
