"""
Conversation Skills Engine

A multi-turn dialogue orchestration engine: for each utterance it decides
whether an in-progress skill continues, a new skill starts, or the caller
should fall back to one-shot command handling. Skills are data-driven state
machines executed by a single generic engine.
"""

from conversation_skills.domain import (
    CANCELLED,
    COMPLETE,
    INITIAL,
    InputClass,
    SkillDefinition,
    Slot,
    StateSpec,
    Transition,
    Trigger,
)
from conversation_skills.state import Session
from conversation_skills.schemas.decisions import InputDecision, TurnInput, TurnOutput
from conversation_skills.execution import InputClassifier, SkillEngine
from conversation_skills.repositories.skill import SkillRegistry
from conversation_skills.repositories.session import (
    InMemorySessionStore,
    SessionStore,
    SqlSessionStore,
)
from conversation_skills.services.dispatcher import Dispatcher

__all__ = [
    # Domain Layer
    "CANCELLED",
    "COMPLETE",
    "INITIAL",
    "InputClass",
    "SkillDefinition",
    "Slot",
    "StateSpec",
    "Transition",
    "Trigger",
    # State Layer
    "Session",
    # Schemas
    "InputDecision",
    "TurnInput",
    "TurnOutput",
    # Execution Layer
    "InputClassifier",
    "SkillEngine",
    # Repositories
    "SkillRegistry",
    "SessionStore",
    "InMemorySessionStore",
    "SqlSessionStore",
    # Services
    "Dispatcher",
]
