"""
Domain Layer - Static Skill Definitions

Defines the core domain model describing conversation skills as data:
Slots, States, Transitions, Triggers and the SkillDefinition itself.
"""

from conversation_skills.domain.models import (
    CANCELLED,
    COMPLETE,
    INITIAL,
    TERMINAL_STATES,
    InputClass,
    SkillDefinition,
    Slot,
    StateSpec,
    StateType,
    Transition,
    Trigger,
)

__all__ = [
    "CANCELLED",
    "COMPLETE",
    "INITIAL",
    "TERMINAL_STATES",
    "InputClass",
    "SkillDefinition",
    "Slot",
    "StateSpec",
    "StateType",
    "Transition",
    "Trigger",
]
