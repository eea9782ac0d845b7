"""
Execution Layer - Skill State Machine and Input Classification

Defines the SkillEngine (generic deterministic state machine) and the
InputClassifier (rule-based reading of a turn) that together advance a skill
by one turn.
"""

from conversation_skills.execution.classifier import InputClassifier
from conversation_skills.execution.engine import SkillEngine
from conversation_skills.execution.schemas.state_machine import (
    StateMachineTransition,
    TransitionResult,
)


__all__ = [
    "InputClassifier",
    "SkillEngine",
    "StateMachineTransition",
    "TransitionResult",
]
