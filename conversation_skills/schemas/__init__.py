"""
Schemas - Engine Boundary Models

Defines Pydantic models for turn inputs, turn outputs and the classifier's
input decisions.
"""

from conversation_skills.schemas.decisions import InputDecision, TurnInput, TurnOutput

__all__ = [
    "InputDecision",
    "TurnInput",
    "TurnOutput",
]
