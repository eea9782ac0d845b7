"""
Schemas - Turn Input, Turn Output and Input Decisions

This module defines the Pydantic models exchanged at the engine boundary:
what the NLU collaborator hands in (TurnInput), what the caller gets back
(TurnOutput), and how the InputClassifier reads a turn (InputDecision).
"""
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

from ..domain.models import CANCELLED, COMPLETE, InputClass


class TurnInput(BaseModel):
    """
    One user utterance with its pre-parsed NLU result.
    The engine reads 'intent' for matching and the entity names each skill declares.
    """
    utterance: str = Field(
        "",
        description="Raw utterance text. Used as the captured value when no entity applies."
    )
    intent: Optional[str] = Field(
        None,
        description="Intent classified by the NLU collaborator."
    )
    entities: Dict[str, Any] = Field(
        default_factory=dict,
        description="Structured values extracted by the NLU collaborator."
    )
    language: Optional[str] = None


class TurnOutput(BaseModel):
    """
    The engine's answer for a turn that a skill handled.
    When complete is True and state is COMPLETE, 'result' holds the payload
    for the fulfilment backend.
    """
    reply: str
    skill: str
    state: str
    context: Dict[str, Any] = Field(default_factory=dict)
    complete: bool = False
    result: Optional[Dict[str, Any]] = None

    @property
    def cancelled(self) -> bool:
        return self.state == CANCELLED

    @property
    def fulfilled(self) -> bool:
        return self.complete and self.state == COMPLETE


class InputDecision(BaseModel):
    """
    The InputClassifier's reading of a turn for the current state.
    Named "InputDecision" because it decides which transition table column applies.
    """
    input_class: InputClass
    value: Optional[Any] = Field(
        None,
        description="The captured value (slots), the answer (yes/no), or the field to amend."
    )
