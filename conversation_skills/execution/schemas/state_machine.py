"""
Transition Types - FSM State Transition Definitions

Type definitions for the skill state machine. Used by the engine to report
what happened to the state pointer, and by the Dispatcher to decide whether
the session is updated or evicted.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional


class StateMachineTransition(Enum):
    """
    Strict State Machine terminology describing what happened to the state pointer.
    This decouples the Dispatcher from the classifier's reading of the input.
    """

    HOLD = auto()  # The pointer remains on the current state (re-prompt).
    ADVANCE = auto()  # The pointer moved to another non-terminal state.
    EXIT = auto()  # The pointer reached COMPLETE or CANCELLED.


@dataclass
class TransitionResult:
    """
    Output of one call to the transition function.

    Attributes:
        state: The resulting state.
        context: The resulting context (a new dict, the input is never mutated).
        reply: Prompt or final message for the user.
        complete: True when the skill reached a terminal state.
        transition: What happened to the state pointer.
        retries: Consecutive unrecognized inputs so far.
        declined: Optional fields the user chose to skip.
        result: Packaged payload, only set when the state is COMPLETE.
    """

    state: str
    context: Dict[str, Any]
    reply: str
    complete: bool
    transition: StateMachineTransition
    retries: int = 0
    declined: List[str] = field(default_factory=list)
    result: Optional[Dict[str, Any]] = None
