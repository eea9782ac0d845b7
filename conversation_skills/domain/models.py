"""
Domain Layer - Static Skill Definitions

This module defines the static structure of conversation skills. A skill is
pure data: the fields it collects (Slots), the states it moves through
(StateSpecs), an explicit transition table keyed by input class, and the
Trigger that starts it. Behaviour lives in the generic SkillEngine, never in
the definition itself, so new skills are added by registering new data.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Literal, Mapping, Optional, Set, Tuple

from ..services.exceptions import SkillDefinitionError

INITIAL = "INITIAL"
COMPLETE = "COMPLETE"
CANCELLED = "CANCELLED"
TERMINAL_STATES = frozenset({COMPLETE, CANCELLED})

"""
StateType classifies state behavior:
- initial: Entry point, consumes the triggering turn
- ask_slot: Collects one declared field from the user
- ask_yes_no: Expects an affirmative or negative answer (questions, confirmations)
- terminal: COMPLETE or CANCELLED, the session ends here
"""
StateType = Literal[
    "initial",
    "ask_slot",
    "ask_yes_no",
    "terminal",
]


class InputClass(str, Enum):
    """
    Classification of a user turn relative to the current state.
    These are the column keys of the transition table.
    """
    START = "START"
    CAPTURED = "CAPTURED"
    DECLINED = "DECLINED"
    AFFIRM = "AFFIRM"
    DENY = "DENY"
    AMEND = "AMEND"
    CANCEL = "CANCEL"
    UNRECOGNIZED = "UNRECOGNIZED"


@dataclass(frozen=True)
class Slot:
    """
    A declared context field (the skill's schema).

    Attributes:
        name: Key under which the value is stored in the session context.
        required: COMPLETE is unreachable until every required slot is filled.
        entity: NLU entity name read to seed or capture this slot.
        pattern: Regex (case-insensitive search) the value must match.
            None accepts any non-empty text.
        keywords: Words that name this field in a "change the ..." request.
        choices: Canonical value -> phrases. When set, the slot only accepts
            text containing one of the phrases and stores the canonical value.
            Earlier choices win.
    """
    name: str
    required: bool = True
    entity: Optional[str] = None
    pattern: Optional[str] = None
    keywords: Tuple[str, ...] = ()
    choices: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)

    def accepts(self, value: Any) -> bool:
        text = str(value).strip() if value is not None else ""
        if not text:
            return False
        if self.choices:
            return self._choose(text) is not None
        if self.pattern is None:
            return True
        return re.search(self.pattern, text, re.IGNORECASE) is not None

    def normalize(self, value: Any) -> str:
        """The value to store for an accepted input."""
        text = str(value).strip()
        if self.choices:
            return self._choose(text)
        return text

    def _choose(self, text: str) -> Optional[str]:
        lowered = text.lower()
        for canonical, phrases in self.choices.items():
            if any(phrase in lowered for phrase in phrases):
                return canonical
        return None


@dataclass(frozen=True)
class Transition:
    """
    A cell of the transition table.

    Attributes:
        target: Name of the next state.
        reset: Clear the whole context (and declined fields) before entering target.
    """
    target: str
    reset: bool = False


@dataclass(frozen=True)
class Trigger:
    """
    Predicate deciding whether a skill should start for a fresh turn.

    Attributes:
        intents: Intent names that start the skill.
        keywords: Utterance phrases that start the skill when the intent is
            missing or generic.
        priority: Higher priorities are evaluated first; ties keep
            registration order.
    """
    intents: FrozenSet[str] = frozenset()
    keywords: Tuple[str, ...] = ()
    priority: int = 0

    def matches(self, intent: Optional[str], utterance: str = "") -> bool:
        if intent and intent in self.intents:
            return True
        lowered = (utterance or "").lower()
        return any(keyword in lowered for keyword in self.keywords)


@dataclass(frozen=True)
class StateSpec:
    """
    A node of the skill's state machine.

    Attributes:
        name: Unique identifier within the skill.
        type: StateType
        prompt: Jinja2 source rendered with the context when entering the state.
        reprompt: Jinja2 source used for unrecognized input. Defaults to an
            apology followed by the prompt.
        capture: Slot filled in this state (ask_slot), or storing the
            True/False answer (ask_yes_no).
        amendable: Accept "change the <slot>" requests (confirmation states).
        transitions: InputClass -> Transition. CANCEL and UNRECOGNIZED are
            supplied by the engine for every non-terminal state.
    """
    name: str
    type: StateType
    prompt: str = ""
    reprompt: Optional[str] = None
    capture: Optional[str] = None
    amendable: bool = False
    transitions: Mapping[InputClass, Transition] = field(default_factory=dict)

    @property
    def terminal(self) -> bool:
        return self.type == "terminal"


@dataclass(frozen=True)
class SkillDefinition:
    """
    Complete, immutable description of one multi-turn exchange.

    Validated on construction; a definition that exists is guaranteed to have
    a complete transition table.

    Attributes:
        name: Unique identifier (registry key, stored on sessions).
        title: Human-readable title.
        trigger: Starting condition.
        slots: Declared context fields, in collection order.
        states: Dict mapping state names to StateSpecs (O(1) lookup).
        template_vars: Static values available to every prompt template.
        handoff: Required field naming another skill. On COMPLETE the
            Dispatcher starts that skill for the same turn instead of
            returning this skill's result.
    """
    name: str
    title: str
    trigger: Trigger
    slots: Tuple[Slot, ...]
    states: Mapping[str, StateSpec]
    template_vars: Mapping[str, Any] = field(default_factory=dict)
    handoff: Optional[str] = None

    def __post_init__(self):
        self._validate()

    # ==========================================================================
    # Queries
    # ==========================================================================

    @property
    def required_fields(self) -> List[str]:
        return [slot.name for slot in self.slots if slot.required]

    @property
    def field_names(self) -> List[str]:
        return [slot.name for slot in self.slots]

    def slot(self, name: str) -> Optional[Slot]:
        return next((s for s in self.slots if s.name == name), None)

    def capturing_state(self, field_name: str) -> Optional[StateSpec]:
        """First state that captures the given field."""
        return next(
            (s for s in self.states.values() if s.capture == field_name), None
        )

    def is_live_state(self, state: str) -> bool:
        spec = self.states.get(state)
        return spec is not None and not spec.terminal

    def missing_required(self, context: Mapping[str, Any]) -> List[str]:
        return [name for name in self.required_fields if name not in context]

    def package(self, context: Mapping[str, Any]) -> Dict[str, Any]:
        """The result payload: exactly the declared fields that were captured."""
        return {name: context[name] for name in self.field_names if name in context}

    def transition_table(self) -> Dict[Tuple[str, InputClass], str]:
        """
        Every (state, input class) cell of the machine, including the cells
        the engine provides for all non-terminal states.
        """
        table = {}
        for spec in self.states.values():
            if spec.terminal:
                continue
            for input_class, transition in spec.transitions.items():
                table[(spec.name, input_class)] = transition.target
            if spec.type != "initial":
                table[(spec.name, InputClass.CANCEL)] = CANCELLED
                table[(spec.name, InputClass.UNRECOGNIZED)] = spec.name
        return table

    # ==========================================================================
    # Validation
    # ==========================================================================

    def _validate(self):
        def fail(reason: str):
            raise SkillDefinitionError(f"Skill '{self.name}': {reason}")

        names = [slot.name for slot in self.slots]
        if len(set(names)) != len(names):
            fail("duplicate slot names")

        for reserved, expected_type in (
            (INITIAL, "initial"),
            (COMPLETE, "terminal"),
            (CANCELLED, "terminal"),
        ):
            spec = self.states.get(reserved)
            if spec is None:
                fail(f"missing reserved state {reserved}")
            if spec.type != expected_type:
                fail(f"state {reserved} must be of type '{expected_type}'")

        for key, spec in self.states.items():
            if key != spec.name:
                fail(f"state registered as '{key}' is named '{spec.name}'")
            if spec.type == "initial" and key != INITIAL:
                fail(f"only {INITIAL} may be of type 'initial'")

            for transition in spec.transitions.values():
                if transition.target not in self.states:
                    fail(f"state {key} transitions to unknown state {transition.target}")
                if transition.target == INITIAL:
                    fail(f"state {key} transitions back to {INITIAL}")

            if spec.capture is not None and spec.capture not in names:
                fail(f"state {key} captures undeclared field '{spec.capture}'")

            required_inputs = self._required_inputs(spec)
            missing = [i.value for i in required_inputs if i not in spec.transitions]
            if missing:
                fail(f"state {key} has no transition for {', '.join(missing)}")

            if spec.amendable and spec.type != "ask_yes_no":
                fail(f"state {key} is amendable but not an ask_yes_no state")

        for slot in self.slots:
            if (slot.required or slot.keywords) and self.capturing_state(slot.name) is None:
                fail(f"field '{slot.name}' is never captured")

        if self.handoff is not None and self.handoff not in self.required_fields:
            fail(f"handoff field '{self.handoff}' must be a required slot")

        if COMPLETE not in self._reachable_from(INITIAL):
            fail(f"{COMPLETE} is unreachable from {INITIAL}")

        cycle = self._skip_cycle()
        if cycle:
            fail(f"states {' -> '.join(cycle)} skip into each other once their fields are known")

    def _reachable_from(self, start: str) -> Set[str]:
        seen = {start}
        pending = [start]
        while pending:
            spec = self.states[pending.pop()]
            for transition in spec.transitions.values():
                if transition.target not in seen:
                    seen.add(transition.target)
                    pending.append(transition.target)
        return seen

    def _skip_cycle(self) -> Optional[List[str]]:
        """
        A loop of capturing states the engine would skip through forever
        once all their fields are filled, or None.
        """
        edges = {}
        for spec in self.states.values():
            if spec.capture is None or spec.terminal:
                continue
            if spec.type == "ask_yes_no":
                inputs = (InputClass.AFFIRM, InputClass.DENY)
            else:
                inputs = (InputClass.CAPTURED, InputClass.DECLINED)
            edges[spec.name] = [
                spec.transitions[i].target for i in inputs if i in spec.transitions
            ]

        done: Set[str] = set()

        def visit(name: str, path: List[str]) -> Optional[List[str]]:
            if name in done or name not in edges:
                return None
            if name in path:
                return path[path.index(name):] + [name]
            path.append(name)
            for target in edges[name]:
                found = visit(target, path)
                if found:
                    return found
            path.pop()
            done.add(name)
            return None

        for name in edges:
            found = visit(name, [])
            if found:
                return found
        return None

    def _required_inputs(self, spec: StateSpec) -> List[InputClass]:
        if spec.type == "initial":
            return [InputClass.START]
        if spec.type == "ask_slot":
            if spec.capture is None:
                raise SkillDefinitionError(
                    f"Skill '{self.name}': ask_slot state {spec.name} captures nothing"
                )
            slot = self.slot(spec.capture)
            if slot is not None and not slot.required:
                return [InputClass.CAPTURED, InputClass.DECLINED]
            return [InputClass.CAPTURED]
        if spec.type == "ask_yes_no":
            return [InputClass.AFFIRM, InputClass.DENY]
        return []
