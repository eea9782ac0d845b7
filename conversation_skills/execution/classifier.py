"""
Classifier - Deterministic Input Classification Layer

This module defines the InputClassifier, a stateless class that reads a turn
against the current state and decides which column of the transition table
applies. It prefers the NLU collaborator's intent and entities and falls back
to simple keyword rules on the raw utterance. No I/O, no randomness.
"""

import logging
import re
from typing import Any, Dict, Optional

from ..domain.models import InputClass, SkillDefinition, Slot, StateSpec
from ..schemas.decisions import InputDecision, TurnInput

logger = logging.getLogger(__name__)

CANCEL_INTENTS = frozenset({"cancel", "stop", "abort"})
AFFIRM_INTENTS = frozenset({"affirm", "confirm"})
DENY_INTENTS = frozenset({"deny", "reject"})

CANCEL_PATTERN = re.compile(
    r"^\s*(stop|exit)\W*$|\b(cancel|never\s?mind|forget (it|about it)|abort|quit)\b",
    re.IGNORECASE,
)
AFFIRM_PATTERN = re.compile(
    r"\b(yes|yeah|yep|yup|sure|correct|confirm(ed)?|affirmative|absolutely|"
    r"ok(ay)?|that's right|sounds good|looks good|perfect)\b",
    re.IGNORECASE,
)
DENY_PATTERN = re.compile(
    r"\b(no|nope|nah|not|negative|don't|doesn't|isn't|wrong|incorrect)\b",
    re.IGNORECASE,
)
LEADING_AFFIRM_PATTERN = re.compile(
    r"^\W*(yes|yeah|yep|yup|sure|ok(ay)?|absolutely|correct)\b", re.IGNORECASE
)
LEADING_DENY_PATTERN = re.compile(r"^\W*(no|nope|nah|negative)\b", re.IGNORECASE)
DECLINE_PATTERN = re.compile(
    r"^\s*(none|no|nope|nothing|no thanks|no thank you|n/?a|not really|that's all)\W*$",
    re.IGNORECASE,
)
CHANGE_PATTERN = re.compile(
    r"\b(change|switch|update|edit|modify|replace)\b",
    re.IGNORECASE,
)


class InputClassifier:
    def classify(
        self, definition: SkillDefinition, state: StateSpec, turn: TurnInput
    ) -> InputDecision:
        """
        Classify a turn for a non-initial, non-terminal state.
        Global cancellation wins over everything else.
        """
        if self.is_cancel(turn):
            return InputDecision(input_class=InputClass.CANCEL)

        if state.type == "ask_slot":
            return self._classify_slot(definition.slot(state.capture), turn)

        if state.type == "ask_yes_no":
            # An explicit yes/no (NLU intent or leading word) is never an amendment
            if state.amendable and self._explicit_answer(turn) is None:
                amended = self._detect_amendment(definition, turn)
                if amended:
                    return InputDecision(input_class=InputClass.AMEND, value=amended)

            answer = self.parse_answer(turn)
            if answer is True:
                return InputDecision(input_class=InputClass.AFFIRM, value=True)
            if answer is False:
                return InputDecision(input_class=InputClass.DENY, value=False)

        return InputDecision(input_class=InputClass.UNRECOGNIZED)

    def seed(self, definition: SkillDefinition, turn: TurnInput) -> Dict[str, Any]:
        """
        Values for declared slots found in the triggering turn's entities.
        Invalid entity values are ignored; the slot is asked for later.
        """
        seeded = {}
        for slot in definition.slots:
            value = self._entity_value(slot, turn)
            if value is not None:
                seeded[slot.name] = value
        return seeded

    def is_cancel(self, turn: TurnInput) -> bool:
        if turn.intent and turn.intent.lower() in CANCEL_INTENTS:
            return True
        return bool(CANCEL_PATTERN.search(turn.utterance or ""))

    def parse_answer(self, turn: TurnInput) -> Optional[bool]:
        """True for yes, False for no, None when the turn is neither."""
        explicit = self._explicit_answer(turn)
        if explicit is not None:
            return explicit

        # Otherwise only an unambiguous answer counts
        text = turn.utterance or ""
        affirmed = bool(AFFIRM_PATTERN.search(text))
        denied = bool(DENY_PATTERN.search(text))
        if affirmed != denied:
            return affirmed
        return None

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _explicit_answer(self, turn: TurnInput) -> Optional[bool]:
        """The NLU's yes/no intent, else a leading yes/no word."""
        intent = (turn.intent or "").lower()
        if intent in AFFIRM_INTENTS:
            return True
        if intent in DENY_INTENTS:
            return False

        text = turn.utterance or ""
        if LEADING_AFFIRM_PATTERN.search(text):
            return True
        if LEADING_DENY_PATTERN.search(text):
            return False
        return None

    def _classify_slot(self, slot: Optional[Slot], turn: TurnInput) -> InputDecision:
        if slot is None:
            return InputDecision(input_class=InputClass.UNRECOGNIZED)

        value = self._entity_value(slot, turn)
        if value is not None:
            return InputDecision(input_class=InputClass.CAPTURED, value=value)

        text = (turn.utterance or "").strip()
        if not slot.required and (not text or DECLINE_PATTERN.match(text)):
            return InputDecision(input_class=InputClass.DECLINED)

        if slot.accepts(text):
            return InputDecision(input_class=InputClass.CAPTURED, value=slot.normalize(text))

        logger.debug(f"Input '{text}' does not fit slot '{slot.name}'")
        return InputDecision(input_class=InputClass.UNRECOGNIZED)

    def _entity_value(self, slot: Slot, turn: TurnInput) -> Optional[str]:
        if not slot.entity or slot.entity not in turn.entities:
            return None
        raw = turn.entities[slot.entity]
        if not slot.accepts(raw):
            logger.debug(f"Entity '{slot.entity}'={raw!r} rejected for slot '{slot.name}'")
            return None
        return slot.normalize(raw)

    def _detect_amendment(
        self, definition: SkillDefinition, turn: TurnInput
    ) -> Optional[str]:
        text = turn.utterance or ""
        if not CHANGE_PATTERN.search(text):
            return None
        for slot in definition.slots:
            for keyword in slot.keywords:
                if re.search(rf"\b{re.escape(keyword)}\b", text, re.IGNORECASE):
                    return slot.name
        return None
