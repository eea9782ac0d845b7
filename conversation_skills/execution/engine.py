"""
Engine - Skill State Machine Layer

The SkillEngine is the generic, deterministic state machine shared by every
skill. A skill contributes only data (its SkillDefinition); the engine reads
the definition's transition table and computes

    (state, context, input) -> (next state, context', reply, complete)

The engine is pure: it never touches the Session Store, never performs I/O,
and returns new objects instead of mutating its inputs. Persisting the result
is the Dispatcher's job.

Control rules applied on top of the table:
1. Cancellation is recognised in every non-terminal state.
2. Unrecognized input holds the pointer and re-prompts, up to a bounded
   number of consecutive retries, after which the skill is cancelled.
3. Entering a state whose field is already known skips ahead (write-once).
4. COMPLETE is only entered once every required field is captured.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..config import settings
from ..domain.models import (
    CANCELLED,
    COMPLETE,
    InputClass,
    SkillDefinition,
    StateSpec,
    Transition,
)
from ..schemas.decisions import TurnInput
from ..services.exceptions import SkillDefinitionError, UnknownStateError
from .classifier import InputClassifier
from .prompts import Template, render, render_source
from .schemas.state_machine import StateMachineTransition, TransitionResult

logger = logging.getLogger(__name__)


class SkillEngine:
    def __init__(
        self,
        classifier: Optional[InputClassifier] = None,
        max_unrecognized: Optional[int] = None,
    ):
        self.classifier = classifier or InputClassifier()
        self.max_unrecognized = (
            max_unrecognized
            if max_unrecognized is not None
            else settings.MAX_UNRECOGNIZED_TURNS
        )

    def transition(
        self,
        definition: SkillDefinition,
        state: str,
        context: Mapping[str, Any],
        turn: TurnInput,
        retries: int = 0,
        declined: Sequence[str] = (),
    ) -> TransitionResult:
        """
        The transition function.
        """
        spec = definition.states.get(state)
        if spec is None or spec.terminal:
            raise UnknownStateError(
                f"Skill '{definition.name}' has no live state '{state}'"
            )

        context = dict(context)
        declined = list(declined)

        # 1. Entry: the triggering turn may already carry some fields
        if spec.type == "initial":
            for name, value in self.classifier.seed(definition, turn).items():
                context.setdefault(name, value)
            return self._enter(
                definition, spec.transitions[InputClass.START], context, declined
            )

        # 2. Classify the turn against the current state
        decision = self.classifier.classify(definition, spec, turn)
        logger.debug(
            f"Skill '{definition.name}' state {spec.name}: {decision.input_class.value}"
        )

        if decision.input_class == InputClass.CANCEL:
            return self._cancel(definition, context, declined, Template.CANCELLED)

        if decision.input_class == InputClass.UNRECOGNIZED:
            retries += 1
            if retries >= self.max_unrecognized:
                logger.warning(
                    f"Skill '{definition.name}' gave up after {retries} unrecognized inputs in {spec.name}"
                )
                return self._cancel(
                    definition, context, declined, Template.RETRY_EXHAUSTED
                )
            return TransitionResult(
                state=spec.name,
                context=context,
                reply=self._reprompt(definition, spec, context),
                complete=False,
                transition=StateMachineTransition.HOLD,
                retries=retries,
                declined=declined,
            )

        # 3. Apply the decision to the context
        if decision.input_class == InputClass.AMEND:
            field_name = decision.value
            context.pop(field_name, None)
            if field_name in declined:
                declined.remove(field_name)
            target = definition.capturing_state(field_name)
            return self._enter(definition, Transition(target.name), context, declined)

        if decision.input_class == InputClass.DECLINED:
            if spec.capture not in declined:
                declined.append(spec.capture)
        elif spec.capture is not None and spec.capture not in context:
            context[spec.capture] = decision.value

        # 4. Follow the table
        return self._enter(
            definition, spec.transitions[decision.input_class], context, declined
        )

    # ==========================================================================
    # State Entry
    # ==========================================================================

    def _enter(
        self,
        definition: SkillDefinition,
        transition: Transition,
        context: Dict[str, Any],
        declined: List[str],
    ) -> TransitionResult:
        """
        Moves the pointer to the transition's target, skipping states whose
        field is already known, and renders the prompt of the state it lands on.
        """
        if transition.reset:
            context = {}
            declined = []

        target = transition.target
        for _ in range(len(definition.states) + 1):
            spec = definition.states[target]

            if spec.name == COMPLETE:
                missing = definition.missing_required(context)
                if missing:
                    logger.warning(
                        f"Skill '{definition.name}' reached {COMPLETE} without {missing}; asking again"
                    )
                    target = definition.capturing_state(missing[0]).name
                    continue
                return self._complete(definition, spec, context, declined)

            if spec.name == CANCELLED:
                return self._cancel(definition, context, declined, Template.CANCELLED)

            if spec.capture is not None and (
                spec.capture in context or spec.capture in declined
            ):
                target = self._skip_target(spec, context, declined)
                continue

            return TransitionResult(
                state=spec.name,
                context=context,
                reply=self._render(definition, spec.prompt, context),
                complete=False,
                transition=StateMachineTransition.ADVANCE,
                declined=declined,
            )

        raise SkillDefinitionError(
            f"Skill '{definition.name}' loops without reaching a prompt from {transition.target}"
        )

    def _skip_target(
        self, spec: StateSpec, context: Mapping[str, Any], declined: List[str]
    ) -> str:
        if spec.type == "ask_yes_no":
            input_class = InputClass.AFFIRM if context[spec.capture] else InputClass.DENY
        elif spec.capture in declined:
            input_class = InputClass.DECLINED
        else:
            input_class = InputClass.CAPTURED
        return spec.transitions[input_class].target

    def _complete(
        self,
        definition: SkillDefinition,
        spec: StateSpec,
        context: Dict[str, Any],
        declined: List[str],
    ) -> TransitionResult:
        payload = definition.package(context)
        logger.info(f"Skill '{definition.name}' complete with fields {sorted(payload)}")
        return TransitionResult(
            state=COMPLETE,
            context=payload,
            reply=self._render(definition, spec.prompt, payload),
            complete=True,
            transition=StateMachineTransition.EXIT,
            declined=declined,
            result=payload,
        )

    def _cancel(
        self,
        definition: SkillDefinition,
        context: Dict[str, Any],
        declined: List[str],
        template: str,
    ) -> TransitionResult:
        spec = definition.states[CANCELLED]
        if template == Template.CANCELLED and spec.prompt:
            reply = self._render(definition, spec.prompt, context)
        else:
            reply = render(template, title=definition.title)

        logger.info(f"Skill '{definition.name}' cancelled")
        return TransitionResult(
            state=CANCELLED,
            context=context,
            reply=reply,
            complete=True,
            transition=StateMachineTransition.EXIT,
            declined=declined,
        )

    # ==========================================================================
    # Prompt Rendering
    # ==========================================================================

    def _render(
        self, definition: SkillDefinition, source: str, context: Mapping[str, Any]
    ) -> str:
        variables = dict(definition.template_vars)
        variables.update(context)
        variables["captured"] = context
        variables["title"] = definition.title
        return render_source(source, **variables)

    def _reprompt(
        self, definition: SkillDefinition, spec: StateSpec, context: Mapping[str, Any]
    ) -> str:
        if spec.reprompt:
            return self._render(definition, spec.reprompt, context)
        return render(
            Template.REPROMPT, prompt=self._render(definition, spec.prompt, context)
        )
