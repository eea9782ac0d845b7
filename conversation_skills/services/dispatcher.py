"""
Dispatcher - Application Orchestration Layer

The Dispatcher is the engine's single entry point. For every turn it decides
whether the user's active skill continues, a new skill starts, or nothing
applies and the caller should fall back to one-shot command handling.

It composes the Skill Registry, the Session Store and the SkillEngine, and
holds no session state of its own: every side effect goes through the store.
"""

import logging
from typing import List, Optional

from ..domain.models import INITIAL, SkillDefinition
from ..state.models import Session
from ..repositories.session import SessionStore
from ..repositories.skill import SkillRegistry
from ..execution.engine import SkillEngine
from ..execution.schemas.state_machine import TransitionResult
from ..schemas.decisions import TurnInput, TurnOutput
from .exceptions import NotFoundError

logger = logging.getLogger(__name__)


class Dispatcher:
    def __init__(
        self,
        registry: SkillRegistry,
        session_store: SessionStore,
        engine: Optional[SkillEngine] = None,
    ):
        self.registry = registry
        self.session_store = session_store
        self.engine = engine or SkillEngine()

    def process(self, user_id: str, turn: TurnInput) -> Optional[TurnOutput]:
        """
        The Core Loop:
        1. Load Session (under the user's lock, for the whole turn)
        2. Warm Start: resume the active skill
        3. Cold Start: match a trigger and start a skill
        4. None when no skill applies
        """
        with self.session_store.lock(user_id):
            # 1. Load Session
            session = self.session_store.get(user_id)

            # 2. Warm Start
            if session is not None:
                definition = self._resolve(session)
                if definition is not None:
                    return self._continue(session, definition, turn)

            # 3. Cold Start
            return self._start(user_id, turn)

    def cancel(self, user_id: str) -> bool:
        """Evicts the user's active session. Returns True if there was one."""
        with self.session_store.lock(user_id):
            session = self.session_store.get(user_id)
            if session is None:
                return False
            self.session_store.remove(user_id)
            logger.info(f"Cancelled '{session.skill_name}' for user {user_id}")
            return True

    def active_session(self, user_id: str) -> Optional[Session]:
        return self.session_store.get(user_id)

    def list_skills(self) -> List[str]:
        return self.registry.list_skills()

    def shutdown(self) -> None:
        """Teardown: drop every session."""
        self.session_store.clear()
        logger.info("Dropped all sessions on shutdown")

    # ==========================================================================
    # Turn Handling
    # ==========================================================================

    def _resolve(self, session: Session) -> Optional[SkillDefinition]:
        """
        Finds the session's skill. Corrupted sessions (unknown skill or state)
        are evicted so the turn can proceed as a fresh start.
        """
        try:
            definition = self.registry.lookup(session.skill_name)
        except NotFoundError:
            logger.warning(
                f"Session for user {session.user_id} references unknown skill "
                f"'{session.skill_name}'; evicting"
            )
            self.session_store.remove(session.user_id)
            return None

        if session.state == INITIAL or not definition.is_live_state(session.state):
            logger.warning(
                f"Session for user {session.user_id} is in invalid state "
                f"'{session.state}' of '{definition.name}'; evicting"
            )
            self.session_store.remove(session.user_id)
            return None

        return definition

    def _continue(
        self, session: Session, definition: SkillDefinition, turn: TurnInput
    ) -> TurnOutput:
        result = self.engine.transition(
            definition,
            session.state,
            session.context,
            turn,
            retries=session.retries,
            declined=session.declined,
        )
        output = self._persist(session.user_id, definition, result)
        return self._handoff(session.user_id, definition, output, turn)

    def _start(self, user_id: str, turn: TurnInput) -> Optional[TurnOutput]:
        definition = self.registry.match(turn.intent, turn.utterance)
        if definition is None:
            logger.debug(f"No skill applies to intent '{turn.intent}' for user {user_id}")
            return None

        output = self._begin(user_id, definition, turn)
        return self._handoff(user_id, definition, output, turn)

    def _begin(
        self, user_id: str, definition: SkillDefinition, turn: TurnInput
    ) -> TurnOutput:
        logger.info(f"Starting skill '{definition.name}' for user {user_id}")
        self.session_store.create(user_id, definition.name, INITIAL, {})
        try:
            result = self.engine.transition(definition, INITIAL, {}, turn)
        except Exception:
            # Never leave a session parked in INITIAL
            self.session_store.remove(user_id)
            raise
        return self._persist(user_id, definition, result)

    def _handoff(
        self,
        user_id: str,
        definition: SkillDefinition,
        output: TurnOutput,
        turn: TurnInput,
    ) -> TurnOutput:
        """
        Starts the skill a completed routing skill selected, for the same turn.
        One hop only: the selected skill's own handoff is not followed.
        """
        if definition.handoff is None or not output.fulfilled:
            return output

        target_name = output.result[definition.handoff]
        try:
            target = self.registry.lookup(target_name)
        except NotFoundError:
            logger.warning(
                f"Skill '{definition.name}' selected unknown skill '{target_name}' "
                f"for user {user_id}"
            )
            return output

        logger.info(f"Skill '{definition.name}' handing user {user_id} to '{target.name}'")
        return self._begin(user_id, target, turn)

    def _persist(
        self, user_id: str, definition: SkillDefinition, result: TransitionResult
    ) -> TurnOutput:
        if result.complete:
            self.session_store.remove(user_id)
            logger.info(
                f"Skill '{definition.name}' finished in {result.state} for user {user_id}"
            )
        else:
            self.session_store.update(
                user_id,
                result.state,
                result.context,
                retries=result.retries,
                declined=result.declined,
            )

        return TurnOutput(
            reply=result.reply,
            skill=definition.name,
            state=result.state,
            context=dict(result.context),
            complete=result.complete,
            result=result.result,
        )
