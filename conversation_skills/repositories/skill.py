import logging
import threading
from typing import Dict, Iterable, List, Optional

from ..domain.models import SkillDefinition
from ..services.exceptions import DuplicateSkillError, SkillNotFoundError

logger = logging.getLogger(__name__)


class SkillRegistry:
    """
    Holds Skill Definitions for the process lifetime.

    Skills are registered once at startup and looked up on every turn, so
    registration swaps in new index objects under a lock while readers use
    whatever index is current without locking.
    """

    def __init__(self, definitions: Iterable[SkillDefinition] = ()):
        self._lock = threading.Lock()
        # Index for O(1) lookup, insertion order is registration order
        self._index: Dict[str, SkillDefinition] = {}
        self._ranked: List[SkillDefinition] = []
        for definition in definitions:
            self.register(definition)

    def register(self, definition: SkillDefinition) -> None:
        """
        Adds a definition.
        Raises DuplicateSkillError if the name is already registered.
        """
        with self._lock:
            if definition.name in self._index:
                raise DuplicateSkillError(
                    f"Skill '{definition.name}' is already registered."
                )

            for other in self._index.values():
                shared = other.trigger.intents & definition.trigger.intents
                if shared and other.trigger.priority == definition.trigger.priority:
                    logger.warning(
                        f"Skills '{other.name}' and '{definition.name}' share intents "
                        f"{sorted(shared)} at equal priority; '{other.name}' wins"
                    )

            index = dict(self._index)
            index[definition.name] = definition
            # sorted() is stable: equal priorities keep registration order
            self._ranked = sorted(index.values(), key=lambda d: -d.trigger.priority)
            self._index = index

        logger.info(f"Registered skill: {definition.name}")

    def match(self, intent: Optional[str], utterance: str = "") -> Optional[SkillDefinition]:
        """
        Returns the first definition whose trigger matches, highest priority
        first, or None.
        """
        for definition in self._ranked:
            if definition.trigger.matches(intent, utterance):
                return definition
        return None

    def lookup(self, name: str) -> SkillDefinition:
        """
        Retrieves a definition by name.
        Raises SkillNotFoundError if not found.
        """
        definition = self._index.get(name)
        if definition is None:
            raise SkillNotFoundError(f"Skill '{name}' not found.")
        return definition

    def list_skills(self) -> List[str]:
        return list(self._index)

    def __contains__(self, name: str) -> bool:
        return name in self._index

    def __len__(self) -> int:
        return len(self._index)
