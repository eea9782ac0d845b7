"""
Service Layer Exceptions

Custom exceptions raised by the Skill Registry, the Session Store and the
Skill Engine. The Dispatcher recovers from the NotFoundError family; the rest
signal configuration or caller errors.
"""


class ConversationSkillsError(Exception):
    """Base class for all engine errors."""
    pass


class DuplicateSkillError(ConversationSkillsError):
    """Raised when a skill name is registered twice. Fatal at startup."""
    pass


class SkillDefinitionError(ConversationSkillsError, ValueError):
    """Raised when a skill definition is malformed (missing states, dangling transitions...)."""
    pass


class NotFoundError(ConversationSkillsError, LookupError):
    """Raised when a skill, session or state cannot be found."""
    pass


class SkillNotFoundError(NotFoundError):
    """Raised when looking up a skill name that was never registered."""
    pass


class SessionNotFoundError(NotFoundError):
    """Raised when updating a session that does not exist (or has expired)."""
    pass


class UnknownStateError(NotFoundError):
    """Raised when a session points at a state its skill does not define."""
    pass


class SessionAlreadyActiveError(ConversationSkillsError):
    """Raised when creating a session for a user who already has a live one."""
    pass
