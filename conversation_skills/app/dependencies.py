"""
Dependency Injection Wiring (Composition Root).

This module acts as the central "container" for the application's services.
It is responsible for:
1. Instantiating the core Singleton services (Registry, Session Store, Engine).
2. Wiring them together (e.g., injecting the Registry and Store into the Dispatcher).
3. Managing the lifecycle of these objects using @lru_cache to ensure
   they are created only once per application process.

Skills are registered here, once, at startup. Tests override these
providers through FastAPI's dependency_overrides.
"""


from functools import lru_cache
from fastapi import Depends

from ..config import settings
from ..data.builtin_skills import builtin_skills
from ..repositories.skill import SkillRegistry
from ..repositories.session import SessionStore, InMemorySessionStore, SqlSessionStore
from ..execution.engine import SkillEngine
from ..services.dispatcher import Dispatcher

# Skill Registry (Singleton)
@lru_cache()
def get_skill_registry() -> SkillRegistry:
    return SkillRegistry(builtin_skills(settings))

# Session Store (Singleton)
# Note: In-memory storage must be a singleton so data persists across requests!
@lru_cache()
def get_session_store() -> SessionStore:
    if settings.SESSION_BACKEND == "sql":
        return SqlSessionStore(ttl_seconds=settings.SESSION_TTL_SECONDS)
    return InMemorySessionStore(ttl_seconds=settings.SESSION_TTL_SECONDS)

# The Engine (Singleton Service)
@lru_cache()
def get_skill_engine() -> SkillEngine:
    return SkillEngine(max_unrecognized=settings.MAX_UNRECOGNIZED_TURNS)

# The Dispatcher (Singleton Service)
@lru_cache()
def get_dispatcher(
    registry: SkillRegistry = Depends(get_skill_registry),
    session_store: SessionStore = Depends(get_session_store),
    engine: SkillEngine = Depends(get_skill_engine)
) -> Dispatcher:
    """
    Injects all necessary components into the Dispatcher.
    """
    return Dispatcher(
        registry=registry,
        session_store=session_store,
        engine=engine
    )
