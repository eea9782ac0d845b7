import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, ContextManager, Dict, List, Mapping, Optional, Sequence

from sqlalchemy.engine import Engine
from sqlmodel import Session as DBSession, select

# Domain & Infra Imports
from ..config import settings
from ..state.models import Session, utcnow
from ..services.exceptions import SessionAlreadyActiveError, SessionNotFoundError
from ..infrastructure.locking import KeyedLock
from ..infrastructure.database.tables import SessionDBModel
from ..infrastructure.database.connection import get_engine, init_db

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    """
    Defines how the engine accesses sessions.
    Owns the session lifecycle (create, fetch, mutate, evict) and is the only
    synchronization boundary in the hot path: every operation holds the
    user's lock, so operations for one user never interleave while other
    users proceed in parallel.

    Subclasses only implement raw storage (_load/_save/_delete/...); TTL and
    exclusivity rules live here so every backend behaves the same.
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.ttl_seconds = (
            ttl_seconds if ttl_seconds is not None else settings.SESSION_TTL_SECONDS
        )
        self.clock = clock or utcnow
        self._locks = KeyedLock()

    def lock(self, user_id: str) -> ContextManager[None]:
        """Re-entrant per-user lock. Hold it to serialize a whole turn."""
        return self._locks.hold(user_id)

    def get(self, user_id: str) -> Optional[Session]:
        """Returns the live session, evicting it first if it has expired."""
        with self.lock(user_id):
            session = self._load(user_id)
            if session is None:
                return None
            if session.is_expired(self.clock(), self.ttl_seconds):
                logger.info(
                    f"Session for user {user_id} expired in {session.skill_name}/{session.state}"
                )
                self._delete(user_id)
                return None
            return session

    def create(
        self,
        user_id: str,
        skill_name: str,
        initial_state: str,
        context: Optional[Mapping[str, Any]] = None,
    ) -> Session:
        """
        Starts a session.
        Raises SessionAlreadyActiveError if the user already has a live one.
        """
        with self.lock(user_id):
            existing = self.get(user_id)
            if existing is not None:
                raise SessionAlreadyActiveError(
                    f"User {user_id} already has an active '{existing.skill_name}' session."
                )
            now = self.clock()
            session = Session(
                user_id=user_id,
                skill_name=skill_name,
                state=initial_state,
                context=dict(context or {}),
                created_at=now,
                last_activity=now,
            )
            self._save(session)
            return session

    def update(
        self,
        user_id: str,
        state: str,
        context: Mapping[str, Any],
        retries: int = 0,
        declined: Sequence[str] = (),
    ) -> Session:
        """
        Overwrites state and context and refreshes last activity.
        Raises SessionNotFoundError if there is no live session.
        """
        with self.lock(user_id):
            session = self.get(user_id)
            if session is None:
                raise SessionNotFoundError(f"No active session for user {user_id}.")
            updated = session.model_copy(
                update={
                    "state": state,
                    "context": dict(context),
                    "retries": retries,
                    "declined": list(declined),
                    "last_activity": self.clock(),
                }
            )
            self._save(updated)
            return updated

    def remove(self, user_id: str) -> None:
        """Evicts unconditionally. Removing an absent session is not an error."""
        with self.lock(user_id):
            self._delete(user_id)

    def purge_expired(self) -> int:
        """Active sweep for deployments that cannot rely on lazy expiry alone."""
        purged = 0
        for user_id in self._user_ids():
            with self.lock(user_id):
                session = self._load(user_id)
                if session and session.is_expired(self.clock(), self.ttl_seconds):
                    self._delete(user_id)
                    purged += 1
        if purged:
            logger.info(f"Purged {purged} expired sessions")
        return purged

    # ==========================================================================
    # Storage primitives
    # ==========================================================================

    @abstractmethod
    def _load(self, user_id: str) -> Optional[Session]:
        pass

    @abstractmethod
    def _save(self, session: Session):
        pass

    @abstractmethod
    def _delete(self, user_id: str) -> bool:
        pass

    @abstractmethod
    def _user_ids(self) -> List[str]:
        pass

    @abstractmethod
    def clear(self) -> None:
        """Drops every session (teardown)."""
        pass


class InMemorySessionStore(SessionStore):
    """
    Uses an in-memory dictionary. Sessions are lost on process restart.
    """

    def __init__(self, ttl_seconds: Optional[float] = None, clock=None):
        super().__init__(ttl_seconds=ttl_seconds, clock=clock)
        self._store: Dict[str, Session] = {}

    def _load(self, user_id: str) -> Optional[Session]:
        session = self._store.get(user_id)
        # Callers get copies so nothing outside the store can mutate it
        return session.model_copy(deep=True) if session else None

    def _save(self, session: Session):
        self._store[session.user_id] = session.model_copy(deep=True)

    def _delete(self, user_id: str) -> bool:
        return self._store.pop(user_id, None) is not None

    def _user_ids(self) -> List[str]:
        return list(self._store)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)


class SqlSessionStore(SessionStore):
    """
    SQL storage (PostgreSQL + JSONB in production) for session state.
    Per-user locking is in-process; run a single worker per database or
    replace the lock with a row lock when scaling out.
    """

    def __init__(
        self, engine: Optional[Engine] = None, ttl_seconds: Optional[float] = None, clock=None
    ):
        super().__init__(ttl_seconds=ttl_seconds, clock=clock)
        self.engine = engine or get_engine()
        init_db(self.engine)

    def _load(self, user_id: str) -> Optional[Session]:
        with DBSession(self.engine) as db:
            result = db.get(SessionDBModel, user_id)
            if not result:
                return None
            return self._to_domain(result)

    def _save(self, session: Session):
        with DBSession(self.engine) as db:
            row = db.get(SessionDBModel, session.user_id)
            if row is None:
                row = SessionDBModel(user_id=session.user_id)
            row.skill_name = session.skill_name
            row.state = session.state
            row.context = dict(session.context)
            row.retries = session.retries
            row.declined = list(session.declined)
            row.created_at = session.created_at
            row.last_activity = session.last_activity
            db.add(row)
            db.commit()

    def _delete(self, user_id: str) -> bool:
        with DBSession(self.engine) as db:
            result = db.get(SessionDBModel, user_id)
            if result:
                db.delete(result)
                db.commit()
                return True
            return False

    def _user_ids(self) -> List[str]:
        with DBSession(self.engine) as db:
            return list(db.exec(select(SessionDBModel.user_id)).all())

    def clear(self) -> None:
        with DBSession(self.engine) as db:
            for row in db.exec(select(SessionDBModel)).all():
                db.delete(row)
            db.commit()

    @staticmethod
    def _to_domain(row: SessionDBModel) -> Session:
        # SQLite drops tzinfo; stored values are always UTC
        def aware(value: datetime) -> datetime:
            return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

        return Session(
            user_id=row.user_id,
            skill_name=row.skill_name,
            state=row.state,
            context=dict(row.context or {}),
            retries=row.retries,
            declined=list(row.declined or []),
            created_at=aware(row.created_at),
            last_activity=aware(row.last_activity),
        )
