from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from conversation_skills.data.restaurant_booking import build_restaurant_booking
from conversation_skills.data.troubleshooting import (
    build_commands_troubleshooting,
    build_troubleshooting_triage,
    build_voice_troubleshooting,
    build_whatsapp_troubleshooting,
)
from conversation_skills.domain.models import INITIAL
from conversation_skills.execution.engine import SkillEngine
from conversation_skills.repositories.session import InMemorySessionStore, SqlSessionStore
from conversation_skills.repositories.skill import SkillRegistry
from conversation_skills.schemas.decisions import TurnInput
from conversation_skills.services.dispatcher import Dispatcher


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def say():
    """Builds a TurnInput: say("Italian"), say("hi", intent="greet", number=4)."""
    def _say(text: str = "", intent: str = None, **entities) -> TurnInput:
        return TurnInput(utterance=text, intent=intent, entities=entities)
    return _say


@pytest.fixture
def restaurant():
    return build_restaurant_booking()


@pytest.fixture
def voice():
    return build_voice_troubleshooting()


@pytest.fixture
def registry():
    return SkillRegistry([
        build_restaurant_booking(),
        build_voice_troubleshooting(),
        build_whatsapp_troubleshooting(),
        build_commands_troubleshooting(),
        build_troubleshooting_triage(),
    ])


@pytest.fixture
def store(clock):
    return InMemorySessionStore(ttl_seconds=300, clock=clock)


@pytest.fixture
def sql_store(clock):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    return SqlSessionStore(engine=engine, ttl_seconds=300, clock=clock)


@pytest.fixture
def engine():
    return SkillEngine(max_unrecognized=3)


@pytest.fixture
def dispatcher(registry, store, engine):
    return Dispatcher(registry=registry, session_store=store, engine=engine)


@pytest.fixture
def drive(engine, say):
    """
    Runs a sequence of utterances through the transition function alone,
    threading state/context/retries/declined like the Dispatcher would.
    """
    def _drive(definition, inputs, skill_engine=None):
        skill_engine = skill_engine or engine
        state, context, retries, declined = INITIAL, {}, 0, []
        results = []
        for item in inputs:
            turn = item if isinstance(item, TurnInput) else say(item)
            result = skill_engine.transition(
                definition, state, context, turn, retries=retries, declined=declined
            )
            results.append(result)
            if result.complete:
                break
            state, context = result.state, result.context
            retries, declined = result.retries, result.declined
        return results
    return _drive
