import logging
from dataclasses import replace

import pytest

from conversation_skills.data.restaurant_booking import build_restaurant_booking
from conversation_skills.data.troubleshooting import Check, build_troubleshooting_skill
from conversation_skills.repositories.skill import SkillRegistry
from conversation_skills.services.exceptions import (
    DuplicateSkillError,
    NotFoundError,
    SkillNotFoundError,
)


def diagnostic(name, intents=(), keywords=(), priority=0):
    skill = build_troubleshooting_skill(
        name=name,
        title=name.title(),
        issue=name,
        checks=[Check(field="plugged_in", question="Is it plugged in?", fix="Plug it in.")],
        follow_up=["Restart it."],
        intents=intents,
        keywords=keywords,
    )
    if priority:
        # Triggers are frozen; rebuild the definition with a new one
        skill = replace(skill, trigger=replace(skill.trigger, priority=priority))
    return skill


def test_lookup_and_list_keep_registration_order(registry):
    assert registry.list_skills() == [
        "restaurant_booking",
        "voice_troubleshooting",
        "whatsapp_troubleshooting",
        "commands_troubleshooting",
        "troubleshooting",
    ]
    assert registry.lookup("restaurant_booking").title == "Restaurant Booking"
    assert "voice_troubleshooting" in registry
    assert len(registry) == 5


def test_duplicate_name_is_rejected(registry):
    with pytest.raises(DuplicateSkillError):
        registry.register(build_restaurant_booking())
    assert len(registry) == 5


def test_lookup_unknown_skill(registry):
    with pytest.raises(SkillNotFoundError):
        registry.lookup("weather")
    with pytest.raises(LookupError):
        registry.lookup("weather")


def test_match_by_intent_and_keyword(registry):
    assert registry.match("book_restaurant").name == "restaurant_booking"
    assert registry.match(None, "my WhatsApp messages are stuck").name == "whatsapp_troubleshooting"
    assert registry.match("troubleshoot_voice", "").name == "voice_troubleshooting"


def test_no_match_returns_none(registry):
    assert registry.match("get_weather", "what's the weather like?") is None
    assert registry.match(None, "") is None


def test_first_registered_wins_on_equal_priority(caplog):
    registry = SkillRegistry([diagnostic("printer", intents=("fix",))])
    with caplog.at_level(logging.WARNING):
        registry.register(diagnostic("scanner", intents=("fix",)))

    assert registry.match("fix").name == "printer"
    assert "share intents" in caplog.text


def test_higher_priority_is_evaluated_first():
    registry = SkillRegistry([
        diagnostic("printer", keywords=("broken",)),
        diagnostic("scanner", keywords=("broken",), priority=5),
    ])
    assert registry.match(None, "it's broken").name == "scanner"


def test_not_found_errors_share_a_base():
    assert issubclass(SkillNotFoundError, NotFoundError)
