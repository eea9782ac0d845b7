import pytest

from conversation_skills.data.troubleshooting import (
    COMMANDS_CHECKS,
    VOICE_CHECKS,
    VOICE_FOLLOW_UP,
    WHATSAPP_CHECKS,
    build_whatsapp_troubleshooting,
)
from conversation_skills.domain.models import CANCELLED, COMPLETE
from conversation_skills.repositories.session import InMemorySessionStore
from conversation_skills.services.dispatcher import Dispatcher


def run(dispatcher, say, answers, opener="my microphone is not working"):
    outputs = [dispatcher.process("alice", say(opener))]
    outputs += [dispatcher.process("alice", say(answer)) for answer in answers]
    return outputs


def test_opening_question(dispatcher, say):
    [first] = run(dispatcher, say, [])
    assert first.skill == "voice_troubleshooting"
    assert first.state == "CHECK_MIC_CONNECTED"
    assert first.reply == (
        "I see you're having issues with voice recognition. "
        "Let me ask a few questions to diagnose the problem. Is your microphone connected?"
    )


def test_only_yes_no_questions_are_asked(dispatcher, say):
    outputs = run(dispatcher, say, ["yes"] * 4)
    assert [o.state for o in outputs] == [f"CHECK_{c.field.upper()}" for c in VOICE_CHECKS]
    for output, check in zip(outputs[1:], VOICE_CHECKS[1:]):
        assert output.reply == check.question


def test_all_checks_pass(dispatcher, say):
    final = run(dispatcher, say, ["yes", "yeah", "yep", "sure", "yes"])[-1]

    assert final.state == COMPLETE
    assert final.complete
    assert final.result == {check.field: True for check in VOICE_CHECKS}
    assert final.reply.startswith("Thanks! The basics all check out")
    for position, step in enumerate(VOICE_FOLLOW_UP, start=1):
        assert f"{position}. {step}" in final.reply
    assert final.reply.endswith("If that doesn't solve it, I can pass this on to support.")
    assert dispatcher.active_session("alice") is None


def test_failed_checks_are_listed(dispatcher, say):
    final = run(dispatcher, say, ["yes", "no", "yes", "yes", "nope"])[-1]

    assert final.state == COMPLETE
    assert final.result["permission_granted"] is False
    assert final.result["quiet_environment"] is False
    assert final.reply.startswith("Thanks! Based on your answers, here is what to fix:")
    assert "1. Grant microphone permissions in your browser settings." in final.reply
    assert "2. Reduce background noise or move closer to the microphone." in final.reply
    assert VOICE_FOLLOW_UP[0] not in final.reply


def test_outcome_is_deterministic(registry, engine, say, clock):
    answers = ["no", "yes", "no", "yes", "yes"]
    replies = []
    for _ in range(2):
        dispatcher = Dispatcher(registry, InMemorySessionStore(clock=clock), engine)
        replies.append([o.reply for o in run(dispatcher, say, answers)])
    assert replies[0] == replies[1]


def test_unclear_answer_is_asked_again(dispatcher, say):
    outputs = run(dispatcher, say, ["maybe"])
    assert outputs[-1].state == "CHECK_MIC_CONNECTED"
    assert outputs[-1].reply == "Please answer yes or no: Is your microphone connected?"


def test_whatsapp_diagnostic(dispatcher, say):
    outputs = run(
        dispatcher, say, ["no"] * 5, opener="my whatsapp messages aren't going out"
    )
    final = outputs[-1]
    assert final.skill == "whatsapp_troubleshooting"
    assert final.state == COMPLETE
    for position, check in enumerate(WHATSAPP_CHECKS, start=1):
        assert f"{position}. {check.fix}" in final.reply


@pytest.mark.parametrize("answer", ["stop", "cancel this"])
def test_diagnostic_can_be_cancelled(dispatcher, say, answer):
    outputs = run(dispatcher, say, ["yes", answer])
    assert outputs[-1].state == CANCELLED
    assert outputs[-1].cancelled
    assert dispatcher.active_session("alice") is None


def test_every_check_has_a_state():
    skill = build_whatsapp_troubleshooting()
    assert skill.required_fields == [check.field for check in WHATSAPP_CHECKS]


class TestIssueRouting:
    def test_generic_intent_naming_the_issue_starts_its_diagnostic(self, dispatcher, say):
        output = dispatcher.process(
            "alice", say("voice commands are not recognized", intent="troubleshoot")
        )
        assert output.skill == "commands_troubleshooting"
        assert output.state == "CHECK_SPEAKING_CLEARLY"
        assert output.reply.endswith(COMMANDS_CHECKS[0].question)

    def test_vague_help_request_asks_for_the_issue(self, dispatcher, say):
        output = dispatcher.process("alice", say("I need some help", intent="help"))
        assert output.skill == "troubleshooting"
        assert output.state == "IDENTIFY_ISSUE"
        assert output.reply.startswith("I'm here to help! What issue are you experiencing?")

    def test_problem_keyword_without_intent(self, dispatcher, say):
        output = dispatcher.process("alice", say("I've got a problem"))
        assert output.skill == "troubleshooting"

    def test_described_issue_hands_over_to_the_diagnostic(self, dispatcher, say):
        dispatcher.process("alice", say("something is wrong", intent="troubleshoot"))
        output = dispatcher.process("alice", say("it's my microphone"))

        assert output.skill == "voice_troubleshooting"
        assert output.state == "CHECK_MIC_CONNECTED"
        assert not output.complete
        assert dispatcher.active_session("alice").skill_name == "voice_troubleshooting"

    def test_handed_over_diagnostic_runs_to_completion(self, dispatcher, say):
        dispatcher.process("alice", say("I have an issue"))
        dispatcher.process("alice", say("whatsapp"))
        outputs = [dispatcher.process("alice", say("yes")) for _ in WHATSAPP_CHECKS]

        assert outputs[-1].skill == "whatsapp_troubleshooting"
        assert outputs[-1].fulfilled
        assert dispatcher.active_session("alice") is None

    def test_issue_entity_skips_the_question(self, dispatcher, say):
        output = dispatcher.process(
            "alice", say("help", intent="help", issue="commands")
        )
        assert output.skill == "commands_troubleshooting"
        assert output.state == "CHECK_SPEAKING_CLEARLY"

    def test_unclear_issue_is_asked_again(self, dispatcher, say):
        dispatcher.process("alice", say("help", intent="help"))
        output = dispatcher.process("alice", say("the lights"))
        assert output.skill == "troubleshooting"
        assert output.state == "IDENTIFY_ISSUE"
        assert output.reply.startswith("I'm not sure what the issue is.")


def test_commands_diagnostic(dispatcher, say):
    outputs = run(
        dispatcher, say, ["yes", "no", "yes", "yes", "yes"], opener="commands not working"
    )
    final = outputs[-1]
    assert final.skill == "commands_troubleshooting"
    assert final.reply.startswith("Thanks! Based on your answers, here is what to fix:")
    assert "1. Reduce background noise." in final.reply
