from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

from conversation_skills.domain.models import (
    CANCELLED,
    COMPLETE,
    INITIAL,
    InputClass,
    SkillDefinition,
    Slot,
    StateSpec,
    Transition,
    Trigger,
)


@dataclass(frozen=True)
class Check:
    """
    One yes/no diagnostic question.

    Attributes:
        field: Context key storing the answer (True = check passed).
        question: Phrased so that "yes" means everything is fine.
        fix: Recommendation shown when the answer is "no".
    """
    field: str
    question: str
    fix: str


COMPLETE_PROMPT = """{% for check in checks if not captured[check.field] %}
{% if loop.first %}
Thanks! Based on your answers, here is what to fix:
{% endif %}
{{ loop.index }}. {{ check.fix }}
{% else %}
Thanks! The basics all check out, so here is what to try next:
{% for step in follow_up %}
{{ loop.index }}. {{ step }}
{% endfor %}
{% endfor %}
If that doesn't solve it, I can pass this on to support."""


def build_troubleshooting_skill(
    name: str,
    title: str,
    issue: str,
    checks: Sequence[Check],
    follow_up: Sequence[str],
    intents: Iterable[str] = (),
    keywords: Tuple[str, ...] = (),
) -> SkillDefinition:
    """
    A diagnostic that only asks yes/no questions, one state per Check.
    Every answer is captured; COMPLETE lists the fixes for failed checks, or
    the follow-up steps when everything passed.
    """
    state_names = [f"CHECK_{check.field.upper()}" for check in checks]
    states = [
        StateSpec(
            name=INITIAL,
            type="initial",
            transitions={InputClass.START: Transition(state_names[0])},
        )
    ]

    for position, check in enumerate(checks):
        next_state = (
            state_names[position + 1] if position + 1 < len(checks) else COMPLETE
        )
        prompt = check.question
        if position == 0:
            prompt = (
                f"I see you're having issues with {issue}. "
                f"Let me ask a few questions to diagnose the problem. {check.question}"
            )
        states.append(
            StateSpec(
                name=state_names[position],
                type="ask_yes_no",
                capture=check.field,
                prompt=prompt,
                reprompt=f"Please answer yes or no: {check.question}",
                transitions={
                    InputClass.AFFIRM: Transition(next_state),
                    InputClass.DENY: Transition(next_state),
                },
            )
        )

    states.append(StateSpec(name=COMPLETE, type="terminal", prompt=COMPLETE_PROMPT))
    states.append(StateSpec(name=CANCELLED, type="terminal"))

    return SkillDefinition(
        name=name,
        title=title,
        trigger=Trigger(intents=frozenset(intents), keywords=keywords),
        slots=tuple(Slot(name=check.field) for check in checks),
        states={spec.name: spec for spec in states},
        template_vars={"checks": list(checks), "follow_up": list(follow_up)},
    )


# ==============================================================================
# REGISTERED DIAGNOSTICS
# ==============================================================================

VOICE_CHECKS = [
    Check(
        field="mic_connected",
        question="Is your microphone connected?",
        fix="Check the microphone connection and reseat the cable or re-pair the headset.",
    ),
    Check(
        field="permission_granted",
        question="Have you granted microphone permissions?",
        fix="Grant microphone permissions in your browser settings.",
    ),
    Check(
        field="supported_browser",
        question="Are you using Chrome or Edge?",
        fix="Use Chrome or Edge for the best compatibility.",
    ),
    Check(
        field="mic_unmuted",
        question="Is your microphone switched on and unmuted?",
        fix="Unmute your microphone and check its input level.",
    ),
    Check(
        field="quiet_environment",
        question="Are you speaking in a reasonably quiet room?",
        fix="Reduce background noise or move closer to the microphone.",
    ),
]

VOICE_FOLLOW_UP = [
    "Reload the page and allow the microphone prompt again.",
    "Select the correct input device in your system sound settings.",
    "Restart your browser.",
]

WHATSAPP_CHECKS = [
    Check(
        field="integration_connected",
        question="Is the WhatsApp integration connected?",
        fix="Reconnect the WhatsApp integration.",
    ),
    Check(
        field="contact_correct",
        question="Is the contact's phone number correct?",
        fix="Verify the contact's phone number.",
    ),
    Check(
        field="number_format",
        question="Is the number in international format, like +1234567890?",
        fix="Use E.164 format (+1234567890).",
    ),
    Check(
        field="phone_online",
        question="Is your phone online?",
        fix="Connect your phone to the internet so WhatsApp can deliver messages.",
    ),
    Check(
        field="no_error_message",
        question="Did the message send without an error message?",
        fix="Check the error message in the activity log and retry.",
    ),
]

WHATSAPP_FOLLOW_UP = [
    "Log out of the WhatsApp integration and log back in.",
    "Check that the contact hasn't blocked your number.",
    "Update WhatsApp on your phone.",
]


COMMANDS_CHECKS = [
    Check(
        field="speaking_clearly",
        question="Are you speaking clearly and at a normal pace?",
        fix="Speak clearly and at a normal pace.",
    ),
    Check(
        field="low_background_noise",
        question="Is it reasonably quiet around you, without much background noise?",
        fix="Reduce background noise.",
    ),
    Check(
        field="known_command",
        question="Is the command you're trying listed in the voice commands reference?",
        fix="Check the voice commands reference for the supported wording.",
    ),
    Check(
        field="tried_rephrasing",
        question="Have you tried rephrasing the command?",
        fix="Try rephrasing your command.",
    ),
    Check(
        field="language_matches",
        question="Is the assistant set to the language you're speaking?",
        fix="Set the assistant's language to the one you speak.",
    ),
]

COMMANDS_FOLLOW_UP = [
    "Repeat the command after a short pause so the start isn't cut off.",
    "Use the exact wording from the voice commands reference.",
    "Reload the page to reset the voice session.",
]


def build_voice_troubleshooting() -> SkillDefinition:
    return build_troubleshooting_skill(
        name="voice_troubleshooting",
        title="Voice Troubleshooting",
        issue="voice recognition",
        checks=VOICE_CHECKS,
        follow_up=VOICE_FOLLOW_UP,
        intents=("troubleshoot_voice",),
        keywords=("microphone", "voice not working", "not hearing me", "not listening"),
    )


def build_whatsapp_troubleshooting() -> SkillDefinition:
    return build_troubleshooting_skill(
        name="whatsapp_troubleshooting",
        title="WhatsApp Troubleshooting",
        issue="WhatsApp messages",
        checks=WHATSAPP_CHECKS,
        follow_up=WHATSAPP_FOLLOW_UP,
        intents=("troubleshoot_whatsapp",),
        keywords=("whatsapp",),
    )


def build_commands_troubleshooting() -> SkillDefinition:
    return build_troubleshooting_skill(
        name="commands_troubleshooting",
        title="Command Recognition Troubleshooting",
        issue="commands not being recognized",
        checks=COMMANDS_CHECKS,
        follow_up=COMMANDS_FOLLOW_UP,
        intents=("troubleshoot_commands",),
        keywords=(
            "not understanding",
            "not recognizing",
            "not recognized",
            "command not working",
            "commands not working",
        ),
    )


# ==============================================================================
# ISSUE TRIAGE
# ==============================================================================

# Diagnostic skill name -> phrases identifying it. Checked in order.
ISSUE_CHOICES = {
    "voice_troubleshooting": ("voice", "microphone", "mic", "not hearing", "not listening"),
    "commands_troubleshooting": ("command", "not understanding", "not recognizing", "not recognized"),
    "whatsapp_troubleshooting": ("whatsapp", "message not sending", "message failed", "messages"),
}


def build_troubleshooting_triage() -> SkillDefinition:
    """
    Entry point for generic help requests ("I have a problem"). Asks what
    is wrong, then hands the user over to the matching diagnostic. Specific
    diagnostics outrank it, so an utterance naming the issue skips triage.
    """
    states = [
        StateSpec(
            name=INITIAL,
            type="initial",
            transitions={InputClass.START: Transition("IDENTIFY_ISSUE")},
        ),
        StateSpec(
            name="IDENTIFY_ISSUE",
            type="ask_slot",
            capture="issue",
            prompt=(
                "I'm here to help! What issue are you experiencing? "
                "(voice recognition, commands, WhatsApp)"
            ),
            reprompt=(
                "I'm not sure what the issue is. Could you describe it? "
                "(e.g., 'voice commands not working', 'WhatsApp messages not sending')"
            ),
            transitions={InputClass.CAPTURED: Transition(COMPLETE)},
        ),
        StateSpec(name=COMPLETE, type="terminal", prompt="Okay, let's look into that."),
        StateSpec(name=CANCELLED, type="terminal"),
    ]

    return SkillDefinition(
        name="troubleshooting",
        title="Troubleshooting",
        trigger=Trigger(
            intents=frozenset({"troubleshoot", "help"}),
            keywords=("troubleshoot", "problem", "issue", "not working"),
            priority=-1,
        ),
        slots=(Slot(name="issue", entity="issue", choices=ISSUE_CHOICES),),
        states={spec.name: spec for spec in states},
        handoff="issue",
    )
