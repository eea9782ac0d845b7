from typing import Literal

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

SKILL_NAME = "restaurant_booking"

# ==============================================================================
# SLOTS (the booking schema)
# ==============================================================================

CUISINE_PATTERN = (
    r"\b(italian|indian|chinese|mexican|japanese|thai|french|american|"
    r"mediterranean|greek|spanish|korean|vietnamese|lebanese|turkish|"
    r"sushi|pizza|steak|seafood|vegan|vegetarian)\b"
)
DATE_PATTERN = (
    r"\b(today|tonight|tomorrow|monday|tuesday|wednesday|thursday|friday|"
    r"saturday|sunday|weekend)\b"
    r"|\b\d{1,2}[/\-.]\d{1,2}([/\-.]\d{2,4})?\b"
    r"|\b(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?\s+\d{1,2}"
    r"|\b\d{1,2}(st|nd|rd|th)?\s+(of\s+)?(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)"
)
TIME_PATTERN = (
    r"\b\d{1,2}(:\d{2})?\s*(am|pm|a\.m\.|p\.m\.)"
    r"|\b\d{1,2}:\d{2}\b"
    r"|\b(noon|midday|midnight)\b"
    r"|\b\d{1,2}\s*o'?clock\b"
)
PARTY_SIZE_PATTERN = (
    r"\b([1-9]\d?|one|two|three|four|five|six|seven|eight|nine|ten|eleven|twelve)\b"
)

cuisine = Slot(
    name="cuisine",
    entity="cuisine",
    pattern=CUISINE_PATTERN,
    keywords=("cuisine", "food"),
)
date = Slot(
    name="date",
    entity="date",
    pattern=DATE_PATTERN,
    keywords=("date", "day"),
)
time = Slot(
    name="time",
    entity="time",
    pattern=TIME_PATTERN,
    keywords=("time", "hour"),
)
party_size = Slot(
    name="party_size",
    entity="number",
    pattern=PARTY_SIZE_PATTERN,
    keywords=("people", "party", "guests", "size"),
)
requests = Slot(
    name="requests",
    required=False,
    keywords=("request", "requests"),
)

# ==============================================================================
# PROMPTS
# ==============================================================================

CONFIRM_PROMPT = """Let me confirm your reservation:
- Cuisine: {{ cuisine }}
- Date: {{ date }}
- Time: {{ time }}
- Party size: {{ party_size }}
{% if requests %}
- Special requests: {{ requests }}
{% endif %}
Does this look correct?"""

COMPLETE_PROMPT = (
    "Perfect! Your request for a table for {{ party_size }} at {{ time }} on {{ date }} "
    "for {{ cuisine }} cuisine is ready. You'll receive a confirmation shortly."
)

# ==============================================================================
# STATE DEFINITIONS
# ==============================================================================


def build_restaurant_booking(
    deny_action: Literal["restart", "cancel"] = "restart",
) -> SkillDefinition:
    """
    Restaurant booking: cuisine -> date -> time -> party size -> special
    requests (optional) -> confirmation.

    A "no" at the confirmation either starts over with a cleared context
    (deny_action="restart") or cancels the booking (deny_action="cancel").
    """
    if deny_action == "restart":
        on_deny = Transition("ASK_CUISINE", reset=True)
    else:
        on_deny = Transition(CANCELLED)

    states = [
        StateSpec(
            name=INITIAL,
            type="initial",
            transitions={InputClass.START: Transition("ASK_CUISINE")},
        ),
        StateSpec(
            name="ASK_CUISINE",
            type="ask_slot",
            capture="cuisine",
            prompt=(
                "I'd be happy to help you book a restaurant! "
                "What type of cuisine would you like{% if date %} for {{ date }}{% endif %}?"
            ),
            reprompt=(
                "I didn't catch the cuisine type. Could you tell me what kind of food "
                "you'd like? (Italian, Indian, Chinese, Mexican, etc.)"
            ),
            transitions={InputClass.CAPTURED: Transition("ASK_DATE")},
        ),
        StateSpec(
            name="ASK_DATE",
            type="ask_slot",
            capture="date",
            prompt="Great! {{ cuisine }} sounds delicious. When would you like to dine?",
            reprompt="When would you like to dine? (Today, tomorrow, or a specific date)",
            transitions={InputClass.CAPTURED: Transition("ASK_TIME")},
        ),
        StateSpec(
            name="ASK_TIME",
            type="ask_slot",
            capture="time",
            prompt="What time would you like to dine on {{ date }}?",
            reprompt="What time would you like? (e.g., 7 PM, 19:00)",
            transitions={InputClass.CAPTURED: Transition("ASK_PARTY_SIZE")},
        ),
        StateSpec(
            name="ASK_PARTY_SIZE",
            type="ask_slot",
            capture="party_size",
            prompt="How many people will be dining?",
            reprompt="Sorry, how many people will be dining? (e.g., 4 people)",
            transitions={InputClass.CAPTURED: Transition("ASK_SPECIAL_REQUESTS")},
        ),
        StateSpec(
            name="ASK_SPECIAL_REQUESTS",
            type="ask_slot",
            capture="requests",
            prompt=(
                "Any special requests? (dietary restrictions, seating preferences, etc.) "
                "Say 'none' if not."
            ),
            transitions={
                InputClass.CAPTURED: Transition("CONFIRM"),
                InputClass.DECLINED: Transition("CONFIRM"),
            },
        ),
        StateSpec(
            name="CONFIRM",
            type="ask_yes_no",
            amendable=True,
            prompt=CONFIRM_PROMPT,
            reprompt=(
                "Please answer yes to confirm, or tell me what to change "
                "(cuisine, date, time, party size)."
            ),
            transitions={
                InputClass.AFFIRM: Transition(COMPLETE),
                InputClass.DENY: on_deny,
            },
        ),
        StateSpec(name=COMPLETE, type="terminal", prompt=COMPLETE_PROMPT),
        StateSpec(
            name=CANCELLED,
            type="terminal",
            prompt="Okay, I won't book anything. Let me know if you'd like to try again.",
        ),
    ]

    return SkillDefinition(
        name=SKILL_NAME,
        title="Restaurant Booking",
        trigger=Trigger(
            intents=frozenset({"book_restaurant", "restaurant_booking"}),
            keywords=(
                "book a restaurant",
                "book a table",
                "reserve a table",
                "dinner reservation",
            ),
        ),
        slots=(cuisine, date, time, party_size, requests),
        states={spec.name: spec for spec in states},
    )
