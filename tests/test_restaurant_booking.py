from conversation_skills.domain.models import COMPLETE

BOOKING = ["book a restaurant", "Italian", "Tomorrow", "7 PM", "4 people", "Window seat please", "Yes"]

EXPECTED_BOOKING = {
    "cuisine": "Italian",
    "date": "Tomorrow",
    "time": "7 PM",
    "party_size": "4 people",
    "requests": "Window seat please",
}


def test_full_booking_conversation(dispatcher, say):
    outputs = [dispatcher.process("alice", say(text)) for text in BOOKING]

    assert [o.state for o in outputs] == [
        "ASK_CUISINE",
        "ASK_DATE",
        "ASK_TIME",
        "ASK_PARTY_SIZE",
        "ASK_SPECIAL_REQUESTS",
        "CONFIRM",
        COMPLETE,
    ]
    assert all(o.skill == "restaurant_booking" for o in outputs)
    assert [o.complete for o in outputs] == [False] * 6 + [True]

    assert "cuisine" in outputs[0].reply
    assert outputs[1].reply == "Great! Italian sounds delicious. When would you like to dine?"
    assert outputs[2].reply == "What time would you like to dine on Tomorrow?"
    assert outputs[3].reply == "How many people will be dining?"
    assert outputs[4].reply.startswith("Any special requests?")

    summary = outputs[5].reply
    for value in EXPECTED_BOOKING.values():
        assert value in summary
    assert summary.endswith("Does this look correct?")

    final = outputs[6]
    assert final.fulfilled
    assert final.context == EXPECTED_BOOKING
    assert final.result == EXPECTED_BOOKING
    assert final.reply.startswith(
        "Perfect! Your request for a table for 4 people at 7 PM on Tomorrow for Italian cuisine"
    )


def test_turn_after_completion_is_fresh(dispatcher, say):
    for text in BOOKING:
        dispatcher.process("alice", say(text))

    assert dispatcher.active_session("alice") is None
    # "Italian" alone triggers nothing once the booking is done
    assert dispatcher.process("alice", say("Italian")) is None

    restarted = dispatcher.process("alice", say("book a restaurant"))
    assert restarted.state == "ASK_CUISINE"
    assert restarted.context == {}


def test_session_tracks_progress(dispatcher, say):
    for text in BOOKING[:3]:
        dispatcher.process("alice", say(text))

    session = dispatcher.active_session("alice")
    assert session.skill_name == "restaurant_booking"
    assert session.state == "ASK_TIME"
    assert session.context == {"cuisine": "Italian", "date": "Tomorrow"}


def test_booking_can_be_started_by_intent(dispatcher, say):
    output = dispatcher.process("alice", say("I'm hungry", intent="book_restaurant", cuisine="Thai"))
    assert output.state == "ASK_DATE"
    assert output.reply == "Great! Thai sounds delicious. When would you like to dine?"
