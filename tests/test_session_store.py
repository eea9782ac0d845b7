import threading

import pytest

from conversation_skills.services.exceptions import (
    SessionAlreadyActiveError,
    SessionNotFoundError,
)


@pytest.fixture(params=["memory", "sql"])
def any_store(request):
    return request.getfixturevalue("store" if request.param == "memory" else "sql_store")


def test_create_and_get(any_store, clock):
    created = any_store.create("alice", "restaurant_booking", "INITIAL", {"cuisine": "Thai"})
    fetched = any_store.get("alice")

    assert fetched.user_id == "alice"
    assert fetched.skill_name == "restaurant_booking"
    assert fetched.state == "INITIAL"
    assert fetched.context == {"cuisine": "Thai"}
    assert fetched.retries == 0
    assert fetched.declined == []
    assert fetched.created_at == created.created_at == clock.now


def test_get_absent_user(any_store):
    assert any_store.get("nobody") is None


def test_only_one_session_per_user(any_store):
    any_store.create("alice", "restaurant_booking", "INITIAL")
    with pytest.raises(SessionAlreadyActiveError):
        any_store.create("alice", "voice_troubleshooting", "INITIAL")
    assert any_store.get("alice").skill_name == "restaurant_booking"


def test_update_overwrites_and_refreshes_activity(any_store, clock):
    any_store.create("alice", "restaurant_booking", "ASK_DATE", {"cuisine": "Thai"})
    clock.advance(60)
    any_store.update(
        "alice", "ASK_TIME", {"cuisine": "Thai", "date": "Friday"}, retries=1, declined=["requests"]
    )

    session = any_store.get("alice")
    assert session.state == "ASK_TIME"
    assert session.context == {"cuisine": "Thai", "date": "Friday"}
    assert session.retries == 1
    assert session.declined == ["requests"]
    assert session.last_activity == clock.now
    assert session.created_at < session.last_activity


def test_update_without_session(any_store):
    with pytest.raises(SessionNotFoundError):
        any_store.update("alice", "ASK_TIME", {})


def test_remove_is_idempotent(any_store):
    any_store.create("alice", "restaurant_booking", "ASK_CUISINE")
    any_store.remove("alice")
    any_store.remove("alice")
    assert any_store.get("alice") is None


def test_session_expires_after_ttl(any_store, clock):
    any_store.create("alice", "restaurant_booking", "ASK_CUISINE")

    clock.advance(300)
    assert any_store.get("alice") is not None

    clock.advance(1)
    assert any_store.get("alice") is None
    # Expired sessions don't block a new one
    any_store.create("alice", "voice_troubleshooting", "INITIAL")


def test_activity_extends_the_ttl(any_store, clock):
    any_store.create("alice", "restaurant_booking", "ASK_CUISINE")
    clock.advance(200)
    any_store.update("alice", "ASK_DATE", {"cuisine": "Thai"})
    clock.advance(200)
    assert any_store.get("alice").state == "ASK_DATE"


def test_purge_expired(any_store, clock):
    any_store.create("alice", "restaurant_booking", "ASK_CUISINE")
    clock.advance(250)
    any_store.create("bob", "restaurant_booking", "ASK_CUISINE")
    clock.advance(100)

    assert any_store.purge_expired() == 1
    assert any_store.get("alice") is None
    assert any_store.get("bob") is not None


def test_clear_drops_everything(any_store):
    any_store.create("alice", "restaurant_booking", "ASK_CUISINE")
    any_store.create("bob", "voice_troubleshooting", "CHECK_MIC_CONNECTED")
    any_store.clear()
    assert any_store.get("alice") is None
    assert any_store.get("bob") is None


def test_in_memory_store_hands_out_copies(store):
    store.create("alice", "restaurant_booking", "ASK_DATE", {"cuisine": "Thai"})
    store.get("alice").context["cuisine"] = "Greek"
    assert store.get("alice").context == {"cuisine": "Thai"}
    assert len(store) == 1


def test_lock_is_reentrant(store):
    with store.lock("alice"):
        with store.lock("alice"):
            store.create("alice", "restaurant_booking", "ASK_CUISINE")
    assert store.get("alice") is not None


def test_lock_blocks_the_same_user_only(store):
    finished = []

    def worker(user_id):
        with store.lock(user_id):
            finished.append(user_id)

    with store.lock("alice"):
        blocked = threading.Thread(target=worker, args=("alice",))
        free = threading.Thread(target=worker, args=("bob",))
        blocked.start()
        free.start()
        free.join(timeout=2)
        blocked.join(timeout=0.2)
        assert finished == ["bob"]
        assert blocked.is_alive()

    blocked.join(timeout=2)
    assert finished == ["bob", "alice"]
