"""
API tests for the ledger endpoints (impulse_ledger/api/routes/state.py).

Tests cover:
- Posting entries and the membership precondition
- Undo through DELETE /state
- The room log, weekly standings and private history
"""

from datetime import timedelta

import pytest

from impulse_ledger.db import entries_repo
from impulse_ledger.db.timestamps import utc_now
from tests.constants import ALICE, BOB, CAROL, ROOM_CODE


@pytest.fixture
def joined_client(test_client):
    """TestClient with alice (creator) and bob joined to TESTA."""
    for user_id, name in ((ALICE, "alice"), (BOB, "bob")):
        response = test_client.post(
            "/room", json={"roomCode": ROOM_CODE, "displayName": name, "userId": user_id}
        )
        assert response.status_code == 200
    return test_client


def post_entry(client, user_id, delta, label=None, room_code=ROOM_CODE):
    entry = {"delta": delta, "userId": user_id}
    if label is not None:
        entry["label"] = label
    return client.post("/state", json={"roomCode": room_code, "entry": entry})


# ============================================================================
# POST /state
# ============================================================================


@pytest.mark.api
def test_post_entry(joined_client):
    response = post_entry(joined_client, ALICE, 1, "gym")

    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert isinstance(data["id"], int)


@pytest.mark.api
@pytest.mark.parametrize(
    "payload",
    [
        {"entry": {"delta": 1, "userId": ALICE}},
        {"roomCode": ROOM_CODE},
        {"roomCode": ROOM_CODE, "entry": {"userId": ALICE}},
    ],
)
def test_post_entry_requires_room_and_delta(joined_client, payload):
    response = joined_client.post("/state", json=payload)

    assert response.status_code == 400
    assert response.json()["error_code"] == "ENTRY_REQUIRED"


@pytest.mark.api
def test_post_entry_without_user_id_is_401(joined_client):
    response = joined_client.post("/state", json={"roomCode": ROOM_CODE, "entry": {"delta": 1}})

    assert response.status_code == 401
    assert response.json()["error_code"] == "AUTH_REQUIRED"


@pytest.mark.api
def test_post_entry_non_member_is_403(joined_client):
    response = post_entry(joined_client, CAROL, 1)

    assert response.status_code == 403
    assert response.json()["error_code"] == "JOIN_REQUIRED"


@pytest.mark.api
@pytest.mark.parametrize("delta", ["1", True, 0.5])
def test_post_entry_rejects_non_integer_delta(joined_client, delta):
    response = post_entry(joined_client, ALICE, delta)

    assert response.status_code == 400
    assert response.json()["error_code"] == "INVALID_DELTA"


@pytest.mark.api
def test_post_entry_with_non_object_entry(joined_client):
    response = joined_client.post("/state", json={"roomCode": ROOM_CODE, "entry": "plus one"})

    assert response.status_code == 400
    assert response.json()["error_code"] == "VALIDATION_ERROR"


# ============================================================================
# DELETE /state
# ============================================================================


@pytest.mark.api
def test_undo_latest_entry(joined_client):
    post_entry(joined_client, ALICE, 1)
    created = post_entry(joined_client, ALICE, -1, "coffee").json()["id"]

    response = joined_client.delete("/state", params={"roomCode": ROOM_CODE, "userId": ALICE})

    assert response.status_code == 200
    undone = response.json()["undone"]
    assert undone["id"] == created
    assert undone["delta"] == -1
    assert undone["label"] == "coffee"


@pytest.mark.api
def test_undo_with_nothing_to_undo(joined_client):
    post_entry(joined_client, ALICE, 1)
    joined_client.delete("/state", params={"roomCode": ROOM_CODE, "userId": ALICE})

    response = joined_client.delete("/state", params={"roomCode": ROOM_CODE, "userId": ALICE})

    assert response.status_code == 404
    assert response.json()["error_code"] == "NOTHING_TO_UNDO"


@pytest.mark.api
def test_undo_after_window(joined_client):
    entries_repo.insert_entry(
        ROOM_CODE, ALICE, "alice", 1, None, now=utc_now() - timedelta(minutes=20)
    )

    response = joined_client.delete("/state", params={"roomCode": ROOM_CODE, "userId": ALICE})

    assert response.status_code == 400
    assert response.json()["error_code"] == "UNDO_WINDOW_ELAPSED"
    assert len(entries_repo.list_entries(ROOM_CODE)) == 1


# ============================================================================
# GET /state, /state/weekly, /history
# ============================================================================


@pytest.mark.api
def test_room_log(joined_client):
    post_entry(joined_client, ALICE, 1, "walk")
    post_entry(joined_client, BOB, -1)

    response = joined_client.get("/state", params={"roomCode": "testa"})

    assert response.status_code == 200
    data = response.json()
    assert data["roomCode"] == ROOM_CODE
    assert data["balance"] == 0
    assert [(row["player"], row["delta"]) for row in data["history"]] == [
        ("alice", 1),
        ("bob", -1),
    ]
    assert data["history"][0]["label"] == "walk"


@pytest.mark.api
def test_room_log_unknown_room(test_client):
    response = test_client.get("/state", params={"roomCode": "GHOST"})

    assert response.status_code == 404
    assert response.json()["error_code"] == "ROOM_NOT_FOUND"


@pytest.mark.api
def test_weekly_state(joined_client):
    post_entry(joined_client, ALICE, 1)
    post_entry(joined_client, BOB, 1)
    post_entry(joined_client, BOB, 1)

    response = joined_client.get(
        "/state/weekly", params={"roomCode": ROOM_CODE, "userId": ALICE}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["me"]["name"] == "alice"
    assert data["me"]["isMe"] is True
    assert data["me"]["balance"] == 1
    assert data["milestone"] == "none"
    assert [row["name"] for row in data["leaderboard"]] == ["bob", "alice"]
    assert [row["isMe"] for row in data["leaderboard"]] == [False, True]
    assert data["perMember"]["bob"]["longestStreak"] == 2
    assert len(data["weekKey"]) == 10


@pytest.mark.api
def test_weekly_state_requires_membership(joined_client):
    response = joined_client.get(
        "/state/weekly", params={"roomCode": ROOM_CODE, "userId": CAROL}
    )

    assert response.status_code == 403
    assert response.json()["error_code"] == "JOIN_REQUIRED"


@pytest.mark.api
def test_weekly_state_requires_room_code(joined_client):
    response = joined_client.get("/state/weekly", params={"userId": ALICE})

    assert response.status_code == 400
    assert response.json()["error_code"] == "ROOM_CODE_REQUIRED"


@pytest.mark.api
def test_history_is_private(joined_client):
    post_entry(joined_client, ALICE, 1)
    post_entry(joined_client, BOB, -1)

    response = joined_client.get(
        "/history", params={"roomCode": ROOM_CODE, "userId": ALICE, "months": "abc"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["months"] == 12
    assert [entry["delta"] for entry in data["entries"]] == [1]


@pytest.mark.api
def test_history_months_are_clamped(joined_client):
    response = joined_client.get(
        "/history", params={"roomCode": ROOM_CODE, "userId": ALICE, "months": "99"}
    )

    assert response.json()["months"] == 24


@pytest.mark.api
def test_responses_to_a_member_never_carry_another_members_id(joined_client):
    """Identifiers act as credentials, so bob only ever sees his own."""
    post_entry(joined_client, ALICE, 1, "private")
    post_entry(joined_client, BOB, 1)

    responses = [
        joined_client.get("/state/weekly", params={"roomCode": ROOM_CODE, "userId": BOB}),
        joined_client.get("/state", params={"roomCode": ROOM_CODE}),
        joined_client.get("/room", params={"roomCode": ROOM_CODE, "userId": BOB}),
        joined_client.get("/history", params={"roomCode": ROOM_CODE, "userId": BOB}),
        joined_client.get("/events", params={"roomCode": ROOM_CODE}),
    ]

    for response in responses:
        assert response.status_code == 200
        assert ALICE not in response.text


@pytest.mark.api
def test_weekly_state_keeps_members_with_the_same_name_apart(joined_client):
    """A departed member's name snapshot may be reused by someone else."""
    post_entry(joined_client, BOB, 1)
    joined_client.post(
        "/room-leave", json={"roomCode": ROOM_CODE, "userId": BOB, "confirmed": True}
    )
    joined_client.post("/room", json={"roomCode": ROOM_CODE, "displayName": "bob", "userId": CAROL})
    post_entry(joined_client, CAROL, -1)

    data = joined_client.get(
        "/state/weekly", params={"roomCode": ROOM_CODE, "userId": ALICE}
    ).json()

    assert data["perMember"]["bob"]["balance"] == 1
    assert data["perMember"]["bob#2"]["balance"] == -1
