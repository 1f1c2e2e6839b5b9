import pytest

from refer2earn import crud, models, referrals
from refer2earn.errors import ConflictError
from refer2earn.schemas import RegisterViaReferral, UserCreate


def payload(**overrides):
    data = {
        "referral_code": "ABC123",
        "username": "bee",
        "email": "b@x.com",
        "password": "password123",
        "display_name": "Bee",
    }
    data.update(overrides)
    return data


def test_register_via_referral_links_referrer(client, make_user, db_session):
    referrer = make_user("alice", referral_code="ABC123")

    r = client.post("/api/register/via-referral", json=payload())
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["username"] == "bee"
    assert body["referred_by"] == "alice"
    assert body["referral_code"] != "ABC123"

    rows = crud.list_referrals(db_session)
    assert len(rows) == 1
    assert rows[0].referrer_id == referrer.id
    assert rows[0].referee_id == body["id"]
    assert rows[0].referee_email == "b@x.com"
    assert rows[0].status == models.REFERRAL_SIGNED_UP

    notes = crud.list_notifications(db_session, referrer.id)
    assert [n.type for n in notes] == [models.NOTIFY_REFERRAL_USED]
    assert "Bee has signed up" in notes[0].content

    # the new user is logged in
    session = client.get("/api/auth/session")
    assert session.status_code == 200
    assert session.json()["id"] == body["id"]


def test_unknown_referral_code_creates_nothing(client, make_user, db_session):
    make_user("alice", referral_code="ABC123")
    users_before = crud.count_users(db_session)

    r = client.post("/api/register/via-referral", json=payload(referral_code="NOPE"))
    assert r.status_code == 404
    assert r.json()["detail"] == "Invalid referral code"
    assert crud.count_users(db_session) == users_before
    assert crud.count_referrals(db_session) == 0
    assert crud.get_user_by_email(db_session, "b@x.com") is None


def test_duplicate_user_conflicts_without_side_effects(client, make_user, db_session):
    referrer = make_user("alice", referral_code="ABC123")
    make_user("bee", email="taken@example.com")

    r = client.post("/api/register/via-referral", json=payload())
    assert r.status_code == 409
    r = client.post("/api/register/via-referral", json=payload(username="newbee", email="taken@example.com"))
    assert r.status_code == 409

    assert crud.count_referrals(db_session) == 0
    assert crud.list_notifications(db_session, referrer.id) == []


def test_missing_referral_code_is_validation_error(client):
    data = payload()
    del data["referral_code"]
    r = client.post("/api/register/via-referral", json=data)
    assert r.status_code == 400
    assert any(err["field"] == "referral_code" for err in r.json()["errors"])


def test_username_taken_after_check_is_conflict(db_session, make_user, monkeypatch):
    referrer = make_user("alice", referral_code="ABC123")
    make_user("bee", email="b@x.com")
    # another registration commits between the availability check and the insert
    monkeypatch.setattr(referrals, "_ensure_available", lambda db, username, email: None)

    with pytest.raises(ConflictError):
        referrals.register_via_referral(db_session, RegisterViaReferral(**payload()))
    with pytest.raises(ConflictError):
        referrals.register_user(db_session, UserCreate(**payload(referral_code=None)))

    assert crud.count_users(db_session) == 2
    assert crud.count_referrals(db_session) == 0
    assert crud.list_notifications(db_session, referrer.id) == []
