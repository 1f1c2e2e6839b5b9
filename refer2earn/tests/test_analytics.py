from sqlalchemy import Numeric

from refer2earn import crud, models, referrals, rewards


def test_user_summary(client, make_user, auth_headers, db_session):
    alice = make_user("alice")
    converted = referrals.create_referral(db_session, alice, "one@example.com")
    referrals.create_referral(db_session, alice, "two@example.com", status="signed_up")
    cancelled = referrals.create_referral(db_session, alice, "three@example.com")
    referrals.transition_referral(db_session, converted.id, "converted")
    referrals.transition_referral(db_session, cancelled.id, "cancelled")

    r = client.get("/api/analytics/summary", headers=auth_headers(alice))
    assert r.status_code == 200
    assert r.json() == {
        "total_referrals": 3,
        "successful_referrals": 1,
        "pending_referrals": 1,
        "rewards_earned": 0,
        "rewards_formatted": "$0.00",
    }

    reward = crud.get_reward_by_referral(db_session, converted.id)
    rewards.transition_reward(db_session, reward.id, "approved")
    body = client.get("/api/analytics/summary", headers=auth_headers(alice)).json()
    assert body["rewards_earned"] == 50
    assert body["rewards_formatted"] == "$50.00"


def test_admin_summary(client, admin, make_user, auth_headers, db_session):
    alice = make_user("alice")
    bob = make_user("bob")
    first = referrals.create_referral(db_session, alice, "one@example.com")
    second = referrals.create_referral(db_session, bob, "two@example.com")
    referrals.create_referral(db_session, bob, "three@example.com")
    referrals.create_referral(db_session, bob, "four@example.com")
    referrals.transition_referral(db_session, first.id, "converted")
    referrals.transition_referral(db_session, second.id, "converted")
    paid = crud.get_reward_by_referral(db_session, first.id)
    rewards.transition_reward(db_session, paid.id, "approved")
    rewards.transition_reward(db_session, paid.id, "paid")

    r = client.get("/api/analytics/admin", headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json() == {
        "total_users": 3,
        "total_referrals": 4,
        "successful_referrals": 2,
        "pending_referrals": 2,
        "total_rewards_amount": 50,
        "pending_rewards_amount": 50,
        "conversion_rate": 50,
    }


def test_reward_amounts_are_stored_to_the_cent(db_session, make_user):
    for column in (models.Reward.__table__.c.amount, models.Referral.__table__.c.reward_amount):
        assert isinstance(column.type, Numeric)
        assert (column.type.precision, column.type.scale) == (10, 2)

    alice = make_user("alice")
    for email in ("one@example.com", "two@example.com", "three@example.com"):
        referral = referrals.create_referral(db_session, alice, email)
        referrals.transition_referral(db_session, referral.id, "converted")
    assert crud.sum_reward_amounts(db_session, (models.REWARD_PENDING,), user_id=alice.id) == 150.0
