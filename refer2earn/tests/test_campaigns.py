from datetime import datetime, timedelta, timezone

import pytest

from refer2earn import campaigns, crud, referrals
from refer2earn.errors import NotFoundError, ValidationError
from refer2earn.schemas import CampaignCreate, CampaignUpdate

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def add_campaign(db, name, start, end=None, is_active=True, multiplier=1.0, rules=None):
    return campaigns.create_campaign(
        db,
        CampaignCreate(
            name=name,
            description=f"{name} campaign",
            reward_multiplier=multiplier,
            start_date=start,
            end_date=end,
            is_active=is_active,
            rules=rules or {},
        ),
    )


def test_active_window_filter(db_session):
    add_campaign(db_session, "open-ended", NOW - timedelta(days=10))
    add_campaign(db_session, "expired", NOW - timedelta(days=10), NOW - timedelta(days=1))
    add_campaign(db_session, "future", NOW + timedelta(days=1))
    add_campaign(db_session, "switched-off", NOW - timedelta(days=10), is_active=False)
    add_campaign(db_session, "running", NOW - timedelta(days=1), NOW + timedelta(days=1))

    active = campaigns.list_active_campaigns(db_session, NOW)
    assert [c.name for c in active] == ["running", "open-ended"]


def test_boundaries_are_inclusive(db_session):
    add_campaign(db_session, "exact", NOW, NOW)
    assert [c.name for c in campaigns.list_active_campaigns(db_session, NOW)] == ["exact"]


def test_reward_is_flat_without_campaign(db_session, make_user):
    alice = make_user("alice")
    assert campaigns.compute_reward_amount(db_session, alice.id, NOW) == 50


def test_reward_uses_latest_active_campaign(db_session, make_user):
    alice = make_user("alice")
    add_campaign(db_session, "older", NOW - timedelta(days=30), multiplier=3.0)
    add_campaign(db_session, "newer", NOW - timedelta(days=2), multiplier=1.5, rules={"bonus_amount": 10})
    assert campaigns.compute_reward_amount(db_session, alice.id, NOW) == 85


def test_bonus_requires_min_referrals(db_session, make_user):
    alice = make_user("alice")
    start = datetime.now(timezone.utc) - timedelta(days=1)
    add_campaign(db_session, "bonus", start, rules={"min_referrals": 2, "bonus_amount": 25})

    first = referrals.create_referral(db_session, alice, "one@example.com")
    second = referrals.create_referral(db_session, alice, "two@example.com")
    referrals.transition_referral(db_session, first.id, "converted")
    referrals.transition_referral(db_session, second.id, "converted")

    amounts = sorted(r.amount for r in crud.list_rewards(db_session, user_id=alice.id))
    assert amounts == [50, 75]


def test_campaign_api_flow(client, admin, make_user, auth_headers):
    alice = make_user("alice")
    admin_headers = auth_headers(admin)
    start = datetime.now(timezone.utc) - timedelta(days=1)

    r = client.post(
        "/api/campaigns",
        json={
            "name": "Spring",
            "description": "Double rewards",
            "reward_multiplier": 2.0,
            "start_date": start.isoformat(),
            "rules": {"min_referrals": 3, "bonus_amount": 20, "channel": "email"},
        },
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text
    campaign = r.json()
    assert campaign["rules"] == {"min_referrals": 3, "bonus_amount": 20, "channel": "email"}
    assert campaign["is_active"] is True

    forbidden = client.post(
        "/api/campaigns",
        json={"name": "Mine", "description": "not allowed", "start_date": start.isoformat()},
        headers=auth_headers(alice),
    )
    assert forbidden.status_code == 403

    active = client.get("/api/campaigns/active", headers=auth_headers(alice)).json()
    assert [c["id"] for c in active] == [campaign["id"]]

    r = client.patch(f"/api/campaigns/{campaign['id']}", json={"is_active": False}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["is_active"] is False
    assert r.json()["name"] == "Spring"

    assert client.get("/api/campaigns/active", headers=auth_headers(alice)).json() == []
    assert len(client.get("/api/campaigns", headers=auth_headers(alice)).json()) == 1

    r = client.patch(f"/api/campaigns/{campaign['id']}", json={"is_active": True}, headers=auth_headers(alice))
    assert r.status_code == 403
    assert client.patch("/api/campaigns/9999", json={"name": "x"}, headers=admin_headers).status_code == 404


def test_create_rejects_inverted_window(client, admin, auth_headers):
    r = client.post(
        "/api/campaigns",
        json={
            "name": "Broken",
            "description": "ends before it starts",
            "start_date": "2026-06-10T00:00:00Z",
            "end_date": "2026-06-01T00:00:00Z",
        },
        headers=auth_headers(admin),
    )
    assert r.status_code == 400


def test_update_validates_window_and_unknown_id(db_session):
    campaign = add_campaign(db_session, "window", NOW, NOW + timedelta(days=5))
    with pytest.raises(ValidationError):
        campaigns.update_campaign(db_session, campaign.id, CampaignUpdate(end_date=NOW - timedelta(days=1)))
    with pytest.raises(ValidationError):
        campaigns.update_campaign(db_session, campaign.id, CampaignUpdate(name=None))
    with pytest.raises(NotFoundError):
        campaigns.update_campaign(db_session, 9999, CampaignUpdate(name="nope"))

    updated = campaigns.update_campaign(db_session, campaign.id, CampaignUpdate(end_date=None))
    assert updated.end_date is None
