import pytest
from sqlalchemy.exc import SQLAlchemyError

import app as app_module
from app import AdConfig, db


@pytest.fixture
def make_ad(app):
    def _make(name, ad_type, **fields):
        ad = AdConfig(name=name, type=ad_type, **fields)
        db.session.add(ad)
        db.session.commit()
        return ad

    return _make


def test_public_ads_are_active_and_ordered_by_priority(client, make_ad):
    make_ad("Low", "PRE_ROLL", priority=1)
    make_ad("High", "PRE_ROLL", priority=10)
    make_ad("Off", "PRE_ROLL", priority=99, is_active=False)
    make_ad("Middle", "MID_ROLL", priority=5, position=50)

    everything = client.get("/api/ads").get_json()["ads"]
    pre_roll = client.get("/api/ads?type=pre-roll").get_json()["ads"]

    assert [ad["name"] for ad in everything] == ["High", "Middle", "Low"]
    assert [ad["name"] for ad in pre_roll] == ["High", "Low"]


def test_public_ads_reject_unknown_type(client):
    response = client.get("/api/ads?type=popup")

    assert response.status_code == 400


def test_ad_schedule(client, make_ad):
    make_ad("Intro", "PRE_ROLL", priority=1)
    make_ad("Break", "MID_ROLL", position=25)
    make_ad("Outro", "POST_ROLL")

    data = client.get("/api/ads/schedule?duration=4000").get_json()

    assert data["duration"] == 4000
    assert [(item["type"], item["start"]) for item in data["breaks"]] == [
        ("PRE_ROLL", 0.0),
        ("MID_ROLL", 1000.0),
        ("POST_ROLL", 4000.0),
    ]


def test_ad_schedule_rejects_bad_duration(client):
    assert client.get("/api/ads/schedule?duration=-1").status_code == 400
    assert client.get("/api/ads/schedule?duration=long").status_code == 400


def test_ad_schedule_reports_database_errors(client, monkeypatch):
    def broken_lookup(ad_type=None):
        raise SQLAlchemyError("no such table: ad_configs")

    monkeypatch.setattr(app_module, "_active_ads", broken_lookup)

    response = client.get("/api/ads/schedule?duration=600")

    assert response.status_code == 500
    assert response.get_json()["error"] == "Failed to build ad schedule"


def test_admin_creates_ad(client, auth_headers):
    response = client.post(
        "/api/admin/ads",
        json={
            "name": "Spring sale",
            "type": "mid-roll",
            "content_url": "https://ads.example.com/spring.mp4",
            "position": 40,
            "duration": 15,
            "priority": 3,
        },
        headers=auth_headers,
    )

    assert response.status_code == 201
    ad = response.get_json()["ad"]
    assert ad["type"] == "MID_ROLL"
    assert ad["position"] == 40
    assert ad["is_active"] is True


@pytest.mark.parametrize(
    "payload",
    [
        {"type": "pre-roll"},
        {"name": "No type"},
        {"name": "Bad type", "type": "popup"},
        {"name": "Too far", "type": "mid-roll", "position": 150},
        {"name": "Bad priority", "type": "banner", "priority": "high"},
    ],
)
def test_admin_rejects_invalid_ads(client, auth_headers, payload):
    response = client.post("/api/admin/ads", json=payload, headers=auth_headers)

    assert response.status_code == 400
    assert AdConfig.query.count() == 0


def test_admin_lists_inactive_ads(client, auth_headers, make_ad):
    make_ad("Off", "BANNER", is_active=False)

    data = client.get("/api/admin/ads", headers=auth_headers).get_json()

    assert [ad["name"] for ad in data["ads"]] == ["Off"]


def test_admin_updates_and_deletes_ad(client, auth_headers, make_ad):
    ad = make_ad("Intro", "PRE_ROLL")
    ad_id = ad.id

    updated = client.put(
        f"/api/admin/ads/{ad_id}",
        json={"is_active": False, "priority": 7},
        headers=auth_headers,
    )
    deleted = client.delete(f"/api/admin/ads/{ad_id}", headers=auth_headers)

    assert updated.get_json()["ad"]["is_active"] is False
    assert updated.get_json()["ad"]["priority"] == 7
    assert updated.get_json()["ad"]["name"] == "Intro"
    assert deleted.status_code == 200
    assert db.session.get(AdConfig, ad_id) is None
    assert client.put(f"/api/admin/ads/{ad_id}", json={}, headers=auth_headers).status_code == 404
