"""Integration tests for the marketplace API: error envelope, swipes, offers, borrow, circles, scheduling."""

from datetime import date, timedelta

import pytest

from matildus.models.circle import CircleLink, CircleLinkStatus
from tests.conftest import make_employer, make_listing, make_match, make_talent, shift_window, token_headers


@pytest.fixture
def market(client, db):
    employer, org = make_employer(db)
    listing = make_listing(db, org, title="Ski rental")
    talent = make_talent(db, full_name="Lina Lift")
    return employer, org, listing, talent


def _trust(db, org_a, org_b):
    db.add(CircleLink(from_org_id=org_a.id, to_org_id=org_b.id, status=CircleLinkStatus.ACCEPTED.value))
    db.commit()


def _offer_payload(org, talent, **extra):
    payload = {
        "organization_id": org.id,
        "talent_user_id": talent.id,
        "role_title": "Ski technician",
        "start_date": (date.today() + timedelta(days=30)).isoformat(),
        "hourly_rate": 185.0,
    }
    payload.update(extra)
    return payload


# ===== Error envelope =====


def test_unauthenticated_request_401(client):
    assert client.get("/api/v1/matches/me").status_code == 401


def test_not_found_uses_reason_envelope(client, market):
    employer, _, _, _ = market
    resp = client.get("/api/v1/listings/999999", headers=token_headers(employer))
    assert resp.status_code == 404
    detail = resp.json()["detail"]
    assert detail["reason"] == "not_found"
    assert detail["message"]


def test_forbidden_for_other_org(client, db, market):
    _, org, _, _ = market
    outsider, _ = make_employer(db)
    resp = client.get(f"/api/v1/orgs/{org.id}/listings", headers=token_headers(outsider))
    assert resp.status_code == 403
    assert resp.json()["detail"]["reason"] == "forbidden"


def test_request_id_header_echoed(client):
    resp = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert resp.headers.get("X-Request-ID") == "req-123"


# ===== Listings =====


def test_create_and_publish_listing(client, market):
    employer, org, _, _ = market
    resp = client.post(
        f"/api/v1/orgs/{org.id}/listings",
        json={"title": "Lift operator", "role_key": "Lift", "location": "Vemdalen"},
        headers=token_headers(employer),
    )
    assert resp.status_code == 201
    listing = resp.json()
    assert listing["status"] == "draft"
    assert listing["role_key"] == "lift"

    published = client.post(f"/api/v1/listings/{listing['id']}/publish", headers=token_headers(employer))
    assert published.json()["status"] == "published"
    again = client.post(f"/api/v1/listings/{listing['id']}/publish", headers=token_headers(employer))
    assert again.status_code == 409
    assert again.json()["detail"]["reason"] == "invalid_status"


# ===== Candidate job state =====


def test_save_apply_flow(client, market):
    _, _, listing, talent = market
    headers = token_headers(talent)
    assert client.post(f"/api/v1/candidate-jobs/{listing.id}/save", headers=headers).json()["status"] == "saved"
    assert client.post(f"/api/v1/candidate-jobs/{listing.id}/apply/start", headers=headers).json()["status"] == "applying"
    submitted = client.post(f"/api/v1/candidate-jobs/{listing.id}/apply/submit", json={}, headers=headers)
    assert submitted.status_code == 200
    assert submitted.json()["status"] == "applied"
    assert client.get("/api/v1/candidate-jobs/saved", headers=headers).json() == []
    assert len(client.get("/api/v1/candidate-jobs/applications", headers=headers).json()) == 1


# ===== Swipes and feeds =====


def test_mutual_swipes_create_match(client, market):
    employer, org, listing, talent = market
    first = client.post(
        "/api/v1/swipes/jobs", json={"listing_id": listing.id, "direction": "yes"}, headers=token_headers(talent)
    )
    assert first.status_code == 200
    assert first.json()["match"] is None

    second = client.post(
        f"/api/v1/swipes/listings/{listing.id}/candidates",
        json={"talent_user_id": talent.id, "direction": "yes"},
        headers=token_headers(employer),
    )
    assert second.status_code == 200
    body = second.json()
    assert body["match_created"] is True
    assert body["match"]["talent_user_id"] == talent.id

    mine = client.get("/api/v1/matches/me", headers=token_headers(talent)).json()
    assert [m["id"] for m in mine] == [body["match"]["id"]]
    org_matches = client.get(f"/api/v1/orgs/{org.id}/matches", headers=token_headers(employer)).json()
    assert [m["id"] for m in org_matches] == [body["match"]["id"]]


def test_swipe_direction_validated_by_schema(client, market):
    _, _, listing, talent = market
    resp = client.post(
        "/api/v1/swipes/jobs", json={"listing_id": listing.id, "direction": "maybe"}, headers=token_headers(talent)
    )
    assert resp.status_code == 422


def test_job_feed_applies_scores(client, db, market, fake_scorer):
    _, org, listing, talent = market
    make_listing(db, org, title="Lift operator")
    fake_scorer.scores = {listing.id: 0.75}
    resp = client.get("/api/v1/feed/jobs", headers=token_headers(talent))
    assert resp.status_code == 200
    body = resp.json()
    assert body["locked"] is False
    assert body["remaining"] == 2
    assert body["cards"][0]["id"] == listing.id
    assert body["cards"][0]["score"] == 0.75
    assert body["cards"][0]["listing"]["title"] == "Ski rental"
    assert body["cards"][1]["score"] is None


def test_swiped_card_leaves_feed(client, market, fake_scorer):
    _, _, listing, talent = market
    client.get("/api/v1/feed/jobs", headers=token_headers(talent))
    client.post(
        "/api/v1/swipes/jobs", json={"listing_id": listing.id, "direction": "no"}, headers=token_headers(talent)
    )
    body = client.get("/api/v1/feed/jobs", headers=token_headers(talent)).json()
    assert body["cards"] == []
    assert body["locked"] is True


def test_candidate_feed_for_employer(client, market, fake_scorer):
    employer, _, listing, talent = market
    client.post(
        "/api/v1/swipes/jobs", json={"listing_id": listing.id, "direction": "yes"}, headers=token_headers(talent)
    )
    resp = client.get(f"/api/v1/feed/listings/{listing.id}/candidates", headers=token_headers(employer))
    assert resp.status_code == 200
    cards = resp.json()["cards"]
    assert [c["talent_user_id"] for c in cards] == [talent.id]
    assert cards[0]["full_name"] == "Lina Lift"


# ===== Offers =====


def test_offer_send_and_accept(client, db, market):
    employer, org, listing, talent = market
    match = make_match(db, listing, talent)
    created = client.post(
        "/api/v1/offers", json=_offer_payload(org, talent, match_id=match.id), headers=token_headers(employer)
    )
    assert created.status_code == 201
    offer = created.json()
    assert offer["status"] == "draft"

    assert client.get(f"/api/v1/offers/{offer['id']}/conflict", headers=token_headers(employer)).json() == {
        "offer_id": offer["id"],
        "conflict": False,
        "existing_offer_id": None,
        "existing_status": None,
    }
    sent = client.post(f"/api/v1/offers/{offer['id']}/send", headers=token_headers(employer))
    assert sent.json()["status"] == "sent"

    received = client.get("/api/v1/offers/received", headers=token_headers(talent)).json()
    assert [o["id"] for o in received] == [offer["id"]]

    accepted = client.post(
        f"/api/v1/offers/{offer['id']}/respond", json={"accept": True}, headers=token_headers(talent)
    )
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "accepted"
    assert accepted.json()["booking_id"] is not None
    bookings = client.get("/api/v1/bookings/me", headers=token_headers(talent)).json()
    assert [b["id"] for b in bookings] == [accepted.json()["booking_id"]]


def test_second_active_offer_conflicts(client, db, market):
    employer, org, listing, talent = market
    match = make_match(db, listing, talent)
    headers = token_headers(employer)
    first = client.post("/api/v1/offers", json=_offer_payload(org, talent, match_id=match.id), headers=headers).json()
    second = client.post("/api/v1/offers", json=_offer_payload(org, talent, match_id=match.id), headers=headers).json()
    client.post(f"/api/v1/offers/{first['id']}/send", headers=headers)

    resp = client.post(f"/api/v1/offers/{second['id']}/send", headers=headers)
    assert resp.status_code == 409
    detail = resp.json()["detail"]
    assert detail["reason"] == "conflict"
    assert detail["existing_offer_id"] == first["id"]


def test_offer_validation_error_names_field(client, market):
    employer, org, _, talent = market
    # A direct offer has no listing to inherit a role title from.
    draft = client.post(
        "/api/v1/offers",
        json=_offer_payload(org, talent, role_title=None),
        headers=token_headers(employer),
    ).json()
    resp = client.post(f"/api/v1/offers/{draft['id']}/send", headers=token_headers(employer))
    assert resp.status_code == 422
    assert resp.json()["detail"]["field"] == "role_title"


# ===== Circles =====


def test_circle_invite_accept_via_api(client, db, market):
    employer, org, _, _ = market
    partner_employer, partner = make_employer(db)
    invite = client.post(
        f"/api/v1/orgs/{org.id}/circle-invites", json={"to_org_id": partner.id}, headers=token_headers(employer)
    )
    assert invite.status_code == 201
    link_id = invite.json()["id"]

    incoming = client.get(f"/api/v1/orgs/{partner.id}/circle-invites", headers=token_headers(partner_employer))
    assert [l["id"] for l in incoming.json()] == [link_id]

    accepted = client.post(f"/api/v1/circle-invites/{link_id}/accept", headers=token_headers(partner_employer))
    assert accepted.json()["status"] == "accepted"
    trusted = client.get(f"/api/v1/orgs/{org.id}/trusted/{partner.id}", headers=token_headers(employer))
    assert trusted.json()["trusted"] is True

    circle = client.post(
        f"/api/v1/orgs/{org.id}/circles", json={"name": "Valley"}, headers=token_headers(employer)
    ).json()
    added = client.post(
        f"/api/v1/circles/{circle['id']}/members",
        json={"organization_id": partner.id},
        headers=token_headers(employer),
    )
    assert added.status_code == 201
    listed = client.get(f"/api/v1/orgs/{org.id}/circles", headers=token_headers(employer)).json()
    assert listed[0]["member_count"] == 1
    removed = client.delete(
        f"/api/v1/circles/{circle['id']}/members/{partner.id}", headers=token_headers(employer)
    )
    assert removed.status_code == 204


# ===== Borrow =====


def test_borrow_request_fan_out_and_accept(client, db, market):
    employer, org, _, talent = market
    start, end = shift_window()
    resp = client.post(
        f"/api/v1/orgs/{org.id}/borrow-requests",
        json={
            "location": "Vemdalen",
            "role_key": "barista",
            "start_ts": start.isoformat(),
            "end_ts": end.isoformat(),
            "scope": "local",
        },
        headers=token_headers(employer),
    )
    assert resp.status_code == 201
    request = resp.json()
    assert request["status"] == "open"
    assert [o["talent_user_id"] for o in request["offers"]] == [talent.id]

    mine = client.get("/api/v1/borrow-offers/me", headers=token_headers(talent)).json()
    assert mine[0]["request"]["id"] == request["id"]
    accepted = client.post(f"/api/v1/borrow-offers/{mine[0]['id']}/accept", headers=token_headers(talent))
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "accepted"

    refreshed = client.get(f"/api/v1/borrow-requests/{request['id']}", headers=token_headers(employer)).json()
    assert refreshed["status"] == "filled"


def test_borrow_pool_counts(client, db, market):
    employer, org, listing, _ = market
    partner_employer, partner = make_employer(db)
    _trust(db, org, partner)
    make_match(db, make_listing(db, partner), make_talent(db, location="Elsewhere"))
    start, end = shift_window()
    resp = client.get(
        f"/api/v1/orgs/{org.id}/borrow-pool-counts",
        params={"location": "Vemdalen", "start_ts": start.isoformat(), "end_ts": end.isoformat()},
        headers=token_headers(employer),
    )
    assert resp.status_code == 200
    assert resp.json() == {"internal": 0, "circle": 1, "local": 1}


# ===== Scheduling =====


def test_booking_release_and_take(client, db, market):
    employer, org, _, talent = market
    partner_employer, partner = make_employer(db)
    _trust(db, org, partner)
    start, end = shift_window()
    booking = client.post(
        f"/api/v1/orgs/{org.id}/bookings",
        json={"talent_user_id": talent.id, "start_ts": start.isoformat(), "end_ts": end.isoformat()},
        headers=token_headers(employer),
    )
    assert booking.status_code == 201
    clash = client.post(
        f"/api/v1/orgs/{org.id}/bookings",
        json={"talent_user_id": talent.id, "start_ts": start.isoformat(), "end_ts": end.isoformat()},
        headers=token_headers(employer),
    )
    assert clash.status_code == 409
    assert clash.json()["detail"]["existing_booking_id"] == booking.json()["id"]

    release = client.post(f"/api/v1/bookings/{booking.json()['id']}/release", headers=token_headers(employer))
    assert release.status_code == 201
    available = client.get(
        f"/api/v1/orgs/{partner.id}/release-offers/available", headers=token_headers(partner_employer)
    ).json()
    assert [r["id"] for r in available] == [release.json()["id"]]

    taken = client.post(
        f"/api/v1/release-offers/{release.json()['id']}/take",
        json={"organization_id": partner.id},
        headers=token_headers(partner_employer),
    )
    assert taken.status_code == 200
    assert taken.json()["status"] == "taken"
    partner_bookings = client.get(f"/api/v1/orgs/{partner.id}/bookings", headers=token_headers(partner_employer))
    assert [b["talent_user_id"] for b in partner_bookings.json()] == [talent.id]


def test_talent_profile_and_busy_blocks(client, market):
    _, _, _, talent = market
    headers = token_headers(talent)
    profile = client.patch("/api/v1/talent/profile", json={"visibility_scope": "off"}, headers=headers)
    assert profile.status_code == 200
    assert profile.json()["visibility_scope"] == "off"

    start, end = shift_window()
    block = client.post(
        "/api/v1/talent/busy-blocks",
        json={"start_ts": start.isoformat(), "end_ts": end.isoformat(), "reason": "course"},
        headers=headers,
    )
    assert block.status_code == 201
    assert len(client.get("/api/v1/talent/busy-blocks", headers=headers).json()) == 1
    assert client.delete(f"/api/v1/talent/busy-blocks/{block.json()['id']}", headers=headers).status_code == 204
