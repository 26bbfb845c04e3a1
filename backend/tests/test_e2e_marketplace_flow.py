"""End-to-end tests: from registration to a booked season job and a borrowed shift."""

from datetime import date, timedelta

import pytest

from tests.conftest import login_user, register_user, shift_window

pytestmark = pytest.mark.e2e


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _signup(client, email, **kwargs) -> dict:
    reg = register_user(client, email=email, **kwargs)
    assert reg.status_code == 201, reg.text
    login = login_user(client, email)
    assert login.status_code == 200
    return {"Authorization": f"Bearer {login.json()['access_token']}"}


def _my_org_id(client, headers) -> int:
    orgs = client.get("/api/v1/orgs/me", headers=headers).json()
    assert len(orgs) == 1
    return orgs[0]["id"]


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestSeasonHire:
    """Listing -> mutual swipe -> offer -> booking."""

    def test_full_hire_path(self, client):
        employer = _signup(client, "owner@lodge.test", full_name="Owner", organization_name="Lodge", location="Vemdalen")
        talent = _signup(client, "ski@talent.test", full_name="Sam Ski", location="Vemdalen")
        org_id = _my_org_id(client, employer)

        listing = client.post(
            f"/api/v1/orgs/{org_id}/listings",
            json={
                "title": "Ski instructor",
                "role_key": "instructor",
                "location": "Vemdalen",
                "start_date": (date.today() + timedelta(days=40)).isoformat(),
                "housing_offered": True,
                "publish": True,
            },
            headers=employer,
        )
        assert listing.status_code == 201
        listing_id = listing.json()["id"]

        feed = client.get("/api/v1/feed/jobs", params={"location": "Vemdalen"}, headers=talent).json()
        assert [card["id"] for card in feed["cards"]] == [listing_id]
        assert client.post("/api/v1/swipes/jobs", json={"listing_id": listing_id, "direction": "yes"}, headers=talent).status_code == 200

        candidates = client.get(f"/api/v1/feed/listings/{listing_id}/candidates", headers=employer).json()
        talent_id = candidates["cards"][0]["talent_user_id"]
        swipe = client.post(
            f"/api/v1/swipes/listings/{listing_id}/candidates",
            json={"talent_user_id": talent_id, "direction": "yes"},
            headers=employer,
        ).json()
        assert swipe["match_created"] is True
        match_id = swipe["match"]["id"]
        assert client.get(f"/api/v1/listings/{listing_id}", headers=employer).json()["status"] == "matching"

        offer = client.post(
            "/api/v1/offers",
            json={"organization_id": org_id, "talent_user_id": talent_id, "match_id": match_id, "hourly_rate": 210},
            headers=employer,
        ).json()
        assert offer["role_title"] == "Ski instructor"
        assert offer["housing_included"] is True
        assert client.post(f"/api/v1/offers/{offer['id']}/send", headers=employer).json()["status"] == "sent"

        accepted = client.post(f"/api/v1/offers/{offer['id']}/respond", json={"accept": True}, headers=talent)
        assert accepted.status_code == 200
        assert accepted.json()["status"] == "accepted"

        bookings = client.get(f"/api/v1/orgs/{org_id}/bookings", headers=employer).json()
        assert [b["source"] for b in bookings] == ["offer"]
        assert client.get(f"/api/v1/matches/{match_id}", headers=talent).json()["status"] == "matched"

    def test_declined_offer_frees_the_slot(self, client):
        employer = _signup(client, "boss@cafe.test", organization_name="Cafe", location="Vemdalen")
        talent = _signup(client, "barista@talent.test", location="Vemdalen")
        org_id = _my_org_id(client, employer)
        talent_id = client.get("/api/v1/users/me", headers=talent).json()["id"]
        terms = {
            "organization_id": org_id,
            "talent_user_id": talent_id,
            "role_title": "Barista",
            "start_date": (date.today() + timedelta(days=14)).isoformat(),
        }

        first = client.post("/api/v1/offers", json=terms, headers=employer).json()
        client.post(f"/api/v1/offers/{first['id']}/send", headers=employer)
        declined = client.post(f"/api/v1/offers/{first['id']}/respond", json={"accept": False}, headers=talent)
        assert declined.json()["status"] == "declined"

        second = client.post("/api/v1/offers", json=terms, headers=employer).json()
        assert client.post(f"/api/v1/offers/{second['id']}/send", headers=employer).status_code == 200


class TestBorrowAcrossCircle:
    """Two orgs build trust, then one borrows a matched worker from the other."""

    def test_circle_borrow_path(self, client):
        lender = _signup(client, "lender@hill.test", organization_name="Hill Bar", location="Vemdalen")
        borrower = _signup(client, "borrower@valley.test", organization_name="Valley Bistro", location="Vemdalen")
        worker = _signup(client, "worker@talent.test", location="Elsewhere")
        lender_org = _my_org_id(client, lender)
        borrower_org = _my_org_id(client, borrower)

        # Worker matches with the lender first.
        listing_id = client.post(
            f"/api/v1/orgs/{lender_org}/listings",
            json={"title": "Bartender", "role_key": "bartender", "location": "Vemdalen", "publish": True},
            headers=lender,
        ).json()["id"]
        worker_id = client.get("/api/v1/users/me", headers=worker).json()["id"]
        client.post("/api/v1/swipes/jobs", json={"listing_id": listing_id, "direction": "yes"}, headers=worker)
        client.post(
            f"/api/v1/swipes/listings/{listing_id}/candidates",
            json={"talent_user_id": worker_id, "direction": "yes"},
            headers=lender,
        )

        link = client.post(
            f"/api/v1/orgs/{borrower_org}/circle-invites", json={"to_org_id": lender_org}, headers=borrower
        ).json()
        assert client.post(f"/api/v1/circle-invites/{link['id']}/accept", headers=lender).json()["status"] == "accepted"

        start, end = shift_window(days_ahead=5)
        request = client.post(
            f"/api/v1/orgs/{borrower_org}/borrow-requests",
            json={
                "location": "Vemdalen",
                "role_key": "bartender",
                "start_ts": start.isoformat(),
                "end_ts": end.isoformat(),
                "scope": "circle",
            },
            headers=borrower,
        ).json()
        assert [o["talent_user_id"] for o in request["offers"]] == [worker_id]

        incoming = client.get("/api/v1/borrow-offers/me", headers=worker).json()
        accepted = client.post(f"/api/v1/borrow-offers/{incoming[0]['id']}/accept", headers=worker)
        assert accepted.json()["status"] == "accepted"

        borrower_bookings = client.get(f"/api/v1/orgs/{borrower_org}/bookings", headers=borrower).json()
        assert [(b["talent_user_id"], b["source"]) for b in borrower_bookings] == [(worker_id, "borrow")]
        assert client.get(f"/api/v1/borrow-requests/{request['id']}", headers=borrower).json()["status"] == "filled"
