"""HTTP tests for banner endpoints: public display filter, admin CRUD, validation, manual override."""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch
from datetime import datetime, timedelta, timezone

from fleet.database.models import SiteBanner, AdBanner, BannerEvent
from fleet.services.clock import fixed_clock, get_clock

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
HOUR = timedelta(hours=1)
ADMIN_KEY = "fleet-admin-test-key"
ADMIN = {"X-Admin-Key": ADMIN_KEY}


@pytest.fixture
def client(test_session):
    with patch("fleet.database.db.SessionLocal", test_session), \
            patch("fleet.api.admin_auth.get_settings") as mock_settings:
        mock_settings.return_value.admin_api_key = ADMIN_KEY
        mock_settings.return_value.admin_api_key_salt = "test-salt"
        from fleet.api.app import create_app
        app = create_app()
        app.dependency_overrides[get_clock] = lambda: fixed_clock(NOW)
        yield TestClient(app)


@pytest.fixture
def seeded(test_session):
    """One site banner per status, plus a live ad banner. Returns ids by name."""
    db = test_session()
    banners = {
        "live": SiteBanner(image_url="live.jpg", redirect_to="/cars/1", start_date=NOW - HOUR, end_date=NOW + HOUR),
        "scheduled": SiteBanner(image_url="soon.jpg", redirect_to="/cars/2", start_date=NOW + HOUR),
        "expired": SiteBanner(image_url="old.jpg", redirect_to="/dealerships/3", end_date=NOW - HOUR),
        "paused": SiteBanner(
            image_url="paused.jpg", redirect_to="/cars/4", active=False,
            start_date=NOW - HOUR, end_date=NOW + HOUR, manually_deactivated_at=NOW - HOUR,
        ),
        "always": SiteBanner(image_url="always.jpg", redirect_to="/features"),
        "ad": AdBanner(image_url="ad.jpg", redirect_to="/dealerships/9", start_date=NOW - HOUR),
    }
    db.add_all(banners.values())
    db.commit()
    ids = {name: b.id for name, b in banners.items()}
    db.close()
    return ids


class TestPublicBanners:

    def test_only_displayable_banners_are_listed(self, client, seeded):
        resp = client.get("/api/v1/banners/")
        assert resp.status_code == 200
        ids = {b["id"] for b in resp.json()}
        assert ids == {seeded["live"], seeded["always"]}

    def test_display_does_not_depend_on_reconciliation(self, client, test_session):
        """A stale `active=True` on an expired banner must still be hidden."""
        db = test_session()
        db.add(SiteBanner(image_url="stale.jpg", active=True, start_date=NOW - 3 * HOUR, end_date=NOW))
        db.commit()
        db.close()

        resp = client.get("/api/v1/banners/")
        assert resp.json() == []

    def test_ad_banners_are_separate(self, client, seeded):
        resp = client.get("/api/v1/ad-banners/")
        assert [b["id"] for b in resp.json()] == [seeded["ad"]]

    def test_public_payload_is_minimal(self, client, seeded):
        item = client.get("/api/v1/ad-banners/").json()[0]
        assert item == {"id": seeded["ad"], "image_url": "ad.jpg", "redirect_to": "/dealerships/9"}


class TestAdminAuth:

    def test_create_requires_admin_key(self, client):
        resp = client.post("/api/v1/banners/", json={"image_url": "x.jpg"})
        assert resp.status_code == 401

    def test_wrong_admin_key_rejected(self, client):
        resp = client.get("/api/v1/banners/admin", headers={"X-Admin-Key": "nope"})
        assert resp.status_code == 401

    def test_unconfigured_admin_key_is_unavailable(self, test_session):
        with patch("fleet.database.db.SessionLocal", test_session), \
                patch("fleet.api.admin_auth.get_settings") as mock_settings:
            mock_settings.return_value.admin_api_key = ""
            from fleet.api.app import create_app
            resp = TestClient(create_app()).get("/api/v1/banners/admin", headers=ADMIN)
        assert resp.status_code == 503


class TestCreateBanner:

    def test_create_scheduled_banner(self, client):
        resp = client.post("/api/v1/banners/", json={
            "image_url": "spring.jpg",
            "redirect_to": "/cars?tag=spring",
            "start_date": "2026-03-01T11:00:00Z",
            "end_date": "2026-03-15T00:00:00Z",
        }, headers=ADMIN)
        assert resp.status_code == 201
        data = resp.json()
        assert data["active"] is True
        assert data["status"] == "active"
        assert data["status_label"] == "Active"
        assert data["start_date"] == "2026-03-01T11:00:00+00:00"
        assert data["schedule_text"] == "Mar 1, 2026 - Mar 15, 2026"
        assert data["manually_deactivated_at"] is None

    def test_create_unscheduled_banner(self, client):
        resp = client.post("/api/v1/ad-banners/", json={"image_url": "ad.jpg"}, headers=ADMIN)
        assert resp.status_code == 201
        assert resp.json()["status"] == "no_schedule"
        assert resp.json()["schedule_text"] == "Always active (no schedule)"

    def test_create_inactive_stamps_manual_deactivation(self, client):
        resp = client.post("/api/v1/banners/", json={"image_url": "x.jpg", "active": False}, headers=ADMIN)
        data = resp.json()
        assert data["status"] == "paused"
        assert data["manually_deactivated_at"] == NOW.isoformat()

    def test_inverted_range_rejected_verbatim(self, client, test_session):
        resp = client.post("/api/v1/banners/", json={
            "image_url": "x.jpg",
            "start_date": "2026-03-10T00:00:00Z",
            "end_date": "2026-03-10T00:00:00Z",
        }, headers=ADMIN)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "End date must be after start date"

        db = test_session()
        assert db.query(SiteBanner).count() == 0
        db.close()

    def test_malformed_start_rejected(self, client):
        resp = client.post("/api/v1/banners/", json={
            "image_url": "x.jpg", "start_date": "next tuesday", "end_date": "2026-03-10T00:00:00Z",
        }, headers=ADMIN)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid start date"

    def test_malformed_single_bound_rejected(self, client):
        resp = client.post("/api/v1/banners/", json={"image_url": "x.jpg", "end_date": "soon"}, headers=ADMIN)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid end date"

    def test_missing_image_url_is_422(self, client):
        resp = client.post("/api/v1/banners/", json={"redirect_to": "/cars"}, headers=ADMIN)
        assert resp.status_code == 422


class TestUpdateBanner:

    def test_update_end_before_existing_start_rejected(self, client, seeded):
        resp = client.patch(
            f"/api/v1/banners/{seeded['live']}",
            json={"end_date": "2026-03-01T10:00:00Z"},
            headers=ADMIN,
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "End date must be after start date"

    def test_update_can_clear_schedule(self, client, seeded):
        resp = client.patch(
            f"/api/v1/banners/{seeded['expired']}",
            json={"end_date": None},
            headers=ADMIN,
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "no_schedule"

    def test_update_payload_keeps_schedule(self, client, seeded):
        resp = client.patch(
            f"/api/v1/banners/{seeded['live']}",
            json={"redirect_to": "/cars/99"},
            headers=ADMIN,
        )
        data = resp.json()
        assert data["redirect_to"] == "/cars/99"
        assert data["start_date"] == (NOW - HOUR).isoformat()
        assert data["status"] == "active"

    def test_deactivate_stamps_and_reactivate_clears(self, client, seeded):
        resp = client.patch(f"/api/v1/banners/{seeded['live']}", json={"active": False}, headers=ADMIN)
        assert resp.json()["manually_deactivated_at"] == NOW.isoformat()
        assert resp.json()["status"] == "paused"

        resp = client.patch(f"/api/v1/banners/{seeded['live']}", json={"active": True}, headers=ADMIN)
        assert resp.json()["manually_deactivated_at"] is None
        assert resp.json()["status"] == "active"

    def test_empty_image_url_rejected(self, client, seeded):
        resp = client.patch(f"/api/v1/banners/{seeded['live']}", json={"image_url": None}, headers=ADMIN)
        assert resp.status_code == 422

    def test_unknown_banner_is_404(self, client):
        resp = client.patch("/api/v1/banners/999", json={"active": False}, headers=ADMIN)
        assert resp.status_code == 404


class TestToggleAndDelete:

    def test_toggle_round_trip(self, client, seeded):
        resp = client.post(f"/api/v1/banners/{seeded['paused']}/toggle", headers=ADMIN)
        assert resp.json()["active"] is True
        assert resp.json()["manually_deactivated_at"] is None

        resp = client.post(f"/api/v1/banners/{seeded['paused']}/toggle", headers=ADMIN)
        assert resp.json()["active"] is False
        assert resp.json()["manually_deactivated_at"] == NOW.isoformat()

    def test_delete(self, client, seeded):
        resp = client.delete(f"/api/v1/ad-banners/{seeded['ad']}", headers=ADMIN)
        assert resp.status_code == 200
        assert resp.json()["deleted"] is True

        resp = client.get(f"/api/v1/ad-banners/{seeded['ad']}", headers=ADMIN)
        assert resp.status_code == 404


class TestAdminListing:

    def test_lists_all_with_status(self, client, seeded):
        resp = client.get("/api/v1/banners/admin?limit=50", headers=ADMIN)
        assert resp.status_code == 200
        statuses = {item["id"]: item["status"] for item in resp.json()["data"]}
        assert statuses == {
            seeded["live"]: "active",
            seeded["scheduled"]: "scheduled",
            seeded["expired"]: "expired",
            seeded["paused"]: "paused",
            seeded["always"]: "no_schedule",
        }

    @pytest.mark.parametrize("status", ["active", "scheduled", "expired", "paused", "no_schedule"])
    def test_status_filter(self, client, seeded, status):
        resp = client.get(f"/api/v1/banners/admin?status={status}", headers=ADMIN)
        data = resp.json()
        assert data["pagination"]["total"] == 1
        assert data["data"][0]["status"] == status

    def test_invalid_status_filter_is_422(self, client):
        resp = client.get("/api/v1/banners/admin?status=archived", headers=ADMIN)
        assert resp.status_code == 422

    def test_pagination(self, client, seeded):
        resp = client.get("/api/v1/banners/admin?limit=2&page=3&sort_by=id&sort_order=asc", headers=ADMIN)
        data = resp.json()
        assert data["pagination"] == {"page": 3, "limit": 2, "total": 5, "total_pages": 3}
        assert [item["id"] for item in data["data"]] == [seeded["always"]]

    def test_search_on_redirect(self, client, seeded):
        resp = client.get("/api/v1/banners/admin?search=dealerships", headers=ADMIN)
        assert [item["id"] for item in resp.json()["data"]] == [seeded["expired"]]


class TestBannerEvents:

    def test_records_impression(self, client, seeded, test_session):
        resp = client.post(
            f"/api/v1/banners/{seeded['live']}/events",
            json={"event_type": "impression", "viewer_id": "viewer-1"},
        )
        assert resp.status_code == 201

        db = test_session()
        event = db.query(BannerEvent).one()
        assert (event.banner_kind, event.banner_id, event.event_type) == ("banners", seeded["live"], "impression")
        db.close()

    def test_unknown_banner_is_404(self, client):
        resp = client.post("/api/v1/ad-banners/404/events", json={"event_type": "click"})
        assert resp.status_code == 404

    def test_unknown_event_type_is_422(self, client, seeded):
        resp = client.post(f"/api/v1/banners/{seeded['live']}/events", json={"event_type": "hover"})
        assert resp.status_code == 422
