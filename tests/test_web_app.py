"""Mini README: Tests covering the FastAPI dashboard and admin routes.

Structure:
    * public routes - summary figures, anonymised donation lists, HTML page.
    * admin routes - sign-in gating, validated writes, confirmed deletes.
    * outage handling - stale data is served with its status.
"""

from __future__ import annotations

from typing import Dict, Iterator

import pytest
from fastapi.testclient import TestClient

from festivalfund.configuration import FestivalFundSettings
from festivalfund.interface.web_app import create_application
from festivalfund.store import InMemoryFestivalStore

from factories import ScriptedStore

ADMIN_EMAIL = "treasurer@festival.local"
ADMIN_PASSWORD = "modak-123"


def _settings() -> FestivalFundSettings:
    return FestivalFundSettings(
        _env_file=None,
        admin_email=ADMIN_EMAIL,
        admin_password=ADMIN_PASSWORD,
        poll_interval_seconds=60,
        log_level="WARNING",
    )


@pytest.fixture
def client() -> Iterator[TestClient]:
    app = create_application(settings=_settings(), store=InMemoryFestivalStore(seed_demo=True))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(client: TestClient) -> Dict[str, str]:
    response = client.post("/auth/sign-in", data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


def test_health_reports_cache_status(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "cache": "ready"}


def test_summary_reflects_demo_records(client: TestClient) -> None:
    """Totals, balance and goal progress come from one snapshot."""

    payload = client.get("/api/summary").json()

    assert payload["status"] == "ready"
    assert payload["summary"]["total_donations"] == "16117.00"
    assert payload["summary"]["total_expenses"] == "11700.00"
    assert payload["summary"]["remaining_balance"] == "4417.00"
    assert payload["summary"]["donation_count"] == 3
    assert payload["balance_status"] == "Surplus"
    assert payload["goal"]["remaining"] == "33883.00"
    assert payload["goal"]["percentage"] == pytest.approx(32.234)
    assert payload["formatted"]["total_donations"] == "₹16,117.00"


def test_public_donations_hide_anonymous_donors(client: TestClient) -> None:
    """Anonymous donors and contact fields never appear publicly."""

    payload = client.get("/api/donations").json()
    names = [row["display_name"] for row in payload["donations"]]

    assert "Anonymous Donor" in names
    assert "Priya" not in names
    assert all("donor_email" not in row and "notes" not in row for row in payload["donations"])
    assert payload["total"] == 3


def test_public_lists_respect_limit(client: TestClient) -> None:
    payload = client.get("/api/expenses", params={"limit": 1}).json()

    assert len(payload["expenses"]) == 1
    assert payload["caption"] == "Showing 1 of 2"
    assert client.get("/api/expenses", params={"limit": 0}).status_code == 422


def test_dashboard_page_renders(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert "Vinayaka Chavithi" in response.text
    assert "₹16,117.00" in response.text
    assert "Anonymous Donor" in response.text
    assert "Priya" not in response.text


def test_admin_routes_require_sign_in(client: TestClient) -> None:
    assert client.get("/admin/dashboard").status_code == 401
    assert client.get("/admin/donations", headers={"Authorization": "Bearer forged"}).status_code == 401
    bad = client.post("/auth/sign-in", data={"email": ADMIN_EMAIL, "password": "wrong"})
    assert bad.status_code == 401


def test_admin_sees_full_donor_details(client: TestClient, admin_headers: Dict[str, str]) -> None:
    donations = client.get("/admin/donations", headers=admin_headers).json()["donations"]

    anonymous = next(row for row in donations if row["is_anonymous"])
    assert anonymous["donor_name"] == "Priya"
    assert anonymous["display_name"] == "Anonymous Donor"
    assert client.get("/auth/me", headers=admin_headers).json() == {"email": ADMIN_EMAIL}


def test_add_donation_updates_summary(client: TestClient, admin_headers: Dict[str, str]) -> None:
    response = client.post(
        "/admin/donations",
        data={
            "donor_name": "Sita",
            "amount": "883",
            "category": "Family",
            "payment_method": "Online",
            "donation_date": "2024-09-08",
        },
        headers=admin_headers,
    )

    assert response.status_code == 201
    assert response.json()["donation"]["amount"] == "883.00"
    summary = client.get("/api/summary").json()["summary"]
    assert summary["total_donations"] == "17000.00"
    assert summary["donation_count"] == 4


def test_invalid_expense_is_rejected(client: TestClient, admin_headers: Dict[str, str]) -> None:
    response = client.post(
        "/admin/expenses",
        data={"title": "Fireworks", "amount": "-10", "expense_date": "2024-09-08"},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert client.get("/api/summary").json()["summary"]["expense_count"] == 2


def test_delete_needs_confirmation(client: TestClient, admin_headers: Dict[str, str]) -> None:
    expense_id = client.get("/admin/expenses", headers=admin_headers).json()["expenses"][0]["expense_id"]

    refused = client.delete(f"/admin/expenses/{expense_id}", headers=admin_headers)
    assert refused.status_code == 400

    deleted = client.delete(f"/admin/expenses/{expense_id}", params={"confirm": "true"}, headers=admin_headers)
    assert deleted.status_code == 200
    assert client.get("/api/summary").json()["summary"]["expense_count"] == 1

    missing = client.delete("/admin/expenses/unknown", params={"confirm": "true"}, headers=admin_headers)
    assert missing.status_code == 404


def test_settings_round_trip(client: TestClient, admin_headers: Dict[str, str]) -> None:
    response = client.post(
        "/admin/settings",
        data={
            "festival_name": "Ganesh Utsav",
            "festival_year": "2025",
            "start_date": "2025-08-27",
            "end_date": "2025-09-06",
            "fundraising_goal": "32234",
        },
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert client.get("/api/settings").json()["settings"]["festival_name"] == "Ganesh Utsav"
    goal = client.get("/api/summary").json()["goal"]
    assert goal["percentage"] == pytest.approx(50.0, rel=1e-3)

    reversed_dates = client.post(
        "/admin/settings",
        data={
            "festival_name": "Ganesh Utsav",
            "festival_year": "2025",
            "start_date": "2025-09-06",
            "end_date": "2025-08-27",
        },
        headers=admin_headers,
    )
    assert reversed_dates.status_code == 400


def test_sign_out_revokes_token(client: TestClient, admin_headers: Dict[str, str]) -> None:
    client.post("/auth/sign-out", headers=admin_headers)

    assert client.get("/admin/dashboard", headers=admin_headers).status_code == 401


def test_outage_serves_last_snapshot_as_stale() -> None:
    """When the store goes down the last figures stay visible, marked stale."""

    store = ScriptedStore(seed_demo=True)
    app = create_application(settings=_settings(), store=store)
    with TestClient(app) as client:
        token = client.post("/auth/sign-in", data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}).json()["token"]
        store.fail_reads = True

        reload = client.post("/admin/reload", headers={"Authorization": f"Bearer {token}"})
        payload = client.get("/api/summary").json()

    assert reload.status_code == 503
    assert payload["status"] == "stale"
    assert payload["has_data"] is True
    assert payload["summary"]["total_donations"] == "16117.00"


def test_first_load_failure_shows_unavailable() -> None:
    store = ScriptedStore(seed_demo=True)
    store.fail_reads = True
    app = create_application(settings=_settings(), store=store)

    with TestClient(app) as client:
        payload = client.get("/api/summary").json()
        page = client.get("/")

    assert payload["status"] == "unavailable"
    assert payload["has_data"] is False
    assert page.status_code == 200
    assert "could not be loaded" in page.text


def test_only_bearer_scheme_is_accepted(client: TestClient, admin_headers: Dict[str, str]) -> None:
    """The session token is honoured only when sent with the Bearer scheme."""

    token = admin_headers["Authorization"].split(" ", 1)[1]

    assert client.get("/auth/me", headers={"Authorization": f"Basic {token}"}).status_code == 401
    assert client.get("/auth/me", headers={"Authorization": token}).status_code == 401
    assert client.get("/auth/me", headers={"Authorization": f"bearer {token}"}).status_code == 200

    client.post("/auth/sign-out", headers={"Authorization": f"Basic {token}"})
    assert client.get("/auth/me", headers=admin_headers).status_code == 200
