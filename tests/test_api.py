"""Tests for the HTTP endpoints."""

import pytest
from fastapi.testclient import TestClient

from conftest import FakeGoogle
from screening.api import CORS_HEADERS, app, get_http_client
from screening.config import get_settings
from screening.gateway.tokens import TokenCache, get_token_cache


@pytest.fixture
def api(app_settings):
    """Build a TestClient whose upstream calls go to the given FakeGoogle."""
    def build(google, cache=None):
        cache = cache or TokenCache()
        app.dependency_overrides[get_settings] = lambda: app_settings
        app.dependency_overrides[get_http_client] = google.client
        app.dependency_overrides[get_token_cache] = lambda: cache
        return TestClient(app)

    yield build
    app.dependency_overrides.clear()


class TestFetchSheet:
    """Test GET /fetch-sheet."""

    def test_returns_values(self, api, dashboard_grid):
        client = api(FakeGoogle(sheets={"DashboardData": dashboard_grid}))
        response = client.get("/fetch-sheet")

        assert response.status_code == 200
        assert response.json() == {"values": dashboard_grid}
        assert response.headers["access-control-allow-origin"] == "*"

    def test_empty_sheet(self, api):
        response = api(FakeGoogle()).get("/fetch-sheet")
        assert response.json() == {"values": []}

    @pytest.mark.parametrize("google", [FakeGoogle(token_status=401), FakeGoogle(sheet_status=403)])
    def test_failure(self, api, google):
        response = api(google).get("/fetch-sheet")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch sheet"}

    def test_token_reused_across_requests(self, api):
        google = FakeGoogle(sheets={"DashboardData": [["Name"], ["Alice"]]})
        client = api(google, TokenCache())

        client.get("/fetch-sheet")
        client.get("/fetch-sheet")

        assert len(google.token_requests) == 1
        assert len(google.sheet_requests) == 2


class TestValidateLogin:
    """Test POST /validate-login."""

    def test_valid(self, api, login_grid):
        client = api(FakeGoogle(sheets={"Sheet1": login_grid}))
        response = client.post("/validate-login", json={"loginName": "alice", "password": "secret"})

        assert response.status_code == 200
        assert response.json() == {"valid": True}

    def test_wrong_password(self, api, login_grid):
        client = api(FakeGoogle(sheets={"Sheet1": login_grid}))
        response = client.post("/validate-login", json={"loginName": "alice", "password": "wrong"})

        assert response.status_code == 200
        assert response.json() == {"valid": False, "message": "Wrong Login Name or Password."}

    def test_invalid_sheet_format(self, api):
        client = api(FakeGoogle(sheets={"Sheet1": [["Login Name", "Pass"], ["alice", "secret"]]}))
        response = client.post("/validate-login", json={"loginName": "alice", "password": "secret"})
        assert response.json() == {"valid": False, "message": "Invalid sheet format"}

    def test_token_rejected(self, api):
        """Verify a 401 from the token endpoint is a 500 auth failure."""
        response = api(FakeGoogle(token_status=401)).post(
            "/validate-login", json={"loginName": "alice", "password": "secret"}
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Service Account auth failed"}

    def test_access_denied(self, api):
        response = api(FakeGoogle(sheet_status=403)).post(
            "/validate-login", json={"loginName": "alice", "password": "secret"}
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Access denied. Confirm SA has sheet access & API enabled."}

    def test_missing_key(self, api, app_settings):
        app_settings.google.service_account_key_base64 = None
        google = FakeGoogle()
        response = api(google).post("/validate-login", json={"loginName": "a", "password": "b"})

        assert response.status_code == 500
        assert response.json() == {"error": "Service Account configuration error"}
        assert google.token_requests == []

    @pytest.mark.parametrize("body", ["{not json", "", "null"])
    def test_unreadable_body_is_internal_error(self, api, body):
        """Verify a body that cannot be decoded answers 500, not 400."""
        google = FakeGoogle()
        response = api(google).post(
            "/validate-login",
            content=body,
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert google.token_requests == []

    @pytest.mark.parametrize(
        "body",
        [
            {"loginName": 12345, "password": "secret"},
            {"loginName": "alice", "password": ["secret"]},
            {"loginName": "alice"},
            {},
            [1, 2],
        ],
    )
    def test_non_string_credentials_do_not_match(self, api, login_grid, body):
        """Verify odd field types are a normal wrong-credentials outcome."""
        client = api(FakeGoogle(sheets={"Sheet1": login_grid}))
        response = client.post("/validate-login", json=body)

        assert response.status_code == 200
        assert response.json() == {"valid": False, "message": "Wrong Login Name or Password."}

    def test_preflight(self, api):
        """Verify OPTIONS answers an empty 200 with the CORS headers."""
        response = api(FakeGoogle()).options("/validate-login")

        assert response.status_code == 200
        assert response.content == b""
        for header, value in CORS_HEADERS.items():
            assert response.headers[header] == value


class TestCandidates:
    """Test GET /candidates."""

    def test_defaults(self, api, dashboard_grid):
        client = api(FakeGoogle(sheets={"DashboardData": dashboard_grid}))
        body = client.get("/candidates").json()

        assert [c["name"] for c in body["candidates"]] == ["Alice Tan", "Bob Lim", "Cara Ng"]
        assert body["total"] == 3
        assert body["page"] == 1
        assert body["metrics"] == {"total": 3, "avg_matching_score": 52, "avg_years_experience": 10}

    def test_filters(self, api, dashboard_grid):
        client = api(FakeGoogle(sheets={"DashboardData": dashboard_grid}))
        body = client.get(
            "/candidates",
            params={"min_score": 50, "qualification": "Degree or above", "sort": "name", "direction": "asc"},
        ).json()

        assert [c["name"] for c in body["candidates"]] == ["Alice Tan", "Bob Lim"]
        assert body["metrics"]["total"] == 2

    def test_keyword(self, api, dashboard_grid):
        client = api(FakeGoogle(sheets={"DashboardData": dashboard_grid}))
        body = client.get("/candidates", params={"keyword": "python acme"}).json()
        assert [c["name"] for c in body["candidates"]] == ["Alice Tan", "Cara Ng"]

    def test_default_experience_range(self, api, dashboard_grid):
        """Verify omitted bounds use the dashboard defaults of 0 to 30 years."""
        grid = dashboard_grid + [["Dan Koh", "58", "Director", "Ledger Co", "Finance", "70", "35", "Doctor", "Strategy"]]
        client = api(FakeGoogle(sheets={"DashboardData": grid}))

        default = client.get("/candidates").json()
        widened = client.get("/candidates", params={"max_experience": 40}).json()

        assert "Dan Koh" not in [c["name"] for c in default["candidates"]]
        assert default["total"] == 3
        assert "Dan Koh" in [c["name"] for c in widened["candidates"]]

    def test_keyword_with_page(self, api, dashboard_grid):
        """Verify a keyword does not reset an explicitly requested page."""
        header = dashboard_grid[0]
        rows = [[f"Dev {i:02d}", "30", "Engineer", "Acme", "Tech", str(i), "5", "Degree", "Python"] for i in range(12)]
        client = api(FakeGoogle(sheets={"DashboardData": [header] + rows}))

        body = client.get("/candidates", params={"keyword": "python", "page": 2}).json()

        assert body["page"] == 2
        assert len(body["candidates"]) == 2
        assert body["total"] == 12

    def test_bad_sort_field(self, api, dashboard_grid):
        client = api(FakeGoogle(sheets={"DashboardData": dashboard_grid}))
        response = client.get("/candidates", params={"sort": "phone"})

        assert response.status_code == 400
        assert "Unsortable" in response.json()["error"]

    def test_upstream_failure(self, api):
        response = api(FakeGoogle(sheet_status=500)).get("/candidates")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch sheet"}


def test_health(api):
    response = api(FakeGoogle()).get("/health")
    assert response.json() == {"status": "ok", "version": "0.1.0"}
