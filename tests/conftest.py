"""
Pytest configuration and shared fixtures.
"""

import base64
import json
from urllib.parse import parse_qs

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from screening.config import GoogleSettings, Settings, SheetSettings

TOKEN_URI = "https://oauth2.test/token"
SHEETS_API_BASE = "https://sheets.test/v4/spreadsheets"
CLIENT_EMAIL = "screening-bot@demo-project.iam.gserviceaccount.com"


class FakeGoogle:
    """MockTransport handler standing in for the token endpoint and the values API.

    ``sheets`` maps a range name to the values grid returned for it; a range
    missing from the map answers without a ``values`` key.
    """

    def __init__(self, sheets=None, token_status=200, token_body=None, sheet_status=200):
        self.sheets = sheets or {}
        self.token_status = token_status
        self.token_body = token_body
        self.sheet_status = sheet_status
        self.token_requests = []
        self.sheet_requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "oauth2.test":
            self.token_requests.append(parse_qs(request.content.decode()))
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_grant"})
            body = self.token_body
            if body is None:
                body = {"access_token": f"ya29.token-{len(self.token_requests)}", "token_type": "Bearer", "expires_in": 3599}
            return httpx.Response(200, json=body)

        self.sheet_requests.append(request)
        if self.sheet_status != 200:
            return httpx.Response(self.sheet_status, json={"error": {"code": self.sheet_status, "status": "PERMISSION_DENIED"}})
        range_name = request.url.path.rsplit("/", 1)[-1]
        values = self.sheets.get(range_name)
        body = {"range": f"{range_name}!A1:Z1000", "majorDimension": "ROWS"}
        if values is not None:
            body["values"] = values
        return httpx.Response(200, json=body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture(scope="session")
def rsa_key():
    """Throwaway RSA key for signing assertions."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_key) -> str:
    """PKCS#8 PEM of the throwaway key."""
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture(scope="session")
def public_key(rsa_key):
    return rsa_key.public_key()


@pytest.fixture
def service_account_info(private_key_pem) -> dict:
    """Service account JSON as downloaded from the cloud console."""
    return {
        "type": "service_account",
        "project_id": "demo-project",
        "private_key_id": "abc123",
        "private_key": private_key_pem,
        "client_email": CLIENT_EMAIL,
        "client_id": "1234567890",
        "token_uri": TOKEN_URI,
    }


def encode_key(info: dict) -> str:
    return base64.b64encode(json.dumps(info).encode("utf-8")).decode("ascii")


@pytest.fixture
def key_b64(service_account_info) -> str:
    return encode_key(service_account_info)


@pytest.fixture
def google_settings(key_b64) -> GoogleSettings:
    return GoogleSettings(service_account_key_base64=key_b64, sheets_api_base=SHEETS_API_BASE)


@pytest.fixture
def sheet_settings() -> SheetSettings:
    return SheetSettings(
        dashboard_spreadsheet_id="dash-sheet",
        dashboard_range="DashboardData",
        login_spreadsheet_id="login-sheet",
        login_range="Sheet1",
    )


@pytest.fixture
def app_settings(google_settings, sheet_settings, tmp_path) -> Settings:
    return Settings(
        google=google_settings,
        sheets=sheet_settings,
        session_file=tmp_path / "session.json",
    )


@pytest.fixture
def login_grid():
    """Login sheet with the expected headers."""
    return [
        ["Login Name", "Password"],
        ["alice", "secret"],
        [" bob ", " hunter2 "],
    ]


@pytest.fixture
def dashboard_grid():
    """Dashboard sheet using a mix of canonical and alias headers."""
    return [
        ["Name", "Age", "Job Title", "Company", "Industry", "Matching Score", "Years Experience", "Qualification", "Key Skills"],
        ["Alice Tan", "31", "Data Engineer", "Acme", "Tech", "90", "8", "Master", "Python, SQL"],
        ["Bob Lim", "45", "Accountant", "Ledger Co", "Finance", "55", "20", "Degree", "Excel"],
        ["Cara Ng", "22", "Intern", "Acme", "Tech", "10", "1", "Below Degree", "Python"],
    ]
