"""
Shared pytest fixtures for the CRM Score Widget test suite.

The upstream CRM is replaced by FakeCRMUpstream, an in-memory stand-in for
requests.Session that honors If-Match the way the real account service does
(412 on a stale token). FlaskBridge lets the widget's AccountsClient talk to
the proxy through the Flask test client, so end-to-end tests exercise
widget → proxy → CRM client without a network.
"""
import copy
import json
import os
import sys
import threading
from urllib.parse import urlsplit

import pytest

_PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from scorewidget.widget.events import ParentFrame  # noqa: E402

ACCOUNT_ID = "6d3a1f0e-2b7c-4c55-9a51-0f4c1e9d8a21"
UPDATED_ON = "2026-10-18T09:30:00.000Z"
CRM_BASE_URL = "https://crm.example.test"

TEST_CONFIG = {
    "base_url": CRM_BASE_URL,
    "username": "widget_api",
    "password": "s3cret-pass",
    "port": 3000,
    "cors_origins": ["*"],
}


# ── HTTP doubles ──────────────────────────────────────────────────────────────

class FakeResponse:
    """Just enough of requests.Response for the two HTTP clients."""

    def __init__(self, status_code=200, body=None, text=None, reason=None):
        self.status_code = status_code
        if text is None:
            text = json.dumps(body) if body is not None else ""
        self.text = text
        self.content = text.encode()
        self.reason = reason or {200: "OK", 400: "Bad Request", 404: "Not Found",
                                 412: "Precondition Failed",
                                 500: "Internal Server Error"}.get(status_code, "")

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return json.loads(self.text)


def _merge_patch(target, patch):
    for key, value in patch.items():
        if value is None:
            target.pop(key, None)
        elif isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge_patch(target[key], value)
        else:
            target[key] = copy.deepcopy(value)
    return target


class FakeCRMUpstream:
    """In-memory CRM account service with a requests.Session-style request()."""

    def __init__(self):
        self.accounts = {}
        self.calls = []           # [(method, url, headers, body)]
        self.fail_next = []       # queued (status, text) responses
        self._version = 0
        self._lock = threading.Lock()

    def add_account(self, account_id, score=None, updated_on=UPDATED_ON):
        account = {"id": account_id, "extensions": {}, "adminData": {}}
        if score is not None:
            account["extensions"]["CustomScore"] = score
        if updated_on:
            account["adminData"]["updatedOn"] = updated_on
        self.accounts[account_id] = account
        return account

    def touch(self, account_id):
        """Simulate an external write: bump the concurrency token."""
        self._version += 1
        self.accounts[account_id]["adminData"]["updatedOn"] = f"2026-10-18T10:{self._version:02d}:00.000Z"

    def requests_for(self, method):
        return [c for c in self.calls if c[0] == method]

    def request(self, method, url, headers=None, data=None, timeout=None):
        headers = dict(headers or {})
        body = json.loads(data) if data else None
        with self._lock:
            self.calls.append((method, url, headers, body))
            if self.fail_next:
                status, text = self.fail_next.pop(0)
                return FakeResponse(status, text=text)

            account_id = urlsplit(url).path.rsplit("/", 1)[-1]
            account = self.accounts.get(account_id)
            if account is None:
                return FakeResponse(404, {"error": {"message": "Account not found"}})

            if method == "PATCH":
                token = account["adminData"].get("updatedOn")
                if headers.get("If-Match") != f'"{token}"':
                    return FakeResponse(412, {"error": {"message": "ETag mismatch"}})
                _merge_patch(account, body or {})
                self.touch(account_id)
            return FakeResponse(200, {"value": copy.deepcopy(account)})


class FlaskBridge:
    """requests.Session-style adapter over a Flask test client."""

    def __init__(self, test_client):
        self._client = test_client

    def request(self, method, url, headers=None, data=None, timeout=None):
        parts = urlsplit(url)
        path = parts.path + (f"?{parts.query}" if parts.query else "")
        r = self._client.open(path, method=method, headers=headers or {}, data=data)
        reason = r.status.split(" ", 1)[1] if " " in r.status else ""
        return FakeResponse(r.status_code, text=r.get_data(as_text=True), reason=reason)


class RecordingParentFrame(ParentFrame):
    """Collects cross-window messages instead of posting them."""

    def __init__(self):
        self.messages = []

    def post_message(self, message, target_origin="*"):
        self.messages.append((message, target_origin))


# ── Environment ───────────────────────────────────────────────────────────────

@pytest.fixture
def crm_env(monkeypatch):
    """Required CRM secrets present."""
    monkeypatch.setenv("CRM_BASE_URL", CRM_BASE_URL)
    monkeypatch.setenv("CRM_USERNAME", TEST_CONFIG["username"])
    monkeypatch.setenv("CRM_PASSWORD", TEST_CONFIG["password"])
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("CORS_ALLOW_ORIGINS", raising=False)
    return TEST_CONFIG


@pytest.fixture
def no_crm_env(monkeypatch):
    for name in ("CRM_BASE_URL", "CRM_USERNAME", "CRM_PASSWORD", "PORT"):
        monkeypatch.delenv(name, raising=False)


# ── Upstream + proxy ──────────────────────────────────────────────────────────

@pytest.fixture
def account_id():
    return ACCOUNT_ID


@pytest.fixture
def fake_crm():
    upstream = FakeCRMUpstream()
    upstream.add_account(ACCOUNT_ID, score="42")
    return upstream


@pytest.fixture
def crm_client(fake_crm):
    from scorewidget.integrations.crm import CRMClient
    return CRMClient(CRM_BASE_URL, TEST_CONFIG["username"], TEST_CONFIG["password"],
                     session=fake_crm)


@pytest.fixture
def app(crm_client):
    """Proxy app wired to the in-memory CRM."""
    from app import create_app
    _app = create_app(config=dict(TEST_CONFIG), crm_client=crm_client)
    _app.config["TESTING"] = True
    return _app


@pytest.fixture
def client(app):
    # No `with` block: widget threads share this client in the overlap tests
    return app.test_client()


# ── Widget ────────────────────────────────────────────────────────────────────

@pytest.fixture
def parent_frame():
    return RecordingParentFrame()


@pytest.fixture
def proxy_accounts(client):
    """Widget-side AccountsClient pointed at the test proxy."""
    from scorewidget.widget.client import AccountsClient
    return AccountsClient("http://widget.test", session=FlaskBridge(client))


@pytest.fixture
def e2e_widget(proxy_accounts, parent_frame):
    from scorewidget.widget import ScoreWidget
    return ScoreWidget(proxy_accounts, parent=parent_frame, error_timeout=0)


# ── Sample data factories ─────────────────────────────────────────────────────

@pytest.fixture
def make_account():
    """Account payload as the CRM returns it."""
    def _make(score=42, updated_on=UPDATED_ON, account_id=ACCOUNT_ID):
        value = {"id": account_id, "extensions": {}, "adminData": {}}
        if score is not None:
            value["extensions"]["CustomScore"] = score
        if updated_on:
            value["adminData"]["updatedOn"] = updated_on
        return {"value": value}
    return _make
