"""
crm.py — Upstream CRM Account API client

Forwards account reads and merge-patch updates to the CRM account service.
No business logic: the caller's body and If-Match header go through as-is,
the only thing added is the Authorization header.

CRM API: REST, JSON, Basic Auth
  GET   {base}/sap/c4c/api/v1/account-service/accounts/{id}
  PATCH {base}/sap/c4c/api/v1/account-service/accounts/{id}
        Content-Type: application/merge-patch+json
        If-Match: "<adminData.updatedOn>"

Dependencies: requests
"""

import json
import base64
import logging
from urllib.parse import quote
from typing import Optional

import requests

from scorewidget.core.errors import UpstreamError

log = logging.getLogger("scorewidget.crm")

ACCOUNT_ENDPOINT = "/sap/c4c/api/v1/account-service/accounts/{account_id}"
JSON_CONTENT_TYPE = "application/json"
MERGE_PATCH_CONTENT_TYPE = "application/merge-patch+json"


def basic_auth_header(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return f"Basic {token}"


def account_endpoint(account_id: str) -> str:
    return ACCOUNT_ENDPOINT.format(account_id=quote(str(account_id), safe=""))


class CRMClient:
    """Authenticated client for the CRM account service.

    The Authorization header is computed once here and shared by every
    request the proxy forwards.
    """

    def __init__(self, base_url: str, username: str, password: str,
                 session: Optional[requests.Session] = None, timeout: Optional[float] = None):
        self.base_url = base_url.rstrip("/")
        self.username = username
        self._auth_header = basic_auth_header(username, password)
        self._session = session or requests.Session()
        self._timeout = timeout

    def request(self, method: str, endpoint: str, body: Optional[dict] = None,
                headers: Optional[dict] = None) -> dict:
        """Make an authenticated request to the CRM API.

        Returns the decoded JSON body of a 2xx response ({} when empty).
        Raises UpstreamError for anything else.
        """
        url = f"{self.base_url}{endpoint}"
        send_headers = {"Authorization": self._auth_header}
        send_headers.update(headers or {})
        send_headers["Content-Type"] = (
            MERGE_PATCH_CONTENT_TYPE if method.upper() == "PATCH" else JSON_CONTENT_TYPE
        )
        data = json.dumps(body) if body is not None else None

        try:
            resp = self._session.request(method.upper(), url, headers=send_headers,
                                         data=data, timeout=self._timeout)
        except requests.RequestException as e:
            log.error("Error calling %s: %s", endpoint, e)
            raise UpstreamError(f"CRM API request failed: {e}") from e

        if not 200 <= resp.status_code < 300:
            error_text = resp.text
            log.error("Error calling %s: %d %s", endpoint, resp.status_code, resp.reason)
            raise UpstreamError(
                f"CRM API error: {resp.status_code} {resp.reason} - {error_text}",
                status=resp.status_code, body=error_text,
            )

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as e:
            log.error("Error calling %s: response is not JSON", endpoint)
            raise UpstreamError(f"CRM API returned invalid JSON: {e}",
                                status=resp.status_code, body=resp.text) from e

    # ─── Account Operations ─────────────────────────────────────────────────

    def get_account(self, account_id: str) -> dict:
        return self.request("GET", account_endpoint(account_id))

    def patch_account(self, account_id: str, patch: dict, if_match: str) -> dict:
        """Send a merge-patch for one account with the caller's If-Match precondition."""
        return self.request("PATCH", account_endpoint(account_id), body=patch,
                            headers={"If-Match": if_match})
