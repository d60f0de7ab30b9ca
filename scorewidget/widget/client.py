"""
client.py — Widget-side HTTP client for the account proxy

Talks to the proxy (never to the CRM directly), so no credentials here:
    GET   {proxy}/api/accounts/<id>
    PATCH {proxy}/api/accounts/<id>   If-Match + merge-patch body

Dependencies: requests
"""

import json
import logging
from typing import Optional
from urllib.parse import quote

import requests

from scorewidget.core.errors import AccountFetchFailed, SaveFailed

log = logging.getLogger("scorewidget.widget.client")

MERGE_PATCH_CONTENT_TYPE = "application/merge-patch+json"


def score_patch(score: int) -> dict:
    """Merge-patch body carrying only the changed field."""
    return {"extensions": {"CustomScore": score}}


class AccountsClient:

    def __init__(self, base_url: str = "", session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None):
        self.base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout

    def _url(self, account_id: str) -> str:
        return f"{self.base_url}/api/accounts/{quote(str(account_id), safe='')}"

    def get_account(self, account_id: str) -> dict:
        try:
            resp = self._session.request("GET", self._url(account_id), timeout=self._timeout)
        except requests.RequestException as e:
            raise AccountFetchFailed(str(e)) from e
        if not resp.ok:
            raise AccountFetchFailed(f"{resp.status_code} {resp.reason}")
        try:
            return resp.json()
        except ValueError as e:
            raise AccountFetchFailed(f"invalid JSON from proxy: {e}") from e

    def patch_score(self, account_id: str, score: int, if_match: str) -> dict:
        """PATCH the new score. Returns the updated account ({} if the body is empty)."""
        headers = {
            "Content-Type": MERGE_PATCH_CONTENT_TYPE,
            "If-Match": if_match,
        }
        try:
            resp = self._session.request("PATCH", self._url(account_id), headers=headers,
                                         data=json.dumps(score_patch(score)), timeout=self._timeout)
        except requests.RequestException as e:
            raise SaveFailed(f"Save failed: {e}") from e
        if not resp.ok:
            error_text = resp.text
            raise SaveFailed(f"Save failed: {resp.status_code} {error_text}",
                             status=resp.status_code, body=error_text)
        try:
            return resp.json() if resp.content else {}
        except ValueError:
            log.warning("Save succeeded but response was not JSON")
            return {}
