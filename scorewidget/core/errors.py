"""
errors.py — Exception types shared by the proxy and the widget

Proxy side:
  ConfigMissing       — required CRM secrets not set (fatal at startup)
  UpstreamError       — CRM API returned non-2xx, was unreachable, or sent bad JSON

Widget side:
  AccountFetchFailed  — GET /api/accounts/<id> through the proxy failed
  PreconditionMissing — account has no adminData.updatedOn for If-Match
  SaveFailed          — PATCH rejected by the proxy / upstream
"""

from typing import Optional


class ScoreWidgetError(Exception):
    """Base class for every error raised by this package."""


class ConfigMissing(ScoreWidgetError):
    def __init__(self, missing: list):
        self.missing = list(missing)
        super().__init__("Missing required environment variables: " + ", ".join(self.missing))


class UpstreamError(ScoreWidgetError):
    """The CRM API call did not produce a usable 2xx JSON response."""

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class AccountFetchFailed(ScoreWidgetError):
    pass


class PreconditionMissing(ScoreWidgetError):
    pass


class SaveFailed(ScoreWidgetError):
    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body
