"""
events.py — Outbound notifications to the hosting CRM frame

After a successful save the widget tells its host to refresh the account.
The message schema is fixed; how it travels (window.postMessage in the
browser, a queue, a log line) is up to the ParentFrame implementation.
"""

import logging
from abc import ABC, abstractmethod

log = logging.getLogger("scorewidget.widget.events")

ACCOUNT_REFRESH_EVENT = {
    "event": "accountRefreshEvent",
    "operation": "triggerCustomAction",
}


def account_refresh_event() -> dict:
    return dict(ACCOUNT_REFRESH_EVENT)


class ParentFrame(ABC):
    """Sink for cross-window messages."""

    @abstractmethod
    def post_message(self, message: dict, target_origin: str = "*"):
        ...


class LoggingParentFrame(ParentFrame):
    """Default sink when the widget runs outside a browser frame."""

    def post_message(self, message: dict, target_origin: str = "*"):
        log.info("Refresh event posted to parent frame (%s): %s", target_origin, message)
