"""
controller.py — ScoreWidget: input controller + save protocol

Usage:
    from scorewidget.widget import ScoreWidget

    w = ScoreWidget(AccountsClient("http://localhost:3000"))
    w.init("http://localhost:3000/?accountId=6d3a...")
    w.on_input("150")      # slider + display follow, nothing sent
    w.on_blur()            # save: re-fetch token → PATCH with If-Match

Save flow (one at a time, overlapping triggers are dropped):
  1. GET account again for adminData.updatedOn
  2. If-Match: "<updatedOn>"
  3. PATCH {"extensions": {"CustomScore": n}} as merge-patch
  4. ok  → previous = current = n, parent frame gets accountRefreshEvent
     err → view + current reverted to previous, banner for 5s
"""

import logging
from typing import Optional
from urllib.parse import urlsplit, parse_qs

from scorewidget.core.errors import AccountFetchFailed, PreconditionMissing, ScoreWidgetError
from scorewidget.widget.client import AccountsClient
from scorewidget.widget.events import LoggingParentFrame, ParentFrame, account_refresh_event
from scorewidget.widget.scoring import extract_score, extract_token, format_if_match, validate_score
from scorewidget.widget.state import ERROR_DISMISS_SECONDS, ErrorBanner, WidgetSession, WidgetView

log = logging.getLogger("scorewidget.widget")

MISSING_ACCOUNT_ID = "No accountId provided in URL. Please provide ?accountId=YOUR_ACCOUNT_UUID"


def parse_account_id(url: str) -> Optional[str]:
    """accountId from a launch URL or a bare query string ('?accountId=...')."""
    url = url or ""
    query = urlsplit(url).query
    if not query and "=" in url:
        query = url.lstrip("?")
    values = parse_qs(query).get("accountId") or []
    account_id = values[0].strip() if values else ""
    return account_id or None


class ScoreWidget:

    def __init__(self, client: AccountsClient, view: Optional[WidgetView] = None,
                 parent: Optional[ParentFrame] = None,
                 error_timeout: float = ERROR_DISMISS_SECONDS):
        self.client = client
        self.view = view or WidgetView()
        self.parent = parent or LoggingParentFrame()
        self.banner = ErrorBanner(self.view, error_timeout)
        self.session: Optional[WidgetSession] = None

    # ─── Startup ─────────────────────────────────────────────────────────────

    def init(self, launch_url: str) -> bool:
        account_id = parse_account_id(launch_url)
        if not account_id:
            self.show_error(MISSING_ACCOUNT_ID)
            return False
        self.session = WidgetSession(account_id=account_id)
        return self.load_account()

    def load_account(self) -> bool:
        try:
            account = self.client.get_account(self.session.account_id)
        except AccountFetchFailed as e:
            log.error("Error loading account: %s", e)
            self.show_error(f"Failed to load account: {e}")
            return False

        score = extract_score(account)
        self.session.account = account
        self.session.current_score = score
        self.session.previous_score = score
        self.view.render(score)
        log.info("Account loaded: %s (score %d)", self.session.account_id, score)
        return True

    # ─── Input events (synchronous, no network) ──────────────────────────────

    def on_input(self, raw) -> int:
        value = validate_score(raw)
        self.view.input_value = "" if raw is None else str(raw)
        self._set_current(value)
        self.view.mirror_from_input(value)
        return value

    def on_slider_input(self, raw) -> int:
        value = validate_score(raw)
        self._set_current(value)
        self.view.mirror_from_slider(value)
        return value

    def on_focus(self):
        self.view.input_focused = True
        self.view.edit_button_hidden = True

    def on_edit_click(self):
        self.view.edit_button_hidden = True
        self.on_focus()

    # ─── Save triggers ───────────────────────────────────────────────────────

    def on_blur(self) -> bool:
        self.view.input_focused = False
        saved = self.save()
        # Edit button comes back on hover once focus is gone
        self.view.edit_button_hidden = False
        return saved

    def on_keypress(self, key: str) -> bool:
        if key != "Enter":
            return False
        return self.save()

    def on_slider_release(self) -> bool:
        """mouseup / touchend on the slider."""
        return self.save()

    @property
    def is_saving(self) -> bool:
        return self.session is not None and self.session.is_saving

    def save(self) -> bool:
        """Persist the input's score. Returns True only when a PATCH was accepted."""
        session = self.session
        if session is None:
            log.warning("Save requested before an account was loaded")
            return False
        if not session.save_slot.acquire(blocking=False):
            log.info("Save already in progress, skipping...")
            return False
        try:
            new_score = validate_score(self.view.input_value)
            if new_score == session.previous_score:
                log.info("No change in score, skipping save")
                return False
            return self._save(session, new_score)
        finally:
            session.save_slot.release()

    def _save(self, session: WidgetSession, new_score: int) -> bool:
        self.view.loading_visible = True
        self.banner.hide()
        try:
            # Fresh token every time: the account may have changed since load
            fresh = self.client.get_account(session.account_id)
            token = extract_token(fresh)
            if not token:
                raise PreconditionMissing("No updatedOn timestamp found for If-Match header")
            if_match = format_if_match(token)

            log.info("Saving score: %d with If-Match: %s", new_score, if_match)
            updated = self.client.patch_score(session.account_id, new_score, if_match)

            session.previous_score = new_score
            session.current_score = new_score
            if updated:
                session.account = updated
            self.view.render(new_score)
            log.info("Score saved successfully: %d", new_score)
            self._notify_parent()
            return True
        except ScoreWidgetError as e:
            log.error("Error saving score: %s", e)
            self._revert(session)
            self.show_error(f"Failed to save. Value reverted. {e}")
            return False
        finally:
            self.view.loading_visible = False

    # ─── Helpers ─────────────────────────────────────────────────────────────

    def _set_current(self, value: int):
        if self.session is not None:
            self.session.current_score = value

    def _revert(self, session: WidgetSession):
        session.current_score = session.previous_score
        self.view.render(session.previous_score)

    def _notify_parent(self):
        self.parent.post_message(account_refresh_event(), "*")
        log.info("Refresh event triggered in parent CRM UI")

    def show_error(self, message: str):
        self.banner.show(message)

    def hide_error(self):
        self.banner.hide()
