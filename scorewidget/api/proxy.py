"""
proxy.py — CRM Account Proxy Blueprint

Routes:
    GET   /health                 — liveness
    GET   /api/accounts/<id>      — upstream account JSON, verbatim
    PATCH /api/accounts/<id>      — merge-patch pass-through (If-Match required)
    GET   /<path>                 — widget assets from public/, SPA fallback to index.html

The CRMClient lives in app.extensions["crm_client"]; it is built once by
create_app() and carries the only shared state (the Authorization header).
"""

import os
import time
import logging

from flask import Blueprint, current_app, jsonify, request, send_from_directory

from scorewidget.core import paths
from scorewidget.core.errors import UpstreamError

log = logging.getLogger("scorewidget.proxy")

bp = Blueprint("proxy", __name__)

HEALTH_MESSAGE = "CRM Scoring Widget API is running"
IF_MATCH_REQUIRED = "If-Match header is required for updates"
BODY_REQUIRED = "Request body must be a JSON object"

_QUIET_PATHS = ("/health",)


def _crm():
    return current_app.extensions["crm_client"]


# ── Request-level structured logging ────────────────────────────────────────

@bp.before_app_request
def _log_request_start():
    request._start_time = time.time()


@bp.after_app_request
def _log_request_end(response):
    if hasattr(request, "_start_time"):
        duration_ms = round((time.time() - request._start_time) * 1000, 1)
        is_asset = not request.path.startswith("/api/") and "." in request.path.rsplit("/", 1)[-1]
        if request.path not in _QUIET_PATHS and not is_asset:
            log.info("%s %s → %d (%.0fms)",
                     request.method, request.path, response.status_code, duration_ms,
                     extra={"route": request.path, "method": request.method,
                            "status": response.status_code, "duration_ms": duration_ms})
    return response


# ═══════════════════════════════════════════════════════════════════════
# Health
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/health")
def health():
    return jsonify({"status": "ok", "message": HEALTH_MESSAGE})


# ═══════════════════════════════════════════════════════════════════════
# Accounts
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/api/accounts/<account_id>", methods=["GET"])
def get_account(account_id):
    log.info("Fetching account: %s", account_id, extra={"account_id": account_id})
    try:
        account = _crm().get_account(account_id)
    except UpstreamError as e:
        log.error("Error fetching account: %s", e, extra={"account_id": account_id})
        return jsonify({"error": str(e)}), 500
    return jsonify(account)


@bp.route("/api/accounts/<account_id>", methods=["PATCH"])
def patch_account(account_id):
    if_match = request.headers.get("If-Match")
    if not if_match:
        return jsonify({"error": IF_MATCH_REQUIRED}), 400

    # Accept application/json and application/merge-patch+json alike
    body = request.get_json(force=True, silent=True)
    if not isinstance(body, dict):
        return jsonify({"error": BODY_REQUIRED}), 400

    log.info("Updating account: %s", account_id, extra={"account_id": account_id})
    log.info("If-Match: %s", if_match)
    log.info("Body: %s", body)

    try:
        updated = _crm().patch_account(account_id, body, if_match)
    except UpstreamError as e:
        log.error("Error updating account: %s", e, extra={"account_id": account_id})
        return jsonify({"error": str(e)}), 500
    return jsonify(updated)


# ═══════════════════════════════════════════════════════════════════════
# Widget page (static assets + SPA fallback)
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/", defaults={"path": ""})
@bp.route("/<path:path>")
def widget_page(path):
    public_dir = paths.PUBLIC_DIR
    if path and os.path.isfile(os.path.join(public_dir, path)):
        return send_from_directory(public_dir, path)
    return send_from_directory(public_dir, paths.INDEX_FILE)
