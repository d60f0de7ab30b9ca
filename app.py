#!/usr/bin/env python3
"""
CRM Score Widget — Proxy Entry Point
Creates the Flask app, wires the CRM client, and registers the proxy Blueprint.

Run:
    python app.py                       (reads .env, listens on $PORT, default 3000)
    gunicorn "app:create_app()"
"""

import sys
import logging

from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS

from logging_config import setup_logging
from scorewidget.core.errors import ConfigMissing
from scorewidget.core.secrets import load_config, mask, startup_check
from scorewidget.integrations.crm import CRMClient

log = logging.getLogger("scorewidget")


def create_app(config=None, crm_client=None):
    """Application factory.

    Raises ConfigMissing when no config is passed and the CRM secrets are unset.
    """
    if config is None:
        config = load_config()

    app = Flask(__name__)
    app.config["CRM_BASE_URL"] = config["base_url"]
    app.config["PORT"] = config.get("port")

    CORS(app, origins=config.get("cors_origins") or ["*"])

    if crm_client is None:
        crm_client = CRMClient(config["base_url"], config["username"], config["password"])
    app.extensions["crm_client"] = crm_client

    log.info("✅ CRM API configured: %s", config["base_url"])
    log.info("✅ Username: %s", mask(config["username"]))

    # ── Widget bundle check ──────────────────────────────────────────────────
    from scorewidget.core.paths import validate_paths
    checks = validate_paths()
    for err in checks["errors"]:
        log.warning("⚠️  %s", err)

    from scorewidget.api.proxy import bp
    app.register_blueprint(bp)

    return app


def main():
    load_dotenv()
    setup_logging()
    startup_check()

    try:
        config = load_config()
    except ConfigMissing as e:
        log.error("❌ ERROR: Missing required environment variables!")
        log.error("Please ensure the following are set in .env:")
        for env in e.missing:
            log.error("  - %s", env)
        sys.exit(1)

    app = create_app(config)
    port = config["port"]
    log.info("🚀 Server running on http://localhost:%d", port)
    log.info("📊 Widget URL: http://localhost:%d/?accountId=YOUR_ACCOUNT_UUID", port)
    app.run(host="0.0.0.0", port=port, debug=False)


if __name__ == "__main__":
    main()
