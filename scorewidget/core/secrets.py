"""
secrets.py — Centralized Secret Management for the CRM Score Widget proxy

Single source of truth for the CRM credentials and proxy settings.

Env vars (or server/.env, loaded by python-dotenv at startup):
  CRM_BASE_URL        — Upstream CRM tenant base URL (required)
  CRM_USERNAME        — Basic Auth user for the CRM API (required)
  CRM_PASSWORD        — Basic Auth password for the CRM API (required)
  PORT                — Proxy listen port (default 3000)
  CORS_ALLOW_ORIGINS  — Comma separated allowed origins (default *)

Security:
  - Secrets are never logged in full (masked to first 8 chars)
  - Password is reported as set / not set only
  - Missing required secrets stop the process before it binds a port
"""

import os
import logging

from scorewidget.core.errors import ConfigMissing

log = logging.getLogger("scorewidget.secrets")

DEFAULT_PORT = 3000

# ─── Secret Definitions ─────────────────────────────────────────────────────

_REGISTRY = {
    "crm_base_url": {
        "env": "CRM_BASE_URL",
        "required": True,
        "desc": "Upstream CRM API base URL",
    },
    "crm_username": {
        "env": "CRM_USERNAME",
        "required": True,
        "desc": "CRM API Basic Auth username",
    },
    "crm_password": {
        "env": "CRM_PASSWORD",
        "required": True,
        "desc": "CRM API Basic Auth password",
        "sensitive": True,
    },
    "port": {
        "env": "PORT",
        "required": False,
        "desc": "Proxy listen port",
        "default": str(DEFAULT_PORT),
    },
    "cors_origins": {
        "env": "CORS_ALLOW_ORIGINS",
        "required": False,
        "desc": "Allowed CORS origins (comma separated)",
        "default": "*",
    },
}


# ─── Public API ──────────────────────────────────────────────────────────────

def get_key(name: str) -> str:
    """Get a secret value by registry name. Returns empty string if not set."""
    entry = _REGISTRY.get(name)
    if not entry:
        log.warning("Unknown secret requested: %s", name)
        return ""

    val = os.environ.get(entry["env"], "").strip()
    if not val and "default" in entry:
        val = entry["default"]
    return val


def mask(value: str) -> str:
    """Mask a secret for safe logging. Shows first 8 chars."""
    if not value:
        return "(not set)"
    if len(value) <= 12:
        return value[:4] + "****"
    return value[:8] + "****" + f"({len(value)} chars)"


def validate_all() -> dict:
    """Validate all secrets. Returns status report."""
    results = {}
    warnings = []
    for name, entry in _REGISTRY.items():
        val = get_key(name)
        is_set = bool(val)
        results[name] = {
            "set": is_set,
            "env": entry["env"],
            "desc": entry["desc"],
            "masked": mask(val) if not entry.get("sensitive") else ("✅ set" if is_set else "❌ not set"),
            "required": entry.get("required", False),
        }
        if entry.get("required") and not is_set:
            warnings.append(f"REQUIRED secret missing: {entry['env']} ({entry['desc']})")

    return {
        "secrets": results,
        "total": len(results),
        "set": sum(1 for r in results.values() if r["set"]),
        "missing": sum(1 for r in results.values() if not r["set"]),
        "warnings": warnings,
    }


def startup_check() -> dict:
    """Run on startup. Logs warnings for missing critical secrets."""
    report = validate_all()
    log.info("Secrets: %d/%d configured", report["set"], report["total"])
    for w in report["warnings"]:
        log.warning("SECRET: %s", w)
    return report


def _parse_port(raw: str) -> int:
    try:
        port = int(raw)
    except (TypeError, ValueError):
        log.warning("Invalid PORT %r — falling back to %d", raw, DEFAULT_PORT)
        return DEFAULT_PORT
    if not 0 < port < 65536:
        log.warning("PORT %d out of range — falling back to %d", port, DEFAULT_PORT)
        return DEFAULT_PORT
    return port


def load_config() -> dict:
    """
    Build the proxy configuration from the environment.

    Raises:
        ConfigMissing: if CRM_BASE_URL, CRM_USERNAME or CRM_PASSWORD is empty.
    """
    missing = [entry["env"] for name, entry in _REGISTRY.items()
               if entry.get("required") and not get_key(name)]
    if missing:
        raise ConfigMissing(missing)

    origins = [o.strip() for o in get_key("cors_origins").split(",") if o.strip()]
    return {
        "base_url": get_key("crm_base_url").rstrip("/"),
        "username": get_key("crm_username"),
        "password": get_key("crm_password"),
        "port": _parse_port(get_key("port")),
        "cors_origins": origins or ["*"],
    }
