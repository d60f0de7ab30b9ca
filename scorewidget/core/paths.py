"""
scorewidget/core/paths.py — Centralized Path Configuration

Single source of truth for the directories the proxy serves from.
The widget page lives in public/ at the project root; SCOREWIDGET_PUBLIC_DIR
overrides it (e.g. when the assets are built elsewhere).
"""

import os
import logging

log = logging.getLogger("scorewidget.paths")

# ── Project Root ──────────────────────────────────────────────────────────────
_THIS_FILE = os.path.abspath(__file__)
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(_THIS_FILE)))


def _resolve_public_dir() -> str:
    env_dir = os.environ.get("SCOREWIDGET_PUBLIC_DIR", "")
    if env_dir and os.path.isdir(env_dir):
        return env_dir
    return os.path.join(PROJECT_ROOT, "public")


PUBLIC_DIR = _resolve_public_dir()
INDEX_FILE = "index.html"


def validate_paths() -> dict:
    """Runtime validation — call at app startup to catch a missing widget bundle.

    Returns:
        {"ok": bool, "errors": [str], "resolved": {name: path}}
    """
    result = {"ok": True, "errors": [], "resolved": {}}
    checks = {
        "PUBLIC_DIR": PUBLIC_DIR,
        "INDEX_PATH": os.path.join(PUBLIC_DIR, INDEX_FILE),
    }
    for name, path in checks.items():
        result["resolved"][name] = path
        if not os.path.exists(path):
            result["errors"].append(f"{name} not found: {path}")
            result["ok"] = False
    return result
