"""
Structured logging configuration for the CRM Score Widget proxy.
Import and call setup_logging() once at app startup.
"""
import logging
import logging.handlers
import os
import json
from datetime import datetime, timezone

LOG_DIR = os.environ.get("SCOREWIDGET_LOG_DIR", "")

_TRUTHY = ("1", "true", "yes", "on")


class JSONFormatter(logging.Formatter):
    """Structured JSON log lines for machine parsing."""
    def format(self, record):
        entry = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "module": record.module,
            "func": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        # Merge extra fields
        for key in ("route", "method", "status", "duration_ms", "account_id"):
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """Readable console format with color."""
    COLORS = {
        "DEBUG": "\033[36m", "INFO": "\033[32m",
        "WARNING": "\033[33m", "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record):
        color = self.COLORS.get(record.levelname, "")
        ts = datetime.now().strftime("%H:%M:%S")
        return f"{color}{ts} [{record.levelname[0]}] {record.name}: {record.getMessage()}{self.RESET}"


def setup_logging(level=None, json_logs=None, log_dir=None):
    """
    Configure logging for the proxy process.

    Args:
        level: Override log level (default: from LOG_LEVEL env or INFO)
        json_logs: Force JSON format (default: LOG_JSON env)
        log_dir: Directory for a rotating JSON log file (default: SCOREWIDGET_LOG_DIR, off when empty)
    """
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO").upper()
    if json_logs is None:
        json_logs = os.environ.get("LOG_JSON", "").lower() in _TRUTHY
    if log_dir is None:
        log_dir = LOG_DIR

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    root.handlers.clear()

    # Console handler
    console = logging.StreamHandler()
    console.setFormatter(JSONFormatter() if json_logs else HumanFormatter())
    root.addHandler(console)

    # File handler — rotates at 5MB, keeps 5 backups
    if log_dir:
        try:
            os.makedirs(log_dir, exist_ok=True)
            fh = logging.handlers.RotatingFileHandler(
                os.path.join(log_dir, "scorewidget.log"),
                maxBytes=5_000_000, backupCount=5,
            )
            fh.setFormatter(JSONFormatter())
            root.addHandler(fh)
        except OSError as e:
            logging.getLogger("scorewidget").warning("File logging disabled: %s", e)

    # Quiet noisy libs
    for name in ("urllib3", "werkzeug"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("scorewidget").info("Logging initialized", extra={"level": level})
