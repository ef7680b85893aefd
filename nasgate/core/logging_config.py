"""
Logging setup and audit helpers.

Application modules log through ``logging.getLogger(__name__)``. Security-relevant
events (authentication, file access, administration, system lifecycle) go through
the helpers below, which write to the ``nasgate.audit`` logger with a ``category``
so the access log can be filtered or shipped separately.
"""

import logging
import logging.handlers
import os
import sys
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from nasgate.core.config import Settings

AUDIT_LOGGER_NAME = "nasgate.audit"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
AUDIT_FORMAT = "%(asctime)s [%(levelname)s] %(category)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
MAX_LOG_BYTES = 5 * 1024 * 1024

audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)
logger = logging.getLogger(__name__)


class _CategoryDefault(logging.Filter):
    """Give records logged outside the audit helpers a category so AUDIT_FORMAT never fails."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "category"):
            record.category = "app"
        return True


def _rotating(path: str, backups: int, level: int, fmt: str) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=MAX_LOG_BYTES, backupCount=backups, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
    handler.addFilter(_CategoryDefault())
    return handler


def configure_logging(settings: "Settings") -> None:
    """
    Install console, combined, error and access handlers on the ``nasgate`` logger tree.

    Safe to call more than once; handlers from a previous call are replaced.
    """
    level = getattr(logging, settings.LOG_LEVEL, logging.INFO)
    app_logger = logging.getLogger("nasgate")
    app_logger.setLevel(level)
    for handler in list(app_logger.handlers) + list(audit_logger.handlers):
        handler.close()
    app_logger.handlers.clear()
    audit_logger.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    app_logger.addHandler(console)

    try:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
    except OSError as e:
        logger.warning("Log directory %s unavailable, logging to console only: %s", settings.LOG_DIR, e)
        return

    app_logger.addHandler(
        _rotating(os.path.join(settings.LOG_DIR, "combined.log"), 5, level, LOG_FORMAT)
    )
    app_logger.addHandler(
        _rotating(os.path.join(settings.LOG_DIR, "error.log"), 5, logging.ERROR, LOG_FORMAT)
    )
    audit_logger.addHandler(
        _rotating(os.path.join(settings.LOG_DIR, "access.log"), 10, logging.INFO, AUDIT_FORMAT)
    )


def _details(details: dict[str, Any]) -> str:
    return " ".join(f"{k}={v}" for k, v in details.items() if v not in (None, ""))


def log_auth(action: str, username: str | None, ip: str, success: bool = True, details: str = "") -> None:
    audit_logger.info(
        "%s %s",
        action,
        _details({"username": username or "anonymous", "ip": ip, "success": success, "details": details}),
        extra={"category": "authentication"},
    )


def log_file_access(action: str, path: str, username: str | None, ip: str, success: bool = True) -> None:
    audit_logger.info(
        "%s %s",
        action,
        _details({"path": path, "username": username, "ip": ip, "success": success}),
        extra={"category": "file_access"},
    )


def log_admin(action: str, admin_user: str | None, target: str, ip: str, details: str = "") -> None:
    audit_logger.info(
        "%s %s",
        action,
        _details({"admin": admin_user, "target": target, "ip": ip, "details": details}),
        extra={"category": "administration"},
    )


def log_system(message: str, **details: Any) -> None:
    audit_logger.info("%s %s", message, _details(details), extra={"category": "system"})


def log_error(error: BaseException, context: str, username: str | None = None, ip: str = "") -> None:
    """Full diagnostic detail (traceback included) stays in the server logs."""
    audit_logger.error(
        "%s %s",
        context,
        _details({"username": username, "ip": ip, "error": repr(error)}),
        exc_info=(type(error), error, error.__traceback__),
        extra={"category": "error"},
    )
