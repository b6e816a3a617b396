"""
Event logger utility for authentication events.
"""
from typing import Optional
from fastapi import Request
import sys
import logging
import os

from ..config import settings
from ..models import User

logger = logging.getLogger(__name__)


ALLOWED_EVENT_TYPES = {
    "register",
    "login_success",
    "login_failure",
    "token_refresh",
    "logout",
}


def configure_event_log_file(log_dir: Optional[str] = None) -> Optional[logging.Handler]:
    """
    Also write auth events to ``<log_dir>/auth_events.log``.

    Continues with stdout logging only if the directory cannot be created.

    Returns:
        The attached file handler, or None if file logging is off or failed
    """
    log_dir = log_dir or settings.LOG_DIR
    if not log_dir:
        return None

    path = os.path.join(log_dir, "auth_events.log")
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == os.path.abspath(path):
            return handler

    try:
        os.makedirs(log_dir, exist_ok=True)
        handler = logging.FileHandler(path)
    except OSError as e:
        print(f"WARNING: Could not set up file logging: {e}", file=sys.stderr)
        return None

    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s:%(message)s"))
    logger.addHandler(handler)
    return handler


def client_ip(request: Request) -> Optional[str]:
    """Client address, falling back to the first X-Forwarded-For entry."""
    ip_address = None
    if request.client:
        ip_address = request.client.host

    # Check for X-Forwarded-For header (proxy/load balancer scenarios)
    forwarded = request.headers.get("x-forwarded-for")
    if not ip_address and forwarded:
        ip_address = forwarded.split(",")[0].strip()

    return ip_address


def log_auth_event(
    event_type: str,
    request: Request,
    user: Optional[User] = None,
    email: Optional[str] = None,
) -> None:
    """
    Log an authentication event.

    Args:
        event_type: One of: register, login_success, login_failure,
                    token_refresh, logout
        request: FastAPI Request object
        user: User the event concerns, if known
        email: Email to report when there is no user (failed login)

    Raises:
        ValueError: If event_type is invalid
    """
    if event_type not in ALLOWED_EVENT_TYPES:
        raise ValueError(
            f"Invalid event_type '{event_type}'. Must be one of: {', '.join(sorted(ALLOWED_EVENT_TYPES))}"
        )

    logger.info(
        "AUTH %s user_id=%s email=%s ip=%s user_agent=%s",
        event_type,
        user.id if user else None,
        user.email if user else email,
        client_ip(request),
        request.headers.get("user-agent"),
    )
