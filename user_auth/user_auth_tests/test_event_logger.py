"""
Unit tests for event logger utility.
"""
import logging
import pytest
from unittest.mock import Mock

from user_auth.user_auth.auth_service.utils import event_logger
from user_auth.user_auth.auth_service.utils.event_logger import (
    log_auth_event,
    client_ip,
    configure_event_log_file,
)
from user_auth.user_auth.auth_service.models import User

LOGGER_NAME = event_logger.__name__


@pytest.fixture
def test_user():
    return User(id=7, name="Test User", email="test@example.com", password="hashed_password")


@pytest.fixture
def mock_request():
    """Create a mock FastAPI Request object."""
    request = Mock()
    request.client = Mock()
    request.client.host = "192.168.1.1"
    request.headers = {"user-agent": "Mozilla/5.0 Test Browser"}
    return request


def test_log_auth_event_writes_record(caplog, test_user, mock_request):
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)

    log_auth_event("login_success", mock_request, user=test_user)

    assert len(caplog.records) == 1
    message = caplog.records[0].getMessage()
    assert message.startswith("AUTH login_success")
    assert "user_id=7" in message
    assert "email=test@example.com" in message
    assert "ip=192.168.1.1" in message
    assert "Mozilla/5.0 Test Browser" in message


def test_log_auth_event_never_logs_password(caplog, test_user, mock_request):
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)

    log_auth_event("register", mock_request, user=test_user)

    assert "hashed_password" not in caplog.text


def test_log_auth_event_without_user(caplog, mock_request):
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)

    log_auth_event("login_failure", mock_request, email="ghost@example.com")

    message = caplog.records[0].getMessage()
    assert "user_id=None" in message
    assert "email=ghost@example.com" in message


def test_log_auth_event_invalid_event_type(test_user, mock_request):
    with pytest.raises(ValueError) as exc_info:
        log_auth_event("invalid_event", mock_request, user=test_user)

    assert "Invalid event_type" in str(exc_info.value)


def test_client_ip_uses_forwarded_header_without_client():
    request = Mock()
    request.client = None
    request.headers = {"x-forwarded-for": "203.0.113.1, 198.51.100.1"}

    assert client_ip(request) == "203.0.113.1"


def test_client_ip_prefers_direct_client(mock_request):
    mock_request.headers = {"x-forwarded-for": "203.0.113.1"}

    assert client_ip(mock_request) == "192.168.1.1"


def test_client_ip_missing():
    request = Mock()
    request.client = None
    request.headers = {}

    assert client_ip(request) is None


def test_configure_event_log_file(tmp_path, test_user, mock_request):
    handler = configure_event_log_file(str(tmp_path / "logs"))
    try:
        assert handler is not None
        # Idempotent for the same directory
        assert configure_event_log_file(str(tmp_path / "logs")) is handler

        logging.getLogger(LOGGER_NAME).setLevel(logging.INFO)
        log_auth_event("logout", mock_request, user=test_user)
        handler.flush()

        content = (tmp_path / "logs" / "auth_events.log").read_text()
        assert "AUTH logout user_id=7" in content
    finally:
        logging.getLogger(LOGGER_NAME).removeHandler(handler)
        handler.close()


def test_configure_event_log_file_disabled(monkeypatch):
    monkeypatch.setattr(event_logger.settings, "LOG_DIR", None)

    assert configure_event_log_file() is None
