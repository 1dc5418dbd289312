"""
Tests for structured logging helpers
"""

import json
import logging

import pytest

from utils.logging_config import (
    ErrorTracker,
    SessionContextFilter,
    StructuredFormatter,
    bind_session,
    log_auth_event,
    log_execution_time,
)


def make_record(**extra):
    record = logging.LogRecord("test", logging.INFO, __file__, 10, "Auth event: login", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    """Test JSON output"""

    def test_basic_fields(self):
        output = json.loads(StructuredFormatter().format(make_record()))

        assert output["level"] == "INFO"
        assert output["logger"] == "test"
        assert output["message"] == "Auth event: login"

    def test_credentials_are_redacted(self):
        record = make_record(user_id="u1", token="abc", password="secret", Authorization="Bearer abc")

        output = StructuredFormatter().format(record)
        data = json.loads(output)

        assert data["extra"]["user_id"] == "u1"
        assert data["extra"]["token"] == "***"
        assert data["extra"]["password"] == "***"
        assert "secret" not in output
        assert "Bearer abc" not in output


class TestLogHelpers:
    """Test event helpers"""

    def test_log_auth_event(self, caplog):
        logger = logging.getLogger("test.auth")

        with caplog.at_level(logging.INFO, logger="test.auth"):
            log_auth_event(logger, "login", user_id="u1", role="Manager")

        record = caplog.records[0]
        assert record.getMessage() == "Auth event: login"
        assert record.auth_event_type == "login"
        assert record.user_id == "u1"

    def test_error_tracker_counts(self):
        tracker = ErrorTracker(logging.getLogger("test.errors"))

        tracker.track_error(ValueError("bad"), "page_render")
        tracker.track_error(ValueError("bad"), "page_render")

        assert tracker.error_counts == {"ValueError:page_render": 2}

    def test_execution_time_reraises(self, caplog):
        logger = logging.getLogger("test.timing")

        with caplog.at_level(logging.DEBUG, logger="test.timing"):
            with pytest.raises(RuntimeError):
                with log_execution_time(logger, "fetch"):
                    raise RuntimeError("down")

        record = caplog.records[0]
        assert record.levelno == logging.WARNING
        assert record.status == "error"
        assert record.error_type == "RuntimeError"


class TestSessionBinding:
    """Test records carry the session that produced them"""

    def test_bound_fields_are_stamped(self):
        record = make_record()

        with bind_session(user="u1", role="Manager"):
            SessionContextFilter().filter(record)

        assert record.session_user == "u1"
        assert record.session_role == "Manager"

    def test_fields_dropped_after_block(self):
        with bind_session(user="u1"):
            pass
        record = make_record()

        SessionContextFilter().filter(record)

        assert not hasattr(record, "session_user")

    def test_nested_binding_extends_outer(self):
        record = make_record()

        with bind_session(user="u1"):
            with bind_session(page="/dashboard"):
                SessionContextFilter().filter(record)

        assert record.session_user == "u1"
        assert record.session_page == "/dashboard"

    def test_explicit_extra_wins(self):
        record = make_record(session_user="override")

        with bind_session(user="u1"):
            SessionContextFilter().filter(record)

        assert record.session_user == "override"

    def test_stamped_fields_reach_json_output(self):
        record = make_record()

        with bind_session(user="u1", role="Employee"):
            SessionContextFilter().filter(record)
        data = json.loads(StructuredFormatter().format(record))

        assert data["extra"]["session_user"] == "u1"
        assert data["extra"]["session_role"] == "Employee"


if __name__ == "__main__":
    pytest.main([__file__])
