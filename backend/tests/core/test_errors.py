"""Error Hierarchy — tests for codes, envelopes, and log fields.

Tests cover:
    - Each error carries its code, category, severity, and HTTP status
    - to_response() never includes debug_info
    - to_log_extra() includes only the ids that are set
    - PreconditionFailedError keeps the observed status
"""

from reconciler.core.errors import (
    ConfigurationError, DatabaseError, ErrorCategory, ErrorContext,
    ErrorSeverity, PreconditionFailedError, ReconcilerError,
    ResourceNotFoundError, StatusValidationError,
)


def test_configuration_error_is_critical():
    err = ConfigurationError("must be > 0", "event_check_interval_seconds")
    assert err.code == "CONFIGURATION_ERROR"
    assert err.category == ErrorCategory.CONFIGURATION
    assert err.severity == ErrorSeverity.CRITICAL
    assert "event_check_interval_seconds" in err.message


def test_precondition_failed_keeps_current_status():
    err = PreconditionFailedError("Playlist", "p1", "completed")
    assert err.current_status == "completed"
    assert err.http_status == 412
    assert err.category == ErrorCategory.CONFLICT


def test_all_errors_share_base():
    for err in (
        ConfigurationError("x", "s"),
        PreconditionFailedError("Event", "e", "cancelled"),
        ResourceNotFoundError("Event", "e"),
        StatusValidationError("bad", "status"),
        DatabaseError("down", "query"),
    ):
        assert isinstance(err, ReconcilerError)


def test_to_response_omits_debug_info():
    ctx = ErrorContext(event_id="e1", debug_info={"sql": "secret"})
    body = DatabaseError("down", "query", ctx).to_response()
    assert body["error"]["code"] == "DATABASE_ERROR"
    assert body["error"]["context"]["event_id"] == "e1"
    assert "secret" not in str(body)


def test_to_log_extra_only_set_ids():
    ctx = ErrorContext(pass_id="p", playlist_id="pl")
    extra = ResourceNotFoundError("Playlist", "pl", ctx).to_log_extra()
    assert extra == {
        "error_code": "RESOURCE_NOT_FOUND", "pass_id": "p", "playlist_id": "pl",
    }
