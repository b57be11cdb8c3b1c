"""Error Hierarchy — status codes and the {error, status} response envelope."""

from venturenet.core.errors import (
    AuthenticationError, BusinessRuleError, ConflictError, DatabaseError,
    ErrorCategory, PermissionDeniedError, RateLimitError, ResourceNotFoundError,
    ValidationError,
)


def test_to_response_envelope():
    body = BusinessRuleError("Event is full", "EVENT_FULL").to_response()
    assert body["error"] == "Event is full"
    assert body["status"] == 400
    assert body["code"] == "EVENT_FULL"
    assert body["category"] == "business_rule"
    assert "timestamp" in body
    assert "retry_after_seconds" not in body


def test_http_status_per_error():
    assert ValidationError("bad").http_status == 400
    assert ConflictError("dup").http_status == 400
    assert AuthenticationError().http_status == 401
    assert PermissionDeniedError().http_status == 403
    assert ResourceNotFoundError("Event").http_status == 404
    assert RateLimitError(10).http_status == 429
    assert DatabaseError("boom", "commit").http_status == 503


def test_not_found_message_names_resource():
    err = ResourceNotFoundError("User", "123")
    assert err.message == "User not found"
    assert err.resource_id == "123"


def test_rate_limit_carries_retry_after():
    err = RateLimitError(17)
    assert err.category is ErrorCategory.RATE_LIMIT
    assert err.to_response()["retry_after_seconds"] == 17
