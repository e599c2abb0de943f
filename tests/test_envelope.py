"""
Tests for response envelope normalisation.
"""
from lapin_ops.api.envelope import (
    ApiResult, from_envelope, unwrap_error, to_dict,
    INVALID_JSON, APPLICATION_ERROR, UNKNOWN_ERROR_MESSAGE,
)


class TestUnwrapError:
    """Both legacy error shapes give the same message."""

    def test_string_and_object_match(self):
        """'no permission' and {'message': 'no permission'} agree."""
        assert unwrap_error("no permission") == unwrap_error({"message": "no permission"}) == "no permission"

    def test_empty_uses_fallback(self):
        """Missing error falls back to the envelope message, then a default."""
        assert unwrap_error(None, fallback="失敗") == "失敗"
        assert unwrap_error("") == UNKNOWN_ERROR_MESSAGE
        assert unwrap_error({}) == UNKNOWN_ERROR_MESSAGE


class TestFromEnvelope:
    """Decoded bodies become ApiResult."""

    def test_success(self):
        """success=true keeps data and message."""
        result = from_envelope({"success": True, "data": {"id": "P1"}, "message": "ok"})

        assert result.success is True
        assert result.get("id") == "P1"
        assert result.message == "ok"
        assert result.error_message == ""

    def test_object_error_with_code(self):
        """An error object contributes its code."""
        result = from_envelope({"success": False, "error": {"message": "expired", "code": "auth"}})

        assert result.success is False
        assert result.error.code == "auth"
        assert result.error_message == "expired"

    def test_string_error(self):
        """A string error is an application error."""
        result = from_envelope({"success": False, "error": "bad"})

        assert result.error.code == APPLICATION_ERROR
        assert str(result.error) == "bad"

    def test_truthy_but_not_true_is_failure(self):
        """Only a literal true counts as success."""
        assert from_envelope({"success": "true"}).success is False

    def test_non_object_body(self):
        """A list body is a protocol error."""
        assert from_envelope([1, 2]).error.code == INVALID_JSON


class TestHelpers:
    """Result helpers used by pages and the CLI."""

    def test_get_tolerates_non_dict(self):
        """get() on a list payload returns the default."""
        assert ApiResult.ok([1]).get("x", "d") == "d"

    def test_to_dict_round_shape(self):
        """Failed results serialise with a structured error."""
        out = to_dict(ApiResult.fail("http_error", "HTTP 500"))

        assert out == {"success": False, "error": {"code": "http_error", "message": "HTTP 500"}}
