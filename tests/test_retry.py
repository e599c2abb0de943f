"""
Tests for the bounded retry policy.
"""
import pytest

from lapin_ops.api.client import ApiClient
from lapin_ops.api.envelope import ApiResult, NOT_CONFIGURED
from lapin_ops.api.retry import RetryPolicy, call_with_retry, linear_backoff, NO_RETRY
from conftest import FakeHttp


class Counter:
    def __init__(self, results):
        self.results = list(results)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.results.pop(0)


class TestCallWithRetry:
    """Retry until success or the ceiling."""

    def test_three_failures_three_calls(self):
        """Three failures make exactly three calls and return the last error."""
        call = Counter([ApiResult.fail("network_error", f"fail {i}") for i in range(3)])
        sleeps = []

        result = call_with_retry(call, RetryPolicy(3, linear_backoff(1.5)), sleep=sleeps.append)

        assert call.calls == 3
        assert result.error_message == "fail 2"
        assert sleeps == [1.5, 3.0]

    def test_stops_on_success(self):
        """A success on the second attempt stops the loop."""
        call = Counter([ApiResult.fail("http_error", "HTTP 500"), ApiResult.ok({"kpi": 1})])
        sleeps = []

        result = call_with_retry(call, RetryPolicy(3), sleep=sleeps.append)

        assert call.calls == 2
        assert result.success is True
        assert sleeps == [1.5]

    def test_success_without_data_retries(self):
        """A success with no data counts as a failure."""
        call = Counter([ApiResult.ok(None), ApiResult.ok({"a": 1})])

        result = call_with_retry(call, RetryPolicy(3), sleep=lambda s: None)

        assert call.calls == 2
        assert result.data == {"a": 1}

    def test_no_retry_policy(self):
        """NO_RETRY calls once and never sleeps."""
        call = Counter([ApiResult.fail("x", "once")])
        sleeps = []

        call_with_retry(call, NO_RETRY, sleep=sleeps.append)

        assert call.calls == 1
        assert sleeps == []

    def test_missing_endpoint_is_not_retried(self):
        """An unconfigured endpoint fails once, without sleeping."""
        http = FakeHttp()
        client = ApiClient(base_url="", http=http)
        calls = []
        sleeps = []

        def call():
            calls.append(1)
            return client.get_dashboard("2025-05-01", "2025-05-31")

        result = call_with_retry(call, RetryPolicy(3), sleep=sleeps.append)

        assert len(calls) == 1
        assert sleeps == []
        assert result.error.code == NOT_CONFIGURED
        assert http.calls == []


class TestRetryPolicy:
    """Policy construction."""

    def test_rejects_zero_attempts(self):
        """max_attempts below 1 is invalid."""
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)

    def test_dashboard_defaults(self):
        """Dashboard policy reads the configured ceiling and step."""
        policy = RetryPolicy.for_dashboard()

        assert policy.max_attempts == 3
        assert policy.backoff(1) == pytest.approx(1.5)
