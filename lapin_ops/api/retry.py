"""
Reusable retry policy for API calls that are allowed to retry.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from lapin_ops.api.envelope import ApiResult, NOT_CONFIGURED
from lapin_ops.config import config

logger = logging.getLogger(__name__)


def linear_backoff(step_seconds: float) -> Callable[[int], float]:
    """Backoff growing linearly with the attempt number: step × attempt."""
    return lambda attempt: step_seconds * attempt


@dataclass
class RetryPolicy:
    """Bounded retry: at most ``max_attempts`` calls, ``backoff(n)`` seconds after failure n."""
    max_attempts: int = 3
    backoff: Callable[[int], float] = field(default_factory=lambda: linear_backoff(1.5))

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @classmethod
    def for_dashboard(cls) -> "RetryPolicy":
        return cls(
            max_attempts=config.dashboard_max_attempts,
            backoff=linear_backoff(config.dashboard_backoff_seconds),
        )


NO_RETRY = RetryPolicy(max_attempts=1)


def is_retryable(result: ApiResult) -> bool:
    if result.success:
        return result.data is None
    return result.error is None or result.error.code != NOT_CONFIGURED


def call_with_retry(call: Callable[[], ApiResult],
                    policy: RetryPolicy,
                    sleep: Callable[[float], None] = time.sleep,
                    should_retry: Callable[[ApiResult], bool] = None) -> ApiResult:
    """
    Invoke ``call`` until it succeeds or the policy is exhausted.

    A result counts as failed when ``success`` is false or it carries no
    data. A missing endpoint is never retried. The last result is returned
    as-is so the caller can render the error state. No sleep follows the
    final attempt.
    """
    if should_retry is None:
        should_retry = is_retryable

    result = None
    for attempt in range(1, policy.max_attempts + 1):
        result = call()
        if not should_retry(result):
            return result
        if attempt < policy.max_attempts:
            delay = policy.backoff(attempt)
            logger.warning(
                "Attempt %d/%d failed (%s); retrying in %.1fs",
                attempt, policy.max_attempts, result.error_message or "no data", delay,
            )
            sleep(delay)

    logger.error("Giving up after %d attempts: %s", policy.max_attempts, result.error_message or "no data")
    return result
