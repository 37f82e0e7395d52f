"""Bounded retry helpers for synthesis and storage collaborators.

Responsibilities:
- Describe retry budgets with exponential or linear backoff.
- Re-run an operation while failures are classified as transient.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

_Result = TypeVar("_Result")


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Retry budget and backoff schedule.

    Attributes:
        max_attempts: Total attempts including the first call.
        backoff_base_seconds: Delay before the first retry.
        backoff_max_seconds: Upper bound for any single delay.
        backoff: `exponential` doubles per retry, `linear` grows by the base.
    """

    max_attempts: int = 5
    backoff_base_seconds: float = 0.5
    backoff_max_seconds: float = 8.0
    backoff: str = "exponential"

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        if self.backoff not in {"exponential", "linear"}:
            raise ValueError("backoff must be `exponential` or `linear`.")

    def delay_for(self, retry_number: int) -> float:
        """Return the wait before the given 1-based retry."""

        if self.backoff == "linear":
            delay = self.backoff_base_seconds * retry_number
        else:
            delay = self.backoff_base_seconds * (2 ** (retry_number - 1))
        return min(self.backoff_max_seconds, delay)


def call_with_retries(
    operation: Callable[[], _Result],
    *,
    policy: RetryPolicy,
    should_retry: Callable[[Exception], bool],
    sleeper: Callable[[float], None],
    on_retry: Callable[[int, Exception], None] | None = None,
) -> _Result:
    """Run `operation`, retrying transient failures within the policy budget.

    The last failure is re-raised unchanged once the budget is exhausted or a
    failure is classified as permanent.
    """

    attempt = 1
    while True:
        try:
            return operation()
        except Exception as exc:
            if attempt >= policy.max_attempts or not should_retry(exc):
                raise
            if on_retry is not None:
                on_retry(attempt, exc)
            sleeper(policy.delay_for(attempt))
            attempt += 1
