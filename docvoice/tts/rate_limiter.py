"""Request pacing for synthesis providers.

Responsibilities:
- Enforce a minimum interval between requests that share a pacing key.
- Keep pacing policy independent from provider adapters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from time import monotonic, sleep
from typing import Callable


@dataclass(slots=True)
class RateLimiter:
    """Per-key minimum-interval limiter used around synthesis requests."""

    min_interval_seconds: float = 0.05
    clock: Callable[[], float] = monotonic
    sleeper: Callable[[float], None] = sleep
    _next_allowed_at: dict[str, float] = field(default_factory=dict)

    def acquire(self, key: str) -> None:
        """Block until a request under `key` is allowed."""

        if self.min_interval_seconds <= 0.0:
            return
        now = self.clock()
        wait_seconds = self._next_allowed_at.get(key, 0.0) - now
        if wait_seconds > 0.0:
            self.sleeper(wait_seconds)
            now = self.clock()
        self._next_allowed_at[key] = now + self.min_interval_seconds
