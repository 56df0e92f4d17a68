"""Rolling-window limits for tools that create merchant objects."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

DAY_SECONDS = 24 * 60 * 60


@dataclass
class RateBucket:
    """Tracks timestamps in a rolling window."""

    max_count: int
    window_seconds: float
    timestamps: list[float] = field(default_factory=list)

    def _prune(self) -> None:
        cutoff = time.monotonic() - self.window_seconds
        self.timestamps = [t for t in self.timestamps if t > cutoff]

    def check(self) -> bool:
        """Return True if another action is allowed."""
        self._prune()
        return len(self.timestamps) < self.max_count

    def record(self) -> None:
        self.timestamps.append(time.monotonic())

    def remaining(self) -> int:
        self._prune()
        return max(0, self.max_count - len(self.timestamps))


class RateLimiter:
    """Named rate buckets; keys without a bucket are unlimited."""

    def __init__(self) -> None:
        self._buckets: dict[str, RateBucket] = {}

    def configure(self, key: str, max_count: int, window_seconds: float = DAY_SECONDS) -> None:
        self._buckets[key] = RateBucket(max_count=max_count, window_seconds=window_seconds)

    def check(self, key: str) -> bool:
        bucket = self._buckets.get(key)
        if bucket is None:
            return True
        return bucket.check()

    def record(self, key: str) -> None:
        bucket = self._buckets.get(key)
        if bucket is not None:
            bucket.record()

    def remaining(self, key: str) -> int | None:
        """Remaining actions in the window, or ``None`` when *key* is unlimited."""
        bucket = self._buckets.get(key)
        if bucket is None:
            return None
        return bucket.remaining()
