import time
from collections import deque
from dataclasses import dataclass, field
from threading import Lock
from typing import Callable


@dataclass
class _Attempts:
    failures: deque[float] = field(default_factory=deque)
    locked_until: float = 0.0

    def forget_before(self, cutoff: float) -> None:
        while self.failures and self.failures[0] < cutoff:
            self.failures.popleft()

    def is_stale(self, now: float) -> bool:
        return not self.failures and self.locked_until <= now


class LoginRateLimiter:
    """Failed-login counter per email+IP key, held in process memory.

    A key locks for `lock_seconds` once it reaches `max_attempts` failures
    inside `window_seconds`. Keys with no recent failures and no active lock
    are dropped, so the table only holds recently active keys.
    """

    def __init__(
        self,
        *,
        max_attempts: int,
        window_seconds: int,
        lock_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.lock_seconds = lock_seconds
        self._clock = clock
        self._attempts: dict[str, _Attempts] = {}
        self._mutex = Lock()
        self._next_sweep = 0.0

    @classmethod
    def from_settings(cls, config) -> "LoginRateLimiter":
        return cls(
            max_attempts=config.auth_rate_limit_max_attempts,
            window_seconds=config.auth_rate_limit_window_seconds,
            lock_seconds=config.auth_rate_limit_lock_seconds,
        )

    def __len__(self) -> int:
        with self._mutex:
            return len(self._attempts)

    def check(self, key: str) -> int:
        """Seconds until `key` may try again; 0 when it is not locked."""
        now = self._clock()
        with self._mutex:
            self._sweep(now)
            attempts = self._attempts.get(key)
            if attempts is None or attempts.locked_until <= now:
                return 0
            return int(attempts.locked_until - now) + 1

    def register_failure(self, key: str) -> None:
        now = self._clock()
        with self._mutex:
            self._sweep(now)
            attempts = self._attempts.setdefault(key, _Attempts())
            attempts.forget_before(now - self.window_seconds)
            attempts.failures.append(now)
            if len(attempts.failures) >= self.max_attempts:
                attempts.locked_until = now + self.lock_seconds
                attempts.failures.clear()

    def register_success(self, key: str) -> None:
        with self._mutex:
            self._attempts.pop(key, None)

    def clear(self) -> None:
        with self._mutex:
            self._attempts.clear()

    def _sweep(self, now: float) -> None:
        # Full scans are spaced one window apart.
        if now < self._next_sweep:
            return
        cutoff = now - self.window_seconds
        for key in list(self._attempts):
            attempts = self._attempts[key]
            attempts.forget_before(cutoff)
            if attempts.is_stale(now):
                del self._attempts[key]
        self._next_sweep = now + self.window_seconds
