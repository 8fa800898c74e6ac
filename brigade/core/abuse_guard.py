from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from threading import Lock
from typing import Callable

from brigade.core.config import LOGIN_ATTEMPT_WINDOW_SECONDS, LOGIN_MAX_FAILED_ATTEMPTS
from brigade.core.logging_setup import SECURITY_LOGGER_NAME

security_logger = logging.getLogger(SECURITY_LOGGER_NAME)

SUSPICIOUS_FAILURE_COUNT = 3
RAPID_ATTEMPT_SECONDS = 60
MAX_DISTINCT_TENANTS = 3

PATTERN_MULTIPLE_FAILED_ATTEMPTS = "MULTIPLE_FAILED_ATTEMPTS"
PATTERN_RAPID_ATTEMPTS = "RAPID_ATTEMPTS"
PATTERN_MULTIPLE_RESTAURANTS = "MULTIPLE_RESTAURANTS"


@dataclass
class AttemptRecord:
    failures: deque[float] = field(default_factory=deque)
    tenants: set[str] = field(default_factory=set)
    last_attempt_at: float | None = None


@dataclass
class GuardDecision:
    allowed: bool
    failed_attempts: int
    retry_after_seconds: int


class AttemptStore(ABC):
    """Storage for per-address failure bookkeeping.

    The in-process implementation serves single-instance deployments; a
    shared cache can implement the same four operations for several workers.
    """

    @abstractmethod
    def get(self, key: str, *, now: float) -> AttemptRecord | None:
        """Return the record for ``key`` with failures outside the window dropped."""

    @abstractmethod
    def increment(self, key: str, *, now: float, tenant: str | None = None) -> AttemptRecord:
        """Register one failure for ``key`` and return the updated record."""

    @abstractmethod
    def reset(self, key: str) -> None:
        """Forget everything recorded for ``key``."""

    @abstractmethod
    def sweep(self, *, now: float) -> int:
        """Drop records with no failure left in the window. Returns how many were removed."""


class InMemoryAttemptStore(AttemptStore):
    def __init__(self, *, window_seconds: int = LOGIN_ATTEMPT_WINDOW_SECONDS) -> None:
        self.window_seconds = window_seconds
        self._store: dict[str, AttemptRecord] = {}
        self._lock = Lock()

    def _prune(self, record: AttemptRecord, now: float) -> None:
        cutoff = now - self.window_seconds
        while record.failures and record.failures[0] <= cutoff:
            record.failures.popleft()
        if not record.failures:
            record.tenants.clear()

    def get(self, key: str, *, now: float) -> AttemptRecord | None:
        with self._lock:
            record = self._store.get(key)
            if record is None:
                return None
            self._prune(record, now)
            return AttemptRecord(
                failures=deque(record.failures),
                tenants=set(record.tenants),
                last_attempt_at=record.last_attempt_at,
            )

    def increment(self, key: str, *, now: float, tenant: str | None = None) -> AttemptRecord:
        with self._lock:
            record = self._store.setdefault(key, AttemptRecord())
            self._prune(record, now)
            previous = record.last_attempt_at
            record.failures.append(now)
            if tenant:
                record.tenants.add(tenant)
            record.last_attempt_at = now
            return AttemptRecord(
                failures=deque(record.failures),
                tenants=set(record.tenants),
                last_attempt_at=previous,
            )

    def reset(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def sweep(self, *, now: float) -> int:
        removed = 0
        with self._lock:
            for key in list(self._store):
                record = self._store[key]
                self._prune(record, now)
                if not record.failures:
                    del self._store[key]
                    removed += 1
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


class AbuseGuard:
    """Brute-force protection for the login endpoints, keyed by client address."""

    def __init__(
        self,
        store: AttemptStore | None = None,
        *,
        max_failures: int = LOGIN_MAX_FAILED_ATTEMPTS,
        window_seconds: int = LOGIN_ATTEMPT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval_seconds: int = 60,
    ) -> None:
        self.max_failures = max_failures
        self.window_seconds = window_seconds
        self.store = store or InMemoryAttemptStore(window_seconds=window_seconds)
        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._last_sweep = clock()

    def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep < self._sweep_interval:
            return
        self._last_sweep = now
        self.store.sweep(now=now)

    def check(self, client_ip: str) -> GuardDecision:
        now = self._clock()
        self._maybe_sweep(now)
        record = self.store.get(client_ip, now=now)
        failures = len(record.failures) if record else 0
        if record is None or failures < self.max_failures:
            return GuardDecision(allowed=True, failed_attempts=failures, retry_after_seconds=0)

        retry_after = max(1, int(self.window_seconds - (now - record.failures[0])))
        security_logger.warning(
            "Login rate limit exceeded",
            extra={
                "event": "RATE_LIMIT_EXCEEDED",
                "client_ip": client_ip,
                "attempt_count": failures,
                "retry_after_seconds": retry_after,
            },
        )
        return GuardDecision(allowed=False, failed_attempts=failures, retry_after_seconds=retry_after)

    def register_failure(self, client_ip: str, *, tenant: str | None = None) -> list[str]:
        now = self._clock()
        record = self.store.increment(client_ip, now=now, tenant=tenant)
        patterns = detect_suspicious_patterns(record, now=now)
        if patterns:
            security_logger.warning(
                "Suspicious login activity",
                extra={
                    "event": "SUSPICIOUS_ACTIVITY",
                    "severity": "ALERT",
                    "client_ip": client_ip,
                    "target_tenant": tenant,
                    "patterns": patterns,
                    "attempt_count": len(record.failures),
                },
            )
        return patterns

    def register_success(self, client_ip: str) -> None:
        self.store.reset(client_ip)


def detect_suspicious_patterns(record: AttemptRecord, *, now: float) -> list[str]:
    """Advisory only; nothing here blocks a request."""
    patterns: list[str] = []
    if len(record.failures) >= SUSPICIOUS_FAILURE_COUNT:
        patterns.append(PATTERN_MULTIPLE_FAILED_ATTEMPTS)
    if record.last_attempt_at is not None and now - record.last_attempt_at < RAPID_ATTEMPT_SECONDS:
        patterns.append(PATTERN_RAPID_ATTEMPTS)
    if len(record.tenants) > MAX_DISTINCT_TENANTS:
        patterns.append(PATTERN_MULTIPLE_RESTAURANTS)
    return patterns
