"""Repeated-error circuit breaker.

A bounded window of the most recent error messages. The breaker trips when
the window is full and every entry is identical, which signals a loop that
keeps failing the same way. State lives on the instance; pass it into
whatever long-running loop needs a stop condition.

sigpatch runs no retry loop of its own. The class is a library export for
callers that wrap patched runtimes in supervision loops.
"""

from __future__ import annotations

from collections import deque

DEFAULT_THRESHOLD = 5


class CircuitBreaker:
    def __init__(self, threshold: int = DEFAULT_THRESHOLD):
        if threshold < 1:
            raise ValueError("threshold must be at least 1")
        self.threshold = threshold
        self._history: deque[str] = deque(maxlen=threshold)

    def record(self, error: str) -> bool:
        """Record an error. Returns True when the breaker trips."""
        self._history.append(error)
        return self.tripped

    @property
    def tripped(self) -> bool:
        if len(self._history) < self.threshold:
            return False
        first = self._history[0]
        return all(e == first for e in self._history)

    def reset(self) -> None:
        """Clear history, e.g. after a successful iteration."""
        self._history.clear()
