"""CancellationToken — cooperative cancellation with optional deadline.

Tokens form a tree: a child created with :meth:`CancellationToken.child`
or :meth:`CancellationToken.with_timeout` is cancelled whenever its parent
is, but cancelling a child never affects the parent.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from relaykit.domain.errors import OperationCancelledError

Clock = Callable[[], float]


class CancellationToken:
    """Thread-safe cancellation signal checked at explicit checkpoints.

    Parameters:
        deadline: Absolute time (on *clock*) after which the token counts
            as cancelled.
        parent: Token whose cancellation propagates to this one.
        clock: Monotonic time source; injectable for tests.
    """

    def __init__(
        self,
        *,
        deadline: float | None = None,
        parent: CancellationToken | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._event = threading.Event()
        self._reason: str | None = None
        self._deadline = deadline
        self._parent = parent
        self._clock = clock

    @classmethod
    def with_timeout_seconds(cls, seconds: float, *, clock: Clock = time.monotonic) -> CancellationToken:
        """A fresh root token expiring *seconds* from now."""
        return cls(deadline=clock() + seconds, clock=clock)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def cancel(self, reason: str = "Operation was cancelled") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def deadline(self) -> float | None:
        """Effective deadline: the earliest of this token's and its ancestors'."""
        parent_deadline = self._parent.deadline if self._parent is not None else None
        candidates = [d for d in (self._deadline, parent_deadline) if d is not None]
        return min(candidates) if candidates else None

    @property
    def is_cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and self._clock() >= self._deadline:
            return True
        return self._parent is not None and self._parent.is_cancelled

    @property
    def reason(self) -> str | None:
        """Why the token is cancelled, or None while it is still live."""
        if self._event.is_set():
            return self._reason
        if self._deadline is not None and self._clock() >= self._deadline:
            return "Deadline exceeded"
        if self._parent is not None:
            return self._parent.reason
        return None

    def remaining(self) -> float | None:
        """Seconds until the effective deadline (never negative), or None."""
        deadline = self.deadline
        if deadline is None:
            return None
        return max(0.0, deadline - self._clock())

    def raise_if_cancelled(self) -> None:
        """Checkpoint: raise OperationCancelledError once cancelled."""
        if self.is_cancelled:
            raise OperationCancelledError(self.reason or "Operation was cancelled")

    def wait(self, timeout: float | None = None) -> bool:
        """Block until explicitly cancelled or *timeout* elapses. Returns is_cancelled."""
        remaining = self.remaining()
        if remaining is not None:
            timeout = remaining if timeout is None else min(timeout, remaining)
        self._event.wait(timeout)
        return self.is_cancelled

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def child(self) -> CancellationToken:
        return CancellationToken(parent=self, clock=self._clock)

    def with_timeout(self, seconds: float) -> CancellationToken:
        """Child token that additionally expires *seconds* from now."""
        return CancellationToken(deadline=self._clock() + seconds, parent=self, clock=self._clock)

    def __repr__(self) -> str:
        state = "cancelled" if self.is_cancelled else "live"
        return f"CancellationToken({state}, deadline={self.deadline})"
