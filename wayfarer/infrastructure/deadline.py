"""Time budgets shared down the call tree via a ContextVar.

The engine opens a journey budget; each adapter call then runs under the
smaller of its own limit and whatever the journey has left, so a slow
provider costs its own leg a timeout instead of costing the caller every
leg already found.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional
import time

# Headroom for the outer safety net to let a timed-out adapter log and return
DEADLINE_GRACE_SECONDS = 0.25


class Deadline:
    def __init__(self, seconds: float):
        self.seconds = seconds
        self.expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        return max(0.0, self.expires_at - time.monotonic())

    def expired(self) -> bool:
        return self.remaining() <= 0


deadline_var: ContextVar[Optional[Deadline]] = ContextVar("deadline", default=None)


def remaining_budget(limit: Optional[float] = None) -> Optional[float]:
    """Seconds a call may take: ``limit`` clipped to the enclosing deadline.

    None means unbounded (no limit and no enclosing deadline).
    """
    current = deadline_var.get()
    if current is None:
        return limit
    left = current.remaining()
    return left if limit is None else min(limit, left)


@contextmanager
def deadline_scope(seconds: Optional[float]) -> Iterator[Optional[Deadline]]:
    """Run the block under a deadline no later than any enclosing one."""
    budget = remaining_budget(seconds)
    if budget is None:
        yield None
        return
    deadline = Deadline(budget)
    token = deadline_var.set(deadline)
    try:
        yield deadline
    finally:
        deadline_var.reset(token)
