"""
Half-open interval arithmetic shared by slot generation and conflict checks.

Every place that decides whether two time ranges collide goes through
``overlaps``. Slot generation and the write-time booking check must never
disagree on what counts as a collision.
"""

from typing import Iterable, Optional, Protocol, TypeVar

from pendulum import DateTime


class Interval(Protocol):
    """Anything with a ``start`` and an ``end`` instant."""

    @property
    def start(self) -> DateTime: ...

    @property
    def end(self) -> DateTime: ...


T = TypeVar("T", bound=Interval)


def overlaps(a: Interval, b: Interval) -> bool:
    """
    Return True if the half-open intervals ``[a.start, a.end)`` and
    ``[b.start, b.end)`` share at least one instant.

    Touching endpoints (``a.end == b.start``) do not overlap.
    """
    return a.start < b.end and b.start < a.end


def first_conflict(candidate: Interval, intervals: Iterable[T]) -> Optional[T]:
    """Return the first interval overlapping ``candidate``, or None."""
    for interval in intervals:
        if overlaps(candidate, interval):
            return interval
    return None
