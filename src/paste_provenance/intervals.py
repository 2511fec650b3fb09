"""
Priority-based merging of match intervals.

Every matcher reports intervals over clean-text offsets. Overlaps are
resolved here, once, before any markup is touched:
- Higher priority methods claim text first (exact > fuzzy > sentence >
  chunk > phrase > structural > positional); within a method, higher
  confidence first
- A lower priority interval keeps only the pieces nobody claimed yet
- Touching pieces of the same event and method are joined again
"""

from typing import Iterable

from .models import Interval


def _subtract(interval: Interval, accepted: list[Interval]) -> list[Interval]:
    """Pieces of ``interval`` not covered by any accepted interval."""
    pieces = [(interval.start, interval.end)]
    for other in accepted:
        if other.start >= interval.end:
            break
        if other.end <= interval.start:
            continue
        remaining = []
        for start, end in pieces:
            if other.end <= start or other.start >= end:
                remaining.append((start, end))
                continue
            if start < other.start:
                remaining.append((start, other.start))
            if other.end < end:
                remaining.append((other.end, end))
        pieces = remaining
        if not pieces:
            break
    return [
        Interval(start, end, interval.method, interval.confidence, interval.event_index)
        for start, end in pieces
    ]


def _coalesce(intervals: list[Interval]) -> list[Interval]:
    result: list[Interval] = []
    for interval in intervals:
        if result:
            previous = result[-1]
            if (
                previous.end == interval.start
                and previous.method == interval.method
                and previous.event_index == interval.event_index
            ):
                result[-1] = Interval(
                    previous.start,
                    interval.end,
                    previous.method,
                    max(previous.confidence, interval.confidence),
                    previous.event_index,
                )
                continue
        result.append(interval)
    return result


def merge_intervals(intervals: Iterable[Interval]) -> list[Interval]:
    """
    Resolve overlaps by method priority and return disjoint intervals.

    Args:
        intervals: Intervals from all paste events, in any order.

    Returns:
        Pairwise disjoint intervals sorted by start offset.
    """
    ordered = sorted(
        (iv for iv in intervals if iv.end > iv.start),
        key=lambda iv: (iv.method.priority, -iv.confidence, iv.start, iv.event_index),
    )
    accepted: list[Interval] = []
    for interval in ordered:
        for piece in _subtract(interval, accepted):
            accepted.append(piece)
        accepted.sort(key=lambda iv: iv.start)
    return _coalesce(accepted)
