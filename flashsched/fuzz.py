"""
flashsched.fuzz
---------------

This module defines the interval fuzzing policy.

Fuzz spreads the due dates of cards that are reviewed together on the same day so that they
don't all become due together again. It is a load-smoothing measure only and never changes a
card's memory state.
"""

from __future__ import annotations
from collections.abc import Mapping
from datetime import datetime
import math
from random import Random
from flashsched.rating import Rating

FUZZ_RANGES = [
    {
        "start": 2.5,
        "end": 7.0,
        "factor": 0.15,
    },
    {
        "start": 7.0,
        "end": 20.0,
        "factor": 0.1,
    },
    {
        "start": 20.0,
        "end": math.inf,
        "factor": 0.05,
    },
]

# fuzz is not applied to intervals less than 2.5 days
MIN_FUZZ_INTERVAL = 2.5


def get_fuzz_range(
    interval_days: int, elapsed_days: int, maximum_interval: int
) -> tuple[int, int]:
    """
    Computes the possible lower and upper bounds of an interval after fuzzing.

    The band widens with the interval: 15% of the part between 2.5 and 7 days, 10% of the
    part between 7 and 20 days and 5% of the rest, plus one day.

    Args:
        interval_days: The calculated interval, before fuzzing.
        elapsed_days: Days since the card's previous review.
        maximum_interval: The maximum number of days a card can be scheduled into the future.

    Returns:
        tuple[int, int]: The smallest and largest fuzzed interval.
    """

    delta = 1.0
    for fuzz_range in FUZZ_RANGES:
        delta += fuzz_range["factor"] * max(
            min(interval_days, fuzz_range["end"]) - fuzz_range["start"], 0.0
        )

    interval_days = min(interval_days, maximum_interval)
    min_ivl = max(2, int(round(interval_days - delta)))
    max_ivl = min(int(round(interval_days + delta)), maximum_interval)

    # a growing interval is never fuzzed back to the time already waited
    if interval_days > elapsed_days:
        min_ivl = max(min_ivl, elapsed_days + 1)

    min_ivl = min(min_ivl, max_ivl)

    return min_ivl, max_ivl


def fuzz_factor(
    review_datetime: datetime, reps: int, difficulty: float, stability: float
) -> float:
    """
    Returns a fuzz factor in [0, 1) seeded by the review and the card's memory state.

    The same review of the same card always produces the same factor, so replaying a card's
    review events reproduces its fuzzed due dates exactly.
    """

    seed = f"{int(review_datetime.timestamp() * 1000)}_{reps}_{difficulty * stability}"

    return Random(seed).random()


def apply_fuzz(
    interval_days: int, factor: float, elapsed_days: int, maximum_interval: int
) -> int:
    """
    Moves an interval to a point within its fuzz range.

    Args:
        interval_days: The calculated interval, before fuzzing.
        factor: A fuzz factor in [0, 1), see fuzz_factor().
        elapsed_days: Days since the card's previous review.
        maximum_interval: The maximum number of days a card can be scheduled into the future.

    Returns:
        int: The fuzzed interval in days.
    """

    if interval_days < MIN_FUZZ_INTERVAL:
        return interval_days

    min_ivl, max_ivl = get_fuzz_range(interval_days, elapsed_days, maximum_interval)

    fuzzed_interval_days = int(factor * (max_ivl - min_ivl + 1)) + min_ivl

    return min(fuzzed_interval_days, max_ivl)


def order_intervals(intervals: Mapping[Rating, int]) -> dict[Rating, int]:
    """
    Makes the intervals of the different ratings respect the order of the ratings.

    Hard is never shorter than Again, and Good and Easy are each at least a day longer than
    the rating below them. Only ratings present in intervals take part. The intervals passed
    in are already capped at the maximum interval, so Good and Easy may end up one and two
    days past it.
    """

    ordered = {}
    previous_rating = None
    for rating in sorted(intervals):
        interval_days = max(intervals[rating], 1)

        if previous_rating is not None:
            gap = 0 if rating == Rating.Hard and previous_rating == Rating.Again else 1
            interval_days = max(interval_days, ordered[previous_rating] + gap)

        ordered[rating] = interval_days
        previous_rating = rating

    return ordered


__all__ = ["get_fuzz_range", "fuzz_factor", "apply_fuzz", "order_intervals"]
