"""Reduction of a high-frequency price series into one median per day."""

from collections.abc import Sequence

DAYS = 30
POINTS_PER_DAY = 24  # 30-minute sampling


class InvalidInputLength(ValueError):
    """Raised when a price series does not have the expected number of points."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected {expected} price points, got {actual}")


def median(values: Sequence[float]) -> float:
    """
    Median of a sequence of numbers.

    Args:
        values: Non-empty sequence; it is not modified

    Returns:
        The mean of the two central elements for an even count, the central
        element for an odd count

    Raises:
        ValueError if values is empty
    """
    if not values:
        raise ValueError("Cannot take the median of an empty sequence")

    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def reduce_to_daily_medians(
    prices: Sequence[float],
    days: int = DAYS,
    points_per_day: int = POINTS_PER_DAY,
) -> list[float]:
    """
    Reduce a price series to one median per day.

    The series is split into ``days`` contiguous blocks of ``points_per_day``
    points in their original order; each block contributes its median.

    Args:
        prices: Exactly ``days * points_per_day`` price points (720 by default)
        days: Number of output medians
        points_per_day: Size of each block

    Returns:
        List of ``days`` medians, day 1 first

    Raises:
        InvalidInputLength if the series length is not ``days * points_per_day``
    """
    expected = days * points_per_day
    if len(prices) != expected:
        raise InvalidInputLength(expected, len(prices))

    return [
        median(prices[start : start + points_per_day])
        for start in range(0, expected, points_per_day)
    ]
