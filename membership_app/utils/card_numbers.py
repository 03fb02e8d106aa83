"""Pure helpers for card number sequences."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List


@dataclass(frozen=True)
class NumberSpan:
    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start + 1


def generate_numbers_from_range(start_number: int, end_number: int) -> List[str]:
    """Every membership number of the closed interval, unpadded, ascending."""
    return [str(i) for i in range(start_number, end_number + 1)]


def generate_sequential_numbers(prefix: str, start: str, end: str) -> List[str]:
    """
    Literal candidate numbers ``prefix + zero-padded i`` for i in [start, end].

    The padding width is the length of ``start`` as typed, so "001".."050"
    yields "001", "002", ... "050".
    """
    padding = len(start)
    return [
        f"{prefix}{str(i).zfill(padding)}"
        for i in range(int(start), int(end) + 1)
    ]


def group_into_contiguous_ranges(numbers: Iterable[int]) -> List[NumberSpan]:
    """Coalesce numbers into ascending runs of consecutive values.

    >>> group_into_contiguous_ranges([1, 2, 3, 5, 6, 10])
    [NumberSpan(start=1, end=3), NumberSpan(start=5, end=6), NumberSpan(start=10, end=10)]
    """
    spans: List[NumberSpan] = []
    for number in sorted(numbers):
        if spans and number == spans[-1].end + 1:
            spans[-1] = NumberSpan(spans[-1].start, number)
        elif spans and number == spans[-1].end:
            continue
        else:
            spans.append(NumberSpan(number, number))
    return spans


def parse_card_number(value: str | None) -> int | None:
    """Numeric value of an unprefixed card number, ``None`` if it has a prefix."""
    if value is None:
        return None
    value = value.strip()
    if not value.isdigit():
        return None
    return int(value)
