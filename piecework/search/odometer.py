"""
Root Odometer
=============

Enumerates combinations of starting pieces across several anchors.

Each anchor contributes one digit: a cursor into that anchor's list of
entry sections. Digits roll over like a mixed-radix counter, least
significant (first anchor) first, so every combination in the Cartesian
product is produced exactly once and in a fixed order.
"""

from typing import Sequence

from piecework.core.schema import Section


class RootOdometer:
    """
    Mixed-radix counter over per-anchor candidate lists.

    Example
    -------
    >>> odo = RootOdometer([[p1, p2], [q1]])
    >>> odo.advance()
    [p1, q1]
    >>> odo.advance()
    [p2, q1]
    >>> odo.advance()
    []
    """

    def __init__(self, digits: Sequence[Sequence[Section]] = ()):
        self._lists: list[list[Section]] = [list(d) for d in digits]
        self._cursors: list[int] = [0] * len(self._lists)
        # Empty when there is nothing to count, or when any digit has no values.
        self._exhausted = not self._lists or any(not d for d in self._lists)

    @property
    def cursors(self) -> tuple[int, ...]:
        """Current digit values."""
        return tuple(self._cursors)

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    @property
    def total(self) -> int:
        """Number of combinations in a full rotation."""
        if not self._lists:
            return 0
        product = 1
        for values in self._lists:
            product *= len(values)
        return product

    def __len__(self) -> int:
        return len(self._lists)

    def advance(self) -> list[Section]:
        """
        Return the combination under the cursors and tick the counter.

        Once the most significant digit overflows the odometer stays
        exhausted and every further call returns an empty list.
        """
        if self._exhausted:
            return []

        combination = [values[i] for values, i in zip(self._lists, self._cursors)]

        for digit, values in enumerate(self._lists):
            self._cursors[digit] += 1
            if self._cursors[digit] < len(values):
                break
            # carry
            self._cursors[digit] = 0
            if digit == len(self._lists) - 1:
                self._exhausted = True

        return combination
