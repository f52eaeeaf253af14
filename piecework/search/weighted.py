"""
Weighted Random Policy
======================

Stochastic selection that samples the dictionary instead of walking it.

Open sections are still offered first, exactly as in the exhaustive
policy. Fresh pieces are then drawn with replacement from a discrete
distribution over the dictionary's connectable sections for the
to-connector, weighted by a numeric attribute stored on each template.
Because draws never run out, how long a random search goes on is
decided by the search limits alone.
"""

import random
from bisect import bisect_right
from itertools import accumulate
from typing import Any, Optional

from piecework.core.dictionary import Dictionary
from piecework.core.schema import Connector, Frame, Section
from piecework.search.base import SelectionPolicy


DEFAULT_WEIGHT = 1.0
"""Weight of a section that carries no value under the weight key."""


class WeightedPolicy(SelectionPolicy):
    """
    Random selection policy weighted by a per-section attribute.

    Distributions are built lazily, once per to-connector, and kept for
    the lifetime of the policy; they are not part of the checkpointed
    state because the dictionary's candidates for a connector never
    change during a search.

    Example
    -------
    >>> dictionary.set_value(common, "freq", 9.0)
    >>> dictionary.set_value(rare, "freq", 1.0)
    >>> policy = WeightedPolicy(dictionary, seed=42, max_steps=1000)
    >>> policy.set_weight_key("freq")
    """

    def __init__(
        self,
        dictionary: Dictionary,
        *args: Any,
        seed: Optional[int] = None,
        weight_key: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(dictionary, *args, **kwargs)
        self._rng = random.Random(seed)
        self._weight_key = weight_key
        self._distmap: dict[Connector, list[float]] = {}

    @property
    def weight_key(self) -> Optional[str]:
        return self._weight_key

    def set_weight_key(self, key: Optional[str]) -> None:
        """
        Choose the attribute used to weight draws.

        ``None`` gives uniform draws. Cached distributions built from a
        different key are dropped.
        """
        if key != self._weight_key:
            self._distmap.clear()
        self._weight_key = key

    def seed(self, seed: Optional[int]) -> None:
        """Reseed the policy's random number generator."""
        self._rng.seed(seed)

    def distribution(self, to_con: Connector) -> list[float]:
        """
        Cumulative weights over the connectable sections of ``to_con``.

        Built on first use and cached.
        """
        cumulative = self._distmap.get(to_con)
        if cumulative is not None:
            return cumulative

        to_sects = self._dict.connectables(to_con)
        weights = [self._weight_of(sect) for sect in to_sects]
        cumulative = list(accumulate(weights))
        self._distmap[to_con] = cumulative
        return cumulative

    def _weight_of(self, section: Section) -> float:
        if self._weight_key is None:
            return DEFAULT_WEIGHT

        value = self._dict.value(section, self._weight_key)
        if value is None:
            return DEFAULT_WEIGHT
        if value < 0:
            raise ValueError(
                f"negative weight {value} on {section.point!r} "
                f"under key {self._weight_key!r}"
            )
        return value

    def select_from_lexis(
        self,
        frame: Frame,
        fm_sect: Section,
        offset: int,
        to_con: Connector,
    ) -> Optional[Section]:
        """Return a fresh instance of a randomly drawn section exposing ``to_con``."""
        cumulative = self.distribution(to_con)
        if not cumulative or cumulative[-1] <= 0:
            return None

        # Same draw as random.choices(cum_weights=...), without the list.
        pick = self._rng.random() * cumulative[-1]
        index = bisect_right(cumulative, pick, 0, len(cumulative) - 1)
        to_sects = self._dict.connectables(to_con)
        return self.create_unique_section(to_sects[index])
