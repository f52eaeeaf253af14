"""
Simple (Exhaustive) Policy
==========================

Deterministic selection that walks the dictionary round-robin.

For every to-connector the policy keeps a cursor into the dictionary's
list of connectable sections. Each draw hands back a fresh instance of
the section under the cursor and moves on; when the list runs out the
cursor is erased and the draw reports exhaustion. Combined with the
checkpoint stacks this lets a backtracking assembler visit every
assembly reachable within its limits, in a reproducible order.
"""

from typing import Optional

from piecework.core.schema import Connector, Frame, Section
from piecework.search.base import SelectionPolicy


class SimplePolicy(SelectionPolicy):
    """
    Exhaustive, deterministic selection policy.

    Example
    -------
    >>> policy = SimplePolicy(dictionary, max_solutions=5)
    >>> policy.root_set(["A"])
    >>> starters = policy.next_root()
    """

    def select_from_lexis(
        self,
        frame: Frame,
        fm_sect: Section,
        offset: int,
        to_con: Connector,
    ) -> Optional[Section]:
        """Return a fresh instance of the next dictionary section exposing ``to_con``."""
        to_sects = self._dict.connectables(to_con)

        curit = self._lexlit.get(to_con, 0)
        if curit == 0:
            # Dead end.
            if not to_sects:
                return None

            self._lexlit[to_con] = 1
            return self.create_unique_section(to_sects[0])

        if curit >= len(to_sects):
            # Iterated to the end.
            del self._lexlit[to_con]
            return None

        self._lexlit[to_con] = curit + 1
        return self.create_unique_section(to_sects[curit])
