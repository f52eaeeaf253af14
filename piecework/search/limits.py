"""
Search Limits
=============

Quantitative bounds on an assembly search.

All caps are optional; ``None`` means unbounded. The pair-link cap and
the self-connection switch shape which open sections are offered as
candidates rather than stopping the search.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SearchLimits(BaseModel):
    """
    Limits consulted by ``step()`` and ``next_root()``.

    Examples
    --------
    >>> SearchLimits(max_solutions=10, max_network_size=20)
    >>> SearchLimits(max_pair_links=2, allow_self_connections=True)
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    max_steps: Optional[int] = Field(default=None, ge=0)
    """Total expansion attempts before the search halts."""

    max_solutions: Optional[int] = Field(default=None, ge=0)
    """Solutions to record before the search halts."""

    max_network_size: Optional[int] = Field(default=None, ge=0)
    """Edges allowed in a single assembly."""

    max_depth: Optional[int] = Field(default=None, ge=0)
    """Odometer rounds allowed in a single assembly."""

    max_pair_links: int = Field(default=1, ge=0)
    """Parallel edges of one link type allowed between the same two pieces."""

    allow_self_connections: bool = False
    """Whether a piece may link to itself."""

    @staticmethod
    def exceeds(value: int, cap: Optional[int]) -> bool:
        """True when ``value`` is over ``cap``; an unset cap is never exceeded."""
        return cap is not None and value > cap

    @staticmethod
    def reaches(value: int, cap: Optional[int]) -> bool:
        """True when ``value`` has reached ``cap``."""
        return cap is not None and value >= cap
