"""
Solution Collector
==================

Records finished assemblies.

A solution is the frozen edge set of a frame together with the sections
it was built from. Recording is idempotent: a linkage already seen is
not stored twice.
"""

from dataclasses import dataclass, field

import networkx as nx

from piecework.core.links import linkage_graph
from piecework.core.schema import Edge, Frame, Section


@dataclass(frozen=True)
class Solution:
    """One accepted assembly."""

    linkage: frozenset[Edge]
    sections: tuple[Section, ...] = field(default=())

    @property
    def size(self) -> int:
        """Number of edges."""
        return len(self.linkage)

    def to_graph(self) -> nx.MultiGraph:
        """Assembly as a MultiGraph keyed by section point."""
        return linkage_graph(self.linkage, self.sections)

    def templates(self) -> list[str]:
        """Template point of every section, in placement order."""
        return [s.template_point for s in self.sections]


class SolutionCollector:
    """Ordered, de-duplicated store of solutions."""

    def __init__(self) -> None:
        self._solutions: dict[frozenset[Edge], Solution] = {}

    def record_solution(self, frame: Frame) -> Solution:
        """Store the frame's linkage; return the stored solution."""
        linkage = frozenset(frame.linkage)
        existing = self._solutions.get(linkage)
        if existing is not None:
            return existing

        solution = Solution(linkage=linkage, sections=tuple(frame.points))
        self._solutions[linkage] = solution
        return solution

    @property
    def solutions(self) -> list[Solution]:
        return list(self._solutions.values())

    def clear(self) -> None:
        self._solutions.clear()

    def __len__(self) -> int:
        return len(self._solutions)
