"""
Link Builder
============

Creates section instances and the undirected edges between them.

Every edge made is kept in a ``networkx.MultiGraph`` keyed by
section point, so parallel links between the same two pieces stay
distinct. Assemblies themselves only hold the edges they were handed
back; the store covers the current run and is cleared when a policy
starts a new one.
"""

from itertools import count
from typing import Iterable, Optional
from uuid import uuid4

import networkx as nx

from piecework.core.schema import Connector, Edge, Section


class LinkError(ValueError):
    """Raised when two connector endpoints cannot be linked."""


class LinkBuilder:
    """
    Factory for unique section instances and undirected edges.

    Example
    -------
    >>> builder = LinkBuilder()
    >>> a = builder.create_unique_section(template_a)
    >>> b = builder.create_unique_section(template_b)
    >>> edge = builder.create_undirected_link(con_a, con_b, a, b)
    """

    def __init__(self, separator: str = "@"):
        self._separator = separator
        self._serial = count(1)
        self._run = uuid4().hex[:6]
        self._graph = nx.MultiGraph()

    @property
    def graph(self) -> nx.MultiGraph:
        """Every edge created by this builder (read-only access)."""
        return self._graph

    def create_unique_section(self, template: Section) -> Section:
        """
        Cut a new instance from a template.

        The instance has the template's connectors and a point name that
        is unique to this builder, so two draws of the same template are
        never equal.
        """
        origin = template.template_point
        point = f"{origin}{self._separator}{self._run}.{next(self._serial)}"
        return Section(point=point, connectors=template.connectors, origin=origin)

    def create_undirected_link(
        self,
        fm_con: Connector,
        to_con: Connector,
        fm_sect: Section,
        to_sect: Section,
    ) -> Edge:
        """
        Join ``fm_con`` on ``fm_sect`` to ``to_con`` on ``to_sect``.

        Raises
        ------
        LinkError
            If the connectors carry different labels, or either connector
            is not part of its section.
        """
        if fm_con.label != to_con.label:
            raise LinkError(
                f"cannot link {fm_con!r} to {to_con!r}: label mismatch"
            )
        if fm_con not in fm_sect.connectors:
            raise LinkError(f"{fm_con!r} is not a connector of {fm_sect.point!r}")
        if to_con not in to_sect.connectors:
            raise LinkError(f"{to_con!r} is not a connector of {to_sect.point!r}")

        key = self._graph.add_edge(
            fm_sect.point,
            to_sect.point,
            label=fm_con.label,
            connectors=(fm_con, to_con),
        )
        return Edge(
            label=fm_con.label,
            points=frozenset((fm_sect.point, to_sect.point)),
            connectors=frozenset((fm_con, to_con)),
            key=key,
        )

    @staticmethod
    def num_undirected_links(
        fm_sect: Section,
        to_sect: Section,
        label: str,
        linkage: Iterable[Edge],
    ) -> int:
        """Count edges of type ``label`` joining the two sections in ``linkage``."""
        ends = frozenset((fm_sect.point, to_sect.point))
        return sum(1 for edge in linkage if edge.label == label and edge.points == ends)

    def clear(self) -> None:
        """Forget every stored edge."""
        self._graph.clear()


def linkage_graph(
    linkage: Iterable[Edge],
    points: Optional[Iterable[Section]] = None,
) -> nx.MultiGraph:
    """
    Build a MultiGraph view of an edge list.

    Sections given in ``points`` are added as nodes even when no edge
    touches them, so connectivity checks see isolated pieces.
    """
    graph = nx.MultiGraph()
    for section in points or ():
        graph.add_node(section.point, origin=section.template_point)
    for edge in linkage:
        ends = sorted(edge.points)
        graph.add_edge(ends[0], ends[-1], key=edge.key, label=edge.label)
    return graph
