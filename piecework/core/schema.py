"""
Assembly Schema
===============

Value models for the pieces an assembly is built from.

Pieces are immutable and shared: the same template section may be
referenced by many assemblies at once, and every occurrence placed into
an assembly is a distinct instance with its own point name.

Models:
- Connector: typed, directional attachment point
- Section: a piece; an anchor point plus an ordered connector sequence
- Edge: undirected link between two connector endpoints
- Frame: mutable state of one in-progress assembly
"""

from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class Connector(BaseModel):
    """
    A typed attachment point.

    The label is the link type; the direction says which side of the
    link this end sits on ("+" and "-" by default, but any string is
    accepted so that dictionaries can declare their own joint rules).
    """

    model_config = ConfigDict(frozen=True)

    label: str
    """Link type this connector forms."""

    direction: str = "+"
    """Which end of the link this connector is."""

    @field_validator("label")
    @classmethod
    def _validate_label(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("connector label must be a non-empty string")
        return value

    def __repr__(self) -> str:
        return f"{self.label}{self.direction}"


class Section(BaseModel):
    """
    A puzzle piece: a point together with its connectors.

    Templates live in the Dictionary and have ``origin=None``. Instances
    placed into an assembly get a fresh point name and remember the
    template they were cut from in ``origin``.

    Examples
    --------
    >>> Section(point="verb", connectors=(Connector(label="S", direction="-"),))
    """

    model_config = ConfigDict(frozen=True)

    point: str
    connectors: tuple[Connector, ...] = ()
    origin: Optional[str] = None

    @field_validator("point")
    @classmethod
    def _validate_point(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("section point must be a non-empty string")
        return value

    @property
    def is_instance(self) -> bool:
        """True for pieces placed into an assembly."""
        return self.origin is not None

    @property
    def template_point(self) -> str:
        """Point name of the dictionary template this piece came from."""
        return self.origin if self.origin is not None else self.point

    def offsets_of(self, connector: Connector) -> list[int]:
        """Offsets at which ``connector`` occurs in this section."""
        return [i for i, con in enumerate(self.connectors) if con == connector]

    def __repr__(self) -> str:
        cons = " ".join(repr(c) for c in self.connectors)
        return f"Section({self.point}: {cons})"


class Edge(BaseModel):
    """
    Undirected link between two connector endpoints.

    Neither end is head or tail: both the points and the connectors are
    stored as sets. ``key`` tells parallel edges between the same two
    points apart.
    """

    model_config = ConfigDict(frozen=True)

    label: str
    points: frozenset[str]
    connectors: frozenset[Connector]
    key: int = 0

    def joins(self, a: Section, b: Section) -> bool:
        """Check whether this edge runs between the two sections."""
        return self.points == frozenset((a.point, b.point))

    def __repr__(self) -> str:
        ends = "-".join(sorted(self.points))
        return f"Edge({self.label}: {ends} #{self.key})"


@dataclass
class Frame:
    """
    Mutable state of one in-progress assembly.

    The assembler owns frames and copies them when it branches; the
    selection policy only reads ``open_sections``, ``linkage`` and
    ``depth``.
    """

    open_sections: list[Section] = field(default_factory=list)
    """Placed sections that still have unfilled connectors, in placement order."""

    unfilled: dict[Section, list[int]] = field(default_factory=dict)
    """Unfilled connector offsets per open section."""

    points: list[Section] = field(default_factory=list)
    """Every section placed so far, open or closed."""

    linkage: list[Edge] = field(default_factory=list)
    """Edges created so far."""

    depth: int = 0
    """Odometer rounds consumed."""

    def place(self, section: Section) -> None:
        """Add a section to the assembly with all of its connectors unfilled."""
        self.points.append(section)
        if section.connectors:
            self.open_sections.append(section)
            self.unfilled[section] = list(range(len(section.connectors)))

    def fill(self, section: Section, offset: int) -> None:
        """Mark one connector as consumed; close the section when none remain."""
        remaining = self.unfilled[section]
        remaining.remove(offset)
        if not remaining:
            del self.unfilled[section]
            self.open_sections.remove(section)

    def unfilled_connectors(self, section: Section) -> list[Connector]:
        """Connectors of an open section that are still waiting for a mate."""
        offsets = self.unfilled.get(section)
        if offsets is None:
            return []
        return [section.connectors[o] for o in offsets]

    def copy(self) -> "Frame":
        """Branch-safe copy; sections and edges are immutable and shared."""
        return Frame(
            open_sections=list(self.open_sections),
            unfilled={sect: list(offs) for sect, offs in self.unfilled.items()},
            points=list(self.points),
            linkage=list(self.linkage),
            depth=self.depth,
        )

    @property
    def is_complete(self) -> bool:
        """True once every placed connector has been matched."""
        return not self.open_sections
