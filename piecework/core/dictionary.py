"""
Piece Dictionary
================

In-memory lexicon of template sections.

The dictionary indexes pieces two ways: by their point (the "entries"
usable to start an assembly at an anchor) and by each connector they
expose (the "connectables" that can be drawn to satisfy a connector).
It also owns the joint rules that say which connectors mate, and any
numeric attributes (e.g. weights) hung on pieces.

Lists are returned in insertion order and are never reordered, which is
what makes the deterministic search reproducible.
"""

from typing import Iterable, Optional

from piecework.core.schema import Connector, Section


DEFAULT_POLARITY: dict[str, str] = {
    "+": "-",
    "-": "+",
}
"""Default joint rule: a connector mates with the opposite direction of the same label."""


class Dictionary:
    """
    Lexicon of reusable pieces.

    Example
    -------
    >>> d = Dictionary()
    >>> d.add_section(Section(point="A", connectors=(Connector(label="X", direction="+"),)))
    >>> d.add_section(Section(point="B", connectors=(Connector(label="X", direction="-"),)))
    >>> d.joints(Connector(label="X", direction="+"))
    [X-]
    """

    def __init__(self, polarity: Optional[dict[str, str]] = None):
        """
        Parameters
        ----------
        polarity : dict, optional
            Direction pairing used when no explicit pair is registered
            for a connector. Defaults to ``+`` <-> ``-``.
        """
        self._polarity = dict(DEFAULT_POLARITY if polarity is None else polarity)
        self._entries: dict[str, list[Section]] = {}
        self._connectables: dict[Connector, list[Section]] = {}
        self._pairs: dict[Connector, list[Connector]] = {}
        self._values: dict[tuple, float] = {}
        self._sections: list[Section] = []

    # -------------------------------------------------------------------------
    # Building
    # -------------------------------------------------------------------------

    def add_section(self, section: Section) -> None:
        """Register a template section under its point and its connectors."""
        if section.is_instance:
            raise ValueError(
                f"cannot add instance {section.point!r} to the dictionary; "
                "register the template instead"
            )
        if section in self._sections:
            return

        self._sections.append(section)
        self._entries.setdefault(section.point, []).append(section)

        seen: set[Connector] = set()
        for con in section.connectors:
            if con in seen:
                continue
            seen.add(con)
            self._connectables.setdefault(con, []).append(section)

    def add_sections(self, sections: Iterable[Section]) -> None:
        for section in sections:
            self.add_section(section)

    def add_pair(self, a: Connector, b: Connector) -> None:
        """
        Declare that ``a`` and ``b`` mate.

        Explicit pairs replace the polarity rule for the connectors
        involved.
        """
        for x, y in ((a, b), (b, a)):
            mates = self._pairs.setdefault(x, [])
            if y not in mates:
                mates.append(y)

    def set_value(self, section: Section, key: str, value: float) -> None:
        """Attach a numeric attribute (such as a weight) to a template."""
        self._values[(section.template_point, section.connectors, key)] = float(value)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def entries(self, anchor: str) -> list[Section]:
        """Sections that can start an assembly at ``anchor``."""
        return list(self._entries.get(anchor, []))

    def connectables(self, connector: Connector) -> list[Section]:
        """Sections exposing ``connector``, in insertion order."""
        return list(self._connectables.get(connector, []))

    def joints(self, connector: Connector) -> list[Connector]:
        """Connectors that can mate with ``connector``."""
        if connector in self._pairs:
            return list(self._pairs[connector])

        mate = self._polarity.get(connector.direction)
        if mate is None:
            return []
        return [Connector(label=connector.label, direction=mate)]

    def value(self, section: Section, key: str) -> Optional[float]:
        """Numeric attribute stored on the template of ``section``, if any."""
        return self._values.get((section.template_point, section.connectors, key))

    @property
    def sections(self) -> list[Section]:
        """All registered templates."""
        return list(self._sections)

    def __len__(self) -> int:
        return len(self._sections)

    def __repr__(self) -> str:
        return f"Dictionary({len(self._sections)} sections, {len(self._connectables)} connectors)"
