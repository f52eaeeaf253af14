"""
Selection Policy
================

Decides which piece to attach to an unfilled connector next.

A policy is driven by an external assembler through a small surface:

- ``root_set()`` / ``next_root()``: choose starting pieces
- ``select()``: propose a piece for one unfilled connector
- ``make_link()``: join two connector endpoints
- ``push_frame()`` / ``pop_frame()`` and ``push_odometer()`` /
  ``pop_odometer()``: checkpoint the per-branch cursors
- ``step()`` / ``solution()``: limit checks and result recording

Selection always tries the sections already open in the current frame
before drawing anything new from the dictionary. How fresh pieces are
drawn is what distinguishes the concrete policies.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from piecework.core.collect import Solution, SolutionCollector
from piecework.core.dictionary import Dictionary
from piecework.core.links import LinkBuilder
from piecework.core.schema import Connector, Edge, Frame, Section
from piecework.search.limits import SearchLimits
from piecework.search.odometer import RootOdometer


class ProtocolViolation(RuntimeError):
    """Raised when push/pop pairing or frame scoping is broken by the caller."""


@dataclass
class OpenSelections:
    """
    Per-frame index of open sections that can take a connector.

    ``sections`` maps a to-connector to the open sections exposing it;
    ``cursors`` maps it to the next position to try in that list.
    """

    sections: dict[Connector, list[Section]] = field(default_factory=dict)
    cursors: dict[Connector, int] = field(default_factory=dict)

    def snapshot(self) -> "OpenSelections":
        """Independent copy, safe to compare against later."""
        return OpenSelections(
            sections={con: list(sects) for con, sects in self.sections.items()},
            cursors=dict(self.cursors),
        )


class SelectionPolicy(ABC):
    """
    Base class for selection policies.

    Subclasses implement ``select_from_lexis()``; everything else (open
    section reuse, checkpoint stacks, root enumeration, limits) is shared.
    """

    def __init__(
        self,
        dictionary: Dictionary,
        limits: Optional[SearchLimits] = None,
        links: Optional[LinkBuilder] = None,
        collector: Optional[SolutionCollector] = None,
        verbose: bool = True,
        **overrides: Any,
    ):
        """
        Parameters
        ----------
        dictionary : Dictionary
            Source of entry and connectable pieces.
        limits : SearchLimits, optional
            Search bounds. Keyword ``overrides`` (e.g. ``max_steps=100``)
            are applied on top and validated.
        links : LinkBuilder, optional
            Edge and instance factory. A private one is created if omitted.
        collector : SolutionCollector, optional
            Where accepted assemblies are recorded.
        verbose : bool
            Print lifecycle messages.
        """
        base = limits.model_dump() if limits is not None else {}
        self._limits = SearchLimits(**{**base, **overrides})
        self._dict = dictionary
        self._links = links or LinkBuilder()
        self._collector = collector or SolutionCollector()
        self._verbose = verbose

        self._opensel = OpenSelections()
        self._opensel_stack: list[OpenSelections] = []
        self._lexlit: dict[Connector, int] = {}
        self._lexlit_stack: list[dict[Connector, int]] = []

        self._odometer = RootOdometer()
        self._steps_taken = 0
        self._num_solutions_found = 0
        self._halted: Optional[str] = None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def limits(self) -> SearchLimits:
        return self._limits

    @property
    def dictionary(self) -> Dictionary:
        return self._dict

    @property
    def links(self) -> LinkBuilder:
        return self._links

    @property
    def steps_taken(self) -> int:
        return self._steps_taken

    @property
    def solutions_found(self) -> int:
        return self._num_solutions_found

    @property
    def halted(self) -> bool:
        """True once a global step or solution limit has been hit in this run."""
        return self._halted is not None

    @property
    def solutions(self) -> list[Solution]:
        """Everything recorded through ``solution()`` since the last ``root_set()``."""
        return self._collector.solutions

    @property
    def frame_depth(self) -> int:
        """Number of frames currently pushed."""
        return len(self._opensel_stack)

    @property
    def odometer_depth(self) -> int:
        """Number of odometer rounds currently pushed."""
        return len(self._lexlit_stack)

    @property
    def open_selections(self) -> OpenSelections:
        """Copy of the live open-selection index."""
        return self._opensel.snapshot()

    @property
    def lexicon_cursors(self) -> dict[Connector, int]:
        """Copy of the live lexicon cursors."""
        return dict(self._lexlit)

    # =========================================================================
    # Root enumeration
    # =========================================================================

    def clear(self) -> None:
        """Drop all search state, stored edges included, so the policy can be reused."""
        self._opensel_stack.clear()
        self._lexlit_stack.clear()
        self._opensel = OpenSelections()
        self._lexlit = {}
        self._odometer = RootOdometer()
        self._steps_taken = 0
        self._num_solutions_found = 0
        self._halted = None
        self._collector.clear()
        self._links.clear()

    def root_set(self, anchors: Iterable[str]) -> None:
        """
        Prepare to enumerate starting pieces for the given anchors.

        Anchors are taken in iteration order; the first anchor is the
        fastest-moving odometer digit.
        """
        # Might be getting re-used.
        self.clear()

        self._odometer = RootOdometer([self._dict.entries(a) for a in anchors])
        self._log(
            f"Root set: {len(self._odometer)} anchors, "
            f"{self._odometer.total} combinations"
        )

    def next_root(self) -> set[Section]:
        """
        Return the next unexplored combination of root sections.

        Returns an empty set once every combination has been produced,
        or once the step or solution limit has been reached.
        """
        if self._limits.exceeds(self._steps_taken, self._limits.max_steps):
            self._halt("step limit reached")
            return set()
        if self._limits.reaches(self._num_solutions_found, self._limits.max_solutions):
            self._halt("solution limit reached")
            return set()

        return set(self._odometer.advance())

    # =========================================================================
    # Selection
    # =========================================================================

    def select(
        self,
        frame: Frame,
        fm_sect: Section,
        offset: int,
        to_con: Connector,
    ) -> Optional[Section]:
        """
        Return a section that can take ``to_con``, or None.

        Open sections in the frame are offered first. Once the open
        supply for ``to_con`` has been started and run dry in this frame,
        None is returned without consulting the lexicon.
        """
        if not self._opensel_stack:
            raise ProtocolViolation("select() called before push_frame()")

        open_sect = self.select_from_open(frame, fm_sect, offset, to_con)
        if open_sect is not None:
            return open_sect

        # The odometer for this connector rolled over.
        if to_con in self._opensel.sections:
            return None

        return self.select_from_lexis(frame, fm_sect, offset, to_con)

    def select_from_open(
        self,
        frame: Frame,
        fm_sect: Section,
        offset: int,
        to_con: Connector,
    ) -> Optional[Section]:
        """Return an open section of the frame that exposes ``to_con``, or None."""
        if to_con in self._opensel.cursors:
            return self._check_self(frame, fm_sect, to_con)

        label = to_con.label
        to_sects: list[Section] = []
        for open_sect in frame.open_sections:
            for con in frame.unfilled_connectors(open_sect):
                if con != to_con:
                    continue
                # Already connected as often as allowed?
                if self._at_pair_cap(frame, fm_sect, open_sect, label):
                    continue
                to_sects.append(open_sect)

        if not to_sects:
            return None

        self._opensel.sections[to_con] = to_sects
        self._opensel.cursors[to_con] = 0
        return self._check_self(frame, fm_sect, to_con)

    def _check_self(
        self,
        frame: Frame,
        fm_sect: Section,
        to_con: Connector,
    ) -> Optional[Section]:
        """Advance the open cursor for ``to_con`` past the next acceptable section."""
        to_sects = self._opensel.sections[to_con]
        fit = self._opensel.cursors[to_con]
        allow_self = self._limits.allow_self_connections

        while fit < len(to_sects):
            to_sect = to_sects[fit]
            fit += 1
            if not allow_self and to_sect == fm_sect:
                continue
            if self._at_pair_cap(frame, fm_sect, to_sect, to_con.label):
                continue
            self._opensel.cursors[to_con] = fit
            return to_sect

        self._opensel.cursors[to_con] = fit
        return None

    def _at_pair_cap(
        self,
        frame: Frame,
        fm_sect: Section,
        to_sect: Section,
        label: str,
    ) -> bool:
        count = self.num_links(fm_sect, to_sect, label, frame.linkage)
        return count >= self._limits.max_pair_links

    @abstractmethod
    def select_from_lexis(
        self,
        frame: Frame,
        fm_sect: Section,
        offset: int,
        to_con: Connector,
    ) -> Optional[Section]:
        """Return a fresh section instance exposing ``to_con``, or None."""
        ...

    def joints(self, con: Connector) -> list[Connector]:
        """Connectors that can mate with ``con``."""
        return self._dict.joints(con)

    # =========================================================================
    # Links
    # =========================================================================

    def make_link(
        self,
        fm_con: Connector,
        to_con: Connector,
        fm_sect: Section,
        to_sect: Section,
    ) -> Edge:
        """
        Create an undirected edge joining the two connector endpoints.

        Neither section is head or tail. Errors from the link builder
        propagate unchanged.
        """
        return self._links.create_undirected_link(fm_con, to_con, fm_sect, to_sect)

    def num_links(
        self,
        fm_sect: Section,
        to_sect: Section,
        label: str,
        linkage: Iterable[Edge],
    ) -> int:
        return self._links.num_undirected_links(fm_sect, to_sect, label, linkage)

    def create_unique_section(self, template: Section) -> Section:
        return self._links.create_unique_section(template)

    # =========================================================================
    # Checkpoints
    # =========================================================================

    def push_frame(self) -> None:
        """Save the open-selection index and start a fresh one."""
        self._opensel_stack.append(self._opensel)
        self._opensel = OpenSelections()

    def pop_frame(self) -> None:
        """Discard the current open-selection index and restore the saved one."""
        if not self._opensel_stack:
            raise ProtocolViolation("pop_frame() without a matching push_frame()")
        self._opensel = self._opensel_stack.pop()

    def push_odometer(self) -> None:
        """Save the lexicon cursors and start a fresh set."""
        self._lexlit_stack.append(self._lexlit)
        self._lexlit = {}

    def pop_odometer(self) -> None:
        """Discard the current lexicon cursors and restore the saved ones."""
        if not self._lexlit_stack:
            raise ProtocolViolation("pop_odometer() without a matching push_odometer()")
        self._lexlit = self._lexlit_stack.pop()

    # =========================================================================
    # Limits and results
    # =========================================================================

    def step(self, frame: Frame) -> bool:
        """
        Count one expansion step and check the limits.

        Returns False when the frame should not be expanded any further.
        """
        self._steps_taken += 1
        limits = self._limits

        if limits.exceeds(self._steps_taken, limits.max_steps):
            self._halt("step limit reached")
            return False
        if limits.reaches(self._num_solutions_found, limits.max_solutions):
            self._halt("solution limit reached")
            return False
        if limits.exceeds(len(frame.linkage), limits.max_network_size):
            return False
        if limits.exceeds(frame.depth, limits.max_depth):
            return False
        return True

    def solution(self, frame: Frame) -> Solution:
        """
        Record a finished assembly.

        Only a linkage not seen before in this run counts towards
        ``solutions_found`` and ``max_solutions``.
        """
        recorded = len(self._collector)
        solution = self._collector.record_solution(frame)
        if len(self._collector) > recorded:
            self._num_solutions_found += 1
        return solution

    # =========================================================================
    # Internals
    # =========================================================================

    def _halt(self, reason: str) -> None:
        """Report the first global limit hit in a run."""
        if self._halted is None:
            self._halted = reason
            self._log(
                f"Halting: {reason} after {self._steps_taken} steps, "
                f"{self._num_solutions_found} solutions"
            )

    def _log(self, message: str) -> None:
        if self._verbose:
            print(f"[{type(self).__name__}] {message}")

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(steps={self._steps_taken}, "
            f"solutions={self._num_solutions_found}, frames={self.frame_depth})"
        )
