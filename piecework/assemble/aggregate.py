"""
Aggregate Assembler
===================

Reference backtracking assembler that drives a selection policy.

Growth is depth-first. At each level the first unfilled connector of
the first open section is chosen; for every connector that can mate
with it, the policy is asked for candidates one at a time, and each
candidate is tried in a copied frame. Before descending, the policy's
frame and odometer checkpoints are pushed, and they are popped again
on the way out, so every choice point sees its own selection cursors.

The descent keeps its own stack of levels instead of recursing, so the
depth of an assembly is bounded by the search limits alone.

A frame with no open connectors is a finished assembly; it is recorded
only if it forms one connected graph.
"""

from typing import Iterable, Iterator, Optional

import networkx as nx

from piecework.core.collect import Solution
from piecework.core.links import linkage_graph
from piecework.core.schema import Connector, Frame, Section
from piecework.search.base import SelectionPolicy
from piecework.search.weighted import WeightedPolicy


class Aggregate:
    """
    Depth-first assembler over a selection policy.

    Example
    -------
    >>> policy = SimplePolicy(dictionary, max_network_size=6)
    >>> solutions = Aggregate(policy).generate(["sentence"])
    >>> solutions[0].to_graph()
    """

    def __init__(self, policy: SelectionPolicy, verbose: bool = True):
        self._policy = policy
        self._verbose = verbose
        self._rounds = 0
        self._rejected = 0

    @property
    def policy(self) -> SelectionPolicy:
        return self._policy

    @property
    def rounds(self) -> int:
        """Root combinations tried in the last run."""
        return self._rounds

    @property
    def rejected(self) -> int:
        """Finished but disconnected assemblies discarded in the last run."""
        return self._rejected

    def generate(self, anchors: Iterable[str]) -> list[Solution]:
        """
        Assemble structures rooted at the given anchors.

        Every combination of entry sections for the anchors is tried in
        turn until the combinations or the policy's limits run out.

        Raises
        ------
        ValueError
            If the policy sets no bound on the search. A random policy
            needs ``max_steps``, since random draws never run out on their
            own; any other policy needs at least one of ``max_steps``,
            ``max_network_size`` or ``max_depth``.
        """
        policy = self._policy
        limits = policy.limits
        if isinstance(policy, WeightedPolicy) and limits.max_steps is None:
            raise ValueError("a random search needs max_steps to terminate")
        if limits.max_steps is None and limits.max_network_size is None and limits.max_depth is None:
            raise ValueError(
                "an unbounded search needs max_steps, max_network_size or max_depth"
            )

        anchors = list(anchors)
        policy.root_set(anchors)
        self._rounds = 0
        self._rejected = 0

        while True:
            starters = policy.next_root()
            if not starters:
                break
            self._rounds += 1

            frame = Frame()
            for template in sorted(starters, key=_section_order):
                frame.place(policy.create_unique_section(template))
            self._search(frame)

        solutions = policy.solutions
        self._log(
            f"Anchors {anchors}: {self._rounds} root combinations, "
            f"{policy.steps_taken} steps, {len(solutions)} solutions, "
            f"{self._rejected} disconnected rejected"
        )
        return solutions

    def _search(self, root: Frame) -> None:
        """Walk every extension of ``root``, one checkpoint pair per level."""
        policy = self._policy
        policy.push_frame()
        policy.push_odometer()
        levels = [self._expand(root)]

        while levels:
            child = next(levels[-1], None)
            if child is not None:
                policy.push_frame()
                policy.push_odometer()
                levels.append(self._expand(child))
                continue

            levels.pop()
            policy.pop_odometer()
            policy.pop_frame()

            if policy.halted:
                while levels:
                    levels.pop().close()
                    policy.pop_odometer()
                    policy.pop_frame()

    def _expand(self, frame: Frame) -> Iterator[Frame]:
        """
        Yield each child of ``frame`` in selection order.

        The caller must keep this level's checkpoints on top of the
        policy's stacks whenever the generator is resumed.
        """
        policy = self._policy
        if not policy.step(frame):
            return

        if frame.is_complete:
            if nx.is_connected(linkage_graph(frame.linkage, frame.points)):
                policy.solution(frame)
            else:
                self._rejected += 1
            return

        fm_sect = frame.open_sections[0]
        offset = frame.unfilled[fm_sect][0]
        fm_con = fm_sect.connectors[offset]

        for to_con in policy.joints(fm_con):
            while True:
                to_sect = policy.select(frame, fm_sect, offset, to_con)
                if to_sect is None:
                    break

                child = self._attach(frame, fm_sect, offset, to_sect, to_con)
                if child is not None:
                    yield child

    def _attach(
        self,
        frame: Frame,
        fm_sect: Section,
        offset: int,
        to_sect: Section,
        to_con: Connector,
    ) -> Optional[Frame]:
        """
        Copy ``frame`` and join ``fm_sect[offset]`` to a free ``to_con`` on ``to_sect``.

        Returns None when ``to_sect`` has no free matching connector.
        """
        child = frame.copy()
        if to_sect not in child.points:
            child.place(to_sect)

        free = [
            o for o in child.unfilled.get(to_sect, [])
            if to_sect.connectors[o] == to_con and not (to_sect == fm_sect and o == offset)
        ]
        if not free:
            return None
        to_offset = free[0]

        edge = self._policy.make_link(fm_sect.connectors[offset], to_con, fm_sect, to_sect)
        child.linkage.append(edge)
        child.fill(fm_sect, offset)
        child.fill(to_sect, to_offset)
        child.depth += 1
        return child

    def _log(self, message: str) -> None:
        if self._verbose:
            print(f"[Aggregate] {message}")


def _section_order(section: Section) -> tuple[str, str]:
    return (section.point, repr(section.connectors))
