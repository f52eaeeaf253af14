"""
Tests for Search Control
========================

Tests the root odometer, the exhaustive selection policy, checkpoint
stacks and search limits.
"""

from itertools import product

import pytest
from pydantic import ValidationError

from piecework.core.dictionary import Dictionary
from piecework.core.links import LinkError
from piecework.core.schema import Connector, Edge, Frame, Section
from piecework.search.base import ProtocolViolation
from piecework.search.limits import SearchLimits
from piecework.search.odometer import RootOdometer
from piecework.search.simple import SimplePolicy


# =============================================================================
# Fixtures
# =============================================================================

C_PLUS = Connector(label="C", direction="+")
C_MINUS = Connector(label="C", direction="-")
D_PLUS = Connector(label="D", direction="+")


@pytest.fixture
def s1() -> Section:
    return Section(point="S1", connectors=(C_MINUS,))


@pytest.fixture
def s2() -> Section:
    return Section(point="S2", connectors=(C_MINUS, D_PLUS))


@pytest.fixture
def dictionary(s1, s2) -> Dictionary:
    """
    Lexicon where connector C- has two candidates, S1 then S2,
    and anchor "A" has two entries, P1 then P2.
    """
    d = Dictionary()
    d.add_sections([
        s1,
        s2,
        Section(point="A", connectors=(C_PLUS,)),
        Section(point="A", connectors=(C_PLUS, C_PLUS)),
        Section(point="B", connectors=(D_PLUS,)),
        Section(point="B", connectors=(Connector(label="E", direction="+"),)),
        Section(point="B", connectors=(C_PLUS, D_PLUS)),
    ])
    return d


@pytest.fixture
def policy(dictionary) -> SimplePolicy:
    return SimplePolicy(dictionary, verbose=False)


@pytest.fixture
def source() -> Section:
    """A placed section with one unfilled C+ connector."""
    return Section(point="src@1", connectors=(C_PLUS,), origin="src")


@pytest.fixture
def frame(source) -> Frame:
    f = Frame()
    f.place(source)
    return f


def _edge(key: int) -> Edge:
    return Edge(label="C", points=frozenset(("a", "b")), connectors=frozenset((C_PLUS, C_MINUS)), key=key)


# =============================================================================
# Odometer Tests
# =============================================================================

class TestRootOdometer:
    """Tests for the mixed-radix root counter."""

    def _sections(self, prefix: str, n: int) -> list[Section]:
        return [Section(point=f"{prefix}{i}") for i in range(n)]

    def test_enumerates_full_product_once(self):
        digits = [self._sections("a", 2), self._sections("b", 3), self._sections("c", 2)]
        odo = RootOdometer(digits)

        seen = []
        while True:
            combo = odo.advance()
            if not combo:
                break
            seen.append(tuple(combo))

        assert len(seen) == 12
        assert set(seen) == set(product(*digits))
        assert odo.exhausted

    def test_first_digit_moves_fastest(self):
        a = self._sections("a", 2)
        b = self._sections("b", 2)
        odo = RootOdometer([a, b])

        assert odo.advance() == [a[0], b[0]]
        assert odo.advance() == [a[1], b[0]]
        assert odo.advance() == [a[0], b[1]]
        assert odo.advance() == [a[1], b[1]]
        assert odo.advance() == []

    def test_exhaustion_is_idempotent(self):
        odo = RootOdometer([self._sections("a", 1)])
        assert len(odo.advance()) == 1
        assert odo.advance() == []
        assert odo.advance() == []

    def test_empty_digit_exhausts_immediately(self):
        odo = RootOdometer([self._sections("a", 3), []])
        assert odo.total == 0
        assert odo.advance() == []

    def test_no_digits(self):
        odo = RootOdometer()
        assert len(odo) == 0
        assert odo.advance() == []


class TestRootSelection:
    """Tests for root_set / next_root on a policy."""

    def test_single_anchor_scenario(self, policy, dictionary):
        p1, p2 = dictionary.entries("A")
        policy.root_set(["A"])

        assert policy.next_root() == {p1}
        assert policy.next_root() == {p2}
        assert policy.next_root() == set()
        assert policy.next_root() == set()

    def test_two_anchors_yield_every_combination(self, policy, dictionary):
        policy.root_set(["A", "B"])

        combos = []
        while True:
            roots = policy.next_root()
            if not roots:
                break
            combos.append(frozenset(roots))

        expected = {
            frozenset((a, b))
            for a, b in product(dictionary.entries("A"), dictionary.entries("B"))
        }
        assert len(combos) == 6
        assert set(combos) == expected

    def test_unknown_anchor_yields_nothing(self, policy):
        policy.root_set(["A", "nowhere"])
        assert policy.next_root() == set()

    def test_solution_limit_stops_roots(self, dictionary, frame):
        policy = SimplePolicy(dictionary, max_solutions=1, verbose=False)
        policy.root_set(["A"])
        assert policy.next_root()

        policy.solution(frame)
        assert policy.next_root() == set()
        assert policy.halted

    def test_step_limit_stops_roots(self, dictionary, frame):
        policy = SimplePolicy(dictionary, max_steps=0, verbose=False)
        policy.root_set(["A"])
        assert policy.next_root()

        policy.step(frame)
        assert policy.next_root() == set()

    def test_root_set_resets_state(self, policy, frame):
        policy.push_frame()
        policy.push_odometer()
        policy.step(frame)
        policy.solution(frame)

        policy.root_set(["A"])

        assert policy.frame_depth == 0
        assert policy.odometer_depth == 0
        assert policy.steps_taken == 0
        assert policy.solutions_found == 0
        assert policy.solutions == []


# =============================================================================
# Lexicon Selection Tests
# =============================================================================

class TestLexiconSelection:
    """Tests for round-robin draws from the dictionary."""

    def test_two_candidate_scenario(self, policy, frame, source, s1, s2):
        policy.push_frame()

        first = policy.select(frame, source, 0, C_MINUS)
        second = policy.select(frame, source, 0, C_MINUS)
        third = policy.select(frame, source, 0, C_MINUS)

        assert first.origin == "S1"
        assert first.connectors == s1.connectors
        assert first != s1
        assert second.origin == "S2"
        assert second.connectors == s2.connectors
        assert third is None

    def test_each_candidate_once_in_order(self, source, frame):
        d = Dictionary()
        templates = [Section(point=f"T{i}", connectors=(C_MINUS,)) for i in range(4)]
        d.add_sections(templates)
        policy = SimplePolicy(d, verbose=False)
        policy.push_frame()

        drawn = [policy.select(frame, source, 0, C_MINUS) for _ in range(4)]

        assert [s.origin for s in drawn] == ["T0", "T1", "T2", "T3"]
        assert len({s.point for s in drawn}) == 4
        assert policy.select(frame, source, 0, C_MINUS) is None

    def test_no_candidates_is_dead_end(self, policy, frame, source):
        policy.push_frame()
        assert policy.select(frame, source, 0, Connector(label="Z", direction="-")) is None

    def test_cursor_erased_after_exhaustion(self, policy, frame, source):
        policy.push_frame()
        for _ in range(3):
            policy.select(frame, source, 0, C_MINUS)
        assert C_MINUS not in policy.lexicon_cursors


# =============================================================================
# Open Selection Tests
# =============================================================================

class TestOpenSelection:
    """Tests for reuse of open sections."""

    def test_open_sections_preferred(self, policy, frame, source):
        target = Section(point="tgt@1", connectors=(C_MINUS,), origin="tgt")
        frame.place(target)
        policy.push_frame()

        assert policy.select(frame, source, 0, C_MINUS) == target

    def test_rollover_does_not_fall_through_to_lexicon(self, policy, frame, source):
        target = Section(point="tgt@1", connectors=(C_MINUS,), origin="tgt")
        frame.place(target)
        policy.push_frame()

        assert policy.select(frame, source, 0, C_MINUS) == target
        assert policy.select(frame, source, 0, C_MINUS) is None
        assert policy.select(frame, source, 0, C_MINUS) is None
        assert policy.lexicon_cursors == {}

    def test_self_pairing_excluded(self, policy):
        loop = Section(point="loop@1", connectors=(C_PLUS, C_MINUS), origin="loop")
        frame = Frame()
        frame.place(loop)
        policy.push_frame()

        assert policy.select_from_open(frame, loop, 0, C_MINUS) is None
        assert policy.select(frame, loop, 0, C_MINUS) is None

    def test_self_pairing_skips_to_next_candidate(self, policy):
        loop = Section(point="loop@1", connectors=(C_PLUS, C_MINUS), origin="loop")
        other = Section(point="other@1", connectors=(C_MINUS,), origin="other")
        frame = Frame()
        frame.place(loop)
        frame.place(other)
        policy.push_frame()

        assert policy.select(frame, loop, 0, C_MINUS) == other
        assert policy.select(frame, loop, 0, C_MINUS) is None

    def test_self_pairing_allowed(self, dictionary):
        policy = SimplePolicy(dictionary, allow_self_connections=True, verbose=False)
        loop = Section(point="loop@1", connectors=(C_PLUS, C_MINUS), origin="loop")
        frame = Frame()
        frame.place(loop)
        policy.push_frame()

        assert policy.select(frame, loop, 0, C_MINUS) == loop

    def test_pair_link_cap(self, dictionary):
        a = Section(point="a@1", connectors=(C_PLUS, C_PLUS), origin="a")
        b = Section(point="b@1", connectors=(C_MINUS, C_MINUS), origin="b")
        frame = Frame()
        frame.place(a)
        frame.place(b)

        capped = SimplePolicy(dictionary, max_pair_links=1, verbose=False)
        frame.linkage.append(capped.make_link(C_PLUS, C_MINUS, a, b))
        capped.push_frame()
        assert capped.select_from_open(frame, a, 1, C_MINUS) is None
        assert capped.select(frame, a, 1, C_MINUS) != b

        relaxed = SimplePolicy(dictionary, max_pair_links=2, verbose=False)
        relaxed.push_frame()
        assert relaxed.select_from_open(frame, a, 1, C_MINUS) == b

    def test_pair_cap_rechecked_while_iterating(self, dictionary):
        a = Section(point="a@1", connectors=(C_PLUS, C_PLUS), origin="a")
        b = Section(point="b@1", connectors=(C_MINUS, C_MINUS), origin="b")
        frame = Frame()
        frame.place(a)
        frame.place(b)
        policy = SimplePolicy(dictionary, max_pair_links=1, verbose=False)
        policy.push_frame()

        # b exposes C- twice, so it is listed twice.
        assert policy.select(frame, a, 0, C_MINUS) == b
        frame.linkage.append(policy.make_link(C_PLUS, C_MINUS, a, b))
        assert policy.select(frame, a, 0, C_MINUS) is None


# =============================================================================
# Checkpoint Tests
# =============================================================================

class TestCheckpoints:
    """Tests for frame and odometer push/pop."""

    def test_frame_round_trip(self, policy, frame, source):
        frame.place(Section(point="t1@1", connectors=(C_MINUS,), origin="t1"))
        frame.place(Section(point="t2@1", connectors=(C_MINUS,), origin="t2"))
        policy.push_frame()
        policy.select(frame, source, 0, C_MINUS)
        before = policy.open_selections

        policy.push_frame()
        assert policy.open_selections.sections == {}
        policy.select(frame, source, 0, C_MINUS)
        policy.select(frame, source, 0, C_MINUS)
        policy.select(frame, source, 0, C_MINUS)
        policy.pop_frame()

        assert policy.open_selections == before
        # The restored cursor resumes where it left off.
        assert policy.select(frame, source, 0, C_MINUS).origin == "t2"

    def test_odometer_round_trip(self, policy, frame, source):
        policy.push_frame()
        policy.push_odometer()
        assert policy.select(frame, source, 0, C_MINUS).origin == "S1"
        before = policy.lexicon_cursors

        policy.push_odometer()
        assert policy.lexicon_cursors == {}
        assert policy.select(frame, source, 0, C_MINUS).origin == "S1"
        policy.select(frame, source, 0, C_MINUS)
        policy.select(frame, source, 0, C_MINUS)
        policy.pop_odometer()

        assert policy.lexicon_cursors == before
        assert policy.select(frame, source, 0, C_MINUS).origin == "S2"

    def test_depth_tracking(self, policy):
        policy.push_frame()
        policy.push_frame()
        policy.push_odometer()
        assert policy.frame_depth == 2
        assert policy.odometer_depth == 1
        policy.pop_odometer()
        policy.pop_frame()
        policy.pop_frame()
        assert policy.frame_depth == 0

    def test_pop_frame_without_push(self, policy):
        with pytest.raises(ProtocolViolation):
            policy.pop_frame()

    def test_pop_odometer_without_push(self, policy):
        with pytest.raises(ProtocolViolation):
            policy.pop_odometer()

    def test_select_without_frame(self, policy, frame, source):
        with pytest.raises(ProtocolViolation):
            policy.select(frame, source, 0, C_MINUS)


# =============================================================================
# Limit Tests
# =============================================================================

class TestLimits:
    """Tests for step() and solution() bookkeeping."""

    def test_step_limit(self, dictionary, frame):
        policy = SimplePolicy(dictionary, max_steps=3, verbose=False)
        assert [policy.step(frame) for _ in range(3)] == [True, True, True]
        assert policy.step(frame) is False
        assert policy.halted

    def test_solution_limit(self, dictionary, frame):
        policy = SimplePolicy(dictionary, max_solutions=2, verbose=False)
        policy.solution(frame)
        assert policy.step(frame) is True
        policy.solution(Frame(linkage=[_edge(0)]))
        assert policy.step(frame) is False
        assert policy.solutions_found == 2

    def test_network_size_limit(self, dictionary):
        policy = SimplePolicy(dictionary, max_network_size=1, verbose=False)
        frame = Frame(linkage=[_edge(0)])
        assert policy.step(frame) is True
        frame.linkage.append(_edge(1))
        assert policy.step(frame) is False
        assert not policy.halted

    def test_depth_limit(self, dictionary):
        policy = SimplePolicy(dictionary, max_depth=2, verbose=False)
        assert policy.step(Frame(depth=2)) is True
        assert policy.step(Frame(depth=3)) is False

    def test_unlimited_by_default(self, policy, frame):
        for _ in range(1000):
            assert policy.step(frame)
        assert policy.steps_taken == 1000

    def test_solution_records_frame(self, policy, frame):
        solution = policy.solution(frame)
        assert policy.solutions == [solution]
        assert solution.templates() == ["src"]

    def test_repeated_linkage_counted_once(self, dictionary, frame):
        policy = SimplePolicy(dictionary, max_solutions=2, verbose=False)
        first = policy.solution(frame)
        again = policy.solution(frame.copy())

        assert again is first
        assert policy.solutions_found == 1
        assert policy.step(frame) is True
        assert not policy.halted


class TestConfiguration:
    """Tests for SearchLimits handling."""

    def test_overrides_merge_with_limits(self, dictionary):
        policy = SimplePolicy(dictionary, SearchLimits(max_steps=5), max_depth=2, verbose=False)
        assert policy.limits.max_steps == 5
        assert policy.limits.max_depth == 2
        assert policy.limits.max_pair_links == 1
        assert policy.limits.allow_self_connections is False

    def test_rejects_negative_limits(self):
        with pytest.raises(ValidationError):
            SearchLimits(max_steps=-1)

    def test_rejects_unknown_option(self, dictionary):
        with pytest.raises(ValidationError):
            SimplePolicy(dictionary, max_stepz=3)


class TestMakeLink:
    """Tests for edge construction through the policy."""

    def test_make_link(self, policy, source):
        target = Section(point="tgt@1", connectors=(C_MINUS,), origin="tgt")
        edge = policy.make_link(C_PLUS, C_MINUS, source, target)
        assert edge.joins(target, source)
        assert policy.num_links(source, target, "C", [edge]) == 1

    def test_make_link_errors_propagate(self, policy, source):
        target = Section(point="tgt@1", connectors=(D_PLUS,), origin="tgt")
        with pytest.raises(LinkError):
            policy.make_link(C_PLUS, D_PLUS, source, target)

    def test_joints_delegate_to_dictionary(self, policy):
        assert policy.joints(C_PLUS) == [C_MINUS]
