"""
Piecework Search: Selection Policies and Search Control
=======================================================

Decides what to attach next and when to stop.

Policies:
- SimplePolicy: exhaustive, deterministic round-robin over the dictionary
- WeightedPolicy: weighted random draws from the dictionary

Both reuse open sections first, keep their per-branch cursors on
checkpoint stacks, enumerate root combinations with a RootOdometer,
and enforce SearchLimits.
"""

from piecework.search.limits import SearchLimits
from piecework.search.odometer import RootOdometer
from piecework.search.base import OpenSelections, ProtocolViolation, SelectionPolicy
from piecework.search.simple import SimplePolicy
from piecework.search.weighted import WeightedPolicy, DEFAULT_WEIGHT

__all__ = [
    "SearchLimits",
    "RootOdometer",
    "OpenSelections",
    "ProtocolViolation",
    "SelectionPolicy",
    "SimplePolicy",
    "WeightedPolicy",
    "DEFAULT_WEIGHT",
]
