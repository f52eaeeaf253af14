"""
Piecework: Graph-Assembly Search Engine
=======================================

Assembles typed puzzle pieces into connected graphs by matching
complementary connectors, and enumerates or randomly samples the
space of valid assemblies within caller-supplied limits.

Subpackages:
- piecework.core: pieces, dictionary, links and solution records
- piecework.search: selection policies, root odometer, search limits
- piecework.assemble: reference backtracking assembler
"""

from piecework.core import (
    Connector,
    Section,
    Edge,
    Frame,
    Dictionary,
    LinkBuilder,
    LinkError,
    Solution,
    SolutionCollector,
)
from piecework.search import (
    SearchLimits,
    RootOdometer,
    ProtocolViolation,
    SelectionPolicy,
    SimplePolicy,
    WeightedPolicy,
)
from piecework.assemble import Aggregate

__version__ = "0.1.0"

__all__ = [
    "Connector",
    "Section",
    "Edge",
    "Frame",
    "Dictionary",
    "LinkBuilder",
    "LinkError",
    "Solution",
    "SolutionCollector",
    "SearchLimits",
    "RootOdometer",
    "ProtocolViolation",
    "SelectionPolicy",
    "SimplePolicy",
    "WeightedPolicy",
    "Aggregate",
]
