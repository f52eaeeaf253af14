"""
Piecework Assemble
==================

Backtracking assembler that drives a selection policy end to end.
"""

from piecework.assemble.aggregate import Aggregate

__all__ = [
    "Aggregate",
]
