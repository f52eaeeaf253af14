"""
Piecework Core: Pieces, Dictionary and Links
============================================

The collaborators the search engine is driven against.

Public API:
- Connector, Section, Edge: immutable piece and link models
- Frame: mutable state of one in-progress assembly
- Dictionary: lexicon of template pieces and joint rules
- LinkBuilder: section instancing and undirected edge creation
- SolutionCollector: store of accepted assemblies
"""

from piecework.core.schema import Connector, Section, Edge, Frame
from piecework.core.dictionary import Dictionary, DEFAULT_POLARITY
from piecework.core.links import LinkBuilder, LinkError, linkage_graph
from piecework.core.collect import Solution, SolutionCollector

__all__ = [
    "Connector",
    "Section",
    "Edge",
    "Frame",
    "Dictionary",
    "DEFAULT_POLARITY",
    "LinkBuilder",
    "LinkError",
    "linkage_graph",
    "Solution",
    "SolutionCollector",
]
