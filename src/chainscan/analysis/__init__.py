"""Call graph traversal and value resolution."""

from chainscan.analysis.callgraph import CallChainWalker, CallerCache
from chainscan.analysis.topics import resolve_topic_name

__all__ = ["CallChainWalker", "CallerCache", "resolve_topic_name"]
