"""
Service layer.

The referral-network builder is split into materializer -> assembler ->
ranking; build_network_tree is the stable entrypoint.
"""

from .network_tree import build_network_tree, flatten_recruiters  # re-export for convenience
from .network_types import NetworkNode, NetworkTreeFocus, NetworkTreeResult, NetworkTreeStats, NodeKind

__all__ = [
    "build_network_tree",
    "flatten_recruiters",
    "NetworkNode",
    "NetworkTreeFocus",
    "NetworkTreeResult",
    "NetworkTreeStats",
    "NodeKind",
]
