"""
Cluster module initialization.
"""

from .search import (
    SearchParameters,
    SearchResult,
    KubeSearchClient,
    normalize_search_args
)
from .nodes import (
    NodeAddress,
    ClusterNode,
    decode_node,
    decode_nodes,
    get_node_internal_ip
)

__all__ = [
    'SearchParameters',
    'SearchResult',
    'KubeSearchClient',
    'normalize_search_args',
    'NodeAddress',
    'ClusterNode',
    'decode_node',
    'decode_nodes',
    'get_node_internal_ip'
]
